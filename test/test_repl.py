"""
REPL line tests: assignments, definitions, commands and error results
"""

import pytest


def repl(interpreter, line):
  return interpreter.eval_repl_line(line)


class TestAssignments:
  """Top-level variables are bound once"""

  def test_assignment_echoes_value(self, interpreter):
    assert repl(interpreter, "y = 5") == {'ok': True, 'result': "y = 5"}
    assert repl(interpreter, "y * 2")['result'] == "10"

  def test_let_prefix(self, interpreter):
    assert repl(interpreter, "let z = [1..3]")['result'] == "z = [1, 2, 3]"

  def test_reassignment_is_rejected(self, interpreter):
    repl(interpreter, "y = 5")
    result = repl(interpreter, "y = 6")
    assert not result['ok']
    assert "Cannot reassign 'y' - variables are immutable" in result['error']
    assert repl(interpreter, "y")['result'] == "5"

  def test_builtin_name_is_not_a_variable(self, interpreter):
    result = repl(interpreter, "head = 3")
    assert not result['ok']
    assert "Cannot use 'head' as a variable name" in result['error']

  def test_failed_assignment_binds_nothing(self, interpreter):
    assert not repl(interpreter, "w = 1 / 0")['ok']
    assert interpreter.state['variables'] == {}


class TestDefinitions:
  """Clauses typed at the prompt extend the function"""

  def test_define_and_call(self, interpreter):
    assert repl(interpreter, "inc x = x + 1")['result'] == "Defined function: inc"
    assert repl(interpreter, "inc 2")['result'] == "3"

  def test_clauses_accumulate(self, interpreter):
    repl(interpreter, "fib 0 = 0")
    repl(interpreter, "fib 1 = 1")
    repl(interpreter, "fib n = fib (n - 1) + fib (n - 2)")
    assert len(interpreter.state['functions']['fib']) == 3
    assert repl(interpreter, "fib 10")['result'] == "55"

  def test_builtin_cannot_be_redefined(self, interpreter):
    result = repl(interpreter, "head x = 1")
    assert not result['ok']
    assert "Cannot redefine built-in function 'head'" in result['error']


class TestExpressions:

  def test_empty_line(self, interpreter):
    assert repl(interpreter, "   ") == {'ok': True, 'result': ''}

  def test_string_result_is_unquoted(self, loaded):
    assert repl(loaded, "classify 3")['result'] == "positive"

  def test_error_result(self, loaded):
    result = repl(loaded, "1 + True")
    assert result == {'ok': False, 'error': "Cannot add Num and Bool", 'suggestions': []}

  def test_error_keeps_state(self, loaded):
    before = loaded.state
    repl(loaded, "sumList 5")
    assert loaded.state is before

  def test_runaway_recursion_is_an_error(self, interpreter):
    repl(interpreter, "loop n = loop (n + 1)")
    result = repl(interpreter, "loop 1")
    assert not result['ok']


class TestCommands:
  """':' commands"""

  def test_show_when_empty(self, interpreter):
    assert repl(interpreter, ":show")['result'] == "No functions or variables defined."
    assert repl(interpreter, ":functions")['result'] == "No functions defined."
    assert repl(interpreter, ":vars")['result'] == "No variables defined."

  def test_show_lists_everything(self, loaded):
    output = repl(loaded, ":bindings")['result']
    assert output.startswith("Functions:\n  factorial 0\n  factorial n\n")
    assert "\n\nVariables:\n" in output

  def test_variables(self, loaded):
    assert repl(loaded, ":variables")['result'] == "Variables:\n  numbers = [1, 2, 3, 4]\n  total = 10"

  def test_info_function(self, loaded):
    assert repl(loaded, ":info factorial")['result'] == (
        "Function: factorial\n\nDefinitions:\n"
        "factorial 0 = 1\n\n"
        "factorial n = n * factorial (n - 1)")

  def test_info_guarded_function(self, loaded):
    output = repl(loaded, ":i classify")['result']
    assert "classify n\n  | n < 0 = \"negative\"" in output

  def test_info_variable(self, loaded):
    assert repl(loaded, ":info total")['result'] == "Variable: total\ntotal = 10"

  def test_info_builtin(self, interpreter):
    assert repl(interpreter, ":info head")['result'] == "Built-in function: head :: [a] -> a"
    assert repl(interpreter, ":info map")['result'] == "Built-in function: map :: (a -> b) -> [a] -> [b]"

  def test_info_errors(self, interpreter):
    assert repl(interpreter, ":info")['error'] == "Usage: :info <name>"
    assert repl(interpreter, ":info nothing")['error'] == "'nothing' is not defined"

  def test_help(self, interpreter):
    assert ":info <name>" in repl(interpreter, ":?")['result']

  def test_unknown_command(self, interpreter):
    result = repl(interpreter, ":frob")
    assert not result['ok']
    assert result['error'] == "Unknown command: :frob\nType :help for available commands"
