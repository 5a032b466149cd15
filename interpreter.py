"""
Haskish Interpreter - Pure Functional Style
Tree-walking evaluator, pattern matching and the load/REPL driver
Interpreter state is an immutable dictionary threaded through every call
"""

from typing import Dict, List, Optional, Tuple
import math
import sys
import traceback
from utilities import (
  validate_function_args,
  type_mismatch_error,
  arity_error,
  builtin_variable_error,
  builtin_redefinition_error
)
from stdlib import (
  make_value,
  make_function_value,
  make_operator_value,
  make_builtin_function,
  values_equal,
  is_truthy,
  show_value,
  apply_operator,
  require_sequence,
  sequence_items,
  list_builtin_functions,
  BUILTIN_FUNCTIONS
)
from parsing import parse_expression, parse_pattern, classify_line
from definitions import (
  make_definition_store,
  make_clause,
  store_add_clause,
  store_bind_variable,
  store_counts,
  scan_program,
  strip_let
)
from error_handling import (
  HaskishError,
  HaskishParseError,
  TypeMismatch,
  NoClauseMatched,
  UndefinedFunction,
  ImmutableReassignment,
  make_error_result,
  format_error_result,
  suggest_names
)


# Deep but finite recursion in user programs needs more than the default stack
sys.setrecursionlimit(max(sys.getrecursionlimit(), 10000))

# Left operand value that decides a logical operator on its own
SHORT_CIRCUIT = {'&&': False, '||': True}


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_runtime_env(parent: Optional[Dict] = None, bindings: Optional[Dict] = None) -> Dict:
  """Create an immutable runtime frame"""
  return {
      'parent': parent,
      'bindings': bindings or {}
  }


def make_context(state: Dict, debug: bool = False) -> Dict:
  """Evaluation context: the definition store plus the debug flag"""
  return {
      'functions': state['functions'],
      'variables': state['variables'],
      'debug': debug
  }


def make_success_result(result: str) -> Dict:
  return {'ok': True, 'result': result}


# ============================================================================
# ENVIRONMENT OPERATIONS
# ============================================================================

def env_lookup_value(env: Optional[Dict], name: str) -> Optional[Dict]:
  """Look up a value in the environment chain"""
  if env is None:
    return None
  if name in env['bindings']:
    return env['bindings'][name]
  return env_lookup_value(env['parent'], name)


def known_names(context: Dict) -> List[str]:
  """Every name an expression can refer to at top level"""
  return (list(context['variables']) + list(context['functions']) +
          list_builtin_functions() + list(HIGHER_ORDER_FUNCTIONS))


# ============================================================================
# PATTERN MATCHING
# ============================================================================

def matches_pattern(value: Dict, pattern: Dict, context: Dict) -> Optional[Dict]:
  """Match one value against one pattern node

  Returns:
      None if pattern doesn't match
      {} (empty dict) if pattern matches but binds no variables
      dict of {var_name: var_value} if pattern matches and binds variables
  """
  pattern_type = pattern['type']

  if pattern_type == 'PATTERN_EMPTY_LIST':
    return {} if value['type'] == 'List' and not value['value'] else None

  elif pattern_type == 'PATTERN_CONS':
    # (head:tail) - matches a non-empty list
    if value['type'] != 'List' or not value['value']:
      return None

    head_result = matches_pattern(value['value'][0], pattern['value']['head'], context)
    if head_result is None:
      return None
    tail_result = matches_pattern(make_value(value['value'][1:], "List"), pattern['value']['tail'], context)
    if tail_result is None:
      return None
    return {**head_result, **tail_result}

  elif pattern_type == 'PATTERN_LIST':
    # [a, b, ...] - matches a list of exactly that length
    items = pattern['value']
    if value['type'] != 'List' or len(value['value']) != len(items):
      return None

    bindings = {}
    for element, item_pattern in zip(value['value'], items):
      result = matches_pattern(element, item_pattern, context)
      if result is None:
        return None
      bindings.update(result)
    return bindings

  elif pattern_type == 'PATTERN_VAR':
    return {pattern['value']: value}

  elif pattern_type == 'PATTERN_LITERAL':
    return {} if values_equal(value, pattern['value']) else None

  elif pattern_type == 'PATTERN_EXPR':
    # Anything else is evaluated and compared by value
    expected = eval_ast(parse_expression(pattern['value']), make_runtime_env(), context)
    return {} if values_equal(value, expected) else None

  raise HaskishParseError(f"Unknown pattern type: {pattern_type}")


def try_match_clause(args: List[Dict], clause: Dict, context: Dict) -> Optional[Dict]:
  """Try to match arguments against a clause's patterns

  Returns:
      Dictionary of variable bindings if every pattern matches, None otherwise
  """
  patterns = clause['patterns']

  # Check arity
  if len(args) != len(patterns):
    return None

  bindings = {}
  for i, (arg_val, pattern_text) in enumerate(zip(args, patterns)):
    result = matches_pattern(arg_val, parse_pattern(pattern_text), context)
    if context['debug']:
      print(f"  Pattern {i}: {pattern_text} against {show_value(arg_val, quote_strings=True)} -> "
            f"{'match' if result is not None else 'no match'}")
    if result is None:
      return None
    # Later positions overwrite earlier bindings of the same name
    bindings.update(result)

  return bindings


def select_clause_body(clause: Dict, bindings: Dict, context: Dict) -> Optional[Dict]:
  """Body of a matched clause; for guarded clauses, the first guard that holds"""
  if not clause['guards']:
    return parse_expression(clause['body'])

  env = make_runtime_env(None, bindings)
  for guard in clause['guards']:
    condition = eval_ast(parse_expression(guard['condition']), env, context)
    if condition['type'] == 'Bool' and condition['value']:
      return parse_expression(guard['body'])
  return None


# ============================================================================
# FUNCTION APPLICATION
# ============================================================================

def apply_function(name: str, args: List[Dict], context: Dict) -> Dict:
  """Apply a built-in or user-defined function by name"""
  if context['debug']:
    print(f"Applying {name} to {len(args)} argument(s)")

  builtin = BUILTIN_FUNCTIONS.get(name) or HIGHER_ORDER_FUNCTIONS.get(name)
  if builtin is not None:
    if len(args) != builtin['arity']:
      raise arity_error(name, builtin['arity'], len(args))
    if name in HIGHER_ORDER_FUNCTIONS:
      return builtin['func'](*args, context)
    return builtin['func'](*args)

  clauses = context['functions'].get(name)
  if clauses is None:
    raise UndefinedFunction(name, suggest_names(name, known_names(context)))

  for clause in clauses:
    bindings = try_match_clause(args, clause, context)
    if bindings is None:
      continue
    body = select_clause_body(clause, bindings, context)
    if body is None:
      continue
    return eval_ast(body, make_runtime_env(None, bindings), context)

  raise NoClauseMatched(name, [show_value(arg, quote_strings=True) for arg in args])


def apply_value(func: Dict, args: List[Dict], context: Dict) -> Dict:
  """Apply a Function value (named reference, operator or section)"""
  if func['type'] != 'Function':
    raise TypeMismatch(f"Cannot apply a {func['type']} value as a function")

  payload = func['value']
  if payload['kind'] == 'named':
    return apply_function(payload['name'], args, context)

  if payload['kind'] == 'operator':
    if len(args) != 2:
      raise arity_error(f"({payload['op']})", 2, len(args))
    return apply_operator(payload['op'], args[0], args[1])

  # Section: the missing operand comes from the single argument
  if len(args) != 1:
    raise arity_error(show_value(func), 1, len(args))
  left = payload['left'] if payload['left'] is not None else args[0]
  right = payload['right'] if payload['right'] is not None else args[0]
  return apply_operator(payload['op'], left, right)


# ============================================================================
# STANDARD LIBRARY FUNCTIONS (Higher-order functions that need apply_value)
# ============================================================================

def stdlib_map(func: Dict, lst: Dict, context: Dict) -> Dict:
  """Map function over list (a string maps over its characters)"""
  validate_function_args("map", [func, lst], ["Function", "Any"])
  require_sequence("map", lst)
  return make_value([apply_value(func, [elem], context) for elem in sequence_items(lst)], "List")


def stdlib_filter(pred: Dict, lst: Dict, context: Dict) -> Dict:
  """Filter list with predicate; filtering a string gives a string"""
  validate_function_args("filter", [pred, lst], ["Function", "Any"])
  require_sequence("filter", lst)
  kept = [elem for elem in sequence_items(lst) if is_truthy(apply_value(pred, [elem], context))]
  if lst['type'] == "String":
    return make_value(''.join(elem['value'] for elem in kept), "String")
  return make_value(kept, "List")


def stdlib_fold(func: Dict, init: Dict, lst: Dict, context: Dict) -> Dict:
  """Fold list left to right, applying func to (accumulator, element)"""
  validate_function_args("fold", [func, init, lst], ["Function", "Any", "Any"])
  require_sequence("fold", lst)

  acc = init
  for elem in sequence_items(lst):
    acc = apply_value(func, [acc, elem], context)
  return acc


HIGHER_ORDER_FUNCTIONS: Dict[str, Dict] = {
    "map": make_builtin_function("map", stdlib_map, 2, "(a -> b) -> [a] -> [b]"),
    "filter": make_builtin_function("filter", stdlib_filter, 2, "(a -> Bool) -> [a] -> [a]"),
    "fold": make_builtin_function("fold", stdlib_fold, 3, "(b -> a -> b) -> b -> [a] -> b"),
}


BUILTIN_NAMES = frozenset(BUILTIN_FUNCTIONS) | frozenset(HIGHER_ORDER_FUNCTIONS)


def is_builtin_name(name: str) -> bool:
  return name in BUILTIN_NAMES


# ============================================================================
# EVALUATION
# ============================================================================

def eval_ast(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  """Evaluate an expression tree node to a value"""
  node_type = ast_node['type']

  if node_type == "LITERAL":
    return ast_node['value']
  elif node_type == "IDENTIFIER":
    return eval_identifier(ast_node, env, context)
  elif node_type == "BINARY_OP":
    return eval_binary_op(ast_node, env, context)
  elif node_type == "APPLICATION":
    return eval_application(ast_node, env, context)
  elif node_type == "LIST":
    return eval_list(ast_node, env, context)
  elif node_type == "RANGE":
    return eval_range(ast_node, env, context)
  elif node_type == "SECTION":
    return eval_section(ast_node, env, context)
  elif node_type == "IF":
    return eval_if(ast_node, env, context)
  else:
    if context['debug']:
      print(f"Unknown node type: {node_type}")
    raise HaskishParseError(f"Cannot evaluate node of type {node_type}")


def eval_identifier(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  """Local frames, then top-level variables, then function references"""
  name = ast_node['value']

  value = env_lookup_value(env, name)
  if value is not None:
    return value
  if name in context['variables']:
    return context['variables'][name]
  if is_builtin_name(name) or name in context['functions']:
    return make_function_value(name)

  raise HaskishParseError(f'Cannot evaluate expression: "{name}"', name,
                          suggest_names(name, known_names(context)))


def eval_binary_op(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  op_data = ast_node['value']
  left = eval_ast(op_data['left'], env, context)
  # && and || skip the right operand once the left one decides
  if op_data['op'] in SHORT_CIRCUIT and left['type'] == "Bool" and left['value'] == SHORT_CIRCUIT[op_data['op']]:
    return left
  right = eval_ast(op_data['right'], env, context)
  return apply_operator(op_data['op'], left, right)


def eval_application(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  """Evaluate every argument, then apply the function positionally"""
  func_node = ast_node['value']['func']
  args = [eval_ast(arg, env, context) for arg in ast_node['value']['args']]

  if func_node['type'] != "IDENTIFIER":
    return apply_value(eval_ast(func_node, env, context), args, context)

  name = func_node['value']
  # A parameter or variable holding a function value takes precedence
  local = env_lookup_value(env, name)
  if local is None:
    local = context['variables'].get(name)
  if local is not None:
    if local['type'] != 'Function':
      raise TypeMismatch(f"'{name}' is a {local['type']} value, not a function")
    return apply_value(local, args, context)

  return apply_function(name, args, context)


def eval_list(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  return make_value([eval_ast(item, env, context) for item in ast_node['value']], "List")


def eval_range(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  """Finite inclusive range [a..b] or [a,b..c]"""
  range_data = ast_node['value']
  start = eval_ast(range_data['start'], env, context)
  end = eval_ast(range_data['end'], env, context)
  following = eval_ast(range_data['next'], env, context) if range_data['next'] is not None else None
  validate_function_args("range", [start, end], ["Num", "Num"])

  if following is None:
    step = 1.0 if start['value'] <= end['value'] else -1.0
  else:
    if following['type'] != "Num":
      raise type_mismatch_error("range", "step", "Num", following)
    step = following['value'] - start['value']
    if step == 0:
      raise TypeMismatch("Range step cannot be zero")

  span = (end['value'] - start['value']) / step
  count = math.floor(span) + 1 if span >= 0 else 0
  return make_value([make_value(start['value'] + i * step, "Num") for i in range(count)], "List")


def eval_section(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  section = ast_node['value']
  left = eval_ast(section['left'], env, context) if section['left'] is not None else None
  right = eval_ast(section['right'], env, context) if section['right'] is not None else None
  return make_operator_value(section['op'], left, right)


def eval_if(ast_node: Dict, env: Optional[Dict], context: Dict) -> Dict:
  branches = ast_node['value']
  condition = eval_ast(branches['condition'], env, context)
  if is_truthy(condition):
    return eval_ast(branches['then'], env, context)
  return eval_ast(branches['else'], env, context)


def evaluate(state: Dict, text: str, debug: bool = False) -> Dict:
  """Evaluate expression text against an interpreter state; raises on failure"""
  if debug:
    print(f"Evaluating: {text}")
  context = make_context(state, debug)
  return eval_ast(parse_expression(text.strip()), make_runtime_env(), context)


# ============================================================================
# PROGRAM AND REPL DRIVER
# ============================================================================

def _guard_boundary(action, state: Dict, debug: bool = False) -> Tuple[Dict, Dict]:
  """Run action(); convert any failure into an error result and keep state"""
  try:
    return action()
  except HaskishError as e:
    return format_error_result(e), state
  except RecursionError:
    return make_error_result("Evaluation failed: recursion too deep"), state
  except Exception as e:
    if debug:
      traceback.print_exc()
    return make_error_result(f"Internal error: {e}"), state


def load_program(state: Dict, source_text: str, debug: bool = False) -> Tuple[Dict, Dict]:
  """Load program text into a fresh definition store

  Returns:
      (result, state); on failure the previous state is returned untouched
  """
  def load():
    store = scan_program(source_text, lambda store_so_far, expression: evaluate(store_so_far, expression, debug), debug,
                         reserved_names=BUILTIN_NAMES)
    function_count, clause_count, variable_count = store_counts(store)
    if debug:
      print(f"Loaded functions: {list(store['functions'])}")
      print(f"Loaded variables: {list(store['variables'])}")
    return {
        'ok': True,
        'function_count': function_count,
        'clause_count': clause_count,
        'variable_count': variable_count,
        'message': f"Loaded {function_count} function(s) and {variable_count} variable(s)"
    }, store

  return _guard_boundary(load, state, debug)


def eval_repl_line(state: Dict, line: str, debug: bool = False) -> Tuple[Dict, Dict]:
  """Evaluate one REPL line: a command, an assignment, a clause or an expression"""
  text = line.strip()
  if not text:
    return make_success_result(''), state
  if text.startswith(':'):
    return _guard_boundary(lambda: (handle_repl_command(state, text), state), state)

  text = strip_let(text)

  def step():
    entry = classify_line(text)
    if entry is not None and entry['kind'] == 'binding':
      return assign_variable(state, entry['name'], entry['expression'], debug)
    if entry is not None and entry['kind'] == 'clause':
      if is_builtin_name(entry['name']):
        raise builtin_redefinition_error(entry['name'])
      new_state = store_add_clause(state, entry['name'], make_clause(entry['params'], entry['body']))
      return make_success_result(f"Defined function: {entry['name']}"), new_state
    return make_success_result(show_value(evaluate(state, text, debug))), state

  return _guard_boundary(step, state, debug)


def assign_variable(state: Dict, name: str, expression: str, debug: bool = False) -> Tuple[Dict, Dict]:
  """Bind a new top-level variable; bound names are never rebound"""
  if is_builtin_name(name):
    raise builtin_variable_error(name)
  if name in state['variables']:
    raise ImmutableReassignment(name)

  value = evaluate(state, expression, debug)
  return make_success_result(f"{name} = {show_value(value)}"), store_bind_variable(state, name, value)


# ============================================================================
# REPL COMMANDS
# ============================================================================

REPL_HELP = """Available REPL commands:
  :show, :bindings    Show all defined functions and variables
  :functions          Show only functions
  :variables, :vars   Show only variables
  :info <name>        Show definition of a function or variable
  :help, :?           Show this help message"""


def format_functions(state: Dict) -> str:
  lines = ['Functions:']
  for name, clauses in state['functions'].items():
    lines.extend(f"  {name} {clause['params']}" for clause in clauses)
  return '\n'.join(lines)


def format_variables(state: Dict) -> str:
  lines = ['Variables:']
  lines.extend(f"  {name} = {show_value(value)}" for name, value in state['variables'].items())
  return '\n'.join(lines)


def format_clause(name: str, clause: Dict) -> str:
  if not clause['guards']:
    return f"{name} {clause['params']} = {clause['body']}"
  guard_lines = [f"  | {guard['condition']} = {guard['body']}" for guard in clause['guards']]
  return '\n'.join([f"{name} {clause['params']}"] + guard_lines)


def describe_name(state: Dict, name: str) -> Dict:
  """:info output for one name"""
  if not name:
    return make_error_result('Usage: :info <name>')
  if name in state['functions']:
    definitions = '\n\n'.join(format_clause(name, clause) for clause in state['functions'][name])
    return make_success_result(f"Function: {name}\n\nDefinitions:\n{definitions}")
  if name in state['variables']:
    return make_success_result(f"Variable: {name}\n{name} = {show_value(state['variables'][name])}")
  if is_builtin_name(name):
    builtin = BUILTIN_FUNCTIONS.get(name) or HIGHER_ORDER_FUNCTIONS[name]
    return make_success_result(f"Built-in function: {name} :: {builtin['type_signature']}")
  return make_error_result(f"'{name}' is not defined")


def handle_repl_command(state: Dict, command_line: str) -> Dict:
  """Dispatch a ':' command"""
  parts = command_line[1:].split()
  command = parts[0].lower() if parts else ''
  arg = ' '.join(parts[1:])

  if command in ('show', 'bindings'):
    if not state['functions'] and not state['variables']:
      return make_success_result('No functions or variables defined.')
    sections = []
    if state['functions']:
      sections.append(format_functions(state))
    if state['variables']:
      sections.append(format_variables(state))
    return make_success_result('\n\n'.join(sections))

  if command == 'functions':
    if not state['functions']:
      return make_success_result('No functions defined.')
    return make_success_result(format_functions(state))

  if command in ('variables', 'vars'):
    if not state['variables']:
      return make_success_result('No variables defined.')
    return make_success_result(format_variables(state))

  if command in ('info', 'i'):
    return describe_name(state, arg)

  if command in ('help', 'h', '?'):
    return make_success_result(REPL_HELP)

  return make_error_result(f"Unknown command: :{command}\nType :help for available commands")


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

class Interpreter:
  """One interpreter session holding the current state"""

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.state = make_definition_store()

  def load(self, source_text: str) -> Dict:
    result, self.state = load_program(self.state, source_text, self.debug)
    return result

  def eval_repl_line(self, line: str) -> Dict:
    result, self.state = eval_repl_line(self.state, line, self.debug)
    return result

  def evaluate(self, expression: str) -> Dict:
    """Evaluate an expression to a value, raising HaskishError on failure"""
    return evaluate(self.state, expression, self.debug)

  def names(self) -> List[str]:
    return known_names(make_context(self.state))


def create_interpreter(debug: bool = False) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(debug=debug)


def create_debug_interpreter() -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True)
