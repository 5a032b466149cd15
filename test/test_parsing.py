"""
Parser tests: expression trees, patterns and definition lines
"""

import pytest
from parsing import (
  parse_expression,
  parse_pattern,
  classify_line,
  split_top_level,
  split_patterns,
  pretty_print_ast,
  HaskishGrammar
)
from error_handling import HaskishParseError


def literal_value(node):
  assert node['type'] == 'LITERAL'
  return node['value']['value']


class TestOperatorPriority:
  """The first operator of the priority list splits the expression"""

  def test_plus_binds_loosest(self):
    node = parse_expression("1 + 2 * 3")
    assert node['type'] == 'BINARY_OP'
    assert node['value']['op'] == '+'
    assert node['value']['right']['value']['op'] == '*'

  def test_comparison_binds_tighter_than_plus(self):
    node = parse_expression("x + 1 < 5")
    assert node['value']['op'] == '+'
    assert node['value']['left'] == {'type': 'IDENTIFIER', 'value': 'x'}
    assert node['value']['right']['value']['op'] == '<'

  def test_same_operator_folds_left(self):
    node = parse_expression("10 - 2 - 3")
    assert node['value']['op'] == '-'
    assert literal_value(node['value']['right']) == 3.0
    inner = node['value']['left']
    assert inner['value']['op'] == '-'
    assert literal_value(inner['value']['left']) == 10.0

  def test_cons_folds_right(self):
    node = parse_expression("1:2:[]")
    assert node['value']['op'] == ':'
    assert literal_value(node['value']['left']) == 1.0
    assert node['value']['right']['value']['op'] == ':'

  def test_logical_operators_bind_loosest(self):
    node = parse_expression("n > 0 && n < 10 || done")
    assert node['value']['op'] == '||'
    assert node['value']['left']['value']['op'] == '&&'

  def test_power_folds_right_and_indexing_binds_tightest(self):
    node = parse_expression("2 ^ 3 ^ 2")
    assert node['value']['op'] == '^'
    assert literal_value(node['value']['left']) == 2.0
    assert node['value']['right']['value']['op'] == '^'
    assert parse_expression("xs !! 1 + 1")['value']['op'] == '+'

  def test_leading_minus_negates(self):
    node = parse_expression("- x")
    assert node['value']['op'] == '-'
    assert literal_value(node['value']['left']) == 0.0

  def test_unknown_operator(self):
    with pytest.raises(HaskishParseError, match="Unknown operator '='"):
      parse_expression("x = 5")

  def test_missing_operand(self):
    with pytest.raises(HaskishParseError, match="Missing operand"):
      parse_expression("1 *")


class TestAtomsAndApplication:
  """Literals, lists, sections and application"""

  def test_application(self):
    node = parse_expression("f x [1, 2]")
    assert node['type'] == 'APPLICATION'
    assert node['value']['func'] == {'type': 'IDENTIFIER', 'value': 'f'}
    assert [arg['type'] for arg in node['value']['args']] == ['IDENTIFIER', 'LIST']

  def test_parenthesised_function_head(self):
    node = parse_expression("(+) 1 2")
    assert node['type'] == 'APPLICATION'
    assert node['value']['func']['type'] == 'SECTION'

  def test_boolean_literals(self):
    assert parse_expression("True")['value'] == {'value': True, 'type': 'Bool'}
    assert parse_expression("otherwise")['value'] == {'value': True, 'type': 'Bool'}

  def test_string_literal(self):
    assert parse_expression('"hello world"')['value'] == {'value': 'hello world', 'type': 'String'}

  def test_empty_list(self):
    assert parse_expression("[]") == {'type': 'LIST', 'value': []}

  def test_nested_list(self):
    node = parse_expression("[[1, 2], [3]]")
    assert [len(item['value']) for item in node['value']] == [2, 1]

  def test_right_section(self):
    node = parse_expression("(<10)")
    assert node['type'] == 'SECTION'
    assert node['value']['op'] == '<'
    assert node['value']['left'] is None
    assert literal_value(node['value']['right']) == 10.0

  def test_left_section(self):
    node = parse_expression("(10+)")
    assert node['value']['op'] == '+'
    assert literal_value(node['value']['left']) == 10.0
    assert node['value']['right'] is None

  def test_bare_operator(self):
    assert parse_expression("(*)") == {'type': 'SECTION', 'value': {'op': '*', 'left': None, 'right': None}}

  def test_parenthesised_minus_is_negation(self):
    node = parse_expression("(- 5)")
    assert node['type'] == 'BINARY_OP'

  def test_two_literals_cannot_be_evaluated(self):
    with pytest.raises(HaskishParseError, match="Cannot evaluate expression"):
      parse_expression("3 4")

  def test_empty_expression(self):
    with pytest.raises(HaskishParseError):
      parse_expression("   ")


class TestRangesAndConditionals:
  """Range literals and if/then/else"""

  def test_simple_range(self):
    node = parse_expression("[1..5]")
    assert node['type'] == 'RANGE'
    assert node['value']['next'] is None

  def test_stepped_range(self):
    node = parse_expression("[1,3..9]")
    assert literal_value(node['value']['next']) == 3.0

  def test_infinite_range_rejected(self):
    with pytest.raises(HaskishParseError, match="Infinite ranges"):
      parse_expression("[1..]")

  def test_if_then_else(self):
    node = parse_expression("if x > 0 then x else 0 - x")
    assert node['type'] == 'IF'
    assert node['value']['condition']['value']['op'] == '>'

  def test_nested_if(self):
    node = parse_expression("if a then if b then 1 else 2 else 3")
    assert node['value']['then']['type'] == 'IF'
    assert literal_value(node['value']['else']) == 3.0

  def test_if_requires_else(self):
    with pytest.raises(HaskishParseError, match="requires an 'else'"):
      parse_expression("if x then 1")


class TestPatterns:
  """Pattern grammar"""

  def test_empty_list_pattern(self):
    assert parse_pattern("[]") == {'type': 'PATTERN_EMPTY_LIST', 'value': None}

  def test_cons_pattern(self):
    node = parse_pattern("(x:xs)")
    assert node['type'] == 'PATTERN_CONS'
    assert node['value']['head'] == {'type': 'PATTERN_VAR', 'value': 'x'}
    assert node['value']['tail'] == {'type': 'PATTERN_VAR', 'value': 'xs'}

  def test_chained_cons_pattern(self):
    node = parse_pattern("(x : y : rest)")
    assert node['value']['head']['value'] == 'x'
    tail = node['value']['tail']
    assert tail['type'] == 'PATTERN_CONS'
    assert tail['value']['tail'] == {'type': 'PATTERN_VAR', 'value': 'rest'}

  def test_list_destructure(self):
    node = parse_pattern("[a, b]")
    assert node['type'] == 'PATTERN_LIST'
    assert [item['value'] for item in node['value']] == ['a', 'b']

  def test_variable(self):
    assert parse_pattern("n") == {'type': 'PATTERN_VAR', 'value': 'n'}

  def test_literals(self):
    assert parse_pattern("0")['value'] == {'value': 0.0, 'type': 'Num'}
    assert parse_pattern("-1")['value'] == {'value': -1.0, 'type': 'Num'}
    assert parse_pattern('"cat"')['value'] == {'value': 'cat', 'type': 'String'}
    assert parse_pattern("True")['value'] == {'value': True, 'type': 'Bool'}

  def test_anything_else_is_an_expression(self):
    assert parse_pattern("(1+1)") == {'type': 'PATTERN_EXPR', 'value': '(1+1)'}


class TestDefinitionLines:
  """Classification of program lines"""

  def test_clause(self):
    assert classify_line("factorial 0 = 1") == {
        'kind': 'clause', 'name': 'factorial', 'params': '0', 'body': '1'}

  def test_binding(self):
    assert classify_line("x = 5") == {'kind': 'binding', 'name': 'x', 'expression': '5'}

  def test_equality_in_body_is_not_the_definition_sign(self):
    entry = classify_line("isEven x = mod x 2 == 0")
    assert entry['params'] == 'x'
    assert entry['body'] == 'mod x 2 == 0'

  def test_guard(self):
    assert classify_line("| n <= 0 = 1") == {'kind': 'guard', 'condition': 'n <= 0', 'body': '1'}

  def test_header(self):
    assert classify_line("classify n") == {'kind': 'header', 'name': 'classify', 'params': 'n'}

  def test_operator_in_params_is_malformed(self):
    assert classify_line("f x+y = 1") is None

  def test_string_patterns_may_hold_punctuation(self):
    entry = classify_line('greet "hi!" = 1')
    assert entry['kind'] == 'clause'
    assert entry['params'] == '"hi!"'
    assert classify_line('ask "why?" n')['kind'] == 'header'

  def test_comparisons_are_not_definitions(self):
    assert classify_line("x == 5") is None
    assert classify_line("y <= 3") is None

  def test_grammar_instance(self):
    grammar = HaskishGrammar()
    assert grammar.classify_line("f (x:xs) = x")['params'] == '(x:xs)'


class TestSplitting:
  """Depth-aware splitting helpers"""

  def test_split_commas(self):
    assert split_top_level("1, [2,3], (4,5)") == ['1', '[2,3]', '(4,5)']

  def test_split_keeps_commas_in_strings(self):
    assert split_top_level('"a,b", c') == ['"a,b"', 'c']

  def test_split_patterns(self):
    assert split_patterns("(x : xs) [a, b]  n") == ['(x : xs)', '[a, b]', 'n']


class TestPrettyPrint:

  def test_pretty_print(self):
    text = pretty_print_ast(parse_expression("f 1"))
    assert text == "APPLICATION\n  IDENTIFIER(f)\n  LITERAL(1)\n"
