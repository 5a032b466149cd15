"""
Tokenizer tests for the Haskish expression lexer
"""

import pytest
from parsing import HaskishTokenizer, tokenize


def kinds(text):
  return [(token.type, token.value) for token in tokenize(text)]


class TestTokenTypes:
  """Each token kind is recognised"""

  def test_application_with_list(self):
    assert kinds("map double [1,2,3]") == [
        ("IDENTIFIER", "map"),
        ("IDENTIFIER", "double"),
        ("LIST", "1,2,3"),
    ]

  def test_numbers_are_floats(self):
    assert kinds("42 3.14") == [("NUMBER", 42.0), ("NUMBER", 3.14)]

  def test_operator_runs_are_single_tokens(self):
    assert kinds("x >= 10") == [("IDENTIFIER", "x"), ("OPERATOR", ">="), ("NUMBER", 10.0)]
    assert kinds("a /= b") == [("IDENTIFIER", "a"), ("OPERATOR", "/="), ("IDENTIFIER", "b")]
    assert kinds("xs ++ ys") == [("IDENTIFIER", "xs"), ("OPERATOR", "++"), ("IDENTIFIER", "ys")]

  def test_logical_and_index_operators(self):
    assert kinds("a && b || c") == [
        ("IDENTIFIER", "a"), ("OPERATOR", "&&"), ("IDENTIFIER", "b"),
        ("OPERATOR", "||"), ("IDENTIFIER", "c"),
    ]
    assert kinds("xs !! 2 ^ 3") == [
        ("IDENTIFIER", "xs"), ("OPERATOR", "!!"), ("NUMBER", 2.0),
        ("OPERATOR", "^"), ("NUMBER", 3.0),
    ]

  def test_string_literal(self):
    assert kinds('"a b" ++ "c"') == [("STRING", "a b"), ("OPERATOR", "++"), ("STRING", "c")]

  def test_identifier_with_prime(self):
    assert kinds("xs' go_1") == [("IDENTIFIER", "xs'"), ("IDENTIFIER", "go_1")]

  def test_paren_group_keeps_raw_text(self):
    assert kinds("(f (g x))") == [("PAREN", "f (g x)")]

  def test_nested_list_is_one_token(self):
    assert kinds("[[1,2],[3]]") == [("LIST", "[1,2],[3]")]

  def test_positions(self):
    tokens = tokenize("f  [1]")
    assert [token.position for token in tokens] == [0, 3]


class TestNegativeNumbers:
  """A '-' starts a number only where an operand cannot precede it"""

  def test_leading_negative(self):
    assert kinds("-5 + 3") == [("NUMBER", -5.0), ("OPERATOR", "+"), ("NUMBER", 3.0)]

  def test_subtraction_without_spaces(self):
    assert kinds("n-1") == [("IDENTIFIER", "n"), ("OPERATOR", "-"), ("NUMBER", 1.0)]

  def test_negative_after_operator(self):
    assert kinds("x*-1") == [("IDENTIFIER", "x"), ("OPERATOR", "*"), ("NUMBER", -1.0)]

  def test_minus_with_space_is_operator(self):
    assert kinds("- 1") == [("OPERATOR", "-"), ("NUMBER", 1.0)]


class TestBestEffort:
  """Lexing never raises"""

  def test_unknown_characters_are_skipped(self):
    assert kinds("x # y") == [("IDENTIFIER", "x"), ("IDENTIFIER", "y")]

  def test_unterminated_list_runs_to_end(self):
    assert kinds("[1,2") == [("LIST", "1,2")]

  def test_unterminated_string_runs_to_end(self):
    assert kinds('"abc') == [("STRING", "abc")]

  def test_brackets_inside_strings_are_ignored(self):
    assert kinds('["]", "x"]') == [("LIST", '"]", "x"')]

  def test_trailing_dot_is_not_part_of_number(self):
    assert kinds("1.") == [("NUMBER", 1.0)]

  def test_empty_input(self):
    assert tokenize("   ") == []

  def test_tokenizer_instance(self):
    tokenizer = HaskishTokenizer()
    assert [str(token) for token in tokenizer.tokenize("f 1")] == ["IDENTIFIER(f)", "NUMBER(1.0)"]
