"""
Haskish Language Parser
Tokenizer, expression parser and the pyparsing grammars for patterns and
definition lines
"""

from typing import List, Dict, Any, Optional
from dataclasses import dataclass
from functools import lru_cache, reduce
import re

from pyparsing import (
    Forward, Keyword, Literal, OneOrMore, ParseException, ParserElement,
    QuotedString, Regex, SkipTo, StringEnd, Suppress, ZeroOrMore
)

from error_handling import HaskishParseError
from stdlib import make_value, show_value

# Enable packrat parsing for performance
ParserElement.enable_packrat()


@dataclass(frozen=True)
class Token:
    """Haskish token with its offset in the source text"""
    type: str
    value: Any
    position: int

    def __str__(self) -> str:
        return f"{self.type}({self.value})"


# ============================================================================
# TOKENIZER
# ============================================================================

class HaskishTokenizer:
    """Best-effort tokenizer for Haskish expressions; never raises"""

    OPERAND_TYPES = frozenset(["NUMBER", "IDENTIFIER", "STRING", "LIST", "PAREN"])

    def __init__(self):
        self._setup_token_patterns()

    def _setup_token_patterns(self):
        """Setup all token patterns for Haskish"""

        # Numbers (digits with at most one decimal point)
        self.number_pattern = re.compile(r'-?\d+(?:\.\d+)?')

        # Identifiers (primes allowed after the first character)
        self.identifier_pattern = re.compile(r"[a-zA-Z_][a-zA-Z0-9_']*")

        self.digits = frozenset("0123456789")

        # A run of these characters forms one operator token
        self.operator_chars = frozenset("+-*/:<>=!&|^")

        # Groups captured whole, by opening character
        self.groups = {'[': (']', "LIST"), '(': (')', "PAREN")}

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize an expression using a priority-based approach"""
        tokens = []
        pos = 0

        while pos < len(text):
            # Skip whitespace
            if text[pos].isspace():
                pos += 1
                continue

            previous = tokens[-1] if tokens else None
            token, pos = self._match_token_at_position(text, pos, previous)
            if token:
                tokens.append(token)

        return tokens

    def _match_token_at_position(self, text: str, pos: int, previous: Optional[Token]):
        """Match a token at a specific position, returning (token, next_pos)"""
        char = text[pos]

        # Priority 1: String literals
        if char == '"':
            end = text.find('"', pos + 1)
            end = len(text) if end == -1 else end
            return Token("STRING", text[pos + 1:end], pos), end + 1

        # Priority 2: Bracketed groups, kept as raw inner text
        if char in self.groups:
            close, token_type = self.groups[char]
            inner, end = self._scan_group(text, pos, char, close)
            return Token(token_type, inner, pos), end

        # Priority 3: Numbers (a '-' only counts as a sign after a non-operand)
        if char in self.digits or (char == '-' and self._starts_negative_number(text, pos, previous)):
            num_match = self.number_pattern.match(text, pos)
            return Token("NUMBER", float(num_match.group(0)), pos), num_match.end()

        # Priority 4: Operator runs
        if char in self.operator_chars:
            end = pos + 1
            while end < len(text) and text[end] in self.operator_chars:
                if text[end] == '-' and end + 1 < len(text) and text[end + 1] in self.digits:
                    break
                end += 1
            return Token("OPERATOR", text[pos:end], pos), end

        # Priority 5: Identifiers
        id_match = self.identifier_pattern.match(text, pos)
        if id_match:
            return Token("IDENTIFIER", id_match.group(0), pos), id_match.end()

        # Unknown character
        return None, pos + 1

    def _starts_negative_number(self, text: str, pos: int, previous: Optional[Token]) -> bool:
        if pos + 1 >= len(text) or text[pos + 1] not in self.digits:
            return False
        return previous is None or previous.type not in self.OPERAND_TYPES

    def _scan_group(self, text: str, pos: int, open_char: str, close_char: str):
        """Capture a bracketed group by depth counting; unterminated groups run to the end"""
        depth = 0
        i = pos
        while i < len(text):
            char = text[i]
            if char == '"':
                closing = text.find('"', i + 1)
                i = len(text) if closing == -1 else closing + 1
                continue
            if char == open_char:
                depth += 1
            elif char == close_char:
                depth -= 1
                if depth == 0:
                    return text[pos + 1:i], i + 1
            i += 1
        return text[pos + 1:], len(text)


_TOKENIZER = HaskishTokenizer()


def tokenize(text: str) -> List[Token]:
    """Tokenize Haskish expression text"""
    return _TOKENIZER.tokenize(text)


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Split text on a separator that is not nested in brackets or quotes

    A separator of ' ' splits on any whitespace and drops empty parts.
    """
    parts = []
    current = []
    depth = 0
    in_string = False

    for char in text:
        if in_string:
            current.append(char)
            if char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in '([':
            depth += 1
        elif char in ')]':
            depth -= 1
        elif depth == 0 and (char.isspace() if separator == ' ' else char == separator):
            parts.append(''.join(current).strip())
            current = []
            continue
        current.append(char)

    parts.append(''.join(current).strip())
    if separator == ' ':
        return [part for part in parts if part]
    return parts


def split_patterns(params: str) -> List[str]:
    """Split a clause's parameter text into one pattern string per parameter"""
    return split_top_level(params, ' ')


def find_top_level(text: str, needle: str) -> int:
    """Index of the first un-nested occurrence of needle, or -1"""
    depth = 0
    in_string = False
    for i, char in enumerate(text):
        if in_string:
            in_string = char != '"'
            continue
        if char == '"':
            in_string = True
        elif char in '([':
            depth += 1
        elif char in ')]':
            depth -= 1
        elif depth == 0 and text.startswith(needle, i):
            return i
    return -1


# ============================================================================
# EXPRESSION PARSER
# ============================================================================

# The first operator found splits the expression, so '||' binds loosest and '!!' tightest
OPERATOR_PRIORITY = ('||', '&&', '+', '-', '*', '/', '<', '>', '<=', '>=', '==', '/=', '++', ':',
                     '^', '!!')
RIGHT_ASSOCIATIVE = frozenset([':', '^'])
BOOLEAN_LITERALS = {'True': True, 'False': False, 'otherwise': True}


def make_node(node_type: str, value: Any) -> Dict:
    """Create an immutable expression tree node"""
    return {'type': node_type, 'value': value}


def _cannot_evaluate(text: str) -> HaskishParseError:
    return HaskishParseError(f'Cannot evaluate expression: "{text.strip()}"', text)


@lru_cache(maxsize=4096)
def parse_expression(text: str) -> Dict:
    """Parse expression text into an expression tree"""
    tokens = tokenize(text)
    if not tokens:
        raise _cannot_evaluate(text)
    return parse_tokens(tokens, text)


def parse_tokens(tokens: List[Token], text: str) -> Dict:
    """Parse a token list; text is only used for error messages"""
    if tokens[0].type == "IDENTIFIER" and tokens[0].value == "if":
        return _parse_if(tokens, text)

    split = _parse_operators(tokens, text)
    if split is not None:
        return split

    if len(tokens) == 1:
        return parse_atom(tokens[0], text)

    head = tokens[0]
    if head.type in ("IDENTIFIER", "PAREN"):
        return make_node("APPLICATION", {
            'func': parse_atom(head, text),
            'args': [parse_atom(token, text) for token in tokens[1:]]
        })

    raise _cannot_evaluate(text)


def _parse_if(tokens: List[Token], text: str) -> Dict:
    """Parse if/then/else, matching nested ifs by depth"""
    depth = 0
    then_index = else_index = None

    for i, token in enumerate(tokens[1:], 1):
        if token.type != "IDENTIFIER":
            continue
        if token.value == "if":
            depth += 1
        elif token.value == "then" and depth == 0 and then_index is None:
            then_index = i
        elif token.value == "else":
            if depth > 0:
                depth -= 1
            elif then_index is not None:
                else_index = i
                break

    if then_index is None or else_index is None:
        raise HaskishParseError("if/then expression requires an 'else' clause", text)

    condition, then_branch, else_branch = tokens[1:then_index], tokens[then_index + 1:else_index], tokens[else_index + 1:]
    if not condition or not then_branch or not else_branch:
        raise _cannot_evaluate(text)

    return make_node("IF", {
        'condition': parse_tokens(condition, text),
        'then': parse_tokens(then_branch, text),
        'else': parse_tokens(else_branch, text)
    })


def _parse_operators(tokens: List[Token], text: str) -> Optional[Dict]:
    """Split on the first operator of the priority list present in the tokens"""
    for op in OPERATOR_PRIORITY:
        positions = [i for i, token in enumerate(tokens) if token.type == "OPERATOR" and token.value == op]
        if not positions:
            continue

        parts = []
        start = 0
        for position in positions:
            parts.append(tokens[start:position])
            start = position + 1
        parts.append(tokens[start:])
        return _fold_operands(op, parts, text)

    unknown = next((token for token in tokens if token.type == "OPERATOR"), None)
    if unknown is not None:
        raise HaskishParseError(f"Unknown operator '{unknown.value}' in expression: \"{text.strip()}\"", text)
    return None


def _fold_operands(op: str, parts: List[List[Token]], text: str) -> Dict:
    operands = []
    for i, part in enumerate(parts):
        if part:
            operands.append(parse_tokens(part, text))
        elif i == 0 and op == '-':
            # Leading minus negates
            operands.append(make_node("LITERAL", make_value(0.0, "Num")))
        else:
            raise HaskishParseError(f"Missing operand for '{op}' in expression: \"{text.strip()}\"", text)

    def combine(left, right):
        return make_node("BINARY_OP", {'op': op, 'left': left, 'right': right})

    if op in RIGHT_ASSOCIATIVE:
        return reduce(lambda acc, operand: combine(operand, acc), reversed(operands[:-1]), operands[-1])
    return reduce(combine, operands[1:], operands[0])


def parse_atom(token: Token, text: str) -> Dict:
    """Parse a single token into an expression node"""
    if token.type == "NUMBER":
        return make_node("LITERAL", make_value(token.value, "Num"))
    if token.type == "STRING":
        return make_node("LITERAL", make_value(token.value, "String"))
    if token.type == "IDENTIFIER":
        if token.value in BOOLEAN_LITERALS:
            return make_node("LITERAL", make_value(BOOLEAN_LITERALS[token.value], "Bool"))
        return make_node("IDENTIFIER", token.value)
    if token.type == "LIST":
        return _parse_list_literal(token.value)
    if token.type == "PAREN":
        return _parse_paren(token.value)
    raise _cannot_evaluate(text)


def _parse_paren(inner: str) -> Dict:
    """Parenthesised expression or operator section"""
    tokens = tokenize(inner)
    if not tokens:
        raise HaskishParseError("Empty parentheses", inner)

    first, last = tokens[0], tokens[-1]
    if first.type == "OPERATOR" and first.value in OPERATOR_PRIORITY:
        if len(tokens) == 1:
            return make_node("SECTION", {'op': first.value, 'left': None, 'right': None})
        # (- e) is negation, not a section
        if first.value != '-':
            return make_node("SECTION", {'op': first.value, 'left': None, 'right': parse_tokens(tokens[1:], inner)})

    if last.type == "OPERATOR" and last.value in OPERATOR_PRIORITY:
        return make_node("SECTION", {'op': last.value, 'left': parse_tokens(tokens[:-1], inner), 'right': None})

    return parse_tokens(tokens, inner)


def _parse_list_literal(inner: str) -> Dict:
    """List literal or finite range"""
    if not inner.strip():
        return make_node("LIST", [])

    range_index = find_top_level(inner, '..')
    if range_index != -1:
        return _parse_range(inner, range_index)

    items = split_top_level(inner, ',')
    if not all(items):
        raise HaskishParseError(f"Empty element in list literal: [{inner}]", inner)
    return make_node("LIST", [parse_expression(item) for item in items])


def _parse_range(inner: str, range_index: int) -> Dict:
    bounds = split_top_level(inner[:range_index], ',')
    end_text = inner[range_index + 2:].strip()

    if not end_text:
        raise HaskishParseError(f"Infinite ranges are not supported: [{inner}]", inner)
    if len(bounds) not in (1, 2) or not all(bounds):
        raise HaskishParseError(f"Malformed range: [{inner}]", inner)

    return make_node("RANGE", {
        'start': parse_expression(bounds[0]),
        'next': parse_expression(bounds[1]) if len(bounds) == 2 else None,
        'end': parse_expression(end_text)
    })


# ============================================================================
# PATTERN AND DEFINITION-LINE GRAMMAR
# ============================================================================

# Parameters may only contain pattern characters, never operators
PARAMS_PATTERN = re.compile(r"""^[\w\s()\[\]:,'".\-]+$""")
STRING_LITERAL_PATTERN = re.compile(r'"[^"]*"')


def valid_params(params: str) -> bool:
    """Parameters may hold any text inside string literals"""
    return bool(PARAMS_PATTERN.match(STRING_LITERAL_PATTERN.sub('""', params)))


class HaskishGrammar:
    """Haskish grammar definition using pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the pattern grammar and the line grammars used by the loader"""

        # Forward declaration for nested patterns
        pattern = Forward()

        identifier = Regex(r"[a-zA-Z_][a-zA-Z0-9_']*")

        # Literals
        number = Regex(r"-?\d+(?:\.\d+)?").set_parse_action(
            lambda t: ("PATTERN_LITERAL", make_value(float(t[0]), "Num")))
        string_literal = QuotedString('"').set_parse_action(
            lambda t: ("PATTERN_LITERAL", make_value(t[0], "String")))
        boolean = (Keyword("True") | Keyword("False")).set_parse_action(
            lambda t: ("PATTERN_LITERAL", make_value(t[0] == "True", "Bool")))

        # List patterns
        empty_list = (Literal("[") + Literal("]")).set_parse_action(
            lambda t: ("PATTERN_EMPTY_LIST", None))
        cons = (Suppress("(") + pattern + OneOrMore(Suppress(":") + pattern) + Suppress(")")).set_parse_action(
            self._make_cons)
        list_destructure = (Suppress("[") + pattern + ZeroOrMore(Suppress(",") + pattern) + Suppress("]")).set_parse_action(
            lambda t: ("PATTERN_LIST", list(t)))

        variable = identifier.copy().set_parse_action(lambda t: ("PATTERN_VAR", t[0]))
        parenthesized = Suppress("(") + pattern + Suppress(")")

        pattern <<= (empty_list | cons | list_destructure | boolean | variable |
                     number | string_literal | parenthesized)

        self.pattern = pattern + StringEnd()

        # A bare '=' is one that is not part of ==, <=, >=, /=, += and the like
        bare_equals = Regex(r"(?<![=<>/!+\-*:])=(?!=)")
        body = Regex(r"\S.*")

        # name params = body  (empty params means a plain binding)
        self.definition_line = (identifier("name") + SkipTo(bare_equals)("params") +
                                Suppress(bare_equals) + body("body") + StringEnd())

        # | condition = body
        self.guard_line = (Suppress("|") + SkipTo(bare_equals)("condition") +
                           Suppress(bare_equals) + body("body") + StringEnd())

        # name params  (header of a guarded clause, no '=' at all)
        self.header_line = identifier("name") + Regex(r"[^=]+")("params") + StringEnd()

    @staticmethod
    def _make_cons(tokens):
        items = list(tokens)
        return reduce(lambda tail, head: ("PATTERN_CONS", {'head': head, 'tail': tail}),
                      reversed(items[:-1]), items[-1])

    def parse_pattern(self, text: str) -> Dict:
        """Parse one parameter pattern; text that is not a pattern is kept as an expression"""
        try:
            result = self.pattern.parse_string(text, parse_all=True)
        except ParseException:
            if self.debug:
                print(f"Pattern {text!r} is matched by value")
            return make_node("PATTERN_EXPR", text.strip())
        return self._convert_pattern(result[0])

    def _convert_pattern(self, item: Any) -> Dict:
        """Convert pyparsing tuples to pattern nodes"""
        node_type, value = item
        if node_type == "PATTERN_CONS":
            return make_node(node_type, {
                'head': self._convert_pattern(value['head']),
                'tail': self._convert_pattern(value['tail'])
            })
        if node_type == "PATTERN_LIST":
            return make_node(node_type, [self._convert_pattern(v) for v in value])
        return make_node(node_type, value)

    def classify_line(self, line: str) -> Optional[Dict]:
        """Classify a definition line as clause, binding, guard or header; None if malformed"""
        if line.startswith('|'):
            try:
                result = self.guard_line.parse_string(line, parse_all=True)
            except ParseException:
                return None
            condition = result.get('condition', '').strip()
            if not condition:
                return None
            return {'kind': 'guard', 'condition': condition, 'body': result['body'].strip()}

        try:
            result = self.definition_line.parse_string(line, parse_all=True)
        except ParseException:
            result = None

        if result is not None:
            name = result['name']
            params = result.get('params', '').strip()
            if not params:
                return {'kind': 'binding', 'name': name, 'expression': result['body'].strip()}
            if not valid_params(params):
                return None
            return {'kind': 'clause', 'name': name, 'params': params, 'body': result['body'].strip()}

        try:
            result = self.header_line.parse_string(line, parse_all=True)
        except ParseException:
            return None
        params = result.get('params', '').strip()
        if not valid_params(params):
            return None
        return {'kind': 'header', 'name': result['name'], 'params': params}


_GRAMMAR = HaskishGrammar()


@lru_cache(maxsize=4096)
def parse_pattern(text: str) -> Dict:
    """Parse one parameter pattern (cached)"""
    return _GRAMMAR.parse_pattern(text)


def classify_line(line: str) -> Optional[Dict]:
    """Classify one trimmed source line"""
    return _GRAMMAR.classify_line(line)


# ============================================================================
# DEBUGGING HELPERS
# ============================================================================

def pretty_print_ast(node: Optional[Dict], indent: int = 0) -> str:
    """Pretty print an expression tree for debugging"""
    pad = "  " * indent
    if node is None:
        return ""

    node_type, value = node['type'], node['value']
    if node_type == "LITERAL":
        return f"{pad}LITERAL({show_value(value, quote_strings=True)})\n"
    if node_type == "IDENTIFIER":
        return f"{pad}IDENTIFIER({value})\n"
    if node_type == "LIST":
        return f"{pad}LIST\n" + "".join(pretty_print_ast(item, indent + 1) for item in value)
    if node_type == "RANGE":
        return (f"{pad}RANGE\n" + pretty_print_ast(value['start'], indent + 1) +
                pretty_print_ast(value['next'], indent + 1) + pretty_print_ast(value['end'], indent + 1))
    if node_type in ("BINARY_OP", "SECTION"):
        return (f"{pad}{node_type}({value['op']})\n" + pretty_print_ast(value['left'], indent + 1) +
                pretty_print_ast(value['right'], indent + 1))
    if node_type == "APPLICATION":
        return (f"{pad}APPLICATION\n" + pretty_print_ast(value['func'], indent + 1) +
                "".join(pretty_print_ast(arg, indent + 1) for arg in value['args']))
    if node_type == "IF":
        return (f"{pad}IF\n" + pretty_print_ast(value['condition'], indent + 1) +
                pretty_print_ast(value['then'], indent + 1) + pretty_print_ast(value['else'], indent + 1))
    return f"{pad}{node_type}({value!r})\n"
