"""
Haskish Standard Library
Values, rendering, operators and the first-order built-in functions
Pure functional style using immutable dictionaries
"""

from typing import Dict, Callable, Any, List, Optional
import math
import operator
from utilities import (
  binary_comparison_op,
  binary_arithmetic_op,
  validate_function_args,
  type_mismatch_error,
  operation_error,
  require_nonzero
)
from error_handling import EmptyListError, HaskishRuntimeError, TypeMismatch


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def make_value(value: Any, type_name: str = "Unknown") -> Dict:
  """Create an immutable runtime value"""
  return {
      'value': value,
      'type': type_name
  }


def make_function_value(name: str) -> Dict:
  """Reference to a named (user or built-in) function"""
  return make_value({'kind': 'named', 'name': name}, "Function")


def make_operator_value(op: str, left: Optional[Dict] = None, right: Optional[Dict] = None) -> Dict:
  """Bare operator such as (*) or an operator section such as (<10)"""
  if left is None and right is None:
    return make_value({'kind': 'operator', 'op': op}, "Function")
  return make_value({'kind': 'section', 'op': op, 'left': left, 'right': right}, "Function")


def values_equal(x: Dict, y: Dict) -> bool:
  """Structural equality; values of different types are never equal"""
  if x['type'] != y['type']:
    return False
  if x['type'] == "List":
    if len(x['value']) != len(y['value']):
      return False
    return all(values_equal(a, b) for a, b in zip(x['value'], y['value']))
  return x['value'] == y['value']


def is_truthy(value: Dict) -> bool:
  """Truthiness used by filter and if"""
  if value['type'] == "Bool":
    return value['value']
  if value['type'] == "Num":
    return value['value'] != 0 and not math.isnan(value['value'])
  if value['type'] in ("String", "List"):
    return len(value['value']) > 0
  return True


# ============================================================================
# RENDERING
# ============================================================================

def format_number(n: float) -> str:
  """Integral numbers print without a fractional part"""
  if math.isnan(n):
    return "NaN"
  if math.isinf(n):
    return "Infinity" if n > 0 else "-Infinity"
  if float(n).is_integer():
    return str(int(n))
  return repr(float(n))


def show_value(value: Dict, quote_strings: bool = False) -> str:
  """Render a value the way the REPL prints it"""
  if value['type'] == "Num":
    return format_number(value['value'])
  elif value['type'] == "Bool":
    return "True" if value['value'] else "False"
  elif value['type'] == "String":
    return f'"{value["value"]}"' if quote_strings else value['value']
  elif value['type'] == "List":
    elements = [show_value(elem, quote_strings) for elem in value['value']]
    return f"[{', '.join(elements)}]"
  elif value['type'] == "Function":
    payload = value['value']
    if payload['kind'] == 'named':
      return f"<function {payload['name']}>"
    if payload['kind'] == 'operator':
      return f"<operator {payload['op']}>"
    if payload['left'] is not None:
      return f"<operator {show_value(payload['left'], quote_strings)}{payload['op']}>"
    return f"<operator {payload['op']}{show_value(payload['right'], quote_strings)}>"
  else:
    return f"<{value['type']}>"


def haskish_show(value: Dict) -> Dict:
  """Convert value to string representation"""
  return make_value(show_value(value), "String")


# ============================================================================
# LIST FUNCTIONS
# ============================================================================

# Strings behave as lists of one-character strings

def require_sequence(func_name: str, lst: Dict) -> None:
  if lst['type'] not in ("List", "String"):
    raise type_mismatch_error(func_name, "its argument", "List", lst)


def _element(seq: Dict, index: int) -> Dict:
  if seq['type'] == "String":
    return make_value(seq['value'][index], "String")
  return seq['value'][index]


def sequence_items(seq: Dict) -> List[Dict]:
  """Elements of a list, or the characters of a string"""
  if seq['type'] == "String":
    return [make_value(char, "String") for char in seq['value']]
  return seq['value']


def haskish_head(lst: Dict) -> Dict:
  """Get first element of a list"""
  require_sequence("head", lst)
  if not lst['value']:
    raise EmptyListError("head")
  return _element(lst, 0)


def haskish_tail(lst: Dict) -> Dict:
  """Get tail (all but first element) of a list"""
  require_sequence("tail", lst)
  if not lst['value']:
    raise EmptyListError("tail")
  return make_value(lst['value'][1:], lst['type'])


def haskish_length(lst: Dict) -> Dict:
  """Get length of a list or string"""
  require_sequence("length", lst)
  return make_value(float(len(lst['value'])), "Num")


def haskish_null(lst: Dict) -> Dict:
  require_sequence("null", lst)
  return make_value(len(lst['value']) == 0, "Bool")


def haskish_reverse(lst: Dict) -> Dict:
  """Reverse a list"""
  require_sequence("reverse", lst)
  return make_value(lst['value'][::-1], lst['type'])


def haskish_take(n: Dict, lst: Dict) -> Dict:
  """Take first n elements from list"""
  validate_function_args("take", [n, lst], ["Num", "Any"])
  require_sequence("take", lst)
  return make_value(lst['value'][:max(0, int(n['value']))], lst['type'])


def haskish_drop(n: Dict, lst: Dict) -> Dict:
  """Drop first n elements from list"""
  validate_function_args("drop", [n, lst], ["Num", "Any"])
  require_sequence("drop", lst)
  return make_value(lst['value'][max(0, int(n['value'])):], lst['type'])


def haskish_elem(val: Dict, lst: Dict) -> Dict:
  """Check if element is in list"""
  require_sequence("elem", lst)
  return make_value(any(values_equal(item, val) for item in sequence_items(lst)), "Bool")


def haskish_index(lst: Dict, n: Dict) -> Dict:
  """Element at a zero-based position (!! operator)"""
  require_sequence("(!!)", lst)
  validate_function_args("(!!)", [n], ["Num"])
  index = math.floor(n['value'])
  if index < 0 or index >= len(lst['value']):
    raise HaskishRuntimeError(
      f"(!!) index {format_number(n['value'])} out of range for list of length {len(lst['value'])}")
  return _element(lst, index)


# Note: map, filter, fold are handled in interpreter.py
# because they need function application


# ============================================================================
# COMPARISON OPERATORS
# ============================================================================

def haskish_eq(x: Dict, y: Dict) -> Dict:
  """Equality comparison"""
  return make_value(values_equal(x, y), "Bool")


def haskish_ne(x: Dict, y: Dict) -> Dict:
  """Not equal comparison"""
  return make_value(not values_equal(x, y), "Bool")


_haskish_lt_impl = binary_comparison_op(operator.lt, "compare")
_haskish_gt_impl = binary_comparison_op(operator.gt, "compare")
_haskish_le_impl = binary_comparison_op(operator.le, "compare")
_haskish_ge_impl = binary_comparison_op(operator.ge, "compare")


def haskish_lt(x: Dict, y: Dict) -> Dict:
  return _haskish_lt_impl(x, y, make_value)


def haskish_gt(x: Dict, y: Dict) -> Dict:
  return _haskish_gt_impl(x, y, make_value)


def haskish_le(x: Dict, y: Dict) -> Dict:
  return _haskish_le_impl(x, y, make_value)


def haskish_ge(x: Dict, y: Dict) -> Dict:
  return _haskish_ge_impl(x, y, make_value)


# ============================================================================
# ARITHMETIC OPERATORS
# ============================================================================

_haskish_add_impl = binary_arithmetic_op(operator.add, "add")
_haskish_sub_impl = binary_arithmetic_op(operator.sub, "subtract")
_haskish_mul_impl = binary_arithmetic_op(operator.mul, "multiply")
_haskish_div_impl = binary_arithmetic_op(operator.truediv, "divide")


def haskish_add(x: Dict, y: Dict) -> Dict:
  return _haskish_add_impl(x, y, make_value)


def haskish_sub(x: Dict, y: Dict) -> Dict:
  return _haskish_sub_impl(x, y, make_value)


def haskish_mul(x: Dict, y: Dict) -> Dict:
  return _haskish_mul_impl(x, y, make_value)


def haskish_divide(x: Dict, y: Dict) -> Dict:
  """Division (always fractional)"""
  if x['type'] == "Num" and y['type'] == "Num":
    require_nonzero("Division", y)
  return _haskish_div_impl(x, y, make_value)


def haskish_power(x: Dict, y: Dict) -> Dict:
  """Exponentiation (^ operator)"""
  if x['type'] != "Num" or y['type'] != "Num":
    raise operation_error("exponentiate", x['type'], y['type'])
  if x['value'] == 0 and y['value'] < 0:
    raise HaskishRuntimeError("Division by zero")
  try:
    return make_value(math.pow(x['value'], y['value']), "Num")
  except OverflowError:
    negative = x['value'] < 0 and y['value'] % 2 == 1
    return make_value(-math.inf if negative else math.inf, "Num")
  except ValueError:
    # Negative base with a fractional exponent
    return make_value(math.nan, "Num")


# ============================================================================
# LOGICAL OPERATORS
# ============================================================================

def _require_bool(op_name: str, value: Dict) -> None:
  if value['type'] != "Bool":
    raise type_mismatch_error(op_name, "its operands", "Bool", value)


def haskish_and(x: Dict, y: Dict) -> Dict:
  _require_bool("(&&)", x)
  _require_bool("(&&)", y)
  return make_value(x['value'] and y['value'], "Bool")


def haskish_or(x: Dict, y: Dict) -> Dict:
  _require_bool("(||)", x)
  _require_bool("(||)", y)
  return make_value(x['value'] or y['value'], "Bool")


# ============================================================================
# LIST OPERATORS
# ============================================================================

def haskish_cons(elem: Dict, lst: Dict) -> Dict:
  """Prepend element to list (: operator); a non-list tail is wrapped"""
  if lst['type'] == "List":
    return make_value([elem] + lst['value'], "List")
  return make_value([elem, lst], "List")


def haskish_append(lst1: Dict, lst2: Dict) -> Dict:
  """Append two lists or concatenate two strings (++ operator)"""
  if lst1['type'] == "List" and lst2['type'] == "List":
    return make_value(lst1['value'] + lst2['value'], "List")
  elif lst1['type'] == "String" and lst2['type'] == "String":
    return make_value(lst1['value'] + lst2['value'], "String")
  else:
    raise operation_error("append", lst1['type'], lst2['type'])


OPERATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    '+': haskish_add,
    '-': haskish_sub,
    '*': haskish_mul,
    '/': haskish_divide,
    '<': haskish_lt,
    '>': haskish_gt,
    '<=': haskish_le,
    '>=': haskish_ge,
    '==': haskish_eq,
    '/=': haskish_ne,
    '++': haskish_append,
    ':': haskish_cons,
    '^': haskish_power,
    '!!': haskish_index,
    '&&': haskish_and,
    '||': haskish_or,
}


def apply_operator(op: str, left: Dict, right: Dict) -> Dict:
  """Apply a binary operator to two evaluated operands"""
  if op not in OPERATORS:
    raise HaskishRuntimeError(f"Unknown operator: {op}")
  return OPERATORS[op](left, right)


# ============================================================================
# NUMERIC AND LOGIC FUNCTIONS
# ============================================================================

def haskish_not(x: Dict) -> Dict:
  validate_function_args("not", [x], ["Bool"])
  return make_value(not x['value'], "Bool")


def haskish_mod(x: Dict, y: Dict) -> Dict:
  """Modulo (result takes the sign of the divisor)"""
  validate_function_args("mod", [x, y], ["Num", "Num"])
  require_nonzero("Modulo", y)
  return make_value(float(x['value'] % y['value']), "Num")


def haskish_div(x: Dict, y: Dict) -> Dict:
  """Integer division rounding toward negative infinity"""
  validate_function_args("div", [x, y], ["Num", "Num"])
  require_nonzero("Division", y)
  return make_value(float(math.floor(x['value'] / y['value'])), "Num")


def haskish_min(x: Dict, y: Dict) -> Dict:
  return y if haskish_lt(y, x)['value'] else x


def haskish_max(x: Dict, y: Dict) -> Dict:
  return y if haskish_gt(y, x)['value'] else x


def haskish_error(message: Dict) -> Dict:
  """Abort evaluation with a user supplied message"""
  raise HaskishRuntimeError(show_value(message))


def haskish_ord(char: Dict) -> Dict:
  """Code point of a single character"""
  if char['type'] != "String" or len(char['value']) != 1:
    raise TypeMismatch("ord: argument must be a single character")
  return make_value(float(ord(char['value'])), "Num")


def haskish_chr(code: Dict) -> Dict:
  """Character for a code point"""
  if code['type'] != "Num" or not 0 <= code['value'] <= 0x10FFFF:
    raise TypeMismatch("chr: argument must be a valid Unicode code point (0-1114111)")
  return make_value(chr(int(code['value'])), "String")


# ============================================================================
# BUILT-IN FUNCTION REGISTRY
# ============================================================================

def make_builtin_function(name: str, func: Callable, arity: int, type_signature: str = "") -> Dict:
  """Create a built-in function value"""
  return {
      'type': 'builtin_function',
      'name': name,
      'func': func,
      'arity': arity,
      'type_signature': type_signature
  }


# Note: map, filter, fold are registered in interpreter.py since they need apply_value
BUILTIN_FUNCTIONS: Dict[str, Dict] = {
    # List functions
    "head": make_builtin_function("head", haskish_head, 1, "[a] -> a"),
    "tail": make_builtin_function("tail", haskish_tail, 1, "[a] -> [a]"),
    "length": make_builtin_function("length", haskish_length, 1, "[a] -> Num"),
    "null": make_builtin_function("null", haskish_null, 1, "[a] -> Bool"),
    "reverse": make_builtin_function("reverse", haskish_reverse, 1, "[a] -> [a]"),
    "take": make_builtin_function("take", haskish_take, 2, "Num -> [a] -> [a]"),
    "drop": make_builtin_function("drop", haskish_drop, 2, "Num -> [a] -> [a]"),
    "elem": make_builtin_function("elem", haskish_elem, 2, "a -> [a] -> Bool"),

    # Numeric and logic functions
    "not": make_builtin_function("not", haskish_not, 1, "Bool -> Bool"),
    "mod": make_builtin_function("mod", haskish_mod, 2, "Num -> Num -> Num"),
    "div": make_builtin_function("div", haskish_div, 2, "Num -> Num -> Num"),
    "min": make_builtin_function("min", haskish_min, 2, "a -> a -> a"),
    "max": make_builtin_function("max", haskish_max, 2, "a -> a -> a"),

    # Character functions
    "ord": make_builtin_function("ord", haskish_ord, 1, "String -> Num"),
    "chr": make_builtin_function("chr", haskish_chr, 1, "Num -> String"),

    # Special functions
    "error": make_builtin_function("error", haskish_error, 1, "String -> a"),
    "show": make_builtin_function("show", haskish_show, 1, "a -> String"),
}


def list_builtin_functions() -> List[str]:
  """List all available built-in functions"""
  return list(BUILTIN_FUNCTIONS.keys())
