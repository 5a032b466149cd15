"""
Utilities module for the Haskish interpreter
Error builders and operator factories shared by the standard library
"""

from typing import Any, Dict, List, Optional, Callable

from error_handling import (
  PatternArityMismatch,
  TypeMismatch,
  HaskishRuntimeError
)


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(
  func_name: str,
  param_name: str,
  expected: str,
  actual: Dict
) -> TypeMismatch:
  """
  Generate type mismatch error

  Args:
    func_name: Function name
    param_name: Parameter name
    expected: Expected type
    actual: Actual value dict

  Returns:
    TypeMismatch with formatted message
  """
  actual_type = actual.get('type', 'Unknown')
  return TypeMismatch(
    f"{func_name} requires {expected} for {param_name}, got {actual_type}"
  )


def arity_error(func_name: str, expected: int, got: int) -> PatternArityMismatch:
  """
  Generate arity mismatch error

  Args:
    func_name: Function name
    expected: Expected number of arguments
    got: Actual number of arguments

  Returns:
    PatternArityMismatch with formatted message
  """
  return PatternArityMismatch(func_name, expected, got)


def operation_error(
  op: str,
  left_type: str,
  right_type: str
) -> TypeMismatch:
  """
  Generate operation error

  Args:
    op: Operation name
    left_type: Left operand type
    right_type: Right operand type

  Returns:
    TypeMismatch with formatted message
  """
  suggestions = []
  if op == "add" and left_type == right_type and left_type in ("String", "List"):
    suggestions.append("Use ++ to concatenate strings or lists")
  return TypeMismatch(
    f"Cannot {op} {left_type} and {right_type}",
    suggestions
  )


def builtin_variable_error(name: str) -> HaskishRuntimeError:
  return HaskishRuntimeError(f"Cannot use '{name}' as a variable name: it is a built-in function")


def builtin_redefinition_error(name: str) -> HaskishRuntimeError:
  return HaskishRuntimeError(f"Cannot redefine built-in function '{name}'")


# ==================== VALIDATION UTILITIES ====================

def validate_function_args(
  func_name: str,
  args: List[Dict],
  expected_types: List[str]
) -> None:
  """
  Validate function arguments match expected types

  "Any" in expected_types accepts a value of every type.

  Raises:
    PatternArityMismatch or TypeMismatch if validation fails
  """
  if len(args) != len(expected_types):
    raise arity_error(func_name, len(expected_types), len(args))

  for i, (arg, expected) in enumerate(zip(args, expected_types)):
    if expected == "Any":
      continue
    if arg.get('type', 'Unknown') != expected:
      raise type_mismatch_error(
        func_name,
        f"argument {i+1}",
        expected,
        arg
      )


def require_nonzero(op_name: str, divisor: Dict) -> None:
  """Reject a zero divisor for division-like operators"""
  if divisor['value'] == 0:
    raise HaskishRuntimeError(f"{op_name} by zero")


# ==================== BINARY OPERATION FACTORIES ====================

def binary_comparison_op(
  op: Callable[[Any, Any], bool],
  op_name: str,
  allowed_types: Optional[List[str]] = None
) -> Callable[[Dict, Dict, Callable], Dict]:
  """
  Factory for binary comparison operations

  Args:
    op: Python operator function (e.g., operator.lt)
    op_name: Name for error messages
    allowed_types: Types that support this operation

  Returns:
    Function that performs the comparison

  Examples:
    haskish_lt = binary_comparison_op(operator.lt, "compare")
    result = haskish_lt({"type": "Num", "value": 1.0}, {"type": "Num", "value": 2.0}, make_value)
  """
  if allowed_types is None:
    allowed_types = ["Num", "String"]

  def comparison(x: Dict, y: Dict, make_value: Callable) -> Dict:
    if x['type'] != y['type'] or x['type'] not in allowed_types:
      raise operation_error(op_name, x['type'], y['type'])
    return make_value(op(x['value'], y['value']), "Bool")

  return comparison


def binary_arithmetic_op(
  op: Callable[[Any, Any], Any],
  op_name: str,
  allowed_types: Optional[List[str]] = None
) -> Callable[[Dict, Dict, Callable], Dict]:
  """
  Factory for binary arithmetic operations

  Args:
    op: Python operator function (e.g., operator.add)
    op_name: Name for error messages
    allowed_types: Types that support this operation

  Returns:
    Function that performs the arithmetic operation
  """
  if allowed_types is None:
    allowed_types = ["Num"]

  def arithmetic(x: Dict, y: Dict, make_value: Callable) -> Dict:
    if x['type'] != y['type'] or x['type'] not in allowed_types:
      raise operation_error(op_name, x['type'], y['type'])
    return make_value(float(op(x['value'], y['value'])), x['type'])

  return arithmetic
