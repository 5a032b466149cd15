"""
Error handling for the Haskish interpreter
Exception hierarchy plus helpers that turn failures into structured results
"""

from typing import Dict, List, Optional
import difflib


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_error_result(message: str, suggestions: Optional[List[str]] = None) -> Dict:
    """Create an immutable failure result for the load/eval boundary"""
    return {
        'ok': False,
        'error': message,
        'suggestions': suggestions or []
    }


def format_error_message(message: str, suggestions: Optional[List[str]] = None,
                         line: int = 0, context: Optional[str] = None) -> str:
    """Format an error message with optional location, context and hints"""
    if line:
        error_msg = f"Error on line {line}: {message}"
    else:
        error_msg = message

    if context:
        error_msg += f"\n  Context: {context}"

    for suggestion in suggestions or []:
        error_msg += f"\n  Hint: {suggestion}"

    return error_msg


# ============================================================================
# PURE FUNCTIONS
# ============================================================================

def suggest_names(name: str, known_names: List[str]) -> List[str]:
    """Generate hints for an unknown identifier"""
    if name in ('true', 'false'):
        return [f"Did you mean '{name.capitalize()}'? Boolean constructors must be capitalized."]

    matches = difflib.get_close_matches(name, known_names, n=3, cutoff=0.75)
    return [f"Did you mean '{match}'?" for match in matches]


# ============================================================================
# EXCEPTION CLASSES
# ============================================================================

class HaskishError(Exception):
    """Base class for all Haskish errors"""
    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        self.message = message
        self.suggestions = suggestions or []
        super().__init__(self._format_error())

    def _format_error(self) -> str:
        return format_error_message(self.message, self.suggestions)


class HaskishParseError(HaskishError):
    """Raised when an expression cannot be parsed or evaluated"""
    def __init__(self, message: str, text: str = "", suggestions: Optional[List[str]] = None):
        self.text = text
        super().__init__(message, suggestions)


class HaskishRuntimeError(HaskishError):
    """Raised when evaluation of a well-formed expression fails"""
    pass


class PatternArityMismatch(HaskishRuntimeError):
    """Raised when a function is called with the wrong number of arguments"""
    def __init__(self, function_name: str, expected: int, got: int):
        self.function_name = function_name
        self.expected = expected
        self.got = got
        plural = '' if expected == 1 else 's'
        super().__init__(
            f"Function '{function_name}' expects {expected} argument{plural}, but got {got}")


class NoClauseMatched(HaskishRuntimeError):
    """Raised when no clause of a user function matches the arguments"""
    def __init__(self, function_name: str, arguments: List[str]):
        self.function_name = function_name
        self.arguments = arguments
        super().__init__(
            f"No pattern matched for function {function_name} with arguments: {', '.join(arguments)}")


class UndefinedFunction(HaskishRuntimeError):
    """Raised when a called name is neither a built-in nor a user function"""
    def __init__(self, name: str, suggestions: Optional[List[str]] = None):
        self.name = name
        super().__init__(f"Undefined function: {name}", suggestions)


class TypeMismatch(HaskishRuntimeError):
    """Raised when a value of the wrong type reaches an operation"""
    pass


class EmptyListError(TypeMismatch):
    """Raised when head or tail is applied to an empty list"""
    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"{function_name}: empty list")


class ImmutableReassignment(HaskishRuntimeError):
    """Raised when a bound top-level name is assigned again"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot reassign '{name}' - variables are immutable in functional programming!")


class LoadError(HaskishError):
    """Raised when a top-level binding fails while loading a program"""
    def __init__(self, message: str, line: int, source_line: str,
                 suggestions: Optional[List[str]] = None):
        self.line = line
        self.source_line = source_line
        super().__init__(message, suggestions)

    def _format_error(self) -> str:
        return format_error_message(self.message, self.suggestions, self.line, self.source_line)


def format_error_result(error: HaskishError) -> Dict:
    """Convert a raised Haskish error into a failure result"""
    return make_error_result(str(error), error.suggestions)
