"""
Haskish Definition Store - Pure Functional Style
Function clauses and top-level variables kept in immutable dictionaries,
plus the line scanner that builds a store from program text
"""

from typing import Callable, Dict, FrozenSet, Iterator, List, Optional, Tuple
from parsing import classify_line, split_patterns
from error_handling import HaskishError, ImmutableReassignment, LoadError
from utilities import builtin_variable_error, builtin_redefinition_error


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_definition_store(functions: Optional[Dict] = None, variables: Optional[Dict] = None) -> Dict:
  """Create an immutable definition store"""
  return {
      'functions': functions or {},
      'variables': variables or {}
  }


def make_clause(params: str, body: Optional[str] = None, guards: Optional[List[Dict]] = None) -> Dict:
  """Create an immutable function clause"""
  return {
      'params': params,
      'patterns': split_patterns(params),
      'body': body,
      'guards': guards or []
  }


def make_guard(condition: str, body: str) -> Dict:
  return {'condition': condition, 'body': body}


# ============================================================================
# STORE OPERATIONS (Pure Functions)
# ============================================================================

def store_bind_function(store: Dict, name: str, clauses: List[Dict]) -> Dict:
  """Return new store with the function's clause list replaced"""
  return {
      **store,
      'functions': {**store['functions'], name: list(clauses)}
  }


def store_add_clause(store: Dict, name: str, clause: Dict) -> Dict:
  """Return new store with one clause appended to the function"""
  clauses = store['functions'].get(name, [])
  return store_bind_function(store, name, clauses + [clause])


def store_bind_variable(store: Dict, name: str, value: Dict) -> Dict:
  """Return new store with a top-level variable bound"""
  return {
      **store,
      'variables': {**store['variables'], name: value}
  }


def store_counts(store: Dict) -> Tuple[int, int, int]:
  """(function count, clause count, variable count)"""
  functions = store['functions']
  return (
      len(functions),
      sum(len(clauses) for clauses in functions.values()),
      len(store['variables'])
  )


# ============================================================================
# PROGRAM SCANNER
# ============================================================================

def is_comment_line(line: str) -> bool:
  return line.startswith('--')


def strip_let(line: str) -> str:
  """Drop an optional leading 'let' keyword"""
  if line.startswith('let '):
    return line[4:].lstrip()
  return line


def program_lines(source_text: str) -> Iterator[Tuple[int, str]]:
  """Yield (line number, trimmed line) for every line that is not blank or a comment"""
  for line_number, raw_line in enumerate(source_text.split('\n'), 1):
    line = raw_line.strip()
    if not line or is_comment_line(line):
      continue
    yield line_number, strip_let(line)


def _flush_function(store: Dict, name: Optional[str], clauses: List[Dict]) -> Dict:
  if name is None or not clauses:
    return store
  return store_bind_function(store, name, clauses)


def scan_program(
  source_text: str,
  evaluate_binding: Callable[[Dict, str], Dict],
  debug: bool = False,
  reserved_names: FrozenSet[str] = frozenset()
) -> Dict:
  """
  Scan program text into a fresh definition store

  Consecutive clauses of one function accumulate; a different name or a
  binding line flushes them, and a later block for the same name replaces
  the earlier one. Binding right-hand sides are evaluated immediately with
  evaluate_binding(store_so_far, expression_text).

  Raises:
    LoadError if a binding fails to evaluate or a definition uses a reserved name
  """
  store = make_definition_store()
  current_name = None
  current_clauses = []
  header = None
  guards = []

  for line_number, line in program_lines(source_text):
    entry = classify_line(line)
    if entry is None:
      if debug:
        print(f"Skipping malformed line {line_number}: {line}")
      continue

    if entry['kind'] == 'guard':
      if header is None:
        if debug:
          print(f"Skipping guard without a function header on line {line_number}: {line}")
      else:
        guards.append(make_guard(entry['condition'], entry['body']))
      continue

    # Any other line closes a guarded clause in progress
    if header is not None:
      if guards:
        current_clauses = current_clauses + [make_clause(header['params'], guards=guards)]
      elif debug:
        print(f"Skipping function header without guards: {header['name']} {header['params']}")
      header, guards = None, []

    if entry['name'] in reserved_names:
      error = (builtin_variable_error if entry['kind'] == 'binding' else builtin_redefinition_error)(entry['name'])
      raise LoadError(error.message, line_number, line)

    if entry['kind'] in ('clause', 'header'):
      if current_name is not None and current_name != entry['name']:
        store = _flush_function(store, current_name, current_clauses)
        current_clauses = []
      current_name = entry['name']
      if entry['kind'] == 'clause':
        current_clauses = current_clauses + [make_clause(entry['params'], entry['body'])]
      else:
        header = entry
      continue

    store = _flush_function(store, current_name, current_clauses)
    current_name, current_clauses = None, []

    try:
      if entry['name'] in store['variables']:
        raise ImmutableReassignment(entry['name'])
      value = evaluate_binding(store, entry['expression'])
    except HaskishError as e:
      raise LoadError(e.message, line_number, line, e.suggestions) from e

    if debug:
      print(f"Bound {entry['name']} on line {line_number}")
    store = store_bind_variable(store, entry['name'], value)

  if header is not None and guards:
    current_clauses = current_clauses + [make_clause(header['params'], guards=guards)]
  return _flush_function(store, current_name, current_clauses)
