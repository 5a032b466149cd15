"""
Haskish - Main Entry Point
A small interpreter for a Haskell-like teaching language
"""

import sys
import argparse
from pathlib import Path
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import parse_expression, pretty_print_ast
from interpreter import create_interpreter, create_debug_interpreter, Interpreter, REPL_HELP
from error_handling import HaskishError


VERSION = "Haskish v0.1.0"

CLI_HELP = """  :load <file>        Load a program file, replacing current definitions
  :parse <expr>       Show the parsed expression tree
  :quit               Exit the REPL"""


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Haskish - a pattern-matching functional teaching language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.hs                      # Load a program and report what was defined
  %(prog)s script.hs -e "factorial 5"     # Load, then evaluate an expression
  %(prog)s -e "fold (+) 0 [1..10]"        # Evaluate without a program
  %(prog)s script.hs -i                   # Load, then start the REPL
  %(prog)s -i --debug                     # Interactive mode with debug
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Haskish program file to load'
  )

  parser.add_argument(
      '-e', '--eval',
      action='append',
      default=[],
      metavar='EXPR',
      dest='expressions',
      help='Evaluate an expression after loading (repeatable)'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_source(script_path: str) -> Optional[str]:
  """Read a program file, reporting problems instead of raising"""
  try:
    return Path(script_path).read_text(encoding='utf-8')
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    print("  Hint: Check the file path and make sure the file exists")
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    print("  Hint: Make sure you have read permissions for this file")
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print("  Hint: Make sure the file is a text file with UTF-8 encoding")
  return None


def load_script_file(interpreter: Interpreter, script_path: str) -> bool:
  """Load a program into the interpreter and print the outcome"""
  source_text = read_source(script_path)
  if source_text is None:
    return False

  result = interpreter.load(source_text)
  if result['ok']:
    print(result['message'])
    return True

  print(f"Error loading '{script_path}':")
  print(result['error'])
  return False


def run_expressions(interpreter: Interpreter, expressions: List[str]) -> bool:
  """Evaluate each expression as a REPL line; stop at the first failure"""
  for expression in expressions:
    result = interpreter.eval_repl_line(expression)
    if not result['ok']:
      print(f"Error: {result['error']}")
      return False
    print(result['result'])
  return True


def setup_readline(names: List[str]) -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  # HASKISH_HISTORY overrides the history file location
  history_file = os.path.expanduser(os.environ.get("HASKISH_HISTORY", "~/.haskish_history"))
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  completions = sorted(set(names)) + [
      "if", "then", "else", "True", "False", "otherwise",
      ":show", ":bindings", ":functions", ":variables", ":vars", ":info",
      ":help", ":load", ":parse", ":quit"
  ]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.set_completer_delims(" \t\n()[],")
  readline.parse_and_bind("tab: complete")

  # Save history on exit
  import atexit
  atexit.register(_write_history, history_file)


def _write_history(history_file: str) -> None:
  try:
    readline.write_history_file(history_file)
  except OSError:
    pass


def handle_cli_command(interpreter: Interpreter, line: str) -> bool:
  """Handle commands only the terminal REPL knows; False if line is not one"""
  command, _, arg = line.partition(' ')
  arg = arg.strip()

  if command == ':load':
    if not arg:
      print("Usage: :load <file>")
    else:
      load_script_file(interpreter, arg)
    return True

  if command == ':parse':
    try:
      print(pretty_print_ast(parse_expression(arg)), end='')
    except HaskishError as e:
      print(f"Parse error: {e}")
    return True

  if command in (':help', ':h', ':?'):
    print(REPL_HELP)
    print(CLI_HELP)
    return True

  return False


def run_interactive_mode(interpreter: Interpreter, debug: bool = False) -> None:
  """Run the Haskish REPL"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to quit, ':help' for commands")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline(interpreter.names())

  while True:
    try:
      line = input("haskish> ").strip()

      if line in (':quit', ':q'):
        break

      if not line:
        continue

      if line.startswith(':') and handle_cli_command(interpreter, line):
        continue

      result = interpreter.eval_repl_line(line)
      if result['ok']:
        if result['result']:
          print(result['result'])
      else:
        print(f"Error: {result['error']}")

    except KeyboardInterrupt:
      print("\nGoodbye!")
      break
    except EOFError:
      print("\nGoodbye!")
      break
    except Exception as e:
      print(f"Unexpected error: {e}")
      if debug:
        import traceback
        traceback.print_exc()
      print("  Hint: If this keeps happening, try restarting or use --debug for more details")


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for Haskish"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  interpreter = create_debug_interpreter() if args.debug else create_interpreter()

  if args.script and not load_script_file(interpreter, args.script):
    return 1

  if args.expressions and not run_expressions(interpreter, args.expressions):
    return 1

  if args.interactive or not (args.script or args.expressions):
    run_interactive_mode(interpreter, debug=args.debug)

  return 0


if __name__ == "__main__":
  sys.exit(main())
