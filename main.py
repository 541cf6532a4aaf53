"""
backforth - Main Entry Point
A small concatenative language: prefix words run from a code stack
against a data stack
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

from parsing import parse_file as parse_source_file, pretty_print, make_atom, make_str
from interpreter import create_shell, create_debug_shell, Shell
from error_handling import ParseError, EvalError, BadParse, HostIOError


VERSION = "backforth 0.1.0"
HISTORY_FILE = "~/.backforth_history"


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='backforth',
      description='backforth - a concatenative stack language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s                        # Interactive mode
  %(prog)s script.bf              # Run a backforth script
  %(prog)s -i script.bf           # Run a script, then stay interactive
  %(prog)s --parse script.bf      # Parse and show the words
  %(prog)s --debug script.bf      # Trace every word evaluated
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='backforth script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode (after running the script, if any)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show its words (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Trace evaluation'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def parse_file(script_path: str) -> None:
  """Parse a backforth script file and show its words"""
  try:
    words = parse_source_file(script_path)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)
  except ParseError as e:
    print(f"Parse error in '{script_path}':")
    print(e.describe())
    sys.exit(1)

  print(f"Parsed {len(words)} words, in execution order last to first:")
  print("=" * 50)
  for word in words:
    print(pretty_print(word))


def report_eval_error(shell: Shell, error: EvalError, source: str) -> None:
  """Show an unrecovered error and the word that raised it"""
  if isinstance(error, BadParse):
    print(f"Parse error in {source}:")
    print(error.error.describe())
    return

  print(f"\n{'='*70}")
  print(f"Runtime Error in {source}")
  print(f"{'='*70}")
  print(f"\nError: {error.message}")
  if shell.code:
    print(f"\nAt: {shell.code[-1]}")
  print(f"\n{'='*70}\n")


def run_words(shell: Shell, words: List, source: str) -> bool:
  """Run words on the shell; False if the run ended in an unrecovered error"""
  shell.load(words)
  try:
    shell.run()
  except EvalError as e:
    report_eval_error(shell, e, source)
    return False
  except HostIOError as e:
    print(f"Error: {e.message}")
    return False
  return True


def run_script_file(shell: Shell, script_path: str) -> bool:
  """Run a script through the library's own `interpret` word"""
  return run_words(shell, [make_atom("interpret"), make_str(script_path)], f"'{script_path}'")


def setup_readline(shell: Shell):
  """Setup readline with history and completion of dictionary names"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet, or permission denied

  readline.set_history_length(1000)

  def completer(text, state):
    options = sorted(name for name in shell.dictionary if name.startswith(text))
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.set_completer_delims(" \t\n{};\"")
  readline.parse_and_bind("tab: complete")

  def save_history():
    try:
      readline.write_history_file(history_file)
    except OSError:
      pass

  import atexit
  atexit.register(save_history)


def run_interactive_mode(shell: Shell, debug: bool = False) -> bool:
  """Run the library's `repl` word until exit or end of input"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, 'stack' to show the data stack")
  if READLINE_AVAILABLE:
    print("Readline enabled: Use ↑/↓ for history, Tab for completion")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline(shell)

  try:
    return run_words(shell, [make_atom("repl")], "interactive session")
  except KeyboardInterrupt:
    print("\nGoodbye!")
    return True


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for backforth"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.parse and not args.script:
    arg_parser.error("--parse needs a script file")

  if args.script and not Path(args.script).exists():
    print(f"Error: Script file '{args.script}' does not exist")
    sys.exit(1)

  if args.script and args.parse:
    parse_file(args.script)
    return

  shell = create_debug_shell() if args.debug else create_shell()

  if args.script:
    if not run_script_file(shell, args.script):
      sys.exit(1)
    if not args.interactive:
      return

  if not run_interactive_mode(shell, debug=args.debug):
    sys.exit(1)


if __name__ == "__main__":
  main()
