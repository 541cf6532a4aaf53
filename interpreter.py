"""
backforth Interpreter - stack machine
A Shell executes Words from the tail of its code stack against a data stack
and a dictionary of bindings. Side effects (console, files, processes) go
through a HostIO collaborator at the boundary.
"""

from typing import Any, Dict, Iterable, List, Optional
from collections import deque
import subprocess

from parsing import Word, ATOM, LIST, make_atom, make_str, parse, pretty_print
from semantics import (
  make_primitive, make_interpreted, is_primitive,
  binding_type_spec, format_type_spec,
  infer_type, literal_type_spec, make_type_spec, inexact_type_spec
)
from utilities import as_atom, as_bool, as_list, expand_word
from error_handling import (
  EvalError, StackUnderflow, CantUnderstand, MacroFailed, HostIOError
)

# Import stdlib functions
from stdlib import BUILTIN_FUNCTIONS, STDLIB_SOURCE, make_builtin_function


# ============================================================================
# HOST I/O
# ============================================================================

class HostIO:
  """Console, file and process access used by echo/prompt/load/command"""

  def prompt(self, text: str) -> str:
    """Show text and read one line; raises EOFError at end of input"""
    return input(text)

  def echo(self, text: str):
    print(text)

  def load(self, path: str) -> str:
    try:
      with open(path, 'r', encoding='utf-8') as f:
        return f.read()
    except (OSError, UnicodeDecodeError) as e:
      raise HostIOError(f"cannot load {path}: {e}", e) from e

  def command(self, name: str, args: List[str]) -> str:
    try:
      result = subprocess.run([name] + args, stdout=subprocess.PIPE, check=False)
    except OSError as e:
      raise HostIOError(f"cannot run {name}: {e}", e) from e
    return result.stdout.decode('utf-8', errors='replace')


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_env(dictionary: Dict[str, Dict], data: Iterable[Word], code: Iterable[Word]) -> Dict:
  """Create a recovery snapshot; restored when a protected region fails"""
  return {
      'dictionary': dict(dictionary),
      'data': tuple(data),
      'code': tuple(code)
  }


# ============================================================================
# SHELL
# ============================================================================

class Shell:
  """
  The stack machine

  data[0] is the top of the data stack; code[-1] is the next word to run.
  Every change a built-in makes to either stack goes through the helpers
  below and is journaled, so a failing step can be taken back exactly.
  """

  def __init__(self, io: Optional[HostIO] = None, debug: bool = False):
    self.io = io if io is not None else HostIO()
    self.debug = debug
    self.dictionary: Dict[str, Dict] = create_builtin_dictionary()
    self.data: deque = deque()
    self.code: List[Word] = []
    self.recovery: List[Dict] = []
    self._journal: List[tuple] = []

    self.evaluate(STDLIB_SOURCE)

  # ==================== STACK HELPERS ====================

  def push(self, word: Word):
    self.data.appendleft(word)
    self._journal.append(('push', None))

  def pop(self) -> Word:
    if not self.data:
      raise StackUnderflow()
    word = self.data.popleft()
    self._journal.append(('pop', word))
    return word

  def remove_at(self, index: int) -> Word:
    """Take the data stack entry at index out of the stack"""
    if index >= len(self.data):
      raise StackUnderflow()
    word = self.data[index]
    del self.data[index]
    self._journal.append(('remove', (index, word)))
    return word

  def clear_data(self):
    self._journal.append(('clear', tuple(self.data)))
    self.data.clear()

  def take_code(self) -> Word:
    """Consume the word that would run next; macros read their operands this way"""
    if not self.code:
      raise MacroFailed()
    word = self.code.pop()
    self._journal.append(('take', word))
    return word

  def put_code(self, word: Word):
    self.code.append(word)
    self._journal.append(('put', None))

  def load(self, words: Iterable[Word]):
    """Splice words onto the code stack; the last one runs first"""
    words = list(words)
    self.code.extend(words)
    self._journal.append(('load', len(words)))

  def _rollback(self):
    """Undo the journaled effects of the current step"""
    for action, payload in reversed(self._journal):
      if action == 'push':
        self.data.popleft()
      elif action == 'pop':
        self.data.appendleft(payload)
      elif action == 'remove':
        index, word = payload
        self.data.insert(index, word)
      elif action == 'clear':
        self.data.extend(payload)
      elif action == 'take':
        self.code.append(payload)
      elif action == 'put':
        self.code.pop()
      elif action == 'load':
        del self.code[len(self.code) - payload:]
    self._journal.clear()

  # ==================== PUBLIC API ====================

  def capture(self) -> List[Word]:
    """The data stack, top first"""
    return list(self.data)

  def lookup(self, name: str) -> Dict:
    binding = self.dictionary.get(name)
    if binding is None:
      raise CantUnderstand(name)
    return binding

  def halt(self):
    """Stop the run: nothing left to execute and nothing left to recover to"""
    self.code.clear()
    self.recovery.clear()

  def evaluate(self, source: str):
    """Parse source and run it to completion; raises ParseError or EvalError"""
    self.code.extend(parse(source))
    self.run()

  def run(self):
    """
    Execute words until the code stack is empty

    An EvalError inside a protected region restores the latest snapshot and
    leaves a diagnostic string on the data stack. Outside one, the failing
    step is undone (its atom goes back on the code stack) and the error is
    raised. HostIOError always propagates.
    """
    while self.code:
      word = self.code.pop()

      if word.type != ATOM:
        self.data.appendleft(word)
        continue

      if self.debug:
        print(f"Evaluating: {word}")

      self._journal.clear()
      try:
        self._execute(word.value)
      except EvalError as e:
        if self.recovery:
          self._recover(word.value, e)
        else:
          self._rollback()
          self.code.append(word)
          raise

    self._journal.clear()

  def _execute(self, name: str):
    binding = self.lookup(name)

    if is_primitive(binding):
      binding['builtin']['func'](self)
      return

    type_spec = binding['type_spec']
    if type_spec['exact'] and len(self.data) < type_spec['input']:
      raise StackUnderflow()

    value = binding['word']
    if value.type == LIST:
      self.load(value.value)
    else:
      self.put_code(value)

  def _recover(self, name: str, error: EvalError):
    env = self.recovery.pop()
    self.dictionary = dict(env['dictionary'])
    self.data = deque(env['data'])
    self.code = list(env['code'])
    self._journal.clear()

    if self.debug:
      print(f"Recovered from {name}: {error}")

    self.push(make_str(f"{name} error: {error}"))


# ============================================================================
# CONTROL BUILT-INS (need the code and recovery stacks)
# ============================================================================

def bf_bye(shell: Shell):
  shell.halt()


def bf_assign(shell: Shell):
  """`name = value`: bind the word before `=` to the value after it"""
  name = as_atom(shell.take_code())
  value = shell.pop()

  if value.type == LIST:
    type_spec = infer_type(value.value, shell.dictionary)
  else:
    type_spec = literal_type_spec()

  shell.dictionary[name] = make_interpreted(type_spec, value)


def bf_eval(shell: Shell):
  """Run a list; any other word goes back where it was"""
  word = shell.pop()
  if word.type == LIST:
    shell.load(word.value)
  else:
    shell.push(word)


def bf_expand(shell: Shell):
  """
  Fill a template: pops a list of names, the body, then one value per name

  Examples:
    expand { x } { + x 1 } 41 -> { + 41 1 }
  """
  names = as_list(shell.pop())
  body = shell.pop()

  bindings = {}
  for name in names:
    bindings[as_atom(name)] = shell.pop()

  shell.push(expand_word(body, bindings))


def bf_if(shell: Shell):
  test = as_bool(shell.pop())
  consequent = as_list(shell.pop())
  alternative = as_list(shell.pop())

  if test:
    shell.load(consequent)
  else:
    shell.load(alternative)


def bf_try(shell: Shell):
  """
  Run a body, falling back to the catch list if anything in it fails

  The snapshot's code already ends with the catch list, so restoring it is
  all recovery needs to do. `popeh` runs after the body and discards the
  snapshot when the body succeeds.
  """
  body = as_list(shell.pop())
  catch = as_list(shell.pop())

  shell.recovery.append(make_env(shell.dictionary, shell.data, shell.code + list(catch)))

  shell.put_code(make_atom("popeh"))
  shell.load(body)


def bf_popeh(shell: Shell):
  if shell.recovery:
    shell.recovery.pop()


def bf_quote(shell: Shell):
  """Push the next word as data instead of running it"""
  shell.push(shell.take_code())


def bf_infix(shell: Shell):
  """Rewrite `(( lhs op rhs ))` into `op lhs rhs`"""
  rhs = shell.take_code()
  op = shell.take_code()
  lhs = shell.take_code()
  marker = shell.take_code()

  if marker.type != ATOM or marker.value != "((":
    raise MacroFailed()

  shell.load([op, lhs, rhs])


def bf_debug(shell: Shell):
  """Show the code stack, next word first"""
  for word in reversed(shell.code):
    shell.io.echo(pretty_print(word))


def bf_inspect(shell: Shell):
  """Show a name's stack effect and definition"""
  name = as_atom(shell.pop())
  binding = shell.lookup(name)
  signature = format_type_spec(binding_type_spec(binding))

  if is_primitive(binding):
    shell.io.echo(f"{name} {signature} = <BUILTIN>")
  else:
    shell.io.echo(f"{name} {signature} =")
    shell.io.echo(pretty_print(binding['word']))


CONTROL_FUNCTIONS: Dict[str, Dict] = {
    "bye": make_builtin_function("bye", bf_bye, inexact_type_spec(0)),
    "=": make_builtin_function("=", bf_assign, inexact_type_spec(1)),
    "eval": make_builtin_function("eval", bf_eval, inexact_type_spec(1)),
    "expand": make_builtin_function("expand", bf_expand, inexact_type_spec(2)),
    "if": make_builtin_function("if", bf_if, inexact_type_spec(3)),
    "try": make_builtin_function("try", bf_try, inexact_type_spec(2)),
    "popeh": make_builtin_function("popeh", bf_popeh, make_type_spec(0, 0)),
    "quote": make_builtin_function("quote", bf_quote, inexact_type_spec(0)),
    "))": make_builtin_function("))", bf_infix, inexact_type_spec(0)),
    "debug": make_builtin_function("debug", bf_debug, make_type_spec(0, 0)),
    "inspect": make_builtin_function("inspect", bf_inspect, make_type_spec(1, 0)),
}


def create_builtin_dictionary() -> Dict[str, Dict]:
  """Fresh dictionary binding every built-in name to its primitive"""
  dictionary = {}
  for name, builtin in {**CONTROL_FUNCTIONS, **BUILTIN_FUNCTIONS}.items():
    dictionary[name] = make_primitive(builtin)
  return dictionary


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

def create_shell(debug: bool = False, io: Optional[HostIO] = None) -> Shell:
  """Factory function returning a Shell with the standard library loaded"""
  return Shell(io=io, debug=debug)


def create_debug_shell() -> Shell:
  """Factory function returning a Shell that traces every word it runs"""
  return create_shell(debug=True)


def run_program(words: Iterable[Word], shell: Optional[Shell] = None) -> List[Any]:
  """Load words onto a Shell, run them and return the data stack, top first"""
  if shell is None:
    shell = create_shell()
  shell.load(words)
  shell.run()
  return shell.capture()
