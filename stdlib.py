"""
backforth Standard Library
Data-level built-ins, the built-in registry and the baked-in library source

Every built-in takes the running Shell and works through its push/pop
helpers, so a failing built-in can be undone by the Shell.
Control-flow built-ins live in interpreter.py since they rewrite the code
stack and the recovery stack.
"""

from typing import Dict, Callable, List

from parsing import (
  ATOM, STR,
  make_int, make_hex, make_str, make_list, make_dict, make_bool,
  parse
)
from semantics import make_type_spec, inexact_type_spec, format_type_spec
from utilities import (
  as_atom, as_int, as_str, as_list, as_dict,
  into_int, into_hex, into_string, into_list,
  arithmetic_operand, wrap_i32, truncating_div,
  flatten_words, split_lines, TYPE_NAMES
)
from error_handling import (
  ParseError, BadParse, EmptyList, MacroFailed, StackUnderflow,
  CantUnderstand, WrongType
)


# ============================================================================
# LIST FUNCTIONS
# ============================================================================

def bf_len(shell):
  """Number of items in a list"""
  items = as_list(shell.pop())
  shell.push(make_int(len(items)))


def bf_append(shell):
  """Concatenate two lists, top of stack first"""
  lhs = as_list(shell.pop())
  rhs = as_list(shell.pop())
  shell.push(make_list(lhs + rhs))


def bf_push(shell):
  """Add a value at the back of a list"""
  value = shell.pop()
  items = as_list(shell.pop())
  shell.push(make_list(items + (value,)))


def bf_pop(shell):
  """Split the last value off a list; pushes the rest, then the value"""
  items = as_list(shell.pop())
  if not items:
    raise EmptyList()
  shell.push(make_list(items[:-1]))
  shell.push(items[-1])


def bf_shift(shell):
  """Split the first value off a list; pushes the rest, then the value"""
  items = as_list(shell.pop())
  if not items:
    raise EmptyList()
  shell.push(make_list(items[1:]))
  shell.push(items[0])


def bf_unshift(shell):
  """Add a value at the front of a list"""
  value = shell.pop()
  items = as_list(shell.pop())
  shell.push(make_list((value,) + items))


def bf_explode(shell):
  """Push every item of a list, last item ending on top"""
  items = as_list(shell.pop())
  for item in items:
    shell.push(item)


def bf_capture(shell):
  """Push the whole data stack as a list, top first"""
  shell.push(make_list(shell.capture()))


# ============================================================================
# STRING FUNCTIONS
# ============================================================================

def bf_flatten(shell):
  """Join the display forms of a list's items with a separator"""
  separator = into_string(shell.pop())
  items = into_list(shell.pop())
  shell.push(make_str(flatten_words(items, separator)))


def bf_strcat(shell):
  lhs = into_string(shell.pop())
  rhs = into_string(shell.pop())
  shell.push(make_str(lhs + rhs))


def bf_lines(shell):
  text = as_str(shell.pop())
  shell.push(make_list(make_str(line) for line in split_lines(text)))


def bf_parse(shell):
  """Turn a string into the list of words it denotes"""
  source = as_str(shell.pop())
  try:
    program = parse(source)
  except ParseError as e:
    raise BadParse(e) from e
  shell.push(make_list(program))


# ============================================================================
# HOST I/O FUNCTIONS
# ============================================================================

def bf_echo(shell):
  shell.io.echo(into_string(shell.pop()))


def bf_prompt(shell):
  """Read a line of input; end of input halts the Shell"""
  text = into_string(shell.pop())
  try:
    line = shell.io.prompt(text)
  except EOFError:
    shell.halt()
    line = ""
  shell.push(make_str(line))


def bf_command(shell):
  """Run an external program with string arguments, pushing its output"""
  name = into_string(shell.pop())
  args = [as_str(arg) for arg in into_list(shell.pop())]
  shell.push(make_str(shell.io.command(name, args)))


def bf_load(shell):
  path = as_str(shell.pop())
  shell.push(make_str(shell.io.load(path)))


# ============================================================================
# STACK FUNCTIONS
# ============================================================================

def bf_pick(shell):
  """Copy the data stack entry at an index (0 is the top) to the top"""
  index = into_hex(shell.pop())
  if index >= len(shell.data):
    raise StackUnderflow()
  shell.push(shell.data[index])


def bf_roll(shell):
  """Move the data stack entry at an index to the top"""
  index = into_hex(shell.pop())
  shell.push(shell.remove_at(index))


def bf_drop(shell):
  shell.pop()


def bf_clear(shell):
  shell.clear_data()


# ============================================================================
# NUMERIC FUNCTIONS
# ============================================================================

def bf_hex(shell):
  shell.push(make_hex(into_hex(shell.pop())))


def bf_int(shell):
  shell.push(make_int(into_int(shell.pop())))


def int_binop(shell, op: Callable):
  """Apply op to the top two integers; the top is the left operand"""
  lhs = arithmetic_operand(shell.pop())
  rhs = arithmetic_operand(shell.pop())
  shell.push(op(lhs, rhs))


def bf_add(shell):
  int_binop(shell, lambda x, y: make_int(wrap_i32(x + y)))


def bf_sub(shell):
  int_binop(shell, lambda x, y: make_int(wrap_i32(x - y)))


def bf_mul(shell):
  int_binop(shell, lambda x, y: make_int(wrap_i32(x * y)))


def bf_div(shell):
  int_binop(shell, lambda x, y: make_int(wrap_i32(truncating_div(x, y))))


def bf_lt(shell):
  int_binop(shell, lambda x, y: make_bool(x < y))


def bf_gt(shell):
  int_binop(shell, lambda x, y: make_bool(x > y))


def bf_neg(shell):
  shell.push(make_int(wrap_i32(-as_int(shell.pop()))))


def bf_eq(shell):
  """Structural equality; dicts compare by containment of the top one"""
  lhs = shell.pop()
  rhs = shell.pop()
  shell.push(make_bool(lhs == rhs))


# ============================================================================
# DICT FUNCTIONS
# ============================================================================

def dict_key(word) -> str:
  """Keys are written as strings or bare atoms"""
  if word.type == STR:
    return word.value
  if word.type == ATOM:
    return word.value
  raise WrongType(word, TYPE_NAMES[STR])


def bf_dict(shell):
  """
  Build a dict from a list of `name = value` lines

  Lines are stored last line first, so triples are read from the end to
  keep the written order. Values are taken as written, not evaluated.
  """
  items = as_list(shell.pop())
  if len(items) % 3 != 0:
    raise MacroFailed()

  entries = {}
  for start in range(len(items) - 3, -1, -3):
    name, marker, value = items[start:start + 3]
    if name.type != ATOM or marker.type != ATOM or marker.value != "=":
      raise MacroFailed()
    entries[as_atom(name)] = value

  shell.push(make_dict(entries))


def bf_get(shell):
  entries = as_dict(shell.pop())
  key = dict_key(shell.pop())
  if key not in entries:
    raise CantUnderstand(key)
  shell.push(entries[key])


def bf_put(shell):
  entries = as_dict(shell.pop())
  key = dict_key(shell.pop())
  value = shell.pop()
  shell.push(make_dict({**entries, key: value}))


def bf_keys(shell):
  entries = as_dict(shell.pop())
  shell.push(make_list(make_str(key) for key in entries))


# ============================================================================
# BUILT-IN FUNCTION REGISTRY
# ============================================================================

def make_builtin_function(name: str, func: Callable, type_spec: Dict) -> Dict:
  """Create a built-in function record"""
  return {
      'type': 'builtin_function',
      'name': name,
      'func': func,
      'type_spec': type_spec
  }


def exact(input: int, output: int) -> Dict:
  return make_type_spec(input, output)


# Data-level built-ins; control built-ins are added by interpreter.py
BUILTIN_FUNCTIONS: Dict[str, Dict] = {
    # Lists
    "len": make_builtin_function("len", bf_len, exact(1, 1)),
    "append": make_builtin_function("append", bf_append, exact(2, 1)),
    "push": make_builtin_function("push", bf_push, exact(2, 1)),
    "pop": make_builtin_function("pop", bf_pop, exact(1, 2)),
    "shift": make_builtin_function("shift", bf_shift, exact(1, 2)),
    "unshift": make_builtin_function("unshift", bf_unshift, exact(2, 1)),
    "explode": make_builtin_function("explode", bf_explode, inexact_type_spec(1)),
    "capture": make_builtin_function("capture", bf_capture, inexact_type_spec(0)),

    # Strings
    "flatten": make_builtin_function("flatten", bf_flatten, exact(2, 1)),
    "strcat": make_builtin_function("strcat", bf_strcat, exact(2, 1)),
    "lines": make_builtin_function("lines", bf_lines, exact(1, 1)),
    "parse": make_builtin_function("parse", bf_parse, exact(1, 1)),

    # Host I/O
    "echo": make_builtin_function("echo", bf_echo, exact(1, 0)),
    "prompt": make_builtin_function("prompt", bf_prompt, exact(1, 1)),
    "command": make_builtin_function("command", bf_command, exact(2, 1)),
    "load": make_builtin_function("load", bf_load, exact(1, 1)),

    # Stack
    "pick": make_builtin_function("pick", bf_pick, exact(2, 2)),
    "roll": make_builtin_function("roll", bf_roll, exact(2, 1)),
    "drop": make_builtin_function("drop", bf_drop, exact(1, 0)),
    "clear": make_builtin_function("clear", bf_clear, inexact_type_spec(0)),

    # Numbers
    "hex": make_builtin_function("hex", bf_hex, exact(1, 1)),
    "int": make_builtin_function("int", bf_int, exact(1, 1)),
    "+": make_builtin_function("+", bf_add, exact(2, 1)),
    "-": make_builtin_function("-", bf_sub, exact(2, 1)),
    "*": make_builtin_function("*", bf_mul, exact(2, 1)),
    "/": make_builtin_function("/", bf_div, exact(2, 1)),
    "~": make_builtin_function("~", bf_neg, exact(1, 1)),
    "==": make_builtin_function("==", bf_eq, exact(2, 1)),
    "<": make_builtin_function("<", bf_lt, exact(2, 1)),
    ">": make_builtin_function(">", bf_gt, exact(2, 1)),

    # Dicts
    "dict": make_builtin_function("dict", bf_dict, exact(1, 1)),
    "get": make_builtin_function("get", bf_get, exact(2, 1)),
    "put": make_builtin_function("put", bf_put, exact(3, 1)),
    "keys": make_builtin_function("keys", bf_keys, exact(1, 1)),
}


def list_builtin_functions() -> List[str]:
  """List all data-level built-in names"""
  return list(BUILTIN_FUNCTIONS.keys())


# ============================================================================
# STANDARD LIBRARY SOURCE
# ============================================================================

# Run by every Shell before user code
STDLIB_SOURCE = """\
#! backforth standard library
dup = { pick 0 }
over = { pick 1 }
swap = { roll 1 }
rot = { roll 2 }
nip = { drop swap }
not = { == 0 }
exit = { bye }
stack = { echo capture }
loop = { eval expand { body } { eval body ; loop body } }
times = { eval expand { n body } { if > n 0 { eval body ; times - n 1 body } { } } }
interpret = { eval parse load }
repl = { loop { try { eval parse prompt "> " } { echo } } }
"""


if __name__ == "__main__":
  print("backforth Standard Library")
  print("=" * 30)
  print(f"Available functions: {len(BUILTIN_FUNCTIONS)}")
  for name, func in BUILTIN_FUNCTIONS.items():
    print(f"  {name}: {format_type_spec(func['type_spec'])}")
