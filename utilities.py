"""
Utilities module for the backforth interpreter
Word coercions and arithmetic helpers shared by the built-ins
"""

from typing import Dict, Iterable, List, Tuple

from parsing import (
  Word, ATOM, INT, HEX, STR, LIST, DICT, I32_MAX,
  make_list
)
from error_handling import WrongType, CantCoerce, DivideByZero


# Names used in WrongType / CantCoerce messages
TYPE_NAMES = {
  ATOM: "atom",
  INT: "integer",
  HEX: "hex",
  STR: "string",
  LIST: "list",
  DICT: "dict",
}


# ==================== STRICT EXTRACTION ====================

def expect_type(word: Word, type_tag: str):
  """
  Extract the payload of a word of a known variant

  Args:
    word: Word to inspect
    type_tag: Expected variant (ATOM, INT, ...)

  Returns:
    The word's value

  Raises:
    WrongType if the word is another variant
  """
  if word.type != type_tag:
    raise WrongType(word, TYPE_NAMES[type_tag])
  return word.value


def as_atom(word: Word) -> str:
  return expect_type(word, ATOM)


def as_int(word: Word) -> int:
  return expect_type(word, INT)


def as_str(word: Word) -> str:
  return expect_type(word, STR)


def as_list(word: Word) -> Tuple[Word, ...]:
  return expect_type(word, LIST)


def as_dict(word: Word) -> Dict[str, Word]:
  return expect_type(word, DICT)


def as_bool(word: Word) -> bool:
  """Only integers are truth values; zero is false"""
  return as_int(word) != 0


# ==================== COERCION ====================

def into_int(word: Word) -> int:
  """
  Coerce a word to a signed integer

  Args:
    word: Int, or Hex no larger than the largest i32

  Returns:
    Python int in i32 range

  Raises:
    CantCoerce for any other word
  """
  if word.type == INT:
    return word.value
  if word.type == HEX and word.value <= I32_MAX:
    return word.value
  raise CantCoerce(word, TYPE_NAMES[INT])


def into_hex(word: Word) -> int:
  """Coerce a word to an unsigned integer (Hex, or a non-negative Int)"""
  if word.type == HEX:
    return word.value
  if word.type == INT and word.value >= 0:
    return word.value
  raise CantCoerce(word, TYPE_NAMES[HEX])


def into_string(word: Word) -> str:
  """Strings give their text, everything else its display form"""
  if word.type == STR:
    return word.value
  return str(word)


def into_list(word: Word) -> Tuple[Word, ...]:
  """Lists give their items, anything else becomes a one-item list"""
  if word.type == LIST:
    return word.value
  return (word,)


def arithmetic_operand(word: Word) -> int:
  """
  Read an operand for the integer operators

  Args:
    word: Int, or a Hex that fits in an i32

  Returns:
    Python int

  Raises:
    WrongType for non-numeric words, CantCoerce for oversized Hex words
  """
  if word.type not in (INT, HEX):
    raise WrongType(word, TYPE_NAMES[INT])
  return into_int(word)


# ==================== I32 ARITHMETIC ====================

def wrap_i32(value: int) -> int:
  """Wrap an unbounded int into two's complement i32 range"""
  return (value + 2 ** 31) % 2 ** 32 - 2 ** 31


def truncating_div(x: int, y: int) -> int:
  """Integer division rounding toward zero"""
  if y == 0:
    raise DivideByZero()
  quotient = abs(x) // abs(y)
  return quotient if (x < 0) == (y < 0) else -quotient


# ==================== TEMPLATES ====================

def expand_word(word: Word, bindings: Dict[str, Word]) -> Word:
  """
  Substitute bound atoms throughout a word

  Args:
    word: Template; atoms named in bindings are replaced
    bindings: Map of atom name to replacement word

  Returns:
    A new word with the same structure; substituted values are not expanded
    again

  Examples:
    expand_word({ + x 1 }, {"x": 41}) -> { + 41 1 }
  """
  if word.type == ATOM:
    return bindings.get(word.value, word)
  if word.type == LIST:
    return make_list(expand_word(item, bindings) for item in word.value)
  return word


def flatten_words(words: Iterable[Word], separator: str) -> str:
  """Join the display forms of words"""
  return separator.join(str(word) for word in words)


def split_lines(text: str) -> List[str]:
  """Split on newlines, dropping a trailing '\\r' and a final empty line"""
  lines = text.split('\n')
  if lines and lines[-1] == '':
    lines.pop()
  return [line[:-1] if line.endswith('\r') else line for line in lines]
