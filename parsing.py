"""
backforth Parser
Turns source text into a flat sequence of Words, grouping statements by
block and line so that popping from the tail runs them in reading order
"""

from typing import List, Dict, Any, Iterable, Tuple
from dataclasses import dataclass
import re

# Import pyparsing with error handling
try:
    from pyparsing import (
        Literal, QuotedString, Regex, ZeroOrMore, StringEnd, ParseException
    )
except ImportError:
    raise ImportError("pyparsing library not found. Install with: pip install pyparsing")

from error_handling import (
    ParseError, MissingOpenBrace, MissingCloseBrace, MissingEndQuote, BadHexLiteral
)


# ============================================================================
# WORD MODEL
# ============================================================================

ATOM = "Atom"
INT = "Int"
HEX = "Hex"
STR = "Str"
LIST = "List"
DICT = "Dict"

I32_MIN = -2 ** 31
I32_MAX = 2 ** 31 - 1
U32_MAX = 2 ** 32 - 1


@dataclass(frozen=True, eq=False)
class Word:
    """A backforth value; also the unit of code

    List values are tuples of Words and Dict values are dicts that are never
    mutated after construction, so Words can be shared between stacks and
    recovery snapshots without copying.
    """
    type: str
    value: Any

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Word) or self.type != other.type:
            return False
        if self.type == DICT:
            # containment, not equivalence: every entry of self must be in other
            for key, value in self.value.items():
                if key not in other.value or other.value[key] != value:
                    return False
            return True
        return self.value == other.value

    def __str__(self) -> str:
        if self.type == HEX:
            return f"#{self.value:x}"
        if self.type == STR:
            return f"\"{self.value}\""
        if self.type == LIST:
            if not self.value:
                return "{}"
            return "{ " + display(self.value) + " }"
        if self.type == DICT:
            if not self.value:
                return "dict {}"
            entries = " ; ".join(f"{key} = {value}" for key, value in self.value.items())
            return "dict { " + entries + " }"
        return str(self.value)


def make_atom(name: str) -> Word:
    return Word(ATOM, name)


def make_int(value: int) -> Word:
    return Word(INT, value)


def make_hex(value: int) -> Word:
    return Word(HEX, value)


def make_str(text: str) -> Word:
    return Word(STR, text)


def make_list(items: Iterable[Word] = ()) -> Word:
    return Word(LIST, tuple(items))


def make_dict(entries: Dict[str, Word]) -> Word:
    return Word(DICT, dict(entries))


def make_bool(flag: bool) -> Word:
    """Booleans are the integers 1 and 0"""
    return make_int(1 if flag else 0)


# ============================================================================
# TOKEN GRAMMAR
# ============================================================================

INT_PATTERN = re.compile(r'[+-]?[0-9]+\Z')
HEX_PATTERN = re.compile(r'[0-9a-fA-F]+\Z')


class Grammar:
    """Token grammar for backforth using pyparsing

    Every character of the input belongs to some token, so the grammar itself
    never rejects text; structural errors are found while assembling blocks.
    """

    def __init__(self):
        self._setup_grammar()

    def _setup_grammar(self):
        """Setup the token alternatives, tagging each as (KIND, text, offset)"""

        def tag(kind: str):
            return lambda s, loc, t: (kind, t[0], loc)

        # Newlines are statement separators, so only other blanks are skipped
        blank = Regex(r'[^\S\n]+').suppress()

        newline = Literal('\n').set_parse_action(tag("NEWLINE"))
        separator = Literal(';').set_parse_action(tag("NEWLINE"))
        open_brace = Literal('{').set_parse_action(tag("OPEN"))
        close_brace = Literal('}').set_parse_action(tag("CLOSE"))

        # Strings are verbatim: no escapes, may span lines
        string_literal = QuotedString(
            '"', multiline=True, convert_whitespace_escapes=False
        ).set_parse_action(tag("STRING"))
        open_string = Regex(r'"[^"]*\Z').set_parse_action(tag("OPEN_STRING"))

        # A lone '#' or a word starting with '#!' comments out the rest of the line
        comment = Regex(r'#(?=[\s{};=!]|\Z)[^\n]*').suppress()

        # Runs of '=' stand alone; anything else runs to a blank, brace, ';' or '='
        word = Regex(r'=+|[^\s{};"=][^\s{};=]*').set_parse_action(tag("WORD"))

        token = (
            newline | separator | open_brace | close_brace |
            string_literal | open_string | comment | word
        )

        self.program = (ZeroOrMore(blank | token) + StringEnd()).leave_whitespace()

    def tokenize(self, text: str) -> List[Tuple[str, str, int]]:
        """Split text into tagged tokens"""
        try:
            return list(self.program.parse_string(text, parse_all=True))
        except ParseException as e:
            raise ParseError.at(text, e.loc) from e


_grammar = Grammar()


def tokenize(text: str) -> List[Tuple[str, str, int]]:
    return _grammar.tokenize(text)


# ============================================================================
# BLOCK ASSEMBLY
# ============================================================================

class BlockStack:
    """Open blocks, each a stack of lines, each line a list of Words"""

    def __init__(self, source_text: str):
        self.source_text = source_text
        self.blocks: List[List[List[Word]]] = []
        self.starts: List[int] = []

    def push(self, loc: int = 0):
        self.blocks.append([[]])
        self.starts.append(loc)

    def pop(self, loc: int):
        """Close the innermost block, emitting it as a List into its parent"""
        words = self.flatten(loc)
        self.emit(make_list(words), loc)

    def newline(self, loc: int):
        if not self.blocks:
            raise MissingOpenBrace.at(self.source_text, loc)
        self.blocks[-1].append([])

    def emit(self, word: Word, loc: int):
        if not self.blocks:
            raise MissingOpenBrace.at(self.source_text, loc)
        self.blocks[-1][-1].append(word)

    def flatten(self, loc: int) -> List[Word]:
        """Remove the innermost block, joining its lines last line first"""
        if not self.blocks:
            raise MissingOpenBrace.at(self.source_text, loc)
        block = self.blocks.pop()
        self.starts.pop()
        words = []
        for line in reversed(block):
            words.extend(line)
        return words


def read_word(text: str, source_text: str, loc: int) -> Word:
    """Classify a bare word as a hex literal, an integer or an atom"""
    if text.startswith('#'):
        digits = text[1:]
        if not HEX_PATTERN.match(digits) or int(digits, 16) > U32_MAX:
            raise BadHexLiteral.at(source_text, loc)
        return make_hex(int(digits, 16))

    if INT_PATTERN.match(text) and I32_MIN <= int(text) <= I32_MAX:
        return make_int(int(text))

    return make_atom(text)


def parse(text: str) -> List[Word]:
    """Parse backforth source into the sequence loaded onto the code stack"""
    stack = BlockStack(text)
    stack.push()

    for kind, value, loc in tokenize(text):
        if kind == "OPEN":
            stack.push(loc)
        elif kind == "CLOSE":
            stack.pop(loc)
        elif kind == "NEWLINE":
            stack.newline(loc)
        elif kind == "STRING":
            stack.emit(make_str(value), loc)
        elif kind == "OPEN_STRING":
            raise MissingEndQuote.at(text, loc)
        else:
            stack.emit(read_word(value, text, loc), loc)

    if len(stack.blocks) > 1:
        raise MissingCloseBrace.at(text, stack.starts[-1])
    return stack.flatten(len(text))


def parse_file(filepath: str) -> List[Word]:
    """Parse a backforth source file"""
    with open(filepath, 'r', encoding='utf-8') as f:
        content = f.read()
    return parse(content)


# ============================================================================
# DISPLAY
# ============================================================================

def display(words) -> str:
    """Render words as source; parse(display(words)) gives the words back"""
    return " ".join(str(word) for word in words)


def pretty_print(word: Word, indent: int = 0) -> str:
    """Pretty print a word for debugging, one nested block per level"""
    pad = "  " * indent
    if word.type != LIST or not any(item.type == LIST for item in word.value):
        return pad + str(word)

    lines = [pad + "{"]
    run = []
    for item in word.value:
        if item.type == LIST:
            if run:
                lines.append(pad + "  " + " ".join(run))
                run = []
            lines.append(pretty_print(item, indent + 1))
        else:
            run.append(str(item))
    if run:
        lines.append(pad + "  " + " ".join(run))
    lines.append(pad + "}")
    return "\n".join(lines)


if __name__ == "__main__":
    test_program = """
    # factorial
    fact = { if > 2 pick 2 { drop ; 1 } { * fact + -1 dup } }
    fact 5
    """
    try:
        words = parse(test_program)
        print("Program parse result:")
        print(pretty_print(make_list(words)))
    except ParseError as e:
        print(e.describe())
