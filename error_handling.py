"""
Error taxonomy for backforth
Parse-time errors carry a source location; evaluation-time errors carry the
offending word and are recovered by the Shell when a try region is active
"""

from typing import Any, Optional, Tuple


# ============================================================================
# SOURCE CONTEXT
# ============================================================================

def get_context_lines(source_text: str, line_num: int, col_num: int, context_lines: int = 2) -> str:
    """Get context lines around the error"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            context_parts.append(f"{'':6}{' ' * (col_num - 1)}^ here")

    return '\n'.join(context_parts)


def location_of(source_text: str, loc: int) -> Tuple[int, int]:
    """Translate a character offset into a (line, column) pair, both 1-based"""
    line = source_text.count('\n', 0, loc) + 1
    column = loc - (source_text.rfind('\n', 0, loc) + 1) + 1
    return line, column


# ============================================================================
# PARSE ERRORS
# ============================================================================

class ParseError(Exception):
    """Base class for errors raised while turning text into words"""
    message = "parse error"

    def __init__(self, line: int = 0, column: int = 0, context: str = ""):
        self.line = line
        self.column = column
        self.context = context
        super().__init__(self.message)

    @classmethod
    def at(cls, source_text: str, loc: int) -> 'ParseError':
        """Build the error for a character offset in source_text"""
        line, column = location_of(source_text, loc)
        return cls(line, column, get_context_lines(source_text, line, column))

    def describe(self) -> str:
        """Long form with location and source context, for the console"""
        if not self.line:
            return f"Parse error: {self.message}"
        result = f"Parse error at line {self.line}, column {self.column}: {self.message}"
        if self.context:
            result += f"\n{self.context}"
        return result

    def __str__(self) -> str:
        return self.message


class MissingOpenBrace(ParseError):
    message = "missing {"


class MissingCloseBrace(ParseError):
    message = "missing }"


class MissingEndQuote(ParseError):
    message = "missing \""


class BadHexLiteral(ParseError):
    message = "invalid hex format"


# ============================================================================
# EVALUATION ERRORS
# ============================================================================

class EvalError(Exception):
    """Base class for errors a running Shell can recover from with try"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StackUnderflow(EvalError):
    def __init__(self):
        super().__init__("stack underflow")


class CantUnderstand(EvalError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"can't understand {name}")


class DivideByZero(EvalError):
    def __init__(self):
        super().__init__("divided by zero")


class CantCoerce(EvalError):
    def __init__(self, word: Any, type_name: str):
        self.word = word
        self.type_name = type_name
        super().__init__(f"cannot convert {word} to {type_name}")


class WrongType(EvalError):
    def __init__(self, word: Any, type_name: str):
        self.word = word
        self.type_name = type_name
        super().__init__(f"type of {word} is not {type_name}")


class EmptyList(EvalError):
    def __init__(self):
        super().__init__("empty list")


class MacroFailed(EvalError):
    def __init__(self):
        super().__init__("bad arguments for macro")


class BadParse(EvalError):
    def __init__(self, error: ParseError):
        self.error = error
        super().__init__(str(error))


class IllegalStackEffect(EvalError):
    """Declared for interpreters that enforce exact signatures"""

    def __init__(self, input: int, output: int):
        self.input = input
        self.output = output
        super().__init__(f"illegal stack effect ({input} -- {output})")


# ============================================================================
# HOST ERRORS
# ============================================================================

class HostIOError(Exception):
    """A file or process failure; never caught by try"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.message = message
        self.cause = cause
        super().__init__(message)
