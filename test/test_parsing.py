"""
Parsing tests for backforth
Tokens, block/line ordering, literals, errors and display
"""

import pytest
from parsing import (
  Grammar, parse, display, pretty_print, tokenize,
  make_atom, make_int, make_hex, make_str, make_list, make_dict
)
from error_handling import (
  ParseError, MissingOpenBrace, MissingCloseBrace, MissingEndQuote, BadHexLiteral
)


def atoms(*names):
  return [make_atom(name) for name in names]


class TestTokens:
  """Test the pyparsing token grammar"""

  @pytest.fixture
  def grammar(self):
    """Provide a fresh grammar instance for each test"""
    return Grammar()

  def test_words_and_braces(self, grammar):
    kinds = [kind for kind, _, _ in grammar.tokenize("{ a b }")]
    assert kinds == ["OPEN", "WORD", "WORD", "CLOSE"]

  def test_newline_and_semicolon_are_separators(self, grammar):
    kinds = [kind for kind, _, _ in grammar.tokenize("a\nb;c")]
    assert kinds == ["WORD", "NEWLINE", "WORD", "NEWLINE", "WORD"]

  def test_tokens_carry_offsets(self, grammar):
    offsets = [loc for _, _, loc in grammar.tokenize("ab  cd")]
    assert offsets == [0, 4]

  def test_comment_is_dropped(self):
    values = [value for _, value, _ in tokenize("a # all of this\nb")]
    assert values == ["a", "\n", "b"]


class TestOrdering:
  """Test how lines and blocks are laid out for the code stack"""

  def test_words_in_a_line_keep_order(self):
    assert parse("1 2 3") == [make_int(1), make_int(2), make_int(3)]

  def test_lines_are_reversed(self):
    assert parse("foo;bar;baz") == atoms("baz", "bar", "foo")
    assert parse("foo;bar;baz") == parse("baz bar foo")

  def test_newlines_separate_lines(self):
    assert parse("a b\nc") == atoms("c", "a", "b")

  def test_blank_lines_are_harmless(self):
    assert parse("\n\na\n\n") == atoms("a")

  def test_block_lines_are_reversed(self):
    assert parse("{ a ; b }") == [make_list(atoms("b", "a"))]

  def test_nested_blocks(self):
    expected = make_list([make_int(1), make_list([make_int(2)])])
    assert parse("{ 1 { 2 } }") == [expected]

  def test_empty_block(self):
    assert parse("{}") == [make_list()]

  def test_comment_newline_ends_the_line(self):
    assert parse("1 # one\n2") == [make_int(2), make_int(1)]
    assert parse("1 # one\n2") == parse("1\n2")
    assert parse("1 # one\n2") != parse("1 2")


class TestLiterals:
  """Test integer, hex, string and atom literals"""

  def test_integers(self):
    assert parse("-5 +5 0") == [make_int(-5), make_int(5), make_int(0)]

  def test_out_of_range_integer_is_an_atom(self):
    assert parse("2147483648") == atoms("2147483648")
    assert parse("-2147483648") == [make_int(-2147483648)]

  def test_sign_alone_is_an_atom(self):
    assert parse("- +") == atoms("-", "+")

  def test_hex(self):
    assert parse("#ff #FF #0") == [make_hex(255), make_hex(255), make_hex(0)]

  def test_hex_limits(self):
    assert parse("#ffffffff") == [make_hex(0xffffffff)]
    with pytest.raises(BadHexLiteral):
      parse("#100000000")

  def test_malformed_hex(self):
    with pytest.raises(BadHexLiteral):
      parse("#xyz")

  def test_shebang_and_bare_hash_are_comments(self):
    assert parse("#! backforth\n1 #\n2") == [make_int(2), make_int(1)]

  def test_strings_are_verbatim(self):
    assert parse('"hello world"') == [make_str("hello world")]
    assert parse('"a;b{c}"') == [make_str("a;b{c}")]
    assert parse('"back\\slash"') == [make_str("back\\slash")]

  def test_strings_may_span_lines(self):
    assert parse('"a\nb" x') == [make_str("a\nb"), make_atom("x")]

  def test_empty_string(self):
    assert parse('""') == [make_str("")]

  def test_equals_splits_words(self):
    assert parse("k=v") == atoms("k", "=", "v")
    assert parse("a == b") == atoms("a", "==", "b")


class TestParseErrors:
  """Test structural errors and their locations"""

  def test_unbalanced_close(self):
    with pytest.raises(MissingOpenBrace):
      parse("1 }")

  def test_unclosed_open(self):
    with pytest.raises(MissingCloseBrace) as excinfo:
      parse("x { 1 { 2 }")
    assert (excinfo.value.line, excinfo.value.column) == (1, 3)

  def test_unterminated_string(self):
    with pytest.raises(MissingEndQuote):
      parse('echo "abc')

  def test_messages(self):
    assert str(MissingOpenBrace()) == "missing {"
    assert str(MissingCloseBrace()) == "missing }"
    assert str(MissingEndQuote()) == "missing \""
    assert str(BadHexLiteral()) == "invalid hex format"

  def test_location_and_context(self):
    with pytest.raises(ParseError) as excinfo:
      parse("1\n  }")
    error = excinfo.value
    assert (error.line, error.column) == (2, 3)
    description = error.describe()
    assert "line 2, column 3" in description
    assert "^ here" in description


class TestDisplay:
  """Test display forms and pretty printing"""

  def test_scalar_display(self):
    assert str(make_int(-3)) == "-3"
    assert str(make_hex(255)) == "#ff"
    assert str(make_str("hi")) == '"hi"'
    assert str(make_atom("dup")) == "dup"

  def test_list_display(self):
    assert str(make_list()) == "{}"
    assert str(make_list([make_int(1), make_atom("a")])) == "{ 1 a }"

  def test_dict_display(self):
    assert str(make_dict({})) == "dict {}"
    entries = {"a": make_int(1), "b": make_str("x")}
    assert str(make_dict(entries)) == 'dict { a = 1 ; b = "x" }'

  def test_round_trip(self):
    source = 'x = { 1 "two" #ff { nested ; lines } }\nif == 1 2 { a } { b }'
    words = parse(source)
    assert parse(display(words)) == words

  def test_pretty_print_flat_list(self):
    assert pretty_print(make_list([make_int(1), make_int(2)])) == "{ 1 2 }"

  def test_pretty_print_nested_list(self):
    word = make_list([make_atom("a"), make_list([make_atom("b")]), make_atom("c")])
    assert pretty_print(word) == "{\n  a\n  { b }\n  c\n}"


class TestEquality:
  """Test structural word equality"""

  def test_variants_never_equal(self):
    assert make_int(1) != make_hex(1)
    assert make_str("a") != make_atom("a")

  def test_lists_compare_items(self):
    assert make_list([make_int(1)]) == make_list([make_int(1)])
    assert make_list([make_int(1)]) != make_list([make_int(2)])

  def test_dict_equality_is_containment(self):
    small = make_dict({"a": make_int(1)})
    large = make_dict({"a": make_int(1), "b": make_int(2)})
    assert small == large
    assert large != small
