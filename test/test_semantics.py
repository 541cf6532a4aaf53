"""
Stack-effect tests for backforth
"""

import pytest
from parsing import parse, make_atom, make_int
from semantics import (
  make_type_spec, literal_type_spec, merge_type_spec, format_type_spec,
  get_type, infer_type, make_interpreted, make_primitive, binding_type_spec
)
from interpreter import create_builtin_dictionary


class TestMerge:
  """Test composition of stack effects"""

  def test_output_feeds_next_input(self):
    merged = merge_type_spec(make_type_spec(0, 2), make_type_spec(2, 1))
    assert merged == make_type_spec(0, 1)

  def test_deficit_becomes_input(self):
    merged = merge_type_spec(make_type_spec(0, 1), make_type_spec(2, 1))
    assert merged == make_type_spec(1, 1)

  def test_inexact_is_sticky(self):
    merged = merge_type_spec(make_type_spec(0, 1), make_type_spec(1, 0, exact=False))
    assert merged['exact'] is False

  def test_format(self):
    assert format_type_spec(make_type_spec(2, 1)) == "( 2 -- 1 )"
    assert format_type_spec(make_type_spec(1, 0, exact=False)) == "( 1 -- 0? )"


class TestInference:
  """Test inference of definition bodies"""

  @pytest.fixture
  def dictionary(self):
    """Provide a dictionary holding only the built-ins"""
    return create_builtin_dictionary()

  def test_literal(self, dictionary):
    assert get_type(make_int(7), dictionary) == literal_type_spec()

  def test_unknown_atom(self, dictionary):
    assert get_type(make_atom("nope"), dictionary) is None

  def test_empty_body(self, dictionary):
    assert infer_type([], dictionary) == make_type_spec(0, 0)

  def test_dup(self, dictionary):
    assert infer_type(parse("pick 0"), dictionary) == make_type_spec(1, 2)

  def test_arithmetic(self, dictionary):
    assert infer_type(parse("+ 1"), dictionary) == make_type_spec(1, 1)
    assert infer_type(parse("* + 1 2"), dictionary) == make_type_spec(1, 1)

  def test_unknown_atom_stops_inference(self, dictionary):
    spec = infer_type(parse("+ mystery 1"), dictionary)
    assert spec['exact'] is False
    assert spec['input'] == 0

  def test_inexact_builtin_stops_inference(self, dictionary):
    spec = infer_type(parse("drop drop eval"), dictionary)
    assert spec == make_type_spec(1, 0, exact=False)

  def test_interpreted_bindings_contribute(self, dictionary):
    dictionary["dup"] = make_interpreted(make_type_spec(1, 2), make_atom("x"))
    assert infer_type(parse("+ dup"), dictionary) == make_type_spec(1, 1)

  def test_binding_type_spec(self, dictionary):
    assert binding_type_spec(dictionary["pop"]) == make_type_spec(1, 2)
    record = {'type_spec': make_type_spec(3, 1)}
    assert binding_type_spec(make_primitive(record)) == make_type_spec(3, 1)
