"""
backforth Semantics - stack effects and bindings
Pure functions over immutable dictionaries; nothing here executes code
"""

from typing import Dict, Iterable, Optional

from parsing import Word, ATOM


# ============================================================================
# DATA STRUCTURES (Immutable Dictionaries)
# ============================================================================

def make_type_spec(input: int, output: int, exact: bool = True) -> Dict:
  """Create a stack effect: words consumed, words produced"""
  return {
      'input': input,
      'output': output,
      'exact': exact
  }


def literal_type_spec() -> Dict:
  """Literals consume nothing and push themselves"""
  return make_type_spec(0, 1)


def inexact_type_spec(input: int) -> Dict:
  """Effect of a word whose output cannot be known ahead of time"""
  return make_type_spec(input, 0, exact=False)


def make_primitive(builtin: Dict) -> Dict:
  """Create a binding to a built-in function record"""
  return {
      'kind': 'primitive',
      'builtin': builtin
  }


def make_interpreted(type_spec: Dict, word: Word) -> Dict:
  """Create a binding to a user-defined word"""
  return {
      'kind': 'interpreted',
      'type_spec': type_spec,
      'word': word
  }


def is_primitive(binding: Dict) -> bool:
  return binding['kind'] == 'primitive'


def binding_type_spec(binding: Dict) -> Dict:
  """Stack effect stored with a binding"""
  if is_primitive(binding):
    return binding['builtin']['type_spec']
  return binding['type_spec']


def format_type_spec(type_spec: Dict) -> str:
  """Render as ( input -- output ), marking inexact effects with '?'"""
  marker = "" if type_spec['exact'] else "?"
  return f"( {type_spec['input']} -- {type_spec['output']}{marker} )"


# ============================================================================
# INFERENCE (Pure Functions)
# ============================================================================

def merge_type_spec(current: Dict, following: Dict) -> Dict:
  """
  Compose two effects, the second running after the first

  Inputs the second needs beyond what the first produced are taken from
  below, and become inputs of the composition.
  """
  input = current['input']
  output = current['output']

  if output < following['input']:
    input += following['input'] - output
    output = 0
  else:
    output -= following['input']

  return make_type_spec(
      input,
      output + following['output'],
      current['exact'] and following['exact']
  )


def get_type(word: Word, dictionary: Dict[str, Dict]) -> Optional[Dict]:
  """Effect of running a single word, or None if it names nothing"""
  if word.type != ATOM:
    return literal_type_spec()

  binding = dictionary.get(word.value)
  if binding is None:
    return None
  return binding_type_spec(binding)


def infer_type(body: Iterable[Word], dictionary: Dict[str, Dict]) -> Dict:
  """
  Infer the stack effect of a definition body without running it

  Words are visited in the order they execute (last word first). Inference
  stops at the first word whose effect is unknown or inexact; the result is
  then inexact and only the inputs found so far are recorded.
  """
  spec = make_type_spec(0, 0)

  for word in reversed(tuple(body)):
    following = get_type(word, dictionary)
    if following is None:
      spec = {**spec, 'exact': False}
    else:
      spec = merge_type_spec(spec, following)

    if not spec['exact']:
      break

  return spec
