"""
Test configuration for backforth tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import HostIO, create_shell


class RecordingIO(HostIO):
  """HostIO that feeds prompt from a list and records everything echoed"""

  def __init__(self, inputs=None, files=None, outputs=None):
    self.inputs = list(inputs or [])
    self.files = dict(files or {})
    self.outputs = dict(outputs or {})
    self.echoed = []
    self.prompts = []
    self.commands = []

  def prompt(self, text):
    self.prompts.append(text)
    if not self.inputs:
      raise EOFError()
    return self.inputs.pop(0)

  def echo(self, text):
    self.echoed.append(text)

  def load(self, path):
    if path in self.files:
      return self.files[path]
    return super().load(path)

  def command(self, name, args):
    self.commands.append([name] + list(args))
    return self.outputs.get(name, "")


@pytest.fixture
def io():
  """Provide a fresh recording collaborator for each test"""
  return RecordingIO()


@pytest.fixture
def shell(io):
  """Provide a fresh Shell, standard library loaded, wired to the recording io"""
  return create_shell(io=io)
