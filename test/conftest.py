"""
Test configuration for Haskish tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter


SAMPLE_PROGRAM = """
-- Recursion with an exact-match base clause
factorial 0 = 1
factorial n = n * factorial (n - 1)

double x = x * 2
isEven x = mod x 2 == 0

-- List recursion with cons patterns
sumList [] = 0
sumList (x:xs) = x + sumList xs

describe 0 = "zero"
describe n = "other"

-- Guards
classify n
  | n < 0 = "negative"
  | n == 0 = "zero"
  | otherwise = "positive"

numbers = [1, 2, 3, 4]
total = sumList numbers
"""


@pytest.fixture
def interpreter():
  """A fresh interpreter with nothing loaded"""
  return create_interpreter()


@pytest.fixture
def loaded(interpreter):
  """An interpreter with the sample program loaded"""
  result = interpreter.load(SAMPLE_PROGRAM)
  assert result['ok'], result
  return interpreter
