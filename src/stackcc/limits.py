"""
Nesting Limits
==============

The parser and code generator are recursive, so how deeply a program may
nest is bounded by the interpreter's recursion limit. This module fixes
that bound explicitly:

- MAX_NESTING_DEPTH caps parentheses, unary operators, chained assignments
  and nested statements. The parser rejects deeper programs with a located
  NestingTooDeepError.
- recursion_headroom() raises the recursion limit for the duration of a
  compile stage so that any program within MAX_NESTING_DEPTH fits.

Long operator chains such as 1+1+...+1 do not nest and are not limited.
"""

import sys
from contextlib import contextmanager

MAX_NESTING_DEPTH = 512

# Upper bound on Python frames per nesting level in any compile stage
FRAMES_PER_LEVEL = 16

# Frames for the caller (CLI, test runner) below the compiler
BASE_FRAMES = 1000


@contextmanager
def recursion_headroom():
    """
    Temporarily raise the recursion limit to fit MAX_NESTING_DEPTH.

    The previous limit is restored on exit. A limit that is already
    higher is left alone.
    """
    previous = sys.getrecursionlimit()
    sys.setrecursionlimit(max(previous, MAX_NESTING_DEPTH * FRAMES_PER_LEVEL + BASE_FRAMES))
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)
