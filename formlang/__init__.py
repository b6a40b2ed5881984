"""Rewrite EBNF grammars into BNF, and recognize strings with CYK.

The two halves don't depend on each other:

- `normalize` turns extended productions (with `?`, `*` and `+`) into plain BNF,
  minting helper variables for the repetitions. Build the productions with the
  helpers in `ebnf`.

- `chomsky` holds grammars in Chomsky Normal Form and decides membership with
  the CYK algorithm.

Getting from the output of the first to the input of the second (the usual CNF
construction) is left to the caller.
"""
from . import bnf
from . import ebnf
from . import model

from .model import Terminal, Variable
from .normalize import (
    ConversionResult,
    NormalizationInvariantError,
    VariableAllocator,
    VariableSpaceExhausted,
    convert_to_bnf,
    normalize_grammar,
)
from .chomsky import ChomskyGrammar, CykTable
