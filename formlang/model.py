"""The atoms every grammar is made of: terminals and variables.

Both are plain immutable values. Two terminals with the same text are the same
terminal, and the same goes for variables, which is what lets us use them as
dictionary keys all over the place.
"""

import dataclasses


@dataclasses.dataclass(frozen=True, order=True, slots=True)
class Terminal:
    """A symbol that shows up literally in the strings of a language."""

    value: str

    def __str__(self) -> str:
        return f"'{self.value}'"


@dataclasses.dataclass(frozen=True, order=True, slots=True)
class Variable:
    """A nonterminal. Within a grammar it names exactly one left-hand side."""

    name: str

    def __str__(self) -> str:
        return self.name
