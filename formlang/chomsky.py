"""Grammars in Chomsky Normal Form, and the CYK recognizer that runs on them.

In CNF every production is either a single terminal (`A -> 'a'`) or exactly
two variables (`A -> B C`). That restriction is what makes CYK work: any
derivation of a string of length L > 1 must split it into two non-empty
pieces, one for each variable, so we can build up the set of variables that
derive each substring from the sets for shorter substrings.

The table we build is triangular. Row `i` is for substrings of length `i + 1`,
and cell `p` in that row holds every variable that derives the substring of
that length starting at position `p`. So the first row has one cell per input
symbol and the last row has a single cell, for the whole input. The input is
in the language iff the start variable is in that last cell.

We don't check that the grammar is in CNF beyond the shape of the production
objects; building a CNF grammar from something else is somebody else's job.
"""

import dataclasses
import itertools
import logging
import typing

from . import model


cyk_log = logging.getLogger("formlang.cyk")


class ChomskyProduction:
    """The right-hand side of a CNF rule."""

    pass


@dataclasses.dataclass(frozen=True)
class Terminal(ChomskyProduction):
    symbol: model.Terminal


@dataclasses.dataclass(frozen=True)
class Sequence(ChomskyProduction):
    first: model.Variable
    second: model.Variable


Cell = frozenset[model.Variable]
Row = tuple[Cell, ...]

Word = typing.Iterable[model.Terminal | str]


@dataclasses.dataclass(frozen=True)
class CykTable:
    """The finished table for one word.

    `rows[i][p]` is the set of variables deriving the `i + 1` symbols starting
    at position `p`. Rows and cells are tuples and frozensets, so the table
    can't be changed once built.
    """

    rows: tuple[Row, ...]

    @property
    def length(self) -> int:
        """The length of the word this table was built for."""
        return len(self.rows)

    def cell(self, span_length: int, start: int) -> Cell:
        return self.rows[span_length - 1][start]

    def derives(self, variable: model.Variable) -> bool:
        """True if `variable` derives the whole word."""
        return variable in self.rows[-1][0]

    def format(self) -> str:
        """Format the table so pretty, shortest spans on top."""

        def format_cell(cell: Cell) -> str:
            return "{" + ",".join(str(v) for v in sorted(cell)) + "}"

        cells = [[format_cell(cell) for cell in row] for row in self.rows]
        width = max(len(c) for row in cells for c in row)

        return "\n".join(
            "{index: <4} | {cells}".format(
                index=index + 1,
                cells=" ".join(f"{c: <{width}}" for c in row),
            )
            for index, row in enumerate(cells)
        )


def _as_terminal(symbol: model.Terminal | str) -> model.Terminal:
    if isinstance(symbol, model.Terminal):
        return symbol
    return model.Terminal(symbol)


class ChomskyGrammar:
    """A grammar in Chomsky Normal Form.

    `rules` maps each variable to its productions. The order of productions
    doesn't matter and neither do duplicates. A variable that shows up in a
    `Sequence` but has no rules of its own is fine; it just never derives
    anything. The same goes for the start variable.

    When the grammar is constructed we index the rules two ways: by the
    terminal they produce, and by the pair of variables they produce. Every
    lookup while filling in the table is then a single dictionary hit instead
    of a scan over all the rules.
    """

    start: model.Variable
    rules: dict[model.Variable, list[ChomskyProduction]]

    _terminal_producers: dict[model.Terminal, Cell]
    _sequence_producers: dict[tuple[model.Variable, model.Variable], Cell]

    def __init__(
        self,
        start: model.Variable,
        rules: typing.Mapping[model.Variable, typing.Iterable[ChomskyProduction]],
    ):
        if len(rules) == 0:
            raise ValueError("A Chomsky grammar needs at least one rule")

        self.start = start
        self.rules = {variable: list(productions) for variable, productions in rules.items()}

        by_terminal: dict[model.Terminal, set[model.Variable]] = {}
        by_sequence: dict[tuple[model.Variable, model.Variable], set[model.Variable]] = {}
        for variable, productions in self.rules.items():
            for production in productions:
                match production:
                    case Terminal(symbol=symbol):
                        by_terminal.setdefault(symbol, set()).add(variable)
                    case Sequence(first=first, second=second):
                        by_sequence.setdefault((first, second), set()).add(variable)
                    case _:
                        raise ValueError(
                            f"{variable} -> {production!r} is not in Chomsky Normal Form"
                        )

        self._terminal_producers = {k: frozenset(v) for k, v in by_terminal.items()}
        self._sequence_producers = {k: frozenset(v) for k, v in by_sequence.items()}

    def producers_of_terminal(self, terminal: model.Terminal) -> Cell:
        """The variables with a rule `V -> terminal`."""
        return self._terminal_producers.get(terminal, frozenset())

    def producers_of_sequence(self, first: model.Variable, second: model.Variable) -> Cell:
        """The variables with a rule `V -> first second`."""
        return self._sequence_producers.get((first, second), frozenset())

    def build_table(self, word: Word) -> CykTable:
        """Build the CYK table for `word`.

        Raises ValueError if the word is empty: CNF grammars can't derive the
        empty string, and there is no table for it anyway.
        """
        terminals = [_as_terminal(symbol) for symbol in word]
        if len(terminals) == 0:
            raise ValueError("Cannot recognize the empty word")

        n = len(terminals)
        rows: list[Row] = [tuple(self.producers_of_terminal(terminal) for terminal in terminals)]

        for row_index in range(1, n):
            span_length = row_index + 1
            row: list[Cell] = []
            for start in range(n - span_length + 1):
                cell: set[model.Variable] = set()
                # The left part covers `split` symbols, the right part the
                # rest of the span.
                for split in range(1, span_length):
                    left = rows[split - 1][start]
                    right = rows[span_length - split - 1][start + split]
                    for first, second in itertools.product(left, right):
                        cell.update(self.producers_of_sequence(first, second))
                row.append(frozenset(cell))
            rows.append(tuple(row))

        return CykTable(tuple(rows))

    def recognize(self, word: Word) -> bool:
        """Decide whether `word` is in the language of this grammar.

        Items of `word` may be `Terminal`s or plain strings; a plain string is
        one terminal, so `grammar.recognize("abc")` checks the three-symbol
        word 'a' 'b' 'c'.
        """
        table = self.build_table(word)
        result = table.derives(self.start)

        if cyk_log.isEnabledFor(logging.DEBUG):
            cyk_log.debug(f"table for {table.length} symbols:\n{table.format()}")
            cyk_log.debug(f"{'accepted' if result else 'rejected'} (start {self.start})")

        return result

    def __contains__(self, word: Word) -> bool:
        return self.recognize(word)
