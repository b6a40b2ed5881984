"""Extended Backus-Naur productions.

This is the BNF algebra plus two repetition operators, zero-or-more (`P*`) and
one-or-more (`P+`). These are what grammar authors actually like to write; the
`normalize` module turns them back into plain BNF.

You can build trees directly from the node classes, but the helper functions
read better:

    # digits -> '0' | '1' ...
    number = seq(opt(term("-")), one_or_more(var("D")))

    # list -> item (',' item)*
    items = seq(var("I"), zero_or_more(term(","), var("I")))

and `|` and `+` work on productions too:

    sign = term("+") | term("-")

Every node is a frozen dataclass, so structurally identical subtrees are equal
and hash the same. The normalizer depends on that: it uses repeated subtrees as
cache keys so that `X*` written twice only ever gets one helper variable.
"""

import dataclasses
import typing

from . import model


class Production:
    """The right-hand side of an EBNF rule, or some part of one."""

    def __str__(self) -> str:
        return render(self)

    def __or__(self, other: "Production") -> "Production":
        return alt(self, other)

    def __add__(self, other: "Production") -> "Production":
        return seq(self, other)

    def variables(self) -> typing.Iterator[model.Variable]:
        """Yield every variable referenced in this tree, in order, with
        repeats.
        """
        match self:
            case Variable(symbol=symbol):
                yield symbol
            case Optional(child=child) | RepetitionZero(child=child) | RepetitionOne(child=child):
                yield from child.variables()
            case Alternative(children=children) | Sequence(children=children):
                for child in children:
                    yield from child.variables()
            case _:
                pass

    def repetition_count(self) -> int:
        """The number of `*` and `+` operators in this tree."""
        match self:
            case RepetitionZero(child=child) | RepetitionOne(child=child):
                return 1 + child.repetition_count()
            case Optional(child=child):
                return child.repetition_count()
            case Alternative(children=children) | Sequence(children=children):
                return sum(child.repetition_count() for child in children)
            case _:
                return 0


@dataclasses.dataclass(frozen=True)
class Epsilon(Production):
    """Matches the empty string."""

    pass


EPSILON = Epsilon()


@dataclasses.dataclass(frozen=True)
class Terminal(Production):
    symbol: model.Terminal


@dataclasses.dataclass(frozen=True)
class Variable(Production):
    symbol: model.Variable


@dataclasses.dataclass(frozen=True)
class Optional(Production):
    """`child?`: zero or one copy of the child."""

    child: Production


@dataclasses.dataclass(frozen=True)
class RepetitionZero(Production):
    """`child*`: zero or more copies of the child."""

    child: Production


@dataclasses.dataclass(frozen=True)
class RepetitionOne(Production):
    """`child+`: one or more copies of the child."""

    child: Production


@dataclasses.dataclass(frozen=True)
class Alternative(Production):
    """Matches if any one of the children matches."""

    children: tuple[Production, ...]


@dataclasses.dataclass(frozen=True)
class Sequence(Production):
    """Matches the children one after another."""

    children: tuple[Production, ...]


def render(production: Production) -> str:
    """Render a production in the usual EBNF notation.

    This is purely structural: children are rendered and glued together with
    the operator of their parent, and no parentheses are added. It's meant for
    reading in logs and error messages, so don't go parsing it.
    """
    match production:
        case Epsilon():
            return "eps"
        case Terminal(symbol=symbol) | Variable(symbol=symbol):
            return str(symbol)
        case Optional(child=child):
            return f"{render(child)}?"
        case RepetitionZero(child=child):
            return f"{render(child)}*"
        case RepetitionOne(child=child):
            return f"{render(child)}+"
        case Alternative(children=children):
            return " | ".join(render(child) for child in children)
        case Sequence(children=children):
            return " ".join(render(child) for child in children)
        case _:
            raise Exception(f"unknown production type {production!r}")


###############################################################################
# Sugar for constructing productions
###############################################################################
def term(value: str) -> Terminal:
    return Terminal(model.Terminal(value))


def var(name: str) -> Variable:
    return Variable(model.Variable(name))


def _group(parts: tuple[Production, ...]) -> Production:
    if len(parts) == 0:
        raise ValueError("Expected at least one production")
    if len(parts) == 1:
        return parts[0]
    return Sequence(parts)


def alt(*args: Production) -> Alternative:
    """A production that matches one of a series of alternatives.

    Any argument that is itself an alternative is flattened into the result,
    so `a | b | c` and `alt(a, alt(b, c))` are both one three-way alternative
    rather than a pair of pairs.
    """
    children: list[Production] = []
    for production in args:
        if isinstance(production, Alternative):
            children.extend(production.children)
        else:
            children.append(production)
    return Alternative(tuple(children))


def seq(*args: Production) -> Sequence:
    """A production that matches a sequence of productions. Nested sequences
    are flattened, like alternatives are in `alt`.
    """
    children: list[Production] = []
    for production in args:
        if isinstance(production, Sequence):
            children.extend(production.children)
        else:
            children.append(production)
    return Sequence(tuple(children))


def opt(*args: Production) -> Optional:
    """Mark a sequence as optional."""
    return Optional(_group(args))


def zero_or_more(*args: Production) -> RepetitionZero:
    return RepetitionZero(_group(args))


def one_or_more(*args: Production) -> RepetitionOne:
    return RepetitionOne(_group(args))


@dataclasses.dataclass
class Grammar:
    """An EBNF grammar: one production per variable, and a start variable.

    (Several alternatives for one variable are written as a single
    `Alternative` production.)
    """

    start: model.Variable
    rules: dict[model.Variable, Production]

    def variables(self) -> set[model.Variable]:
        """Every variable in the grammar, defined or merely referenced."""
        result = set(self.rules)
        result.add(self.start)
        for production in self.rules.values():
            result.update(production.variables())
        return result

    def format(self) -> str:
        return "\n".join(f"{variable} -> {production}" for variable, production in self.rules.items())
