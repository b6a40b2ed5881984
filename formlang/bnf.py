"""Plain Backus-Naur productions.

This is the restricted algebra: epsilon, terminals, variables, optional parts,
alternatives and sequences. There is no repetition operator here; anything that
repeats has to be spelled out with a recursive rule. (That's the whole job of
the `normalize` module.)

Productions are frozen dataclasses so they compare and hash structurally. Each
node owns its children outright, so a production is always a tree.
"""

import dataclasses
import typing

from . import model


class Production:
    """The right-hand side of a BNF rule, or some part of one."""

    def __str__(self) -> str:
        return render(self)

    def variables(self) -> typing.Iterator[model.Variable]:
        """Yield every variable referenced in this tree, in order, with
        repeats.
        """
        match self:
            case Variable(symbol=symbol):
                yield symbol
            case Optional(child=child):
                yield from child.variables()
            case Alternative(children=children) | Sequence(children=children):
                for child in children:
                    yield from child.variables()
            case _:
                pass


@dataclasses.dataclass(frozen=True)
class Epsilon(Production):
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
    child: Production


@dataclasses.dataclass(frozen=True)
class Alternative(Production):
    children: tuple[Production, ...]


@dataclasses.dataclass(frozen=True)
class Sequence(Production):
    children: tuple[Production, ...]


def render(production: Production) -> str:
    match production:
        case Epsilon():
            return "eps"
        case Terminal(symbol=symbol) | Variable(symbol=symbol):
            return str(symbol)
        case Optional(child=child):
            return f"{render(child)}?"
        case Alternative(children=children):
            return " | ".join(render(child) for child in children)
        case Sequence(children=children):
            return " ".join(render(child) for child in children)
        case _:
            raise Exception(f"unknown production type {production!r}")


def term(value: str) -> Terminal:
    return Terminal(model.Terminal(value))


def var(name: str) -> Variable:
    return Variable(model.Variable(name))


def opt(child: Production) -> Optional:
    return Optional(child)


def alt(*children: Production) -> Alternative:
    return Alternative(tuple(children))


def seq(*children: Production) -> Sequence:
    return Sequence(tuple(children))


@dataclasses.dataclass
class Grammar:
    """A BNF grammar: one production per variable, and a start variable."""

    start: model.Variable
    rules: dict[model.Variable, Production]

    def variables(self) -> set[model.Variable]:
        result = set(self.rules)
        result.add(self.start)
        for production in self.rules.values():
            result.update(production.variables())
        return result

    def format(self) -> str:
        return "\n".join(f"{variable} -> {production}" for variable, production in self.rules.items())
