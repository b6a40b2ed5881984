"""Rewrite EBNF productions into plain BNF.

Most of the EBNF operators have a direct BNF counterpart, and for those the
conversion is just a walk over the tree. The repetition operators don't, so for
every distinct `X*` we make up a new variable `V` and a new rule

    V -> eps | X V

and put `V` where the repetition was. `X+` is just `X X*`, and is handled that
way, so `X+` and `X*` in the same grammar share a single helper variable.

The new rule is handed back *un-normalized*, in EBNF, so that it goes through
exactly the same conversion as every other rule when its turn comes. (`X` might
have repetitions of its own, after all.) Since `X` has one repetition operator
fewer than `X*`, this all terminates.

To keep us from making a new variable every time the same repeated group shows
up we keep a cache from repeated subtree to the variable that replaced it. The
cache is threaded through explicitly, as is the `VariableAllocator` that hands
out fresh variable names; there is no global state in here.
"""

import collections
import dataclasses
import logging
import string
import typing

from . import bnf, ebnf, model


normalize_log = logging.getLogger("formlang.normalize")


class VariableSpaceExhausted(Exception):
    """Raised when the allocator runs out of names for fresh variables."""

    pass


class NormalizationInvariantError(Exception):
    """Two branches of one tree claimed the same repeated subtree.

    This is a bug in the normalizer, not a problem with the grammar.
    """

    pass


class VariableAllocator:
    """Hands out fresh variables.

    Candidates come from `pool`, in order; any candidate that is already in
    use is skipped. By default the pool is the uppercase letters, which is
    what textbook grammars use, but it can be any iterable of names, even an
    infinite one.
    """

    in_use: set[model.Variable]

    def __init__(
        self,
        in_use: typing.Iterable[model.Variable] = (),
        pool: typing.Iterable[str] = string.ascii_uppercase,
    ):
        self.in_use = set(in_use)
        self._pool = iter(pool)

    @classmethod
    def for_grammar(
        cls,
        grammar: ebnf.Grammar,
        pool: typing.Iterable[str] = string.ascii_uppercase,
    ) -> "VariableAllocator":
        """An allocator that will never hand out a variable of `grammar`."""
        return cls(grammar.variables(), pool)

    def reserve(self, variable: model.Variable):
        self.in_use.add(variable)

    def fresh(self) -> model.Variable:
        for name in self._pool:
            candidate = model.Variable(name)
            if candidate not in self.in_use:
                self.in_use.add(candidate)
                return candidate

        raise VariableSpaceExhausted(
            f"No fresh variable names left ({len(self.in_use)} variables in use)"
        )


Replacers = dict[ebnf.Production, model.Variable]
NewRules = list[tuple[model.Variable, ebnf.Production]]


@dataclasses.dataclass
class ConversionResult:
    """What we get from converting one EBNF production.

    `output` is the equivalent BNF production. The rest is what the caller
    needs to fold back into the grammar: the variables we had to make up, the
    repeated subtrees those variables now stand for, and the rules that define
    them (still in EBNF, still to be converted).
    """

    output: bnf.Production
    new_variables: list[model.Variable] = dataclasses.field(default_factory=list)
    new_replacers: Replacers = dataclasses.field(default_factory=dict)
    new_rules: NewRules = dataclasses.field(default_factory=list)

    @classmethod
    def simple(cls, output: bnf.Production) -> "ConversionResult":
        """A conversion that needed no new variables."""
        return cls(output)


@dataclasses.dataclass
class ChildConversions:
    """The merged conversions of the children of an alternative or a
    sequence.
    """

    outputs: list[bnf.Production] = dataclasses.field(default_factory=list)
    new_variables: list[model.Variable] = dataclasses.field(default_factory=list)
    new_replacers: Replacers = dataclasses.field(default_factory=dict)
    new_rules: NewRules = dataclasses.field(default_factory=list)

    def absorb(self, result: ConversionResult):
        self.outputs.append(result.output)
        self.new_variables.extend(result.new_variables)
        self.new_rules.extend(result.new_rules)

        for key, value in result.new_replacers.items():
            existing = self.new_replacers.get(key)
            if existing is not None:
                raise NormalizationInvariantError(
                    f"'{key}' was replaced by both {existing} and {value}"
                )
            self.new_replacers[key] = value


def convert_children(
    children: typing.Iterable[ebnf.Production],
    allocator: VariableAllocator,
    known: typing.Mapping[ebnf.Production, model.Variable],
) -> ChildConversions:
    """Convert each child in turn and merge the results.

    Each child sees the replacers made by the children before it, so a
    repeated group that shows up in two siblings gets a single variable.
    """
    result = ChildConversions()
    visible = collections.ChainMap(result.new_replacers, known)
    for child in children:
        result.absorb(convert_to_bnf(child, allocator, visible))
    return result


def convert_to_bnf(
    production: ebnf.Production,
    allocator: VariableAllocator,
    known: typing.Mapping[ebnf.Production, model.Variable] | None = None,
) -> ConversionResult:
    """Convert one EBNF production into BNF.

    `known` maps repeated subtrees to the variables that already replace them
    (from earlier in the same normalization pass). It is never modified; any
    new entries are in the `new_replacers` of the result.
    """
    if known is None:
        known = {}

    match production:
        case ebnf.Epsilon():
            return ConversionResult.simple(bnf.EPSILON)

        case ebnf.Terminal(symbol=symbol):
            return ConversionResult.simple(bnf.Terminal(symbol))

        case ebnf.Variable(symbol=symbol):
            return ConversionResult.simple(bnf.Variable(symbol))

        case ebnf.Optional(child=child):
            # BNF already has optional, so this is just a wrapper.
            result = convert_to_bnf(child, allocator, known)
            result.output = bnf.Optional(result.output)
            return result

        case ebnf.Alternative(children=children):
            converted = convert_children(children, allocator, known)
            return ConversionResult(
                output=bnf.Alternative(tuple(converted.outputs)),
                new_variables=converted.new_variables,
                new_replacers=converted.new_replacers,
                new_rules=converted.new_rules,
            )

        case ebnf.Sequence(children=children):
            converted = convert_children(children, allocator, known)
            return ConversionResult(
                output=bnf.Sequence(tuple(converted.outputs)),
                new_variables=converted.new_variables,
                new_replacers=converted.new_replacers,
                new_rules=converted.new_rules,
            )

        case ebnf.RepetitionZero(child=child):
            existing = known.get(production)
            if existing is not None:
                if normalize_log.isEnabledFor(logging.DEBUG):
                    normalize_log.debug(f"reusing {existing} for {production}")
                return ConversionResult.simple(bnf.Variable(existing))

            variable = allocator.fresh()
            if normalize_log.isEnabledFor(logging.DEBUG):
                normalize_log.debug(f"minted {variable} for {production}")

            # V -> eps | child V
            rule = ebnf.Alternative(
                (ebnf.EPSILON, ebnf.Sequence((child, ebnf.Variable(variable))))
            )
            # The new rule has one repetition fewer than the node it replaces,
            # so the worklist in normalize_grammar always drains.
            assert rule.repetition_count() < production.repetition_count()
            return ConversionResult(
                output=bnf.Variable(variable),
                new_variables=[variable],
                new_replacers={production: variable},
                new_rules=[(variable, rule)],
            )

        case ebnf.RepetitionOne(child=child):
            # X+ is X X*. Going through the sequence case means the X* gets
            # cached just like a written-out one would.
            return convert_to_bnf(
                ebnf.Sequence((child, ebnf.RepetitionZero(child))),
                allocator,
                known,
            )

        case _:
            raise Exception(f"unknown production type {production!r}")


def normalize_grammar(
    grammar: ebnf.Grammar,
    allocator: VariableAllocator | None = None,
) -> bnf.Grammar:
    """Convert a whole EBNF grammar into an equivalent BNF grammar.

    Every rule is converted, and then every rule *those* conversions produced,
    and so on until nothing is left in EBNF. The helper rules come after the
    original ones, in the order their variables were made up.

    If no allocator is provided we make one that avoids every variable in the
    grammar. Raises VariableSpaceExhausted if the allocator runs dry.
    """
    if allocator is None:
        allocator = VariableAllocator.for_grammar(grammar)
    else:
        for variable in grammar.variables():
            allocator.reserve(variable)

    replacers: Replacers = {}
    rules: dict[model.Variable, bnf.Production] = {}

    queue: collections.deque[tuple[model.Variable, ebnf.Production]] = collections.deque(
        grammar.rules.items()
    )
    while len(queue) > 0:
        variable, production = queue.popleft()
        assert variable not in rules, f"{variable} has more than one rule"

        result = convert_to_bnf(production, allocator, replacers)
        rules[variable] = result.output
        replacers.update(result.new_replacers)
        queue.extend(result.new_rules)

    normalized = bnf.Grammar(start=grammar.start, rules=rules)
    if normalize_log.isEnabledFor(logging.DEBUG):
        normalize_log.debug(f"normalized grammar:\n{normalized.format()}")
    return normalized
