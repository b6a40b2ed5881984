import pytest

import formlang.bnf as bnf
import formlang.ebnf as ebnf

from formlang.model import Terminal, Variable


TER_1 = ebnf.term("1")

VAR_A = ebnf.var("A")
VAR_B = ebnf.var("B")
VAR_C = ebnf.var("C")


def test_render_atoms():
    assert str(TER_1) == "'1'"
    assert str(VAR_A) == "A"
    assert str(ebnf.EPSILON) == "eps"


def test_render_suffixes():
    assert str(ebnf.zero_or_more(VAR_A)) == "A*"
    assert str(ebnf.one_or_more(VAR_A)) == "A+"
    assert str(ebnf.opt(VAR_A)) == "A?"


def test_render_alternative():
    assert str(ebnf.alt(VAR_A, VAR_B)) == "A | B"
    assert str(ebnf.alt(VAR_A, VAR_B, VAR_C)) == "A | B | C"
    assert str(ebnf.alt(VAR_A, TER_1, VAR_C)) == "A | '1' | C"


def test_render_sequence():
    assert str(ebnf.seq(VAR_A, VAR_B)) == "A B"
    assert str(ebnf.seq(VAR_A, VAR_B, VAR_C)) == "A B C"
    assert str(ebnf.seq(VAR_A, TER_1, VAR_C)) == "A '1' C"


def test_render_is_structural():
    """No parentheses, just the operators glued on."""
    production = ebnf.alt(
        ebnf.seq(ebnf.zero_or_more(TER_1), ebnf.opt(VAR_A)),
        ebnf.one_or_more(VAR_B),
    )
    assert str(production) == "'1'* A? | B+"
    assert str(production) == ebnf.render(production)


def test_operators():
    assert (VAR_A | VAR_B | VAR_C) == ebnf.Alternative((VAR_A, VAR_B, VAR_C))
    assert (VAR_A + TER_1 + VAR_C) == ebnf.Sequence((VAR_A, TER_1, VAR_C))
    assert (VAR_A + VAR_B | VAR_C) == ebnf.Alternative((ebnf.Sequence((VAR_A, VAR_B)), VAR_C))

    # Nested alternatives flatten no matter how they are grouped.
    assert ebnf.alt(VAR_A, ebnf.alt(VAR_B, VAR_C)) == ebnf.Alternative((VAR_A, VAR_B, VAR_C))
    assert ebnf.alt(ebnf.alt(VAR_A, VAR_B), VAR_C) == ebnf.Alternative((VAR_A, VAR_B, VAR_C))


def test_opt_groups_its_arguments():
    assert ebnf.opt(VAR_A) == ebnf.Optional(VAR_A)
    assert ebnf.opt(VAR_A, VAR_B) == ebnf.Optional(ebnf.Sequence((VAR_A, VAR_B)))
    assert ebnf.zero_or_more(VAR_A, TER_1) == ebnf.RepetitionZero(ebnf.Sequence((VAR_A, TER_1)))

    with pytest.raises(ValueError):
        ebnf.one_or_more()


def test_structural_equality_and_hashing():
    """Trees built separately are the same key in a dictionary; that's what
    the normalizer's cache relies on.
    """
    first = ebnf.zero_or_more(ebnf.seq(TER_1, VAR_A))
    second = ebnf.zero_or_more(ebnf.seq(ebnf.term("1"), ebnf.var("A")))

    assert first is not second
    assert first == second
    assert hash(first) == hash(second)
    assert {first: Variable("X")}[second] == Variable("X")

    assert ebnf.zero_or_more(TER_1) != ebnf.one_or_more(TER_1)
    assert ebnf.zero_or_more(TER_1) != ebnf.zero_or_more(ebnf.term("2"))


def test_variables():
    production = ebnf.seq(VAR_A, ebnf.zero_or_more(ebnf.alt(VAR_B, TER_1)), ebnf.opt(VAR_A))
    assert list(production.variables()) == [
        Variable("A"),
        Variable("B"),
        Variable("A"),
    ]
    assert list(TER_1.variables()) == []


def test_repetition_count():
    assert TER_1.repetition_count() == 0
    assert ebnf.opt(VAR_A).repetition_count() == 0
    assert ebnf.zero_or_more(VAR_A).repetition_count() == 1
    assert ebnf.one_or_more(ebnf.zero_or_more(VAR_A)).repetition_count() == 2
    assert ebnf.seq(ebnf.zero_or_more(VAR_A), ebnf.one_or_more(VAR_B)).repetition_count() == 2


def test_grammar():
    grammar = ebnf.Grammar(
        start=Variable("S"),
        rules={
            Variable("S"): ebnf.seq(VAR_A, ebnf.zero_or_more(VAR_B)),
            Variable("A"): TER_1 | ebnf.EPSILON,
        },
    )

    assert grammar.variables() == {Variable("S"), Variable("A"), Variable("B")}
    assert grammar.format() == "S -> A B*\nA -> '1' | eps"


def test_symbols():
    assert str(Terminal("a")) == "'a'"
    assert str(Variable("S")) == "S"
    assert Terminal("a") == Terminal("a")
    assert Terminal("a") != Terminal("b")
    assert sorted([Variable("B"), Variable("A")]) == [Variable("A"), Variable("B")]


def test_bnf_render():
    production = bnf.alt(bnf.seq(bnf.term("1"), bnf.var("A")), bnf.opt(bnf.var("B")), bnf.EPSILON)
    assert str(production) == "'1' A | B? | eps"


def test_bnf_grammar():
    grammar = bnf.Grammar(
        start=Variable("S"),
        rules={Variable("S"): bnf.seq(bnf.var("A"), bnf.opt(bnf.var("B")))},
    )
    assert grammar.variables() == {Variable("S"), Variable("A"), Variable("B")}
    assert grammar.format() == "S -> A B?"
