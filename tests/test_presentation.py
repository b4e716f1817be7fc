"""
Tests for words, rewriting, collection and Knuth-Bendix completion
"""

import pytest

from finite_group import FpGroup
from presentation import (
    Collector,
    RewriteRule,
    RewriteRuleError,
    RewriteSystem,
    ShortLexOrder,
    WordError,
    collect,
    cyclic_presentation,
    dihedral_presentation,
    format_word,
    free_reduce,
    invert_word,
    overlaps,
    parse_word,
    quaternion_presentation,
    symmetric_presentation,
)


class TestWords:
    def test_invert_and_reduce(self):
        assert invert_word((1, -2, 3)) == (-3, 2, -1)
        assert free_reduce((1, 2, -2, -1, 3)) == (3,)

    def test_parse_word(self):
        names = ["a", "b"]
        assert parse_word("a b^-1 a^3", names) == (1, -2, 1, 1, 1)
        assert parse_word("", names) == ()
        assert parse_word("b^", names) == (-2,)
        with pytest.raises(WordError):
            parse_word("c", names)

    def test_format_word(self):
        assert format_word((1, -2), ["x", "y"]) == "x y^-1"
        assert format_word(()) == "ε"

    def test_shortlex(self):
        order = ShortLexOrder()
        assert order.greater((1, 1), (2,))
        assert order.greater((-1,), (1,))
        assert order.greater((2,), (-1,))


class TestRewriting:
    def test_empty_lhs_rejected(self):
        with pytest.raises(RewriteRuleError):
            RewriteRule((), (1,))

    def test_rule_must_decrease(self):
        system = RewriteSystem()
        with pytest.raises(RewriteRuleError):
            system.add_rule(RewriteRule((1,), (1, 1)))

    def test_reduce_to_normal_form(self):
        system = RewriteSystem()
        system.add_rule(RewriteRule((1, 1, 1), ()))
        system.add_rule(RewriteRule((1, -1), ()))
        assert system.normal_form((1, 1, 1, 1, 1)) == (1, 1)
        assert system.normal_form((1, 1, -1, 1)) == (1, 1)
        assert system.is_reduced((1, 1))


class TestCollector:
    def test_free_cancellation(self):
        rules = [((1, -1), ()), ((-1, 1), ())]
        assert collect((1, -1, 1, -1, 1), rules) == (1,)

    def test_observer_sees_every_step(self):
        seen = []
        c = Collector([((1, 1), ())])
        nf = c.collect((1, 1, 1), lambda col, w, r, p: seen.append((w, r, p)))
        assert nf == (1,)
        assert seen == [((1, 1, 1), 0, 0)]

    def test_single_letter_rules(self):
        c = Collector([((-1,), (1, 1)), ((1, 1, 1), ())])
        assert c.collect((-1, -1)) == (1,)

    def test_rules_tried_in_shortlex_order(self):
        c = Collector([((2, 2), (-1,)), ((2, 2), (1,))])
        assert c.pairs[(2, 2)] == [1, 0]
        assert c.collect((2, 2)) == (1,)

    def test_overlaps(self):
        rules = [((1, 1), ()), ((2, 1), (1, 2))]
        found = {(o.r, o.s, o.length) for o in overlaps(rules)}
        assert (0, 0, 1) in found
        assert (1, 0, 1) in found
        assert (0, 1, 1) not in found


class TestCompletion:
    def test_cyclic(self):
        G = FpGroup.from_presentation(cyclic_presentation(5))
        assert G.order() == 5

    def test_dihedral(self):
        P = dihedral_presentation(3)
        result = P.complete()
        assert result.ok
        G = FpGroup.from_presentation(P)
        assert G.order() == 6
        assert not G.is_abelian()

    def test_quaternion(self):
        G = FpGroup.from_presentation(quaternion_presentation())
        assert G.order() == 8
        assert sorted(G.element_order(g) for g in G.elements()) == [1, 2, 4, 4, 4, 4, 4, 4]

    def test_symmetric(self):
        G = FpGroup.from_presentation(symmetric_presentation(4))
        assert G.order() == 24
