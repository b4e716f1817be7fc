"""
Tests for finite groups, their presentations and homomorphisms
"""

import pytest

from cohomology_config import CohomologyConfig, get_config, set_config
from finite_group import (
    GroupHom,
    GroupTooLargeError,
    NotSolvableError,
    PcGroup,
    abelian_perm_group,
    alternating_group,
    cyclic_group,
    dihedral_group,
    pc_group,
    symmetric_group,
    trivial_group,
)
from presentation import collect


class TestPermGroups:
    def test_orders(self):
        assert cyclic_group(6).order() == 6
        assert dihedral_group(4).order() == 8
        assert symmetric_group(4).order() == 24
        assert alternating_group(5).order() == 60
        assert abelian_perm_group([2, 2]).order() == 4
        assert trivial_group().order() == 1
        assert cyclic_group(1).ngens == 0

    def test_words_evaluate_back(self):
        G = symmetric_group(3)
        for g in G.elements():
            assert G.equal(G.eval_word(G.word(g)), g)
        assert G.elements()[0] == G.identity

    def test_element_orders(self):
        G = dihedral_group(4)
        orders = sorted(G.element_order(g) for g in G.elements())
        assert orders == [1, 2, 2, 2, 2, 2, 4, 4]

    def test_solvability(self):
        assert symmetric_group(4).is_solvable()
        assert not alternating_group(5).is_solvable()
        with pytest.raises(NotSolvableError):
            alternating_group(5).pc_presentation()

    def test_enumeration_limit(self):
        old = set_config(CohomologyConfig(max_group_order=10))
        try:
            with pytest.raises(GroupTooLargeError):
                symmetric_group(4).order()
        finally:
            set_config(old)

    def test_quotient(self):
        G = symmetric_group(3)
        Q, q = G.quotient(G.derived_subgroup())
        assert Q.order() == 2
        assert q.is_surjective()


class TestPresentations:
    def test_fp_presentation_relators_vanish(self):
        G = dihedral_group(3)
        F = G.fp_presentation()
        for r in F.relators:
            assert G.is_identity(F.eval(r))

    def test_rewriting_system_normal_forms(self):
        G = dihedral_group(3)
        P = G.rewriting_system()
        assert not P.is_pc
        for g in G.elements():
            for h in G.elements():
                assert collect(P.word(g) + P.word(h), P.collector) == P.word(G.mul(g, h))

    def test_pc_presentation(self):
        G = symmetric_group(4)
        P = G.pc_presentation()
        assert P.is_pc
        assert sorted(P.relative_orders) == [2, 2, 2, 3]
        for g in G.elements():
            assert G.equal(P.eval(P.word(g)), g)

    def test_pc_group(self):
        Q, iso = pc_group(symmetric_group(3))
        assert isinstance(Q, PcGroup)
        assert Q.order() == 6
        assert iso.is_injective() and iso.is_surjective()
        assert not Q.is_abelian()


class TestGroupHom:
    def test_sign(self):
        G = symmetric_group(3)
        C2 = cyclic_group(2)
        s = C2.generators[0]
        images = [C2.identity if g.is_even else s for g in G.generators]
        sign = GroupHom(G, C2, images, check=True)
        assert sign.kernel().order() == 3
        assert sign.is_surjective()
        ok, g = sign.preimage(s)
        assert ok and not g.is_even

    def test_compose(self):
        G = cyclic_group(4)
        x = G.generators[0]
        square = GroupHom(G, G, [G.power(x, 2)])
        assert square.compose(square).kernel().order() == 4
        assert not square.is_injective()
