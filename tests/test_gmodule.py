"""
Tests for G-modules and the module combinators
"""

import pytest

from abelian_group import abelian_group, free_abelian_group
from finite_group import GroupHom, cyclic_group, symmetric_group, trivial_group
from gmodule import (
    GModule,
    InconsistencyError,
    PreconditionError,
    action,
    direct_product,
    induce,
    inflate,
    is_gmodule_hom,
    natural_gmodule,
    orbit,
    quo,
    regular_gmodule,
    restrict,
    shrink,
    simplify,
    sub_gmodule,
    trivial_gmodule,
)


def sign_module(G, M):
    neg = -M.identity_hom()
    idM = M.identity_hom()
    return GModule(G, M, [idM if g.is_even else neg for g in G.generators])


class TestGModule:
    def test_trivial_module_is_consistent(self):
        C = trivial_gmodule(cyclic_group(3), free_abelian_group(1))
        assert C.is_consistent()
        assert all(a == C.M.identity_hom() for a in C.iac)

    def test_inconsistent_action_rejected(self):
        G = cyclic_group(3)
        Z = free_abelian_group(1)
        with pytest.raises(InconsistencyError):
            GModule(G, Z, [-Z.identity_hom()])

    def test_wrong_number_of_actions(self):
        Z = free_abelian_group(1)
        with pytest.raises(PreconditionError):
            GModule(symmetric_group(3), Z, [Z.identity_hom()])

    def test_action_of_products(self):
        G = symmetric_group(3)
        C = natural_gmodule(G, free_abelian_group(1))
        e = C.M.gens()
        for g in G.elements():
            for h in G.elements():
                gh = G.mul(g, h)
                assert action(C, gh, e[0]) == action(C, h, action(C, g, e[0]))
        x = G.generators[0]
        assert action(C, x, e) == [action(C, x)(v) for v in e]

    def test_sign_module(self):
        G = symmetric_group(3)
        C = sign_module(G, free_abelian_group(1))
        m = C.M.gens()[0]
        for g in G.elements():
            expected = m if g.is_even else -m
            assert action(C, g, m) == expected

    def test_regular_module(self):
        G = cyclic_group(3)
        C = regular_gmodule(G, free_abelian_group(1))
        assert C.M.ngens == 3
        assert len(orbit(C, C.M.gens()[0])) == 3


class TestCombinators:
    def test_direct_product_projections_are_linear(self):
        G = symmetric_group(3)
        Z = free_abelian_group(1)
        C1 = natural_gmodule(G, Z)
        C2 = sign_module(G, Z)
        P, pro, inj = direct_product(C1, C2)
        assert P.M.ngens == 4
        assert is_gmodule_hom(P, C1, pro[0])
        assert is_gmodule_hom(C2, P, inj[1])
        assert P.is_consistent()

    def test_induce_from_trivial_subgroup(self):
        G = cyclic_group(4)
        E = trivial_group()
        C = trivial_gmodule(E, abelian_group([3]))
        ind = induce(C, GroupHom(E, G, []))
        assert ind.gmodule.M.order() == 3 ** 4
        assert ind.gmodule.is_consistent()
        assert len(ind.transversal) == 4

    def test_induce_matches_permutation_module(self):
        G = symmetric_group(3)
        t = next(g for g in G.generators if not g.is_even)
        U = G.subgroup([t])
        C = trivial_gmodule(U, free_abelian_group(1))
        ind = induce(C, U.embedding())
        assert ind.gmodule.M.ngens == 3
        assert ind.gmodule.is_consistent()

    def test_induce_with_embedding(self):
        G = symmetric_group(3)
        t = next(g for g in G.generators if not g.is_even)
        U = G.subgroup([t])
        Z = free_abelian_group(1)
        D = trivial_gmodule(G, Z)
        C = restrict(D, U)
        ind = induce(C, U.embedding(), D=D, mDC=Z.identity_hom())
        assert is_gmodule_hom(D, ind.gmodule, ind.embedding)

    def test_restrict_and_inflate(self):
        G = symmetric_group(3)
        C = sign_module(G, free_abelian_group(1))
        A3 = G.derived_subgroup()
        R = restrict(C, A3)
        assert all(a == R.M.identity_hom() for a in R.ac)
        Q, q = G.quotient(A3)
        idM = C.M.identity_hom()
        CQ = GModule(Q, C.M, [idM if Q.is_identity(x) else -idM for x in Q.generators])
        assert CQ.is_consistent()
        inflated = inflate(CQ, q)
        for g in G.elements():
            assert action(inflated, g) == action(C, g)

    def test_quotient_by_diagonal(self):
        G = symmetric_group(3)
        C = natural_gmodule(G, free_abelian_group(1))
        Z = free_abelian_group(1)
        diag = Z.hom(C.M, [C.M.elem([1, 1, 1])])
        Q, mq = quo(C, diag)
        assert Q.M.elementary_divisors() == [0, 0]
        assert Q.is_consistent()
        assert is_gmodule_hom(C, Q, mq)

    def test_augmentation_submodule(self):
        G = symmetric_group(3)
        C = natural_gmodule(G, free_abelian_group(1))
        e = C.M.gens()
        S, ms = sub_gmodule(C, [e[0] - e[1], e[1] - e[2]])
        assert S.M.ngens == 2
        assert S.is_consistent()
        assert is_gmodule_hom(S, C, ms)

    def test_simplify(self):
        G = cyclic_group(2)
        A = abelian_group([2, 3])
        C = trivial_gmodule(G, A)
        T, ms = simplify(C)
        assert T.M.elementary_divisors() == [6]
        assert T.M.ngens == 1
        assert is_gmodule_hom(T, C, ms)

    def test_shrink_removes_free_summand(self):
        G = cyclic_group(2)
        C = regular_gmodule(G, free_abelian_group(1))
        q, mq = shrink(C)
        assert q.M.is_trivial()
