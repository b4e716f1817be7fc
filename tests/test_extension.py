"""
Tests for group extensions built from 2-cocycles
"""

import pytest

from abelian_group import abelian_group, free_abelian_group
from cochain import CoChain, coboundary, zero_cochain
from cohomology import H_two
from extension import (
    CocycleGroup,
    extension,
    extension_pc,
    fp_group_of_module,
    pc_group_of_module,
)
from finite_group import cyclic_group, symmetric_group
from gmodule import GModule, InconsistencyError, UnsupportedOperationError, trivial_gmodule
from vector_space import vector_space


def z4_cocycle():
    """C2 acting trivially on Z/2 with c(s, s) = 1: the extension is Z/4."""
    G = cyclic_group(2)
    A = abelian_group([2])
    C = trivial_gmodule(G, A)
    one = A.elem([1])
    c = CoChain.from_function(
        C, 2, lambda g, h: one if not G.is_identity(g) and not G.is_identity(h) else A.zero()
    )
    return G, A, c


def a4_gmodule():
    """C3 acting on GF(4) by multiplication with a primitive element."""
    G = cyclic_group(3)
    V = vector_space(4, 1)
    omega = V.hom(V, [V.elem([2])])
    return GModule(G, V, [omega])


class TestModulePresentations:
    def test_fp_group_of_module(self):
        A = abelian_group([2, 3])
        mp = fp_group_of_module(A)
        assert mp.ngens == 2
        assert (-1, -2, 1, 2) in mp.relators
        x = A.elem([1, 2])
        assert mp.eval(mp.word(x)) == x

    def test_pc_group_of_module(self):
        A = abelian_group([12])
        mp = pc_group_of_module(A)
        assert sorted(mp.relative_orders) == [2, 2, 3]
        P = mp.group()
        assert P.order() == 12
        assert P.is_abelian()
        for x in A.elements():
            assert mp.eval(mp.word(x)) == x

    def test_pc_group_of_vector_space(self):
        V = vector_space(3, 2)
        mp = pc_group_of_module(V)
        assert mp.relative_orders == [3, 3]
        assert mp.group().order() == 9

    def test_extension_field_uses_prime_field_coordinates(self):
        V = vector_space(4, 1)
        mp = pc_group_of_module(V)
        assert mp.relative_orders == [2, 2]
        assert mp.group().order() == 4
        fp = fp_group_of_module(V)
        assert fp.ngens == 2
        for x in V.elements():
            assert fp.eval(fp.word(x)) == x
            assert mp.eval(mp.word(x)) == x

    def test_infinite_module_has_no_pc_group(self):
        with pytest.raises(UnsupportedOperationError):
            pc_group_of_module(free_abelian_group(1))


class TestCocycleGroup:
    def test_pair_model(self):
        G, A, c = z4_cocycle()
        E = CocycleGroup(c)
        assert E.order() == 4
        s = G.generators[0]
        assert E.element_order((s, A.zero())) == 4
        assert E.is_abelian()

    def test_split_extension(self):
        G = symmetric_group(3)
        A = abelian_group([2])
        C = trivial_gmodule(G, A)
        E = CocycleGroup(coboundary(CoChain.from_function(C, 1, lambda g: A.zero())))
        assert E.order() == 12
        assert max(E.element_order(x) for x in E.elements()) == 6

    def test_embedding_is_homomorphism(self):
        G, A, c = z4_cocycle()
        E = CocycleGroup(c)
        m = A.elem([1])
        assert E.equal(E.mul(E.embed(m), E.embed(m)), E.identity)
        assert G.is_identity(E.project(E.embed(m)))


class TestExtension:
    def test_presentation_group(self):
        G, A, c = z4_cocycle()
        X = extension(c)
        assert X.ngens == 2
        assert X.presentation.ngens == 2
        assert X.presentation.relators() == X.relators
        Q, iso = X.group()
        assert Q.order() == 4
        assert iso.is_injective() and iso.is_surjective()
        assert sorted(Q.element_order(q) for q in Q.elements()) == [1, 2, 4, 4]

    def test_relators_hold_in_model(self):
        G = symmetric_group(3)
        C = trivial_gmodule(G, abelian_group([2]))
        H = H_two(C)
        c = H(next(x for x in H.module.gens() if not x.is_zero()))
        X = extension(c)
        for r in X.relators:
            assert X.model.is_identity(X.realize(r))

    def test_word_of(self):
        G, A, c = z4_cocycle()
        X = extension(c)
        for q in X.model.elements():
            assert X.model.equal(X.realize(X.word_of(q)), q)

    def test_module_and_quotient_maps(self):
        G, A, c = z4_cocycle()
        X = extension(c)
        s = G.generators[0]
        q = X.pair_to_group(s, A.elem([1]))
        assert G.equal(X.group_to_quotient(q), s)
        assert G.is_identity(X.group_to_quotient(X.module_to_group(A.elem([1]))))

    def test_rejects_non_cocycle(self):
        G = cyclic_group(3)
        A = abelian_group([3])
        C = trivial_gmodule(G, A)
        s = G.generators[0]
        bad = CoChain.from_function(C, 2, lambda g, h: A.elem([1]) if G.equal(g, s) and G.equal(h, s) else A.zero())
        with pytest.raises(InconsistencyError):
            extension(bad)

    def test_infinite_module(self):
        G = cyclic_group(2)
        C = trivial_gmodule(G, free_abelian_group(1))
        c = H_two(C)(H_two(C).module.gens()[0])
        X = extension(c)
        for r in X.relators:
            assert X.model.is_identity(X.realize(r))
        with pytest.raises(UnsupportedOperationError):
            X.group()

    def test_split_extension_over_gf4(self):
        C = a4_gmodule()
        X = extension(zero_cochain(C, 2))
        assert X.ngens == 3
        for r in X.relators:
            assert X.model.is_identity(X.realize(r))
        Q, iso = X.group()
        assert Q.order() == 12
        assert not Q.is_abelian()


class TestPcExtension:
    def test_cyclic_of_order_four(self):
        G, A, c = z4_cocycle()
        P = extension_pc(c)
        assert P.relative_orders == [2, 2]
        assert P.group.order() == 4
        assert max(P.group.element_order(x) for x in P.group.elements()) == 4

    def test_pair_law(self):
        G, A, c = z4_cocycle()
        P = extension_pc(c)
        model = CocycleGroup(c)
        for a in model.elements():
            for b in model.elements():
                ab = model.mul(a, b)
                assert P.group.mul(P.pair_to_group(*a), P.pair_to_group(*b)) == P.pair_to_group(*ab)
        for a in model.elements():
            g, m = P.to_pair(P.pair_to_group(*a))
            assert G.equal(g, a[0]) and m == a[1]

    def test_nonsplit_extension_of_s3(self):
        G = symmetric_group(3)
        C = trivial_gmodule(G, abelian_group([2]))
        H = H_two(C)
        c = H(next(x for x in H.module.gens() if not x.is_zero()))
        P = extension_pc(c)
        E = P.group
        assert E.order() == 12
        assert any(E.element_order(x) == 4 for x in E.elements())
        q = P.quotient_hom()
        assert q.is_surjective()
        assert q.kernel().order() == 2

    def test_alternating_group_from_gf4(self):
        C = a4_gmodule()
        P = extension_pc(zero_cochain(C, 2))
        E = P.group
        assert P.relative_orders == [3, 2, 2]
        assert E.order() == 12
        assert not E.is_abelian()
        assert sorted({E.element_order(x) for x in E.elements()}) == [1, 2, 3]
