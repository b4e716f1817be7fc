"""
Tests for the Galois cohomology of finite fields
"""

import galois
import pytest

from cochain import CoChain, is_one_cocycle
from cohomology import H_one, H_two, H_zero, cohomology_group
from finite_group import abelian_perm_group, cyclic_group
from galois_cohomology import (
    cyclic_fundamental_class,
    field_values,
    frobenius_gmodule_additive,
    frobenius_gmodule_multiplicative,
    hilbert90,
    is_coboundary,
    multiplicative_group,
    multiplicative_cochain,
    restrict,
)
from gmodule import GModule, PreconditionError
from module_api import ModuleMismatchError, kernel, quo


class TestMultiplicative:
    def test_cohomology_of_gf9(self):
        F = frobenius_gmodule_multiplicative(3, 2)
        C = F.gmodule
        assert C.M.order() == 8
        assert cohomology_group(C, 0).module.order() == 2
        assert cohomology_group(C, 1).is_trivial()
        assert cohomology_group(C, 2).is_trivial()
        assert cohomology_group(C, 0, tate=True).is_trivial()

    def test_hilbert90(self):
        F = frobenius_gmodule_multiplicative(3, 2)
        s = F.frobenius
        b = F.K.primitive_element
        X = multiplicative_cochain(F, 1, {(s,): b ** 3 / b})
        assert is_one_cocycle(X)
        b2 = hilbert90(F, X)
        assert b2 ** 3 / b2 == b ** 3 / b

    def test_field_values(self):
        F = frobenius_gmodule_multiplicative(3, 2)
        G = F.group
        s = F.frobenius
        b = F.K.primitive_element
        X = multiplicative_cochain(F, 1, {(s,): b ** 2})
        values = {G.key(args[0]): v for args, v in field_values(F, X).items()}
        assert values[G.key(s)] == b ** 2
        assert values[G.key(G.identity)] == F.K(1)

    def test_cochains_take_wrapped_field_values(self):
        F = frobenius_gmodule_multiplicative(3, 2)
        U = F.gmodule.M
        s = F.frobenius
        b = F.K.primitive_element
        X = CoChain(F.gmodule, 1, {(s,): U(b ** 3 / b)})
        assert X(s).data == b ** 2
        ok, m = H_one(F.gmodule).is_coboundary(X)
        assert ok
        assert m().data ** 3 / m().data == b ** 2
        H = H_two(F.gmodule)
        assert H.from_cochain(H(H.module.zero())).is_zero()

    def test_two_cocycles_bound(self):
        F = frobenius_gmodule_multiplicative(3, 2)
        C = F.gmodule
        H = H_two(C)
        c = H(H.module.zero())
        ok, d = is_coboundary(F, c)
        assert ok
        assert all(x != 0 for x in d.values())

    def test_restriction(self):
        F = frobenius_gmodule_multiplicative(2, 4)
        assert F.group.order() == 4
        CU, res = restrict(F, 2)
        assert CU.G.order() == 2
        assert CU.is_consistent()
        assert H_zero(CU).module.order() == 3
        b = F.K.primitive_element
        X = multiplicative_cochain(F, 1, {(F.frobenius,): b ** 2 / b})
        r = res(X)
        assert r.C is CU
        assert is_one_cocycle(r)

    def test_restriction_degree_must_divide(self):
        F = frobenius_gmodule_multiplicative(2, 4)
        with pytest.raises(PreconditionError):
            restrict(F, 3)


class TestAdditive:
    def test_cohomology_of_gf9(self):
        F = frobenius_gmodule_additive(3, 2)
        C = F.gmodule
        assert cohomology_group(C, 0).module.order() == 3
        assert cohomology_group(C, 1).is_trivial()
        assert cohomology_group(C, 2).is_trivial()

    def test_additive_hilbert90(self):
        F = frobenius_gmodule_additive(3, 2)
        s = F.frobenius
        b = F.K.primitive_element
        X = CoChain(F.gmodule, 1, {(s,): F.to_module(b ** 3 - b)})
        b2 = hilbert90(F, X)
        assert b2 ** 3 - b2 == b ** 3 - b

    def test_frobenius_fixes_prime_field(self):
        F = frobenius_gmodule_additive(3, 2)
        one = F.to_module(F.K(1))
        assert F.gmodule.ac[0](one) == one

    def test_bridge_is_additive(self):
        F = frobenius_gmodule_additive(3, 2)
        b = F.K.primitive_element
        assert F.from_module(F.to_module(b) + F.to_module(b ** 2)) == b + b ** 2
        assert F.gmodule.M.order() == 9


class TestFundamentalClass:
    def test_cyclic_of_order_four(self):
        C, c = cyclic_fundamental_class(cyclic_group(4))
        H = H_two(C)
        assert H.module.order() == 4
        assert H.from_cochain(c).order() == 4

    def test_non_cyclic_rejected(self):
        with pytest.raises(PreconditionError):
            cyclic_fundamental_class(abelian_perm_group([2, 2]))


class TestPreconditions:
    def test_non_prime_characteristic(self):
        with pytest.raises(PreconditionError):
            frobenius_gmodule_multiplicative(4, 2)

    def test_subfield_must_divide(self):
        with pytest.raises(PreconditionError):
            frobenius_gmodule_additive(3, 3, 2)


class TestMultGrp:
    def test_additive_notation(self):
        K = galois.GF(7)
        U = multiplicative_group(K)
        a, b = U(K(3)), U(K(5))
        assert (a + b).data == K(1)
        assert (a - a).is_zero()
        assert (-a).data == K(5)
        assert (2 * a).data == K(2)
        assert (-1) * a == -a
        assert U.zero().data == K(1)
        assert U.order() == 6

    def test_mixing_groups_rejected(self):
        K = galois.GF(7)
        U = multiplicative_group(K)
        V = multiplicative_group(K)
        with pytest.raises(ModuleMismatchError):
            U(K(3)) + V(K(3))

    def test_zero_has_no_logarithm(self):
        K = galois.GF(7)
        with pytest.raises(PreconditionError):
            multiplicative_group(K)(K(0))

    def test_cohomology_of_inversion(self):
        K = galois.GF(7)
        U = multiplicative_group(K)
        G = cyclic_group(2)
        C = GModule(G, U, [-U.identity_hom()])
        s = G.generators[0]
        assert H_one(C).module.elementary_divisors() == [2]
        assert H_two(C).module.elementary_divisors() == [2]
        X = CoChain(C, 1, {(s,): U(K(3))})
        assert is_one_cocycle(X)
        assert not H_one(C).from_cochain(X).is_zero()
        Y = CoChain(C, 1, {(s,): U(K(2))})
        ok, m = H_one(C).is_coboundary(Y)
        assert ok
        assert (m().data ** -2) == K(2)

    def test_kernel_and_quotient_stay_abelian_groups(self):
        K = galois.GF(7)
        U = multiplicative_group(K)
        square = U.hom(U, [2 * g for g in U.gens()])
        Kr, mK = kernel(square)
        assert Kr.order() == 2
        assert mK(Kr.gens()[0]).data == K(6)
        Q, mQ = quo(U, square)
        assert Q.order() == 2
        assert mQ(U(K(3))) != Q.zero()
