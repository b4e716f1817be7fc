"""
Tests for finitely generated abelian groups and the generic module operations
"""

import pytest

from abelian_group import AbelianGroup, InfiniteGroupError, abelian_group, free_abelian_group, trivial_abelian_group
from module_api import (
    ModuleError,
    direct_product,
    has_preimage,
    image,
    is_injective,
    is_surjective,
    kernel,
    lift_through,
    preimage,
    quo,
    sum_homs,
)


class TestAbelianGroup:
    def test_orders_and_divisors(self):
        A = abelian_group([2, 3])
        assert A.order() == 6
        assert A.elementary_divisors() == [6]
        assert A.is_finite()
        assert len(list(A.elements())) == 6

    def test_relations_constructor(self):
        A = AbelianGroup([[2, 4], [0, 6]])
        assert A.elementary_divisors() == [2, 6]
        assert A.order() == 12

    def test_free_and_trivial(self):
        Z2 = free_abelian_group(2)
        assert not Z2.is_finite()
        assert Z2.elementary_divisors() == [0, 0]
        with pytest.raises(InfiniteGroupError):
            Z2.order()
        assert trivial_abelian_group().is_trivial()
        assert abelian_group([1]).is_trivial()

    def test_elements_reduce(self):
        A = abelian_group([4])
        assert A.elem([5]) == A.elem([1])
        assert A.elem([-1]) == A.elem([3])
        assert (2 * A.elem([3])).is_zero() is False
        assert (4 * A.elem([3])).is_zero()

    def test_element_order(self):
        A = abelian_group([4, 6])
        assert A.elem([1, 0]).order() == 4
        assert A.elem([2, 3]).order() == 2
        assert A.elem([1, 1]).order() == 12
        assert free_abelian_group(1).elem([3]).order() == 0

    def test_snf_isomorphism(self):
        A = abelian_group([2, 3])
        S, to_A = A.snf()
        assert S.elementary_divisors() == [6]
        assert is_injective(to_A) and is_surjective(to_A)

    def test_exponent_hint(self):
        A = abelian_group([2, 4])
        A.exponent_hint = 8
        assert A.exponent() == 4
        A.exponent_hint = 6
        with pytest.raises(ModuleError):
            A.exponent()


class TestHomomorphisms:
    def test_kernel_and_image(self):
        Z = free_abelian_group(1)
        A = abelian_group([6])
        f = Z.hom(A, [A.elem([2])])
        K, mK = kernel(f)
        assert K.elementary_divisors() == [0]
        assert mK(K.gens()[0]) in (Z.elem([3]), Z.elem([-3]))
        I, mI = image(f)
        assert I.order() == 3

    def test_preimage(self):
        A = abelian_group([6])
        f = A.hom(A, [A.elem([2])])
        ok, x = has_preimage(f, A.elem([4]))
        assert ok and f(x) == A.elem([4])
        assert not has_preimage(f, A.elem([1]))[0]
        with pytest.raises(ModuleError):
            preimage(f, A.elem([3]))

    def test_quotient(self):
        A = abelian_group([0, 4])
        Q, mq = quo(A, [A.elem([2, 0]), A.elem([0, 2])])
        assert Q.order() == 4
        assert Q.elementary_divisors() == [2, 2]
        assert mq(A.elem([2, 2])).is_zero()

    def test_direct_product(self):
        A, B = abelian_group([2]), abelian_group([3])
        D, pro, inj = direct_product(A, B)
        assert D.order() == 6
        x = inj[0](A.gens()[0]) + inj[1](B.gens()[0])
        assert pro[0](x) == A.gens()[0]
        assert pro[1](x) == B.gens()[0]

    def test_lift_through_and_inverse(self):
        A = abelian_group([4])
        two = A.hom(A, [A.elem([2])])
        S, mS = A.sub([A.elem([2])])
        ok, h = lift_through(two, mS)
        assert ok
        assert h * mS == two
        three = A.hom(A, [A.elem([3])])
        assert three * three.inverse() == A.identity_hom()

    def test_sum_homs(self):
        A = abelian_group([5])
        f = A.hom(A, [A.elem([2])])
        g = A.hom(A, [A.elem([4])])
        assert sum_homs([f, g], A, A) == A.hom(A, [A.elem([1])])
        assert sum_homs([], A, A).is_zero()
