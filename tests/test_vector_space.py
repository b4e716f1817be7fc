"""
Tests for vector spaces over finite fields
"""

import pytest

from module_api import ModuleError, direct_product, has_preimage, kernel, quo
from vector_space import VectorSpace, vector_space


class TestVectorSpace:
    def test_basic(self):
        V = vector_space(3, 2)
        assert V.order() == 9
        assert len(list(V.elements())) == 9
        x = V.elem([1, 2])
        assert (x + x + x).is_zero()
        assert -x == V.elem([2, 1])
        assert 2 * x == V.elem([2, 1])

    def test_kernel_of_projection(self):
        V = vector_space(2, 3)
        W = VectorSpace(V.field, 1)
        f = V.hom(W, [W.elem([1]), W.elem([1]), W.elem([0])])
        K, mK = kernel(f)
        assert K.dim == 2
        for v in K.gens():
            assert f(mK(v)).is_zero()

    def test_quotient(self):
        V = vector_space(5, 3)
        Q, mq = quo(V, [V.elem([1, 1, 0])])
        assert Q.dim == 2
        assert mq(V.elem([2, 2, 0])).is_zero()
        assert not mq(V.elem([1, 0, 0])).is_zero()

    def test_preimage(self):
        V = vector_space(7, 2)
        f = V.hom(V, [V.elem([1, 1]), V.elem([0, 0])])
        ok, x = has_preimage(f, V.elem([3, 3]))
        assert ok and f(x) == V.elem([3, 3])
        assert not has_preimage(f, V.elem([1, 0]))[0]

    def test_direct_product(self):
        V = vector_space(2, 1)
        D, pro, inj = direct_product(V, V)
        assert D.dim == 2
        assert pro[1](inj[1](V.gens()[0])) == V.gens()[0]
        assert pro[0](inj[1](V.gens()[0])).is_zero()

    def test_as_abelian_group(self):
        V = vector_space(3, 2)
        A, to_A, from_A = V.as_abelian_group()
        assert A.elementary_divisors() == [3, 3]
        x = V.elem([2, 1])
        assert from_A(to_A(x)) == x
        assert to_A(x + x) == to_A(x) + to_A(x)

    def test_as_abelian_group_of_extension_field(self):
        V = vector_space(4, 2)
        A, to_A, from_A = V.as_abelian_group()
        assert A.elementary_divisors() == [2, 2, 2, 2]
        for x in [V.elem([2, 3]), V.elem([1, 0]), V.elem([3, 3])]:
            assert from_A(to_A(x)) == x
        x, y = V.elem([2, 1]), V.elem([3, 2])
        assert to_A(x + y) == to_A(x) + to_A(y)
        assert len({to_A(v) for v in V.elements()}) == 16
        assert to_A(V.elem([1, 0])) == A.elem([0, 1, 0, 0])

    def test_as_abelian_group_of_zero_space(self):
        V = vector_space(4, 0)
        A, to_A, from_A = V.as_abelian_group()
        assert A.is_trivial()
        assert from_A(to_A(V.zero())) == V.zero()

    def test_negative_dimension_rejected(self):
        with pytest.raises(ModuleError):
            vector_space(4, -1)
