"""
Tests for the integer linear algebra layer
"""

import pytest

from zz_matrix import (
    MatrixShapeError,
    as_int_matrix,
    elementary_divisors,
    hnf,
    hnf_with_transform,
    left_kernel,
    matmul,
    reduce_mod_hnf,
    snf_with_transform,
    solve_left,
    vecmat,
)


class TestHermite:
    def test_hnf_shape_and_pivots(self):
        A = as_int_matrix([[2, 4], [3, 5]], 2)
        H, rank, pivots = hnf(A)
        assert rank == 2
        assert pivots == [0, 1]
        assert H[0, 0] > 0 and H[1, 1] > 0
        assert H[1, 0] == 0
        # det is preserved up to sign
        assert abs(H[0, 0] * H[1, 1]) == 2

    def test_transform_reproduces_hnf(self):
        A = as_int_matrix([[4, 6, 2], [2, 3, 1], [0, 1, 5]], 3)
        H, U, rank, _ = hnf_with_transform(A)
        assert rank == 2
        assert (matmul(U, A) == H).all()

    def test_reduce_mod_hnf(self):
        H, rank, pivots = hnf(as_int_matrix([[3, 0], [0, 5]], 2))
        assert reduce_mod_hnf([7, -1], H, pivots) == (1, 4)


class TestSmith:
    def test_divisibility_chain(self):
        A = as_int_matrix([[2, 0], [0, 3]], 2)
        assert elementary_divisors(A) == [6]

    def test_free_part(self):
        A = as_int_matrix([[2, 0, 0]], 3)
        assert elementary_divisors(A) == [2, 0, 0]

    def test_transforms(self):
        A = as_int_matrix([[2, 4, 4], [-6, 6, 12], [10, -4, -16]], 3)
        D, U, V, Vinv = snf_with_transform(A)
        assert (matmul(matmul(U, A), V) == D).all()
        assert (matmul(V, Vinv) == as_int_matrix([[1, 0, 0], [0, 1, 0], [0, 0, 1]], 3)).all()
        assert [D[i, i] for i in range(3)] == [2, 6, 12]


class TestSolving:
    def test_solve_left(self):
        A = as_int_matrix([[1, 2], [0, 3]], 2)
        ok, x = solve_left(A, [2, 7])
        assert ok
        assert vecmat(x, A) == (2, 7)

    def test_solve_left_no_integer_solution(self):
        A = as_int_matrix([[2, 0], [0, 2]], 2)
        ok, x = solve_left(A, [1, 0])
        assert not ok
        assert x is None

    def test_left_kernel(self):
        A = as_int_matrix([[1, 1], [2, 2], [0, 1]], 2)
        K = left_kernel(A)
        assert K.shape[0] == 1
        assert vecmat(list(K[0]), A) == (0, 0)

    def test_shape_error(self):
        with pytest.raises(MatrixShapeError):
            solve_left(as_int_matrix([[1, 2]], 2), [1])
