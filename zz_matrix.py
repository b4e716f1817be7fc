"""
整数矩阵：Hermite / Smith 正规形、左核、整数线性方程求解。

矩阵统一用 numpy object 数组承载（元素为 Python int，避免溢出），
行变换/列变换在 list-of-lists 上原地完成，再在接口处转换回数组。

约定：
    - 所有映射都是"行向量"约定：x ↦ x·A
    - hnf_with_transform: U·A = H，U 幺模
    - snf_with_transform: U·A·V = D，V·Vinv = I
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

_logger = logging.getLogger(__name__)

IntRows = List[List[int]]


class MatrixShapeError(ValueError):
    """矩阵形状不匹配。"""


# =============================================================================
# 0) 构造与转换
# =============================================================================


def zeros(nrows: int, ncols: int) -> np.ndarray:
    return np.zeros((nrows, ncols), dtype=object)


def identity(size: int) -> np.ndarray:
    out = zeros(size, size)
    for i in range(size):
        out[i, i] = 1
    return out


def as_int_matrix(rows: Sequence[Sequence[int]], ncols: int) -> np.ndarray:
    """把嵌套序列转成 nrows × ncols 的 object 数组（允许 nrows = 0）。"""
    rows = [list(r) for r in rows]
    out = zeros(len(rows), ncols)
    for i, row in enumerate(rows):
        if len(row) != ncols:
            raise MatrixShapeError(f"row {i} has length {len(row)}, expected {ncols}")
        for j, x in enumerate(row):
            out[i, j] = int(x)
    return out


def _to_rows(A: np.ndarray) -> IntRows:
    return [[int(x) for x in row] for row in A.tolist()] if A.shape[0] else []


def _from_rows(rows: IntRows, ncols: int) -> np.ndarray:
    return as_int_matrix(rows, ncols)


def matmul(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """object 数组乘法；对空维度返回正确形状的零矩阵。"""
    m, k = A.shape
    k2, n = B.shape
    if k != k2:
        raise MatrixShapeError(f"cannot multiply {A.shape} by {B.shape}")
    if m == 0 or n == 0 or k == 0:
        return zeros(m, n)
    return A.dot(B)


def vecmat(v: Sequence[int], A: np.ndarray) -> Tuple[int, ...]:
    """行向量乘矩阵，返回 int 元组。"""
    m, n = A.shape
    if len(v) != m:
        raise MatrixShapeError(f"vector of length {len(v)} against {A.shape}")
    out = [0] * n
    for i, c in enumerate(v):
        if c == 0:
            continue
        row = A[i]
        for j in range(n):
            out[j] += c * row[j]
    return tuple(int(x) for x in out)


def block_diagonal(blocks: Sequence[np.ndarray]) -> np.ndarray:
    nrows = sum(b.shape[0] for b in blocks)
    ncols = sum(b.shape[1] for b in blocks)
    out = zeros(nrows, ncols)
    r = c = 0
    for b in blocks:
        out[r:r + b.shape[0], c:c + b.shape[1]] = b
        r += b.shape[0]
        c += b.shape[1]
    return out


def vstack(top: np.ndarray, bottom: np.ndarray) -> np.ndarray:
    if top.shape[1] != bottom.shape[1]:
        raise MatrixShapeError(f"cannot stack {top.shape} over {bottom.shape}")
    out = zeros(top.shape[0] + bottom.shape[0], top.shape[1])
    out[:top.shape[0], :] = top
    out[top.shape[0]:, :] = bottom
    return out


# =============================================================================
# 1) 初等变换
# =============================================================================


def _mat_identity(size: int) -> IntRows:
    return [[1 if i == j else 0 for j in range(size)] for i in range(size)]


def _mat_swap_rows(mat: IntRows, i: int, j: int) -> None:
    if i == j:
        return
    mat[i], mat[j] = mat[j], mat[i]


def _mat_swap_cols(mat: IntRows, i: int, j: int) -> None:
    if i == j:
        return
    for row in mat:
        row[i], row[j] = row[j], row[i]


def _mat_row_addmul(mat: IntRows, target: int, source: int, factor: int) -> None:
    """row_target += factor * row_source"""
    if factor == 0:
        return
    row_s = mat[source]
    mat[target] = [a + factor * b for a, b in zip(mat[target], row_s)]


def _mat_col_addmul(mat: IntRows, target: int, source: int, factor: int) -> None:
    """col_target += factor * col_source"""
    if factor == 0:
        return
    for row in mat:
        row[target] += factor * row[source]


def _mat_row_negate(mat: IntRows, row: int) -> None:
    mat[row] = [-a for a in mat[row]]


# =============================================================================
# 2) Hermite 正规形
# =============================================================================


def _hnf_rows(H: IntRows, ncols: int, U: Optional[IntRows]) -> Tuple[int, List[int]]:
    """原地把 H 化为行 Hermite 形，返回 (rank, pivots)。U 同步行变换。"""
    m = len(H)
    r = 0
    pivots: List[int] = []
    for c in range(ncols):
        if r >= m:
            break
        while True:
            nz = [i for i in range(r, m) if H[i][c] != 0]
            if not nz:
                break
            p = min(nz, key=lambda i: abs(H[i][c]))
            _mat_swap_rows(H, r, p)
            if U is not None:
                _mat_swap_rows(U, r, p)
            done = True
            for i in range(r + 1, m):
                if H[i][c] == 0:
                    continue
                q = H[i][c] // H[r][c]
                _mat_row_addmul(H, i, r, -q)
                if U is not None:
                    _mat_row_addmul(U, i, r, -q)
                if H[i][c] != 0:
                    done = False
            if done:
                break
        if H[r][c] == 0:
            continue
        if H[r][c] < 0:
            _mat_row_negate(H, r)
            if U is not None:
                _mat_row_negate(U, r)
        piv = H[r][c]
        for i in range(r):
            q = H[i][c] // piv
            if q:
                _mat_row_addmul(H, i, r, -q)
                if U is not None:
                    _mat_row_addmul(U, i, r, -q)
        pivots.append(c)
        r += 1
    return r, pivots


def hnf(A: np.ndarray) -> Tuple[np.ndarray, int, List[int]]:
    """行 Hermite 正规形（不带变换矩阵）。返回 (H, rank, pivots)。"""
    m, n = A.shape
    H = _to_rows(A)
    rank, pivots = _hnf_rows(H, n, None)
    return _from_rows(H, n), rank, pivots


def hnf_with_transform(A: np.ndarray) -> Tuple[np.ndarray, np.ndarray, int, List[int]]:
    """
    行 Hermite 正规形 H = U·A。

    H 的前 rank 行是阶梯形，主元为正，主元上方的元素落在 [0, pivot) 中；
    其余行为零。U 为幺模矩阵。
    """
    m, n = A.shape
    H = _to_rows(A)
    U = _mat_identity(m)
    rank, pivots = _hnf_rows(H, n, U)
    return _from_rows(H, n), _from_rows(U, m), rank, pivots


def left_kernel(A: np.ndarray) -> np.ndarray:
    """返回张成 {x : x·A = 0} 的行（作为 Z-模的基）。"""
    m, _ = A.shape
    if m == 0:
        return zeros(0, 0)
    _, U, rank, _ = hnf_with_transform(A)
    return U[rank:, :].copy()


def solve_left(A: np.ndarray, b: Sequence[int]) -> Tuple[bool, Optional[Tuple[int, ...]]]:
    """
    求整数解 x 使得 x·A = b。

    Returns:
        (True, x) 或 (False, None)
    """
    m, n = A.shape
    if len(b) != n:
        raise MatrixShapeError(f"right-hand side of length {len(b)} against {A.shape}")
    if m == 0:
        if any(int(x) != 0 for x in b):
            return False, None
        return True, ()
    H, U, rank, pivots = hnf_with_transform(A)
    res = [int(x) for x in b]
    y = [0] * m
    for k, c in enumerate(pivots):
        h = H[k, c]
        if res[c] % h != 0:
            return False, None
        q = res[c] // h
        y[k] = q
        if q:
            row = H[k]
            res = [res[j] - q * row[j] for j in range(n)]
    if any(res):
        return False, None
    return True, vecmat(y, U)


def reduce_mod_hnf(v: Sequence[int], H: np.ndarray, pivots: Sequence[int]) -> Tuple[int, ...]:
    """v 模 H 的行格的典范代表：主元坐标落在 [0, pivot) 中。"""
    out = [int(x) for x in v]
    n = len(out)
    for k, c in enumerate(pivots):
        h = H[k, c]
        q = out[c] // h
        if q:
            row = H[k]
            for j in range(c, n):
                out[j] -= q * row[j]
    return tuple(out)


# =============================================================================
# 3) Smith 正规形
# =============================================================================


def snf_with_transform(A: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Smith 正规形 D = U·A·V，对角元非负且满足整除链 d_1 | d_2 | ...。

    与对角化不同，这里在每个主元清零行列后检查整除性：
    若子块中有元素不被主元整除，把该行加到主元行上继续消元。

    Returns:
        D, U, V, Vinv
    """
    m, n = A.shape
    D = _to_rows(A)
    U = _mat_identity(m)
    V = _mat_identity(n)
    Vi = _mat_identity(n)

    def col_addmul(target: int, source: int, factor: int) -> None:
        _mat_col_addmul(D, target, source, factor)
        _mat_col_addmul(V, target, source, factor)
        _mat_row_addmul(Vi, source, target, -factor)

    def col_swap(i: int, j: int) -> None:
        _mat_swap_cols(D, i, j)
        _mat_swap_cols(V, i, j)
        _mat_swap_rows(Vi, i, j)

    def row_swap(i: int, j: int) -> None:
        _mat_swap_rows(D, i, j)
        _mat_swap_rows(U, i, j)

    def row_addmul(target: int, source: int, factor: int) -> None:
        _mat_row_addmul(D, target, source, factor)
        _mat_row_addmul(U, target, source, factor)

    t = 0
    while t < min(m, n):
        best = None
        for i in range(t, m):
            for j in range(t, n):
                if D[i][j] != 0 and (best is None or abs(D[i][j]) < abs(D[best[0]][best[1]])):
                    best = (i, j)
        if best is None:
            break
        row_swap(t, best[0])
        col_swap(t, best[1])
        piv = D[t][t]

        residual = False
        for i in range(t + 1, m):
            if D[i][t] != 0:
                row_addmul(i, t, -(D[i][t] // piv))
                residual = residual or D[i][t] != 0
        for j in range(t + 1, n):
            if D[t][j] != 0:
                col_addmul(j, t, -(D[t][j] // piv))
                residual = residual or D[t][j] != 0
        if residual:
            continue

        bad = None
        for i in range(t + 1, m):
            for j in range(t + 1, n):
                if D[i][j] % piv != 0:
                    bad = i
                    break
            if bad is not None:
                break
        if bad is not None:
            row_addmul(t, bad, 1)
            continue

        if piv < 0:
            _mat_row_negate(D, t)
            _mat_row_negate(U, t)
        t += 1

    return _from_rows(D, n), _from_rows(U, m), _from_rows(V, n), _from_rows(Vi, n)


def elementary_divisors(A: np.ndarray, ncols: Optional[int] = None) -> List[int]:
    """Z^n / rowspace(A) 的不变因子（含 0 表示自由部分），去掉 1。"""
    n = A.shape[1] if ncols is None else ncols
    D, _, _, _ = snf_with_transform(A)
    k = min(D.shape[0], n)
    divs = [int(D[i, i]) for i in range(k)] + [0] * (n - k)
    return [d for d in divs if d != 1]


__all__ = [
    "MatrixShapeError",
    "zeros",
    "identity",
    "as_int_matrix",
    "matmul",
    "vecmat",
    "block_diagonal",
    "vstack",
    "hnf",
    "hnf_with_transform",
    "left_kernel",
    "solve_left",
    "reduce_mod_hnf",
    "snf_with_transform",
    "elementary_divisors",
]
