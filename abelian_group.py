"""
有限生成阿贝尔群 A = Z^n / L，L 由关系矩阵的行张成。

表示：
    - 关系矩阵在构造时化为 Hermite 正规形（只保留非零行），
      元素用系数向量模 L 的典范代表存储，因此相等性就是元组相等；
    - 同态 A → B 用 n_A × n_B 整数矩阵表示（第 i 行是第 i 个生成元的像），
      作用在行向量上：x ↦ x·M。

所有"子群/核/商"的计算都归结为 zz_matrix 中的左核与整数方程求解。
"""

from __future__ import annotations

import itertools
import logging
import math
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from cohomology_config import assertions_enabled
from module_api import (
    DirectProduct,
    Module,
    ModuleElem,
    ModuleError,
    ModuleHom,
    ModuleMismatchError,
    NotInModuleError,
)
from zz_matrix import (
    as_int_matrix,
    block_diagonal,
    hnf,
    identity,
    left_kernel,
    matmul,
    reduce_mod_hnf,
    snf_with_transform,
    solve_left,
    vecmat,
    vstack,
    zeros,
)

_logger = logging.getLogger(__name__)


class InfiniteGroupError(ModuleError):
    """Operation needs a finite group."""


class AbelianGroupElem(ModuleElem):
    __slots__ = ("parent", "coeffs")

    def __init__(self, parent: "AbelianGroup", coeffs: Tuple[int, ...]):
        self.parent = parent
        self.coeffs = coeffs

    def _check(self, other: "AbelianGroupElem") -> None:
        if not isinstance(other, AbelianGroupElem) or other.parent is not self.parent:
            raise ModuleMismatchError("elements of different groups")

    def __add__(self, other: "AbelianGroupElem") -> "AbelianGroupElem":
        self._check(other)
        return self.parent.elem([a + b for a, b in zip(self.coeffs, other.coeffs)])

    def __sub__(self, other: "AbelianGroupElem") -> "AbelianGroupElem":
        self._check(other)
        return self.parent.elem([a - b for a, b in zip(self.coeffs, other.coeffs)])

    def __neg__(self) -> "AbelianGroupElem":
        return self.parent.elem([-a for a in self.coeffs])

    def __rmul__(self, n: int) -> "AbelianGroupElem":
        return self.parent.elem([n * a for a in self.coeffs])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AbelianGroupElem):
            return NotImplemented
        return other.parent is self.parent and other.coeffs == self.coeffs

    def __hash__(self) -> int:
        return hash(self.coeffs)

    def __getitem__(self, i: int) -> int:
        return self.coeffs[i]

    def is_zero(self) -> bool:
        return not any(self.coeffs)

    def order(self) -> int:
        """0 for elements of infinite order."""
        S, _, to_snf = self.parent._snf_data()
        y = to_snf(self)
        o = 1
        for c, d in zip(y.coeffs, S._diagonal()):
            if c == 0:
                continue
            if d == 0:
                return 0
            k = d // math.gcd(d, c)
            o = o * k // math.gcd(o, k)
        return o

    def __repr__(self) -> str:
        return f"{list(self.coeffs)}"


class AbelianGroup(Module):
    """Z^n modulo the row lattice of ``relations``."""

    _elem_class = AbelianGroupElem

    def __init__(self, relations, ngens: Optional[int] = None):
        if isinstance(relations, np.ndarray):
            n = relations.shape[1] if ngens is None else ngens
            rel = relations
        else:
            rows = [list(r) for r in relations]
            if ngens is None:
                if not rows:
                    raise ModuleError("ngens is required when there are no relations")
                ngens = len(rows[0])
            n = ngens
            rel = as_int_matrix(rows, n)
        H, rank, pivots = hnf(rel)
        self._ngens = n
        self._rels = H[:rank, :].copy()
        self._pivots = pivots
        self.exponent_hint: Optional[int] = None
        self._snf = None

    # -------------------------------------------------------------------------
    # 基本结构
    # -------------------------------------------------------------------------

    @property
    def ngens(self) -> int:
        return self._ngens

    @property
    def relations(self) -> np.ndarray:
        return self._rels

    def elem(self, coeffs: Sequence[int]) -> AbelianGroupElem:
        if len(coeffs) != self._ngens:
            raise NotInModuleError(f"expected {self._ngens} coefficients, got {len(coeffs)}")
        return self._elem_class(self, reduce_mod_hnf(coeffs, self._rels, self._pivots))

    __call__ = elem

    def zero(self) -> AbelianGroupElem:
        return self._elem_class(self, (0,) * self._ngens)

    def gens(self) -> List[AbelianGroupElem]:
        return [self.elem([1 if j == i else 0 for j in range(self._ngens)]) for i in range(self._ngens)]

    def gen(self, i: int) -> AbelianGroupElem:
        return self.gens()[i]

    def __repr__(self) -> str:
        divs = self.elementary_divisors()
        if not divs:
            return "AbelianGroup(0)"
        return "AbelianGroup(" + " x ".join("Z" if d == 0 else f"Z/{d}" for d in divs) + ")"

    # -------------------------------------------------------------------------
    # 不变量
    # -------------------------------------------------------------------------

    def _snf_data(self):
        if self._snf is None:
            D, _, V, Vi = snf_with_transform(self._rels)
            n = self._ngens
            k = min(D.shape[0], n)
            divs = [int(D[i, i]) for i in range(k)] + [0] * (n - k)
            keep = [i for i, d in enumerate(divs) if d != 1]
            S = abelian_group([divs[i] for i in keep])
            to_A = S.hom(self, [self.elem(list(Vi[i, :])) for i in keep], check=False)
            to_S = self.hom(S, [S.elem([int(V[j, i]) for i in keep]) for j in range(n)], check=False)
            to_A._inverse = to_S
            to_S._inverse = to_A
            self._snf = (S, to_A, to_S)
        return self._snf

    def snf(self) -> Tuple["AbelianGroup", "AbelianGroupHom"]:
        """Isomorphic group in Smith form and the isomorphism S → A."""
        S, to_A, _ = self._snf_data()
        return S, to_A

    def elementary_divisors(self) -> List[int]:
        """Invariant factors d_1 | d_2 | ... (0 = infinite cyclic), without 1s."""
        if self._snf is not None:
            return self._snf[0]._diagonal()
        D, _, _, _ = snf_with_transform(self._rels)
        n = self._ngens
        k = min(D.shape[0], n)
        divs = [int(D[i, i]) for i in range(k)] + [0] * (n - k)
        return [d for d in divs if d != 1]

    def _diagonal(self) -> List[int]:
        # only meaningful for groups built by abelian_group()
        out = []
        for i in range(self._ngens):
            row = [k for k, p in enumerate(self._pivots) if p == i]
            out.append(int(self._rels[row[0], i]) if row else 0)
        return out

    def is_finite(self) -> bool:
        return self._rels.shape[0] == self._ngens

    def is_trivial(self) -> bool:
        return self.is_finite() and all(self._rels[k, c] == 1 for k, c in enumerate(self._pivots))

    def order(self) -> int:
        if not self.is_finite():
            raise InfiniteGroupError("group is infinite")
        o = 1
        for k, c in enumerate(self._pivots):
            o *= int(self._rels[k, c])
        return o

    def exponent(self) -> int:
        """0 if the group is infinite."""
        divs = self.elementary_divisors()
        if any(d == 0 for d in divs):
            e = 0
        else:
            e = 1
            for d in divs:
                e = e * d // math.gcd(e, d)
        if self.exponent_hint is not None and (e == 0 or self.exponent_hint % e != 0):
            raise ModuleError(f"exponent {e} does not divide the recorded hint {self.exponent_hint}")
        return e

    def elements(self) -> Iterator[AbelianGroupElem]:
        if not self.is_finite():
            raise InfiniteGroupError("cannot enumerate an infinite group")
        ranges = [range(int(self._rels[k, c])) for k, c in enumerate(self._pivots)]
        for coeffs in itertools.product(*ranges):
            yield self._elem_class(self, tuple(coeffs))

    # -------------------------------------------------------------------------
    # 同态与子商
    # -------------------------------------------------------------------------

    def hom(self, codomain: Module, images: Sequence[ModuleElem], check: Optional[bool] = None) -> "AbelianGroupHom":
        if not isinstance(codomain, AbelianGroup):
            raise ModuleMismatchError("codomain must be an AbelianGroup")
        images = list(images)
        if len(images) != self._ngens:
            raise ModuleError(f"need {self._ngens} images, got {len(images)}")
        for y in images:
            if y.parent is not codomain:
                raise NotInModuleError("image is not in the codomain")
        mat = as_int_matrix([y.coeffs for y in images], codomain.ngens)
        return AbelianGroupHom(self, codomain, mat, check=check)

    def _kernel(self, h: ModuleHom) -> Tuple["AbelianGroup", "AbelianGroupHom"]:
        n = self._ngens
        stacked = vstack(h.matrix, h.codomain.relations)
        K = left_kernel(stacked)
        gens = [self.elem(list(K[i, :n])) for i in range(K.shape[0])]
        return self.sub(gens)

    def sub(self, elems: Sequence[ModuleElem]) -> Tuple["AbelianGroup", "AbelianGroupHom"]:
        elems = [x for x in elems if not x.is_zero()]
        for x in elems:
            if x.parent is not self:
                raise NotInModuleError("generator is not in the group")
        k = len(elems)
        gens_mat = as_int_matrix([x.coeffs for x in elems], self._ngens)
        K = left_kernel(vstack(gens_mat, self._rels))
        rels = K[:, :k] if K.shape[0] else zeros(0, k)
        S = AbelianGroup(rels, k)
        emb = AbelianGroupHom(S, self, gens_mat, check=False)
        return S, emb

    def quo(self, elems: Sequence[ModuleElem]) -> Tuple["AbelianGroup", "AbelianGroupHom"]:
        for x in elems:
            if x.parent is not self:
                raise NotInModuleError("element is not in the group")
        extra = as_int_matrix([x.coeffs for x in elems], self._ngens)
        Q = AbelianGroup(vstack(self._rels, extra), self._ngens)
        proj = AbelianGroupHom(self, Q, identity(self._ngens), check=False)
        return Q, proj

    def _direct_product(self, modules: Sequence[Module]) -> DirectProduct:
        for A in modules:
            if not isinstance(A, AbelianGroup):
                raise ModuleMismatchError("direct product of mixed module types")
        n = sum(A.ngens for A in modules)
        D = AbelianGroup(block_diagonal([A.relations for A in modules]) if modules else zeros(0, 0), n)
        pro, inj = [], []
        offset = 0
        for A in modules:
            p = zeros(n, A.ngens)
            q = zeros(A.ngens, n)
            for i in range(A.ngens):
                p[offset + i, i] = 1
                q[i, offset + i] = 1
            pro.append(AbelianGroupHom(D, A, p, check=False))
            inj.append(AbelianGroupHom(A, D, q, check=False))
            offset += A.ngens
        return DirectProduct(D, pro, inj)

    def _has_preimage(self, h: ModuleHom, y: ModuleElem) -> Tuple[bool, Optional[AbelianGroupElem]]:
        stacked = vstack(h.matrix, h.codomain.relations)
        ok, x = solve_left(stacked, y.coeffs)
        if not ok:
            return False, None
        return True, self.elem(list(x[:self._ngens]))


class AbelianGroupHom(ModuleHom):
    """x ↦ x·matrix."""

    def __init__(self, domain: AbelianGroup, codomain: AbelianGroup, matrix: np.ndarray, check: Optional[bool] = None):
        if matrix.shape != (domain.ngens, codomain.ngens):
            raise ModuleMismatchError(
                f"matrix shape {matrix.shape} does not match {domain.ngens} x {codomain.ngens}"
            )
        self.domain = domain
        self.codomain = codomain
        self.matrix = matrix
        self._inverse: Optional[AbelianGroupHom] = None
        if check is None:
            check = assertions_enabled(2)
        if check and not self._well_defined():
            raise ModuleError("map does not respect the relations of the domain")

    def _well_defined(self) -> bool:
        R = self.domain.relations
        for i in range(R.shape[0]):
            if not self.codomain.elem(vecmat(list(R[i, :]), self.matrix)).is_zero():
                return False
        return True

    def __call__(self, x: ModuleElem) -> AbelianGroupElem:
        if x.parent is not self.domain:
            raise NotInModuleError("element is not in the domain")
        return self.codomain.elem(vecmat(x.coeffs, self.matrix))

    def images(self) -> List[AbelianGroupElem]:
        return [self.codomain.elem(list(self.matrix[i, :])) for i in range(self.domain.ngens)]

    def __add__(self, other: ModuleHom) -> "AbelianGroupHom":
        self._check_parallel(other)
        return AbelianGroupHom(self.domain, self.codomain, self.matrix + other.matrix, check=False)

    def __sub__(self, other: ModuleHom) -> "AbelianGroupHom":
        self._check_parallel(other)
        return AbelianGroupHom(self.domain, self.codomain, self.matrix - other.matrix, check=False)

    def __neg__(self) -> "AbelianGroupHom":
        return AbelianGroupHom(self.domain, self.codomain, -self.matrix, check=False)

    def __rmul__(self, n: int) -> "AbelianGroupHom":
        return AbelianGroupHom(self.domain, self.codomain, self.matrix * n, check=False)

    def __mul__(self, other):
        if isinstance(other, int):
            return self.__rmul__(other)
        if other.domain is not self.codomain:
            raise ModuleMismatchError("cannot compose: codomain and domain differ")
        return AbelianGroupHom(self.domain, other.codomain, matmul(self.matrix, other.matrix), check=False)

    def inverse(self) -> "AbelianGroupHom":
        if self._inverse is None:
            inv = ModuleHom.inverse(self)
            inv._inverse = self
            self._inverse = inv
        return self._inverse

    def __repr__(self) -> str:
        return f"AbelianGroupHom({self.domain} -> {self.codomain}, {self.matrix.tolist()})"


# =============================================================================
# 构造函数
# =============================================================================


def abelian_group(orders: Sequence[int]) -> AbelianGroup:
    """Z/n_1 × ... × Z/n_k；n_i = 0 表示无限循环因子。"""
    k = len(orders)
    rows = []
    for i, o in enumerate(orders):
        if o < 0:
            raise ModuleError(f"cyclic orders must be non-negative, got {o}")
        if o:
            rows.append([o if j == i else 0 for j in range(k)])
    return AbelianGroup(as_int_matrix(rows, k), k)


def free_abelian_group(rank: int) -> AbelianGroup:
    return abelian_group([0] * rank)


def trivial_abelian_group() -> AbelianGroup:
    return abelian_group([])


def automorphism(A: AbelianGroup, rows: Sequence[Sequence[int]]) -> AbelianGroupHom:
    """Endomorphism of ``A`` from an integer matrix (row i = image of gen i)."""
    return A.hom(A, [A.elem(list(r)) for r in rows])


__all__ = [
    "InfiniteGroupError",
    "AbelianGroup",
    "AbelianGroupElem",
    "AbelianGroupHom",
    "abelian_group",
    "free_abelian_group",
    "trivial_abelian_group",
    "automorphism",
]
