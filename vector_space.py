"""
Finite-dimensional vector spaces over finite fields, on top of ``galois``.

Every space is concretely ``F^d``; subspaces and quotients are realised by
explicit coordinates (a basis for subspaces, a complement of pivot columns
for quotients), so the same code path serves kernels, images and quotients.
Linear maps act on row vectors: ``v ↦ v @ matrix``.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Iterator, List, Optional, Sequence, Tuple, Type

import galois
import numpy as np

from abelian_group import AbelianGroup, abelian_group
from module_api import (
    DirectProduct,
    Module,
    ModuleElem,
    ModuleError,
    ModuleHom,
    ModuleMismatchError,
    NotInModuleError,
)

_logger = logging.getLogger(__name__)


def _zeros(F: Type[galois.FieldArray], *shape: int) -> galois.FieldArray:
    return F.Zeros(shape)


def _fmatmul(F: Type[galois.FieldArray], A: galois.FieldArray, B: galois.FieldArray) -> galois.FieldArray:
    m, k = A.shape
    k2, n = B.shape
    if k != k2:
        raise ModuleMismatchError(f"cannot multiply {A.shape} by {B.shape}")
    if m == 0 or n == 0 or k == 0:
        return _zeros(F, m, n)
    return A @ B


def _rref_basis(F: Type[galois.FieldArray], A: galois.FieldArray) -> Tuple[galois.FieldArray, List[int]]:
    """Nonzero rows of the reduced row echelon form and their pivot columns."""
    m, n = A.shape
    if m == 0 or n == 0:
        return _zeros(F, 0, n), []
    R = A.row_reduce()
    rows, pivots = [], []
    for i in range(R.shape[0]):
        nz = np.nonzero(R[i])[0]
        if len(nz) == 0:
            continue
        rows.append(i)
        pivots.append(int(nz[0]))
    if not rows:
        return _zeros(F, 0, n), []
    return R[rows, :], pivots


def _left_null_space(F: Type[galois.FieldArray], A: galois.FieldArray) -> galois.FieldArray:
    """Rows spanning ``{x : x @ A = 0}``."""
    m, n = A.shape
    if m == 0:
        return _zeros(F, 0, 0)
    if n == 0:
        return F.Identity(m)
    aug = _zeros(F, m, n + m)
    aug[:, :n] = A
    aug[:, n:] = F.Identity(m)
    R = aug.row_reduce()
    rows = [i for i in range(m) if not np.any(R[i, :n])]
    if not rows:
        return _zeros(F, 0, m)
    return R[rows, n:]


class VectorSpaceElem(ModuleElem):
    __slots__ = ("parent", "v")

    def __init__(self, parent: "VectorSpace", v: galois.FieldArray):
        self.parent = parent
        self.v = v

    def _key(self) -> Tuple[int, ...]:
        return tuple(int(x) for x in self.v)

    def _check(self, other: "VectorSpaceElem") -> None:
        if not isinstance(other, VectorSpaceElem) or other.parent is not self.parent:
            raise ModuleMismatchError("vectors of different spaces")

    def __add__(self, other: "VectorSpaceElem") -> "VectorSpaceElem":
        self._check(other)
        return VectorSpaceElem(self.parent, self.v + other.v)

    def __sub__(self, other: "VectorSpaceElem") -> "VectorSpaceElem":
        self._check(other)
        return VectorSpaceElem(self.parent, self.v - other.v)

    def __neg__(self) -> "VectorSpaceElem":
        return VectorSpaceElem(self.parent, -self.v)

    def __rmul__(self, n) -> "VectorSpaceElem":
        return VectorSpaceElem(self.parent, self.v * self.parent.scalar(n))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VectorSpaceElem):
            return NotImplemented
        return other.parent is self.parent and other._key() == self._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def is_zero(self) -> bool:
        return not np.any(self.v)

    def __repr__(self) -> str:
        return f"{list(self._key())}"


class VectorSpace(Module):
    """``field^dim`` with the standard basis as generators."""

    def __init__(self, field: Type[galois.FieldArray], dim: int):
        if dim < 0:
            raise ModuleError(f"dimension must be non-negative, got {dim}")
        self.field = field
        self.dim = dim

    @property
    def ngens(self) -> int:
        return self.dim

    def scalar(self, n) -> galois.FieldArray:
        if isinstance(n, (int, np.integer)):
            return self.field(int(n) % self.field.characteristic)
        return self.field(n)

    def elem(self, values: Sequence[int]) -> VectorSpaceElem:
        if len(values) != self.dim:
            raise NotInModuleError(f"expected {self.dim} entries, got {len(values)}")
        if self.dim == 0:
            return VectorSpaceElem(self, _zeros(self.field, 0))
        return VectorSpaceElem(self, self.field([int(x) for x in values]))

    __call__ = elem

    def zero(self) -> VectorSpaceElem:
        return VectorSpaceElem(self, _zeros(self.field, self.dim))

    def gens(self) -> List[VectorSpaceElem]:
        I = self.field.Identity(self.dim) if self.dim else _zeros(self.field, 0, 0)
        return [VectorSpaceElem(self, I[i].copy()) for i in range(self.dim)]

    def is_trivial(self) -> bool:
        return self.dim == 0

    def order(self) -> int:
        return self.field.order ** self.dim

    def elements(self) -> Iterator[VectorSpaceElem]:
        for values in itertools.product(range(self.field.order), repeat=self.dim):
            yield self.elem(list(values))

    def __repr__(self) -> str:
        return f"VectorSpace(GF({self.field.order}), {self.dim})"

    def as_abelian_group(self) -> Tuple["AbelianGroup", Callable[[VectorSpaceElem], Any], Callable[[Any], VectorSpaceElem]]:
        """
        The additive group ``(Z/p)^(k·dim)`` of ``GF(p^k)^dim`` with the
        coordinate maps both ways.

        Each entry contributes its ``k`` coordinates over ``GF(p)`` in the
        order of ``FieldArray.vector()`` (highest degree first); for a prime
        field these are the entries themselves.
        """
        F = self.field
        p, k = F.characteristic, F.degree
        A = abelian_group([p] * (k * self.dim))

        def to_A(x: VectorSpaceElem) -> Any:
            if x.parent is not self:
                raise NotInModuleError("vector is not in the space")
            if self.dim == 0:
                return A.zero()
            return A.elem([int(c) for c in np.asarray(x.v.vector()).reshape(-1)])

        def from_A(a: Any) -> VectorSpaceElem:
            if a.parent is not A:
                raise NotInModuleError("element is not in the coordinate group")
            if self.dim == 0:
                return self.zero()
            vals = [c % p for c in a.coeffs]
            rows = [vals[i * k:(i + 1) * k] for i in range(self.dim)]
            return VectorSpaceElem(self, F.Vector(rows))

        return A, to_A, from_A

    # -------------------------------------------------------------------------
    # Module interface
    # -------------------------------------------------------------------------

    def hom(self, codomain: Module, images: Sequence[ModuleElem]) -> "VectorSpaceHom":
        if not isinstance(codomain, VectorSpace) or codomain.field is not self.field:
            raise ModuleMismatchError("codomain must be a vector space over the same field")
        images = list(images)
        if len(images) != self.dim:
            raise ModuleError(f"need {self.dim} images, got {len(images)}")
        mat = _zeros(self.field, self.dim, codomain.dim)
        for i, y in enumerate(images):
            if y.parent is not codomain:
                raise NotInModuleError("image is not in the codomain")
            if codomain.dim:
                mat[i, :] = y.v
        return VectorSpaceHom(self, codomain, mat)

    def _from_basis(self, basis: galois.FieldArray) -> Tuple["VectorSpace", "VectorSpaceHom"]:
        S = VectorSpace(self.field, basis.shape[0])
        return S, VectorSpaceHom(S, self, basis)

    def _kernel(self, h: ModuleHom) -> Tuple["VectorSpace", "VectorSpaceHom"]:
        if self.dim == 0:
            return self._from_basis(_zeros(self.field, 0, 0))
        return self._from_basis(_left_null_space(self.field, h.matrix))

    def sub(self, elems: Sequence[ModuleElem]) -> Tuple["VectorSpace", "VectorSpaceHom"]:
        for x in elems:
            if x.parent is not self:
                raise NotInModuleError("generator is not in the space")
        if not elems or self.dim == 0:
            return self._from_basis(_zeros(self.field, 0, self.dim))
        stacked = _zeros(self.field, len(elems), self.dim)
        for i, x in enumerate(elems):
            stacked[i, :] = x.v
        basis, _ = _rref_basis(self.field, stacked)
        return self._from_basis(basis)

    def quo(self, elems: Sequence[ModuleElem]) -> Tuple["VectorSpace", "VectorSpaceHom"]:
        for x in elems:
            if x.parent is not self:
                raise NotInModuleError("element is not in the space")
        F = self.field
        if elems and self.dim:
            stacked = _zeros(F, len(elems), self.dim)
            for i, x in enumerate(elems):
                stacked[i, :] = x.v
            W, pivots = _rref_basis(F, stacked)
        else:
            W, pivots = _zeros(F, 0, self.dim), []
        free = [j for j in range(self.dim) if j not in pivots]
        Q = VectorSpace(F, len(free))
        proj = _zeros(F, self.dim, len(free))
        for i in range(self.dim):
            v = _zeros(F, self.dim)
            v[i] = 1
            for r, p in enumerate(pivots):
                if v[p] != 0:
                    v = v - v[p] * W[r]
            if free:
                proj[i, :] = v[free]
        return Q, VectorSpaceHom(self, Q, proj)

    def _direct_product(self, modules: Sequence[Module]) -> DirectProduct:
        F = self.field
        for V in modules:
            if not isinstance(V, VectorSpace) or V.field is not F:
                raise ModuleMismatchError("direct product of mixed module types")
        n = sum(V.dim for V in modules)
        D = VectorSpace(F, n)
        pro, inj = [], []
        offset = 0
        for V in modules:
            p = _zeros(F, n, V.dim)
            q = _zeros(F, V.dim, n)
            for i in range(V.dim):
                p[offset + i, i] = 1
                q[i, offset + i] = 1
            pro.append(VectorSpaceHom(D, V, p))
            inj.append(VectorSpaceHom(V, D, q))
            offset += V.dim
        return DirectProduct(D, pro, inj)

    def _has_preimage(self, h: ModuleHom, y: ModuleElem) -> Tuple[bool, Optional[VectorSpaceElem]]:
        F = self.field
        n, m = self.dim, h.codomain.dim
        if m == 0:
            return True, self.zero()
        if n == 0:
            return (True, self.zero()) if y.is_zero() else (False, None)
        aug = _zeros(F, m, n + 1)
        aug[:, :n] = h.matrix.T
        aug[:, n] = y.v
        R = aug.row_reduce()
        x = _zeros(F, n)
        for i in range(m):
            nz = np.nonzero(R[i])[0]
            if len(nz) == 0:
                continue
            j = int(nz[0])
            if j == n:
                return False, None
            x[j] = R[i, n]
        return True, VectorSpaceElem(self, x)


class VectorSpaceHom(ModuleHom):
    def __init__(self, domain: VectorSpace, codomain: VectorSpace, matrix: galois.FieldArray):
        if matrix.shape != (domain.dim, codomain.dim):
            raise ModuleMismatchError(f"matrix shape {matrix.shape} does not match {domain.dim} x {codomain.dim}")
        self.domain = domain
        self.codomain = codomain
        self.matrix = matrix

    def __call__(self, x: ModuleElem) -> VectorSpaceElem:
        if x.parent is not self.domain:
            raise NotInModuleError("element is not in the domain")
        F = self.domain.field
        row = _fmatmul(F, x.v.reshape(1, self.domain.dim), self.matrix)
        return VectorSpaceElem(self.codomain, row.reshape(self.codomain.dim))

    def images(self) -> List[VectorSpaceElem]:
        return [VectorSpaceElem(self.codomain, self.matrix[i].copy()) for i in range(self.domain.dim)]

    def __add__(self, other: ModuleHom) -> "VectorSpaceHom":
        self._check_parallel(other)
        return VectorSpaceHom(self.domain, self.codomain, self.matrix + other.matrix)

    def __sub__(self, other: ModuleHom) -> "VectorSpaceHom":
        self._check_parallel(other)
        return VectorSpaceHom(self.domain, self.codomain, self.matrix - other.matrix)

    def __neg__(self) -> "VectorSpaceHom":
        return VectorSpaceHom(self.domain, self.codomain, -self.matrix)

    def __rmul__(self, n) -> "VectorSpaceHom":
        return VectorSpaceHom(self.domain, self.codomain, self.matrix * self.domain.scalar(n))

    def __mul__(self, other):
        if not isinstance(other, ModuleHom):
            return self.__rmul__(other)
        if other.domain is not self.codomain:
            raise ModuleMismatchError("cannot compose: codomain and domain differ")
        F = self.domain.field
        return VectorSpaceHom(self.domain, other.codomain, _fmatmul(F, self.matrix, other.matrix))

    def inverse(self) -> "VectorSpaceHom":
        if self.domain.dim != self.codomain.dim:
            raise ModuleError("only square maps can be inverted")
        if self.domain.dim == 0:
            return VectorSpaceHom(self.codomain, self.domain, self.matrix)
        return VectorSpaceHom(self.codomain, self.domain, np.linalg.inv(self.matrix))

    def __repr__(self) -> str:
        return f"VectorSpaceHom({self.domain} -> {self.codomain})"


def vector_space(order: int, dim: int) -> VectorSpace:
    """``GF(order)^dim``."""
    return VectorSpace(galois.GF(order), dim)


__all__ = [
    "VectorSpace",
    "VectorSpaceElem",
    "VectorSpaceHom",
    "vector_space",
]
