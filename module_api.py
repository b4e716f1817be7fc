"""
Module capability interface.

Every concrete module representation (finitely generated abelian groups,
vector spaces over finite fields) implements :class:`Module` and
:class:`ModuleHom`.  The cohomology engine only talks to the generic
functions at the bottom of this file, never to a concrete class.

Conventions:
    * homomorphisms act on the right of row vectors, ``f * g`` means
      "apply ``f``, then ``g``";
    * "not found" results are reported as ``(False, None)``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

_logger = logging.getLogger(__name__)


# =============================================================================
# 0) 异常
# =============================================================================


class ModuleError(Exception):
    """Base class for module algebra errors."""


class ModuleMismatchError(ModuleError):
    """Operands live in different modules."""


class NotInModuleError(ModuleError):
    """Element or map does not belong to the expected module."""


# =============================================================================
# 1) Abstract interface
# =============================================================================


class ModuleElem(ABC):
    parent: "Module"

    @abstractmethod
    def __add__(self, other: "ModuleElem") -> "ModuleElem":
        ...

    @abstractmethod
    def __neg__(self) -> "ModuleElem":
        ...

    @abstractmethod
    def __rmul__(self, n: int) -> "ModuleElem":
        ...

    def __sub__(self, other: "ModuleElem") -> "ModuleElem":
        return self + (-other)

    def __mul__(self, n: int) -> "ModuleElem":
        return self.__rmul__(n)

    def is_zero(self) -> bool:
        return self == self.parent.zero()


class Module(ABC):
    """A finitely generated module with explicit generators."""

    @property
    @abstractmethod
    def ngens(self) -> int:
        ...

    @abstractmethod
    def gens(self) -> List[ModuleElem]:
        ...

    @abstractmethod
    def zero(self) -> ModuleElem:
        ...

    @abstractmethod
    def hom(self, codomain: "Module", images: Sequence[ModuleElem]) -> "ModuleHom":
        """The homomorphism sending ``gens()[i]`` to ``images[i]``."""

    @abstractmethod
    def _kernel(self, h: "ModuleHom") -> Tuple["Module", "ModuleHom"]:
        ...

    @abstractmethod
    def sub(self, elems: Sequence[ModuleElem]) -> Tuple["Module", "ModuleHom"]:
        ...

    @abstractmethod
    def quo(self, elems: Sequence[ModuleElem]) -> Tuple["Module", "ModuleHom"]:
        ...

    @abstractmethod
    def _direct_product(self, modules: Sequence["Module"]) -> "DirectProduct":
        """Direct product of ``modules``; ``self`` only fixes the representation."""

    @abstractmethod
    def _has_preimage(self, h: "ModuleHom", y: ModuleElem) -> Tuple[bool, Optional[ModuleElem]]:
        ...

    @abstractmethod
    def is_trivial(self) -> bool:
        ...

    def identity_hom(self) -> "ModuleHom":
        return self.hom(self, self.gens())

    def zero_hom(self, codomain: "Module") -> "ModuleHom":
        return self.hom(codomain, [codomain.zero()] * self.ngens)

    def direct_power(self, n: int) -> "DirectProduct":
        return self._direct_product([self] * n)

    def __contains__(self, x: Any) -> bool:
        return isinstance(x, ModuleElem) and x.parent is self


class ModuleHom(ABC):
    """Homomorphism ``domain -> codomain`` given by images of generators."""

    domain: Module
    codomain: Module

    @abstractmethod
    def __call__(self, x: ModuleElem) -> ModuleElem:
        ...

    def images(self) -> List[ModuleElem]:
        return [self(g) for g in self.domain.gens()]

    def _check_parallel(self, other: "ModuleHom") -> None:
        if other.domain is not self.domain or other.codomain is not self.codomain:
            raise ModuleMismatchError("homomorphisms have different domain or codomain")

    def __add__(self, other: "ModuleHom") -> "ModuleHom":
        self._check_parallel(other)
        return self.domain.hom(self.codomain, [a + b for a, b in zip(self.images(), other.images())])

    def __neg__(self) -> "ModuleHom":
        return self.domain.hom(self.codomain, [-a for a in self.images()])

    def __sub__(self, other: "ModuleHom") -> "ModuleHom":
        return self + (-other)

    def __rmul__(self, n: int) -> "ModuleHom":
        return self.domain.hom(self.codomain, [n * a for a in self.images()])

    def __mul__(self, other: Union["ModuleHom", int]) -> "ModuleHom":
        if isinstance(other, int):
            return self.__rmul__(other)
        if other.domain is not self.codomain:
            raise ModuleMismatchError("cannot compose: codomain and domain differ")
        return self.domain.hom(other.codomain, [other(a) for a in self.images()])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ModuleHom):
            return NotImplemented
        if other.domain is not self.domain or other.codomain is not self.codomain:
            return False
        return all(a == b for a, b in zip(self.images(), other.images()))

    __hash__ = None  # type: ignore[assignment]

    def is_zero(self) -> bool:
        return all(a.is_zero() for a in self.images())

    def inverse(self) -> "ModuleHom":
        """Inverse of a bijective homomorphism."""
        images = []
        for y in self.codomain.gens():
            ok, x = has_preimage(self, y)
            if not ok:
                raise ModuleError("homomorphism is not surjective, no inverse")
            images.append(x)
        inv = self.codomain.hom(self.domain, images)
        if not is_injective(self):
            raise ModuleError("homomorphism is not injective, no inverse")
        return inv


@dataclass
class DirectProduct:
    """``module`` with projections ``pro[i]`` and injections ``inj[i]``."""
    module: Module
    projections: List[ModuleHom]
    injections: List[ModuleHom]

    def __iter__(self):
        return iter((self.module, self.projections, self.injections))


# =============================================================================
# 2) Generic operations
# =============================================================================


def hom(domain: Module, codomain: Module, images: Sequence[ModuleElem]) -> ModuleHom:
    return domain.hom(codomain, images)


def identity_hom(M: Module) -> ModuleHom:
    return M.identity_hom()


def zero_hom(domain: Module, codomain: Module) -> ModuleHom:
    return domain.zero_hom(codomain)


def kernel(h: ModuleHom) -> Tuple[Module, ModuleHom]:
    """Kernel as an abstract module with its embedding into ``h.domain``."""
    return h.domain._kernel(h)


def image(h: ModuleHom) -> Tuple[Module, ModuleHom]:
    return h.codomain.sub(h.images())


def sub(M: Module, elems: Sequence[ModuleElem]) -> Tuple[Module, ModuleHom]:
    return M.sub(elems)


def quo(M: Module, U: Union[ModuleHom, Sequence[ModuleElem]]) -> Tuple[Module, ModuleHom]:
    """Quotient of ``M`` by a submodule given by generators or by an embedding."""
    if isinstance(U, ModuleHom):
        if U.codomain is not M:
            raise ModuleMismatchError("submodule embedding does not land in the module")
        U = U.images()
    return M.quo(list(U))


def direct_product(*modules: Module, like: Optional[Module] = None) -> DirectProduct:
    if not modules:
        if like is None:
            raise ModuleError("empty direct product needs a template module")
        return like._direct_product([])
    return modules[0]._direct_product(list(modules))


def has_preimage(h: ModuleHom, y: ModuleElem) -> Tuple[bool, Optional[ModuleElem]]:
    if y.parent is not h.codomain:
        raise NotInModuleError("element is not in the codomain")
    return h.domain._has_preimage(h, y)


def preimage(h: ModuleHom, y: ModuleElem) -> ModuleElem:
    ok, x = has_preimage(h, y)
    if not ok:
        raise NotInModuleError("element has no preimage")
    return x


def is_injective(h: ModuleHom) -> bool:
    K, _ = kernel(h)
    return K.is_trivial()


def is_surjective(h: ModuleHom) -> bool:
    return all(has_preimage(h, y)[0] for y in h.codomain.gens())


def is_bijective(h: ModuleHom) -> bool:
    return is_injective(h) and is_surjective(h)


def lift_through(f: ModuleHom, g: ModuleHom) -> Tuple[bool, Optional[ModuleHom]]:
    """
    Find ``h`` with ``h * g == f`` for ``f: X -> Y`` and injective ``g: Z -> Y``.

    This is the subgroup test with explicit embedding: the image of ``f``
    lies in the image of ``g`` iff such an ``h`` exists.
    """
    if f.codomain is not g.codomain:
        raise ModuleMismatchError("maps have different codomains")
    images = []
    for y in f.images():
        ok, x = has_preimage(g, y)
        if not ok:
            return False, None
        images.append(x)
    return True, f.domain.hom(g.domain, images)


def is_subset(f: ModuleHom, g: ModuleHom) -> bool:
    return all(has_preimage(g, y)[0] for y in f.images())


def sum_homs(homs: Sequence[ModuleHom], domain: Module, codomain: Module) -> ModuleHom:
    total = domain.zero_hom(codomain)
    for h in homs:
        total = total + h
    return total


__all__ = [
    "ModuleError",
    "ModuleMismatchError",
    "NotInModuleError",
    "Module",
    "ModuleElem",
    "ModuleHom",
    "DirectProduct",
    "hom",
    "identity_hom",
    "zero_hom",
    "kernel",
    "image",
    "sub",
    "quo",
    "direct_product",
    "has_preimage",
    "preimage",
    "is_injective",
    "is_surjective",
    "is_bijective",
    "lift_through",
    "is_subset",
    "sum_homs",
]
