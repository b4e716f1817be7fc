"""
Galois cohomology of finite fields.

``Gal(F_{p^n} / F_{p^m})`` is cyclic of order ``n/m``, generated by the
Frobenius ``x ↦ x^{p^m}``.  Two modules are provided:

* the multiplicative group ``F_{p^n}^*`` as a :class:`multgrp.MultGrp`,
  whose coordinate is the discrete logarithm to the primitive element of
  ``galois``; cochain values are field elements in additive notation;
* the additive group ``F_{p^n}``, an ``n``-dimensional ``F_p``-space.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple, Type

import galois
from sympy import isprime

from abelian_group import abelian_group
from cochain import CoChain, restrict_cochain
from cohomology import H_one, H_two, cohomology_group
from cohomology_config import configure_logging
from finite_group import FiniteGroup, Subgroup, cyclic_group
from gmodule import GModule, InconsistencyError, PreconditionError, restrict as restrict_gmodule, trivial_gmodule
from module_api import ModuleElem
from multgrp import MultGrp
from vector_space import vector_space

_logger = logging.getLogger(__name__)


def multiplicative_group(K: Type[galois.FieldArray]) -> MultGrp:
    """``K^*`` as a cyclic :class:`MultGrp` on the primitive element."""
    alpha = K.primitive_element

    def log(x: Any) -> List[int]:
        x = K(x)
        if int(x) == 0:
            raise PreconditionError("zero is not in the multiplicative group")
        return [int(x.log())]

    return MultGrp(K(1), [alpha], [K.order - 1], log, name=f"GF({K.order})^*")


@dataclass
class FrobeniusModule:
    """A Galois module of ``F_{p^n}`` together with the bridge to field elements."""
    K: Type[galois.FieldArray]
    p: int
    n: int
    m: int
    gmodule: GModule
    to_module: Callable[[Any], ModuleElem] = field(repr=False)
    from_module: Callable[[ModuleElem], Any] = field(repr=False)

    @property
    def group(self) -> FiniteGroup:
        return self.gmodule.G

    @property
    def frobenius(self) -> Any:
        """Generator ``x ↦ x^{p^m}``; the identity for the trivial extension."""
        G = self.group
        return G.generators[0] if G.ngens else G.identity


def _galois_group(p: int, n: int, m: int) -> FiniteGroup:
    if not isprime(p):
        raise PreconditionError(f"{p} is not a prime")
    if n < 1 or m < 1 or n % m:
        raise PreconditionError(f"F_{p}^{m} is not a subfield of F_{p}^{n}")
    return cyclic_group(n // m)


def frobenius_gmodule_multiplicative(p: int, n: int, m: int = 1) -> FrobeniusModule:
    """``Gal(F_{p^n}/F_{p^m})`` acting on the :class:`MultGrp` ``F_{p^n}^*``."""
    G = _galois_group(p, n, m)
    K = galois.GF(p ** n)
    U = multiplicative_group(K)
    frob = U.hom(U, [p ** m * u for u in U.gens()])
    C = GModule(G, U, [frob] * G.ngens)

    def from_module(a: ModuleElem) -> Any:
        if a.parent is not U:
            raise PreconditionError("element is not in the module")
        return a.data

    _logger.debug("multiplicative Frobenius module of GF(%d^%d) over GF(%d^%d)", p, n, p, m)
    return FrobeniusModule(K, p, n, m, C, U, from_module)


def frobenius_gmodule_additive(p: int, n: int, m: int = 1) -> FrobeniusModule:
    """``Gal(F_{p^n}/F_{p^m})`` acting on ``F_{p^n}`` as an ``F_p``-space."""
    G = _galois_group(p, n, m)
    K = galois.GF(p ** n)
    V = vector_space(p, n)
    basis = [K.Vector([1 if j == i else 0 for j in range(n)]) for i in range(n)]
    frob = V.hom(V, [V.elem([int(a) for a in (b ** (p ** m)).vector()]) for b in basis])
    C = GModule(G, V, [frob] * G.ngens)

    def to_module(x: Any) -> ModuleElem:
        return V.elem([int(a) for a in K(x).vector()])

    def from_module(v: ModuleElem) -> Any:
        if v.parent is not V:
            raise PreconditionError("element is not in the module")
        return K.Vector([int(a) for a in v.v])

    return FrobeniusModule(K, p, n, m, C, to_module, from_module)


# =============================================================================
# 乘法记号的上链
# =============================================================================


def multiplicative_cochain(F: FrobeniusModule, degree: int, values: Dict[Tuple[Any, ...], Any]) -> CoChain:
    """Cochain of ``F.gmodule`` from field elements (or module elements) keyed by group tuples."""
    return CoChain(F.gmodule, degree, {args: F.to_module(v) for args, v in values.items()})


def field_values(F: FrobeniusModule, c: CoChain) -> Dict[Tuple[Any, ...], Any]:
    """Values of ``c`` as field elements."""
    if c.C is not F.gmodule:
        raise PreconditionError("cochain of a different module")
    c.table()
    return {args: F.from_module(v) for args, v in c.items()}


def is_coboundary(F: FrobeniusModule, c: CoChain) -> Tuple[bool, Any]:
    """
    Coboundary test for a 1- or 2-cochain of ``F.gmodule``.

    The witness is a field element for degree 1 and a dict of field values
    for degree 2.
    """
    if c.C is not F.gmodule:
        raise PreconditionError("cochain of a different module")
    if c.degree == 1:
        ok, d = H_one(F.gmodule).is_coboundary(c)
        return ok, (F.from_module(d()) if ok else None)
    if c.degree == 2:
        ok, d = H_two(F.gmodule).is_coboundary(c)
        return ok, ({args[0]: F.from_module(v) for args, v in d.items()} if ok else None)
    raise PreconditionError(f"no coboundaries in degree {c.degree}")


def hilbert90(F: FrobeniusModule, X: CoChain) -> Any:
    """
    ``b`` with ``X(σ) = σ(b) / b`` (multiplicative) or ``σ(b) - b`` (additive).

    Both first cohomology groups vanish, so every 1-cocycle bounds.
    """
    ok, b = is_coboundary(F, X)
    if not ok:
        raise InconsistencyError("1-cochain is not a cocycle")
    return b


# =============================================================================
# 循环群的基本类与限制
# =============================================================================


def cyclic_fundamental_class(G: FiniteGroup) -> Tuple[GModule, CoChain]:
    """
    The class generating ``H^2(G, Z) ≅ Z/n`` for cyclic ``G`` of order ``n``.

    With ``G = <σ>``: ``c(σ^i, σ^j) = 1`` if ``i + j ≥ n`` and ``0`` otherwise.
    """
    n = G.order()
    sigma = next((g for g in G.generators if G.element_order(g) == n), None)
    if sigma is None:
        sigma = next((g for g in G.elements() if G.element_order(g) == n), None)
    if sigma is None:
        raise PreconditionError(f"{G!r} is not cyclic")
    exp: Dict[Any, int] = {}
    x = G.identity
    for i in range(n):
        exp[G.key(x)] = i
        x = G.mul(x, sigma)
    Z = abelian_group([0])
    C = trivial_gmodule(G, Z)
    one, zero = Z.elem([1]), Z.zero()
    c = CoChain.from_function(C, 2, lambda g, h: one if exp[G.key(g)] + exp[G.key(h)] >= n else zero)
    return C, c


def restrict(F: FrobeniusModule, d: int) -> Tuple[GModule, Callable[[CoChain], CoChain]]:
    """
    Restriction to ``Gal(F_{p^n}/F_{p^{md}})``, generated by the ``d``-th power of Frobenius.

    Returns the restricted module and the restriction map on cochains.
    """
    k = F.n // F.m
    if d < 1 or k % d:
        raise PreconditionError(f"{d} does not divide the degree {k}")
    G = F.group
    U = Subgroup(G, [G.power(F.frobenius, d)] if G.ngens else [])
    CU = restrict_gmodule(F.gmodule, U)
    return CU, lambda c: restrict_cochain(c, CU)


__all__ = [
    "multiplicative_group",
    "FrobeniusModule",
    "frobenius_gmodule_multiplicative",
    "frobenius_gmodule_additive",
    "multiplicative_cochain",
    "field_values",
    "is_coboundary",
    "hilbert90",
    "cyclic_fundamental_class",
    "restrict",
]


if __name__ == "__main__":
    configure_logging()
    for p, n in [(2, 2), (3, 2), (2, 3)]:
        Fm = frobenius_gmodule_multiplicative(p, n)
        for i in range(3):
            _logger.info("GF(%d^%d)^*: H^%d = %r", p, n, i, cohomology_group(Fm.gmodule, i).module)
        _logger.info("GF(%d^%d)^*: Tate H^0 = %r", p, n, cohomology_group(Fm.gmodule, 0, tate=True).module)
