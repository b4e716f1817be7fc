"""
上链（cochain）：从 G^n 到模 M 的有限映射，n ∈ {0, 1, 2}。

约定（右作用）：
    1-上闭链（交叉同态）  X(gh) = X(g)^h + X(h)
    2-上闭链            c(g, hk) + c(h, k) = c(g, h)^k + c(gh, k)
    1-上链的上边缘       δd(g, h) = d(g)^h + d(h) - d(gh)
    0-上链的上边缘       δm(g) = m^g - m
    扩张的乘法           (g, m)(h, n) = (gh, m^h + n + c(g, h))

在这些约定下 δ(δm) = 0，δd 满足 2-上闭链恒等式，且扩张乘法结合
当且仅当 c 是 2-上闭链。

1-上链只需给出生成元处的值，其余值按交叉同态递推沿生成元词折叠得到，
并记忆在同一个字典中；2-上链只做查表。
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from cohomology_config import assertions_enabled
from gmodule import GModule, InconsistencyError, PreconditionError, UnsupportedOperationError, action
from module_api import ModuleElem, ModuleHom

_logger = logging.getLogger(__name__)


class CoChain:
    """
    ``degree``-cochain of the G-module ``C``.

    ``values`` maps tuples of group elements to module elements.
    """

    def __init__(self, C: GModule, degree: int, values: Optional[Dict[Tuple[Any, ...], ModuleElem]] = None):
        if degree not in (0, 1, 2):
            raise UnsupportedOperationError(f"cochains of degree {degree} are not supported")
        self.C = C
        self.degree = degree
        self._d: Dict[Tuple[Hashable, ...], ModuleElem] = {}
        self._args: Dict[Tuple[Hashable, ...], Tuple[Any, ...]] = {}
        for args, v in (values or {}).items():
            self._store(tuple(args), v)

    def _key(self, args: Tuple[Any, ...]) -> Tuple[Hashable, ...]:
        G = self.C.G
        if len(args) != self.degree:
            raise PreconditionError(f"{self.degree}-cochain evaluated at {len(args)} arguments")
        for g in args:
            if g not in G:
                raise PreconditionError(f"{g!r} is not an element of {G!r}")
        return tuple(G.key(g) for g in args)

    def _store(self, args: Tuple[Any, ...], v: ModuleElem) -> None:
        if v.parent is not self.C.M:
            raise PreconditionError("cochain value is not in the module")
        k = self._key(args)
        self._d[k] = v
        self._args[k] = args

    @classmethod
    def from_function(cls, C: GModule, degree: int, f: Callable[..., ModuleElem]) -> "CoChain":
        """Tabulate ``f`` on all of ``G^degree``."""
        elems = C.G.elements()
        if degree == 0:
            return cls(C, 0, {(): f()})
        if degree == 1:
            return cls(C, 1, {(g,): f(g) for g in elems})
        return cls(C, degree, {(g, h): f(g, h) for g in elems for h in elems})

    def __call__(self, *args: Any) -> ModuleElem:
        if len(args) == 1 and isinstance(args[0], tuple) and self.degree != 1:
            args = args[0]
        k = self._key(tuple(args))
        if k in self._d:
            return self._d[k]
        if self.degree == 1:
            return self._extend(args[0], k)
        if self.degree == 0:
            raise PreconditionError("0-cochain without a value")
        raise PreconditionError("2-cochain has no value at this pair")

    def _extend(self, g: Any, k: Tuple[Hashable, ...]) -> ModuleElem:
        C = self.C
        G = C.G
        w = C.fp_presentation().word(g)
        seeds = []
        for x in G.generators:
            kx = (G.key(x),)
            if kx not in self._d:
                raise PreconditionError("1-cochain needs its values on all generators")
            seeds.append(self._d[kx])
        t = C.M.zero()
        for a in w:
            if a > 0:
                t = C.ac[a - 1](t) + seeds[a - 1]
            else:
                t = C.iac[-a - 1](t - seeds[-a - 1])
        self._d[k] = t
        self._args[k] = (g,)
        return t

    def items(self) -> List[Tuple[Tuple[Any, ...], ModuleElem]]:
        return [(self._args[k], v) for k, v in self._d.items()]

    def table(self) -> "CoChain":
        """Fill in every value (degree 1 only adds lazily computed entries)."""
        if self.degree == 1:
            for g in self.C.G.elements():
                self(g)
        return self

    def _combine(self, other: "CoChain", op: Callable[[ModuleElem, ModuleElem], ModuleElem]) -> "CoChain":
        if other.C is not self.C or other.degree != self.degree:
            raise PreconditionError("cochains of different modules or degrees")
        self.table()
        other.table()
        keys = [k for k in self._d if k in other._d]
        return CoChain(self.C, self.degree, {self._args[k]: op(self._d[k], other._d[k]) for k in keys})

    def __add__(self, other: "CoChain") -> "CoChain":
        return self._combine(other, lambda a, b: a + b)

    def __sub__(self, other: "CoChain") -> "CoChain":
        return self._combine(other, lambda a, b: a - b)

    def __neg__(self) -> "CoChain":
        self.table()
        return CoChain(self.C, self.degree, {self._args[k]: -v for k, v in self._d.items()})

    def __rmul__(self, n: int) -> "CoChain":
        self.table()
        return CoChain(self.C, self.degree, {self._args[k]: n * v for k, v in self._d.items()})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CoChain):
            return NotImplemented
        if other.C is not self.C or other.degree != self.degree:
            return False
        self.table()
        other.table()
        return self._d.keys() == other._d.keys() and all(self._d[k] == other._d[k] for k in self._d)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.degree}-cochain with values in {self.C.M!r}"


# =============================================================================
# 上闭链判定与上边缘
# =============================================================================


def zero_cochain(C: GModule, degree: int) -> CoChain:
    z = C.M.zero()
    return CoChain.from_function(C, degree, lambda *args: z)


def element_actions(C: GModule) -> Dict[Hashable, ModuleHom]:
    return C.cached("element_actions", lambda: {C.G.key(g): action(C, g) for g in C.G.elements()})


def is_one_cocycle(X: CoChain) -> bool:
    """Crossed-homomorphism law ``X(gh) = X(g)^h + X(h)`` on all pairs."""
    if X.degree != 1:
        raise PreconditionError("not a 1-cochain")
    C = X.C
    G = C.G
    acts = element_actions(C)
    elems = G.elements()
    for g in elems:
        for h in elems:
            if X(G.mul(g, h)) != acts[G.key(h)](X(g)) + X(h):
                return False
    return True


def istwo_cocycle(c: CoChain) -> bool:
    """``c(g, hk) + c(h, k) = c(g, h)^k + c(gh, k)`` on all triples."""
    if c.degree != 2:
        raise PreconditionError("not a 2-cochain")
    C = c.C
    G = C.G
    acts = element_actions(C)
    elems = G.elements()
    for g in elems:
        for h in elems:
            gh = G.mul(g, h)
            cgh = c(g, h)
            for k in elems:
                lhs = c(g, G.mul(h, k)) + c(h, k)
                rhs = acts[G.key(k)](cgh) + c(gh, k)
                if lhs != rhs:
                    _logger.debug("cocycle identity fails at %r, %r, %r", g, h, k)
                    return False
    return True


def coboundary(d: CoChain) -> CoChain:
    """δ of a 0- or 1-cochain, tabulated on the whole group."""
    C = d.C
    G = C.G
    acts = element_actions(C)
    if d.degree == 0:
        m = d()
        return CoChain.from_function(C, 1, lambda g: acts[G.key(g)](m) - m)
    if d.degree == 1:
        return CoChain.from_function(
            C, 2, lambda g, h: acts[G.key(h)](d(g)) + d(h) - d(G.mul(g, h))
        )
    raise UnsupportedOperationError("coboundary of a 2-cochain is not supported")


def restrict_cochain(c: CoChain, CU: GModule) -> CoChain:
    """Restriction of ``c`` to the subgroup ``CU.G`` (elements shared with ``c.C.G``)."""
    if CU.M is not c.C.M:
        raise PreconditionError("restriction needs the same module")
    U = CU.G
    for g in U.generators:
        if g not in c.C.G:
            raise PreconditionError(f"{g!r} is not in the group of the cochain")
    if c.degree == 0:
        return CoChain(CU, 0, {(): c()})
    elems = U.elements()
    if c.degree == 1:
        return CoChain(CU, 1, {(g,): c(g) for g in elems})
    return CoChain(CU, 2, {(g, h): c(g, h) for g in elems for h in elems})


def fold_pairs(
    c: CoChain,
    images: Sequence[Any],
    w: Sequence[int],
    lifts: Optional[Sequence[ModuleElem]] = None,
) -> Tuple[Any, ModuleElem]:
    """
    Product ``∏ (x_a, b_a)`` along the word ``w`` in the extension defined by ``c``.

    Letter ``a`` stands for ``images[a-1]`` lifted with module part
    ``lifts[a-1]`` (zero by default); negative letters are inverses.
    The product starts at the identity ``(1, -c(1, 1))``.
    """
    C = c.C
    G = C.G
    acts = element_actions(C)
    e = G.identity
    c11 = c(e, e)
    g = e
    m = -c11
    for a in w:
        x = images[abs(a) - 1]
        b = lifts[abs(a) - 1] if lifts is not None else C.M.zero()
        if a > 0:
            m = acts[G.key(x)](m) + b + c(g, x)
            g = G.mul(g, x)
        else:
            xi = G.inv(x)
            ai = acts[G.key(xi)]
            n = -c11 - ai(b) - c(x, xi)
            m = ai(m) + n + c(g, xi)
            g = G.mul(g, xi)
    return g, m


def map_cochain(f: ModuleHom, c: CoChain, C2: GModule) -> CoChain:
    """Push ``c`` forward along the G-linear ``f: c.C.M → C2.M``."""
    if f.domain is not c.C.M or f.codomain is not C2.M:
        raise PreconditionError("map does not go between the two modules")
    if C2.G is not c.C.G:
        raise PreconditionError("modules over different groups")
    if assertions_enabled(1):
        for a, b in zip(c.C.ac, C2.ac):
            if a * f != f * b:
                raise InconsistencyError("map is not G-linear")
    c.table()
    return CoChain(C2, c.degree, {args: f(v) for args, v in c.items()})


__all__ = [
    "CoChain",
    "zero_cochain",
    "is_one_cocycle",
    "istwo_cocycle",
    "coboundary",
    "element_actions",
    "restrict_cochain",
    "fold_pairs",
    "map_cochain",
]
