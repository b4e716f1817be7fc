"""
由 2-上闭链构造群扩张 1 → M → E → G → 1。

三种形式：
    CocycleGroup   具体模型：二元组 (g, m)，乘法 (g, m)(h, n) = (gh, m^h + n + c(g, h))
    Extension      有限表现：G 的生成元 + M 的生成元，三族关系
                   (a) M 自身的关系
                   (b) G 的每个关系子，沿上闭链折叠得到补偿的模元素
                   (c) 共轭关系 m_j · g_i = g_i · m_j^{g_i}
                   group() 对 M 有限时跑 Knuth-Bendix
    PcExtension    G 可解、M 有限时直接给出 pc 群，免去自由群绕行

M 嵌入为 m ↦ (1, m - c(1, 1))，因此即使 c 未正规化，嵌入也是同态，
且 (g, n) · ι(t) = (g, n + t)。
"""

from __future__ import annotations

import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from sympy.ntheory import factorint

from abelian_group import AbelianGroup
from cochain import CoChain, element_actions, fold_pairs, istwo_cocycle
from cohomology_config import assertions_enabled
from finite_group import FiniteGroup, FpGroup, GroupHom, PcGroup
from gmodule import InconsistencyError, PreconditionError, UnsupportedOperationError, action
from module_api import Module, ModuleElem
from presentation import GroupPresentation, Word, format_word, invert_word
from vector_space import VectorSpace

_logger = logging.getLogger(__name__)


def _shift(w: Sequence[int], n: int) -> Word:
    return tuple(a + n if a > 0 else a - n for a in w)


def _coordinate_maps(M: Module) -> Tuple[AbelianGroup, Callable[[ModuleElem], Any], Callable[[Any], ModuleElem]]:
    """``M`` as an :class:`AbelianGroup`; vector spaces use coordinates over the prime field."""
    if isinstance(M, AbelianGroup):
        return M, lambda m: m, lambda a: a
    if isinstance(M, VectorSpace):
        return M.as_abelian_group()
    raise UnsupportedOperationError(f"no presentation for modules of type {type(M).__name__}")


def _additive_generators(M: Module) -> List[ModuleElem]:
    """Generators of ``M`` as an abelian group."""
    if isinstance(M, VectorSpace):
        A, _, from_A = M.as_abelian_group()
        return [from_A(a) for a in A.gens()]
    return M.gens()


# =============================================================================
# 1) 模的表现
# =============================================================================


@dataclass
class ModulePresentation:
    """
    Presentation of a finitely generated abelian group.

    Letter ``j`` stands for ``generators[j-1]``: the module's own generators
    for an abelian group, the prime-field coordinate vectors for a vector
    space. Relators are the pairwise commutators and one word per relation
    row.
    """
    module: Module
    ngens: int
    relators: List[Word]
    generators: List[ModuleElem]
    _to_A: Callable[[ModuleElem], Any] = field(repr=False)

    def word(self, m: ModuleElem) -> Word:
        if m.parent is not self.module:
            raise PreconditionError("element is not in the presented module")
        w: List[int] = []
        for i, a in enumerate(self._to_A(m).coeffs, 1):
            w.extend([i if a > 0 else -i] * abs(a))
        return tuple(w)

    def eval(self, w: Sequence[int]) -> ModuleElem:
        gens = self.generators
        m = self.module.zero()
        for a in w:
            m = m + gens[a - 1] if a > 0 else m - gens[-a - 1]
        return m


def fp_group_of_module(M: Module) -> ModulePresentation:
    """Abelian-group presentation of ``M`` with its word map."""
    A, to_A, from_A = _coordinate_maps(M)
    n = A.ngens
    relators: List[Word] = []
    for i in range(1, n + 1):
        for j in range(i + 1, n + 1):
            relators.append((-i, -j, i, j))
    for row in A.relations:
        w: List[int] = []
        for i, a in enumerate(row, 1):
            a = int(a)
            w.extend([i if a > 0 else -i] * abs(a))
        relators.append(tuple(w))
    return ModulePresentation(M, n, relators, [from_A(a) for a in A.gens()], to_A)


@dataclass
class ModulePcPresentation:
    """
    Pc presentation of a finite abelian group with prime relative orders.

    ``elements[s]`` is the module element of pc generator ``s+1``; normal
    words are ascending with exponents below the relative orders.
    """
    module: Module
    relative_orders: List[int]
    elements: List[ModuleElem]
    rules: List[Tuple[Word, Word]]
    _words: Dict[Hashable, Word] = field(repr=False)
    _group: Optional[PcGroup] = field(default=None, repr=False)

    def word(self, m: ModuleElem) -> Word:
        if m.parent is not self.module:
            raise PreconditionError("element is not in the presented module")
        return self._words[m]

    def eval(self, w: Sequence[int]) -> ModuleElem:
        m = self.module.zero()
        for a in w:
            m = m + self.elements[a - 1] if a > 0 else m - self.elements[-a - 1]
        return m

    def group(self) -> PcGroup:
        if self._group is None:
            self._group = PcGroup(self.relative_orders, self.rules)
        return self._group


def pc_group_of_module(M: Module) -> ModulePcPresentation:
    """
    Refine the Smith form of ``M`` into cyclic steps of prime order.

    A cyclic factor ``Z/p^k`` contributes ``u, p·u, ..., p^{k-1}·u``.
    """
    A, _, from_A = _coordinate_maps(M)
    if not A.is_finite():
        raise UnsupportedOperationError("pc presentations need a finite module")
    S, to_A = A.snf()
    elements: List[ModuleElem] = []
    ps: List[int] = []
    for s, d in zip(S.gens(), S.elementary_divisors()):
        for p, k in sorted(factorint(d).items()):
            u = (d // p ** k) * s
            for _ in range(k):
                elements.append(from_A(to_A(u)))
                ps.append(p)
                u = p * u
    words: Dict[Hashable, Word] = {}
    for exps in itertools.product(*[range(p) for p in ps]):
        m = M.zero()
        w: List[int] = []
        for i, (e, v) in enumerate(zip(exps, elements), 1):
            m = m + e * v
            w.extend([i] * e)
        words[m] = tuple(w)
    rules: List[Tuple[Word, Word]] = []
    for i, (p, v) in enumerate(zip(ps, elements), 1):
        rules.append(((i,) * p, words[p * v]))
    for i in range(1, len(ps) + 1):
        for j in range(i + 1, len(ps) + 1):
            rules.append(((j, i), (i, j)))
    return ModulePcPresentation(M, ps, elements, rules, words)


# =============================================================================
# 2) 具体模型
# =============================================================================


class CocycleGroup(FiniteGroup):
    """The group of pairs ``(g, m)`` twisted by the 2-cocycle ``c``."""

    def __init__(self, c: CoChain):
        super().__init__()
        self.cocycle = c
        self.C = c.C
        self.G = c.C.G
        self.M = c.C.M
        self._acts = element_actions(self.C)
        e = self.G.identity
        self._c11 = c(e, e)
        self._gens = [(x, self.M.zero()) for x in self.G.generators] + [self.embed(m) for m in _additive_generators(self.M)]

    @property
    def generators(self) -> List[Tuple[Any, ModuleElem]]:
        return list(self._gens)

    @property
    def identity(self) -> Tuple[Any, ModuleElem]:
        return (self.G.identity, -self._c11)

    def mul(self, a, b):
        g, m = a
        h, n = b
        G = self.G
        return (G.mul(g, h), self._acts[G.key(h)](m) + n + self.cocycle(g, h))

    def inv(self, a):
        g, m = a
        G = self.G
        gi = G.inv(g)
        return (gi, -self._c11 - self._acts[G.key(gi)](m) - self.cocycle(g, gi))

    def key(self, a) -> Hashable:
        return (self.G.key(a[0]), a[1])

    def __contains__(self, a: Any) -> bool:
        return (
            isinstance(a, tuple) and len(a) == 2 and a[0] in self.G
            and isinstance(a[1], ModuleElem) and a[1].parent is self.M
        )

    def embed(self, m: ModuleElem) -> Tuple[Any, ModuleElem]:
        return (self.G.identity, m - self._c11)

    def project(self, a) -> Any:
        return a[0]

    def __repr__(self) -> str:
        return f"CocycleGroup({self.G!r}, {self.M!r})"


# =============================================================================
# 3) 有限表现的扩张
# =============================================================================


def _check_cocycle(c: CoChain) -> None:
    if c.degree != 2:
        raise PreconditionError("extensions are built from 2-cochains")
    if assertions_enabled(1) and not istwo_cocycle(c):
        raise InconsistencyError("2-cochain is not a cocycle")


class Extension:
    """
    Extension of ``G`` by ``M`` defined by the 2-cocycle ``c``.

    Letters ``1..r`` are the generators of ``G``, ``r+1..r+k`` those of ``M``.
    """

    def __init__(self, c: CoChain):
        _check_cocycle(c)
        t0 = time.perf_counter()
        self.cocycle = c
        self.C = c.C
        C = self.C
        G = C.G
        self.model = CocycleGroup(c)
        self.module_presentation = fp_group_of_module(C.M)
        mp = self.module_presentation
        r = G.ngens
        self.ngens = r + mp.ngens
        self.names = [f"g{i}" for i in range(1, r + 1)] + [f"m{j}" for j in range(1, mp.ngens + 1)]
        c11 = self.model._c11

        self.module_relators = [_shift(w, r) for w in mp.relators]
        self.group_relators: List[Word] = []
        for R in C.fp_presentation().relators:
            _, t = fold_pairs(c, G.generators, R)
            self.group_relators.append(R + invert_word(_shift(mp.word(t + c11), r)))
        self.conjugation_relators: List[Word] = []
        for i in range(1, r + 1):
            for j, m in enumerate(mp.generators, 1):
                w = _shift(mp.word(C.ac[i - 1](m)), r)
                self.conjugation_relators.append((r + j, i) + invert_word(w) + (-i,))
        self._group: Optional[Tuple[FpGroup, GroupHom]] = None
        _logger.debug(
            "extension presentation: %d generators, %d + %d + %d relators (%.3fs)",
            self.ngens, len(self.module_relators), len(self.group_relators),
            len(self.conjugation_relators), time.perf_counter() - t0,
        )

    @property
    def relators(self) -> List[Word]:
        return self.module_relators + self.group_relators + self.conjugation_relators

    @property
    def presentation(self) -> GroupPresentation:
        """The relators as a named :class:`GroupPresentation`."""
        return GroupPresentation(self.names, [(format_word(r, self.names), "") for r in self.relators if r])

    def module_to_group(self, m: ModuleElem) -> Tuple[Any, ModuleElem]:
        return self.model.embed(m)

    def group_to_quotient(self, q: Tuple[Any, ModuleElem]) -> Any:
        return self.model.project(q)

    def pair_to_group(self, g: Any, m: ModuleElem) -> Tuple[Any, ModuleElem]:
        q = (g, m)
        if q not in self.model:
            raise PreconditionError("pair is not in G x M")
        return q

    def realize(self, w: Sequence[int]) -> Tuple[Any, ModuleElem]:
        """Evaluate a word in the presentation's letters in the pair model."""
        return self.model.eval_word(w)

    def word_of(self, q: Tuple[Any, ModuleElem]) -> Word:
        """A word in the presentation's letters with ``realize(word_of(q)) == q``."""
        g, m = q
        G = self.C.G
        w = G.word(g)
        _, m0 = fold_pairs(self.cocycle, G.generators, w)
        return w + _shift(self.module_presentation.word(m - m0), G.ngens)

    def group(self) -> Tuple[FpGroup, GroupHom]:
        """The finitely presented extension and its isomorphism onto the pair model."""
        if self._group is None:
            M = self.C.M
            finite = M.is_finite() if isinstance(M, AbelianGroup) else True
            if not finite:
                raise UnsupportedOperationError("Knuth-Bendix on an infinite extension")
            Q = FpGroup(self.ngens, self.relators, names=self.names)
            self._group = (Q, GroupHom(Q, self.model, self.model.generators))
            _logger.info("extension group of order %d", Q.order())
        return self._group


def extension(c: CoChain) -> Extension:
    return Extension(c)


# =============================================================================
# 4) pc 扩张
# =============================================================================


class PcExtension:
    """
    Pc group of the extension, for solvable ``G`` and finite ``M``.

    Every pc rule ``lhs → rhs`` of ``G`` becomes ``lhs → rhs · t`` with the
    tail ``t`` read off from the cocycle; module generators commute among
    themselves and ``m · y_i → y_i · m^{y_i}``.
    """

    def __init__(self, c: CoChain):
        _check_cocycle(c)
        t0 = time.perf_counter()
        self.cocycle = c
        self.C = c.C
        C = self.C
        G = C.G
        P = G.pc_presentation()
        self.presentation = P
        mp = pc_group_of_module(C.M)
        self.module_presentation = mp
        n = P.ngens
        self.n = n
        ys = P.images

        rules: List[Tuple[Word, Word]] = []
        for lhs, rhs in P.rules:
            if any(a < 0 for a in lhs):
                continue
            t = fold_pairs(c, ys, lhs)[1] - fold_pairs(c, ys, rhs)[1]
            rules.append((lhs, rhs + self._mword(t)))
        for lhs, rhs in mp.rules:
            rules.append((_shift(lhs, n), _shift(rhs, n)))
        for i, y in enumerate(ys, 1):
            a = action(C, y)
            for j, v in enumerate(mp.elements, 1):
                rules.append(((n + j, i), (i,) + self._mword(a(v))))
        self.relative_orders = list(P.relative_orders) + list(mp.relative_orders)
        self.group = PcGroup(self.relative_orders, rules)
        _logger.debug(
            "pc extension: relative orders %s (%.3fs)", self.relative_orders, time.perf_counter() - t0
        )

    def _mword(self, m: ModuleElem) -> Word:
        return _shift(self.module_presentation.word(m), self.n)

    def _split(self, q: Word) -> Tuple[Word, Word]:
        k = next((i for i, a in enumerate(q) if a > self.n), len(q))
        return tuple(q[:k]), tuple(a - self.n for a in q[k:])

    def module_to_group(self, m: ModuleElem) -> Word:
        return self._mword(m)

    def group_to_quotient(self, q: Word) -> Any:
        return self.presentation.eval(self._split(q)[0])

    def pair_to_group(self, g: Any, m: ModuleElem) -> Word:
        w = self.presentation.word(g)
        m0 = fold_pairs(self.cocycle, self.presentation.images, w)[1]
        return self.group.mul(w, self._mword(m - m0))

    def to_pair(self, q: Word) -> Tuple[Any, ModuleElem]:
        """Inverse of :meth:`pair_to_group`."""
        gw, mw = self._split(q)
        m0 = fold_pairs(self.cocycle, self.presentation.images, gw)[1]
        return self.presentation.eval(gw), m0 + self.module_presentation.eval(mw)

    def quotient_hom(self) -> GroupHom:
        G = self.C.G
        k = len(self.module_presentation.relative_orders)
        return GroupHom(self.group, G, list(self.presentation.images) + [G.identity] * k)


def extension_pc(c: CoChain) -> PcExtension:
    return PcExtension(c)


__all__ = [
    "ModulePresentation",
    "fp_group_of_module",
    "ModulePcPresentation",
    "pc_group_of_module",
    "CocycleGroup",
    "Extension",
    "extension",
    "PcExtension",
    "extension_pc",
]
