"""
有限群：置换群、子群、商群、多循环（pc）群、有限表现群与群同态。

所有群共享 FiniteGroup 的通用算法：
    - 广度优先枚举元素，得到每个元素的 ShortLex 最小正词（字母从 1 开始）；
    - 由 Cayley 图得到有限表现（关系子）与通用合流重写系统；
    - 可解群沿导出列按素数加细，得到 pc 表现（相对阶均为素数）。

约定：乘法 mul(a, b) 表示"先 a 后 b"，与模上的右作用 m^(gh) = (m^g)^h 一致。
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterator, List, Optional, Sequence, Set, Tuple

from sympy.combinatorics import Permutation
from sympy.combinatorics.named_groups import (
    AbelianGroup as _SympyAbelianGroup,
    AlternatingGroup,
    CyclicGroup,
    DihedralGroup,
    SymmetricGroup,
)
from sympy.ntheory import primefactors

from cohomology_config import get_config
from presentation import (
    Collector,
    CompletionConfig,
    GroupPresentation,
    KnuthBendixCompletion,
    Word,
    invert_word,
)

_logger = logging.getLogger(__name__)


# =============================================================================
# 0) 异常
# =============================================================================


class GroupError(Exception):
    """群模块的异常基类。"""


class NotInGroupError(GroupError):
    """元素不属于该群。"""


class NotSolvableError(GroupError):
    """需要可解群（pc 表现）。"""


class GroupTooLargeError(GroupError):
    """枚举超过 max_group_order。"""


# =============================================================================
# 1) 表现数据
# =============================================================================


@dataclass
class FpPresentation:
    """
    有限表现 F/R 与词映射 F → G。

    F 的第 i 个生成元映到 group.generators[i-1]，这个对应由构造保证。
    """
    group: "FiniteGroup"
    relators: List[Word]

    @property
    def ngens(self) -> int:
        return self.group.ngens

    @property
    def images(self) -> List[Any]:
        return list(self.group.generators)

    def eval(self, w: Sequence[int]) -> Any:
        return self.group.eval_word(w)

    def word(self, g: Any) -> Word:
        """preimage(F → G, g) 的代表词。"""
        return self.group.word(g)


@dataclass
class ConfluentPresentation:
    """
    群 G 的合流重写表现。

    images[i-1] 是字母 i 在 G 中的像；normal_words 把 G 的元素（按 key）
    映到其正规词。pc 表现额外带 relative_orders。
    """
    group: "FiniteGroup"
    images: List[Any]
    rules: List[Tuple[Word, Word]]
    normal_words: Dict[Hashable, Word]
    relative_orders: Optional[List[int]] = None
    _collector: Optional[Collector] = field(default=None, repr=False)

    @property
    def ngens(self) -> int:
        return len(self.images)

    @property
    def is_pc(self) -> bool:
        return self.relative_orders is not None

    @property
    def collector(self) -> Collector:
        if self._collector is None:
            self._collector = Collector(self.rules)
        return self._collector

    def word(self, g: Any) -> Word:
        try:
            return self.normal_words[self.group.key(g)]
        except KeyError:
            raise NotInGroupError(f"{g!r} is not in {self.group!r}") from None

    def eval(self, w: Sequence[int]) -> Any:
        G = self.group
        x = G.identity
        for a in w:
            y = self.images[abs(a) - 1]
            x = G.mul(x, y if a > 0 else G.inv(y))
        return x

    def relators(self) -> List[Word]:
        return [lhs + invert_word(rhs) for lhs, rhs in self.rules if all(a > 0 for a in lhs)]


# =============================================================================
# 2) 有限群基类
# =============================================================================


class FiniteGroup(ABC):
    """
    有限群的公共接口与通用算法。

    子类只需给出 generators / identity / mul / inv；若元素不可哈希，
    覆盖 key()。
    """

    def __init__(self) -> None:
        self._elements: Optional[List[Any]] = None
        self._words: Optional[Dict[Hashable, Word]] = None
        self._index: Optional[Dict[Hashable, int]] = None
        self._ginv: Optional[List[Any]] = None
        self._fp: Optional[FpPresentation] = None
        self._rws: Optional[ConfluentPresentation] = None
        self._pc: Optional[ConfluentPresentation] = None
        self._solvable: Optional[bool] = None

    @property
    @abstractmethod
    def generators(self) -> List[Any]:
        ...

    @property
    @abstractmethod
    def identity(self) -> Any:
        ...

    @abstractmethod
    def mul(self, a: Any, b: Any) -> Any:
        ...

    @abstractmethod
    def inv(self, a: Any) -> Any:
        ...

    def key(self, a: Any) -> Hashable:
        return a

    @property
    def ngens(self) -> int:
        return len(self.generators)

    def gen(self, i: int) -> Any:
        """1-based."""
        return self.generators[i - 1]

    def equal(self, a: Any, b: Any) -> bool:
        return self.key(a) == self.key(b)

    def is_identity(self, a: Any) -> bool:
        return self.equal(a, self.identity)

    # -------------------------------------------------------------------------
    # 枚举
    # -------------------------------------------------------------------------

    def _enumerate(self) -> None:
        if self._elements is not None:
            return
        t0 = time.perf_counter()
        limit = get_config().max_group_order
        e = self.identity
        words: Dict[Hashable, Word] = {self.key(e): ()}
        elems = [e]
        queue = deque([e])
        gens = self.generators
        while queue:
            g = queue.popleft()
            w = words[self.key(g)]
            for i, a in enumerate(gens, 1):
                h = self.mul(g, a)
                k = self.key(h)
                if k in words:
                    continue
                words[k] = w + (i,)
                elems.append(h)
                if len(elems) > limit:
                    raise GroupTooLargeError(f"{self!r} has more than {limit} elements")
                queue.append(h)
        self._elements = elems
        self._words = words
        self._index = {self.key(g): i for i, g in enumerate(elems)}
        _logger.debug("enumerated %d elements of %r in %.3fs", len(elems), self, time.perf_counter() - t0)

    def elements(self) -> List[Any]:
        """Elements in shortlex order of their words; the identity comes first."""
        self._enumerate()
        return list(self._elements)

    def order(self) -> int:
        self._enumerate()
        return len(self._elements)

    def __len__(self) -> int:
        return self.order()

    def __iter__(self) -> Iterator[Any]:
        return iter(self.elements())

    def __contains__(self, g: Any) -> bool:
        self._enumerate()
        try:
            return self.key(g) in self._words
        except (TypeError, ValueError, AttributeError):
            return False

    def index(self, g: Any) -> int:
        self._enumerate()
        try:
            return self._index[self.key(g)]
        except KeyError:
            raise NotInGroupError(f"{g!r} is not in {self!r}") from None

    def word(self, g: Any) -> Word:
        """Shortlex-minimal positive word for ``g`` in the group's own generators."""
        self._enumerate()
        try:
            return self._words[self.key(g)]
        except KeyError:
            raise NotInGroupError(f"{g!r} is not in {self!r}") from None

    def _generator_inverses(self) -> List[Any]:
        if self._ginv is None:
            self._ginv = [self.inv(a) for a in self.generators]
        return self._ginv

    def eval_word(self, w: Sequence[int]) -> Any:
        gens = self.generators
        ginv = self._generator_inverses()
        x = self.identity
        for a in w:
            if a == 0 or abs(a) > len(gens):
                raise NotInGroupError(f"letter {a} out of range for {len(gens)} generators")
            x = self.mul(x, gens[a - 1] if a > 0 else ginv[-a - 1])
        return x

    # -------------------------------------------------------------------------
    # 元素算术
    # -------------------------------------------------------------------------

    def power(self, g: Any, n: int) -> Any:
        if n < 0:
            g, n = self.inv(g), -n
        x = self.identity
        while n:
            if n & 1:
                x = self.mul(x, g)
            g = self.mul(g, g)
            n >>= 1
        return x

    def conjugate(self, g: Any, h: Any) -> Any:
        """g^h = h⁻¹ g h."""
        return self.mul(self.mul(self.inv(h), g), h)

    def commutator(self, a: Any, b: Any) -> Any:
        """[a, b] = a⁻¹ b⁻¹ a b."""
        return self.mul(self.mul(self.inv(a), self.inv(b)), self.mul(a, b))

    def element_order(self, g: Any) -> int:
        n, x = 1, g
        while not self.is_identity(x):
            x = self.mul(x, g)
            n += 1
        return n

    def is_abelian(self) -> bool:
        gens = self.generators
        return all(self.equal(self.mul(a, b), self.mul(b, a)) for a in gens for b in gens)

    # -------------------------------------------------------------------------
    # 子群
    # -------------------------------------------------------------------------

    def closure(self, gens: Sequence[Any]) -> List[Any]:
        """Elements of the subgroup generated by ``gens``."""
        e = self.identity
        seen = {self.key(e)}
        out = [e]
        queue = deque([e])
        while queue:
            g = queue.popleft()
            for a in gens:
                h = self.mul(g, a)
                k = self.key(h)
                if k not in seen:
                    seen.add(k)
                    out.append(h)
                    queue.append(h)
        return out

    def subgroup(self, gens: Sequence[Any]) -> "Subgroup":
        for g in gens:
            if g not in self:
                raise NotInGroupError(f"{g!r} is not in {self!r}")
        return Subgroup(self, list(gens))

    def normal_closure(self, gens: Sequence[Any]) -> "Subgroup":
        gens = list(gens)
        while True:
            keys = {self.key(x) for x in self.closure(gens)}
            extra = []
            for s in gens:
                for h in self.generators:
                    c = self.conjugate(s, h)
                    k = self.key(c)
                    if k not in keys:
                        keys.add(k)
                        extra.append(c)
            if not extra:
                return Subgroup(self, gens)
            gens.extend(extra)

    def derived_subgroup(self) -> "Subgroup":
        gens = self.generators
        comms = [self.commutator(a, b) for i, a in enumerate(gens) for b in gens[i + 1:]]
        comms = [c for c in comms if not self.is_identity(c)]
        return self.normal_closure(comms)

    def derived_series(self) -> List["FiniteGroup"]:
        """[G, G', G'', ...] down to the perfect term."""
        series: List[FiniteGroup] = [self]
        while True:
            H = series[-1]
            D = H.derived_subgroup()
            if D.order() == H.order():
                return series
            series.append(D)

    def is_solvable(self) -> bool:
        if self._solvable is None:
            self._solvable = self.derived_series()[-1].order() == 1
        return self._solvable

    def right_transversal(self, U: "FiniteGroup") -> List[Any]:
        """Representatives ``r`` with ``G`` the disjoint union of the cosets ``U·r``."""
        self._enumerate()
        u_elems = U.elements()
        covered: Set[Hashable] = set()
        reps = []
        for g in self._elements:
            if self.key(g) in covered:
                continue
            reps.append(g)
            for u in u_elems:
                covered.add(self.key(self.mul(u, g)))
        return reps

    def is_normal(self, N: "FiniteGroup") -> bool:
        keys = {self.key(x) for x in N.elements()}
        return all(self.key(self.conjugate(n, g)) in keys for n in N.generators for g in self.generators)

    def quotient(self, N: "FiniteGroup") -> Tuple["QuotientGroup", "GroupHom"]:
        Q = QuotientGroup(self, N)
        return Q, GroupHom(self, Q, [Q.project(g) for g in self.generators])

    # -------------------------------------------------------------------------
    # 表现
    # -------------------------------------------------------------------------

    def rewriting_system(self) -> ConfluentPresentation:
        """
        由 Cayley 图得到的通用合流系统。

        规则 w → nf(w)，其中 w = nf(u)·a 不是正规词而 w[1:] 是正规词
        （即所有极小可约词）；另有 a⁻¹ → nf(a⁻¹)。
        """
        if self._rws is not None:
            return self._rws
        t0 = time.perf_counter()
        self._enumerate()
        gens = self.generators
        rules: List[Tuple[Word, Word]] = []
        for g in self._elements:
            w = self._words[self.key(g)]
            for i, a in enumerate(gens, 1):
                wa = w + (i,)
                nf = self._words[self.key(self.mul(g, a))]
                if nf == wa:
                    continue
                if len(wa) == 1 or self.word(self.eval_word(wa[1:])) == wa[1:]:
                    rules.append((wa, nf))
        for i, a in enumerate(gens, 1):
            rules.append(((-i,), self.word(self.inv(a))))
        self._rws = ConfluentPresentation(
            group=self,
            images=list(gens),
            rules=rules,
            normal_words=self._words,
        )
        _logger.debug("rewriting system of %r: %d rules (%.3fs)", self, len(rules), time.perf_counter() - t0)
        return self._rws

    def fp_presentation(self) -> FpPresentation:
        if self._fp is None:
            self._fp = FpPresentation(self, self.rewriting_system().relators())
        return self._fp

    def pcgs(self) -> Tuple[List[Any], List[int], List[Set[Hashable]]]:
        """
        Prime-step refinement of the derived series.

        Returns ``(pcgs, relative_orders, chain)`` where ``chain[i]`` is the
        key set of the subgroup generated by ``pcgs[i:]``.
        """
        if not self.is_solvable():
            raise NotSolvableError(f"{self!r} is not solvable")
        series = self.derived_series()
        ys: List[Any] = []
        ps: List[int] = []
        K_elems = [self.identity]
        K: Set[Hashable] = {self.key(self.identity)}
        chain: List[Set[Hashable]] = [set(K)]
        for H in reversed(series):
            for x in H.elements():
                if self.key(x) in K:
                    continue
                q, y = 1, x
                while self.key(y) not in K:
                    y = self.mul(y, x)
                    q += 1
                p = primefactors(q)[0]
                y = self.power(x, q // p)
                new_elems = list(K_elems)
                yj = y
                for _ in range(1, p):
                    new_elems.extend(self.mul(k, yj) for k in K_elems)
                    yj = self.mul(yj, y)
                K_elems = new_elems
                K = {self.key(k) for k in K_elems}
                ys.append(y)
                ps.append(p)
                chain.append(set(K))
        ys.reverse()
        ps.reverse()
        chain.reverse()
        return ys, ps, chain

    def pc_presentation(self) -> ConfluentPresentation:
        """
        Consistent pc presentation with prime relative orders.

        Rules: ``i^p → nf(y_i^p)``, ``j i → i · nf(y_i⁻¹ y_j y_i)`` for j > i,
        and ``-i → nf(y_i⁻¹)``.
        """
        if self._pc is not None:
            return self._pc
        t0 = time.perf_counter()
        ys, ps, chain = self.pcgs()
        n = len(ys)

        def exponents(g: Any) -> Word:
            w: List[int] = []
            x = g
            for i in range(n):
                yinv = self.inv(ys[i])
                e = 0
                while self.key(x) not in chain[i + 1]:
                    x = self.mul(yinv, x)
                    e += 1
                    if e >= ps[i]:
                        raise GroupError("element not reached by the pc sequence")
                w.extend([i + 1] * e)
            return tuple(w)

        normal_words = {self.key(g): exponents(g) for g in self.elements()}

        def nf(g: Any) -> Word:
            return normal_words[self.key(g)]

        rules: List[Tuple[Word, Word]] = []
        for i in range(n):
            rules.append(((i + 1,) * ps[i], nf(self.power(ys[i], ps[i]))))
        for i in range(n):
            for j in range(i + 1, n):
                rules.append(((j + 1, i + 1), (i + 1,) + nf(self.conjugate(ys[j], ys[i]))))
        for i in range(n):
            rules.append(((-(i + 1),), nf(self.inv(ys[i]))))
        self._pc = ConfluentPresentation(
            group=self,
            images=ys,
            rules=rules,
            normal_words=normal_words,
            relative_orders=ps,
        )
        _logger.debug("pc presentation of %r: relative orders %s (%.3fs)", self, ps, time.perf_counter() - t0)
        return self._pc

    def confluent_presentation(self, use_pc: Optional[bool] = None) -> ConfluentPresentation:
        if use_pc is None:
            use_pc = get_config().prefer_pc
        if use_pc and self.is_solvable():
            return self.pc_presentation()
        return self.rewriting_system()


# =============================================================================
# 3) 置换群（sympy）
# =============================================================================


class PermGroup(FiniteGroup):
    """Group generated by sympy permutations of ``{0, ..., degree-1}``."""

    def __init__(self, generators: Sequence[Any], degree: Optional[int] = None):
        super().__init__()
        perms = [g if isinstance(g, Permutation) else Permutation(list(g)) for g in generators]
        if degree is None:
            degree = max((p.size for p in perms), default=1)
        self.degree = degree
        self._gens = [self._resize(p) for p in perms]
        self._identity = Permutation(list(range(degree)))

    def _resize(self, p: Permutation) -> Permutation:
        if p.size > self.degree:
            raise NotInGroupError(f"permutation of size {p.size} exceeds degree {self.degree}")
        return Permutation(p.array_form, size=self.degree)

    @classmethod
    def from_sympy(cls, G) -> "PermGroup":
        return cls(list(G.generators), degree=G.degree)

    @property
    def generators(self) -> List[Permutation]:
        return list(self._gens)

    @property
    def identity(self) -> Permutation:
        return self._identity

    def mul(self, a: Permutation, b: Permutation) -> Permutation:
        return a * b

    def inv(self, a: Permutation) -> Permutation:
        return ~a

    def key(self, a: Permutation) -> Hashable:
        return tuple(a.array_form) + tuple(range(a.size, self.degree))

    def __call__(self, images: Sequence[int]) -> Permutation:
        return self._resize(Permutation(list(images)))

    def __repr__(self) -> str:
        return f"PermGroup(degree={self.degree}, ngens={len(self._gens)})"


def cyclic_group(n: int) -> PermGroup:
    if n == 1:
        return trivial_group()
    return PermGroup.from_sympy(CyclicGroup(n))


def dihedral_group(n: int) -> PermGroup:
    """Order ``2n``."""
    return PermGroup.from_sympy(DihedralGroup(n))


def symmetric_group(n: int) -> PermGroup:
    return PermGroup.from_sympy(SymmetricGroup(n))


def alternating_group(n: int) -> PermGroup:
    return PermGroup.from_sympy(AlternatingGroup(n))


def abelian_perm_group(orders: Sequence[int]) -> PermGroup:
    return PermGroup.from_sympy(_SympyAbelianGroup(*orders))


def trivial_group() -> PermGroup:
    return PermGroup([], degree=1)


# =============================================================================
# 4) 子群与商群
# =============================================================================


class Subgroup(FiniteGroup):
    """Subgroup of ``parent`` generated by ``gens``; elements are parent elements."""

    def __init__(self, parent: FiniteGroup, gens: Sequence[Any]):
        super().__init__()
        self.parent = parent
        self._gens = list(gens)

    @property
    def generators(self) -> List[Any]:
        return list(self._gens)

    @property
    def identity(self) -> Any:
        return self.parent.identity

    def mul(self, a: Any, b: Any) -> Any:
        return self.parent.mul(a, b)

    def inv(self, a: Any) -> Any:
        return self.parent.inv(a)

    def key(self, a: Any) -> Hashable:
        return self.parent.key(a)

    def embedding(self) -> "GroupHom":
        return GroupHom(self, self.parent, self.generators)

    def __repr__(self) -> str:
        return f"Subgroup({self.parent!r}, ngens={len(self._gens)})"


class QuotientGroup(FiniteGroup):
    """``G/N``; an element is the first element of its coset in G's enumeration order."""

    def __init__(self, G: FiniteGroup, N: FiniteGroup):
        super().__init__()
        if not G.is_normal(N):
            raise GroupError("quotient by a subgroup that is not normal")
        self.ambient = G
        self.normal = N
        self._rep: Dict[Hashable, Any] = {}
        n_elems = N.elements()
        for g in G.elements():
            if G.key(g) in self._rep:
                continue
            for n in n_elems:
                self._rep[G.key(G.mul(n, g))] = g
        self._gens = [self.project(g) for g in G.generators]

    def project(self, g: Any) -> Any:
        try:
            return self._rep[self.ambient.key(g)]
        except KeyError:
            raise NotInGroupError(f"{g!r} is not in {self.ambient!r}") from None

    @property
    def generators(self) -> List[Any]:
        return list(self._gens)

    @property
    def identity(self) -> Any:
        return self.project(self.ambient.identity)

    def mul(self, a: Any, b: Any) -> Any:
        return self.project(self.ambient.mul(a, b))

    def inv(self, a: Any) -> Any:
        return self.project(self.ambient.inv(a))

    def key(self, a: Any) -> Hashable:
        return self.ambient.key(a)

    def __contains__(self, g: Any) -> bool:
        return g in self.ambient and self.ambient.key(self.project(g)) == self.ambient.key(g)

    def __repr__(self) -> str:
        return f"QuotientGroup({self.ambient!r} / order {self.normal.order()})"


# =============================================================================
# 5) pc 群
# =============================================================================


class PcGroup(FiniteGroup):
    """
    Group given by a consistent pc presentation.

    ``rules`` are the power rules ``i^p → w`` and conjugate rules
    ``j i → i w`` (j > i) over positive letters; inverse rules are derived.
    Elements are collected normal words.
    """

    def __init__(self, relative_orders: Sequence[int], rules: Sequence[Tuple[Sequence[int], Sequence[int]]]):
        super().__init__()
        self.relative_orders = list(relative_orders)
        n = len(self.relative_orders)
        base = [(tuple(l), tuple(r)) for l, r in rules if all(a > 0 for a in l)]
        for lhs, _ in base:
            if any(a > n for a in lhs):
                raise GroupError(f"rule letter out of range in {lhs}")
        self._collector = Collector(base)
        inverses: List[Word] = [()] * n
        for i in range(n, 0, -1):
            p = self.relative_orders[i - 1]
            power = self._collector.collect((i,) * p)
            tail = tuple(a for x in reversed(power) for a in inverses[x - 1])
            inverses[i - 1] = self._collector.collect((i,) * (p - 1) + tail)
        self.rules: List[Tuple[Word, Word]] = base + [((-i,), inverses[i - 1]) for i in range(1, n + 1)]
        self._collector = Collector(self.rules)
        self._gens = [self._collector.collect((i,)) for i in range(1, n + 1)]

    @classmethod
    def from_presentation(cls, P: ConfluentPresentation) -> "PcGroup":
        if not P.is_pc:
            raise NotSolvableError("presentation is not polycyclic")
        return cls(P.relative_orders, P.rules)

    @property
    def generators(self) -> List[Word]:
        return list(self._gens)

    @property
    def identity(self) -> Word:
        return ()

    def mul(self, a: Word, b: Word) -> Word:
        return self._collector.collect(tuple(a) + tuple(b))

    def inv(self, a: Word) -> Word:
        return self._collector.collect(invert_word(a))

    def exponents(self, a: Word) -> Tuple[int, ...]:
        e = [0] * len(self.relative_orders)
        for x in a:
            e[x - 1] += 1
        return tuple(e)

    def pc_presentation(self) -> ConfluentPresentation:
        if self._pc is None:
            self._pc = ConfluentPresentation(
                group=self,
                images=self.generators,
                rules=list(self.rules),
                normal_words={w: w for w in self.elements()},
                relative_orders=list(self.relative_orders),
            )
        return self._pc

    def __repr__(self) -> str:
        return f"PcGroup(relative_orders={self.relative_orders})"


def pc_group(G: FiniteGroup) -> Tuple[PcGroup, "GroupHom"]:
    """Isomorphic pc group and the isomorphism ``P → G``."""
    P = G.pc_presentation()
    Q = PcGroup.from_presentation(P)
    return Q, GroupHom(Q, G, list(P.images))


# =============================================================================
# 6) 有限表现群（Knuth-Bendix）
# =============================================================================


class FpGroup(FiniteGroup):
    """Finitely presented group; elements are normal-form words of the completed system."""

    def __init__(
        self,
        ngens: int,
        relators: Sequence[Sequence[int]],
        names: Optional[Sequence[str]] = None,
        config: Optional[CompletionConfig] = None,
    ):
        super().__init__()
        self._ngens = ngens
        self.relators = [tuple(r) for r in relators]
        self.names = list(names) if names is not None else [f"g{i}" for i in range(1, ngens + 1)]
        if config is None:
            config = CompletionConfig(max_rules=get_config().max_completion_rules)
        result = KnuthBendixCompletion(config).complete(ngens, [(r, ()) for r in self.relators])
        if not result.ok:
            raise GroupError(f"Knuth-Bendix completion failed: {result.message}")
        self.system = result.system
        self._gens = [self.system.normal_form((i,)) for i in range(1, ngens + 1)]

    @classmethod
    def from_presentation(cls, P: GroupPresentation, config: Optional[CompletionConfig] = None) -> "FpGroup":
        return cls(P.ngens, P.relators(), names=P.names, config=config)

    @property
    def generators(self) -> List[Word]:
        return list(self._gens)

    @property
    def identity(self) -> Word:
        return ()

    def mul(self, a: Word, b: Word) -> Word:
        return self.system.normal_form(tuple(a) + tuple(b))

    def inv(self, a: Word) -> Word:
        return self.system.normal_form(invert_word(a))

    def __call__(self, w: Sequence[int]) -> Word:
        return self.system.normal_form(tuple(w))

    def __repr__(self) -> str:
        return f"FpGroup(ngens={self._ngens}, relators={len(self.relators)})"


# =============================================================================
# 7) 群同态
# =============================================================================


class GroupHom:
    """Homomorphism given by the images of the domain's generators."""

    def __init__(self, domain: FiniteGroup, codomain: FiniteGroup, images: Sequence[Any], check: bool = False):
        if len(images) != domain.ngens:
            raise GroupError(f"need {domain.ngens} images, got {len(images)}")
        self.domain = domain
        self.codomain = codomain
        self.images = list(images)
        self._table: Optional[Dict[Hashable, Any]] = None
        self._pre: Optional[Dict[Hashable, Any]] = None
        if check and not self.is_homomorphism():
            raise GroupError("images do not satisfy the relators of the domain")

    def _build(self) -> None:
        if self._table is not None:
            return
        D, C = self.domain, self.codomain
        table: Dict[Hashable, Any] = {}
        for g in D.elements():
            w = D.word(g)
            if w:
                table[D.key(g)] = C.mul(table[D.key(D.eval_word(w[:-1]))], self.images[w[-1] - 1])
            else:
                table[D.key(g)] = C.identity
        self._table = table

    def __call__(self, g: Any) -> Any:
        self._build()
        try:
            return self._table[self.domain.key(g)]
        except KeyError:
            raise NotInGroupError(f"{g!r} is not in {self.domain!r}") from None

    def is_homomorphism(self) -> bool:
        D, C = self.domain, self.codomain
        for r in D.fp_presentation().relators:
            x = C.identity
            for a in r:
                y = self.images[abs(a) - 1]
                x = C.mul(x, y if a > 0 else C.inv(y))
            if not C.is_identity(x):
                return False
        return True

    def preimage(self, h: Any) -> Tuple[bool, Optional[Any]]:
        if self._pre is None:
            self._build()
            self._pre = {}
            for g in self.domain.elements():
                self._pre.setdefault(self.codomain.key(self._table[self.domain.key(g)]), g)
        g = self._pre.get(self.codomain.key(h))
        return (g is not None), g

    def kernel(self) -> Subgroup:
        D = self.domain
        return Subgroup(D, [g for g in D.elements() if self.codomain.is_identity(self(g))])

    def image(self) -> Subgroup:
        return Subgroup(self.codomain, self.images)

    def is_injective(self) -> bool:
        return self.kernel().order() == 1

    def is_surjective(self) -> bool:
        return self.image().order() == self.codomain.order()

    def compose(self, other: "GroupHom") -> "GroupHom":
        """Apply ``self``, then ``other``."""
        return GroupHom(self.domain, other.codomain, [other(x) for x in self.images])

    def __repr__(self) -> str:
        return f"GroupHom({self.domain!r} -> {self.codomain!r})"


__all__ = [
    "GroupError",
    "NotInGroupError",
    "NotSolvableError",
    "GroupTooLargeError",
    "FpPresentation",
    "ConfluentPresentation",
    "FiniteGroup",
    "PermGroup",
    "Subgroup",
    "QuotientGroup",
    "PcGroup",
    "pc_group",
    "FpGroup",
    "GroupHom",
    "cyclic_group",
    "dihedral_group",
    "symmetric_group",
    "alternating_group",
    "abelian_perm_group",
    "trivial_group",
]
