"""
上同调求解器：H^0、Tate H^0、H^1、H^2。

数学基础：
    Holt, D.F. (1985). "The mechanical computation of first and second
        cohomology groups", J. Symbolic Comput. 1
    Dietrich, H. & Hulpke, A. (2021). "Universal covers of finite groups"

    H^1：交叉同态 X 由生成元处的值 X(g_i) ∈ M 决定，D = M^r。
         每个关系子沿词折叠得到线性条件 P_j: D → M，
         上闭链 = ker(⊕P_j)，上边缘 = im(m ↦ (m^{g_i} - m)_i)。

    H^2：取合流重写系统，每条"带尾"规则 lhs → rhs 在扩张中变成
         lhs = rhs · t。所有重叠词的两种规约必须给出相同的尾巴，
         得到 D = M^n 上的线性条件，其核 E 就是全部 2-上闭链（按尾巴计）；
         改变生成元的提升得到上边缘映射 B = M^k → D，
         H^2 = E / im(B)。

结果缓存在 GModule 上，重复调用不再计算。
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from abelian_group import AbelianGroup
from cochain import CoChain, coboundary, fold_pairs, istwo_cocycle
from cohomology_config import assertions_enabled, get_config
from finite_group import ConfluentPresentation
from gmodule import (
    GModule,
    InconsistencyError,
    PreconditionError,
    UnsupportedOperationError,
    action,
)
from module_api import (
    Module,
    ModuleElem,
    ModuleHom,
    direct_product,
    has_preimage,
    kernel,
    lift_through,
    preimage,
    quo,
    sum_homs,
)
from presentation import Collector, Word, overlaps

_logger = logging.getLogger(__name__)


# =============================================================================
# 1) 结果结构
# =============================================================================


@dataclass(repr=False, eq=False)
class CohomologyGroup:
    """
    Abstract cohomology group with maps to and from explicit cochains.

    ``to_cochain(x)`` gives a representative cocycle of the class ``x``;
    ``from_cochain(c)`` gives the class of a cocycle ``c``.
    """
    degree: int
    gmodule: GModule
    module: Module
    to_cochain: Any
    from_cochain: Any
    tate: bool

    def __call__(self, x: ModuleElem) -> CoChain:
        return self.to_cochain(x)

    def is_trivial(self) -> bool:
        return self.module.is_trivial()

    def is_coboundary(self, c: CoChain) -> Tuple[bool, Optional[Any]]:
        raise UnsupportedOperationError(f"no coboundary test in degree {self.degree}")

    def __repr__(self) -> str:
        kind = "Tate " if self.tate else ""
        return f"{kind}H^{self.degree} = {self.module!r}"


@dataclass(repr=False, eq=False)
class ZeroCohomology(CohomologyGroup):
    fixed_points: ModuleHom
    norm: Optional[ModuleHom]

    def is_coboundary(self, c: CoChain) -> Tuple[bool, Optional[ModuleElem]]:
        """Tate H^0 only: ``c()`` is a norm; the witness is a preimage under N."""
        if not self.tate:
            raise UnsupportedOperationError("ordinary H^0 has no coboundaries")
        return has_preimage(self.norm, c())


@dataclass(repr=False, eq=False)
class OneCohomology(CohomologyGroup):
    cocycles: ModuleHom
    coboundary_map: ModuleHom
    projections: List[ModuleHom]
    injections: List[ModuleHom]

    def is_coboundary(self, c: CoChain) -> Tuple[bool, Optional[CoChain]]:
        """``c = δm`` for some ``m``; the witness is the 0-cochain ``m``."""
        C = self.gmodule
        if c.C is not C or c.degree != 1:
            raise PreconditionError("not a 1-cochain of this module")
        D = self.coboundary_map.codomain
        d = D.zero()
        for g, inj in zip(C.G.generators, self.injections):
            d = d + inj(c(g))
        ok, m = has_preimage(self.coboundary_map, d)
        if not ok:
            return False, None
        return True, CoChain(C, 0, {(): m})


@dataclass(repr=False, eq=False)
class TwoCohomology(CohomologyGroup):
    tails: "TailSystem"
    quotient_map: ModuleHom

    @property
    def presentation(self) -> ConfluentPresentation:
        return self.tails.presentation

    def tail_from_cochain(self, c: CoChain) -> ModuleElem:
        return self.tails.tail_from_cochain(c)

    def tail_to_cochain(self, t: ModuleElem) -> CoChain:
        return self.tails.tail_to_cochain(t)

    def symbolic_chain(self, g: Any, h: Any) -> Tuple[ModuleHom, Word]:
        return self.tails.symbolic_chain(g, h)

    def is_coboundary(self, c: CoChain) -> Tuple[bool, Optional[CoChain]]:
        return self.tails.is_coboundary(c)


# =============================================================================
# 2) H^0
# =============================================================================


def _fixed_point_map(C: GModule) -> Tuple[ModuleHom, List[ModuleHom], List[ModuleHom]]:
    """``m ↦ (m^{g_i} - m)_i`` into ``M^r``."""
    M = C.M
    D, pro, inj = direct_product(*([M] * C.G.ngens), like=M)
    idM = M.identity_hom()
    g = sum_homs([(a - idM) * q for a, q in zip(C.ac, inj)], M, D)
    return g, pro, inj


def H_zero(C: GModule) -> ZeroCohomology:
    """Fixed points ``M^G``."""

    def compute() -> ZeroCohomology:
        g, _, _ = _fixed_point_map(C)
        K, mK = kernel(g)
        _logger.info("H^0 = %r", K)
        return ZeroCohomology(
            degree=0,
            gmodule=C,
            module=K,
            to_cochain=lambda x: CoChain(C, 0, {(): mK(x)}),
            from_cochain=lambda c: preimage(mK, c()),
            tate=False,
            fixed_points=mK,
            norm=None,
        )

    return C.cached("H_zero", compute)


def norm_map(C: GModule) -> ModuleHom:
    """``N = Σ_{g ∈ G} m^g``."""
    M = C.M
    return sum_homs([action(C, g) for g in C.G.elements()], M, M)


def H_zero_tate(C: GModule) -> ZeroCohomology:
    """Fixed points modulo the image of the norm."""

    def compute() -> ZeroCohomology:
        g, _, _ = _fixed_point_map(C)
        K, mK = kernel(g)
        N = norm_map(C)
        ok, NK = lift_through(N, mK)
        if not ok:
            raise InconsistencyError("image of the norm is not fixed by G")
        Q, mQ = quo(K, NK.images())
        if isinstance(Q, AbelianGroup):
            Q.exponent_hint = C.G.order()
        _logger.info("Tate H^0 = %r", Q)
        return ZeroCohomology(
            degree=0,
            gmodule=C,
            module=Q,
            to_cochain=lambda x: CoChain(C, 0, {(): mK(preimage(mQ, x))}),
            from_cochain=lambda c: mQ(preimage(mK, c())),
            tate=True,
            fixed_points=mK,
            norm=N,
        )

    return C.cached("H_zero_tate", compute)


# =============================================================================
# 3) H^1
# =============================================================================


def H_one_maps(C: GModule) -> Tuple[ModuleHom, ModuleHom, List[ModuleHom], List[ModuleHom]]:
    """
    ``(g, gg, pro, inj)`` with ``M -g-> D -gg-> M^{#relators}``.

    ``ker(gg)`` are the crossed homomorphisms (given by their values on the
    generators), ``im(g)`` the principal ones.
    """
    G = C.G
    M = C.M
    r = G.ngens
    D, pro, inj = direct_product(*([M] * r), like=M)
    F = C.fp_presentation()
    R = F.relators
    Kr, _, iKr = direct_product(*([M] * len(R)), like=M)
    ac, iac = C.ac, C.iac
    parts = []
    for rel, q in zip(R, iKr):
        P = D.zero_hom(M)
        w = M.identity_hom()
        for a in rel:
            if a > 0:
                P = P * ac[a - 1] + pro[a - 1]
                w = w * ac[a - 1]
            else:
                P = P * iac[-a - 1] - pro[-a - 1] * iac[-a - 1]
                w = w * iac[-a - 1]
        if assertions_enabled(1) and any(w(m) != m for m in M.gens()):
            raise InconsistencyError(f"relator {rel} does not act trivially")
        parts.append(P * q)
    gg = sum_homs(parts, D, Kr)
    idM = M.identity_hom()
    g = sum_homs([(a - idM) * q for a, q in zip(ac, inj)], M, D)
    return g, gg, pro, inj


def H_one(C: GModule) -> OneCohomology:
    """Crossed homomorphisms modulo principal ones."""

    def compute() -> OneCohomology:
        t0 = time.perf_counter()
        G = C.G
        g, gg, pro, inj = H_one_maps(C)
        K, mK = kernel(gg)
        ok, gK = lift_through(g, mK)
        if not ok:
            raise InconsistencyError("principal crossed homomorphisms are not cocycles")
        Q, mQ = quo(K, gK.images())
        D = mK.codomain

        def to_cochain(x: ModuleElem) -> CoChain:
            d = mK(preimage(mQ, x))
            return CoChain(C, 1, {(x_,): p(d) for x_, p in zip(G.generators, pro)})

        def from_cochain(c: CoChain) -> ModuleElem:
            d = D.zero()
            for x_, q in zip(G.generators, inj):
                d = d + q(c(x_))
            ok_, k = has_preimage(mK, d)
            if not ok_:
                raise InconsistencyError("1-cochain is not a crossed homomorphism")
            return mQ(k)

        _logger.info("H^1 = %r (%.3fs)", Q, time.perf_counter() - t0)
        return OneCohomology(
            degree=1,
            gmodule=C,
            module=Q,
            to_cochain=to_cochain,
            from_cochain=from_cochain,
            tate=False,
            cocycles=mK,
            coboundary_map=g,
            projections=pro,
            injections=inj,
        )

    return C.cached("H_one", compute)


# =============================================================================
# 4) H^2：带尾巴的收集
# =============================================================================


class TailObserver:
    """
    Collection observer accumulating tails symbolically, as a map ``D → M``.

    Applying rule ``r`` at position ``p`` of ``u·lhs·v`` leaves the tail
    ``t_r`` acted on by ``v``, so ``pro[pos[r]] * act(v)`` is added.
    """

    def __init__(self, system: "TailSystem", start: ModuleHom):
        self.system = system
        self.total = start

    def __call__(self, collector: Collector, word: Word, r: int, p: int) -> None:
        k = self.system.pos[r]
        if k is None:
            return
        v = word[p + len(collector.rules[r][0]):]
        self.total = self.total + self.system.pro[k] * self.system.word_hom(v)


class ValueObserver:
    """Same as :class:`TailObserver` for a fixed tail vector, accumulating in ``M``."""

    def __init__(self, system: "TailSystem", values: List[ModuleElem]):
        self.system = system
        self.values = values
        self.total = system.M.zero()

    def __call__(self, collector: Collector, word: Word, r: int, p: int) -> None:
        k = self.system.pos[r]
        if k is None:
            return
        m = self.values[k]
        for a in word[p + len(collector.rules[r][0]):]:
            m = self.system.ac[a - 1](m) if a > 0 else self.system.iac[-a - 1](m)
        self.total = self.total + m


class TailSystem:
    """
    Tail bookkeeping for H^2 over a confluent presentation of ``C.G``.

    Attributes after construction:
        presentation  the rewriting presentation (pc if possible)
        pos           tail slot of every rule, ``None`` for untailed rules
        D, pro, inj   ``M^n``, one factor per tailed rule
        E, mE         2-cocycles as tail vectors, embedded in ``D``
        B, CC         ``M^k`` (one factor per letter) and the coboundary map ``B → D``
    """

    def __init__(self, C: GModule, force_rws: bool = False):
        t0 = time.perf_counter()
        self.C = C
        G = C.G
        M = C.M
        self.M = M
        use_pc = get_config().prefer_pc and not force_rws
        P = G.confluent_presentation(use_pc)
        self.presentation = P
        self.collector = P.collector
        rules = P.rules

        self.ac = [action(C, x) for x in P.images]
        self.iac = [action(C, G.inv(x)) for x in P.images]

        pos: List[Optional[int]] = []
        n = 0
        for lhs, rhs in rules:
            if len(lhs) == 1 or (len(lhs) == 2 and lhs[0] == -lhs[1] and not rhs):
                pos.append(None)
            else:
                pos.append(n)
                n += 1
        self.pos = pos
        self.D, self.pro, self.inj = direct_product(*([M] * n), like=M)
        D = self.D

        relations = []
        for ov in overlaps(rules, pc=P.is_pc, relative_orders=P.relative_orders):
            lr, rr = rules[ov.r]
            ls, rs = rules[ov.s]
            l = ov.length
            suffix = ls[l:]
            if pos[ov.r] is None:
                start = D.zero_hom(M)
            else:
                start = self.pro[pos[ov.r]] * self.word_hom(suffix)
            z1, T1 = self.collect_symbolic(rr + suffix, start)
            start = D.zero_hom(M) if pos[ov.s] is None else self.pro[pos[ov.s]]
            z2, T2 = self.collect_symbolic(lr[:len(lr) - l] + rs, start)
            if z1 != z2:
                raise InconsistencyError(f"rewriting system is not confluent at overlap {ov}")
            relations.append(T1 - T2)
        R, _, iR = direct_product(*([M] * len(relations)), like=M)
        rel_map = sum_homs([T * q for T, q in zip(relations, iR)], D, R)
        self.E, self.mE = kernel(rel_map)
        t1 = time.perf_counter()

        k = P.ngens
        self.B, self.B_pro, self.B_inj = direct_product(*([M] * k), like=M)
        parts = []
        for (lhs, rhs), p in zip(rules, pos):
            if p is None:
                continue
            parts.append((self._fold_b(lhs) - self._fold_b(rhs)) * self.inj[p])
        self.CC = sum_homs(parts, self.B, D)
        ok, self.CCE = lift_through(self.CC, self.mE)
        if not ok:
            raise InconsistencyError("coboundaries do not satisfy the overlap relations")
        self._chains: Dict[Tuple[Hashable, Hashable], Tuple[ModuleHom, Word]] = {}
        _logger.debug(
            "tail system: %d rules, %d tails, %d overlap relations (%.3fs + %.3fs)",
            len(rules), n, len(relations), t1 - t0, time.perf_counter() - t1,
        )

    # -------------------------------------------------------------------------
    # 收集
    # -------------------------------------------------------------------------

    def word_hom(self, w: Sequence[int]) -> ModuleHom:
        h = self.M.identity_hom()
        for a in w:
            h = h * (self.ac[a - 1] if a > 0 else self.iac[-a - 1])
        return h

    def collect_symbolic(self, w: Sequence[int], start: ModuleHom) -> Tuple[Word, ModuleHom]:
        obs = TailObserver(self, start)
        nf = self.collector.collect(w, obs)
        return nf, obs.total

    def _fold_b(self, w: Sequence[int]) -> ModuleHom:
        """Module part of the product of the lifts ``x·b_x`` along ``w``, as a map ``B → M``."""
        T: Optional[ModuleHom] = None
        for a in w:
            if a > 0:
                T = self.B_pro[a - 1] if T is None else T * self.ac[a - 1] + self.B_pro[a - 1]
            else:
                x = -a - 1
                T = -(self.B_pro[x] * self.iac[x]) if T is None else (T - self.B_pro[x]) * self.iac[x]
        return self.B.zero_hom(self.M) if T is None else T

    # -------------------------------------------------------------------------
    # 尾巴与上链之间的转换
    # -------------------------------------------------------------------------

    def _check_cochain(self, c: CoChain) -> None:
        if c.C is not self.C or c.degree != 2:
            raise PreconditionError("not a 2-cochain of this module")

    def _fold_pairs(self, c: CoChain, w: Sequence[int], lifts: Optional[List[ModuleElem]] = None) -> ModuleElem:
        return fold_pairs(c, self.presentation.images, w, lifts)[1]

    def tail_from_cochain(self, c: CoChain) -> ModuleElem:
        """Tail vector in ``D`` of the extension defined by the 2-cocycle ``c``."""
        self._check_cochain(c)
        t = self.D.zero()
        for (lhs, rhs), p in zip(self.presentation.rules, self.pos):
            if p is None:
                continue
            t = t + self.inj[p](self._fold_pairs(c, lhs) - self._fold_pairs(c, rhs))
        return t

    def tail_to_cochain(self, t: ModuleElem) -> CoChain:
        """2-cocycle ``γ`` with ``word(g)·word(h) = word(gh)·γ(g, h)`` under the tails ``t``."""
        t0 = time.perf_counter()
        C = self.C
        G = C.G
        P = self.presentation
        values = [p(t) for p in self.pro]
        elems = G.elements()
        words = [P.word(g) for g in elems]
        table: Dict[Tuple[Any, Any], ModuleElem] = {}
        for g, wg in zip(elems, words):
            for h, wh in zip(elems, words):
                obs = ValueObserver(self, values)
                nf = self.collector.collect(wg + wh, obs)
                if assertions_enabled(1) and nf != P.word(G.mul(g, h)):
                    raise InconsistencyError("collection does not reach the normal form of the product")
                table[(g, h)] = obs.total
        c = CoChain(C, 2, table)
        _logger.debug("tail_to_cochain: %d pairs in %.3fs", len(table), time.perf_counter() - t0)
        if assertions_enabled(2) and not istwo_cocycle(c):
            raise InconsistencyError("tail vector does not give a 2-cocycle")
        return c

    def symbolic_chain(self, g: Any, h: Any) -> Tuple[ModuleHom, Word]:
        """``(γ(g, h)`` as a map ``E → M``, collected word of ``gh)``."""
        G = self.C.G
        k = (G.key(g), G.key(h))
        if k not in self._chains:
            P = self.presentation
            nf, T = self.collect_symbolic(P.word(g) + P.word(h), self.D.zero_hom(self.M))
            self._chains[k] = (self.mE * T, nf)
        return self._chains[k]

    def is_coboundary(self, c: CoChain) -> Tuple[bool, Optional[CoChain]]:
        """
        Decide ``c = δd``; on success ``d`` is returned as a full 1-cochain.

        With ``CC(b) = t`` the lifts ``(x, -b_x)`` satisfy every rule with zero
        tail, so ``g ↦ (g, m(g))`` is a splitting and ``d = -m``.
        """
        self._check_cochain(c)
        t = self.tail_from_cochain(c)
        ok, b = has_preimage(self.CC, t)
        if not ok:
            return False, None
        C = self.C
        lifts = [-p(b) for p in self.B_pro]
        P = self.presentation
        d = CoChain(C, 1, {(g,): -self._fold_pairs(c, P.word(g), lifts) for g in C.G.elements()})
        if assertions_enabled(1) and coboundary(d) != c:
            raise InconsistencyError("constructed 1-cochain does not bound the cocycle")
        return True, d


def H_two(C: GModule, force_rws: bool = False) -> TwoCohomology:
    """
    H^2 via tails of a confluent rewriting system.

    ``force_rws`` uses the generic system even for solvable groups.
    """

    def compute() -> TwoCohomology:
        t0 = time.perf_counter()
        T = TailSystem(C, force_rws=force_rws)
        H2, mH2 = quo(T.E, T.CCE.images())
        if isinstance(H2, AbelianGroup):
            H2.exponent_hint = C.G.order()

        def to_cochain(x: ModuleElem) -> CoChain:
            return T.tail_to_cochain(T.mE(preimage(mH2, x)))

        def from_cochain(c: CoChain) -> ModuleElem:
            ok, e = has_preimage(T.mE, T.tail_from_cochain(c))
            if not ok:
                raise InconsistencyError("2-cochain is not a cocycle")
            return mH2(e)

        _logger.info("H^2 = %r (%.3fs)", H2, time.perf_counter() - t0)
        return TwoCohomology(
            degree=2,
            gmodule=C,
            module=H2,
            to_cochain=to_cochain,
            from_cochain=from_cochain,
            tate=False,
            tails=T,
            quotient_map=mH2,
        )

    return C.cached("H_two_rws" if force_rws else "H_two", compute)


def cohomology_group(C: GModule, i: int, tate: bool = False) -> CohomologyGroup:
    """H^i for i in {0, 1, 2}; ``tate`` only changes degree 0."""
    if i == 0:
        return H_zero_tate(C) if tate else H_zero(C)
    if i == 1:
        return H_one(C)
    if i == 2:
        return H_two(C)
    raise UnsupportedOperationError("only H^0, H^1 and H^2 are supported")


__all__ = [
    "CohomologyGroup",
    "ZeroCohomology",
    "OneCohomology",
    "TwoCohomology",
    "H_zero",
    "H_zero_tate",
    "norm_map",
    "H_one_maps",
    "H_one",
    "TailObserver",
    "ValueObserver",
    "TailSystem",
    "H_two",
    "cohomology_group",
]
