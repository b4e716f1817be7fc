"""
G-modules: a finite group acting on the right of a module.

A :class:`GModule` stores one automorphism per generator of ``G``.  The
action of an arbitrary element is obtained by writing it as a word in
those generators (the group's own presentation, so the letters of the word
are in bijection with ``ac``) and composing ``ac``/``iac`` along the word.

Besides the module itself this file carries the combinators that build
new G-modules from old ones: direct products, induction, restriction,
inflation, quotients, submodules and Smith-form simplification.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple, Union

from abelian_group import AbelianGroup
from cohomology_config import assertions_enabled
from finite_group import FiniteGroup, FpPresentation, GroupHom, Subgroup
from module_api import (
    Module,
    ModuleElem,
    ModuleHom,
    direct_product as module_direct_product,
    has_preimage,
    preimage,
    quo as module_quo,
    sum_homs,
)

_logger = logging.getLogger(__name__)


# =============================================================================
# 0) 异常
# =============================================================================


class CohomologyError(Exception):
    """Base class for G-module and cohomology errors."""


class PreconditionError(CohomologyError):
    """Inputs do not fit together (wrong parent, degree, presentation)."""


class InconsistencyError(CohomologyError):
    """An algebraic identity that must hold does not (raised by gated checks)."""


class UnsupportedOperationError(CohomologyError):
    """Requested operation is outside what the engine computes."""


# =============================================================================
# 1) GModule
# =============================================================================


class GModule:
    """
    ``G`` acting on ``M`` through ``ac[i]`` for the i-th generator of ``G``.

    ``iac``, the group's fp presentation and the computed cohomology groups
    are cached on the instance.
    """

    def __init__(self, G: FiniteGroup, M: Module, ac: Sequence[ModuleHom], check: Optional[bool] = None):
        ac = list(ac)
        if len(ac) != G.ngens:
            raise PreconditionError(f"need one action per generator: {G.ngens} generators, {len(ac)} maps")
        for i, a in enumerate(ac):
            if a.domain is not M or a.codomain is not M:
                raise PreconditionError(f"action of generator {i + 1} is not an endomorphism of the module")
        self.G = G
        self.M = M
        self.ac = ac
        self._iac: Optional[List[ModuleHom]] = None
        self._fp: Optional[FpPresentation] = None
        self._gen_index: Optional[Dict[Hashable, int]] = None
        self._cache: Dict[str, Any] = {}
        if check is None:
            check = assertions_enabled(1)
        if check and not self.is_consistent():
            raise InconsistencyError("the generator actions do not satisfy the relators of the group")

    @property
    def iac(self) -> List[ModuleHom]:
        if self._iac is None:
            self._iac = [a.inverse() for a in self.ac]
        return self._iac

    @iac.setter
    def iac(self, value: Sequence[ModuleHom]) -> None:
        self._iac = list(value)

    def fp_presentation(self) -> FpPresentation:
        """The group's presentation; its generators are checked to be G's, in order."""
        if self._fp is None:
            F = self.G.fp_presentation()
            if F.ngens != self.G.ngens or not all(
                self.G.equal(x, y) for x, y in zip(F.images, self.G.generators)
            ):
                raise PreconditionError("presentation generators do not match the group generators")
            self._fp = F
        return self._fp

    def cached(self, key: str, compute: Callable[[], Any]) -> Any:
        """Compute-or-fetch for results derived from ``(G, ac)``."""
        if key not in self._cache:
            self._cache[key] = compute()
        return self._cache[key]

    def word_hom(self, w: Sequence[int]) -> ModuleHom:
        """Composite of ``ac``/``iac`` along ``w`` (letters 1-based, signed)."""
        h = self.M.identity_hom()
        for a in w:
            h = h * (self.ac[a - 1] if a > 0 else self.iac[-a - 1])
        return h

    def is_consistent(self) -> bool:
        """Every relator acts as the identity on the generators of M."""
        gens = self.M.gens()
        for r in self.fp_presentation().relators:
            h = self.word_hom(r)
            if any(h(m) != m for m in gens):
                _logger.debug("relator %s acts non-trivially", r)
                return False
        return True

    def _generator_index(self) -> Dict[Hashable, int]:
        if self._gen_index is None:
            G = self.G
            idx: Dict[Hashable, int] = {}
            for i, g in enumerate(G.generators, 1):
                idx.setdefault(G.key(g), i)
            for i, g in enumerate(G.generators, 1):
                idx.setdefault(G.key(G.inv(g)), -i)
            self._gen_index = idx
        return self._gen_index

    def __repr__(self) -> str:
        return f"G-module {self.M!r} over {self.G!r}"


def action(C: GModule, g: Any, v: Union[None, ModuleElem, Sequence[ModuleElem]] = None):
    """
    ``action(C, g)`` is the automorphism ``m ↦ m^g``; with ``v`` it is applied
    to an element or to each element of a list.
    """
    G = C.G
    if g not in G:
        raise PreconditionError(f"{g!r} is not an element of {G!r}")
    i = C._generator_index().get(G.key(g))
    if i is not None:
        h = C.ac[i - 1] if i > 0 else C.iac[-i - 1]
    elif G.is_identity(g):
        h = C.M.identity_hom()
    else:
        h = C.word_hom(C.fp_presentation().word(g))
    if v is None:
        return h
    if isinstance(v, (list, tuple)):
        return [h(x) for x in v]
    return h(v)


def is_gmodule_hom(C: GModule, D: GModule, f: ModuleHom) -> bool:
    """``f: C.M → D.M`` commutes with the actions of all generators."""
    if C.G is not D.G:
        raise PreconditionError("modules over different groups")
    return all(a * f == f * b for a, b in zip(C.ac, D.ac))


# =============================================================================
# 2) 构造函数
# =============================================================================


def gmodule(G: FiniteGroup, M: Module, ac: Sequence[ModuleHom]) -> GModule:
    return GModule(G, M, ac)


def trivial_gmodule(G: FiniteGroup, M: Module) -> GModule:
    idM = M.identity_hom()
    return GModule(G, M, [idM] * G.ngens)


def natural_gmodule(G: FiniteGroup, M: Module) -> GModule:
    """
    Permutation module: ``G`` acting on ``M^n`` by permuting coordinates.

    ``G`` must be a permutation group of degree ``n``; the i-th summand is
    sent to summand ``i^g``.
    """
    n = getattr(G, "degree", None)
    if n is None:
        raise PreconditionError("natural module needs a permutation group")
    D, pro, inj = module_direct_product(*([M] * n), like=M)
    ac = []
    for g in G.generators:
        img = g.array_form + list(range(len(g.array_form), n))
        ac.append(sum_homs([pro[i] * inj[img[i]] for i in range(n)], D, D))
    return GModule(G, D, ac)


def regular_gmodule(G: FiniteGroup, M: Module) -> GModule:
    """``M[G]``: one copy of ``M`` per element, ``g`` acting by right multiplication."""
    elems = G.elements()
    n = len(elems)
    D, pro, inj = module_direct_product(*([M] * n), like=M)
    ac = []
    for a in G.generators:
        target = [G.index(G.mul(x, a)) for x in elems]
        ac.append(sum_homs([pro[i] * inj[target[i]] for i in range(n)], D, D))
    return GModule(G, D, ac)


# =============================================================================
# 3) 组合子
# =============================================================================


@dataclass
class GModuleProduct:
    """Direct product of G-modules with its G-linear projections and injections."""
    gmodule: GModule
    projections: List[ModuleHom]
    injections: List[ModuleHom]

    def __iter__(self):
        return iter((self.gmodule, self.projections, self.injections))


def direct_sum_hom(source: GModuleProduct, target: GModuleProduct, maps: Sequence[ModuleHom]) -> ModuleHom:
    """``⊕ f_i`` between two direct products with matching factors."""
    if len(maps) != len(source.projections) or len(maps) != len(target.injections):
        raise PreconditionError("number of maps does not match the number of factors")
    S, T = source.gmodule.M, target.gmodule.M
    return sum_homs([p * f * q for p, f, q in zip(source.projections, maps, target.injections)], S, T)


def direct_product(*Cs: GModule) -> GModuleProduct:
    if not Cs:
        raise PreconditionError("direct product of no modules")
    G = Cs[0].G
    if any(C.G is not G for C in Cs):
        raise PreconditionError("modules over different groups")
    D, pro, inj = module_direct_product(*[C.M for C in Cs])

    def diagonal(maps: Sequence[ModuleHom]) -> ModuleHom:
        return sum_homs([p * f * q for p, f, q in zip(pro, maps, inj)], D, D)

    ac = [diagonal([C.ac[i] for C in Cs]) for i in range(G.ngens)]
    P = GModule(G, D, ac, check=False)
    P.iac = [diagonal([C.iac[i] for C in Cs]) for i in range(G.ngens)]
    return GModuleProduct(P, pro, inj)


def direct_sum(*Cs: GModule) -> GModuleProduct:
    return direct_product(*Cs)


@dataclass
class InducedModule:
    """
    ``Ind_U^G C`` realised as ``⊕_i C ⊗ r_i`` over a right transversal ``r``.

    ``embedding`` is set when a G-module ``D`` with a U-linear ``D → C``
    was supplied; it is the induced G-linear map ``D → Ind``.
    """
    gmodule: GModule
    transversal: List[Any]
    projections: List[ModuleHom]
    injections: List[ModuleHom]
    embedding: Optional[ModuleHom] = None


def induce(C: GModule, h: GroupHom, D: Optional[GModule] = None, mDC: Optional[ModuleHom] = None) -> InducedModule:
    """
    Induce the ``U``-module ``C`` along the injection ``h: U → G``.

    For ``(c ⊗ r_i)·s`` write ``r_i s = u r_j`` with ``u`` in ``h(U)``; then
    ``(c ⊗ r_i)·s = c^{h⁻¹(u)} ⊗ r_j``.
    """
    if h.domain is not C.G:
        raise PreconditionError("the homomorphism must start at the module's group")
    if (D is None) != (mDC is None):
        raise PreconditionError("D and mDC must be given together")
    if not h.is_injective():
        raise PreconditionError("induction needs an injective homomorphism")
    t0 = time.perf_counter()
    G = h.codomain
    iU = h.image()
    U_keys = {G.key(x) for x in iU.elements()}
    reps = G.right_transversal(iU)
    n = len(reps)
    Ind, pro, inj = module_direct_product(*([C.M] * n), like=C.M)

    def coset_of(g: Any) -> int:
        for j, r in enumerate(reps):
            if G.key(G.mul(g, G.inv(r))) in U_keys:
                return j
        raise InconsistencyError("element outside every coset")

    def action_of(s: Any) -> ModuleHom:
        parts = []
        for i, r in enumerate(reps):
            rs = G.mul(r, s)
            j = coset_of(rs)
            u = G.mul(rs, G.inv(reps[j]))
            ok, x = h.preimage(u)
            if not ok:
                raise InconsistencyError("coset factor is not in the image of the subgroup")
            parts.append(pro[i] * action(C, x) * inj[j])
        return sum_homs(parts, Ind, Ind)

    ac = [action_of(s) for s in G.generators]
    iac = [action_of(G.inv(s)) for s in G.generators]
    I = GModule(G, Ind, ac, check=False)
    I.iac = iac
    _logger.debug("induced module of index %d built in %.3fs", n, time.perf_counter() - t0)
    result = InducedModule(I, reps, pro, inj)
    if D is not None:
        if D.G is not G or mDC.domain is not D.M or mDC.codomain is not C.M:
            raise PreconditionError("D must be a G-module with a map into C")
        images = []
        for a in D.M.gens():
            total = Ind.zero()
            for i, r in enumerate(reps):
                total = total + inj[i](mDC(action(D, G.inv(r), a)))
            images.append(total)
        result.embedding = D.M.hom(Ind, images)
    return result


def induce_hom(f: ModuleHom, source: InducedModule, target: InducedModule) -> ModuleHom:
    """Induced G-linear map of a U-linear ``f``; both modules need the same transversal."""
    if len(source.transversal) != len(target.transversal):
        raise PreconditionError("induced modules over different transversals")
    S, T = source.gmodule.M, target.gmodule.M
    return sum_homs([p * f * q for p, q in zip(source.projections, target.injections)], S, T)


def _pullback(C: GModule, h: GroupHom) -> GModule:
    if h.codomain is not C.G:
        raise PreconditionError("the homomorphism must end at the module's group")
    return GModule(h.domain, C.M, [action(C, x) for x in h.images], check=False)


def restrict(C: GModule, U: Union[Subgroup, GroupHom]) -> GModule:
    """Restriction to a subgroup, or along an embedding ``U → G``."""
    if isinstance(U, GroupHom):
        return _pullback(C, U)
    if U.parent is not C.G:
        raise PreconditionError("not a subgroup of the module's group")
    return _pullback(C, U.embedding())


def inflate(C: GModule, h: GroupHom) -> GModule:
    """Inflation along a surjection ``h: G' → G``."""
    if assertions_enabled(1) and not h.is_surjective():
        raise PreconditionError("inflation needs a surjective homomorphism")
    return _pullback(C, h)


def quo(C: GModule, sub_hom: ModuleHom) -> Tuple[GModule, ModuleHom]:
    """Quotient by the G-invariant submodule given by the embedding ``sub_hom``."""
    if sub_hom.codomain is not C.M:
        raise PreconditionError("submodule does not embed into the module")
    if assertions_enabled(1):
        for s in sub_hom.images():
            for a in C.ac:
                if not has_preimage(sub_hom, a(s))[0]:
                    raise InconsistencyError("submodule is not G-invariant")
    Q, mq = module_quo(C.M, sub_hom)

    def transport(a: ModuleHom) -> ModuleHom:
        return Q.hom(Q, [mq(a(preimage(mq, q))) for q in Q.gens()])

    S = GModule(C.G, Q, [transport(a) for a in C.ac], check=False)
    if C._iac is not None:
        S.iac = [transport(a) for a in C._iac]
    return S, mq


def sub_gmodule(C: GModule, elems: Union[ModuleHom, Sequence[ModuleElem]]) -> Tuple[GModule, ModuleHom]:
    """G-invariant submodule generated by ``elems`` (or the image of an embedding)."""
    if isinstance(elems, ModuleHom):
        elems = elems.images()
    S, ms = C.M.sub(list(elems))

    def transport(a: ModuleHom) -> ModuleHom:
        images = []
        for s in S.gens():
            ok, x = has_preimage(ms, a(ms(s)))
            if not ok:
                raise InconsistencyError("submodule is not G-invariant")
            images.append(x)
        return S.hom(S, images)

    return GModule(C.G, S, [transport(a) for a in C.ac], check=False), ms


def simplify(C: GModule) -> Tuple[GModule, ModuleHom]:
    """
    Transport the action to the Smith form of ``M``.

    Returns the new module and the isomorphism from its module to ``C.M``.
    """
    if not isinstance(C.M, AbelianGroup):
        return C, C.M.identity_hom()
    S, ms = C.M.snf()
    msi = ms.inverse()
    T = GModule(C.G, S, [ms * a * msi for a in C.ac], check=False)
    if C._iac is not None:
        T.iac = [ms * a * msi for a in C._iac]
    return T, ms


def orbit(C: GModule, m: ModuleElem) -> List[ModuleElem]:
    """Orbit of ``m`` under the generators (hence under G)."""
    seen = {m}
    out = [m]
    frontier = [m]
    while frontier:
        nxt = []
        for x in frontier:
            for a in C.ac:
                y = a(x)
                if y not in seen:
                    seen.add(y)
                    out.append(y)
                    nxt.append(y)
        frontier = nxt
    return out


def shrink(C: GModule) -> Tuple[GModule, ModuleHom]:
    """
    Factor out free ``Z[G]`` submodules spanned by the orbit of a generator.

    These are cohomologically trivial, so the result has the same cohomology
    in positive degrees.  Returns the smaller module and the map ``C.M → q.M``.
    """
    if not isinstance(C.M, AbelianGroup):
        raise UnsupportedOperationError("shrink works on abelian groups")
    order = C.G.order()
    q = C
    mq = C.M.identity_hom()
    while True:
        progress = False
        for m in q.M.gens():
            o = orbit(q, m)
            if len(o) != order:
                continue
            s, ms = q.M.sub(o)
            if s.elementary_divisors() != [0] * len(o):
                continue
            q, _mq = quo(q, ms)
            mq = mq * _mq
            q, _ms = simplify(q)
            mq = mq * _ms.inverse()
            progress = True
            break
        if not progress:
            _logger.debug("shrink: %d generators left", q.M.ngens)
            return q, mq


__all__ = [
    "CohomologyError",
    "PreconditionError",
    "InconsistencyError",
    "UnsupportedOperationError",
    "GModule",
    "action",
    "is_gmodule_hom",
    "gmodule",
    "trivial_gmodule",
    "natural_gmodule",
    "regular_gmodule",
    "GModuleProduct",
    "direct_product",
    "direct_sum",
    "direct_sum_hom",
    "InducedModule",
    "induce",
    "induce_hom",
    "restrict",
    "inflate",
    "quo",
    "sub_gmodule",
    "simplify",
    "orbit",
    "shrink",
]
