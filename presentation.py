"""
重写系统、收集（collection）与 Knuth-Bendix 完备化

数学基础：
    Knuth, D.E. & Bendix, P.B. (1970). "Simple Word Problems in Universal Algebras"
    Holt, D.F. et al. (2005). "Handbook of Computational Group Theory", §12-13

    有限表现群 ⟨S | R⟩ 的词写成带符号整数序列：
        i > 0  表示第 i 个生成元（从 1 开始）
        -i     表示其逆元
    重写规则 lhs → rhs 按 ShortLex 序定向（lhs > rhs）。

架构：
┌─────────────────────────────────────────────────────────────────────────────┐
│ Layer 1: 词工具（求逆、自由约化、与命名生成元之间的转换）                        │
├─────────────────────────────────────────────────────────────────────────────┤
│ Layer 2: ShortLexOrder                                                      │
├─────────────────────────────────────────────────────────────────────────────┤
│ Layer 3: RewriteRule / RewriteSystem（最左规约）                             │
├─────────────────────────────────────────────────────────────────────────────┤
│ Layer 4: Collector                                                          │
│   - 单字母索引 + 双字母前缀索引                                               │
│   - 每次替换前调用观察者 observer(collector, word, rule, pos)                │
│     （H^2 的"尾巴"累加挂在这里）                                              │
├─────────────────────────────────────────────────────────────────────────────┤
│ Layer 5: 重叠与临界对                                                        │
├─────────────────────────────────────────────────────────────────────────────┤
│ Layer 6: KnuthBendixCompletion                                               │
├─────────────────────────────────────────────────────────────────────────────┤
│ Layer 7: GroupPresentation（命名生成元的表现）与工厂函数                       │
└─────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import itertools
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Set, Tuple

_logger = logging.getLogger(__name__)

Word = Tuple[int, ...]


# =============================================================================
# 0) 严格异常系统
# =============================================================================


class PresentationError(Exception):
    """重写/表现模块总异常基类。"""


class WordError(PresentationError):
    """词构造或解析错误（非法字母/未知生成元等）。"""


class RewriteRuleError(PresentationError):
    """重写规则错误（左侧不大于右侧/空规则等）。"""


class RewriteSystemError(PresentationError):
    """重写系统错误（规约步数超限等）。"""


class CompletionError(PresentationError):
    """完备化过程错误（不终止/资源耗尽等）。"""


class NonTerminationError(CompletionError):
    """完备化过程检测到不终止。"""


# =============================================================================
# 1) 词（Word）
# =============================================================================


def invert_word(w: Sequence[int]) -> Word:
    """(a b c)⁻¹ = c⁻¹ b⁻¹ a⁻¹"""
    return tuple(-x for x in reversed(w))


def free_reduce(w: Sequence[int]) -> Word:
    """删去所有相邻的 x x⁻¹。"""
    out: List[int] = []
    for x in w:
        if x == 0:
            raise WordError("letter 0 is not allowed in a word")
        if out and out[-1] == -x:
            out.pop()
        else:
            out.append(x)
    return tuple(out)


def word_power(w: Sequence[int], n: int) -> Word:
    if n >= 0:
        return tuple(w) * n
    return invert_word(w) * (-n)


def contains_subword(w: Sequence[int], sub: Sequence[int]) -> bool:
    return find_subword(w, sub) >= 0


def find_subword(w: Sequence[int], sub: Sequence[int]) -> int:
    """第一次出现的位置，不存在时返回 -1。"""
    L = len(sub)
    sub = tuple(sub)
    for i in range(len(w) - L + 1):
        if tuple(w[i:i + L]) == sub:
            return i
    return -1


def parse_word(s: str, names: Sequence[str]) -> Word:
    """
    解析空格分隔的词："a b^-1 a^3"。

    记号：x（生成元）、x^n（幂，n 可为负）、x^（逆，兼容旧写法）。
    空串是单位元。
    """
    index = {name: i + 1 for i, name in enumerate(names)}
    out: List[int] = []
    for token in s.split():
        if "^" in token:
            base, _, exp = token.partition("^")
            if exp == "":
                n = -1
            else:
                try:
                    n = int(exp)
                except ValueError as exc:
                    raise WordError(f"bad exponent in {token!r}") from exc
        else:
            base, n = token, 1
        if base not in index:
            raise WordError(f"unknown generator {base!r} in {s!r}")
        out.extend(word_power((index[base],), n))
    return tuple(out)


def format_word(w: Sequence[int], names: Optional[Sequence[str]] = None) -> str:
    if not w:
        return "ε"
    parts = []
    for x in w:
        name = names[abs(x) - 1] if names else f"g{abs(x)}"
        parts.append(name if x > 0 else f"{name}^-1")
    return " ".join(parts)


# =============================================================================
# 2) 项序（ShortLex）
# =============================================================================


class ShortLexOrder:
    """
    ShortLex 序：先比长度，再按字母序逐位比较。

    字母序：1 < -1 < 2 < -2 < ...（生成元紧跟其逆元）。
    ShortLex 是良序且与拼接相容，保证规约终止。
    """

    @staticmethod
    def letter_key(x: int) -> Tuple[int, int]:
        return (abs(x), 0 if x > 0 else 1)

    def key(self, w: Sequence[int]) -> Tuple[int, Tuple[Tuple[int, int], ...]]:
        return (len(w), tuple(self.letter_key(x) for x in w))

    def compare(self, w1: Sequence[int], w2: Sequence[int]) -> int:
        k1, k2 = self.key(w1), self.key(w2)
        return (k1 > k2) - (k1 < k2)

    def greater(self, w1: Sequence[int], w2: Sequence[int]) -> bool:
        return self.compare(w1, w2) > 0

    def __repr__(self) -> str:
        return "ShortLexOrder()"


# =============================================================================
# 3) 重写规则与重写系统
# =============================================================================


_rule_ids = itertools.count()


@dataclass(frozen=True)
class RewriteRule:
    """
    重写规则 lhs → rhs，lhs 非空且 lhs > rhs。

    ident 只用于完备化中记录哪些规则对已经检查过临界对。
    """
    lhs: Word
    rhs: Word
    ident: int = field(default_factory=lambda: next(_rule_ids), compare=False)

    def __post_init__(self) -> None:
        if not self.lhs:
            raise RewriteRuleError("Left-hand side cannot be empty")

    def __repr__(self) -> str:
        return f"{format_word(self.lhs)} → {format_word(self.rhs)}"


class RewriteSystem:
    """
    重写规则的有序集合，支持最左规约。

    规约时在每个位置按 lhs 长度查字典，替换后从可能受影响的最左位置重扫。
    """

    def __init__(self, order: Optional[ShortLexOrder] = None):
        self.order = order or ShortLexOrder()
        self._rules: Dict[Word, RewriteRule] = {}
        self._lengths: Dict[int, int] = {}

    @property
    def rules(self) -> Tuple[RewriteRule, ...]:
        return tuple(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[RewriteRule]:
        return iter(list(self._rules.values()))

    def add_rule(self, rule: RewriteRule) -> None:
        if not self.order.greater(rule.lhs, rule.rhs):
            raise RewriteRuleError(f"Left-hand side must be greater than right-hand side: {rule}")
        if rule.lhs in self._rules:
            raise RewriteSystemError(f"duplicate left-hand side {format_word(rule.lhs)}")
        self._rules[rule.lhs] = rule
        self._lengths[len(rule.lhs)] = self._lengths.get(len(rule.lhs), 0) + 1

    def remove_rule(self, rule: RewriteRule) -> None:
        del self._rules[rule.lhs]
        L = len(rule.lhs)
        self._lengths[L] -= 1
        if self._lengths[L] == 0:
            del self._lengths[L]

    def reduce(self, word: Sequence[int], *, max_steps: Optional[int] = None) -> Tuple[Word, int]:
        """
        规约到正规形式。

        Returns:
            (正规形式, 步数)

        Raises:
            RewriteSystemError: 如果超过最大步数
        """
        w = list(word)
        lengths = sorted(self._lengths)
        if not lengths:
            return tuple(w), 0
        max_len = lengths[-1]
        steps = 0
        i = 0
        while i < len(w):
            rule = None
            for L in lengths:
                if i + L > len(w):
                    break
                rule = self._rules.get(tuple(w[i:i + L]))
                if rule is not None:
                    w[i:i + L] = rule.rhs
                    break
            if rule is None:
                i += 1
                continue
            steps += 1
            if max_steps is not None and steps > max_steps:
                raise RewriteSystemError(
                    f"Reduction exceeded {max_steps} steps, possible non-termination"
                )
            i = max(0, i - max_len + 1)
        return tuple(w), steps

    def normal_form(self, word: Sequence[int], *, max_steps: Optional[int] = None) -> Word:
        nf, _ = self.reduce(word, max_steps=max_steps)
        return nf

    def is_reduced(self, word: Sequence[int]) -> bool:
        for L in self._lengths:
            for i in range(len(word) - L + 1):
                if tuple(word[i:i + L]) in self._rules:
                    return False
        return True


# =============================================================================
# 4) Collector（带观察者的收集）
# =============================================================================


# observer(collector, word_before, rule_index, position)
CollectObserver = Callable[["Collector", Word, int, int], None]


class Collector:
    """
    合流重写系统上的收集器。

    索引：
        single[a]      单字母 lhs == (a,) 的规则下标
        pairs[(a, b)]  以 (a, b) 开头、长度 ≥ 2 的 lhs 的规则下标，
                       按 (lhs, rhs) 字典序排好，竞争时字典序最小者优先

    collect() 从左向右扫描；每次替换前调用 observer（若有），
    observer 自己持有累加器。替换后从可能产生新匹配的最左位置重扫。
    规约的终止性由输入系统的合流/终止性保证，这里不做回溯。
    """

    def __init__(self, rules: Sequence[Tuple[Sequence[int], Sequence[int]]]):
        self.rules: List[Tuple[Word, Word]] = [(tuple(l), tuple(r)) for l, r in rules]
        self.single: Dict[int, int] = {}
        self.pairs: Dict[Tuple[int, int], List[int]] = {}
        for idx, (lhs, _) in enumerate(self.rules):
            if not lhs:
                raise RewriteRuleError(f"rule {idx} has an empty left-hand side")
            if len(lhs) == 1:
                if lhs[0] in self.single:
                    raise RewriteSystemError(f"two single-letter rules for {lhs[0]}")
                self.single[lhs[0]] = idx
            else:
                self.pairs.setdefault((lhs[0], lhs[1]), []).append(idx)
        order = ShortLexOrder()
        for key, idxs in self.pairs.items():
            idxs.sort(key=lambda i: (order.key(self.rules[i][0]), order.key(self.rules[i][1])))
        self.max_lhs = max((len(l) for l, _ in self.rules), default=1)

    def collect(self, word: Sequence[int], observer: Optional[CollectObserver] = None) -> Word:
        w = list(word)
        i = 0
        back = self.max_lhs - 1
        while i < len(w):
            r = self.single.get(w[i])
            if r is not None:
                if observer is not None:
                    observer(self, tuple(w), r, i)
                w[i:i + 1] = self.rules[r][1]
                i = max(0, i - back)
                continue
            if i + 1 >= len(w):
                break
            applied = False
            for r in self.pairs.get((w[i], w[i + 1]), ()):
                lhs, rhs = self.rules[r]
                L = len(lhs)
                if i + L <= len(w) and tuple(w[i:i + L]) == lhs:
                    if observer is not None:
                        observer(self, tuple(w), r, i)
                    w[i:i + L] = rhs
                    applied = True
                    break
            if applied:
                i = max(0, i - back)
            else:
                i += 1
        return tuple(w)


def collect(word: Sequence[int], rules_or_collector, observer: Optional[CollectObserver] = None) -> Word:
    """便捷入口：collect(word, rules) 或 collect(word, collector)。"""
    c = rules_or_collector if isinstance(rules_or_collector, Collector) else Collector(rules_or_collector)
    return c.collect(word, observer)


# =============================================================================
# 5) 重叠与临界对
# =============================================================================


@dataclass(frozen=True)
class Overlap:
    """
    r.lhs = A·B，s.lhs = B·C，|B| = length。

    重叠词 A·B·C 的两种规约起点：
        left  = r.rhs · C
        right = A · s.rhs
    """
    r: int
    s: int
    length: int


def overlaps(
    rules: Sequence[Tuple[Word, Word]],
    *,
    pc: bool = False,
    relative_orders: Optional[Sequence[int]] = None,
) -> Iterator[Overlap]:
    """
    枚举真重叠（0 < length < min(|r.lhs|, |s.lhs|)）。

    pc=True 时只取 Holt 的一致性检验所需的重叠：
    长度 1 的重叠，以及幂规则 x^p 与自身长度 p-1 的重叠。
    relative_orders[i-1] 是生成元 i 的相对阶；缺省时从规则形状推断。
    """
    for i, (lr, _) in enumerate(rules):
        for j, (ls, _) in enumerate(rules):
            lmax = min(len(lr), len(ls))
            if pc:
                lengths = [1]
                if i == j and len(lr) > 2 and len(set(lr)) == 1 and lr[0] > 0:
                    p = relative_orders[lr[0] - 1] if relative_orders is not None else len(lr)
                    if p == len(lr):
                        lengths.append(p - 1)
            else:
                lengths = range(1, lmax)
            for l in lengths:
                if l >= lmax:
                    continue
                if lr[len(lr) - l:] == ls[:l]:
                    yield Overlap(i, j, l)


def critical_pairs(r1: RewriteRule, r2: RewriteRule) -> List[Tuple[Word, Word]]:
    """
    两条规则产生的临界对。

        重叠：l1 = u·m, l2 = m·v  →  (r1·v, u·r2)
        包含：l1 = u·l2·v         →  (r1, u·r2·v)
    """
    out: List[Tuple[Word, Word]] = []
    l1, l2 = r1.lhs, r2.lhs
    for l in range(1, min(len(l1), len(l2))):
        if l1[len(l1) - l:] == l2[:l]:
            out.append((r1.rhs + l2[l:], l1[:len(l1) - l] + r2.rhs))
    if r1.lhs != r2.lhs and len(l2) <= len(l1):
        p = find_subword(l1, l2)
        if p >= 0:
            out.append((r1.rhs, l1[:p] + r2.rhs + l1[p + len(l2):]))
    return out


# =============================================================================
# 6) Knuth-Bendix 完备化过程
# =============================================================================


class CompletionStatus(Enum):
    """完备化过程的状态。"""
    SUCCESS = auto()
    MAX_RULES_EXCEEDED = auto()
    MAX_ITERATIONS_EXCEEDED = auto()


@dataclass
class CompletionResult:
    status: CompletionStatus
    system: RewriteSystem
    iterations: int
    critical_pairs_processed: int
    message: str

    @property
    def ok(self) -> bool:
        return self.status is CompletionStatus.SUCCESS


@dataclass
class CompletionConfig:
    """
    完备化配置。

    max_rules: 规则数上限（有限群的完备系统规模约为 |G|·|S|）
    max_iterations: 临界对轮数上限
    max_reduction_steps: 单次规约的步数上限
    """
    max_rules: int = 5000
    max_iterations: int = 200
    max_reduction_steps: int = 100000

    def __post_init__(self) -> None:
        if self.max_rules <= 0:
            raise CompletionError(f"max_rules must be positive, got {self.max_rules}")
        if self.max_iterations <= 0:
            raise CompletionError(f"max_iterations must be positive, got {self.max_iterations}")
        if self.max_reduction_steps <= 0:
            raise CompletionError(f"max_reduction_steps must be positive, got {self.max_reduction_steps}")


class KnuthBendixCompletion:
    """
    群表现的 Knuth-Bendix 完备化。

    输入：生成元个数 n 与关系 (lhs, rhs)；自动加入 x·x⁻¹ → ε、x⁻¹·x → ε。
    每加入一条新规则 u → v：
        - lhs 含 u 的旧规则被移出并重新排队（它们的等式仍然成立）；
        - rhs 含 u 的旧规则把 rhs 规约掉。
    一轮结束后对尚未检查过的规则对计算临界对；没有新等式时再对全部规则
    复检一遍，确认全部可合流才宣告成功。
    """

    def __init__(self, config: Optional[CompletionConfig] = None):
        self.config = config or CompletionConfig()

    def _normal_form(self, system: RewriteSystem, w: Sequence[int]) -> Word:
        try:
            return system.normal_form(w, max_steps=self.config.max_reduction_steps)
        except RewriteSystemError as exc:
            raise NonTerminationError(str(exc)) from exc

    def _add_equation(self, system: RewriteSystem, u: Word, v: Word, pending: deque) -> bool:
        u = self._normal_form(system, u)
        v = self._normal_form(system, v)
        if u == v:
            return False
        if system.order.greater(v, u):
            u, v = v, u
        for r in system:
            if contains_subword(r.lhs, u):
                system.remove_rule(r)
                pending.append((r.lhs, r.rhs))
        rule = RewriteRule(u, v)
        system.add_rule(rule)
        for r in system:
            if r is not rule and contains_subword(r.rhs, u):
                system.remove_rule(r)
                system.add_rule(RewriteRule(r.lhs, self._normal_form(system, r.rhs)))
        return True

    def _drain(self, system: RewriteSystem, pending: deque) -> int:
        added = 0
        while pending:
            u, v = pending.popleft()
            if self._add_equation(system, tuple(u), tuple(v), pending):
                added += 1
                if len(system) > self.config.max_rules:
                    raise CompletionError(f"Exceeded maximum rules: {self.config.max_rules}")
        return added

    def complete(self, ngens: int, relations: Sequence[Tuple[Sequence[int], Sequence[int]]]) -> CompletionResult:
        t0 = time.perf_counter()
        system = RewriteSystem(ShortLexOrder())
        pending: deque = deque()
        for a in range(1, ngens + 1):
            pending.append(((a, -a), ()))
            pending.append(((-a, a), ()))
        for lhs, rhs in relations:
            for x in tuple(lhs) + tuple(rhs):
                if x == 0 or abs(x) > ngens:
                    raise WordError(f"letter {x} out of range for {ngens} generators")
            pending.append((free_reduce(lhs), free_reduce(rhs)))

        checked: Set[Tuple[int, int]] = set()
        processed = 0
        iterations = 0
        while True:
            if iterations >= self.config.max_iterations:
                return CompletionResult(
                    status=CompletionStatus.MAX_ITERATIONS_EXCEEDED,
                    system=system,
                    iterations=iterations,
                    critical_pairs_processed=processed,
                    message=f"Exceeded maximum iterations: {self.config.max_iterations}",
                )
            iterations += 1
            try:
                self._drain(system, pending)
            except CompletionError as exc:
                if isinstance(exc, NonTerminationError):
                    raise
                return CompletionResult(
                    status=CompletionStatus.MAX_RULES_EXCEEDED,
                    system=system,
                    iterations=iterations,
                    critical_pairs_processed=processed,
                    message=str(exc),
                )

            rules = list(system)
            for r1 in rules:
                for r2 in rules:
                    key = (r1.ident, r2.ident)
                    if key in checked:
                        continue
                    checked.add(key)
                    for u, v in critical_pairs(r1, r2):
                        processed += 1
                        if self._normal_form(system, u) != self._normal_form(system, v):
                            pending.append((u, v))
            if pending:
                continue

            # 全量复检
            for r1 in rules:
                for r2 in rules:
                    for u, v in critical_pairs(r1, r2):
                        if self._normal_form(system, u) != self._normal_form(system, v):
                            pending.append((u, v))
            if pending:
                continue

            _logger.debug(
                "Knuth-Bendix: %d rules after %d rounds, %d critical pairs (%.3fs)",
                len(system), iterations, processed, time.perf_counter() - t0,
            )
            return CompletionResult(
                status=CompletionStatus.SUCCESS,
                system=system,
                iterations=iterations,
                critical_pairs_processed=processed,
                message="Completion successful",
            )


# =============================================================================
# 7) 群表现（Group Presentation）
# =============================================================================


class GroupPresentation:
    """
    群的有限表现 ⟨S | R⟩，生成元带名字。

    关系写成 (lhs, rhs) 字符串对，例如 ("s r s", "r^-1")。
    """

    def __init__(self, generators: Sequence[str], relations: Sequence[Tuple[str, str]]):
        if len(set(generators)) != len(generators):
            raise WordError(f"duplicate generator names in {list(generators)}")
        self.names: Tuple[str, ...] = tuple(generators)
        self._relations: List[Tuple[Word, Word]] = [
            (parse_word(l, self.names), parse_word(r, self.names)) for l, r in relations
        ]

    @property
    def ngens(self) -> int:
        return len(self.names)

    @property
    def relations(self) -> List[Tuple[Word, Word]]:
        return list(self._relations)

    def relators(self) -> List[Word]:
        """lhs·rhs⁻¹（自由约化后）。"""
        return [free_reduce(l + invert_word(r)) for l, r in self._relations]

    def word(self, s: str) -> Word:
        return parse_word(s, self.names)

    def complete(self, config: Optional[CompletionConfig] = None) -> CompletionResult:
        return KnuthBendixCompletion(config).complete(self.ngens, self._relations)

    def __repr__(self) -> str:
        gens = ", ".join(self.names)
        rels = "; ".join(
            f"{format_word(l, self.names)} = {format_word(r, self.names)}" for l, r in self._relations[:3]
        )
        if len(self._relations) > 3:
            rels += f"; ... ({len(self._relations)} total)"
        return f"⟨{gens} | {rels}⟩"


# =============================================================================
# 8) 便捷工厂函数
# =============================================================================


def cyclic_presentation(n: int) -> GroupPresentation:
    """Zₙ = ⟨a | aⁿ = 1⟩"""
    if n <= 0:
        raise PresentationError(f"Order must be positive, got {n}")
    return GroupPresentation(generators=["a"], relations=[(f"a^{n}", "")])


def dihedral_presentation(n: int) -> GroupPresentation:
    """2n 阶二面体群 ⟨r, s | rⁿ = 1, s² = 1, srs = r⁻¹⟩。"""
    if n < 2:
        raise PresentationError(f"Dihedral group requires n >= 2, got {n}")
    return GroupPresentation(
        generators=["r", "s"],
        relations=[(f"r^{n}", ""), ("s s", ""), ("s r s", "r^-1")],
    )


def quaternion_presentation() -> GroupPresentation:
    """Q₈ = ⟨i, j | i⁴ = 1, i² = j², j⁻¹ i j = i⁻¹⟩"""
    return GroupPresentation(
        generators=["i", "j"],
        relations=[("i^4", ""), ("i i", "j j"), ("j^-1 i j", "i^-1")],
    )


def symmetric_presentation(n: int) -> GroupPresentation:
    """
    Sₙ 的 Coxeter 表现：相邻对换 s₁..sₙ₋₁，
    sᵢ² = 1，|i-j| > 1 时 sᵢsⱼ = sⱼsᵢ，sᵢsᵢ₊₁sᵢ = sᵢ₊₁sᵢsᵢ₊₁。
    """
    if n < 2:
        raise PresentationError(f"Symmetric group requires n >= 2, got {n}")
    generators = [f"s{i}" for i in range(1, n)]
    relations: List[Tuple[str, str]] = []
    for i in range(1, n):
        relations.append((f"s{i} s{i}", ""))
    for i in range(1, n):
        for j in range(i + 2, n):
            relations.append((f"s{i} s{j}", f"s{j} s{i}"))
    for i in range(1, n - 1):
        j = i + 1
        relations.append((f"s{i} s{j} s{i}", f"s{j} s{i} s{j}"))
    return GroupPresentation(generators=generators, relations=relations)


__all__ = [
    # 异常
    "PresentationError",
    "WordError",
    "RewriteRuleError",
    "RewriteSystemError",
    "CompletionError",
    "NonTerminationError",
    # 词
    "Word",
    "invert_word",
    "free_reduce",
    "word_power",
    "find_subword",
    "contains_subword",
    "parse_word",
    "format_word",
    # 项序与重写
    "ShortLexOrder",
    "RewriteRule",
    "RewriteSystem",
    # 收集
    "CollectObserver",
    "Collector",
    "collect",
    # 临界对
    "Overlap",
    "overlaps",
    "critical_pairs",
    # 完备化
    "CompletionStatus",
    "CompletionResult",
    "CompletionConfig",
    "KnuthBendixCompletion",
    # 群表现
    "GroupPresentation",
    "cyclic_presentation",
    "dihedral_presentation",
    "quaternion_presentation",
    "symmetric_presentation",
]
