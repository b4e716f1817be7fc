"""
乘法群的加法记号包装。

上同调机器只认识加法模接口（+、-、整数倍、零元）。MultGrp 把乘法群
（例如有限域的乘法群 L^*）包装成这种接口：

    a + b  ↦  a·b
    a - b  ↦  a / b
    -a     ↦  a⁻¹
    n * a  ↦  a^n
    zero   ↦  1

内部坐标是离散对数：给定生成元 g_1..g_k 及其阶，元素 x = ∏ g_i^{e_i}
存成指数向量 (e_1, ..., e_k)，因此 MultGrp 本身就是一个 AbelianGroup，
核、商、直积、原像都沿用整数线性代数。
"""

from __future__ import annotations

from typing import Any, Callable, List, Sequence

from abelian_group import AbelianGroup, AbelianGroupElem, abelian_group
from module_api import ModuleError


class MultGrpElem(AbelianGroupElem):
    __slots__ = ()

    @property
    def data(self) -> Any:
        """The underlying multiplicative element ``∏ g_i^{e_i}``."""
        P = self.parent
        x = P.one
        for g, e in zip(P.generators, self.coeffs):
            x = x * g ** e if e >= 0 else x / g ** (-e)
        return x

    def __repr__(self) -> str:
        return f"MultGrpElem({self.data})"


class MultGrp(AbelianGroup):
    """
    Additive view of a multiplicative group.

    ``generators`` have the given ``orders`` (0 for infinite order) and
    ``log(x)`` returns exponents ``e`` with ``x = ∏ generators[i]^e[i]``.
    Calling the group on an underlying element wraps it.
    """

    _elem_class = MultGrpElem

    def __init__(
        self,
        one: Any,
        generators: Sequence[Any],
        orders: Sequence[int],
        log: Callable[[Any], Sequence[int]],
        name: str = "",
    ):
        if len(generators) != len(orders):
            raise ModuleError("need one order per generator")
        super().__init__(abelian_group(orders).relations, len(orders))
        self.one = one
        self.generators: List[Any] = list(generators)
        self._log = log
        self.name = name

    def __call__(self, x: Any) -> MultGrpElem:
        if isinstance(x, MultGrpElem) and x.parent is self:
            return x
        return self.elem([int(e) for e in self._log(x)])

    def __repr__(self) -> str:
        return f"MultGrp({self.name})" if self.name else super().__repr__()


__all__ = ["MultGrp", "MultGrpElem"]
