"""
运行时配置：断言级别、日志级别、规模上限。

所有昂贵的一致性校验（作用是否满足关系子、2-余链是否为余圈、
核/像包含关系）都经由 ``assertions_enabled`` 门控。默认级别从环境变量读取：

    GRPCOH_ASSERT_LEVEL   断言级别（0 = 关闭）
    GRPCOH_VERBOSE_LEVEL  日志详细程度（0 = WARNING, 1 = INFO, 2 = DEBUG）
    GRPCOH_MAX_ORDER      允许枚举的最大群阶
"""

from __future__ import annotations

import contextlib
import logging
import os
from dataclasses import dataclass, replace
from typing import Iterator, Optional

_logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """配置值非法。"""


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class CohomologyConfig:
    """
    全局配置快照。

    assertion_level: 门控校验的级别，>= 1 时执行一致性断言
    verbose_level: 0/1/2 对应 WARNING/INFO/DEBUG
    max_group_order: 元素枚举的上限，超过则报 GroupTooLargeError
    max_completion_rules: Knuth-Bendix 完备化规则数上限
    prefer_pc: 可解群在 H^2 中默认使用 pc 表现
    """
    assertion_level: int = 0
    verbose_level: int = 0
    max_group_order: int = 100000
    max_completion_rules: int = 5000
    prefer_pc: bool = True

    def __post_init__(self) -> None:
        if self.assertion_level < 0:
            raise ConfigError(f"assertion_level must be non-negative, got {self.assertion_level}")
        if self.verbose_level < 0:
            raise ConfigError(f"verbose_level must be non-negative, got {self.verbose_level}")
        if self.max_group_order <= 0:
            raise ConfigError(f"max_group_order must be positive, got {self.max_group_order}")
        if self.max_completion_rules <= 0:
            raise ConfigError(f"max_completion_rules must be positive, got {self.max_completion_rules}")

    @classmethod
    def from_env(cls) -> "CohomologyConfig":
        return cls(
            assertion_level=_env_int("GRPCOH_ASSERT_LEVEL", 0),
            verbose_level=_env_int("GRPCOH_VERBOSE_LEVEL", 0),
            max_group_order=_env_int("GRPCOH_MAX_ORDER", 100000),
        )

    def log_level(self) -> int:
        if self.verbose_level >= 2:
            return logging.DEBUG
        if self.verbose_level == 1:
            return logging.INFO
        return logging.WARNING


_CONFIG: Optional[CohomologyConfig] = None


def get_config() -> CohomologyConfig:
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = CohomologyConfig.from_env()
    return _CONFIG


def set_config(config: CohomologyConfig) -> CohomologyConfig:
    """替换全局配置，返回旧值。"""
    global _CONFIG
    old = get_config()
    _CONFIG = config
    return old


def assertions_enabled(level: int = 1) -> bool:
    return get_config().assertion_level >= level


@contextlib.contextmanager
def assertion_scope(level: int) -> Iterator[CohomologyConfig]:
    """临时提高（或降低）断言级别。"""
    old = set_config(replace(get_config(), assertion_level=level))
    try:
        yield get_config()
    finally:
        set_config(old)


def configure_logging(level: Optional[int] = None) -> None:
    if level is None:
        level = get_config().log_level()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    _logger.debug("logging configured at level %s", logging.getLevelName(level))


__all__ = [
    "ConfigError",
    "CohomologyConfig",
    "get_config",
    "set_config",
    "assertions_enabled",
    "assertion_scope",
    "configure_logging",
]
