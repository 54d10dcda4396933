"""
Engine configuration.

Values come from (lowest to highest precedence): dataclass defaults, an
optional YAML file, and `TRADESLIP_*` environment variables. Invalid
environment values fall back to the configured value instead of failing.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .state.pools import BASE_UNIT
from .state.slip import DEFAULT_SLIPPAGE_PERCENTAGE


_logger = logging.getLogger(__name__)

MAX_IN_OUT_RATIO = Decimal(1) / Decimal(3)
DEFAULT_STORAGE_PATH = Path.home() / ".tradeslip" / "slip.json"


@dataclass(frozen=True)
class EngineConfig:
    # Cap on any single trade relative to the pool's balance of the traded asset.
    max_in_out_ratio: Decimal = MAX_IN_OUT_RATIO
    default_slippage: Decimal = DEFAULT_SLIPPAGE_PERCENTAGE
    base_unit: int = BASE_UNIT
    storage_path: Path = DEFAULT_STORAGE_PATH

    def __post_init__(self) -> None:
        if not isinstance(self.max_in_out_ratio, Decimal) or not (0 < self.max_in_out_ratio < 1):
            raise ValueError(f"max_in_out_ratio must be a Decimal in (0, 1): {self.max_in_out_ratio!r}")
        if not isinstance(self.default_slippage, Decimal) or not (0 <= self.default_slippage < 100):
            raise ValueError(f"default_slippage must be a Decimal in [0, 100): {self.default_slippage!r}")
        if not isinstance(self.base_unit, int) or isinstance(self.base_unit, bool) or self.base_unit <= 0:
            raise ValueError("base_unit must be a positive int")
        if not isinstance(self.storage_path, Path):
            object.__setattr__(self, "storage_path", Path(self.storage_path))


def _env_decimal(name: str, default: Decimal, *, lo: Decimal, hi: Decimal) -> Decimal:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        v = Decimal(raw.strip())
    except InvalidOperation:
        _logger.warning("ignoring invalid %s=%r", name, raw)
        return default
    if not v.is_finite():
        return default
    if v < lo:
        return lo
    if v > hi:
        return hi
    return v


def _env_str(name: str, default: str) -> str:
    raw = os.environ.get(name)
    if raw is None:
        return default
    v = raw.strip()
    return v if v else default


def _as_decimal(value: Any, *, name: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a number")
    try:
        # str() keeps YAML floats like 0.5 exact in decimal.
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a number: {value!r}") from exc


def config_from_mapping(obj: Mapping[str, Any], *, base: EngineConfig = EngineConfig()) -> EngineConfig:
    known = {"max_in_out_ratio", "default_slippage", "base_unit", "storage_path"}
    unknown = set(obj) - known
    if unknown:
        raise ValueError(f"unknown config keys: {sorted(unknown)}")

    updates: dict = {}
    if "max_in_out_ratio" in obj:
        updates["max_in_out_ratio"] = _as_decimal(obj["max_in_out_ratio"], name="max_in_out_ratio")
    if "default_slippage" in obj:
        updates["default_slippage"] = _as_decimal(obj["default_slippage"], name="default_slippage")
    if "base_unit" in obj:
        updates["base_unit"] = obj["base_unit"]
    if "storage_path" in obj:
        updates["storage_path"] = Path(str(obj["storage_path"])).expanduser()
    return replace(base, **updates)


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load configuration from an optional YAML file, then apply env overrides.

    Env:
        TRADESLIP_CONFIG            YAML path used when `path` is None
        TRADESLIP_MAX_IN_OUT_RATIO  decimal in (0, 1)
        TRADESLIP_DEFAULT_SLIPPAGE  percentage in [0, 100)
        TRADESLIP_STORAGE_PATH      slip document path
    """
    cfg = EngineConfig()

    if path is None:
        env_path = _env_str("TRADESLIP_CONFIG", "")
        path = env_path or None
    if path is not None:
        p = Path(path)
        obj = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
        if not isinstance(obj, Mapping):
            raise TypeError("config YAML must be a mapping")
        cfg = config_from_mapping(obj, base=cfg)
        _logger.debug("loaded config from %s", p)

    return replace(
        cfg,
        max_in_out_ratio=_env_decimal(
            "TRADESLIP_MAX_IN_OUT_RATIO", cfg.max_in_out_ratio, lo=Decimal("0.0001"), hi=Decimal("0.9999")
        ),
        default_slippage=_env_decimal(
            "TRADESLIP_DEFAULT_SLIPPAGE", cfg.default_slippage, lo=Decimal(0), hi=Decimal("99.99")
        ),
        storage_path=Path(_env_str("TRADESLIP_STORAGE_PATH", str(cfg.storage_path))).expanduser(),
    )
