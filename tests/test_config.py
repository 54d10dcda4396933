from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from tradeslip.config import MAX_IN_OUT_RATIO, EngineConfig, config_from_mapping, load_config
from tradeslip.state.pools import BASE_UNIT
from tradeslip.state.slip import DEFAULT_SLIPPAGE_PERCENTAGE


_ENV = (
    "TRADESLIP_CONFIG",
    "TRADESLIP_MAX_IN_OUT_RATIO",
    "TRADESLIP_DEFAULT_SLIPPAGE",
    "TRADESLIP_STORAGE_PATH",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    cfg = load_config()
    assert cfg.max_in_out_ratio == MAX_IN_OUT_RATIO
    assert cfg.default_slippage == DEFAULT_SLIPPAGE_PERCENTAGE
    assert cfg.base_unit == BASE_UNIT
    assert cfg == EngineConfig()


def test_yaml_file(tmp_path) -> None:
    path = tmp_path / "tradeslip.yaml"
    path.write_text(
        "max_in_out_ratio: 0.5\ndefault_slippage: '2.5'\nstorage_path: /tmp/slip.json\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.max_in_out_ratio == Decimal("0.5")
    assert cfg.default_slippage == Decimal("2.5")
    assert cfg.storage_path == Path("/tmp/slip.json")


def test_config_path_from_env(tmp_path, monkeypatch) -> None:
    path = tmp_path / "c.yaml"
    path.write_text("default_slippage: 3\n", encoding="utf-8")
    monkeypatch.setenv("TRADESLIP_CONFIG", str(path))
    assert load_config().default_slippage == Decimal(3)


def test_empty_yaml_is_defaults(tmp_path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == EngineConfig()


def test_yaml_must_be_mapping(tmp_path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- 1\n- 2\n", encoding="utf-8")
    with pytest.raises(TypeError):
        load_config(path)


def test_unknown_key_is_rejected() -> None:
    with pytest.raises(ValueError, match="unknown config keys"):
        config_from_mapping({"max_in_out": 0.5})


@pytest.mark.parametrize(
    "obj",
    [
        {"max_in_out_ratio": 1},
        {"max_in_out_ratio": "abc"},
        {"default_slippage": 100},
        {"default_slippage": True},
        {"base_unit": 0},
    ],
)
def test_out_of_range_values_are_rejected(obj) -> None:
    with pytest.raises(ValueError):
        config_from_mapping(obj)


def test_env_overrides_file(tmp_path, monkeypatch) -> None:
    path = tmp_path / "c.yaml"
    path.write_text("max_in_out_ratio: 0.5\n", encoding="utf-8")
    monkeypatch.setenv("TRADESLIP_MAX_IN_OUT_RATIO", "0.25")
    monkeypatch.setenv("TRADESLIP_STORAGE_PATH", str(tmp_path / "s.json"))
    cfg = load_config(path)
    assert cfg.max_in_out_ratio == Decimal("0.25")
    assert cfg.storage_path == tmp_path / "s.json"


def test_env_values_are_clamped(monkeypatch) -> None:
    monkeypatch.setenv("TRADESLIP_MAX_IN_OUT_RATIO", "5")
    monkeypatch.setenv("TRADESLIP_DEFAULT_SLIPPAGE", "-3")
    cfg = load_config()
    assert cfg.max_in_out_ratio == Decimal("0.9999")
    assert cfg.default_slippage == Decimal(0)


def test_invalid_env_value_keeps_default(monkeypatch, caplog) -> None:
    monkeypatch.setenv("TRADESLIP_DEFAULT_SLIPPAGE", "lots")
    monkeypatch.setenv("TRADESLIP_MAX_IN_OUT_RATIO", "NaN")
    with caplog.at_level("WARNING", logger="tradeslip.config"):
        cfg = load_config()
    assert cfg.default_slippage == DEFAULT_SLIPPAGE_PERCENTAGE
    assert cfg.max_in_out_ratio == MAX_IN_OUT_RATIO
    assert "TRADESLIP_DEFAULT_SLIPPAGE" in caplog.text
