# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from contact_scout.config import ScoutConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("concurrency_limit: 3\nlisting: {days_back: 2}", ".yaml", None),
        (json.dumps({"concurrency_limit": 3, "listing": {"days_back": 2}}), ".json", None),
        (json.dumps({"concurrency_limit": 0}), ".json", ValidationError),
        ("unknown_key: 1", ".yaml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("{broken", ".json", ValueError),
        ("::invalid yaml", ".yaml", TypeError),
        ("- a\n- b", ".yml", TypeError),
        ("concurrency_limit = 3", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, ScoutConfig)
        assert cfg.concurrency_limit == 3
        assert cfg.listing.days_back == 2
        assert cfg.timeouts.main_page == 15.0


def test_load_config_default_missing(tmp_path, monkeypatch):
    # без configs/default.yaml используются значения по умолчанию
    monkeypatch.chdir(tmp_path)
    assert load_config(None) == ScoutConfig()


def test_load_config_default_present(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("concurrency_limit: 7\n", encoding="utf-8")
    assert load_config(None).concurrency_limit == 7


def test_explicit_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_shipped_default_config_matches_model():
    shipped = Path(__file__).resolve().parents[1] / "configs" / "default.yaml"
    assert load_config(shipped) == ScoutConfig()


def test_seen_id_bounds_are_validated():
    with pytest.raises(ValidationError):
        ScoutConfig(seen_ids_max=100, seen_ids_trim_to=100)


def test_list_entries_are_normalised():
    cfg = ScoutConfig(bypass_domains=["Acme.IO ", ""], likely_real_tlds=[".IO"], user_agents=[" Agent/1.0 "])
    assert cfg.bypass_domains == ("acme.io",)
    assert cfg.likely_real_tlds == (".io",)
    assert cfg.user_agents == ("Agent/1.0",)


def test_empty_user_agent_pool_rejected():
    with pytest.raises(ValidationError):
        ScoutConfig(user_agents=["  "])


def test_config_is_frozen():
    cfg = ScoutConfig()
    with pytest.raises(ValidationError):
        cfg.concurrency_limit = 2
