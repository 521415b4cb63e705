from pathlib import Path

import pytest

from visitor_analytics.rules.loader import load_rules

ROOT_RULES = Path(__file__).resolve().parents[2] / "rules.yaml"


def write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "rules.yaml"
    path.write_text(content)
    return path


def test_project_rules_load():
    rules = load_rules(ROOT_RULES)
    assert rules.analytics.retention_cap == 50_000
    assert rules.analytics.default_preset == "24h"
    assert rules.analytics.refresh_interval_seconds == 10
    assert rules.storage.backend in ("memory", "sqlite", "json")


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_rules(tmp_path / "nope.yaml")


def test_empty_file_gives_defaults(tmp_path):
    rules = load_rules(write(tmp_path, ""))
    assert rules.analytics.retention_cap == 50_000
    assert rules.storage.backend == "memory"
    assert rules.analytics.top_n.to_config().top_devices == 3


def test_invalid_yaml(tmp_path):
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_rules(write(tmp_path, "analytics: [unclosed"))


@pytest.mark.parametrize(
    "content",
    [
        "analytics:\n  retention_cap: 0\n",
        "analytics:\n  default_preset: 2w\n",
        "analytics:\n  refresh_interval_seconds: -1\n",
        "storage:\n  backend: redis\n",
    ],
)
def test_schema_violations(tmp_path, content):
    with pytest.raises(ValueError, match="Rules validation failed"):
        load_rules(write(tmp_path, content))


def test_top_n_overrides(tmp_path):
    rules = load_rules(write(tmp_path, "analytics:\n  top_n:\n    pages: 10\n"))
    config = rules.analytics.top_n.to_config()
    assert config.top_pages == 10
    assert config.top_browsers == 5
