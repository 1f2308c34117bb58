import json
from pathlib import Path

import pytest

import run_aggregator
from newsdash.models import NormalizedArticle


def install_feed(monkeypatch) -> dict:
    captured: dict = {}

    async def fake_aggregate(sources):
        captured["sources"] = [source.name for source in sources]
        return [
            NormalizedArticle(
                title="Headline",
                url="https://example.com/a",
                published_at="2024-01-02T00:00:00.000Z",
                source_label="Example",
                api_source="NYTimes",
            )
        ]

    monkeypatch.setattr(run_aggregator, "aggregate", fake_aggregate)
    return captured


def test_missing_configuration_uses_default_sources(tmp_path: Path, monkeypatch, capsys) -> None:
    captured = install_feed(monkeypatch)

    run_aggregator.main(["--config", str(tmp_path / "missing.json")])

    assert captured["sources"] == ["NewsAPI", "EventRegistry", "NYTimes"]
    payload = json.loads(capsys.readouterr().out)
    assert payload[0]["title"] == "Headline"
    assert payload[0]["apiSource"] == "NYTimes"


def test_invalid_configuration_exits(tmp_path: Path, monkeypatch) -> None:
    install_feed(monkeypatch)
    config_path = tmp_path / "sources.json"
    config_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SystemExit):
        run_aggregator.main(["--config", str(config_path)])


def test_unknown_source_exits(tmp_path: Path, monkeypatch) -> None:
    install_feed(monkeypatch)

    with pytest.raises(SystemExit):
        run_aggregator.main(["--config", str(tmp_path / "missing.json"), "--source", "guardian"])
