import json

from roomgen.logging_utils import get_logger


def test_key_value_format(capsys, monkeypatch):
    monkeypatch.setenv("ROOMGEN_LOG_JSON", "0")
    get_logger("test").info(event="layout_generated", seed=5, note="two words")
    out = capsys.readouterr().out.strip()
    assert "level=info" in out
    assert "event=layout_generated" in out and "seed=5" in out
    assert "note=two_words" in out and "logger=test" in out


def test_json_format(capsys, monkeypatch):
    monkeypatch.setenv("ROOMGEN_LOG_JSON", "1")
    get_logger("test").warn(event="frontier_exhausted", placed=3, skipped=None)
    rec = json.loads(capsys.readouterr().out.strip())
    assert rec["level"] == "warn" and rec["placed"] == 3
    assert "skipped" not in rec


def test_level_filter(capsys, monkeypatch):
    monkeypatch.setenv("ROOMGEN_LOG_LEVEL", "warn")
    log = get_logger("test")
    log.info(event="hidden")
    log.error(event="shown")
    captured = capsys.readouterr()
    assert "hidden" not in captured.out
    assert "event=shown" in captured.err
