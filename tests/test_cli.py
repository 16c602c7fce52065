from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from karaoke_lyrics.cli import app

runner = CliRunner()

LRC = "[ti:Song]\n[00:01.00]abc\n[00:04.00]de\n"


@pytest.fixture
def lrc_file(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    path = tmp_path / "song.lrc"
    path.write_text(LRC, encoding="utf-8")
    return path


def test_uniform_lrc_output(lrc_file):
    result = runner.invoke(app, ["uniform", str(lrc_file)])
    assert result.exit_code == 0, result.output
    assert "[00:01.00]abc\n[00:01.00]a[00:02.00]b[00:03.00]c\n" in result.stdout
    assert "[ti:Song]" in result.stdout


def test_words_with_broken_audio_still_succeeds(lrc_file, tmp_path):
    audio = tmp_path / "song.wav"
    audio.write_bytes(b"RIFF....garbage")
    out = tmp_path / "out.json"
    result = runner.invoke(app, ["words", str(lrc_file), "--audio", str(audio), "--format", "json", "--out", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [w["word"] for w in data["timeline"][1]["wordTimestamps"]] == ["a", "b", "c"]


def test_words_save_then_list_and_export(lrc_file):
    result = runner.invoke(app, ["uniform", str(lrc_file), "--save"])
    assert result.exit_code == 0, result.output

    result = runner.invoke(app, ["timeline", "list"])
    assert "song.lrc\tlines=3" in result.stdout

    result = runner.invoke(app, ["timeline", "export", "song.lrc"])
    assert result.exit_code == 0
    assert json.loads(result.stdout)["version"] == "1.0"

    result = runner.invoke(app, ["timeline", "delete", "song.lrc"])
    assert result.exit_code == 0
    result = runner.invoke(app, ["timeline", "delete", "song.lrc"])
    assert result.exit_code == 1


def test_timeline_import(lrc_file, tmp_path):
    path = tmp_path / "song.timeline.json"
    path.write_text(json.dumps({"timeline": [{}, {"wordTimestamps": [{"word": "a", "startTime": 1, "endTime": 2}]}]}))
    result = runner.invoke(app, ["timeline", "import", str(path)])
    assert result.exit_code == 0, result.output
    assert "Imported song.lrc" in result.stdout

    path.write_text("[]")
    result = runner.invoke(app, ["timeline", "import", str(path)])
    assert result.exit_code == 1


def test_export_srt(lrc_file):
    result = runner.invoke(app, ["export", str(lrc_file), "--format", "srt"])
    assert result.exit_code == 0
    assert "00:00:01,000 --> 00:00:04,000" in result.stdout


def test_bad_format(lrc_file):
    result = runner.invoke(app, ["export", str(lrc_file), "--format", "ttml"])
    assert result.exit_code != 0


def test_parse_stats(lrc_file):
    result = runner.invoke(app, ["parse", str(lrc_file)])
    assert result.exit_code == 0
    assert "lyric_lines=2" in result.stdout
    assert "metadata_lines=1" in result.stdout


def test_missing_file(tmp_path):
    result = runner.invoke(app, ["parse", str(tmp_path / "missing.lrc")])
    assert result.exit_code == 1


def test_preview_highlights_current_character(lrc_file):
    result = runner.invoke(app, ["preview", str(lrc_file), "--at", "2.5"])
    assert result.exit_code == 0, result.output
    assert "abc" in result.stdout

    result = runner.invoke(app, ["preview", str(lrc_file), "--at", "0.5"])
    assert "before first line" in result.stdout


def test_preview_shows_saved_translation(lrc_file, tmp_path):
    words = [{"word": c, "startTime": 1000 + k * 1000, "endTime": 2000 + k * 1000} for k, c in enumerate("abc")]
    path = tmp_path / "song.timeline.json"
    path.write_text(json.dumps({"timeline": [{}, {"text": "abc", "wordTimestamps": words, "translatedText": "hola"}, {}]}))
    assert runner.invoke(app, ["timeline", "import", str(path)]).exit_code == 0

    result = runner.invoke(app, ["preview", str(lrc_file), "--at", "1.5"])
    assert result.exit_code == 0, result.output
    assert "abc\nhola\n" in result.stdout


def test_non_utf8_lyrics_is_a_user_error(tmp_path):
    path = tmp_path / "latin1.lrc"
    path.write_bytes("[00:01.00]caf\xe9\n".encode("latin-1"))
    result = runner.invoke(app, ["parse", str(path)])
    assert result.exit_code == 1
    assert not isinstance(result.exception, UnicodeDecodeError)


def test_config_set_and_show(lrc_file):
    result = runner.invoke(app, ["config", "set", "default_line_ms", "3000"])
    assert result.exit_code == 0
    result = runner.invoke(app, ["config", "show"])
    assert "default_line_ms=3000.0" in result.stdout

    result = runner.invoke(app, ["config", "set", "nope", "1"])
    assert result.exit_code != 0
