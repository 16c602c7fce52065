from __future__ import annotations

import json
from pathlib import Path
from typing import Iterator
from contextlib import contextmanager

import typer

from karaoke_lyrics.app import word_timing, word_timing_for_file
from karaoke_lyrics.config import TUNABLES, AppConfig, load_config, save_config_value
from karaoke_lyrics.errors import KaraokeError
from karaoke_lyrics.logging_setup import setup_logging
from karaoke_lyrics.lrc.formats import ExportOptions, LyricFormat, generate
from karaoke_lyrics.lrc.parse import LrcParseError, parse_lrc, parse_lrc_with_stats
from karaoke_lyrics.sync.tracker import LineTracker, word_index
from karaoke_lyrics.timeline.data import apply_timeline, load_timeline_json
from karaoke_lyrics.timeline.store import TimelineStore
from karaoke_lyrics.timing.pipeline import SynthesisReport


app = typer.Typer(no_args_is_help=True, add_completion=False)
timeline_app = typer.Typer(no_args_is_help=True, help="Manage saved word timing.")
config_app = typer.Typer(no_args_is_help=True, help="Show or change tunables.")
app.add_typer(timeline_app, name="timeline")
app.add_typer(config_app, name="config")


@contextmanager
def _user_errors() -> Iterator[None]:
    try:
        yield
    except (KaraokeError, LrcParseError, UnicodeDecodeError, OSError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)


def _fmt(value: str) -> LyricFormat:
    try:
        return LyricFormat(value.lower())
    except ValueError:
        raise typer.BadParameter("format must be one of: lrc, srt, json")


def _emit(data: str, out: Path | None) -> None:
    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


def _with_overrides(cfg: AppConfig, density_ratio: float | None) -> AppConfig:
    if density_ratio is not None:
        cfg = cfg.__class__(**{**cfg.__dict__, "peak_density_ratio": density_ratio})
    return cfg


def _write_report(report: SynthesisReport, fmt: LyricFormat, out: Path | None, cfg: AppConfig, bilingual: bool) -> None:
    opts = ExportOptions(bilingual=bilingual, srt_last_line_ms=cfg.srt_last_line_ms)
    _emit(generate(report.document, fmt, opts), out)


@app.command()
def words(
    lrc_path: Path,
    audio: Path = typer.Option(..., "--audio", "-a", help="Audio file of the song (wav/flac/ogg/...)"),
    fmt: str = typer.Option("lrc", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
    bilingual: bool = typer.Option(False, "--bilingual", help="Keep original text next to translations"),
    save: bool = typer.Option(False, "--save", help="Store the result in the timeline db"),
    density_ratio: float | None = typer.Option(None, "--density-ratio", help="Min peaks per character"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """
    Per-character timing from audio energy peaks (uniform split where the
    audio is too sparse or can't be decoded).
    """
    setup_logging(debug)
    cfg = _with_overrides(load_config(), density_ratio)
    target = _fmt(fmt)
    with _user_errors():
        report = word_timing_for_file(cfg, lrc_path, audio, save=save)
        _write_report(report, target, out, cfg, bilingual)


@app.command()
def uniform(
    lrc_path: Path,
    fmt: str = typer.Option("lrc", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
    bilingual: bool = typer.Option(False, "--bilingual", help="Keep original text next to translations"),
    save: bool = typer.Option(False, "--save", help="Store the result in the timeline db"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
):
    """Per-character timing split evenly over each line, no audio needed."""
    setup_logging(debug)
    cfg = load_config()
    target = _fmt(fmt)
    with _user_errors():
        report = word_timing_for_file(cfg, lrc_path, None, save=save)
        _write_report(report, target, out, cfg, bilingual)


@app.command()
def parse(lrc_path: Path):
    """Parse LRC and print stats."""
    with _user_errors():
        text = lrc_path.read_text(encoding="utf-8")
        doc, stats = parse_lrc_with_stats(text)
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"lyric_lines={stats.lyric_lines}")
    typer.echo(f"metadata_lines={stats.metadata_lines}")
    typer.echo(f"text_lines={stats.text_lines}")
    typer.echo(f"lines_ignored={stats.lines_ignored}")
    typer.echo(f"metadata={doc.metadata}")


@app.command()
def export(
    lrc_path: Path,
    fmt: str = typer.Option("srt", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export LRC to SRT/JSON/LRC (normalized, line timing only)."""
    cfg = load_config()
    target = _fmt(fmt)
    with _user_errors():
        doc = parse_lrc(lrc_path.read_text(encoding="utf-8"))
        _emit(generate(doc, target, ExportOptions(srt_last_line_ms=cfg.srt_last_line_ms)), out)


@app.command()
def preview(
    lrc_path: Path,
    at: float = typer.Option(..., "--at", help="Playback position in seconds"),
    audio: Path | None = typer.Option(None, "--audio", "-a", help="Synthesize timing from this audio"),
):
    """
    Show the line and the highlighted character at a playback position.
    Uses the saved timeline for this file when there is one.
    """
    cfg = load_config()
    with _user_errors():
        doc = parse_lrc(lrc_path.read_text(encoding="utf-8"))
        saved = None if audio else TimelineStore(cfg.timeline_db_path).load(lrc_path.name)
        if saved is not None:
            doc = apply_timeline(doc, saved)
        else:
            doc = word_timing(cfg, doc, audio).document

    now_ms = at * 1000.0
    tracker = LineTracker.from_lines(doc.lines)
    idx = tracker.current_index(now_ms)
    if idx < 0:
        typer.echo("(before first line)")
        return

    line = tracker.lines[idx]
    w = word_index(line, now_ms, tracker.offset_ms(idx))
    parts = []
    for i, wt in enumerate(line.word_timestamps):
        if i == w:
            parts.append(typer.style(wt.word, fg=typer.colors.GREEN, bold=True))
        elif i < w:
            parts.append(wt.word)
        else:
            parts.append(typer.style(wt.word, dim=True))
    typer.echo("".join(parts) if parts else line.display_text)
    if line.translated_text:
        typer.echo(line.translated_text)


@timeline_app.command("list")
def timeline_list():
    """List saved timelines, most recent first."""
    store = TimelineStore(load_config().timeline_db_path)
    for info in store.list_timelines():
        typer.echo(f"{info.file_name}\tlines={info.line_count}\tupdated={info.updated_at}")


@timeline_app.command("export")
def timeline_export(
    name: str,
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Print a saved timeline as JSON."""
    data = TimelineStore(load_config().timeline_db_path).load(name)
    if data is None:
        typer.echo(f"No timeline named {name!r}", err=True)
        raise typer.Exit(code=1)
    _emit(json.dumps(data, ensure_ascii=False, indent=2) + "\n", out)


@timeline_app.command("import")
def timeline_import(
    json_path: Path,
    name: str | None = typer.Option(None, "--name", help="Store under this name (default: file stem + .lrc)"),
):
    """Import a timeline JSON file."""
    store = TimelineStore(load_config().timeline_db_path)
    with _user_errors():
        data = load_timeline_json(json_path.read_text(encoding="utf-8"))
        key = name or json_path.name.removesuffix(".json").removesuffix(".timeline") + ".lrc"
        store.save_data(key, data)
    typer.echo(f"Imported {key}")


@timeline_app.command("delete")
def timeline_delete(name: str):
    """Delete one saved timeline."""
    store = TimelineStore(load_config().timeline_db_path)
    if not store.delete(name):
        typer.echo(f"No timeline named {name!r}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted {name}")


@timeline_app.command("clear")
def timeline_clear():
    """Delete every saved timeline."""
    cfg = load_config()
    n = TimelineStore(cfg.timeline_db_path).clear()
    typer.echo(f"Cleared {n} timelines: {cfg.timeline_db_path}")


@config_app.command("show")
def config_show():
    cfg = load_config()
    for key in TUNABLES:
        typer.echo(f"{key}={getattr(cfg, key)}")


@config_app.command("set")
def config_set(key: str, value: str):
    """Persist a tunable to config.json."""
    try:
        save_config_value(key, value)
    except KeyError:
        raise typer.BadParameter(f"unknown key, expected one of: {', '.join(TUNABLES)}")
    except ValueError as e:
        raise typer.BadParameter(str(e))
    typer.echo(f"{key}={value}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
