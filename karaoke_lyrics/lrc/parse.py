from __future__ import annotations

from dataclasses import dataclass
import re

from .model import LineKind, LineTimestamp, LyricDocument, LyricLine

_TS_RE = re.compile(r"\[(\d{1,3}):(\d{2})(?:[.:](\d{1,3}))?\]")  # [mm:ss] / [mm:ss.xx] / [mm:ss.xxx]
_OFFSET_RE = re.compile(r"^\[offset:([+-]?\d+)\]\s*$", re.IGNORECASE)
_TAG_RE = re.compile(r"^\[([a-zA-Z]{1,8}):(.*)\]\s*$")


class LrcParseError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class LrcParseStats:
    lines_total: int
    lyric_lines: int
    metadata_lines: int
    text_lines: int
    lines_ignored: int


def _parse_ts_to_ms(m: int, s: int, frac: str | None) -> int:
    if not (0 <= s <= 59):
        raise LrcParseError(f"Invalid seconds: {s}")
    if frac is None:
        ms = 0
    else:
        # "2" -> 200ms, "23" -> 230ms, "234" -> 234ms
        ms = int(frac.ljust(3, "0")[:3])
    return (m * 60 + s) * 1000 + ms


def parse_lrc(text: str) -> LyricDocument:
    doc, _stats = parse_lrc_with_stats(text)
    return doc


def parse_lrc_with_stats(text: str) -> tuple[LyricDocument, LrcParseStats]:
    """
    Supported:
    - [mm:ss], [mm:ss.xx], [mm:ss.xxx]
    - multiple timestamps per line (kept on one line, sorted ascending)
    - [offset:+/-ms], applied to every timestamp that follows it
    - basic tags: [ar:], [ti:], [al:], ...
    - untimed text lines (kept as TEXT lines)

    Lines keep document order. Negative times are clamped to 0.
    """
    offset_ms = 0
    metadata: dict[str, str] = {}
    lines: list[LyricLine] = []

    total = 0
    ignored = 0
    n_lyric = n_meta = n_text = 0

    for raw in text.splitlines():
        total += 1
        line = raw.strip().lstrip("\ufeff")
        if not line:
            ignored += 1
            continue

        off = _OFFSET_RE.match(line)
        if off:
            try:
                offset_ms = int(off.group(1))
            except ValueError as e:
                raise LrcParseError("Invalid offset") from e
            metadata["offset"] = off.group(1)
            continue

        tag = _TAG_RE.match(line)
        if tag and not _TS_RE.match(line):
            k = tag.group(1).strip().lower()
            v = tag.group(2).strip()
            if k and v:
                metadata[k] = v
                lines.append(LyricLine(text=line, kind=LineKind.METADATA, key=k, value=v))
                n_meta += 1
            else:
                ignored += 1
            continue

        # timestamps must lead the line; inline tags further in are text
        stamps: list[int] = []
        pos = 0
        while True:
            m = _TS_RE.match(line, pos)
            if not m:
                break
            t_ms = _parse_ts_to_ms(int(m.group(1)), int(m.group(2)), m.group(3)) + offset_ms
            stamps.append(max(t_ms, 0))
            pos = m.end()

        if not stamps:
            lines.append(LyricLine(text=line, kind=LineKind.TEXT))
            n_text += 1
            continue

        payload = line[pos:].strip()
        lines.append(
            LyricLine(
                text=payload,
                timestamps=tuple(LineTimestamp(total_ms=t) for t in sorted(stamps)),
            )
        )
        n_lyric += 1

    doc = LyricDocument(lines=tuple(lines), metadata=metadata)
    stats = LrcParseStats(
        lines_total=total,
        lyric_lines=n_lyric,
        metadata_lines=n_meta,
        text_lines=n_text,
        lines_ignored=ignored,
    )
    return doc, stats
