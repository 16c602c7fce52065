from __future__ import annotations

import json
import math

from karaoke_lyrics.timeline.data import timeline_from_document

from .model import LineKind, LyricDocument


def _fmt_lrc_time(ms: float) -> str:
    m, rem = divmod(max(int(math.floor(ms)), 0), 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"[{m:02d}:{s:02d}.{ms2 // 10:02d}]"


def export_lrc(doc: LyricDocument, bilingual: bool = False) -> str:
    """
    Metadata lines first, then one `[mm:ss.xx]text` line per lyric line
    (translation preferred). A line with word timing is followed by a
    `[mm:ss.xx]c[mm:ss.xx]c...` line. `bilingual` adds the original text
    under its translation.
    """
    out: list[str] = []
    for line in doc.lines:
        if line.kind is LineKind.METADATA:
            out.append(f"[{line.key}:{line.value}]")
    if out:
        out.append("")

    for line in doc.lines:
        translated = bool(line.translated_text) and line.translated_text != line.text
        if line.kind is LineKind.LYRIC:
            tags = "".join(_fmt_lrc_time(ts.total_ms) for ts in line.timestamps)
            out.append(f"{tags}{line.display_text}")
            if line.word_timestamps:
                out.append("".join(f"{_fmt_lrc_time(w.start_ms)}{w.word}" for w in line.word_timestamps))
            if bilingual and translated:
                out.append(f"{tags}{line.text}")
        elif line.kind is LineKind.TEXT:
            out.append(line.display_text)
            if bilingual and translated:
                out.append(line.text)

    return "\n".join(out) + ("\n" if out else "")


def _fmt_srt_time(ms: float) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(max(int(round(ms)), 0), 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(doc: LyricDocument, last_line_duration_ms: int = 2000, bilingual: bool = False) -> str:
    """
    One cue per timed lyric line. End time is next start time, last line ends
    at +last_line_duration_ms.
    """
    ev = [ln for ln in doc.lines if ln.kind is LineKind.LYRIC and ln.timestamps]
    if not ev:
        return ""
    out: list[str] = []
    for i, line in enumerate(ev, start=1):
        start = line.timestamps[0].total_ms
        if i < len(ev):
            end = max(ev[i].timestamps[0].total_ms, start + 1)
        else:
            end = start + last_line_duration_ms
        out.append(str(i))
        out.append(f"{_fmt_srt_time(start)} --> {_fmt_srt_time(end)}")
        out.append(line.display_text)
        if bilingual and line.translated_text and line.translated_text != line.text:
            out.append(line.text)
        out.append("")
    return "\n".join(out)


def export_json(doc: LyricDocument) -> str:
    return json.dumps(timeline_from_document(doc), ensure_ascii=False, indent=2)
