from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import math
from typing import Any

from karaoke_lyrics.errors import InvalidTimeline
from karaoke_lyrics.lrc.model import LineKind, LyricDocument, LyricLine, WordTimestamp

logger = logging.getLogger(__name__)

TIMELINE_VERSION = "1.0"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def timeline_from_document(doc: LyricDocument, *, created_at: str | None = None) -> dict[str, Any]:
    """Serializable word-timing snapshot of `doc`, one entry per document line."""
    timeline: list[dict[str, Any]] = []
    for line in doc.lines:
        if line.kind is LineKind.LYRIC:
            item: dict[str, Any] = {
                "text": line.text,
                "timestamps": [{"totalMilliseconds": ts.total_ms} for ts in line.timestamps],
                "wordTimestamps": [
                    {"word": w.word, "startTime": w.start_ms, "endTime": w.end_ms}
                    for w in line.word_timestamps
                ],
            }
            if line.translated_text:
                item["translatedText"] = line.translated_text
        else:
            # non-lyric lines keep their slot so indexes line up on apply
            item = {"type": line.kind.value, "text": line.text, "wordTimestamps": []}
        timeline.append(item)

    now = _now_iso()
    return {
        "version": TIMELINE_VERSION,
        "createdAt": created_at or now,
        "updatedAt": now,
        "metadata": dict(doc.metadata),
        "timeline": timeline,
    }


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool) and not math.isnan(v)


def validate_timeline(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    timeline = data.get("timeline")
    if not isinstance(timeline, list):
        return False

    for item in timeline:
        if not item:
            continue
        if not isinstance(item, dict):
            return False
        words = item.get("wordTimestamps")
        if words is None:
            continue
        if not isinstance(words, list):
            return False
        for w in words:
            if not isinstance(w, dict) or not w.get("word"):
                return False
            start, end = w.get("startTime"), w.get("endTime")
            if not (_is_number(start) and _is_number(end)):
                return False
            if start > end:
                return False
    return True


def load_timeline_json(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise InvalidTimeline(f"Not JSON: {e}") from e
    if not validate_timeline(data):
        raise InvalidTimeline("Timeline data failed validation")
    return data


def _words_from_item(item: dict[str, Any]) -> tuple[WordTimestamp, ...]:
    return tuple(
        WordTimestamp(word=str(w["word"]), start_ms=float(w["startTime"]), end_ms=float(w["endTime"]))
        for w in item.get("wordTimestamps") or ()
    )


def apply_timeline(doc: LyricDocument, data: dict[str, Any]) -> LyricDocument:
    """
    Copy saved word timing and translations onto the lyric lines of `doc`,
    matched by line index. Invalid data leaves `doc` untouched.
    """
    if not validate_timeline(data):
        logger.error("Refusing to apply invalid timeline data")
        return doc

    timeline = data["timeline"]
    lines: list[LyricLine] = []
    for i, line in enumerate(doc.lines):
        item = timeline[i] if i < len(timeline) else None
        if line.kind is LineKind.LYRIC and item:
            line = line.with_word_timestamps(_words_from_item(item))
            if item.get("translatedText"):
                line = line.with_translation(str(item["translatedText"]))
        lines.append(line)
    return doc.with_lines(lines)
