from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from karaoke_lyrics.errors import InvalidTimeline, TimelineError
from karaoke_lyrics.lrc.model import LyricDocument

from .data import timeline_from_document, validate_timeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TimelineInfo:
    file_name: str
    created_at: str
    updated_at: str
    line_count: int


class TimelineStore:
    """Saved word timing, keyed by lyric file name."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        return con

    def _init_db(self) -> None:
        with self._connect() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS timelines (
                    file_name  TEXT PRIMARY KEY,
                    version    TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    line_count INTEGER NOT NULL,
                    data       TEXT NOT NULL
                );
                """
            )
            con.execute(
                "CREATE INDEX IF NOT EXISTS idx_timelines_updated_at ON timelines(updated_at);"
            )

    def save(self, file_name: str, doc: LyricDocument) -> dict[str, Any]:
        """
        Store the word timing of `doc` under `file_name`, keeping the original
        creation time when overwriting. Returns the stored timeline data.
        """
        with self._connect() as con:
            row = con.execute(
                "SELECT created_at FROM timelines WHERE file_name=?", (file_name,)
            ).fetchone()
        data = timeline_from_document(doc, created_at=row["created_at"] if row else None)
        self.save_data(file_name, data)
        return data

    def save_data(self, file_name: str, data: dict[str, Any]) -> None:
        if not validate_timeline(data):
            raise InvalidTimeline(f"Timeline for {file_name!r} failed validation")
        try:
            payload = json.dumps(data, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise TimelineError(f"Timeline for {file_name!r} is not serializable: {e}") from e

        with self._connect() as con:
            con.execute(
                """
                INSERT INTO timelines(file_name, version, created_at, updated_at, line_count, data)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(file_name) DO UPDATE SET
                    version=excluded.version,
                    updated_at=excluded.updated_at,
                    line_count=excluded.line_count,
                    data=excluded.data
                """,
                (
                    file_name,
                    str(data.get("version", "")),
                    str(data.get("createdAt", "")),
                    str(data.get("updatedAt", "")),
                    len(data["timeline"]),
                    payload,
                ),
            )
        logger.debug("Saved timeline %r (%s lines)", file_name, len(data["timeline"]))

    def load(self, file_name: str) -> dict[str, Any] | None:
        """
        Returns the timeline data, or None if nothing is stored or the stored
        row is corrupt.
        """
        with self._connect() as con:
            row = con.execute("SELECT data FROM timelines WHERE file_name=?", (file_name,)).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row["data"])
        except ValueError as e:
            logger.error("Stored timeline %r is corrupt: %s", file_name, e)
            return None
        if not validate_timeline(data):
            logger.error("Stored timeline %r failed validation", file_name)
            return None
        return data

    def list_timelines(self) -> list[TimelineInfo]:
        """Most recently updated first."""
        with self._connect() as con:
            rows = con.execute(
                "SELECT file_name, created_at, updated_at, line_count FROM timelines ORDER BY updated_at DESC, rowid DESC"
            ).fetchall()
        return [
            TimelineInfo(
                file_name=r["file_name"],
                created_at=r["created_at"],
                updated_at=r["updated_at"],
                line_count=r["line_count"],
            )
            for r in rows
        ]

    def delete(self, file_name: str) -> bool:
        with self._connect() as con:
            cur = con.execute("DELETE FROM timelines WHERE file_name=?", (file_name,))
            return cur.rowcount > 0

    def clear(self) -> int:
        with self._connect() as con:
            cur = con.execute("DELETE FROM timelines")
            return cur.rowcount
