from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class LineKind(str, Enum):
    LYRIC = "lyric"
    METADATA = "metadata"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class LineTimestamp:
    total_ms: float


@dataclass(frozen=True, slots=True)
class WordTimestamp:
    word: str
    start_ms: float
    end_ms: float


@dataclass(frozen=True, slots=True)
class LyricLine:
    text: str
    timestamps: tuple[LineTimestamp, ...] = ()
    translated_text: str | None = None
    word_timestamps: tuple[WordTimestamp, ...] = ()
    kind: LineKind = LineKind.LYRIC
    # metadata lines only ([ti:...], [ar:...])
    key: str | None = None
    value: str | None = None

    @property
    def start_ms(self) -> float | None:
        return self.timestamps[0].total_ms if self.timestamps else None

    @property
    def characters(self) -> list[str]:
        return list(self.text)

    @property
    def display_text(self) -> str:
        return self.translated_text or self.text

    def with_word_timestamps(self, words: tuple[WordTimestamp, ...]) -> "LyricLine":
        return replace(self, word_timestamps=tuple(words))

    def with_translation(self, translated_text: str | None) -> "LyricLine":
        return replace(self, translated_text=translated_text)


@dataclass(frozen=True, slots=True)
class LyricDocument:
    lines: tuple[LyricLine, ...]
    metadata: dict[str, str] = field(default_factory=dict)

    @property
    def lyric_lines(self) -> tuple[LyricLine, ...]:
        return tuple(ln for ln in self.lines if ln.kind is LineKind.LYRIC)

    def with_lines(self, lines: tuple[LyricLine, ...] | list[LyricLine]) -> "LyricDocument":
        return replace(self, lines=tuple(lines))
