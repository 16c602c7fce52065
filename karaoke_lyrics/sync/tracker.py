from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass

from karaoke_lyrics.lrc.model import LyricLine


@dataclass(slots=True)
class LineTracker:
    """
    Efficient lookup: O(log n) via bisect + update only on change.
    Lines with several timestamps appear once per timestamp.
    """

    t_ms: list[float]
    lines: list[LyricLine]
    last_idx: int = -1

    @classmethod
    def from_lines(cls, lines: tuple[LyricLine, ...] | list[LyricLine]) -> "LineTracker":
        pairs = sorted(
            ((ts.total_ms, i) for i, ln in enumerate(lines) for ts in ln.timestamps),
            key=lambda p: p[0],
        )
        return cls(t_ms=[t for t, _i in pairs], lines=[lines[i] for _t, i in pairs])

    def current_index(self, now_ms: float) -> int:
        i = bisect_right(self.t_ms, now_ms) - 1
        return i if i >= 0 else -1

    def offset_ms(self, idx: int) -> float:
        # repeated lines reuse the word timing of their first timestamp
        return self.t_ms[idx] - (self.lines[idx].start_ms or 0.0)

    def changed_index(self, now_ms: float) -> int | None:
        i = self.current_index(now_ms)
        if i != self.last_idx:
            self.last_idx = i
            return i
        return None


def word_index(line: LyricLine, now_ms: float, offset_ms: float = 0.0) -> int:
    """
    Index of the character being sung at `now_ms`, -1 before the first one.
    Past the last character the last index stays highlighted.
    """
    starts = [w.start_ms for w in line.word_timestamps]
    return bisect_right(starts, now_ms - offset_ms) - 1
