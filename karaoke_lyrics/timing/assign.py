from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
import numbers
from typing import Callable, Sequence

from karaoke_lyrics.audio.peaks import EnergyPeak
from karaoke_lyrics.lrc.model import LyricLine, WordTimestamp

logger = logging.getLogger(__name__)

# (char_index, char_count, peak_count) -> peak index
PeakIndexMapping = Callable[[int, int, int], int]


def proportional_peak_index(char_index: int, char_count: int, peak_count: int) -> int:
    return math.floor((char_index / char_count) * peak_count)


class FallbackReason(str, Enum):
    EMPTY_LINE = "empty_line"
    NO_TIMESTAMPS = "no_timestamps"
    INVALID_WINDOW = "invalid_window"
    DEGENERATE_WINDOW = "degenerate_window"
    SPARSE_PEAKS = "sparse_peaks"
    ASSIGNMENT_ERROR = "assignment_error"
    AUDIO_UNAVAILABLE = "audio_unavailable"


@dataclass(frozen=True, slots=True)
class SynthesisParams:
    # uniform fallback when len(peaks) < len(characters) * density_ratio
    density_ratio: float = 0.5
    peak_index: PeakIndexMapping = proportional_peak_index


@dataclass(frozen=True, slots=True)
class SynthesisResult:
    line: LyricLine
    fallback: FallbackReason | None = None
    detail: str | None = None

    @property
    def peak_guided(self) -> bool:
        return self.fallback is None


def uniform_timestamps(
    characters: Sequence[str], line_start: float, line_end: float
) -> tuple[WordTimestamp, ...]:
    """Split [line_start, line_end) into len(characters) equal slots, in order."""
    if not characters:
        return ()
    duration = (line_end - line_start) / len(characters)
    out: list[WordTimestamp] = []
    for k, ch in enumerate(characters):
        start = line_start + k * duration
        out.append(WordTimestamp(word=ch, start_ms=start, end_ms=start + duration))
    return tuple(out)


def _finite(value: object) -> bool:
    # bool is an int; a True/False peak time is junk, not a time
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _peak_guided(
    characters: Sequence[str],
    peaks: Sequence[EnergyPeak],
    line_start: float,
    line_end: float,
    params: SynthesisParams,
) -> tuple[WordTimestamp, ...]:
    n = len(characters)
    slot = (line_end - line_start) / n
    out: list[WordTimestamp] = []
    for w, ch in enumerate(characters):
        pi = params.peak_index(w, n, len(peaks))
        if pi < 0:
            raise IndexError(f"peak index {pi} out of range")

        start = peaks[pi].time if pi < len(peaks) else None
        if not _finite(start):
            start = line_start + w * slot

        end = peaks[pi + 1].time if pi + 1 < len(peaks) else None
        if not _finite(end):
            end = line_end

        start = min(max(float(start), line_start), line_end)
        end = max(min(float(end), line_end), start)
        out.append(WordTimestamp(word=ch, start_ms=start, end_ms=end))
    return tuple(out)


def assign_word_timestamps(
    line: LyricLine,
    characters: Sequence[str],
    peaks: Sequence[EnergyPeak] | None,
    line_start: float,
    line_end: float,
    params: SynthesisParams | None = None,
) -> SynthesisResult:
    """
    Map `characters` onto [line_start, line_end).

    The window is taken as given: a degenerate window (start >= end) must be
    widened by the caller. Never raises; every anomaly degrades to the
    uniform split, and the reason is reported on the result.
    """
    params = params or SynthesisParams()

    if not characters:
        return SynthesisResult(line=line, fallback=FallbackReason.EMPTY_LINE)

    if not (_finite(line_start) and _finite(line_end)):
        return SynthesisResult(
            line=line.with_word_timestamps(()),
            fallback=FallbackReason.INVALID_WINDOW,
            detail=f"window [{line_start}, {line_end})",
        )

    try:
        peaks = list(peaks) if peaks is not None else []
    except TypeError:
        peaks = []

    if len(peaks) < len(characters) * params.density_ratio:
        return SynthesisResult(
            line=line.with_word_timestamps(uniform_timestamps(characters, line_start, line_end)),
            fallback=FallbackReason.SPARSE_PEAKS,
            detail=f"{len(peaks)} peaks for {len(characters)} characters",
        )

    try:
        words = _peak_guided(characters, peaks, line_start, line_end, params)
    except Exception as e:
        logger.debug("Peak assignment failed for %r: %s", line.text, e)
        return SynthesisResult(
            line=line.with_word_timestamps(uniform_timestamps(characters, line_start, line_end)),
            fallback=FallbackReason.ASSIGNMENT_ERROR,
            detail=str(e),
        )

    return SynthesisResult(line=line.with_word_timestamps(words))
