from __future__ import annotations

from bisect import bisect_left, bisect_right
from collections import Counter
from dataclasses import dataclass, field, replace
import logging
import math
from typing import Sequence

from karaoke_lyrics.audio.features import AudioFeatureSet
from karaoke_lyrics.audio.peaks import THRESHOLD_RATIO, EnergyPeak, find_peaks
from karaoke_lyrics.lrc.model import LineKind, LineTimestamp, LyricDocument, LyricLine, WordTimestamp

from .assign import (
    FallbackReason,
    SynthesisParams,
    SynthesisResult,
    assign_word_timestamps,
    uniform_timestamps,
)

logger = logging.getLogger(__name__)

DEFAULT_LINE_MS = 10_000.0
DEGENERATE_LINE_MS = 1_000.0


@dataclass(frozen=True, slots=True)
class PipelineSettings:
    synthesis: SynthesisParams = field(default_factory=SynthesisParams)
    threshold_ratio: float = THRESHOLD_RATIO
    default_line_ms: float = DEFAULT_LINE_MS
    degenerate_line_ms: float = DEGENERATE_LINE_MS
    precision_digits: int | None = 3


@dataclass(frozen=True, slots=True)
class LineWindow:
    index: int
    start_ms: float
    end_ms: float

    @property
    def degenerate(self) -> bool:
        return self.start_ms >= self.end_ms


@dataclass(frozen=True, slots=True)
class SynthesisReport:
    document: LyricDocument
    outcomes: tuple[tuple[int, SynthesisResult], ...]
    peaks_total: int
    audio_used: bool

    @property
    def fallback_counts(self) -> dict[str, int]:
        c = Counter(r.fallback.value for _i, r in self.outcomes if r.fallback is not None)
        return dict(c)

    @property
    def peak_guided_lines(self) -> int:
        return sum(1 for _i, r in self.outcomes if r.peak_guided)


def line_windows(
    lines: Sequence[LyricLine], default_line_ms: float = DEFAULT_LINE_MS
) -> list[LineWindow]:
    """
    Window per timed line: from its first timestamp to the next timed line's
    first timestamp, or default_line_ms for the last one. Lines without
    timestamps get no window.
    """
    timed = [(i, ln.timestamps[0].total_ms) for i, ln in enumerate(lines) if ln.timestamps]
    out: list[LineWindow] = []
    for pos, (i, start) in enumerate(timed):
        if pos + 1 < len(timed):
            end = timed[pos + 1][1]
        else:
            end = start + default_line_ms
        out.append(LineWindow(index=i, start_ms=start, end_ms=end))
    return out


def peaks_in_window(peaks: Sequence[EnergyPeak], start_ms: float, end_ms: float) -> list[EnergyPeak]:
    """Peaks with start_ms <= time <= end_ms. `peaks` must be sorted by time."""
    times = [p.time for p in peaks]
    lo = bisect_left(times, start_ms)
    hi = bisect_right(times, end_ms)
    return list(peaks[lo:hi])


def _synthesize_line(
    line: LyricLine,
    window: LineWindow,
    peaks: Sequence[EnergyPeak] | None,
    settings: PipelineSettings,
) -> SynthesisResult:
    chars = line.characters
    if window.degenerate:
        start = window.start_ms
        end = start + settings.degenerate_line_ms
        if not chars:
            return SynthesisResult(line=line.with_word_timestamps(()), fallback=FallbackReason.EMPTY_LINE)
        return SynthesisResult(
            line=line.with_word_timestamps(uniform_timestamps(chars, start, end)),
            fallback=FallbackReason.DEGENERATE_WINDOW,
            detail=f"[{window.start_ms}, {window.end_ms}) -> [{start}, {end})",
        )

    if peaks is None:
        if not chars:
            return SynthesisResult(line=line.with_word_timestamps(()), fallback=FallbackReason.EMPTY_LINE)
        return SynthesisResult(
            line=line.with_word_timestamps(uniform_timestamps(chars, window.start_ms, window.end_ms)),
            fallback=FallbackReason.AUDIO_UNAVAILABLE,
        )

    line_peaks = peaks_in_window(peaks, window.start_ms, window.end_ms)
    return assign_word_timestamps(
        line.with_word_timestamps(()),
        chars,
        line_peaks,
        window.start_ms,
        window.end_ms,
        settings.synthesis,
    )


def synthesize_document(
    doc: LyricDocument,
    features: AudioFeatureSet | None,
    settings: PipelineSettings | None = None,
) -> SynthesisReport:
    """
    Word timing for every lyric line of `doc`.

    `features=None` means audio is unavailable and every line is split
    uniformly. The input document is not modified.
    """
    settings = settings or PipelineSettings()

    peaks: list[EnergyPeak] | None = None
    if features is not None:
        peaks = find_peaks(features.energy, features.time, threshold_ratio=settings.threshold_ratio)
        logger.debug("%s energy peaks over %s frames", len(peaks), len(features))

    windows = {w.index: w for w in line_windows(doc.lines, settings.default_line_ms)}
    new_lines: list[LyricLine] = []
    outcomes: list[tuple[int, SynthesisResult]] = []

    for i, line in enumerate(doc.lines):
        if line.kind is not LineKind.LYRIC:
            new_lines.append(line)
            continue

        window = windows.get(i)
        if window is None or not (math.isfinite(window.start_ms) and math.isfinite(window.end_ms)):
            res = SynthesisResult(line=line.with_word_timestamps(()), fallback=FallbackReason.NO_TIMESTAMPS)
        else:
            res = _synthesize_line(line, window, peaks, settings)

        if res.fallback is not None:
            logger.debug("line %s %r: %s %s", i, line.text, res.fallback.value, res.detail or "")
        new_lines.append(res.line)
        outcomes.append((i, res))

    out_doc = doc.with_lines(new_lines)
    if settings.precision_digits is not None:
        out_doc = optimize_precision(out_doc, settings.precision_digits)

    report = SynthesisReport(
        document=out_doc,
        outcomes=tuple(outcomes),
        peaks_total=len(peaks) if peaks is not None else 0,
        audio_used=features is not None,
    )
    logger.info(
        "Word timing: %s lines, %s peak-guided, fallbacks=%s",
        len(outcomes),
        report.peak_guided_lines,
        report.fallback_counts or {},
    )
    return report


def optimize_precision(doc: LyricDocument, digits: int = 3) -> LyricDocument:
    """Round line and word times to `digits` decimals (3 = millisecond precision)."""
    lines: list[LyricLine] = []
    for line in doc.lines:
        if line.kind is not LineKind.LYRIC:
            lines.append(line)
            continue
        stamps = tuple(LineTimestamp(total_ms=round(ts.total_ms, digits)) for ts in line.timestamps)
        words = tuple(
            WordTimestamp(word=w.word, start_ms=round(w.start_ms, digits), end_ms=round(w.end_ms, digits))
            for w in line.word_timestamps
        )
        lines.append(replace(line, timestamps=stamps, word_timestamps=words))
    return doc.with_lines(lines)
