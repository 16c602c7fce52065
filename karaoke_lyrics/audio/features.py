from __future__ import annotations

from dataclasses import dataclass
import math

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from karaoke_lyrics.errors import FeatureExtractionError

FRAME_S = 0.02
HOP_S = 0.01


@dataclass(frozen=True, slots=True, eq=False)
class AudioFeatureSet:
    """Short-time energy series; energy[i] is the frame starting at time[i] ms."""

    energy: np.ndarray
    time: np.ndarray
    sample_rate: int
    frame_size: int
    hop_size: int

    def __len__(self) -> int:
        return int(self.energy.size)


def extract_features(
    samples: np.ndarray,
    sample_rate: int,
    *,
    frame_s: float = FRAME_S,
    hop_s: float = HOP_S,
) -> AudioFeatureSet:
    """
    Mean absolute amplitude per frame. Frames start at 0, hop, 2*hop, ... and
    only whole frames are kept (start + frame_size <= len). A buffer shorter
    than one frame yields empty series.
    """
    frame_size = math.floor(sample_rate * frame_s)
    hop_size = math.floor(sample_rate * hop_s)
    if frame_size <= 0 or hop_size <= 0:
        raise FeatureExtractionError(
            f"Sample rate {sample_rate} too low for {frame_s * 1000:g}ms frames / {hop_s * 1000:g}ms hop"
        )

    x = np.asarray(samples, dtype=np.float64)
    if x.ndim > 1:
        # (n_samples, n_channels) -> first channel
        x = x[:, 0]

    if x.size < frame_size:
        empty = np.empty(0, dtype=np.float64)
        return AudioFeatureSet(empty, empty.copy(), sample_rate, frame_size, hop_size)

    frames = sliding_window_view(np.abs(x), frame_size)[::hop_size]
    energy = frames.sum(axis=1) / frame_size
    starts = np.arange(frames.shape[0], dtype=np.float64) * hop_size
    time = starts / sample_rate * 1000.0

    return AudioFeatureSet(
        energy=energy,
        time=time,
        sample_rate=sample_rate,
        frame_size=frame_size,
        hop_size=hop_size,
    )
