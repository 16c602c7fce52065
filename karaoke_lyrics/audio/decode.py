from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import soundfile as sf

from karaoke_lyrics.errors import AudioDecodeError

logger = logging.getLogger(__name__)


def decode_audio(path: Path | str) -> tuple[np.ndarray, int]:
    """
    Read an audio file into (first-channel float32 samples, sample rate).
    Anything libsndfile can open is accepted (wav, flac, ogg, mp3 on recent builds).
    """
    try:
        data, sr = sf.read(str(path), dtype="float32", always_2d=True)
    except (RuntimeError, OSError, TypeError) as e:
        raise AudioDecodeError(f"Cannot decode {path}: {e}") from e

    if data.shape[1] > 1:
        logger.debug("%s has %s channels, using the first", path, data.shape[1])
    samples = np.ascontiguousarray(data[:, 0])
    logger.debug("Decoded %s: %s samples @ %s Hz", path, samples.size, sr)
    return samples, int(sr)
