from __future__ import annotations

import logging
from pathlib import Path

from karaoke_lyrics.audio.decode import decode_audio
from karaoke_lyrics.audio.features import AudioFeatureSet, extract_features
from karaoke_lyrics.config import AppConfig
from karaoke_lyrics.errors import AudioDecodeError, FeatureExtractionError
from karaoke_lyrics.lrc.model import LyricDocument
from karaoke_lyrics.lrc.parse import parse_lrc
from karaoke_lyrics.timeline.store import TimelineStore
from karaoke_lyrics.timing.pipeline import SynthesisReport, synthesize_document

logger = logging.getLogger(__name__)


def load_features(cfg: AppConfig, audio_path: Path) -> AudioFeatureSet | None:
    """
    Decode + energy analysis. None when the audio can't be used, which makes
    the whole document fall back to uniform timing.
    """
    try:
        samples, sr = decode_audio(audio_path)
        return extract_features(samples, sr, frame_s=cfg.frame_ms / 1000.0, hop_s=cfg.hop_ms / 1000.0)
    except (AudioDecodeError, FeatureExtractionError) as e:
        logger.warning("Audio analysis failed, using uniform timing for every line: %s", e)
        return None


def word_timing(cfg: AppConfig, doc: LyricDocument, audio_path: Path | None) -> SynthesisReport:
    features = load_features(cfg, audio_path) if audio_path is not None else None
    return synthesize_document(doc, features, cfg.pipeline_settings())


def word_timing_for_file(
    cfg: AppConfig,
    lrc_path: Path,
    audio_path: Path | None,
    *,
    save: bool = False,
) -> SynthesisReport:
    """
    lrc file -> parse -> (decode -> energy -> peaks) -> per-line word timing.
    With `save`, the result is stored in the timeline db under the lrc file name.
    """
    doc = parse_lrc(lrc_path.read_text(encoding="utf-8"))
    report = word_timing(cfg, doc, audio_path)

    if save:
        store = TimelineStore(cfg.timeline_db_path)
        store.save(lrc_path.name, report.document)
        logger.info("Timeline saved as %r in %s", lrc_path.name, cfg.timeline_db_path)
    return report
