class KaraokeError(RuntimeError):
    pass


class AudioDecodeError(KaraokeError):
    pass


class FeatureExtractionError(KaraokeError):
    pass


class TimelineError(KaraokeError):
    pass


class InvalidTimeline(TimelineError):
    pass
