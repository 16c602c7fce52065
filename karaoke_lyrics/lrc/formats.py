from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .export import export_json, export_lrc, export_srt
from .model import LyricDocument
from .parse import parse_lrc


class LyricFormat(str, Enum):
    LRC = "lrc"
    SRT = "srt"
    JSON = "json"


@dataclass(frozen=True, slots=True)
class ExportOptions:
    bilingual: bool = False
    srt_last_line_ms: int = 2000


Generator = Callable[[LyricDocument, ExportOptions], str]
Parser = Callable[[str], LyricDocument]


GENERATORS: dict[LyricFormat, Generator] = {
    LyricFormat.LRC: lambda doc, opts: export_lrc(doc, bilingual=opts.bilingual),
    LyricFormat.SRT: lambda doc, opts: export_srt(
        doc, last_line_duration_ms=opts.srt_last_line_ms, bilingual=opts.bilingual
    ),
    LyricFormat.JSON: lambda doc, opts: export_json(doc),
}

# SRT/ASS/TXT readers live outside this package
PARSERS: dict[LyricFormat, Parser] = {
    LyricFormat.LRC: parse_lrc,
}


def generate(doc: LyricDocument, fmt: LyricFormat | str, options: ExportOptions | None = None) -> str:
    return GENERATORS[LyricFormat(fmt)](doc, options or ExportOptions())


def parse(text: str, fmt: LyricFormat | str = LyricFormat.LRC) -> LyricDocument:
    fmt = LyricFormat(fmt)
    if fmt not in PARSERS:
        raise ValueError(f"No reader for {fmt.value}")
    return PARSERS[fmt](text)
