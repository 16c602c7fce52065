import pytest

from karaoke_lyrics.lrc.model import LineKind
from karaoke_lyrics.lrc.parse import LrcParseError, parse_lrc, parse_lrc_with_stats


def test_parse_multiple_timestamps():
    doc = parse_lrc("[00:02.5][00:01.00]hey\n")
    assert len(doc.lines) == 1
    assert [t.total_ms for t in doc.lines[0].timestamps] == [1000, 2500]
    assert doc.lines[0].text == "hey"


def test_parse_offset_clamped():
    doc = parse_lrc("[offset:-1500]\n[00:01.00]x\n")
    assert doc.metadata["offset"] == "-1500"
    assert doc.lines[0].timestamps[0].total_ms == 0


def test_parse_fraction_lengths():
    doc = parse_lrc("[01:02]a\n[01:02.3]b\n[01:02.34]c\n[01:02.345]d\n")
    assert [ln.timestamps[0].total_ms for ln in doc.lines] == [62000, 62300, 62340, 62345]


def test_parse_keeps_document_order_and_kinds():
    doc, stats = parse_lrc_with_stats(
        "[ti:Song]\n[ar:Someone]\n\n[00:05.00]second\nplain words\n[00:01.00]first\n[00:09.00]\n"
    )
    assert [ln.kind for ln in doc.lines] == [
        LineKind.METADATA,
        LineKind.METADATA,
        LineKind.LYRIC,
        LineKind.TEXT,
        LineKind.LYRIC,
        LineKind.LYRIC,
    ]
    assert [ln.text for ln in doc.lyric_lines] == ["second", "first", ""]
    assert doc.metadata == {"ti": "Song", "ar": "Someone"}
    assert doc.lines[0].key == "ti" and doc.lines[0].value == "Song"
    assert stats.lyric_lines == 3
    assert stats.metadata_lines == 2
    assert stats.text_lines == 1
    assert stats.lines_ignored == 1


def test_parse_invalid_seconds():
    with pytest.raises(LrcParseError):
        parse_lrc("[00:75.00]x\n")
