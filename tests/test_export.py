import json

from karaoke_lyrics.lrc.export import export_json, export_lrc, export_srt
from karaoke_lyrics.lrc.formats import LyricFormat, generate, parse
from karaoke_lyrics.lrc.model import LineTimestamp, LyricDocument, LyricLine, WordTimestamp


def _line(t_ms, text, **kw):
    return LyricLine(text=text, timestamps=(LineTimestamp(t_ms),), **kw)


def test_export_srt_basic():
    doc = LyricDocument(lines=(_line(0, "a"), _line(1000, "b")))
    srt = export_srt(doc, last_line_duration_ms=2000)
    assert "00:00:00,000 --> 00:00:01,000" in srt
    assert "00:00:01,000 --> 00:00:03,000" in srt
    assert "\na\n" in srt
    assert "\nb\n" in srt


def test_export_lrc_word_line():
    words = (
        WordTimestamp("a", 1000, 2000),
        WordTimestamp("b", 2000, 3000),
        WordTimestamp("c", 3000, 4000),
    )
    doc = parse("[ti:T]\n[00:01.00]abc\n")
    doc = doc.with_lines([doc.lines[0], doc.lines[1].with_word_timestamps(words)])
    assert export_lrc(doc) == "[ti:T]\n\n[00:01.00]abc\n[00:01.00]a[00:02.00]b[00:03.00]c\n"


def test_export_lrc_prefers_translation_and_bilingual():
    doc = LyricDocument(lines=(_line(61_230, "hola", translated_text="hello"),))
    assert export_lrc(doc) == "[01:01.23]hello\n"
    assert export_lrc(doc, bilingual=True) == "[01:01.23]hello\n[01:01.23]hola\n"


def test_export_json_timeline_shape():
    doc = LyricDocument(
        lines=(_line(500, "x", word_timestamps=(WordTimestamp("x", 500, 900),)),),
        metadata={"ar": "A"},
    )
    data = json.loads(export_json(doc))
    assert data["version"] == "1.0"
    assert data["metadata"] == {"ar": "A"}
    assert data["timeline"] == [
        {
            "text": "x",
            "timestamps": [{"totalMilliseconds": 500}],
            "wordTimestamps": [{"word": "x", "startTime": 500, "endTime": 900}],
        }
    ]


def test_registry_resolves_every_format():
    doc = parse("[00:01.00]a\n", LyricFormat.LRC)
    for fmt in LyricFormat:
        assert generate(doc, fmt)
    assert generate(doc, "srt").startswith("1\n00:00:01,000")
