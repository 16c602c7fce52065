from karaoke_lyrics.lrc.model import LineTimestamp, LyricLine, WordTimestamp
from karaoke_lyrics.sync.tracker import LineTracker, word_index


def _line(text, *stamps, words=()):
    return LyricLine(text=text, timestamps=tuple(LineTimestamp(t) for t in stamps), word_timestamps=words)


def test_tracker_changed_only_on_change():
    lines = (_line("a", 0), _line("b", 1000), _line("c", 2000))
    tr = LineTracker.from_lines(lines)
    assert tr.changed_index(0) == 0
    assert tr.changed_index(10) is None
    assert tr.changed_index(999) is None
    assert tr.changed_index(1000) == 1
    assert tr.changed_index(1500) is None
    assert tr.changed_index(2500) == 2


def test_tracker_repeated_line_offset():
    chorus = _line("la", 1000, 5000, words=(WordTimestamp("l", 1000, 1500), WordTimestamp("a", 1500, 2000)))
    tr = LineTracker.from_lines((chorus, _line("b", 3000)))
    i = tr.current_index(5600)
    assert tr.lines[i] is chorus
    assert tr.offset_ms(i) == 4000
    assert word_index(chorus, 5600, tr.offset_ms(i)) == 1


def test_word_index_bounds():
    line = _line("ab", 0, words=(WordTimestamp("a", 100, 200), WordTimestamp("b", 200, 300)))
    assert word_index(line, 50) == -1
    assert word_index(line, 100) == 0
    assert word_index(line, 250) == 1
    assert word_index(line, 10_000) == 1
