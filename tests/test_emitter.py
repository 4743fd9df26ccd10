"""
Tests for fix line rendering.
"""

from spotlog.emitter import Emitter, format_fix
from spotlog.models import Fix, Position, from_unix


def make_fix(**overrides) -> Fix:
    fields = dict(
        id=1718294721,
        time=from_unix(1700000000),
        messenger_id="0-2784321",
        message_type="TRACK",
        position=Position(46.51234, -6.63321),
        battery_state="GOOD",
    )
    fields.update(overrides)
    return Fix(**fields)


class RecordingStream:
    def __init__(self):
        self.writes = []
        self.flushes = 0

    def write(self, text):
        self.writes.append(text)

    def flush(self):
        self.flushes += 1


class TestFormatFix:
    def test_line_layout(self):
        assert format_fix(make_fix()) == (
            "2023-11-14 22:13:20 +0000 UTC 1718294721 0-2784321 TRACK +46.512340,-6.633210 GOOD"
        )

    def test_signs_always_shown(self):
        line = format_fix(make_fix(position=Position(-0.5, 0.0)))

        assert "-0.500000,+0.000000" in line


class TestEmitter:
    def test_one_write_per_line(self):
        stream = RecordingStream()
        emitter = Emitter(stream)

        count = emitter.emit([make_fix(id=1), make_fix(id=2), make_fix(id=3)])

        assert count == 3
        assert len(stream.writes) == 3
        assert all(w.endswith("\n") and w.count("\n") == 1 for w in stream.writes)
        assert [w.split()[4] for w in stream.writes] == ["1", "2", "3"]
        assert stream.flushes == 1

    def test_counts_lines_across_calls(self, output):
        emitter = Emitter(output)

        emitter.emit([make_fix()])
        emitter.emit([])
        emitter.emit([make_fix(), make_fix()])

        assert emitter.lines_written == 3
        assert len(output.getvalue().splitlines()) == 3
