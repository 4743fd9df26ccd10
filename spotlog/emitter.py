"""Render fixes as lines on the output stream."""

import sys
from typing import Iterable, Optional, TextIO

from .models import Fix


def format_fix_time(fix: Fix) -> str:
    return fix.time.strftime("%Y-%m-%d %H:%M:%S +0000 UTC")


def format_fix(fix: Fix) -> str:
    """Return ``<time> <id> <messenger> <type> <lat>,<lon> <battery>``."""
    return "%s %d %s %s %+3.6f,%+3.6f %s" % (
        format_fix_time(fix),
        fix.id,
        fix.messenger_id,
        fix.message_type,
        fix.position.latitude,
        fix.position.longitude,
        fix.battery_state,
    )


class Emitter:
    """Append-only line writer. Each line is written with a single call."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.lines_written = 0

    def emit(self, fixes: Iterable[Fix]) -> int:
        count = 0
        for fix in fixes:
            self.stream.write(format_fix(fix) + "\n")
            count += 1
        self.stream.flush()
        self.lines_written += count
        return count
