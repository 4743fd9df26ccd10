"""
Backfill-then-poll harvesting of a single feed.

Progress is tracked by two small immutable states advanced by pure
functions: ``BackfillState`` walks a frontier backwards from "now" until a
window comes back empty, then ``PollState`` holds the forward watermark
seeded one second after the newest backfilled fix. The feed resolves time
to whole seconds, so the one-second steps on either side of a window
boundary are what keep a fix at the boundary from being fetched twice.
"""

import time
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .config import DEFAULT_REQUEST_DELAY
from .emitter import Emitter
from .exceptions import RemoteFeedError
from .logger import StructuredLogger, get_logger
from .mapper import map_messages
from .models import EPOCH, BatchResult, FeedWindow, to_utc
from .normalize import normalize

ONE_SECOND = timedelta(seconds=1)

BACKFILL = "backfill"
POLL = "poll"


@dataclass(frozen=True)
class BackfillState:
    """Scanning while ``done`` is False; ``frontier`` is the exclusive upper bound."""

    frontier: datetime
    all_time_newest: datetime = EPOCH
    done: bool = False


def backfill_window(feed_id: str, state: BackfillState) -> FeedWindow:
    return FeedWindow(feed_id, EPOCH, state.frontier)


def advance_backfill(state: BackfillState, batch: BatchResult) -> BackfillState:
    """Step the walker past one batch; an empty batch ends the walk."""
    if batch.is_empty:
        return replace(state, done=True)
    frontier = batch.oldest - ONE_SECOND
    return BackfillState(
        frontier=frontier,
        all_time_newest=max(state.all_time_newest, batch.newest),
        # Nothing can precede the epoch window's lower bound.
        done=frontier < EPOCH,
    )


@dataclass(frozen=True)
class PollState:
    """``watermark`` is the inclusive lower bound of the next poll window."""

    watermark: datetime

    @classmethod
    def after(cls, newest: datetime) -> "PollState":
        return cls(watermark=to_utc(newest) + ONE_SECOND)


def poll_window(feed_id: str, state: PollState, now: datetime) -> FeedWindow:
    # A fix stamped ahead of the local clock can push the watermark past now.
    return FeedWindow(feed_id, state.watermark, max(to_utc(now), state.watermark))


def advance_poll(state: PollState, batch: BatchResult) -> PollState:
    if batch.is_empty:
        return state
    return PollState.after(batch.newest)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Harvester:
    """
    Drives fetch, normalize, map and emit for one feed.

    Args:
        feed_id: Feed identifier, passed through to the client unvalidated
        client: Object with ``fetch_window(window) -> FeedEnvelope``
        emitter: Line sink for fixes (default: stdout)
        delay: Seconds to wait between requests
        strict_errors: Treat a populated ``errors`` field as a failed window
        sleep: Wait function, injectable for tests
        clock: Returns the current time, injectable for tests
    """

    def __init__(
        self,
        feed_id: str,
        client,
        emitter: Optional[Emitter] = None,
        delay: float = DEFAULT_REQUEST_DELAY,
        strict_errors: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = _utcnow,
        logger: Optional[StructuredLogger] = None,
    ):
        self.feed_id = feed_id
        self.client = client
        self.emitter = emitter if emitter is not None else Emitter()
        self.delay = delay
        self.strict_errors = strict_errors
        self.sleep = sleep
        self.clock = clock
        self.logger = logger if logger is not None else get_logger()
        self._feed_logged = False

    def _now(self) -> datetime:
        return to_utc(self.clock())

    def fetch_batch(self, window: FeedWindow, phase: str) -> BatchResult:
        """
        Fetch one window and map it to a batch.

        Raises:
            RemoteFeedError: If strict error handling is on and the feed
                reported an error other than "no messages"
        """
        envelope = self.client.fetch_window(window)
        if envelope.feed is not None and not self._feed_logged:
            self._feed_logged = True
            self.logger.info(
                "Feed found",
                name=envelope.feed.name,
                status=envelope.feed.status,
                total_count=envelope.total_count,
                days_range=envelope.feed.days_range,
            )
        error = envelope.error
        if error is not None and not error.means_no_messages:
            if self.strict_errors:
                raise RemoteFeedError(error.code, error.text, error.description)
            self.logger.debug("Ignoring feed error", code=error.code, text=error.text)
        batch = map_messages(normalize(envelope), now=self._now())
        self.logger.record_batch(phase, len(batch))
        return batch

    def _fetch_or_skip(self, window: FeedWindow, phase: str) -> Optional[BatchResult]:
        """Return the batch, or None when a strict remote error means the window must be retried."""
        try:
            return self.fetch_batch(window, phase)
        except RemoteFeedError as e:
            self.logger.record_fetch_failure(f"RemoteError_{e.code}")
            self.logger.warning(
                "Feed reported an error, retrying window",
                phase=phase,
                code=e.code,
                text=e.text,
                after=window.after.isoformat(),
                before=window.before.isoformat(),
            )
            return None

    def _emit(self, batch: BatchResult):
        count = self.emitter.emit(batch.fixes)
        self.logger.record_fixes_emitted(count)

    def backfill(self) -> datetime:
        """Walk backwards from now until an empty window; return the newest fix time seen."""
        state = BackfillState(frontier=self._now())
        self.logger.info("Starting backfill", feed_id=self.feed_id, frontier=state.frontier.isoformat())
        while True:
            window = backfill_window(self.feed_id, state)
            batch = self._fetch_or_skip(window, BACKFILL)
            if batch is None:
                self.sleep(self.delay)
                continue
            if not batch.is_empty:
                self._emit(batch)
                self.logger.info(
                    "Backfilled batch",
                    fixes=len(batch),
                    oldest=batch.oldest.isoformat(),
                    newest=batch.newest.isoformat(),
                )
            state = advance_backfill(state, batch)
            if state.done:
                break
            self.sleep(self.delay)
        self.logger.info("Backfill complete", all_time_newest=state.all_time_newest.isoformat())
        return state.all_time_newest

    def poll(self, newest: datetime, max_iterations: Optional[int] = None) -> PollState:
        """
        Poll for fixes newer than ``newest``.

        Runs until the process is terminated unless ``max_iterations`` is
        given. Returns the final state.
        """
        state = PollState.after(newest)
        self.logger.info("Starting poll", feed_id=self.feed_id, watermark=state.watermark.isoformat())
        iterations = 0
        while max_iterations is None or iterations < max_iterations:
            iterations += 1
            self.sleep(self.delay)
            window = poll_window(self.feed_id, state, self._now())
            batch = self._fetch_or_skip(window, POLL)
            if batch is None:
                continue
            if not batch.is_empty:
                self._emit(batch)
                self.logger.info("Polled batch", fixes=len(batch), newest=batch.newest.isoformat())
            state = advance_poll(state, batch)
        return state

    def run(self, backfill_only: bool = False, max_polls: Optional[int] = None) -> Optional[PollState]:
        newest = self.backfill()
        if backfill_only:
            return None
        return self.poll(newest, max_iterations=max_polls)
