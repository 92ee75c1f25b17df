"""Bounded, newest-first headline feed produced on a fixed interval."""

from __future__ import annotations

import logging
import random
import time
from collections import deque
from typing import Callable, Protocol

from ..core.symbols import display_name
from ..types import NewsHeadline, Sentiment
from ..utils.timer import LoopTimer, Timer, TimerHandle

log = logging.getLogger(__name__)

HEADLINE_TEMPLATES: dict[Sentiment, tuple[str, ...]] = {
    Sentiment.POSITIVE: (
        "Strong Earnings Report",
        "Analyst Upgrade: 'Strong Buy'",
        "Major Partnership Announcement",
        "Positive Economic Data",
        "High Institutional Buying Volume",
    ),
    Sentiment.NEGATIVE: (
        "Regulatory Concerns",
        "Key Executive Departure",
        "Earnings Miss",
        "Broad Market Sell-Off",
        "Increased Competition",
    ),
    Sentiment.NEUTRAL: (
        "Awaiting Inflation Data",
        "Low Volume / Indecision",
        "Divided Analyst Outlook",
        "Market Holding Pattern",
        "Price Consolidation Phase",
    ),
}


class HeadlineSource(Protocol):
    def next_headline(self, instrument: str) -> NewsHeadline: ...


class SyntheticHeadlineSource:
    """Placeholder source picking a random sentiment, then a random template.

    This is not a sentiment classifier.  Any real news source returning
    :class:`NewsHeadline` objects can be used in its place.
    """

    def __init__(
        self,
        templates: dict[Sentiment, tuple[str, ...]] | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.templates = templates or HEADLINE_TEMPLATES
        self._rng = rng or random.Random()
        self._clock = clock

    def next_headline(self, instrument: str) -> NewsHeadline:
        sentiment = self._rng.choice(list(self.templates))
        text = self._rng.choice(self.templates[sentiment])
        return NewsHeadline(
            timestamp=int(self._clock() * 1000),
            sentiment=sentiment,
            text=text.replace("{INSTRUMENT}", display_name(instrument)),
        )


class NewsFeed:
    """Headline sequence capped at ``max_headlines``, most recent at index 0.

    :meth:`activate` emits one headline right away and then one every
    ``interval`` seconds.  :meth:`deactivate` stops production but keeps the
    headlines already collected.
    """

    def __init__(
        self,
        instrument: str,
        source: HeadlineSource | None = None,
        *,
        max_headlines: int = 20,
        timer: Timer | None = None,
    ) -> None:
        self.instrument = instrument
        self.source = source or SyntheticHeadlineSource()
        self.max_headlines = max_headlines
        self.timer = timer or LoopTimer()
        self._headlines: deque[NewsHeadline] = deque(maxlen=max_headlines)
        self._handle: TimerHandle | None = None
        self._interval: float | None = None

    @property
    def headlines(self) -> list[NewsHeadline]:
        return list(self._headlines)

    @property
    def active(self) -> bool:
        return self._interval is not None

    def __len__(self) -> int:
        return len(self._headlines)

    def activate(self, interval: float | None = 8.0) -> None:
        """Start producing headlines.  ``None`` or ``0`` leaves the feed inactive."""
        self.deactivate()
        if not interval or interval <= 0:
            return
        self._interval = interval
        self._produce()
        self._schedule()

    def deactivate(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._interval = None

    def clear(self) -> None:
        self._headlines.clear()

    def _schedule(self) -> None:
        if self._interval is not None:
            self._handle = self.timer.call_later(self._interval, self._on_timer)

    def _on_timer(self) -> None:
        self._handle = None
        if self._interval is None:
            return
        self._produce()
        self._schedule()

    def _produce(self) -> None:
        headline = self.source.next_headline(self.instrument)
        self._headlines.appendleft(headline)
        log.debug("headline [%s] %s", headline.sentiment.value, headline.text)
