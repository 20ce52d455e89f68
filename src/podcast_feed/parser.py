"""Event-driven feed parser.

``FeedParser`` walks the structural events of a feed exactly once and builds
``Episode`` records without materializing a document tree. It only tracks which
text field the next character data belongs to, plus the record being assembled.

Every ``</item>`` finalizes the record in progress, whatever state the machine
is in. Events the machine does not understand, including malformed ones, are
skipped so a single corrupt fragment cannot discard the rest of the feed.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import Iterable, List, Union

from .events import Characters, EndElement, iter_events, MalformedEvent, StartElement
from .models import Episode

logger = logging.getLogger(__name__)

ITEM_ELEMENT = "item"
TITLE_ELEMENT = "title"
DESCRIPTION_ELEMENT = "description"
ENCLOSURE_ELEMENT = "enclosure"
ENCLOSURE_URL_ATTRIBUTE = "url"

EPISODE_TITLE_TEMPLATE = "episode #{number}"
FIRST_EPISODE_NUMBER = 1


class ParseState(enum.Enum):
    """Which text field, if any, the next character data fills."""

    NEUTRAL = "neutral"
    AWAITING_TITLE_TEXT = "awaiting_title_text"
    AWAITING_DESCRIPTION_TEXT = "awaiting_description_text"


class FeedParser:
    """Incremental state machine turning structural events into episodes.

    Example:
        >>> parser = FeedParser()
        >>> for event in iter_events(xml_bytes):
        ...     parser.feed(event)
        >>> episodes = parser.close()
    """

    def __init__(self) -> None:
        self.state = ParseState.NEUTRAL
        self.title_counter = FIRST_EPISODE_NUMBER
        self._current = Episode()
        self._episodes: List[Episode] = []

    def feed(self, event: object) -> None:
        """Apply a single event to the machine."""
        if isinstance(event, StartElement):
            self._on_start(event)
        elif isinstance(event, Characters):
            self._on_characters(event)
        elif isinstance(event, EndElement):
            if event.name == ITEM_ELEMENT:
                self._finalize()
        elif isinstance(event, MalformedEvent):
            logger.debug("Skipping malformed feed event: %s", event.reason)
        else:
            logger.debug("Skipping unrecognized feed event: %r", event)

    def _on_start(self, event: StartElement) -> None:
        if event.name == TITLE_ELEMENT:
            self.state = ParseState.AWAITING_TITLE_TEXT
        elif event.name == DESCRIPTION_ELEMENT:
            self.state = ParseState.AWAITING_DESCRIPTION_TEXT
        elif event.name == ENCLOSURE_ELEMENT:
            audio_url = event.attributes.get(ENCLOSURE_URL_ATTRIBUTE)
            self._current = replace(self._current, audio_url=audio_url)

    def _on_characters(self, event: Characters) -> None:
        if self.state is ParseState.AWAITING_TITLE_TEXT:
            title = EPISODE_TITLE_TEMPLATE.format(number=self.title_counter)
            self.title_counter += 1
            self._current = replace(self._current, title=title)
            self.state = ParseState.NEUTRAL
        elif self.state is ParseState.AWAITING_DESCRIPTION_TEXT:
            self._current = replace(self._current, description=event.content)
            self.state = ParseState.NEUTRAL

    def _finalize(self) -> None:
        if self.state is not ParseState.NEUTRAL:
            logger.debug("Item closed while in state %s; flushing anyway", self.state.name)
        self._episodes.append(self._current)
        self._current = Episode()
        self.state = ParseState.NEUTRAL

    def close(self) -> List[Episode]:
        """Return the episodes finalized so far, in stream order."""
        return list(self._episodes)

    def run(self, events: Iterable[object]) -> List[Episode]:
        """Feed every event from ``events`` and return the finished episodes."""
        for event in events:
            self.feed(event)
        return self.close()


def parse_episodes(events: Iterable[object]) -> List[Episode]:
    """Parse a structural event stream with a fresh parser.

    Args:
        events: Structural events in document order, consumed exactly once.

    Returns:
        Episodes in the order their ``</item>`` was seen; empty if there were none.
    """
    return FeedParser().run(events)


def parse_feed_bytes(xml: Union[bytes, str]) -> List[Episode]:
    """Tokenize and parse a raw feed body.

    Args:
        xml: Raw feed content

    Returns:
        List of parsed episodes

    Raises:
        FeedSourceError: If the content cannot be handed to the tokenizer.
    """
    episodes = parse_episodes(iter_events(xml))
    logger.debug("Parsed %d episodes from %d bytes of feed content", len(episodes), len(xml))
    return episodes
