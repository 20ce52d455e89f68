"""Structural XML events and the tokenizer adapter that produces them.

The feed parser never sees a document tree. It consumes a flat, ordered stream
of the event types defined here:

- ``StartElement``: an opening tag with its attributes
- ``EndElement``: a closing tag
- ``Characters``: text content of an element
- ``MalformedEvent``: a fragment the tokenizer could not decode

``iter_events()`` produces that stream lazily from raw feed bytes using the
defusedxml SAX reader, which keeps expat protected against entity expansion and
external reference attacks.

Text handling:

- A CDATA section is always reported as its own ``Characters`` event with its
  content untouched.
- Plain text between two markup boundaries is merged into one event, and
  dropped when it is only whitespace. Indentation around a CDATA section is
  therefore never glued onto it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import partial
from itertools import chain
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

# Bandit: only handler base classes; parsing handled via defusedxml safe APIs
from xml.sax import handler, SAXException  # nosec B406

from defusedxml.common import DefusedXmlException
from defusedxml.sax import make_parser

from .exceptions import FeedSourceError

logger = logging.getLogger(__name__)

# Bytes handed to expat per read
DEFAULT_READ_SIZE = 2**14


@dataclass(frozen=True)
class StartElement:
    name: str
    attributes: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EndElement:
    name: str


@dataclass(frozen=True)
class Characters:
    content: str


@dataclass(frozen=True)
class MalformedEvent:
    reason: str


Event = Union[StartElement, EndElement, Characters, MalformedEvent]


def local_name(qualified: Optional[str]) -> str:
    """Strip a namespace prefix (``itunes:title``) or qualifier (``{uri}title``)."""
    if not qualified:
        return ""
    if qualified.startswith("{"):
        qualified = qualified.rpartition("}")[2]
    return qualified.rpartition(":")[2]


class _EventCollector(handler.ContentHandler, handler.LexicalHandler):
    """SAX handler that records structural events as expat reports them.

    Events are buffered until ``drain()`` so the generator can hand them out
    between reads. Nothing stays queued inside the reader when expat fails.
    """

    def __init__(self) -> None:
        super().__init__()
        self._events: List[Event] = []
        self._text: List[str] = []
        self._cdata: Optional[List[str]] = None

    def drain(self) -> List[Event]:
        events, self._events = self._events, []
        return events

    def flush_text(self) -> None:
        if self._text:
            content = "".join(self._text)
            self._text.clear()
            if content.strip():
                self._events.append(Characters(content))

    def startElementNS(self, name, qname, attrs):
        self.flush_text()
        attributes: Dict[str, str] = {
            local_name(attr_name[1]): value for attr_name, value in attrs.items()
        }
        self._events.append(StartElement(local_name(name[1]), attributes))

    def endElementNS(self, name, qname):
        self.flush_text()
        self._events.append(EndElement(local_name(name[1])))

    def characters(self, content):
        if self._cdata is not None:
            self._cdata.append(content)
        else:
            self._text.append(content)

    def startCDATA(self):
        self.flush_text()
        self._cdata = []

    def endCDATA(self):
        content = "".join(self._cdata or ())
        self._cdata = None
        if content:
            self._events.append(Characters(content))

    def endDocument(self):
        self.flush_text()


def _chunks(source: Union[bytes, str], read_size: int) -> Iterator[Union[bytes, str]]:
    for start in range(0, len(source), read_size):
        yield source[start : start + read_size]


def iter_events(
    source: Union[bytes, bytearray, str], read_size: int = DEFAULT_READ_SIZE
) -> Iterator[Event]:
    """Tokenize raw feed content into structural events.

    If the tokenizer fails part way through, the events reported before the
    failure are delivered, then one ``MalformedEvent``, and the stream ends
    because expat cannot resume after an error.

    Args:
        source: Raw feed body. ``bytes`` honour the XML encoding declaration.
        read_size: Number of bytes handed to expat per read.

    Returns:
        Lazy iterator over the structural events of the document.

    Raises:
        FeedSourceError: If ``source`` is not ``bytes`` or ``str``.
    """
    if isinstance(source, bytearray):
        source = bytes(source)
    if not isinstance(source, (bytes, str)):
        raise FeedSourceError(
            f"Cannot tokenize feed content of type {type(source).__name__}",
            suggestion="Pass the raw feed body as bytes or str",
        )
    return _generate_events(source, read_size)


def _generate_events(source: Union[bytes, str], read_size: int) -> Iterator[Event]:
    collector = _EventCollector()
    reader = make_parser()
    reader.setFeature(handler.feature_namespaces, True)
    reader.setContentHandler(collector)
    reader.setProperty(handler.property_lexical_handler, collector)

    steps: Iterable[Callable[[], None]] = chain(
        (partial(reader.feed, chunk) for chunk in _chunks(source, read_size)),
        (reader.close,),
    )
    for step in steps:
        try:
            step()
        except (SAXException, DefusedXmlException) as exc:
            collector.flush_text()
            yield from collector.drain()
            logger.warning("Feed tokenizer stopped on malformed content: %s", exc)
            yield MalformedEvent(str(exc))
            return
        yield from collector.drain()
