from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True)
class Episode:
    """A single episode assembled from one ``<item>`` of the feed.

    Instances are frozen: once the parser appends an episode to its output it
    is never modified again.

    Attributes:
        title: Display label. Synthesized as ``"episode #<n>"`` by the parser.
        description: Description text of the item, empty when the item has none.
        audio_url: ``url`` attribute of the item's enclosure. None if not available.

    Example:
        >>> episode = Episode(
        ...     title="episode #1",
        ...     description="Show notes",
        ...     audio_url="https://example.com/ep1.mp3",
        ... )
    """

    title: str = ""
    description: str = ""
    audio_url: Optional[str] = None


class EpisodeCatalog:
    """Read-only, ordered collection of parsed episodes.

    The catalog is built once after the whole feed has been scanned and is then
    shared by every request handler. Positions are 0-based and double as the
    episode identifiers used in page URLs.
    """

    __slots__ = ("_episodes",)

    def __init__(self, episodes: Iterable[Episode] = ()) -> None:
        self._episodes: Tuple[Episode, ...] = tuple(episodes)

    def __len__(self) -> int:
        return len(self._episodes)

    def __iter__(self) -> Iterator[Episode]:
        return iter(self._episodes)

    def __getitem__(self, index: int) -> Episode:
        return self._episodes[index]

    def __repr__(self) -> str:
        return f"EpisodeCatalog({len(self._episodes)} episodes)"

    @property
    def episodes(self) -> Tuple[Episode, ...]:
        return self._episodes

    def get(self, episode_id: int) -> Optional[Episode]:
        """Return the episode with the given id, or None when out of range."""
        if episode_id < 0 or episode_id >= len(self._episodes):
            return None
        return self._episodes[episode_id]

    def enumerate(self) -> Iterator[Tuple[int, Episode]]:
        """Yield ``(episode_id, episode)`` pairs in feed order."""
        return enumerate(self._episodes)
