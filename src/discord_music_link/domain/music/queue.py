"""Ordered playlist for a single player."""

from __future__ import annotations

from collections.abc import Iterator

from discord_music_link.domain.music.entities import Track
from discord_music_link.domain.shared.messages import ErrorMessages


class Queue:
    """Mutable, ordered list of tracks.

    While a player is playing from the queue, the head entry is the current track;
    the player pops it when the track ends.
    """

    def __init__(self) -> None:
        self._tracks: list[Track] = []

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __getitem__(self, position: int) -> Track:
        return self._tracks[position]

    def __repr__(self) -> str:
        return f"<Queue length={len(self)} duration={self.duration}>"

    @property
    def empty(self) -> bool:
        return len(self._tracks) == 0

    @property
    def duration(self) -> int:
        """Total duration of all queued tracks, in milliseconds."""
        return sum(track.duration for track in self._tracks)

    def first(self) -> Track | None:
        return self._tracks[0] if self._tracks else None

    def add(self, track: Track) -> int:
        """Append a track, stamping its 1-based position. Returns the new length."""
        self._tracks.append(track.model_copy(update={"index": len(self._tracks) + 1}))
        return len(self._tracks)

    def pop_front(self) -> Track | None:
        """Remove and return the head of the queue."""
        if not self._tracks:
            return None
        return self._tracks.pop(0)

    def remove(self, position: int) -> Track:
        """Remove the track at a 0-based position.

        Raises:
            IndexError: If the position is out of range.
        """
        if not 0 <= position < len(self._tracks):
            raise IndexError(ErrorMessages.INVALID_QUEUE_INDEX.format(index=position))
        return self._tracks.pop(position)

    def rotate(self) -> None:
        """Move the head of the queue to the tail."""
        head = self.pop_front()
        if head is not None:
            self.add(head)

    def clear(self) -> int:
        """Remove all tracks and return the count removed."""
        count = len(self._tracks)
        self._tracks.clear()
        return count
