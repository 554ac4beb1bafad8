"""Track and search result models parsed from node responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from discord_music_link.domain.music.value_objects import LoadType
from discord_music_link.domain.shared.types import DurationMs, NonEmptyStr, PositiveInt

_INFO_FIELDS = {
    "uri": "uri",
    "title": "title",
    "author": "author",
    "length": "duration",
    "identifier": "identifier",
    "isStream": "is_stream",
    "isSeekable": "is_seekable",
    "position": "start_position",
    "sourceName": "source_name",
}


class Track(BaseModel):
    """Immutable value object representing a playable track.

    ``track`` is the opaque token the node uses to locate the media again.
    ``index`` is the 1-based position assigned when the track is queued.
    """

    model_config = ConfigDict(frozen=True)

    track: NonEmptyStr
    identifier: str = ""
    title: str = "Unknown title"
    author: str = "Unknown author"
    uri: str | None = None
    duration: DurationMs = 0
    is_stream: bool = False
    is_seekable: bool = True
    start_position: DurationMs = 0
    source_name: str | None = None
    index: PositiveInt | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_info(cls, data: Any) -> Any:
        """Accept the node shape ``{"track": ..., "info": {...}}``."""
        if not isinstance(data, dict) or "info" not in data:
            return data
        flat = {k: v for k, v in data.items() if k != "info"}
        for wire_name, field_name in _INFO_FIELDS.items():
            if wire_name in data["info"]:
                flat[field_name] = data["info"][wire_name]
        return flat

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.is_stream:
            return "LIVE"

        hours, remainder = divmod(self.duration // 1000, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    @property
    def display_title(self) -> str:
        return f"{self.title} [{self.duration_formatted}]"


class PlaylistInfo(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = None
    selected_track: int = Field(default=-1, alias="selectedTrack")


class LoadException(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str | None = None
    severity: str | None = None


class SearchResponse(BaseModel):
    """Batch result of a ``/loadtracks`` request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    load_type: LoadType = Field(alias="loadType")
    playlist_info: PlaylistInfo = Field(default_factory=PlaylistInfo, alias="playlistInfo")
    tracks: list[Track] = Field(default_factory=list)
    exception: LoadException | None = None

    @property
    def is_empty(self) -> bool:
        return not self.tracks

    @property
    def selected_track(self) -> Track | None:
        """The playlist's preselected track, if the node reported one."""
        idx = self.playlist_info.selected_track
        if 0 <= idx < len(self.tracks):
            return self.tracks[idx]
        return None
