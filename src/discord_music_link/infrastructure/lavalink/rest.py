"""HTTP client for a node's track-loading endpoint."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final

import httpx

from discord_music_link.domain.music.entities import SearchResponse
from discord_music_link.domain.shared.exceptions import TrackLoadError
from discord_music_link.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from .node import NodeConnection

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: Final[float] = 10.0
LOAD_TRACKS_PATH: Final[str] = "/loadtracks"

_URL_RE = re.compile(r"^https?://")


def build_search_identifier(query: str, source: str) -> str:
    """Prefix bare queries with ``<source>search:``; URLs pass through verbatim."""
    if _URL_RE.match(query):
        return query
    return f"{source}search:{query}"


class LavalinkRestClient:
    """Issues ``GET /loadtracks`` against a node. Failures are not retried."""

    def __init__(
        self, client: httpx.AsyncClient | None = None, *, timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None

    async def load_tracks(self, node: NodeConnection, identifier: str) -> SearchResponse:
        """Resolve ``identifier`` on ``node``.

        Raises:
            TrackLoadError: On transport errors, non-2xx answers or an unparseable body.
        """
        logger.debug(LogTemplates.TRACKS_FETCHING, identifier, node.identifier)
        try:
            response = await self._client.get(
                f"{node.rest_url}{LOAD_TRACKS_PATH}",
                params={"identifier": identifier},
                headers={"Authorization": node.password},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            cause = ErrorMessages.TRACK_LOAD_BAD_STATUS.format(status=e.response.status_code)
            logger.warning(LogTemplates.TRACKS_FETCH_FAILED, identifier, cause)
            raise TrackLoadError(identifier, cause) from e
        except httpx.HTTPError as e:
            logger.warning(LogTemplates.TRACKS_FETCH_FAILED, identifier, repr(e))
            raise TrackLoadError(identifier, repr(e)) from e

        try:
            result = SearchResponse.model_validate(response.json())
        except ValueError as e:
            cause = ErrorMessages.TRACK_LOAD_BAD_BODY.format(error=e)
            logger.warning(LogTemplates.TRACKS_FETCH_FAILED, identifier, cause)
            raise TrackLoadError(identifier, cause) from e

        logger.debug(LogTemplates.TRACKS_FETCHED, len(result.tracks), identifier, result.load_type)
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
