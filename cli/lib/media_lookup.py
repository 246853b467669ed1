"""
TMDB (The Movie Database) lookup client.

Resolves a recognized title to a single movie or TV match and fetches its
details with credits and videos appended in the same round trip. Every
public method returns None on any transport or parse failure, so a failed
lookup never disturbs the title it was enriching.

Classes:
    TmdbService: Thin wrapper over the TMDB v3 REST API using requests
"""

import logging
from typing import Any, Optional

import requests

try:
    from cli.lib.constants import TMDB_BASE_URL, TMDB_TIMEOUT_SECONDS
    from cli.lib.enrichment import select_trailer_url, shape_media_details
    from cli.lib.media_models import MEDIA_TYPES, MediaDetails, MediaMatch
except ImportError:
    from lib.constants import TMDB_BASE_URL, TMDB_TIMEOUT_SECONDS
    from lib.enrichment import select_trailer_url, shape_media_details
    from lib.media_models import MEDIA_TYPES, MediaDetails, MediaMatch

logger = logging.getLogger(__name__)

# Failures a single TMDB call may raise; all of them mean "no data"
LOOKUP_ERRORS = (
    requests.exceptions.RequestException,
    AttributeError,
    KeyError,
    TypeError,
    ValueError,
)


class TmdbService:
    """
    Client for the TMDB v3 API.

    Attributes:
        api_key: TMDB v3 API key, sent as the `api_key` query parameter
        read_access_token: Optional TMDB v4 read access token; when set it is
            sent as a Bearer token instead of the query parameter
        base_url: API root, defaults to https://api.themoviedb.org/3
        timeout: Per-request timeout in seconds
    """

    def __init__(
        self,
        api_key: str,
        read_access_token: str = "",
        base_url: str = TMDB_BASE_URL,
        timeout: float = TMDB_TIMEOUT_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.read_access_token = read_access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, params: Optional[dict] = None) -> dict[str, Any]:
        """
        GET `path` and return the decoded JSON object.

        Raises requests exceptions for transport errors and non-2xx statuses,
        and ValueError when the body is not a JSON object.
        """
        params = dict(params or {})
        headers = {"Accept": "application/json"}
        if self.read_access_token:
            headers["Authorization"] = f"Bearer {self.read_access_token}"
        else:
            params["api_key"] = self.api_key

        response = requests.get(
            f"{self.base_url}{path}",
            params=params,
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {path}, got {type(payload).__name__}")
        return payload

    def _first_result(self, path: str, query: str) -> Optional[dict]:
        try:
            results = self._get(path, {"query": query}).get("results") or []
        except LOOKUP_ERRORS as exc:
            logger.warning('Error searching %s for "%s": %s', path, query, exc)
            return None
        if not isinstance(results, list) or not results:
            return None
        return results[0]

    def search_movie(self, title: str) -> Optional[dict]:
        """Return the first movie search result for `title`, or None."""
        return self._first_result("/search/movie", title)

    def search_tv(self, title: str) -> Optional[dict]:
        """Return the first TV search result for `title`, or None."""
        return self._first_result("/search/tv", title)

    def search_multi(self, query: str) -> Optional[MediaMatch]:
        """
        Search movies and TV shows together and pick one match.

        Results of other kinds (people, collections) are dropped; the first
        remaining result in the endpoint's own ranking wins.

        Returns:
            MediaMatch for that result, or None if nothing qualifies or the
            request failed.
        """
        try:
            results = self._get("/search/multi", {"query": query}).get("results") or []
            for item in results:
                if item.get("media_type") in MEDIA_TYPES and item.get("id") is not None:
                    return MediaMatch(media_type=item["media_type"], id=int(item["id"]))
        except LOOKUP_ERRORS as exc:
            logger.warning('Error searching for "%s": %s', query, exc)
            return None

        logger.debug('No movie or TV result for "%s"', query)
        return None

    def _details(self, media_type: str, media_id: int, append: str = "") -> Optional[dict]:
        params = {"append_to_response": append} if append else None
        try:
            return self._get(f"/{media_type}/{media_id}", params)
        except LOOKUP_ERRORS as exc:
            logger.warning("Error fetching %s details for ID %s: %s", media_type, media_id, exc)
            return None

    def get_movie_details(self, movie_id: int) -> Optional[dict]:
        return self._details("movie", movie_id)

    def get_tv_details(self, tv_id: int) -> Optional[dict]:
        return self._details("tv", tv_id)

    def get_movie_details_with_extras(self, movie_id: int) -> Optional[dict]:
        """Movie details with `credits` and `videos` appended."""
        return self._details("movie", movie_id, "credits,videos")

    def get_tv_details_with_extras(self, tv_id: int) -> Optional[dict]:
        """Series details with series-wide `aggregate_credits` and `videos` appended."""
        return self._details("tv", tv_id, "aggregate_credits,videos")

    def get_movie_credits(self, movie_id: int) -> Optional[dict]:
        details = self._details("movie", movie_id, "credits")
        return None if details is None else details.get("credits")

    def get_tv_credits(self, tv_id: int) -> Optional[dict]:
        details = self._details("tv", tv_id, "aggregate_credits")
        return None if details is None else details.get("aggregate_credits")

    def get_videos(self, media_type: str, media_id: int) -> Optional[dict]:
        """Return the `videos` object for a movie or series; None for any other media type."""
        if media_type not in MEDIA_TYPES:
            logger.warning('Invalid media type: %s. Must be "movie" or "tv"', media_type)
            return None
        details = self._details(media_type, media_id, "videos")
        return None if details is None else details.get("videos")

    def get_trailer_url(self, details: Optional[dict]) -> Optional[str]:
        """YouTube URL of the best trailer in a raw details payload, or None."""
        if not details or not details.get("videos"):
            return None
        return select_trailer_url(details["videos"].get("results"))

    def fetch_details(self, match: MediaMatch) -> Optional[MediaDetails]:
        """
        Fetch and shape enriched details for a search match.

        Movies get `credits` and `videos`; series get `aggregate_credits` and
        `videos`. Returns None if the request or shaping fails.
        """
        if match.media_type == "movie":
            data = self.get_movie_details_with_extras(match.id)
        elif match.media_type == "tv":
            data = self.get_tv_details_with_extras(match.id)
        else:
            logger.warning("Unsupported media type %s for ID %s", match.media_type, match.id)
            return None

        if data is None:
            return None
        try:
            return shape_media_details(match.media_type, data)
        except LOOKUP_ERRORS as exc:
            logger.warning("Could not shape %s details for ID %s: %s", match.media_type, match.id, exc)
            return None

    def lookup(self, title: str) -> Optional[MediaDetails]:
        """Search for `title` and fetch details for the match, or None."""
        match = self.search_multi(title)
        if match is None:
            return None
        return self.fetch_details(match)
