from dataclasses import dataclass, field
from typing import Any, Optional

try:
    from cli.lib.constants import POSTER_SIZE, PROFILE_SIZE, TMDB_IMAGE_BASE_URL
except ImportError:
    from lib.constants import POSTER_SIZE, PROFILE_SIZE, TMDB_IMAGE_BASE_URL

MEDIA_TYPES = ("movie", "tv")


def image_url(path: Optional[str], size: str) -> Optional[str]:
    """Join a TMDB relative image path onto the CDN base with a size token."""
    if not path:
        return None
    return f"{TMDB_IMAGE_BASE_URL}{size}{path}"


@dataclass(frozen=True)
class MediaMatch:
    """
    The single search hit chosen for a recognized title.

    Fields:
        media_type: "movie" or "tv".
        id: TMDB numeric id for that media type.
    """

    media_type: str
    id: int


@dataclass
class CastMember:
    """
    One surfaced cast entry.

    `billing` is the signal the entry was sorted by: the credit order for a
    movie, the total episode count for a series.
    """

    name: str
    character: Optional[str] = None
    profile_path: Optional[str] = None
    billing: Optional[int] = None

    @property
    def profile_url(self) -> Optional[str]:
        return image_url(self.profile_path, PROFILE_SIZE)


@dataclass
class MediaDetails:
    """
    Enriched metadata for a movie or TV series.

    Exactly one of {runtime} (movie) or {number_of_seasons,
    number_of_episodes, episode_run_time} (tv) is populated, depending on
    media_type. `cast` holds at most the top-billed entries; `videos` keeps
    the raw video list the trailer was chosen from.
    """

    media_type: str
    id: int
    title: str
    overview: Optional[str] = None
    poster_path: Optional[str] = None
    vote_average: Optional[float] = None
    release_date: Optional[str] = None
    genres: list[str] = field(default_factory=list)

    runtime: Optional[int] = None
    number_of_seasons: Optional[int] = None
    number_of_episodes: Optional[int] = None
    episode_run_time: Optional[list[int]] = None

    cast: list[CastMember] = field(default_factory=list)
    videos: list[dict[str, Any]] = field(default_factory=list)
    trailer_url: Optional[str] = None

    @property
    def is_movie(self) -> bool:
        return self.media_type == "movie"

    @property
    def year(self) -> Optional[str]:
        if not self.release_date:
            return None
        return self.release_date.split("-")[0]

    @property
    def poster_url(self) -> Optional[str]:
        return image_url(self.poster_path, POSTER_SIZE)
