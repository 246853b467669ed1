"""
Post-processing of TMDB detail payloads.

Pure functions: cast ordering by billing (movie) or episode count (series),
character resolution, trailer selection, and shaping a raw detail payload
into a MediaDetails record.
"""

from typing import Any, Optional

try:
    from cli.lib.constants import (
        MISSING_CAST_ORDER,
        MISSING_EPISODE_COUNT,
        TOP_CAST_LIMIT,
        YOUTUBE_WATCH_URL,
    )
    from cli.lib.media_models import CastMember, MediaDetails
except ImportError:
    from lib.constants import (
        MISSING_CAST_ORDER,
        MISSING_EPISODE_COUNT,
        TOP_CAST_LIMIT,
        YOUTUBE_WATCH_URL,
    )
    from lib.media_models import CastMember, MediaDetails

TRAILER_TYPES = ("Trailer", "Teaser")


def _billing_value(entry: dict, media_type: str) -> int:
    if media_type == "movie":
        order = entry.get("order")
        return MISSING_CAST_ORDER if order is None else order
    count = entry.get("total_episode_count")
    return MISSING_EPISODE_COUNT if count is None else count


def sort_cast(cast: list[dict], media_type: str) -> list[dict]:
    """
    Sort cast entries in place by billing and return the same list.

    Movies sort ascending by `order` (missing -> 9999, i.e. last). Series
    sort descending by `total_episode_count` (missing -> 0, i.e. last).
    """
    if media_type == "movie":
        cast.sort(key=lambda entry: _billing_value(entry, media_type))
    else:
        cast.sort(key=lambda entry: _billing_value(entry, media_type), reverse=True)
    return cast


def top_cast(cast: list[dict], media_type: str, limit: int = TOP_CAST_LIMIT) -> list[dict]:
    return sort_cast(cast, media_type)[:limit]


def resolve_character(entry: dict) -> Optional[str]:
    """
    Character name for a cast entry.

    Uses the entry's own `character`; series entries from aggregate credits
    carry it on their `roles` list instead, so fall back to the first role.
    """
    character = entry.get("character")
    if character:
        return character
    roles = entry.get("roles") or []
    if roles:
        return roles[0].get("character") or None
    return None


def _trailer_candidates(videos: list[dict]) -> list[dict]:
    return [
        video for video in videos
        if video.get("site") == "YouTube" and video.get("type") in TRAILER_TYPES
    ]


def select_trailer(videos: Optional[list[dict]]) -> Optional[dict]:
    """
    Pick the best YouTube trailer or teaser from a TMDB `videos.results` list.

    Ranking, in priority order: "Trailer" before "Teaser", official before
    unofficial, newest `published_at` first. Equal entries keep their
    original relative order.
    """
    candidates = _trailer_candidates(videos or [])
    if not candidates:
        return None

    # Stable sorts: newest first, then the higher-priority keys on top
    candidates.sort(key=lambda video: video.get("published_at") or "", reverse=True)
    candidates.sort(key=lambda video: (video.get("type") != "Trailer", not video.get("official", False)))
    return candidates[0]


def select_trailer_url(videos: Optional[list[dict]]) -> Optional[str]:
    trailer = select_trailer(videos)
    if trailer is None or not trailer.get("key"):
        return None
    return f"{YOUTUBE_WATCH_URL}{trailer['key']}"


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    section = data.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise TypeError(f"Expected an object for '{key}', got {type(section).__name__}")
    return section


def _cast_members(cast: list[dict], media_type: str) -> list[CastMember]:
    return [
        CastMember(
            name=entry.get("name") or "",
            character=resolve_character(entry),
            profile_path=entry.get("profile_path"),
            billing=entry.get("order") if media_type == "movie" else entry.get("total_episode_count"),
        )
        for entry in top_cast(list(cast), media_type)
    ]


def shape_media_details(media_type: str, data: dict[str, Any]) -> MediaDetails:
    """
    Turn a TMDB detail payload (with appended credits and videos) into MediaDetails.

    Movies read `title`, `release_date`, `runtime` and `credits.cast`; series
    read `name`, `first_air_date`, the season/episode counts and
    `aggregate_credits.cast`.

    Raises:
        ValueError: If `media_type` is neither "movie" nor "tv".
    """
    if media_type not in ("movie", "tv"):
        raise ValueError(f"Invalid media type: {media_type}. Must be 'movie' or 'tv'")

    is_movie = media_type == "movie"
    credits_key = "credits" if is_movie else "aggregate_credits"
    cast = _section(data, credits_key).get("cast") or []
    videos = _section(data, "videos").get("results") or []

    details = MediaDetails(
        media_type=media_type,
        id=data["id"],
        title=(data.get("title") if is_movie else data.get("name")) or "",
        overview=data.get("overview") or None,
        poster_path=data.get("poster_path"),
        vote_average=data.get("vote_average"),
        release_date=(data.get("release_date") if is_movie else data.get("first_air_date")) or None,
        genres=[genre["name"] for genre in data.get("genres") or [] if genre.get("name")],
        cast=_cast_members(cast, media_type),
        videos=videos,
        trailer_url=select_trailer_url(videos),
    )
    if is_movie:
        details.runtime = data.get("runtime")
    else:
        details.number_of_seasons = data.get("number_of_seasons")
        details.number_of_episodes = data.get("number_of_episodes")
        details.episode_run_time = data.get("episode_run_time") or []
    return details
