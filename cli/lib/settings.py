"""
Environment-driven configuration.

Values are read from the process environment after loading a local .env
file with python-dotenv:

    MISTRAL_API_KEY          recognition endpoint key (required)
    RECOGNITION_MODEL        model identifier override
    RECOGNITION_ENDPOINT     chat-completions URL override
    TMDB_API_KEY             TMDB v3 key (optional; no enrichment without it)
    TMDB_READ_ACCESS_TOKEN   TMDB v4 read access token (optional)
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv

try:
    from cli.lib.constants import RECOGNITION_ENDPOINT, RECOGNITION_MODEL
    from cli.lib.media_lookup import TmdbService
except ImportError:
    from lib.constants import RECOGNITION_ENDPOINT, RECOGNITION_MODEL
    from lib.media_lookup import TmdbService

logger = logging.getLogger(__name__)


def get_recognition_api_key() -> str:
    """
    Load the recognition API key from the environment.

    Raises:
        ValueError: If MISTRAL_API_KEY environment variable is not set
    """
    load_dotenv()
    api_key = os.environ.get("MISTRAL_API_KEY")
    if not api_key:
        raise ValueError("MISTRAL_API_KEY environment variable is not set")
    return api_key


def get_recognition_model() -> str:
    load_dotenv()
    return os.environ.get("RECOGNITION_MODEL") or RECOGNITION_MODEL


def get_recognition_endpoint() -> str:
    load_dotenv()
    return os.environ.get("RECOGNITION_ENDPOINT") or RECOGNITION_ENDPOINT


def get_tmdb_service() -> Optional[TmdbService]:
    """
    Build a TmdbService from the environment.

    Returns None (and logs a warning) when TMDB_API_KEY is not set; callers
    treat that as "lookup unavailable", not as an error.
    """
    load_dotenv()
    api_key = os.environ.get("TMDB_API_KEY")
    if not api_key:
        logger.warning("TMDB_API_KEY not set; movie details will be unavailable")
        return None
    return TmdbService(api_key, read_access_token=os.environ.get("TMDB_READ_ACCESS_TOKEN", ""))
