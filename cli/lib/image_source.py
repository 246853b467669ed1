"""
Where the pipeline's raw image bytes come from.

An image source is either an in-memory byte buffer or a file on disk whose
bytes are read lazily when the pipeline asks for them. Images given by URL
are downloaded once into a BytesImageSource by `fetch_image_from_url`.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import requests

try:
    from cli.lib.constants import IMAGE_FETCH_TIMEOUT_SECONDS
    from cli.lib.errors import ErrorCause
except ImportError:
    from lib.constants import IMAGE_FETCH_TIMEOUT_SECONDS
    from lib.errors import ErrorCause

logger = logging.getLogger(__name__)


class ImageSourceError(Exception):
    """Raised when an image source cannot produce any bytes."""

    def __init__(self, cause: ErrorCause, detail: str | None = None):
        super().__init__(detail or cause.describe())
        self.cause = cause


@dataclass(frozen=True)
class BytesImageSource:
    data: bytes

    def read_bytes(self) -> bytes:
        if not self.data:
            raise ImageSourceError(ErrorCause.NO_IMAGE_DATA)
        return self.data


@dataclass(frozen=True)
class FileImageSource:
    path: Path

    def read_bytes(self) -> bytes:
        try:
            data = Path(self.path).read_bytes()
        except OSError as exc:
            logger.debug("Failed to read image file %s: %s", self.path, exc)
            raise ImageSourceError(ErrorCause.IMAGE_READ_FAILED, str(exc)) from exc
        if not data:
            raise ImageSourceError(ErrorCause.NO_IMAGE_DATA)
        return data


ImageSource = BytesImageSource | FileImageSource


def fetch_image_from_url(url: str, timeout: float = IMAGE_FETCH_TIMEOUT_SECONDS) -> BytesImageSource:
    """
    Download an image and wrap its bytes in a BytesImageSource.

    Raises:
        ImageSourceError: NO_IMAGE_DATA for an empty URL, IMAGE_FETCH_FAILED
            for a non-200 response or any transport failure.
    """
    url = (url or "").strip()
    if not url:
        raise ImageSourceError(ErrorCause.NO_IMAGE_DATA)

    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        logger.debug("Image download from %s failed: %s", url, exc)
        raise ImageSourceError(ErrorCause.IMAGE_FETCH_FAILED, str(exc)) from exc

    if response.status_code != 200:
        logger.debug("Image download from %s returned %s", url, response.status_code)
        raise ImageSourceError(ErrorCause.IMAGE_FETCH_FAILED)

    return BytesImageSource(response.content)
