"""
Two-stage identify-then-enrich pipeline.

Stage one turns an image source into a title via the recognition endpoint;
stage two, only for a resolved title, looks the title up in TMDB. The
result always carries the title when one was recognized: enrichment can
only add details, never replace the title with an error.

Classes:
    IdentificationResult: Title or error, plus optional media details
    TitleIdentifier: Runs the pipeline (sync or async) and drops results of
        runs that were superseded before they finished
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

try:
    from cli.lib.constants import RECOGNITION_ENDPOINT, RECOGNITION_MODEL, UNKNOWN_TITLE
    from cli.lib.errors import NO_MATCH_MESSAGE, ErrorCause, format_error
    from cli.lib.image_processing import process_image_to_base64, process_image_to_base64_async
    from cli.lib.image_source import ImageSource, ImageSourceError
    from cli.lib.media_lookup import TmdbService
    from cli.lib.media_models import MediaDetails
    from cli.lib.recognition import RecognitionResult, identify_title
except ImportError:
    from lib.constants import RECOGNITION_ENDPOINT, RECOGNITION_MODEL, UNKNOWN_TITLE
    from lib.errors import NO_MATCH_MESSAGE, ErrorCause, format_error
    from lib.image_processing import process_image_to_base64, process_image_to_base64_async
    from lib.image_source import ImageSource, ImageSourceError
    from lib.media_lookup import TmdbService
    from lib.media_models import MediaDetails
    from lib.recognition import RecognitionResult, identify_title

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentificationResult:
    """
    What the caller gets back from one pipeline run.

    Either `title` is set (a real title or "Unknown") or `error` is. When a
    title was recognized, `media_details` holds the enrichment if the lookup
    found anything, and `lookup_error` is LOOKUP_UNAVAILABLE when no media
    database was configured.
    """

    title: Optional[str] = None
    media_details: Optional[MediaDetails] = None
    error: Optional[ErrorCause] = None
    error_detail: Optional[str] = None
    lookup_error: Optional[ErrorCause] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_unknown(self) -> bool:
        return self.title == UNKNOWN_TITLE

    @property
    def display_text(self) -> str:
        if self.error is not None:
            return format_error(self.error, self.error_detail)
        if self.is_unknown:
            return NO_MATCH_MESSAGE
        return self.title

    def share_text(self) -> Optional[str]:
        if self.error is not None or not self.title or self.is_unknown:
            return None
        return f"I found this movie: {self.title}"


def _error_result(cause: ErrorCause, detail: Optional[str] = None) -> IdentificationResult:
    return IdentificationResult(error=cause, error_detail=detail)


def _recognition_error(recognition: RecognitionResult) -> IdentificationResult:
    return IdentificationResult(error=recognition.error, error_detail=recognition.detail)


class TitleIdentifier:
    """
    Identify the movie or show in an image and enrich it from TMDB.

    One instance stands for one interactive screen: starting a new async run
    (or calling `cancel`) supersedes the run in flight, whose result is then
    discarded at the next stage boundary instead of being returned.
    """

    def __init__(
        self,
        api_key: str,
        tmdb: Optional[TmdbService] = None,
        model: str = RECOGNITION_MODEL,
        endpoint: str = RECOGNITION_ENDPOINT,
    ) -> None:
        self.api_key = api_key
        self.tmdb = tmdb
        self.model = model
        self.endpoint = endpoint
        self._generation = 0

    def cancel(self) -> None:
        """Supersede any run in flight; its result will be discarded."""
        self._generation += 1

    def _recognize(self, transport_image: str) -> RecognitionResult:
        return identify_title(transport_image, self.api_key, model=self.model, endpoint=self.endpoint)

    def _enrich(self, title: str) -> IdentificationResult:
        if self.tmdb is None:
            return IdentificationResult(title=title, lookup_error=ErrorCause.LOOKUP_UNAVAILABLE)
        try:
            details = self.tmdb.lookup(title)
        except Exception:  # noqa: BLE001
            logger.warning('Media lookup for "%s" failed', title, exc_info=True)
            details = None
        return IdentificationResult(title=title, media_details=details)

    def identify(self, source: ImageSource, enrich: bool = True) -> IdentificationResult:
        """Run the whole pipeline synchronously on the calling thread."""
        try:
            image_bytes = source.read_bytes()
        except ImageSourceError as exc:
            return _error_result(exc.cause)

        transport_image = process_image_to_base64(image_bytes)
        if transport_image is None:
            return _error_result(ErrorCause.DECODE_ERROR)

        recognition = self._recognize(transport_image)
        if recognition.is_error:
            return _recognition_error(recognition)
        if recognition.is_unknown or not enrich:
            return IdentificationResult(title=recognition.title)
        return self._enrich(recognition.title)

    async def identify_async(self, source: ImageSource, enrich: bool = True) -> Optional[IdentificationResult]:
        """
        Run the pipeline without blocking the event loop.

        File reads, image normalization and both HTTP calls run on worker
        threads. Returns None when this run was superseded by a newer run or
        by `cancel()` before it completed.
        """
        self._generation += 1
        generation = self._generation

        def stale(stage: str) -> bool:
            if generation != self._generation:
                logger.debug("Discarding superseded identification run after %s", stage)
                return True
            return False

        try:
            image_bytes = await asyncio.to_thread(source.read_bytes)
        except ImageSourceError as exc:
            return None if stale("read") else _error_result(exc.cause)
        if stale("read"):
            return None

        transport_image = await process_image_to_base64_async(image_bytes)
        if stale("normalize"):
            return None
        if transport_image is None:
            return _error_result(ErrorCause.DECODE_ERROR)

        recognition = await asyncio.to_thread(self._recognize, transport_image)
        if stale("recognition"):
            return None
        if recognition.is_error:
            return _recognition_error(recognition)
        if recognition.is_unknown or not enrich:
            return IdentificationResult(title=recognition.title)

        result = await asyncio.to_thread(self._enrich, recognition.title)
        if stale("lookup"):
            return None
        return result
