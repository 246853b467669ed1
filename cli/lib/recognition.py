"""
Vision chat-completion client that names the movie or show in an image.

One call to `identify_title` makes exactly one HTTP POST. The HTTP status
code and any transport failure are folded into a RecognitionResult, which
holds either a title (possibly the literal "Unknown") or an ErrorCause.
Nothing is retried here; retrying is up to the caller.
"""

import logging
from dataclasses import dataclass

import requests

try:
    from cli.lib.constants import (
        RECOGNITION_ENDPOINT,
        RECOGNITION_MODEL,
        RECOGNITION_TIMEOUT_SECONDS,
        UNKNOWN_TITLE,
    )
    from cli.lib.errors import ErrorCause, format_error
except ImportError:
    from lib.constants import (
        RECOGNITION_ENDPOINT,
        RECOGNITION_MODEL,
        RECOGNITION_TIMEOUT_SECONDS,
        UNKNOWN_TITLE,
    )
    from lib.errors import ErrorCause, format_error

logger = logging.getLogger(__name__)

RECOGNITION_PROMPT = (
    "Please analyze this movie poster or still frame and identify the movie title.\n"
    "If you can identify the movie with high confidence, respond with just the title.\n"
    'If you\'re not sure, respond with "Unknown".\n'
    'Avoid explaining or describing what you see - just return the title or "Unknown".'
)


@dataclass(frozen=True)
class RecognitionResult:
    """
    Outcome of one recognition call.

    Exactly one of `title` and `error` is set. A title equal to "Unknown"
    means the model answered but could not name anything.
    """

    title: str | None = None
    error: ErrorCause | None = None
    detail: str | None = None

    @classmethod
    def success(cls, title: str) -> "RecognitionResult":
        return cls(title=title)

    @classmethod
    def failure(cls, cause: ErrorCause, detail: object = None) -> "RecognitionResult":
        return cls(error=cause, detail=None if detail is None else str(detail))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_unknown(self) -> bool:
        return self.title == UNKNOWN_TITLE

    @property
    def message(self) -> str:
        """The title, or the "Error: ..." text for a failed call."""
        if self.error is not None:
            return format_error(self.error, self.detail)
        return self.title


def build_request_body(transport_image: str, model: str = RECOGNITION_MODEL) -> dict:
    """Build the chat-completion JSON body carrying the prompt and the image data URL."""
    return {
        "model": model,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": RECOGNITION_PROMPT},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:image/jpeg;base64,{transport_image}"},
                    },
                ],
            }
        ],
    }


def _extract_title(response: requests.Response) -> RecognitionResult:
    try:
        content = response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        logger.debug("Malformed recognition response: %s", exc)
        return RecognitionResult.failure(ErrorCause.MALFORMED_RESPONSE)

    if not isinstance(content, str):
        logger.debug("Recognition response content is %s, not text", type(content).__name__)
        return RecognitionResult.failure(ErrorCause.MALFORMED_RESPONSE)

    title = content.strip()
    # An empty answer names nothing, same as the model saying "Unknown"
    return RecognitionResult.success(title or UNKNOWN_TITLE)


def map_response(response: requests.Response) -> RecognitionResult:
    """Map an HTTP response from the recognition endpoint to a RecognitionResult."""
    status = response.status_code
    if status == 200:
        return _extract_title(response)
    if status in (400, 422):
        return RecognitionResult.failure(ErrorCause.UNSUPPORTED_MODEL_INPUT)
    if status == 401:
        return RecognitionResult.failure(ErrorCause.AUTH_ERROR)
    if status == 429:
        return RecognitionResult.failure(ErrorCause.RATE_LIMITED)
    if status >= 500:
        return RecognitionResult.failure(ErrorCause.SERVICE_UNAVAILABLE)
    return RecognitionResult.failure(ErrorCause.UNEXPECTED_STATUS, status)


def identify_title(
    transport_image: str,
    api_key: str,
    *,
    model: str = RECOGNITION_MODEL,
    endpoint: str = RECOGNITION_ENDPOINT,
    timeout: float = RECOGNITION_TIMEOUT_SECONDS,
) -> RecognitionResult:
    """
    Ask the vision model which movie or show the image is from.

    Args:
        transport_image: Base64 JPEG text (see image_processing.encode_transport)
        api_key: Bearer token for the recognition endpoint
        model: Model identifier sent in the request body
        endpoint: Chat-completions URL
        timeout: Deadline in seconds for the whole request

    Returns:
        RecognitionResult with the trimmed title, "Unknown", or an error cause.
    """
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    body = build_request_body(transport_image, model=model)

    try:
        response = requests.post(endpoint, headers=headers, json=body, timeout=timeout)
    except requests.exceptions.Timeout:
        logger.debug("Recognition request timed out after %ss", timeout)
        return RecognitionResult.failure(ErrorCause.TIMEOUT)
    except requests.exceptions.ConnectionError as exc:
        logger.debug("Recognition request failed to connect: %s", exc)
        return RecognitionResult.failure(ErrorCause.NETWORK_ERROR)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Recognition request failed", exc_info=True)
        return RecognitionResult.failure(ErrorCause.OTHER, exc)

    logger.debug("Recognition endpoint answered %s", response.status_code)
    return map_response(response)
