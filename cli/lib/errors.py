"""
Error taxonomy for the identification pipeline.

Every failure the pipeline can report is one of the ErrorCause members
below. None of them is fatal to the process: each carries a message that can
be shown to the user as-is, prefixed with "Error: " by `format_error`.

A recognition answer of "Unknown" is not an error; it is reported through
NO_MATCH_MESSAGE instead.
"""

from enum import Enum


NO_MATCH_MESSAGE = "Sorry, couldn't find a title for that one!"


class ErrorCause(Enum):
    """Causes of a failed identification, each with its user-facing message."""

    # image source / normalization
    NO_IMAGE_DATA = "No image data available"
    IMAGE_READ_FAILED = "Failed to read image file"
    IMAGE_FETCH_FAILED = "Failed to fetch image from URL"
    DECODE_ERROR = "Failed to process image"

    # recognition endpoint
    UNSUPPORTED_MODEL_INPUT = (
        "The selected model does not support image input. "
        "Please contact support for assistance."
    )
    AUTH_ERROR = "Invalid or expired API key. Please check your credentials."
    RATE_LIMITED = "Rate limit exceeded. Please try again in a few minutes."
    SERVICE_UNAVAILABLE = "The AI service is temporarily unavailable. Please try again later."
    UNEXPECTED_STATUS = "Unexpected response ({detail}). Please try again."
    TIMEOUT = "Request timed out. Please check your connection and try again."
    NETWORK_ERROR = "Network connection failed. Please check your internet connection."
    MALFORMED_RESPONSE = "Invalid response from server. Please try again."
    OTHER = "{detail}"

    # media database
    LOOKUP_UNAVAILABLE = "Movie database is not configured; details are unavailable."

    def describe(self, detail: object = None) -> str:
        """Render the message for this cause, filling in `detail` where the message takes one."""
        if "{detail}" in self.value:
            return self.value.format(detail="" if detail is None else detail)
        return self.value


class ImageDecodeError(ValueError):
    """Raised when input bytes cannot be decoded as a raster image."""


def format_error(cause: ErrorCause, detail: object = None) -> str:
    return f"Error: {cause.describe(detail)}"
