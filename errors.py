"""
Exception hierarchy for workflow failures.

Every error carries a human-readable ``user_message`` that is shown to the
user as an Error notification.
"""

from __future__ import annotations

from typing import Optional


class WorkflowError(Exception):
    """Base class for all recoverable workflow failures."""

    default_message = "Something went wrong. Please try again."

    def __init__(self, user_message: Optional[str] = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class ValidationError(WorkflowError):
    """Required input is missing or malformed."""

    default_message = "Please check your input."


class PayloadTooLargeError(ValidationError):
    default_message = "The selected file is too large to upload."


class PreconditionError(WorkflowError):
    """A business rule required before the operation is not met."""

    default_message = "Please extract job details first"


class OperationInProgressError(PreconditionError):
    default_message = "Another operation is still running. Please wait for it to finish."


class UnsupportedFormatError(WorkflowError):
    default_message = "Please upload a PDF or Image file."


class EmptyClipboardError(WorkflowError):
    default_message = "Clipboard is empty. Copy your CV text first."


class ClipboardError(WorkflowError):
    default_message = "Failed to read clipboard. Please allow permissions."


class GenerationServiceError(WorkflowError):
    """The generation service call failed or returned nothing usable."""

    default_message = "The generation service did not return a result."


class TransportError(GenerationServiceError):
    default_message = "Could not reach the generation service."


class EmptyResponseError(GenerationServiceError):
    default_message = "No response from Gemini"


class MalformedResponseError(GenerationServiceError):
    default_message = "The generation service returned an unreadable response."


class ExtractionError(WorkflowError):
    default_message = (
        "Failed to extract job details. Please ensure the URL is valid "
        "or try pasting the details manually."
    )


class GenerationError(WorkflowError):
    default_message = "Failed to generate content. Please try again."
