"""
System clipboard access.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import pyperclip

from errors import ClipboardError

LOGGER = logging.getLogger(__name__)


class Clipboard(ABC):
    """Clipboard backend interface.

    Backends that can hold an HTML flavour next to the plain text set
    ``supports_rich`` and override ``write_rich``.
    """

    supports_rich = False

    @abstractmethod
    def read_text(self) -> str:
        """Return the clipboard text, or an empty string."""

    @abstractmethod
    def write_text(self, text: str) -> None:
        """Replace the clipboard content with plain text."""

    def write_rich(self, text: str, html: str) -> None:
        raise NotImplementedError


class SystemClipboard(Clipboard):
    """Plain-text clipboard of the desktop session, through pyperclip.

    pyperclip has no HTML flavour, so exports through this backend are
    always the Markdown source.
    """

    def read_text(self) -> str:
        try:
            return pyperclip.paste() or ""
        except pyperclip.PyperclipException as exc:
            LOGGER.error("Clipboard read failed: %s", exc)
            raise ClipboardError() from exc

    def write_text(self, text: str) -> None:
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            LOGGER.error("Clipboard write failed: %s", exc)
            raise ClipboardError(
                "Failed to copy to clipboard. Please select and copy manually."
            ) from exc
