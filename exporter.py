"""
Export utilities: Markdown download, clipboard copy and print preview.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import Optional

from markdown_it import MarkdownIt

from clipboard import Clipboard
from data_models import BufferKind, DocumentBuffer
from errors import ClipboardError

LOGGER = logging.getLogger(__name__)

MARKDOWN_CONTENT_TYPE = "text/markdown"
EXPORT_FILENAMES = {
    BufferKind.RESUME: "optimized_cv.md",
    BufferKind.COVER_LETTER: "cover_letter.md",
}
PREVIEW_FILENAMES = {
    BufferKind.RESUME: "optimized_cv.html",
    BufferKind.COVER_LETTER: "cover_letter.html",
}

# GitHub-style tables and strikethrough; raw HTML is escaped and unsafe link schemes are dropped
_MARKDOWN = MarkdownIt("commonmark", {"html": False}).enable(["table", "strikethrough"])


@dataclass(frozen=True)
class ExportedFile:
    path: Path
    content_type: str = MARKDOWN_CONTENT_TYPE


def export_filename(kind: BufferKind) -> str:
    return EXPORT_FILENAMES[BufferKind(kind)]


def export_as_file(buffer: DocumentBuffer, output_dir: Path) -> ExportedFile:
    """
    Save a buffer as a Markdown file with the fixed name for its kind.

    Args:
        buffer: Resume or cover letter buffer.
        output_dir: Destination directory, created if missing.

    Returns:
        ExportedFile describing the written file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / export_filename(buffer.kind)
    output_path.write_text(buffer.content, encoding="utf-8")
    LOGGER.info("Wrote %s to %s", buffer.kind.value, output_path)
    return ExportedFile(path=output_path)


def render_markdown_html(markdown_text: str) -> str:
    """
    Render buffer Markdown as an HTML fragment for the rich clipboard copy and print page.

    Args:
        markdown_text: Buffer content.

    Returns:
        HTML fragment; inline HTML in the source is escaped.
    """
    return _MARKDOWN.render(markdown_text).strip()


def export_to_clipboard(
    buffer: DocumentBuffer, clipboard: Clipboard, rendered_html: Optional[str] = None
) -> bool:
    """
    Copy a buffer to the clipboard.

    Writes the HTML and plain-text flavours together when the backend can
    hold both, otherwise the plain Markdown only.

    Args:
        buffer: Buffer to copy.
        clipboard: Clipboard backend.
        rendered_html: Rendered preview of the buffer; derived from the Markdown when omitted.

    Returns:
        True when the rich representation was written.

    Raises:
        ClipboardError: The backend refused the write.
    """
    try:
        if clipboard.supports_rich:
            html = rendered_html if rendered_html is not None else render_markdown_html(buffer.content)
            clipboard.write_rich(buffer.content, html)
            LOGGER.debug("Copied %s as HTML + text (%d chars)", buffer.kind.value, len(buffer.content))
            return True
        clipboard.write_text(buffer.content)
        LOGGER.debug("Copied %s as plain text (%d chars)", buffer.kind.value, len(buffer.content))
        return False
    except ClipboardError:
        raise
    except Exception as exc:
        LOGGER.error("Clipboard write failed: %s", exc)
        raise ClipboardError("Failed to copy to clipboard. Please select and copy manually.") from exc


def write_print_preview(buffer: DocumentBuffer, output_dir: Path) -> Path:
    """
    Write a standalone, print-styled HTML page for a buffer.

    Args:
        buffer: Buffer to render.
        output_dir: Destination directory, created if missing.

    Returns:
        Path of the HTML file.
    """
    title = "Optimized CV" if buffer.kind is BufferKind.RESUME else "Cover Letter"
    body = render_markdown_html(buffer.content)
    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{escape(title)}</title>
    <style>
        body {{
            font-family: Georgia, "Times New Roman", serif;
            color: #1f2937;
            max-width: 800px;
            margin: 2rem auto;
            line-height: 1.5;
        }}
        h1 {{
            font-size: 2rem;
            margin-bottom: 0.25rem;
        }}
        h2 {{
            border-bottom: 1px solid #d1d5db;
            padding-bottom: 0.25rem;
            margin-top: 1.5rem;
        }}
        a {{
            color: #1d4ed8;
        }}
        @media print {{
            body {{
                margin: 0;
                max-width: none;
            }}
            @page {{
                margin: 1.5cm;
            }}
        }}
    </style>
</head>
<body onload="window.print()">
{body}
</body>
</html>
"""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / PREVIEW_FILENAMES[buffer.kind]
    output_path.write_text(html, encoding="utf-8")
    LOGGER.info("Wrote print preview to %s", output_path)
    return output_path
