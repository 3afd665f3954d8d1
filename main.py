"""
CLI entry point for the CV tailoring assistant.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from clipboard import SystemClipboard
from config import DEFAULT_CONFIG_PATH, load_settings
from data_models import BufferKind, OperationResult
from llm_handler import GeminiClient
from resume_loader import load_upload
from workflow import WorkflowCoordinator


class TruncatingFormatter(logging.Formatter):
    """Formatter that truncates log messages to a maximum length."""

    def __init__(self, max_length: int = 200, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_length = max_length

    def format(self, record):
        formatted = super().format(record)
        if len(formatted) > self.max_length:
            formatted = formatted[:self.max_length] + "... (truncated)"
        return formatted


def configure_logging(settings) -> None:
    """
    Configure logging according to settings.

    Args:
        settings: Application settings dataclass.
    """
    log_format = settings.log_format or "%(asctime)s [%(levelname)s] %(message)s"
    datefmt = settings.log_date_format or "%Y-%m-%d %H:%M:%S"

    console_formatter = TruncatingFormatter(max_length=200, fmt=log_format, datefmt=datefmt)
    file_formatter = logging.Formatter(fmt=log_format, datefmt=datefmt)

    handlers = []
    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # Suppress verbose HTTP logging from various libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.WARNING)
    logging.getLogger("selenium").setLevel(logging.WARNING)
    logging.getLogger("selenium.webdriver").setLevel(logging.WARNING)
    logging.getLogger("selenium.webdriver.remote").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("grpc").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cv-tailor",
        description="Tailor a CV and cover letter to a job posting with Gemini.",
    )
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="JSON config file")
    parser.add_argument("--url", help="Job posting URL to extract details from")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--resume", type=Path, help="Resume PDF or image to import")
    source.add_argument("--paste", action="store_true", help="Import resume text from the clipboard")
    source.add_argument("--resume-markdown", type=Path, help="Use a Markdown resume as-is")
    parser.add_argument("--optimize", action="store_true", help="Rewrite the resume for the job")
    parser.add_argument("--cover-letter", action="store_true", help="Draft a cover letter")
    parser.add_argument("--save", action="store_true", help="Save resume and cover letter as Markdown")
    parser.add_argument(
        "--copy",
        choices=[kind.value for kind in BufferKind],
        help="Copy a document to the clipboard",
    )
    parser.add_argument(
        "--print",
        dest="print_kind",
        choices=[kind.value for kind in BufferKind],
        help="Open a printable page for a document",
    )
    return parser


async def run_session(coordinator: WorkflowCoordinator, args: argparse.Namespace) -> List[OperationResult]:
    """
    Run the requested operations in order against one session.

    Args:
        coordinator: Coordinator owning the session.
        args: Parsed command-line arguments.

    Returns:
        Results of every operation that was attempted.
    """
    results: List[OperationResult] = []

    if args.resume_markdown:
        coordinator.edit_buffer(BufferKind.RESUME, args.resume_markdown.read_text(encoding="utf-8"))
    elif args.resume:
        results.append(await coordinator.import_resume_file(load_upload(args.resume)))
    elif args.paste:
        results.append(await coordinator.import_resume_from_clipboard())

    if args.url:
        results.append(await coordinator.extract_job_details(args.url))
    if args.optimize:
        results.append(await coordinator.optimize_resume())
    if args.cover_letter:
        results.append(await coordinator.generate_cover_letter())

    if args.save:
        for kind in BufferKind:
            coordinator.set_active_tab(kind)
            results.append(coordinator.export_file())
    if args.copy:
        coordinator.set_active_tab(BufferKind(args.copy))
        results.append(coordinator.export_to_clipboard())
    if args.print_kind:
        coordinator.set_active_tab(BufferKind(args.print_kind))
        results.append(coordinator.prepare_print())

    return results


def main(argv: Optional[List[str]] = None) -> None:
    """Execute the CV tailoring workflow."""
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Configuration error: %s", exc)
        sys.exit(1)

    configure_logging(settings)
    logging.info("Starting CV tailoring assistant")

    try:
        coordinator = WorkflowCoordinator.from_settings(
            settings, GeminiClient.from_settings(settings), clipboard=SystemClipboard()
        )
        results = asyncio.run(run_session(coordinator, args))
    except Exception as exc:
        logging.exception("Fatal error occurred: %s", exc)
        sys.exit(1)

    failed = [result.operation for result in results if not result.ok]
    if failed:
        logging.error("Finished with failures: %s", ", ".join(failed))
        sys.exit(1)
    logging.info("Finished run successfully. Output directory: %s", settings.output_dir)


if __name__ == "__main__":
    main()
