"""
Session state and the coordinator that runs every user-triggered operation.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import webbrowser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from clipboard import Clipboard
from data_models import (
    DEFAULT_CL_PLACEHOLDER,
    DEFAULT_CV_PLACEHOLDER,
    BufferKind,
    DocumentBuffer,
    JobDetails,
    OperationResult,
    OperationStatus,
    Severity,
    UploadedFile,
    ViewMode,
)
from errors import (
    ClipboardError,
    ExtractionError,
    GenerationError,
    GenerationServiceError,
    OperationInProgressError,
    PreconditionError,
    ValidationError,
    WorkflowError,
)
from exporter import export_as_file, export_to_clipboard, write_print_preview
from notifications import NotificationManager
from resume_loader import check_upload, encode_upload, normalize_pasted_text
from web_scraper import fetch_job_page_text

LOGGER = logging.getLogger(__name__)

CLIPBOARD_FAILURE = "Failed to copy to clipboard. Please select and copy manually."


@dataclass
class Session:
    """Everything the user is working on, owned by a single coordinator."""

    url: str = ""
    company_profile: str = ""
    job_description: str = ""
    other_details: str = ""
    resume: DocumentBuffer = field(
        default_factory=lambda: DocumentBuffer(BufferKind.RESUME, DEFAULT_CV_PLACEHOLDER)
    )
    cover_letter: DocumentBuffer = field(
        default_factory=lambda: DocumentBuffer(BufferKind.COVER_LETTER, DEFAULT_CL_PLACEHOLDER)
    )
    active_tab: BufferKind = BufferKind.RESUME
    view_mode: ViewMode = ViewMode.EDITING
    status: OperationStatus = OperationStatus.IDLE

    def buffer(self, kind: BufferKind) -> DocumentBuffer:
        return self.resume if BufferKind(kind) is BufferKind.RESUME else self.cover_letter

    @property
    def active_buffer(self) -> DocumentBuffer:
        return self.buffer(self.active_tab)


def format_other_details(details: JobDetails) -> str:
    """Combine the secondary job insights into one labeled text block."""
    return (
        f"Salary Budget: {details.salary_budget}\n\n"
        f"HR Contact: {details.hr_contact}\n\n"
        f"Email: {details.contact_email}\n\n"
        f"Previous/Current Holder:\n{details.previous_holder}\n\n"
        f"Possible Manager:\n{details.possible_manager}\n\n"
        f"Possible Team Mates:\n{details.team_mates}"
    )


async def _call_service(call: Awaitable[Any], failure: WorkflowError) -> Any:
    try:
        return await call
    except GenerationServiceError as exc:
        raise failure from exc


class WorkflowCoordinator:
    """
    Runs extraction, import, optimization and cover-letter generation.

    At most one long-running operation is in flight; a call made while
    another is running is rejected with ``OperationInProgressError``.
    Operations never raise: each returns an ``OperationResult`` and pushes
    exactly one notification describing the outcome.
    """

    def __init__(
        self,
        client,
        notifications: NotificationManager,
        clipboard: Optional[Clipboard] = None,
        session: Optional[Session] = None,
        output_dir: Path = Path("exports"),
        max_upload_bytes: Optional[int] = None,
        page_fetcher: Optional[Callable[[str], str]] = None,
        open_url: Callable[[str], Any] = webbrowser.open,
        docs_url: Optional[str] = None,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            client: Generation client (see ``llm_handler.GeminiClient``).
            notifications: Where operation outcomes are reported.
            clipboard: Clipboard backend for paste-import and copy-export.
            session: Existing session state; a fresh one is created when omitted.
            output_dir: Directory for exported files and print previews.
            max_upload_bytes: Optional size limit for imported files.
            page_fetcher: Blocking callable returning a job page's text.
            open_url: Opens a URL in the user's browser.
            docs_url: Opened after a clipboard export when set.
        """
        self.client = client
        self.notifications = notifications
        self.clipboard = clipboard
        self.session = session or Session()
        self.output_dir = output_dir
        self.max_upload_bytes = max_upload_bytes
        self._page_fetcher = page_fetcher
        self._open_url = open_url
        self._docs_url = docs_url

    @classmethod
    def from_settings(cls, settings, client, clipboard: Optional[Clipboard] = None) -> "WorkflowCoordinator":
        page_fetcher = None
        if settings.fetch_job_page:
            page_fetcher = functools.partial(
                fetch_job_page_text,
                timeout=settings.page_fetch_timeout,
                use_browser=settings.use_browser_fallback,
            )
        return cls(
            client,
            NotificationManager(timeout=settings.notification_timeout),
            clipboard=clipboard,
            output_dir=settings.output_dir,
            max_upload_bytes=settings.max_upload_bytes,
            page_fetcher=page_fetcher,
            docs_url=settings.docs_url if settings.open_docs_after_copy else None,
        )

    @property
    def status(self) -> OperationStatus:
        return self.session.status

    # Session edits

    def set_active_tab(self, kind: BufferKind) -> None:
        self.session.active_tab = BufferKind(kind)

    def set_view_mode(self, mode: ViewMode) -> None:
        self.session.view_mode = ViewMode(mode)

    def toggle_view_mode(self) -> ViewMode:
        self.session.view_mode = (
            ViewMode.PREVIEWING if self.session.view_mode is ViewMode.EDITING else ViewMode.EDITING
        )
        return self.session.view_mode

    def edit_buffer(self, kind: BufferKind, content: str) -> None:
        self.session.buffer(kind).replace(content)

    def update_job_fields(
        self,
        company_profile: Optional[str] = None,
        job_description: Optional[str] = None,
        other_details: Optional[str] = None,
    ) -> None:
        if company_profile is not None:
            self.session.company_profile = company_profile
        if job_description is not None:
            self.session.job_description = job_description
        if other_details is not None:
            self.session.other_details = other_details

    # Outcome reporting

    def _fail(self, operation: str, error: WorkflowError) -> OperationResult:
        notification_id = self.notifications.push(Severity.ERROR, error.user_message)
        return OperationResult(
            operation,
            ok=False,
            error=error,
            notification=self.notifications.get(notification_id),
        )

    def _succeed(
        self, operation: str, value: Any, message: str, severity: Severity = Severity.SUCCESS
    ) -> OperationResult:
        notification_id = self.notifications.push(severity, message)
        return OperationResult(
            operation,
            ok=True,
            value=value,
            notification=self.notifications.get(notification_id),
        )

    def _set_status(self, status: OperationStatus) -> None:
        LOGGER.debug("Status %s -> %s", self.session.status.value, status.value)
        self.session.status = status
        if status.is_busy:
            LOGGER.info("%s", status.loading_message)

    def _ensure_idle(self) -> None:
        if self.session.status.is_busy:
            LOGGER.warning("Rejected operation while %s is running", self.session.status.value)
            raise OperationInProgressError()

    def _require_job_context(self, content: str, company_profile: str, job_description: str) -> None:
        if not company_profile.strip() or not job_description.strip():
            raise PreconditionError("Please extract job details first")
        if not content.strip():
            raise PreconditionError("Please ensure your current CV is in the editor")

    async def _execute(
        self,
        operation: str,
        status: OperationStatus,
        action: Callable[[], Awaitable[Any]],
        failure: WorkflowError,
        apply: Callable[[Any], None],
        success_message: str,
    ) -> OperationResult:
        """Run one service call with the busy status set, then reconcile its result."""
        self._set_status(status)
        try:
            try:
                value = await _call_service(action(), failure)
            except WorkflowError as exc:
                return self._fail(operation, exc)
            except Exception:
                LOGGER.exception("Unexpected failure during %s", operation)
                return self._fail(operation, failure)
            apply(value)
            return self._succeed(operation, value, success_message)
        finally:
            self._set_status(OperationStatus.IDLE)

    async def _fetch_page(self, url: str) -> Optional[str]:
        if self._page_fetcher is None:
            return None
        try:
            return await asyncio.to_thread(self._page_fetcher, url)
        except Exception as exc:
            # Best effort: the model can still work from the URL alone
            LOGGER.warning("Could not fetch %s: %s", url, str(exc)[:200])
            return None

    # Long-running operations

    async def extract_job_details(self, url: Optional[str] = None) -> OperationResult:
        """
        Read a job posting and fill the company profile, job description and other details.

        Args:
            url: Posting URL; the session URL is used when omitted.
        """
        operation = "extract_job_details"
        url = (self.session.url if url is None else url or "").strip()
        try:
            self._ensure_idle()
            if not url:
                raise ValidationError("Please enter a valid URL")
        except WorkflowError as exc:
            return self._fail(operation, exc)
        self.session.url = url

        async def action() -> JobDetails:
            page_text = await self._fetch_page(url)
            return await self.client.extract_job_details(url, page_text)

        def apply(details: JobDetails) -> None:
            self.session.company_profile = details.company_profile
            self.session.job_description = details.job_description
            self.session.other_details = format_other_details(details)

        return await self._execute(
            operation,
            OperationStatus.EXTRACTING_JOB,
            action,
            ExtractionError(),
            apply,
            "Job details extracted successfully!",
        )

    async def optimize_resume(
        self,
        content: Optional[str] = None,
        company_profile: Optional[str] = None,
        job_description: Optional[str] = None,
    ) -> OperationResult:
        """Rewrite the resume for the target job and show it in preview mode."""
        operation = "optimize_resume"
        content = self.session.resume.content if content is None else content
        company_profile = self.session.company_profile if company_profile is None else company_profile
        job_description = self.session.job_description if job_description is None else job_description
        try:
            self._ensure_idle()
            self._require_job_context(content, company_profile, job_description)
        except WorkflowError as exc:
            return self._fail(operation, exc)

        def apply(text: str) -> None:
            self.session.resume.replace(text)
            self.session.active_tab = BufferKind.RESUME
            self.session.view_mode = ViewMode.PREVIEWING

        return await self._execute(
            operation,
            OperationStatus.OPTIMIZING,
            lambda: self.client.optimize_cv(content, company_profile, job_description),
            GenerationError("Failed to optimize CV. Please try again."),
            apply,
            "CV optimized successfully!",
        )

    async def generate_cover_letter(
        self,
        content: Optional[str] = None,
        company_profile: Optional[str] = None,
        job_description: Optional[str] = None,
    ) -> OperationResult:
        """Draft a cover letter from the resume and show it in preview mode."""
        operation = "generate_cover_letter"
        content = self.session.resume.content if content is None else content
        company_profile = self.session.company_profile if company_profile is None else company_profile
        job_description = self.session.job_description if job_description is None else job_description
        try:
            self._ensure_idle()
            self._require_job_context(content, company_profile, job_description)
        except WorkflowError as exc:
            return self._fail(operation, exc)

        def apply(text: str) -> None:
            self.session.cover_letter.replace(text)
            self.session.active_tab = BufferKind.COVER_LETTER
            self.session.view_mode = ViewMode.PREVIEWING

        return await self._execute(
            operation,
            OperationStatus.GENERATING_COVER_LETTER,
            lambda: self.client.generate_cover_letter(content, company_profile, job_description),
            GenerationError("Failed to generate Cover Letter."),
            apply,
            "Cover Letter generated!",
        )

    def _apply_imported_resume(self, text: str) -> None:
        # Imported text stays editable so the user can review it
        self.session.resume.replace(text)
        self.session.active_tab = BufferKind.RESUME
        self.session.view_mode = ViewMode.EDITING

    async def import_resume_file(self, upload: UploadedFile) -> OperationResult:
        """Transcribe an uploaded PDF or image into the resume buffer."""
        operation = "import_resume_file"
        try:
            self._ensure_idle()
            check_upload(upload, self.max_upload_bytes)
        except WorkflowError as exc:
            return self._fail(operation, exc)

        async def action() -> str:
            payload = encode_upload(upload)
            return await self.client.parse_resume_from_media(payload)

        return await self._execute(
            operation,
            OperationStatus.PARSING_RESUME,
            action,
            GenerationError(
                "Failed to read the resume file. Please try converting to a simpler "
                "PDF or Image, or copy-paste the text."
            ),
            self._apply_imported_resume,
            "CV imported successfully!",
        )

    async def import_resume_from_clipboard(self) -> OperationResult:
        """Reformat resume text pasted from the clipboard into the resume buffer."""
        operation = "import_resume_from_clipboard"
        try:
            self._ensure_idle()
            if self.clipboard is None:
                raise ClipboardError()
            try:
                raw_text = self.clipboard.read_text()
            except ClipboardError:
                raise
            except Exception as exc:
                LOGGER.error("Clipboard read failed: %s", exc)
                raise ClipboardError() from exc
            raw_text = normalize_pasted_text(raw_text)
        except WorkflowError as exc:
            return self._fail(operation, exc)

        return await self._execute(
            operation,
            OperationStatus.PARSING_RESUME,
            lambda: self.client.parse_resume_from_text(raw_text),
            GenerationError("Failed to parse text content. Please try again."),
            self._apply_imported_resume,
            "Pasted content formatted successfully!",
        )

    async def import_resume(self, upload: Optional[UploadedFile] = None) -> OperationResult:
        """Import from a file when one is given, otherwise from the clipboard."""
        if upload is not None:
            return await self.import_resume_file(upload)
        return await self.import_resume_from_clipboard()

    # Exports

    def export_file(self) -> OperationResult:
        """Save the active buffer as Markdown under the output directory."""
        operation = "export_file"
        try:
            exported = export_as_file(self.session.active_buffer, self.output_dir)
        except OSError as exc:
            LOGGER.error("Failed to write export: %s", exc)
            return self._fail(operation, WorkflowError("Failed to save the file."))
        return self._succeed(operation, exported, "File downloaded as Markdown")

    def export_to_clipboard(self, rendered_html: Optional[str] = None) -> OperationResult:
        """Copy the active buffer, as HTML + text when the clipboard allows it."""
        operation = "export_to_clipboard"
        try:
            if self.clipboard is None:
                raise ClipboardError(CLIPBOARD_FAILURE)
            rich = export_to_clipboard(self.session.active_buffer, self.clipboard, rendered_html)
        except ClipboardError:
            return self._fail(operation, ClipboardError(CLIPBOARD_FAILURE))

        suffix = " Opening Google Docs..." if self._docs_url else ""
        if rich:
            result = self._succeed(operation, True, "Formatted content copied!" + suffix)
        else:
            result = self._succeed(operation, False, "Markdown text copied." + suffix, Severity.INFO)
        if self._docs_url:
            self._open_url(self._docs_url)
        return result

    def prepare_print(self) -> OperationResult:
        """Switch to preview mode and open a printable page of the active buffer."""
        operation = "prepare_print"
        self.session.view_mode = ViewMode.PREVIEWING
        try:
            preview_path = write_print_preview(self.session.active_buffer, self.output_dir)
        except OSError as exc:
            LOGGER.error("Failed to write print preview: %s", exc)
            return self._fail(operation, WorkflowError("Failed to prepare the printable page."))
        self._open_url(preview_path.as_uri())
        return self._succeed(operation, preview_path, "Print preview opened", Severity.INFO)
