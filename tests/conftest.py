from __future__ import annotations

from collections import Counter
from typing import Any, Dict, Optional

import pytest

from clipboard import Clipboard
from data_models import JobDetails
from errors import ClipboardError
from notifications import NotificationManager
from workflow import WorkflowCoordinator

SAMPLE_DETAILS = JobDetails(
    company_profile="Acme builds rockets.",
    job_description="Own the launch pipeline.",
    salary_budget="120k-150k",
    hr_contact="Jane Recruiter",
    contact_email="jobs@acme.test",
    previous_holder="John Former",
    possible_manager="Mary Boss",
    team_mates="Ann, Bob",
)


class FakeGenerationClient:
    """Stands in for GeminiClient; counts calls and returns canned results."""

    def __init__(self) -> None:
        self.calls: Counter = Counter()
        self.last_args: Dict[str, Any] = {}
        self.results: Dict[str, Any] = {
            "extract_job_details": SAMPLE_DETAILS,
            "parse_resume_from_media": "# Imported CV",
            "parse_resume_from_text": "# Pasted CV",
            "optimize_cv": "# Optimized CV",
            "generate_cover_letter": "Dear Acme,",
        }
        self.errors: Dict[str, Exception] = {}

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    async def _respond(self, name: str, *args: Any) -> Any:
        self.calls[name] += 1
        self.last_args[name] = args
        if name in self.errors:
            raise self.errors[name]
        return self.results[name]

    async def extract_job_details(self, url: str, page_text: Optional[str] = None) -> JobDetails:
        return await self._respond("extract_job_details", url, page_text)

    async def parse_resume_from_media(self, payload):
        return await self._respond("parse_resume_from_media", payload)

    async def parse_resume_from_text(self, raw_text: str) -> str:
        return await self._respond("parse_resume_from_text", raw_text)

    async def optimize_cv(self, cv: str, profile: str, description: str) -> str:
        return await self._respond("optimize_cv", cv, profile, description)

    async def generate_cover_letter(self, cv: str, profile: str, description: str) -> str:
        return await self._respond("generate_cover_letter", cv, profile, description)


class FakeClipboard(Clipboard):
    def __init__(self, text: str = "", supports_rich: bool = False, fail: bool = False) -> None:
        self.text = text
        self.html: Optional[str] = None
        self.supports_rich = supports_rich
        self.fail = fail

    def read_text(self) -> str:
        if self.fail:
            raise ClipboardError()
        return self.text

    def write_text(self, text: str) -> None:
        if self.fail:
            raise ClipboardError()
        self.text = text
        self.html = None

    def write_rich(self, text: str, html: str) -> None:
        if self.fail:
            raise RuntimeError("clipboard permission denied")
        self.text = text
        self.html = html


@pytest.fixture
def client() -> FakeGenerationClient:
    return FakeGenerationClient()


@pytest.fixture
def fake_clipboard() -> FakeClipboard:
    return FakeClipboard()


@pytest.fixture
def opened_urls() -> list:
    return []


@pytest.fixture
def coordinator(client, fake_clipboard, opened_urls, tmp_path) -> WorkflowCoordinator:
    return WorkflowCoordinator(
        client,
        NotificationManager(timeout=5.0),
        clipboard=fake_clipboard,
        output_dir=tmp_path / "exports",
        open_url=opened_urls.append,
    )


@pytest.fixture
def ready_coordinator(coordinator) -> WorkflowCoordinator:
    """Coordinator whose session already holds job details."""
    coordinator.update_job_fields(
        company_profile=SAMPLE_DETAILS.company_profile,
        job_description=SAMPLE_DETAILS.job_description,
    )
    return coordinator

