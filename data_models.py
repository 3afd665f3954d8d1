"""
Shared data models used across the application.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

DEFAULT_CV_PLACEHOLDER = """
# John Doe
**Software Engineer**

## Professional Summary
Experienced software engineer with a passion for building scalable web applications...

## Experience
**Senior Developer | Tech Corp**
*Jan 2020 - Present*
* Led a team of 5 developers...
* Improved system performance by 30%...

## Skills
* JavaScript, TypeScript, React, Node.js
* AWS, Docker, Kubernetes
""".strip()

DEFAULT_CL_PLACEHOLDER = (
    'Click "Generate Cover Letter" to draft a tailored letter based on your '
    "Resume and the Job Description."
)

JOB_DETAIL_FIELDS = (
    "companyProfile",
    "jobDescription",
    "salaryBudget",
    "hrContact",
    "contactEmail",
    "previousHolder",
    "possibleManager",
    "teamMates",
)


class BufferKind(str, Enum):
    """The two editable documents of a session."""

    RESUME = "resume"
    COVER_LETTER = "cover_letter"


class ViewMode(str, Enum):
    EDITING = "editing"
    PREVIEWING = "previewing"


class Severity(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class OperationStatus(str, Enum):
    """Long-running operation currently in flight, if any."""

    IDLE = "idle"
    EXTRACTING_JOB = "extracting_job"
    PARSING_RESUME = "parsing_resume"
    OPTIMIZING = "optimizing"
    GENERATING_COVER_LETTER = "generating_cover_letter"

    @property
    def is_busy(self) -> bool:
        return self is not OperationStatus.IDLE

    @property
    def loading_message(self) -> str:
        return _LOADING_MESSAGES.get(self, "")


_LOADING_MESSAGES = {
    OperationStatus.EXTRACTING_JOB: "Analyzing URL and extracting details...",
    OperationStatus.PARSING_RESUME: "Reading and formatting your CV...",
    OperationStatus.OPTIMIZING: "Tailoring your CV to the job description...",
    OperationStatus.GENERATING_COVER_LETTER: "Drafting a professional cover letter...",
}


@dataclass(frozen=True)
class JobDetails:
    """Structured job-posting information returned by an extraction call."""

    company_profile: str
    job_description: str
    salary_budget: str
    hr_contact: str
    contact_email: str
    previous_holder: str
    possible_manager: str
    team_mates: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any], missing: str = "NA") -> "JobDetails":
        """
        Build job details from the camelCase payload of the generation service.

        Args:
            data: Parsed JSON object.
            missing: Value used for absent secondary fields.

        Returns:
            JobDetails populated from the payload.
        """

        def _value(key: str) -> str:
            value = data.get(key)
            if value is None:
                return missing
            return str(value).strip() or missing

        return cls(
            company_profile=str(data.get("companyProfile") or "").strip(),
            job_description=str(data.get("jobDescription") or "").strip(),
            salary_budget=_value("salaryBudget"),
            hr_contact=_value("hrContact"),
            contact_email=_value("contactEmail"),
            previous_holder=_value("previousHolder"),
            possible_manager=_value("possibleManager"),
            team_mates=_value("teamMates"),
        )


@dataclass
class DocumentBuffer:
    """An editable text document held in session state."""

    kind: BufferKind
    content: str = ""

    def replace(self, content: str) -> None:
        self.content = content


@dataclass(frozen=True)
class Notification:
    """Transient user-facing message describing an operation outcome."""

    id: str
    severity: Severity
    text: str


@dataclass(frozen=True)
class UploadedFile:
    """Binary file chosen by the user for resume import."""

    name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class MediaPayload:
    """Base64-encoded file content ready for transmission."""

    mime_type: str
    data: str

    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)


@dataclass
class OperationResult:
    """Tagged outcome of a coordinator operation."""

    operation: str
    ok: bool
    value: Any = None
    error: Optional[Exception] = None
    notification: Optional[Notification] = field(default=None, repr=False)
