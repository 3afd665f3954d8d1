"""
Gemini client wrapper for job extraction, resume parsing and rewriting.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

import google.generativeai as genai

from data_models import JOB_DETAIL_FIELDS, JobDetails, MediaPayload
from errors import EmptyResponseError, MalformedResponseError, TransportError

LOGGER = logging.getLogger(__name__)

MAX_PAGE_TEXT_CHARS = 15000

JOB_DETAILS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "companyProfile": {
            "type": "STRING",
            "description": "The extracted company profile summary.",
        },
        "jobDescription": {
            "type": "STRING",
            "description": "The extracted job description, requirements, and responsibilities.",
        },
        "salaryBudget": {"type": "STRING", "description": "Estimated salary range or NA."},
        "hrContact": {"type": "STRING", "description": "Name of HR/Recruiter."},
        "contactEmail": {"type": "STRING", "description": "Contact email or NA."},
        "previousHolder": {
            "type": "STRING",
            "description": "Name/Profile of previous or current holder.",
        },
        "possibleManager": {"type": "STRING", "description": "Name/Profile of possible manager."},
        "teamMates": {"type": "STRING", "description": "Names/Profiles of possible team mates."},
    },
    "required": list(JOB_DETAIL_FIELDS),
}


def _response_text(response: Any) -> str:
    """Pull the text out of a Gemini response, tolerating blocked or partial candidates."""
    try:
        text = response.text
    except (AttributeError, ValueError):
        # .text raises ValueError when the candidate has no parts (e.g. safety block)
        text = ""
        candidates = getattr(response, "candidates", None)
        if candidates:
            try:
                text = "".join(
                    getattr(part, "text", "") for part in candidates[0].content.parts
                )
            except (AttributeError, IndexError):
                LOGGER.error("Unexpected response format from Gemini: %s", type(response))
    return (text or "").strip()


def _parse_json_object(text: str) -> Dict[str, Any]:
    """Parse a JSON object, extracting the first {...} span when the model wraps it in prose."""
    if not text.startswith("{"):
        match = re.search(r"\{.*\}", text, re.S)
        if not match:
            LOGGER.warning("No JSON found in LLM response (first 200 chars): %s", text[:200])
            raise MalformedResponseError()
        text = match.group(0)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        LOGGER.error("Failed to parse JSON from LLM response: %s", exc)
        raise MalformedResponseError() from exc
    if not isinstance(data, dict):
        LOGGER.error("LLM response is not a JSON object")
        raise MalformedResponseError()
    return data


class GeminiClient:
    """Wrapper around the Google Gemini API for every generation the workflow needs."""

    def __init__(
        self,
        api_key: str,
        extraction_model: str,
        parsing_model: str,
        writing_model: str,
        use_search_grounding: bool = False,
        search_tool: str = "google_search_retrieval",
        request_timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the Gemini client.

        Args:
            api_key: Google Gemini API key.
            extraction_model: Model used to read job postings.
            parsing_model: Model used to transcribe imported resumes.
            writing_model: Model used to rewrite resumes and draft cover letters.
            use_search_grounding: Attach the search tool to extraction requests.
            search_tool: Tool name passed to Gemini when grounding is enabled.
            request_timeout: Per-request timeout in seconds; None keeps the provider default.
        """
        genai.configure(api_key=api_key)
        self._extraction_model = extraction_model
        self._parsing_model = parsing_model
        self._writing_model = writing_model
        self._use_search_grounding = use_search_grounding
        self._search_tool = search_tool
        self._request_timeout = request_timeout
        self._models: Dict[str, Any] = {}
        self._generation_config = {
            "temperature": 0.2,
            "top_p": 0.9,
            "top_k": 32,
            "candidate_count": 1,
        }
        LOGGER.info(
            "Gemini client initialized (extraction=%s, parsing=%s, writing=%s, grounding=%s)",
            extraction_model,
            parsing_model,
            writing_model,
            use_search_grounding,
        )

    @classmethod
    def from_settings(cls, settings) -> "GeminiClient":
        return cls(
            settings.gemini_api_key,
            settings.extraction_model,
            settings.parsing_model,
            settings.writing_model,
            use_search_grounding=settings.use_search_grounding,
            search_tool=settings.search_tool,
            request_timeout=settings.request_timeout,
        )

    def _model_for(self, model_name: str) -> Any:
        model = self._models.get(model_name)
        if model is None:
            model = genai.GenerativeModel(model_name)
            self._models[model_name] = model
        return model

    async def _generate(
        self,
        model_name: str,
        contents: Any,
        generation_config: Optional[dict] = None,
        tools: Any = None,
    ) -> str:
        """
        Send one request to Gemini and return the non-empty response text.

        Raises:
            TransportError: The request itself failed.
            EmptyResponseError: Gemini answered with no text.
        """
        kwargs: Dict[str, Any] = {
            "generation_config": {**self._generation_config, **(generation_config or {})},
        }
        if tools:
            kwargs["tools"] = tools
        if self._request_timeout:
            kwargs["request_options"] = {"timeout": self._request_timeout}

        try:
            response = await self._model_for(model_name).generate_content_async(contents, **kwargs)
        except Exception as exc:
            LOGGER.error("Gemini request to %s failed: %s", model_name, str(exc)[:200])
            raise TransportError() from exc

        text = _response_text(response)
        if not text:
            LOGGER.warning("Empty response from Gemini (%s)", model_name)
            raise EmptyResponseError()
        LOGGER.debug("Gemini %s returned %d chars", model_name, len(text))
        return text

    async def extract_job_details(self, url: str, page_text: Optional[str] = None) -> JobDetails:
        """
        Extract company profile, job description and insights for a posting.

        Args:
            url: Job posting URL.
            page_text: Text already fetched from the posting, if any.

        Returns:
            JobDetails parsed from the structured response.
        """
        prompt_parts = [
            f"Please analyze the job posting at this URL: {url}.\n\n",
        ]
        if page_text:
            prompt_parts.append("--- PAGE CONTENT (may be incomplete) ---\n")
            prompt_parts.append(page_text[:MAX_PAGE_TEXT_CHARS])
            prompt_parts.append("\n--- END OF PAGE CONTENT ---\n\n")
        if self._use_search_grounding:
            prompt_parts.append(
                "If you cannot access the page content directly, use Google Search to find "
                "the job listing details for this specific URL or the implied job.\n\n"
            )
        prompt_parts.append(
            "Extract the following information:\n"
            "1. Company Profile: A summary of the company, its mission, and culture.\n"
            "2. Job Description: The key responsibilities, requirements, and skills needed.\n"
            "3. Detailed Insights:\n"
            '   - Estimated salary budget for this profile (Return "NA" if not available).\n'
            "   - Name of the HR or Recruiter who likely posted this.\n"
            "   - Contact email address for inquiries.\n"
            "   - Who previously held this position or currently holds a similar role?\n"
            "   - Who would be the possible manager?\n"
            "   - Who are possible team mates?\n\n"
            "Return the result in JSON format with the keys: "
            + ", ".join(JOB_DETAIL_FIELDS)
            + "."
        )
        prompt = "".join(prompt_parts)

        if self._use_search_grounding:
            # JSON mode cannot be combined with tool use; the object is recovered from prose
            text = await self._generate(self._extraction_model, prompt, tools=self._search_tool)
        else:
            text = await self._generate(
                self._extraction_model,
                prompt,
                generation_config={
                    "response_mime_type": "application/json",
                    "response_schema": JOB_DETAILS_SCHEMA,
                },
            )

        details = JobDetails.from_dict(_parse_json_object(text))
        if not details.company_profile and not details.job_description:
            LOGGER.warning("Extraction for %s returned neither profile nor description", url)
            raise MalformedResponseError()
        return details

    async def parse_resume_from_media(self, payload: MediaPayload) -> str:
        """
        Transcribe an uploaded resume (PDF or image) into Markdown.

        Args:
            payload: Base64 file content and its MIME type.

        Returns:
            Markdown transcription of the whole document.
        """
        contents = [
            {"mime_type": payload.mime_type, "data": payload.raw_bytes()},
            "Please extract all the text from this resume document. Format it cleanly as "
            "Markdown, preserving the structure, headers, and bullet points as much as "
            "possible. Do not summarize; provide the full content.",
        ]
        return await self._generate(self._parsing_model, contents)

    async def parse_resume_from_text(self, raw_text: str) -> str:
        """Rebuild pasted resume text into clean Markdown."""
        prompt = f"""The following text was copied from a Resume/CV (e.g., from a Google Doc).
Please reconstruct it into a clean, well-formatted Markdown CV.
Preserve all content, headers, and bullet points. Fix any copy-paste formatting errors or weird spacing.

RAW TEXT INPUT:
---
{raw_text}
---"""
        return await self._generate(self._parsing_model, prompt)

    async def optimize_cv(self, current_cv: str, company_profile: str, job_description: str) -> str:
        """
        Rewrite a CV so it targets the given company and role.

        Args:
            current_cv: Resume Markdown as currently edited.
            company_profile: Target company summary.
            job_description: Target job description.

        Returns:
            The full optimized CV in Markdown.
        """
        prompt = f"""You are an expert Resume Writer and Career Coach.

Task: Rewrite and optimize the candidate's CV to perfectly align with the provided target Job Description and Company Profile.

Input Data:
---
TARGET COMPANY PROFILE:
{company_profile}
---
TARGET JOB DESCRIPTION:
{job_description}
---
CANDIDATE'S CURRENT CV:
{current_cv}
---

Guidelines:
1. Analyze the JD for keywords and key skills.
2. Rewrite the Professional Summary to target this specific role.
3. Rephrase bullet points in the Experience section to highlight achievements relevant to the JD.
4. Ensure the tone matches the company culture (e.g., innovative vs. corporate).
5. Keep the CV structure clean and professional.
6. Do not invent false experiences, but emphasize relevant existing ones.
7. Return the full, formatted CV text in Markdown. Use H1 for Name, H2 for Sections, etc."""
        return await self._generate(self._writing_model, prompt, generation_config={"temperature": 0.4})

    async def generate_cover_letter(
        self, current_cv: str, company_profile: str, job_description: str
    ) -> str:
        """
        Draft a cover letter for the role from the candidate's CV.

        Args:
            current_cv: Resume Markdown.
            company_profile: Target company summary.
            job_description: Target job description.

        Returns:
            Cover letter in Markdown.
        """
        prompt = f"""You are an expert Career Coach.

Task: Write a compelling, professional cover letter for the candidate based on their CV, applying for the specific role described.

Input Data:
---
COMPANY PROFILE:
{company_profile}
---
JOB DESCRIPTION:
{job_description}
---
CANDIDATE'S CV:
{current_cv}
---

Guidelines:
1. Use a standard business letter format.
2. Hook the reader in the opening paragraph by showing enthusiasm for the company/role.
3. Use specific examples from the CV to demonstrate why the candidate fits the requirements in the JD.
4. Match the tone of the company (e.g., formal for finance, creative for startups).
5. Keep it concise (max 400 words).
6. Do not invent skills or experience that are not in the CV.
7. Return the result in Markdown format."""
        return await self._generate(self._writing_model, prompt, generation_config={"temperature": 0.7})
