"""
Application configuration management.

Loads non-sensitive configuration from JSON and sensitive values
(e.g. Gemini API key) from environment variables or secret files.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("cv_tailor_config.json")
DEFAULT_OUTPUT_DIR = Path("exports")
DEFAULT_NOTIFICATION_TIMEOUT = 5.0
DEFAULT_DOCS_URL = "https://docs.new"


@dataclass(frozen=True)
class Settings:
    """Container for application configuration."""

    gemini_api_key: str
    extraction_model: str
    parsing_model: str
    writing_model: str
    use_search_grounding: bool
    search_tool: str
    fetch_job_page: bool
    use_browser_fallback: bool
    page_fetch_timeout: float
    request_timeout: Optional[float]
    notification_timeout: float
    max_upload_bytes: Optional[int]
    output_dir: Path
    open_docs_after_copy: bool
    docs_url: str
    log_file: Optional[Path]
    log_format: Optional[str]
    log_date_format: Optional[str]
    debug: bool


def _read_json(path: Path) -> Dict[str, Any]:
    """Read a JSON file into a dictionary."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file missing: {path}") from None
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in configuration file: {path}") from exc


def _resolve_path(base: Path, value: Optional[str]) -> Optional[Path]:
    """Resolve a possibly relative path against a base directory."""
    if not value:
        return None
    candidate = Path(value)
    return candidate if candidate.is_absolute() else (base / candidate).resolve()


def _load_secret(base: Path, key_path: Optional[str]) -> Optional[str]:
    """Load a secret value from a text file."""
    if not key_path:
        return None
    secret_file = _resolve_path(base, key_path)
    if secret_file and secret_file.exists():
        return secret_file.read_text(encoding="utf-8").strip()
    LOGGER.warning("Secret file %s not found; skipping", secret_file)
    return None


def _optional_float(config: Dict[str, Any], key: str) -> Optional[float]:
    value = config.get(key)
    if value is None:
        return None
    value = float(value)
    if value <= 0:
        raise ValueError(f"Config '{key}' must be > 0.")
    return value


def load_settings(config_path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """
    Load application settings from config file and environment variables.

    Args:
        config_path: Path to the JSON configuration file.

    Returns:
        Settings dataclass populated with configuration values.
    """
    config_path = config_path.resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    config = _read_json(config_path)
    if not isinstance(config, dict):
        raise ValueError(f"Configuration root must be a JSON object: {config_path}")
    base_dir = config_path.parent

    secret_key = _load_secret(base_dir, config.get("google_api_key_file"))
    api_key = secret_key or os.environ.get("GEMINI_API_KEY", "").strip()
    if not api_key:
        raise ValueError(
            "Gemini API key missing. Set GEMINI_API_KEY env or provide google_api_key_file."
        )

    notification_timeout = float(config.get("notification_timeout", DEFAULT_NOTIFICATION_TIMEOUT))
    if notification_timeout <= 0:
        raise ValueError("Config 'notification_timeout' must be > 0.")

    page_fetch_timeout = _optional_float(config, "page_fetch_timeout") or 30.0
    request_timeout = _optional_float(config, "request_timeout")

    # No upper bound unless configured
    max_upload_bytes = config.get("max_upload_bytes")
    if max_upload_bytes is not None:
        max_upload_bytes = int(max_upload_bytes)
        if max_upload_bytes <= 0:
            raise ValueError("Config 'max_upload_bytes' must be > 0.")

    output_dir = _resolve_path(base_dir, config.get("output_dir")) or DEFAULT_OUTPUT_DIR.resolve()

    log_file_str = config.get("log_file")
    if log_file_str:
        # Replace timestamp placeholder if present
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_str = log_file_str.replace("YYYYMMDD_HHMMSS", timestamp)
        log_file = _resolve_path(base_dir, log_file_str)
    else:
        log_file = None

    return Settings(
        gemini_api_key=api_key,
        extraction_model=config.get("extraction_model", "gemini-2.5-pro"),
        parsing_model=config.get("parsing_model", "gemini-2.5-flash"),
        writing_model=config.get("writing_model", "gemini-2.5-pro"),
        use_search_grounding=bool(config.get("use_search_grounding", False)),
        search_tool=config.get("search_tool", "google_search_retrieval"),
        fetch_job_page=bool(config.get("fetch_job_page", True)),
        use_browser_fallback=bool(config.get("use_browser_fallback", False)),
        page_fetch_timeout=page_fetch_timeout,
        request_timeout=request_timeout,
        notification_timeout=notification_timeout,
        max_upload_bytes=max_upload_bytes,
        output_dir=output_dir,
        open_docs_after_copy=bool(config.get("open_docs_after_copy", False)),
        docs_url=config.get("docs_url", DEFAULT_DOCS_URL),
        log_file=log_file,
        log_format=config.get("log_format"),
        log_date_format=config.get("log_date_format"),
        debug=bool(config.get("debug", False)),
    )
