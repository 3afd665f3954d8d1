import asyncio
import logging

import pytest

import main
from data_models import BufferKind, OperationStatus

from conftest import SAMPLE_DETAILS


def test_run_session_runs_requested_steps_in_order(coordinator, client, tmp_path):
    resume = tmp_path / "cv.md"
    resume.write_text("# Jane Doe\n\nRocket person.", encoding="utf-8")
    args = main.build_parser().parse_args(
        [
            "--url", "https://acme.test/jobs/1",
            "--resume-markdown", str(resume),
            "--optimize",
            "--cover-letter",
            "--save",
        ]
    )

    results = asyncio.run(main.run_session(coordinator, args))

    assert [r.operation for r in results] == [
        "extract_job_details",
        "optimize_resume",
        "generate_cover_letter",
        "export_file",
        "export_file",
    ]
    assert all(r.ok for r in results)
    assert client.last_args["optimize_cv"] == (
        "# Jane Doe\n\nRocket person.",
        SAMPLE_DETAILS.company_profile,
        SAMPLE_DETAILS.job_description,
    )
    exported = sorted(p.name for p in (tmp_path / "exports").iterdir())
    assert exported == ["cover_letter.md", "optimized_cv.md"]
    assert coordinator.status is OperationStatus.IDLE


def test_run_session_imports_file_and_copies(coordinator, client, fake_clipboard, tmp_path):
    scan = tmp_path / "cv.png"
    scan.write_bytes(b"\x89PNG")
    args = main.build_parser().parse_args(["--resume", str(scan), "--copy", "resume"])

    results = asyncio.run(main.run_session(coordinator, args))

    assert [r.operation for r in results] == ["import_resume_file", "export_to_clipboard"]
    assert fake_clipboard.text == "# Imported CV"
    assert coordinator.session.active_tab is BufferKind.RESUME


def test_optimize_without_job_details_reports_failure(coordinator):
    args = main.build_parser().parse_args(["--optimize"])

    (result,) = asyncio.run(main.run_session(coordinator, args))

    assert not result.ok


def test_resume_sources_are_exclusive():
    with pytest.raises(SystemExit):
        main.build_parser().parse_args(["--paste", "--resume", "cv.pdf"])


def test_main_exits_on_missing_config(tmp_path, caplog):
    with caplog.at_level(logging.ERROR), pytest.raises(SystemExit) as excinfo:
        main.main(["--config", str(tmp_path / "absent.json")])

    assert excinfo.value.code == 1
    assert "Configuration error" in caplog.text


def test_truncating_formatter():
    formatter = main.TruncatingFormatter(max_length=10, fmt="%(message)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "a" * 50, None, None)

    assert formatter.format(record) == "a" * 10 + "... (truncated)"
