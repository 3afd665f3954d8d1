import base64

import pytest

from data_models import UploadedFile
from errors import EmptyClipboardError, PayloadTooLargeError, UnsupportedFormatError
from resume_loader import (
    check_upload,
    encode_upload,
    is_supported_media_type,
    load_upload,
    normalize_pasted_text,
)


@pytest.mark.parametrize(
    "mime_type, supported",
    [
        ("application/pdf", True),
        ("image/png", True),
        ("image/jpeg", True),
        ("IMAGE/WEBP", True),
        ("application/zip", False),
        ("text/plain", False),
        ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", False),
        ("", False),
    ],
)
def test_supported_media_types(mime_type, supported):
    assert is_supported_media_type(mime_type) is supported


def test_load_upload_guesses_type_from_name(tmp_path):
    path = tmp_path / "resume.pdf"
    path.write_bytes(b"%PDF-1.4")

    upload = load_upload(path)

    assert upload.name == "resume.pdf"
    assert upload.mime_type == "application/pdf"
    assert upload.data == b"%PDF-1.4"


def test_load_upload_unknown_extension_is_rejected_later(tmp_path):
    path = tmp_path / "resume.unknownext"
    path.write_bytes(b"data")

    upload = load_upload(path)

    assert upload.mime_type == "application/octet-stream"
    with pytest.raises(UnsupportedFormatError):
        check_upload(upload)


def test_check_upload_has_no_size_limit_by_default():
    upload = UploadedFile("scan.png", "image/png", b"x" * 10_000_000)
    check_upload(upload)


def test_check_upload_enforces_configured_limit():
    upload = UploadedFile("scan.png", "image/png", b"x" * 11)

    check_upload(upload, max_bytes=11)
    with pytest.raises(PayloadTooLargeError) as excinfo:
        check_upload(upload, max_bytes=10)
    assert "limit 10" in excinfo.value.user_message


def test_encode_upload_is_base64():
    payload = encode_upload(UploadedFile("cv.pdf", "application/pdf", b"\x00\xffresume"))

    assert payload.mime_type == "application/pdf"
    assert payload.data == base64.b64encode(b"\x00\xffresume").decode("ascii")
    assert payload.raw_bytes() == b"\x00\xffresume"


@pytest.mark.parametrize("text", [None, "", "   \n\t "])
def test_blank_clipboard_text_is_rejected(text):
    with pytest.raises(EmptyClipboardError):
        normalize_pasted_text(text)


def test_pasted_text_is_normalized():
    assert normalize_pasted_text("\r\n Jane Doe\r\nEngineer \r\n") == "Jane Doe\nEngineer"
