import pytest

from data_models import BufferKind, DocumentBuffer
from errors import ClipboardError
from exporter import (
    export_as_file,
    export_filename,
    export_to_clipboard,
    render_markdown_html,
    write_print_preview,
)

from conftest import FakeClipboard


@pytest.mark.parametrize(
    "kind, filename",
    [(BufferKind.RESUME, "optimized_cv.md"), (BufferKind.COVER_LETTER, "cover_letter.md")],
)
def test_export_filename_per_kind(kind, filename):
    assert export_filename(kind) == filename


def test_export_as_file_creates_directory(tmp_path):
    target = tmp_path / "nested" / "out"

    exported = export_as_file(DocumentBuffer(BufferKind.COVER_LETTER, "Dear Acme"), target)

    assert exported.path == target / "cover_letter.md"
    assert exported.content_type == "text/markdown"
    assert exported.path.read_text(encoding="utf-8") == "Dear Acme"


def test_render_markdown_resume():
    markdown = (
        "# Jane Doe\n"
        "**Software Engineer**\n\n"
        "## Experience\n"
        "*Jan 2020 - Present*\n"
        "* Led a team of 5\n"
        "* Cut costs by 30%\n\n"
        "1. First\n"
        "2. Second\n\n"
        "---\n"
        "See [site](https://jane.dev?a=1&b=2)"
    )

    html = render_markdown_html(markdown)

    assert html.startswith("<h1>Jane Doe</h1>")
    assert "<p><strong>Software Engineer</strong></p>" in html
    assert "<h2>Experience</h2>" in html
    assert "<em>Jan 2020 - Present</em>" in html
    assert "<li>Led a team of 5</li>" in html
    assert "<li>Cut costs by 30%</li>" in html
    assert "<ol>" in html and "<li>Second</li>" in html
    assert "<hr" in html
    assert '<a href="https://jane.dev?a=1&amp;b=2">site</a>' in html


def test_render_markdown_tables():
    html = render_markdown_html("| Skill | Years |\n| --- | --- |\n| Python | 5 |\n| ~~Perl~~ | 1 |")

    assert "<table>" in html
    assert "<th>Skill</th>" in html
    assert "<td>Python</td>" in html
    assert "<s>Perl</s>" in html


def test_render_markdown_fenced_code_is_literal():
    html = render_markdown_html("```\n**not bold**\n<b>x</b>\n```")

    assert "<pre><code>**not bold**" in html
    assert "&lt;b&gt;x&lt;/b&gt;" in html
    assert "<strong>" not in html


def test_render_markdown_nested_lists():
    html = render_markdown_html("- Skills\n  - Python\n  - Go\n- Languages")

    assert html.count("<ul>") == 2
    assert "<li>Python</li>" in html
    assert "<li>Languages</li>" in html


@pytest.mark.parametrize(
    "link",
    ["[x](javascript:alert(1))", "[x](vbscript:msgbox)", "[x](data:text/html;base64,PHNjcmlwdD4=)"],
)
def test_render_markdown_drops_unsafe_links(link):
    html = render_markdown_html(link)

    assert "<a" not in html
    assert "href" not in html


def test_render_markdown_keeps_mailto_links():
    html = render_markdown_html("[mail](mailto:jane@example.com)")

    assert '<a href="mailto:jane@example.com">mail</a>' in html


def test_render_markdown_escapes_html():
    html = render_markdown_html("Use <script>alert(1)</script> & `x < y`")

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "<code>x &lt; y</code>" in html


def test_render_markdown_keeps_snake_case():
    assert render_markdown_html("my_var_name") == "<p>my_var_name</p>"


def test_clipboard_export_wraps_backend_errors():
    clipboard = FakeClipboard(supports_rich=True, fail=True)

    with pytest.raises(ClipboardError) as excinfo:
        export_to_clipboard(DocumentBuffer(BufferKind.RESUME, "# CV"), clipboard)

    assert excinfo.value.user_message == "Failed to copy to clipboard. Please select and copy manually."
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_print_preview_is_standalone_page(tmp_path):
    path = write_print_preview(DocumentBuffer(BufferKind.RESUME, "# Jane"), tmp_path)

    html = path.read_text(encoding="utf-8")
    assert path.name == "optimized_cv.html"
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Optimized CV</title>" in html
    assert "<h1>Jane</h1>" in html
    assert "window.print()" in html
