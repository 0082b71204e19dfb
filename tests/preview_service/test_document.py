"""
Unit tests for document reading and markdown rendering.
"""

import pytest

from preview_service.document import read_document, render_document, render_markdown
from preview_service.errors import ReadError


class TestReadDocument:
    """Tests for read_document."""

    def test_reads_current_contents(self, document):
        assert read_document(document).startswith("# Jane Doe")

    def test_rereads_after_edit(self, document):
        """Nothing is cached between reads."""
        read_document(document)
        document.write_text("# Changed\n", encoding="utf-8")
        assert read_document(document) == "# Changed\n"

    def test_missing_file_raises_read_error(self, tmp_path):
        missing = tmp_path / "missing.md"
        with pytest.raises(ReadError) as exc_info:
            read_document(missing)
        assert exc_info.value.path == str(missing)
        assert "missing.md" in str(exc_info.value)

    def test_invalid_utf8_raises_read_error(self, tmp_path):
        path = tmp_path / "binary.md"
        path.write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(ReadError):
            read_document(path)

    def test_directory_raises_read_error(self, tmp_path):
        with pytest.raises(ReadError):
            read_document(tmp_path)


class TestRenderMarkdown:
    """Tests for render_markdown."""

    def test_heading_and_emphasis(self):
        html = render_markdown("# Title\n\nHello **world**")
        assert html == "<h1>Title</h1>\n<p>Hello <strong>world</strong></p>"

    def test_single_newline_becomes_line_break(self):
        html = render_markdown("line one\nline two")
        assert html == "<p>line one<br>\nline two</p>"

    def test_tables_are_rendered(self):
        html = render_markdown("| A | B |\n|---|---|\n| 1 | 2 |")
        assert "<table>" in html
        assert "<th>A</th>" in html
        assert "<td>2</td>" in html

    def test_fenced_code_keeps_language(self):
        html = render_markdown("```python\nprint(1)\n```")
        assert '<code class="language-python">' in html
        assert "print(1)" in html

    def test_output_has_no_markdown_markers(self):
        html = render_markdown("## Skills\n\n- **Python**\n- *Go*\n")
        assert "##" not in html
        assert "**" not in html
        assert "<h2>Skills</h2>" in html
        assert "<li><strong>Python</strong></li>" in html
        assert "<li><em>Go</em></li>" in html

    def test_footnotes_do_not_leak_between_calls(self):
        first = render_markdown("Text[^1]\n\n[^1]: Note")
        second = render_markdown("Plain text")
        assert "footnote" in first
        assert "footnote" not in second

    def test_empty_document(self):
        assert render_markdown("") == ""


class TestRenderDocument:
    """Tests for render_document."""

    def test_renders_file(self, document):
        html = render_document(document)
        assert "<h1>Jane Doe</h1>" in html
        assert "Senior Engineer<br>" in html
        assert "<li>Built <strong>things</strong></li>" in html

    def test_missing_file_raises_read_error(self, tmp_path):
        with pytest.raises(ReadError):
            render_document(tmp_path / "gone.md")
