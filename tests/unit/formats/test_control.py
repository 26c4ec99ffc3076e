"""Tests for control stanza parsing and rendering."""

import pytest

from aptdepot.common.errors import ParseError
from aptdepot.formats.base import LAYOUT_FIELDS, ControlField
from aptdepot.formats.control import normalize_newlines, parse_control, render_control


BASIC_CONTROL = """Package: mytool
Version: 1.0.0
Architecture: amd64
Maintainer: Test <test@example.com>
Depends: libc6 (>= 2.34)
Description: A tool
 for testing
"""


class TestParseControl:
    """Tests for parse_control."""

    def test_parse_basic(self):
        """Test parsing a well-formed stanza."""
        stanza = parse_control(BASIC_CONTROL)

        assert stanza.package == "mytool"
        assert stanza.version == "1.0.0"
        assert stanza.architecture == "amd64"
        assert stanza["Depends"] == "libc6 (>= 2.34)"

    def test_field_order_preserved(self):
        """Test fields keep their original order."""
        stanza = parse_control(BASIC_CONTROL)

        assert stanza.names() == [
            "Package",
            "Version",
            "Architecture",
            "Maintainer",
            "Depends",
            "Description",
        ]

    def test_multiline_value(self):
        """Test continuation lines are kept with their indentation."""
        stanza = parse_control(BASIC_CONTROL)

        assert stanza.description == "A tool\n for testing"

    def test_multiline_value_with_dot_and_tab(self):
        """Test paragraph separators and tab continuations."""
        content = (
            "Package: a\nVersion: 1\nArchitecture: all\n"
            "Description: short\n first\n .\n\tsecond\n"
        )
        stanza = parse_control(content)

        assert stanza.description == "short\n first\n .\n\tsecond"

    def test_empty_first_line_value(self):
        """Test fields whose value starts on the next line."""
        content = (
            "Package: a\nVersion: 1\nArchitecture: all\nDescription: d\n"
            "Conffiles:\n /etc/a.conf 0123\n /etc/b.conf 4567\n"
        )
        stanza = parse_control(content)

        assert stanza["Conffiles"] == "\n /etc/a.conf 0123\n /etc/b.conf 4567"

    def test_case_insensitive_lookup(self):
        """Test field lookup ignores case."""
        stanza = parse_control(BASIC_CONTROL)

        assert "package" in stanza
        assert stanza.get("ARCHITECTURE") == "amd64"
        assert stanza.get("Missing") is None

    def test_comments_skipped(self):
        """Test comment lines are ignored."""
        content = "# generated\nPackage: a\n# inline\nVersion: 1\nArchitecture: all\nDescription: d\n"
        stanza = parse_control(content)

        assert stanza.names() == ["Package", "Version", "Architecture", "Description"]

    def test_crlf_normalized(self):
        """Test CRLF line endings parse like LF."""
        stanza = parse_control(BASIC_CONTROL.replace("\n", "\r\n"))

        assert stanza.description == "A tool\n for testing"
        assert stanza.package == "mytool"

    def test_leading_and_trailing_blank_lines(self):
        """Test blank lines around the single paragraph are accepted."""
        stanza = parse_control("\n\n" + BASIC_CONTROL + "\n\n")

        assert stanza.package == "mytool"

    def test_value_whitespace_stripped(self):
        """Test whitespace around a single-line value is removed."""
        content = "Package:   spaced   \nVersion: 1\nArchitecture: all\nDescription: d\n"

        assert parse_control(content).package == "spaced"

    def test_duplicate_field(self):
        """Test duplicate fields are rejected regardless of case."""
        content = BASIC_CONTROL + "package: other\n"

        with pytest.raises(ParseError, match="Duplicate field"):
            parse_control(content)

    def test_missing_required_fields(self):
        """Test every missing required field is reported."""
        content = "Package: a\nMaintainer: x\n"

        with pytest.raises(ParseError) as exc_info:
            parse_control(content)

        message = str(exc_info.value)
        assert "Version" in message
        assert "Architecture" in message
        assert "Description" in message

    def test_field_position_and_maintainer_not_enforced(self):
        """Test a stanza without Maintainer and not led by Package is accepted."""
        content = "Version: 1.0\nArchitecture: all\nPackage: a\nDescription: d\n"

        stanza = parse_control(content)

        assert stanza.package == "a"
        assert stanza.names()[0] == "Version"
        assert stanza.get("Maintainer") is None

    def test_custom_required_fields(self):
        """Test the required field set can be overridden."""
        stanza = parse_control("Package: a\n", required=("Package",))

        assert stanza.package == "a"

    def test_continuation_without_field(self):
        """Test a continuation line before any field is rejected."""
        with pytest.raises(ParseError, match="Continuation"):
            parse_control(" orphan\nPackage: a\n")

    def test_line_without_colon(self):
        """Test a line that is not a field is rejected."""
        with pytest.raises(ParseError, match="Name: value"):
            parse_control("Package: a\nnot a field\n")

    def test_second_paragraph(self):
        """Test more than one paragraph is rejected."""
        with pytest.raises(ParseError, match="second paragraph"):
            parse_control(BASIC_CONTROL + "\nPackage: other\n")

    def test_empty_value(self):
        """Test a field without any value is rejected."""
        with pytest.raises(ParseError, match="no value"):
            parse_control("Package:\nVersion: 1\nArchitecture: all\nDescription: d\n")

    def test_empty_content(self):
        """Test empty content is rejected."""
        with pytest.raises(ParseError, match="empty"):
            parse_control("\n# only a comment\n")


class TestRenderControl:
    """Tests for render_control and field rendering."""

    def test_render_reparses_identically(self):
        """Test rendered text parses back to the same fields."""
        stanza = parse_control(BASIC_CONTROL)

        assert parse_control(render_control(stanza)).fields == stanza.fields

    def test_render_empty_first_line(self):
        """Test values starting with a newline render without a space."""
        field = ControlField("Conffiles", "\n /etc/a.conf 0123")

        assert field.render() == "Conffiles:\n /etc/a.conf 0123"

    def test_without_layout_fields(self):
        """Test layout fields are dropped case-insensitively."""
        stanza = parse_control(BASIC_CONTROL + "size: 10\nFilename: pool/x.deb\nSHA256: ab\n")

        trimmed = stanza.without(LAYOUT_FIELDS)

        assert "Size" not in trimmed
        assert "Filename" not in trimmed
        assert "SHA256" not in trimmed
        assert trimmed.names()[-1] == "Description"


def test_normalize_newlines():
    """Test CRLF and lone CR become LF."""
    assert normalize_newlines("a\r\nb\rc\n") == "a\nb\nc\n"
