"""Parsing and rendering of Debian control stanzas.

The parser follows the deb822 rules dpkg applies to ``DEBIAN/control``:
``Name: value`` fields, continuation lines starting with a space or tab,
``#`` comment lines, and a single paragraph per control file.
"""

from typing import Iterable, List, Optional

from ..common.errors import ParseError
from .base import REQUIRED_FIELDS, ControlField, ControlStanza


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def parse_control(content: str, required: Iterable[str] = REQUIRED_FIELDS) -> ControlStanza:
    """Parse control file content into an ordered stanza.

    Args:
        content: Control file content
        required: Field names that must be present

    Returns:
        ControlStanza preserving field order and multi-line values

    Raises:
        ParseError: If the content is malformed or required fields are missing
    """
    fields: List[ControlField] = []
    seen = set()
    current_name: Optional[str] = None
    current_lines: List[str] = []
    paragraph_ended = False

    def flush() -> None:
        if current_name is None:
            return
        value = "\n".join(current_lines).rstrip()
        if not value.strip():
            raise ParseError(f"Field has no value: {current_name}")
        fields.append(ControlField(current_name, value))

    for lineno, line in enumerate(normalize_newlines(content).split("\n"), start=1):
        if line.startswith("#"):
            continue

        if not line.strip():
            # Blank line ends the paragraph
            if current_name is not None or fields:
                paragraph_ended = True
            continue

        if paragraph_ended:
            raise ParseError(f"Unexpected second paragraph at line {lineno}")

        if line[0] in (" ", "\t"):
            if current_name is None:
                raise ParseError(f"Continuation line without a field at line {lineno}")
            current_lines.append(line.rstrip())
            continue

        if ":" not in line:
            raise ParseError(f"Expected 'Name: value' at line {lineno}")

        flush()

        name, value = line.split(":", 1)
        name = name.strip()
        if not name or any(c.isspace() for c in name):
            raise ParseError(f"Invalid field name at line {lineno}: {name!r}")
        if name.lower() in seen:
            raise ParseError(f"Duplicate field: {name}")
        seen.add(name.lower())

        current_name = name
        current_lines = [value.strip()]

    flush()

    if not fields:
        raise ParseError("Control file is empty")

    stanza = ControlStanza(fields)
    missing = [name for name in required if name not in stanza]
    if missing:
        raise ParseError(f"Missing required fields: {', '.join(missing)}")

    return stanza


def render_control(stanza: ControlStanza) -> str:
    """Render a stanza back to control file text.

    Args:
        stanza: Stanza to render

    Returns:
        Control text, one field per line group, ending in a single newline
    """
    return "".join(f"{f.render()}\n" for f in stanza)
