"""Artifact format handling: .deb extraction and control stanzas."""

from .base import (
    ControlField,
    ControlStanza,
    DebArtifact,
    LAYOUT_FIELDS,
    REQUIRED_FIELDS,
)
from .control import parse_control, render_control
from .deb import DebArchiveExtractor

__all__ = [
    "ControlField",
    "ControlStanza",
    "DebArchiveExtractor",
    "DebArtifact",
    "LAYOUT_FIELDS",
    "REQUIRED_FIELDS",
    "parse_control",
    "render_control",
]
