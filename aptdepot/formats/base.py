"""Data structures shared by the artifact format handlers.

A :class:`ControlStanza` is the ordered key/value metadata block of a
Debian package; a :class:`DebArtifact` is what the extractor hands to the
ingestion pipeline. Neither is a catalog row: cataloged packages live in
:mod:`aptdepot.db.models`.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple


# Fields every control stanza must carry
REQUIRED_FIELDS: Tuple[str, ...] = ("Package", "Version", "Architecture", "Description")

# Fields that describe the repository layout rather than the artifact.
# The index generator always computes these itself.
LAYOUT_FIELDS: Tuple[str, ...] = (
    "Filename",
    "Size",
    "Description-md5",
    "MD5sum",
    "SHA1",
    "SHA256",
)


@dataclass(frozen=True)
class ControlField:
    """A single ``Name: value`` field of a control stanza.

    ``value`` holds the text after the colon with surrounding whitespace of
    the first line removed. Continuation lines follow it verbatim, joined
    with ``\\n`` and keeping their leading whitespace.
    """

    name: str
    value: str

    def render(self) -> str:
        """Render the field as it appears in a control file (no newline)."""
        if not self.value or self.value.startswith("\n"):
            return f"{self.name}:{self.value}"
        return f"{self.name}: {self.value}"


@dataclass
class ControlStanza:
    """Ordered, case-insensitively addressable control stanza."""

    fields: List[ControlField] = field(default_factory=list)

    def __iter__(self) -> Iterator[ControlField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self._find(name) is not None

    def __getitem__(self, name: str) -> str:
        found = self._find(name)
        if found is None:
            raise KeyError(name)
        return found.value

    def _find(self, name: str) -> Optional[ControlField]:
        lowered = name.lower()
        for f in self.fields:
            if f.name.lower() == lowered:
                return f
        return None

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Return a field value by case-insensitive name."""
        found = self._find(name)
        return found.value if found is not None else default

    def names(self) -> List[str]:
        """Return field names in their original order."""
        return [f.name for f in self.fields]

    def without(self, names: Tuple[str, ...]) -> "ControlStanza":
        """Return a copy without the given fields (case-insensitive)."""
        dropped = {n.lower() for n in names}
        return ControlStanza([f for f in self.fields if f.name.lower() not in dropped])

    @property
    def package(self) -> str:
        return self["Package"]

    @property
    def version(self) -> str:
        return self["Version"]

    @property
    def architecture(self) -> str:
        return self["Architecture"]

    @property
    def description(self) -> str:
        return self["Description"]


@dataclass
class DebArtifact:
    """Result of extracting an uploaded ``.deb``."""

    control: ControlStanza
    control_text: str  # control file as found in the archive
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        """Byte length of the whole artifact."""
        return len(self.data)

    def get_package_key(self) -> str:
        """Get the ``name_version_arch`` key for this artifact."""
        return f"{self.control.package}_{self.control.version}_{self.control.architecture}"
