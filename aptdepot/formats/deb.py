"""Debian package (.deb) archive extractor.

Debian packages are ar archives containing:
- debian-binary: Format version
- control.tar[.gz|.xz|.bz2|.zst]: Control file and maintainer scripts
- data.tar[.gz|.xz|.bz2|.zst]: Package contents

Only the control member is decompressed; the data member is not inspected.
"""

import io
import lzma
import tarfile
import zlib
from pathlib import Path

from debian.arfile import ArError
from debian.debfile import DebError, DebFile

from ..common.errors import ParseError
from ..common.logger import get_logger
from .base import DebArtifact
from .control import parse_control

logger = get_logger("format.deb")

AR_MAGIC = b"!<arch>\n"

# Decompression failures surfaced by tarfile and the codecs it wraps
_ARCHIVE_ERRORS = (
    ArError,
    DebError,
    tarfile.TarError,
    lzma.LZMAError,
    zlib.error,
    EOFError,
    OSError,
    KeyError,
    ValueError,
)


class DebArchiveExtractor:
    """Extracts the control stanza from ``.deb`` artifacts."""

    def detect(self, data: bytes) -> bool:
        """Check for the ar archive magic bytes.

        Args:
            data: Artifact bytes (only the first 8 are inspected)

        Returns:
            True if the bytes start like an ar archive
        """
        return data[: len(AR_MAGIC)] == AR_MAGIC

    def extract(self, data: bytes) -> DebArtifact:
        """Parse artifact bytes into a control stanza.

        Args:
            data: Complete ``.deb`` file contents

        Returns:
            DebArtifact with parsed control stanza and raw control text

        Raises:
            ParseError: If the container is malformed, the control member
                cannot be decompressed, or required fields are missing
        """
        if not data:
            raise ParseError("Empty artifact")
        if not self.detect(data):
            raise ParseError("Invalid package file header (not an ar archive)")

        control_text = self._read_control(data)
        control = parse_control(control_text)

        artifact = DebArtifact(control=control, control_text=control_text, data=data)
        logger.debug(f"Extracted control stanza for {artifact.get_package_key()}")
        return artifact

    def extract_file(self, path: Path) -> DebArtifact:
        """Read a ``.deb`` from disk and extract it.

        Args:
            path: Path to the package file

        Returns:
            DebArtifact for the file contents

        Raises:
            ParseError: If the file is not a valid package
            FileNotFoundError: If the file doesn't exist
        """
        return self.extract(Path(path).read_bytes())

    def _read_control(self, data: bytes) -> str:
        """Return the text of the ``control`` member of the control archive.

        Raises:
            ParseError: On any container or decompression failure
        """
        try:
            deb = DebFile(fileobj=io.BytesIO(data))
            control_part = deb.control
            if not control_part.has_file("control"):
                raise ParseError("No control file found in control archive")
            raw = control_part.get_content("control")
        except ParseError:
            raise
        except _ARCHIVE_ERRORS as e:
            raise ParseError(f"Invalid deb archive: {e}") from e

        if raw is None:
            raise ParseError("No control file found in control archive")

        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Control file is not valid UTF-8: {e}") from e
