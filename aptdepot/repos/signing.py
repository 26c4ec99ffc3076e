"""Release signing through gpg.

Produces ``InRelease`` (clearsigned Release), ``Release.gpg``
(detached armored signature) and the binary public keyring clients
import, all with the configured key.
"""

import subprocess
from typing import List

from ..common.config import SigningConfig
from ..common.errors import GenerationError
from ..common.logger import get_logger

logger = get_logger("signing")


class ReleaseSigner:
    """Signs Release content with gpg."""

    def __init__(self, config: SigningConfig):
        """Initialize signer.

        Args:
            config: Signing configuration with the key to sign with

        Raises:
            ValueError: If no key id is configured
        """
        if not config.key_id:
            raise ValueError("Signing requires a key_id")
        self.config = config

    def _base_command(self) -> List[str]:
        cmd = [self.config.gpg_binary, "--batch", "--yes", "--local-user", self.config.key_id]
        if self.config.homedir:
            cmd += ["--homedir", self.config.homedir]
        return cmd

    def _run_gpg(self, args: List[str], data: bytes) -> bytes:
        """Run gpg with ``data`` on stdin and return stdout.

        Raises:
            GenerationError: If gpg is missing, fails or times out
        """
        cmd = self._base_command() + args
        try:
            result = subprocess.run(
                cmd,
                input=data,
                capture_output=True,
                check=True,
                timeout=self.config.timeout,
            )
        except FileNotFoundError as e:
            raise GenerationError(f"gpg not available: {self.config.gpg_binary}") from e
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace") if e.stderr else str(e)
            raise GenerationError(f"gpg failed: {stderr}") from e
        except subprocess.TimeoutExpired as e:
            raise GenerationError("gpg timed out") from e

        return result.stdout

    def clearsign(self, release: bytes) -> bytes:
        """Return the ``InRelease`` content for ``release``."""
        logger.debug(f"Clearsigning Release with key {self.config.key_id}")
        return self._run_gpg(["--digest-algo", "SHA256", "--clearsign"], release)

    def detach_sign(self, release: bytes) -> bytes:
        """Return the ``Release.gpg`` content for ``release``."""
        logger.debug(f"Detach-signing Release with key {self.config.key_id}")
        return self._run_gpg(["--digest-algo", "SHA256", "--armor", "--detach-sign"], release)

    def export_public_key(self) -> bytes:
        """Return the binary OpenPGP public key of the signing key.

        Raises:
            GenerationError: If gpg fails or the key is not in the keyring
        """
        key = self._run_gpg(["--export", self.config.key_id], b"")
        if not key:
            raise GenerationError(f"No public key exported for {self.config.key_id}")
        return key
