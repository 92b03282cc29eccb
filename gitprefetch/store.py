"""
Thin wrappers around the Nix store and hashing tools.

gitprefetch never hashes or stores anything itself; it shells out to
``nix-hash`` and ``nix-store``. ``NixStore`` is the only place where those
commands are spelled out, which keeps the driver testable with a fake.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from gitprefetch.errors import StoreError

logger = logging.getLogger(__name__)


def check_call(command: List[str]) -> subprocess.CompletedProcess:
    return subprocess.run(
        command,
        text=True,
        capture_output=True,
        check=False,
    )


class NixStore:
    """Content-addressed store operations backed by the nix command line tools."""

    def __init__(self, nix_store: str = "nix-store", nix_hash: str = "nix-hash"):
        self.nix_store = nix_store
        self.nix_hash = nix_hash

    def _run(self, command: List[str]) -> str:
        logger.debug(f"Running {' '.join(command)}")
        try:
            completed = check_call(command)
        except FileNotFoundError as e:
            raise StoreError(" ".join(command), f"{command[0]} not found") from e
        if completed.returncode != 0:
            raise StoreError(" ".join(command), completed.stderr.strip())
        return completed.stdout.strip()

    def print_fixed_path(self, hash_algo: str, hash: str, name: str) -> str:
        """Store path a recursive fixed-output entry with this hash would get."""
        return self._run(
            [
                self.nix_store,
                "--print-fixed-path",
                "--recursive",
                hash_algo,
                hash,
                name,
            ]
        )

    def check_validity(self, path: str) -> bool:
        """True when ``path`` is a valid entry of the store."""
        try:
            completed = check_call([self.nix_store, "--check-validity", path])
        except FileNotFoundError as e:
            raise StoreError(f"{self.nix_store} --check-validity", "not found") from e
        return completed.returncode == 0

    def hash_path(self, hash_algo: str, path: Path) -> str:
        """Base32 hash of the serialisation of ``path``."""
        return self._run(
            [self.nix_hash, "--type", hash_algo, "--base32", str(path)]
        )

    def to_sri(self, hash_algo: str, hash: str) -> Optional[str]:
        """SRI form of ``hash``, or None when the tool cannot convert it."""
        try:
            return self._run(
                [self.nix_hash, "--to-sri", "--type", hash_algo, hash]
            )
        except StoreError as e:
            logger.debug(f"Could not convert hash to SRI: {e}")
            return None

    def add_fixed(self, hash_algo: str, path: Path) -> str:
        """Add ``path`` recursively to the store and return its store path."""
        return self._run(
            [self.nix_store, "--add-fixed", "--recursive", hash_algo, str(path)]
        )
