"""
Exception classes for gitprefetch.
"""

from typing import Optional


class PrefetchError(Exception):
    """Base exception for all prefetch-related errors."""

    pass


class UsageError(PrefetchError):
    """Raised when required arguments are missing for the selected mode."""

    pass


class FetchUnavailable(PrefetchError):
    """Raised when the shallow strategy cannot be used.

    This is never fatal: the caller falls back to the full fetch strategy.
    """

    def __init__(self, url: str, revision: str, reason: str = ""):
        self.url = url
        self.revision = revision
        self.reason = reason
        message = f"Shallow fetch of {revision} from {url} is not possible"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class CheckoutFailed(PrefetchError):
    """Raised when a revision cannot be fetched and checked out."""

    def __init__(self, url: str, revision: str, reason: str = ""):
        self.url = url
        self.revision = revision
        self.reason = reason
        message = f"Unable to checkout {revision} from {url}."
        if reason:
            message = f"{message} {reason}"
        super().__init__(message)


class SubmoduleResolutionFailed(PrefetchError):
    """Raised when a submodule's registered name or URL cannot be determined."""

    def __init__(self, path: str, message: str = ""):
        self.path = path
        if message:
            super().__init__(f"Submodule '{path}': {message}")
        else:
            super().__init__(f"Could not resolve submodule '{path}'")


class HashMismatch(PrefetchError):
    """Raised when the computed hash differs from the expected one."""

    def __init__(self, url: str, expected: str, actual: str):
        self.url = url
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"hash mismatch for URL `{url}'. Got `{actual}'; expected `{expected}'."
        )


class StoreError(PrefetchError):
    """Raised when a store or hashing command fails."""

    def __init__(self, command: str, stderr: Optional[str] = None):
        self.command = command
        self.stderr = stderr
        if stderr:
            super().__init__(f"Command `{command}` failed: {stderr}")
        else:
            super().__init__(f"Command `{command}` failed")
