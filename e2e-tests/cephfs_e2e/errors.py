"""Error types raised by the CephFS E2E helpers.

Every failure surfaces as one of these so a test step can report the
command and raw output that produced it.
"""


class CephFSE2EError(Exception):
    """Base class for all helper errors."""


class TransportError(CephFSE2EError):
    """The execution target could not be reached or the exec itself failed."""

    def __init__(self, message: str, command: str = "", returncode: int | None = None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class CommandError(CephFSE2EError):
    """The command ran but reported a failure on stderr."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        super().__init__(f"{message}: {stderr.strip()}" if stderr else message)
        self.command = command
        self.stderr = stderr


class DecodeError(CephFSE2EError):
    """Command output could not be decoded into the expected shape."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(f"{message} (raw output: {raw!r})")
        self.raw = raw


class NotReadyError(CephFSE2EError):
    """A referenced resource is not yet in a queryable state."""


class ApiError(CephFSE2EError):
    """kubectl reported an error talking to the API server.

    Attributes:
        reason: Status reason parsed from "Error from server (<Reason>)",
            empty when kubectl did not report one
        stderr: Raw kubectl stderr
    """

    def __init__(self, message: str, reason: str = "", stderr: str = ""):
        super().__init__(message)
        self.reason = reason
        self.stderr = stderr


class PermanentError(CephFSE2EError):
    """Creation failed with an error that retrying will not fix."""


class PollTimeoutError(CephFSE2EError, TimeoutError):
    """A poll loop ran out of time without the condition becoming true."""


class VerificationError(CephFSE2EError, AssertionError):
    """Observed cluster state does not match the expected state."""

    def __init__(self, message: str, expected=None, observed=None):
        super().__init__(f"{message}: expected {expected!r}, found {observed!r}")
        self.expected = expected
        self.observed = observed
