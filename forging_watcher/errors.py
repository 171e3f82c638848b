from __future__ import annotations


class FatalError(Exception):
    """
    Unrecoverable failure. Raised anywhere below the CLI and turned into a
    non-zero exit by cli.main().
    """


class NodeApiError(FatalError):
    """HTTP transport, status or JSON decoding failure."""


class OracleError(FatalError):
    """A response arrived but does not contain a usable value."""


class ActionError(FatalError):
    """A corrective action did not reach its post-condition."""


class RetryExhausted(FatalError):
    def __init__(self, last_error: BaseException | None, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"Exceeded max retry limit after {attempts} attempt(s): {last_error}")
