from typing import Any


class ContractRunnerError(Exception):
    """Base class for all errors raised by the contract runner."""


class ConfigError(ContractRunnerError):
    """Malformed runner configuration or case definition; aborts the run."""


class TransportError(ContractRunnerError):
    """The service could not be reached or did not answer in time."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class ParseError(ContractRunnerError):
    """The response body is not valid JSON."""


class AssertionFailure(ContractRunnerError):
    """A status or body expectation did not hold."""

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class PathNotFoundError(AssertionFailure):
    """The JSON path does not exist in the response body."""

    def __init__(self, path: str):
        super().__init__(f"path not found: {path}", expected=path, actual=None)
        self.path = path
