"""Error taxonomy. Every failure surfaces as one DreamGenError with a stable code."""

from __future__ import annotations


class DreamGenError(Exception):
    """Base exception for all client-layer errors."""

    code = "error"

    def __init__(self, message: str, code: str | None = None):
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class ValidationError(DreamGenError):
    """A parameter is missing or outside its allowed set."""

    code = "invalid_request"


class NotFoundError(DreamGenError):
    """A local file or reference does not exist."""

    code = "file_not_found"


class ReadError(DreamGenError):
    """A local file exists but cannot be read."""

    code = "file_read_error"


class TaskNotReadyError(DreamGenError):
    code = "task_not_ready"


class NoOutputError(DreamGenError):
    code = "no_output"


class NetworkError(DreamGenError):
    """Transport-level failure that is neither a timeout nor a refused connection."""

    code = "network_error"


class RequestTimeoutError(NetworkError):
    code = "timeout"


class ConnectionFailedError(NetworkError):
    code = "connection_error"


class APIError(DreamGenError):
    """Non-success HTTP status from the API, classified by status code."""

    code = "api_error"

    def __init__(self, message: str, code: str | None = None, status_code: int = 0):
        super().__init__(message, code=code)
        self.status_code = status_code


class DecodeError(DreamGenError):
    code = "decode_error"


class OutputError(DreamGenError):
    """Cannot create the output directory or file, or cannot write to it."""

    code = "output_error"


class DownloadError(DreamGenError):
    code = "download_error"


class ConfigError(DreamGenError):
    code = "config_error"


class MissingAPIKeyError(ConfigError):
    code = "missing_api_key"
