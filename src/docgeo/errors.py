from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INPUT_NOT_FOUND = "INPUT_NOT_FOUND"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    DOWNSTREAM_FAILURE = "DOWNSTREAM_FAILURE"


class ConversionError(RuntimeError):
    """Raised by every converter entry point.

    ``kind`` discriminates the failure; ``cause`` is the underlying library
    exception for downstream failures.
    """

    def __init__(self, kind: ErrorKind, detail: str, *, prefix: str | None = None) -> None:
        message = f"{prefix}: {detail}" if prefix else detail
        super().__init__(message)
        self.kind = kind
        self.detail = detail

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def cause(self) -> BaseException | None:
        cause = self.__cause__
        while isinstance(cause, ConversionError) and cause.__cause__ is not None:
            cause = cause.__cause__
        return cause


def input_not_found(detail: str) -> ConversionError:
    return ConversionError(ErrorKind.INPUT_NOT_FOUND, detail)


def unsupported_format(detail: str) -> ConversionError:
    return ConversionError(ErrorKind.UNSUPPORTED_FORMAT, detail)


def wrap_failure(prefix: str, exc: BaseException) -> ConversionError:
    """Re-express *exc* under a conversion-direction prefix, keeping its kind."""

    if isinstance(exc, ConversionError):
        return ConversionError(exc.kind, exc.detail, prefix=prefix)
    detail = str(exc) or exc.__class__.__name__
    return ConversionError(ErrorKind.DOWNSTREAM_FAILURE, detail, prefix=prefix)


__all__ = [
    "ErrorKind",
    "ConversionError",
    "input_not_found",
    "unsupported_format",
    "wrap_failure",
]
