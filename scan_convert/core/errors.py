"""Error taxonomy for a single conversion run.

Nothing here is recovered internally: every error propagates to the caller
of the tool, and the HTTP adapter maps each kind to a status code.
"""
from __future__ import annotations


class ConversionError(Exception):
    """Base error for conversion failures."""

    status_code: int = 502


class MissingCredentialsError(ConversionError):
    """Raised when service credentials are not configured."""

    status_code = 503


class InputError(ConversionError):
    """Raised when no content source can be resolved or decoded."""

    status_code = 400


class MalformedResponseError(ConversionError):
    """Raised when the service response lacks a task id or status."""


class ProcessingFailedError(ConversionError):
    """Raised when the remote job ends in a failure status."""


class ConversionTimeoutError(ConversionError):
    """Raised when the job is not finished within the configured budget."""

    status_code = 504
