# SPDX-FileCopyrightText: Copyright (c) 2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for z-stream version propagation.

Severity is decided by the caller, not the exception type: a MissingFieldError
is a skip for an external pipeline component or a fragment file, but aborts the
batch for an internal component.
"""

EXIT_OK = 0
EXIT_FAILURE = 1


class ZStreamError(Exception):
    """Base class for all z-stream errors."""


class ValidationError(ZStreamError):
    """Bad branch format, missing required directory or missing tool."""


class ParseError(ZStreamError, ValueError):
    """A version string could not be decomposed into three numeric components."""


class MissingFieldError(ZStreamError):
    """An expected label, parameter or field is absent from a document."""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class VerificationError(ZStreamError):
    """A post-write re-read does not match the value that was written."""


class StructuralAmbiguityError(ZStreamError):
    """A document lacks (or has more than one of) the expected structure."""
