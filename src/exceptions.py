# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Domain exceptions raised by the settings store and utility services."""


class PMPulseError(Exception):
    """Base class for all domain errors.

    Attributes:
        message: Human readable error message.
        field: Name of the request field the error relates to, if any.
    """

    error_type = "error"

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize error.

        Args:
            message: Human readable error message.
            field: Optional field name for field-level error rendering.
        """
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(PMPulseError):
    """Input was rejected before persistence."""

    error_type = "validation_error"


class InvalidKeyFormatError(ValidationError):
    """Utility type key does not match the allowed pattern."""

    error_type = "invalid_key_format"


class DuplicateKeyError(PMPulseError):
    """A uniqueness constraint would be violated."""

    error_type = "duplicate_key"


class DuplicateAccountError(DuplicateKeyError):
    """GL account number is already mapped."""

    error_type = "duplicate_account"


class InUseError(PMPulseError):
    """Delete blocked by referential usage."""

    error_type = "in_use"


class NotFoundError(PMPulseError):
    """Unknown id or key."""

    error_type = "not_found"


class ConfigTypeError(PMPulseError):
    """Stored setting value does not have the type the caller expects."""

    error_type = "config_type_error"


class EncryptionError(PMPulseError):
    """Encrypted value could not be encrypted or decrypted."""

    error_type = "encryption_error"
