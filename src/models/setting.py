# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Setting model for category-scoped runtime configuration."""

import json
from datetime import datetime
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.config import get_settings
from src.database import Base, utc_now
from src.exceptions import EncryptionError


def get_cipher() -> Fernet:
    """Get Fernet cipher for setting encryption.

    Returns:
        Fernet cipher instance.

    Raises:
        EncryptionError: If encryption key is missing or malformed.
    """
    settings = get_settings()
    if not settings.encryption_key:
        msg = "ENCRYPTION_KEY environment variable is required"
        raise EncryptionError(msg)
    try:
        return Fernet(settings.encryption_key.encode())
    except ValueError as e:
        msg = "ENCRYPTION_KEY is not a valid Fernet key"
        raise EncryptionError(msg) from e


def encrypt_value(value: Any) -> str | None:
    """Encrypt a JSON-serializable value using Fernet.

    Args:
        value: Plain value to encrypt.

    Returns:
        Fernet token as string, or None if input is None.
    """
    if value is None:
        return None
    cipher = get_cipher()
    return cipher.encrypt(json.dumps(value).encode()).decode()


def decrypt_value(token: str | None) -> Any:
    """Decrypt a Fernet token produced by encrypt_value.

    Args:
        token: Encrypted value.

    Returns:
        Decrypted value, or None if input is None.

    Raises:
        EncryptionError: If the token cannot be decrypted with the current key.
    """
    if token is None:
        return None
    cipher = get_cipher()
    try:
        plaintext = cipher.decrypt(token.encode()).decode()
    except InvalidToken as e:
        msg = "Stored value could not be decrypted with the configured key"
        raise EncryptionError(msg) from e
    return json.loads(plaintext)


class Setting(Base):
    """A single configuration value addressed by (category, key).

    Values are stored as JSON. Encrypted settings hold a Fernet token in
    the value column; the ``plain_value`` property decrypts transparently.
    """

    __tablename__ = "settings"
    __table_args__ = (
        UniqueConstraint("category", "key", name="uq_settings_category_key"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    encrypted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now
    )

    @property
    def plain_value(self) -> Any:
        """Get the decrypted value."""
        if self.encrypted:
            return decrypt_value(self.value)
        return self.value

    def store_value(self, value: Any, encrypted: bool) -> None:
        """Store a value, encrypting it when requested.

        Args:
            value: Value to persist.
            encrypted: Whether the value must be encrypted at rest.
        """
        self.encrypted = encrypted
        self.value = encrypt_value(value) if encrypted else value

    def has_secret(self) -> bool:
        """Check if an encrypted value is present.

        Returns:
            True if this is an encrypted setting with a stored value.
        """
        return self.encrypted and self.value is not None

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<Setting({self.category}.{self.key}, encrypted={self.encrypted})>"
