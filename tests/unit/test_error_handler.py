# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""Unit tests for domain error rendering."""

import json

import pytest
from src.exceptions import (
    ConfigTypeError,
    DuplicateAccountError,
    EncryptionError,
    InUseError,
    InvalidKeyFormatError,
    NotFoundError,
    ValidationError,
)
from src.middleware.error_handler import domain_error_handler, status_code_for
from starlette.requests import Request


def _request() -> Request:
    return Request({"type": "http", "method": "PUT", "path": "/api/settings/sync/x", "headers": []})


class TestStatusCodes:
    """Tests for mapping domain errors to HTTP status codes."""

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (ValidationError("bad"), 422),
            (InvalidKeyFormatError("bad key"), 422),
            (NotFoundError("missing"), 404),
            (DuplicateAccountError("dup"), 409),
            (InUseError("used"), 409),
            (ConfigTypeError("wrong type"), 500),
            (EncryptionError("no key"), 500),
        ],
    )
    def test_status_code_for(self, exc, expected):
        """Test each error type maps to its status code."""
        assert status_code_for(exc) == expected


class TestDomainErrorHandler:
    """Tests for the JSON error body."""

    @pytest.mark.asyncio
    async def test_body_shape(self):
        """Test the body carries detail, type and field."""
        response = await domain_error_handler(
            _request(), ValidationError("Setting sync.x must be a list", field="value")
        )

        assert response.status_code == 422
        assert json.loads(response.body) == {
            "detail": "Setting sync.x must be a list",
            "type": "validation_error",
            "field": "value",
        }

    @pytest.mark.asyncio
    async def test_encryption_error_hides_message(self):
        """Test encryption failures are reported generically."""
        response = await domain_error_handler(
            _request(), EncryptionError("ENCRYPTION_KEY is not a valid Fernet key")
        )

        body = json.loads(response.body)
        assert response.status_code == 500
        assert body["detail"] == "Server configuration error"
        assert body["type"] == "encryption_error"
