# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def block_boto3_clients() -> Generator[None, None, None]:
    """Fail loudly if a test builds a real boto3 client."""
    def _refuse(*args: object, **kwargs: object) -> None:
        raise RuntimeError(
            f"Real boto3 client requested in test: {args!r}"
        )

    with patch("boto3.client", side_effect=_refuse):
        yield
