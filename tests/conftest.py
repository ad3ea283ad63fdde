"""Shared fixtures for chainprobe tests."""

import pytest


@pytest.fixture
def anyio_backend():
    return "asyncio"
