"""Shared fixtures for integration tests."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from dotenv import load_dotenv

from pyvitotrol import Device, VitotrolClient
from pyvitotrol.constants import ENV_LOGIN, ENV_PASSWORD, MAIN_URL

# Load .env file before running tests
env_path = Path(__file__).parent.parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

# Load credentials from environment
VITOTROL_LOGIN = os.getenv(ENV_LOGIN)
VITOTROL_PASSWORD = os.getenv(ENV_PASSWORD)
VITOTROL_BASE_URL = os.getenv("VITOTROL_BASE_URL", MAIN_URL)


def has_credentials() -> bool:
    """Check whether live credentials are configured."""
    return bool(VITOTROL_LOGIN and VITOTROL_PASSWORD)


@pytest.fixture(scope="function")
async def client() -> AsyncGenerator[VitotrolClient, None]:
    """Create authenticated client for testing.

    Each test gets a fresh session so cookies never leak between tests.
    """
    if not has_credentials():
        pytest.skip(f"{ENV_LOGIN} and {ENV_PASSWORD} are not set")
    async with VitotrolClient(
        VITOTROL_LOGIN or "",
        VITOTROL_PASSWORD or "",
        base_url=VITOTROL_BASE_URL,
    ) as client:
        yield client


@pytest.fixture(scope="function")
async def device(client: VitotrolClient) -> Device:
    """Load first device for testing."""
    devices = await client.get_devices()
    if not devices:
        pytest.skip("No devices found")
    return devices[0]
