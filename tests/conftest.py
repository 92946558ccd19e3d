"""Pytest configuration and fixtures for pyvitotrol tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable, Generator
from pathlib import Path

import pytest
from aioresponses import aioresponses

from pyvitotrol import Device, VitotrolClient

# Endpoint used by every mocked test, kept apart from the real one
BASE_URL = "http://vitodata.test/iPhoneWebService.asmx"

TEST_TIME = "2016-10-30 12:13:14"

DEVICE_ID = 1234
LOCATION_ID = 5678

# Sample data directory
SAMPLES_DIR = Path(__file__).parent / "samples"

RESPONSE_HEADER = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/"'
    ' xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"'
    ' xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
    "<soap:Body>"
)
RESPONSE_FOOTER = "</soap:Body></soap:Envelope>"


def load_sample(filename: str) -> str:
    """Load a sample SOAP response from the samples directory."""
    return (SAMPLES_DIR / filename).read_text(encoding="utf-8")


def build_soap_response(
    action: str,
    content: str = "",
    *,
    error_num: int = 0,
    error_str: str = "Kein Fehler",
) -> str:
    """Build a complete SOAP response for an action.

    Args:
        action: SOAP action name, e.g. ``"GetData"``
        content: Elements following the result header
        error_num: Ergebnis value of the result header
        error_str: ErgebnisText value of the result header
    """
    return (
        f"{RESPONSE_HEADER}"
        f'<{action}Response xmlns="http://www.e-controlnet.de/services/vii/">\n'
        f"<{action}Result>\n"
        f"<Ergebnis>{error_num}</Ergebnis>\n"
        f"<ErgebnisText>{error_str}</ErgebnisText>\n"
        f"{content}\n"
        f"</{action}Result>\n"
        f"</{action}Response>"
        f"{RESPONSE_FOOTER}"
    )


@pytest.fixture
def soap_response() -> Callable[..., str]:
    """Builder of SOAP responses, see :func:`build_soap_response`."""
    return build_soap_response


@pytest.fixture
def sample() -> Callable[[str], str]:
    """Loader of sample SOAP responses."""
    return load_sample


@pytest.fixture
def mocked_api() -> Generator[aioresponses, None, None]:
    """Create aioresponses mock for HTTP requests.

    This fixture provides a context manager for mocking aiohttp requests
    using the aioresponses library.
    """
    with aioresponses() as m:
        yield m


@pytest.fixture
async def client() -> AsyncGenerator[VitotrolClient, None]:
    """Create a client pointed at the mocked endpoint, not logged in."""
    client = VitotrolClient("login", "password", base_url=BASE_URL)
    yield client
    await client.close()


@pytest.fixture
def device(client: VitotrolClient) -> Device:
    """Create a device attached to the test client."""
    return Device(
        client,
        location_id=LOCATION_ID,
        location_name="Paris",
        device_id=DEVICE_ID,
        device_name="VT 200 (HO1C)",
        has_error=False,
        is_connected=True,
    )
