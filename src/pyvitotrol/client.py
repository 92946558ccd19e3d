"""Vitotrol/Vitodata web service client.

This module provides the async session object for the Vitodata SOAP API
used by the Viessmann Vitotrol mobile application.

Key Features:
- Async/await support with aiohttp
- Support for injected aiohttp.ClientSession
- Explicit cookie continuation, replaced wholesale on every response
- Uniform result header checking for every action
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from .attributes import AttributeRegistry, default_registry
from .constants import (
    APP_ID,
    APP_VERSION,
    CONTENT_TYPE,
    DEFAULT_TIMEOUT,
    MAIN_URL,
    OPERATING_SYSTEM,
    SOAP_NAMESPACE,
)
from .device import Device
from .exceptions import VitotrolConnectionError, VitotrolHTTPError, VitotrolProtocolError
from .models import DeviceEntry, LocationEntry, LoginResult, ResultHeader, parse_model
from .soap import build_element, build_envelope, find_text, leaf_dict, parse_response

_LOGGER = logging.getLogger(__name__)


class VitotrolClient:
    """Vitotrol/Vitodata API client.

    The client holds the session cookies, the device list and the attribute
    registry used to name and convert device values.

    Example:
        ```python
        async with VitotrolClient(login, password) as client:
            devices = await client.get_devices()
            device = devices[0]
            await device.get_data([OUTDOOR_TEMP])
            print(device.attributes[OUTDOOR_TEMP].value)
        ```
    """

    def __init__(
        self,
        login: str,
        password: str,
        *,
        base_url: str = MAIN_URL,
        timeout: int = DEFAULT_TIMEOUT,
        session: aiohttp.ClientSession | None = None,
        registry: AttributeRegistry | None = None,
        debug: bool = False,
    ) -> None:
        """Initialize the Vitotrol API client.

        Args:
            login: Vitotrol account login
            password: Vitotrol account password
            base_url: Web service endpoint (default: Viessmann endpoint)
            timeout: Request timeout in seconds (default: 30)
            session: Optional aiohttp ClientSession for session injection;
                its cookie jar is cleared before each request
            registry: Attribute registry, shared between clients if the same
                instance is passed; a fresh catalog is created otherwise
            debug: Log raw response bodies and every poll status
        """
        self.login_name = login
        self.password = password
        self.base_url = base_url
        self.timeout = ClientTimeout(total=timeout)
        self.debug = debug

        self._session: aiohttp.ClientSession | None = session
        self._owns_session: bool = session is None

        # Raw Set-Cookie values of the last response that carried some
        self.cookies: list[str] = []
        self.devices: list[Device] = []
        self.attributes: AttributeRegistry = (
            registry if registry is not None else default_registry()
        )

    async def __aenter__(self) -> VitotrolClient:
        """Async context manager entry."""
        await self.login()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session.

        Returns:
            aiohttp.ClientSession: The session to use for requests.
        """
        if self._session is not None and not self._owns_session:
            return self._session

        if self._session is None or self._session.closed:
            # Cookies are managed explicitly, keep aiohttp's jar out of the way
            self._session = aiohttp.ClientSession(
                timeout=self.timeout, cookie_jar=aiohttp.DummyCookieJar()
            )
            self._owns_session = True

        return self._session

    async def close(self) -> None:
        """Close the session if we own it.

        Only closes the session if it was created by this client,
        not if it was injected.
        """
        if self._session and not self._session.closed and self._owns_session:
            await self._session.close()

    def _cookie_header(self) -> str:
        # Only the name=value part of each Set-Cookie value is sent back
        return "; ".join(cookie.split(";", 1)[0].strip() for cookie in self.cookies)

    async def send_request(self, action: str, body: str) -> ET.Element:
        """Send a SOAP action and return its result element.

        This is the single place where HTTP I/O happens.

        Args:
            action: SOAP action name, e.g. ``"GetData"``
            body: Action body, inserted verbatim in the envelope

        Returns:
            The ``<Action>Result`` element, namespaces stripped

        Raises:
            VitotrolConnectionError: If the service cannot be reached
            VitotrolHTTPError: If the HTTP status is not 200
            VitotrolXMLError: If the response is not the expected XML
            VitotrolAPIError: If the result header reports an error
        """
        session = await self._get_session()
        # An injected session keeps its own jar; only self.cookies may be sent
        session.cookie_jar.clear()

        headers = {
            "SOAPAction": SOAP_NAMESPACE + action,
            "Content-Type": CONTENT_TYPE,
        }
        if self.cookies:
            headers["Cookie"] = self._cookie_header()

        _LOGGER.debug("Sending %s request", action)

        try:
            async with session.post(
                self.base_url,
                data=build_envelope(body).encode("utf-8"),
                headers=headers,
            ) as response:
                raw = await response.read()
                if response.status != 200:
                    raise VitotrolHTTPError(
                        response.status,
                        raw.decode("utf-8", errors="replace"),
                        dict(response.headers),
                    )

                set_cookies = response.headers.getall("Set-Cookie", [])
                if set_cookies:
                    self.cookies = list(set_cookies)

        except aiohttp.ClientError as err:
            raise VitotrolConnectionError(f"{action}: connection error: {err}") from err
        except TimeoutError as err:
            raise VitotrolConnectionError(f"{action}: request timed out") from err

        if self.debug:
            _LOGGER.debug("%s response: %s", action, raw.decode("utf-8", errors="replace"))

        result = parse_response(raw, action)
        header = parse_model(ResultHeader, leaf_dict(result))
        if header.is_error():
            raise header.to_exception()
        return result

    async def login(self) -> LoginResult:
        """Authenticate and start a new cookie session.

        Returns:
            Profile fields of the account (informational only)

        Raises:
            VitotrolAPIError: If the credentials are rejected
        """
        self.cookies = []

        body = (
            "<Login>"
            f"{build_element('AppId', APP_ID)}"
            f"{build_element('AppVersion', APP_VERSION)}"
            f"{build_element('Passwort', self.password)}"
            f"{build_element('Betriebssystem', OPERATING_SYSTEM)}"
            f"{build_element('Benutzer', self.login_name)}"
            "</Login>"
        )
        result = await self.send_request("Login", body)
        profile = parse_model(LoginResult, leaf_dict(result))

        _LOGGER.info("Logged in as %s", self.login_name)
        return profile

    async def get_devices(self) -> list[Device]:
        """Fetch the location/device tree as a flat, sorted device list.

        A device has an error if it or its location has one, and is
        connected only if both are. The list is sorted by location ID then
        device ID and replaces :attr:`devices`.

        Returns:
            The new device list
        """
        result = await self.send_request("GetDevices", "<GetDevices/>")

        devices: list[Device] = []
        for location_elem in result.findall("AnlageListe/AnlageV2"):
            location = parse_model(LocationEntry, leaf_dict(location_elem))
            for device_elem in location_elem.findall("GeraeteListe/GeraetV2"):
                entry = parse_model(DeviceEntry, leaf_dict(device_elem))
                devices.append(
                    Device(
                        self,
                        location_id=location.location_id,
                        location_name=location.location_name,
                        device_id=entry.device_id,
                        device_name=entry.device_name,
                        has_error=location.has_error or entry.has_error,
                        is_connected=location.is_connected and entry.is_connected,
                    )
                )

        devices.sort(key=lambda device: (device.location_id, device.device_id))
        self.devices = devices

        _LOGGER.info("Found %d devices", len(devices))
        return devices

    async def _request_status(self, action: str, refresh_id: str) -> int:
        body = f"<{action}>{build_element('AktualisierungsId', refresh_id)}</{action}>"
        result = await self.send_request(action, body)
        status = find_text(result, "Status")
        try:
            return int(status)
        except ValueError as err:
            raise VitotrolProtocolError(f"{action}: bad status {status!r}") from err

    async def request_write_status(self, refresh_id: str) -> int:
        """Return the status of a pending WriteData/WriteTimesheetData."""
        return await self._request_status("RequestWriteStatus", refresh_id)

    async def request_refresh_status(self, refresh_id: str) -> int:
        """Return the status of a pending RefreshData."""
        return await self._request_status("RequestRefreshStatus", refresh_id)
