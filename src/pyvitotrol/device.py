"""Vitotrol device operations.

A :class:`Device` is one boiler gateway found by
:meth:`VitotrolClient.get_devices`. It wraps every device-scoped action of
the web service and keeps the last values read in memory.

Reads (:meth:`Device.get_data`, :meth:`Device.get_timesheet_data`,
:meth:`Device.get_error_history`) fill the caches. Writes and refreshes only
queue work on the gateway: they return a refresh ID, and their ``*_wait``
variants return an :class:`asyncio.Task` that completes once the gateway
reports the operation as done.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from .attributes import Value
from .constants import ERROR_HISTORY_CULTURE, TIMESHEET_SLOT_TYPE, TYPE_INFO_ENUM
from .exceptions import VitotrolProtocolError
from .models import (
    AttributeInfo,
    DataValue,
    DaySlot,
    ErrorHistoryEvent,
    TypeInfoEntry,
    parse_model,
)
from .polling import (
    REFRESH_DATA_TIMING,
    WRITE_DATA_TIMING,
    WRITE_TIMESHEET_DATA_TIMING,
    AsyncStatusPoller,
    PollTiming,
    StatusCheck,
)
from .soap import build_device_body, build_element, build_id_list, find_text, leaf_dict
from .timestamps import format_timestamp
from .timesheets import Timesheet, Timeslot, decode_timesheet, encode_timesheet_slots

if TYPE_CHECKING:
    import xml.etree.ElementTree as ET

    from .client import VitotrolClient

_LOGGER = logging.getLogger(__name__)


class Device:
    """One Vitotrol device (a priori a boiler).

    Attributes:
        location_id: Location ID (AnlageId)
        location_name: Location name (AnlageName)
        device_id: Device ID (GeraetId)
        device_name: Device name (GeraetName)
        has_error: Device or location reports an error
        is_connected: Device and location are both connected
        attributes: Last values read by :meth:`get_data`
        timesheets: Last timesheets read by :meth:`get_timesheet_data`
        errors: Last error history read by :meth:`get_error_history`
    """

    def __init__(
        self,
        client: VitotrolClient,
        *,
        location_id: int,
        location_name: str,
        device_id: int,
        device_name: str,
        has_error: bool = False,
        is_connected: bool = False,
    ) -> None:
        self._client = client
        self.location_id = location_id
        self.location_name = location_name
        self.device_id = device_id
        self.device_name = device_name
        self.has_error = has_error
        self.is_connected = is_connected

        self.attributes: dict[int, Value] = {}
        self.timesheets: dict[int, Timesheet] = {}
        self.errors: list[ErrorHistoryEvent] = []

    def __repr__(self) -> str:
        return (
            f"Device({self.device_name!r}@{self.location_name!r}, "
            f"device_id={self.device_id}, location_id={self.location_id})"
        )

    async def _send(self, action: str, inner: str) -> ET.Element:
        body = build_device_body(action, self.device_id, self.location_id, inner)
        return await self._client.send_request(action, body)

    async def _send_for_refresh_id(self, action: str, inner: str) -> str:
        result = await self._send(action, inner)
        return find_text(result, "AktualisierungsId")

    # Reads

    async def get_data(self, attr_ids: Iterable[int]) -> None:
        """Read attribute values into :attr:`attributes`.

        Each returned value replaces the cached entry of its ID.

        Args:
            attr_ids: Attribute IDs to read
        """
        result = await self._send("GetData", build_id_list(attr_ids))

        for elem in result.findall("DatenwerteListe/WerteListe"):
            data = parse_model(DataValue, leaf_dict(elem))
            self.attributes[data.attribute_id] = Value(value=data.value, time=data.time)
            _LOGGER.debug("%r: attribute %d = %r", self, data.attribute_id, data.value)

    async def get_error_history(self) -> None:
        """Read the error history into :attr:`errors`, in server order."""
        result = await self._send(
            "GetErrorHistory", build_element("Culture", ERROR_HISTORY_CULTURE)
        )
        self.errors = [
            parse_model(ErrorHistoryEvent, leaf_dict(elem))
            for elem in result.findall("FehlerListe/FehlerHistorie")
        ]

    async def get_timesheet_data(self, timesheet_id: int) -> None:
        """Read one timesheet into :attr:`timesheets`.

        Days are keyed by lowercase code (``"mon"``) and slots sorted by
        start time.
        """
        result = await self._send(
            "GetTimesheetData", build_element("DatenpunktId", int(timesheet_id))
        )
        slots = [
            parse_model(DaySlot, leaf_dict(elem))
            for elem in result.findall("SchaltsatzDaten/Schaltzeiten/Schaltzeit")
        ]
        self.timesheets[timesheet_id] = decode_timesheet(
            (slot.day, slot.from_, slot.to) for slot in slots
        )

    async def get_type_info(self) -> list[AttributeInfo]:
        """Fetch the attribute descriptors known by the gateway.

        Enum labels arrive as extra ``<id>-<index>`` rows following their
        parent row; they are folded into the parent's ``enum_values``.

        Returns:
            One descriptor per attribute, in server order

        Raises:
            VitotrolProtocolError: If an ID or an enum index is not a number
                up to 0xFFFF. Also raised when an enum value row comes before
                its parent row
        """
        result = await self._send("GetTypeInfo", "")

        infos: list[AttributeInfo] = []
        enums: dict[str, AttributeInfo] = {}
        for elem in result.findall("TypeInfoListe/DatenpunktTypInfo"):
            entry = parse_model(TypeInfoEntry, leaf_dict(elem))
            raw_id = entry.attribute_id.strip()

            if entry.type == TYPE_INFO_ENUM:
                parent_id, dash, index = raw_id.partition("-")
                if dash and parent_id:
                    if not index.isdecimal() or int(index) > 0xFFFF:
                        raise VitotrolProtocolError(
                            f"Cannot extract index value from `{raw_id}'"
                        )
                    parent = enums.get(parent_id)
                    if parent is None:
                        raise VitotrolProtocolError(
                            f"Enum value `{raw_id}' comes before its attribute"
                        )
                    # The label is carried by MinimalWert
                    parent.enum_values[int(index)] = entry.min_value
                    continue

            if not raw_id.isdecimal() or int(raw_id) > 0xFFFF:
                raise VitotrolProtocolError(f"Cannot parse AttributeID from `{raw_id}'")

            info = AttributeInfo.from_entry(int(raw_id), entry)
            if entry.type == TYPE_INFO_ENUM:
                enums[raw_id] = info
            infos.append(info)

        _LOGGER.debug("%r: %d attribute descriptors", self, len(infos))
        return infos

    # Writes and refreshes

    async def write_data(self, attr_id: int, value: str) -> str:
        """Queue an attribute write; prefer :meth:`write_data_wait`.

        Args:
            attr_id: Attribute ID
            value: Value in wire format

        Returns:
            Refresh ID to poll with RequestWriteStatus
        """
        inner = f"<DatapointId>{int(attr_id)}</DatapointId>{build_element('Wert', value)}"
        return await self._send_for_refresh_id("WriteData", inner)

    async def refresh_data(self, attr_ids: Iterable[int]) -> str:
        """Ask the gateway to refresh attribute values; prefer :meth:`refresh_data_wait`.

        Returns:
            Refresh ID to poll with RequestRefreshStatus
        """
        return await self._send_for_refresh_id("RefreshData", build_id_list(attr_ids))

    async def write_timesheet_data(
        self, timesheet_id: int, data: Mapping[str, Iterable[Timeslot]]
    ) -> str:
        """Queue a timesheet write; prefer :meth:`write_timesheet_data_wait`.

        Day keys are validated before anything is sent.

        Args:
            timesheet_id: Timesheet ID
            data: Slots per day key, ``"mon"`` or a range like ``"mon-fri"``

        Returns:
            Refresh ID to poll with RequestWriteStatus

        Raises:
            BadDayError: If a key is not a weekday code
            BadDayRangeError: If a range key is invalid
            DuplicateDayError: If a weekday is covered by two keys
        """
        slots = encode_timesheet_slots(data)
        inner = (
            f"<SchaltzeitTyp>{TIMESHEET_SLOT_TYPE}</SchaltzeitTyp>"
            f"<DatenpunktId>{int(timesheet_id)}</DatenpunktId>"
            f"<Schaltzeiten>{slots}</Schaltzeiten>"
        )
        # Device identifiers are nested one level deeper for this action
        body = (
            "<WriteTimesheetData>"
            f"{build_device_body('SchaltsatzData', self.device_id, self.location_id, inner)}"
            "</WriteTimesheetData>"
        )
        result = await self._client.send_request("WriteTimesheetData", body)
        return find_text(result, "AktualisierungsId")

    def _start_poll(
        self, refresh_id: str, request_status: StatusCheck, timing: PollTiming
    ) -> asyncio.Task[None]:
        poller = AsyncStatusPoller(
            refresh_id, request_status, timing, debug=self._client.debug
        )
        return poller.start()

    async def write_data_wait(
        self, attr_id: int, value: str, *, timing: PollTiming = WRITE_DATA_TIMING
    ) -> asyncio.Task[None]:
        """Write an attribute and poll for completion in the background.

        Errors of the WriteData call itself are raised here. The returned
        task completes when the write is done, or raises
        :class:`VitotrolTimeoutError` or the status check error.
        """
        refresh_id = await self.write_data(attr_id, value)
        return self._start_poll(refresh_id, self._client.request_write_status, timing)

    async def refresh_data_wait(
        self, attr_ids: Iterable[int], *, timing: PollTiming = REFRESH_DATA_TIMING
    ) -> asyncio.Task[None]:
        """Refresh attributes and poll for completion in the background.

        See :meth:`write_data_wait` for the error contract.
        """
        refresh_id = await self.refresh_data(attr_ids)
        return self._start_poll(refresh_id, self._client.request_refresh_status, timing)

    async def write_timesheet_data_wait(
        self,
        timesheet_id: int,
        data: Mapping[str, Iterable[Timeslot]],
        *,
        timing: PollTiming = WRITE_TIMESHEET_DATA_TIMING,
    ) -> asyncio.Task[None]:
        """Write a timesheet and poll for completion in the background.

        See :meth:`write_data_wait` for the error contract.
        """
        refresh_id = await self.write_timesheet_data(timesheet_id, data)
        return self._start_poll(refresh_id, self._client.request_write_status, timing)

    # Formatting

    def format_attributes(self, attr_ids: Iterable[int] | None = None) -> str:
        """Render cached values, one line per attribute.

        Args:
            attr_ids: Attributes to render, all registered ones if None

        Returns:
            Lines like ``OutdoorTemp: 12.5@2016-10-30 12:13:14 (Outdoor temperature)``
        """
        registry = self._client.attributes
        if attr_ids is None:
            attr_ids = registry.ids

        lines: list[str] = []
        for attr_id in attr_ids:
            ref = registry.lookup(attr_id)
            value = self.attributes.get(attr_id)
            if ref is None:
                if value is None:
                    lines.append(f"{attr_id}: uninitialized")
                else:
                    lines.append(f"{attr_id}: {value.value}@{format_timestamp(value.time)}")
            elif value is None:
                lines.append(f"{ref.name}: uninitialized ({ref.doc})")
            else:
                try:
                    human = ref.type.wire_to_human(value.value)
                except ValueError:
                    human = f"unknown-value<{value.value}>"
                lines.append(f"{ref.name}: {human}@{format_timestamp(value.time)} ({ref.doc})")

        return "".join(f"{line}\n" for line in lines)
