"""Python client library for the Viessmann Vitotrol/Vitodata web service.

Usage:
    Read values:
        from pyvitotrol import VitotrolClient
        from pyvitotrol.attributes import OUTDOOR_TEMP

        async with VitotrolClient(login, password) as client:
            devices = await client.get_devices()
            await devices[0].get_data([OUTDOOR_TEMP])
            print(devices[0].attributes[OUTDOOR_TEMP].value)

    Write a value and wait for the gateway to apply it:
        from pyvitotrol.attributes import HEAT_NORMAL_TEMP

        task = await device.write_data_wait(HEAT_NORMAL_TEMP, "21")
        await task
"""

from __future__ import annotations

from .attributes import (
    NO_ATTR,
    AttrAccess,
    AttributeRegistry,
    AttrRef,
    Value,
    default_registry,
)
from .client import VitotrolClient
from .device import Device
from .exceptions import (
    AttributeAccessError,
    BadDayError,
    BadDayRangeError,
    DuplicateDayError,
    EnumInvalidValueError,
    FormatInvalidError,
    UnknownAttributeError,
    UnknownTimesheetError,
    VitotrolAPIError,
    VitotrolCodecError,
    VitotrolConfigError,
    VitotrolConnectionError,
    VitotrolError,
    VitotrolHTTPError,
    VitotrolProtocolError,
    VitotrolTimeoutError,
    VitotrolTransportError,
    VitotrolValidationError,
    VitotrolXMLError,
)
from .models import AttributeInfo, ErrorHistoryEvent, ResultHeader
from .polling import AsyncStatusPoller, PollState, PollTiming
from .timesheets import Timeslot, TimesheetRef
from .types import TypeKind, VitodataType

__version__ = "0.1.0"

__all__ = [
    "VitotrolClient",
    "Device",
    # Attributes
    "NO_ATTR",
    "AttrAccess",
    "AttrRef",
    "AttributeRegistry",
    "Value",
    "default_registry",
    # Types
    "TypeKind",
    "VitodataType",
    # Timesheets
    "Timeslot",
    "TimesheetRef",
    # Polling
    "AsyncStatusPoller",
    "PollState",
    "PollTiming",
    # Models
    "AttributeInfo",
    "ErrorHistoryEvent",
    "ResultHeader",
    # Exceptions
    "VitotrolError",
    "VitotrolTransportError",
    "VitotrolConnectionError",
    "VitotrolHTTPError",
    "VitotrolProtocolError",
    "VitotrolXMLError",
    "VitotrolAPIError",
    "VitotrolValidationError",
    "UnknownAttributeError",
    "AttributeAccessError",
    "UnknownTimesheetError",
    "BadDayError",
    "BadDayRangeError",
    "DuplicateDayError",
    "VitotrolCodecError",
    "FormatInvalidError",
    "EnumInvalidValueError",
    "VitotrolTimeoutError",
    "VitotrolConfigError",
]
