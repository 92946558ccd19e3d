"""Exceptions raised by pyvitotrol.

Every exception inherits from :class:`VitotrolError` so callers can use a
single ``except VitotrolError`` to catch transport, server-side, validation
and codec failures alike. Finer-grained classes let callers tell apart a
malformed value from an out-of-domain one, or a poll timeout from a failed
status check.
"""

from __future__ import annotations

from collections.abc import Mapping


class VitotrolError(Exception):
    """Base exception for all pyvitotrol errors."""

    pass


# Transport


class VitotrolTransportError(VitotrolError):
    """Base exception for failures talking to the Vitodata web service."""

    pass


class VitotrolConnectionError(VitotrolTransportError):
    """Failed to reach the web service (bad URL, network error, timeout)."""

    pass


class VitotrolHTTPError(VitotrolTransportError):
    """The web service answered with a non-200 HTTP status."""

    def __init__(
        self,
        status: int,
        body: str,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize with the raw HTTP response details.

        Args:
            status: HTTP status code
            body: Raw response body
            headers: Response headers
        """
        self.status = status
        self.body = body
        self.headers = dict(headers or {})
        super().__init__(f"HTTP error {status}: {body}")


class VitotrolProtocolError(VitotrolTransportError):
    """The response did not have the expected shape."""

    pass


class VitotrolXMLError(VitotrolProtocolError):
    """The response body is not well-formed XML or misses its result element."""

    pass


# Server side


class VitotrolAPIError(VitotrolError):
    """The result header of a response carried a non-zero error code.

    The string form mirrors the server's own rendering:
    ``"<message> [#<code>]"``.
    """

    def __init__(self, code: int, message: str) -> None:
        """Initialize with the result header contents.

        Args:
            code: Ergebnis value of the result header
            message: ErgebnisText value of the result header
        """
        self.code = code
        self.message = message
        super().__init__(f"{message} [#{code}]")


# Validation (raised before any network round-trip)


class VitotrolValidationError(VitotrolError):
    """Base exception for invalid caller input."""

    pass


class UnknownAttributeError(VitotrolValidationError):
    """Attribute name or ID is not in the registry."""

    def __init__(self, attribute: str) -> None:
        self.attribute = attribute
        super().__init__(f"unknown attribute `{attribute}'")


class AttributeAccessError(VitotrolValidationError):
    """Attribute does not grant the requested access."""

    def __init__(self, attribute: str, access: str) -> None:
        self.attribute = attribute
        self.access = access
        super().__init__(f"attribute `{attribute}' is not {access}")


class UnknownTimesheetError(VitotrolValidationError):
    """Timesheet name or ID is not in the catalog."""

    def __init__(self, timesheet: str) -> None:
        self.timesheet = timesheet
        super().__init__(f"unknown timesheet `{timesheet}'")


class BadDayError(VitotrolValidationError):
    """A timesheet day key is not a weekday code."""

    def __init__(self, day: str) -> None:
        self.day = day
        super().__init__(f"Bad timesheet day `{day}'")


class BadDayRangeError(VitotrolValidationError):
    """A timesheet ``D1-D2`` key does not name two valid weekdays."""

    def __init__(self, day_range: str) -> None:
        self.day_range = day_range
        super().__init__(f"Bad timesheet range of days `{day_range}'")


class DuplicateDayError(VitotrolValidationError):
    """A weekday is covered by more than one timesheet key."""

    def __init__(self, day: str) -> None:
        self.day = day
        super().__init__(f"Duplicate day `{day}'")


# Codecs


class VitotrolCodecError(VitotrolError, ValueError):
    """Base exception for value conversion failures."""

    pass


class FormatInvalidError(VitotrolCodecError):
    """Value text cannot be parsed for its type."""

    def __init__(self, type_name: str, value: str) -> None:
        self.type_name = type_name
        self.value = value
        super().__init__(f"Invalid format for {type_name}: {value!r}")


class EnumInvalidValueError(VitotrolCodecError):
    """Enum value is neither a known label nor an index in range."""

    def __init__(self, type_name: str, value: str) -> None:
        self.type_name = type_name
        self.value = value
        super().__init__(f"Invalid Enum value for {type_name}: {value!r}")


# Asynchronous completion


class VitotrolTimeoutError(VitotrolError):
    """A write or refresh did not complete before the poll timeout."""

    def __init__(self, refresh_id: str, elapsed: float) -> None:
        self.refresh_id = refresh_id
        self.elapsed = elapsed
        super().__init__(f"Timeout waiting for {refresh_id} after {elapsed:.1f}s")


# Configuration


class VitotrolConfigError(VitotrolError):
    """Credentials or configuration file are missing or unsafe."""

    pass
