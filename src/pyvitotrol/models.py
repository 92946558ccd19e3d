"""Response models for the Vitodata web service.

The service speaks German on the wire; models expose English field names
and keep the German element names as pydantic aliases so a flat
``{element: text}`` dict extracted from the XML validates directly.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import VitotrolAPIError, VitotrolProtocolError
from .timestamps import format_timestamp, parse_timestamp

ModelT = TypeVar("ModelT", bound=BaseModel)


class VitotrolModel(BaseModel):
    """Base model accepting both German aliases and English field names."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def parse_model(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    """Validate response data, reporting failures as protocol errors.

    Raises:
        VitotrolProtocolError: If the data does not fit the model
    """
    try:
        return model.model_validate(data)
    except ValidationError as err:
        raise VitotrolProtocolError(f"Unexpected {model.__name__} content: {err}") from err


def _parse_wire_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        return parse_timestamp(value)
    return value


class ResultHeader(VitotrolModel):
    """Result header present in every response.

    A zero ``error_num`` means success; anything else is an error whose
    text is ``"<ErgebnisText> [#<Ergebnis>]"``.
    """

    error_num: int = Field(default=0, alias="Ergebnis")
    error_str: str = Field(default="", alias="ErgebnisText")

    def is_error(self) -> bool:
        """Check whether the header reports an application error."""
        return self.error_num != 0

    def to_exception(self) -> VitotrolAPIError:
        """Build the exception matching this header."""
        return VitotrolAPIError(self.error_num, self.error_str)

    def __str__(self) -> str:
        return f"{self.error_str} [#{self.error_num}]"


class LoginResult(VitotrolModel):
    """Profile fields returned by Login (informational only)."""

    tech_version: str = Field(default="", alias="TechVersion")
    first_name: str = Field(default="", alias="Vorname")
    last_name: str = Field(default="", alias="Nachname")


class LocationEntry(VitotrolModel):
    """A location (Anlage) of the GetDevices tree."""

    location_id: int = Field(alias="AnlageId")
    location_name: str = Field(default="", alias="AnlageName")
    has_error: bool = Field(default=False, alias="HatFehler")
    is_connected: bool = Field(default=False, alias="IstVerbunden")


class DeviceEntry(VitotrolModel):
    """A device (Geraet) of the GetDevices tree."""

    device_id: int = Field(alias="GeraetId")
    device_name: str = Field(default="", alias="GeraetName")
    has_error: bool = Field(default=False, alias="HatFehler")
    is_connected: bool = Field(default=False, alias="IstVerbunden")


class DataValue(VitotrolModel):
    """One value returned by GetData."""

    attribute_id: int = Field(alias="DatenpunktId")
    value: str = Field(default="", alias="Wert")
    time: datetime = Field(alias="Zeitstempel")

    parse_time = field_validator("time", mode="before")(_parse_wire_timestamp)


class ErrorHistoryEvent(VitotrolModel):
    """A timestamped entry of the device error history."""

    error: str = Field(default="", alias="FehlerCode")
    message: str = Field(default="", alias="FehlerMeldung")
    time: datetime = Field(alias="Zeitstempel")
    is_active: bool = Field(default=False, alias="FehlerIstAktiv")

    parse_time = field_validator("time", mode="before")(_parse_wire_timestamp)

    def __str__(self) -> str:
        active = " *ACTIVE*" if self.is_active else ""
        return f"{self.error}@{format_timestamp(self.time)} = {self.message}{active}"


class DaySlot(VitotrolModel):
    """One slot of a GetTimesheetData response."""

    day: str = Field(alias="Wochentag")
    from_: int = Field(alias="ZeitVon")
    to: int = Field(alias="ZeitBis")


class TypeInfoEntry(VitotrolModel):
    """Raw GetTypeInfo descriptor row.

    ``attribute_id`` stays textual: enum value rows use ``<id>-<index>``.
    """

    attribute_id: str = Field(alias="DatenpunktId")
    name: str = Field(default="", alias="DatenpunktName")
    type: str = Field(default="", alias="DatenpunktTyp")
    type_value: int = Field(default=0, alias="DatenpunktTypWert")
    min_value: str = Field(default="", alias="MinimalWert")
    max_value: str = Field(default="", alias="MaximalWert")
    group: str = Field(default="", alias="DatenpunktGruppe")
    heating_circuit_id: int = Field(default=0, alias="HeizkreisId")
    default_value: str = Field(default="", alias="Auslieferungswert")
    readable: bool = Field(default=False, alias="IstLesbar")
    writable: bool = Field(default=False, alias="IstSchreibbar")


class AttributeInfo(VitotrolModel):
    """Attribute descriptor discovered with GetTypeInfo.

    For ``ENUM`` attributes ``enum_values`` maps each index to its label.
    """

    attribute_id: int
    name: str
    type: str
    type_value: int = 0
    min_value: str = ""
    max_value: str = ""
    group: str = ""
    heating_circuit_id: int = 0
    default_value: str = ""
    readable: bool = False
    writable: bool = False
    enum_values: dict[int, str] = Field(default_factory=dict)

    @classmethod
    def from_entry(cls, attribute_id: int, entry: TypeInfoEntry) -> AttributeInfo:
        """Build a descriptor from a raw row with its numeric ID."""
        data = entry.model_dump(exclude={"attribute_id"})
        return cls(attribute_id=attribute_id, **data)
