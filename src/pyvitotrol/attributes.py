"""Attribute catalog and registry.

Attributes are the data points a Vitotrol device exposes (temperatures,
setpoints, mode flags). Each one is identified by a 16-bit ID and described
by an :class:`AttrRef` carrying its name, codec and access rights.

The static catalog below holds the attributes known to work with Vitotrol
200 gateways. An :class:`AttributeRegistry` starts from that catalog and can
be extended at runtime with attributes discovered through GetTypeInfo.
Registries are plain objects: each client owns one by default, and several
clients can share a registry by passing the same instance explicitly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import IntFlag
from typing import TYPE_CHECKING

from .constants import TYPE_INFO_ENUM, TYPE_INFO_TIMESHEET
from .exceptions import AttributeAccessError, UnknownAttributeError
from .types import (
    TYPE_DATE,
    TYPE_DOUBLE,
    TYPE_ENABLED_ENUM,
    TYPE_NAMES,
    TYPE_ON_OFF_ENUM,
    TYPE_STRING,
    VitodataType,
    enum_type,
)

if TYPE_CHECKING:
    from .models import AttributeInfo

_LOGGER = logging.getLogger(__name__)

NO_ATTR = 0xFFFF


class AttrAccess(IntFlag):
    """Attribute access rights."""

    NONE = 0
    READ_ONLY = 1
    WRITE_ONLY = 2
    READ_WRITE = READ_ONLY | WRITE_ONLY


ACCESS_TO_STR: dict[AttrAccess, str] = {
    AttrAccess.READ_ONLY: "read-only",
    AttrAccess.WRITE_ONLY: "write-only",
    AttrAccess.READ_WRITE: "read/write",
}


@dataclass(frozen=True)
class AttrRef:
    """Reference description of an attribute.

    Attributes:
        type: Codec of the attribute values
        access: Access rights
        name: Unique human name
        doc: Short description
        custom: True for attributes registered at runtime
    """

    type: VitodataType
    access: AttrAccess
    name: str
    doc: str
    custom: bool = False

    def __str__(self) -> str:
        access = ACCESS_TO_STR.get(self.access, "")
        return f"{self.name}: {self.doc} ({self.type.name} - {access})"


@dataclass
class Value:
    """Timestamped wire value of an attribute."""

    value: str
    time: datetime

    def num(self) -> float:
        """Numeric value, 0.0 when the value is not a number."""
        try:
            return float(self.value)
        except ValueError:
            return 0.0


# Attribute IDs, with the Vitotrol internal name of each
INDOOR_TEMP = 5367  # temp_rts_r
OUTDOOR_TEMP = 5373  # temp_ats_r
SMOKE_TEMP = 5372  # temp_agt_r
BOILER_TEMP = 5374  # temp_kts_r
HOT_WATER_TEMP = 5381  # temp_ww_r
HOT_WATER_OUT_TEMP = 5382  # temp_auslauf_r
HEAT_WATER_OUT_TEMP = 6052  # temp_vts_r
HEAT_NORMAL_TEMP = 82  # konf_raumsolltemp_rw
PARTY_MODE_TEMP = 79  # konf_partysolltemp_rw
HEAT_REDUCED_TEMP = 85  # konf_raumsolltemp_reduziert_rw
HOT_WATER_SETPOINT_TEMP = 51  # konf_ww_solltemp_rw
BURNER_HOURS_RUN = 104  # anzahl_brennerstunden_r
BURNER_HOURS_RUN_RESET = 106  # anzahl_brennerstunden_w
BURNER_STATE = 600  # zustand_brenner_r
BURNER_STARTS = 111  # anzahl_brennerstart_r
INTERNAL_PUMP_STATUS = 245  # zustand_interne_pumpe_r
HEATING_PUMP_STATUS = 729  # zustand_heizkreispumpe_r
CIRCULATION_PUMP_STATE = 7181  # zustand_zirkulationspumpe_r
PARTY_MODE = 7855  # konf_partybetrieb_rw
ENERGY_SAVING_MODE = 7852  # konf_sparbetrieb_rw
DATE_TIME = 5385  # konf_uhrzeit_rw
CURRENT_ERROR = 7184  # aktuelle_fehler_r
HOLIDAYS_START = 306  # konf_ferien_start_rw
HOLIDAYS_END = 309  # konf_ferien_ende_rw
HOLIDAYS_STATUS = 714  # zustand_ferienprogramm_r
WAY3_VALVE_STATUS = 5389  # info_status_umschaltventil_r
OPERATING_MODE_REQUESTED = 92  # konf_betriebsart_rw
OPERATING_MODE_CURRENT = 708  # aktuelle_betriebsart_r
FROST_PROTECTION_STATUS = 717  # zustand_frostgefahr_r

_RO = AttrAccess.READ_ONLY
_WO = AttrAccess.WRITE_ONLY
_RW = AttrAccess.READ_WRITE

ATTRIBUTES_REF: dict[int, AttrRef] = {
    INDOOR_TEMP: AttrRef(TYPE_DOUBLE, _RO, "IndoorTemp", "Indoor temperature"),
    OUTDOOR_TEMP: AttrRef(TYPE_DOUBLE, _RO, "OutdoorTemp", "Outdoor temperature"),
    SMOKE_TEMP: AttrRef(TYPE_DOUBLE, _RO, "SmokeTemp", "Smoke temperature"),
    BOILER_TEMP: AttrRef(TYPE_DOUBLE, _RO, "BoilerTemp", "Boiler temperature"),
    HOT_WATER_TEMP: AttrRef(TYPE_DOUBLE, _RO, "HotWaterTemp", "Hot water temperature"),
    HOT_WATER_OUT_TEMP: AttrRef(
        TYPE_DOUBLE, _RO, "HotWaterOutTemp", "Hot water outlet temperature"
    ),
    HEAT_WATER_OUT_TEMP: AttrRef(
        TYPE_DOUBLE, _RO, "HeatWaterOutTemp", "Heating water outlet temperature"
    ),
    HEAT_NORMAL_TEMP: AttrRef(
        TYPE_DOUBLE, _RW, "HeatNormalTemp", "Setpoint of the normal room temperature"
    ),
    PARTY_MODE_TEMP: AttrRef(TYPE_DOUBLE, _RW, "PartyModeTemp", "Party mode temperature"),
    HEAT_REDUCED_TEMP: AttrRef(
        TYPE_DOUBLE, _RW, "HeatReducedTemp", "Setpoint of the reduced room temperature"
    ),
    HOT_WATER_SETPOINT_TEMP: AttrRef(
        TYPE_DOUBLE,
        _RW,
        "HotWaterSetpointTemp",
        "Setpoint of the domestic hot water temperature",
    ),
    BURNER_HOURS_RUN: AttrRef(TYPE_DOUBLE, _RO, "BurnerHoursRun", "Burner hours run"),
    BURNER_HOURS_RUN_RESET: AttrRef(
        TYPE_DOUBLE, _WO, "BurnerHoursRunReset", "Reset the burner hours run"
    ),
    BURNER_STATE: AttrRef(TYPE_ON_OFF_ENUM, _RO, "BurnerState", "Burner status"),
    BURNER_STARTS: AttrRef(TYPE_DOUBLE, _RW, "BurnerStarts", "Burner starts"),
    INTERNAL_PUMP_STATUS: AttrRef(
        enum_type(("off", "on", "off2", "on2")),
        _RO,
        "InternalPumpStatus",
        "Internal pump status",
    ),
    HEATING_PUMP_STATUS: AttrRef(
        TYPE_ON_OFF_ENUM, _RO, "HeatingPumpStatus", "Heating pump status"
    ),
    CIRCULATION_PUMP_STATE: AttrRef(
        TYPE_ON_OFF_ENUM, _RO, "CirculationPumpState", "Circulation pump status"
    ),
    PARTY_MODE: AttrRef(TYPE_ENABLED_ENUM, _RW, "PartyMode", "Party mode status"),
    ENERGY_SAVING_MODE: AttrRef(
        TYPE_ENABLED_ENUM, _RW, "EnergySavingMode", "Energy saving mode status"
    ),
    DATE_TIME: AttrRef(TYPE_DATE, _RW, "DateTime", "Current date and time"),
    CURRENT_ERROR: AttrRef(TYPE_STRING, _RO, "CurrentError", "Current error"),
    HOLIDAYS_START: AttrRef(TYPE_DATE, _RW, "HolidaysStart", "Holidays begin date"),
    HOLIDAYS_END: AttrRef(TYPE_DATE, _RW, "HolidaysEnd", "Holidays end date"),
    HOLIDAYS_STATUS: AttrRef(
        TYPE_ENABLED_ENUM, _RO, "HolidaysStatus", "Holidays program status"
    ),
    WAY3_VALVE_STATUS: AttrRef(
        enum_type(("undefined", "heating", "middle position", "hot water")),
        _RO,
        "3WayValveStatus",
        "3-way valve status",
    ),
    OPERATING_MODE_REQUESTED: AttrRef(
        enum_type(
            (
                "off",
                "DHW only",
                "heating+DHW",
                "continuous reduced",
                "continuous normal",
            )
        ),
        _RW,
        "OperatingModeRequested",
        "Operating mode requested",
    ),
    OPERATING_MODE_CURRENT: AttrRef(
        enum_type(("stand-by", "reduced", "normal", "continuous normal")),
        _RO,
        "OperatingModeCurrent",
        "Operating mode",
    ),
    FROST_PROTECTION_STATUS: AttrRef(
        TYPE_ENABLED_ENUM, _RO, "FrostProtectionStatus", "Frost protection status"
    ),
}


def parse_attribute_id(text: str) -> int | None:
    """Parse a numeric attribute ID (decimal, ``0x`` hex, ``0o`` or ``0b``).

    Returns:
        The ID, or None if the text is not a number in the 16-bit range
    """
    try:
        attr_id = int(text, 0)
    except ValueError:
        return None
    if not 0 <= attr_id <= 0xFFFF:
        return None
    return attr_id


@dataclass
class AttributeRegistry:
    """Mutable attribute catalog with a name index and a flat ID list.

    Both indices are rebuilt together on every mutation so an ID is never
    visible through one of them and not the other.

    Example:
        >>> registry = default_registry()
        >>> registry.lookup_by_name("OutdoorTemp")
        5373
        >>> str(registry.lookup(5373))
        'OutdoorTemp: Outdoor temperature (Double - read-only)'
    """

    refs: dict[int, AttrRef] = field(default_factory=dict)
    _names: dict[str, int] = field(init=False, repr=False, default_factory=dict)
    _ids: tuple[int, ...] = field(init=False, repr=False, default=())

    def __post_init__(self) -> None:
        self.refs = dict(self.refs)
        self._reindex()

    def _reindex(self) -> None:
        names = {ref.name: attr_id for attr_id, ref in self.refs.items()}
        ids = tuple(sorted(self.refs))
        self._names, self._ids = names, ids

    @property
    def ids(self) -> tuple[int, ...]:
        """All registered attribute IDs in ascending order."""
        return self._ids

    def __len__(self) -> int:
        return len(self.refs)

    def __contains__(self, attr_id: object) -> bool:
        return attr_id in self.refs

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def items(self) -> Iterator[tuple[int, AttrRef]]:
        """Iterate ``(id, ref)`` pairs in ascending ID order."""
        for attr_id in self._ids:
            yield attr_id, self.refs[attr_id]

    def lookup(self, attr_id: int) -> AttrRef | None:
        """Return the reference of an attribute ID, if registered."""
        return self.refs.get(attr_id)

    def lookup_by_name(self, name: str) -> int | None:
        """Return the ID of an attribute name, if registered."""
        return self._names.get(name)

    def register(self, attr_id: int, ref: AttrRef) -> None:
        """Add or silently replace an attribute, marking it as custom."""
        self.refs[attr_id] = replace(ref, custom=True)
        self._reindex()

    def check_access(self, attr_id: int, access: AttrAccess) -> bool:
        """Check that an attribute grants every right in ``access``."""
        ref = self.refs.get(attr_id)
        if ref is None:
            return False
        return (ref.access & access) == access

    def resolve(self, name_or_id: str, access: AttrAccess) -> int:
        """Resolve an attribute name or numeric ID and check its access.

        Args:
            name_or_id: Attribute name, or numeric ID (``0x`` prefix allowed)
            access: Required access rights

        Returns:
            The attribute ID

        Raises:
            UnknownAttributeError: If the attribute is not registered
            AttributeAccessError: If the attribute lacks the access rights
        """
        attr_id = parse_attribute_id(name_or_id)
        if attr_id is None or attr_id not in self.refs:
            attr_id = self.lookup_by_name(name_or_id)
            if attr_id is None:
                raise UnknownAttributeError(name_or_id)
        if not self.check_access(attr_id, access):
            raise AttributeAccessError(name_or_id, ACCESS_TO_STR.get(access, str(access)))
        return attr_id

    def register_type_info(self, infos: Iterable[AttributeInfo]) -> list[int]:
        """Register attributes discovered with GetTypeInfo.

        Descriptors whose ID is already known are left untouched. The server
        type name selects the codec: primitive names map to the shared
        types, ``ENUM`` builds an enum sized to the highest reported index.
        Timesheet descriptors are skipped silently, other unknown types are
        skipped with a warning.

        Args:
            infos: Descriptors returned by :meth:`Device.get_type_info`

        Returns:
            IDs of the newly registered attributes
        """
        added: list[int] = []
        for info in infos:
            if info.attribute_id in self.refs:
                continue

            vtype = TYPE_NAMES.get(info.type)
            if vtype is None:
                if info.type == TYPE_INFO_ENUM:
                    vtype = _enum_from_values(info.enum_values)
                else:
                    if info.type != TYPE_INFO_TIMESHEET:
                        _LOGGER.warning(
                            "%s (0x%04x) has an unrecognized type %r. Discard it.",
                            info.name,
                            info.attribute_id,
                            info.type,
                        )
                    continue

            access = AttrAccess.NONE
            if info.readable:
                access |= AttrAccess.READ_ONLY
            if info.writable:
                access |= AttrAccess.WRITE_ONLY

            self.register(
                info.attribute_id,
                AttrRef(
                    type=vtype,
                    access=access,
                    name=f"{info.name}-0x{info.attribute_id:04x}",
                    doc=info.name,
                ),
            )
            added.append(info.attribute_id)

        if added:
            _LOGGER.debug("Registered %d discovered attributes", len(added))
        return added


def _enum_from_values(values: dict[int, str]) -> VitodataType:
    size = max(values) + 1 if values else 0
    labels = [""] * size
    for index, label in values.items():
        labels[index] = label
    return enum_type(labels)


def default_registry() -> AttributeRegistry:
    """Create a registry holding the static attribute catalog."""
    return AttributeRegistry(ATTRIBUTES_REF)
