#!/usr/bin/env python3
"""Command line tool for the Vitotrol/Vitodata web service.

Reads and writes attributes and timesheets of a Viessmann boiler through
the Vitodata web service, and dumps its error history.

Usage:
    vitotrol devices
    vitotrol get OutdoorTemp BoilerTemp
    vitotrol --verbose set HeatNormalTemp 21
    vitotrol --json timesheet HeatingTimesheet
    vitotrol --help
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pyvitotrol import __version__
from pyvitotrol.attributes import AttrAccess, AttrRef, default_registry, parse_attribute_id
from pyvitotrol.client import VitotrolClient
from pyvitotrol.config import load_credentials, load_env_file
from pyvitotrol.constants import DEFAULT_CONFIG_FILE, MAIN_URL, WEEKDAYS
from pyvitotrol.device import Device
from pyvitotrol.exceptions import UnknownAttributeError, VitotrolError
from pyvitotrol.polling import (
    REFRESH_DATA_TIMING,
    WRITE_DATA_TIMING,
    WRITE_TIMESHEET_DATA_TIMING,
    PollTiming,
)
from pyvitotrol.timesheets import (
    TIMESHEETS_REF,
    expand_timesheet,
    resolve_timesheet,
    timesheet_from_json,
    timesheet_to_json,
)
from pyvitotrol.types import TYPE_STRING

_LOGGER = logging.getLogger(__name__)

ACTIONS: dict[str, str] = {
    "devices": "list devices",
    "list": "list known attributes (default) or timesheets: list [attrs|timesheets]",
    "get": "get attribute values: get ATTR ... | get all",
    "rget": "refresh then get attribute values: rget ATTR ... | rget all",
    "bget": "get raw values of numeric attribute IDs: bget ID ...",
    "set": "set attribute values: set ATTR VALUE [ATTR VALUE ...]",
    "errors": "get the error history",
    "timesheet": "get timesheets: timesheet NAME ...",
    "set_timesheet": "set a timesheet: set_timesheet NAME JSON|@FILE",
    "remote_attrs": "dump attribute descriptors known by the device",
}


class CommandError(VitotrolError):
    """An action cannot be carried out."""

    pass


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    actions_help = "\n".join(f"  {name:<14} {help_}" for name, help_ in ACTIONS.items())
    parser = argparse.ArgumentParser(
        prog="vitotrol",
        description="Query and control a Viessmann boiler through the Vitodata web service.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Actions:
{actions_help}

Credentials are taken from --login/--password, then from the
VITOTROL_LOGIN/VITOTROL_PASSWORD environment variables (a .env file is
honored), then from the config file holding the login and the password
on two lines.

Examples:
  vitotrol get OutdoorTemp BoilerTemp
  vitotrol --device "VT 200 (HO1C)@Paris" set HeatNormalTemp 21
  vitotrol set_timesheet HeatingTimesheet '{{"mon-fri": [{{"from": 600, "to": 2200}}]}}'
""",
    )

    parser.add_argument("action", choices=list(ACTIONS), help="Action to run")
    parser.add_argument("params", nargs="*", help="Action parameters")

    # Authentication options
    auth_group = parser.add_argument_group("Authentication Options")
    auth_group.add_argument("--login", help="Login on the Vitotrol API")
    auth_group.add_argument("--password", help="Password on the Vitotrol API")
    auth_group.add_argument(
        "--config",
        help=f"Login+password config file (default: {DEFAULT_CONFIG_FILE})",
    )
    auth_group.add_argument(
        "--base-url",
        default=MAIN_URL,
        help="Vitodata web service endpoint",
    )

    # Device options
    device_group = parser.add_argument_group("Device Options")
    device_group.add_argument(
        "--device",
        default="",
        help="Device ID, index, name, DEVICE_ID@LOCATION_ID or DEVICE_NAME@LOCATION_NAME "
        "(default: first device)",
    )

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print verbose information",
    )
    output_group.add_argument(
        "--debug",
        action="store_true",
        help="Print debug information, including raw responses",
    )
    output_group.add_argument(
        "--json",
        action="store_true",
        help="Use JSON output for the timesheet and remote_attrs actions",
    )

    # General options
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def select_device(devices: list[Device], spec: str) -> Device:
    """Pick a device from its ``--device`` specification.

    An empty spec selects the first device. An integer is a device ID, or
    failing that an index in the list. Anything else is matched against the
    device name, ``DEVICE_ID@LOCATION_ID`` and ``DEVICE_NAME@LOCATION_NAME``.

    Raises:
        CommandError: If no device matches
    """
    if not devices:
        raise CommandError("No device found")
    if not spec:
        return devices[0]

    try:
        number = int(spec)
    except ValueError:
        number = None

    if number is not None:
        for device in devices:
            if device.device_id == number:
                return device
        if not 0 <= number < len(devices):
            raise CommandError(
                f"{number} is not a device ID and too big to be an index "
                f"(>= {len(devices)} available devices)."
            )
        return devices[number]

    with_location = "@" in spec
    for device in devices:
        if spec == device.device_name:
            return device
        if with_location and spec in (
            f"{device.device_id}@{device.location_id}",
            f"{device.device_name}@{device.location_name}",
        ):
            return device

    raise CommandError(f"Cannot find device named `{spec}'")


class VitotrolCLI:
    """Runs one action against the Vitodata web service."""

    write_timing: PollTiming = WRITE_DATA_TIMING
    refresh_timing: PollTiming = REFRESH_DATA_TIMING
    write_timesheet_timing: PollTiming = WRITE_TIMESHEET_DATA_TIMING

    def __init__(self, args: argparse.Namespace) -> None:
        self.args = args
        self.client: VitotrolClient | None = None
        self.device: Device | None = None
        self._type_info_loaded = False

    async def run(self) -> int:
        """Run the requested action and return the exit status."""
        handler = getattr(self, f"do_{self.args.action}")
        try:
            await handler(self.args.params)
        finally:
            if self.client is not None:
                await self.client.close()
        return 0

    # Helpers

    async def _connect(self, *, select: bool = True) -> VitotrolClient:
        credentials = load_credentials(self.args.login, self.args.password, self.args.config)
        credentials.validate()

        client = VitotrolClient(
            credentials.login,
            credentials.password,
            base_url=self.args.base_url,
            debug=self.args.debug,
        )
        self.client = client

        try:
            await client.login()
        except VitotrolError as err:
            raise CommandError(f"Login failed: {err}") from err

        try:
            devices = await client.get_devices()
        except VitotrolError as err:
            raise CommandError(f"GetDevices failed: {err}") from err
        if not devices:
            raise CommandError("No device found")

        if select:
            self.device = select_device(devices, self.args.device)
            if self.args.verbose:
                print(f"Working with device {self.device.device_name}@{self.device.location_name}")
        return client

    def _require_device(self) -> tuple[VitotrolClient, Device]:
        if self.client is None or self.device is None:
            raise CommandError("not connected")
        return self.client, self.device

    async def _load_type_info(self) -> None:
        """Register the device's own attributes, once."""
        if self._type_info_loaded:
            return
        self._type_info_loaded = True

        client, device = self._require_device()
        try:
            infos = await device.get_type_info()
        except VitotrolError as err:
            # Static attributes remain usable without the device catalog
            _LOGGER.warning("GetTypeInfo failed: %s", err)
            return
        client.attributes.register_type_info(infos)

    async def _resolve_attribute(self, name: str, access: AttrAccess) -> int:
        client, _ = self._require_device()
        try:
            return client.attributes.resolve(name, access)
        except UnknownAttributeError:
            if self._type_info_loaded:
                raise
        await self._load_type_info()
        return client.attributes.resolve(name, access)

    # Actions

    async def do_devices(self, params: list[str]) -> None:
        client = await self._connect(select=False)
        for idx, device in enumerate(client.devices):
            print(
                f"Index {idx}\n"
                f"  LocationName (LocationID): {device.location_name} ({device.location_id})\n"
                f"      DeviceName (DeviceID): {device.device_name} ({device.device_id})\n"
                f"                   HasError: {str(device.has_error).lower()}\n"
                f"                IsConnected: {str(device.is_connected).lower()}"
            )

    async def do_list(self, params: list[str]) -> None:
        what = params[0] if params else "attrs"
        if what == "attrs":
            registry = default_registry()
            for _, ref in registry.items():
                print(ref)
        elif what == "timesheets":
            for ref in TIMESHEETS_REF.values():
                print(ref)
        else:
            raise CommandError(f"`list' action allows `attrs' or `timesheets' params, not `{what}'")

    async def _get(self, params: list[str], *, refresh: bool = False, raw: bool = False) -> None:
        if not params:
            raise CommandError("at least one PARAM is missing")

        client = await self._connect()
        _, device = self._require_device()

        if len(params) == 1 and params[0] == "all":
            await self._load_type_info()
            attr_ids = list(client.attributes.ids)
        elif raw:
            await self._load_type_info()
            attr_ids = []
            for param in params:
                attr_id = parse_attribute_id(param)
                if attr_id is None:
                    raise CommandError(f"bad attribute ID `{param}'")
                if client.attributes.lookup(attr_id) is None:
                    client.attributes.register(
                        attr_id,
                        AttrRef(TYPE_STRING, AttrAccess.READ_ONLY, f"0x{attr_id:04x}", ""),
                    )
                attr_ids.append(attr_id)
        else:
            attr_ids = [
                await self._resolve_attribute(param, AttrAccess.READ_ONLY) for param in params
            ]

        if refresh:
            try:
                task = await device.refresh_data_wait(attr_ids, timing=self.refresh_timing)
            except VitotrolError as err:
                raise CommandError(f"RefreshData error: {err}") from err
            try:
                await task
            except VitotrolError as err:
                raise CommandError(f"RefreshData failed: {err}") from err

        try:
            await device.get_data(attr_ids)
        except VitotrolError as err:
            raise CommandError(f"GetData error: {err}") from err

        print(device.format_attributes(attr_ids), end="")

    async def do_get(self, params: list[str]) -> None:
        await self._get(params)

    async def do_rget(self, params: list[str]) -> None:
        await self._get(params, refresh=True)

    async def do_bget(self, params: list[str]) -> None:
        await self._get(params, raw=True)

    async def do_set(self, params: list[str]) -> None:
        if not params or len(params) % 2:
            raise CommandError("PARAMS must be a list of pairs: ATTR_NAME, VALUE")

        client = await self._connect()
        _, device = self._require_device()

        values: dict[int, str] = {}
        for name, human in zip(params[::2], params[1::2], strict=True):
            attr_id = await self._resolve_attribute(name, AttrAccess.WRITE_ONLY)
            ref = client.attributes.lookup(attr_id)
            if ref is None:
                raise UnknownAttributeError(name)
            try:
                values[attr_id] = ref.type.human_to_wire(human)
            except VitotrolError as err:
                raise CommandError(
                    f"value `{human}' of attribute {name} is invalid: {err}"
                ) from err

        for attr_id, value in values.items():
            try:
                task = await device.write_data_wait(attr_id, value, timing=self.write_timing)
            except VitotrolError as err:
                raise CommandError(f"WriteData error: {err}") from err
            try:
                await task
            except VitotrolError as err:
                raise CommandError(f"WriteData failed: {err}") from err

            if self.args.verbose:
                ref = client.attributes.lookup(attr_id)
                name = ref.name if ref is not None else str(attr_id)
                print(f"{name} attribute successfully set to `{value}'")

    async def do_errors(self, params: list[str]) -> None:
        await self._connect()
        _, device = self._require_device()

        try:
            await device.get_error_history()
        except VitotrolError as err:
            raise CommandError(f"GetErrorHistory error: {err}") from err

        if not device.errors:
            print("No errors")
            return
        print(f"{len(device.errors)} error(s):")
        for event in device.errors:
            print("-", event)

    async def do_timesheet(self, params: list[str]) -> None:
        if not params:
            raise CommandError("timesheet name is missing")
        timesheet_ids = [resolve_timesheet(name) for name in params]

        await self._connect()
        _, device = self._require_device()

        for timesheet_id in timesheet_ids:
            try:
                await device.get_timesheet_data(timesheet_id)
            except VitotrolError as err:
                raise CommandError(f"GetTimesheetData error: {err}") from err

            timesheet = device.timesheets[timesheet_id]
            if self.args.json:
                print(timesheet_to_json(timesheet))
                continue

            print(TIMESHEETS_REF[timesheet_id])
            for day in WEEKDAYS:
                print(f"- {day}:")
                for slot in timesheet.get(day, ()):
                    print(f"  {slot}")

    async def do_set_timesheet(self, params: list[str]) -> None:
        if not params:
            raise CommandError("timesheet name is missing")
        timesheet_id = resolve_timesheet(params[0])

        if len(params) == 1:
            raise CommandError("JSON definition of timesheet is missing")
        definition = params[1]
        if definition.startswith("@") and len(definition) > 1:
            path = Path(definition[1:])
            try:
                definition = path.read_text(encoding="utf-8")
            except OSError as err:
                raise CommandError(f"Cannot read file {path}: {err}") from err
        timesheet = timesheet_from_json(definition)
        # Day keys are checked before connecting
        expand_timesheet(timesheet)

        await self._connect()
        _, device = self._require_device()

        try:
            task = await device.write_timesheet_data_wait(
                timesheet_id, timesheet, timing=self.write_timesheet_timing
            )
        except VitotrolError as err:
            raise CommandError(f"WriteTimesheetData error: {err}") from err
        try:
            await task
        except VitotrolError as err:
            raise CommandError(f"WriteTimesheetData failed: {err}") from err

    async def do_remote_attrs(self, params: list[str]) -> None:
        await self._connect()
        _, device = self._require_device()

        infos = await device.get_type_info()
        if self.args.json:
            print(json.dumps([info.model_dump() for info in infos]))
            return
        for info in infos:
            print(f"- {info!r}")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    load_env_file()

    try:
        return asyncio.run(VitotrolCLI(args).run())
    except VitotrolError as err:
        print(f"*** {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
