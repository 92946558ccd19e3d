"""Unit tests for the vitotrol command line tool."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from aioresponses import aioresponses

from pyvitotrol import Device, VitotrolClient
from pyvitotrol.cli.vitotrol import CommandError, VitotrolCLI, create_parser, main, select_device
from pyvitotrol.polling import PollTiming

# Base URL for all tests
BASE_URL = "http://vitodata.test/iPhoneWebService.asmx"

TEST_TIME = "2016-10-30 12:13:14"

FAST_TIMING = PollTiming(initial_wait=0.01, min_wait=0.01, timeout=5.0)

AUTH_ARGS = ["--login", "user", "--password", "secret", "--base-url", BASE_URL]


@pytest.fixture(autouse=True)
def fast_cli(monkeypatch: pytest.MonkeyPatch) -> None:
    """Shorten poll timings and ignore the caller's credentials."""
    monkeypatch.setattr(VitotrolCLI, "write_timing", FAST_TIMING)
    monkeypatch.setattr(VitotrolCLI, "refresh_timing", FAST_TIMING)
    monkeypatch.setattr(VitotrolCLI, "write_timesheet_timing", FAST_TIMING)
    monkeypatch.delenv("VITOTROL_LOGIN", raising=False)
    monkeypatch.delenv("VITOTROL_PASSWORD", raising=False)


@pytest.fixture
def connected_api(
    mocked_api: aioresponses,
    soap_response: Callable[..., str],
    sample: Callable[[str], str],
) -> aioresponses:
    """Mock the Login and GetDevices calls every action starts with."""
    mocked_api.post(BASE_URL, body=soap_response("Login"))
    mocked_api.post(BASE_URL, body=sample("get_devices.xml"))
    return mocked_api


def make_devices() -> list[Device]:
    """Build a sorted device list without any network."""
    client = VitotrolClient("user", "secret", base_url=BASE_URL)
    return [
        Device(
            client,
            location_id=1200,
            location_name="Lyon",
            device_id=12,
            device_name="VT 300",
        ),
        Device(
            client,
            location_id=1200,
            location_name="Lyon",
            device_id=77,
            device_name="VT 100",
        ),
        Device(
            client,
            location_id=31456,
            location_name="Paris",
            device_id=40213,
            device_name="VT 200 (HO1C)",
        ),
    ]


class TestSelectDevice:
    """Test --device resolution."""

    def test_default_is_first(self) -> None:
        """No spec selects the first device."""
        devices = make_devices()
        assert select_device(devices, "") is devices[0]

    def test_by_id_then_index(self) -> None:
        """Integers are device IDs first, indices otherwise."""
        devices = make_devices()
        assert select_device(devices, "40213") is devices[2]
        assert select_device(devices, "1") is devices[1]

    def test_bad_index(self) -> None:
        """Integers matching nothing are reported."""
        with pytest.raises(CommandError, match="not a device ID and too big"):
            select_device(make_devices(), "3")

    def test_by_name(self) -> None:
        """Names match alone or with their location."""
        devices = make_devices()
        assert select_device(devices, "VT 100") is devices[1]
        assert select_device(devices, "VT 200 (HO1C)@Paris") is devices[2]
        assert select_device(devices, "77@1200") is devices[1]

    def test_unknown_name(self) -> None:
        """Unknown names are reported."""
        with pytest.raises(CommandError, match="Cannot find device named `VT 999'"):
            select_device(make_devices(), "VT 999")

    def test_no_device(self) -> None:
        """An empty list is an error."""
        with pytest.raises(CommandError, match="No device found"):
            select_device([], "")


class TestParser:
    """Test argument parsing."""

    def test_action_and_params(self) -> None:
        """Actions take free-form parameters."""
        args = create_parser().parse_args(
            ["--device", "1", "-v", "get", "OutdoorTemp", "BoilerTemp"]
        )
        assert args.action == "get"
        assert args.params == ["OutdoorTemp", "BoilerTemp"]
        assert args.device == "1"
        assert args.verbose is True
        assert args.json is False

    def test_unknown_action(self) -> None:
        """Unknown actions are rejected by the parser."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(["explode"])


class TestOfflineActions:
    """Test actions that do not need the web service."""

    def test_list_attributes(self, capsys: pytest.CaptureFixture[str]) -> None:
        """The attribute catalog is listed in ID order."""
        assert main(["list"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 29
        assert lines[0] == (
            "HotWaterSetpointTemp: Setpoint of the domestic hot water temperature "
            "(Double - read/write)"
        )
        assert "OutdoorTemp: Outdoor temperature (Double - read-only)" in lines

    def test_list_timesheets(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Timesheets can be listed too."""
        assert main(["list", "timesheets"]) == 0

        out = capsys.readouterr().out
        assert "HeatingTimesheet: Time program for central heating" in out

    def test_list_bad_param(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Bad parameters are reported on stderr."""
        assert main(["list", "bogus"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("*** `list' action allows `attrs' or `timesheets'")

    def test_missing_params(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Parameter checks run before connecting."""
        assert main([*AUTH_ARGS, "set", "HeatNormalTemp"]) == 1
        assert "PARAMS must be a list of pairs" in capsys.readouterr().err

    def test_missing_credentials(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Missing credentials are reported."""
        assert main(["--config", str(tmp_path / "nope"), "devices"]) == 1
        assert "--login & --password are mandatory" in capsys.readouterr().err


class TestOnlineActions:
    """Test actions against a mocked web service."""

    def test_devices(
        self, connected_api: aioresponses, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Devices are listed with their index."""
        assert main([*AUTH_ARGS, "devices"]) == 0

        out = capsys.readouterr().out
        assert "Index 0\n  LocationName (LocationID): Lyon (1200)\n" in out
        assert "      DeviceName (DeviceID): VT 200 (HO1C) (40213)\n" in out
        assert "                   HasError: true\n" in out
        assert "                IsConnected: false\n" in out

    def test_get(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Values are printed in their human form."""
        connected_api.post(
            BASE_URL,
            body=soap_response(
                "GetData",
                "<DatenwerteListe><WerteListe><DatenpunktId>5373</DatenpunktId>"
                f"<Wert>12,50</Wert><Zeitstempel>{TEST_TIME}</Zeitstempel>"
                "</WerteListe></DatenwerteListe>",
            ),
        )

        assert main([*AUTH_ARGS, "-v", "get", "OutdoorTemp"]) == 0

        assert capsys.readouterr().out == (
            "Working with device VT 300@Lyon\n"
            f"OutdoorTemp: 12.5@{TEST_TIME} (Outdoor temperature)\n"
        )

    def test_get_write_only(
        self, connected_api: aioresponses, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Write-only attributes cannot be read."""
        assert main([*AUTH_ARGS, "get", "BurnerHoursRunReset"]) == 1
        assert "is not read-only" in capsys.readouterr().err

    def test_get_discovered_attribute(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Unknown names are looked up in the device's own catalog."""
        connected_api.post(
            BASE_URL,
            body=soap_response(
                "GetTypeInfo",
                "<TypeInfoListe><DatenpunktTypInfo>"
                "<DatenpunktId>9000</DatenpunktId>"
                "<DatenpunktName>temp_sts1_r</DatenpunktName>"
                "<DatenpunktTyp>Double</DatenpunktTyp>"
                "<IstLesbar>true</IstLesbar><IstSchreibbar>false</IstSchreibbar>"
                "</DatenpunktTypInfo></TypeInfoListe>",
            ),
        )
        connected_api.post(
            BASE_URL,
            body=soap_response(
                "GetData",
                "<DatenwerteListe><WerteListe><DatenpunktId>9000</DatenpunktId>"
                f"<Wert>48,1</Wert><Zeitstempel>{TEST_TIME}</Zeitstempel>"
                "</WerteListe></DatenwerteListe>",
            ),
        )

        assert main([*AUTH_ARGS, "get", "temp_sts1_r-0x2328"]) == 0

        assert capsys.readouterr().out == f"temp_sts1_r-0x2328: 48.1@{TEST_TIME} (temp_sts1_r)\n"

    def test_get_unknown_attribute(
        self,
        connected_api: aioresponses,
        sample: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Names unknown to the device too are reported."""
        connected_api.post(BASE_URL, body=sample("get_type_info.xml"))

        # Timesheet descriptors are not registered as attributes
        assert main([*AUTH_ARGS, "get", "schaltzeiten_ww-0x1c18"]) == 1
        assert "unknown attribute `schaltzeiten_ww-0x1c18'" in capsys.readouterr().err

    def test_bget(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        sample: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Raw reads accept unknown numeric IDs."""
        connected_api.post(BASE_URL, body=sample("get_type_info.xml"))
        connected_api.post(
            BASE_URL,
            body=soap_response(
                "GetData",
                "<DatenwerteListe><WerteListe><DatenpunktId>4660</DatenpunktId>"
                f"<Wert>raw</Wert><Zeitstempel>{TEST_TIME}</Zeitstempel>"
                "</WerteListe></DatenwerteListe>",
            ),
        )

        assert main([*AUTH_ARGS, "bget", "0x1234"]) == 0

        assert capsys.readouterr().out == f"0x1234: raw@{TEST_TIME} ()\n"

    def test_rget(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Values are refreshed on the gateway before being read."""
        connected_api.post(
            BASE_URL,
            body=soap_response("RefreshData", "<AktualisierungsId>7</AktualisierungsId>"),
        )
        connected_api.post(
            BASE_URL, body=soap_response("RequestRefreshStatus", "<Status>4</Status>")
        )
        connected_api.post(
            BASE_URL,
            body=soap_response(
                "GetData",
                "<DatenwerteListe><WerteListe><DatenpunktId>600</DatenpunktId>"
                f"<Wert>1</Wert><Zeitstempel>{TEST_TIME}</Zeitstempel>"
                "</WerteListe></DatenwerteListe>",
            ),
        )

        assert main([*AUTH_ARGS, "rget", "BurnerState"]) == 0

        assert capsys.readouterr().out == f"BurnerState: on@{TEST_TIME} (Burner status)\n"

    def test_remote_attrs_json(
        self,
        connected_api: aioresponses,
        sample: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Device descriptors can be dumped as JSON."""
        connected_api.post(BASE_URL, body=sample("get_type_info.xml"))

        assert main([*AUTH_ARGS, "--json", "remote_attrs"]) == 0

        infos = json.loads(capsys.readouterr().out)
        assert [info["attribute_id"] for info in infos] == [104, 51, 245, 7192]
        assert infos[2]["enum_values"] == {"0": "Aus", "1": "Ein"}

    def test_set(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Values are converted, written and waited for."""
        connected_api.post(
            BASE_URL, body=soap_response("WriteData", "<AktualisierungsId>9</AktualisierungsId>")
        )
        connected_api.post(
            BASE_URL, body=soap_response("RequestWriteStatus", "<Status>4</Status>")
        )

        assert main([*AUTH_ARGS, "-v", "set", "HeatNormalTemp", "21,50"]) == 0

        out = capsys.readouterr().out
        assert "HeatNormalTemp attribute successfully set to `21.5'" in out

    def test_set_invalid_value(
        self, connected_api: aioresponses, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Invalid values are rejected before writing."""
        assert main([*AUTH_ARGS, "set", "PartyMode", "maybe"]) == 1
        assert "value `maybe' of attribute PartyMode is invalid" in capsys.readouterr().err

    def test_errors(
        self,
        connected_api: aioresponses,
        sample: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """The error history is printed with a count."""
        connected_api.post(BASE_URL, body=sample("get_error_history.xml"))

        assert main([*AUTH_ARGS, "errors"]) == 0

        assert capsys.readouterr().out == (
            "2 error(s):\n"
            f"- AB@{TEST_TIME} = First error *ACTIVE*\n"
            f"- CD@{TEST_TIME} = Second error\n"
        )

    def test_no_errors(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """An empty history says so."""
        connected_api.post(BASE_URL, body=soap_response("GetErrorHistory", "<FehlerListe />"))

        assert main([*AUTH_ARGS, "errors"]) == 0
        assert capsys.readouterr().out == "No errors\n"

    def test_timesheet(
        self,
        connected_api: aioresponses,
        sample: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Timesheets are printed day by day."""
        connected_api.post(BASE_URL, body=sample("get_timesheet_data.xml"))

        assert main([*AUTH_ARGS, "timesheet", "HeatingTimesheet"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "HeatingTimesheet: Time program for central heating"
        assert lines[1:6] == [
            "- mon:",
            "  9:00 - 10:11",
            "  10:15 - 12:22",
            "  12:30 - 13:45",
            "- tue:",
        ]
        assert lines[-1] == "- sun:"

    def test_timesheet_json(
        self,
        connected_api: aioresponses,
        sample: Callable[[str], str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Timesheets can be printed as JSON."""
        connected_api.post(BASE_URL, body=sample("get_timesheet_data.xml"))

        assert main([*AUTH_ARGS, "--json", "timesheet", "7191"]) == 0

        out = capsys.readouterr().out
        assert out.startswith('{"mon": [{"from": 900, "to": 1011}')

    def test_set_timesheet_from_file(
        self,
        connected_api: aioresponses,
        soap_response: Callable[..., str],
        tmp_path: Path,
    ) -> None:
        """Timesheet definitions can be read from a file."""
        definition = tmp_path / "heating.json"
        definition.write_text('{"mon-fri": [{"from": 600, "to": 2200}]}', encoding="utf-8")
        connected_api.post(
            BASE_URL,
            body=soap_response("WriteTimesheetData", "<AktualisierungsId>5</AktualisierungsId>"),
        )
        connected_api.post(
            BASE_URL, body=soap_response("RequestWriteStatus", "<Status>4</Status>")
        )

        assert main([*AUTH_ARGS, "set_timesheet", "HeatingTimesheet", f"@{definition}"]) == 0

    def test_set_timesheet_bad_day(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Bad day keys are reported before connecting."""
        assert (
            main([*AUTH_ARGS, "set_timesheet", "HeatingTimesheet", '{"mon": [], "foo": []}'])
            == 1
        )
        assert "Bad timesheet day `FOO'" in capsys.readouterr().err

    def test_login_failure(
        self,
        mocked_api: aioresponses,
        soap_response: Callable[..., str],
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        """Login failures are reported."""
        mocked_api.post(
            BASE_URL, body=soap_response("Login", error_num=1, error_str="Benutzer unbekannt")
        )

        assert main([*AUTH_ARGS, "errors"]) == 1
        assert capsys.readouterr().err == "*** Login failed: Benutzer unbekannt [#1]\n"
