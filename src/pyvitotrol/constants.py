"""Constants for the Vitotrol/Vitodata web service.

This module contains the fixed endpoint, the SOAP namespace and the
application identity the mobile app presents at login, together with the
status codes returned by the RequestWriteStatus/RequestRefreshStatus calls.
"""

from __future__ import annotations

# Endpoint used by the Vitotrol mobile application
MAIN_URL = "https://www.viessmann.com/app_vitodata/VIIWebService-1.16.0.0/iPhoneWebService.asmx"

# Every action lives in this namespace; SOAPAction is namespace + action name
SOAP_NAMESPACE = "http://www.e-controlnet.de/services/vii/"

CONTENT_TYPE = "text/xml; charset=utf-8"

DEFAULT_TIMEOUT = 30

# Identity sent with the Login action
APP_ID = "prod"
APP_VERSION = "4.3.1"
OPERATING_SYSTEM = "Android"

# Culture requested for error history messages
ERROR_HISTORY_CULTURE = "fr-fr"

# RequestWriteStatus / RequestRefreshStatus values
STATUS_DONE = 4
# Intermediate statuses that are expected while the gateway works
QUIET_STATUSES: frozenset[int] = frozenset({1, 3})

# Weekday codes as used by the timesheet actions, Monday first
WEEKDAYS: tuple[str, ...] = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

# SchaltzeitTyp sent with WriteTimesheetData
TIMESHEET_SLOT_TYPE = 1
# Wert sent for every written time slot
TIMESHEET_SLOT_VALUE = 1

# GetTypeInfo type names with special handling
TYPE_INFO_ENUM = "ENUM"
TYPE_INFO_TIMESHEET = "CircuitTime"

# Default credential file of the command line tool
DEFAULT_CONFIG_FILE = "~/.vitotrol-api"

# Environment variables read by the command line tool
ENV_LOGIN = "VITOTROL_LOGIN"
ENV_PASSWORD = "VITOTROL_PASSWORD"
