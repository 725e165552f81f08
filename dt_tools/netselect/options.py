"""
Runtime options for network selection.

Options are held in the **WifiOptions** dataclass.  Defaults may be persisted in
a JSON settings file so they need not be passed on every run.

**Settings file**:

    - Location: ~/.NetSelect/settings.json
    - Keys are WifiOptions field names, e.g.::

        {
            "interface": "wlp3s0",
            "selection_method": "dmenu",
            "auto_mode": "known_or_ask"
        }

    Precedence is: dataclass defaults < settings file < command line.

"""
import json
import pathlib
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Optional

from loguru import logger as LOGGER

from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.models import (AutoMode, ScanMethod, ScanType,
                                       SelectionMethod, SynchronousRescanType,
                                       WifiConnectionType)

SETTINGS_LOCATION = pathlib.Path('~').expanduser().absolute() / ".NetSelect" / "settings.json"
DEFAULT_NETCTL_CFG_DIR = '/etc/netctl/'


@dataclass(frozen=True)
class WifiOptions:
    """
    Everything the selection engine needs to know about one run.
    """
    interface: Optional[str] = None  #: Wireless interface, found with `iw dev` when not set
    scan_type: ScanType = ScanType.IW  #: Tool used to scan
    scan_method: ScanMethod = ScanMethod.BY_RUNNING  #: Run the tool, or read its output from file/stdin
    scan_file: Optional[str] = None  #: File holding scan output (scan_method from_file)
    selection_method: SelectionMethod = SelectionMethod.FZF  #: Interactive chooser
    auto_mode: AutoMode = AutoMode.ASK  #: Selection policy
    connect_via: WifiConnectionType = WifiConnectionType.NETCTL  #: Connection manager
    netctl_dir: str = DEFAULT_NETCTL_CFG_DIR  #: netctl profile directory
    given_essid: Optional[str] = None  #: Skip selection and use this network
    given_encryption_key: Optional[str] = None  #: Key to use instead of prompting
    ignore_known: bool = False  #: Treat every network as unknown
    force_synchronous_scan: bool = False  #: Never use cached scan results
    force_ask_password: bool = False  #: Prompt for a key even for known networks
    dry_run: bool = False  #: Log commands and profile writes instead of performing them
    debug: bool = False
    synchronous_retry: Optional[SynchronousRescanType] = None  #: Set by the selection loop on escalation

    def with_synchronous_retry(self, rescan_type: Optional[SynchronousRescanType]) -> 'WifiOptions':
        """Return a copy of the options carrying the synchronous rescan marker."""
        return replace(self, synchronous_retry=rescan_type)

    def with_overrides(self, **overrides) -> 'WifiOptions':
        """Return a copy with every override that is not None applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)


def _coerce_value(field_type, key: str, value):
    if field_type in (bool, 'bool'):
        if not isinstance(value, bool):
            raise NetSelectError(ErrorKind.InvalidSettingsValue,
                                 f'Invalid value "{value}" for setting "{key}" (valid: true, false).')
        return value

    enum_type = _enum_type(field_type)
    if enum_type is None:
        return value
    try:
        return enum_type(value)
    except ValueError:
        valid = ', '.join(m.value for m in enum_type)
        raise NetSelectError(ErrorKind.InvalidSettingsValue,
                             f'Invalid value "{value}" for setting "{key}" (valid: {valid}).')


def _enum_type(field_type):
    candidates = getattr(field_type, '__args__', None) or (field_type,)
    for candidate in candidates:
        if isinstance(candidate, type) and issubclass(candidate, Enum):
            return candidate
    return None


def options_from_dict(settings: dict, base: WifiOptions = None) -> WifiOptions:
    """
    Build WifiOptions from a dictionary of field name/value pairs.

    Args:
        settings (dict): Settings keyed by WifiOptions field name.
        base (WifiOptions, optional): Options to start from. Defaults to WifiOptions().

    Raises:
        NetSelectError: A value does not map onto its enumeration.

    Returns:
        WifiOptions: New options object.
    """
    base = base if base is not None else WifiOptions()
    field_types = {f.name: f.type for f in fields(WifiOptions) if f.name != 'synchronous_retry'}
    changes = {}
    for key, value in settings.items():
        if key not in field_types:
            LOGGER.warning(f'- Ignoring unknown setting: {key}')
            continue
        changes[key] = _coerce_value(field_types[key], key, value)

    return replace(base, **changes)


def load_settings(settings_file: pathlib.Path = None) -> WifiOptions:
    """
    Load default options from the settings file.

    Args:
        settings_file (pathlib.Path, optional): Settings location. Defaults to SETTINGS_LOCATION.

    Raises:
        NetSelectError: File exists but is unreadable or not valid JSON.

    Returns:
        WifiOptions: Options from the file, or defaults if there is no file.
    """
    settings_file = settings_file if settings_file is not None else SETTINGS_LOCATION
    if not settings_file.exists():
        LOGGER.debug(f'- No settings file at {settings_file}, using defaults')
        return WifiOptions()

    try:
        settings = json.loads(settings_file.read_text())
    except (OSError, ValueError) as ex:
        raise NetSelectError(ErrorKind.FailedToLoadSettings,
                             f'Unable to load settings from {settings_file}',
                             [("OS Error", repr(ex))])
    if not isinstance(settings, dict):
        raise NetSelectError(ErrorKind.FailedToLoadSettings,
                             f'Settings file {settings_file} must hold a JSON object')

    LOGGER.debug(f'- Settings loaded from {settings_file}')
    return options_from_dict(settings)
