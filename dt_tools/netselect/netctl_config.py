"""
Read, parse, filter and write netctl profiles.

A netctl profile is a small shell-style ``KEY=value`` file, one per network,
stored in the netctl directory (normally ``/etc/netctl/``).  Profiles are
narrowed in steps -

- **NetctlRawConfig**: identifier (filename), contents and location of one file.
- **NetctlParsedConfig**: connection type, interface and optional ESSID/Key.
- **NetctlWifiConfig** / **NetctlWiredConfig**: typed profile for one connection type.

**NetctlConfigHandler** reads every profile in the directory, answers
queries over them and writes new profiles.

Example::

    handler = NetctlConfigHandler('/etc/netctl/')
    for config in handler.find_matching_configs(NetctlWifiConfigCriteria(interface='wlp3s0')):
        print(config.identifier, config.essid)

Written wifi profile (encrypted)::

    Description='Lobby wifi - wpa'
    Interface=wlan0
    Connection=wireless
    Security=wpa
    ESSID='Lobby'
    IP=dhcp
    Key='secret'

"""
import pathlib
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Union

from loguru import logger as LOGGER
from dt_tools.logger.logging_helper import logger_wraps

from dt_tools.netselect.errors import (ErrorKind, IncorrectConnectionType,
                                       MissingProfileField, NetSelectError,
                                       ProfileParseError)
from dt_tools.netselect.models import (AnnotatedWiredNetwork,
                                       AnnotatedWirelessNetwork, ServiceKind)
from dt_tools.netselect.scan_parser import unescape


class _CONSTANTS:
    ESSID = 'ESSID='
    INTERFACE = 'Interface='
    CONNECTION = 'Connection='
    KEY = 'Key='
    QUOTES = ('"', "'")


class NetctlConnectionType(Enum):
    WIFI = 'wireless'
    WIRED = 'ethernet'


# ============================================================================================================================
# == Profile Objects =========================================================================================================
@dataclass(frozen=True)
class NetctlRawConfig:
    identifier: str  #: Profile filename
    contents: str
    location: str  #: Full path of the profile


@dataclass(frozen=True)
class NetctlParsedConfig:
    identifier: str
    connection_type: NetctlConnectionType
    interface: str
    essid: Optional[str] = None
    encryption_key: Optional[str] = None

    @classmethod
    def from_raw(cls, raw: NetctlRawConfig) -> 'NetctlParsedConfig':
        """
        Extract the recognized fields from a raw profile.

        Raises:
            MissingProfileField: Connection (wireless/ethernet) or Interface is missing.
        """
        connection = get_field(raw.contents, _CONSTANTS.CONNECTION)
        try:
            connection_type = NetctlConnectionType(connection)
        except ValueError:
            raise MissingProfileField(raw.identifier, 'Connection')

        interface = get_field(raw.contents, _CONSTANTS.INTERFACE)
        if interface is None:
            raise MissingProfileField(raw.identifier, 'Interface')

        return cls(identifier=raw.identifier,
                   connection_type=connection_type,
                   interface=interface,
                   essid=get_essid(raw.contents),
                   encryption_key=get_field(raw.contents, _CONSTANTS.KEY))


@dataclass(frozen=True)
class NetctlWifiConfig:
    identifier: str
    essid: str
    interface: str
    encryption_key: Optional[str] = None

    @classmethod
    def from_parsed(cls, parsed: NetctlParsedConfig) -> 'NetctlWifiConfig':
        if parsed.connection_type != NetctlConnectionType.WIFI:
            raise IncorrectConnectionType(NetctlConnectionType.WIFI, parsed.connection_type)
        if parsed.essid is None:
            raise MissingProfileField(parsed.identifier, 'ESSID')
        return cls(parsed.identifier, parsed.essid, parsed.interface, parsed.encryption_key)


@dataclass(frozen=True)
class NetctlWiredConfig:
    identifier: str
    interface: str

    @classmethod
    def from_parsed(cls, parsed: NetctlParsedConfig) -> 'NetctlWiredConfig':
        if parsed.connection_type != NetctlConnectionType.WIRED:
            raise IncorrectConnectionType(NetctlConnectionType.WIRED, parsed.connection_type)
        return cls(parsed.identifier, parsed.interface)


NetctlConfig = Union[NetctlWifiConfig, NetctlWiredConfig]


# ============================================================================================================================
# == Filter Criteria =========================================================================================================
@dataclass(frozen=True)
class NetctlWifiConfigCriteria:
    """Constraints on a wifi profile, None means unconstrained."""
    interface: Optional[str] = None
    identifier: Optional[str] = None
    essid: Optional[str] = None
    config_type = NetctlWifiConfig

    def matches(self, config: NetctlWifiConfig) -> bool:
        return ((self.interface is None or self.interface == config.interface) and
                (self.identifier is None or self.identifier == config.identifier) and
                (self.essid is None or self.essid == config.essid))


@dataclass(frozen=True)
class NetctlWiredConfigCriteria:
    """Constraints on a wired profile, None means unconstrained."""
    interface: Optional[str] = None
    identifier: Optional[str] = None
    config_type = NetctlWiredConfig

    def matches(self, config: NetctlWiredConfig) -> bool:
        return ((self.interface is None or self.interface == config.interface) and
                (self.identifier is None or self.identifier == config.identifier))


# ============================================================================================================================
# == Field extraction ========================================================================================================
def _strip_quotes(value: str) -> str:
    if value.startswith(_CONSTANTS.QUOTES):
        value = value[1:]
    if value.endswith(_CONSTANTS.QUOTES):
        value = value[:-1]
    return value


def get_field(contents: str, key: str) -> Optional[str]:
    """
    Return the (unquoted) value of the first ``KEY=value`` line, or None.

    Args:
        contents (str): Profile text.
        key (str): Field prefix including '=', e.g. 'Interface='.
    """
    for line in contents.splitlines():
        line = line.strip()
        if line.startswith(key):
            return _strip_quotes(line[len(key):])
    return None


def get_essid(contents: str) -> Optional[str]:
    """Return the unescaped ESSID of a profile, or None."""
    essid = get_field(contents, _CONSTANTS.ESSID)
    if essid is None:
        return None
    try:
        return unescape(essid)
    except ValueError:
        LOGGER.debug(f'- Unable to unescape ESSID {essid!r}, used as-is')
        return essid


# ============================================================================================================================
# == Profile text ============================================================================================================
def render_wifi_config(essid: str, interface: str, encryption_key: str = None) -> str:
    """Return wifi profile text, Security/Key reflect whether a key was given."""
    security = 'wpa' if encryption_key is not None else 'none'
    lines = [
        f"Description='{essid} wifi - {'wpa' if encryption_key is not None else 'open'}'",
        f'Interface={interface}',
        'Connection=wireless',
        f'Security={security}',
        f"ESSID='{essid}'",
        'IP=dhcp',
    ]
    if encryption_key is not None:
        lines.append(f"Key='{encryption_key}'")
    return '\n'.join(lines).rstrip('\n')


def render_wired_config(identifier: str, interface: str) -> str:
    lines = [
        f"Description='{identifier} wired - {interface}'",
        f'Interface={interface}',
        'Connection=ethernet',
        'IP=dhcp',
    ]
    return '\n'.join(lines).rstrip('\n')


def wifi_identifier(network: AnnotatedWirelessNetwork) -> str:
    """Existing netctl profile name of network, else its essid with spaces as underscores."""
    sid = network.service_identifier
    if sid is not None and sid.kind == ServiceKind.NETCTL and sid.name:
        return sid.name
    return network.essid.replace(' ', '_')


def wired_identifier(network: AnnotatedWiredNetwork) -> str:
    sid = network.service_identifier
    if sid is not None and sid.kind == ServiceKind.NETCTL and sid.name:
        return sid.name
    return f'ethernet-{network.interface}'


# ============================================================================================================================
# == Handler =================================================================================================================
class NetctlConfigHandler:
    """
    Access to the profiles held in a netctl directory.

    Args:
        netctl_dir (str): Profile directory.
        dry_run (bool, optional): Log profile text instead of writing it. Defaults to False.
    """
    def __init__(self, netctl_dir: str, dry_run: bool = False):
        self.netctl_dir = pathlib.Path(netctl_dir)
        self.dry_run = dry_run

    def exists(self) -> bool:
        return self.netctl_dir.is_dir()

    @logger_wraps(level="TRACE")
    def get_raw_configs(self) -> List[NetctlRawConfig]:
        """
        Read every regular file in the profile directory.

        Raises:
            NetSelectError: Directory missing (InvalidNetctlPath) or any
                profile unreadable (ErrorReadingNetctlDir).
        """
        if not self.exists():
            raise NetSelectError(ErrorKind.InvalidNetctlPath,
                                 f'Netctl config directory not found: {self.netctl_dir}')

        raw_configs = []
        try:
            for entry in sorted(self.netctl_dir.iterdir()):
                if not entry.is_file():
                    continue
                raw_configs.append(NetctlRawConfig(identifier=entry.name,
                                                   contents=entry.read_text(encoding='utf-8'),
                                                   location=str(entry)))
        except (OSError, UnicodeDecodeError) as ex:
            raise NetSelectError(ErrorKind.ErrorReadingNetctlDir,
                                 f'Error reading netctl config directory {self.netctl_dir}',
                                 [("OS Error", repr(ex))])

        LOGGER.debug(f'- {len(raw_configs)} netctl configs read from {self.netctl_dir}')
        return raw_configs

    def get_parsed_configs(self) -> List[NetctlParsedConfig]:
        """Return every profile that parses, unparseable profiles are logged and skipped."""
        parsed_configs = []
        for raw in self.get_raw_configs():
            try:
                parsed_configs.append(NetctlParsedConfig.from_raw(raw))
            except ProfileParseError as ppe:
                LOGGER.debug(f'- Skipping {raw.location}: {ppe}')
        return parsed_configs

    def find_matching_configs(self, criteria: Union[NetctlWifiConfigCriteria, NetctlWiredConfigCriteria]
                              ) -> List[NetctlConfig]:
        """
        Return the typed profiles that satisfy every constraint present in criteria.

        The profile type (wifi/wired) is taken from the criteria type.
        """
        matches = []
        for parsed in self.get_parsed_configs():
            try:
                config = criteria.config_type.from_parsed(parsed)
            except ProfileParseError:
                continue
            if criteria.matches(config):
                matches.append(config)
        return matches

    def get_wifi_essids_and_identifiers(self) -> Dict[str, str]:
        """
        Map the ESSID of every profile to its identifier (filename).

        When several profiles share an ESSID the last one read wins.
        """
        essids = {}
        for raw in self.get_raw_configs():
            essid = get_essid(raw.contents)
            if essid is not None:
                essids[essid] = raw.identifier
        return essids

    def get_wired_configs(self, interface: str = None) -> List[NetctlWiredConfig]:
        return self.find_matching_configs(NetctlWiredConfigCriteria(interface=interface))

    def write_wifi_config(self, interface: str, network: AnnotatedWirelessNetwork,
                          encryption_key: str = None) -> str:
        """
        Write a wifi profile for network.

        Returns:
            str: Identifier (filename) of the profile.
        """
        identifier = wifi_identifier(network)
        self._write_config(identifier, render_wifi_config(network.essid, interface, encryption_key))
        return identifier

    def write_wired_config(self, network: AnnotatedWiredNetwork) -> str:
        identifier = wired_identifier(network)
        self._write_config(identifier, render_wired_config(identifier, network.interface))
        return identifier

    def _write_config(self, identifier: str, contents: str):
        target = self.netctl_dir / identifier
        if self.dry_run:
            LOGGER.warning(f'[NOTE]: Would write the following config to "{target}"')
            LOGGER.warning(contents)
            return

        try:
            target.write_text(contents, encoding='utf-8')
        except OSError as ex:
            raise NetSelectError(ErrorKind.FailedToWriteNetctlConfig,
                                 f'Failed to write netctl config: {target}',
                                 [("OS Error", repr(ex))])
        LOGGER.success(f'- Wrote netctl config: {target}')
        LOGGER.info(f'  Run `netctl switch-to {identifier}` to connect.')
