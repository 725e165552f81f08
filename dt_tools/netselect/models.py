"""
Data objects shared by the network selection engine.

Module contains -

- **Enumerations**: scan type/method, selection policy and program, connection manager.
- **ServiceIdentifier**: Opaque id of a stored profile (netctl filename or NetworkManager marker).
- **WirelessNetwork**: One network as seen by a scan.
- **AnnotatedWirelessNetwork**: A scanned network tagged with its known/profile status.
- **AnnotatedWiredNetwork**: A wired interface with its optional profile.
- **ScanResult** / **ParseResult**: Raw and parsed output of a scan tool.

"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

from dt_tools.netselect.errors import LineParseError


# ============================================================================================================================
# == Enumerations ============================================================================================================
class ScanType(Enum):
    """Tool whose output is being parsed."""
    IW = 'iw'
    WPA_CLI = 'wpa_cli'
    NMCLI = 'nmcli'


class ScanMethod(Enum):
    """Where scan output comes from."""
    BY_RUNNING = 'by_running'
    FROM_FILE = 'from_file'
    FROM_STDIN = 'from_stdin'


class AutoMode(Enum):
    """Selection policy."""
    ASK = 'ask'
    KNOWN_OR_ASK = 'known_or_ask'
    KNOWN_OR_FAIL = 'known_or_fail'
    FIRST = 'first'


class SelectionMethod(Enum):
    """Interactive chooser program."""
    DMENU = 'dmenu'
    FZF = 'fzf'
    NOCURSES = 'nocurses'


class WifiConnectionType(Enum):
    """Connection manager that owns the stored profiles."""
    NETCTL = 'netctl'
    NMCLI = 'nmcli'
    NONE = 'none'
    PRINT = 'print'


class SynchronousRescanType(Enum):
    """Why the next scan must bypass the cached results."""
    AUTOMATIC = 'automatic'
    MANUALLY_REQUESTED = 'manually_requested'


class ServiceKind(Enum):
    NETCTL = 'netctl'
    NETWORK_MANAGER = 'NetworkManager'


# ============================================================================================================================
# == Data Objects ============================================================================================================
@dataclass(frozen=True)
class ServiceIdentifier:
    """
    Identifies the stored profile of a known network.

    For netctl this is the profile filename, NetworkManager profiles have no
    filename and are identified by the marker alone.
    """
    kind: ServiceKind  #: Connection manager owning the profile
    name: Optional[str] = None  #: Profile filename (netctl only)

    @classmethod
    def netctl(cls, name: str) -> 'ServiceIdentifier':
        return cls(ServiceKind.NETCTL, name)

    @classmethod
    def network_manager(cls) -> 'ServiceIdentifier':
        return cls(ServiceKind.NETWORK_MANAGER)

    def __str__(self) -> str:
        return self.name if self.kind == ServiceKind.NETCTL else self.kind.value


@dataclass(frozen=True)
class WirelessNetwork:
    """A candidate network produced by one scan."""
    essid: str  #: Network name, empty for hidden networks
    bssid: Optional[str] = None  #: Access point MAC address
    is_encrypted: bool = False  #: True unless the network is open
    signal_strength: Optional[int] = None  #: Tool specific strength, see scan_parser


@dataclass(frozen=True)
class AnnotatedWirelessNetwork(WirelessNetwork):
    """A candidate network plus its known status."""
    service_identifier: Optional[ServiceIdentifier] = None  #: Profile of the network, if known

    @property
    def is_known(self) -> bool:
        return self.service_identifier is not None

    @classmethod
    def from_network(cls, network: WirelessNetwork,
                     service_identifier: Optional[ServiceIdentifier] = None) -> 'AnnotatedWirelessNetwork':
        return cls(essid=network.essid,
                   bssid=network.bssid,
                   is_encrypted=network.is_encrypted,
                   signal_strength=network.signal_strength,
                   service_identifier=service_identifier)

    @classmethod
    def from_essid(cls, essid: str, service_identifier: Optional[ServiceIdentifier] = None,
                   is_encrypted: bool = False) -> 'AnnotatedWirelessNetwork':
        return cls(essid=essid, is_encrypted=is_encrypted, service_identifier=service_identifier)

    def with_service_identifier(self, service_identifier: Optional[ServiceIdentifier]) -> 'AnnotatedWirelessNetwork':
        return replace(self, service_identifier=service_identifier)


@dataclass(frozen=True)
class AnnotatedWiredNetwork:
    """A wired interface and its profile, if one exists."""
    interface: str  #: Interface name, e.g. enp0s25
    service_identifier: Optional[ServiceIdentifier] = None

    @property
    def is_known(self) -> bool:
        return self.service_identifier is not None


@dataclass(frozen=True)
class ScanResult:
    """Unparsed output of the chosen scan method."""
    scan_type: ScanType
    scan_output: str


@dataclass
class ParseResult:
    """Networks parsed from a ScanResult and the lines that failed to parse."""
    scan_type: ScanType
    seen_networks: List[WirelessNetwork] = field(default_factory=list)
    line_parse_errors: List[Tuple[str, LineParseError]] = field(default_factory=list)
