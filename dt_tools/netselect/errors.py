"""
Error taxonomy for the network selection engine.

Every failure raised by dt_tools.netselect carries an **ErrorKind**, a closed
enumeration, so callers can branch on the exact kind of failure rather than on
message text.

Classes -

- **ErrorKind**: All known failure kinds.
- **NetSelectError**: Exception carrying kind, description and diagnostic data.
- **RefreshRequested**: Control-flow signal raised when the user asks for a rescan.
- **LineParseError**: Per-line (or per-block) scan parse failures.
- **ProfileParseError**: Failures narrowing a netctl profile into a typed profile.

Example::

    from dt_tools.netselect.errors import ErrorKind, NetSelectError

    try:
        network = engine.get_selected_network()
    except NetSelectError as err:
        if err.kind == ErrorKind.NoKnownNetworksFound:
            print('Nothing known nearby.')

"""
from enum import Enum, auto
from typing import List, Tuple


class ErrorKind(Enum):
    """Closed set of failure kinds."""
    CommandNotFound = auto()
    CommandFailed = auto()
    ErrorReadingNetctlDir = auto()
    FailedToListKnownNetworksWithNetworkManager = auto()
    FailedToListInterfacesWithIW = auto()
    FailedToLoadSettings = auto()
    FailedToParseSelectedLine = auto()
    FailedToReadScanResultsFromFile = auto()
    FailedToReadScanResultsFromStdin = auto()
    FailedToRunIWScanAbort = auto()
    FailedToRunIWScanDump = auto()
    FailedToRunIWScanSynchronous = auto()
    FailedToRunIWScanTrigger = auto()
    FailedToRunNmcliScan = auto()
    FailedToRunNmcliScanSynchronous = auto()
    FailedToScanWithWPACli = auto()
    FailedToSpawnThread = auto()
    FailedToWriteNetctlConfig = auto()
    InvalidNetctlPath = auto()
    InvalidSettingsValue = auto()
    IWSynchronousScanFailed = auto()
    IWSynchronousScanRanOutOfRetries = auto()
    NoWifiInterfaceFound = auto()
    LoopProtectionMaxExceeded = auto()
    MalformedIWOutput = auto()
    NoKnownNetworksFound = auto()
    NoNetworksFoundMatchingSelectionResult = auto()
    NoNetworksFoundWhenLookingForFirst = auto()
    NoNetworksSeenWithWPACliScanResults = auto()
    PromptCommandFailed = auto()
    PromptCommandSpawnFailed = auto()
    RefreshRequested = auto()
    SingleLinePromptFailed = auto()
    UnsupportedOS = auto()
    WPACliHeaderMalformedOrMissing = auto()


class NetSelectError(Exception):
    """
    Failure raised by the selection engine and its collaborators.

    Args:
        kind (ErrorKind): Kind of failure.
        desc (str): One-line, user facing description.
        extra_data (List[Tuple[str, str]], optional): Diagnostic (label, value) pairs,
            e.g. the command line, stdout and stderr of a failed command.
    """
    def __init__(self, kind: ErrorKind, desc: str, extra_data: List[Tuple[str, str]] = None):
        super().__init__(desc)
        self.kind = kind
        self.desc = desc
        self.extra_data = extra_data

    def details(self) -> str:
        """Return the diagnostic data as printable text (empty if none)."""
        if not self.extra_data:
            return ''
        return '\n'.join(f'{label}: {value}' for label, value in self.extra_data)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.kind.name}, {self.desc!r})'


class RefreshRequested(NetSelectError):
    """Raised when the user asks the chooser for a fresh (synchronous) scan."""
    def __init__(self, desc: str = 'Refresh requested.'):
        super().__init__(ErrorKind.RefreshRequested, desc)


class LineParseError(Enum):
    """Reasons a single scan line (or iw block) could not be parsed."""
    MissingIWSSIDField = auto()
    MissingIWCapabilityField = auto()
    FailedToUnescapeSSIDField = auto()
    ZeroLengthIWChunk = auto()
    MissingWpaCliResultField = auto()
    FailedToParseSignalLevel = auto()
    MissingNmcliSeparator = auto()


class ProfileParseError(Exception):
    """A netctl profile could not be narrowed to the requested form."""


class MissingProfileField(ProfileParseError):
    def __init__(self, identifier: str, field_name: str):
        super().__init__(f'Required field "{field_name}" was not found in netctl config "{identifier}"!')
        self.identifier = identifier
        self.field_name = field_name


class IncorrectConnectionType(ProfileParseError):
    def __init__(self, expected, actual):
        super().__init__(f'Expected connection type {expected}, found {actual}.')
        self.expected = expected
        self.actual = actual
