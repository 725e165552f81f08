"""
Select a wireless network and (optionally) write its netctl profile.

Defaults are read from ~/.NetSelect/settings.json, command line flags win.

```
poetry run dt-netselect -i wlp3s0 -a known_or_ask
poetry run dt-netselect -i wlp3s0 --print-only -m nocurses
poetry run dt-netselect -i wlp3s0 -e "Chateau de Chine Hotel" -p hunter2
iw wlp3s0 scan dump | poetry run dt-netselect --scan-method from_stdin --dry-run
```

"""
import argparse
import pathlib
import sys

import dt_tools.logger.logging_helper as lh
from dt_tools.os.os_helper import OSHelper
from loguru import logger as LOGGER

from dt_tools.netselect.chooser import get_chooser
from dt_tools.netselect.command_runner import get_command_runner
from dt_tools.netselect.configure_network import (possibly_configure_network,
                                                  possibly_get_encryption_key)
from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.models import (AutoMode, ScanMethod, ScanType,
                                       SelectionMethod, WifiConnectionType)
from dt_tools.netselect.nic import with_interface
from dt_tools.netselect.options import WifiOptions, load_settings
from dt_tools.netselect.selection_engine import (SelectionEngine,
                                                 get_network_from_given_essid)


def _choices(enum_type) -> list:
    return [m.value for m in enum_type]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='dt-netselect',
                                     description='Select a wireless network to connect to.')
    parser.add_argument('-i', '--interface', help='Wireless interface to scan with.')
    parser.add_argument('-s', '--scan-type', choices=_choices(ScanType), help='Tool used to scan.')
    parser.add_argument('--scan-method', choices=_choices(ScanMethod),
                        help='Run the scan tool, or read its output from a file or stdin.')
    parser.add_argument('--scan-file', help='File holding scan output (with --scan-method from_file).')
    parser.add_argument('-m', '--selection-method', choices=_choices(SelectionMethod), help='Chooser program.')
    parser.add_argument('-a', '--auto-mode', choices=_choices(AutoMode), help='Selection policy.')
    parser.add_argument('-c', '--connect-via', choices=_choices(WifiConnectionType), help='Connection manager.')
    parser.add_argument('--netctl-dir', help='netctl profile directory.')
    parser.add_argument('-e', '--essid', dest='given_essid', help='Skip selection and use this network.')
    parser.add_argument('-p', '--password', dest='given_encryption_key', help='Encryption key of the network.')
    parser.add_argument('--ignore-known', action='store_true', default=None, help='Treat every network as unknown.')
    parser.add_argument('--force-sync', dest='force_synchronous_scan', action='store_true', default=None,
                        help='Never use cached scan results.')
    parser.add_argument('--force-ask-password', action='store_true', default=None,
                        help='Ask for a key even for known networks.')
    parser.add_argument('--dry-run', action='store_true', default=None,
                        help='Log commands and profiles instead of running/writing them.')
    parser.add_argument('--print-only', action='store_true', help='Print the selected essid and stop.')
    parser.add_argument('--settings', type=pathlib.Path, help='Settings file location.')
    parser.add_argument('-d', '--debug', action='store_true', default=None, help='Debug logging.')
    return parser


def options_from_args(args: argparse.Namespace, base: WifiOptions) -> WifiOptions:
    """Apply command line values over base, flags not given leave base unchanged."""
    def _enum(enum_type, value):
        return None if value is None else enum_type(value)

    return base.with_overrides(
        interface=args.interface,
        scan_type=_enum(ScanType, args.scan_type),
        scan_method=_enum(ScanMethod, args.scan_method),
        scan_file=args.scan_file,
        selection_method=_enum(SelectionMethod, args.selection_method),
        auto_mode=_enum(AutoMode, args.auto_mode),
        connect_via=_enum(WifiConnectionType, args.connect_via),
        netctl_dir=args.netctl_dir,
        given_essid=args.given_essid,
        given_encryption_key=args.given_encryption_key,
        ignore_known=args.ignore_known,
        force_synchronous_scan=args.force_synchronous_scan,
        force_ask_password=args.force_ask_password,
        dry_run=args.dry_run,
        debug=args.debug,
    )


def run(options: WifiOptions, print_only: bool = False) -> int:
    runner = get_command_runner(options)
    chooser = get_chooser(options.selection_method, runner)

    if options.given_essid is not None:
        network = get_network_from_given_essid(options, runner)
    else:
        if options.scan_type == ScanType.IW and options.scan_method == ScanMethod.BY_RUNNING:
            # found once, not on every rescan
            options = with_interface(options, runner)
        network = SelectionEngine(options, runner=runner, chooser=chooser).get_selected_network()

    if print_only or options.connect_via == WifiConnectionType.PRINT:
        print(network.essid)
        return 0

    encryption_key = possibly_get_encryption_key(options, network, chooser)
    identifier = possibly_configure_network(options, network, encryption_key, runner)
    print(network.essid)
    if identifier is not None:
        print(f'Profile: {identifier}')
    return 0


def main(argv: list = None) -> int:
    args = build_parser().parse_args(argv)
    lh.configure_logger(log_level="DEBUG" if args.debug else "INFO",
                        log_format=lh.DEFAULT_CONSOLE_LOGFMT, brightness=False)

    try:
        if not OSHelper.is_linux():
            raise NetSelectError(ErrorKind.UnsupportedOS, 'dt-netselect only runs on Linux.')
        options = options_from_args(args, load_settings(args.settings))
        if options.debug and not args.debug:
            lh.configure_logger(log_level="DEBUG", log_format=lh.DEFAULT_CONSOLE_LOGFMT, brightness=False)
        return run(options, print_only=args.print_only)
    except NetSelectError as err:
        LOGGER.error(f'[ERR] {err}')
        if err.extra_data:
            LOGGER.debug(err.details())
        return 1


if __name__ == "__main__":
    sys.exit(main())
