import pytest

from dt_tools.cli import netselect_cli
from dt_tools.netselect.models import AutoMode, ScanMethod, SelectionMethod
from dt_tools.netselect.options import WifiOptions

from conftest import SAMPLES, FakeCommandRunner, output, sample_text


@pytest.fixture(autouse=True)
def quiet_linux(monkeypatch):
    monkeypatch.setattr(netselect_cli.lh, 'configure_logger', lambda *args, **kwargs: None)
    monkeypatch.setattr(netselect_cli.OSHelper, 'is_linux', staticmethod(lambda: True))


def test_options_from_args_override_settings():
    args = netselect_cli.build_parser().parse_args(['-i', 'wlp3s0', '-a', 'first', '-m', 'nocurses'])
    base = WifiOptions(interface='wlan9', netctl_dir='/tmp/netctl', selection_method=SelectionMethod.DMENU)

    options = netselect_cli.options_from_args(args, base)

    assert options.interface == 'wlp3s0'
    assert options.auto_mode == AutoMode.FIRST
    assert options.selection_method == SelectionMethod.NOCURSES
    assert options.netctl_dir == '/tmp/netctl'
    assert options.dry_run is False


def test_print_only_from_file(capsys, tmp_path):
    argv = ['--settings', str(tmp_path / 'none.json'),
            '--scan-method', ScanMethod.FROM_FILE.value,
            '--scan-file', str(SAMPLES / 'iw_two_networks.txt'),
            '-a', 'first', '--print-only', '--dry-run']

    assert netselect_cli.main(argv) == 0
    assert capsys.readouterr().out.strip() == 'Valparaiso_Guest_House 2'


def test_configures_selected_network(capsys, tmp_path):
    argv = ['--settings', str(tmp_path / 'none.json'),
            '--scan-method', 'from_file',
            '--scan-file', str(SAMPLES / 'iw_two_networks.txt'),
            '--netctl-dir', str(tmp_path),
            '-i', 'wlp3s0', '-a', 'first', '-p', 'hunter2']

    assert netselect_cli.main(argv) == 0

    out = capsys.readouterr().out
    assert 'Valparaiso_Guest_House 2' in out
    assert 'Profile: Valparaiso_Guest_House_2' in out
    assert "Key='hunter2'" in (tmp_path / 'Valparaiso_Guest_House_2').read_text()


def test_error_exit_status(tmp_path):
    argv = ['--settings', str(tmp_path / 'none.json'),
            '--scan-method', 'from_file', '--scan-file', str(tmp_path / 'missing.txt'), '--dry-run']
    assert netselect_cli.main(argv) == 1


def test_refuses_non_linux(monkeypatch, tmp_path):
    monkeypatch.setattr(netselect_cli.OSHelper, 'is_linux', staticmethod(lambda: False))
    assert netselect_cli.main(['--settings', str(tmp_path / 'none.json')]) == 1


def test_interface_found_with_iw_dev(monkeypatch, capsys, tmp_path):
    runner = FakeCommandRunner({'iw dev': output(sample_text('iw_dev_one_interface.txt')),
                                'iw wlp3s0 scan dump': output(sample_text('iw_two_networks.txt'))})
    monkeypatch.setattr(netselect_cli, 'get_command_runner', lambda options: runner)

    argv = ['--settings', str(tmp_path / 'none.json'), '--netctl-dir', str(tmp_path),
            '-a', 'first', '--print-only']

    assert netselect_cli.main(argv) == 0
    assert capsys.readouterr().out.strip() == 'Valparaiso_Guest_House 2'
    assert runner.calls.count('iw dev') == 1
    assert 'iw wlp3s0 scan dump' in runner.calls
