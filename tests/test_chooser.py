import pytest

from dt_tools.netselect import chooser
from dt_tools.netselect.chooser import (ConsoleChooser, DmenuChooser,
                                        FzfChooser, get_chooser)
from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.models import SelectionMethod

from conftest import FakeCommandRunner


class PromptRecorder(FakeCommandRunner):
    def __init__(self, answer=''):
        super().__init__()
        self.answer = answer
        self.prompts = []

    def run_prompt(self, program, args, elements):
        self.prompts.append((program, list(args), list(elements)))
        return self.answer


def test_dmenu_prompt():
    runner = PromptRecorder('0) [43] Lobby')
    line = DmenuChooser(runner).prompt(DmenuChooser.title, ['0) [43] Lobby', 'refresh'])

    assert line == '0) [43] Lobby'
    assert runner.prompts == [('dmenu', ['-i', '-p', 'Select a network: '], ['0) [43] Lobby', 'refresh'])]


def test_dmenu_password_prompt_has_no_options():
    runner = PromptRecorder('hunter2')
    assert DmenuChooser(runner).prompt_for_password('Lobby') == 'hunter2'
    assert runner.prompts == [('dmenu', ['-i', '-p', 'Password for Lobby: '], [])]


def test_fzf_prompt_binds_refresh():
    runner = PromptRecorder('refresh')
    FzfChooser(runner).prompt(FzfChooser.title, ['refresh'])

    program, args, _ = runner.prompts[0]
    assert program == 'fzf'
    assert args[:2] == ['--layout', 'reverse']
    assert args[2] == f'--prompt={FzfChooser.title}'
    assert args[3:] == ['--bind', 'ctrl-r:execute(echo refresh)+end-of-line+unix-line-discard+print-query']


def test_console_prompt(monkeypatch, capsys):
    monkeypatch.setattr(chooser.console_input, 'get_input_with_timeout', lambda prompt: '1')

    line = ConsoleChooser().prompt(ConsoleChooser.title, ['0) A', '1) B', 'refresh'])

    assert line == '1'
    assert capsys.readouterr().out.splitlines() == ['0) A', '1) B', 'refresh']


def test_console_prompt_failure(monkeypatch):
    def broken(prompt):
        raise EOFError()
    monkeypatch.setattr(chooser.console_input, 'get_input_with_timeout', broken)

    with pytest.raises(NetSelectError) as exc:
        ConsoleChooser().prompt_for_password('Lobby')
    assert exc.value.kind == ErrorKind.SingleLinePromptFailed


@pytest.mark.parametrize('method, expected', [
    (SelectionMethod.DMENU, DmenuChooser),
    (SelectionMethod.FZF, FzfChooser),
    (SelectionMethod.NOCURSES, ConsoleChooser),
])
def test_get_chooser(method, expected):
    assert isinstance(get_chooser(method, FakeCommandRunner()), expected)
