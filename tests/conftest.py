import pathlib
from typing import Dict, List, Union

import pytest

from dt_tools.netselect.chooser import Chooser
from dt_tools.netselect.command_runner import CommandOutput, CommandRunner, format_command

SAMPLES = pathlib.Path(__file__).parent / 'samples'


def sample_text(name: str) -> str:
    return (SAMPLES / name).read_text()


class FakeCommandRunner(CommandRunner):
    """
    Runner returning scripted output keyed by command line.

    A list of outputs is consumed one per call, the last one repeating.
    Commands with no script succeed with empty output.
    """
    def __init__(self, responses: Dict[str, Union[CommandOutput, List[CommandOutput]]] = None):
        self.responses = responses or {}
        self.calls = []

    def _run_captured(self, program, args):
        cmd_line = format_command(program, args)
        self.calls.append(cmd_line)
        response = self.responses.get(cmd_line, CommandOutput())
        if isinstance(response, list):
            return response.pop(0) if len(response) > 1 else response[0]
        return response


class FakeChooser(Chooser):
    """Chooser answering from a list of canned lines."""
    title = 'Pick: '

    def __init__(self, answers: List[str] = None, password: str = 'secret'):
        self.answers = list(answers or [])
        self.password = password
        self.prompts = []
        self.password_prompts = []

    def prompt(self, title, options):
        self.prompts.append((title, list(options)))
        return self.answers.pop(0)

    def prompt_for_password(self, essid):
        self.password_prompts.append(essid)
        return self.password


def output(stdout: str = '', returncode: int = 0, stderr: str = '') -> CommandOutput:
    return CommandOutput(stdout.encode('utf-8'), stderr.encode('utf-8'), returncode)


@pytest.fixture
def netctl_dir(tmp_path):
    """Copy of the sample netctl profiles in a writable directory."""
    target = tmp_path / 'netctl'
    target.mkdir()
    for profile in (SAMPLES / 'netctl').iterdir():
        (target / profile.name).write_text(profile.read_text())
    return target
