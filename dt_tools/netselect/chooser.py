"""
Interactive choosers: show a list of options and return the chosen line.

Classes -

- **Chooser**: Abstract chooser, ``prompt(title, options) -> str``.
- **DmenuChooser**: ``dmenu``, for use outside a terminal.
- **FzfChooser**: ``fzf``, ctrl-r asks for a refresh.
- **ConsoleChooser**: Plain numbered list and a single input line ("nocurses").

"""
from abc import ABC, abstractmethod
from typing import List

from dt_tools.console.console_helper import ConsoleInputHelper as console_input
from loguru import logger as LOGGER

from dt_tools.netselect.command_runner import CommandRunner
from dt_tools.netselect.errors import ErrorKind, NetSelectError
from dt_tools.netselect.models import SelectionMethod


class _CONSTANTS:
    DMENU_TITLE = 'Select a network: '
    FZF_TITLE = 'Select a network (ctrl-r or "refresh" to refresh results): '
    CONSOLE_TITLE = 'Select a network ("refresh" or "." to rescan, Enter to select the top option): '
    FZF_REFRESH_BINDING = 'ctrl-r:execute(echo refresh)+end-of-line+unix-line-discard+print-query'


class Chooser(ABC):
    """Presents options to the user and returns the line they picked."""
    title: str = ''

    @abstractmethod
    def prompt(self, title: str, options: List[str]) -> str:
        pass

    def prompt_for_password(self, essid: str) -> str:
        """Ask for the encryption key of essid."""
        return read_console_line(f'Password for {essid}: ')


class DmenuChooser(Chooser):
    title = _CONSTANTS.DMENU_TITLE

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def prompt(self, title: str, options: List[str]) -> str:
        return self._runner.run_prompt('dmenu', ['-i', '-p', title], options)

    def prompt_for_password(self, essid: str) -> str:
        return self.prompt(f'Password for {essid}: ', [])


class FzfChooser(Chooser):
    title = _CONSTANTS.FZF_TITLE

    def __init__(self, runner: CommandRunner):
        self._runner = runner

    def prompt(self, title: str, options: List[str]) -> str:
        args = ['--layout', 'reverse', f'--prompt={title}', '--bind', _CONSTANTS.FZF_REFRESH_BINDING]
        return self._runner.run_prompt('fzf', args, options)


class ConsoleChooser(Chooser):
    title = _CONSTANTS.CONSOLE_TITLE

    def prompt(self, title: str, options: List[str]) -> str:
        for option in options:
            print(option)
        return read_console_line(title)


def read_console_line(prompt: str) -> str:
    """
    Read one line from the console.

    Raises:
        NetSelectError: Console could not be read (SingleLinePromptFailed).
    """
    try:
        response = console_input.get_input_with_timeout(prompt)
    except (OSError, EOFError) as ex:
        raise NetSelectError(ErrorKind.SingleLinePromptFailed,
                             'Failed to read a line from the console.',
                             [("Error", repr(ex))])
    LOGGER.trace(f'- Console response: {response!r}')
    return '' if response is None else str(response)


def get_chooser(selection_method: SelectionMethod, runner: CommandRunner) -> Chooser:
    """Return the chooser implementing selection_method."""
    if selection_method == SelectionMethod.DMENU:
        return DmenuChooser(runner)
    if selection_method == SelectionMethod.FZF:
        return FzfChooser(runner)
    return ConsoleChooser()
