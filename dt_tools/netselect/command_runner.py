"""
Run external programs (scan tools, connection managers, choosers).

The runner is passed explicitly to every component that spawns a process, so a
dry-run twin or a test double can be substituted without touching global state.

Classes -

- **CommandOutput**: stdout/stderr/exit status of a finished command.
- **CommandRunner**: Runs commands for real.
- **DryRunCommandRunner**: Logs the command it would have run and reports success with no output.

Example::

    runner = get_command_runner(options)
    stdout = runner.run_pass_stdout('wpa_cli', ['scan_results'],
                                    ErrorKind.FailedToScanWithWPACli,
                                    'Failed to scan with `wpa_cli scan_results`.')

"""
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Sequence

from loguru import logger as LOGGER

from dt_tools.netselect.errors import ErrorKind, NetSelectError


@dataclass
class CommandOutput:
    """Result of a finished command."""
    stdout: bytes = b''
    stderr: bytes = b''
    returncode: int = 0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode('utf-8', errors='replace')

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode('utf-8', errors='replace')


def format_command(program: str, args: Sequence[str]) -> str:
    return shlex.join([program, *args])


class CommandRunner:
    """
    Runs external commands, returning their output or raising NetSelectError.

    Every error raised for a failing command carries the literal command line,
    stdout and stderr in its extra_data.
    """
    dry_run = False

    def run_raw(self, program: str, args: Sequence[str],
                err_kind: ErrorKind = ErrorKind.CommandFailed, err_msg: str = None) -> CommandOutput:
        """
        Run command and return its output regardless of exit status.

        Raises:
            NetSelectError: Command not installed or could not be started.
        """
        cmd_line = format_command(program, args)
        LOGGER.debug(f'- Executing: {cmd_line}')
        try:
            output = self._run_captured(program, list(args))
        except OSError as ex:
            raise NetSelectError(err_kind,
                                 err_msg or f'Failed to run `{cmd_line}`.',
                                 [("Command", cmd_line), ("OS Error", str(ex))])

        LOGGER.trace(f'  RetCd: {output.returncode}')
        for line in output.stdout_text.splitlines():
            LOGGER.trace(f'  {line}')
        return output

    def run(self, program: str, args: Sequence[str],
            err_kind: ErrorKind = ErrorKind.CommandFailed, err_msg: str = None) -> CommandOutput:
        """
        Run command, requiring a zero exit status.

        Raises:
            NetSelectError: Command could not be started or exited non-zero.
        """
        output = self.run_raw(program, args, err_kind, err_msg)
        if not output.success:
            cmd_line = format_command(program, args)
            raise NetSelectError(err_kind,
                                 err_msg or f'`{cmd_line}` exited with {output.returncode}.',
                                 [("Command", cmd_line),
                                  ("STDOUT", output.stdout_text),
                                  ("STDERR", output.stderr_text)])
        return output

    def run_pass_stdout(self, program: str, args: Sequence[str],
                        err_kind: ErrorKind = ErrorKind.CommandFailed, err_msg: str = None) -> str:
        """Run command, requiring success, and return stdout as text."""
        return self.run(program, args, err_kind, err_msg).stdout_text

    def run_status(self, program: str, args: Sequence[str]) -> bool:
        """Run command and report only whether it succeeded."""
        try:
            return self.run_raw(program, args).success
        except NetSelectError as err:
            LOGGER.debug(f'- {err}')
            return False

    def run_prompt(self, program: str, args: Sequence[str], elements: List[str]) -> str:
        """
        Run an interactive chooser, feeding elements on stdin, and return the chosen line.

        Prompts are run even in dry-run mode, they have no side effects on the system.

        Raises:
            NetSelectError: Chooser missing, could not be started, or exited non-zero.
        """
        full_path = self._resolve(program)
        cmd_line = format_command(program, args)
        LOGGER.debug(f'- Prompting with: {cmd_line}')
        try:
            # stderr is left attached to the terminal, fzf draws its interface there
            proc = subprocess.run([full_path, *args],
                                  input='\n'.join(elements).encode('utf-8'),
                                  stdout=subprocess.PIPE)
        except OSError as ex:
            raise NetSelectError(ErrorKind.PromptCommandSpawnFailed,
                                 f'Failed to start `{program}`: {ex}',
                                 [("Command", cmd_line)])

        if proc.returncode != 0:
            raise NetSelectError(ErrorKind.PromptCommandFailed,
                                 'Prompt command exited with non-zero exit code.',
                                 [("Command", cmd_line), ("Exit code", str(proc.returncode))])

        return proc.stdout.decode('utf-8', errors='replace').rstrip('\n')

    @classmethod
    def _resolve(cls, program: str) -> str:
        full_path = shutil.which(program)
        if full_path is None:
            raise NetSelectError(ErrorKind.CommandNotFound,
                                 f'`{program}` is not installed or is not in $PATH.')
        return full_path

    def _run_captured(self, program: str, args: List[str]) -> CommandOutput:
        full_path = self._resolve(program)
        proc = subprocess.run([full_path, *args], stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        return CommandOutput(proc.stdout, proc.stderr, proc.returncode)


class DryRunCommandRunner(CommandRunner):
    """Runner that never touches the system."""
    dry_run = True

    def _run_captured(self, program: str, args: List[str]) -> CommandOutput:
        LOGGER.warning(f'[NOTE]: Not running command in dryrun mode: `{format_command(program, args)}`')
        return CommandOutput()


def get_command_runner(options) -> CommandRunner:
    """Return the runner matching the dry_run setting of options."""
    if options.dry_run:
        return DryRunCommandRunner()
    return CommandRunner()
