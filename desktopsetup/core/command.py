# desktopsetup/core/command.py

import os
import shlex
import subprocess

from desktopsetup.core.logger import LoggerProxy

log = LoggerProxy(__name__)


class CommandResult:
    """Holds the result of a command execution."""

    def __init__(self, returncode: int, stdout: str, stderr: str, success: bool):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.success = success

    def __bool__(self) -> bool:
        """Allows treating the result object as boolean for success."""
        return self.success

    def __repr__(self) -> str:
        return f"CommandResult(returncode={self.returncode}, success={self.success})"


def run_command(
    cmd_list: list[str],
    dry_run: bool = False,
    check: bool = True,  # If True, non-zero exit code is logged as a failure
    capture: bool = True,
    cwd: str | None = None,
    extra_env: dict[str, str] | None = None,  # Merged over os.environ
    quiet: bool = False,  # Inventory probes log at DEBUG instead of INFO
) -> CommandResult:
    """
    Runs an external command using subprocess.

    Args:
        cmd_list: Command and arguments as a list of strings.
        dry_run: If True, print the command instead of running it.
        check: If True, a non-zero exit code is logged as an error.
        capture: If True, capture stdout and stderr. Installers that need
            the terminal (Homebrew, Xcode prompts) run with capture=False.
        cwd: Directory to run the command in.
        extra_env: Variables layered over the current process environment.
        quiet: Probe commands (``brew list``, ``npm view``) are expected to
            fail routinely, so they are logged at DEBUG.

    Returns:
        CommandResult object with success status, return code, stdout, stderr.
    """
    cmd_str = shlex.join(cmd_list)
    if quiet:
        log.debug(f"Probing: {cmd_str}")
    else:
        log.info(f"Running: {cmd_str}" + (f" in {cwd}" if cwd else ""))

    if dry_run:
        print(f"DRYRUN: Would execute: {cmd_str}")
        return CommandResult(returncode=0, stdout="", stderr="", success=True)

    env = None
    if extra_env:
        env = dict(os.environ)
        env.update(extra_env)

    try:
        process = subprocess.run(
            cmd_list,
            check=False,
            capture_output=capture,
            text=True,
            cwd=cwd,
            env=env,
        )
    except FileNotFoundError:
        log.debug(f"Command not found: {cmd_list[0]}")
        return CommandResult(
            returncode=127,
            stdout="",
            stderr=f"Command not found: {cmd_list[0]}",
            success=False,
        )
    except OSError as e:
        log.error(f"Could not execute {cmd_str}: {e}")
        return CommandResult(returncode=-1, stdout="", stderr=str(e), success=False)

    stdout = process.stdout.strip() if process.stdout else ""
    stderr = process.stderr.strip() if process.stderr else ""
    success = process.returncode == 0

    if stdout:
        log.debug(f"STDOUT: {stdout}")
    if stderr:
        if success or quiet or not check:
            log.debug(f"STDERR (RC={process.returncode}): {stderr}")
        else:
            log.error(f"STDERR (RC={process.returncode}): {stderr}")

    if check and not success:
        log.error(f"Command failed with exit code {process.returncode}: {cmd_str}")
    else:
        log.debug(f"Command finished with exit code {process.returncode}.")
    return CommandResult(process.returncode, stdout, stderr, success=success)
