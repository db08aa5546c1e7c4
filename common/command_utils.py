# common/command_utils.py
# -*- coding: utf-8 -*-
"""
Utilities for executing shell commands, probing the host for installed
tools and logging command output.
"""

import logging
import os
import shutil
import signal
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from settings.config_models import SYMBOLS_DEFAULT, AppSettings

module_logger = logging.getLogger(__name__)


def log_bootstrap(
    message: str,
    level: str = "info",
    current_logger: Optional[logging.Logger] = None,
    exc_info: bool = False,
) -> None:
    """
    Log a message at the named level.

    Args:
        message: The log message to be recorded.
        level: One of "debug", "info", "warning", "error" or "critical".
            Unknown levels (including "success") are logged as info.
        current_logger: Logger to use. Defaults to the module logger.
        exc_info: Whether to attach exception information.
    """
    effective_logger = current_logger if current_logger else module_logger

    if level == "warning":
        effective_logger.warning(message, exc_info=exc_info)
    elif level == "error":
        effective_logger.error(message, exc_info=exc_info)
    elif level == "critical":
        effective_logger.critical(message, exc_info=exc_info)
    elif level == "debug":
        effective_logger.debug(message, exc_info=exc_info)
    else:
        effective_logger.info(message, exc_info=exc_info)


def _symbols(app_settings: Optional[AppSettings]) -> Dict[str, str]:
    if app_settings and app_settings.symbols:
        return app_settings.symbols
    return SYMBOLS_DEFAULT


def _get_elevated_command_prefix() -> List[str]:
    """
    Return ["sudo"] unless the process already runs as root.
    """
    return [] if os.geteuid() == 0 else ["sudo"]


def _kill_process_group(process: subprocess.Popen) -> None:
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    process.wait()


def _run_in_own_session(
    command: Union[List[str], str],
    check: bool,
    shell: bool,
    capture_output: bool,
    text: bool,
    cmd_input: Optional[str],
    cwd: Optional[str],
    env: Optional[Dict[str, str]],
    timeout: Optional[float],
) -> subprocess.CompletedProcess:
    """
    Equivalent of subprocess.run for a command that leads its own session.

    A Ctrl+C on the terminal does not reach the command. On a timeout or an
    abort the whole process group is killed, including pipeline members
    and subshells that subprocess.run would leave behind.
    """
    pipe = subprocess.PIPE if capture_output else None
    with subprocess.Popen(
        command,
        shell=shell,
        text=text,
        cwd=cwd,
        env=env,
        stdin=subprocess.PIPE if cmd_input is not None else None,
        stdout=pipe,
        stderr=pipe,
        start_new_session=True,
    ) as process:
        try:
            stdout, stderr = process.communicate(cmd_input, timeout=timeout)
        except BaseException:
            _kill_process_group(process)
            raise
    if check and process.returncode:
        raise subprocess.CalledProcessError(
            process.returncode, process.args, output=stdout, stderr=stderr
        )
    return subprocess.CompletedProcess(
        process.args, process.returncode, stdout, stderr
    )


def run_command(
    command: Union[List[str], str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    shell: bool = False,
    capture_output: bool = False,
    text: bool = True,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
    own_session: bool = False,
) -> subprocess.CompletedProcess:
    """
    Execute a system command and log its progress and result.

    Args:
        command: The command to execute, as a list or a string. A list is
            joined into a single string when shell mode is enabled.
        app_settings: Application settings, used for logging symbols.
        check: Raise CalledProcessError on a non-zero exit code.
        shell: Run the command through the shell.
        capture_output: Capture stdout and stderr.
        text: Decode output streams as text.
        cmd_input: Data passed to the command's standard input.
        current_logger: Logger to use. Defaults to the module logger.
        cwd: Working directory for the command.
        env: Environment for the command. Defaults to the inherited one.
        timeout: Seconds after which the command is killed and
            subprocess.TimeoutExpired is raised. None waits forever.
        own_session: Run the command in a new session. Terminal signals do
            not reach it, and a timeout kills its whole process group.
            Commands that may prompt through /dev/tty (sudo) must not use it.

    Returns:
        The completed process.

    Raises:
        subprocess.CalledProcessError: Non-zero exit with check=True.
        subprocess.TimeoutExpired: The timeout elapsed.
        FileNotFoundError: The executable was not found.
    """
    effective_logger = current_logger if current_logger else module_logger
    symbols = _symbols(app_settings)
    command_to_log_str: str
    command_to_run: Union[List[str], str]

    if shell:
        if isinstance(command, list):
            command_to_run = " ".join(command)
        else:
            command_to_run = command
        command_to_log_str = str(command_to_run)
    else:
        if isinstance(command, str):
            log_bootstrap(
                f"{symbols.get('warning', '!')} Splitting string command '{command}' on whitespace; pass a list to keep arguments intact.",
                "warning",
                effective_logger,
            )
            command_to_run = command.split()
            command_to_log_str = command
        else:
            command_to_run = command
            command_to_log_str = subprocess.list2cmdline(command)

    log_bootstrap(
        f"{symbols.get('gear', '⚙️')} Running: {command_to_log_str} {f'(in {cwd})' if cwd else ''}",
        "debug",
        effective_logger,
    )
    try:
        if own_session:
            result = _run_in_own_session(
                command_to_run,
                check=check,
                shell=shell,
                capture_output=capture_output,
                text=text,
                cmd_input=cmd_input,
                cwd=cwd,
                env=env,
                timeout=timeout,
            )
        else:
            result = subprocess.run(
                command_to_run,
                check=check,
                shell=shell,
                capture_output=capture_output,
                text=text,
                input=cmd_input,
                cwd=cwd,
                env=env,
                timeout=timeout,
            )
        if capture_output:
            if result.stdout and result.stdout.strip():
                log_bootstrap(
                    f"   stdout: {result.stdout.strip()}",
                    "debug",
                    effective_logger,
                )
            if (
                result.stderr
                and result.stderr.strip()
                and (not check or result.returncode == 0)
            ):
                log_bootstrap(
                    f"   stderr: {result.stderr.strip()}",
                    "debug",
                    effective_logger,
                )
        return result
    except subprocess.CalledProcessError as e:
        cmd_executed_str = (
            subprocess.list2cmdline(e.cmd)
            if isinstance(e.cmd, list)
            else str(e.cmd)
        )
        log_bootstrap(
            f"{symbols.get('error', '❌')} Command `{cmd_executed_str}` exited with status {e.returncode}.",
            "error",
            effective_logger,
        )
        if e.stderr and hasattr(e.stderr, "strip") and e.stderr.strip():
            log_bootstrap(
                f"   stderr: {e.stderr.strip()}",
                "error",
                effective_logger,
            )
        raise
    except subprocess.TimeoutExpired:
        log_bootstrap(
            f"{symbols.get('error', '❌')} Command `{command_to_log_str}` timed out after {timeout}s.",
            "error",
            effective_logger,
        )
        raise
    except FileNotFoundError as e:
        log_bootstrap(
            f"{symbols.get('error', '❌')} Executable not found: {e.filename}.",
            "error",
            effective_logger,
        )
        raise


def run_elevated_command(
    command: List[str],
    app_settings: Optional[AppSettings],
    check: bool = True,
    capture_output: bool = False,
    cmd_input: Optional[str] = None,
    current_logger: Optional[logging.Logger] = None,
    cwd: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = None,
) -> subprocess.CompletedProcess:
    """
    Execute a command with sudo unless already running as root.

    Accepts the same arguments as run_command, minus shell mode.
    """
    prefix = _get_elevated_command_prefix()
    elevated_command_list = prefix + list(command)
    return run_command(
        elevated_command_list,
        app_settings,
        check=check,
        shell=False,
        capture_output=capture_output,
        text=True,
        cmd_input=cmd_input,
        current_logger=current_logger,
        cwd=cwd,
        env=env,
        timeout=timeout,
    )


def command_exists(command_name: str) -> bool:
    """
    True if `command_name` resolves on PATH.
    """
    return shutil.which(command_name) is not None


def find_executable(
    command_name: str, extra_dirs: Optional[Iterable[Path]] = None
) -> Optional[str]:
    """
    Locate an executable on PATH or in one of the given extra directories.

    Tools installed by user-level installers (mise, chezmoi, nvm) land in
    directories that are usually not yet on PATH for the current process.

    Args:
        command_name: The executable to look for.
        extra_dirs: Directories searched after PATH, in order.

    Returns:
        The full path of the executable, or None if it was not found.
    """
    found = shutil.which(command_name)
    if found:
        return found
    for directory in extra_dirs or []:
        candidate = Path(directory) / command_name
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate)
    return None


def check_package_installed(
    package_name: str,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> bool:
    """
    Check whether a Debian package is installed using `dpkg-query`.

    Returns:
        True if dpkg reports "install ok installed" for the package. False
        otherwise, including when dpkg-query itself is unavailable.
    """
    logger_to_use = current_logger if current_logger else module_logger
    symbols = _symbols(app_settings)
    try:
        result = run_command(
            ["dpkg-query", "-W", "-f=${Status}", package_name],
            app_settings,
            check=False,
            capture_output=True,
            text=True,
            current_logger=logger_to_use,
        )
        return (
            result.returncode == 0 and "install ok installed" in result.stdout
        )
    except FileNotFoundError:
        log_bootstrap(
            f"{symbols.get('error', '❌')} dpkg-query is not available; cannot check package '{package_name}'.",
            "error",
            logger_to_use,
        )
        return False
