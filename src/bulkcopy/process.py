import logging
import subprocess
from typing import Sequence

from bulkcopy.config import BcpConfig
from bulkcopy.errors import BcpProcessError

logger = logging.getLogger(__name__)


def build_command(config: BcpConfig, table: str, mode_args: Sequence[str], args: Sequence[str]) -> str:
    """<exec> <table> <mode...> <args...> as one shell command line (tokens are pre-quoted)."""
    return " ".join([config.exec, table, *mode_args, *args])


def run_bcp(config: BcpConfig, table: str, mode_args: Sequence[str], args: Sequence[str]) -> str:
    """
    Run bcp through the shell and return its stdout.

    On timeout the process is sent config.kill_signal and the failure is raised
    like any other non-zero exit.
    """
    cmd = build_command(config, table, mode_args, args)
    logger.debug(cmd)

    try:
        proc = subprocess.Popen(
            cmd,
            shell=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )
    except OSError as e:
        raise BcpProcessError(cmd, returncode=None, stderr=str(e)) from e

    timed_out = False
    try:
        stdout, stderr = proc.communicate(timeout=config.timeout or None)
    except subprocess.TimeoutExpired:
        timed_out = True
        logger.warning("bcp exceeded %ss timeout, sending %s", config.timeout, config.kill_signal)
        proc.send_signal(config.kill_signal_number)
        stdout, stderr = proc.communicate()

    logger.debug(stdout)

    if timed_out or proc.returncode != 0:
        raise BcpProcessError(
            cmd,
            returncode=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
            timed_out=timed_out,
        )

    return stdout
