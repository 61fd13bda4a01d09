"""
Run the external deploy tool for an authorized webhook request.

The tool is invoked as one fixed shell command inside the Stage WP path:

    cd <stage_wp_path>; <DEPLOY_TOOL> <DEPLOY_SUBCOMMAND>

With no Stage WP path configured the command starts with a bare `cd`, so
the tool runs from the home directory of the server user.

The call blocks until the tool exits (no timeout, no retry). Combined
stdout/stderr and the exit code end up in the deploy log.
"""

import json
import shlex
import subprocess
import threading
from dataclasses import dataclass
from datetime import datetime

from config import DEPLOY_TOOL, DEPLOY_SUBCOMMAND
from constants import (
    LEVEL_ERROR,
    LEVEL_INFO,
    LEVEL_WARNING,
    LOG_TIME_FORMAT,
    PARAM_KEY,
    REDACTED,
)
from deploy_log import DeployLog

# One deployment at a time per process; overlapping requests are skipped
_deploy_lock = threading.Lock()

ALREADY_RUNNING_MESSAGE = "Deployment already in progress, skipping"


@dataclass
class DeployResult:
    command: str
    output: str
    returncode: int

    @property
    def succeeded(self):
        return self.returncode == 0


def build_deploy_command(settings, tool=DEPLOY_TOOL, subcommand=DEPLOY_SUBCOMMAND):
    """Shell command for the deploy tool, run from the Stage WP path."""
    run = f"{tool} {subcommand}"
    if not settings.stage_wp_path:
        # A bare cd lands in $HOME
        return f"cd; {run}"
    return f"cd {shlex.quote(settings.stage_wp_path)}; {run}"


def run_deploy_command(settings):
    """
    Execute the deploy command and capture its output.

    Args:
        settings (DeploySettings): Provides the Stage WP path.

    Returns:
        DeployResult: Command, combined stdout/stderr and exit code.
    """
    command = build_deploy_command(settings)
    completed = subprocess.run(
        command,
        shell=True,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        text=True,
    )
    output = (completed.stdout or "").rstrip("\n")
    return DeployResult(command=command, output=output, returncode=completed.returncode)


def _redact(params):
    data = dict(params)
    if data.get(PARAM_KEY):
        data[PARAM_KEY] = REDACTED
    return json.dumps(data, sort_keys=True)


def _log_results(log, result):
    message = "Deployment results: \n" + result.output
    if result.succeeded:
        log.write(message, LEVEL_INFO)
    else:
        log.write(f"{message}\n(exit code {result.returncode})", LEVEL_ERROR)


def deploy(settings, params):
    """
    Perform the deployment process.

    Args:
        settings (DeploySettings): Stored deployment settings.
        params (dict): Request parameters, logged with the key redacted.

    Returns:
        str: Message to send back as the whole response body.
    """
    log = DeployLog(settings.log)

    if not _deploy_lock.acquire(blocking=False):
        print(f"⚠️ {ALREADY_RUNNING_MESSAGE}")
        log.write(ALREADY_RUNNING_MESSAGE, LEVEL_WARNING)
        return ALREADY_RUNNING_MESSAGE

    try:
        log.write("Preparing deployment with the following data: " + _redact(params))

        result = run_deploy_command(settings)
        _log_results(log, result)

        if result.succeeded:
            print(f"✅ Deployment finished: {result.command}")
        else:
            print(f"❌ Deployment exited with {result.returncode}: {result.command}")
    finally:
        _deploy_lock.release()

    message = f"Deployment performed at {datetime.now().strftime(LOG_TIME_FORMAT)}"
    log.write(message)
    return message
