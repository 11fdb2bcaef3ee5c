"""
Run one appcfg command end to end.

This module provides:
- APPCFG_COMMANDS: the tool commands the CLI exposes
- run_appcfg(): resolve credentials, build arguments, check the SDK, invoke
"""

import logging
import threading
from typing import Callable, Optional

from appcfg_runner.arguments import build_arguments
from appcfg_runner.credentials import resolve_credentials
from appcfg_runner.invoker import InvocationResult, SupervisedInvoker
from appcfg_runner.models import InvocationConfig, Settings
from appcfg_runner.sdk import assure_sdk_root, load_entry_point

logger = logging.getLogger(__name__)

# appcfg command -> help text; every one of them takes the application directory
APPCFG_COMMANDS = {
    "update": "Upload the application",
    "rollback": "Roll back an in-progress update",
    "update_cron": "Update the cron job definitions",
    "update_indexes": "Update the datastore indexes",
    "update_queues": "Update the task queue definitions",
    "update_dos": "Update the DoS protection configuration",
    "vacuum_indexes": "Delete unused datastore indexes",
    "request_logs": "Download application logs to a file",
}

# sys.stdin/sys.stdout are swapped per invocation, so only one may run at a time
_invocation_lock = threading.Lock()


def run_appcfg(config: InvocationConfig, settings: Settings, command: str,
               *command_args: str, entry_point: Optional[Callable] = None) -> InvocationResult:
    """
    Pass ``command`` and its arguments to appcfg.

    Configuration problems raise ConfigurationError before anything runs.
    Failures of the tool itself come back as a FAILURE InvocationResult.
    """
    credentials = resolve_credentials(config, settings)
    try:
        args = build_arguments(config, settings)
        args.append(command)
        args.extend(command_args)
        assure_sdk_root(config.sdk_root)

        logger.debug("execute appcfg %s", args)

        if credentials.requires_injection:
            logger.info("Use settings configuration from server id {%s}", config.server_id)

        tool = entry_point or load_entry_point(config.entry_point)
        invoker = SupervisedInvoker(tool, prompt_markers=config.prompt_markers)

        with _invocation_lock:
            result = invoker.invoke(args, credentials)
    finally:
        credentials.discard()

    if result.ok:
        logger.info("appcfg %s finished", command)
    else:
        logger.error("appcfg %s failed: %s", command, result.error)
    return result
