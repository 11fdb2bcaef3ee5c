"""appcfg runner -- invoke the App Engine deployment tool in-process.

Builds the appcfg argument vector from an InvocationConfig, resolves deploy
credentials from the settings store, and runs the tool's entry point on a
supervised thread that can answer its password prompt through a redirected
stdin pipe.
"""

from appcfg_runner.errors import (
    ConfigurationError,
    DeployError,
    ExternalToolFault,
    StreamSetupError,
    SupervisionInterrupted,
)
from appcfg_runner.invoker import InvocationResult, SupervisedInvoker
from appcfg_runner.models import InvocationConfig, Settings
from appcfg_runner.runner import run_appcfg

__all__ = [
    "ConfigurationError",
    "DeployError",
    "ExternalToolFault",
    "InvocationConfig",
    "InvocationResult",
    "Settings",
    "StreamSetupError",
    "SupervisedInvoker",
    "SupervisionInterrupted",
    "run_appcfg",
]
