"""App Engine SDK location and appcfg entry point loading."""

import importlib
import logging
import os
import sys
from pathlib import Path
from typing import Callable, Optional

from appcfg_runner.errors import ConfigurationError

logger = logging.getLogger(__name__)

SDK_ROOT_ENV = "APPENGINE_SDK_ROOT"

HOME_UNDEFINED = (
    "The App Engine SDK location is not set. Set sdk_root in config.yaml, "
    "pass --sdk, or export " + SDK_ROOT_ENV + "."
)
HOME_INVALID = "The App Engine SDK location {path} is not a directory."


def assure_sdk_root(sdk_dir: Optional[str]) -> Path:
    """
    Make sure APPENGINE_SDK_ROOT names an existing SDK directory.

    An already exported APPENGINE_SDK_ROOT wins; otherwise it is set from
    ``sdk_dir``, which must itself be a directory when given. The SDK's
    ``lib`` directory is appended to sys.path so the appcfg module shipped
    with the SDK can be imported.

    Raises:
        ConfigurationError: no SDK location is known, or it is not a directory.
    """
    # --sdk_root= is built from sdk_dir, so it must hold even when the env var is set
    if sdk_dir and not Path(sdk_dir).expanduser().is_dir():
        raise ConfigurationError(HOME_INVALID.format(path=Path(sdk_dir).expanduser()))

    sdk = os.environ.get(SDK_ROOT_ENV)
    if not sdk:
        if not sdk_dir:
            raise ConfigurationError(HOME_UNDEFINED)
        sdk = sdk_dir
        os.environ[SDK_ROOT_ENV] = sdk

    sdk_path = Path(sdk).expanduser()
    if not sdk_path.is_dir():
        raise ConfigurationError(HOME_INVALID.format(path=sdk_path))

    lib_dir = sdk_path / "lib"
    if lib_dir.is_dir() and str(lib_dir) not in sys.path:
        logger.debug("Adding %s to sys.path", lib_dir)
        sys.path.append(str(lib_dir))

    return sdk_path


def load_entry_point(spec: str) -> Callable:
    """Resolve a ``module:function`` spec to the appcfg main callable."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Invalid entry point '{spec}' (expected 'module:function')")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import appcfg module '{module_name}': {e}") from e

    target = module
    for part in attr.split("."):
        target = getattr(target, part, None)
        if target is None:
            raise ConfigurationError(f"Entry point '{spec}' not found")

    if not callable(target):
        raise ConfigurationError(f"Entry point '{spec}' is not callable")
    return target
