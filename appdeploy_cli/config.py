"""
Configuration management for appdeploy.

Config files are stored in ~/.appdeploy/ (override with APPDEPLOY_HOME):
- ~/.appdeploy/config.yaml  - SDK location, deploy options, servers, proxies
- ~/.appdeploy/.env         - Passwords referenced by servers.<id>.password_env

This module provides:
- appdeploy config          - Show current configuration
- appdeploy config set      - Set a specific value
- appdeploy config path     - Print the config file path
- appdeploy config env-path - Print the .env file path
"""

import copy
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import dotenv_values

from appcfg_runner.models import (
    DEFAULT_ENTRY_POINT,
    DEFAULT_PROMPT_MARKERS,
    InvocationConfig,
    ProxyEntry,
    ServerEntry,
    Settings,
)

logger = logging.getLogger(__name__)


# ANSI colors
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"


def color(text: str, *codes) -> str:
    if not sys.stdout.isatty():
        return text
    return "".join(codes) + text + Colors.RESET


# =============================================================================
# Config paths
# =============================================================================

def get_appdeploy_home() -> Path:
    """Get the appdeploy home directory (~/.appdeploy)."""
    return Path(os.getenv("APPDEPLOY_HOME", Path.home() / ".appdeploy"))


def get_config_path() -> Path:
    """Get the main config file path."""
    return get_appdeploy_home() / "config.yaml"


def get_env_path() -> Path:
    """Get the .env file path (for passwords)."""
    return get_appdeploy_home() / ".env"


def ensure_appdeploy_home():
    get_appdeploy_home().mkdir(parents=True, exist_ok=True)


# =============================================================================
# Config loading/saving
# =============================================================================

DEFAULT_CONFIG = {
    "sdk_root": "",
    "app_dir": ".",

    "deploy": {
        "upload_server": "",
        "host": "",
        "proxy": "",
        "interactive": True,
        "passin": False,
        "split_jars": False,
        "keep_temps": False,
        "email": None,
        "server_id": None,
    },

    "tool": {
        "entry_point": DEFAULT_ENTRY_POINT,
        "prompt_markers": list(DEFAULT_PROMPT_MARKERS),
    },

    # id -> {username, password | password_env}
    "servers": {},

    # [{id, host, port, active}]
    "proxies": [],
}


def load_config() -> Dict[str, Any]:
    """Load configuration from ~/.appdeploy/config.yaml."""
    config_path = get_config_path()

    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path.exists():
        try:
            with open(config_path) as f:
                user_config = yaml.safe_load(f) or {}

            # Deep merge
            for key, value in user_config.items():
                if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                    config[key].update(value)
                else:
                    config[key] = value
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Failed to load config %s: %s", config_path, e)

    return config


def save_config(config: Dict[str, Any]):
    """Save configuration to ~/.appdeploy/config.yaml."""
    ensure_appdeploy_home()
    config_path = get_config_path()

    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def load_env() -> Dict[str, str]:
    """Load variables from ~/.appdeploy/.env."""
    env_path = get_env_path()
    if not env_path.exists():
        return {}
    return {k: v for k, v in dotenv_values(env_path).items() if v is not None}


def save_env_value(key: str, value: str):
    """Save or update a value in ~/.appdeploy/.env."""
    ensure_appdeploy_home()
    env_path = get_env_path()

    lines = []
    if env_path.exists():
        with open(env_path) as f:
            lines = f.readlines()

    found = False
    for i, line in enumerate(lines):
        if line.strip().startswith(f"{key}="):
            lines[i] = f"{key}={value}\n"
            found = True
            break

    if not found:
        lines.append(f"{key}={value}\n")

    with open(env_path, 'w') as f:
        f.writelines(lines)
    os.chmod(env_path, 0o600)


def get_env_value(key: str) -> Optional[str]:
    """Get a value from the environment or ~/.appdeploy/.env."""
    if key in os.environ:
        return os.environ[key]
    return load_env().get(key)


# =============================================================================
# Invocation settings
# =============================================================================

def _text(value: Any) -> str:
    # YAML (and `config set`) turn all-digit values into ints
    return "" if value is None else str(value)


def _server_password(server_id: str, data: Dict[str, Any]) -> Optional[str]:
    if data.get("password_env"):
        return get_env_value(str(data["password_env"]))
    return data.get("password")


def build_settings(config: Dict[str, Any]) -> Settings:
    """Build the credential store and proxy list from a loaded config."""
    servers = {}
    for server_id, data in (config.get("servers") or {}).items():
        data = dict(data or {})
        data["password"] = _server_password(server_id, data)
        entry = ServerEntry.from_dict(server_id, data)
        servers[entry.id] = entry

    proxies: List[ProxyEntry] = [ProxyEntry.from_dict(p) for p in (config.get("proxies") or [])]
    return Settings(servers=servers, proxies=proxies)


def build_invocation_config(config: Dict[str, Any], **overrides) -> InvocationConfig:
    """
    Build an InvocationConfig from a loaded config.

    Keyword overrides (from CLI flags) replace config values unless None.
    """
    deploy = config.get("deploy") or {}
    tool = config.get("tool") or {}

    values = {
        "sdk_root": _text(config.get("sdk_root")) or os.getenv("APPENGINE_SDK_ROOT", ""),
        "app_dir": _text(config.get("app_dir")) or ".",
        "upload_server": _text(deploy.get("upload_server")),
        "host": _text(deploy.get("host")),
        "proxy": _text(deploy.get("proxy")),
        "interactive": bool(deploy.get("interactive", True)),
        "passin": bool(deploy.get("passin", False)),
        "split_jars": bool(deploy.get("split_jars", False)),
        "retain_upload_dir": bool(deploy.get("keep_temps", False)),
        "email": _text(deploy.get("email")) or None,
        "server_id": _text(deploy.get("server_id")) or None,
        "entry_point": _text(tool.get("entry_point")) or DEFAULT_ENTRY_POINT,
        "prompt_markers": tuple(str(m) for m in (tool.get("prompt_markers") or DEFAULT_PROMPT_MARKERS)),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return InvocationConfig(**values)


# =============================================================================
# Config display
# =============================================================================

def redact_key(key: Optional[str]) -> str:
    """Redact a secret for display."""
    if not key:
        return color("(not set)", Colors.DIM)
    return "***"


def show_config():
    """Display current configuration."""
    config = load_config()
    deploy = config.get("deploy", {})

    print()
    print(color("◆ Paths", Colors.CYAN, Colors.BOLD))
    print(f"  Config:       {get_config_path()}")
    print(f"  Secrets:      {get_env_path()}")
    print(f"  SDK root:     {config.get('sdk_root') or color('(not set)', Colors.DIM)}")
    print(f"  App dir:      {config.get('app_dir', '.')}")

    print()
    print(color("◆ Deploy", Colors.CYAN, Colors.BOLD))
    print(f"  Server:       {deploy.get('upload_server') or '(default)'}")
    print(f"  Host:         {deploy.get('host') or '(default)'}")
    print(f"  Proxy:        {deploy.get('proxy') or '(none)'}")
    print(f"  Interactive:  {'yes' if deploy.get('interactive', True) else 'no'}")
    print(f"  Email:        {deploy.get('email') or '(not set)'}")
    print(f"  Server id:    {deploy.get('server_id') or '(not set)'}")

    print()
    print(color("◆ Tool", Colors.CYAN, Colors.BOLD))
    tool = config.get("tool", {})
    print(f"  Entry point:  {tool.get('entry_point', DEFAULT_ENTRY_POINT)}")
    print(f"  Prompts:      {', '.join(repr(m) for m in tool.get('prompt_markers', []))}")

    print()
    print(color("◆ Servers", Colors.CYAN, Colors.BOLD))
    servers = config.get("servers") or {}
    if not servers:
        print(f"  {color('none configured', Colors.DIM)}")
    for server_id, data in servers.items():
        data = data or {}
        print(f"  {server_id:<14} {data.get('username') or '(no username)'}  "
              f"password {redact_key(_server_password(server_id, data))}")

    proxies = config.get("proxies") or []
    if proxies:
        print()
        print(color("◆ Proxies", Colors.CYAN, Colors.BOLD))
        for proxy in proxies:
            state = "active" if proxy.get("active", True) else "inactive"
            print(f"  {proxy.get('host')}:{proxy.get('port')}  ({state})")

    print()
    print(color("─" * 60, Colors.DIM))
    print(color("  appdeploy config set KEY VALUE", Colors.DIM))
    print(color("  appdeploy doctor", Colors.DIM))
    print()


def set_config_value(key: str, value: str):
    """Set a configuration value."""
    # Passwords go to .env, never config.yaml
    if key.upper().endswith("_PASSWORD"):
        save_env_value(key.upper(), value)
        print(f"✓ Set {key.upper()} in {get_env_path()}")
        return

    config = load_config()

    # Handle nested keys (e.g., "deploy.server_id")
    parts = key.split('.')
    current = config

    for part in parts[:-1]:
        if not isinstance(current.get(part), dict):
            current[part] = {}
        current = current[part]

    if value.lower() in ('true', 'yes', 'on'):
        value = True
    elif value.lower() in ('false', 'no', 'off'):
        value = False
    elif value.isdigit():
        value = int(value)
    elif value.replace('.', '', 1).isdigit():
        value = float(value)

    current[parts[-1]] = value
    save_config(config)
    print(f"✓ Set {key} = {value} in {get_config_path()}")


# =============================================================================
# Command handler
# =============================================================================

def config_command(args):
    """Handle config subcommands."""
    subcmd = getattr(args, 'config_command', None)

    if subcmd is None or subcmd == "show":
        show_config()

    elif subcmd == "set":
        key = getattr(args, 'key', None)
        value = getattr(args, 'value', None)
        if not key or value is None:
            print("Usage: appdeploy config set KEY VALUE")
            print()
            print("Examples:")
            print("  appdeploy config set sdk_root /opt/appengine-java-sdk")
            print("  appdeploy config set deploy.server_id appengine")
            print("  appdeploy config set APPENGINE_PASSWORD s3cret")
            sys.exit(1)
        set_config_value(key, value)

    elif subcmd == "path":
        print(get_config_path())

    elif subcmd == "env-path":
        print(get_env_path())

    else:
        print(f"Unknown config command: {subcmd}")
        sys.exit(1)
