"""
Doctor command for appdeploy CLI.

Diagnoses issues with the SDK location, the appcfg entry point and the
stored deploy credentials.
"""

import os
import sys
from pathlib import Path

from appcfg_runner.errors import ConfigurationError
from appcfg_runner.sdk import SDK_ROOT_ENV, load_entry_point
from appdeploy_cli.config import (
    Colors,
    build_invocation_config,
    build_settings,
    color,
    get_config_path,
    get_env_path,
    load_config,
)


def check_ok(text: str, detail: str = ""):
    print(f"  {color('✓', Colors.GREEN)} {text}" + (f" {color(detail, Colors.DIM)}" if detail else ""))


def check_warn(text: str, detail: str = ""):
    print(f"  {color('⚠', Colors.YELLOW)} {text}" + (f" {color(detail, Colors.DIM)}" if detail else ""))


def check_fail(text: str, detail: str = ""):
    print(f"  {color('✗', Colors.RED)} {text}" + (f" {color(detail, Colors.DIM)}" if detail else ""))


def check_info(text: str):
    print(f"    {color('→', Colors.CYAN)} {text}")


def run_doctor(args) -> list:
    """Run diagnostic checks. Returns the list of issues found."""
    issues = []
    config = load_config()
    invocation = build_invocation_config(config)
    settings = build_settings(config)

    # =========================================================================
    # Check: Configuration files
    # =========================================================================
    print()
    print(color("◆ Configuration Files", Colors.CYAN, Colors.BOLD))

    if get_config_path().exists():
        check_ok(f"{get_config_path()} exists")
    else:
        check_warn("config.yaml not found", "(using defaults)")
        check_info("Run 'appdeploy config set sdk_root PATH' to create one")

    if get_env_path().exists():
        check_ok(f"{get_env_path()} exists")
    else:
        check_warn(".env not found", "(needed only for password_env servers)")

    # =========================================================================
    # Check: SDK
    # =========================================================================
    print()
    print(color("◆ App Engine SDK", Colors.CYAN, Colors.BOLD))

    sdk = os.environ.get(SDK_ROOT_ENV) or invocation.sdk_root
    if not sdk:
        check_fail("SDK root not set")
        issues.append(f"Set sdk_root in config.yaml or export {SDK_ROOT_ENV}")
    elif not Path(sdk).expanduser().is_dir():
        check_fail(f"SDK root {sdk}", "(not a directory)")
        issues.append(f"Point sdk_root at the SDK installation (currently {sdk})")
    else:
        check_ok(f"SDK root {sdk}")
        lib_dir = Path(sdk).expanduser() / "lib"
        if lib_dir.is_dir():
            check_ok("SDK lib/ directory found")
            if str(lib_dir) not in sys.path:
                sys.path.append(str(lib_dir))
        else:
            check_warn("SDK lib/ directory missing", "(appcfg must be importable some other way)")

    # =========================================================================
    # Check: appcfg entry point
    # =========================================================================
    print()
    print(color("◆ appcfg", Colors.CYAN, Colors.BOLD))

    try:
        load_entry_point(invocation.entry_point)
        check_ok(f"Entry point {invocation.entry_point}")
    except ConfigurationError as e:
        check_fail(f"Entry point {invocation.entry_point}", f"({e})")
        issues.append("Install the SDK or set tool.entry_point in config.yaml")

    # =========================================================================
    # Check: Credentials
    # =========================================================================
    print()
    print(color("◆ Credentials", Colors.CYAN, Colors.BOLD))

    if invocation.email:
        check_ok(f"Explicit email {invocation.email}", "(appcfg will prompt for the password)")
    elif invocation.server_id:
        server = settings.get_server(invocation.server_id)
        if server is None:
            check_fail(f"Server id '{invocation.server_id}'", "(no entry under servers:)")
            issues.append(f"Add servers.{invocation.server_id} to config.yaml")
        else:
            check_ok(f"Server id '{server.id}'", f"({server.username or 'no username'})")
            if server.password is None:
                check_warn("No stored password", "(appcfg will prompt for it)")
            else:
                check_ok("Stored password available", "(answered automatically)")
    else:
        check_warn("No email or server id configured", "(appcfg will prompt)")

    # =========================================================================
    # Summary
    # =========================================================================
    print()
    if issues:
        print(color("─" * 60, Colors.YELLOW))
        print(color(f"  Found {len(issues)} issue(s) to address:", Colors.YELLOW, Colors.BOLD))
        print()
        for i, issue in enumerate(issues, 1):
            print(f"  {i}. {issue}")
    else:
        print(color("─" * 60, Colors.GREEN))
        print(color("  All checks passed!", Colors.GREEN, Colors.BOLD))
    print()

    return issues
