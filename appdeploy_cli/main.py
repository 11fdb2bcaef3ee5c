#!/usr/bin/env python3
"""
appdeploy CLI - Main entry point.

Usage:
    appdeploy update [APP_DIR]            # Upload the application
    appdeploy rollback [APP_DIR]          # Roll back an in-progress update
    appdeploy update-cron [APP_DIR]       # Update cron job definitions
    appdeploy update-indexes [APP_DIR]    # Update datastore indexes
    appdeploy update-queues [APP_DIR]     # Update task queue definitions
    appdeploy update-dos [APP_DIR]        # Update DoS protection configuration
    appdeploy vacuum-indexes [APP_DIR]    # Delete unused datastore indexes
    appdeploy request-logs OUTPUT [--app-dir DIR]
    appdeploy config                      # Show configuration
    appdeploy doctor                      # Check configuration and SDK
    appdeploy version                     # Show version
"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from appdeploy_cli import __version__
from appdeploy_cli.config import get_env_path

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool):
    # stderr is never swapped during an invocation, unlike stdout
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_appcfg(args) -> int:
    """Run an appcfg command."""
    from appcfg_runner.errors import DeployError
    from appcfg_runner.runner import run_appcfg
    from appdeploy_cli.config import build_invocation_config, build_settings, load_config

    config = load_config()
    invocation = build_invocation_config(
        config,
        sdk_root=args.sdk,
        upload_server=args.server,
        host=args.host,
        proxy=args.proxy,
        email=args.email,
        server_id=args.server_id,
        interactive=False if args.batch else None,
        passin=True if args.passin else None,
        split_jars=True if args.split_jars else None,
        retain_upload_dir=True if args.keep_temps else None,
    )
    settings = build_settings(config)

    command_args = [getattr(args, "app_dir", None) or invocation.app_dir]
    if args.appcfg_command == "request_logs":
        command_args.append(args.output)

    try:
        result = run_appcfg(invocation, settings, args.appcfg_command, *command_args)
    except DeployError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    if not result.ok:
        print(f"✗ appcfg {args.appcfg_command} failed: {result.error}", file=sys.stderr)
        return 1
    return 0


def cmd_doctor(args) -> int:
    """Check configuration and dependencies."""
    from appdeploy_cli.doctor import run_doctor
    return 1 if run_doctor(args) else 0


def cmd_config(args) -> int:
    """Configuration management."""
    from appdeploy_cli.config import config_command
    config_command(args)
    return 0


def cmd_version(args) -> int:
    """Show version."""
    print(f"appdeploy v{__version__}")
    print(f"Python: {sys.version.split()[0]}")
    return 0


def _add_deploy_options(parser: argparse.ArgumentParser):
    parser.add_argument("--sdk", help="App Engine SDK root (overrides sdk_root)")
    parser.add_argument("--server", help="Upload server to connect to")
    parser.add_argument("--host", help="Override the Host header sent with all RPCs")
    parser.add_argument("--proxy", help="Proxy as host:port")
    parser.add_argument("--email", help="Login email; appcfg prompts for the password")
    parser.add_argument("--server-id", dest="server_id",
                        help="servers: entry holding username and password")
    parser.add_argument("--passin", action="store_true", help="Always read the password from stdin")
    parser.add_argument("--split-jars", dest="split_jars", action="store_true",
                        help="Split large jar files into smaller fragments")
    parser.add_argument("--keep-temps", dest="keep_temps", action="store_true",
                        help="Do not delete the temporary upload directory")
    parser.add_argument("-B", "--batch", action="store_true",
                        help="Non-interactive mode (passes --disable_prompt)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")


def build_parser() -> argparse.ArgumentParser:
    from appcfg_runner.runner import APPCFG_COMMANDS

    parser = argparse.ArgumentParser(
        prog="appdeploy",
        description="Deploy App Engine applications through appcfg",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    appdeploy update                      Upload the app in the current directory
    appdeploy update build/war -B         Upload without interactive prompts
    appdeploy update --server-id prod     Log in with a stored servers: entry
    appdeploy config set sdk_root /opt/appengine-java-sdk
    appdeploy doctor

For more help on a command:
    appdeploy <command> --help
"""
    )

    parser.add_argument(
        "--version", "-V",
        action="store_true",
        help="Show version and exit"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # =========================================================================
    # appcfg commands
    # =========================================================================
    for appcfg_command, help_text in APPCFG_COMMANDS.items():
        sub = subparsers.add_parser(appcfg_command.replace("_", "-"), help=help_text, description=help_text)
        if appcfg_command == "request_logs":
            sub.add_argument("output", help="File to write the logs to")
            sub.add_argument("--app-dir", dest="app_dir", help="Application directory")
        else:
            sub.add_argument("app_dir", nargs="?", help="Application directory (default: app_dir from config)")
        _add_deploy_options(sub)
        sub.set_defaults(func=cmd_appcfg, appcfg_command=appcfg_command)

    # =========================================================================
    # doctor command
    # =========================================================================
    doctor_parser = subparsers.add_parser(
        "doctor",
        help="Check configuration and dependencies",
        description="Diagnose issues with the SDK and credential setup"
    )
    doctor_parser.set_defaults(func=cmd_doctor)

    # =========================================================================
    # config command
    # =========================================================================
    config_parser = subparsers.add_parser(
        "config",
        help="View and edit configuration",
        description="Manage appdeploy configuration"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_subparsers.add_parser("show", help="Show current configuration")

    config_set = config_subparsers.add_parser("set", help="Set a configuration value")
    config_set.add_argument("key", nargs="?", help="Configuration key (e.g., sdk_root, deploy.server_id)")
    config_set.add_argument("value", nargs="?", help="Value to set")

    config_subparsers.add_parser("path", help="Print config file path")
    config_subparsers.add_parser("env-path", help="Print .env file path")

    config_parser.set_defaults(func=cmd_config)

    # =========================================================================
    # version command
    # =========================================================================
    version_parser = subparsers.add_parser(
        "version",
        help="Show version information"
    )
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv=None) -> int:
    """Main entry point for appdeploy CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    _setup_logging(getattr(args, "verbose", False))

    env_path = get_env_path()
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)

    if args.version:
        return cmd_version(args)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
