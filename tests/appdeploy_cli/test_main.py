"""Tests for the appdeploy command line."""

from unittest.mock import patch

import pytest
import yaml

from appcfg_runner.errors import ConfigurationError
from appcfg_runner.invoker import InvocationResult
from appdeploy_cli.config import get_config_path, save_env_value
from appdeploy_cli.main import build_parser, main


def _write_config(data):
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))


@pytest.fixture
def fake_appcfg_module(tmp_path, monkeypatch):
    """An importable module standing in for the SDK's appcfg."""
    module_dir = tmp_path / "fake_sdk_modules"
    module_dir.mkdir()
    (module_dir / "cli_fake_appcfg.py").write_text(
        "import sys\n"
        "calls = []\n"
        "def main(argv):\n"
        "    password = None\n"
        "    if '--passin' in argv:\n"
        "        print('Password for dev@example.com: ', end='', flush=True)\n"
        "        password = sys.stdin.readline()\n"
        "    calls.append((argv, password))\n"
        "    if 'rollback' in argv:\n"
        "        raise RuntimeError('nothing to roll back')\n"
    )
    monkeypatch.syspath_prepend(str(module_dir))
    import cli_fake_appcfg
    cli_fake_appcfg.calls.clear()
    return cli_fake_appcfg


# ── Argument parsing ──────────────────────────────────────────────────────

class TestParser:

    def test_commands_use_dashes(self):
        args = build_parser().parse_args(["update-indexes", "war"])
        assert args.appcfg_command == "update_indexes"
        assert args.app_dir == "war"

    def test_request_logs_takes_output(self):
        args = build_parser().parse_args(["request-logs", "logs.txt", "--app-dir", "war"])
        assert args.appcfg_command == "request_logs"
        assert args.output == "logs.txt"
        assert args.app_dir == "war"


# ── appcfg commands ───────────────────────────────────────────────────────

class TestAppcfgCommands:

    def test_flags_become_overrides(self, sdk_dir):
        """CLI flags reach run_appcfg as InvocationConfig values."""
        with patch("appcfg_runner.runner.run_appcfg", return_value=InvocationResult.success()) as run:
            code = main(["update", "war", "--sdk", str(sdk_dir), "-B", "--split-jars", "--email", "me@example.com"])
        assert code == 0
        config, settings, command, app_dir = run.call_args.args
        assert config.sdk_root == str(sdk_dir)
        assert config.interactive is False
        assert config.split_jars is True
        assert config.email == "me@example.com"
        assert (command, app_dir) == ("update", "war")

    def test_default_app_dir_from_config(self, sdk_dir):
        _write_config({"sdk_root": str(sdk_dir), "app_dir": "target/app"})
        with patch("appcfg_runner.runner.run_appcfg", return_value=InvocationResult.success()) as run:
            main(["update"])
        assert run.call_args.args[3] == "target/app"

    def test_configuration_error_exit_code(self, capsys):
        with patch("appcfg_runner.runner.run_appcfg", side_effect=ConfigurationError("SDK location is not set")):
            code = main(["update"])
        assert code == 1
        assert "SDK location is not set" in capsys.readouterr().err

    def test_stored_password_end_to_end(self, sdk_dir, fake_appcfg_module):
        """A servers: entry with a .env password answers appcfg's prompt."""
        save_env_value("PROD_PASSWORD", "secret123")
        _write_config({
            "sdk_root": str(sdk_dir),
            "deploy": {"server_id": "prod", "interactive": False},
            "tool": {"entry_point": "cli_fake_appcfg:main"},
            "servers": {"prod": {"username": "dev@example.com", "password_env": "PROD_PASSWORD"}},
        })

        assert main(["update", "war"]) == 0

        argv, password = fake_appcfg_module.calls[0]
        assert password == "secret123\n"
        assert argv[-2:] == ["update", "war"]
        assert "--passin" in argv
        assert "--email=dev@example.com" in argv

    def test_numeric_stored_password_end_to_end(self, sdk_dir, fake_appcfg_module):
        """An all-digit password, loaded by YAML as an int, is still typed into the prompt."""
        _write_config({
            "sdk_root": str(sdk_dir),
            "deploy": {"server_id": "prod"},
            "tool": {"entry_point": "cli_fake_appcfg:main"},
            "servers": {"prod": {"username": "dev@example.com", "password": 123456}},
        })

        assert main(["update", "war"]) == 0

        argv, password = fake_appcfg_module.calls[0]
        assert password == "123456\n"

    def test_tool_failure_exit_code(self, sdk_dir, fake_appcfg_module, capsys):
        _write_config({"sdk_root": str(sdk_dir), "tool": {"entry_point": "cli_fake_appcfg:main"}})
        assert main(["rollback", "war"]) == 1
        assert "appcfg rollback failed" in capsys.readouterr().err


# ── Other commands ────────────────────────────────────────────────────────

class TestOtherCommands:

    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert "appdeploy v" in capsys.readouterr().out

    def test_config_path(self, capsys):
        main(["config", "path"])
        assert capsys.readouterr().out.strip() == str(get_config_path())

    def test_config_show_redacts(self, capsys):
        _write_config({"servers": {"prod": {"username": "dev@example.com", "password": "secret123"}}})
        main(["config", "show"])
        out = capsys.readouterr().out
        assert "dev@example.com" in out
        assert "secret123" not in out

    def test_doctor_reports_missing_sdk(self, capsys):
        assert main(["doctor"]) == 1
        assert "SDK root not set" in capsys.readouterr().out

    def test_doctor_all_good(self, sdk_dir, fake_appcfg_module):
        _write_config({
            "sdk_root": str(sdk_dir),
            "deploy": {"server_id": "prod"},
            "tool": {"entry_point": "cli_fake_appcfg:main"},
            "servers": {"prod": {"username": "dev@example.com", "password": "x"}},
        })
        assert main(["doctor"]) == 0
