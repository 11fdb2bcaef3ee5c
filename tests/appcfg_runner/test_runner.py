"""End-to-end tests for run_appcfg."""

import logging
import sys

import pytest

from appcfg_runner.errors import ConfigurationError
from appcfg_runner.models import InvocationConfig, ServerEntry, Settings
from appcfg_runner.runner import APPCFG_COMMANDS, run_appcfg

SETTINGS = Settings(servers={"appengine": ServerEntry(id="appengine", username="dev@example.com", password="secret123")})


class _FakeAppCfg:
    """Prompts for the password when --passin is given, like appcfg does."""

    def __init__(self):
        self.argv = None
        self.password = None

    def __call__(self, argv):
        self.argv = argv
        if "--passin" in argv:
            print("Password for dev@example.com: ", end="", flush=True)
            self.password = sys.stdin.readline()
        print("Update completed successfully.")


class TestRunAppcfg:

    def test_stored_password_flow(self, sdk_dir, caplog):
        """The stored password is answered and never logged."""
        caplog.set_level(logging.DEBUG)
        tool = _FakeAppCfg()
        config = InvocationConfig(sdk_root=str(sdk_dir), server_id="appengine", interactive=False)

        result = run_appcfg(config, SETTINGS, "update", "build/war", entry_point=tool)

        assert result.ok
        assert tool.password == "secret123\n"
        assert tool.argv == [
            f"--sdk_root={sdk_dir}",
            "--disable_prompt",
            "--email=dev@example.com",
            "--passin",
            "update",
            "build/war",
        ]
        assert "secret123" not in caplog.text
        assert "server id {appengine}" in caplog.text

    def test_no_credentials_runs_unmodified(self, sdk_dir):
        tool = _FakeAppCfg()
        result = run_appcfg(InvocationConfig(sdk_root=str(sdk_dir)), Settings(), "rollback", ".", entry_point=tool)
        assert result.ok
        assert tool.argv == [f"--sdk_root={sdk_dir}", "rollback", "."]
        assert tool.password is None

    def test_sdk_root_file_fails_before_swap(self, tmp_path):
        """A file as SDK root raises before the tool runs and before any stream swap."""
        not_a_dir = tmp_path / "sdk"
        not_a_dir.write_text("")
        tool = _FakeAppCfg()
        before_out, before_in = sys.stdout, sys.stdin

        with pytest.raises(ConfigurationError):
            run_appcfg(InvocationConfig(sdk_root=str(not_a_dir), server_id="appengine"), SETTINGS,
                       "update", ".", entry_point=tool)

        assert tool.argv is None
        assert sys.stdout is before_out
        assert sys.stdin is before_in

    def test_bad_sdk_root_after_successful_run(self, sdk_dir, tmp_path):
        """A previous run's exported SDK root does not let a file slip through as sdk_root."""
        assert run_appcfg(InvocationConfig(sdk_root=str(sdk_dir)), Settings(), "update", ".",
                          entry_point=_FakeAppCfg()).ok

        not_a_dir = tmp_path / "sdk.zip"
        not_a_dir.write_text("")
        tool = _FakeAppCfg()
        before_out, before_in = sys.stdout, sys.stdin

        with pytest.raises(ConfigurationError, match="not a directory"):
            run_appcfg(InvocationConfig(sdk_root=str(not_a_dir)), Settings(), "update", ".", entry_point=tool)

        assert tool.argv is None
        assert sys.stdout is before_out
        assert sys.stdin is before_in

    def test_unknown_server_id(self, sdk_dir):
        with pytest.raises(ConfigurationError):
            run_appcfg(InvocationConfig(sdk_root=str(sdk_dir), server_id="missing"), SETTINGS,
                       "update", ".", entry_point=_FakeAppCfg())

    def test_tool_failure_is_returned(self, sdk_dir, caplog):
        """A raising tool becomes a failed result and is logged."""
        def broken(argv):
            raise RuntimeError("Error posting to URL")

        result = run_appcfg(InvocationConfig(sdk_root=str(sdk_dir)), Settings(), "update", ".", entry_point=broken)
        assert not result.ok
        assert "appcfg update failed" in caplog.text

    def test_entry_point_loaded_from_config(self, sdk_dir):
        """Without an explicit callable the configured entry point is imported."""
        (sdk_dir / "lib" / "runner_test_appcfg.py").write_text(
            "calls = []\n"
            "def main(argv):\n"
            "    calls.append(argv)\n"
        )
        config = InvocationConfig(sdk_root=str(sdk_dir), entry_point="runner_test_appcfg:main")
        result = run_appcfg(config, Settings(), "update_cron", ".")
        assert result.ok

        import runner_test_appcfg
        assert runner_test_appcfg.calls == [[f"--sdk_root={sdk_dir}", "update_cron", "."]]

    def test_known_commands(self):
        assert "update" in APPCFG_COMMANDS
        assert "request_logs" in APPCFG_COMMANDS
