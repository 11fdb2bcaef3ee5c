import os
import sys

import pytest

from appcfg_runner.sdk import SDK_ROOT_ENV


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch, tmp_path):
    """Keep os.environ, APPDEPLOY_HOME and sys.path changes inside each test."""
    # setenv first so the variable is removed again on teardown
    monkeypatch.setenv(SDK_ROOT_ENV, "")
    monkeypatch.delenv(SDK_ROOT_ENV)
    monkeypatch.setenv("APPDEPLOY_HOME", str(tmp_path / "appdeploy_home"))
    monkeypatch.setattr(sys, "path", list(sys.path))
    saved = dict(os.environ)
    yield
    # load_dotenv() in the CLI writes straight to os.environ
    os.environ.clear()
    os.environ.update(saved)


@pytest.fixture
def sdk_dir(tmp_path):
    sdk = tmp_path / "appengine-java-sdk"
    (sdk / "lib").mkdir(parents=True)
    return sdk
