"""Unit tests for the command-line interface."""

import pytest
from typer.testing import CliRunner

from cordova_android import __version__, cli
from cordova_android.cli import app
from cordova_android.services.manifest import AndroidManifest

runner = CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    """Keep the global logging configuration of the test session."""
    monkeypatch.setattr(cli, "setup_logging", lambda config=None: None)


class TestCli:
    """Tests for CLI commands that need no Android toolchain."""

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_version_option(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"cordova-android v{__version__}" in result.stdout

    def test_create(self, temp_dir):
        """Test creating a project from the command line."""
        root = temp_dir / "Hello"
        result = runner.invoke(app, ["create", str(root), "--package", "org.hello.World", "--name", "Hello"])

        assert result.exit_code == 0, result.stdout
        assert AndroidManifest(root / "AndroidManifest.xml").get_package_id() == "org.hello.World"

    def test_create_invalid_package(self, temp_dir):
        """Test that platform errors exit with status 1."""
        root = temp_dir / "Hello"
        result = runner.invoke(app, ["create", str(root), "--package", "hello"])

        assert result.exit_code == 1
        assert "Error validating package name" in result.stdout.replace("\n", " ")
        assert not root.exists()

    def test_plugin_variable_syntax(self, temp_dir, plain_plugin_dir):
        result = runner.invoke(
            app, ["plugin", "add", str(temp_dir), str(plain_plugin_dir), "--variable", "NOVALUE"]
        )
        assert result.exit_code != 0
