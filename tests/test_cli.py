"""Tests for the CLI."""

import base64
import json
import re
from unittest.mock import patch

from click.testing import CliRunner

from regauth.cli import main
from regauth.registry.client import AuthStatus

# base64("user:pass")
USER_PASS = "dXNlcjpwYXNz"


class TestCliBasics:
    """Test basic CLI behavior."""

    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "regauth" in result.output

    def test_resolve_help(self):
        runner = CliRunner()
        result = runner.invoke(main, ["resolve", "--help"])
        assert result.exit_code == 0
        assert "--config-file" in result.output

    def test_version_command(self):
        runner = CliRunner()
        result = runner.invoke(main, ["version"])
        assert result.exit_code == 0
        assert "regauth version" in result.output
        assert re.search(r"\d+\.\d+\.\d+", result.output)


class TestResolveCommand:
    """Test the resolve command."""

    def test_inline_auth_is_masked(self):
        runner = CliRunner()
        result = runner.invoke(main, ["resolve", "--auth", "reg.io/=user:pass"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "reg.io": {"username": "user", "password": "********", "serveraddress": "reg.io"}
        }

    def test_show_secrets(self):
        runner = CliRunner()
        result = runner.invoke(
            main, ["resolve", "--auth", "reg.io=user:pass", "--show-secrets"]
        )
        assert json.loads(result.stdout)["reg.io"]["password"] == "pass"

    def test_config_file_option(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"auths": {"reg.io/": {"auth": USER_PASS}}}))

        runner = CliRunner()
        result = runner.invoke(
            main,
            ["resolve", "--config-file", f"reg.io={config}", "--show-secrets", "--no-pretty"],
        )

        assert result.exit_code == 0
        entry = json.loads(result.stdout)["reg.io"]
        assert entry["username"] == "user"
        assert entry["auth"] == USER_PASS

    def test_auth_overrides_config_file(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"auths": {"reg.io": {"auth": USER_PASS}}}))

        runner = CliRunner()
        result = runner.invoke(
            main,
            [
                "resolve",
                "--auth",
                "reg.io=override:secret",
                "--config-file",
                f"reg.io={config}",
                "--show-secrets",
            ],
        )
        assert json.loads(result.stdout)["reg.io"]["username"] == "override"

    def test_declarations_file(self, tmp_path):
        decl = tmp_path / "auths.yaml"
        decl.write_text(
            "registry_auth:\n"
            "  - address: reg.io\n"
            "    username: ci\n"
            "    password: s3cret\n"
        )

        runner = CliRunner()
        result = runner.invoke(main, ["resolve", "-f", str(decl)])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["reg.io"]["username"] == "ci"

    def test_header(self):
        runner = CliRunner()
        result = runner.invoke(main, ["resolve", "--auth", "reg.io=user:pass", "--header"])

        assert result.exit_code == 0
        decoded = json.loads(base64.urlsafe_b64decode(result.stdout.strip()))
        assert decoded["reg.io"]["password"] == "pass"

    def test_registry_missing_from_file(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"auths": {"other.io": {"auth": USER_PASS}}}))

        runner = CliRunner()
        result = runner.invoke(main, ["resolve", "--config-file", f"reg.io={config}"])

        assert result.exit_code != 0
        assert "Couldn't find registry config for 'reg.io'" in result.output
        assert str(config) in result.output

    def test_invalid_auth_option(self):
        runner = CliRunner()
        result = runner.invoke(main, ["resolve", "--auth", "reg.io"])
        assert result.exit_code != 0
        assert "registry=user:pass" in result.output


class TestCheckCommand:
    """Test the check command."""

    @patch("regauth.registry.client.RegistryClient.check_auth")
    def test_all_ok(self, mock_check):
        mock_check.return_value = AuthStatus("reg.io", True, 200, "login succeeded")

        runner = CliRunner()
        result = runner.invoke(main, ["check", "--auth", "reg.io=user:pass"])

        assert result.exit_code == 0
        assert "✓ reg.io: login succeeded" in result.output

    @patch("regauth.registry.client.RegistryClient")
    def test_failure_sets_exit_code(self, mock_client_cls):
        mock_client_cls.return_value.check_auth.return_value = AuthStatus(
            "reg.io", False, 401, "registry returned 401: denied"
        )

        runner = CliRunner()
        result = runner.invoke(main, ["check", "--auth", "reg.io=user:pass"])

        assert result.exit_code != 0
        assert "✗ reg.io" in result.output
        assert "1 registry check(s) failed." in result.output
        _, kwargs = mock_client_cls.call_args
        assert kwargs["username"] == "user"
        assert kwargs["password"] == "pass"
