"""Tests for the command line entry point and command classes."""

import pytest
from click.testing import CliRunner

from stackdeploy import __version__
from stackdeploy.base import BaseCommand
from stackdeploy.commands import DownCommand, UpCommand
from stackdeploy.exceptions import ProvisionError
from stackdeploy.main import cli

from .conftest import fail


def write_env(path, settings: dict):
    path.write_text("".join(f"{key}={value}\n" for key, value in settings.items()))
    return path


class TestCLIEntryPoint:
    """Tests for options and help output."""

    @pytest.mark.parametrize("flag", ["-h", "--help"])
    def test_help(self, cli_runner: CliRunner, flag):
        result = cli_runner.invoke(cli, [flag])

        assert result.exit_code == 0
        assert "--destroy" in result.output
        assert "--env-file" in result.output

    def test_version(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_unknown_option(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--nope"])

        assert result.exit_code == 2

    @pytest.mark.parametrize("args", [[], ["--destroy"]])
    def test_missing_env_file(self, cli_runner: CliRunner, tmp_path, args):
        result = cli_runner.invoke(
            cli, args + ["--env-file", str(tmp_path / ".env"), "--workdir", str(tmp_path)]
        )

        assert result.exit_code == 1
        assert "settings file not found" in result.output


class TestUpCommand:
    """Tests for UpCommand."""

    def test_successful_deployment(self, tmp_path, raw_settings, fake_executor, instant_waiter):
        env_file = write_env(tmp_path / ".env", raw_settings)
        command = UpCommand(
            tmp_path, env_file, executor=fake_executor, waiter=instant_waiter
        )

        with pytest.raises(SystemExit) as exc_info:
            command.run()

        assert exc_info.value.code == 0
        logs = list((tmp_path / "logs").rglob("*_up.log"))
        assert len(logs) == 1
        assert "Status: SUCCESS" in logs[0].read_text()

    def test_failed_deployment(self, tmp_path, raw_settings, fake_executor, instant_waiter):
        env_file = write_env(tmp_path / ".env", raw_settings)
        fake_executor.on("terraform apply", fail("Error: 401 Unable to authenticate you"))
        command = UpCommand(
            tmp_path, env_file, executor=fake_executor, waiter=instant_waiter
        )

        with pytest.raises(SystemExit) as exc_info:
            command.run()

        assert exc_info.value.code == 1
        assert fake_executor.calls_matching("ansible-playbook") == []

    def test_missing_settings(self, tmp_path, raw_settings, fake_executor, instant_waiter):
        del raw_settings["DO_REGION"]
        env_file = write_env(tmp_path / ".env", raw_settings)
        command = UpCommand(
            tmp_path, env_file, executor=fake_executor, waiter=instant_waiter
        )

        with pytest.raises(SystemExit) as exc_info:
            command.run()

        assert exc_info.value.code == 1
        assert fake_executor.calls == []


class TestDownCommand:
    """Tests for DownCommand."""

    def test_destroy(self, tmp_path, raw_settings, fake_executor):
        env_file = write_env(tmp_path / ".env", raw_settings)

        with pytest.raises(SystemExit) as exc_info:
            DownCommand(tmp_path, env_file, executor=fake_executor).run()

        assert exc_info.value.code == 0
        assert len(fake_executor.calls_matching("terraform destroy")) == 1
        assert list((tmp_path / "logs").rglob("*_destroy.log"))

    def test_destroy_failure(self, tmp_path, raw_settings, fake_executor):
        env_file = write_env(tmp_path / ".env", raw_settings)
        fake_executor.on("terraform destroy", fail("Error: deleting volume"))

        with pytest.raises(SystemExit) as exc_info:
            DownCommand(tmp_path, env_file, executor=fake_executor).run()

        assert exc_info.value.code == 1


class RaisingCommand(BaseCommand):
    def __init__(self, workdir, error):
        super().__init__(workdir)
        self.error = error

    def execute(self) -> int:
        raise self.error


class TestExitCodes:
    """Tests for BaseCommand.run error mapping."""

    @pytest.mark.parametrize(
        "error, code",
        [
            (KeyboardInterrupt(), 130),
            (ProvisionError("Terraform failed to provision resources"), 1),
            (RuntimeError("unexpected"), 1),
        ],
    )
    def test_error_exit_codes(self, tmp_path, error, code):
        with pytest.raises(SystemExit) as exc_info:
            RaisingCommand(tmp_path, error).run()

        assert exc_info.value.code == code
