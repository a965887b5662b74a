from __future__ import annotations

import asyncio
import sys

import pytest

from conftest import FakeRunner
from ghmirror.errors import CommandError, FatalCredentialError
from ghmirror.git import SubprocessRunner, provision_credential


class TestSubprocessRunner:
    def test_combined_output(self):
        code = "import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)"
        output = asyncio.run(SubprocessRunner().run(sys.executable, "-c", code))

        assert output.splitlines() == ["out", "err"]

    def test_non_zero_exit(self):
        code = "import sys; print('broken'); sys.exit(3)"

        with pytest.raises(CommandError) as exc_info:
            asyncio.run(SubprocessRunner().run(sys.executable, "-c", code))

        assert exc_info.value.returncode == 3
        assert exc_info.value.output.strip() == "broken"
        assert exc_info.value.name == sys.executable

    def test_missing_executable(self):
        with pytest.raises(CommandError) as exc_info:
            asyncio.run(SubprocessRunner().run("ghmirror-no-such-command"))

        assert exc_info.value.returncode is None

    def test_env_is_layered_and_cwd_used(self, tmp_path, monkeypatch):
        monkeypatch.setenv("GHMIRROR_INHERITED", "kept")
        code = (
            "import os; "
            "print(os.environ['GHMIRROR_INHERITED'], os.environ['GHMIRROR_EXTRA'], os.getcwd())"
        )
        output = asyncio.run(
            SubprocessRunner().run(
                sys.executable, "-c", code, cwd=tmp_path, env={"GHMIRROR_EXTRA": "added"}
            )
        )

        inherited, extra, cwd = output.split()
        assert (inherited, extra) == ("kept", "added")
        assert cwd == str(tmp_path.resolve())

    def test_input(self):
        code = "import sys; print(sys.stdin.read().upper(), end='')"
        output = asyncio.run(
            SubprocessRunner().run(sys.executable, "-c", code, input="host=x\n")
        )

        assert output == "HOST=X\n"


class TestProvisionCredential:
    def test_configures_cache_then_approves(self):
        runner = FakeRunner()

        asyncio.run(provision_credential(runner, "s3cret"))

        config, approve = runner.calls
        assert config.args == ("config", "--global", "credential.helper", "cache")
        assert approve.args == ("credential", "approve")
        assert approve.input == (
            "protocol=https\nhost=github.com\nusername=oauth2\npassword=s3cret\n"
        )

    def test_custom_host(self):
        runner = FakeRunner()

        asyncio.run(provision_credential(runner, "t", host="ghe.example.com"))

        assert "host=ghe.example.com\n" in runner.calls[1].input

    @pytest.mark.parametrize("failing", ["config", "credential"])
    def test_failure_is_fatal(self, failing):
        runner = FakeRunner(fail=lambda call: call.subcommand == failing)

        with pytest.raises(FatalCredentialError, match=f"fatal: {failing} failed"):
            asyncio.run(provision_credential(runner, "t"))

        assert runner.calls[-1].subcommand == failing
