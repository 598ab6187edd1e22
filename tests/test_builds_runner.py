"""Tests for toolchain command composition and execution.

Uses mocked subprocess for execution tests.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from gobinaries.builds.runner import (
    PLACEHOLDER_MODULE,
    BuildError,
    check_command,
    compose_clean_command,
    compose_init_command,
    compose_install_command,
    compose_ldflags,
    compose_require_command,
    dependency_spec,
    module_path,
    platform_env,
    run_command,
)
from gobinaries.types import BuildTarget


def make_target(**overrides: str) -> BuildTarget:
    fields = {
        "module": "example.com/tool",
        "version": "v1.2.0",
        "os": "linux",
        "arch": "amd64",
        "cgo": "false",
    }
    fields.update(overrides)
    return BuildTarget(**fields)


class TestModulePath:
    """Tests for module_path and dependency_spec."""

    @pytest.mark.parametrize("major", [0, 1])
    def test_no_suffix_below_v2(self, major):
        """v0 and v1 modules keep their path."""
        assert module_path("github.com/foo/bar", major) == "github.com/foo/bar"

    def test_suffix_from_v2(self):
        """v2+ modules get a /vN suffix."""
        assert module_path("github.com/foo/bar", 3) == "github.com/foo/bar/v3"

    def test_existing_suffix_not_doubled(self):
        """A path already ending in /vN is left alone."""
        assert module_path("github.com/foo/bar/v3", 3) == "github.com/foo/bar/v3"
        assert module_path("github.com/foo/bar/v2", 2) == "github.com/foo/bar/v2"

    def test_dependency_spec(self):
        """The requirement carries the suffix and the tag."""
        assert (
            dependency_spec("github.com/foo/bar", "v3.1.0")
            == "github.com/foo/bar/v3@v3.1.0"
        )
        assert dependency_spec("example.com/tool", "v1.4.0") == "example.com/tool@v1.4.0"
        assert dependency_spec("example.com/tool", "v0.9.0") == "example.com/tool@v0.9.0"


class TestPlatformEnv:
    """Tests for platform_env."""

    def test_plain_target(self):
        """GOOS/GOARCH pass through and CGO is disabled."""
        env = platform_env(make_target())
        assert env == {"CGO_ENABLED": "0", "GOOS": "linux", "GOARCH": "amd64"}

    def test_arm_profile(self):
        """armv7 should map to GOARCH=arm GOARM=7."""
        env = platform_env(make_target(arch="armv7"))
        assert env["GOARCH"] == "arm"
        assert env["GOARM"] == "7"

    def test_arm64_untouched(self):
        """arm64 is a plain architecture."""
        env = platform_env(make_target(arch="arm64"))
        assert env["GOARCH"] == "arm64"
        assert "GOARM" not in env

    def test_armv_without_digits(self):
        """armv followed by non-digits is passed through."""
        env = platform_env(make_target(arch="armvx"))
        assert env["GOARCH"] == "armvx"
        assert "GOARM" not in env

    def test_cgo_enabled(self):
        """cgo=true should set CGO_ENABLED=1."""
        assert platform_env(make_target(cgo="true"))["CGO_ENABLED"] == "1"


class TestComposeCommands:
    """Tests for command composition."""

    def test_ldflags(self):
        """ldflags strip symbols and embed the version."""
        assert compose_ldflags("v1.2.0") == "-s -w -X main.version=v1.2.0"

    def test_init(self):
        """The workspace module has a fixed placeholder name."""
        assert compose_init_command() == ["go", "mod", "init", PLACEHOLDER_MODULE]

    def test_require(self):
        """The require edit names the dependency."""
        cmd = compose_require_command("example.com/tool@v1.2.0", go="/usr/bin/go")
        assert cmd == ["/usr/bin/go", "mod", "edit", "-require=example.com/tool@v1.2.0"]

    def test_install(self):
        """install builds every command package at the tag."""
        cmd = compose_install_command(make_target())
        assert cmd[:3] == ["go", "install", "-trimpath"]
        assert cmd[3:5] == ["-ldflags", "-s -w -X main.version=v1.2.0"]
        assert cmd[-1] == "example.com/tool/...@v1.2.0"

    def test_install_major_version(self):
        """install uses the suffixed path for v2+."""
        cmd = compose_install_command(
            make_target(module="github.com/foo/bar", version="v3.1.0")
        )
        assert cmd[-1] == "github.com/foo/bar/v3/...@v3.1.0"

    def test_clean(self):
        """clean wipes the module cache."""
        assert compose_clean_command() == ["go", "clean", "-modcache"]


class TestRunCommand:
    """Tests for run_command and check_command with mocked subprocess."""

    def test_success(self, tmp_path):
        """Should capture exit code and stderr."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stderr="  note\n")

            result = run_command(["go", "mod", "init", "x"], tmp_path, {"PATH": "/bin"})

        assert result.success
        assert result.stderr == "note"
        assert result.command == "go mod init x"
        kwargs = mock_run.call_args.kwargs
        assert kwargs["cwd"] == tmp_path
        assert kwargs["env"] == {"PATH": "/bin"}
        assert kwargs["stdin"] is subprocess.DEVNULL

    def test_timeout(self, tmp_path):
        """A timeout should raise BuildError with code build_timeout."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = subprocess.TimeoutExpired(cmd="go", timeout=10)

            with pytest.raises(BuildError) as exc_info:
                run_command(["go", "install", "x@v1.0.0"], tmp_path, {}, timeout=10)

        assert exc_info.value.code == "build_timeout"
        assert "timed out" in str(exc_info.value)

    def test_missing_toolchain(self, tmp_path):
        """A missing executable should raise BuildError."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("go")

            with pytest.raises(BuildError) as exc_info:
                run_command(["go", "version"], tmp_path, {})

        assert exc_info.value.code == "execution_error"

    def test_check_command_failure(self, tmp_path):
        """Non-zero exit should raise BuildError carrying stderr."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(
                returncode=1, stderr=f"{tmp_path}/main.go: undefined: foo"
            )

            with pytest.raises(BuildError) as exc_info:
                check_command(["go", "install", "-trimpath", "x@v1"], tmp_path, {})

        error = exc_info.value
        assert error.code == "build_failed"
        assert error.exit_code == 1
        assert "undefined: foo" in error.stderr
        assert str(error) == "go install failed with exit code 1"
        assert str(tmp_path) not in str(error)

    def test_check_command_success(self, tmp_path):
        """Zero exit should return the result."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0, stderr="")

            result = check_command(["go", "mod", "init", "x"], tmp_path, {})

        assert result.exit_code == 0
