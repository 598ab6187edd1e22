"""Tests for build workspaces."""

import os
import stat

import pytest

from gobinaries.builds.workspace import (
    WORKSPACE_PREFIX,
    ephemeral_workspace,
    find_executables,
    is_executable,
    remove_workspace,
)


class TestEphemeralWorkspace:
    """Tests for ephemeral_workspace."""

    def test_layout(self, tmp_path):
        """The workspace should be created under the parent."""
        with ephemeral_workspace(tmp_path) as workspace:
            assert workspace.root.parent == tmp_path
            assert workspace.root.name.startswith(WORKSPACE_PREFIX)
            assert workspace.module_dir.is_dir()
            assert workspace.bin_dir == workspace.root / "bin"

    def test_removed_on_success(self, tmp_path):
        """The workspace should be deleted on normal exit."""
        with ephemeral_workspace(tmp_path) as workspace:
            (workspace.module_dir / "go.mod").write_text("module x\n")
        assert not workspace.root.exists()

    def test_removed_on_error(self, tmp_path):
        """The workspace should be deleted when the body raises."""
        with pytest.raises(RuntimeError):
            with ephemeral_workspace(tmp_path) as workspace:
                raise RuntimeError("boom")
        assert not workspace.root.exists()

    def test_distinct_per_attempt(self, tmp_path):
        """Concurrent workspaces must not share a directory."""
        with ephemeral_workspace(tmp_path) as a, ephemeral_workspace(tmp_path) as b:
            assert a.root != b.root

    def test_creates_missing_parent(self, tmp_path):
        """A missing scratch directory should be created."""
        parent = tmp_path / "scratch" / "builds"
        with ephemeral_workspace(parent) as workspace:
            assert workspace.root.parent == parent


class TestRemoveWorkspace:
    """Tests for remove_workspace."""

    def test_read_only_tree(self, tmp_path):
        """Read-only directories like the Go module cache are removed."""
        locked = tmp_path / "ws" / "pkg" / "mod" / "example.com" / "tool@v1.0.0"
        locked.mkdir(parents=True)
        source = locked / "main.go"
        source.write_text("package main\n")
        source.chmod(0o444)
        locked.chmod(0o555)
        locked.parent.chmod(0o555)

        remove_workspace(tmp_path / "ws")

        assert not (tmp_path / "ws").exists()

    def test_missing_is_noop(self, tmp_path):
        """Removing a missing workspace does nothing."""
        remove_workspace(tmp_path / "absent")


class TestFindExecutables:
    """Tests for find_executables."""

    def test_finds_nested_executables(self, tmp_path):
        """Cross-compiled commands in subdirectories are found."""
        nested = tmp_path / "linux_arm"
        nested.mkdir()
        binary = nested / "tool"
        binary.write_bytes(b"\x7fELF")
        binary.chmod(0o755)

        assert find_executables(tmp_path) == [binary]

    def test_ignores_non_executables(self, tmp_path):
        """Files without execute bits for everyone are skipped."""
        (tmp_path / "README").write_text("x")
        partial = tmp_path / "owner-only"
        partial.write_bytes(b"x")
        partial.chmod(0o744)

        assert find_executables(tmp_path) == []

    def test_ignores_symlinks(self, tmp_path):
        """Symlinks to executables are not themselves executables."""
        target = tmp_path / "real"
        target.write_bytes(b"x")
        target.chmod(0o755)
        (tmp_path / "link").symlink_to(target)

        assert find_executables(tmp_path) == [target]

    def test_sorted(self, tmp_path):
        """Results are sorted by path."""
        for name in ("zeta", "alpha"):
            path = tmp_path / name
            path.write_bytes(b"x")
            path.chmod(0o755)

        assert [p.name for p in find_executables(tmp_path)] == ["alpha", "zeta"]

    def test_missing_directory(self, tmp_path):
        """A missing bin directory yields nothing."""
        assert find_executables(tmp_path / "bin") == []


class TestIsExecutable:
    """Tests for is_executable."""

    @pytest.mark.parametrize(
        "mode,expected",
        [(0o755, True), (0o711, True), (0o700, False), (0o644, False), (0o751, False)],
    )
    def test_modes(self, mode, expected):
        """All three execute bits are required."""
        assert is_executable(stat.S_IFREG | mode) is expected

    def test_real_file(self, tmp_path):
        """Mode bits of a real file are honored."""
        path = tmp_path / "f"
        path.write_bytes(b"")
        path.chmod(0o755)
        assert is_executable(os.stat(path).st_mode)
