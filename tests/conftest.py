"""Shared test doubles for the binary service."""

import io
import threading
from contextlib import contextmanager

import pytest

from gobinaries.builds.service import BinaryService
from gobinaries.resolver.base import select_version
from gobinaries.resolver.errors import PackageNotFoundError
from gobinaries.storage.local import LocalStorage


class FakeResolver:
    """Resolves against an in-memory tag listing."""

    def __init__(self, tags: dict[str, list[str]]):
        self.tags = tags
        self.closed = False

    def resolve(self, module, version):
        if module not in self.tags:
            raise PackageNotFoundError(module)
        return select_version(module, self.tags[module], version)

    def close(self):
        self.closed = True


class FakeBuilder:
    """Builder that yields canned bytes, optionally blocking or failing."""

    def __init__(self, output=b"\x7fELF fake", error=None, gate=None):
        self.output = output
        self.error = error
        self.gate = gate
        self.clear_error = None
        self.builds = []
        self.cleared = 0

    @contextmanager
    def build(self, target):
        self.builds.append(target)
        if self.gate is not None:
            assert self.gate.wait(5), "build gate never opened"
        if self.error is not None:
            raise self.error
        yield io.BytesIO(self.output)

    def clear_cache(self):
        self.cleared += 1
        if self.clear_error is not None:
            raise self.clear_error


class DroppingStorage(LocalStorage):
    """Local store whose first `drops` writes are lost, as if cleared right after."""

    def __init__(self, root, drops=1, **kwargs):
        super().__init__(root, **kwargs)
        self.drops = drops
        self.writes = 0

    def create(self, target, reader):
        self.writes += 1
        if self.drops:
            self.drops -= 1
            reader.read()
            return
        super().create(target, reader)


@pytest.fixture
def fake_resolver():
    """Resolver knowing example.com/tool and github.com/foo/bar."""
    return FakeResolver(
        {
            "example.com/tool": ["v1.0.0", "v1.2.0", "v1.3.0-rc.1"],
            "github.com/foo/bar": ["v2.0.0", "v3.1.0"],
        }
    )


@pytest.fixture
def fake_builder():
    """Builder that succeeds immediately."""
    return FakeBuilder()


@pytest.fixture
def storage(tmp_path):
    """Local store with a production prefix."""
    return LocalStorage(tmp_path / "objects", prefix="production")


@pytest.fixture
def service(fake_resolver, fake_builder, storage):
    """BinaryService wired with fakes and local storage."""
    return BinaryService(fake_resolver, fake_builder, storage, wait_timeout=5)


@pytest.fixture
def gate():
    """Event that blocks FakeBuilder builds until set."""
    event = threading.Event()
    yield event
    event.set()
