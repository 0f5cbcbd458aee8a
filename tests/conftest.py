"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

from src.vault.catalog_store import MemoryCatalogStore
from src.vault.filesystem import LocalDirectoryHandle, LocalPermissions
from src.vault.models import PermissionMode, VaultConfig
from src.vault.workspace import Workspace
from tests.fixtures.vault_fixtures import write_layout


@pytest.fixture
def sample_dir(tmp_path):
    """A root directory populated with the sample layout."""
    root = tmp_path / "notes"
    root.mkdir()
    write_layout(root)
    return root


@pytest.fixture
def writable_permissions():
    """Permission broker that has read-write access granted up front."""
    return LocalPermissions(granted=(PermissionMode.READWRITE,))


@pytest.fixture
def sample_root(sample_dir, writable_permissions):
    """Writable local handle on the sample directory."""
    return LocalDirectoryHandle.open(sample_dir, permissions=writable_permissions)


@pytest.fixture
def workspace(sample_dir):
    """Workspace opened on the sample directory with write access granted."""
    ws = Workspace(MemoryCatalogStore(), config=VaultConfig(write_access='always'))
    ws.open_root(sample_dir)
    return ws


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Drop handlers the CLI attaches to the 'src' logger during a test."""
    yield
    app_logger = logging.getLogger("src")
    app_logger.handlers.clear()
    app_logger.setLevel(logging.NOTSET)
