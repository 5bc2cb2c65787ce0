from __future__ import annotations

import pytest

from storefront.adapters.backend_mock import InMemoryBackend
from storefront.adapters.storage_local import StorageLocal


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend().seed_demo()


@pytest.fixture
def storage(tmp_path) -> StorageLocal:
    return StorageLocal(str(tmp_path / "state"))


@pytest.fixture
def customer(backend):
    return backend.sign_in("customer@example.com", "password")


@pytest.fixture
def vendor_session(backend):
    return backend.sign_in("vendor@example.com", "password")


@pytest.fixture
def rider_session(backend):
    return backend.sign_in("rider@example.com", "password")
