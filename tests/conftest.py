import pytest

from cardpick.config import DEFAULT_CATALOG_FILE
from cardpick.repository.catalog_store import InMemoryCatalogStore, SeedCatalog
from cardpick.repository.sqlite_store import SqliteCatalogStore


@pytest.fixture(scope="session")
def snapshot():
    return SeedCatalog(DEFAULT_CATALOG_FILE).load()


@pytest.fixture
def memory_store(snapshot):
    return InMemoryCatalogStore(snapshot)


@pytest.fixture
def sqlite_store(snapshot, tmp_path):
    return SqliteCatalogStore(snapshot, path=str(tmp_path / "catalog.db"))


@pytest.fixture(params=["memory_store", "sqlite_store"])
def store(request):
    return request.getfixturevalue(request.param)
