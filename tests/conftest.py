import pytest
from fastapi.testclient import TestClient

from qr_offers.config import Settings
from qr_offers.main import create_app
from qr_offers.storage import CodeStore


@pytest.fixture
def counts_file(tmp_path):
    return tmp_path / "scanCounts.json"


@pytest.fixture
def settings(counts_file):
    return Settings(server_url="https://offers.example.com/", scan_counts_file=str(counts_file))


@pytest.fixture
def store(counts_file):
    s = CodeStore(counts_file)
    s.load()
    return s


@pytest.fixture
def client(settings, store):
    app = create_app(settings=settings, store=store)
    with TestClient(app) as c:
        yield c
