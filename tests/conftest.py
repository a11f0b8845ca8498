import pytest
from fastapi.testclient import TestClient

from paste_config import ServerConfig
from paste_store import PasteStore
from pastebinit_server import create_app

USERNAME = "operator"
PASSWORD = "hunter2"
BASE_URI = "http://paste.test/"


@pytest.fixture
def config(tmp_path):
    return ServerConfig(
        base_uri=BASE_URI,
        host="127.0.0.1",
        port=8080,
        storage=str(tmp_path / "files"),
        asset_path=str(tmp_path / "static"),
        username=USERNAME,
        password=PASSWORD,
        max_paste_size_mb=1,
    )


@pytest.fixture
def store(config):
    return PasteStore(config.storage)


@pytest.fixture
def client(config, store):
    return TestClient(create_app(config, store))


@pytest.fixture
def auth():
    return (USERNAME, PASSWORD)


@pytest.fixture
def upload(client, auth):
    """Post content as the operator and return the new paste id"""

    def _upload(content: bytes) -> str:
        resp = client.post("/paste", content=content, auth=auth)
        assert resp.status_code == 200, resp.text
        return resp.json()["uri"][len(BASE_URI):]

    return _upload
