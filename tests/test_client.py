import json

import httpx
import pytest

import paste_client
from paste_client import PasteClientError, post_paste


class DummyResponse:
    def __init__(self, status_code=200, body=b""):
        self.status_code = status_code
        self.content = body
        self.text = body.decode("utf-8", errors="replace")

    def json(self):
        return json.loads(self.text)


class DummyClient:
    # Response returned for every request; requests are recorded for assertions
    response = DummyResponse()
    requests = []

    def __init__(self, *args, **kwargs):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def post(self, url, content=None, headers=None, auth=None):
        DummyClient.requests.append({"url": url, "content": content, "auth": auth})
        return DummyClient.response


@pytest.fixture
def dummy_client(monkeypatch):
    DummyClient.requests = []
    DummyClient.response = DummyResponse()
    monkeypatch.setattr("paste_client.httpx.Client", DummyClient)
    return DummyClient


def test_post_paste_returns_uri(dummy_client):
    dummy_client.response = DummyResponse(200, b'{"uri": "http://paste.test/abcd1234"}')

    uri = post_paste(b"content", "http://paste.test/", "u", "p")

    assert uri == "http://paste.test/abcd1234"
    assert dummy_client.requests == [{"url": "http://paste.test/paste", "content": b"content", "auth": ("u", "p")}]


@pytest.mark.parametrize("status,body,message", [
    (401, b"401 Unauthorized\n", "Unauthorized"),
    (413, b"", "Payload Too Large"),
    (200, b"<html>not json</html>", "parsing body as json failed"),
    (500, b'{"error": "writing paste failed"}', "server responded with writing paste failed"),
    (200, b'{"something": "else"}', "unexpected response"),
    (200, b'["a", "list"]', "unexpected response"),
])
def test_post_paste_errors(dummy_client, status, body, message):
    dummy_client.response = DummyResponse(status, body)

    with pytest.raises(PasteClientError, match=message):
        post_paste(b"content", "http://paste.test/", "u", "p")


def test_post_paste_transport_error(monkeypatch):
    class FailingClient(DummyClient):
        def post(self, url, **kwargs):
            raise httpx.ConnectError("connection refused")

    monkeypatch.setattr("paste_client.httpx.Client", FailingClient)

    with pytest.raises(PasteClientError, match="request to http://paste.test/paste failed"):
        post_paste(b"content", "http://paste.test/", "u", "p")


def test_main_uploads_file(dummy_client, tmp_path, capsys, monkeypatch):
    monkeypatch.delenv("PASTEBINIT_URI", raising=False)
    dummy_client.response = DummyResponse(200, b'{"uri": "http://paste.test/abcd1234"}')
    source = tmp_path / "notes.txt"
    source.write_bytes(b"\x00binary notes")

    code = paste_client.main(["-b", "paste.test", "-u", "u", "-p", "p", str(source)])

    assert code == 0
    assert dummy_client.requests[0]["url"] == "http://paste.test/paste"
    assert dummy_client.requests[0]["content"] == b"\x00binary notes"
    out = capsys.readouterr().out
    assert "http://paste.test/abcd1234\n" in out
    assert "http://paste.test/abcd1234/raw" in out


def test_main_requires_credentials(dummy_client, monkeypatch, capsys):
    monkeypatch.delenv("PASTEBINIT_USERNAME", raising=False)
    monkeypatch.delenv("PASTEBINIT_PASSWORD", raising=False)

    code = paste_client.main(["-p", "p", "file.txt"])

    assert code == 1
    assert "username cannot be empty" in capsys.readouterr().err
    assert dummy_client.requests == []


def test_main_missing_file(dummy_client, tmp_path, capsys):
    code = paste_client.main(["-u", "u", "-p", "p", str(tmp_path / "missing.txt")])

    assert code == 1
    assert "failed" in capsys.readouterr().err
    assert dummy_client.requests == []


def test_main_reports_server_error(dummy_client, tmp_path, capsys):
    dummy_client.response = DummyResponse(401, b"401 Unauthorized\n")
    source = tmp_path / "notes.txt"
    source.write_text("hi")

    code = paste_client.main(["-u", "u", "-p", "wrong", str(source)])

    assert code == 1
    assert "Unauthorized" in capsys.readouterr().err


def test_main_dispatches_server_command(monkeypatch):
    calls = []
    monkeypatch.setattr("pastebinit_server.main", lambda argv: calls.append(argv) or 0)

    assert paste_client.main(["server", "--port", "9000"]) == 0
    assert calls == [["--port", "9000"]]
