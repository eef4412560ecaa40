import json
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from sbdb.embed import EmbedError, OpenAIEmbedder


@pytest.fixture
def server():
    state = {"status": 200, "body": b"{}", "requests": []}

    class Handler(BaseHTTPRequestHandler):
        def do_POST(self):
            length = int(self.headers.get("Content-Length", "0"))
            state["requests"].append(
                {
                    "path": self.path,
                    "headers": dict(self.headers),
                    "body": self.rfile.read(length),
                }
            )
            self.send_response(state["status"])
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(state["body"])))
            self.end_headers()
            self.wfile.write(state["body"])

        def log_message(self, *args):
            pass

    httpd = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    state["url"] = f"http://127.0.0.1:{httpd.server_address[1]}"
    yield state
    httpd.shutdown()
    httpd.server_close()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SBDB_EMBED_BASE_URL", "SBDB_EMBED_API_KEY", "SBDB_EMBED_MODEL"):
        monkeypatch.delenv(name, raising=False)


def test_embed_request_and_vectors(server):
    server["body"] = json.dumps(
        {
            "data": [
                {"embedding": [0.5, 0.25, 1.0], "index": 0},
                {"embedding": [-0.5, 0.0, 2.0], "index": 1},
            ]
        }
    ).encode()
    embedder = OpenAIEmbedder(base_url=server["url"], api_key="placeholder", model="test-model", dim=8)

    vectors = embedder.embed(["first", "second"])

    assert vectors == [[0.5, 0.25, 1.0], [-0.5, 0.0, 2.0]]
    assert embedder.dim == 3
    request = server["requests"][0]
    assert request["path"] == "/v1/embeddings"
    assert request["headers"]["Authorization"] == "Bearer placeholder"
    assert request["headers"]["Content-Type"] == "application/json"
    assert json.loads(request["body"]) == {"model": "test-model", "input": ["first", "second"]}


def test_embed_empty_data_keeps_dim(server):
    server["body"] = b'{"data": []}'
    embedder = OpenAIEmbedder(base_url=server["url"], api_key="placeholder", dim=8)
    assert embedder.embed(["x"]) == []
    assert embedder.dim == 8


def test_embed_error_status(server):
    server["status"] = 500
    server["body"] = b"server exploded"
    embedder = OpenAIEmbedder(base_url=server["url"], api_key="placeholder")
    with pytest.raises(EmbedError, match="embed API returned 500: server exploded"):
        embedder.embed(["x"])


def test_embed_invalid_json(server):
    server["body"] = b"not json"
    embedder = OpenAIEmbedder(base_url=server["url"], api_key="placeholder")
    with pytest.raises(EmbedError, match="parsing embed response"):
        embedder.embed(["x"])


def test_embed_connection_failure():
    embedder = OpenAIEmbedder(base_url="http://127.0.0.1:1", api_key="placeholder")
    with pytest.raises(EmbedError, match="embed API call failed"):
        embedder.embed(["x"])


def test_missing_api_key():
    with pytest.raises(EmbedError, match="API key not set"):
        OpenAIEmbedder()


def test_defaults():
    embedder = OpenAIEmbedder(api_key="placeholder")
    assert embedder.model_id == "text-embedding-3-small"
    assert embedder.dim == 1536
    assert embedder.base_url == "https://api.openai.com"


def test_environment_settings(monkeypatch, server):
    monkeypatch.setenv("SBDB_EMBED_API_KEY", "token")
    monkeypatch.setenv("SBDB_EMBED_MODEL", "env-model")
    monkeypatch.setenv("SBDB_EMBED_BASE_URL", server["url"])
    server["body"] = b'{"data": [{"embedding": [1.0], "index": 0}]}'

    embedder = OpenAIEmbedder()
    assert embedder.model_id == "env-model"
    assert embedder.base_url == server["url"]
    assert embedder.embed(["x"]) == [[1.0]]
    assert server["requests"][0]["headers"]["Authorization"] == "Bearer token"