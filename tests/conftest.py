import json
from unittest.mock import patch

import pytest
import requests


HOST = "http://ollama.test:11434"


def make_response(status_code, payload=None, url=""):
    r = requests.Response()
    r.status_code = status_code
    r.url = url
    r._content = json.dumps(payload if payload is not None else {}).encode("utf-8")
    return r


class FakeOllama:
    """Stands in for requests.get/requests.post against an Ollama server."""

    def __init__(self):
        self.reachable = True
        self.version_status = 200
        self.installed = {"llama2", "codellama", "mistral"}
        self.generate_status = 200
        self.reply = "Hello from the model."
        self.calls = []

    def count(self, path):
        return sum(1 for _, url, _ in self.calls if url.endswith(path))

    def _handle(self, method, url, body):
        self.calls.append((method, url, body))
        if not self.reachable:
            raise requests.ConnectionError(f"Connection refused: {url}")

        if url.endswith("/api/version"):
            return make_response(self.version_status, {"version": "0.1.32"}, url)
        if url.endswith("/api/show"):
            if body.get("name") in self.installed:
                return make_response(200, {"modelfile": "..."}, url)
            return make_response(404, {"error": "model not found"}, url)
        if url.endswith("/api/generate"):
            if self.generate_status != 200:
                return make_response(self.generate_status, {"error": "boom"}, url)
            return make_response(200, {"model": body["model"], "response": self.reply, "done": True}, url)
        return make_response(404, {}, url)

    def get(self, url, **kwargs):
        return self._handle("GET", url, kwargs.get("json"))

    def post(self, url, **kwargs):
        return self._handle("POST", url, kwargs.get("json") or {})


@pytest.fixture
def ollama(monkeypatch):
    monkeypatch.setenv("OLLAMA_HOST", HOST)
    fake = FakeOllama()
    with patch("requests.get", side_effect=fake.get), patch("requests.post", side_effect=fake.post):
        yield fake


@pytest.fixture
def no_host(monkeypatch):
    monkeypatch.delenv("OLLAMA_HOST", raising=False)
    # keep a developer's local .env from filling the variable back in
    monkeypatch.setattr("dotenv.load_dotenv", lambda *args, **kwargs: False)
    fake = FakeOllama()
    with patch("requests.get", side_effect=fake.get), patch("requests.post", side_effect=fake.post):
        yield fake
