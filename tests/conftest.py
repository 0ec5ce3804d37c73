from __future__ import annotations

import json
import stat
from pathlib import Path
from typing import Callable, Dict, List

import httpx
import pytest

from talkback.config import Config


@pytest.fixture(autouse=True)
def _no_openai_env(monkeypatch):
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    monkeypatch.delenv("OPENAI_ORG_ID", raising=False)
    monkeypatch.delenv("OPENAI_PROJECT_ID", raising=False)


@pytest.fixture()
def audio_file(tmp_path: Path) -> Path:
    path = tmp_path / "speech.wav"
    path.write_bytes(b"RIFF0000WAVEfmt fake audio")
    return path


@pytest.fixture()
def make_config(audio_file: Path) -> Callable[..., Config]:
    def _make(**overrides) -> Config:
        values = dict(
            openai_api_key="sk-test",
            audio_file=str(audio_file),
            msg_limit=4,
            backend="alsa",
            device="default",
        )
        values.update(overrides)
        return Config(**values)

    return _make


class Router:
    """httpx MockTransport handler that answers by URL path and records requests."""

    def __init__(self) -> None:
        self.routes: Dict[str, httpx.Response] = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, status: int = 200, *, json_body=None, text: str = None, content: bytes = None):
        if json_body is not None:
            self.routes[path] = httpx.Response(status, json=json_body)
        elif text is not None:
            self.routes[path] = httpx.Response(status, text=text, headers={"content-type": "application/json"})
        else:
            self.routes[path] = httpx.Response(status, content=content or b"")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        response = self.routes.get(request.url.path)
        if response is None:
            return httpx.Response(404, json={"error": f"no route for {request.url.path}"})
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    def json_of(self, path: str):
        for r in self.requests:
            if r.url.path == path:
                return json.loads(r.content)
        raise AssertionError(f"no request to {path}")


@pytest.fixture()
def router() -> Router:
    return Router()


@pytest.fixture()
def http_client(router: Router) -> httpx.Client:
    client = httpx.Client(transport=httpx.MockTransport(router))
    yield client
    client.close()


@pytest.fixture()
def dummy_binary(tmp_path: Path) -> Callable[[str], Path]:
    """Write an executable python script standing in for ffmpeg/mpv."""

    def _make(body: str) -> Path:
        script = tmp_path / "dummy_proc.py"
        script.write_text("#!/usr/bin/env python3\nimport sys\n" + body)
        script.chmod(script.stat().st_mode | stat.S_IEXEC)
        return script

    return _make
