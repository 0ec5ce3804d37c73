from __future__ import annotations

from typing import Optional

import httpx
from openai import APIConnectionError, APIStatusError, OpenAI

from .config import Config
from .debug import dbg
from .errors import ApiError, ResponseShapeError

TRANSCRIBE_MODEL = "whisper-1"


def make_client(config: Config, http_client: Optional[httpx.Client] = None) -> OpenAI:
    # No retries: a failed call is reported, never silently repeated.
    return OpenAI(api_key=config.openai_api_key, max_retries=0, http_client=http_client)


def call_api(endpoint: str, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except APIStatusError as e:
        raise ApiError(endpoint, e.status_code, e.response.text) from e
    except APIConnectionError as e:
        raise ApiError(endpoint, 0, str(e)) from e


class OpenAIChat:
    """Transcription and chat completion against the OpenAI API."""

    def __init__(self, client: OpenAI, chat_model: str):
        self.client = client
        self.chat_model = chat_model

    @classmethod
    def from_config(cls, config: Config, http_client: Optional[httpx.Client] = None) -> "OpenAIChat":
        return cls(make_client(config, http_client), config.chat_model)

    def transcribe(self, path: str) -> str:
        endpoint = "transcription"
        dbg(f"Transcribing {path}")
        with open(path, "rb") as f:
            raw = call_api(
                endpoint,
                self.client.audio.transcriptions.with_raw_response.create,
                model=TRANSCRIBE_MODEL,
                file=f,
            )
        body = raw.http_response.text
        try:
            tr = raw.parse()
        except ValueError as e:
            raise ResponseShapeError(endpoint, f"unreadable response ({e})", body) from e
        text = getattr(tr, "text", None)
        if not isinstance(text, str):
            raise ResponseShapeError(endpoint, "missing string field 'text'", body)
        dbg("Transcription received")
        return text

    def complete(self, messages: list[dict[str, str]]) -> str:
        endpoint = "chat completion"
        dbg(f"LLM request with {len(messages)} messages")
        raw = call_api(
            endpoint,
            self.client.chat.completions.with_raw_response.create,
            model=self.chat_model,
            messages=messages,
        )
        body = raw.http_response.text
        try:
            completion = raw.parse()
        except ValueError as e:
            raise ResponseShapeError(endpoint, f"unreadable response ({e})", body) from e
        choices = getattr(completion, "choices", None)
        if not isinstance(choices, list) or not choices:
            raise ResponseShapeError(endpoint, "missing 'choices'", body)
        message = getattr(choices[0], "message", None)
        content = getattr(message, "content", None)
        if not isinstance(content, str):
            raise ResponseShapeError(endpoint, "missing string 'choices[0].message.content'", body)
        dbg("LLM reply received")
        return content
