"""
Reply text to audio bytes.

Two interchangeable backends share ``synthesize(text) -> bytes``:

- ``OpenAISpeech`` posts the text to the OpenAI speech endpoint.
- ``AzureSpeech`` builds SSML and posts it to Azure's regional TTS endpoint.
  A reply may open with a style directive, ``:cheerful Hello there``, which
  selects an expressive speaking style for the rest of the text.
"""
from __future__ import annotations

import re
from typing import Optional
from xml.sax.saxutils import escape, quoteattr

import httpx
from openai import OpenAI

from .config import Config
from .debug import dbg
from .errors import ApiError
from .openai_client import call_api, make_client

AZURE_OUTPUT_FORMAT = "audio-24khz-48kbitrate-mono-mp3"
AZURE_URL = "https://{region}.tts.speech.microsoft.com/cognitiveservices/v1"

_DIRECTIVE = re.compile(r":(\S+) (.+)", re.DOTALL)

SSML_TEMPLATE = (
    '<speak version="1.0" xmlns="http://www.w3.org/2001/10/synthesis" '
    'xmlns:mstts="https://www.w3.org/2001/mstts" xml:lang="en-US">'
    "<voice name={voice}>{body}</voice>"
    "</speak>"
)


def parse_style_directive(text: str) -> tuple[Optional[str], str]:
    """
    Split ``":style rest"`` into ``("style", "rest")``.

    Text without a leading directive comes back as ``(None, text)``. That
    includes a bare ``":style"`` with nothing after it, which is spoken as-is
    rather than turned into a silent request.
    """
    m = _DIRECTIVE.fullmatch(text)
    if not m:
        return None, text
    return m.group(1), m.group(2)


def build_ssml(text: str, voice: str) -> str:
    style, spoken = parse_style_directive(text)
    body = escape(spoken)
    if style is not None:
        body = f"<mstts:express-as style={quoteattr(style)}>{body}</mstts:express-as>"
    return SSML_TEMPLATE.format(voice=quoteattr(voice), body=body)


class OpenAISpeech:
    def __init__(self, client: OpenAI, model: str, voice: str):
        self.client = client
        self.model = model
        self.voice = voice

    def synthesize(self, text: str) -> bytes:
        dbg(f"OpenAI TTS voice={self.voice} len={len(text)}")
        resp = call_api(
            "speech",
            self.client.audio.speech.create,
            model=self.model,
            input=text,
            voice=self.voice,
        )
        return resp.content


class AzureSpeech:
    def __init__(self, key: str, region: str, voice: str, http_client: Optional[httpx.Client] = None):
        self.key = key
        self.voice = voice
        self.url = AZURE_URL.format(region=region)
        self._http = http_client or httpx.Client()

    def _headers(self) -> dict[str, str]:
        return {
            "Ocp-Apim-Subscription-Key": self.key,
            "Content-Type": "application/ssml+xml",
            "X-Microsoft-OutputFormat": AZURE_OUTPUT_FORMAT,
            "User-Agent": "talkback",
        }

    def synthesize(self, text: str) -> bytes:
        ssml = build_ssml(text, self.voice)
        dbg(f"Azure TTS ssml={ssml}")
        try:
            resp = self._http.post(self.url, headers=self._headers(), content=ssml.encode("utf-8"))
        except httpx.HTTPError as e:
            raise ApiError("azure speech", 0, str(e)) from e
        if not resp.is_success:
            raise ApiError("azure speech", resp.status_code, resp.text)
        return resp.content


def build_synthesizer(config: Config, http_client: Optional[httpx.Client] = None):
    if config.uses_azure:
        return AzureSpeech(config.azure_speech_key, config.azure_speech_region, config.azure_voice, http_client)
    return OpenAISpeech(make_client(config, http_client), config.tts_model, config.voice)
