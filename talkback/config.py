"""
Settings for the voice loop.

Values come from a dotenv-style file (``KEY=value`` per line, default ``.env``)
and from the process environment, which wins over the file, the same way
``load_dotenv`` leaves already-set variables alone. Everything is validated
here once; the rest of the program takes a ``Config`` and trusts it.
"""
from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import dotenv_values

from .errors import ConfigError

DEFAULT_CONFIG_PATH = ".env"
DEFAULT_CHAT_MODEL = "gpt-4o"
DEFAULT_TTS_MODEL = "tts-1"
DEFAULT_VOICE = "onyx"
DEFAULT_AZURE_VOICE = "en-US-JennyNeural"
TRIGGERS = ("hotkey", "console")

KEYS = (
    "OPENAI_API_KEY",
    "AZURE_SPEECH_KEY",
    "AZURE_SPEECH_REGION",
    "AUDIO_FILE",
    "MSG_LIMIT",
    "BACKEND",
    "DEVICE",
    "PROMPT",
    "KEYCODE",
    "VOICE",
    "AZURE_VOICE",
    "OPENAI_MODEL",
    "OPENAI_TTS_MODEL",
    "TRIGGER",
    "RESUME_ON_ERROR",
    "DEBUG",
)


@dataclass(frozen=True)
class Config:
    openai_api_key: str
    audio_file: str
    msg_limit: int
    backend: str
    device: str
    prompt: str = ""
    keycode: Optional[int] = None
    voice: str = DEFAULT_VOICE
    azure_speech_key: Optional[str] = None
    azure_speech_region: Optional[str] = None
    azure_voice: str = DEFAULT_AZURE_VOICE
    chat_model: str = DEFAULT_CHAT_MODEL
    tts_model: str = DEFAULT_TTS_MODEL
    trigger: str = "hotkey"
    resume_on_error: bool = False
    debug: bool = False

    @property
    def uses_azure(self) -> bool:
        return bool(self.azure_speech_key)


def default_capture(platform: str = sys.platform) -> tuple[str, Optional[str]]:
    """Capture backend and device for the host OS. Windows has no default device."""
    if platform.startswith("win"):
        return "dshow", None
    if platform == "darwin":
        return "avfoundation", ":0"
    return "alsa", "default"


def _flag(name: str, raw: Optional[str]) -> bool:
    if raw is None or raw.strip() == "":
        return False
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _int(name: str, raw: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def from_mapping(values: Mapping[str, Optional[str]], platform: str = sys.platform) -> Config:
    def get(name: str) -> Optional[str]:
        raw = values.get(name)
        if raw is None:
            return None
        raw = raw.strip()
        return raw or None

    def require(name: str) -> str:
        raw = get(name)
        if raw is None:
            raise ConfigError(f"missing required setting {name}")
        return raw

    api_key = require("OPENAI_API_KEY")
    audio_file = require("AUDIO_FILE")

    msg_limit = _int("MSG_LIMIT", require("MSG_LIMIT"))
    if msg_limit < 0:
        raise ConfigError(f"MSG_LIMIT must be non-negative, got {msg_limit}")

    keycode = None
    if get("KEYCODE") is not None:
        keycode = _int("KEYCODE", get("KEYCODE"))
        if keycode <= 0:
            raise ConfigError(f"KEYCODE must be positive, got {keycode}")

    default_backend, default_device = default_capture(platform)
    backend = get("BACKEND") or default_backend
    device = get("DEVICE")
    if backend == "dshow":
        if device is None:
            raise ConfigError("DEVICE is required with the dshow backend")
        if not device.startswith("audio="):
            device = f"audio={device}"
    device = device or default_device
    if device is None:
        raise ConfigError("missing required setting DEVICE")

    azure_key = get("AZURE_SPEECH_KEY")
    azure_region = get("AZURE_SPEECH_REGION")
    if azure_key and not azure_region:
        raise ConfigError("AZURE_SPEECH_REGION is required when AZURE_SPEECH_KEY is set")

    trigger = (get("TRIGGER") or "hotkey").lower()
    if trigger not in TRIGGERS:
        raise ConfigError(f"TRIGGER must be one of {', '.join(TRIGGERS)}, got {trigger!r}")

    # a non-blank prompt is kept verbatim, surrounding whitespace included
    prompt = values.get("PROMPT") or ""
    if not prompt.strip():
        prompt = ""

    return Config(
        openai_api_key=api_key,
        audio_file=audio_file,
        msg_limit=msg_limit,
        backend=backend,
        device=device,
        prompt=prompt,
        keycode=keycode,
        voice=get("VOICE") or DEFAULT_VOICE,
        azure_speech_key=azure_key,
        azure_speech_region=azure_region,
        azure_voice=get("AZURE_VOICE") or DEFAULT_AZURE_VOICE,
        chat_model=get("OPENAI_MODEL") or DEFAULT_CHAT_MODEL,
        tts_model=get("OPENAI_TTS_MODEL") or DEFAULT_TTS_MODEL,
        trigger=trigger,
        resume_on_error=_flag("RESUME_ON_ERROR", values.get("RESUME_ON_ERROR")),
        debug=_flag("DEBUG", values.get("DEBUG")),
    )


def load_config(path: str = DEFAULT_CONFIG_PATH, environ: Optional[Mapping[str, str]] = None) -> Config:
    if environ is None:
        environ = os.environ
    if not os.path.isfile(path):
        raise ConfigError(f"config file not found: {path}")
    try:
        values = dict(dotenv_values(path))
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    for key in KEYS:
        if key in environ:
            values[key] = environ[key]
    return from_mapping(values)
