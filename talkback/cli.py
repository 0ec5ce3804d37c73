"""
Background push-to-talk voice chat.

Press the hotkey (F1 unless KEYCODE is set) to start recording and again to
stop. The recording is sent to Whisper, the transcript plus recent history to
the chat model, and the reply is spoken through OpenAI TTS, or Azure TTS when
AZURE_SPEECH_KEY is set.

Run:
    talkback [-c PATH]      # settings from PATH, default ./.env
    talkback keytest        # print key codes, Esc to quit
"""
from __future__ import annotations

import argparse
import sys

from .audio import Player, Recorder
from .config import DEFAULT_CONFIG_PATH, load_config
from .debug import set_debug
from .errors import TalkbackError
from .history import History
from .openai_client import OpenAIChat
from .pipeline import Pipeline
from .speech import build_synthesizer
from .trigger import build_trigger, dump_key_events


def build_pipeline(config) -> Pipeline:
    return Pipeline(
        trigger=build_trigger(config),
        recorder=Recorder(config),
        chat=OpenAIChat.from_config(config),
        synthesizer=build_synthesizer(config),
        player=Player(),
        history=History(config.msg_limit, config.prompt),
        resume_on_error=config.resume_on_error,
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="talkback", description="Push-to-talk voice chat loop.")
    parser.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH,
                        help="dotenv-style settings file (default: %(default)s)")
    parser.add_argument("mode", nargs="?", choices=["keytest"],
                        help="keytest: print raw key events to find a KEYCODE, then exit")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        if args.mode == "keytest":
            dump_key_events()
            return 0
        config = load_config(args.config)
        if config.debug:
            set_debug(True)
        pipeline = build_pipeline(config)
        pipeline.trigger.start()
        pipeline.run()
    except TalkbackError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nExiting… Bye!\n")
    return 0
