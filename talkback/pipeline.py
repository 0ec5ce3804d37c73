from __future__ import annotations

import enum
import sys

from .debug import dbg
from .errors import TalkbackError
from .history import USER, History, Turn


class PipelineState(enum.Enum):
    WAITING_FOR_TRIGGER = "waiting for trigger"
    RECORDING = "recording"
    TRANSCRIBING = "transcribing"
    AWAITING_REPLY = "awaiting reply"
    SYNTHESIZING = "synthesizing"
    PLAYING = "playing"


class Pipeline:
    """
    The record → transcribe → chat → speak loop.

    Stages run one after another on the calling thread. The history buffer is
    the only thing carried from one cycle to the next.
    """

    def __init__(self, trigger, recorder, chat, synthesizer, player, history: History,
                 resume_on_error: bool = False):
        self.trigger = trigger
        self.recorder = recorder
        self.chat = chat
        self.synthesizer = synthesizer
        self.player = player
        self.history = history
        self.resume_on_error = resume_on_error
        self.state = PipelineState.WAITING_FOR_TRIGGER

    def _enter(self, state: PipelineState):
        dbg(f"State: {self.state.value} -> {state.value}")
        self.state = state

    def run_once(self) -> str:
        """One full cycle. Returns the assistant's reply."""
        self._enter(PipelineState.WAITING_FOR_TRIGGER)
        self.trigger.await_signal("Press key to start")

        self._enter(PipelineState.RECORDING)
        proc = self.recorder.start()
        try:
            self.trigger.await_signal("Recording..")
        except TalkbackError:
            self.recorder.abort(proc)
            raise
        self.recorder.stop(proc)

        self._enter(PipelineState.TRANSCRIBING)
        text = self.chat.transcribe(self.recorder.output_path)
        print(f"Transcription: {text}")
        turn = Turn(USER, text)
        self.history.append(turn)

        self._enter(PipelineState.AWAITING_REPLY)
        dbg(f"Messages: {self.history.to_json(turn)}")
        reply = self.chat.complete(self.history.render(turn))
        print(f"Response: {reply}")
        self.history.add_assistant(reply)

        self._enter(PipelineState.SYNTHESIZING)
        audio = self.synthesizer.synthesize(reply)

        self._enter(PipelineState.PLAYING)
        self.player.play(audio)
        self._enter(PipelineState.WAITING_FOR_TRIGGER)
        return reply

    def run(self):
        while True:
            try:
                self.run_once()
            except TalkbackError as e:
                if not self.resume_on_error:
                    raise
                print(f"Error while {self.state.value}: {e}", file=sys.stderr)
                self._enter(PipelineState.WAITING_FOR_TRIGGER)
