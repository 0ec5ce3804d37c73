from __future__ import annotations

import subprocess

from .config import Config
from .debug import dbg
from .errors import ProcessError

FFMPEG = "ffmpeg"
MPV = "mpv"


class Recorder:
    """Runs ffmpeg to capture the microphone into ``config.audio_file``."""

    def __init__(self, config: Config, executable: str = FFMPEG):
        self.executable = executable
        self.output_path = config.audio_file
        self.args = [
            "-y",
            "-loglevel", "error",
            "-f", config.backend,
            "-i", config.device,
            config.audio_file,
        ]

    def start(self) -> subprocess.Popen:
        try:
            proc = subprocess.Popen([self.executable, *self.args], stdin=subprocess.PIPE)
        except OSError as e:
            raise ProcessError(f"cannot start {self.executable}: {e}") from e
        dbg(f"Recording started pid={proc.pid}")
        return proc

    def stop(self, proc: subprocess.Popen) -> None:
        # ffmpeg finishes the file and exits on 'q'
        try:
            proc.stdin.write(b"q")
            proc.stdin.flush()
            proc.stdin.close()
        except OSError as e:
            self.abort(proc)
            raise ProcessError(f"cannot stop {self.executable}: {e}") from e
        code = proc.wait()
        dbg(f"Recording stopped rc={code}")
        if code != 0:
            raise ProcessError(f"{self.executable} exited with status {code}")

    def abort(self, proc: subprocess.Popen) -> None:
        proc.kill()
        proc.wait()


class Player:
    """Pipes audio into mpv and leaves it playing."""

    def __init__(self, executable: str = MPV):
        self.executable = executable

    def play(self, audio: bytes) -> subprocess.Popen:
        try:
            proc = subprocess.Popen([self.executable, "-", "--no-terminal"], stdin=subprocess.PIPE)
        except OSError as e:
            raise ProcessError(f"cannot start {self.executable}: {e}") from e
        try:
            proc.stdin.write(audio)
            proc.stdin.close()
        except OSError as e:
            proc.kill()
            proc.wait()
            raise ProcessError(f"cannot write audio to {self.executable}: {e}") from e
        dbg(f"Playback started pid={proc.pid} bytes={len(audio)}")
        return proc
