from __future__ import annotations

import queue
import sys
import threading
from typing import Optional, TextIO

from .debug import dbg
from .errors import TriggerError


def get_keyboard():
    # pynput needs a display (or uinput) at import time; only load it when a hook is wanted
    try:
        from pynput import keyboard
    except ImportError as e:
        raise TriggerError(f"keyboard hook unavailable: {e}") from e
    return keyboard


def key_vk(key) -> Optional[int]:
    """Virtual-key code of a pynput key, for both named keys and plain KeyCodes."""
    value = getattr(key, "value", key)
    return getattr(value, "vk", None)


class HotkeyTrigger:
    """
    Global hotkey as a start/stop signal.

    A pynput listener thread watches every key press for the lifetime of the
    process. A matching press goes into a one-slot queue; the main loop blocks
    on it. Presses while a signal is already pending are dropped.
    """

    def __init__(self, keycode: Optional[int] = None):
        self.keycode = keycode
        self._signals: queue.Queue[None] = queue.Queue(maxsize=1)
        self._listener = None

    def matches(self, key) -> bool:
        if self.keycode is None:
            return key == get_keyboard().Key.f1
        return key_vk(key) == self.keycode

    def on_press(self, key):
        if not self.matches(key):
            return
        try:
            self._signals.put_nowait(None)
        except queue.Full:
            dbg("Hotkey pressed with a signal pending; dropped")

    def start(self):
        if self._listener is not None:
            return
        keyboard = get_keyboard()
        try:
            listener = keyboard.Listener(on_press=self.on_press)
            listener.daemon = True
            listener.start()
        except Exception as e:
            raise TriggerError(f"cannot install keyboard hook: {e}") from e
        # wait() blocks forever when the hook dies during setup
        waiter = threading.Thread(target=listener.wait, daemon=True)
        waiter.start()
        while waiter.is_alive() and listener.is_alive():
            waiter.join(0.05)
        if not listener.is_alive() or not listener.running:
            raise TriggerError("cannot install keyboard hook: listener stopped")
        self._listener = listener
        dbg("Keyboard listener installed")

    def stop(self):
        if self._listener is not None:
            self._listener.stop()
            self._listener = None

    def await_signal(self, prompt: str = "") -> None:
        # a press from the previous stage must not satisfy this wait
        try:
            self._signals.get_nowait()
        except queue.Empty:
            pass
        if prompt:
            print(prompt)
        self._signals.get()


class ConsoleTrigger:
    """Any line on stdin (an empty one too) is a signal."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def start(self):
        pass

    def stop(self):
        pass

    def await_signal(self, prompt: str = "") -> None:
        stream = self.stream or sys.stdin
        if prompt:
            print(prompt, end=" ", flush=True)
        if not stream.readline():
            raise TriggerError("end of input on console trigger")


def build_trigger(config):
    if config.trigger == "console":
        return ConsoleTrigger()
    return HotkeyTrigger(config.keycode)


def dump_key_events():
    """Print raw key events until Esc. Used to find a KEYCODE for the config."""
    keyboard = get_keyboard()

    def on_press(key):
        print(f"press   {key!r} vk={key_vk(key)}")
        if key == keyboard.Key.esc:
            return False

    def on_release(key):
        print(f"release {key!r} vk={key_vk(key)}")

    print("Press keys to see their codes. Esc to exit.")
    with keyboard.Listener(on_press=on_press, on_release=on_release) as listener:
        listener.join()
