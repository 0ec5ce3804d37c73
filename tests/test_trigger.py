import io
import threading
import types

import pytest

from talkback import trigger as trigger_mod
from talkback.errors import TriggerError
from talkback.trigger import ConsoleTrigger, HotkeyTrigger, build_trigger, key_vk


class FakeKeyCode:
    def __init__(self, vk):
        self.vk = vk


class FakeNamedKey:
    def __init__(self, vk):
        self.value = FakeKeyCode(vk)


def test_key_vk():
    assert key_vk(FakeKeyCode(65)) == 65
    assert key_vk(FakeNamedKey(112)) == 112
    assert key_vk(object()) is None


def test_console_any_line_is_a_signal(capsys):
    trigger = ConsoleTrigger(io.StringIO("\nanything\n"))
    trigger.await_signal("Press key to start")
    trigger.await_signal("Recording..")
    assert "Press key to start" in capsys.readouterr().out
    with pytest.raises(TriggerError):
        trigger.await_signal()


def test_hotkey_matches_configured_code():
    trigger = HotkeyTrigger(keycode=112)
    assert trigger.matches(FakeNamedKey(112))
    assert trigger.matches(FakeKeyCode(112))
    assert not trigger.matches(FakeKeyCode(113))


def test_hotkey_single_pending_signal():
    trigger = HotkeyTrigger(keycode=7)
    trigger.on_press(FakeKeyCode(7))
    trigger.on_press(FakeKeyCode(7))
    trigger.on_press(FakeKeyCode(8))
    assert trigger._signals.qsize() == 1


def test_hotkey_await_ignores_stale_press():
    trigger = HotkeyTrigger(keycode=7)
    trigger.on_press(FakeKeyCode(7))
    timer = threading.Timer(0.05, trigger.on_press, args=(FakeKeyCode(7),))
    timer.start()
    trigger.await_signal()
    timer.join()
    assert trigger._signals.empty()


def test_default_key_is_f1():
    keyboard = pytest.importorskip("pynput.keyboard", exc_type=ImportError)
    trigger = HotkeyTrigger()
    assert trigger.matches(keyboard.Key.f1)
    assert not trigger.matches(keyboard.Key.f2)


def test_build_trigger(make_config):
    assert isinstance(build_trigger(make_config(trigger="console")), ConsoleTrigger)
    hotkey = build_trigger(make_config(keycode=99))
    assert isinstance(hotkey, HotkeyTrigger)
    assert hotkey.keycode == 99


class BrokenHookListener(threading.Thread):
    """Listener whose OS hook fails during setup and never becomes ready."""

    def __init__(self, on_press=None):
        super().__init__(daemon=True)
        self.running = False

    def run(self):
        raise RuntimeError("RECORD extension missing")

    def wait(self):
        threading.Event().wait()


class IdleListener(threading.Thread):
    def __init__(self, on_press=None):
        super().__init__(daemon=True)
        self.on_press = on_press
        self.running = True
        self._done = threading.Event()

    def run(self):
        self._done.wait()

    def wait(self):
        pass

    def stop(self):
        self.running = False
        self._done.set()


@pytest.mark.filterwarnings("ignore::pytest.PytestUnhandledThreadExceptionWarning")
def test_hook_failure_is_reported_not_hung(monkeypatch):
    monkeypatch.setattr(trigger_mod, "get_keyboard", lambda: types.SimpleNamespace(Listener=BrokenHookListener))
    outcome = []

    def start():
        try:
            HotkeyTrigger(7).start()
        except TriggerError as e:
            outcome.append(e)

    starter = threading.Thread(target=start, daemon=True)
    starter.start()
    starter.join(3)
    assert not starter.is_alive()
    assert len(outcome) == 1
    assert "keyboard hook" in str(outcome[0])


def test_hook_installed_once(monkeypatch):
    created = []

    def make_listener(on_press=None):
        listener = IdleListener(on_press)
        created.append(listener)
        return listener

    monkeypatch.setattr(trigger_mod, "get_keyboard", lambda: types.SimpleNamespace(Listener=make_listener))
    trigger = HotkeyTrigger(7)
    trigger.start()
    trigger.start()
    assert len(created) == 1
    assert created[0].on_press == trigger.on_press
    trigger.stop()
    created[0].join(1)
    assert not created[0].is_alive()
