import os
import time

DEBUG = os.getenv("DEBUG", "0") == "1"


def set_debug(enabled: bool):
    global DEBUG
    DEBUG = enabled


def dbg(msg: str):
    if DEBUG:
        ts = time.strftime("%H:%M:%S")
        print(f"[DBG {ts}] {msg}")
