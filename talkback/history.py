from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Iterator, Optional

USER = "user"
ASSISTANT = "assistant"
SYSTEM = "system"

# Only these four are covered. Other control characters are left as-is.
_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "'": "\\u0027",
}


def escape_text(text: str) -> str:
    """Escape text so it can be pasted between double quotes in a JSON document."""
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


@dataclass(frozen=True)
class Turn:
    role: str
    content: str

    def to_wire(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}

    def to_json(self) -> str:
        return f'{{"role": "{self.role}", "content": "{escape_text(self.content)}"}}'


class History:
    """
    Rolling conversation buffer.

    Holds at most ``limit`` turns; appending past the limit drops the oldest
    turn first. The system prompt is not stored here: ``render`` puts it in
    front of the stored turns when it is non-empty, so it never counts
    against the limit.
    """

    def __init__(self, limit: int, prompt: str = ""):
        if limit < 0:
            raise ValueError("history limit must be non-negative")
        self.limit = limit
        self.prompt = prompt
        self._turns: deque[Turn] = deque()

    def append(self, turn: Turn) -> None:
        self._turns.append(turn)
        while len(self._turns) > self.limit:
            self._turns.popleft()

    def add_user(self, text: str) -> None:
        self.append(Turn(USER, text))

    def add_assistant(self, text: str) -> None:
        self.append(Turn(ASSISTANT, text))

    def _with_prompt(self, current: Optional[Turn] = None) -> list[Turn]:
        turns = list(self._turns)
        # the turn being answered is always sent, even if the limit already evicted it
        if current is not None and (not turns or turns[-1] is not current):
            turns.append(current)
        if self.prompt:
            turns.insert(0, Turn(SYSTEM, self.prompt))
        return turns

    def render(self, current: Optional[Turn] = None) -> list[dict[str, str]]:
        return [t.to_wire() for t in self._with_prompt(current)]

    def to_json(self, current: Optional[Turn] = None) -> str:
        return "[" + ", ".join(t.to_json() for t in self._with_prompt(current)) + "]"

    def clear(self) -> None:
        self._turns.clear()

    def __len__(self) -> int:
        return len(self._turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))
