from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol


Tone = Literal["correct", "wrong", "pop"]
CueKind = Literal["tone", "speech"]


@dataclass(frozen=True, slots=True)
class AudioCue:
    kind: CueKind
    value: str


class AudioSink(Protocol):
    """Where the engine sends sounds and spoken phrases. Calls never wait for playback."""

    def play_tone(self, tone: Tone) -> None: ...

    def speak(self, text: str) -> None: ...


class CueRecorder:
    """Collects cues until the UI drains them."""

    def __init__(self) -> None:
        self._cues: list[AudioCue] = []

    def play_tone(self, tone: Tone) -> None:
        self._cues.append(AudioCue(kind="tone", value=tone))

    def speak(self, text: str) -> None:
        self._cues.append(AudioCue(kind="speech", value=text))

    @property
    def cues(self) -> tuple[AudioCue, ...]:
        return tuple(self._cues)

    def drain(self) -> list[AudioCue]:
        out = self._cues
        self._cues = []
        return out
