"""
Omens - messages surfaced when a moment matches a special pattern.

Two independent conditions, checked in priority order:
1. Awakening: dreamday 0, loop 6
2. Whisper: visible beat divisible by 77
"""

from dataclasses import dataclass
from enum import Enum

from zeilumara.models import StructuredTime

WHISPER_DIVISOR = 77
AWAKENING_DREAMDAY = 0
AWAKENING_LOOP = 6


class OmenKind(Enum):
    AWAKENING = "awakening"
    WHISPER = "whisper"


@dataclass(frozen=True)
class Omen:
    kind: OmenKind
    message: str


AWAKENING = Omen(OmenKind.AWAKENING, "🌌 Zeilumara 醒了：『你踏入了未命名之昼。』")
WHISPER = Omen(OmenKind.WHISPER, "✨ 女神轻语：『不要忘记你心里的时间。』")


def evaluate(moment: StructuredTime) -> list[Omen]:
    """All omens matching ``moment``, highest priority first."""
    omens = []
    if moment.dreamday == AWAKENING_DREAMDAY and moment.loop == AWAKENING_LOOP:
        omens.append(AWAKENING)
    if moment.visible_beat % WHISPER_DIVISOR == 0:
        omens.append(WHISPER)
    return omens


def first_omen(moment: StructuredTime) -> Omen | None:
    omens = evaluate(moment)
    return omens[0] if omens else None
