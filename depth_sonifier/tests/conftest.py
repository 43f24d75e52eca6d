"""Shared fakes for the depth sonifier tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

import numpy as np
import pytest

from depth_sonifier.depth_sampler import ArrayDepthBuffer
from depth_sonifier.scheduler import ManualClock
from depth_sonifier.state import Sector
from depth_sonifier.voice_engine import VoiceEngine


@dataclass
class FakeVoice:
    calls: List[Tuple] = field(default_factory=list)
    fail: bool = False

    def start_note(self, midi_number: int, amplitude: int) -> None:
        self.calls.append(("on", midi_number, amplitude))
        if self.fail:
            raise RuntimeError("backend down")

    def stop_note(self, midi_number: int) -> None:
        self.calls.append(("off", midi_number))
        if self.fail:
            raise RuntimeError("backend down")

    def set_instrument(self, program: int, bank_msb: int, bank_lsb: int) -> None:
        self.calls.append(("program", program, bank_msb, bank_lsb))
        if self.fail:
            raise RuntimeError("backend down")

    @property
    def note_ons(self) -> List[Tuple]:
        return [call for call in self.calls if call[0] == "on"]

    @property
    def sounding(self) -> List[int]:
        held: List[int] = []
        for call in self.calls:
            if call[0] == "on":
                held.append(call[1])
            elif call[0] == "off" and call[1] in held:
                held.remove(call[1])
        return held


@pytest.fixture
def voices() -> Dict[Sector, FakeVoice]:
    return {sector: FakeVoice() for sector in Sector}


@pytest.fixture
def engine(voices: Dict[Sector, FakeVoice]) -> VoiceEngine:
    return VoiceEngine(voices)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def make_buffer() -> Callable[..., ArrayDepthBuffer]:
    def _make(value: float = 1.2, width: int = 90, height: int = 90) -> ArrayDepthBuffer:
        return ArrayDepthBuffer(np.full((height, width), value, dtype=np.float64))

    return _make
