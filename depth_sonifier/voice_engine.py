"""Per-sector note playback driven by normalised depth."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

from .instruments import Instrument
from .midi_io import Voice
from .pitch_mapping import DEFAULT_MAPPING, Note, PitchMapping
from .state import Sector

LOGGER = logging.getLogger(__name__)

DEFAULT_VELOCITY = 0.7
AMPLITUDE_FLOOR = 40
AMPLITUDE_CEILING = 127
COMPANION_FLOOR = 30
COMPANION_CEILING = 100
COMPANION_THRESHOLD = 0.8
COMPANION_BELOW_THRESHOLD = 0.5
OCTAVE = 12

DEFAULT_SECTOR_INSTRUMENTS: Mapping[Sector, Instrument] = {
    Sector.LEFT: Instrument.HARP,
    Sector.CENTER: Instrument.PIANO,
    Sector.RIGHT: Instrument.SYNTH_PAD,
}

SectorLike = Union[Sector, int]


def _clamp_int(value: float, lower: int, upper: int) -> int:
    return int(min(upper, max(lower, value)))


@dataclass(frozen=True)
class NotePlan:
    """What one ``play_note_for_depth`` call sounds."""

    note: Note
    proximity: float
    amplitude: int
    companion: Optional[int] = None
    companion_amplitude: Optional[int] = None

    @property
    def midi_numbers(self) -> List[int]:
        numbers = [self.note.midi_number]
        if self.companion is not None:
            numbers.append(self.companion)
        return numbers


def plan_note(
    normalized_depth: float,
    velocity: float = DEFAULT_VELOCITY,
    mapping: PitchMapping = DEFAULT_MAPPING,
) -> NotePlan:
    """Resolve the primary note, its amplitude and the optional octave companion."""
    note, proximity = mapping.map_to_note(normalized_depth)
    base = _clamp_int(velocity * 127.0, AMPLITUDE_FLOOR, AMPLITUDE_CEILING)
    amplitude = _clamp_int(base * proximity, AMPLITUDE_FLOOR, AMPLITUDE_CEILING)

    if proximity >= COMPANION_THRESHOLD:
        return NotePlan(note=note, proximity=proximity, amplitude=amplitude)

    offset = -OCTAVE if proximity < COMPANION_BELOW_THRESHOLD else OCTAVE
    companion = note.midi_number + offset
    if not 0 <= companion <= 127:
        return NotePlan(note=note, proximity=proximity, amplitude=amplitude)
    return NotePlan(
        note=note,
        proximity=proximity,
        amplitude=amplitude,
        companion=companion,
        companion_amplitude=_clamp_int(base * (1.0 - proximity), COMPANION_FLOOR, COMPANION_CEILING),
    )


@dataclass
class SectorState:
    """Voice binding and currently sounding notes of one sector."""

    voice: Voice
    instrument: Optional[Instrument] = None
    active_notes: List[int] = field(default_factory=list)


class VoiceEngine:
    """Owns the sector voices and their active-note bookkeeping.

    Backend failures are logged and never raised: the bookkeeping is updated as
    if the call had succeeded so a later stop stays consistent.
    """

    def __init__(
        self,
        voices: Mapping[SectorLike, Voice],
        mapping: PitchMapping = DEFAULT_MAPPING,
        instruments: Optional[Mapping[SectorLike, Instrument]] = None,
    ) -> None:
        self._mapping = mapping
        self._sectors: Dict[Sector, SectorState] = {
            Sector(int(sector)): SectorState(voice=voice) for sector, voice in voices.items()
        }
        assignments = DEFAULT_SECTOR_INSTRUMENTS if instruments is None else instruments
        for sector, instrument in assignments.items():
            self.change_instrument(instrument, sector)

    @property
    def mapping(self) -> PitchMapping:
        return self._mapping

    @property
    def sectors(self) -> List[Sector]:
        return sorted(self._sectors)

    def active_notes(self, sector: SectorLike) -> List[int]:
        state = self._state(sector)
        return list(state.active_notes) if state is not None else []

    def instrument(self, sector: SectorLike) -> Optional[Instrument]:
        state = self._state(sector)
        return state.instrument if state is not None else None

    def play_note_for_depth(
        self,
        normalized_depth: float,
        sector: SectorLike,
        velocity: float = DEFAULT_VELOCITY,
    ) -> Optional[NotePlan]:
        """Cut the sector's current notes and sound the note for ``normalized_depth``."""
        state = self._state(sector)
        if state is None:
            return None
        label = Sector(int(sector)).label

        self._stop_state(state)
        plan = plan_note(normalized_depth, velocity, self._mapping)
        LOGGER.info(
            "Playing %s amp=%d on %s sector (depth=%.3f proximity=%.2f)",
            plan.note.display_name,
            plan.amplitude,
            label,
            normalized_depth,
            plan.proximity,
        )
        self._start(state, plan.note.midi_number, plan.amplitude, label)
        if plan.companion is not None and plan.companion_amplitude is not None:
            LOGGER.debug("Companion note %d amp=%d on %s", plan.companion, plan.companion_amplitude, label)
            self._start(state, plan.companion, plan.companion_amplitude, label)
        return plan

    def stop_all_notes_in_sector(self, sector: SectorLike) -> None:
        state = self._state(sector)
        if state is not None:
            self._stop_state(state)

    def stop_all_notes(self) -> None:
        for sector in self.sectors:
            self._stop_state(self._sectors[sector])

    def change_instrument(self, instrument: Instrument, sector: SectorLike) -> None:
        """Rebind ``sector`` to ``instrument``; a failure keeps the previous timbre."""
        state = self._state(sector)
        if state is None:
            return
        msb, lsb = instrument.bank
        LOGGER.info(
            "Instrument for %s sector: %s (%s) program=%d bank=%d/%d",
            Sector(int(sector)).label,
            instrument.display_name,
            instrument.category.display_name,
            instrument.program,
            msb,
            lsb,
        )
        try:
            state.voice.set_instrument(instrument.program, msb, lsb)
        except Exception as exc:
            LOGGER.warning("Instrument change to %s failed: %s", instrument.display_name, exc)
            return
        state.instrument = instrument

    # Internal helpers -----------------------------------------------------

    def _state(self, sector: SectorLike) -> Optional[SectorState]:
        try:
            key = Sector(int(sector))
        except (TypeError, ValueError):
            LOGGER.warning("Invalid sector: %r", sector)
            return None
        state = self._sectors.get(key)
        if state is None:
            LOGGER.warning("No voice bound to %s sector", key.label)
        return state

    def _start(self, state: SectorState, midi_number: int, amplitude: int, label: str) -> None:
        try:
            state.voice.start_note(midi_number, amplitude)
        except Exception as exc:
            LOGGER.warning("Note on %d failed on %s sector: %s", midi_number, label, exc)
        state.active_notes.append(midi_number)

    def _stop_state(self, state: SectorState) -> None:
        for midi_number in state.active_notes:
            try:
                state.voice.stop_note(midi_number)
            except Exception as exc:
                LOGGER.warning("Note off %d failed: %s", midi_number, exc)
        state.active_notes.clear()


__all__ = [
    "DEFAULT_SECTOR_INSTRUMENTS",
    "DEFAULT_VELOCITY",
    "NotePlan",
    "SectorState",
    "VoiceEngine",
    "plan_note",
]
