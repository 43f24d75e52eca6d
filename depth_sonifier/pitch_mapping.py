"""Normalised-depth-to-note quantisation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

# Map note names to pitch classes (semitones above C). Sharps and flats both
# resolve to the same class.
NOTE_NAME_TO_PC = {
    "C": 0,
    "C#": 1,
    "Db": 1,
    "D": 2,
    "D#": 3,
    "Eb": 3,
    "E": 4,
    "F": 5,
    "F#": 6,
    "Gb": 6,
    "G": 7,
    "G#": 8,
    "Ab": 8,
    "A": 9,
    "A#": 10,
    "Bb": 10,
    "B": 11,
}

PC_TO_NOTE_NAME = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")

A4_FREQUENCY_HZ = 440.0
A4_MIDI_NUMBER = 69


@dataclass(frozen=True)
class Note:
    """A pitch class in a given octave (C4 is MIDI 60)."""

    name: str
    octave: int

    def __post_init__(self) -> None:
        if self.name not in NOTE_NAME_TO_PC:
            raise ValueError(f"Unknown note name: {self.name!r}")

    @classmethod
    def c(cls, octave: int) -> "Note":
        return cls("C", octave)

    @classmethod
    def from_midi(cls, number: int) -> "Note":
        if not 0 <= number <= 127:
            raise ValueError(f"MIDI note number must be 0-127, got {number}")
        return cls(PC_TO_NOTE_NAME[number % 12], number // 12 - 1)

    @property
    def pitch_class(self) -> int:
        return NOTE_NAME_TO_PC[self.name]

    @property
    def midi_number(self) -> int:
        return (self.octave + 1) * 12 + self.pitch_class

    @property
    def frequency(self) -> float:
        """Equal-tempered frequency in Hz, referenced to A4 = 440 Hz."""
        return A4_FREQUENCY_HZ * 2.0 ** ((self.midi_number - A4_MIDI_NUMBER) / 12.0)

    @property
    def display_name(self) -> str:
        return f"{self.name}{self.octave}"

    def __str__(self) -> str:
        return self.display_name


def all_c_notes() -> List[Note]:
    """C1 through C8."""
    return [Note.c(octave) for octave in range(1, 9)]


@dataclass(frozen=True)
class PitchMapping:
    """Threshold table ordered farthest (1.0) to nearest (0.0)."""

    entries: Tuple[Tuple[float, Note], ...]

    def __post_init__(self) -> None:
        if len(self.entries) < 2:
            raise ValueError("PitchMapping needs at least two entries")
        thresholds = [depth for depth, _ in self.entries]
        if any(a <= b for a, b in zip(thresholds, thresholds[1:])):
            raise ValueError("PitchMapping thresholds must be strictly decreasing")

    @property
    def notes(self) -> List[Note]:
        return [note for _, note in self.entries]

    def map_to_note(self, normalized_depth: float) -> Tuple[Note, float]:
        """Return the farther-bound note of the bracketing pair and its proximity.

        Proximity is 1.0 on an exact threshold or at the farther bound and falls
        towards 0.0 approaching the nearer bound. The input is clamped into the
        table's range.
        """
        entries = self.entries
        depth = min(entries[0][0], max(entries[-1][0], normalized_depth))

        for threshold, note in entries:
            if depth == threshold:
                return note, 1.0

        lower_index = upper_index = 0
        for index in range(len(entries) - 1):
            if entries[index][0] >= depth > entries[index + 1][0]:
                lower_index, upper_index = index, index + 1
                break

        lower_depth, note = entries[lower_index]
        upper_depth = entries[upper_index][0]
        span = lower_depth - upper_depth
        if span == 0:
            return note, 1.0
        return note, (depth - upper_depth) / span


def build_mapping(thresholds: Sequence[float], notes: Sequence[Note]) -> PitchMapping:
    if len(thresholds) != len(notes):
        raise ValueError("thresholds and notes must have the same length")
    return PitchMapping(tuple(zip((float(t) for t in thresholds), notes)))


DEFAULT_THRESHOLDS = (1.00, 0.85, 0.70, 0.55, 0.40, 0.25, 0.10, 0.00)
DEFAULT_MAPPING = build_mapping(DEFAULT_THRESHOLDS, all_c_notes())


def map_to_note(normalized_depth: float, mapping: PitchMapping = DEFAULT_MAPPING) -> Tuple[Note, float]:
    """Map a normalised depth through ``mapping`` (C1 farthest, C8 nearest)."""
    return mapping.map_to_note(normalized_depth)


__all__ = [
    "DEFAULT_MAPPING",
    "DEFAULT_THRESHOLDS",
    "NOTE_NAME_TO_PC",
    "Note",
    "PitchMapping",
    "all_c_notes",
    "build_mapping",
    "map_to_note",
]
