"""Instrument catalogue with General MIDI program and bank numbers."""

from __future__ import annotations

from enum import Enum
from typing import List, Tuple

# Default melodic bank of GM sound banks.
DEFAULT_BANK_MSB = 121
DEFAULT_BANK_LSB = 0


class InstrumentCategory(Enum):
    STRING = "String"
    WIND = "Wind"
    BRASS = "Brass"
    KEYBOARD = "Keyboard"
    SYNTHETIC = "Synthetic"

    @property
    def display_name(self) -> str:
        return self.value


class Instrument(Enum):
    """Timbres a sector voice can be bound to."""

    VIOLIN = "Violin"
    VIOLA = "Viola"
    CELLO = "Cello"
    CONTRABASS = "Contrabass"
    HARP = "Harp"

    FLUTE = "Flute"
    CLARINET = "Clarinet"
    OBOE = "Oboe"
    FRENCH_HORN = "French Horn"
    BASSOON = "Bassoon"

    TRUMPET = "Trumpet"
    TROMBONE = "Trombone"
    TUBA = "Tuba"

    PIANO = "Piano"
    ORGAN = "Organ"
    ELECTRIC_PIANO = "Electric Piano"

    SYNTH_PAD = "Synth Pad"
    SYNTH_STRINGS = "Synth Strings"
    AMBIENT_PAD = "Ambient Pad"
    WARM_PAD = "Warm Pad"
    CHOIR = "Choir"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def category(self) -> InstrumentCategory:
        return _CATEGORIES[self]

    @property
    def program(self) -> int:
        return _PROGRAMS[self]

    @property
    def bank(self) -> Tuple[int, int]:
        return bank_for(self.category)

    @classmethod
    def from_name(cls, name: str) -> "Instrument":
        """Look up by enum name (``synth_pad``) or display name (``Synth Pad``)."""
        key = str(name).strip()
        normalized = key.upper().replace(" ", "_").replace("-", "_")
        if normalized in cls.__members__:
            return cls[normalized]
        for instrument in cls:
            if instrument.value.lower() == key.lower():
                return instrument
        raise ValueError(f"Unknown instrument: {name!r}")


_CATEGORIES = {
    Instrument.VIOLIN: InstrumentCategory.STRING,
    Instrument.VIOLA: InstrumentCategory.STRING,
    Instrument.CELLO: InstrumentCategory.STRING,
    Instrument.CONTRABASS: InstrumentCategory.STRING,
    Instrument.HARP: InstrumentCategory.STRING,
    Instrument.FLUTE: InstrumentCategory.WIND,
    Instrument.CLARINET: InstrumentCategory.WIND,
    Instrument.OBOE: InstrumentCategory.WIND,
    Instrument.FRENCH_HORN: InstrumentCategory.WIND,
    Instrument.BASSOON: InstrumentCategory.WIND,
    Instrument.TRUMPET: InstrumentCategory.BRASS,
    Instrument.TROMBONE: InstrumentCategory.BRASS,
    Instrument.TUBA: InstrumentCategory.BRASS,
    Instrument.PIANO: InstrumentCategory.KEYBOARD,
    Instrument.ORGAN: InstrumentCategory.KEYBOARD,
    Instrument.ELECTRIC_PIANO: InstrumentCategory.KEYBOARD,
    Instrument.SYNTH_PAD: InstrumentCategory.SYNTHETIC,
    Instrument.SYNTH_STRINGS: InstrumentCategory.SYNTHETIC,
    Instrument.AMBIENT_PAD: InstrumentCategory.SYNTHETIC,
    Instrument.WARM_PAD: InstrumentCategory.SYNTHETIC,
    Instrument.CHOIR: InstrumentCategory.SYNTHETIC,
}

# General MIDI program numbers (0-based).
_PROGRAMS = {
    Instrument.PIANO: 0,
    Instrument.ELECTRIC_PIANO: 4,
    Instrument.ORGAN: 16,
    Instrument.VIOLIN: 40,
    Instrument.VIOLA: 41,
    Instrument.CELLO: 42,
    Instrument.CONTRABASS: 43,
    Instrument.HARP: 46,
    Instrument.FLUTE: 73,
    Instrument.CLARINET: 71,
    Instrument.OBOE: 68,
    Instrument.FRENCH_HORN: 60,
    Instrument.BASSOON: 70,
    Instrument.TRUMPET: 56,
    Instrument.TROMBONE: 57,
    Instrument.TUBA: 58,
    Instrument.SYNTH_PAD: 88,
    Instrument.SYNTH_STRINGS: 51,
    Instrument.AMBIENT_PAD: 89,
    Instrument.WARM_PAD: 89,
    Instrument.CHOIR: 52,
}

_DEFAULTS = {
    InstrumentCategory.STRING: Instrument.VIOLIN,
    InstrumentCategory.WIND: Instrument.FLUTE,
    InstrumentCategory.BRASS: Instrument.TRUMPET,
    InstrumentCategory.KEYBOARD: Instrument.PIANO,
    InstrumentCategory.SYNTHETIC: Instrument.SYNTH_PAD,
}


_BANKS = {category: (DEFAULT_BANK_MSB, DEFAULT_BANK_LSB) for category in InstrumentCategory}


def bank_for(category: InstrumentCategory) -> Tuple[int, int]:
    """Return the ``(msb, lsb)`` bank select pair for a category."""
    return _BANKS.get(category, (DEFAULT_BANK_MSB, DEFAULT_BANK_LSB))


def instruments_in(category: InstrumentCategory) -> List[Instrument]:
    return [instrument for instrument in Instrument if instrument.category is category]


def default_instrument(category: InstrumentCategory) -> Instrument:
    return _DEFAULTS[category]


__all__ = [
    "DEFAULT_BANK_LSB",
    "DEFAULT_BANK_MSB",
    "Instrument",
    "InstrumentCategory",
    "bank_for",
    "default_instrument",
    "instruments_in",
]
