"""MIDI-backed sector voices built on mido output ports."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Protocol

import mido

LOGGER = logging.getLogger(__name__)

CC_BANK_SELECT_MSB = 0
CC_PAN = 10
CC_BANK_SELECT_LSB = 32
CC_ALL_NOTES_OFF = 123


class MidiPort(Protocol):
    """Subset of the mido output port API used by the voices."""

    def send(self, message: mido.Message) -> None:
        ...

    def close(self) -> None:
        ...


class Voice(Protocol):
    """Addressable audio channel for one sector."""

    def start_note(self, midi_number: int, amplitude: int) -> None:
        ...

    def stop_note(self, midi_number: int) -> None:
        ...

    def set_instrument(self, program: int, bank_msb: int, bank_lsb: int) -> None:
        ...


def _zero_based_channel(channel: int) -> int:
    """Convert 1-based user channel numbers to 0-based MIDI channels."""
    if not 1 <= channel <= 16:
        raise ValueError(f"MIDI channel must be 1-16, got {channel}")
    return channel - 1


def pan_to_cc(pan: float) -> int:
    """Map a stereo position in [-1, 1] onto the 0..127 pan controller."""
    pan = max(-1.0, min(1.0, pan))
    return int(round((pan + 1.0) * 63.5))


class MidiVoice:
    """A :class:`Voice` on one channel of a mido output port."""

    def __init__(self, port: MidiPort, channel: int, pan: float = 0.0) -> None:
        self._port = port
        self._channel = _zero_based_channel(channel)
        self._pan = pan

    @property
    def channel(self) -> int:
        """1-based channel number."""
        return self._channel + 1

    @property
    def pan(self) -> float:
        return self._pan

    def apply_pan(self) -> None:
        self._control_change(CC_PAN, pan_to_cc(self._pan))

    def start_note(self, midi_number: int, amplitude: int) -> None:
        self._port.send(
            mido.Message("note_on", channel=self._channel, note=midi_number, velocity=amplitude)
        )

    def stop_note(self, midi_number: int) -> None:
        self._port.send(
            mido.Message("note_off", channel=self._channel, note=midi_number, velocity=0)
        )

    def set_instrument(self, program: int, bank_msb: int, bank_lsb: int) -> None:
        self._control_change(CC_BANK_SELECT_MSB, bank_msb)
        self._control_change(CC_BANK_SELECT_LSB, bank_lsb)
        self._port.send(
            mido.Message("program_change", channel=self._channel, program=int(program))
        )

    def all_notes_off(self) -> None:
        self._control_change(CC_ALL_NOTES_OFF, 0)

    def _control_change(self, control: int, value: int) -> None:
        self._port.send(
            mido.Message("control_change", channel=self._channel, control=control, value=value)
        )


@dataclass
class MidiVoices:
    """One output port shared by the per-sector voices."""

    port: MidiPort
    voices: Dict[int, MidiVoice]

    def close(self) -> None:
        for voice in self.voices.values():
            try:
                voice.all_notes_off()
            except Exception as exc:  # pragma: no cover - port already gone
                LOGGER.debug("All-notes-off failed on channel %s: %s", voice.channel, exc)
        self.port.close()


def _open_output(port_name: str) -> MidiPort:
    """Open a MIDI output port with user-friendly errors."""
    try:
        return mido.open_output(port_name)
    except IOError as exc:  # pragma: no cover - depends on system ports
        available = ", ".join(mido.get_output_names())
        raise RuntimeError(
            f"Failed to open MIDI output '{port_name}'. Available ports: {available}"
        ) from exc


def build_voices(
    port: MidiPort,
    channels: Mapping[int, int],
    pans: Mapping[int, float],
) -> MidiVoices:
    """Create one voice per sector on ``port`` and send each voice's pan once."""
    voices: Dict[int, MidiVoice] = {}
    for sector, channel in channels.items():
        voice = MidiVoice(port, channel, pans.get(sector, 0.0))
        voice.apply_pan()
        voices[sector] = voice
        LOGGER.debug("Voice for sector %s on channel %s pan %.2f", sector, channel, voice.pan)
    return MidiVoices(port=port, voices=voices)


def open_voices(
    port_name: str,
    channels: Mapping[int, int],
    pans: Mapping[int, float],
) -> MidiVoices:
    """Open ``port_name`` and build the sector voices on it."""
    return build_voices(_open_output(port_name), channels, pans)


__all__ = [
    "MidiPort",
    "MidiVoice",
    "MidiVoices",
    "Voice",
    "build_voices",
    "open_voices",
    "pan_to_cc",
]
