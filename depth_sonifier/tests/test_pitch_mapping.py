"""Unit tests for notes and the depth-to-note table."""

from __future__ import annotations

import pytest

from depth_sonifier.pitch_mapping import (
    DEFAULT_MAPPING,
    DEFAULT_THRESHOLDS,
    Note,
    all_c_notes,
    build_mapping,
    map_to_note,
)


def test_note_midi_and_frequency() -> None:
    assert Note("C", 4).midi_number == 60
    assert Note("A", 4).frequency == pytest.approx(440.0)
    assert Note("C", 4).frequency == pytest.approx(261.6256, rel=1e-5)
    assert Note("Db", 4).midi_number == Note("C#", 4).midi_number == 61
    assert Note.c(8).display_name == "C8"


def test_note_from_midi() -> None:
    assert Note.from_midi(61) == Note("C#", 4)
    assert Note.from_midi(24) == Note.c(1)
    with pytest.raises(ValueError):
        Note.from_midi(128)


def test_unknown_note_name() -> None:
    with pytest.raises(ValueError):
        Note("H", 3)


def test_all_c_notes_span_eight_octaves() -> None:
    notes = all_c_notes()
    assert [n.octave for n in notes] == list(range(1, 9))
    assert notes[0].midi_number == 24
    assert notes[-1].midi_number == 108


@pytest.mark.parametrize("threshold,octave", list(zip(DEFAULT_THRESHOLDS, range(1, 9))))
def test_exact_threshold_has_full_proximity(threshold: float, octave: int) -> None:
    note, proximity = map_to_note(threshold)
    assert note == Note.c(octave)
    assert proximity == 1.0


def test_every_depth_maps_into_table() -> None:
    table = set(DEFAULT_MAPPING.notes)
    for step in range(101):
        note, proximity = map_to_note(step / 100)
        assert note in table
        assert 0.0 <= proximity <= 1.0


def test_between_thresholds_returns_farther_note() -> None:
    # 0.325 sits between the 0.40 (C5) and 0.25 (C6) thresholds.
    note, proximity = map_to_note(0.325)
    assert note == Note.c(5)
    assert proximity == pytest.approx(0.5)

    note, proximity = map_to_note(0.12)
    assert note == Note.c(6)
    assert proximity == pytest.approx(0.02 / 0.15)

    note, proximity = map_to_note(0.05)
    assert note == Note.c(7)
    assert proximity == pytest.approx(0.5)


def test_proximity_falls_towards_nearer_bound() -> None:
    _, near_far_bound = map_to_note(0.84)
    _, near_near_bound = map_to_note(0.71)
    assert near_far_bound > near_near_bound


def test_out_of_range_depth_is_clamped() -> None:
    assert map_to_note(1.5) == (Note.c(1), 1.0)
    assert map_to_note(-0.2) == (Note.c(8), 1.0)


def test_mapping_requires_decreasing_thresholds() -> None:
    with pytest.raises(ValueError):
        build_mapping([0.0, 1.0], [Note.c(8), Note.c(1)])
    with pytest.raises(ValueError):
        build_mapping([1.0], [Note.c(1)])
