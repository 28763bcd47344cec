"""Unit tests for decoding event-stream documents."""

import json
from pathlib import Path
from typing import Any

import pytest

from leadsheet.errors import EventStreamError
from leadsheet.event_stream import load_song, song_from_dict
from leadsheet.pitch import Mode, PitchClass, Spelling
from leadsheet.sheet_models import Annotation, Quality, VoltaEnding


def _sample_doc() -> dict[str, Any]:
    return {
        "title": "All of Me",
        "key": {"tonic": "C", "mode": "major"},
        "harmony": [
            {"start": 0, "duration": 8, "root": "C", "quality": "maj"},
            {"start": 8, "duration": 8, "root": "E", "quality": "dominant7", "extensions": ["b9"]},
            {"start": 8, "duration": 4, "root": "Bb", "quality": "min7", "annotation": "parenthesized"},
        ],
        "melody": [
            {"start": 0, "duration": 2, "pitch": "C5"},
            {"start": 2, "duration": 2, "pitch": "G4", "tie": True},
            {"start": 4, "duration": 1, "pitch": "E♭4", "tuplet": 1},
        ],
        "lyrics": [
            {"time": 0, "text": "All"},
            {"time": 2, "text": "of", "hyphenated": True},
        ],
        "labels": [{"time": 0, "text": "A"}],
        "repeats": [{"start": 0, "end": 8, "endings": [[8, 12], [12, 16]]}],
    }


def test_song_from_dict_decodes_every_track() -> None:
    song = song_from_dict(_sample_doc())
    assert song.title == "All of Me"
    assert song.key is not None and song.key.mode is Mode.MAJOR

    chords = song.tracks.harmony
    assert chords[1].quality is Quality.DOMINANT7
    assert chords[1].extensions == ("b9",)
    assert chords[2].annotation is Annotation.PARENTHESIZED
    assert chords[2].root.spelling is Spelling.FLAT

    notes = song.tracks.melody
    assert notes[0].pitch.midi == 72
    assert notes[1].tie_to_next
    assert notes[2].pitch.pitch_class == PitchClass(3)
    assert notes[2].tuplet_group == "1"

    assert song.tracks.lyrics[1].hyphenated
    assert song.tracks.labels[0].text == "A"
    assert song.tracks.repeats[0].alternatives == (VoltaEnding(8, 12), VoltaEnding(12, 16))


def test_missing_tracks_default_to_empty() -> None:
    song = song_from_dict({"title": "Empty"})
    assert song.tracks.harmony == ()
    assert song.key is None


def test_missing_field_names_its_location() -> None:
    doc = _sample_doc()
    del doc["harmony"][1]["root"]
    with pytest.raises(EventStreamError, match=r"harmony\[1\]"):
        song_from_dict(doc)


@pytest.mark.parametrize(
    ("track", "index", "field", "value"),
    [
        ("harmony", 0, "quality", "hyper"),
        ("harmony", 0, "root", "H"),
        ("melody", 0, "pitch", "C"),
        ("melody", 0, "duration", 0),
        ("melody", 0, "start", "zero"),
        ("lyrics", 0, "time", True),
    ],
)
def test_bad_values_raise_event_stream_error(track: str, index: int, field: str, value: Any) -> None:
    doc = _sample_doc()
    doc[track][index][field] = value
    with pytest.raises(EventStreamError):
        song_from_dict(doc)


def test_bad_repeat_endings() -> None:
    doc = _sample_doc()
    doc["repeats"][0]["endings"] = [[9, 12]]
    with pytest.raises(EventStreamError, match=r"repeats\[0\]"):
        song_from_dict(doc)


@pytest.mark.parametrize("span", [["8", 12], [8.9, 12], [8, True]])
def test_repeat_ending_bounds_must_be_integers(span: list[Any]) -> None:
    doc = _sample_doc()
    doc["repeats"][0]["endings"] = [span]
    with pytest.raises(EventStreamError, match=r"repeats\[0\]\.endings\[0\]"):
        song_from_dict(doc)


def test_bad_key() -> None:
    doc = _sample_doc()
    doc["key"] = {"tonic": "C", "mode": "lydian-ish"}
    with pytest.raises(EventStreamError):
        song_from_dict(doc)


def test_load_song_defaults_title_to_file_stem(tmp_path: Path) -> None:
    doc = _sample_doc()
    del doc["title"]
    path = tmp_path / "all_of_me.json"
    path.write_text(json.dumps(doc), encoding="utf-8")
    assert load_song(path).title == "all of me"


def test_load_song_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(EventStreamError):
        load_song(path)
