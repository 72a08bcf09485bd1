"""Speaking pace / filler heuristic."""
import pytest

from placeprep.services.speech_analysis import analyze_speech, count_fillers


def test_ideal_delivery_scores_ten():
    result = analyze_speech("word " * 135, 60)

    assert result["word_count"] == 135
    assert result["words_per_minute"] == 135.0
    assert result["filler_count"] == 0
    assert result["clarity_score"] == 10.0
    assert result["notes"] == []
    assert result["pace_comment"] == "Great pacing"
    assert result["filler_comment"] == "Clean delivery"


def test_short_slow_answer_with_fillers():
    result = analyze_speech("Um so you know I like it", 10)

    assert result["word_count"] == 7
    assert result["words_per_minute"] == 42.0
    assert result["filler_count"] == 4
    assert result["clarity_score"] == 5.6
    assert result["pace_comment"] == "Too slow"
    assert result["filler_comment"] == "Trim fillers"
    assert len(result["notes"]) == 4
    assert result["notes"][0].startswith("Pace up")


def test_fast_answer():
    result = analyze_speech("answer " * 100, 20)

    assert result["words_per_minute"] == 300.0
    assert result["pace_comment"] == "Too fast"
    assert result["clarity_score"] == 7.0
    assert "Slow down slightly to stay clear." in result["notes"]
    assert not any(note.startswith("Give a bit more detail") for note in result["notes"])


def test_zero_duration_and_empty_transcript():
    result = analyze_speech("", 0)
    assert result["word_count"] == 0
    assert result["words_per_minute"] == 0
    assert result["clarity_score"] == 5.8


@pytest.mark.parametrize("transcript, expected", [
    ("", 0),
    ("Basically, it's LITERALLY a hash map.", 2),
    ("You know, you know... uh", 3),
    ("I know you", 0),
    ("unlike sofa", 0),
])
def test_count_fillers(transcript, expected):
    assert count_fillers(transcript) == expected


def test_light_fillers_comment():
    assert analyze_speech("so this is my answer", 5)["filler_comment"] == "Light fillers"
