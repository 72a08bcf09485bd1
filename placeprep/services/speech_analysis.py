"""
Speaking-pace and filler-word heuristic for spoken interview answers.

The transcript comes from the browser's speech recognition; this module
only scores it.
"""

import re
from typing import List

IDEAL_WPM_RANGE = (110, 160)
TARGET_WPM = 135
SINGLE_WORD_FILLERS = {"um", "uh", "like", "actually", "basically", "literally", "so"}
PHRASE_FILLERS = (("you", "know"),)

_NON_LETTERS = re.compile(r"[^a-zA-Z]+")


def count_fillers(transcript: str) -> int:
    """Count single-word fillers plus multi-word filler phrases."""
    tokens = [token for token in _NON_LETTERS.split(transcript.lower()) if token]
    count = sum(1 for token in tokens if token in SINGLE_WORD_FILLERS)
    for phrase in PHRASE_FILLERS:
        size = len(phrase)
        count += sum(1 for i in range(len(tokens) - size + 1) if tuple(tokens[i:i + size]) == phrase)
    return count


def analyze_speech(transcript: str, duration_sec: float) -> dict:
    """
    Score an answer's delivery from its transcript and duration.

    clarity = 10 - (3 * pace_penalty + 4 * filler_penalty + 3 * brevity_penalty),
    never below 1.
    """
    transcript = (transcript or "").strip()
    words = len(transcript.split()) if transcript else 0
    wpm = words / duration_sec * 60 if duration_sec > 0 else 0.0
    fillers = count_fillers(transcript)

    low, high = IDEAL_WPM_RANGE
    pace_in_range = low <= wpm <= high
    pace_penalty = min(abs(wpm - TARGET_WPM) / TARGET_WPM, 1)
    filler_penalty = min(fillers * 0.07, 0.7)
    brevity_penalty = 0.4 if words < 40 else 0
    clarity = max(10 - (pace_penalty * 3 + filler_penalty * 4 + brevity_penalty * 3), 1)

    notes: List[str] = []
    if not pace_in_range:
        notes.append("Pace up a bit; aim for a steady flow." if wpm < low
                     else "Slow down slightly to stay clear.")
    if fillers > 2:
        notes.append("Reduce filler words; add brief pauses instead.")
    if words < 60:
        notes.append("Give a bit more detail (examples, trade-offs, steps).")
    if duration_sec < 30:
        notes.append("Aim for at least 30-60 seconds to cover context, approach, and outcome.")

    if pace_in_range:
        pace_comment = "Great pacing"
    else:
        pace_comment = "Too slow" if wpm < low else "Too fast"

    if fillers == 0:
        filler_comment = "Clean delivery"
    elif fillers <= 2:
        filler_comment = "Light fillers"
    else:
        filler_comment = "Trim fillers"

    return {
        "duration_sec": round(duration_sec, 1),
        "word_count": words,
        "words_per_minute": round(wpm, 1),
        "filler_count": fillers,
        "clarity_score": round(clarity, 1),
        "notes": notes,
        "pace_comment": pace_comment,
        "filler_comment": filler_comment,
    }
