"""
Completion statistics for a sheet's questions.

Everything here is recomputed from the questions passed in; nothing is
cached or stored, so a caller that flips a completion flag simply asks
again.
"""
from collections import Counter

from studysheets.models.question import Difficulty


def _difficulty_of(question) -> Difficulty:
    value = question.difficulty
    return value if isinstance(value, Difficulty) else Difficulty(value)


def completion_rate(questions) -> int:
    """Whole-number percentage of completed questions, 0 for an empty set.

    Halves round up (12.5 -> 13). Integer arithmetic keeps it exact.
    """
    questions = list(questions)
    total = len(questions)
    if total == 0:
        return 0
    done = sum(1 for q in questions if q.completed)
    return (200 * done + total) // (2 * total)


def _bucket(questions: list) -> dict:
    return {
        "total":     len(questions),
        "completed": sum(1 for q in questions if q.completed),
        "percent":   completion_rate(questions),
    }


def sheet_stats(questions) -> dict:
    """Overall and per-difficulty completion for a question list.

    Example::

        {"total": 3, "completed": 1, "percent": 33,
         "by_difficulty": {"easy":   {"total": 1, "completed": 1, "percent": 100},
                           "medium": {"total": 1, "completed": 0, "percent": 0},
                           "hard":   {"total": 1, "completed": 0, "percent": 0}}}
    """
    questions = list(questions)
    overall = _bucket(questions)
    overall["by_difficulty"] = {
        level.value: _bucket([q for q in questions if _difficulty_of(q) is level])
        for level in Difficulty
    }
    return overall


def tag_counts(questions) -> list:
    """[(tag, count), ...] across all questions, most used first, then by name."""
    counter = Counter(tag for q in questions for tag in q.tag_list)
    return sorted(counter.items(), key=lambda item: (-item[1], item[0].lower()))
