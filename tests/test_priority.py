import pytest

from conftest import NOW
from src.todo.models import Priority
from src.todo.priority import PriorityKeywords, bucket_for_score, date_proximity_score, detect_priority


def test_urgent_keyword_short_circuits():
    result = detect_priority("urgent: pay rent", NOW)
    assert result.priority is Priority.HIGH
    assert result.score == 90


@pytest.mark.parametrize(
    "text,expected",
    [
        ("pay rent", Priority.LOW),
        ("submit the report tomorrow", Priority.MEDIUM),
        ("call the dentist in 2 hours", Priority.MEDIUM),
        ("buy groceries at the supermarket tomorrow", Priority.LOW),
        ("pay rent every month", Priority.LOW),
        ("please do this asap", Priority.HIGH),
    ],
)
def test_detect_priority_buckets(text, expected):
    assert detect_priority(text, NOW).priority is expected


def test_no_signal_means_no_priority():
    result = detect_priority("buy milk", NOW)
    assert result.priority is None
    assert result.label == "none"


def test_recurrence_lowers_score_but_never_below_zero():
    result = detect_priority("water the plants every day", NOW)
    assert result.score == 0
    assert result.priority is None


def test_detect_priority_is_deterministic():
    first = detect_priority("submit taxes tomorrow", NOW)
    second = detect_priority("submit taxes tomorrow", NOW)
    assert first == second


def test_custom_keywords():
    keywords = PriorityKeywords(urgent=("critical",))
    assert detect_priority("critical bug fix", NOW, keywords=keywords).priority is Priority.HIGH
    assert detect_priority("urgent bug fix", NOW, keywords=keywords).priority is None


def test_score_tables():
    assert date_proximity_score(0.25) == 40
    assert date_proximity_score(12) == 30
    assert date_proximity_score(48) == 15
    assert date_proximity_score(200) == 5
    assert bucket_for_score(70) is Priority.HIGH
    assert bucket_for_score(30) is Priority.MEDIUM
    assert bucket_for_score(5) is Priority.LOW
    assert bucket_for_score(4) is None
