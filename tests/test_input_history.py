"""Unit tests for the chat input history."""
from modelverse.ui.widgets import InputHistory


def test_empty_history():
    history = InputHistory()

    assert history.back() is None
    assert history.forward() is None


def test_browse_back_and_forward():
    history = InputHistory()
    for value in ("one", "two", "three"):
        history.add(value)

    assert [history.back(), history.back(), history.back(), history.back()] == ["three", "two", "one", "one"]
    assert history.forward() == "two"
    assert history.forward() == "three"
    # Past the newest entry the input is cleared
    assert history.forward() == ""
    assert history.forward() is None


def test_consecutive_duplicates_and_blanks_skipped():
    history = InputHistory()
    history.add("same")
    history.add("same")
    history.add("")

    assert len(history) == 1


def test_oldest_entries_dropped():
    history = InputHistory(max_size=2)
    for value in ("a", "b", "c"):
        history.add(value)

    assert [history.back(), history.back(), history.back()] == ["c", "b", "b"]


def test_add_resets_browsing():
    history = InputHistory()
    history.add("first")
    history.back()
    history.add("second")

    assert history.back() == "second"
