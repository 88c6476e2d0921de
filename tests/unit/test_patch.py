"""Unit tests for patch values."""

import pytest

from accessgate.domain.value_objects import CLEAR, UNCHANGED, Clear, SetTo, Unchanged, apply_patch


def test_markers_are_singletons() -> None:
    assert Unchanged() is UNCHANGED
    assert Clear() is CLEAR
    assert repr(UNCHANGED) == "UNCHANGED"
    assert repr(CLEAR) == "CLEAR"


def test_apply_unchanged_keeps_current() -> None:
    assert apply_patch(UNCHANGED, "old") == "old"


def test_apply_clear_returns_empty() -> None:
    assert apply_patch(CLEAR, "old") is None
    assert apply_patch(CLEAR, {"a": 1}, {}) == {}


def test_apply_set_to_replaces() -> None:
    assert apply_patch(SetTo("new"), "old") == "new"
    assert apply_patch(SetTo(None), "old") is None


def test_apply_rejects_raw_values() -> None:
    with pytest.raises(TypeError):
        apply_patch("new", "old")  # type: ignore[arg-type]
