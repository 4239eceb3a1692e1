"""Tests for the navigation stack."""

from __future__ import annotations

import pytest

from nutriaura.domains.wellness.navigation import (
    LATERAL_TABS,
    SCREEN_METADATA,
    NavigationController,
    ScreenId,
)


@pytest.fixture
def nav() -> NavigationController:
    return NavigationController()


def test_starts_at_welcome_without_back(nav):
    assert nav.current() is ScreenId.WELCOME
    assert nav.stack == (ScreenId.WELCOME,)
    assert nav.can_go_back is False


def test_push_and_pop(nav):
    nav.push(ScreenId.CAMERA)
    nav.push(ScreenId.CONFIRM_PHOTO)
    assert nav.can_go_back is True
    assert nav.pop() is ScreenId.CAMERA
    assert len(nav) == 2


def test_pop_never_empties_stack(nav):
    for _ in range(3):
        assert nav.pop() is ScreenId.WELCOME
    assert len(nav) == 1


def test_single_frame_pop_does_not_bump_generation(nav):
    nav.pop()
    assert nav.generation == 0


def test_same_screen_can_be_pushed_twice(nav):
    nav.push(ScreenId.ALGORITHM_INFO)
    nav.push(ScreenId.ALGORITHM_INFO)
    assert nav.stack[-2:] == (ScreenId.ALGORITHM_INFO, ScreenId.ALGORITHM_INFO)


def test_reset_discards_history(nav):
    nav.push(ScreenId.CAMERA)
    nav.push(ScreenId.QUIZ)
    assert nav.reset_to(ScreenId.RESULTS) is ScreenId.RESULTS
    assert nav.stack == (ScreenId.RESULTS,)
    assert nav.can_go_back is False


def test_generation_increments_per_transition(nav):
    nav.push(ScreenId.CAMERA)
    nav.pop()
    nav.reset_to(ScreenId.FORUM)
    assert nav.generation == 3


def test_open_lateral_tab_resets(nav):
    nav.push(ScreenId.CAMERA)
    nav.open(ScreenId.PROFILE)
    assert nav.stack == (ScreenId.PROFILE,)


def test_open_other_screen_pushes(nav):
    nav.open(ScreenId.ALGORITHM_INFO)
    assert nav.stack == (ScreenId.WELCOME, ScreenId.ALGORITHM_INFO)


def test_string_screen_ids_accepted(nav):
    nav.push("camera")
    assert nav.current() is ScreenId.CAMERA
    with pytest.raises(ValueError):
        nav.push("settings")


def test_metadata_covers_every_screen():
    assert set(SCREEN_METADATA) == set(ScreenId)
    assert set(LATERAL_TABS) == {ScreenId.FORUM, ScreenId.PROGRESS, ScreenId.QUESTS, ScreenId.PROFILE}
