"""Tests for carousel navigation."""

import pytest

from image_variations.core.navigator import CarouselNavigator
from image_variations.models import NavigatorEvent


class TestWraparound:

    def test_next_wraps_to_first(self):
        nav = CarouselNavigator(4)
        nav.select(0)

        for expected in (1, 2, 3):
            assert nav.next() == NavigatorEvent.MOVED
            assert nav.index == expected

        nav.next()
        assert nav.index == 0

    def test_prev_wraps_to_last(self):
        nav = CarouselNavigator(4)
        nav.select(0)

        nav.prev()

        assert nav.index == 3

    def test_single_image_does_not_navigate(self):
        nav = CarouselNavigator(1)
        nav.select(0)

        assert nav.next() == NavigatorEvent.IGNORED
        assert nav.prev() == NavigatorEvent.IGNORED
        assert nav.index == 0
        assert not nav.can_navigate

    def test_closed_navigator_ignores_steps(self):
        nav = CarouselNavigator(3)

        assert nav.next() == NavigatorEvent.IGNORED
        assert nav.index is None


class TestSelection:

    def test_select_opens(self):
        nav = CarouselNavigator(3)

        assert nav.select(2) == NavigatorEvent.OPENED
        assert nav.is_open
        assert nav.index == 2

    def test_select_out_of_range(self):
        nav = CarouselNavigator(3)

        with pytest.raises(IndexError):
            nav.select(3)

    def test_empty_set_ignores_select(self):
        nav = CarouselNavigator(0)

        assert nav.select(0) == NavigatorEvent.IGNORED
        assert not nav.is_open

    def test_close_forgets_index(self):
        nav = CarouselNavigator(3)
        nav.select(1)

        assert nav.close() == NavigatorEvent.CLOSED
        assert nav.index is None
        assert nav.close() == NavigatorEvent.IGNORED


class TestKeys:

    @pytest.mark.parametrize("key, expected", [
        ("ArrowRight", 2),
        ("ArrowLeft", 0),
    ])
    def test_arrow_keys(self, key, expected):
        nav = CarouselNavigator(4)
        nav.select(1)

        nav.handle_key(key)

        assert nav.index == expected

    def test_escape_closes(self):
        nav = CarouselNavigator(4)
        nav.select(1)

        assert nav.handle_key("Escape") == NavigatorEvent.CLOSED
        assert not nav.is_open

    def test_other_keys_ignored(self):
        nav = CarouselNavigator(4)
        nav.select(1)

        assert nav.handle_key("Enter") == NavigatorEvent.IGNORED
        assert nav.index == 1


class TestSwipe:

    def test_small_gesture_does_nothing(self):
        nav = CarouselNavigator(4)
        nav.select(0)

        assert nav.swipe(200, 160) == NavigatorEvent.IGNORED
        assert nav.index == 0

    def test_leftward_swipe_moves_forward(self):
        nav = CarouselNavigator(4)
        nav.select(0)

        assert nav.swipe(200, 140) == NavigatorEvent.MOVED
        assert nav.index == 1

    def test_rightward_swipe_moves_back(self):
        nav = CarouselNavigator(4)
        nav.select(0)

        nav.swipe(100, 160)

        assert nav.index == 3

    def test_exact_threshold_does_not_move(self):
        nav = CarouselNavigator(4)
        nav.select(0)

        nav.swipe(100, 50)

        assert nav.index == 0

    def test_split_gesture(self):
        nav = CarouselNavigator(4)
        nav.select(2)

        nav.begin_gesture(300)
        event = nav.end_gesture(200)

        assert event == NavigatorEvent.MOVED
        assert nav.index == 3

    def test_end_without_begin_is_ignored(self):
        nav = CarouselNavigator(4)
        nav.select(2)

        assert nav.end_gesture(0) == NavigatorEvent.IGNORED


def test_state_snapshot():
    nav = CarouselNavigator(4)
    nav.select(3)

    state = nav.state(NavigatorEvent.OPENED)

    assert state.is_open
    assert state.index == 3
    assert state.total == 4
    assert state.can_navigate
    assert state.event == NavigatorEvent.OPENED
