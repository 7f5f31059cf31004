"""Tests for the fever heat meter."""

import pytest

from danger_wall.fever import FEVER_LEVELS, FeverSystem, level_for_heat


@pytest.fixture
def fever(clock):
    return FeverSystem(clock, rush_duration_ms=10000.0)


class TestLevels:
    """Heat thresholds and multipliers."""

    @pytest.mark.parametrize(
        "heat,level",
        [(0, 0), (24.9, 0), (25, 1), (49.9, 1), (50, 2), (74, 2), (75, 3), (99.9, 3), (100, 4)],
    )
    def test_level_for_heat(self, heat, level):
        """Level is the highest threshold reached."""
        assert level_for_heat(heat) == level

    @pytest.mark.parametrize("level,multiplier", [(0, 1.0), (1, 1.2), (2, 1.5), (3, 2.0), (4, 3.0)])
    def test_multiplier_table(self, fever, level, multiplier):
        fever.state.level = level
        assert fever.get_score_multiplier() == multiplier
        assert fever.get_level_name() == FEVER_LEVELS[level]['name']

    def test_add_heat_updates_level(self, fever):
        fever.add_heat(60)
        assert fever.state.level == 2
        assert fever.get_heat_percentage() == 60


class TestFeverRush:
    """Max-multiplier state at full heat."""

    def test_full_heat_triggers_rush(self, fever):
        """Adding 100 heat from cold goes straight into a rush."""
        fever.add_heat(100)

        assert fever.state.fever_rush_active
        assert fever.state.level == 4
        assert fever.state.heat == 100
        assert fever.get_score_multiplier() == 3.0

    def test_heat_is_clamped(self, fever):
        fever.add_heat(250)
        assert fever.state.heat == 100

    def test_heat_frozen_during_rush(self, fever):
        """Neither new heat nor decay moves the meter during a rush."""
        fever.trigger_fever_rush()
        fever.add_heat(5)
        fever.apply_decay(1000, 0.5, True)
        fever.apply_decay(1000, 0.5, False, has_error=True)

        assert fever.state.heat == 100
        assert fever.state.level == 4

    def test_rush_ends_after_duration(self, fever, clock):
        fever.trigger_fever_rush()

        clock.advance(9999)
        assert fever.update_fever_rush() is True
        assert fever.get_fever_rush_time_left() == pytest.approx(1)

        clock.advance(1)
        assert fever.update_fever_rush() is False
        assert not fever.state.fever_rush_active
        assert fever.state.heat == 0
        assert fever.state.level == 0

    def test_update_is_idempotent(self, fever, clock):
        """Polling twice at the same instant changes nothing."""
        fever.trigger_fever_rush()
        clock.advance(5000)

        assert fever.update_fever_rush() is True
        assert fever.update_fever_rush() is True
        assert fever.state.heat == 100

    def test_rush_time_left_when_inactive(self, fever):
        assert fever.get_fever_rush_time_left() == 0


class TestDecay:
    """Heat loss over time and on mistakes."""

    @pytest.mark.parametrize(
        "position,is_typing,expected",
        [
            (0.5, True, 45.0),   # normal rate
            (0.8, True, 43.0),   # safe zone extra
            (0.5, False, 40.0),  # inactivity
        ],
    )
    def test_decay_rates(self, fever, position, is_typing, expected):
        fever.add_heat(50)
        fever.apply_decay(1000, position, is_typing)
        assert fever.state.heat == pytest.approx(expected)

    def test_error_is_instant(self, fever):
        fever.add_heat(50)
        fever.apply_decay(0, 0.5, True, has_error=True)
        assert fever.state.heat == 35

    def test_remove_heat_floors_at_zero(self, fever):
        fever.add_heat(10)
        fever.remove_heat(50)
        assert fever.state.heat == 0

    def test_typing_error_breaks_streak(self, fever):
        fever.on_perfect_word()
        fever.on_typing_error()

        assert fever.state.perfect_word_streak == 0
        assert fever.state.heat == 0


class TestHeatTriggers:
    """Events that generate heat."""

    def test_perfect_words_stack(self, fever):
        fever.on_perfect_word()
        fever.on_perfect_word()

        assert fever.state.perfect_word_streak == 2
        assert fever.state.heat == 26
        assert fever.state.level == 1

    def test_danger_zone_typing(self, fever):
        fever.on_danger_zone_typing(0.15, 1000)
        assert fever.state.heat == pytest.approx(4.0)

    def test_no_danger_heat_outside_zone(self, fever):
        fever.on_danger_zone_typing(0.5, 1000)
        assert fever.state.heat == 0

    @pytest.mark.parametrize("position,expected", [(0.95, 15), (0.9, 0), (0.5, 0)])
    def test_right_wall_touch(self, fever, position, expected):
        fever.on_right_wall_touch(position)
        assert fever.state.heat == expected

    @pytest.mark.parametrize(
        "current,average,expected",
        [(50, 40, 0), (70, 40, 6.5), (200, 40, 11.0)],
    )
    def test_wpm_burst(self, fever, current, average, expected):
        fever.on_wpm_burst(current, average)
        assert fever.state.heat == pytest.approx(expected)

    def test_combo_increase(self, fever):
        fever.on_combo_increase(4)
        assert fever.state.heat == 6

    def test_reset(self, fever):
        fever.add_heat(100)
        fever.reset()
        assert fever.state.heat == 0
        assert not fever.state.fever_rush_active
