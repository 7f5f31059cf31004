"""Tests for boss battles."""

import math

import pytest

from conftest import FixedWordSource, RecordingWordSource
from danger_wall.boss import BOSS_TYPES, DEFENSE_WORDS, BossSystem
from danger_wall.components import BossPhase, BossScore


@pytest.fixture
def boss(clock, word_source, settings, rng):
    return BossSystem(clock, word_source, settings, rng)


@pytest.fixture
def golem(boss, clock):
    """Syntax Golem in combat at t=3000. Limbs: apple, berry, cherry, grape."""
    boss.start('syntaxGolem')
    clock.advance(3000)
    boss.update()
    return boss


def event_types(events):
    return [e.type for e in events]


def start_warning(boss, clock):
    clock.advance(boss.get_attack_interval())
    return boss.update()


class TestSetup:
    """Trigger, limbs and countdown."""

    def test_register_word(self, boss):
        results = [boss.register_word() for _ in range(12)]
        assert results == [False] * 11 + [True]

    def test_start_deals_limbs(self, boss):
        boss_type = boss.start('syntaxGolem')

        assert boss_type is BOSS_TYPES['syntaxGolem']
        assert boss.state.phase == BossPhase.COUNTDOWN
        assert [limb.word for limb in boss.state.limbs] == ['apple', 'berry', 'cherry', 'grape']
        assert [limb.angle for limb in boss.state.limbs] == pytest.approx(
            [0, math.pi / 2, math.pi, 3 * math.pi / 2]
        )
        assert boss.state.current_hp == 100
        assert boss.hearts == 5
        assert event_types(boss.take_events()) == ['boss_countdown']

    def test_random_archetype(self, boss):
        boss_type = boss.start()
        assert boss_type.key in BOSS_TYPES
        assert len(boss.state.limbs) == boss_type.limb_count

    def test_start_twice_rejected(self, boss):
        boss.start()
        with pytest.raises(RuntimeError):
            boss.start()

    def test_short_word_pool_rejected(self, clock, settings, rng):
        boss = BossSystem(clock, FixedWordSource(boss_words=['one']), settings, rng)
        with pytest.raises(ValueError):
            boss.start('syntaxGolem')
        assert not boss.is_engaged()

    def test_countdown_then_combat(self, boss, clock):
        boss.start('syntaxGolem')
        boss.take_events()

        clock.advance(2999)
        assert boss.update() == []
        assert boss.state.phase == BossPhase.COUNTDOWN

        clock.advance(1)
        assert event_types(boss.update()) == ['boss_combat_started']
        assert boss.state.phase == BossPhase.COMBAT
        assert boss.state.last_attack_time == 3000

    def test_limbs_inert_during_countdown(self, boss):
        boss.start('syntaxGolem')
        assert boss.attempt_destroy_limb('apple').success is False
        assert boss.state.total_attempts == 0


class TestLimbs:
    """Limb destruction and the typo penalty."""

    def test_hit_is_case_insensitive(self, golem):
        hit = golem.attempt_destroy_limb('APPLE')

        assert hit.success
        assert hit.limb.word == 'apple'
        assert golem.state.limbs[0].destroyed
        assert golem.state.destroyed_limbs == 1

    def test_destroyed_limb_is_inert(self, golem):
        golem.attempt_destroy_limb('apple')
        hit = golem.attempt_destroy_limb('apple')

        assert not hit.success
        assert golem.state.destroyed_limbs == 1
        assert golem.state.missed_attempts == 1

    def test_miss_costs_three_seconds(self, golem, clock):
        """A miss at the start of a 45 s fight leaves 42 s."""
        golem.attempt_destroy_limb('zzz')

        assert golem.state.time_remaining == 42000
        assert golem.state.duration == 42000
        assert not golem.state.perfect_boss

        golem.update_timer()
        assert golem.state.time_remaining == 42000

        clock.advance(1000)
        golem.update_timer()
        assert golem.state.time_remaining == 41000

    def test_penalty_floor(self, golem, clock):
        clock.advance(38000)
        golem.attempt_destroy_limb('zzz')
        assert golem.state.time_remaining == 5000

        golem.attempt_destroy_limb('zzz')
        assert golem.state.time_remaining == 5000

        clock.advance(1000)
        golem.attempt_destroy_limb('zzz')
        assert golem.state.time_remaining == 4000

    def test_penalty_never_adds_time(self, golem, clock):
        """Already under the floor, a miss leaves the clock where it was."""
        clock.advance(41000)
        golem.update_timer()
        assert golem.state.time_remaining == 4000

        golem.attempt_destroy_limb('zzz')

        assert golem.state.time_remaining == 4000
        assert golem.state.duration == 45000
        assert golem.state.missed_attempts == 1

    def test_matching_goes_through_word_source(self, clock, settings, rng):
        source = RecordingWordSource()
        boss = BossSystem(clock, source, settings, rng)
        boss.start('syntaxGolem')
        clock.advance(3000)
        boss.update()

        boss.validate_limb_input('ap')

        assert ('ap', 'apple') in source.matched

    def test_all_limbs_is_victory(self, golem):
        golem.take_events()
        for word in ('apple', 'berry', 'cherry'):
            assert not golem.attempt_destroy_limb(word).all_destroyed
        hit = golem.attempt_destroy_limb('grape')

        assert hit.all_destroyed
        assert golem.state.phase == BossPhase.VICTORY
        events = golem.take_events()
        assert event_types(events) == ['limb_destroyed'] * 4 + ['boss_victory']


class TestAttacks:
    """Attack cycle, defense and counters."""

    @pytest.mark.parametrize(
        "key,destroyed,interval",
        [
            ('bugKraken', 0, 8000),
            ('bugKraken', 2, 8000),
            ('bugKraken', 3, 6000),
            ('syntaxGolem', 0, 6000),
            ('syntaxGolem', 1, 4000),
            ('syntaxGolem', 2, 4000),
            ('syntaxGolem', 3, 2000),
        ],
    )
    def test_attack_interval(self, boss, key, destroyed, interval):
        boss.start(key)
        for limb in boss.state.limbs[:destroyed]:
            limb.destroyed = True
        assert boss.get_attack_interval() == interval

    def test_warning_after_interval(self, golem, clock):
        clock.advance(5999)
        assert golem.update() == []

        clock.advance(1)
        events = golem.update()

        assert event_types(events) == ['attack_warning']
        assert golem.state.phase == BossPhase.ATTACK_WARNING
        assert golem.state.current_defense_word in DEFENSE_WORDS
        assert events[0].data['defense_word'] == golem.state.current_defense_word
        assert golem.state.total_attacks == 1

    def test_block(self, golem, clock):
        """Typing the defense word in the window blocks the attack."""
        start_warning(golem, clock)
        result = golem.attempt_defense(golem.state.current_defense_word.upper())

        assert result.success
        assert result.score == 50
        assert golem.state.phase == BossPhase.COMBAT
        assert golem.state.attacks_blocked == 1

        clock.advance(2500)
        assert 'attack_hit' not in event_types(golem.update())
        assert golem.state.current_hp == 100

    def test_unblocked_attack_hits(self, golem, clock):
        start_warning(golem, clock)
        clock.advance(2500)
        events = golem.update()

        assert event_types(events) == ['attack_hit']
        assert events[0].data['damage'] == 20
        assert golem.state.current_hp == 80
        assert golem.hearts == 4
        assert not golem.state.no_damage_taken
        assert golem.state.phase == BossPhase.COMBAT

    def test_wrong_defense_word(self, golem, clock):
        start_warning(golem, clock)
        result = golem.attempt_defense('notaword')

        assert not result.success
        assert result.reason == 'wrong_word'
        assert golem.state.phase == BossPhase.ATTACK_WARNING
        assert golem.state.duration == 45000

    def test_defense_without_attack(self, golem):
        result = golem.attempt_defense('block')
        assert result.reason == 'no_attack'

    def test_counter_attack(self, golem, clock):
        """Destroying the attacking limb cancels its attack."""
        start_warning(golem, clock)
        attacker = golem.state.attacking_limb
        golem.take_events()

        hit = golem.attempt_destroy_limb(attacker.word)

        assert hit.countered
        assert golem.state.phase == BossPhase.COMBAT
        assert golem.state.attacking_limb is None
        assert golem.take_events()[0].data['countered'] is True

    def test_destroying_other_limb_keeps_warning(self, golem, clock):
        start_warning(golem, clock)
        attacker = golem.state.attacking_limb
        other = next(limb for limb in golem.active_limbs() if limb.id != attacker.id)

        hit = golem.attempt_destroy_limb(other.word)

        assert hit.success
        assert not hit.countered
        assert golem.state.phase == BossPhase.ATTACK_WARNING


class TestSpecialMove:
    """The one-shot attack at the final limb."""

    def test_last_limb_triggers_special(self, golem):
        for word in ('apple', 'berry', 'cherry'):
            golem.attempt_destroy_limb(word)
        golem.take_events()

        events = golem.update()

        assert event_types(events) == ['special_move_warning']
        assert events[0].data['chant'] == 'catch the error and handle gracefully'
        assert golem.state.phase == BossPhase.SPECIAL_WARNING
        assert golem.state.special_move_triggered

    def test_chant_blocks_special(self, golem, clock):
        for word in ('apple', 'berry', 'cherry'):
            golem.attempt_destroy_limb(word)
        golem.update()

        result = golem.attempt_special_defense('Catch the error and handle gracefully')
        assert result.success
        assert result.score == 100
        assert golem.state.special_move_blocked
        assert golem.state.phase == BossPhase.COMBAT

        clock.advance(12000)
        types = event_types(golem.update())
        assert 'attack_hit' not in types
        assert 'special_move_warning' not in types
        assert golem.state.current_hp == 100

    def test_unblocked_special_hits_hard(self, golem, clock):
        for word in ('apple', 'berry', 'cherry'):
            golem.attempt_destroy_limb(word)
        golem.update()

        clock.advance(12000)
        events = golem.update()

        assert events[0].type == 'attack_hit'
        assert events[0].data['is_special'] is True
        assert golem.state.current_hp == 40
        assert golem.hearts == 2

        # Never a second time
        clock.advance(12000)
        assert 'special_move_warning' not in event_types(golem.update())

    def test_special_replaces_pending_warning(self, golem, clock):
        start_warning(golem, clock)
        attacker = golem.state.attacking_limb
        for limb in golem.active_limbs():
            if limb.id != attacker.id:
                golem.attempt_destroy_limb(limb.word)

        golem.update()

        assert golem.state.phase == BossPhase.SPECIAL_WARNING
        assert golem.state.attacking_limb is None
        assert golem.state.total_attacks == 2

    def test_wrong_chant(self, golem):
        for word in ('apple', 'berry', 'cherry'):
            golem.attempt_destroy_limb(word)
        golem.update()

        assert golem.attempt_special_defense('catch the error').reason == 'wrong_chant'
        assert golem.attempt_defense('block').reason == 'no_attack'

    def test_chant_without_special(self, golem):
        assert golem.attempt_special_defense('anything').reason == 'no_special_move'


class TestHearts:
    """HP and defeat."""

    @pytest.mark.parametrize("hp,hearts", [(100, 5), (81, 5), (80, 4), (21, 2), (1, 1), (0, 0)])
    def test_hearts(self, golem, hp, hearts):
        golem.state.current_hp = hp
        assert golem.hearts == hearts

    def test_damage_clamped(self, golem):
        golem.take_damage(150)
        assert golem.state.current_hp == 0
        assert golem.is_dead()

    def test_defeat_beats_timeout(self, golem, clock):
        """Dead at the deadline counts as a defeat."""
        golem.take_damage(100)
        clock.advance(45000)
        types = event_types(golem.update())

        assert 'boss_defeat' in types
        assert 'boss_timeout' not in types
        assert golem.state.phase == BossPhase.DEFEAT


class TestResolution:
    """End-of-fight scoring and exit."""

    def test_flawless_victory_score(self, golem):
        for word in ('apple', 'berry', 'cherry', 'grape'):
            golem.attempt_destroy_limb(word)

        score = golem.state.final_score
        assert isinstance(score, BossScore)
        assert score.limb_score == 400
        assert score.time_bonus == 450
        assert score.completion_bonus == 500
        assert score.perfect_bonus == 500
        assert score.speed_bonus == 900
        assert score.perfect_defense_bonus == 500
        assert score.time_taken == 0
        assert score.total_score == 3250

    def test_partial_timeout_score(self, golem, clock):
        """Two limbs in three attempts: 200 * (2/3)^2, nothing else."""
        golem.attempt_destroy_limb('apple')
        golem.attempt_destroy_limb('berry')
        golem.attempt_destroy_limb('zzz')
        golem.take_events()

        clock.advance(42000)
        events = golem.update()

        assert event_types(events) == ['boss_timeout']
        score = events[0].data['score']
        assert score.accuracy == pytest.approx(2 / 3)
        assert score.completion_bonus == 0
        assert score.speed_bonus == 0
        assert score.time_bonus == 0
        assert score.total_score == 88

    def test_blocks_count_toward_score(self, golem, clock):
        start_warning(golem, clock)
        golem.attempt_defense(golem.state.current_defense_word)
        score = golem.calculate_score()

        assert score.defense_bonus == 50
        assert score.attacks_blocked == 1
        assert score.total_attacks == 1

    def test_timeout_exit(self, golem, clock):
        golem.take_events()
        clock.advance(45000)
        assert event_types(golem.update()) == ['boss_timeout']
        assert golem.update() == []

        clock.advance(2999)
        assert golem.update() == []

        clock.advance(1)
        events = golem.update()
        assert event_types(events) == ['boss_exit']
        assert events[0].data['outcome'] == 'timeout'
        assert golem.state.phase == BossPhase.IDLE

    def test_timer_idempotent(self, golem, clock):
        clock.advance(1234)
        golem.update_timer()
        golem.update_timer()
        assert golem.state.time_remaining == 45000 - 1234

    def test_reset(self, golem):
        golem.reset()
        assert golem.state.phase == BossPhase.IDLE
        assert golem.words_since_boss == 0


class TestValidation:
    """Live prefix feedback."""

    def test_limb_prefix(self, golem):
        progress = golem.validate_limb_input('ap')

        assert progress.valid
        assert progress.progress == 2
        assert progress.limb.word == 'apple'
        assert not progress.is_complete

    def test_limb_prefix_error(self, golem):
        progress = golem.validate_limb_input('apx')
        assert progress.has_error
        assert not progress.valid

    def test_limb_no_match(self, golem):
        progress = golem.validate_limb_input('zz')
        assert not progress.valid
        assert progress.has_error
        assert progress.limb is None

    def test_destroyed_limbs_ignored(self, golem):
        golem.attempt_destroy_limb('apple')
        assert golem.validate_limb_input('ap').limb is None

    def test_defense_outside_warning(self, golem):
        assert not golem.validate_defense_input('block').valid

    def test_special_chant_prefix(self, golem):
        for word in ('apple', 'berry', 'cherry'):
            golem.attempt_destroy_limb(word)
        golem.update()

        progress = golem.validate_special_chant('catch th')
        assert progress.valid
        assert progress.progress == 8
