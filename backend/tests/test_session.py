import random

import pytest

from memory_game.errors import ConfigurationError
from memory_game.services.games.difficulty import DIFFICULTY_SETTINGS
from memory_game.services.games.high_scores import HighScoreStore
from memory_game.services.games.session import GameSession, GameStatus


def pairs(session):
    by_symbol = {}
    for card in session.state.cards:
        by_symbol.setdefault(card.symbol, []).append(card.position)
    return list(by_symbol.values())


def mismatch(session):
    (a, _), (b, _) = pairs(session)[:2]
    return a, b


def solve_all(session, scheduler):
    groups = pairs(session)
    for i, (a, b) in enumerate(groups):
        session.flip_card(a)
        session.flip_card(b)
        if i < len(groups) - 1:
            scheduler.advance(1)


def test_start_game_builds_fresh_state(session, recorder):
    state = session.start_game('easy')
    assert len(state.cards) == 12
    assert state.time_remaining == 60
    assert state.moves == 0
    assert state.flipped == [] and state.solved == set()
    assert session.status == GameStatus.PLAYING
    assert recorder.names() == ['game_started', 'time_updated', 'moves_updated']


def test_flip_before_start_is_ignored(session):
    assert session.status == GameStatus.NOT_STARTED
    assert session.flip_card(0) is False
    assert session.state.moves == 0


def test_flipping_same_card_twice_is_noop(session):
    session.start_game()
    assert session.flip_card(3) is True
    assert session.flip_card(3) is False
    assert session.state.flipped == [3]
    assert session.state.moves == 1


def test_third_flip_ignored_until_resolution(session, scheduler):
    session.start_game()
    a, b = mismatch(session)
    third = next(p for p in range(12) if p not in (a, b))
    session.flip_card(a)
    session.flip_card(b)
    assert session.flip_card(third) is False
    assert session.state.moves == 2
    scheduler.advance(1)
    assert session.flip_card(third) is True
    assert session.state.moves == 3


def test_match_stays_revealed_after_resolution(session, scheduler, recorder):
    session.start_game()
    a, b = pairs(session)[0]
    session.flip_card(a)
    session.flip_card(b)
    assert session.state.solved == {a, b}
    assert recorder.of('cards_matched') == [{'positions': [a, b]}]
    scheduler.advance(1)
    assert session.state.flipped == []
    assert session.state.solved == {a, b}
    assert recorder.of('cards_unflipped') == []


def test_mismatch_unflips_after_delay(session, scheduler, recorder):
    session.start_game()
    a, b = mismatch(session)
    session.flip_card(a)
    session.flip_card(b)
    scheduler.advance(0.5)
    assert session.state.flipped == [a, b]
    scheduler.advance(0.5)
    assert session.state.flipped == []
    assert session.state.solved == set()
    assert recorder.of('cards_unflipped') == [{'positions': [a, b]}]


def test_flip_events_carry_symbol_and_move_count(session, recorder):
    session.start_game()
    recorder.clear()
    session.flip_card(5)
    assert recorder.of('card_flipped') == [{'position': 5, 'symbol': session.state.cards[5].symbol}]
    assert recorder.of('moves_updated') == [{'count': 1}]


def test_out_of_range_flip_is_ignored(session):
    session.start_game()
    assert session.flip_card(12) is False
    assert session.flip_card(-1) is False
    assert session.state.moves == 0


def test_ticking_out_the_clock_loses(session, scheduler, recorder, high_scores):
    session.start_game('easy')
    scheduler.advance(59)
    assert session.status == GameStatus.PLAYING
    assert session.state.time_remaining == 1
    scheduler.advance(1)
    assert session.status == GameStatus.LOST
    assert session.state.time_remaining == 0
    assert session.state.score is None
    assert len(recorder.of('game_lost')) == 1
    assert high_scores.top('easy') == []
    # frozen afterwards
    scheduler.advance(10)
    assert session.state.time_remaining == 0
    assert session.flip_card(0) is False
    assert scheduler.pending() == []


def test_manual_ticks_lose_after_time_limit(session):
    session.start_game('easy')
    for _ in range(60):
        session.tick()
    assert session.status == GameStatus.LOST
    session.tick()
    assert session.state.time_remaining == 0


def test_winning_scores_and_records(session, scheduler, recorder, high_scores):
    session.start_game('easy')
    solve_all(session, scheduler)
    state = session.state
    assert session.status == GameStatus.WON
    assert state.moves == 12
    assert state.time_remaining == 55
    # 12 * 100 + 55 * 10 - 12 * 5
    assert state.score == 1690
    won = recorder.of('game_won')
    assert len(won) == 1
    assert won[0]['score'] == 1690
    assert won[0]['moves'] == 12
    assert won[0]['time_remaining'] == 55
    assert won[0]['high_scores'] == [{'score': 1690, 'moves': 12, 'timeRemaining': 55}]
    assert [r.score for r in high_scores.top('easy')] == [1690]


def test_clock_stops_after_win_and_resolution_still_runs(session, scheduler, recorder):
    session.start_game('easy')
    solve_all(session, scheduler)
    assert len(session.state.flipped) == 2
    scheduler.advance(10)
    assert session.state.time_remaining == 55
    assert session.state.flipped == []
    assert len(session.state.solved) == 12
    assert recorder.of('cards_unflipped') == []


def test_reset_during_pending_resolution_ignores_stale_callback(session, scheduler, recorder):
    session.start_game()
    a, b = mismatch(session)
    session.flip_card(a)
    session.flip_card(b)
    scheduler.advance(0.5)
    old_generation = session.generation
    session.reset()
    assert session.generation == old_generation + 1
    session.flip_card(0)
    recorder.clear()
    # the old resolution falls due now
    scheduler.advance(0.5)
    assert session.state.flipped == [0]
    assert session.state.moves == 1
    assert recorder.of('cards_unflipped') == []


def test_reset_cancels_previous_timer(session, scheduler):
    session.start_game('easy')
    scheduler.advance(0.5)
    session.reset('easy')
    scheduler.advance(1)
    assert session.state.time_remaining == 59


def test_reset_can_switch_difficulty(session):
    session.start_game('easy')
    state = session.reset('hard')
    assert len(state.cards) == 24
    assert state.time_remaining == 120
    assert session.difficulty == 'hard'


def test_bad_difficulty_leaves_current_game_alone(session):
    state = session.start_game('easy')
    session.flip_card(0)
    generation = session.generation
    with pytest.raises(ConfigurationError):
        session.reset('nightmare')
    assert session.state is state
    assert session.generation == generation
    assert session.state.moves == 1


def test_select_difficulty_stops_game_until_restart(session, scheduler, recorder):
    session.start_game('easy')
    session.select_difficulty('medium')
    assert session.status == GameStatus.NOT_STARTED
    assert session.flip_card(0) is False
    scheduler.advance(5)
    assert recorder.of('time_updated')[-1] == {'seconds': 60}
    assert recorder.of('difficulty_selected') == [{'difficulty': 'medium'}]
    state = session.start_game()
    assert len(state.cards) == 16
    assert state.time_remaining == 90


def test_select_unknown_difficulty_raises(session):
    with pytest.raises(ConfigurationError):
        session.select_difficulty('nope')
    assert session.difficulty == 'easy'


def test_close_stops_timers(session, scheduler):
    session.start_game()
    session.close()
    scheduler.advance(3)
    assert session.state.time_remaining == 60
    assert scheduler.pending() == []


def test_state_dict_hides_face_down_symbols(session):
    session.start_game()
    session.flip_card(2)
    data = session.to_dict()
    assert data['status'] == 'playing'
    assert data['cards'][2]['symbol'] == session.state.cards[2].symbol
    assert all(c['symbol'] is None for c in data['cards'] if c['position'] != 2)
    assert session.state.to_dict(reveal=True)['cards'][0]['symbol'] is not None


def test_flip_solved_card_is_ignored(session, scheduler):
    session.start_game()
    a, b = pairs(session)[0]
    session.flip_card(a)
    session.flip_card(b)
    scheduler.advance(1)
    assert session.flip_card(a) is False
    assert a not in session.state.flipped
    assert session.state.moves == 2


def test_flips_after_win_are_ignored(session, scheduler):
    session.start_game()
    solve_all(session, scheduler)
    scheduler.advance(1)
    assert session.status == GameStatus.WON
    assert session.flip_card(0) is False
    assert session.state.flipped == []
    assert session.state.moves == 12


class BrokenStorage:
    def get(self, key):
        return None

    def set(self, key, value):
        raise RuntimeError('database is gone')


def test_win_is_reported_when_high_score_write_fails(scheduler, recorder):
    store = HighScoreStore(BrokenStorage(), DIFFICULTY_SETTINGS.keys())
    session = GameSession(store, scheduler, notify=recorder, rng=random.Random(5))
    session.start_game('easy')
    solve_all(session, scheduler)
    assert session.status == GameStatus.WON
    won = recorder.of('game_won')
    assert len(won) == 1
    assert won[0]['score'] == session.state.score
    assert won[0]['recorded'] is False
    assert won[0]['high_scores'] == []


def test_win_payload_marks_score_recorded(session, scheduler, recorder):
    session.start_game()
    solve_all(session, scheduler)
    assert recorder.of('game_won')[0]['recorded'] is True
