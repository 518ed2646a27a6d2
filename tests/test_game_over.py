from tests.helpers import build_game, record, rows_of
from tilematch.components.board_state import GameOutcome, Phase
from tilematch.components.game_rules import GameRules
from tilematch.events.bus import (
    EVENT_ANIMATION_START,
    EVENT_BOARD_RESHUFFLED,
    EVENT_GAME_OVER,
    EVENT_GAME_RESET,
    EVENT_SCORE_CHANGED,
    EVENT_TILE_SWAP_REJECTED,
)
from tilematch.systems.match import SwapOutcome
from tilematch.systems.match_finder import find_all_matches

# (2,2)<->(3,2) completes an 'a' triple in row 2.
LAYOUT = rows_of("""
    a b c d
    b c d a
    a a b c
    c d a b
""")

VALID_SWAP = ((2, 2), (3, 2))


def test_reaching_target_wins():
    game = build_game(LAYOUT, rules=GameRules(target_score=30))
    over = record(game.bus, EVENT_GAME_OVER)

    assert game.match.request_swap(*VALID_SWAP) is SwapOutcome.ACCEPTED

    assert game.state.phase is Phase.GAME_OVER
    assert game.state.outcome is GameOutcome.WIN
    assert len(over) == 1
    assert over[0]['outcome'] is GameOutcome.WIN
    assert over[0]['score'] == game.state.score >= 30
    assert over[0]['target_score'] == 30
    assert game.resolution.report.outcome is GameOutcome.WIN


def test_running_out_of_moves_loses():
    game = build_game(LAYOUT, rules=GameRules(initial_moves=1, target_score=10 ** 9))
    over = record(game.bus, EVENT_GAME_OVER)

    game.match.request_swap(*VALID_SWAP)

    assert game.state.moves_remaining == 0
    assert game.state.outcome is GameOutcome.LOSE
    assert over[0]['outcome'] is GameOutcome.LOSE
    assert over[0]['moves_remaining'] == 0


def test_win_takes_precedence_on_last_move():
    game = build_game(LAYOUT, rules=GameRules(initial_moves=1, target_score=30))
    game.match.request_swap(*VALID_SWAP)
    assert game.state.moves_remaining == 0
    assert game.state.outcome is GameOutcome.WIN


def test_swaps_rejected_after_game_over():
    game = build_game(LAYOUT, rules=GameRules(target_score=30))
    rejected = record(game.bus, EVENT_TILE_SWAP_REJECTED)
    game.match.request_swap(*VALID_SWAP)
    before = game.board.tokens()

    assert game.match.request_swap((0, 0), (1, 0)) is SwapOutcome.REJECTED_BUSY

    assert rejected[-1]['reason'] == 'busy'
    assert game.board.tokens() == before
    assert game.state.phase is Phase.GAME_OVER


def test_reset_restores_a_fresh_game():
    game = build_game(LAYOUT, rules=GameRules(target_score=30, initial_moves=5))
    scores = record(game.bus, EVENT_SCORE_CHANGED)
    game.match.request_swap(*VALID_SWAP)
    assert game.state.phase is Phase.GAME_OVER

    game.bus.emit(EVENT_GAME_RESET)

    state = game.state
    assert state.phase is Phase.IDLE
    assert state.outcome is GameOutcome.NONE
    assert state.score == 0
    assert state.moves_remaining == 5
    assert state.combo_level == 0
    assert scores[-1] == {'score': 0, 'delta': 0, 'combo': 0, 'moves_remaining': 5}
    assert game.board.board.is_full()
    assert not find_all_matches(game.board.tokens())


def test_reset_is_ignored_mid_cascade():
    game = build_game(LAYOUT, rules=GameRules(await_animations=True))
    starts = record(game.bus, EVENT_ANIMATION_START)
    game.match.request_swap(*VALID_SWAP)
    assert starts[-1]['kind'] == 'swap'

    game.bus.emit(EVENT_GAME_RESET)

    assert game.state.phase is Phase.RESOLVING
    assert game.state.moves_remaining == 29


def test_reset_publishes_the_fresh_layout():
    game = build_game(LAYOUT, rules=GameRules(target_score=30))
    game.match.request_swap(*VALID_SWAP)
    reshuffles = record(game.bus, EVENT_BOARD_RESHUFFLED)

    positions = game.board.reset()

    assert len(reshuffles) == 1
    payload = reshuffles[0]
    assert payload['reason'] == 'reset'
    assert payload['positions'] == positions == list(game.board.board.positions())
    grid = game.board.tokens()
    assert payload['tokens'] == [(r, c, grid[r][c]) for r, c in positions]
