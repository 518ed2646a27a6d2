import pytest

from tests.helpers import build_game, record, rows_of
from tilematch.components.board_state import Phase
from tilematch.events.bus import (
    EVENT_TILE_SWAP_FINALIZE,
    EVENT_TILE_SWAP_INVALID,
    EVENT_TILE_SWAP_REJECTED,
    EVENT_TILE_SWAP_REQUEST,
    EVENT_TILE_SWAP_VALID,
)
from tilematch.systems.match import SwapOutcome

LAYOUT = rows_of("""
    a b c d
    b c d a
    a a b c
    c d a b
""")


@pytest.fixture
def game():
    return build_game(LAYOUT)


def test_layout_starts_without_matches(game):
    from tilematch.systems.match_finder import find_all_matches
    assert not find_all_matches(game.board.tokens())


@pytest.mark.parametrize("src,dst", [
    ((0, 0), (0, 2)),   # two columns apart
    ((0, 0), (2, 0)),   # two rows apart
    ((0, 0), (1, 1)),   # diagonal
    ((1, 1), (1, 1)),   # same cell
])
def test_non_adjacent_swaps_rejected(game, src, dst):
    before = game.board.tokens()
    rejected = record(game.bus, EVENT_TILE_SWAP_REJECTED)
    assert game.match.request_swap(src, dst) is SwapOutcome.REJECTED_INVALID
    assert game.board.tokens() == before
    assert game.state.phase is Phase.IDLE
    assert game.state.moves_remaining == 30
    assert rejected and rejected[-1]['reason'] == 'invalid'


def test_out_of_bounds_swap_rejected(game):
    before = game.board.tokens()
    assert game.match.request_swap((3, 3), (3, 4)) is SwapOutcome.REJECTED_INVALID
    assert game.match.request_swap((-1, 0), (0, 0)) is SwapOutcome.REJECTED_INVALID
    assert game.board.tokens() == before


def test_swap_into_empty_cell_rejected(game):
    game.board.board.set(0, 0, None)
    assert game.match.request_swap((0, 0), (0, 1)) is SwapOutcome.REJECTED_INVALID


def test_non_matching_swap_reverts_grid_exactly(game):
    before = game.board.tokens()
    invalid = record(game.bus, EVENT_TILE_SWAP_INVALID)
    finalize = record(game.bus, EVENT_TILE_SWAP_FINALIZE)
    assert game.match.request_swap((0, 0), (0, 1)) is SwapOutcome.REVERTED
    assert game.board.tokens() == before
    assert invalid == [{'src': (0, 0), 'dst': (0, 1)}]
    assert finalize == []
    assert game.state.phase is Phase.IDLE
    assert game.state.moves_remaining == 30
    assert game.state.score == 0


def test_matching_swap_commits_and_spends_a_move(game):
    valid = record(game.bus, EVENT_TILE_SWAP_VALID)
    finalize = record(game.bus, EVENT_TILE_SWAP_FINALIZE)
    assert game.match.request_swap((2, 2), (3, 2)) is SwapOutcome.ACCEPTED
    assert valid == [{'src': (2, 2), 'dst': (3, 2)}]
    groups = finalize[0]['matches']
    assert [(g.token, g.positions) for g in groups] == [('a', ((2, 0), (2, 1), (2, 2)))]
    assert game.state.moves_remaining == 29
    assert game.state.score >= 30
    assert game.state.phase is Phase.IDLE
    assert game.board.board.is_full()


def test_swap_request_event_routes_to_match_system(game):
    game.bus.emit(EVENT_TILE_SWAP_REQUEST, src=(2, 2), dst=(3, 2))
    assert game.match.last_outcome is SwapOutcome.ACCEPTED
    game.bus.emit(EVENT_TILE_SWAP_REQUEST, src=[0, 0], dst=[0, 2])
    assert game.match.last_outcome is SwapOutcome.REJECTED_INVALID


def test_swap_rejected_while_busy(game):
    game.state.phase = Phase.RESOLVING
    rejected = record(game.bus, EVENT_TILE_SWAP_REJECTED)
    before = game.board.tokens()
    assert game.match.request_swap((2, 2), (3, 2)) is SwapOutcome.REJECTED_BUSY
    assert rejected[-1]['reason'] == 'busy'
    assert game.board.tokens() == before
    game.state.phase = Phase.SWAP_PENDING
    assert game.match.request_swap((2, 2), (3, 2)) is SwapOutcome.REJECTED_BUSY


def test_combo_resets_on_each_player_swap(game):
    game.state.combo_level = 7
    game.match.request_swap((2, 2), (3, 2))
    assert 1 <= game.state.combo_level < 7
