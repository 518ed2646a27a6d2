from esper import World

from tilematch.components.board_state import BoardState


def get_board_state(world: World) -> BoardState:
    """Return the shared BoardState component, creating it if absent."""
    existing = list(world.get_component(BoardState))
    if existing:
        return existing[0][1]
    world.create_entity(BoardState())
    return list(world.get_component(BoardState))[0][1]
