GRID_ROWS = 9
GRID_COLS = 6

# Default token palette; names are opaque, only equality matters.
TOKEN_TYPES = ['manti', 'belyash', 'cheburek', 'samsa', 'pakhlava', 'borsok']

MIN_MATCH = 3
POINTS_PER_TOKEN = 10
INITIAL_MOVES = 30
TARGET_SCORE = 1000

# Upper bound on layouts tried when regenerating a deadlocked board.
RESPAWN_MAX_ATTEMPTS = 200

BEST_SCORE_KEY = "best_score"
