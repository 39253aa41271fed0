# nodi/core/constants.py

# --- Board Dimensions ---
SIZE = 8

# (dr, dc) per compass point, in clockwise order starting at North.
DIRS = {
    "N": (-1, 0),
    "NE": (-1, 1),
    "E": (0, 1),
    "SE": (1, 1),
    "S": (1, 0),
    "SW": (1, -1),
    "W": (0, -1),
    "NW": (-1, -1),
}

# --- Ability Tiers ---
MIN_VALUE = 0
MAX_VALUE = 3
TIER_STEP = 1    # single-step moves only
TIER_ORIENT = 2  # 2-slide, orient (ends turn), short scatter
TIER_FREE = 3    # full slide, free orient, extended scatter

# --- Initial Layout ---
# '.' empty | 'w' white | 'W' white KEY | 'b' black | 'B' black KEY
# Row 0 = top, Col 0 = left
INITIAL_LAYOUT = [
    "wwWwwWww",
    "wwwwwwww",
    "w.w.w.w.",
    ".w...w..",
    "..b...b.",
    ".b.b.b.b",
    "bbbbbbbb",
    "bbBbbBbb",
]

# --- Evaluation Weights ---
# Score = Sum(weight * feature) for 'me' minus the same for the opponent.
SINGLE_WEIGHT = 10.0
KING_WEIGHT = 24.0
KEY_WEIGHT = 40.0
VALUE_WEIGHT = 3.0
RAY_WEIGHT = 1.5
MOBILITY_WEIGHT = 0.5

# Terminal: a side with zero keys has lost.
TERMINAL_SCORE = 100000.0

# --- Move-Scoring Nudges ---
COMBINE_BONUS = 20.0
CAPTURE_BONUS = 15.0          # per point of captured value
CAPTURE_KEY_MULTIPLIER = 6.0
CAPTURE_KING_MULTIPLIER = 2.5
CENTER_WEIGHT = 0.6
RISK_PENALTY = 12.0

# Importance of a piece when it is left en prise.
IMPORTANCE_SINGLE = 1.0
IMPORTANCE_KING = 2.5
IMPORTANCE_KEY = 4.0

# Small nudges toward central control
CENTER_TABLE = [
    [0, 0, 0, 0, 0, 0, 0, 0],
    [0, 1, 1, 1, 1, 1, 1, 0],
    [0, 1, 2, 2, 2, 2, 1, 0],
    [0, 1, 2, 3, 3, 2, 1, 0],
    [0, 1, 2, 3, 3, 2, 1, 0],
    [0, 1, 2, 2, 2, 2, 1, 0],
    [0, 1, 1, 1, 1, 1, 1, 0],
    [0, 0, 0, 0, 0, 0, 0, 0],
]

# --- Search Defaults ---
DEFAULT_REPLY_LIMIT = 6
DEFAULT_MOVE_LIMIT = 12
DEFAULT_EPSILON = 0.5
