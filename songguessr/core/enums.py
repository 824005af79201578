# ============================================================================
# FILE: songguessr/core/enums.py
# ============================================================================
from enum import Enum


class GameMode(str, Enum):
    CLASSIC = "classic"  # guess the title
    ARTIST = "artist"    # guess the artist


class GameStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class PlaylistType(str, Enum):
    ARTIST = "artist"
    CUSTOM = "custom"
    DECADE = "decade"
    GENRE = "genre"
    MOOD = "mood"
    POPULARITY = "popularity"


class SelectionType(str, Enum):
    DYNAMIC = "dynamic"
    MANUAL = "manual"


class Energy(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PopularityRange(str, Enum):
    MAINSTREAM = "mainstream"
    UNDERGROUND = "underground"
    VIRAL = "viral"
