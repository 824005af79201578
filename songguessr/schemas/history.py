# ============================================================================
# FILE: songguessr/schemas/history.py
# ============================================================================
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

class GameHistoryItem(BaseModel):
    """Summary of one completed game"""
    id: str
    playlist_name: str
    game_mode: str
    total_score: int
    max_possible_score: int
    accuracy: float
    total_rounds: int
    session_start_time: datetime
    session_end_time: Optional[datetime] = None
    total_game_time: Optional[float] = None

class GameHistoryResponse(BaseModel):
    history: List[GameHistoryItem]

class UserStats(BaseModel):
    """Aggregated statistics as stored on the user"""
    total_score: int = 0
    games_played: int = 0
    games_won: int = 0
    average_score: float = 0.0
    best_score: int = 0

    class Config:
        from_attributes = True
