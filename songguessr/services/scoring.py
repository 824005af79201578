# ============================================================================
# FILE: songguessr/services/scoring.py
# ============================================================================
"""
Server-side round scoring.

Guesses are matched leniently: case and punctuation are ignored, as are
parenthesised or bracketed suffixes ("(Remastered 2011)", "[Live]") and
trailing "feat. X" / "by X" / "- X" parts. A guess that contains the answer,
or is contained in it, counts when the shorter string is at least
CONTAINMENT_RATIO of the longer.
"""
import re
from songguessr.config import settings
from songguessr.core.enums import GameMode

CONTAINMENT_RATIO = 0.6

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_BRACKETED_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_TAIL_RE = re.compile(r"\s+(?:by|feat\.?|ft\.?|featuring|-)\s+")


def normalize(text: str) -> str:
    text = _PUNCTUATION_RE.sub("", text.lower().strip())
    return _WHITESPACE_RE.sub(" ", text).strip()


def _strip_bracketed(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", _BRACKETED_RE.sub("", text)).strip()


def _head(text: str) -> str:
    return _TAIL_RE.split(text, maxsplit=1)[0].strip()


def is_answer_correct(user_guess: str, correct_answer: str) -> bool:
    if not user_guess or not correct_answer:
        return False

    guess = normalize(user_guess)
    answer = normalize(correct_answer)
    if not guess:
        return False
    if guess == answer:
        return True

    clean_answer = normalize(_strip_bracketed(correct_answer))
    clean_guess = normalize(_strip_bracketed(user_guess))
    if guess == clean_answer or clean_guess == clean_answer or clean_guess == answer:
        return True

    # Tail split runs before normalize(), which would drop the "-"
    guess_head = normalize(_head(user_guess.lower()))
    answer_head = normalize(_head(_strip_bracketed(correct_answer).lower()))
    if guess_head and guess_head == answer_head:
        return True

    if guess in answer or answer in guess or guess in clean_answer or clean_answer in guess:
        longest_answer = max(len(answer), len(clean_answer))
        shorter = min(len(guess), longest_answer)
        longer = max(len(guess), longest_answer)
        return shorter / longer >= CONTAINMENT_RATIO

    return False


def calculate_points(hints_used: int, is_correct: bool) -> int:
    """Fewer hints, more points: 1 hint scores the maximum, never below 1 when correct"""
    if not is_correct:
        return 0
    return max(1, min(settings.MAX_ROUND_SCORE, settings.MAX_ROUND_SCORE + 1 - hints_used))


def answer_for(song, game_mode: str) -> str:
    """The field a player has to guess in this mode"""
    if game_mode == GameMode.CLASSIC.value:
        return song.title or ""
    if game_mode == GameMode.ARTIST.value:
        return song.artist or ""
    raise ValueError(f"Unknown game mode: {game_mode}")
