# ============================================================================
# FILE: songguessr/core/route_policy.py
# ============================================================================
"""
Which routes need a verified identity.

Patterns are absolute paths; a `*` segment matches exactly one path segment.
Lookup order: a rule whose pattern equals the path decides on its own, otherwise
the first wildcard rule that matches both the path and the method wins.
Anything unmatched is public.
"""
from typing import FrozenSet, List, NamedTuple, Tuple

API_PREFIX = "/api/v1"
WILDCARD = "*"


class RouteRule(NamedTuple):
    pattern: str
    methods: FrozenSet[str]

    @property
    def segments(self) -> Tuple[str, ...]:
        return _split(self.pattern)

    @property
    def is_wildcard(self) -> bool:
        return WILDCARD in self.segments


def _rule(path: str, *methods: str) -> RouteRule:
    return RouteRule(API_PREFIX + path, frozenset(m.upper() for m in methods))


def _split(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.strip("/").split("/") if part)


PROTECTED_ROUTES: List[RouteRule] = [
    _rule("/auth/me", "GET"),
    _rule("/auth/validate", "GET"),
    _rule("/me/game-history", "GET"),
    _rule("/me/recalculate-stats", "POST"),
    _rule("/me/playlists", "GET"),
    _rule("/game/start", "POST"),
    _rule("/game/next-song", "POST"),
    _rule("/game/submit", "POST"),
    _rule("/game/session/*", "GET"),
    _rule("/playlists", "POST"),
    _rule("/playlists/*", "PATCH"),
    _rule("/playlists/*/songs", "POST"),
    _rule("/songs", "POST"),
    _rule("/songs/*", "PATCH"),
]


def _segments_match(pattern: Tuple[str, ...], path: Tuple[str, ...]) -> bool:
    if len(pattern) != len(path):
        return False
    return all(p == WILDCARD or p == s for p, s in zip(pattern, path))


def requires_identity(path: str, method: str, rules: List[RouteRule] = None) -> bool:
    rules = PROTECTED_ROUTES if rules is None else rules
    method = method.upper()
    normalized = "/" + "/".join(_split(path))

    for rule in rules:
        if not rule.is_wildcard and rule.pattern == normalized:
            return method in rule.methods

    segments = _split(normalized)
    for rule in rules:
        if rule.is_wildcard and method in rule.methods and _segments_match(rule.segments, segments):
            return True
    return False
