"""Deterministic, headless rules engine for Take 2.

IMPORTANT: This package must never perform I/O; hosts supply the shuffler,
the reporter and the notification sink.
"""

from .actions import ChooseSuitAction, DrawAction, PassAction, PlayAction
from .ai import AISpec, PlayHistory, choose_action
from .match import GameState, MatchConfig, new_game, step
from .session import GameSession, MatchReport, MoveResult
from .types import Card, Rank, Suit

__all__ = [
    "AISpec",
    "Card",
    "ChooseSuitAction",
    "DrawAction",
    "GameSession",
    "GameState",
    "MatchConfig",
    "MatchReport",
    "MoveResult",
    "PassAction",
    "PlayAction",
    "PlayHistory",
    "Rank",
    "Suit",
    "choose_action",
    "new_game",
    "step",
]
