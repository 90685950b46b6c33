"""
Shared pytest fixtures for half-street solver tests.

Provides ready-made game configurations and a configured CfrTrainer.
"""

from __future__ import annotations

import pytest

from src.engine.game_state import GameConfig, default_config
from src.solvers.cfr import CfrTrainer


def full_deck_config(num_cards: int = 3) -> GameConfig:
    """Both players may hold any card of a num_cards deck."""
    cards = frozenset(range(num_cards))
    return GameConfig(allowed_cards=(cards, cards), num_cards=num_cards)


@pytest.fixture
def config() -> GameConfig:
    """The original game: P0 holds 0 or 2, P1 holds 1; pot 4, bet 2."""
    return default_config()


@pytest.fixture
def full_config() -> GameConfig:
    return full_deck_config()


@pytest.fixture
def trainer(config: GameConfig) -> CfrTrainer:
    """A trainer configured for the original game, with no nodes yet."""
    return CfrTrainer(config)
