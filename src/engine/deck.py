"""
Private-card dealing for the training driver.

Player 0 receives a card uniformly from their allowed set; player 1 receives a
card uniformly from their allowed set with player 0's card removed.  This is
the same distribution as redrawing player 1 until the cards differ.

Randomness comes from a NumPy Generator so runs are reproducible from a seed.
"""

from __future__ import annotations

import numpy as np

from .game_state import Deal, GameConfig


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Create the random generator used for dealing.

    Examples:
        >>> rng = make_rng(7)
        >>> isinstance(rng, np.random.Generator)
        True
    """
    return np.random.default_rng(seed)


def available_cards(config: GameConfig, player: int, dealt: int | None = None) -> np.ndarray:
    """Return the sorted cards *player* may receive, excluding *dealt*.

    Examples:
        >>> from src.engine.game_state import default_config
        >>> available_cards(default_config(), 0).tolist()
        [0, 2]
    """
    cards = sorted(config.allowed_cards[player] - ({dealt} if dealt is not None else set()))
    return np.array(cards, dtype=np.int64)


def deal_private_cards(config: GameConfig, rng: np.random.Generator) -> Deal:
    """Draw one pair of distinct private cards.

    Args:
        config: Game configuration holding each player's allowed cards.
        rng:    Random generator — advanced in place.

    Returns:
        Deal with cards drawn from each player's allowed set.

    Raises:
        ValueError: If player 1 has no card left once player 0's card is
                    removed (GameConfig already rejects such configs).
    """
    card0 = int(rng.choice(available_cards(config, 0)))
    avail1 = available_cards(config, 1, dealt=card0)
    if len(avail1) == 0:
        raise ValueError(f"No card left for player 1 after player 0 drew {card0}.")
    card1 = int(rng.choice(avail1))
    return Deal(cards=(card0, card1))


def deal_probabilities(config: GameConfig) -> dict[Deal, float]:
    """Return the exact chance distribution over deals.

    Examples:
        >>> from src.engine.game_state import default_config
        >>> probs = deal_probabilities(default_config())
        >>> sorted(d.cards for d in probs)
        [(0, 1), (2, 1)]
        >>> sum(probs.values())
        1.0
    """
    probs: dict[Deal, float] = {}
    p0 = 1.0 / len(config.allowed_cards[0])
    for card0 in sorted(config.allowed_cards[0]):
        avail1 = available_cards(config, 1, dealt=card0)
        p1 = 1.0 / len(avail1)
        for card1 in avail1.tolist():
            probs[Deal(cards=(card0, card1))] = p0 * p1
    return probs
