"""
Settlement of terminal actions.

Settlement rules (from the acting player's perspective):
    1. FOLD   → the folder loses their blind: -pot_size / 2, cards ignored
    2. CHECK  → showdown for the blinds: ±pot_size / 2
    3. CALL   → showdown for bet + blind: ±(bet_size + pot_size / 2)

Payout convention:
    +N  = acting player wins N units
    -N  = acting player loses N units

The opponent's payout for the same terminal is always the exact negation.
Callers that switch perspective (the CFR traversal) negate; this module never
does.
"""

from __future__ import annotations

from enum import Enum, auto

from .game_state import Action


class Outcome(Enum):
    WIN = auto()
    LOSS = auto()


# ─── Core settlement function ─────────────────────────────────────────────────

def settle_terminal(
    action: Action,
    player_card: int,
    opponent_card: int,
    pot_size: float,
    bet_size: float,
) -> tuple[Outcome, float]:
    """Determine outcome and payout for the player who took a terminal action.

    Args:
        action:        The terminal action (FOLD, CHECK or CALL).
        player_card:   Private card of the player taking *action*.
        opponent_card: Private card of the other player.
        pot_size:      Initial pot (both blinds).
        bet_size:      Bet that a CALL matches.

    Returns:
        (Outcome, payout) for the acting player.

    Raises:
        ValueError: If the cards are equal (ties cannot occur in this game)
                    or *action* is not terminal.
    """
    if player_card == opponent_card:
        raise ValueError(f"Showdown with equal cards ({player_card}) is undefined.")

    blind = pot_size * 0.5

    # ── Rule 1: Fold loses the blind regardless of cards ──────────────────────
    if action is Action.FOLD:
        return Outcome.LOSS, -blind

    player_won = player_card > opponent_card
    outcome = Outcome.WIN if player_won else Outcome.LOSS
    sign = 1.0 if player_won else -1.0

    # ── Rule 2: Checked-down showdown ─────────────────────────────────────────
    if action is Action.CHECK:
        return outcome, sign * blind

    # ── Rule 3: Bet called ────────────────────────────────────────────────────
    if action is Action.CALL:
        return outcome, sign * (bet_size + blind)

    raise ValueError(f"{action.name} is not a terminal action.")


def showdown_payoff(
    action: Action,
    player_card: int,
    opponent_card: int,
    pot_size: float,
    bet_size: float,
) -> float:
    """Return only the payout of settle_terminal().

    Examples:
        >>> showdown_payoff(Action.CALL, 2, 1, pot_size=4.0, bet_size=2.0)
        4.0
        >>> showdown_payoff(Action.FOLD, 2, 1, pot_size=4.0, bet_size=2.0)
        -2.0
    """
    return settle_terminal(action, player_card, opponent_card, pot_size, bet_size)[1]
