"""
Information set types for the half-street CFR solver.

An information set (infoset) encodes exactly what the acting player observes
at a decision point: the public action history and their own private card.
The opponent's card is never part of the key.

Because the decision point is fully determined by the last public action,
the history component is stored as a NodeKind rather than a symbol string:

    InfoSetKey(node=NodeKind.ROOT,        card=c)  — player 0: BET / CHECK
    InfoSetKey(node=NodeKind.AFTER_BET,   card=c)  — player 1: CALL / FOLD
    InfoSetKey(node=NodeKind.AFTER_CHECK, card=c)  — player 1: CHECK

InfoSetKey is a NamedTuple: hashable, ordered by (node, card) value, and
usable directly as a dict key in the infoset store.
"""

from __future__ import annotations

from typing import NamedTuple

from src.engine.cards import card_to_str
from src.engine.game_state import (
    NODE_TABLE,
    Action,
    NodeKind,
    history_to_str,
    node_kind_of,
    parse_history,
)


# ─── Information set type ─────────────────────────────────────────────────────

class InfoSetKey(NamedTuple):
    """Acting player's view of a decision point.

    Attributes:
        node: Decision point reached by the public history.
        card: Acting player's private card.

    Example:
        >>> InfoSetKey(node=NodeKind.AFTER_BET, card=1).label
        'b|1'
    """
    node: NodeKind
    card: int

    @property
    def label(self) -> str:
        """Display label ``"<history>|<card>"`` (e.g. ``"|0"``, ``"h|1"``)."""
        return history_to_str(NODE_TABLE[self.node].history) + "|" + card_to_str(self.card)

    def sort_key(self) -> tuple[int, int]:
        return (self.node.value, self.card)


# Average or current strategy per infoset: key → {action: probability}.
StrategyProfile = dict[InfoSetKey, dict[Action, float]]


# ─── Factory functions ───────────────────────────────────────────────────────

def make_info_set_key(history: str | tuple[Action, ...] | NodeKind, card: int) -> InfoSetKey:
    """Build an InfoSetKey from a public history and the acting player's card.

    Raises:
        ValueError: If the history is not a decision point.

    Example:
        >>> make_info_set_key("h", 1)
        InfoSetKey(node=<NodeKind.AFTER_CHECK: 2>, card=1)
    """
    return InfoSetKey(node=node_kind_of(parse_history(history)), card=card)


# ─── Legal action queries ─────────────────────────────────────────────────────

def get_legal_actions(node: NodeKind) -> tuple[Action, ...]:
    """Return the legal actions at a decision point, in table order.

    Example:
        >>> get_legal_actions(NodeKind.ROOT)
        (<Action.BET: 'b'>, <Action.CHECK: 'h'>)
    """
    return NODE_TABLE[node].actions


def get_terminal_flags(node: NodeKind) -> tuple[bool, ...]:
    """Return, per legal action, whether taking it ends the hand."""
    return NODE_TABLE[node].terminal


def get_acting_player(node: NodeKind) -> int:
    """Return the player who acts at *node* (used by analysis code only)."""
    return NODE_TABLE[node].acting_player


def all_info_set_keys(allowed_cards: tuple[frozenset[int], frozenset[int]]) -> list[InfoSetKey]:
    """Enumerate every infoset reachable under the given card sets, sorted."""
    keys = [
        InfoSetKey(node=node, card=card)
        for node, spec in NODE_TABLE.items()
        for card in allowed_cards[spec.acting_player]
    ]
    return sorted(keys, key=InfoSetKey.sort_key)
