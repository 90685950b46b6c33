"""
Game definition for the half-street betting game.

Hand flow:
    DEAL → player 0: BET or CHECK
         → after BET:   player 1: CALL (showdown) or FOLD
         → after CHECK: player 1: CHECK (showdown)

The public action history is a tuple of Action values.  Which decision point
a history represents depends only on its last action, so the whole tree is
captured by three node kinds and a fixed transition table (NODE_TABLE).

Key rules modelled here:
    - Both players have posted pot_size / 2 before the first action.
    - Only player 0 may bet; there is no raise.
    - Private cards are always distinct (no ties are representable).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple

from .cards import DEFAULT_NUM_CARDS, MAX_NUM_CARDS, card_set_to_str, validate_card


# ─── Enumerations ─────────────────────────────────────────────────────────────

class Action(Enum):
    """Public actions. The value is the one-character history symbol."""
    BET = "b"
    CHECK = "h"
    CALL = "c"
    FOLD = "f"

    @property
    def symbol(self) -> str:
        return self.value


class NodeKind(Enum):
    """Decision points of the game tree, ordered as they are reported."""
    ROOT = 0
    AFTER_BET = 1
    AFTER_CHECK = 2


class NodeSpec(NamedTuple):
    """Row of the transition table: legal actions and their terminal flags."""
    actions: tuple[Action, ...]
    terminal: tuple[bool, ...]
    acting_player: int
    history: tuple[Action, ...]


NODE_TABLE: dict[NodeKind, NodeSpec] = {
    NodeKind.ROOT: NodeSpec(
        actions=(Action.BET, Action.CHECK),
        terminal=(False, False),
        acting_player=0,
        history=(),
    ),
    NodeKind.AFTER_BET: NodeSpec(
        actions=(Action.CALL, Action.FOLD),
        terminal=(True, True),
        acting_player=1,
        history=(Action.BET,),
    ),
    NodeKind.AFTER_CHECK: NodeSpec(
        actions=(Action.CHECK,),
        terminal=(True,),
        acting_player=1,
        history=(Action.CHECK,),
    ),
}

_LAST_ACTION_TO_NODE: dict[Action, NodeKind] = {
    Action.BET: NodeKind.AFTER_BET,
    Action.CHECK: NodeKind.AFTER_CHECK,
}

_SYMBOL_TO_ACTION: dict[str, Action] = {a.symbol: a for a in Action}


# ─── History helpers ──────────────────────────────────────────────────────────

def node_kind_of(history: tuple[Action, ...]) -> NodeKind:
    """Return the decision-point kind of a public history.

    Raises:
        ValueError: If the history ends in an action that does not lead to a
                    decision point (CALL/FOLD are terminal), or is not a
                    path of the game tree (e.g. ``"hb"``).

    Examples:
        >>> node_kind_of(())
        <NodeKind.ROOT: 0>
        >>> node_kind_of((Action.BET,))
        <NodeKind.AFTER_BET: 1>
    """
    if not history:
        return NodeKind.ROOT
    node = _LAST_ACTION_TO_NODE.get(history[-1])
    if node is None:
        raise ValueError(
            f"History {history_to_str(history)!r} does not end at a decision point."
        )
    if history != NODE_TABLE[node].history:
        raise ValueError(f"History {history_to_str(history)!r} is not on the game tree.")
    return node


def parse_history(history: str | tuple[Action, ...] | NodeKind) -> tuple[Action, ...]:
    """Normalise a history given as symbols (``"b"``), actions, or a NodeKind.

    Raises:
        ValueError: On an unknown action symbol.

    Examples:
        >>> parse_history("b")
        (<Action.BET: 'b'>,)
    """
    if isinstance(history, NodeKind):
        return NODE_TABLE[history].history
    if isinstance(history, tuple):
        return history
    actions = []
    for symbol in history:
        action = _SYMBOL_TO_ACTION.get(symbol)
        if action is None:
            raise ValueError(f"Unknown action symbol {symbol!r} in history {history!r}.")
        actions.append(action)
    return tuple(actions)


def history_to_str(history: tuple[Action, ...]) -> str:
    """Return the compact symbol string of a history, e.g. ``"bc"``."""
    return "".join(a.symbol for a in history)


def actions_label(actions: tuple[Action, ...]) -> str:
    """Return the symbol string of an action list, e.g. ``"cf"``."""
    return "".join(a.symbol for a in actions)


# ─── Configuration / deal ─────────────────────────────────────────────────────

DEFAULT_POT_SIZE: float = 4.0
DEFAULT_BET_SIZE: float = 2.0
DEFAULT_ALLOWED_CARDS: tuple[frozenset[int], frozenset[int]] = (
    frozenset({0, 2}),
    frozenset({1}),
)


@dataclass(frozen=True)
class GameConfig:
    """Fixed parameters of a training run.

    Attributes:
        allowed_cards: Per-player set of cards that player can be dealt.
        pot_size:      Initial pot; each player has posted half of it.
        bet_size:      Size of player 0's bet.
        num_cards:     Deck size; cards are 0 .. num_cards - 1.
    """
    allowed_cards: tuple[frozenset[int], frozenset[int]] = DEFAULT_ALLOWED_CARDS
    pot_size: float = DEFAULT_POT_SIZE
    bet_size: float = DEFAULT_BET_SIZE
    num_cards: int = DEFAULT_NUM_CARDS

    def __post_init__(self) -> None:
        if not 2 <= self.num_cards <= MAX_NUM_CARDS:
            raise ValueError(f"num_cards must be in [2, {MAX_NUM_CARDS}], got {self.num_cards}.")
        if len(self.allowed_cards) != 2:
            raise ValueError("allowed_cards must hold exactly one card set per player.")
        allowed = tuple(
            frozenset(validate_card(card, self.num_cards) for card in cards)
            for cards in self.allowed_cards
        )
        for player, cards in enumerate(allowed):
            if not cards:
                raise ValueError(f"Player {player} has no allowed cards.")
        for card in allowed[0]:
            if not allowed[1] - {card}:
                raise ValueError(
                    f"Player 0 card {card} leaves no distinct card for player 1 "
                    f"(allowed {card_set_to_str(allowed[1])})."
                )
        if self.pot_size <= 0:
            raise ValueError(f"pot_size must be positive, got {self.pot_size}.")
        if self.bet_size <= 0:
            raise ValueError(f"bet_size must be positive, got {self.bet_size}.")
        object.__setattr__(self, "allowed_cards", allowed)

    @property
    def blind(self) -> float:
        return self.pot_size * 0.5


@dataclass(frozen=True)
class Deal:
    """The two private cards of one iteration, indexed by player."""
    cards: tuple[int, int]

    def card_of(self, player: int) -> int:
        return self.cards[player]


def default_config() -> GameConfig:
    """Return the three-card configuration of the original game.

    Player 0 holds 0 or 2, player 1 always holds 1; pot 4, bet 2.
    """
    return GameConfig()


def make_deal(config: GameConfig, card0: int, card1: int) -> Deal:
    """Validate a pair of private cards against *config* and build a Deal.

    Raises:
        ValueError: If a card is outside its player's allowed set or the two
                    cards are equal.
    """
    card0 = validate_card(card0, config.num_cards)
    card1 = validate_card(card1, config.num_cards)
    for player, card in enumerate((card0, card1)):
        if card not in config.allowed_cards[player]:
            raise ValueError(
                f"Card {card} is not allowed for player {player} "
                f"(allowed {card_set_to_str(config.allowed_cards[player])})."
            )
    if card0 == card1:
        raise ValueError(f"Private cards must differ, both players hold {card0}.")
    return Deal(cards=(card0, card1))
