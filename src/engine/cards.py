"""
Card constants and helpers for the half-street game.

Card encoding: a card is a plain integer rank in ``0 .. num_cards - 1``.
There are no suits and no ties — a higher integer always beats a lower one,
and a deal never gives both players the same card.

String representations are used only at I/O boundaries (reports, CLI).
"""

from __future__ import annotations

import numbers

# Deck size used by the original three-card game (cards 0, 1, 2).
DEFAULT_NUM_CARDS: int = 3

# Upper bound on the deck size; card sets are small enough to enumerate.
MAX_NUM_CARDS: int = 64


def validate_card(card: int, num_cards: int = DEFAULT_NUM_CARDS) -> int:
    """Return *card* as a plain int if it is a legal card index, else raise.

    Any integral type is accepted, including NumPy integers drawn from a
    Generator.

    Raises:
        ValueError: If card is not an integer in ``[0, num_cards)``.

    Examples:
        >>> validate_card(2)
        2
    """
    if isinstance(card, bool) or not isinstance(card, numbers.Integral):
        raise ValueError(f"Card must be an integer, got {card!r}.")
    if not 0 <= card < num_cards:
        raise ValueError(f"Card {card} is outside the deck [0, {num_cards}).")
    return int(card)


def card_to_str(card: int) -> str:
    """Return the display label of a card.

    Examples:
        >>> card_to_str(1)
        '1'
    """
    return str(card)


def parse_card_set(text: str, num_cards: int = DEFAULT_NUM_CARDS) -> frozenset[int]:
    """Parse a comma-separated card list such as ``"0,2"``.

    Raises:
        ValueError: If the list is empty or contains an illegal card.

    Examples:
        >>> sorted(parse_card_set("0,2"))
        [0, 2]
    """
    parts = [p.strip() for p in text.split(",") if p.strip()]
    if not parts:
        raise ValueError(f"Empty card set: {text!r}.")
    cards = set()
    for part in parts:
        try:
            card = int(part)
        except ValueError:
            raise ValueError(f"Not a card index: {part!r}.") from None
        cards.add(validate_card(card, num_cards))
    return frozenset(cards)


def card_set_to_str(cards: frozenset[int]) -> str:
    """Inverse of parse_card_set for display.

    Examples:
        >>> card_set_to_str(frozenset({2, 0}))
        '{0,2}'
    """
    return "{" + ",".join(card_to_str(c) for c in sorted(cards)) + "}"
