"""Tests for src/engine/cards.py — card validation and parsing."""

from __future__ import annotations

import numpy as np
import pytest

from src.engine.cards import (
    DEFAULT_NUM_CARDS,
    card_set_to_str,
    card_to_str,
    parse_card_set,
    validate_card,
)


class TestValidateCard:
    def test_valid_cards_returned_unchanged(self):
        for card in range(DEFAULT_NUM_CARDS):
            assert validate_card(card) == card

    def test_negative_card_rejected(self):
        with pytest.raises(ValueError):
            validate_card(-1)

    def test_card_outside_deck_rejected(self):
        with pytest.raises(ValueError):
            validate_card(3, num_cards=3)

    def test_larger_deck_accepts_higher_card(self):
        assert validate_card(7, num_cards=8) == 7

    def test_numpy_integer_accepted(self):
        card = validate_card(np.int64(2))
        assert card == 2
        assert type(card) is int

    def test_numpy_float_rejected(self):
        with pytest.raises(ValueError):
            validate_card(np.float64(1.0))

    def test_non_int_rejected(self):
        with pytest.raises(ValueError):
            validate_card("1")

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            validate_card(True)


class TestParseCardSet:
    def test_two_cards(self):
        assert parse_card_set("0,2") == frozenset({0, 2})

    def test_whitespace_ignored(self):
        assert parse_card_set(" 1 , 2 ") == frozenset({1, 2})

    def test_duplicates_collapse(self):
        assert parse_card_set("1,1") == frozenset({1})

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            parse_card_set("")

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError):
            parse_card_set("0,K")

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            parse_card_set("0,5", num_cards=3)


class TestDisplay:
    def test_card_to_str(self):
        assert card_to_str(2) == "2"

    def test_card_set_sorted(self):
        assert card_set_to_str(frozenset({2, 0})) == "{0,2}"

    def test_round_trip(self):
        assert parse_card_set(card_set_to_str(frozenset({0, 1}))[1:-1]) == frozenset({0, 1})
