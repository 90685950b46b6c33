"""Tests for src/engine/deck.py — private-card dealing."""

from __future__ import annotations

from collections import Counter

import numpy as np
import pytest

from src.engine.deck import available_cards, deal_private_cards, deal_probabilities, make_rng
from src.engine.game_state import GameConfig, default_config


class TestAvailableCards:
    def test_player_zero_default(self):
        assert available_cards(default_config(), 0).tolist() == [0, 2]

    def test_excludes_dealt_card(self, full_config):
        config = full_config
        assert available_cards(config, 1, dealt=1).tolist() == [0, 2]

    def test_dtype(self):
        assert available_cards(default_config(), 1).dtype == np.int64


class TestDealPrivateCards:
    def test_cards_always_distinct_and_allowed(self, full_config):
        config = full_config
        rng = make_rng(0)
        for _ in range(500):
            deal = deal_private_cards(config, rng)
            assert deal.cards[0] != deal.cards[1]
            assert deal.cards[0] in config.allowed_cards[0]
            assert deal.cards[1] in config.allowed_cards[1]

    def test_player_one_fixed_card(self):
        rng = make_rng(1)
        for _ in range(50):
            assert deal_private_cards(default_config(), rng).cards[1] == 1

    def test_same_seed_same_sequence(self, full_config):
        config = full_config
        rng_a, rng_b = make_rng(42), make_rng(42)
        seq_a = [deal_private_cards(config, rng_a) for _ in range(20)]
        seq_b = [deal_private_cards(config, rng_b) for _ in range(20)]
        assert seq_a == seq_b

    def test_roughly_uniform(self, full_config):
        config = full_config
        rng = make_rng(3)
        counts = Counter(deal_private_cards(config, rng).cards for _ in range(6000))
        assert len(counts) == 6
        for n in counts.values():
            assert 800 < n < 1200


class TestDealProbabilities:
    def test_default_two_deals(self):
        probs = deal_probabilities(default_config())
        assert {d.cards: p for d, p in probs.items()} == {(0, 1): 0.5, (2, 1): 0.5}

    def test_full_deck_six_deals(self, full_config):
        probs = deal_probabilities(full_config)
        assert len(probs) == 6
        for p in probs.values():
            assert p == pytest.approx(1.0 / 6.0)

    def test_sums_to_one_with_overlap(self):
        config = GameConfig(allowed_cards=(frozenset({0, 1, 2}), frozenset({1, 2})))
        assert sum(deal_probabilities(config).values()) == pytest.approx(1.0)

    def test_conditional_on_player_zero(self):
        config = GameConfig(allowed_cards=(frozenset({0, 1}), frozenset({1, 2})))
        probs = {d.cards: p for d, p in deal_probabilities(config).items()}
        # P0 holds 1 half the time, then P1 must hold 2.
        assert probs[(1, 2)] == pytest.approx(0.5)
        assert probs[(0, 1)] == pytest.approx(0.25)
        assert probs[(0, 2)] == pytest.approx(0.25)
