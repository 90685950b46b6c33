"""
Integration tests for the solver's correctness properties and edge cases.

These are the canonical correctness tests for the training core.

Edge Case Reference:
    1.  Strategy normalization after every update
    2.  Regret non-negativity after any number of traversals
    3.  Locked infosets never change
    4.  Average convergence, checked by an independent best response
    5.  Zero-sum consistency of traversal utilities
    6.  Idempotent finalize of the average strategy
    7.  {0,2} vs {1}: card 2 bets more often than card 0
    8.  Unreached nodes finalize to uniform, not an error
    9.  Ties cannot be dealt or settled
    10. Histories that end in a terminal action or leave the tree are rejected
"""

from __future__ import annotations

import numpy as np
import pytest

from src.engine.deck import make_rng
from src.engine.game_state import Action, GameConfig, NodeKind
from src.engine.rules import showdown_payoff
from src.solvers.best_response import compute_exploitability
from src.solvers.cfr import CfrTrainer, finalize_average, get_action_probability, solve
from src.solvers.information_sets import InfoSetKey


def _train(trainer: CfrTrainer, n: int, seed: int = 0) -> None:
    rng = make_rng(seed)
    for _ in range(n):
        trainer.run_iteration(rng)


# ─── Edge Case 1 ──────────────────────────────────────────────────────────────

class TestEdgeCase1StrategyNormalization:
    def test_every_strategy_sums_to_one(self, full_config):
        trainer = CfrTrainer(full_config)
        _train(trainer, 3_000, seed=4)
        for _, node in trainer.store.items():
            assert node.strategy.sum() == pytest.approx(1.0)
            assert np.all(node.strategy >= 0.0)
            assert np.all(node.strategy <= 1.0)


# ─── Edge Case 2 ──────────────────────────────────────────────────────────────

class TestEdgeCase2RegretNonNegativity:
    @pytest.mark.parametrize("n_iterations", [1, 10, 1_000])
    def test_regrets_never_negative(self, full_config, n_iterations):
        trainer = CfrTrainer(full_config)
        _train(trainer, n_iterations, seed=n_iterations)
        for _, node in trainer.store.items():
            assert np.all(node.regrets >= 0.0)


# ─── Edge Case 3 ──────────────────────────────────────────────────────────────

class TestEdgeCase3LockedInvariance:
    def test_locked_root_unchanged(self, config):
        trainer = CfrTrainer(config)
        trainer.register_lock("", 2, [0.1, 0.9])
        _train(trainer, 2_000)
        node = trainer.node("", 2)
        assert node.strategy.tolist() == [0.1, 0.9]
        assert node.locked

    def test_locked_responder_shapes_best_reply(self, config):
        # A caller who never folds makes bluffing card 0 strictly worse than checking.
        result = solve(config, n_iterations=20_000, seed=3, locks={("b", 1): [1.0, 0.0]})
        assert get_action_probability(result, "", 0, Action.BET) < 0.1
        assert get_action_probability(result, "b", 1, Action.CALL) == 1.0


# ─── Edge Case 4 ──────────────────────────────────────────────────────────────

class TestEdgeCase4AverageConvergence:
    def test_exploitability_shrinks_with_training(self, config):
        early = solve(config, n_iterations=100, seed=9)
        late = solve(config, n_iterations=20_000, seed=9)
        assert late.exploitability < early.exploitability

    def test_exploitability_independent_of_trainer_state(self, config):
        trainer = CfrTrainer(config)
        _train(trainer, 5_000)
        profile = trainer.average_strategy()
        regrets_before = {k: n.regrets.copy() for k, n in trainer.store.items()}
        compute_exploitability(profile, config)
        for key, node in trainer.store.items():
            assert np.array_equal(node.regrets, regrets_before[key])


# ─── Edge Case 5 ──────────────────────────────────────────────────────────────

class TestEdgeCase5ZeroSum:
    """Pin every infoset to a pure action so one playout is followed."""

    @pytest.mark.parametrize(
        "card0, root, reply, child, expected",
        [
            (2, [1.0, 0.0], [1.0, 0.0], "b", 4.0),   # bet, call, 2 beats 1
            (0, [1.0, 0.0], [1.0, 0.0], "b", -4.0),  # bet, call, 0 loses
            (0, [1.0, 0.0], [0.0, 1.0], "b", 2.0),   # bet, fold
            (2, [0.0, 1.0], [1.0, 0.0], "h", 2.0),   # check, check, 2 beats 1
            (0, [0.0, 1.0], [1.0, 0.0], "h", -2.0),  # check, check, 0 loses
        ],
    )
    def test_player_utilities_sum_to_zero(self, config, card0, root, reply, child, expected):
        trainer = CfrTrainer(config)
        trainer.register_lock("", card0, root)
        trainer.register_lock("b", 1, reply)
        trainer.set_private_cards(card0, 1)

        value0 = trainer.traverse()
        value1 = trainer.traverse(child, acting_player=1)
        assert value0 == pytest.approx(expected)
        assert value0 + value1 == pytest.approx(0.0)

    @pytest.mark.parametrize("action", [Action.CHECK, Action.CALL])
    def test_showdown_payoffs_mirror(self, action):
        assert showdown_payoff(action, 2, 1, 4.0, 2.0) + showdown_payoff(action, 1, 2, 4.0, 2.0) == 0


# ─── Edge Case 6 ──────────────────────────────────────────────────────────────

class TestEdgeCase6IdempotentFinalize:
    def test_average_strategy_twice(self, config):
        trainer = CfrTrainer(config)
        _train(trainer, 1_000)
        assert trainer.average_strategy() == trainer.average_strategy()

    def test_finalize_does_not_touch_learning_state(self, config):
        trainer = CfrTrainer(config)
        _train(trainer, 1_000)
        node = trainer.node("b", 1)
        sums = node.strategy_sum.copy()
        regrets = node.regrets.copy()
        finalize_average(node)
        finalize_average(node)
        assert np.array_equal(node.strategy_sum, sums)
        assert np.array_equal(node.regrets, regrets)


# ─── Edge Case 7 ──────────────────────────────────────────────────────────────

class TestEdgeCase7StrongCardBetsMore:
    def test_card_two_bets_more_than_card_zero(self, config):
        result = solve(config, n_iterations=20_000, seed=1)
        bet2 = get_action_probability(result, "", 2, Action.BET)
        bet0 = get_action_probability(result, "", 0, Action.BET)
        assert bet2 > bet0


# ─── Edge Case 8 ──────────────────────────────────────────────────────────────

class TestEdgeCase8UnreachedNodes:
    def test_zero_opponent_reach_keeps_uniform(self, config):
        # Player 0 never bets, so player 1 gains no regret at the bet node.
        trainer = CfrTrainer(config)
        trainer.register_lock("", 0, [0.0, 1.0])
        trainer.register_lock("", 2, [0.0, 1.0])
        _train(trainer, 200)
        node = trainer.node("b", 1)
        assert not node.regrets.any()
        assert finalize_average(node).tolist() == [0.5, 0.5]

    def test_node_with_empty_strategy_sum(self, config):
        trainer = CfrTrainer(config)
        trainer.set_private_cards(0, 1)
        trainer.traverse("b", acting_player=1, reach0=0.0, reach1=0.0)
        node = trainer.store[InfoSetKey(NodeKind.AFTER_BET, 1)]
        assert not node.strategy_sum.any()
        assert finalize_average(node).tolist() == [0.5, 0.5]


# ─── Edge Case 9 ──────────────────────────────────────────────────────────────

class TestEdgeCase9NoTies:
    def test_equal_cards_cannot_be_dealt(self):
        config = GameConfig(allowed_cards=(frozenset({0, 1}), frozenset({0, 1})))
        trainer = CfrTrainer(config)
        with pytest.raises(ValueError):
            trainer.set_private_cards(1, 1)

    def test_sampled_deals_never_tie(self):
        config = GameConfig(allowed_cards=(frozenset({0, 1}), frozenset({0, 1})))
        trainer = CfrTrainer(config)
        rng = make_rng(0)
        for _ in range(200):
            trainer.run_iteration(rng)
            assert trainer._deal.cards[0] != trainer._deal.cards[1]


# ─── Edge Case 10 ─────────────────────────────────────────────────────────────

class TestEdgeCase10TerminalHistories:
    @pytest.mark.parametrize("history", ["bc", "bf"])
    def test_traverse_rejects_terminal_history(self, trainer, history):
        trainer.set_private_cards(2, 1)
        with pytest.raises(ValueError):
            trainer.traverse(history)

    def test_off_tree_history_creates_no_infoset(self, trainer):
        trainer.set_private_cards(2, 1)
        with pytest.raises(ValueError):
            trainer.traverse("hb", acting_player=1)
        assert InfoSetKey(NodeKind.AFTER_BET, 1) not in trainer.store

    def test_unknown_symbol_rejected(self, trainer):
        trainer.set_private_cards(2, 1)
        with pytest.raises(ValueError):
            trainer.traverse("x")
