"""Chance-sampled CFR solver for the half-street betting game.

Finds a Nash equilibrium of the two-player, one-bet game by self-play
Counterfactual Regret Minimization with the regret-matching-plus clamp.

Game-theory summary
-------------------
Two-player zero-sum game with one private card each:
  - Player 0 sees their card and chooses BET or CHECK.
  - Player 1 sees their card and the public action, then CALLs/FOLDs a bet
    or CHECKs back.

Decision points and information sets
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
  InfoSetKey(ROOT, card)         player 0, actions (BET, CHECK)
  InfoSetKey(AFTER_BET, card)    player 1, actions (CALL, FOLD)
  InfoSetKey(AFTER_CHECK, card)  player 1, actions (CHECK,)

Algorithm
~~~~~~~~~
  1. Each iteration samples one deal and walks the full action tree below it.
  2. Strategy at a node is regret matching over its cumulative regrets.
  3. The strategy sum is weighted by the acting player's own reach.
  4. Regrets are weighted by the opponent's reach and floored at 0 after
     each update (regret-matching-plus).
  5. Nash equilibrium ← normalised strategy sums (average strategy).

Sign convention
~~~~~~~~~~~~~~~
  cfr_traverse() returns utility to the player acting at *history*.  A child
  decision node returns utility to the *other* player, so the parent negates
  it.  Terminal payoffs are computed directly from the acting player's view.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field

import numpy as np

from src.engine.cards import DEFAULT_NUM_CARDS, validate_card
from src.engine.deck import deal_private_cards, make_rng
from src.engine.game_state import (
    Action,
    Deal,
    GameConfig,
    actions_label,
    default_config,
    make_deal,
    node_kind_of,
    parse_history,
)
from src.engine.rules import showdown_payoff
from src.solvers.best_response import compute_exploitability, profile_value
from src.solvers.information_sets import (
    InfoSetKey,
    StrategyProfile,
    get_acting_player,
    get_legal_actions,
    get_terminal_flags,
    make_info_set_key,
)

logger = logging.getLogger(__name__)

# Tolerance for checking that a locked strategy is a distribution.
_PROB_TOL: float = 1e-9

# Locks passed to solve(): (history, card) → probabilities in action order.
LockTable = Mapping[tuple[str, int], Sequence[float]]


# ─── Result type ───────────────────────────────────────────────────────────────


@dataclass
class CfrResult:
    """Output of the CFR solver.

    Attributes:
        strategy:               Average strategy per infoset.
                                Maps InfoSetKey → {action: prob}.
        n_iterations:           Number of iterations actually run.
        exploitability:         BR_0 + BR_1 against the average strategy,
                                in pot units (chips).
        converged:              True if a threshold was given and reached.
        game_value:             Player 0's expected payoff under the average
                                strategy, over the exact deal distribution.
        exploitability_history: (iteration, exploitability) at each check.
        config:                 Game configuration the result was solved for.
    """

    strategy: StrategyProfile
    n_iterations: int
    exploitability: float
    converged: bool
    game_value: float
    exploitability_history: list[tuple[int, float]]
    config: GameConfig


# ─── Strategy node and infoset store ──────────────────────────────────────────


@dataclass
class StrategyNode:
    """Learning state of one information set.

    Attributes:
        actions:      Legal actions, fixed at creation.
        regrets:      Cumulative regret per action, always ≥ 0.
        strategy:     Current strategy; sums to 1.
        strategy_sum: Reach-weighted sum of past strategies.
        avg_strategy: Normalised strategy_sum, refreshed by finalize_average().
        locked:       If True, strategy is fixed and never regret-matched.
    """

    actions: tuple[Action, ...]
    regrets: np.ndarray
    strategy: np.ndarray
    strategy_sum: np.ndarray
    avg_strategy: np.ndarray
    locked: bool = False

    @classmethod
    def uniform(cls, actions: tuple[Action, ...]) -> StrategyNode:
        n = len(actions)
        if n == 0:
            raise ValueError("A strategy node needs at least one action.")
        return cls(
            actions=tuple(actions),
            regrets=np.zeros(n),
            strategy=np.full(n, 1.0 / n),
            strategy_sum=np.zeros(n),
            avg_strategy=np.full(n, 1.0 / n),
        )


def _as_distribution(strategy: Sequence[float], n_actions: int, key: InfoSetKey) -> np.ndarray:
    """Validate a locked strategy and return it as a float array."""
    arr = np.asarray(strategy, dtype=np.float64)
    if arr.ndim != 1 or arr.shape[0] != n_actions:
        raise ValueError(
            f"Locked strategy for {key.label!r} has {arr.size} entries, "
            f"expected {n_actions}."
        )
    if not np.all(np.isfinite(arr)) or np.any(arr < 0.0):
        raise ValueError(f"Locked strategy for {key.label!r} must be finite and non-negative.")
    if abs(arr.sum() - 1.0) > _PROB_TOL:
        raise ValueError(f"Locked strategy for {key.label!r} sums to {arr.sum()}, not 1.")
    return arr


@dataclass
class InfoSetStore:
    """All strategy nodes of a training run, created lazily.

    Nodes live in an arena list; ``index`` maps each key to its handle (arena
    position).  ``locks`` holds strategy overrides applied when a key's node
    is first created.
    """

    nodes: list[StrategyNode] = field(default_factory=list)
    index: dict[InfoSetKey, int] = field(default_factory=dict)
    locks: dict[InfoSetKey, np.ndarray] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, key: InfoSetKey) -> bool:
        return key in self.index

    def __getitem__(self, key: InfoSetKey) -> StrategyNode:
        return self.nodes[self.index[key]]

    def get_or_create(self, key: InfoSetKey, actions: tuple[Action, ...]) -> StrategyNode:
        """Return the node for *key*, creating it with a uniform strategy.

        A registered lock seeds the strategy of a new node and marks it
        locked.

        Raises:
            ValueError: If the lock length does not match *actions*.
        """
        handle = self.index.get(key)
        if handle is not None:
            return self.nodes[handle]

        node = StrategyNode.uniform(actions)
        lock = self.locks.get(key)
        if lock is not None:
            node.strategy = _as_distribution(lock, len(actions), key).copy()
            node.locked = True

        self.index[key] = len(self.nodes)
        self.nodes.append(node)
        logger.debug("Created infoset %s (locked=%s)", key.label, node.locked)
        return node

    def register_lock(self, key: InfoSetKey, strategy: Sequence[float]) -> None:
        """Install a strategy override used when *key* is first visited.

        Has no effect on a node that already exists.

        Raises:
            ValueError: If *strategy* is not a distribution over the legal
                        actions of the key's decision point.
        """
        arr = _as_distribution(strategy, len(get_legal_actions(key.node)), key)
        if key in self.index and not self[key].locked:
            logger.warning(
                "Lock for %s registered after the node was created; it is ignored.", key.label
            )
        self.locks[key] = arr

    def items(self) -> list[tuple[InfoSetKey, StrategyNode]]:
        """Return (key, node) pairs sorted by decision point then card."""
        ordered = sorted(self.index.items(), key=lambda kv: kv[0].sort_key())
        return [(key, self.nodes[handle]) for key, handle in ordered]


# ─── Regret matching + ─────────────────────────────────────────────────────────


def update_strategy(node: StrategyNode) -> None:
    """Set the current strategy proportional to positive regrets.

    Falls back to uniform if no regret is positive.  Locked nodes are left
    untouched.
    """
    if node.locked:
        return
    positive = np.maximum(node.regrets, 0.0)
    total = positive.sum()
    if total > 0.0:
        node.strategy = positive / total
    else:
        node.strategy = np.full(len(node.actions), 1.0 / len(node.actions))


def accumulate_average(node: StrategyNode, weight: float) -> None:
    """Add the current strategy, weighted by own reach, to the strategy sum."""
    node.strategy_sum += weight * node.strategy


def finalize_average(node: StrategyNode) -> np.ndarray:
    """Normalise the strategy sum into ``avg_strategy`` and return a copy.

    Uniform if the node was never reached with positive weight.  Only
    ``avg_strategy`` is written, so repeated calls give identical output.
    """
    total = node.strategy_sum.sum()
    if total > 0.0:
        node.avg_strategy = node.strategy_sum / total
    else:
        node.avg_strategy = np.full(len(node.actions), 1.0 / len(node.actions))
    return node.avg_strategy.copy()


# ─── Traversal ─────────────────────────────────────────────────────────────────


def cfr_traverse(
    store: InfoSetStore,
    config: GameConfig,
    deal: Deal,
    history: tuple[Action, ...],
    acting_player: int,
    reach0: float,
    reach1: float,
) -> float:
    """Walk the action tree below *history* and update every visited node.

    Args:
        store:         Infoset store (nodes created on first visit).
        config:        Pot and bet sizes.
        deal:          Both private cards for this iteration.
        history:       Public actions so far; must end at a decision point.
        acting_player: Player to act at *history* (0 or 1).
        reach0:        Player 0's contribution to the reach probability.
        reach1:        Player 1's contribution to the reach probability.

    Returns:
        Counterfactual utility of the node to *acting_player*.

    Raises:
        ValueError: If *history* does not end at a decision point or
                    *acting_player* is not 0 or 1.
    """
    if acting_player not in (0, 1):
        raise ValueError(f"acting_player must be 0 or 1, got {acting_player!r}.")

    node_kind = node_kind_of(history)
    actions = get_legal_actions(node_kind)
    terminal = get_terminal_flags(node_kind)

    player_card = deal.card_of(acting_player)
    opponent_card = deal.card_of(1 - acting_player)
    node = store.get_or_create(InfoSetKey(node=node_kind, card=player_card), actions)

    own_reach, opp_reach = (reach0, reach1) if acting_player == 0 else (reach1, reach0)
    update_strategy(node)
    accumulate_average(node, own_reach)
    strategy = node.strategy

    utils = np.zeros(len(actions))
    for i, action in enumerate(actions):
        if terminal[i]:
            utils[i] = showdown_payoff(
                action, player_card, opponent_card, config.pot_size, config.bet_size
            )
            continue
        # Only the mover's own reach shrinks; the opponent's is unchanged.
        if acting_player == 0:
            child_reach0, child_reach1 = reach0 * strategy[i], reach1
        else:
            child_reach0, child_reach1 = reach0, reach1 * strategy[i]
        utils[i] = -cfr_traverse(
            store, config, deal, history + (action,), 1 - acting_player, child_reach0, child_reach1
        )

    node_util = float(np.dot(strategy, utils))

    node.regrets += opp_reach * (utils - node_util)
    np.maximum(node.regrets, 0.0, out=node.regrets)

    return node_util


# ─── Trainer (driver boundary) ────────────────────────────────────────────────


class CfrTrainer:
    """In-process boundary between a training driver and the CFR core.

    Typical use::

        trainer = CfrTrainer()
        trainer.configure_game([{0, 2}, {1}], pot_size=4.0, bet_size=2.0)
        for _ in range(n):
            trainer.set_private_cards(*draw())
            trainer.traverse()
        for label, actions, avg in trainer.for_each_infoset():
            ...
    """

    def __init__(self, config: GameConfig | None = None) -> None:
        self.config = config
        self.store = InfoSetStore()
        self._deal: Deal | None = None

    def configure_game(
        self,
        allowed_cards: Sequence[set[int] | frozenset[int]],
        pot_size: float,
        bet_size: float,
        num_cards: int = DEFAULT_NUM_CARDS,
    ) -> GameConfig:
        """Fix the card universe and payoff constants before training.

        Raises:
            RuntimeError: If training has already created nodes.
            ValueError:   If the configuration is invalid.
        """
        if len(self.store):
            raise RuntimeError("configure_game() must be called before training starts.")
        self.config = GameConfig(
            allowed_cards=tuple(frozenset(c) for c in allowed_cards),
            pot_size=float(pot_size),
            bet_size=float(bet_size),
            num_cards=num_cards,
        )
        self._deal = None
        return self.config

    def _require_config(self) -> GameConfig:
        if self.config is None:
            raise RuntimeError("Game is not configured; call configure_game() first.")
        return self.config

    def set_private_cards(self, card0: int, card1: int) -> Deal:
        """Set the deal used by the next traverse() call."""
        self._deal = make_deal(self._require_config(), card0, card1)
        return self._deal

    def traverse(
        self,
        history: str | tuple[Action, ...] = "",
        acting_player: int = 0,
        reach0: float = 1.0,
        reach1: float = 1.0,
    ) -> float:
        """Run one traversal for the current deal; see cfr_traverse()."""
        config = self._require_config()
        if self._deal is None:
            raise RuntimeError("No private cards set; call set_private_cards() first.")
        return cfr_traverse(
            self.store, config, self._deal, parse_history(history), acting_player, reach0, reach1
        )

    def run_iteration(self, rng: np.random.Generator) -> float:
        """Deal fresh cards and traverse from the root."""
        deal = deal_private_cards(self._require_config(), rng)
        self._deal = deal
        return self.traverse()

    def register_lock(
        self,
        history: str | tuple[Action, ...],
        card: int,
        strategy: Sequence[float],
    ) -> InfoSetKey:
        """Pin the strategy of infoset (history, card) before its first visit.

        Raises:
            ValueError: If the card cannot be held by the acting player or the
                        strategy does not match the legal actions.
        """
        if self.config is not None:
            card = validate_card(card, self.config.num_cards)
        key = make_info_set_key(history, card)
        if self.config is not None:
            player = get_acting_player(key.node)
            if card not in self.config.allowed_cards[player]:
                raise ValueError(f"Player {player} can never hold card {card}.")
        self.store.register_lock(key, strategy)
        return key

    def node(self, history: str | tuple[Action, ...], card: int) -> StrategyNode:
        """Return the node of an already-visited infoset (KeyError if none)."""
        return self.store[make_info_set_key(history, card)]

    def for_each_infoset(self) -> Iterator[tuple[str, str, np.ndarray]]:
        """Yield (key label, actions label, average strategy) per infoset.

        Order is stable: by decision point, then card.
        """
        for key, node in self.store.items():
            yield key.label, actions_label(node.actions), finalize_average(node)

    def average_strategy(self) -> StrategyProfile:
        """Return the finalised average strategy of every created infoset."""
        profile: StrategyProfile = {}
        for key, node in self.store.items():
            avg = finalize_average(node)
            profile[key] = {a: float(p) for a, p in zip(node.actions, avg, strict=True)}
        return profile


# ─── Training loop ─────────────────────────────────────────────────────────────


def solve(
    config: GameConfig | None = None,
    n_iterations: int = 100_000,
    seed: int | None = None,
    locks: LockTable | None = None,
    convergence_check_every: int | None = None,
    exploitability_threshold: float | None = None,
) -> CfrResult:
    """Run chance-sampled CFR and return the average strategy.

    Args:
        config:                   Game configuration (default_config() if None).
        n_iterations:             Maximum number of iterations.
        seed:                     Seed for the dealing RNG.
        locks:                    {(history, card): strategy} pinned before
                                  the first iteration.
        convergence_check_every:  If set, compute exploitability every N
                                  iterations and record it.
        exploitability_threshold: If set with convergence_check_every, stop
                                  once exploitability drops below it.

    Returns:
        CfrResult with the average strategy, exploitability and game value.

    Examples:
        >>> result = solve(n_iterations=2000, seed=0)
        >>> result.n_iterations
        2000
        >>> result.exploitability >= 0
        True
    """
    if n_iterations < 0:
        raise ValueError(f"n_iterations must be non-negative, got {n_iterations}.")
    if convergence_check_every is not None and convergence_check_every <= 0:
        raise ValueError("convergence_check_every must be positive.")

    config = config if config is not None else default_config()
    trainer = CfrTrainer(config)
    for (history, card), strategy in (locks or {}).items():
        trainer.register_lock(history, card, strategy)

    rng = make_rng(seed)
    history_log: list[tuple[int, float]] = []
    exploitability = float("inf")
    converged = False
    completed = 0

    logger.info(
        "Running CFR for up to %d iterations (pot=%s, bet=%s, seed=%s)",
        n_iterations,
        config.pot_size,
        config.bet_size,
        seed,
    )

    for iteration in range(1, n_iterations + 1):
        trainer.run_iteration(rng)
        completed = iteration

        if convergence_check_every is not None and iteration % convergence_check_every == 0:
            exploitability = compute_exploitability(trainer.average_strategy(), config)
            history_log.append((iteration, exploitability))
            logger.info("Iteration %d: exploitability %.6f", iteration, exploitability)
            if exploitability_threshold is not None and exploitability < exploitability_threshold:
                converged = True
                break

    strategy = trainer.average_strategy()
    if not history_log or history_log[-1][0] != completed:
        exploitability = compute_exploitability(strategy, config)
        history_log.append((completed, exploitability))
    if exploitability_threshold is not None and exploitability < exploitability_threshold:
        converged = True

    game_value = profile_value(strategy, config)
    logger.info(
        "CFR finished after %d iterations: exploitability %.6f, game value %+.6f",
        completed,
        exploitability,
        game_value,
    )

    return CfrResult(
        strategy=strategy,
        n_iterations=completed,
        exploitability=exploitability,
        converged=converged,
        game_value=game_value,
        exploitability_history=history_log,
        config=config,
    )


# ─── Public strategy helpers ───────────────────────────────────────────────────


def get_action_probability(
    result: CfrResult,
    history: str | tuple[Action, ...],
    card: int,
    action: Action,
) -> float:
    """Look up the average probability of *action* at infoset (history, card).

    Returns the uniform probability if the infoset was never visited, and 0.0
    if *action* is not legal there.
    """
    key = make_info_set_key(history, card)
    legal = get_legal_actions(key.node)
    if action not in legal:
        return 0.0
    probs = result.strategy.get(key)
    if probs is None:
        return 1.0 / len(legal)
    return probs.get(action, 0.0)
