"""Best response, profile value and exploitability for the half-street game.

Independent of the training code: it walks the public tree from the game
definition (NODE_TABLE) and the exact deal distribution, and never touches
regrets, strategy sums or the infoset store.

Method
~~~~~~
For a responder holding card ``c``, every state at a given public history is
in the same infoset, differing only in the opponent's hidden card.  The walk
therefore carries a weight per opponent card (chance × opponent reach) and,
at the responder's own decision points, takes the action with the highest
weight-summed value.  Each player acts at most once per path, so this greedy
choice is the exact best response.

Exploitability = BR_0 + BR_1, each in the responder's own utility.  Since the
game is zero-sum this equals the total gain of best-responding against both
sides, and is 0 exactly at a Nash equilibrium.
"""

from __future__ import annotations

from src.engine.deck import deal_probabilities
from src.engine.game_state import NODE_TABLE, Action, GameConfig, node_kind_of
from src.engine.rules import showdown_payoff
from src.solvers.information_sets import InfoSetKey, StrategyProfile

# opponent card → chance × opponent-reach weight
_Weights = dict[int, float]


def _strategy_at(profile: StrategyProfile, key: InfoSetKey) -> dict[Action, float]:
    """Profile lookup; infosets the profile never reached play uniformly."""
    probs = profile.get(key)
    if probs is not None:
        return probs
    actions = NODE_TABLE[key.node].actions
    return dict.fromkeys(actions, 1.0 / len(actions))


def _terminal_value(
    action: Action,
    acting_player: int,
    player: int,
    card: int,
    weights: _Weights,
    config: GameConfig,
) -> float:
    """Weighted payoff to *player* when *acting_player* ends the hand."""
    total = 0.0
    for opp_card, w in weights.items():
        if w == 0.0:
            continue
        if acting_player == player:
            total += w * showdown_payoff(action, card, opp_card, config.pot_size, config.bet_size)
        else:
            total -= w * showdown_payoff(action, opp_card, card, config.pot_size, config.bet_size)
    return total


def _walk(
    profile: StrategyProfile,
    config: GameConfig,
    history: tuple[Action, ...],
    player: int,
    card: int,
    weights: _Weights,
    best_response: bool,
) -> float:
    """Weighted value to *player* (holding *card*) of the subtree at *history*.

    With best_response=True *player* maximises at their own nodes; otherwise
    they follow *profile*.  The opponent always follows *profile*.
    """
    node = node_kind_of(history)
    spec = NODE_TABLE[node]
    acting = spec.acting_player

    if acting == player:
        own = _strategy_at(profile, InfoSetKey(node=node, card=card))
        values = {}
        for action, is_terminal in zip(spec.actions, spec.terminal, strict=True):
            if is_terminal:
                values[action] = _terminal_value(action, acting, player, card, weights, config)
            else:
                values[action] = _walk(
                    profile, config, history + (action,), player, card, weights, best_response
                )
        if best_response:
            return max(values.values())
        return sum(own[a] * v for a, v in values.items())

    total = 0.0
    for action, is_terminal in zip(spec.actions, spec.terminal, strict=True):
        child = {
            opp_card: w * _strategy_at(profile, InfoSetKey(node=node, card=opp_card))[action]
            for opp_card, w in weights.items()
        }
        if is_terminal:
            total += _terminal_value(action, acting, player, card, child, config)
        else:
            total += _walk(profile, config, history + (action,), player, card, child, best_response)
    return total


def _player_value(
    profile: StrategyProfile,
    config: GameConfig,
    player: int,
    best_response: bool,
) -> float:
    deals = deal_probabilities(config)
    total = 0.0
    for card in sorted(config.allowed_cards[player]):
        weights: _Weights = {
            deal.card_of(1 - player): p for deal, p in deals.items() if deal.card_of(player) == card
        }
        total += _walk(profile, config, (), player, card, weights, best_response)
    return total


# ─── Public API ────────────────────────────────────────────────────────────────


def best_response_value(profile: StrategyProfile, config: GameConfig, player: int) -> float:
    """Expected payoff to *player* best-responding to the opponent's profile.

    Args:
        profile: Strategy per infoset (missing infosets play uniformly).
        config:  Game configuration (cards, pot, bet).
        player:  Responding player, 0 or 1.

    Returns:
        Best-response value in chips, from *player*'s perspective.
    """
    if player not in (0, 1):
        raise ValueError(f"player must be 0 or 1, got {player!r}.")
    return _player_value(profile, config, player, best_response=True)


def profile_value(profile: StrategyProfile, config: GameConfig) -> float:
    """Player 0's expected payoff when both players follow *profile*."""
    return _player_value(profile, config, 0, best_response=False)


def compute_exploitability(profile: StrategyProfile, config: GameConfig) -> float:
    """Total exploitability BR_0 + BR_1 of *profile* (non-negative).

    Examples:
        >>> from src.engine.game_state import default_config
        >>> eps = compute_exploitability({}, default_config())  # uniform play
        >>> eps > 0
        True
    """
    br0 = best_response_value(profile, config, 0)
    br1 = best_response_value(profile, config, 1)
    return max(0.0, br0 + br1)
