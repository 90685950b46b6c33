"""Strategy report for the half-street CFR solver.

Public functions format training output into human-readable text:

    format_infoset_line(label, actions, probs) — one "b|1 :  c=0.667 f=0.333" row
    iter_infoset_rows(source)       — (label, actions, probs) for a trainer or result
    print_infosets(source)          — average strategy of every infoset
    print_summary(result)           — game value, exploitability, convergence
    print_convergence(result)       — exploitability at each check

Run as a script to train and print a report::

    python -m src.analysis.strategy_report --iterations 100000 --seed 1
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Iterator, Sequence

from src.engine.cards import DEFAULT_NUM_CARDS, card_set_to_str, parse_card_set
from src.engine.game_state import (
    DEFAULT_POT_SIZE,
    GameConfig,
    actions_label,
)
from src.solvers.cfr import CfrResult, CfrTrainer, solve
from src.solvers.information_sets import all_info_set_keys, get_legal_actions

# Equilibrium of the default game ({0,2} vs {1}, pot 4, bet 2), solved by hand:
# player 0 bluffs card 0 one third of the time, player 1 calls two thirds.
_DEFAULT_GAME_VALUE: float = 2.0 / 3.0


# ─── Row helpers ──────────────────────────────────────────────────────────────

def format_infoset_line(label: str, actions: str, probs: Sequence[float]) -> str:
    """Return one report row in ``"<key> :  a=p b=q"`` form.

    Examples:
        >>> format_infoset_line("b|1", "cf", [2 / 3, 1 / 3])
        'b|1 :  c=0.667 f=0.333'
    """
    parts = [f" {symbol}={p:5.3f}" for symbol, p in zip(actions, probs, strict=True)]
    return f"{label} : " + "".join(parts)


def iter_infoset_rows(source: CfrTrainer | CfrResult) -> Iterator[tuple[str, str, list[float]]]:
    """Yield (key label, actions label, average strategy) in stable order.

    For a result, every infoset the card sets allow is listed, visited or not.
    """
    if isinstance(source, CfrTrainer):
        for label, actions, avg in source.for_each_infoset():
            yield label, actions, [float(p) for p in avg]
        return
    for key in all_info_set_keys(source.config.allowed_cards):
        actions = get_legal_actions(key.node)
        probs = source.strategy.get(key)
        if probs is None:
            # Never reached during training: reported as uniform play.
            probs = dict.fromkeys(actions, 1.0 / len(actions))
        yield key.label, actions_label(actions), [probs[a] for a in actions]


# ─── Public report functions ──────────────────────────────────────────────────

def print_infosets(source: CfrTrainer | CfrResult) -> None:
    """Print the average strategy of every infoset, one per line."""
    print("=" * 56)
    print("Average Strategy per Infoset  (history|card)")
    print("=" * 56)
    rows = list(iter_infoset_rows(source))
    if not rows:
        print("  (no infosets visited)")
    for label, actions, probs in rows:
        print(format_infoset_line(label, actions, probs))
    print()


def print_summary(result: CfrResult) -> None:
    """Print game value, exploitability and convergence status.

    Args:
        result: CfrResult returned by cfr.solve().
    """
    config = result.config
    expl_pct = result.exploitability / config.pot_size * 100

    print("=" * 56)
    print("Equilibrium Summary")
    print("=" * 56)
    print(f"  Cards:           P0 {card_set_to_str(config.allowed_cards[0])}"
          f"  P1 {card_set_to_str(config.allowed_cards[1])}")
    print(f"  Pot / bet:       {config.pot_size:g} / {config.bet_size:g}")
    print(f"  Game value (P0): {result.game_value:+.4f} chips")
    print(f"  Exploitability:  {result.exploitability:.4f} chips  ({expl_pct:.2f}% of pot)")
    print(f"  Iterations:      {result.n_iterations}")
    print(f"  Converged:       {'yes' if result.converged else 'no'}")
    if config == GameConfig():
        delta = result.game_value - _DEFAULT_GAME_VALUE
        print(f"  Analytic value:  {_DEFAULT_GAME_VALUE:+.4f}  (delta {delta:+.4f})")
    print()


def print_convergence(result: CfrResult) -> None:
    """Print the exploitability recorded at each convergence check."""
    print("=" * 56)
    print("Convergence")
    print("=" * 56)
    print(f"  {'Iteration':>10}  {'Exploitability':>14}  {'% of pot':>8}")
    print(f"  {'-' * 10:>10}  {'-' * 14:>14}  {'-' * 8:>8}")
    for iteration, eps in result.exploitability_history:
        print(f"  {iteration:>10}  {eps:>14.6f}  {eps / result.config.pot_size * 100:>7.3f}%")
    print()


# ─── Command line ─────────────────────────────────────────────────────────────

def parse_lock(text: str) -> tuple[tuple[str, int], list[float]]:
    """Parse ``HISTORY:CARD:P1,P2`` (history may be empty) into a lock entry.

    Examples:
        >>> parse_lock(":0:0.5,0.5")
        (('', 0), [0.5, 0.5])
    """
    parts = text.split(":")
    if len(parts) != 3:
        raise ValueError(f"Lock {text!r} is not of the form HISTORY:CARD:P1,P2.")
    history, card, probs = parts
    return (history, int(card)), [float(p) for p in probs.split(",")]


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Solve the half-street betting game with chance-sampled CFR."
    )
    parser.add_argument("--iterations", type=int, default=100_000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--pot", type=float, default=DEFAULT_POT_SIZE)
    parser.add_argument("--bet", type=float, default=None,
                        help="Bet size (default: half the pot)")
    parser.add_argument("--num-cards", type=int, default=DEFAULT_NUM_CARDS)
    parser.add_argument("--p0-cards", default="0,2")
    parser.add_argument("--p1-cards", default="1")
    parser.add_argument("--lock", action="append", default=[],
                        help="Pin an infoset, e.g. ':0:0.5,0.5' (repeatable)")
    parser.add_argument("--check-every", type=int, default=None)
    parser.add_argument("--threshold", type=float, default=None)
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: Sequence[str] | None = None) -> CfrResult:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    bet = args.bet if args.bet is not None else 0.5 * args.pot
    config = GameConfig(
        allowed_cards=(
            parse_card_set(args.p0_cards, args.num_cards),
            parse_card_set(args.p1_cards, args.num_cards),
        ),
        pot_size=args.pot,
        bet_size=bet,
        num_cards=args.num_cards,
    )
    locks = dict(parse_lock(text) for text in args.lock)

    print(f"Running CFR for {args.iterations} iterations …")
    result = solve(
        config,
        n_iterations=args.iterations,
        seed=args.seed,
        locks=locks,
        convergence_check_every=args.check_every,
        exploitability_threshold=args.threshold,
    )

    print_summary(result)
    print_infosets(result)
    if len(result.exploitability_history) > 1:
        print_convergence(result)
    return result


# ─── Entry point ──────────────────────────────────────────────────────────────

if __name__ == "__main__":
    main()
