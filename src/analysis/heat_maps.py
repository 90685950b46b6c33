"""Strategy heat maps and charts for the half-street solver.

Data builder:

    build_strategy_matrix(result)  — (3, num_cards) matrix of the key action
                                     probability per decision point and card

Plot functions (all return a matplotlib Figure):

    plot_strategy_heatmap(result, ...)  — the matrix above as a heat map
    plot_strategy_bars(result, ...)     — stacked action probabilities per infoset
    plot_convergence(result, ...)       — exploitability vs iteration (log-log)

Matrix convention:
    Shape  : (3, num_cards) — rows = [ROOT, AFTER_BET, AFTER_CHECK],
                              cols = cards 0 .. num_cards - 1
    Values : P(BET) at ROOT, P(CALL) after a bet, P(CHECK) after a check
             np.nan = infoset absent (card not held by the acting player)
"""

from __future__ import annotations

import matplotlib
import matplotlib.colors
import matplotlib.figure
import matplotlib.pyplot as plt
import numpy as np

from src.engine.game_state import Action, NodeKind
from src.solvers.cfr import CfrResult
from src.solvers.information_sets import InfoSetKey

# ─── Constants ────────────────────────────────────────────────────────────────

_NODES: list[NodeKind] = [NodeKind.ROOT, NodeKind.AFTER_BET, NodeKind.AFTER_CHECK]
_ROW_LABELS: list[str] = ["P0: P(bet)", "P1 vs bet: P(call)", "P1 vs check: P(check)"]
_KEY_ACTION: dict[NodeKind, Action] = {
    NodeKind.ROOT: Action.BET,
    NodeKind.AFTER_BET: Action.CALL,
    NodeKind.AFTER_CHECK: Action.CHECK,
}
_NAN_COLOR: str = "#cccccc"
_ACTION_COLORS: dict[Action, str] = {
    Action.BET: "#d62728",
    Action.CALL: "#ff7f0e",
    Action.CHECK: "#2ca02c",
    Action.FOLD: "#1f77b4",
}


def _make_continuous_cmap() -> matplotlib.colors.Colormap:
    """RdYlGn gradient reversed: green=0, red=1, grey=absent (NaN)."""
    cmap = matplotlib.colormaps["RdYlGn_r"].copy()
    cmap.set_bad(color=_NAN_COLOR)
    return cmap


_CONTINUOUS_CMAP: matplotlib.colors.Colormap = _make_continuous_cmap()


# ─── Data builders ────────────────────────────────────────────────────────────


def build_strategy_matrix(result: CfrResult) -> np.ndarray:
    """Return the (3, num_cards) key-action probability matrix.

    Args:
        result: CfrResult returned by cfr.solve().

    Returns:
        float64 array; np.nan where the infoset was never created.
    """
    matrix = np.full((len(_NODES), result.config.num_cards), np.nan)
    for key, probs in result.strategy.items():
        r = _NODES.index(key.node)
        matrix[r, key.card] = probs.get(_KEY_ACTION[key.node], 0.0)
    return matrix


def _finish(
    fig: matplotlib.figure.Figure,
    show: bool,
    save_path: str | None,
) -> matplotlib.figure.Figure:
    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path, bbox_inches="tight", dpi=120)
    if show:
        plt.show()
    return fig


# ─── Public plot functions ────────────────────────────────────────────────────


def plot_strategy_heatmap(
    result: CfrResult,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot the key-action probability of every infoset as a heat map.

    Args:
        result:    CfrResult returned by cfr.solve().
        show:      If True, call plt.show() after rendering.
        save_path: If not None, save the figure to this path.

    Returns:
        matplotlib.figure.Figure.
    """
    data = build_strategy_matrix(result)
    fig, ax = plt.subplots(figsize=(1.6 * data.shape[1] + 3, 3.5))
    fig.suptitle("Average Strategy", fontsize=13, fontweight="bold")

    masked = np.ma.masked_invalid(data)
    im = ax.imshow(masked, cmap=_CONTINUOUS_CMAP, vmin=0.0, vmax=1.0, aspect="auto")
    ax.set_xticks(range(data.shape[1]))
    ax.set_xticklabels([f"card {c}" for c in range(data.shape[1])], fontsize=9)
    ax.set_yticks(range(len(_NODES)))
    ax.set_yticklabels(_ROW_LABELS, fontsize=9)

    for r in range(data.shape[0]):
        for c in range(data.shape[1]):
            val = data[r, c]
            if np.isnan(val):
                continue
            text_color = "black" if 0.25 < val < 0.75 else "white"
            ax.text(c, r, f"{val:.2f}", ha="center", va="center",
                    fontsize=9, color=text_color, fontweight="bold")

    plt.colorbar(im, ax=ax, label="probability", fraction=0.046, pad=0.04)
    return _finish(fig, show, save_path)


def plot_strategy_bars(
    result: CfrResult,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot stacked action probabilities, one bar per infoset."""
    keys = sorted(result.strategy, key=InfoSetKey.sort_key)
    fig, ax = plt.subplots(figsize=(max(4.0, 1.1 * len(keys) + 1), 4))
    fig.suptitle("Action Probabilities per Infoset", fontsize=13, fontweight="bold")

    labels = [key.label for key in keys]
    bottoms = np.zeros(len(keys))
    for action in Action:
        heights = np.array([result.strategy[k].get(action, 0.0) for k in keys])
        if not heights.any():
            continue
        ax.bar(
            labels,
            heights,
            bottom=bottoms,
            color=_ACTION_COLORS[action],
            label=action.name.lower(),
        )
        bottoms = bottoms + heights

    ax.set_ylim(0.0, 1.0)
    ax.set_xlabel("infoset (history|card)", fontsize=9)
    ax.set_ylabel("probability", fontsize=9)
    if keys:
        ax.legend(fontsize=8, loc="upper right")
    return _finish(fig, show, save_path)


def plot_convergence(
    result: CfrResult,
    *,
    show: bool = True,
    save_path: str | None = None,
) -> matplotlib.figure.Figure:
    """Plot exploitability (as % of pot) against iteration on log-log axes."""
    fig, ax = plt.subplots(figsize=(6, 4))
    fig.suptitle("CFR Convergence", fontsize=13, fontweight="bold")

    points = [(i, eps) for i, eps in result.exploitability_history if i > 0 and eps > 0]
    if points:
        iters, eps = zip(*points, strict=True)
        pct = np.array(eps) / result.config.pot_size * 100
        ax.loglog(iters, pct, marker="o", markersize=3, color="#1f77b4")
    ax.set_xlabel("iteration", fontsize=9)
    ax.set_ylabel("exploitability (% of pot)", fontsize=9)
    ax.grid(True, which="both", alpha=0.3)
    return _finish(fig, show, save_path)

