"""Interactive Plotly views of a solved half-street game.

Public functions:

    build_strategy_figure(result)
        — Heatmap of the key-action probability per decision point and card,
          with every action's probability in the hover text.
    build_convergence_figure(result)
        — Exploitability (% of pot) against iteration, log-log.
    save_figure_html(fig, path)
        — Export any figure to a self-contained HTML file.
"""

from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from src.analysis.heat_maps import build_strategy_matrix
from src.engine.game_state import NodeKind
from src.solvers.cfr import CfrResult
from src.solvers.information_sets import InfoSetKey

# ─── Constants ────────────────────────────────────────────────────────────────

_NODES: list[NodeKind] = [NodeKind.ROOT, NodeKind.AFTER_BET, NodeKind.AFTER_CHECK]
_ROW_LABELS: list[str] = ["P0 root: P(bet)", "P1 vs bet: P(call)", "P1 vs check: P(check)"]
_COLORSCALE: str = "RdYlGn_r"


# ─── Hover text ───────────────────────────────────────────────────────────────


def _build_hover(result: CfrResult, shape: tuple[int, int]) -> list[list[str]]:
    """Return a rows×cards grid of hover strings listing every action."""
    hover = [["" for _ in range(shape[1])] for _ in range(shape[0])]
    for key, probs in result.strategy.items():
        r = _NODES.index(key.node)
        lines = [f"Infoset: {key.label}"]
        lines += [f"{a.name.lower()}: {p:.3f}" for a, p in probs.items()]
        hover[r][key.card] = "<br>".join(lines)
    return hover


# ─── Public figure builders ───────────────────────────────────────────────────


def build_strategy_figure(result: CfrResult) -> go.Figure:
    """Return an interactive heatmap of the average strategy.

    Absent infosets (cards the acting player never holds) render as blank
    cells.
    """
    data = build_strategy_matrix(result)
    z = [[None if np.isnan(v) else v for v in row] for row in data.tolist()]
    fig = go.Figure(
        go.Heatmap(
            z=z,
            x=[f"card {c}" for c in range(data.shape[1])],
            y=_ROW_LABELS,
            colorscale=_COLORSCALE,
            zmin=0.0,
            zmax=1.0,
            text=_build_hover(result, data.shape),
            hovertemplate="%{text}<extra></extra>",
            colorbar={"title": "probability"},
            name="average strategy",
        )
    )
    fig.update_layout(
        title_text=(
            f"Average Strategy  (pot {result.config.pot_size:g}, bet {result.config.bet_size:g})"
        ),
        title_font_size=15,
        height=380,
    )
    fig.update_yaxes(autorange="reversed")
    return fig


def build_convergence_figure(result: CfrResult) -> go.Figure:
    """Return exploitability (% of pot) against iteration on log-log axes."""
    points = [(i, eps) for i, eps in result.exploitability_history if i > 0 and eps > 0]
    iters = [i for i, _ in points]
    pct = [eps / result.config.pot_size * 100 for _, eps in points]
    fig = go.Figure(
        go.Scatter(x=iters, y=pct, mode="lines+markers", name="exploitability")
    )
    fig.update_layout(
        title_text="CFR Convergence",
        xaxis_title="iteration",
        yaxis_title="exploitability (% of pot)",
        xaxis_type="log",
        yaxis_type="log",
        height=380,
    )
    return fig


def strategy_table_rows(result: CfrResult) -> list[dict[str, object]]:
    """Return one flat dict per infoset, for tables (e.g. a DataFrame)."""
    rows: list[dict[str, object]] = []
    for key in sorted(result.strategy, key=InfoSetKey.sort_key):
        row: dict[str, object] = {"infoset": key.label}
        row.update({a.name.lower(): round(p, 4) for a, p in result.strategy[key].items()})
        rows.append(row)
    return rows


# ─── HTML export ───────────────────────────────────────────────────────────────


def save_figure_html(fig: go.Figure, path: str) -> None:
    """Save a Plotly figure to a self-contained HTML file.

    Plotly JS is loaded from the CDN so the file itself remains compact.
    """
    fig.write_html(path, include_plotlyjs="cdn")


# ─── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    import sys

    from src.solvers.cfr import solve

    n_iter = int(sys.argv[1]) if len(sys.argv) > 1 else 20_000
    print(f"Running CFR for {n_iter} iterations …")
    result = solve(n_iterations=n_iter, convergence_check_every=max(1, n_iter // 50))

    save_figure_html(build_strategy_figure(result), "strategy_lookup.html")
    save_figure_html(build_convergence_figure(result), "convergence.html")
    print("Saved: strategy_lookup.html, convergence.html")
