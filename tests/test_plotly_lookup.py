"""Tests for the interactive Plotly views (src/analysis/plotly_lookup.py).

Tests verify that each public function returns a well-formed go.Figure with the
expected trace count, data invariants, and hover text.  The save helper is
tested against a temporary file path.

No display server is required: Plotly figures are in-memory objects and the
save helper writes HTML without rendering.
"""

from __future__ import annotations

import os

import plotly.graph_objects as go
import pytest

from src.analysis.plotly_lookup import (
    build_convergence_figure,
    build_strategy_figure,
    save_figure_html,
    strategy_table_rows,
)
from src.solvers.cfr import CfrResult, solve


@pytest.fixture(scope="module")
def result() -> CfrResult:
    return solve(n_iterations=500, seed=0, convergence_check_every=100)


# ─── build_strategy_figure ────────────────────────────────────────────────────


class TestBuildStrategyFigure:
    def test_returns_figure(self, result: CfrResult) -> None:
        assert isinstance(build_strategy_figure(result), go.Figure)

    def test_single_heatmap_trace(self, result: CfrResult) -> None:
        fig = build_strategy_figure(result)
        assert len(fig.data) == 1
        assert isinstance(fig.data[0], go.Heatmap)

    def test_grid_shape(self, result: CfrResult) -> None:
        z = build_strategy_figure(result).data[0].z
        assert len(z) == 3
        assert all(len(row) == 3 for row in z)

    def test_absent_cells_are_blank(self, result: CfrResult) -> None:
        z = build_strategy_figure(result).data[0].z
        assert z[0][1] is None
        assert z[1][0] is None

    def test_hover_lists_actions(self, result: CfrResult) -> None:
        text = build_strategy_figure(result).data[0].text
        assert "Infoset: b|1" in text[1][1]
        assert "call:" in text[1][1] and "fold:" in text[1][1]

    def test_title_mentions_stakes(self, result: CfrResult) -> None:
        title = build_strategy_figure(result).layout.title.text
        assert "pot 4" in title and "bet 2" in title


# ─── build_convergence_figure ─────────────────────────────────────────────────


class TestBuildConvergenceFigure:
    def test_one_point_per_check(self, result: CfrResult) -> None:
        fig = build_convergence_figure(result)
        assert len(fig.data) == 1
        assert list(fig.data[0].x) == [i for i, _ in result.exploitability_history]

    def test_values_are_percent_of_pot(self, result: CfrResult) -> None:
        fig = build_convergence_figure(result)
        expected = result.exploitability_history[-1][1] / 4.0 * 100
        assert fig.data[0].y[-1] == pytest.approx(expected)

    def test_log_axes(self, result: CfrResult) -> None:
        layout = build_convergence_figure(result).layout
        assert layout.xaxis.type == "log"
        assert layout.yaxis.type == "log"


# ─── strategy_table_rows ──────────────────────────────────────────────────────


class TestStrategyTableRows:
    def test_one_row_per_infoset_in_order(self, result: CfrResult) -> None:
        rows = strategy_table_rows(result)
        assert [r["infoset"] for r in rows] == ["|0", "|2", "b|1", "h|1"]

    def test_columns_are_action_names(self, result: CfrResult) -> None:
        rows = strategy_table_rows(result)
        assert set(rows[0]) == {"infoset", "bet", "check"}
        assert set(rows[2]) == {"infoset", "call", "fold"}
        assert rows[3]["check"] == 1.0


# ─── save_figure_html ─────────────────────────────────────────────────────────


class TestSaveFigureHtml:
    def test_writes_html(self, result: CfrResult, tmp_path) -> None:
        path = tmp_path / "lookup.html"
        save_figure_html(build_strategy_figure(result), str(path))
        assert os.path.exists(path)
        assert "<html>" in path.read_text().lower()
