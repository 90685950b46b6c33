"""Half-Street CFR Solver — Streamlit Dashboard.

Three-tab interactive dashboard for exploring solved strategies:
  Tab 1 — Strategy        (matplotlib heat map + stacked bars, strategy table)
  Tab 2 — Interactive     (Plotly heatmap and convergence curve)
  Tab 3 — Strategy Report (text report: summary, infosets, convergence)

Run:
    PYTHONPATH=. streamlit run app.py
"""

from __future__ import annotations

import contextlib
import io

import matplotlib

matplotlib.use("Agg")  # must be set before any other matplotlib imports

import streamlit as st

# ─── Page config ──────────────────────────────────────────────────────────────

st.set_page_config(
    page_title="Half-Street CFR Solver",
    page_icon="🃏",
    layout="wide",
)

# ─── Lazy imports (inside functions to keep startup fast) ─────────────────────


@st.cache_resource
def _load_analysis_modules():
    """Import analysis modules once (cached for the process lifetime)."""
    from src.analysis.heat_maps import (
        plot_convergence,
        plot_strategy_bars,
        plot_strategy_heatmap,
    )
    from src.analysis.plotly_lookup import (
        build_convergence_figure,
        build_strategy_figure,
        strategy_table_rows,
    )
    from src.analysis.strategy_report import (
        print_convergence,
        print_infosets,
        print_summary,
    )

    return {
        "plot_strategy_heatmap": plot_strategy_heatmap,
        "plot_strategy_bars": plot_strategy_bars,
        "plot_convergence": plot_convergence,
        "build_strategy_figure": build_strategy_figure,
        "build_convergence_figure": build_convergence_figure,
        "strategy_table_rows": strategy_table_rows,
        "print_summary": print_summary,
        "print_infosets": print_infosets,
        "print_convergence": print_convergence,
    }


@st.cache_resource
def _run_cfr(
    p0_cards: str,
    p1_cards: str,
    num_cards: int,
    pot: float,
    bet: float,
    n_iterations: int,
    seed: int,
    lock_text: str,
):
    """Solve and cache the result (keyed on every control value)."""
    from src.analysis.strategy_report import parse_lock
    from src.engine.cards import parse_card_set
    from src.engine.game_state import GameConfig
    from src.solvers.cfr import solve

    config = GameConfig(
        allowed_cards=(parse_card_set(p0_cards, num_cards), parse_card_set(p1_cards, num_cards)),
        pot_size=pot,
        bet_size=bet,
        num_cards=num_cards,
    )
    locks = dict(parse_lock(line) for line in lock_text.splitlines() if line.strip())
    return solve(
        config,
        n_iterations=n_iterations,
        seed=seed,
        locks=locks,
        convergence_check_every=max(1, n_iterations // 50),
    )


# ─── Sidebar controls ─────────────────────────────────────────────────────────

with st.sidebar:
    st.title("🃏 Half-Street CFR")
    st.markdown("---")

    num_cards = st.number_input("Deck size", min_value=2, max_value=10, value=3, step=1)
    p0_cards = st.text_input("Player 0 cards", value="0,2")
    p1_cards = st.text_input("Player 1 cards", value="1")
    pot = st.number_input("Pot size", min_value=0.5, value=4.0, step=0.5)
    bet = st.number_input("Bet size", min_value=0.5, value=2.0, step=0.5)

    st.markdown("---")
    n_iterations = st.slider(
        "CFR iterations",
        min_value=1_000,
        max_value=200_000,
        value=20_000,
        step=1_000,
    )
    seed = st.number_input("Seed", min_value=0, value=1, step=1)
    lock_text = st.text_area(
        "Locked infosets (HISTORY:CARD:P1,P2 per line)",
        value="",
        help="e.g. ':0:0.5,0.5' pins player 0's root strategy with card 0.",
    )

    run_cfr = st.button("Run CFR Solver", type="primary")

    st.markdown("---")
    st.caption("Chance-sampled CFR with regret-matching-plus")

# ─── CFR solver result ────────────────────────────────────────────────────────

cfr_result = None
if run_cfr or "cfr_result_cached" in st.session_state:
    try:
        with st.spinner(f"Running CFR ({n_iterations} iterations) …"):
            cfr_result = _run_cfr(
                p0_cards, p1_cards, int(num_cards), float(pot), float(bet),
                int(n_iterations), int(seed), lock_text,
            )
    except ValueError as exc:
        st.sidebar.error(f"Invalid setup: {exc}")
    else:
        st.session_state["cfr_result_cached"] = True
        st.sidebar.success(
            f"CFR done — game value: {cfr_result.game_value:+.4f} | "
            f"Exploitability: {cfr_result.exploitability:.4f}"
        )

# ─── Tabs ─────────────────────────────────────────────────────────────────────

tab1, tab2, tab3 = st.tabs(
    [
        "Strategy",
        "Interactive Plotly Lookup",
        "Strategy Report",
    ]
)

m = _load_analysis_modules()

# ── Tab 1: Strategy ───────────────────────────────────────────────────────────

with tab1:
    st.header("Average Strategy")
    if cfr_result is not None:
        import pandas as pd

        st.dataframe(
            pd.DataFrame(m["strategy_table_rows"](cfr_result)),
            use_container_width=True,
            hide_index=True,
        )
        col1, col2 = st.columns(2)
        with col1:
            st.pyplot(m["plot_strategy_heatmap"](cfr_result, show=False))
        with col2:
            st.pyplot(m["plot_strategy_bars"](cfr_result, show=False))
        st.pyplot(m["plot_convergence"](cfr_result, show=False))
    else:
        st.info("Press **Run CFR Solver** in the sidebar to solve the game.")

# ── Tab 2: Interactive Plotly Lookup ─────────────────────────────────────────

with tab2:
    st.header("Interactive Plotly Strategy Lookup")
    if cfr_result is not None:
        st.plotly_chart(m["build_strategy_figure"](cfr_result), use_container_width=True)
        st.plotly_chart(m["build_convergence_figure"](cfr_result), use_container_width=True)
    else:
        st.info("Press **Run CFR Solver** in the sidebar to see interactive figures.")

# ── Tab 3: Strategy Report ────────────────────────────────────────────────────

with tab3:
    st.header("Strategy Report")
    if cfr_result is not None:
        for section_fn, label in [
            (m["print_summary"], "Equilibrium Summary"),
            (m["print_infosets"], "Average Strategy per Infoset"),
            (m["print_convergence"], "Convergence"),
        ]:
            st.subheader(label)
            buf = io.StringIO()
            with contextlib.redirect_stdout(buf):
                section_fn(cfr_result)
            st.code(buf.getvalue(), language=None)
    else:
        st.info("Press **Run CFR Solver** in the sidebar to see the strategy report.")
