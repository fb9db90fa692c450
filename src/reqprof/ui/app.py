from __future__ import annotations

import asyncio

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from reqprof.analysis import compare_runs
from reqprof.config import RunConfig, parse_target
from reqprof.probe import ProbeError
from reqprof.probe.runner import run_experiment
from reqprof.storage import default_storage


st.set_page_config(page_title="Request Profiler", layout="wide")

storage = default_storage()


@st.cache_data
def _load_runs() -> pd.DataFrame:
    return storage.list_runs()


def _render_header() -> None:
    st.title("Request Profiler")
    st.caption("Sequential HTTP GET latency profiles over raw TCP.")


def _build_config() -> RunConfig | None:
    with st.sidebar:
        st.header("Run Configuration")
        url = st.text_input("URL", "example.com/")
        port = st.text_input("Port", "80")
        count = st.slider("Requests", 1, 500, 20)
        notes = st.text_input("Notes", "")
    try:
        spec = parse_target(url, port=port)
    except ValueError as exc:
        st.sidebar.error(str(exc))
        return None
    return RunConfig(
        spec=spec,
        count=count,
        profile=True,
        notes=notes,
    )


def _run_button(config: RunConfig) -> None:
    if st.sidebar.button("Start run"):
        progress = st.sidebar.progress(0, text="Running...")

        async def on_progress(step: int, total: int) -> None:
            progress.progress(min(1.0, step / total))

        try:
            run = asyncio.run(run_experiment(config, storage, progress=on_progress))
        except ProbeError as exc:
            st.sidebar.error(f"Run aborted ({exc.kind.value}): {exc}")
            return
        st.sidebar.success(f"Run completed: {run.run_id}")
        st.cache_data.clear()


def _plot_latency_hist(latencies: pd.DataFrame) -> go.Figure:
    if latencies.empty:
        return go.Figure()
    fig = px.histogram(latencies, x="latency_ms", nbins=30, title="Latency distribution")
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10))
    return fig


def _plot_sorted_latency(latencies: pd.DataFrame) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=latencies["seq"], y=latencies["latency_ms"], name="latency", mode="lines"))
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10), title="Sorted latencies")
    return fig


def _render_run_view(run_id: str) -> None:
    summary = storage.load_summary(run_id)
    latencies = storage.load_latencies(run_id)
    meta = storage.load_run_meta(run_id) or {}
    st.subheader(f"Run {run_id}")
    st.caption(meta.get("notes", ""))
    if summary.empty:
        st.info("No summary stored for this run")
        return
    row = summary.iloc[0]

    cols = st.columns(5)
    cols[0].metric("Requests", int(row["request_count"]))
    cols[1].metric("Median (ms)", f"{row['median_ms']:.1f}")
    cols[2].metric("Average (ms)", f"{row['avg_ms']:.1f}")
    cols[3].metric("p99 (ms)", f"{row['p99_ms']:.1f}")
    cols[4].metric("Succeeded", f"{row['success_rate'] * 100:.2f}%")

    col1, col2 = st.columns(2)
    with col1:
        st.plotly_chart(_plot_latency_hist(latencies), use_container_width=True)
    with col2:
        st.plotly_chart(_plot_sorted_latency(latencies), use_container_width=True)


def _render_comparison() -> None:
    runs = _load_runs()
    if runs.empty:
        return
    run_ids = runs["run_id"].tolist()
    st.subheader("Run Comparison")
    base = st.selectbox("Baseline run", run_ids, index=0)
    candidate = st.selectbox("Candidate run", run_ids, index=min(1, len(run_ids) - 1))
    if base == candidate:
        st.info("Select two different runs for comparison")
        return
    base_lat = storage.load_latencies(base)
    cand_lat = storage.load_latencies(candidate)

    fig = go.Figure()
    fig.add_trace(go.Box(y=base_lat["latency_ms"], name=base))
    fig.add_trace(go.Box(y=cand_lat["latency_ms"], name=candidate))
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=30, b=10))
    st.plotly_chart(fig, use_container_width=True)

    regressions = compare_runs(storage.load_summary(base), storage.load_summary(candidate))
    if not regressions:
        st.success("No regressions detected")
    else:
        for reg in regressions:
            st.error(f"{reg.message} ({reg.delta_pct:.1f}% on {reg.metric})")


def main() -> None:
    _render_header()
    config = _build_config()
    if config is not None:
        _run_button(config)

    runs = _load_runs()
    if runs.empty:
        st.info("No runs yet. Start one from the sidebar.")
        return
    selected_run = st.selectbox("Select run", runs["run_id"].tolist())
    _render_run_view(selected_run)
    _render_comparison()


if __name__ == "__main__":
    main()
