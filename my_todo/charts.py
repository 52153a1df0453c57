from __future__ import annotations

import plotly.graph_objects as go

from my_todo.models import LevelInfo

PRIMARY_COLOR = "#3B82F6"
FONT_COLOR = "#1F2937"
MUTED_COLOR = "#9CA3AF"


def build_level_gauge(level_info: LevelInfo, *, title: str | None = None) -> go.Figure:
    """Gauge showing the percentage towards the next level."""

    figure = go.Figure(
        go.Indicator(
            mode="gauge+number",
            value=level_info.progress_percent,
            number={"suffix": "%", "font": {"color": FONT_COLOR, "size": 26}},
            title={
                "text": title or f"Lv.{level_info.level} {level_info.title}",
                "font": {"color": FONT_COLOR, "size": 14},
            },
            gauge={
                "axis": {"range": [0, 100], "tickcolor": MUTED_COLOR},
                "bar": {"color": PRIMARY_COLOR, "thickness": 0.4},
                "bgcolor": "rgba(0,0,0,0.03)",
                "borderwidth": 1,
                "bordercolor": "#E5E7EB",
                "steps": [
                    {"range": [0, 40], "color": "rgba(59,130,246,0.08)"},
                    {"range": [40, 80], "color": "rgba(59,130,246,0.14)"},
                    {"range": [80, 100], "color": "rgba(59,130,246,0.22)"},
                ],
            },
        )
    )
    figure.update_layout(
        height=220,
        margin=dict(t=30, r=10, b=0, l=10),
        paper_bgcolor="rgba(0,0,0,0)",
        plot_bgcolor="rgba(0,0,0,0)",
    )
    return figure


__all__ = ["PRIMARY_COLOR", "build_level_gauge"]
