"""Visualization functions for model evaluation and interpretation.

All plot functions return figure objects that can be displayed in
Jupyter notebooks or written to disk by the pipeline.
"""

from typing import Any

import pandas as pd


def plot_residuals(
    residuals_df: pd.DataFrame,
    use_plotly: bool = True,
) -> Any:
    """Plot predicted vs actual magnitude, colored by split.

    Args:
        residuals_df: DataFrame from residuals_table
        use_plotly: If True, returns Plotly figure; else Matplotlib

    Returns:
        Plotly Figure or Matplotlib Figure

    Example:
        >>> fig = plot_residuals(residuals_table(table, training))
        >>> fig.show()  # In notebook
    """
    low = float(min(residuals_df["actual"].min(), residuals_df["predicted"].min()))
    high = float(max(residuals_df["actual"].max(), residuals_df["predicted"].max()))

    if use_plotly:
        import plotly.express as px

        fig = px.scatter(
            residuals_df,
            x="actual",
            y="predicted",
            color="split",
            title="Predicted vs Actual",
            labels={"actual": "Actual", "predicted": "Predicted"},
        )
        fig.add_shape(
            type="line", x0=low, y0=low, x1=high, y1=high, line=dict(color="gray", dash="dash")
        )
        return fig
    else:
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(8, 8))

        for split, group in residuals_df.groupby("split"):
            ax.scatter(group["actual"], group["predicted"], label=split, s=20)

        ax.plot([low, high], [low, high], "k--", linewidth=1)
        ax.set_xlabel("Actual")
        ax.set_ylabel("Predicted")
        ax.set_title("Predicted vs Actual")
        ax.legend()
        return fig


def plot_importance(
    importance_df: pd.DataFrame,
    value_column: str = "importance",
    title: str = "Permutation Importance (MAE increase)",
    use_plotly: bool = True,
) -> Any:
    """Horizontal bar chart of per-feature scores.

    Works for both importance and interaction tables.

    Args:
        importance_df: DataFrame with a feature column and a score column
        value_column: Score column to plot
        title: Chart title
        use_plotly: If True, returns Plotly figure; else Matplotlib

    Returns:
        Plotly Figure or Matplotlib Figure
    """
    plot_df = importance_df.sort_values(value_column)

    if use_plotly:
        import plotly.graph_objects as go

        error_x = None
        if f"{value_column}_std" in plot_df.columns:
            error_x = dict(type="data", array=plot_df[f"{value_column}_std"])

        fig = go.Figure(
            go.Bar(
                x=plot_df[value_column],
                y=plot_df["feature"],
                orientation="h",
                error_x=error_x,
            )
        )
        fig.update_layout(title=title, xaxis_title=value_column, yaxis_title="Feature")
        return fig
    else:
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(10, max(3, 0.4 * len(plot_df))))
        ax.barh(plot_df["feature"], plot_df[value_column])
        ax.set_xlabel(value_column)
        ax.set_title(title)
        return fig


def plot_feature_effects(
    effects_df: pd.DataFrame,
    show_ice: bool = True,
    use_plotly: bool = True,
) -> Any:
    """Grid of centered PDP curves with optional ICE overlay.

    Args:
        effects_df: DataFrame from feature_effects
        show_ice: If True, draw the individual ICE curves
        use_plotly: If True, returns Plotly figure; else Matplotlib

    Returns:
        Plotly Figure or Matplotlib Figure
    """
    features = list(dict.fromkeys(effects_df["feature"]))
    n_cols = min(3, len(features))
    n_rows = (len(features) + n_cols - 1) // n_cols

    if use_plotly:
        from plotly.subplots import make_subplots
        import plotly.graph_objects as go

        fig = make_subplots(rows=n_rows, cols=n_cols, subplot_titles=features)

        for i, feature in enumerate(features):
            row, col = i // n_cols + 1, i % n_cols + 1
            feature_df = effects_df[effects_df["feature"] == feature]

            if show_ice:
                for _, curve in feature_df[feature_df["kind"] == "ice"].groupby("record"):
                    fig.add_trace(
                        go.Scatter(
                            x=curve["grid_value"],
                            y=curve["effect"],
                            mode="lines",
                            line=dict(color="lightgray", width=1),
                            showlegend=False,
                        ),
                        row=row,
                        col=col,
                    )

            pdp = feature_df[feature_df["kind"] == "pdp"]
            fig.add_trace(
                go.Scatter(
                    x=pdp["grid_value"],
                    y=pdp["effect"],
                    mode="lines",
                    line=dict(color="red", width=3),
                    showlegend=False,
                ),
                row=row,
                col=col,
            )

        fig.update_layout(title="Partial Dependence (centered)", height=300 * n_rows)
        return fig
    else:
        import matplotlib.pyplot as plt

        fig, axes = plt.subplots(n_rows, n_cols, figsize=(5 * n_cols, 4 * n_rows), squeeze=False)

        for i, feature in enumerate(features):
            ax = axes[i // n_cols][i % n_cols]
            feature_df = effects_df[effects_df["feature"] == feature]

            if show_ice:
                for _, curve in feature_df[feature_df["kind"] == "ice"].groupby("record"):
                    ax.plot(curve["grid_value"], curve["effect"], color="lightgray", linewidth=0.5)

            pdp = feature_df[feature_df["kind"] == "pdp"]
            ax.plot(pdp["grid_value"], pdp["effect"], color="red", linewidth=2)
            ax.set_title(feature)

        for j in range(len(features), n_rows * n_cols):
            axes[j // n_cols][j % n_cols].axis("off")

        fig.suptitle("Partial Dependence (centered)")
        return fig


def plot_local_attribution(
    local_df: pd.DataFrame,
    record: Any,
    method: str = "shapley",
    use_plotly: bool = True,
) -> Any:
    """Bar chart of one record's local attributions.

    Args:
        local_df: DataFrame from explain_records
        record: Record id to plot
        method: "shapley" or "lime"
        use_plotly: If True, returns Plotly figure; else Matplotlib

    Returns:
        Plotly Figure or Matplotlib Figure
    """
    plot_df = local_df[(local_df["record"] == record) & (local_df["method"] == method)]
    plot_df = plot_df.iloc[::-1]
    labels = [f"{f} = {v:.4g}" for f, v in zip(plot_df["feature"], plot_df["feature_value"])]
    colors = ["#d62728" if a > 0 else "#1f77b4" for a in plot_df["attribution"]]

    title = f"{method.title()} attribution - {record}"
    if len(plot_df):
        first = plot_df.iloc[0]
        title += f" (prediction {first['prediction']:.2f}, baseline {first['baseline']:.2f})"

    if use_plotly:
        import plotly.graph_objects as go

        fig = go.Figure(
            go.Bar(x=plot_df["attribution"], y=labels, orientation="h", marker_color=colors)
        )
        fig.update_layout(title=title, xaxis_title="Attribution")
        return fig
    else:
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots(figsize=(10, max(3, 0.4 * len(plot_df))))
        ax.barh(labels, plot_df["attribution"], color=colors)
        ax.set_xlabel("Attribution")
        ax.set_title(title)
        return fig
