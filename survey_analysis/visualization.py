"""Figures for the factorial analyses of the survey blocks."""

from __future__ import annotations

import logging

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from pathlib import Path
import pandas as pd
import seaborn as sns
import numpy as np
from typing import Dict, Any, Mapping, Optional

from .alignment import align_group


def plot_scree(inertia: pd.Series, title: str) -> plt.Figure:
    """Return a scree plot showing variance explained by each component."""
    axes = range(1, len(inertia) + 1)
    fig, ax = plt.subplots(figsize=(12, 6), dpi=200)
    ax.bar(axes, inertia.values * 100, edgecolor="black")
    ax.plot(axes, np.cumsum(inertia.values) * 100, "-o", color="orange")
    ax.set_xlabel("Composante")
    ax.set_ylabel("% Variance expliquée")
    ax.set_title(title)
    ax.set_xticks(list(axes))
    fig.tight_layout()
    return fig


def plot_correlation_circle(coords: pd.DataFrame, title: str) -> plt.Figure:
    """Return a correlation circle figure for the provided coordinates.

    Parameters
    ----------
    coords : pandas.DataFrame
        DataFrame indexed by variable names with ``F1`` and ``F2`` columns.
    title : str
        Title of the figure.
    """
    fig, ax = plt.subplots(figsize=(12, 6), dpi=200)
    circle = plt.Circle((0, 0), 1, color="grey", fill=False, linestyle="dashed")
    ax.add_patch(circle)
    ax.axhline(0, color="grey", lw=0.5)
    ax.axvline(0, color="grey", lw=0.5)
    for var in coords.index:
        x, y = coords.loc[var, ["F1", "F2"]]
        ax.arrow(0, 0, x, y, head_width=0.02, length_includes_head=True, color="black")
        offset_x = x * 1.15 + 0.03 * np.sign(x)
        offset_y = y * 1.15 + 0.03 * np.sign(y)
        ax.text(offset_x, offset_y, str(var), fontsize=8, ha="center", va="center")
    ax.set_xlim(-1.1, 1.1)
    ax.set_ylim(-1.1, 1.1)
    ax.set_xlabel("F1")
    ax.set_ylabel("F2")
    ax.set_title(title)
    ax.set_aspect("equal")
    fig.tight_layout()
    return fig


def plot_scatter_2d(
    emb_df: pd.DataFrame, groups: Optional[pd.Series], title: str
) -> plt.Figure:
    """Return a 2D scatter plot of individuals coloured by ``groups``.

    ``groups`` is joined on the index of ``emb_df``; see
    :func:`survey_analysis.alignment.align_group`.
    """
    fig, ax = plt.subplots(figsize=(12, 6), dpi=200)
    if groups is None:
        ax.scatter(emb_df.iloc[:, 0], emb_df.iloc[:, 1], s=10, alpha=0.7)
    else:
        cats = align_group(emb_df, groups).astype(str).astype("category")
        palette = sns.color_palette("tab10", len(cats.cat.categories))
        for cat, color in zip(cats.cat.categories, palette):
            mask = cats == cat
            ax.scatter(
                emb_df.loc[mask, emb_df.columns[0]],
                emb_df.loc[mask, emb_df.columns[1]],
                s=10,
                alpha=0.7,
                color=color,
                label=str(cat),
            )
        ax.legend(title=str(groups.name), bbox_to_anchor=(1.05, 1), loc="upper left")
    ax.axhline(0, color="grey", lw=0.5)
    ax.axvline(0, color="grey", lw=0.5)
    ax.set_xlabel(emb_df.columns[0])
    ax.set_ylabel(emb_df.columns[1])
    ax.set_title(title)
    fig.tight_layout()
    return fig


def plot_category_map(coords: pd.DataFrame, title: str) -> plt.Figure:
    """Return the F1/F2 map of MCA category levels.

    Levels are labelled ``variable__level`` by ``prince``; points are
    coloured by variable.
    """
    fig, ax = plt.subplots(figsize=(12, 6), dpi=200)
    variables = pd.Series(
        [str(idx).split("__", 1)[0] for idx in coords.index], index=coords.index
    )
    palette = sns.color_palette("tab10", variables.nunique())
    for var, color in zip(variables.unique(), palette):
        sub = coords.loc[variables == var]
        ax.scatter(sub["F1"], sub["F2"], s=25, color=color, label=var)
        for idx in sub.index:
            label = str(idx).split("__", 1)[-1]
            ax.annotate(label, (sub.loc[idx, "F1"], sub.loc[idx, "F2"]), fontsize=7)
    ax.axhline(0, color="grey", lw=0.5)
    ax.axvline(0, color="grey", lw=0.5)
    ax.set_xlabel("F1")
    ax.set_ylabel("F2")
    ax.set_title(title)
    ax.legend(title="Variable", bbox_to_anchor=(1.05, 1), loc="upper left", fontsize=7)
    fig.tight_layout()
    return fig


def plot_ca_biplot(
    row_coords: pd.DataFrame, col_coords: pd.DataFrame, title: str
) -> plt.Figure:
    """Return a symmetric CA map with row and column points.

    A one dimensional solution is drawn along F1 with a null second axis.
    """
    fig, ax = plt.subplots(figsize=(12, 6), dpi=200)
    for coords, color, marker, name in [
        (row_coords, "tab:blue", "o", row_coords.index.name),
        (col_coords, "tab:red", "^", col_coords.index.name),
    ]:
        x = coords["F1"]
        y = coords["F2"] if "F2" in coords.columns else pd.Series(0.0, index=coords.index)
        ax.scatter(x, y, color=color, marker=marker, s=40, label=str(name))
        for idx in coords.index:
            ax.annotate(str(idx), (x[idx], y[idx]), fontsize=8, color=color)
    ax.axhline(0, color="grey", lw=0.5)
    ax.axvline(0, color="grey", lw=0.5)
    ax.set_xlabel("F1")
    ax.set_ylabel("F2")
    ax.set_title(title)
    ax.legend(bbox_to_anchor=(1.05, 1), loc="upper left")
    fig.tight_layout()
    return fig


def plot_contributions(contrib: pd.DataFrame, title: str, n: int = 10) -> plt.Figure:
    """Return a bar plot of variable contributions to F1 and F2."""
    cols = [c for c in ["F1", "F2"] if c in contrib.columns]
    df = contrib[cols].copy()
    df = df.loc[df.sum(axis=1).sort_values(ascending=False).index].iloc[:n]
    fig, ax = plt.subplots(figsize=(12, 6), dpi=200)
    df.plot(kind="bar", stacked=True, ax=ax)
    ax.set_ylabel("% Contribution")
    ax.set_title(title)
    ax.legend(title="Axe")
    fig.tight_layout()
    return fig


def generate_figures(
    factor_results: Mapping[str, Dict[str, Any]],
    groups: Mapping[str, pd.Series],
    ca_result: Optional[Mapping[str, Any]] = None,
    output_dir: Optional[Path] = None,
) -> Dict[str, plt.Figure]:
    """Generate and optionally save the figures of every analysed block.

    Parameters
    ----------
    factor_results : mapping
        ``{block_name: result}`` as returned by ``run_pca``/``run_mca``.
    groups : mapping
        Auxiliary grouping variables indexed by row key; one individual map
        is drawn per variable and block.
    ca_result : mapping, optional
        Output of :func:`survey_analysis.correspondence.run_ca`.
    output_dir : Path or None, optional
        Directory where figures will be saved.
    """
    logger = logging.getLogger(__name__)
    figures: Dict[str, plt.Figure] = {}
    out = Path(output_dir) if output_dir is not None else None

    def _save(fig: plt.Figure, name: str) -> None:
        figures[name] = fig
        if out is None:
            return
        out.mkdir(parents=True, exist_ok=True)
        fig.savefig(out / f"{name}.png")

    for block, res in factor_results.items():
        inertia = res.get("inertia")
        if isinstance(inertia, pd.Series) and not inertia.empty:
            _save(plot_scree(inertia, f"Variance expliquée par composante – {block}"), f"{block}_scree")
        emb = res.get("embeddings")
        if not isinstance(emb, pd.DataFrame) or emb.shape[1] < 2:
            logger.info("Block '%s': fewer than 2 components, no 2D map", block)
            continue
        loadings = res.get("loadings")
        if isinstance(loadings, pd.DataFrame):
            pct = float(inertia.iloc[:2].sum() * 100)
            title = f"{block} – cercle des corrélations (F1–F2)\nVariance {pct:.1f}%"
            _save(plot_correlation_circle(loadings, title), f"{block}_correlation")
            contrib = res.get("contributions")
            if isinstance(contrib, pd.DataFrame) and not contrib.empty:
                _save(
                    plot_contributions(contrib, f"Contribution des variables à F1/F2 – {block}"),
                    f"{block}_contributions",
                )
        col_coords = res.get("column_coords")
        if isinstance(col_coords, pd.DataFrame) and col_coords.shape[1] >= 2:
            _save(plot_category_map(col_coords, f"Modalités – {block}"), f"{block}_categories")
        _save(plot_scatter_2d(emb, None, f"Projection des individus – {block}"), f"{block}_individuals")
        for name, group in groups.items():
            _save(
                plot_scatter_2d(emb, group, f"Projection des individus – {block} ({name})"),
                f"{block}_individuals_{name}",
            )

    if ca_result is not None:
        _save(plot_scree(ca_result["inertia"], "Inertie par dimension – AFC"), "ca_scree")
        _save(
            plot_ca_biplot(ca_result["row_coords"], ca_result["column_coords"], "AFC – carte symétrique"),
            "ca_biplot",
        )
    return figures
