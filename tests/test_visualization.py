import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from survey_analysis.errors import AlignmentError
from survey_analysis.visualization import (
    generate_figures,
    plot_ca_biplot,
    plot_category_map,
    plot_correlation_circle,
    plot_scatter_2d,
    plot_scree,
)


def sample_embeddings():
    return pd.DataFrame(
        {"F1": [0.1, -0.4, 0.3, 0.9], "F2": [0.2, 0.0, -0.5, 0.1]},
        index=[3, 1, 2, 0],
    )


def test_plot_scree_returns_figure():
    fig = plot_scree(pd.Series([0.6, 0.3, 0.1], index=["F1", "F2", "F3"]), "Scree")
    ax = fig.axes[0]
    assert len(ax.patches) == 3
    assert ax.get_title() == "Scree"
    plt.close(fig)


def test_plot_correlation_circle():
    coords = pd.DataFrame({"F1": [0.8, -0.3], "F2": [0.1, 0.7]}, index=["a", "b"])
    fig = plot_correlation_circle(coords, "Cercle")
    texts = [t.get_text() for t in fig.axes[0].texts]
    assert texts == ["a", "b"]
    plt.close(fig)


def test_plot_scatter_2d_groups_joined_by_index():
    groups = pd.Series(["<25", "25-34", "<25", "35+", "inutilisé"], index=[0, 1, 2, 3, 4], name="Classe_age")
    fig = plot_scatter_2d(sample_embeddings(), groups, "Individus")
    legend = fig.axes[0].get_legend()
    labels = sorted(t.get_text() for t in legend.get_texts())
    assert labels == ["25-34", "35+", "<25"]
    assert legend.get_title().get_text() == "Classe_age"
    plt.close(fig)


def test_plot_scatter_2d_misaligned_groups():
    groups = pd.Series(["<25", "25-34"], index=[0, 1], name="Classe_age")
    with pytest.raises(AlignmentError):
        plot_scatter_2d(sample_embeddings(), groups, "Individus")
    plt.close("all")


def test_plot_category_map_and_biplot():
    coords = pd.DataFrame(
        {"F1": [0.5, -0.5, 0.2, -0.2], "F2": [0.1, -0.1, 0.3, -0.3]},
        index=["stat__Oui", "stat__Non", "prog__Oui", "prog__Non"],
    )
    fig = plot_category_map(coords, "Modalités")
    assert len(fig.axes[0].texts) == 4
    plt.close(fig)
    rows = pd.DataFrame({"F1": [0.4, -0.4]}, index=pd.Index(["Low", "High"], name="Niveau"))
    cols = pd.DataFrame({"F1": [0.3, -0.3]}, index=pd.Index(["Yes", "No"], name="Satisfait"))
    fig = plot_ca_biplot(rows, cols, "AFC")
    assert len(fig.axes[0].texts) == 4
    plt.close(fig)


def test_generate_figures_saves_png(tmp_path):
    emb = sample_embeddings()
    results = {
        "Pertinence": {
            "inertia": pd.Series([0.7, 0.3], index=["F1", "F2"]),
            "embeddings": emb,
            "loadings": pd.DataFrame({"F1": [0.9, -0.6], "F2": [0.2, 0.7]}, index=["a", "b"]),
            "contributions": pd.DataFrame({"F1": [60.0, 40.0], "F2": [30.0, 70.0]}, index=["a", "b"]),
        }
    }
    groups = {"Classe_age": pd.Series(["x", "y", "x", "y"], index=range(4), name="Classe_age")}
    ca_result = {
        "inertia": pd.Series([1.0], index=["F1"]),
        "row_coords": pd.DataFrame({"F1": [0.4, -0.4]}, index=["Low", "High"]),
        "column_coords": pd.DataFrame({"F1": [0.3, -0.3]}, index=["Yes", "No"]),
    }
    figures = generate_figures(results, groups, ca_result, tmp_path)
    expected = {
        "Pertinence_scree",
        "Pertinence_correlation",
        "Pertinence_contributions",
        "Pertinence_individuals",
        "Pertinence_individuals_Classe_age",
        "ca_scree",
        "ca_biplot",
    }
    assert set(figures) == expected
    for name in expected:
        assert (tmp_path / f"{name}.png").exists()
    plt.close("all")
