import numpy as np
import pandas as pd
import pytest

from survey_analysis.correspondence import (
    build_contingency,
    ca_summary,
    column_profiles,
    contingency_from_counts,
    drop_empty_margins,
    row_profiles,
    run_ca,
)
from survey_analysis.errors import DecompositionError


def scenario_table():
    return contingency_from_counts(
        {("Low", "Yes"): 10, ("Low", "No"): 5, ("High", "Yes"): 3, ("High", "No"): 12},
        row_name="Niveau",
        col_name="Satisfait",
    )


def survey_df():
    return pd.DataFrame({
        "Formation": ["Info", "Stat", "Stat", "Info", "Eco", "Eco", "Info", "Stat", "Eco", None],
        "Satisfaction": ["Oui", "Non", "Oui", "Oui", "Non", "Neutre", "Oui", "Neutre", "Non", "Oui"],
    })


def test_contingency_from_counts():
    table = scenario_table()
    assert list(table.index) == ["Low", "High"]
    assert list(table.columns) == ["Yes", "No"]
    assert table.loc["High", "No"] == 12
    assert table.index.name == "Niveau"


def test_build_contingency_counts_and_totals():
    df = survey_df()
    table = build_contingency(df, "Formation", "Satisfaction")
    assert table.loc["Info", "Oui"] == 3
    assert table.loc["Eco", "Non"] == 2
    # the respondent without Formation is left out
    total = int(table.to_numpy().sum())
    assert total == 9
    assert total == int(table.sum(axis=1).sum()) == int(table.sum(axis=0).sum())


def test_build_contingency_unknown_column():
    with pytest.raises(KeyError):
        build_contingency(survey_df(), "Formation", "Age")


def test_profiles_scenario():
    table = scenario_table()
    rows = row_profiles(table)
    assert np.allclose(rows.loc["Low"].values, [10 / 15, 5 / 15])
    assert np.allclose(rows.sum(axis=1).values, 1.0)
    cols = column_profiles(table)
    assert np.allclose(cols.loc[:, "Yes"].values, [10 / 13, 3 / 13])
    assert np.allclose(cols.sum(axis=0).values, 1.0)


def test_profiles_do_not_mutate_table():
    table = scenario_table()
    before = table.copy()
    row_profiles(table)
    column_profiles(table)
    run_ca(table)
    pd.testing.assert_frame_equal(table, before)


def test_run_ca_two_by_two_has_one_dimension():
    table = scenario_table()
    res = run_ca(table)
    assert list(res["eigenvalues"].index) == ["F1"]
    assert np.isclose(res["inertia"].iloc[0], 1.0)
    n = table.to_numpy().sum()
    assert np.isclose(res["total_inertia"], res["chi2"] / n)
    assert np.isclose(res["eigenvalues"].sum(), res["total_inertia"])
    assert res["dof"] == 1
    assert res["row_coords"].shape == (2, 1)
    assert res["column_coords"].shape == (2, 1)


def test_run_ca_coordinates_are_centred():
    table = build_contingency(survey_df(), "Formation", "Satisfaction")
    res = run_ca(table)
    assert len(res["eigenvalues"]) <= min(table.shape) - 1
    row_centre = (res["row_coords"].mul(res["row_masses"], axis=0)).sum()
    col_centre = (res["column_coords"].mul(res["column_masses"], axis=0)).sum()
    assert np.allclose(row_centre.values, 0.0)
    assert np.allclose(col_centre.values, 0.0)
    assert np.all(np.diff(res["eigenvalues"].to_numpy()) <= 1e-12)
    assert np.isclose(res["inertia"].sum(), 1.0)


def test_run_ca_n_components():
    table = build_contingency(survey_df(), "Formation", "Satisfaction")
    res = run_ca(table, n_components=1)
    assert list(res["row_coords"].columns) == ["F1"]
    assert res["inertia"].sum() <= 1.0


def test_drop_empty_margins():
    table = scenario_table()
    table.loc["Medium"] = [0, 0]
    table["Maybe"] = 0
    cleaned = drop_empty_margins(table)
    assert list(cleaned.index) == ["Low", "High"]
    assert list(cleaned.columns) == ["Yes", "No"]
    res = run_ca(table)
    assert list(res["row_coords"].index) == ["Low", "High"]


def test_run_ca_degenerate_table():
    table = pd.DataFrame({"Yes": [4, 6], "No": [0, 0]}, index=["Low", "High"])
    with pytest.raises(DecompositionError):
        run_ca(table)


def test_run_ca_independent_table():
    table = pd.DataFrame({"Yes": [2, 4], "No": [1, 2]}, index=["Low", "High"])
    with pytest.raises(DecompositionError):
        run_ca(table)


def test_run_ca_negative_counts():
    table = pd.DataFrame({"Yes": [2, -1], "No": [1, 2]}, index=["Low", "High"])
    with pytest.raises(ValueError):
        run_ca(table)


def test_ca_summary():
    res = run_ca(build_contingency(survey_df(), "Formation", "Satisfaction"))
    summary = ca_summary(res)
    assert list(summary.columns) == ["Eigenvalue", "%Inertia", "%Cumulative"]
    assert np.isclose(summary["%Cumulative"].iloc[-1], 100.0)


def test_run_ca_transition_formula():
    table = build_contingency(survey_df(), "Formation", "Satisfaction")
    res = run_ca(table)
    # row points sit at the barycentre of the column points, up to sqrt(eigenvalue)
    profiles = row_profiles(res["table"])
    expected = profiles.to_numpy() @ res["column_coords"].to_numpy()
    expected = expected / np.sqrt(res["eigenvalues"].to_numpy())
    assert np.allclose(res["row_coords"].to_numpy(), expected)
    assert list(res["row_coords"].index) == list(res["table"].index)
    assert np.isclose(res["row_masses"].sum(), 1.0)
