import numpy as np
import pandas as pd
import pytest

from survey_analysis.categorical_blocks import (
    MISSING_LABEL,
    add_derived_factor,
    prepare_categorical_block,
)
from survey_analysis.errors import BlockError


def sample_records():
    return pd.DataFrame({
        "Competence_stat": ["Oui", "Non", None, "Oui", "Partiel", "Non"],
        "Competence_prog": ["Oui", "Non", "Oui", " ", "Non", "Oui"],
        "Competence_unique": ["Oui"] * 6,
        "Age": [22, 25, 31, 40, 58, "inconnu"],
    })


def test_missing_as_category():
    block = prepare_categorical_block(sample_records(), "Competence")
    assert block.columns == ["Competence_stat", "Competence_prog"]
    assert MISSING_LABEL in block.data["Competence_stat"].cat.categories
    # blank answers count as missing
    assert block.data.loc[3, "Competence_prog"] == MISSING_LABEL
    assert len(block.data) == 6
    assert all(str(block.data[c].dtype) == "category" for c in block.columns)


def test_single_level_column_dropped():
    block = prepare_categorical_block(sample_records(), "Competence")
    assert "Competence_unique" in block.dropped
    assert "Competence_unique" not in block.columns


def test_missing_drop_policy_keeps_row_keys():
    block = prepare_categorical_block(sample_records(), "Competence", missing="drop")
    assert list(block.index) == [0, 1, 4, 5]
    assert not block.data.isna().any().any()
    assert block.missing == "drop"


def test_explicit_columns():
    block = prepare_categorical_block(
        sample_records(), "Skills", columns=["Competence_prog", "Competence_stat"]
    )
    assert block.columns == ["Competence_prog", "Competence_stat"]
    with pytest.raises(BlockError):
        prepare_categorical_block(sample_records(), "Skills", columns=["Competence_sql"])


def test_invalid_policy_and_no_match():
    with pytest.raises(ValueError):
        prepare_categorical_block(sample_records(), "Competence", missing="impute")
    with pytest.raises(BlockError):
        prepare_categorical_block(sample_records(), "Satisfaction")


def test_add_derived_factor_is_pure():
    records = sample_records()
    before = records.copy()
    out = add_derived_factor(
        records, "Age", "Classe_age", [0, 25, 35, 120], ["<25", "25-34", "35+"]
    )
    pd.testing.assert_frame_equal(records, before)
    assert "Classe_age" not in records.columns
    assert out["Classe_age"].tolist()[:5] == ["<25", "25-34", "25-34", "35+", "35+"]
    assert pd.isna(out.loc[5, "Classe_age"])


def test_add_derived_factor_unknown_source():
    with pytest.raises(BlockError):
        add_derived_factor(sample_records(), "Revenu", "Classe_revenu", [0, 1])


def test_missing_level_not_counted_as_observed():
    records = pd.DataFrame({
        "Competence_a": ["Oui", None, "Oui", None],
        "Competence_b": ["Oui", "Non", "Non", "Oui"],
    })
    block = prepare_categorical_block(records, "Competence")
    assert block.columns == ["Competence_b"]
    assert "Competence_a" in block.dropped
    assert block.dropped["Competence_a"] == "1 distinct level(s)"
