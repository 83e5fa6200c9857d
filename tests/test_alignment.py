import pandas as pd
import pytest

from survey_analysis.alignment import align_group
from survey_analysis.categorical_blocks import prepare_categorical_block
from survey_analysis.errors import AlignmentError


def test_align_group_follows_row_keys():
    scores = pd.DataFrame({"F1": [0.1, 0.2, 0.3]}, index=[4, 0, 2])
    group = pd.Series(["a", "b", "c", "d", "e"], index=range(5), name="Niveau_etude")
    aligned = align_group(scores, group)
    assert list(aligned.index) == [4, 0, 2]
    assert aligned.tolist() == ["e", "a", "c"]


def test_align_group_accepts_index():
    group = pd.Series(["x", "y"], index=[10, 11], name="Age")
    assert align_group(pd.Index([11]), group).tolist() == ["y"]


def test_align_group_missing_rows_is_an_error():
    scores = pd.DataFrame({"F1": [0.1, 0.2, 0.3]}, index=[0, 1, 2])
    shorter = pd.Series(["a", "b"], index=[0, 1], name="Age")
    with pytest.raises(AlignmentError, match="no value for 1 row"):
        align_group(scores, shorter)


def test_align_group_duplicated_keys():
    scores = pd.DataFrame({"F1": [0.1]}, index=[0])
    group = pd.Series(["a", "b"], index=[0, 0], name="Age")
    with pytest.raises(AlignmentError):
        align_group(scores, group)


def test_align_group_on_filtered_block():
    records = pd.DataFrame({
        "Competence_a": ["x", None, "y", "x"],
        "Competence_b": ["u", "v", None, "v"],
        "Age": ["<25", "25-34", "35+", "<25"],
    })
    block = prepare_categorical_block(records, "Competence", missing="drop")
    aligned = align_group(block.data, records["Age"])
    assert list(aligned.index) == [0, 3]
    assert aligned.tolist() == ["<25", "<25"]
