"""Factorial analysis of survey data: PCA, MCA and CA on variable blocks."""

from .alignment import align_group
from .categorical_blocks import (
    CategoricalBlock,
    add_derived_factor,
    prepare_categorical_block,
)
from .correspondence import (
    build_contingency,
    column_profiles,
    contingency_from_counts,
    drop_empty_margins,
    row_profiles,
    run_ca,
)
from .dataset_loader import load_survey, read_survey
from .errors import (
    AlignmentError,
    BlockError,
    DataLoadError,
    DecompositionError,
    SurveyAnalysisError,
)
from .factor_methods import pca_variable_contributions, run_mca, run_pca
from .ordinal_blocks import (
    DEFAULT_SCHEME,
    OrdinalBlock,
    impute_mean,
    prepare_ordinal_block,
    recode_ordinal,
    standardize,
)

__all__ = [
    "align_group",
    "CategoricalBlock",
    "add_derived_factor",
    "prepare_categorical_block",
    "build_contingency",
    "column_profiles",
    "contingency_from_counts",
    "drop_empty_margins",
    "row_profiles",
    "run_ca",
    "load_survey",
    "read_survey",
    "AlignmentError",
    "BlockError",
    "DataLoadError",
    "DecompositionError",
    "SurveyAnalysisError",
    "pca_variable_contributions",
    "run_mca",
    "run_pca",
    "DEFAULT_SCHEME",
    "OrdinalBlock",
    "impute_mean",
    "prepare_ordinal_block",
    "recode_ordinal",
    "standardize",
]
