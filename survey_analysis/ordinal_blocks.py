# -*- coding: utf-8 -*-
"""Preparation of ordinal (Likert) variable blocks for PCA.

A block is the set of columns whose name contains a pattern such as
``"Pertinence"``. Answers are recoded with a three level scheme, missing
cells are mean imputed and the block is standardised with the population
standard deviation (``ddof=0``), the same convention used by
:class:`sklearn.preprocessing.StandardScaler`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional

import numpy as np
import pandas as pd
from sklearn.preprocessing import StandardScaler

from .errors import BlockError

DEFAULT_SCHEME: Dict[str, int] = {
    "pdtd": 1,
    "Neutre": 2,
    "tafd": 3,
}


@dataclass(frozen=True)
class OrdinalBlock:
    """Standardised numeric matrix derived from one ordinal block.

    ``data`` is indexed by the record set row keys so auxiliary variables
    can be joined on it with :func:`survey_analysis.alignment.align_group`.
    """

    name: str
    data: pd.DataFrame
    dropped: Dict[str, str] = field(default_factory=dict)
    means: pd.Series = field(default_factory=lambda: pd.Series(dtype=float))
    stds: pd.Series = field(default_factory=lambda: pd.Series(dtype=float))

    @property
    def columns(self) -> List[str]:
        return list(self.data.columns)

    @property
    def index(self) -> pd.Index:
        return self.data.index


def select_columns(df: pd.DataFrame, pattern: str) -> List[str]:
    """Return the columns of ``df`` whose name contains ``pattern``."""
    return [c for c in df.columns if pattern in str(c)]


def recode_ordinal(df: pd.DataFrame, scheme: Optional[Mapping[str, int]] = None) -> pd.DataFrame:
    """Map ordinal labels to scores; unknown values become ``NaN``."""
    scheme = DEFAULT_SCHEME if scheme is None else scheme
    mapping = {str(k).strip(): float(v) for k, v in scheme.items()}

    def _score(value: object) -> float:
        if pd.isna(value):
            return np.nan
        return mapping.get(str(value).strip(), np.nan)

    out = pd.DataFrame(index=df.index)
    for col in df.columns:
        out[col] = df[col].map(_score).astype(float)
    return out


def impute_mean(df: pd.DataFrame) -> pd.DataFrame:
    """Replace missing cells with the mean of their column.

    Fully observed columns are returned unchanged. Columns with no observed
    value keep their ``NaN``; callers drop them beforehand.
    """
    return df.fillna(df.mean())


def standardize(df: pd.DataFrame) -> pd.DataFrame:
    """Centre and scale every column to unit population variance."""
    if df.shape[1] == 0:
        return df.astype(float)
    scaler = StandardScaler()
    values = scaler.fit_transform(df.to_numpy(dtype=float))
    return pd.DataFrame(values, index=df.index, columns=df.columns)


def prepare_ordinal_block(
    records: pd.DataFrame,
    name: str,
    pattern: Optional[str] = None,
    scheme: Optional[Mapping[str, int]] = None,
) -> OrdinalBlock:
    """Select, recode, impute and standardise an ordinal block.

    Parameters
    ----------
    records : pandas.DataFrame
        Loaded record set. It is not modified.
    name : str
        Block name used in logs and outputs.
    pattern : str, optional
        Substring selecting the block columns. Defaults to ``name``.
    scheme : mapping, optional
        Ordinal label to score mapping. Defaults to :data:`DEFAULT_SCHEME`.

    Returns
    -------
    OrdinalBlock
        Standardised matrix over all respondents and the columns that
        survived the degenerate column checks.
    """
    logger = logging.getLogger(__name__)
    pattern = name if pattern is None else pattern
    cols = select_columns(records, pattern)
    if not cols:
        raise BlockError(f"Block '{name}': no column matches pattern '{pattern}'")

    coded = recode_ordinal(records[cols], scheme)
    dropped: Dict[str, str] = {}

    n_missing = int(coded.isna().sum().sum())
    if n_missing:
        logger.info("Block '%s': %d missing or unrecognised answers imputed", name, n_missing)

    empty = [c for c in coded.columns if coded[c].isna().all()]
    for col in empty:
        dropped[col] = "no recognised answer"
        logger.warning("Block '%s': column '%s' dropped (no recognised answer)", name, col)
    coded = coded.drop(columns=empty)

    imputed = impute_mean(coded)

    stds = imputed.std(ddof=0)
    constant = [c for c in imputed.columns if np.isclose(stds[c], 0.0)]
    for col in constant:
        dropped[col] = "zero variance"
        logger.warning("Block '%s': column '%s' dropped (zero variance)", name, col)
    imputed = imputed.drop(columns=constant)

    scaled = standardize(imputed)
    logger.info(
        "Block '%s': %d respondents x %d variables retained (%d dropped)",
        name,
        scaled.shape[0],
        scaled.shape[1],
        len(dropped),
    )
    return OrdinalBlock(
        name=name,
        data=scaled,
        dropped=dropped,
        means=imputed.mean(),
        stds=imputed.std(ddof=0),
    )
