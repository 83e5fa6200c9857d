# -*- coding: utf-8 -*-
"""Preparation of multi-level categorical blocks for MCA."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .errors import BlockError
from .ordinal_blocks import select_columns

MISSING_LABEL = "Non renseigné"
MISSING_POLICIES = ("category", "drop")


@dataclass(frozen=True)
class CategoricalBlock:
    """Categorical columns retained for MCA, indexed by row key."""

    name: str
    data: pd.DataFrame
    dropped: Dict[str, str] = field(default_factory=dict)
    missing: str = "category"

    @property
    def columns(self) -> List[str]:
        return list(self.data.columns)

    @property
    def index(self) -> pd.Index:
        return self.data.index


def _as_labels(series: pd.Series) -> pd.Series:
    """Return ``series`` as stripped string labels, keeping missing as ``NaN``."""
    out = series.map(lambda v: np.nan if pd.isna(v) else str(v).strip())
    return out.replace("", np.nan)


def prepare_categorical_block(
    records: pd.DataFrame,
    name: str,
    pattern: Optional[str] = None,
    *,
    columns: Optional[Sequence[str]] = None,
    missing: str = "category",
) -> CategoricalBlock:
    """Select and clean a block of categorical variables.

    Parameters
    ----------
    records : pandas.DataFrame
        Loaded record set. It is not modified.
    name : str
        Block name used in logs and outputs.
    pattern : str, optional
        Substring selecting the columns. Defaults to ``name``. Ignored when
        ``columns`` is given.
    columns : sequence of str, optional
        Explicit column list.
    missing : {"category", "drop"}, default ``"category"``
        ``"category"`` turns missing answers into the level
        :data:`MISSING_LABEL`; ``"drop"`` removes respondents with a missing
        answer in any selected column.
    """
    logger = logging.getLogger(__name__)
    if missing not in MISSING_POLICIES:
        raise ValueError(f"missing must be one of {MISSING_POLICIES}, got '{missing}'")

    if columns is not None:
        cols = [c for c in columns if c in records.columns]
        absent = [c for c in columns if c not in records.columns]
        if absent:
            raise BlockError(f"Block '{name}': columns not found {absent}")
    else:
        pattern = name if pattern is None else pattern
        cols = select_columns(records, pattern)
    if not cols:
        raise BlockError(f"Block '{name}': no column selected")

    labels = pd.DataFrame({c: _as_labels(records[c]) for c in cols}, index=records.index)
    if missing == "drop":
        keep = labels.notna().all(axis=1)
        if not keep.all():
            logger.info(
                "Block '%s': %d respondents with missing answers excluded",
                name,
                int((~keep).sum()),
            )
        labels = labels.loc[keep]
    observed = labels
    if missing == "category":
        labels = labels.fillna(MISSING_LABEL)

    # the missing level does not count as an observed answer
    dropped: Dict[str, str] = {}
    retained: List[str] = []
    for col in cols:
        n_levels = observed[col].nunique(dropna=True)
        if n_levels < 2:
            dropped[col] = f"{n_levels} distinct level(s)"
            logger.warning("Block '%s': column '%s' dropped (single level)", name, col)
            continue
        retained.append(col)

    data = labels[retained].astype("category")
    logger.info(
        "Block '%s': %d respondents x %d categorical variables retained",
        name,
        data.shape[0],
        data.shape[1],
    )
    return CategoricalBlock(name=name, data=data, dropped=dropped, missing=missing)


def add_derived_factor(
    records: pd.DataFrame,
    source: str,
    name: str,
    bins: Sequence[float],
    labels: Optional[Sequence[str]] = None,
    *,
    right: bool = False,
) -> pd.DataFrame:
    """Return a copy of ``records`` with ``source`` binned into a factor ``name``.

    Values outside ``bins`` or not numeric become missing.
    """
    logger = logging.getLogger(__name__)
    if source not in records.columns:
        raise BlockError(f"Derived factor '{name}': source column '{source}' not found")
    values = pd.to_numeric(records[source], errors="coerce")
    factor = pd.cut(values, bins=list(bins), labels=labels, right=right)
    out = records.copy()
    out[name] = factor
    n_na = int(factor.isna().sum())
    if n_na:
        logger.info("Derived factor '%s': %d values outside bins or not numeric", name, n_na)
    return out
