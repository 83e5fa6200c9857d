# -*- coding: utf-8 -*-
"""Contingency tables and simple Correspondence Analysis (CA).

The CA is fitted with :class:`prince.CA`, i.e. the singular value
decomposition of the standardised residuals of the table::

    S = (P - r c^T) / sqrt(r c^T)

where ``P`` is the table divided by its grand total and ``r``/``c`` are the
row and column masses. Rows and columns are returned in principal
coordinates. The total inertia equals the chi-square statistic divided by
the grand total.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, Hashable, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
import prince
from scipy.stats import chi2_contingency

from .errors import DecompositionError

# singular values below this are numerical noise
_SV_TOL = 1e-10


def build_contingency(df: pd.DataFrame, row_var: str, col_var: str) -> pd.DataFrame:
    """Cross-tabulate ``row_var`` against ``col_var``.

    Respondents missing either variable are left out of the table.
    """
    logger = logging.getLogger(__name__)
    for col in (row_var, col_var):
        if col not in df.columns:
            raise KeyError(f"Column '{col}' not found")
    pair = df[[row_var, col_var]].dropna()
    if len(pair) != len(df):
        logger.info(
            "Contingency %s x %s: %d respondents with a missing answer left out",
            row_var,
            col_var,
            len(df) - len(pair),
        )
    table = pd.crosstab(pair[row_var].astype(str), pair[col_var].astype(str))
    table.index.name = row_var
    table.columns.name = col_var
    return table.astype(int)


def contingency_from_counts(
    counts: Mapping[Tuple[Hashable, Hashable], int],
    row_name: Optional[str] = None,
    col_name: Optional[str] = None,
) -> pd.DataFrame:
    """Build a contingency table from a ``{(row, col): count}`` mapping.

    Rows and columns keep their first appearance order; absent cells are 0.
    """
    rows = list(dict.fromkeys(k[0] for k in counts))
    cols = list(dict.fromkeys(k[1] for k in counts))
    table = pd.DataFrame(0, index=pd.Index(rows, name=row_name),
                         columns=pd.Index(cols, name=col_name), dtype=int)
    for (r, c), n in counts.items():
        if n < 0:
            raise ValueError(f"Negative count for cell ({r}, {c})")
        table.loc[r, c] = int(n)
    return table


def row_profiles(table: pd.DataFrame) -> pd.DataFrame:
    """Return each row divided by its total. Empty rows give ``NaN``."""
    totals = table.sum(axis=1).replace(0, np.nan)
    return table.div(totals, axis=0)


def column_profiles(table: pd.DataFrame) -> pd.DataFrame:
    """Return each column divided by its total. Empty columns give ``NaN``."""
    totals = table.sum(axis=0).replace(0, np.nan)
    return table.div(totals, axis=1)


def drop_empty_margins(table: pd.DataFrame) -> pd.DataFrame:
    """Return ``table`` without rows or columns whose total is zero."""
    logger = logging.getLogger(__name__)
    row_tot = table.sum(axis=1)
    col_tot = table.sum(axis=0)
    empty_rows = list(row_tot.index[row_tot == 0])
    empty_cols = list(col_tot.index[col_tot == 0])
    if empty_rows:
        logger.warning("CA: empty rows dropped %s", empty_rows)
    if empty_cols:
        logger.warning("CA: empty columns dropped %s", empty_cols)
    return table.loc[row_tot != 0, col_tot != 0]


def run_ca(table: pd.DataFrame, n_components: Optional[int] = None) -> Dict[str, object]:
    """Run a simple Correspondence Analysis on a contingency table.

    Parameters
    ----------
    table : pandas.DataFrame
        Non negative counts. Rows and columns with a zero total are removed
        first. The table itself is not modified.
    n_components : int, optional
        Number of dimensions to keep. Defaults to every non trivial
        dimension, at most ``min(r, c) - 1``.

    Returns
    -------
    dict
        ``{"table", "eigenvalues", "inertia", "row_coords", "column_coords",
        "row_masses", "column_masses", "total_inertia", "chi2", "p_value",
        "dof", "runtime_s"}``

    Raises
    ------
    DecompositionError
        If fewer than two rows or two columns remain, or if the table shows
        no association at all.
    """
    start = time.perf_counter()
    logger = logging.getLogger(__name__)

    counts = table.astype(float)
    if (counts.to_numpy() < 0).any():
        raise ValueError("Contingency table contains negative counts")
    counts = drop_empty_margins(counts)
    if counts.shape[0] < 2 or counts.shape[1] < 2:
        raise DecompositionError(
            f"CA needs at least a 2x2 table, got {counts.shape[0]}x{counts.shape[1]}"
        )

    max_dim = min(counts.shape) - 1
    ca = prince.CA(n_components=max_dim, engine="scipy")
    ca = ca.fit(counts)

    sv = np.asarray(ca.svd_.s)[:max_dim]
    rank = int(np.sum(sv > _SV_TOL))
    if rank == 0:
        raise DecompositionError("CA: rows and columns are independent, no dimension to extract")
    k = rank if n_components is None else max(1, min(int(n_components), rank))

    axes = [f"F{i+1}" for i in range(k)]
    row_coords = ca.row_coordinates(counts).iloc[:, :k]
    row_coords.columns = axes
    col_coords = ca.column_coordinates(counts).iloc[:, :k]
    col_coords.columns = axes

    total_inertia = float(ca.total_inertia_)
    eigenvalues = pd.Series(sv[:k] ** 2, index=axes)
    inertia = eigenvalues / total_inertia

    chi2, p_value, dof, _ = chi2_contingency(counts.to_numpy(), correction=False)
    logger.info(
        "CA %s x %s: %d dimension(s), total inertia %.4f (chi2=%.3f, p=%.4g)",
        counts.index.name,
        counts.columns.name,
        k,
        total_inertia,
        chi2,
        p_value,
    )

    runtime = time.perf_counter() - start
    return {
        "table": counts.astype(int),
        "eigenvalues": eigenvalues,
        "inertia": inertia,
        "row_coords": row_coords,
        "column_coords": col_coords,
        "row_masses": pd.Series(ca.row_masses_.to_numpy(), index=counts.index),
        "column_masses": pd.Series(ca.col_masses_.to_numpy(), index=counts.columns),
        "total_inertia": total_inertia,
        "chi2": float(chi2),
        "p_value": float(p_value),
        "dof": int(dof),
        "runtime_s": runtime,
    }


def ca_summary(result: Mapping[str, object]) -> pd.DataFrame:
    """Return the eigenvalue table of a CA result."""
    eig = result["eigenvalues"]
    inertia = result["inertia"]
    return pd.DataFrame(
        {
            "Eigenvalue": eig,
            "%Inertia": inertia * 100,
            "%Cumulative": inertia.cumsum() * 100,
        }
    )
