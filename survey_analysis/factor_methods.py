# -*- coding: utf-8 -*-
"""Factorial analyses of survey blocks (PCA, MCA).

Thin wrappers around ``scikit-learn`` and ``prince`` returning the
dictionary layout shared by every method of the project::

    {"model", "eigenvalues", "inertia", "embeddings", ..., "runtime_s"}

``inertia`` always holds the share of total inertia per component, indexed
``F1``, ``F2``... The total differs between methods: for PCA it is the
number of standardised variables (trace of the correlation matrix), for MCA
it is the inertia of the indicator matrix, ``J / Q - 1``.
"""

from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.decomposition import PCA
import prince

from .errors import DecompositionError


def _axes(n: int) -> List[str]:
    return [f"F{i+1}" for i in range(n)]


def _select_n_components(eigenvalues: np.ndarray, threshold: float = 0.8) -> int:
    """Select a number of components using Kaiser and inertia criteria."""
    ev = np.asarray(eigenvalues, dtype=float)
    if ev.sum() <= 1.0:
        ev = ev * len(ev)

    n_kaiser = max(1, int(np.sum(ev >= 1)))
    ratios = ev / ev.sum()
    cum = np.cumsum(ratios)
    n_inertia = int(np.searchsorted(cum, threshold) + 1)
    return min(len(ev), max(n_kaiser, n_inertia))


def run_pca(
    df_active: pd.DataFrame,
    quant_vars: Optional[List[str]] = None,
    n_components: Optional[int] = None,
    *,
    optimize: bool = False,
    variance_threshold: float = 0.8,
    random_state: Optional[int] = None,
    svd_solver: Optional[str] = None,
) -> Dict[str, object]:
    """Run a Principal Component Analysis on a standardised block.

    Parameters
    ----------
    df_active : pandas.DataFrame
        Standardised matrix (mean 0, unit population variance per column),
        typically :attr:`OrdinalBlock.data`. It is not scaled again.
    quant_vars : list of str, optional
        Columns to use. Defaults to every column of ``df_active``.
    n_components : int, optional
        Number of components to keep. If ``None`` and ``optimize`` is
        ``True`` the value is determined with Kaiser and inertia criteria,
        otherwise every component is kept.
    optimize : bool, default ``False``
        Activate automatic selection of ``n_components``.
    variance_threshold : float, default ``0.8``
        Cumulative explained variance ratio threshold when ``optimize`` is true.
    random_state : int, optional
        Random state forwarded to :class:`sklearn.decomposition.PCA`.
    svd_solver : str, optional
        If provided, sets the ``svd_solver`` parameter of :class:`~sklearn.decomposition.PCA`.

    Returns
    -------
    dict
        ``{"model", "eigenvalues", "inertia", "embeddings", "loadings",
        "contributions", "runtime_s"}``. ``loadings`` are the correlations
        between variables and components.

    Raises
    ------
    DecompositionError
        If fewer than two non constant columns or two rows are available.
    """
    start = time.perf_counter()
    logger = logging.getLogger(__name__)

    quant_vars = list(df_active.columns) if quant_vars is None else list(quant_vars)
    X_df = df_active[quant_vars].astype(float)
    if X_df.isna().any().any():
        raise DecompositionError("PCA input contains missing values")
    constant = [c for c in quant_vars if np.isclose(X_df[c].std(ddof=0), 0.0)]
    if constant:
        logger.warning("PCA: constant columns ignored %s", constant)
        quant_vars = [c for c in quant_vars if c not in constant]
    if len(quant_vars) < 2:
        raise DecompositionError(
            f"PCA needs at least 2 non constant variables, got {len(quant_vars)}"
        )
    if len(X_df) < 2:
        raise DecompositionError("PCA needs at least 2 observations")

    X = X_df[quant_vars].to_numpy()
    n_samples = X.shape[0]
    max_dim = min(X.shape)

    if optimize and n_components is None:
        tmp = PCA(n_components=max_dim, random_state=random_state).fit(X)
        n_components = _select_n_components(
            tmp.singular_values_ ** 2 / n_samples, threshold=variance_threshold
        )
        logger.info("PCA: selected %d components automatically", n_components)

    n_components = min(n_components or max_dim, max_dim)
    kwargs = {}
    if svd_solver is not None:
        kwargs["svd_solver"] = svd_solver
    pca = PCA(n_components=n_components, random_state=random_state, **kwargs)
    emb = pca.fit_transform(X)

    axes = _axes(pca.n_components_)
    # eigenvalues of the correlation matrix (population convention)
    eigenvalues = pd.Series(pca.singular_values_ ** 2 / n_samples, index=axes)
    inertia = pd.Series(pca.explained_variance_ratio_, index=axes)
    embeddings = pd.DataFrame(emb, index=df_active.index, columns=axes)
    loadings = pd.DataFrame(
        pca.components_.T * (pca.singular_values_ / np.sqrt(n_samples)),
        index=quant_vars,
        columns=axes,
    )

    runtime = time.perf_counter() - start
    return {
        "model": pca,
        "eigenvalues": eigenvalues,
        "inertia": inertia,
        "embeddings": embeddings,
        "loadings": loadings,
        "contributions": pca_variable_contributions(loadings),
        "runtime_s": runtime,
    }


def pca_variable_contributions(loadings: pd.DataFrame) -> pd.DataFrame:
    """Return the percentage contribution of each variable to each axis."""
    sq = loadings ** 2
    totals = sq.sum(axis=0).replace(0, np.nan)
    return sq.div(totals, axis=1) * 100


def benzecri_rates(eigenvalues: np.ndarray, n_vars: int) -> np.ndarray:
    """Return Benzécri corrected inertia rates for MCA eigenvalues.

    Only eigenvalues above ``1 / n_vars`` carry information; the others get
    a rate of zero.
    """
    ev = np.asarray(eigenvalues, dtype=float)
    if n_vars < 2:
        return np.zeros_like(ev)
    threshold = 1.0 / n_vars
    corrected = np.where(
        ev > threshold,
        ((n_vars / (n_vars - 1.0)) * (ev - threshold)) ** 2,
        0.0,
    )
    total = corrected.sum()
    if total == 0:
        return corrected
    return corrected / total


def run_mca(
    df_active: pd.DataFrame,
    qual_vars: Optional[List[str]] = None,
    n_components: Optional[int] = None,
    *,
    optimize: bool = False,
    variance_threshold: float = 0.8,
    random_state: Optional[int] = None,
    n_iter: int = 3,
) -> Dict[str, object]:
    """Run Multiple Correspondence Analysis on qualitative variables.

    Parameters
    ----------
    df_active : pandas.DataFrame
        Categorical block without missing values, typically
        :attr:`CategoricalBlock.data`.
    qual_vars : list of str, optional
        Columns to use. Defaults to every column of ``df_active``.
    n_components : int, optional
        Number of dimensions to compute. If ``None`` and ``optimize`` is
        ``True`` the dimensions with an eigenvalue above ``1 / Q`` are kept
        (at least enough to reach ``variance_threshold``); otherwise 5.
    random_state : int, optional
        Random state passed to :class:`prince.MCA`.
    n_iter : int, default ``3``
        Number of iterations for the underlying algorithm.

    Notes
    -----
    ``inertia`` divides each eigenvalue by the total inertia of the indicator
    matrix ``J / Q - 1`` (``J`` levels over ``Q`` variables). It sums to
    less than one when only some dimensions are kept and is usually low even
    for a well structured block. ``benzecri`` holds the corrected rates,
    which are the ones to read when judging the importance of an axis.
    """
    start = time.perf_counter()
    logger = logging.getLogger(__name__)

    qual_vars = list(df_active.columns) if qual_vars is None else list(qual_vars)
    if len(qual_vars) < 2:
        raise DecompositionError(
            f"MCA needs at least 2 categorical variables, got {len(qual_vars)}"
        )
    df_cat = df_active[qual_vars].astype("category")
    if df_cat.isna().any().any():
        raise DecompositionError("MCA input contains missing values")
    for col in qual_vars:
        df_cat[col] = df_cat[col].cat.remove_unused_categories()

    n_vars = len(qual_vars)
    n_levels = int(sum(df_cat[c].nunique() for c in qual_vars))
    max_dim = min(n_levels - n_vars, len(df_cat) - 1)
    if max_dim < 1:
        raise DecompositionError(
            f"MCA needs more levels than variables ({n_levels} levels, {n_vars} variables)"
        )
    total_inertia = n_levels / n_vars - 1.0

    if optimize and n_components is None:
        tmp = prince.MCA(n_components=max_dim, n_iter=n_iter, random_state=random_state)
        tmp = tmp.fit(df_cat)
        eig = np.asarray(tmp.eigenvalues_, dtype=float)
        n_kaiser = max(1, int(np.sum(eig > 1.0 / n_vars)))
        cum = np.cumsum(eig / total_inertia)
        n_inertia = int(np.searchsorted(cum, variance_threshold) + 1)
        n_components = min(max_dim, max(n_kaiser, n_inertia))
        logger.info("MCA: selected %d components automatically", n_components)

    n_components = min(n_components or 5, max_dim)
    mca = prince.MCA(
        n_components=n_components,
        n_iter=n_iter,
        random_state=random_state,
    )
    mca = mca.fit(df_cat)

    eig = np.asarray(mca.eigenvalues_, dtype=float)[:n_components]
    axes = _axes(len(eig))
    eigenvalues = pd.Series(eig, index=axes)
    inertia = pd.Series(eig / total_inertia, index=axes)
    benzecri = pd.Series(benzecri_rates(eig, n_vars), index=axes)

    embeddings = mca.row_coordinates(df_cat).iloc[:, : len(axes)]
    embeddings.columns = axes
    embeddings.index = df_active.index
    col_coords = mca.column_coordinates(df_cat).iloc[:, : len(axes)]
    col_coords.columns = axes

    runtime = time.perf_counter() - start
    return {
        "model": mca,
        "eigenvalues": eigenvalues,
        "inertia": inertia,
        "benzecri": benzecri,
        "total_inertia": total_inertia,
        "embeddings": embeddings,
        "column_coords": col_coords,
        "runtime_s": runtime,
    }
