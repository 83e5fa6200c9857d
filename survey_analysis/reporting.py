"""Tabular summaries printed to the log and exported as CSV."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import pandas as pd

from .correspondence import ca_summary, column_profiles, row_profiles


def inertia_table(result: Mapping[str, Any]) -> pd.DataFrame:
    """Return eigenvalues and explained inertia of a factorial result."""
    eig = result["eigenvalues"]
    ratio = result["inertia"]
    table = pd.DataFrame(
        {
            "Axis": range(1, len(eig) + 1),
            "Eigenvalue": eig.values,
            "%Variance": ratio.values * 100,
            "%Cumulé": ratio.cumsum().values * 100,
        },
        index=eig.index,
    )
    if "benzecri" in result:
        table["%Benzécri"] = result["benzecri"].values * 100
    return table


def _emit(title: str, table: pd.DataFrame, out: Optional[Path], filename: str) -> None:
    logger = logging.getLogger(__name__)
    logger.info("%s\n%s", title, table.round(4).to_string())
    if out is not None:
        out.mkdir(parents=True, exist_ok=True)
        table.to_csv(out / filename)


def report_block(
    name: str,
    result: Mapping[str, Any],
    dropped: Optional[Mapping[str, str]] = None,
    output_dir: Optional[Path] = None,
) -> Dict[str, pd.DataFrame]:
    """Log and export the summary tables of one analysed block."""
    out = Path(output_dir) if output_dir is not None else None
    tables: Dict[str, pd.DataFrame] = {"inertia": inertia_table(result)}
    if dropped:
        tables["dropped"] = pd.DataFrame(
            {"reason": list(dropped.values())},
            index=pd.Index(list(dropped.keys()), name="column"),
        )
    for key in ("loadings", "contributions", "column_coords"):
        value = result.get(key)
        if isinstance(value, pd.DataFrame):
            tables[key] = value
    for key, table in tables.items():
        _emit(f"[{name}] {key}", table, out, f"{name}_{key}.csv")
    return tables


def _margin_label(levels: pd.Index) -> str:
    """Return ``"Total"``, suffixed with ``*`` until it is not one of ``levels``."""
    label = "Total"
    taken = {str(v) for v in levels}
    while label in taken:
        label += "*"
    return label


def report_contingency(
    ca_result: Mapping[str, Any],
    output_dir: Optional[Path] = None,
) -> Dict[str, pd.DataFrame]:
    """Log and export the contingency table, its profiles and the CA summary."""
    out = Path(output_dir) if output_dir is not None else None
    table = ca_result["table"]
    with_margins = table.copy()
    with_margins.index = with_margins.index.astype(object)
    with_margins.columns = with_margins.columns.astype(object)
    with_margins[_margin_label(table.columns)] = table.sum(axis=1)
    with_margins.loc[_margin_label(table.index)] = with_margins.sum(axis=0)
    tests = pd.DataFrame(
        {
            "value": [
                ca_result["chi2"],
                ca_result["dof"],
                ca_result["p_value"],
                ca_result["total_inertia"],
            ]
        },
        index=["chi2", "dof", "p_value", "total_inertia"],
    )
    tables = {
        "contingency": with_margins,
        "row_profiles": row_profiles(table),
        "column_profiles": column_profiles(table),
        "summary": ca_summary(ca_result),
        "tests": tests,
        "row_coords": ca_result["row_coords"],
        "column_coords": ca_result["column_coords"],
    }
    for key, value in tables.items():
        _emit(f"[CA] {key}", value, out, f"ca_{key}.csv")
    return tables
