# -*- coding: utf-8 -*-
"""Utilities for loading survey datasets.

Survey exports are comma separated files written in Latin-1 (ISO-8859-1);
decoding them as UTF-8 corrupts accented answers such as ``Nécessité``. The
loader keeps that decoding choice explicit and fails loudly on malformed
input rather than coercing it.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Union

import pandas as pd

from .errors import DataLoadError

DEFAULT_ENCODING = "latin-1"

# UTF-8 multi-byte sequences decoded as Latin-1 ("Ã©" for "é")
_MOJIBAKE = re.compile("[\xc2\xc3][\x80-\xbf]")


def _check_encoding(df: pd.DataFrame, path: Path, encoding: str) -> None:
    """Raise :class:`DataLoadError` on the first cell that looks mis-decoded."""
    if encoding.lower().replace("_", "-") not in {"latin-1", "latin1", "iso-8859-1"}:
        return
    for col in df.columns:
        if _MOJIBAKE.search(col):
            raise DataLoadError(f"{path}: column name '{col}' looks UTF-8 encoded")
    for col in df.select_dtypes(include=["object", "string"]).columns:
        values = df[col].dropna().astype(str)
        hits = values[values.str.contains(_MOJIBAKE)]
        if not hits.empty:
            # header is line 1, data row i is line i + 2
            line = int(hits.index[0]) + 2
            raise DataLoadError(
                f"{path}: value {hits.iloc[0]!r} in column '{col}' (line {line}) "
                f"looks UTF-8 encoded, not {encoding}"
            )


def read_survey(
    path: Union[str, Path],
    *,
    encoding: str = DEFAULT_ENCODING,
    sep: str = ",",
) -> pd.DataFrame:
    """Read a delimited survey export and drop duplicated respondents.

    Parameters
    ----------
    path : str or Path
        CSV file with a header line.
    encoding : str, default ``"latin-1"``
        Text encoding of the file.
    sep : str, default ``","``
        Field delimiter.

    Returns
    -------
    pandas.DataFrame
        One row per distinct respondent with a fresh ``RangeIndex`` which is
        used as the row key by every derived matrix.
    """
    logger = logging.getLogger(__name__)
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    try:
        df = pd.read_csv(path, sep=sep, encoding=encoding)
    except pd.errors.ParserError as exc:
        raise DataLoadError(f"Cannot parse {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise DataLoadError(
            f"Cannot decode {path} as {encoding} at byte {exc.start}"
        ) from exc
    except pd.errors.EmptyDataError as exc:
        raise DataLoadError(f"{path} is empty") from exc

    df.columns = [str(c).strip() for c in df.columns]
    dup_cols = df.columns[df.columns.duplicated()].tolist()
    if dup_cols:
        raise DataLoadError(f"Duplicated column names in {path}: {dup_cols}")
    _check_encoding(df, path, encoding)

    before = len(df)
    df = df.drop_duplicates().reset_index(drop=True)
    if len(df) != before:
        logger.info("%d duplicated rows dropped", before - len(df))
    logger.info(
        "Survey loaded from %s [%d rows, %d cols]",
        path,
        df.shape[0],
        df.shape[1],
    )
    return df


def require_columns(df: pd.DataFrame, columns: Iterable[str]) -> None:
    """Raise :class:`DataLoadError` naming the first column missing from ``df``."""
    for col in columns:
        if col not in df.columns:
            raise DataLoadError(f"Column '{col}' not found in survey data")


def load_survey(config: Mapping[str, Any]) -> pd.DataFrame:
    """Load the survey file described by ``config``."""
    if not isinstance(config, Mapping):
        raise TypeError("config must be a mapping")
    if "input_file" not in config:
        raise ValueError("'input_file' missing from config")
    return read_survey(
        config["input_file"],
        encoding=config.get("encoding", DEFAULT_ENCODING),
        sep=config.get("sep", ","),
    )
