"""Join auxiliary grouping variables to derived matrices by row key."""

from __future__ import annotations

import logging
from typing import Union

import pandas as pd

from .errors import AlignmentError


def align_group(
    target: Union[pd.DataFrame, pd.Index],
    group: pd.Series,
) -> pd.Series:
    """Return ``group`` reindexed on the rows of ``target``.

    Parameters
    ----------
    target : pandas.DataFrame or pandas.Index
        Derived matrix (scores, block data...) or its row index.
    group : pandas.Series
        Auxiliary variable indexed by the same row keys as the record set.

    Raises
    ------
    AlignmentError
        If a row of ``target`` has no entry in ``group`` or if ``group``
        has duplicated keys.
    """
    logger = logging.getLogger(__name__)
    index = target.index if isinstance(target, pd.DataFrame) else pd.Index(target)
    if group.index.has_duplicates:
        raise AlignmentError(f"Grouping variable '{group.name}' has duplicated row keys")
    missing = index.difference(group.index)
    if len(missing) > 0:
        raise AlignmentError(
            f"Grouping variable '{group.name}' has no value for {len(missing)} row(s), "
            f"first keys: {list(missing[:5])}"
        )
    aligned = group.reindex(index)
    logger.debug("Grouping variable '%s' aligned on %d rows", group.name, len(aligned))
    return aligned
