#!/usr/bin/env python3
"""Survey analysis pipeline.

Loads the survey export, then runs the same block procedure on every
configured variable group:

* ordinal blocks: recode → impute → drop degenerate → scale → PCA;
* categorical blocks: label → drop single level columns → MCA;
* one contingency table of two variables: profiles → CA.

Tables are logged and written as CSV next to the figures in
``output_dir``. Run the pipeline with a YAML or JSON configuration file::

    python -m survey_analysis --config config.yaml
"""

from __future__ import annotations

import argparse
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import matplotlib.pyplot as plt
import pandas as pd
import yaml

from .categorical_blocks import add_derived_factor, prepare_categorical_block
from .correspondence import build_contingency, run_ca
from .dataset_loader import load_survey, require_columns
from .errors import SurveyAnalysisError
from .factor_methods import run_mca, run_pca
from .logging_utils import setup_logging
from .ordinal_blocks import DEFAULT_SCHEME, prepare_ordinal_block
from .reporting import report_block, report_contingency
from .visualization import generate_figures


def _filter_kwargs(func: Any, params: Dict[str, Any]) -> Dict[str, Any]:
    sig = inspect.signature(func)
    return {k: v for k, v in params.items() if k in sig.parameters}


def _method_params(method: str, config: Mapping[str, Any]) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if method.lower() in config and isinstance(config[method.lower()], Mapping):
        for key, value in config[method.lower()].items():
            if value is not None:
                params[key] = value
    prefix = f"{method.lower()}_"
    for key, value in config.items():
        if key.startswith(prefix) and value is not None:
            params[key[len(prefix) :]] = value
    return params


def _block_specs(config: Mapping[str, Any], key: str) -> Dict[str, Dict[str, Any]]:
    """Normalise ``config[key]`` to ``{name: {...}}``.

    Blocks may be given as a mapping or as a list of names, in which case
    the name doubles as the column pattern.
    """
    raw = config.get(key) or {}
    if isinstance(raw, Mapping):
        return {str(name): dict(spec or {}) for name, spec in raw.items()}
    return {str(name): {} for name in raw}


def derive_records(records: pd.DataFrame, config: Mapping[str, Any]) -> pd.DataFrame:
    """Return ``records`` with the configured derived factor columns added."""
    derived = records
    for spec in config.get("derived_factors") or []:
        derived = add_derived_factor(
            derived,
            spec["source"],
            spec["name"],
            spec["bins"],
            spec.get("labels"),
            right=bool(spec.get("right", False)),
        )
    return derived


def run_pipeline(config: Dict[str, Any]) -> Dict[str, Any]:
    rs = config.get("random_state")
    random_state = int(rs) if rs is not None else None
    output_dir = Path(config.get("output_dir", "survey_output"))
    output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(config.get("log_level", "INFO"), output_dir / "survey_analysis.log")
    logger = logging.getLogger(__name__)

    records = derive_records(load_survey(config), config)

    group_vars: List[str] = list(config.get("group_vars") or [])
    require_columns(records, group_vars)
    groups = {name: records[name] for name in group_vars}

    default_scheme = config.get("ordinal_scheme") or DEFAULT_SCHEME
    blocks: Dict[str, Any] = {}
    results: Dict[str, Dict[str, Any]] = {}

    pca_params = _filter_kwargs(run_pca, _method_params("pca", config))
    pca_params.pop("random_state", None)
    for name, spec in _block_specs(config, "ordinal_blocks").items():
        logger.info("Ordinal block '%s'", name)
        block = prepare_ordinal_block(
            records,
            name,
            spec.get("pattern"),
            spec.get("scheme") or default_scheme,
        )
        blocks[name] = block
        results[name] = run_pca(block.data, random_state=random_state, **pca_params)

    mca_params = _filter_kwargs(run_mca, _method_params("mca", config))
    mca_params.pop("random_state", None)
    for name, spec in _block_specs(config, "categorical_blocks").items():
        logger.info("Categorical block '%s'", name)
        block = prepare_categorical_block(
            records,
            name,
            spec.get("pattern"),
            columns=spec.get("columns"),
            missing=spec.get("missing", "category"),
        )
        blocks[name] = block
        results[name] = run_mca(block.data, random_state=random_state, **mca_params)

    for name, res in results.items():
        report_block(name, res, blocks[name].dropped, output_dir)

    ca_result = None
    ca_cfg = config.get("ca")
    if isinstance(ca_cfg, Mapping) and ca_cfg.get("row_var") and ca_cfg.get("col_var"):
        require_columns(records, [ca_cfg["row_var"], ca_cfg["col_var"]])
        table = build_contingency(records, ca_cfg["row_var"], ca_cfg["col_var"])
        ca_result = run_ca(table, n_components=ca_cfg.get("n_components"))
        report_contingency(ca_result, output_dir)

    figures = generate_figures(results, groups, ca_result, output_dir)
    for fig in figures.values():
        plt.close(fig)

    logger.info("Analysis complete, outputs written to %s", output_dir)
    return {
        "records": records,
        "blocks": blocks,
        "results": results,
        "ca": ca_result,
        "figures": sorted(figures),
    }


def _load_config(path: Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as fh:
        if path.suffix.lower() in {".yaml", ".yml"}:
            return yaml.safe_load(fh)
        return json.load(fh)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Survey factorial analysis (PCA, MCA, CA)")
    parser.add_argument("--config", required=True, help="Path to config YAML/JSON")
    parser.add_argument("--input-file", help="Override 'input_file' from the config")
    parser.add_argument("--output-dir", help="Override 'output_dir' from the config")
    args = parser.parse_args(argv)
    cfg = _load_config(Path(args.config))
    if args.input_file:
        cfg["input_file"] = args.input_file
    if args.output_dir:
        cfg["output_dir"] = args.output_dir
    try:
        run_pipeline(cfg)
    except (SurveyAnalysisError, FileNotFoundError) as exc:
        logging.getLogger(__name__).error("%s", exc)
        raise SystemExit(1) from exc


if __name__ == "__main__":  # pragma: no cover - manual execution
    main()
