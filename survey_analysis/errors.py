"""Exceptions raised by the survey analysis pipeline."""

from __future__ import annotations


class SurveyAnalysisError(Exception):
    """Base class for all pipeline errors."""


class DataLoadError(SurveyAnalysisError, ValueError):
    """The input file cannot be read or lacks a configured column."""


class BlockError(SurveyAnalysisError, ValueError):
    """A variable block cannot be built from the record set."""


class DecompositionError(SurveyAnalysisError, ValueError):
    """Too few variables, levels or table cells to run a decomposition."""


class AlignmentError(SurveyAnalysisError, KeyError):
    """An auxiliary variable cannot be joined to a derived matrix."""

    def __str__(self) -> str:  # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else ""
