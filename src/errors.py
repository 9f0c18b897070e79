"""
Failure taxonomy for the ridership analysis.
Every error is fatal to the run: the stage that raises it halts the pipeline.
"""


class AnalysisError(Exception):
    """Base class for all analysis failures."""
    stage = "analysis"


class LoadError(AnalysisError):
    """Input file is missing or does not match the station schema."""
    stage = "load"


class DomainError(AnalysisError):
    """A value lies outside the domain of the log transform."""
    stage = "transform"


class SingularityError(AnalysisError):
    """Design matrix is not full rank, so OLS coefficients are undefined."""
    stage = "fit"


class SelectionError(AnalysisError):
    """Predictor selection left nothing to model."""
    stage = "selection"
