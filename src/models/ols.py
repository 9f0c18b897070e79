"""
MISSION: The Fit Layer.
Ordinary least squares over an explicit list of predictor names.
A fit is returned as a plain FittedModel record so reporting never touches
statsmodels objects directly.
"""
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.stats.outliers_influence import variance_inflation_factor

from src.errors import SingularityError

INTERCEPT = "Intercept"


@dataclass(frozen=True)
class FittedModel:
    name: str
    target: str
    predictors: tuple
    coefficients: pd.DataFrame  # estimate, std_error, t_value, p_value by term
    r_squared: float
    adj_r_squared: float
    aic: float
    nobs: int
    fitted: np.ndarray
    residuals: np.ndarray
    std_residuals: np.ndarray
    leverage: np.ndarray
    cooks_distance: np.ndarray
    vif: pd.Series
    station_ids: tuple

    @property
    def n_params(self):
        return len(self.predictors) + 1


def design_matrix(df, predictors):
    """Intercept column followed by the predictors, in the order given."""
    X = pd.DataFrame({INTERCEPT: np.ones(len(df))}, index=df.index)
    for col in predictors:
        X[col] = df[col].astype("float64")
    return X


def _check_rank(X, label):
    n, p = X.shape
    rank = np.linalg.matrix_rank(X.to_numpy())
    if rank < p:
        raise SingularityError(
            f"{label}: design matrix has rank {rank} for {p} columns "
            f"({list(X.columns)})"
        )
    if n <= p:
        raise SingularityError(f"{label}: {n} rows cannot identify {p} coefficients")


def _fit(df, target, predictors, label):
    X = design_matrix(df, predictors)
    _check_rank(X, label)
    y = df[target].astype("float64")
    return sm.OLS(y, X).fit()


def ols_aic(df, target, predictors):
    """AIC of the OLS fit, without the influence diagnostics."""
    return float(_fit(df, target, predictors, "aic").aic)


def variance_inflation(df, predictors):
    """VIF per predictor, computed against a design that includes the intercept."""
    predictors = list(predictors)
    if not predictors:
        return pd.Series(dtype="float64", name="vif")

    X = design_matrix(df, predictors)
    values = X.to_numpy()
    vif = {
        col: float(variance_inflation_factor(values, i))
        for i, col in enumerate(X.columns)
        if col != INTERCEPT
    }
    return pd.Series(vif, name="vif")


def fit_ols(df, target, predictors, name="OLS"):
    """
    Fits target ~ predictors with an intercept.
    Raises SingularityError when the design matrix is not full column rank.
    """
    predictors = tuple(predictors)
    res = _fit(df, target, predictors, name)
    influence = res.get_influence()

    coefficients = pd.DataFrame({
        "estimate": res.params,
        "std_error": res.bse,
        "t_value": res.tvalues,
        "p_value": res.pvalues,
    })

    station_ids = tuple(df["station_id"]) if "station_id" in df.columns else tuple(df.index)

    return FittedModel(
        name=name,
        target=target,
        predictors=predictors,
        coefficients=coefficients,
        r_squared=float(res.rsquared),
        adj_r_squared=float(res.rsquared_adj),
        aic=float(res.aic),
        nobs=int(res.nobs),
        fitted=np.asarray(res.fittedvalues),
        residuals=np.asarray(res.resid),
        std_residuals=np.asarray(influence.resid_studentized_internal),
        leverage=np.asarray(influence.hat_matrix_diag),
        cooks_distance=np.asarray(influence.cooks_distance[0]),
        vif=variance_inflation(df, predictors),
        station_ids=station_ids,
    )


def trim_by_vif(df, predictors, threshold):
    """
    Drops the highest-VIF predictor, one at a time, until every remaining VIF
    is at or below ``threshold``. Returns (kept, dropped) where dropped maps each
    removed predictor to the VIF it had when removed.
    """
    kept = list(predictors)
    dropped = {}
    while len(kept) > 1:
        vif = variance_inflation(df, kept)
        worst = vif.idxmax()
        if vif[worst] <= threshold:
            break
        print(f"    Dropping {worst} (VIF {vif[worst]:.2f} > {threshold})")
        dropped[worst] = float(vif[worst])
        kept.remove(worst)
    return kept, dropped
