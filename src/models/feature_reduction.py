"""
MISSION: The Reduction Layer.
Shrinks the candidate predictors with a cross-validated lasso and provides the
collinearity cross-checks (rank correlation, VIF) used to sanity-check it.
"""
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.linear_model import Lasso, LassoCV
from sklearn.model_selection import KFold

from src.config import Config
from src.errors import SelectionError
from src.features.build_features import FeatureBuilder
from src.models.ols import variance_inflation

PENALTY_RULES = ("min", "1se")


@dataclass(frozen=True)
class ReductionResult:
    rule: str
    alpha: float
    alpha_min: float
    alpha_1se: float
    coefficients: pd.Series
    retained: tuple
    dropped: tuple
    cv_mse: pd.DataFrame  # mean and standard error of CV MSE per alpha


def _cv_curve(lasso_cv, folds):
    mse = lasso_cv.mse_path_
    mean = mse.mean(axis=1)
    se = mse.std(axis=1, ddof=1) / np.sqrt(folds)
    return pd.DataFrame({"alpha": lasso_cv.alphas_, "mean_mse": mean, "se": se})


def _one_se_alpha(curve):
    """Largest alpha whose mean CV error is within one SE of the minimum."""
    best = curve["mean_mse"].idxmin()
    limit = curve.loc[best, "mean_mse"] + curve.loc[best, "se"]
    return float(curve.loc[curve["mean_mse"] <= limit, "alpha"].max())


def reduce_features(df, predictors, target="log_ridership", folds=None, seed=None,
                    rule=None, max_iter=100_000):
    """
    Fits an L1-penalized regression of ``target`` on the standardized predictors
    and drops every predictor whose coefficient is exactly zero.

    The penalty is chosen by k-fold CV on a fixed, seeded fold assignment.
    ``rule="1se"`` takes the largest penalty within one standard error of the
    minimum CV error and refits at that penalty; ``rule="min"`` keeps the strict
    minimizer.
    """
    folds = folds if folds is not None else Config.LASSO_CV_FOLDS
    seed = seed if seed is not None else Config.RANDOM_SEED
    rule = rule if rule is not None else Config.LASSO_RULE
    if rule not in PENALTY_RULES:
        raise ValueError(f"rule must be one of {PENALTY_RULES} (got {rule})")

    predictors = list(predictors)
    X = FeatureBuilder().standardize(df, predictors)
    y = df[target].astype("float64")

    cv = KFold(n_splits=folds, shuffle=True, random_state=seed)
    lasso_cv = LassoCV(cv=cv, random_state=seed, max_iter=max_iter).fit(X, y)

    curve = _cv_curve(lasso_cv, folds)
    alpha_min = float(lasso_cv.alpha_)
    alpha_1se = _one_se_alpha(curve)

    if rule == "min":
        alpha, coef = alpha_min, lasso_cv.coef_
    else:
        alpha = alpha_1se
        coef = Lasso(alpha=alpha, max_iter=max_iter).fit(X, y).coef_

    coefficients = pd.Series(coef, index=predictors, name="coefficient")
    retained = tuple(p for p in predictors if coefficients[p] != 0)
    dropped = tuple(p for p in predictors if coefficients[p] == 0)

    if not retained:
        raise SelectionError(
            f"Lasso ({rule} rule, alpha={alpha:.4g}) shrank every predictor to zero"
        )

    print(f"    Lasso alpha ({rule}): {alpha:.5f} | retained {len(retained)}/{len(predictors)}")
    return ReductionResult(
        rule=rule,
        alpha=alpha,
        alpha_min=alpha_min,
        alpha_1se=alpha_1se,
        coefficients=coefficients,
        retained=retained,
        dropped=dropped,
        cv_mse=curve,
    )


def rank_correlation(df, columns):
    """Pairwise Spearman rank correlation matrix."""
    return df[list(columns)].corr(method="spearman")


def reduced_set_vif(df, reduction):
    """VIF of each retained predictor against the rest of the reduced set."""
    return variance_inflation(df, reduction.retained).sort_values(ascending=False)
