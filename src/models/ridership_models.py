"""
MISSION: The Model Layer.
Builds the three OLS variants of log ridership:
  A. lasso-retained predictors trimmed by VIF
  B. bidirectional stepwise AIC from the full candidate model
  C. stepwise AIC again with the busiest stations removed
"""
import pandas as pd

from src.config import Config
from src.features.build_features import FeatureBuilder
from src.ingest.loader import CANDIDATE_PREDICTORS
from src.models.ols import fit_ols, trim_by_vif
from src.models.stepwise import stepwise_aic

class RidershipModeler:
    """
    Fits the lasso-informed and stepwise models over an explicit predictor list.
    """
    def __init__(self, predictors=None, target="log_ridership", vif_threshold=None):
        self.predictors = list(predictors) if predictors is not None else list(CANDIDATE_PREDICTORS)
        self.target = target
        self.vif_threshold = vif_threshold if vif_threshold is not None else Config.VIF_THRESHOLD

    def fit_lasso_informed(self, df, reduction, name="Fit A: lasso + VIF trim"):
        """Returns the fitted model and the predictors removed by the VIF trim."""
        print(f"Fitting {name} from {len(reduction.retained)} lasso-retained predictors...")
        kept, vif_dropped = trim_by_vif(df, reduction.retained, self.vif_threshold)
        model = fit_ols(df, self.target, kept, name=name)
        return model, vif_dropped

    def fit_stepwise(self, df, name="Fit B: stepwise AIC"):
        print(f"Fitting {name} on {len(df)} stations...")
        return stepwise_aic(df, self.target, self.predictors, name=name)

    def fit_stepwise_without_top(self, df, n=None, name="Fit C: stepwise AIC, top stations excluded"):
        """Stepwise refit after removing the n highest-ridership stations."""
        n = n if n is not None else Config.TOP_RIDERSHIP_EXCLUDED
        subset = FeatureBuilder(target=self.target).exclude_top_ridership(df, n)
        print(f"Fitting {name} on {len(subset)} stations...")
        return stepwise_aic(subset, self.target, self.predictors, name=name)


def compare_predictor_sets(model_a, model_b):
    """Agreement between two fitted predictor sets; reported, never enforced."""
    a, b = set(model_a.predictors), set(model_b.predictors)
    return {
        "first": model_a.name,
        "second": model_b.name,
        "shared": sorted(a & b),
        "only_in_first": sorted(a - b),
        "only_in_second": sorted(b - a),
        "agree": a == b,
    }


def model_summary(models):
    rows = []
    for m in models:
        rows.append({
            "model": m.name,
            "n": m.nobs,
            "k": len(m.predictors),
            "r_squared": m.r_squared,
            "adj_r_squared": m.adj_r_squared,
            "aic": m.aic,
        })
    return pd.DataFrame(rows).set_index("model")
