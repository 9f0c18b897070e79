"""
Bidirectional stepwise selection by AIC.
Starts from a given predictor set (the full candidate list by default); every
step tries each single drop and each single add and keeps the move with the
lowest AIC until no move improves it.
"""
from dataclasses import dataclass

import pandas as pd

from src.errors import SingularityError
from src.models.ols import FittedModel, fit_ols, ols_aic


@dataclass(frozen=True)
class StepwiseResult:
    model: FittedModel
    history: pd.DataFrame  # step, action, term, aic, n_terms


def _ordered(terms, candidates):
    return [c for c in candidates if c in terms]


def stepwise_aic(df, target, candidates, start=None, name="Stepwise AIC", tol=1e-9):
    candidates = list(candidates)
    current = _ordered(candidates if start is None else start, candidates)
    current_aic = ols_aic(df, target, current)

    history = [{"step": 0, "action": "start", "term": None,
                "aic": current_aic, "n_terms": len(current)}]

    while True:
        moves = []
        for term in current:
            trial = [c for c in current if c != term]
            moves.append(("drop", term, trial))
        for term in candidates:
            if term not in current:
                moves.append(("add", term, _ordered(current + [term], candidates)))

        best = None
        for action, term, trial in moves:
            try:
                aic = ols_aic(df, target, trial)
            except SingularityError:
                continue
            if best is None or aic < best[3]:
                best = (action, term, trial, aic)

        if best is None or best[3] >= current_aic - tol:
            break

        action, term, current, current_aic = best
        history.append({"step": len(history), "action": action, "term": term,
                        "aic": current_aic, "n_terms": len(current)})
        print(f"    Step {len(history) - 1}: {action} {term} -> AIC {current_aic:.3f}")

    model = fit_ols(df, target, current, name=name)
    return StepwiseResult(model=model, history=pd.DataFrame(history))
