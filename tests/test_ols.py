import numpy as np
import pandas as pd
import pytest

from src.errors import SingularityError
from src.models.ols import INTERCEPT, fit_ols, trim_by_vif, variance_inflation

from conftest import SIGNAL_PREDICTORS


@pytest.fixture()
def linear_frame():
    rng = np.random.default_rng(0)
    n = 80
    a = rng.normal(0, 1, n)
    b = rng.normal(0, 1, n)
    y = 1.0 + 2.0 * a - 3.0 * b + rng.normal(0, 0.05, n)
    return pd.DataFrame({"station_id": [f"s{i}" for i in range(n)], "a": a, "b": b, "y": y})


def test_recovers_known_coefficients(linear_frame):
    model = fit_ols(linear_frame, "y", ["a", "b"], name="known")
    est = model.coefficients["estimate"]
    assert est[INTERCEPT] == pytest.approx(1.0, abs=0.05)
    assert est["a"] == pytest.approx(2.0, abs=0.05)
    assert est["b"] == pytest.approx(-3.0, abs=0.05)
    assert list(model.coefficients.columns) == ["estimate", "std_error", "t_value", "p_value"]


def test_residuals_sum_to_zero_and_r2_in_unit_interval(stations):
    model = fit_ols(stations, "log_ridership", SIGNAL_PREDICTORS)
    assert model.residuals.sum() == pytest.approx(0.0, abs=1e-8)
    assert 0.0 <= model.r_squared <= 1.0
    assert model.adj_r_squared <= model.r_squared
    assert model.nobs == 62
    assert len(model.fitted) == len(model.leverage) == len(model.cooks_distance) == 62


def test_model_record_carries_vif_and_ids(stations):
    model = fit_ols(stations, "log_ridership", SIGNAL_PREDICTORS, name="signal")
    assert model.name == "signal"
    assert model.predictors == tuple(SIGNAL_PREDICTORS)
    assert set(model.vif.index) == set(SIGNAL_PREDICTORS)
    assert model.station_ids == tuple(stations["station_id"])
    assert model.n_params == len(SIGNAL_PREDICTORS) + 1


def test_duplicated_column_is_singular(linear_frame):
    frame = linear_frame.assign(a_copy=linear_frame["a"] * 2.0)
    with pytest.raises(SingularityError, match="rank"):
        fit_ols(frame, "y", ["a", "a_copy"])


def test_constant_predictor_is_singular(linear_frame):
    frame = linear_frame.assign(flag=1.0)
    with pytest.raises(SingularityError):
        fit_ols(frame, "y", ["a", "flag"])


def test_too_few_rows_is_singular(linear_frame):
    with pytest.raises(SingularityError):
        fit_ols(linear_frame.head(3), "y", ["a", "b"])


def test_intercept_only_model(linear_frame):
    model = fit_ols(linear_frame, "y", [])
    assert model.predictors == ()
    assert model.vif.empty
    assert model.coefficients["estimate"][INTERCEPT] == pytest.approx(linear_frame["y"].mean())


def test_vif_of_single_predictor_is_one(linear_frame):
    assert variance_inflation(linear_frame, ["a"])["a"] == pytest.approx(1.0)


def test_trim_by_vif_drops_collinear_predictor(linear_frame):
    rng = np.random.default_rng(1)
    frame = linear_frame.assign(a_twin=linear_frame["a"] + rng.normal(0, 0.05, len(linear_frame)))

    kept, dropped = trim_by_vif(frame, ["a", "a_twin", "b"], threshold=4.5)

    assert len(dropped) == 1
    assert set(dropped) <= {"a", "a_twin"}
    assert all(v > 4.5 for v in dropped.values())
    assert (variance_inflation(frame, kept) <= 4.5).all()


def test_trim_by_vif_keeps_independent_predictors(linear_frame):
    kept, dropped = trim_by_vif(linear_frame, ["a", "b"], threshold=4.5)
    assert kept == ["a", "b"]
    assert dropped == {}


def test_trim_by_vif_keeps_predictor_at_threshold(linear_frame):
    rng = np.random.default_rng(2)
    frame = linear_frame.assign(a_near=linear_frame["a"] + rng.normal(0, 0.5, len(linear_frame)))
    cols = ["a", "a_near", "b"]
    vif = variance_inflation(frame, cols)

    # Equal to the threshold is not above it
    kept, dropped = trim_by_vif(frame, cols, threshold=vif.max())
    assert kept == cols
    assert dropped == {}

    kept, dropped = trim_by_vif(frame, cols, threshold=vif.max() - 1e-6)
    assert list(dropped) == [vif.idxmax()]
    assert len(kept) == 2
