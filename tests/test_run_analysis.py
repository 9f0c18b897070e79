import pytest

import run_analysis
from src.config import Config


@pytest.fixture()
def quick_config(monkeypatch):
    monkeypatch.setattr(Config, "LASSO_CV_FOLDS", 5)
    monkeypatch.setattr(Config, "RANDOM_SEED", 3)
    monkeypatch.setattr(Config, "LASSO_RULE", "1se")
    monkeypatch.setattr(Config, "VIF_THRESHOLD", 4.5)


def test_full_run(station_csv, quick_config):
    results = run_analysis.run(station_csv)

    assert results["fit_a"].nobs == 62
    assert (results["fit_a"].vif <= Config.VIF_THRESHOLD).all()
    assert all(v > Config.VIF_THRESHOLD for v in results["vif_dropped"].values())
    assert set(results["fit_a"].predictors).isdisjoint(results["vif_dropped"])
    assert results["fit_b"].model.nobs == 62
    assert results["fit_c"].model.nobs == 59
    assert isinstance(results["comparison"]["agree"], bool)
    assert any(Config.OUTPUT_DIR.glob("plot_diagnostics_*.png"))


def test_missing_input_exits_with_status_one(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        run_analysis.main([str(tmp_path / "missing.csv")])
    assert exc.value.code == 1
    assert "LoadError" in capsys.readouterr().out


def test_domain_error_halts_run(tmp_path, station_frame, capsys):
    frame = station_frame.copy()
    frame.loc[0, "trip_count"] = 0
    path = tmp_path / "zero.csv"
    frame.to_csv(path, index=False)

    with pytest.raises(SystemExit):
        run_analysis.main([str(path)])
    assert "TRANSFORM FAILED" in capsys.readouterr().out
