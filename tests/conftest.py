import os

# Render plots off-screen
os.environ.setdefault("MPLBACKEND", "Agg")

import numpy as np
import pandas as pd
import pytest

from src.config import Config
from src.features.build_features import FeatureBuilder
from src.ingest.loader import STATION_COLUMNS, load_stations

EXCLUDED_STATION = "63"
SIGNAL_PREDICTORS = [
    "transit_distance",
    "downtown_distance",
    "cycle_lane_ratio",
    "employment_deprivation",
    "university_pct",
    "pop_density",
]
SIGNAL_EFFECTS = {
    "transit_distance": -0.03,
    "downtown_distance": -0.02,
    "cycle_lane_ratio": 0.04,
    "employment_deprivation": -0.02,
    "university_pct": 0.02,
    "pop_density": 0.025,
}


def make_station_frame(n=63, seed=7):
    """Synthetic station table whose log ridership depends on six attributes."""
    rng = np.random.default_rng(seed)
    data = {"station_id": [str(i) for i in range(1, n + 1)]}
    for col in STATION_COLUMNS[2:]:
        data[col] = rng.normal(50.0, 10.0, n)
    data["transit_presence"] = rng.integers(0, 2, n).astype(float)

    log_trips = 3.5 + rng.normal(0.0, 0.1, n)
    for col, effect in SIGNAL_EFFECTS.items():
        log_trips = log_trips + effect * (data[col] - 50.0)
    data["trip_count"] = np.maximum(np.round(10 ** log_trips), 1.0)

    df = pd.DataFrame(data)[STATION_COLUMNS]
    # Nearly idle station
    df.loc[df["station_id"] == EXCLUDED_STATION, "trip_count"] = 2.0
    return df


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch, tmp_path):
    monkeypatch.setattr(Config, "OUTPUT_DIR", tmp_path / "outputs")
    monkeypatch.setattr(Config, "EXCLUDED_STATIONS", [EXCLUDED_STATION])
    monkeypatch.setattr(Config, "SHOW_PLOTS", False)


@pytest.fixture()
def station_frame():
    return make_station_frame()


@pytest.fixture()
def station_csv(tmp_path, station_frame):
    path = tmp_path / "station_attributes.csv"
    station_frame.to_csv(path, index=False)
    return path


@pytest.fixture()
def stations(station_csv):
    return FeatureBuilder().add_log_ridership(
        load_stations(station_csv, excluded_stations=[EXCLUDED_STATION])
    )
