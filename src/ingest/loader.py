"""
MISSION: The Load Layer.
Reads the station attribute table through an in-memory DuckDB connection,
checks it against the fixed station schema and drops the known bad station.
"""
from pathlib import Path

import duckdb
import pandas as pd

from src.config import Config
from src.errors import LoadError
from src.utils.db import DatabaseManager

SOCIO_DEMOGRAPHIC_COLUMNS = [
    "pop_density",
    "job_density",
    "age_16_34_pct",
    "no_car_pct",
    "university_pct",
    "income_deprivation",
    "employment_deprivation",
]

BUILT_ENVIRONMENT_COLUMNS = [
    "slope",
    "transit_distance",
    "cycle_lane_ratio",
    "downtown_distance",
    "transit_presence",
]

# Loaded and checked, but not offered to the models
DESCRIPTIVE_COLUMNS = ["age_16_34_pct"]

CANDIDATE_PREDICTORS = [
    c for c in SOCIO_DEMOGRAPHIC_COLUMNS + BUILT_ENVIRONMENT_COLUMNS
    if c not in DESCRIPTIVE_COLUMNS
]

STATION_COLUMNS = ["station_id", "trip_count"] + SOCIO_DEMOGRAPHIC_COLUMNS + BUILT_ENVIRONMENT_COLUMNS


def _read_csv(con, path: Path) -> pd.DataFrame:
    quoted = path.as_posix().replace("'", "''")
    return con.execute(
        f"SELECT * FROM read_csv_auto('{quoted}', header=true, types={{'station_id': 'VARCHAR'}})"
    ).df()


def _check_schema(df: pd.DataFrame, path: Path):
    missing = [c for c in STATION_COLUMNS if c not in df.columns]
    unexpected = [c for c in df.columns if c not in STATION_COLUMNS]
    if missing or unexpected:
        raise LoadError(
            f"Header of {path} does not match the station schema "
            f"(missing={missing}, unexpected={unexpected})"
        )


def _coerce_numeric(df: pd.DataFrame, path: Path) -> pd.DataFrame:
    numeric_cols = STATION_COLUMNS[1:]
    coerced = df[numeric_cols].apply(pd.to_numeric, errors="coerce")

    # Values that were present but did not parse as numbers
    bad = coerced.isna() & df[numeric_cols].notna()
    if bad.any().any():
        cols = bad.columns[bad.any()].tolist()
        raise LoadError(f"Non-numeric values in {path} for columns {cols}")

    return df.assign(**{c: coerced[c].astype("float64") for c in numeric_cols})


def load_stations(path=None, excluded_stations=None, con=None) -> pd.DataFrame:
    """
    Loads one row per station from a comma-separated file with a header row.

    Rows whose station_id is in ``excluded_stations`` are removed. Raises
    LoadError if the file is missing, the header differs from the station
    schema, ids repeat, or a required value is missing.
    """
    path = Path(path if path is not None else Config.DATA_PATH)
    if excluded_stations is None:
        excluded_stations = Config.EXCLUDED_STATIONS

    if not path.exists():
        raise LoadError(f"Station file not found: {path}")

    db_mgr = None
    if con is None:
        db_mgr = DatabaseManager()
        con = db_mgr.connect()

    try:
        raw = _read_csv(con, path)
    except duckdb.Error as e:
        raise LoadError(f"Could not read {path}: {e}") from e
    finally:
        if db_mgr is not None:
            db_mgr.close()

    _check_schema(raw, path)
    df = raw[STATION_COLUMNS].copy()

    if df["station_id"].isna().any():
        raise LoadError(f"Missing station_id values in {path}")
    df["station_id"] = df["station_id"].astype(str).str.strip()

    df = _coerce_numeric(df, path)

    null_counts = df.isna().sum()
    if null_counts.any():
        raise LoadError(
            f"Missing values in {path}: {null_counts[null_counts > 0].to_dict()}"
        )

    dup = df["station_id"].duplicated(keep=False)
    if dup.any():
        raise LoadError(
            f"Duplicate station ids in {path}: {sorted(df.loc[dup, 'station_id'].unique())}"
        )

    excluded = {str(s) for s in excluded_stations}
    keep = ~df["station_id"].isin(excluded)
    dropped = int((~keep).sum())

    stations = df[keep].reset_index(drop=True)
    print(f"Loaded {len(df)} stations from {path} (excluded {dropped}, kept {len(stations)}).")
    return stations
