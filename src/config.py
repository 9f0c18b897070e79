import os
from dotenv import load_dotenv
from pathlib import Path

root_dir = Path(__file__).resolve().parent.parent
env_path = root_dir / ".env"

load_dotenv(env_path)


def _csv_list(value):
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    DATA_PATH = Path(os.getenv("RIDERSHIP_DATA_PATH", "./data/station_attributes.csv"))
    OUTPUT_DIR = Path(os.getenv("RIDERSHIP_OUTPUT_DIR", "./outputs/ridership"))

    # Station with no recorded activity for most of the observation period
    EXCLUDED_STATIONS = _csv_list(os.getenv("EXCLUDED_STATIONS", "63"))

    VIF_THRESHOLD = float(os.getenv("VIF_THRESHOLD", "4.5"))
    LASSO_CV_FOLDS = int(os.getenv("LASSO_CV_FOLDS", "10"))
    LASSO_RULE = os.getenv("LASSO_RULE", "1se")
    RANDOM_SEED = int(os.getenv("RANDOM_SEED", "42"))
    TOP_RIDERSHIP_EXCLUDED = int(os.getenv("TOP_RIDERSHIP_EXCLUDED", "3"))

    TABLE_DECIMALS = int(os.getenv("TABLE_DECIMALS", "3"))
    SHOW_PLOTS = os.getenv("SHOW_PLOTS", "0") == "1"

    @classmethod
    def initialize_folders(cls):
        cls.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
