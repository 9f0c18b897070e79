"""
MISSION: The Feature Layer.
Derives the log10 ridership target and the standardized predictor matrix.
Every method returns a new frame; the input table is never modified.
"""
import pandas as pd
import numpy as np
from sklearn.preprocessing import StandardScaler

from src.errors import DomainError

class FeatureBuilder:
    def __init__(self, source="trip_count", target="log_ridership"):
        """Initialize the Feature Builder for the ridership target."""
        self.source = source
        self.target = target

    def add_log_ridership(self, df):
        """
        Adds log10 of the raw trip count.
        Raises DomainError naming the stations whose count is missing or non-positive.
        """
        counts = pd.to_numeric(df[self.source], errors="coerce")
        bad = counts.isna() | (counts <= 0)
        if bad.any():
            ids = df.loc[bad, "station_id"].tolist() if "station_id" in df.columns else df.index[bad].tolist()
            raise DomainError(
                f"log10 undefined for non-positive {self.source} at stations {ids}"
            )

        return df.assign(**{self.target: np.log10(counts.astype("float64"))})

    def standardize(self, df, columns):
        """Returns only ``columns``, z-scored with population standard deviation."""
        scaler = StandardScaler()
        scaled = scaler.fit_transform(df[columns].astype("float64"))
        return pd.DataFrame(scaled, columns=columns, index=df.index)

    def exclude_top_ridership(self, df, n=3):
        """
        Drops the n busiest stations and re-derives the log column on what remains.
        Used for the outlier-sensitivity refit.
        """
        if n <= 0:
            return self.add_log_ridership(df)

        top_idx = df[self.source].nlargest(n).index
        remaining = df.drop(index=top_idx).reset_index(drop=True)
        print(f"    Excluded top {n} stations by {self.source}: "
              f"{df.loc[top_idx, 'station_id'].tolist() if 'station_id' in df.columns else list(top_idx)}")

        # Drop any stale derived column so it is recomputed on the subset
        remaining = remaining.drop(columns=[self.target], errors="ignore")
        return self.add_log_ridership(remaining)
