"""Build lag/return/moving-average/volatility features from candles."""

from dataclasses import dataclass
from typing import List, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from ..data.candle_source import Candle
from ..exceptions import CandleDataError, DatasetTooSmallError, InsufficientHistoryError
from ..utils.config import FEATURE_LOOKBACK, MIN_TRAINING_CANDLES, MIN_FEATURE_ROWS, MIN_PREDICTION_CANDLES

# Order is the contract between training and inference
FEATURE_SCHEMA = [
    'lagClose1',
    'lagClose2',
    'lagClose3',
    'ret1',
    'ret3',
    'ma5',
    'ma10',
    'vol5',
]

TARGET_COLUMN = 'target'


@dataclass(frozen=True)
class FeatureRow:
    """One labeled training sample."""
    timestamp: Union[str, int, float]
    features: Tuple[float, ...]
    target: float


def _trailing_vol(window: np.ndarray) -> float:
    # First return in the window has no prior close inside it; counts as 0
    returns = np.concatenate(([0.0], window[1:]))
    return float(np.std(returns))


class FeatureBuilder:
    """Build time-aligned, leak-free features from a candle sequence."""

    def __init__(self, lookback: int = FEATURE_LOOKBACK):
        self.lookback = lookback

    def _closes(self, candles: Sequence[Candle]) -> pd.Series:
        close = pd.Series([c.close for c in candles], dtype=float)
        if not np.isfinite(close).all() or (close <= 0).any():
            raise CandleDataError("Close prices must be positive and finite")
        return close

    def build_feature_frame(self, candles: Sequence[Candle]) -> pd.DataFrame:
        """
        Build the feature frame for every candle index.

        Args:
            candles: Candles in ascending timestamp order

        Returns:
            DataFrame with the FEATURE_SCHEMA columns plus ``target``, one row
            per candle. Rows without full lookback or without a next close
            hold NaN.
        """
        close = self._closes(candles)
        prev_close = close.shift(1)

        df = pd.DataFrame({'timestamp': [c.timestamp for c in candles]})

        # Lagged closes
        df['lagClose1'] = prev_close
        df['lagClose2'] = close.shift(2)
        df['lagClose3'] = close.shift(3)

        # Returns
        df['ret1'] = (close - prev_close) / prev_close
        df['ret3'] = (close - close.shift(3)) / close.shift(3)

        # Moving averages over trailing windows ending at i inclusive
        df['ma5'] = close.rolling(5).mean()
        df['ma10'] = close.rolling(10).mean()

        # Population std of the 5 single-step returns over the trailing 5 closes
        step_returns = (close - prev_close) / prev_close
        df['vol5'] = step_returns.rolling(5).apply(_trailing_vol, raw=True)

        # Realized next-step return
        df[TARGET_COLUMN] = (close.shift(-1) - close) / close

        return df

    def build_rows(self, candles: Sequence[Candle]) -> List[FeatureRow]:
        """
        Build labeled rows for indices ``lookback .. len(candles) - 2``.

        Raises:
            DatasetTooSmallError: fewer than MIN_TRAINING_CANDLES candles or
                fewer than MIN_FEATURE_ROWS resulting rows
        """
        if len(candles) < MIN_TRAINING_CANDLES:
            raise DatasetTooSmallError(
                f"Historical candles must contain at least {MIN_TRAINING_CANDLES} records, "
                f"got {len(candles)}."
            )

        df = self.build_feature_frame(candles)
        eligible = df.iloc[self.lookback:len(df) - 1]

        rows = [
            FeatureRow(
                timestamp=ts,
                features=tuple(float(v) for v in values),
                target=float(target),
            )
            for ts, values, target in zip(
                eligible['timestamp'],
                eligible[FEATURE_SCHEMA].to_numpy(),
                eligible[TARGET_COLUMN].to_numpy(),
            )
        ]

        if len(rows) < MIN_FEATURE_ROWS:
            raise DatasetTooSmallError(
                f"Only {len(rows)} rows after feature engineering (need {MIN_FEATURE_ROWS}). "
                "Provide more historical candles."
            )

        return rows

    def build_latest_vector(self, candles: Sequence[Candle]) -> np.ndarray:
        """Feature vector anchored at the last candle, in FEATURE_SCHEMA order."""
        if len(candles) < MIN_PREDICTION_CANDLES:
            raise InsufficientHistoryError(
                f"At least {MIN_PREDICTION_CANDLES} candles are required to build "
                f"prediction features, got {len(candles)}."
            )

        df = self.build_feature_frame(candles)
        return df[FEATURE_SCHEMA].iloc[-1].to_numpy(dtype=float)


def rows_to_arrays(rows: Sequence[FeatureRow]) -> Tuple[np.ndarray, np.ndarray]:
    """Stack rows into an (n, 8) feature matrix and an (n,) target vector."""
    X = np.array([r.features for r in rows], dtype=float).reshape(len(rows), len(FEATURE_SCHEMA))
    y = np.array([r.target for r in rows], dtype=float)
    return X, y
