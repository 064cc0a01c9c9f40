"""Candle sources: supply ordered OHLCV candles for an asset/timeframe."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from ..exceptions import CandleDataError, CandleDataNotFoundError
from ..utils.config import CANDLES_DIR
from ..utils.helpers import read_json, write_json_atomic

logger = logging.getLogger(__name__)

CANDLE_COLUMNS = ['timestamp', 'open', 'high', 'low', 'close', 'volume']


@dataclass(frozen=True)
class Candle:
    """One OHLCV bar."""
    timestamp: Union[str, int, float]
    open: float
    high: float
    low: float
    close: float
    volume: Optional[float] = None

    @classmethod
    def from_dict(cls, record: Mapping[str, Any]) -> 'Candle':
        try:
            volume = record.get('volume')
            return cls(
                timestamp=record['timestamp'],
                open=float(record['open']),
                high=float(record['high']),
                low=float(record['low']),
                close=float(record['close']),
                volume=None if volume is None or pd.isna(volume) else float(volume),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CandleDataError(f"Malformed candle record {dict(record)!r}: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data['volume'] is None:
            del data['volume']
        return data


def candles_from_frame(df: pd.DataFrame) -> List[Candle]:
    """Convert an OHLCV DataFrame to candles, keeping row order."""
    frame = df.copy()
    if 'timestamp' not in frame.columns:
        frame = frame.rename_axis('timestamp').reset_index()
    missing = {'open', 'high', 'low', 'close'} - set(frame.columns)
    if missing:
        raise CandleDataError(f"Missing columns: {sorted(missing)}")
    if pd.api.types.is_datetime64_any_dtype(frame['timestamp']):
        frame['timestamp'] = frame['timestamp'].map(lambda ts: ts.isoformat())
    columns = [c for c in CANDLE_COLUMNS if c in frame.columns]
    return [Candle.from_dict(record) for record in frame[columns].to_dict('records')]


class CandleSource(ABC):
    """Anything that can hand the pipeline an ascending candle sequence."""

    @abstractmethod
    def fetch_candles(self, asset: str, timeframe: str) -> List[Candle]:
        """
        Fetch candles for an asset/timeframe.

        Returns:
            Candles in ascending timestamp order. The pipeline never re-sorts.
        """
        pass


class FileCandleSource(CandleSource):
    """Read candles from JSON or CSV files in a directory."""

    SUFFIXES = ('.json', '.csv')

    def __init__(self, candles_dir: Optional[Path] = None):
        self.candles_dir = Path(candles_dir) if candles_dir is not None else CANDLES_DIR

    def candidate_paths(self, asset: str, timeframe: str) -> List[Path]:
        stems = [f"{asset}_{timeframe}", f"{asset}-{timeframe}", f"{asset}.{timeframe}"]
        return [self.candles_dir / f"{stem}{suffix}" for suffix in self.SUFFIXES for stem in stems]

    def fetch_candles(self, asset: str, timeframe: str) -> List[Candle]:
        candidates = self.candidate_paths(asset, timeframe)
        path = next((p for p in candidates if p.exists()), None)
        if path is None:
            raise CandleDataNotFoundError(
                f"No candle file found for {asset}/{timeframe}. "
                f"Expected one of: {', '.join(p.name for p in candidates)}"
            )

        if path.suffix == '.csv':
            candles = candles_from_frame(pd.read_csv(path))
        else:
            payload = read_json(path)
            if not isinstance(payload, list):
                raise CandleDataError(f"Candle file {path} must contain a JSON array")
            candles = [Candle.from_dict(record) for record in payload]

        logger.debug(f"Loaded {len(candles)} candles for {asset}/{timeframe} from {path}")
        return candles

    def save_candles(self, asset: str, timeframe: str, candles: Sequence[Candle]) -> Path:
        """Persist candles as ``<asset>_<timeframe>.json``, replacing any previous file."""
        path = self.candles_dir / f"{asset}_{timeframe}.json"
        write_json_atomic(path, [c.to_dict() for c in candles])
        logger.info(f"Saved {len(candles)} candles for {asset}/{timeframe} to {path}")
        return path


class InMemoryCandleSource(CandleSource):
    """Serve candles held in process, keyed by (asset, timeframe)."""

    def __init__(self, data: Optional[Mapping[Tuple[str, str], Union[Sequence[Candle], pd.DataFrame]]] = None):
        self._data: Dict[Tuple[str, str], List[Candle]] = {}
        for (asset, timeframe), candles in (data or {}).items():
            self.add(asset, timeframe, candles)

    def add(self, asset: str, timeframe: str, candles: Union[Sequence[Candle], pd.DataFrame]):
        if isinstance(candles, pd.DataFrame):
            candles = candles_from_frame(candles)
        self._data[(asset, timeframe)] = list(candles)

    def fetch_candles(self, asset: str, timeframe: str) -> List[Candle]:
        try:
            return list(self._data[(asset, timeframe)])
        except KeyError:
            raise CandleDataNotFoundError(f"No candles loaded for {asset}/{timeframe}") from None
