"""Test candle sources."""

import json
import pytest
import pandas as pd
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from forecast_pipeline.data import Candle, FileCandleSource, InMemoryCandleSource, candles_from_frame
from forecast_pipeline.exceptions import CandleDataError, CandleDataNotFoundError


def sample_records(n=5):
    return [
        {'timestamp': f'2025-01-0{i + 1}T00:00:00Z', 'open': 10.0 + i, 'high': 12.0 + i,
         'low': 9.0 + i, 'close': 11.0 + i, 'volume': 100.0 * (i + 1)}
        for i in range(n)
    ]


def test_reads_json_in_file_order(tmp_path):
    records = sample_records()
    records[1], records[2] = records[2], records[1]
    (tmp_path / 'BTC-USD_1h.json').write_text(json.dumps(records))

    candles = FileCandleSource(tmp_path).fetch_candles('BTC-USD', '1h')

    assert [c.close for c in candles] == [11.0, 13.0, 12.0, 14.0, 15.0]
    assert candles[0] == Candle('2025-01-01T00:00:00Z', 10.0, 12.0, 9.0, 11.0, 100.0)


@pytest.mark.parametrize("name", ['ETH-USD-1d.json', 'ETH-USD.1d.json', 'ETH-USD_1d.csv'])
def test_alternate_file_names(tmp_path, name):
    path = tmp_path / name
    if name.endswith('.csv'):
        pd.DataFrame(sample_records()).to_csv(path, index=False)
    else:
        path.write_text(json.dumps(sample_records()))

    candles = FileCandleSource(tmp_path).fetch_candles('ETH-USD', '1d')
    assert len(candles) == 5
    assert candles[-1].close == 15.0


def test_volume_is_optional(tmp_path):
    records = [{k: v for k, v in r.items() if k != 'volume'} for r in sample_records()]
    (tmp_path / 'XRP_1h.json').write_text(json.dumps(records))

    candles = FileCandleSource(tmp_path).fetch_candles('XRP', '1h')
    assert all(c.volume is None for c in candles)


def test_missing_file_names_candidates(tmp_path):
    with pytest.raises(CandleDataNotFoundError, match='BTC-USD_1h.json'):
        FileCandleSource(tmp_path).fetch_candles('BTC-USD', '1h')


def test_malformed_payloads(tmp_path):
    (tmp_path / 'A_1h.json').write_text(json.dumps({'candles': []}))
    (tmp_path / 'B_1h.json').write_text(json.dumps([{'timestamp': 1, 'open': 1}]))
    source = FileCandleSource(tmp_path)

    with pytest.raises(CandleDataError):
        source.fetch_candles('A', '1h')
    with pytest.raises(CandleDataError):
        source.fetch_candles('B', '1h')


def test_save_then_fetch(tmp_path):
    source = FileCandleSource(tmp_path / 'candles')
    candles = [Candle.from_dict(r) for r in sample_records()]

    path = source.save_candles('BTC-USD', '1h', candles)

    assert path.name == 'BTC-USD_1h.json'
    assert source.fetch_candles('BTC-USD', '1h') == candles


def test_in_memory_source_accepts_frames():
    frame = pd.DataFrame(
        {'open': [1.0, 2.0], 'high': [1.5, 2.5], 'low': [0.5, 1.5], 'close': [1.2, 2.2], 'volume': [10, 20]},
        index=pd.date_range('2025-01-01', periods=2, freq='h', tz='UTC'),
    )
    source = InMemoryCandleSource({('BTC-USD', '1h'): frame})

    candles = source.fetch_candles('BTC-USD', '1h')
    assert [c.close for c in candles] == [1.2, 2.2]
    assert candles[0].timestamp.startswith('2025-01-01T00:00:00')

    with pytest.raises(CandleDataNotFoundError):
        source.fetch_candles('BTC-USD', '4h')


def test_frame_without_close_rejected():
    with pytest.raises(CandleDataError):
        candles_from_frame(pd.DataFrame({'timestamp': [1], 'open': [1.0], 'high': [1.0], 'low': [1.0]}))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
