"""Test model and prediction persistence."""

import pytest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from forecast_pipeline.data import Candle, InMemoryCandleSource
from forecast_pipeline.exceptions import ArtifactExistsError, ModelStoreError, NoModelFoundError
from forecast_pipeline.features import FEATURE_SCHEMA
from forecast_pipeline.models import RegressionMetrics
from forecast_pipeline.pipeline import Trainer
from forecast_pipeline.storage import FileModelStore, InMemoryModelStore, PredictionArtifact, TrainedModel


def make_model(run_id, asset='BTC-USD', timeframe='1h'):
    return TrainedModel(
        run_id=run_id,
        asset=asset,
        timeframe=timeframe,
        trained_at='2026-01-01T00:00:00.000Z',
        feature_schema=tuple(FEATURE_SCHEMA),
        means=(109.1, 108.2, 107.3, 0.1 + 0.2, 1 / 3, 108.0, 105.5, 2e-17),
        std_devs=(6.6332495807108, 6.6, 6.6, 0.000123, 1.0, 6.63, 6.6, 1.0),
        weights=(-1.2345678901234567e-05, 3.3e-07, 0.0, 1 / 7, -2 / 3, 5e-300, 1e10, -0.0),
        bias=0.008312345678901234,
        metrics=RegressionMetrics(mae=0.001, rmse=0.0012, directional_accuracy=0.8),
    )


def make_prediction(prediction_id, asset='BTC-USD'):
    return PredictionArtifact(
        prediction_id=prediction_id,
        generated_at='2026-01-01T00:00:00.000Z',
        asset=asset,
        horizon=3,
        timeframe='1h',
        model_run_id='1700000000000_BTC-USD_1h',
        predicted_one_step_return=0.01,
        predicted_return=1.01 ** 3 - 1,
        latest_close=100.0,
        predicted_close=100.0 * 1.01 ** 3,
    )


@pytest.fixture(params=['file', 'memory'])
def store(request, tmp_path):
    if request.param == 'file':
        return FileModelStore.at(tmp_path)
    return InMemoryModelStore()


def test_round_trip_is_bit_identical(store):
    model = make_model('1700000000000_BTC-USD_1h')
    store.save(model)

    loaded = store.latest('BTC-USD')

    assert loaded == model
    assert loaded.weights == model.weights
    assert loaded.bias == model.bias
    assert loaded.means == model.means
    assert loaded.std_devs == model.std_devs


def test_latest_is_last_in_key_order(store):
    for run_id in ['1700000000002_BTC-USD_1h', '1700000000010_BTC-USD_4h', '1700000000005_BTC-USD_1h']:
        store.save(make_model(run_id, timeframe=run_id.rsplit('_', 1)[1]))

    assert store.list_keys('BTC-USD') == [
        '1700000000002_BTC-USD_1h', '1700000000005_BTC-USD_1h', '1700000000010_BTC-USD_4h',
    ]
    assert store.latest('BTC-USD').run_id == '1700000000010_BTC-USD_4h'


def test_asset_filter_requires_delimited_match(store):
    store.save(make_model('1700000000001_BTC-USD_1h', asset='BTC-USD'))
    store.save(make_model('1700000000002_BTC_1h', asset='BTC'))

    assert store.list_keys('BTC') == ['1700000000002_BTC_1h']
    assert store.latest('BTC-USD').asset == 'BTC-USD'


def test_latest_without_models_raises(store):
    with pytest.raises(NoModelFoundError):
        store.latest('ETH-USD')


def test_artifacts_are_never_overwritten(store):
    store.save(make_model('1700000000000_BTC-USD_1h'))
    with pytest.raises(ArtifactExistsError):
        store.save(make_model('1700000000000_BTC-USD_1h'))


def test_predictions_persist_separately(store):
    store.save(make_prediction('1700000000001_BTC-USD_h3'))
    store.save(make_prediction('1700000000000_BTC-USD_h3'))

    assert store.list_predictions('BTC-USD') == ['1700000000000_BTC-USD_h3', '1700000000001_BTC-USD_h3']
    assert store.list_keys('BTC-USD') == []
    assert store.load_prediction('1700000000001_BTC-USD_h3') == make_prediction('1700000000001_BTC-USD_h3')


def test_file_store_writes_json_and_ignores_temp_files(tmp_path):
    store = FileModelStore.at(tmp_path)
    path = store.save(make_model('1700000000000_BTC-USD_1h'))

    assert Path(path) == tmp_path / 'model_runs' / '1700000000000_BTC-USD_1h.json'
    assert store.model_location('1700000000000_BTC-USD_1h') == path

    # An in-flight write from another process
    (tmp_path / 'model_runs' / '.1700000000009_BTC-USD_1h.abc.tmp').write_text('{"partial": ')
    assert store.latest('BTC-USD').run_id == '1700000000000_BTC-USD_1h'
    assert not list((tmp_path / 'model_runs').glob('.1700000000000*'))


def test_file_store_listing_missing_directory(tmp_path):
    store = FileModelStore.at(tmp_path / 'nowhere')
    assert store.list_keys('BTC-USD') == []
    assert store.list_predictions('BTC-USD') == []


@pytest.mark.parametrize("asset", ['BTC/USD', '../x', '..'])
def test_keys_with_path_parts_rejected(store, asset):
    """Asset names that would leave the flat key namespace are refused before writing."""
    with pytest.raises(ModelStoreError):
        store.save(make_model(f'1700000000000_{asset}_1h', asset=asset))
    with pytest.raises(ModelStoreError):
        store.save(make_prediction(f'1700000000000_{asset}_h3', asset=asset))


def test_file_store_writes_nothing_for_unsafe_asset(tmp_path):
    """Training an asset like BTC/USD fails loudly instead of saving an unreachable model."""
    store = FileModelStore.at(tmp_path / 'store')
    candles = [Candle(timestamp=i, open=100.0 + i, high=100.0 + i, low=100.0 + i, close=100.0 + i) for i in range(40)]
    source = InMemoryCandleSource({('BTC/USD', '1h'): candles, ('../x', '1h'): candles})

    for asset in ('BTC/USD', '../x'):
        with pytest.raises(ModelStoreError):
            Trainer(source, store).train(asset, '1h')

    assert [p for p in tmp_path.rglob('*') if p.is_file()] == []


@pytest.mark.parametrize("key", ['../../secrets', 'nested/1700000000000_BTC-USD_1h', ''])
def test_file_store_load_rejects_unsafe_keys(tmp_path, key):
    store = FileModelStore.at(tmp_path)
    with pytest.raises(ModelStoreError):
        store.load(key)
    with pytest.raises(ModelStoreError):
        store.load_prediction(key)


def test_file_store_keeps_artifact_written_by_another_process(tmp_path):
    """A key that appears on disk between id generation and publish is never replaced."""
    store = FileModelStore.at(tmp_path)
    (tmp_path / 'model_runs').mkdir()
    existing = tmp_path / 'model_runs' / '1700000000000_BTC-USD_1h.json'
    existing.write_text('{"written_by": "other"}')

    with pytest.raises(ArtifactExistsError):
        store.save(make_model('1700000000000_BTC-USD_1h'))

    assert existing.read_text() == '{"written_by": "other"}'
    assert sorted(p.name for p in (tmp_path / 'model_runs').iterdir()) == [existing.name]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
