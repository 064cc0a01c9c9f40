#!/usr/bin/env python3
"""
Forecast Runner - train models and produce predictions from the command line.

Examples:
    python run_forecast.py train --asset BTC-USD --asset ETH-USD --timeframe 1h
    python run_forecast.py predict --asset BTC-USD --horizon 24
    python run_forecast.py models --asset BTC-USD

Directories come from keys.env / environment (see src/forecast_pipeline/utils/config.py)
unless overridden with the flags below.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / 'src'))

from forecast_pipeline import ForecastPipeline, ForecastError
from forecast_pipeline.utils.config import DEFAULT_ASSETS, DEFAULT_TIMEFRAME, LOG_LEVEL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Candle-based linear price forecasting")
    parser.add_argument('--candles-dir', type=Path, default=None)
    parser.add_argument('--model-runs-dir', type=Path, default=None)
    parser.add_argument('--predictions-dir', type=Path, default=None)
    parser.add_argument('--log-level', default=LOG_LEVEL)

    sub = parser.add_subparsers(dest='command', required=True)

    train = sub.add_parser('train', help="Train one model per asset")
    train.add_argument('--asset', action='append', dest='assets',
                       help=f"Asset to train (repeatable, default: {', '.join(DEFAULT_ASSETS)})")
    train.add_argument('--timeframe', default=DEFAULT_TIMEFRAME)

    predict = sub.add_parser('predict', help="Forecast with the latest model for an asset")
    predict.add_argument('--asset', required=True)
    predict.add_argument('--horizon', type=int, default=1)

    models = sub.add_parser('models', help="List persisted models for an asset")
    models.add_argument('--asset', required=True)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    pipeline = ForecastPipeline.from_directories(
        args.candles_dir, args.model_runs_dir, args.predictions_dir
    )

    try:
        if args.command == 'train':
            results = pipeline.train_all(args.assets, args.timeframe)
            output = {asset: result.to_dict() for asset, result in results.items()}
        elif args.command == 'predict':
            output = pipeline.predict(args.asset, args.horizon).to_dict()
        else:
            output = [model.to_dict() for model in pipeline.list_models(args.asset)]
    except ForecastError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
