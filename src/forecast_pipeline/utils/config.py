"""Configuration management for the forecasting pipeline."""

import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
ENV_FILE = PROJECT_ROOT / "keys.env"

if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Try loading from current directory or parent
    load_dotenv()

# Paths (created lazily by the stores that write into them)
DATA_DIR = Path(os.getenv("FORECAST_DATA_DIR", PROJECT_ROOT / "data"))
CANDLES_DIR = Path(os.getenv("FORECAST_CANDLES_DIR", DATA_DIR / "candles"))
MODEL_RUNS_DIR = Path(os.getenv("FORECAST_MODEL_RUNS_DIR", PROJECT_ROOT / "model_runs"))
PREDICTIONS_DIR = Path(os.getenv("FORECAST_PREDICTIONS_DIR", PROJECT_ROOT / "predictions"))

LOG_LEVEL = os.getenv("FORECAST_LOG_LEVEL", "INFO").upper()

# Feature engineering
FEATURE_LOOKBACK = 10          # Candles skipped so every window is full
MIN_TRAINING_CANDLES = 30
MIN_FEATURE_ROWS = 20
MIN_PREDICTION_CANDLES = 11

# Assets trained by default
DEFAULT_ASSETS = ['BTC-USD', 'ETH-USD']
DEFAULT_TIMEFRAME = '1h'


@dataclass
class TrainingConfig:
    # Gradient descent (fixed, no convergence check)
    ITERATIONS: int = 3000
    LEARNING_RATE: float = 0.01

    # Chronological train/validation split
    TRAIN_FRACTION: float = 0.8


CONFIG = TrainingConfig()
