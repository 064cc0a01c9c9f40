"""Candle sources for training and prediction."""

from .candle_source import Candle, CandleSource, FileCandleSource, InMemoryCandleSource, candles_from_frame

__all__ = ['Candle', 'CandleSource', 'FileCandleSource', 'InMemoryCandleSource', 'candles_from_frame']
