"""mbatch - background batch runner for encoder-driven media conversions."""

__version__ = "0.1.0"
