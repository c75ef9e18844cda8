"""Encoder process module for mbatch."""

from mbatch.encoder.session import EncoderSession, SessionState

__all__ = ["EncoderSession", "SessionState"]
