"""Service layer module for mbatch."""

from mbatch.services.cancellation import CancellationToken
from mbatch.services.dispatcher import BatchDispatcher
from mbatch.services.error_handling import ErrorCategory, command_chain, with_output_path
from mbatch.services.runner import (
    BatchRunner,
    ImageBatchRunner,
    VideoBatchRunner,
    runner_for,
)
from mbatch.services.state_bus import BatchChannel, StateBus

__all__ = [
    "BatchDispatcher",
    "BatchRunner",
    "VideoBatchRunner",
    "ImageBatchRunner",
    "runner_for",
    "StateBus",
    "BatchChannel",
    "CancellationToken",
    "ErrorCategory",
    "command_chain",
    "with_output_path",
]
