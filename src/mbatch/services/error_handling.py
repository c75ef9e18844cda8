"""Error classification and retry helpers for batch execution.

Every failure inside a batch is converted into an ErrorCategory on the
BatchResult; none of them propagate past the batch boundary.
"""

from enum import Enum

ENCODE_FAILURE_MESSAGE = "Encoder execution failed"


class ErrorCategory(Enum):
    """Failure classification reported on BatchResult.error_category."""

    DATA = "data"  # Invalid enqueue lists, rejected before the batch starts
    ENCODE = "encode"  # Primary (and fallback) command exited non-zero
    LAUNCH = "launch"  # Encoder process never started
    SAVE = "save"  # Artifact store hand-off failed
    CANCELLED = "cancelled"
    UNEXPECTED = "unexpected"


def command_chain(primary: str | None, fallback: str | None = None) -> list[str]:
    """Return the ordered command variants to try for one item.

    Args:
        primary: Primary command line
        fallback: Alternate command line, used only when non-empty

    Returns:
        At most two commands, primary first. Empty if there is no primary.
    """
    if not primary:
        return []
    chain = [primary]
    if fallback and fallback.strip():
        chain.append(fallback)
    return chain


def with_output_path(command: str, output_path: str) -> str:
    """Append the overwrite flag and quoted output path to a command line."""
    return f'{command} -y "{output_path}"'


def save_failure_message(source_path: str) -> str:
    return f"Failed to save output for {source_path}"
