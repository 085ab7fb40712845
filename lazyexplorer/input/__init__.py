"""Input-layer public API: raw key decoding and mode-aware key resolution."""

from .key_registry import KeyBinding, KeySequenceRegistry, format_key_sequence, parse_key_sequence
from .reader import ESC_SEQUENCE_TIMEOUT_MS, read_key
from .resolver import CANCEL_KEY, CANCELLED, PENDING, RESOLVED, UNBOUND, KeyResolver, Resolution

__all__ = [
    "CANCEL_KEY",
    "CANCELLED",
    "ESC_SEQUENCE_TIMEOUT_MS",
    "KeyBinding",
    "KeyResolver",
    "KeySequenceRegistry",
    "PENDING",
    "RESOLVED",
    "Resolution",
    "UNBOUND",
    "format_key_sequence",
    "parse_key_sequence",
    "read_key",
]
