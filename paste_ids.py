"""
Short random identifiers for pastes.

Identifiers are drawn from a 62 symbol alphanumeric alphabet using the
operating system's secure random source. Bytes that would bias the modulo
mapping are rejected rather than folded in.
"""

import secrets
import string

from paste_errors import RandomnessFailure

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_LENGTH = 8

# Largest multiple of len(ALPHABET) that fits in a byte; bytes at or above it are discarded
MAX_ACCEPTED = 256 - (256 % len(ALPHABET))


def _random_bytes(count: int) -> bytes:
    try:
        return secrets.token_bytes(count)
    except (OSError, NotImplementedError) as e:
        raise RandomnessFailure(f"reading secure random bytes failed: {e}") from e


def generate_id(length: int = DEFAULT_LENGTH) -> str:
    """
    Generate a random identifier of the given length.

    Args:
        length: Number of symbols (default: 8)

    Returns:
        A string of `length` characters from ALPHABET

    Raises:
        RandomnessFailure: If the secure random source errors
        ValueError: If length is not positive
    """
    if length < 1:
        raise ValueError("identifier length must be positive")

    symbols = []
    # Over-read each round so a few rejected bytes rarely need another round
    batch = length + length // 4
    while True:
        for b in _random_bytes(batch):
            if b >= MAX_ACCEPTED:
                continue
            symbols.append(ALPHABET[b % len(ALPHABET)])
            if len(symbols) == length:
                return "".join(symbols)
