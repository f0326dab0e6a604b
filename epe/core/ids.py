"""Identifier generation for entries, preset groups and preset values."""

import logging
import random
import time
import uuid

logger = logging.getLogger(__name__)


def generate_id(prefix: str = "preset") -> str:
    """Generate a collision-resistant identifier.

    Uses a random UUID (backed by os.urandom) when the platform provides a
    cryptographic random source. Otherwise falls back to a millisecond
    timestamp plus a pseudo-random suffix; that fallback is NOT
    cryptographic and only unique with high probability.

    Args:
        prefix: Identifier prefix, e.g. "group" or "value".

    Returns:
        Identifier string such as "group-6f1c...".
    """
    try:
        return f"{prefix}-{uuid.uuid4()}"
    except NotImplementedError:
        logger.debug("No OS random source, using timestamp-based id")
        return f"{prefix}-{int(time.time() * 1000)}-{random.getrandbits(52):x}"
