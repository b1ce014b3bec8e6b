"""Identifier allocation for new records."""

import random
import time
import uuid

MEMBER_NUMBER_DIGITS = 6


def generate_member_number() -> str:
    """Six-digit member number from the wall clock plus a random offset.

    No counter is consulted, so uniqueness is best effort: two numbers
    collide when clock and offset line up modulo one million. The store's
    uniqueness constraint, where present, is the only backstop.
    """
    millis = time.time_ns() // 1_000_000
    value = (millis + random.randint(0, 999)) % 10 ** MEMBER_NUMBER_DIGITS
    return f"{value:0{MEMBER_NUMBER_DIGITS}d}"


def generate_id() -> str:
    """Primary key for a new member or payment."""
    return str(uuid.uuid4())
