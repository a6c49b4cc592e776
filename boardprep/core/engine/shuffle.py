# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Deterministic seeded shuffling.

Seeds are derived from stable identifiers with a 32-bit rolling string hash
and drive a Mulberry32 generator. The same seed always yields the same
permutation and no module-level random state is involved, so each user gets
a stable but individual ordering.

Neither the hash nor the generator is cryptographic. They exist only for
reproducible ordering.

Example:
    >>> seed = create_question_seed("user-1", "question-9")
    >>> shuffle_with_seed(["a", "b", "c", "d"], seed) == shuffle_with_seed(["a", "b", "c", "d"], seed)
    True
"""

import struct
from collections.abc import Callable, Sequence
from typing import TypeVar

T = TypeVar("T")

_UINT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000
_UINT32_RANGE = 4_294_967_296
_MULBERRY_INCREMENT = 0x6D2B79F5


def _hash_string(value: str) -> int:
    """Rolling multiply-add hash (h * 31 + c) folded to a non-negative int.

    Characters are consumed as UTF-16 code units, so a character outside
    the Basic Multilingual Plane contributes its surrogate pair. The
    accumulator wraps at 32 bits and is read as a signed value, so the
    result lies in 0..2**31 inclusive.
    """
    encoded = value.encode("utf-16-le", "surrogatepass")
    hash_value = 0
    for (code_unit,) in struct.iter_unpack("<H", encoded):
        hash_value = (hash_value * 31 + code_unit) & _UINT32_MASK

    if hash_value & _INT32_SIGN:
        hash_value -= _UINT32_RANGE
    return abs(hash_value)


def create_seed(user_id: str, timestamp_ms: int) -> int:
    """Create a seed from a user id and a millisecond timestamp.

    Used for session-level randomization that should differ per user and
    per session start.
    """
    return _hash_string(f"{user_id}:{timestamp_ms}")


def create_question_seed(user_id: str, question_id: str) -> int:
    """Create a seed from a user id and a question id.

    Used to give each user a stable choice order for a given question.
    """
    return _hash_string(f"{user_id}:{question_id}")


def _imul(a: int, b: int) -> int:
    return (a * b) & _UINT32_MASK


def mulberry32(seed: int) -> Callable[[], float]:
    """Build a Mulberry32 generator returning floats in [0, 1).

    Args:
        seed: Any integer; only the low 32 bits are used.

    Returns:
        A zero-argument callable producing the next value.
    """
    state = seed & _UINT32_MASK

    def next_value() -> float:
        nonlocal state
        state = (state + _MULBERRY_INCREMENT) & _UINT32_MASK
        t = _imul(state ^ (state >> 15), state | 1)
        t = ((t + _imul(t ^ (t >> 7), t | 61)) & _UINT32_MASK) ^ t
        return ((t ^ (t >> 14)) & _UINT32_MASK) / _UINT32_RANGE

    return next_value


def shuffle_with_seed(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates shuffle driven by a seeded Mulberry32 generator.

    Args:
        items: Items to permute. Not modified.
        seed: Seed from create_seed or create_question_seed.

    Returns:
        A new list holding a permutation of items.
    """
    result = list(items)
    if len(result) <= 1:
        return result

    random = mulberry32(seed)
    for i in range(len(result) - 1, 0, -1):
        j = int(random() * (i + 1))
        result[i], result[j] = result[j], result[i]

    return result
