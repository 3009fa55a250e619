# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Password hashing with Argon2id and a per-user salt.

The salt is stored next to the hash in the user record, so hashing goes
through the low-level API (raw key, explicit salt) instead of PasswordHasher's
self-describing PHC strings.
"""

from __future__ import annotations

import asyncio
import hmac
import os
import secrets
import unicodedata

from argon2.low_level import Type, hash_secret_raw

SALT_BYTES = 16
HASH_BYTES = 64


def _params() -> dict:
    return {
        "time_cost": int(os.getenv("BKM_ARGON2_TIME_COST", "3")),
        "memory_cost": int(os.getenv("BKM_ARGON2_MEMORY_COST", "65536")),
        "parallelism": int(os.getenv("BKM_ARGON2_PARALLELISM", "4")),
    }


def generate_salt() -> str:
    return secrets.token_hex(SALT_BYTES)


def _derive(password: str, salt: str) -> bytes:
    secret = unicodedata.normalize("NFC", password).encode("utf-8")
    return hash_secret_raw(
        secret=secret,
        salt=salt.encode("utf-8"),
        hash_len=HASH_BYTES,
        type=Type.ID,
        **_params(),
    )


async def hash_password(password: str, salt: str) -> str:
    """Return the hex-encoded Argon2id key for (password, salt).

    The derivation is CPU and memory bound, so it runs in a worker thread.
    """
    raw = await asyncio.to_thread(_derive, password, salt)
    return raw.hex()


async def compare_password(password: str, salt: str, stored_hash: str) -> bool:
    candidate = bytes.fromhex(await hash_password(password, salt))
    try:
        stored = bytes.fromhex(stored_hash or "")
    except ValueError:
        return False
    if len(candidate) != len(stored):
        return False
    return hmac.compare_digest(candidate, stored)
