# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Authentication.

This package provides:
- Password hashing/verification (argon2id, per-user salt)
- User store backed by data/users.yml
- Server-side sessions in Redis, referenced by an HttpOnly cookie
- Sign-up / sign-in / logout / current-user actions
"""
