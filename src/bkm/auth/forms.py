# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server-side validation of the sign-up and sign-in payloads.

Emails are trimmed and lowercased here so that store-level uniqueness works.
Passwords are never trimmed.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "Must include at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Must include at least one uppercase letter"),
    (re.compile(r"\d"), "Must include at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Must include at least one special character"),
)


class SignInForm(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class SignUpForm(SignInForm):
    name: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=8, max_length=72)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def password_policy(cls, v: str) -> str:
        for pattern, message in PASSWORD_RULES:
            if not pattern.search(v):
                raise ValueError(message)
        return v
