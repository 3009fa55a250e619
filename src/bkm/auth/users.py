# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import asyncio
import os
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Optional, Protocol, Tuple

import yaml

# IMPORTANT: do not rely on current working directory.
# Anchor the default users.yml path to the project root (works well with editable installs).
BASE_DIR = Path(__file__).resolve().parents[3]
DEFAULT_USERS_PATH = Path(
    os.getenv("BKM_USERS_PATH", str(BASE_DIR / "data" / "users.yml"))
).resolve()

SENSITIVE_FIELDS = ("password_hash", "salt", "version")


class UserStoreError(Exception):
    pass


class DuplicateEmailError(UserStoreError):
    def __init__(self, email: str):
        super().__init__(f"Email already registered: {email}")
        self.email = email


class UserStore(Protocol):
    async def find_by_email(self, email: str, fields: Optional[Iterable[str]] = None) -> Optional[dict]: ...

    async def find_by_id(self, user_id: str, exclude: Iterable[str] = ()) -> Optional[dict]: ...

    async def create(self, fields: dict) -> Optional[dict]: ...

    async def record_login(self, user_id: str) -> None: ...


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _norm_email(email: str) -> str:
    return str(email or "").strip().lower()


class YamlUserStore:
    """Users kept in a single YAML document: ``{version, users: {id: record}}``.

    Writes are serialised by a lock and land atomically (temp file + replace).
    Email uniqueness is checked under the same lock, so two racing sign-ups in
    one process cannot both succeed.
    """

    def __init__(self, path: Path = DEFAULT_USERS_PATH):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: Tuple[int, Dict[str, dict]] = (0, {})

    # ------------------ file I/O (runs in worker threads) ------------------

    def _load(self) -> Dict[str, dict]:
        try:
            mtime = self.path.stat().st_mtime_ns if self.path.exists() else 0
        except OSError:
            mtime = 0

        cached_mtime, cached_users = self._cache
        if mtime and mtime == cached_mtime:
            return cached_users

        users: Dict[str, dict] = {}
        if self.path.exists():
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
            items = (raw.get("users") or {}) if isinstance(raw, dict) else {}
            for uid, udata in items.items():
                if not isinstance(udata, dict):
                    continue
                users[str(uid)] = {**udata, "id": str(uid)}
        self._cache = (mtime, users)
        return users

    def _save(self, users: Dict[str, dict]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": 1,
            "users": {uid: {k: v for k, v in rec.items() if k != "id"} for uid, rec in users.items()},
        }
        with tempfile.NamedTemporaryFile(
            mode="w", dir=str(self.path.parent), delete=False, encoding="utf-8", suffix=".tmp"
        ) as tf:
            yaml.safe_dump(payload, tf, sort_keys=False, allow_unicode=True)
            temp_path = Path(tf.name)
        try:
            os.replace(temp_path, self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise UserStoreError(f"Failed to save users to {self.path}: {e}") from e
        self._cache = (self.path.stat().st_mtime_ns, users)

    def _find_email(self, users: Dict[str, dict], email: str) -> Optional[dict]:
        target = _norm_email(email)
        if not target:
            return None
        return next((u for u in users.values() if _norm_email(u.get("email", "")) == target), None)

    def _create_sync(self, fields: dict) -> dict:
        with self._lock:
            users = dict(self._load())
            email = _norm_email(fields.get("email", ""))
            if self._find_email(users, email):
                raise DuplicateEmailError(email)
            now = _now()
            record = {
                "id": uuid.uuid4().hex,
                "name": str(fields.get("name") or "").strip(),
                "email": email,
                "password_hash": fields["password_hash"],
                "salt": fields["salt"],
                "sign_in_count": 0,
                "created_at": now,
                "updated_at": now,
                "version": 0,
            }
            users[record["id"]] = record
            self._save(users)
            return dict(record)

    def _update_sync(self, user_id: str, changes: dict, *, increment: Optional[str] = None) -> bool:
        with self._lock:
            users = dict(self._load())
            current = users.get(str(user_id))
            if current is None:
                return False
            record = {**current, **changes, "updated_at": _now(), "version": int(current.get("version") or 0) + 1}
            if increment:
                record[increment] = int(current.get(increment) or 0) + 1
            users[record["id"]] = record
            self._save(users)
            return True

    def _delete_sync(self, user_id: str) -> bool:
        with self._lock:
            users = dict(self._load())
            if users.pop(str(user_id), None) is None:
                return False
            self._save(users)
            return True

    # ------------------ async API ------------------

    async def find_by_email(self, email: str, fields: Optional[Iterable[str]] = None) -> Optional[dict]:
        users = await asyncio.to_thread(self._load)
        u = self._find_email(users, email)
        if u is None:
            return None
        if fields is None:
            return dict(u)
        return {k: u[k] for k in fields if k in u}

    async def find_by_id(self, user_id: str, exclude: Iterable[str] = ()) -> Optional[dict]:
        users = await asyncio.to_thread(self._load)
        u = users.get(str(user_id or ""))
        if u is None:
            return None
        skip = set(exclude)
        return {k: v for k, v in u.items() if k not in skip}

    async def create(self, fields: dict) -> Optional[dict]:
        return await asyncio.to_thread(self._create_sync, fields)

    async def record_login(self, user_id: str) -> None:
        await asyncio.to_thread(
            self._update_sync, user_id, {"last_login_at": _now()}, increment="sign_in_count"
        )

    async def delete(self, user_id: str) -> bool:
        return await asyncio.to_thread(self._delete_sync, user_id)
