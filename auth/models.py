"""
auth/models.py -- Domain dataclass for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors tasks/models.py
-- dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered PlanIt account.

    email is always stored lower-cased so uniqueness is case-insensitive.
    password_salt / password_hash are the two halves produced by
    PasswordHasher.hash(); they never leave the auth layer except to be
    persisted. API response models copy only id, email, name and created_at.

    id is a uuid4 string assigned by UserStore.create_user().
    """

    email: str
    password_salt: str
    password_hash: str
    name: str | None = None
    id: str | None = None
    created_at: str | None = None
