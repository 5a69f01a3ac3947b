"""
auth/models.py -- Domain dataclasses for account entities.

Pattern: Data class (pure data container, zero logic). Stores and the service
do the work; routes map these onto pydantic response models.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    hashed_password is the bcrypt output and is never empty once the record
    exists. Contributions are read through UserStore.list_contributions.
    """

    username: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None
    password_changed_at: str | None = None

