"""
Cart/order owner identity.

A cart belongs to exactly one of a registered user or an anonymous browser
session. The two cases are separate types so "exactly one is set" holds by
construction instead of by checking two nullable ids everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from . import messages
from .validation import ValidationError, coerce_positive_int


@dataclass(frozen=True)
class RegisteredIdentity:
    user_id: int

    @property
    def column_values(self) -> dict:
        return {"user_id": self.user_id, "session_id": None}


@dataclass(frozen=True)
class AnonymousIdentity:
    session_id: str

    @property
    def column_values(self) -> dict:
        return {"user_id": None, "session_id": self.session_id}


Identity = Union[RegisteredIdentity, AnonymousIdentity]


def resolve_identity(user_id: Any = None, session_id: Any = None) -> Identity:
    """
    Build an identity from request input.

    The registered user id wins when both are supplied.
    """
    if user_id not in (None, ""):
        return RegisteredIdentity(user_id=coerce_positive_int(user_id, "user_id"))
    if session_id is not None and str(session_id).strip():
        return AnonymousIdentity(session_id=str(session_id).strip())
    raise ValidationError(messages.IDENTITY_REQUIRED)


def identity_filter(model, identity: Identity):
    """SQLAlchemy filter clause scoping `model` rows to `identity`."""
    if isinstance(identity, RegisteredIdentity):
        return model.user_id == identity.user_id
    return model.session_id == identity.session_id
