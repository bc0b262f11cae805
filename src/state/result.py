from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """
    Outcome of one request/response round trip made through a state object.

    Fields:
      - ok: the server acknowledged the call
      - value: the server's snapshot (or payload) on success
      - reason: user-facing message on failure
      - changed: False when the call was a no-op and nothing was sent
      - auth_expired: the session was rejected (401) and has been cleared
      - login_required: no session token, nothing was sent
      - superseded: a newer request for the same resource replaced this one
    """

    ok: bool
    value: Optional[T] = None
    reason: str = ""
    changed: bool = True
    auth_expired: bool = False
    login_required: bool = False
    superseded: bool = False

    @classmethod
    def success(cls, value: Optional[T] = None) -> MutationResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def unchanged(cls, value: Optional[T] = None) -> MutationResult[T]:
        return cls(ok=True, value=value, changed=False)

    @classmethod
    def failure(cls, reason: str, **flags) -> MutationResult[T]:
        return cls(ok=False, reason=reason, changed=False, **flags)

    def with_value(self, value: Optional[T]) -> MutationResult[T]:
        return MutationResult(
            ok=self.ok,
            value=value,
            reason=self.reason,
            changed=self.changed,
            auth_expired=self.auth_expired,
            login_required=self.login_required,
            superseded=self.superseded,
        )
