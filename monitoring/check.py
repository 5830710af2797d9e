"""
Check record model.

``CheckRecord`` is the in-memory form of a document from the ``checks``
collection.  Records are built by ``CheckValidator.validate`` and written
back with ``to_dict``, which keeps any keys the workers do not know about.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from config.constants import CheckFields, CheckState

KNOWN_FIELDS = frozenset({
    CheckFields.ID,
    CheckFields.OWNER,
    CheckFields.PROTOCOL,
    CheckFields.URL,
    CheckFields.METHOD,
    CheckFields.SUCCESS_CODES,
    CheckFields.TIMEOUT_SECONDS,
    CheckFields.STATE,
    CheckFields.LAST_CHECKED,
})


@dataclass(frozen=True)
class CheckRecord:
    """A validated check."""

    id: str
    owner_ref: str
    protocol: str
    url: str
    method: str
    success_codes: Tuple[int, ...]
    timeout_seconds: int
    state: str = CheckState.DOWN.value
    last_checked: Optional[int] = None
    extras: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def target(self) -> str:
        return f"{self.protocol}://{self.url}"

    @property
    def never_checked(self) -> bool:
        return self.last_checked is None

    def with_outcome(self, state: str, checked_at: int) -> "CheckRecord":
        """Copy of this record carrying a new state and probe time."""
        return replace(self, state=state, last_checked=checked_at)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extras)
        data.update({
            CheckFields.ID: self.id,
            CheckFields.OWNER: self.owner_ref,
            CheckFields.PROTOCOL: self.protocol,
            CheckFields.URL: self.url,
            CheckFields.METHOD: self.method,
            CheckFields.SUCCESS_CODES: list(self.success_codes),
            CheckFields.TIMEOUT_SECONDS: self.timeout_seconds,
            CheckFields.STATE: self.state,
            CheckFields.LAST_CHECKED: self.last_checked,
        })
        return data

    @classmethod
    def extras_of(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in data.items() if k not in KNOWN_FIELDS}
