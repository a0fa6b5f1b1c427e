"""Account context forwarded by the identity layer."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class AccountContext:
    """Opaque account identity resolved from the trusted gateway headers."""

    account_id: UUID
    request_id: str | None = None

    def __post_init__(self):
        if not self.account_id:
            raise ValueError("account_id is required in account context")
