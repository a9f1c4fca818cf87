"""
Profile Model.

Pydantic model for rows of the ``user_profiles`` table.  One row per
Supabase identity, keyed by the identity's UUID.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator

from minersafe.models.enums import UserRole


class Profile(BaseModel):
    """Persisted profile of an authenticated user.

    ``rfid`` is the miner's device tag and is only populated for
    ``UserRole.MINER``.  Timestamps are assigned by the database and are
    ``None`` on a record that has not been read back yet.
    """

    id: str  # Supabase UUID
    email: str
    full_name: str
    role: UserRole
    rfid: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="after")
    def _rfid_only_for_miners(self) -> "Profile":
        if self.role != UserRole.MINER:
            self.rfid = None
        return self

    def to_row(self) -> dict[str, Optional[str]]:
        """Column mapping for an upsert; omits server-assigned timestamps."""
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "role": str(self.role),
            "rfid": self.rfid,
        }
