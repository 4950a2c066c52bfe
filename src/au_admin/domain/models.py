"""Domain models for au_admin: pure dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class FeeRule:
    fee_type: str
    percent_bps: int                 # 100 bps = 1%
    updated_at: datetime | None = None


@dataclass
class ActivityEntry:
    id: str
    user_id: str                     # the admin who acted
    action_type: str                 # ActivityType
    entity_type: str
    entity_id: str | None
    description: str
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)
    admin_name: str | None = None


@dataclass
class Goldsmith:
    id: str
    user_id: str
    shop_name: str
    status: str                      # GoldsmithStatus
    created_at: datetime
    admin_notes: str | None = None
    approved_at: datetime | None = None
    owner_name: str | None = None
