"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class DepositStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WithdrawalStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    REJECTED = "rejected"


class MetalType(str, Enum):
    GOLD = "gold"
    SILVER = "silver"


class PositionStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SELLING = "selling"
    SOLD = "sold"


class UserRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"


class GoldsmithStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class ActivityType(str, Enum):
    DEPOSIT_APPROVED = "deposit_approved"
    DEPOSIT_REJECTED = "deposit_rejected"
    WITHDRAWAL_APPROVED = "withdrawal_approved"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"
    PRICES_UPDATED = "prices_updated"
    FEE_RULE_UPDATED = "fee_rule_updated"
    ROLE_GRANTED = "role_granted"
    ROLE_REVOKED = "role_revoked"
    GOLDSMITH_APPROVED = "goldsmith_approved"
    GOLDSMITH_REJECTED = "goldsmith_rejected"
    GOLDSMITH_SUSPENDED = "goldsmith_suspended"
    BUY_APPROVED = "buy_approved"
    BUY_REJECTED = "buy_rejected"
    USER_UPDATED = "user_updated"
