"""Pydantic schemas for au_admin API."""

from pydantic import BaseModel, Field

from src.au_admin.domain.models import ActivityEntry, FeeRule, Goldsmith
from src.au_common.enums import UserRole
from src.au_gateway.user.roles import UserWithRoles

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class RejectRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class ApproveWithdrawalRequest(BaseModel):
    proof_image_url: str | None = Field(None, max_length=1024)


class FeeRuleUpdateRequest(BaseModel):
    percent_bps: int = Field(..., description="Basis points, 0..10000")


class RoleRequest(BaseModel):
    role: UserRole


class GoldsmithDecisionRequest(BaseModel):
    notes: str | None = Field(None, max_length=1000)


class ProfileUpdateRequest(BaseModel):
    full_name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)
    is_active: bool | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class FeeRuleOut(BaseModel):
    fee_type: str
    percent_bps: int
    percent_display: str

    @classmethod
    def from_domain(cls, r: FeeRule) -> "FeeRuleOut":
        return cls(
            fee_type=r.fee_type,
            percent_bps=r.percent_bps,
            percent_display=f"{r.percent_bps // 100}.{r.percent_bps % 100:02d}%",
        )


class UserOut(BaseModel):
    id: str
    username: str
    email: str
    full_name: str | None
    phone: str | None
    is_active: bool
    created_at: str
    roles: list[str]

    @classmethod
    def from_domain(cls, u: UserWithRoles) -> "UserOut":
        return cls(
            id=u.id,
            username=u.username,
            email=u.email,
            full_name=u.full_name,
            phone=u.phone,
            is_active=u.is_active,
            created_at=u.created_at.isoformat(),
            roles=u.roles,
        )


class GoldsmithOut(BaseModel):
    id: str
    user_id: str
    shop_name: str
    status: str
    admin_notes: str | None
    owner_name: str | None
    created_at: str
    approved_at: str | None

    @classmethod
    def from_domain(cls, g: Goldsmith) -> "GoldsmithOut":
        return cls(
            id=g.id,
            user_id=g.user_id,
            shop_name=g.shop_name,
            status=g.status,
            admin_notes=g.admin_notes,
            owner_name=g.owner_name,
            created_at=g.created_at.isoformat(),
            approved_at=g.approved_at.isoformat() if g.approved_at else None,
        )


class ActivityOut(BaseModel):
    id: str
    user_id: str
    admin_name: str | None
    action_type: str
    entity_type: str
    entity_id: str | None
    description: str
    metadata: dict
    created_at: str

    @classmethod
    def from_domain(cls, a: ActivityEntry) -> "ActivityOut":
        return cls(
            id=a.id,
            user_id=a.user_id,
            admin_name=a.admin_name,
            action_type=a.action_type,
            entity_type=a.entity_type,
            entity_id=a.entity_id,
            description=a.description,
            metadata=a.metadata,
            created_at=a.created_at.isoformat(),
        )
