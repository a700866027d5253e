import enum
import uuid
from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, Text, UniqueConstraint, BigInteger, Uuid
from uuid6 import uuid7
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlmodel import Column, SQLModel, Field, Relationship, String
from goryl.common.utils import now

# Join tables
class UserRole(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id", index=True,nullable=False)
    role_id: Optional[int] = Field(default=None, foreign_key="role.id", index=True,nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "role_id", name="uq_user_role_user_id_role_id"),)


class UserStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BANNED = "banned"
    PENDING = "pending"


class Users(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    email: str = Field(sa_column=Column(String(320), nullable=False,unique=True))
    name: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    phone: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))
    location: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    bio: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    avatar_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    #* primary account role, mirrors the UserRole link row so listings don't need a join
    account_type: str = Field(default="normal", sa_column=Column(String(32), nullable=False, index=True))
    status: str = Field(default=UserStatus.ACTIVE.value, sa_column=Column(String(16), nullable=False, index=True))
    kyc_status: Optional[str] = Field(default=None, sa_column=Column(String(16), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))
    last_login_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True))
    deleted_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True)))

    credentials: List["Credential"] = Relationship(back_populates="user")
    roles: List["Role"] = Relationship(back_populates="user",link_model=UserRole)


class RolePermission(SQLModel, table=True):
    id:Optional[int] = Field(default=None, primary_key=True)
    role_id: int = Field(foreign_key="role.id", index=True,nullable=False)
    permission_id: int = Field(foreign_key="permission.id", index=True,nullable=False)

    __table_args__ = (UniqueConstraint("role_id", "permission_id", name="uq_role_permission_role_id_permission_id"),)


class Role(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String(length=200), unique=True, nullable=False,default='normal'))
    description: Optional[str] = None
    user: List["Users"] = Relationship(back_populates="roles",link_model=UserRole)
    permissions: List["Permission"] = Relationship(back_populates="roles", link_model=RolePermission)


class Permission(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(sa_column=Column(String, unique=True, nullable=False))
    description: Optional[str] = None
    roles: List["Role"] = Relationship(back_populates="permissions", link_model=RolePermission)


class CredentialType(str, enum.Enum):
    PASSWORD = "password"
    OAUTH = "oauth"


class Credential(SQLModel, table=True):
    """Holds password hashes and oauth provider ids."""
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"),
            index=True,nullable=False))
    type: str = Field(default=CredentialType.PASSWORD.value, sa_column=Column(String(16), nullable=False))
    provider: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    provider_user_id: Optional[str] = Field(default=None,sa_column=Column(String(255), nullable=True))
    password_hash: Optional[str] = Field(default=None, sa_column=Column(Text(),nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), default=now,nullable=False))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), default=now,nullable=False, onupdate=now))
    revoked_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True))

    user: "Users" = Relationship(back_populates="credentials")

# ---------------------------------------------------------------------------------------------------------
# profile content (brand / company sellers)

class CompanyInfo(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False))
    company_name: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    registration_number: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    website: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    industry: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    founded_year: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    employee_count: Optional[int] = Field(default=None, sa_column=Column(Integer, nullable=True))
    description: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    address: Optional[str] = Field(default=None, sa_column=Column(String(512), nullable=True))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))


class TeamMember(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    owner_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    name: str = Field(sa_column=Column(String(128), nullable=False))
    title: Optional[str] = Field(default=None, sa_column=Column(String(128), nullable=True))
    email: Optional[str] = Field(default=None, sa_column=Column(String(320), nullable=True))
    avatar_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))


class UserFollow(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    follower_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    followee_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    __table_args__ = (UniqueConstraint("follower_id", "followee_id", name="uq_user_follow_pair"),)

# ---------------------------------------------------------------------------------------------------------

class Category(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    name: str = Field(sa_column=Column(String(200), unique=True, nullable=False))
    slug: str = Field(sa_column=Column(String(200), unique=True, index=True, nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(String(1000), nullable=True))
    icon: Optional[str] = Field(default=None, sa_column=Column(String(64), nullable=True))
    image_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    sort_order: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    product_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, onupdate=now))


class ProductStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Product(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(
        default_factory=uuid7,
        sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False)
    )
    seller_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    category_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("category.id", ondelete="SET NULL"), index=True, nullable=True))
    name: str = Field(sa_column=Column(String(255), nullable=False))
    description: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    price: int = Field(default=0,description="Price in cents (int)", sa_column=Column(BigInteger, nullable=False))
    stock_qty:int=Field(default=0, sa_column=Column(Integer(), nullable=False))
    image_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    status: str = Field(default=ProductStatus.PENDING.value, sa_column=Column(String(16), nullable=False, index=True))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(String(1000), nullable=True))
    created_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now))
    updated_at: datetime = Field(default_factory=now,
        sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))
    deleted_at: Optional[datetime] = Field(default=None,
        sa_column=Column(DateTime(timezone=True)))

# --------------------------------------------------------------------------------------------

class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


# buyer --> Orders (1:many), every order belongs to exactly one seller
class Orders(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    buyer_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    seller_id: int = Field(sa_column=Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    status: str = Field(default=OrderStatus.PENDING.value, sa_column=Column(String(24), nullable=False, index=True))
    currency: str = Field(default="USD", sa_column=Column(String(8), nullable=False))
    total_amount: int = Field(default=0, sa_column=Column(BigInteger, nullable=False))  # cents
    shipping_address_json: Optional[dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, index=True))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))
    delivered_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))


class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(sa_column=Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True))
    product_id: int = Field(sa_column=Column(Integer, ForeignKey("product.id", ondelete="RESTRICT"), nullable=False))
    product_name_snapshot: str = Field(sa_column=Column(String(255), nullable=False))
    quantity: int = Field(sa_column=Column(Integer, nullable=False))
    unit_price_snapshot: int = Field(sa_column=Column(BigInteger, nullable=False))  # cents

    __table_args__ = (
        UniqueConstraint("order_id", "product_id", name="uq_order_product"),
    )


class Review(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    product_id: int = Field(sa_column=Column(ForeignKey("product.id", ondelete="CASCADE"), index=True, nullable=False))
    seller_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    reviewer_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    rating: int = Field(sa_column=Column(Integer, nullable=False))
    comment: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

    __table_args__ = (
        UniqueConstraint("product_id", "reviewer_id", name="uq_review_product_reviewer"),
    )

# --------------------------------------------------------------------------------------------------------------------------------
# payouts

class WithdrawStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"


class WithdrawRequest(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    seller_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    seller_name: str = Field(sa_column=Column(String(255), nullable=False))
    amount: int = Field(sa_column=Column(BigInteger, nullable=False))  # cents
    status: str = Field(default=WithdrawStatus.PENDING.value, sa_column=Column(String(16), nullable=False, index=True))
    payment_method: str = Field(default="bank_transfer", sa_column=Column(String(64), nullable=False))
    note: Optional[str] = Field(default=None, sa_column=Column(String(1000), nullable=True))
    requested_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, index=True))
    processed_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    processed_by_role: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))
    processed_by: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(String(1000), nullable=True))
    transaction_id: Optional[str] = Field(default=None, sa_column=Column(String(255), nullable=True))
    paid_amount: Optional[int] = Field(default=None, sa_column=Column(BigInteger, nullable=True))


class HoldStatus(str, enum.Enum):
    ACTIVE = "active"
    RELEASED = "released"


class PaymentHold(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    seller_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    seller_name: str = Field(sa_column=Column(String(255), nullable=False))
    amount: int = Field(sa_column=Column(BigInteger, nullable=False))
    reason: str = Field(sa_column=Column(String(1000), nullable=False))
    status: str = Field(default=HoldStatus.ACTIVE.value, sa_column=Column(String(16), nullable=False, index=True))
    created_by_role: str = Field(default="admin", sa_column=Column(String(32), nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    released_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    released_by_role: Optional[str] = Field(default=None, sa_column=Column(String(32), nullable=True))


class PaymentMethodType(str, enum.Enum):
    BANK = "bank"
    PAYPAL = "paypal"
    STRIPE = "stripe"
    CRYPTO = "crypto"


class AdminPaymentMethod(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    type: str = Field(sa_column=Column(String(16), nullable=False))
    account_name: str = Field(sa_column=Column(String(255), nullable=False))
    #* plain text for bank/paypal/crypto, {publishableKey, secretKey, accountName} for stripe
    account_details: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    is_active: bool = Field(default=True, sa_column=Column(Boolean, nullable=False, default=True))
    created_by: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

# -----------------------------------------------------------------------------------------------------------------------
# seller verification

class SellerKYC(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    user_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    user_email: str = Field(sa_column=Column(String(320), nullable=False))
    category: str = Field(sa_column=Column(String(16), nullable=False))   # artisan | business
    tier: str = Field(default="tier1", sa_column=Column(String(8), nullable=False))
    status: str = Field(default="pending", sa_column=Column(String(16), nullable=False, index=True))

    full_name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(320), nullable=False))
    phone: str = Field(sa_column=Column(String(32), nullable=False))

    cnic: Optional[str] = Field(default=None, sa_column=Column(String(15), nullable=True, index=True))
    cnic_front_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    cnic_back_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))
    selfie_url: Optional[str] = Field(default=None, sa_column=Column(String(1024), nullable=True))

    address: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    artisan_info: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    business_info: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    payment_info: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    fraud_detection: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))

    verified_by: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True))
    verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    rejected_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(String(1000), nullable=True))
    remarks: Optional[str] = Field(default=None, sa_column=Column(String(1000), nullable=True))

    submitted_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))
    updated_at: datetime = Field(default_factory=now,sa_column=Column(DateTime(timezone=True), nullable=False,default=now, onupdate=now))

# -----------------------------------------------------------------------------------------------------------------------
# direct messages

class Chat(SQLModel, table=True):
    # "<public_id_a>_<public_id_b>" with the two ids sorted
    id: str = Field(sa_column=Column(String(80), primary_key=True))
    participant_a_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    participant_b_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False))
    participants: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    participant_names: Dict[str, str] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    last_message: Optional[str] = Field(default=None, sa_column=Column(Text(), nullable=True))
    last_message_time: Optional[datetime] = Field(default=None, sa_column=Column(DateTime(timezone=True), nullable=True, index=True))
    last_message_sender: Optional[str] = Field(default=None, sa_column=Column(String(40), nullable=True))
    #* reassign the dict on update, JSON columns don't track in-place mutation
    unread_count: Dict[str, int] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))


class ChatMessage(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    public_id: uuid.UUID = Field(default_factory=uuid7, sa_column=Column(Uuid(as_uuid=True), unique=True, index=True, nullable=False))
    chat_id: str = Field(sa_column=Column(ForeignKey("chat.id", ondelete="CASCADE"), index=True, nullable=False))
    sender_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False))
    receiver_id: int = Field(sa_column=Column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False))
    text: str = Field(sa_column=Column(Text(), nullable=False))
    is_read: bool = Field(default=False, sa_column=Column(Boolean, nullable=False, default=False))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now))

#---------------------------------------------------------------------------------------------------------

class AuditLog(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    actor_user_id: Optional[int] = Field(default=None, sa_column=Column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True))
    actor_role: str = Field(sa_column=Column(String(32), nullable=False))
    action: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    target_type: str = Field(sa_column=Column(String(32), nullable=False))
    target_id: str = Field(sa_column=Column(String(80), nullable=False))
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    created_at: datetime = Field(default_factory=now, sa_column=Column(DateTime(timezone=True), nullable=False, default=now, index=True))
