"""SQLAlchemy database models."""

import secrets

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from storepilot.core.time import utcnow
from storepilot.db.database import Base

USER_ROLES = (
    "first_time_builder",
    "aspiring_entrepreneur",
    "small_business_owner",
    "side_hustle_starter",
    "creative_professional",
)
BUSINESS_STAGES = ("just_an_idea", "have_products", "selling_elsewhere", "expanding_online")
PRODUCT_CATEGORIES = (
    "fashion_style",
    "handmade_crafts",
    "electronics_gadgets",
    "health_wellness",
    "home_living",
    "food_beverage",
    "art_collectibles",
    "sports_outdoors",
    "books_education",
    "not_sure_yet",
)
STORE_STATUSES = ("creating", "draft", "active", "paused", "failed")
PROGRESS_STATUSES = ("pending", "started", "in_progress", "completed", "failed")


def generate_id() -> str:
    """Generate a unique ID."""
    return secrets.token_urlsafe(16)


class User(Base):
    """Store owner account."""

    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="aspiring_entrepreneur")
    business_stage = Column(String(50), nullable=True)
    product_category = Column(String(50), nullable=True)
    business_name = Column(String(255), nullable=True)
    email_verified = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    stores = relationship("Store", back_populates="user", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<User {self.email}>"


class Store(Base):
    """Shopify store being set up for a user."""

    __tablename__ = "stores"

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(255), nullable=True)
    theme = Column(String(100), nullable=True)
    status = Column(String(50), nullable=False, default="creating")
    domain = Column(String(255), nullable=True)
    custom_domain = Column(String(255), nullable=True)
    setup_complete = Column(Integer, nullable=False, default=0)
    steps_completed = Column(JSON, nullable=False, default=list)
    next_step = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="stores")
    progress_steps = relationship(
        "StoreProgress",
        back_populates="store",
        cascade="all, delete-orphan",
        order_by="StoreProgress.created_at",
    )

    def __repr__(self) -> str:
        return f"<Store {self.name}>"


class StoreProgress(Base):
    """One automation step of a store's setup."""

    __tablename__ = "store_progress"
    __table_args__ = (
        UniqueConstraint("store_id", "step", name="uq_store_progress_store_step"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    store_id = Column(String(32), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    step = Column(String(100), nullable=False)
    status = Column(String(50), nullable=False, default="pending")
    progress = Column(Integer, nullable=False, default=0)
    message = Column(Text, nullable=True)
    metadata_json = Column(JSON, nullable=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    store = relationship("Store", back_populates="progress_steps")


class AuditLog(Base):
    """Audit log entry for security events."""

    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_created_at", "created_at"),
        Index("ix_audit_logs_user_id", "user_id"),
        Index("ix_audit_logs_event_type", "event_type"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    event_type = Column(String(128), nullable=False)
    ip = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    path = Column(String(255), nullable=True)
    method = Column(String(16), nullable=True)
    data_json = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def __repr__(self) -> str:
        return f"<AuditLog {self.event_type} {self.id[:8]}...>"
