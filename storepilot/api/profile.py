"""User profile endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field, model_validator
from sqlalchemy.orm import Session as DBSession
from starlette.concurrency import run_in_threadpool

from storepilot.api.auth import serialize_user
from storepilot.api.body import parse_json_body
from storepilot.api.fields import (
    BusinessName,
    BusinessStage,
    FullName,
    NewPassword,
    ProductCategory,
    UserRole,
)
from storepilot.auth.guard import AuthIdentity, RouteGuard, RoutePolicy
from storepilot.auth.password import hash_password, verify_password
from storepilot.core.exceptions import NotFoundError, ValidationFailedError
from storepilot.core.sanitize import sanitize_input
from storepilot.db import get_db
from storepilot.db.models import Store, User
from storepilot.services.audit_service import audit_log_event

router = APIRouter(prefix="/api/user", tags=["profile"])

PROFILE_POLICY = RoutePolicy(
    endpoint="/api/user/profile",
    rate_limit_setting="profile_rate_limit",
)


class ProfileUpdateRequest(BaseModel):
    """Partial profile update. Omitted fields are left unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[FullName] = Field(default=None, alias="fullName")
    business_name: Optional[BusinessName] = Field(default=None, alias="businessName")
    role: Optional[UserRole] = None
    product_category: Optional[ProductCategory] = Field(default=None, alias="productCategory")
    business_stage: Optional[BusinessStage] = Field(default=None, alias="businessStage")
    current_password: Optional[str] = Field(default=None, alias="currentPassword", min_length=1)
    new_password: Optional[NewPassword] = Field(default=None, alias="newPassword")

    @model_validator(mode="after")
    def _password_change_needs_current(self) -> "ProfileUpdateRequest":
        if self.new_password and not self.current_password:
            raise ValueError("Current password is required when changing password")
        return self


def _load_user(db: DBSession, identity: AuthIdentity) -> User:
    user = db.query(User).filter(User.id == identity.subject_id).first()
    if not user or not user.is_active:
        raise NotFoundError("User not found")
    return user


@router.get("/profile")
async def get_profile(
    identity: AuthIdentity = Depends(RouteGuard(PROFILE_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Return the caller's profile with store counts."""
    user = _load_user(db, identity)
    stores = db.query(Store).filter(Store.user_id == user.id).all()

    profile = serialize_user(user)
    profile.update(
        {
            "createdAt": user.created_at.isoformat() if user.created_at else None,
            "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
            "stats": {
                "storesCreated": len(stores),
                "activeStores": sum(1 for store in stores if store.status == "active"),
            },
        }
    )
    return {"success": True, "user": profile}


@router.put("/profile")
async def update_profile(
    request: Request,
    identity: AuthIdentity = Depends(RouteGuard(PROFILE_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Update profile fields and optionally change the password."""
    payload = await parse_json_body(request, ProfileUpdateRequest)
    user = _load_user(db, identity)

    if payload.full_name is not None:
        user.full_name = sanitize_input(payload.full_name, 50)
    if payload.business_name is not None:
        user.business_name = sanitize_input(payload.business_name, 100)
    if payload.role is not None:
        user.role = payload.role
    if payload.product_category is not None:
        user.product_category = payload.product_category
    if payload.business_stage is not None:
        user.business_stage = payload.business_stage

    password_updated = False
    if payload.new_password:
        current_ok = await run_in_threadpool(
            verify_password, payload.current_password, user.hashed_password
        )
        if not current_ok:
            db.rollback()
            raise ValidationFailedError("Current password is incorrect")
        user.hashed_password = await run_in_threadpool(hash_password, payload.new_password)
        password_updated = True

    db.commit()
    db.refresh(user)

    if password_updated:
        audit_log_event(db, event_type="password_changed", user_id=user.id, request=request)

    return {
        "success": True,
        "message": (
            "Profile and password updated successfully"
            if password_updated
            else "Profile updated successfully"
        ),
        "user": serialize_user(user),
    }
