"""Store management and setup-progress endpoints."""

import re
from typing import Any, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session as DBSession

from storepilot.api.body import parse_json_body
from storepilot.auth.guard import AuthIdentity, RouteGuard, RoutePolicy
from storepilot.core.exceptions import NotFoundError, ValidationFailedError
from storepilot.core.logging import get_logger
from storepilot.core.sanitize import sanitize_input, sanitize_optional
from storepilot.core.time import utcnow
from storepilot.db import get_db
from storepilot.db.models import Store, StoreProgress
from storepilot.services.audit_service import audit_log_event

logger = get_logger(__name__)
router = APIRouter(prefix="/api/stores", tags=["stores"])

STORES_POLICY = RoutePolicy(
    endpoint="/api/stores",
    rate_limit_setting="stores_rate_limit",
)
PROGRESS_POLICY = RoutePolicy(
    endpoint="/api/stores/progress",
    rate_limit_setting="progress_rate_limit",
)

STORE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
_SLUG_RE = re.compile(r"[^a-z0-9]")

StoreCategory = Literal[
    "fashion_style",
    "handmade_crafts",
    "electronics_gadgets",
    "health_wellness",
    "home_living",
    "food_beverage",
    "art_collectibles",
    "sports_outdoors",
    "books_education",
    "other",
]


class StoreCreateRequest(BaseModel):
    """Store creation request model."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=100, pattern=r"^[a-zA-Z0-9\s&.,'-]*$")
    description: Optional[str] = Field(default=None, max_length=500)
    category: StoreCategory
    theme: Optional[str] = Field(default=None, max_length=50)
    custom_domain: Optional[str] = Field(
        default=None, alias="customDomain", max_length=253, pattern=r"^[a-zA-Z0-9.-]*$"
    )


class ProgressUpdateRequest(BaseModel):
    """One step report from the store automation pipeline."""

    step: str = Field(min_length=1, max_length=100)
    status: Literal["started", "in_progress", "completed", "failed"]
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    message: Optional[str] = Field(default=None, max_length=500)
    metadata: Optional[dict[str, Any]] = None


def store_domain(name: str) -> str:
    """``<slug>.myshopify.com`` for a store name."""
    return f"{_SLUG_RE.sub('-', name.lower())}.myshopify.com"


def serialize_store(store: Store) -> dict[str, Any]:
    return {
        "id": store.id,
        "name": store.name,
        "description": store.description,
        "category": store.category,
        "theme": store.theme,
        "status": store.status,
        "progress": {
            "setupComplete": store.setup_complete,
            "stepsCompleted": list(store.steps_completed or []),
            "nextStep": store.next_step,
        },
        "domain": store.domain,
        "customDomain": store.custom_domain,
        "createdAt": store.created_at.isoformat() if store.created_at else None,
        "updatedAt": store.updated_at.isoformat() if store.updated_at else None,
    }


def serialize_progress_step(step: StoreProgress) -> dict[str, Any]:
    return {
        "name": step.step,
        "status": step.status,
        "progress": step.progress,
        "message": step.message,
        "metadata": step.metadata_json or {},
        "startedAt": step.started_at.isoformat() if step.started_at else None,
        "completedAt": step.completed_at.isoformat() if step.completed_at else None,
        "updatedAt": step.updated_at.isoformat() if step.updated_at else None,
    }


def _owned_store(db: DBSession, store_id: str, identity: AuthIdentity) -> Store:
    if not STORE_ID_RE.match(store_id):
        raise ValidationFailedError("Invalid store ID format")
    store = (
        db.query(Store)
        .filter(Store.id == store_id, Store.user_id == identity.subject_id)
        .first()
    )
    if not store:
        raise NotFoundError("Store not found")
    return store


@router.get("")
async def list_stores(
    identity: AuthIdentity = Depends(RouteGuard(STORES_POLICY)),
    db: DBSession = Depends(get_db),
    limit: int = Query(default=10, ge=1),
    offset: int = Query(default=0, ge=0),
):
    """List the caller's stores, newest first."""
    limit = min(limit, 50)
    query = db.query(Store).filter(Store.user_id == identity.subject_id)
    total = query.count()
    stores = query.order_by(Store.created_at.desc()).offset(offset).limit(limit).all()

    return {
        "success": True,
        "stores": [serialize_store(store) for store in stores],
        "totalStores": total,
        "pagination": {"limit": limit, "offset": offset, "total": total},
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_store(
    request: Request,
    identity: AuthIdentity = Depends(RouteGuard(STORES_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Register a new store and start its setup pipeline."""
    payload = await parse_json_body(request, StoreCreateRequest)
    name = sanitize_input(payload.name, 100)
    store = Store(
        user_id=identity.subject_id,
        name=name,
        description=sanitize_input(payload.description or "", 500),
        category=payload.category,
        theme=(payload.theme or "").strip() or "default",
        status="creating",
        domain=store_domain(payload.name.strip()),
        custom_domain=(payload.custom_domain or "").strip().lower() or None,
        setup_complete=10,
        steps_completed=["basic_info"],
        next_step="shopify_setup",
    )
    db.add(store)
    db.commit()
    db.refresh(store)

    audit_log_event(
        db,
        event_type="store_created",
        user_id=identity.subject_id,
        request=request,
        data={"store_id": store.id},
    )
    logger.info("Store created", data={"store_id": store.id})

    return {
        "success": True,
        "message": "Store creation initiated successfully",
        "store": serialize_store(store),
        "nextSteps": [
            "Shopify store setup in progress",
            "Theme customization will begin shortly",
            "You will receive updates via email and dashboard",
        ],
    }


@router.get("/{store_id}/progress")
async def get_progress(
    store_id: str,
    response: Response,
    identity: AuthIdentity = Depends(RouteGuard(PROGRESS_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Report the setup progress of one store."""
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
    store = _owned_store(db, store_id, identity)

    current = next(
        (step for step in store.progress_steps if step.status in ("started", "in_progress")),
        None,
    )
    return {
        "success": True,
        "progress": {
            "storeId": store.id,
            "status": store.status,
            "overallProgress": store.setup_complete,
            "currentStep": current.step if current else store.next_step,
            "stepsCompleted": list(store.steps_completed or []),
            "steps": [serialize_progress_step(step) for step in store.progress_steps],
            "updatedAt": store.updated_at.isoformat() if store.updated_at else None,
        },
    }


@router.post("/{store_id}/progress")
async def update_progress(
    store_id: str,
    request: Request,
    identity: AuthIdentity = Depends(RouteGuard(PROGRESS_POLICY)),
    db: DBSession = Depends(get_db),
):
    """Record the state of one setup step (upsert by step name)."""
    payload = await parse_json_body(request, ProgressUpdateRequest)
    store = _owned_store(db, store_id, identity)
    step_name = payload.step.strip()
    now = utcnow()

    entry = (
        db.query(StoreProgress)
        .filter(StoreProgress.store_id == store.id, StoreProgress.step == step_name)
        .first()
    )
    if entry is None:
        entry = StoreProgress(store_id=store.id, step=step_name)
        db.add(entry)

    entry.status = payload.status
    if payload.progress is not None:
        entry.progress = payload.progress
    else:
        entry.progress = 100 if payload.status == "completed" else 0
    entry.message = sanitize_optional(payload.message, 500) or ""
    entry.metadata_json = payload.metadata or {}
    if payload.status in ("started", "in_progress") and entry.started_at is None:
        entry.started_at = now
    if payload.status == "completed":
        entry.completed_at = now

    steps_completed = list(store.steps_completed or [])
    if payload.status == "completed" and step_name not in steps_completed:
        steps_completed.append(step_name)
        store.steps_completed = steps_completed
        store.setup_complete = min(100, store.setup_complete + 15)
    if payload.status == "failed":
        store.status = "failed"
    elif store.status == "creating" and store.setup_complete >= 100:
        store.status = "active"

    db.commit()
    db.refresh(entry)

    return {
        "success": True,
        "message": "Progress updated successfully",
        "update": {"storeId": store.id, **serialize_progress_step(entry)},
    }
