"""Field types and validators shared by request models."""

from __future__ import annotations

import re
from typing import Annotated, Literal

from pydantic import AfterValidator, EmailStr, Field

from storepilot.auth.password import validate_password_complexity

UserRole = Literal[
    "first_time_builder",
    "aspiring_entrepreneur",
    "small_business_owner",
    "side_hustle_starter",
    "creative_professional",
]
BusinessStage = Literal["just_an_idea", "have_products", "selling_elsewhere", "expanding_online"]
ProductCategory = Literal[
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
]

BLOCKED_EMAIL_DOMAINS = frozenset(
    {
        "10minutemail.com",
        "tempmail.org",
        "guerrillamail.com",
        "mailinator.com",
        "yopmail.com",
        "throwaway.email",
    }
)

_NAME_RE = re.compile(r"^[a-zA-Z\s'-]+$")
_BUSINESS_NAME_RE = re.compile(r"^[a-zA-Z0-9\s&.,'-]*$")


def _check_full_name(value: str) -> str:
    if not _NAME_RE.match(value):
        raise ValueError("Name can only contain letters, spaces, hyphens, and apostrophes")
    if not value.strip():
        raise ValueError("Name cannot be empty or just spaces")
    return value


def _check_business_name(value: str) -> str:
    if not _BUSINESS_NAME_RE.match(value):
        raise ValueError("Business name contains invalid characters")
    return value


def _check_email_domain(value: str) -> str:
    if not 5 <= len(value) <= 254:
        raise ValueError("Email must be between 5 and 254 characters")
    domain = value.rsplit("@", 1)[-1].lower()
    if domain in BLOCKED_EMAIL_DOMAINS:
        raise ValueError("Temporary email addresses are not allowed")
    return value.strip().lower()


def _check_password(value: str) -> str:
    error = validate_password_complexity(value)
    if error:
        raise ValueError(error)
    return value


FullName = Annotated[str, Field(min_length=2, max_length=50), AfterValidator(_check_full_name)]
BusinessName = Annotated[str, Field(max_length=100), AfterValidator(_check_business_name)]
RegistrationEmail = Annotated[EmailStr, AfterValidator(_check_email_domain)]
NewPassword = Annotated[str, AfterValidator(_check_password)]
