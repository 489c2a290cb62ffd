"""Seed the demo account for local development."""

from storepilot.auth.password import hash_password
from storepilot.config import Settings
from storepilot.core.logging import get_logger
from storepilot.db.database import get_session_local
from storepilot.db.models import Store, User

logger = get_logger(__name__)


def ensure_demo_user(settings: Settings) -> None:
    """Create the demo user and its sample store if missing.

    Never runs in prod-like environments, where startup checks already reject
    ``demo_user_enabled``.
    """
    if not settings.demo_user_enabled or settings.is_prod_like:
        return

    email = settings.demo_user_email.strip().lower()
    db = get_session_local()()
    try:
        if db.query(User).filter(User.email == email).first():
            return

        user = User(
            email=email,
            hashed_password=hash_password(settings.demo_user_password),
            full_name="Demo User",
            role="first_time_builder",
            business_stage="just_an_idea",
            product_category="fashion_style",
            email_verified=True,
            is_active=True,
        )
        db.add(user)
        db.flush()

        db.add(
            Store(
                user_id=user.id,
                name="Demo Fashion Store",
                description="A sample store created for the demo account",
                category="fashion_style",
                theme="dawn",
                status="active",
                domain="demo-fashion-store.myshopify.com",
                setup_complete=100,
                steps_completed=["basic_info", "shopify_setup", "products", "theme", "launch"],
                next_step=None,
            )
        )
        db.commit()
        logger.warning("Demo user created", data={"email": email})
    finally:
        db.close()
