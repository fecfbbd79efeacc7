import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Category


logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = [
    {"name": "Food & Dining", "icon": "🍔", "color": "#FF6B6B"},
    {"name": "Transportation", "icon": "🚗", "color": "#4ECDC4"},
    {"name": "Study & Education", "icon": "📚", "color": "#45B7D1"},
    {"name": "Entertainment", "icon": "🎮", "color": "#FFA07A"},
    {"name": "Shopping", "icon": "🛒", "color": "#98D8C8"},
    {"name": "Utilities & Bills", "icon": "💡", "color": "#FFD93D"},
    {"name": "Healthcare", "icon": "⚕️", "color": "#6BCB77"},
    {"name": "Others", "icon": "📌", "color": "#95A5A6"},
]


def seed_default_categories(session: Session) -> int:
    """Insert missing global categories; existing ones are left untouched."""
    existing = set(
        session.scalars(
            select(Category.name).where(
                Category.user_id.is_(None), Category.is_default.is_(True)
            )
        ).all()
    )
    created = 0
    for entry in DEFAULT_CATEGORIES:
        if entry["name"] in existing:
            continue
        session.add(Category(user_id=None, is_default=True, **entry))
        created += 1
    session.flush()
    logger.info(f"seed_defaults: created={created} existing={len(existing)}")
    return created


def main() -> None:
    from database import session_scope

    logging.basicConfig(level=logging.INFO)
    with session_scope() as session:
        seed_default_categories(session)


if __name__ == "__main__":
    main()
