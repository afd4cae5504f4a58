import logging

from sqlalchemy import select

from ai_pulse.models.item_model import Item, ItemCategory

logger = logging.getLogger(__name__)

# (id, name, category). Ids are stable: clients vote by id.
SEED_ITEMS = [
    (1, "Claude Sonnet 4", ItemCategory.MODEL),
    (2, "GPT-5", ItemCategory.MODEL),
    (3, "GPT-4o", ItemCategory.MODEL),
    (4, "Claude Opus", ItemCategory.MODEL),
    (5, "Gemini Pro", ItemCategory.MODEL),
    (6, "Claude Code", ItemCategory.TOOL),
    (7, "GitHub Copilot", ItemCategory.TOOL),
    (8, "Cursor", ItemCategory.TOOL),
    (9, "Windsurf", ItemCategory.TOOL),
    (10, "Replit Agent", ItemCategory.TOOL),
    (11, "Codium", ItemCategory.TOOL),
]


async def seed_catalog(session_factory) -> int:
    """Insert any seed items that are missing. Returns how many were added."""
    async with session_factory() as session:
        existing = set((await session.execute(select(Item.id))).scalars().all())
        missing = [
            Item(id=item_id, name=name, category=category)
            for item_id, name, category in SEED_ITEMS
            if item_id not in existing
        ]
        if missing:
            session.add_all(missing)
            await session.commit()
            logger.info("Seeded %d catalog items", len(missing))
        return len(missing)
