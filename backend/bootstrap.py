# bootstrap.py — One-time setup: create tables and seed the global tags
"""
Usage:
    python bootstrap.py --owner-email admin@example.com

The owner account must already exist (register it through the API first).
Running the command again updates colours and flags in place.
"""

import asyncio
import argparse
import logging
import sys
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import init_db, close_db, get_db_context
from models import Tag, User

logger = logging.getLogger("boardshare.bootstrap")

GLOBAL_TAGS = [
    {"name": "Urgent", "color": "#FF0000"},
    {"name": "Requested", "color": "#ADD8E6"},
    {"name": "Abandoned", "color": "#8B8000"},
]


class BootstrapError(Exception):
    pass


async def seed_global_tags(db: AsyncSession, owner_email: str) -> List[Tag]:
    """Upsert the predefined global tags, owned by ``owner_email``."""
    result = await db.execute(select(User).where(User.email == owner_email.lower()))
    owner = result.scalar_one_or_none()
    if owner is None:
        raise BootstrapError(f"No account registered for {owner_email}")

    tags = []
    for preset in GLOBAL_TAGS:
        stmt = select(Tag).where(Tag.owner_id == owner.id, Tag.name == preset["name"])
        tag = (await db.execute(stmt)).scalar_one_or_none()
        if tag is None:
            tag = Tag(owner_id=owner.id, name=preset["name"])
            db.add(tag)
            logger.info(f"Created global tag {preset['name']}")
        tag.color = preset["color"]
        tag.is_global = True
        tags.append(tag)

    await db.commit()
    return tags


async def run(owner_email: str) -> int:
    await init_db()
    try:
        async with get_db_context() as db:
            tags = await seed_global_tags(db, owner_email)
    except BootstrapError as exc:
        logger.error(str(exc))
        return 1
    finally:
        await close_db()
    logger.info(f"{len(tags)} global tags ready")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create tables and seed global tags")
    parser.add_argument("--owner-email", required=True, help="Account that owns the global tags")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(name)s] %(levelname)s %(message)s")
    return asyncio.run(run(args.owner_email))


if __name__ == "__main__":
    sys.exit(main())
