import enum
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, func, case, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ai_pulse.errors import PersistenceError, ValidationError
from ai_pulse.models.item_model import Item, ItemCategory
from ai_pulse.models.vote_model import Vote, VoteType
from ai_pulse.schemas.item_schemas import ItemTallyOut
from ai_pulse.schemas.vote_schemas import CountryTallyOut, CountryCountOut

logger = logging.getLogger(__name__)


class TimeWindow(str, enum.Enum):
    HOUR = "1h"
    SIX_HOURS = "6h"
    DAY = "24h"
    ALL = "all"

    @property
    def delta(self) -> Optional[timedelta]:
        return {
            TimeWindow.HOUR: timedelta(hours=1),
            TimeWindow.SIX_HOURS: timedelta(hours=6),
            TimeWindow.DAY: timedelta(hours=24),
        }.get(self)


def parse_window(value) -> TimeWindow:
    try:
        return TimeWindow(value or TimeWindow.ALL)
    except ValueError:
        raise ValidationError(f"Unsupported time window: {value!r}")


def _counts():
    up = func.coalesce(func.sum(case((Vote.vote_type == VoteType.UPVOTE, 1), else_=0)), 0)
    down = func.coalesce(func.sum(case((Vote.vote_type == VoteType.DOWNVOTE, 1), else_=0)), 0)
    return up, down


class TallyAggregator:
    """
    Read side of the vote log.

    Nothing here is cached or materialised: every call aggregates whatever
    committed rows exist at query time, so the log stays the only source of
    truth. Storage failures surface as PersistenceError rather than an empty
    result, which would look the same as "no votes yet".
    """

    def __init__(self, session_factory, clock=None):
        self.session_factory = session_factory
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def item_tallies(self, category: Optional[ItemCategory] = None) -> List[ItemTallyOut]:
        """Every catalog item with its up/down counts, zero-filled, by name."""
        up, down = _counts()
        stmt = (
            select(Item, up.label("upvotes"), down.label("downvotes"))
            .outerjoin(Vote, Vote.item_id == Item.id)
            .group_by(Item.id)
            .order_by(Item.name)
        )
        if category is not None:
            stmt = stmt.where(Item.category == category)

        rows = await self._fetch(stmt, "item tallies")
        return [
            ItemTallyOut(
                id=item.id,
                name=item.name,
                category=item.category,
                created_at=item.created_at,
                upvotes=int(upvotes or 0),
                downvotes=int(downvotes or 0),
            )
            for item, upvotes, downvotes in rows
        ]

    async def country_tallies(
        self,
        window: TimeWindow = TimeWindow.ALL,
        country: Optional[str] = None,
    ) -> List[CountryTallyOut]:
        """
        Per (country, item) counts inside ``window``.

        Votes without a country are left out. Rows come back grouped by
        country, worst score first inside each country.
        """
        up, down = _counts()
        score = up - down
        stmt = (
            select(
                Vote.country,
                Item.id,
                Item.name,
                Item.category,
                up.label("upvotes"),
                down.label("downvotes"),
                func.max(Vote.created_at).label("last_vote_at"),
            )
            .join(Item, Item.id == Vote.item_id)
            .where(Vote.country.isnot(None))
            .group_by(Vote.country, Item.id, Item.name, Item.category)
            .order_by(Vote.country, score, Item.name)
        )
        stmt = self._in_window(stmt, window)
        if country:
            stmt = stmt.where(Vote.country == country)

        rows = await self._fetch(stmt, "country vote summary")
        return [
            CountryTallyOut(
                country=row[0],
                item_id=row[1],
                item_name=row[2],
                category=row[3],
                upvotes=int(row.upvotes),
                downvotes=int(row.downvotes),
                score=int(row.upvotes) - int(row.downvotes),
                last_vote_at=row.last_vote_at,
            )
            for row in rows
        ]

    async def country_votes(self, window: TimeWindow = TimeWindow.ALL) -> List[Vote]:
        """Raw feed of votes that have a country, with their item, newest first."""
        stmt = (
            select(Vote)
            .options(selectinload(Vote.item))
            .where(Vote.country.isnot(None))
            .order_by(desc(Vote.created_at), desc(Vote.id))
        )
        stmt = self._in_window(stmt, window)
        rows = await self._fetch(stmt, "country votes", scalars=True)
        return rows

    async def recent_votes(self, limit: int = 50) -> List[Vote]:
        stmt = (
            select(Vote)
            .options(selectinload(Vote.item))
            .order_by(desc(Vote.created_at), desc(Vote.id))
            .limit(limit)
        )
        return await self._fetch(stmt, "recent votes", scalars=True)

    async def countries(self, window: TimeWindow = TimeWindow.ALL) -> List[CountryCountOut]:
        """Countries seen in the window, busiest first."""
        total = func.count(Vote.id)
        stmt = (
            select(Vote.country, total.label("votes"))
            .where(Vote.country.isnot(None))
            .group_by(Vote.country)
            .order_by(desc(total), Vote.country)
        )
        stmt = self._in_window(stmt, window)
        rows = await self._fetch(stmt, "countries")
        return [CountryCountOut(country=c, votes=int(n)) for c, n in rows]

    def _in_window(self, stmt, window: TimeWindow):
        delta = parse_window(window).delta
        if delta is None:
            return stmt
        now = self.clock()
        return stmt.where(
            Vote.created_at.isnot(None),
            Vote.created_at >= now - delta,
            Vote.created_at <= now,
        )

    async def _fetch(self, stmt, what: str, scalars: bool = False):
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all() if scalars else result.all())
        except (SQLAlchemyError, OSError) as e:
            logger.exception("Error fetching %s", what)
            raise PersistenceError(f"Could not load {what}, please retry") from e
