import logging
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from ai_pulse.errors import ValidationError, PersistenceError
from ai_pulse.models.item_model import Item
from ai_pulse.models.vote_model import Vote, VoteType
from ai_pulse.utils.geo import GeoResolver

logger = logging.getLogger(__name__)

USER_AGENT_MAX = 512
IP_ADDRESS_MAX = 64
# Item ids are int4 in Postgres
ITEM_ID_MAX = 2**31 - 1


def parse_vote_type(value: Union[str, VoteType]) -> VoteType:
    if isinstance(value, VoteType):
        return value
    try:
        return VoteType(value)
    except ValueError:
        raise ValidationError(f"Invalid vote type: {value!r}")


class VoteRecorder:
    """
    Validates and appends one vote to the log.

    Order of work: validate (no side effects) -> resolve country (never
    fails) -> insert in a single transaction. Every call appends a new row;
    identical submissions are not collapsed.
    """

    def __init__(self, session_factory, geo_resolver: GeoResolver):
        self.session_factory = session_factory
        self.geo_resolver = geo_resolver

    async def record(
        self,
        item_id: int,
        vote_type: Union[str, VoteType],
        origin: Optional[str],
        user_agent: Optional[str] = None,
        fingerprint: Optional[str] = None,
    ) -> Vote:
        vote_type = parse_vote_type(vote_type)
        await self._ensure_item(item_id)

        logger.info("Client IP detected: %s", origin)
        country = await self.geo_resolver.resolve(origin) if origin else None
        logger.info("Country detected: %s", country)

        vote = Vote(
            item_id=item_id,
            vote_type=vote_type,
            ip_address=(origin or "").strip()[:IP_ADDRESS_MAX] or None,
            user_agent=(user_agent or "").strip()[:USER_AGENT_MAX] or None,
            fingerprint=(fingerprint or "").strip() or None,
            country=country or None,
        )

        async with self.session_factory() as session:
            try:
                session.add(vote)
                await session.flush()
                # Pull server-assigned id/created_at before we commit
                await session.refresh(vote)
                await session.commit()
            except (SQLAlchemyError, OSError) as e:
                logger.exception("Error inserting vote for item %s", item_id)
                raise PersistenceError(
                    "Failed to insert vote; nothing was recorded", write=True
                ) from e

        logger.info("Vote %s inserted successfully with country: %s", vote.id, vote.country)
        return vote

    async def _ensure_item(self, item_id: int) -> None:
        if isinstance(item_id, bool) or not isinstance(item_id, int) or not 1 <= item_id <= ITEM_ID_MAX:
            raise ValidationError(f"Item {item_id} does not exist")
        try:
            async with self.session_factory() as session:
                item = await session.get(Item, item_id)
        except (SQLAlchemyError, OSError) as e:
            logger.exception("Error looking up item %s", item_id)
            raise PersistenceError(
                "Failed to insert vote; nothing was recorded", write=True
            ) from e
        if item is None:
            raise ValidationError(f"Item {item_id} does not exist")
