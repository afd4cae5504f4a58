import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Query

from ai_pulse import config
from ai_pulse.deps.services import get_vote_recorder, get_tally_aggregator
from ai_pulse.schemas.vote_schemas import (
    VoteCreate,
    VoteSubmitResponse,
    VoteOut,
    VoteWithItemOut,
    CountryVoteOut,
    CountryTallyOut,
    CountryCountOut,
)
from ai_pulse.tally import TallyAggregator, TimeWindow
from ai_pulse.utils.client_ip import get_client_ip
from ai_pulse.vote_recorder import VoteRecorder

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["votes"])


# Anyone can vote; there is no auth or dedup here
@router.post("/vote", response_model=VoteSubmitResponse, status_code=201)
async def submit_vote(
    payload: VoteCreate,
    request: Request,
    recorder: VoteRecorder = Depends(get_vote_recorder),
):
    client_ip = get_client_ip(request.headers)
    vote = await recorder.record(
        item_id=payload.item_id,
        vote_type=payload.vote_type,
        origin=client_ip,
        user_agent=payload.user_agent or request.headers.get("user-agent"),
        fingerprint=payload.fingerprint,
    )
    return VoteSubmitResponse(data=VoteOut.model_validate(vote))


@router.get("/votes/recent", response_model=List[VoteWithItemOut])
async def recent_votes(
    limit: int = Query(config.RECENT_VOTES_LIMIT, ge=1, le=config.RECENT_VOTES_MAX),
    tally: TallyAggregator = Depends(get_tally_aggregator),
):
    return await tally.recent_votes(limit=limit)


@router.get("/votes/countries", response_model=List[CountryVoteOut])
async def country_votes(
    window: TimeWindow = Query(TimeWindow.ALL),
    tally: TallyAggregator = Depends(get_tally_aggregator),
):
    return await tally.country_votes(window)


@router.get("/votes/countries/summary", response_model=List[CountryTallyOut])
async def country_summary(
    window: TimeWindow = Query(TimeWindow.ALL),
    country: Optional[str] = Query(None, min_length=2, max_length=16),
    tally: TallyAggregator = Depends(get_tally_aggregator),
):
    rows = await tally.country_tallies(window, country=country)
    logger.debug("Country summary (%s, %s): %d rows", window.value, country, len(rows))
    return rows


@router.get("/countries", response_model=List[CountryCountOut])
async def list_countries(
    window: TimeWindow = Query(TimeWindow.ALL),
    tally: TallyAggregator = Depends(get_tally_aggregator),
):
    return await tally.countries(window)
