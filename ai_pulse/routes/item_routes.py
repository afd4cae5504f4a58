from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ai_pulse.deps.services import get_tally_aggregator
from ai_pulse.models.item_model import ItemCategory
from ai_pulse.schemas.item_schemas import ItemTallyOut
from ai_pulse.tally import TallyAggregator

router = APIRouter(prefix="/api", tags=["items"])


@router.get("/items", response_model=List[ItemTallyOut])
async def list_items(
    category: Optional[ItemCategory] = Query(None),
    tally: TallyAggregator = Depends(get_tally_aggregator),
):
    # Sorted by name; clients re-sort by score
    return await tally.item_tallies(category=category)
