from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from ai_pulse.models.item_model import ItemCategory
from ai_pulse.models.vote_model import VoteType
from ai_pulse.schemas.item_schemas import ItemOut

class VoteCreate(BaseModel):
    """Body of a vote submission. camelCase on the wire."""
    model_config = ConfigDict(populate_by_name=True)

    item_id: int = Field(..., alias="itemId")
    # Checked by the recorder so a bad value is a 400, not a 422
    vote_type: str = Field(..., alias="voteType")
    user_agent: Optional[str] = Field(None, alias="userAgent")
    fingerprint: Optional[str] = Field(None, max_length=255)

class VoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    item_id: int
    vote_type: VoteType
    created_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    fingerprint: Optional[str] = None
    country: Optional[str] = None

class VoteSubmitResponse(BaseModel):
    success: bool = True
    data: VoteOut

class VoteWithItemOut(VoteOut):
    item: ItemOut

class CountryVoteOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    country: str
    item_id: int
    vote_type: VoteType
    created_at: datetime
    item: ItemOut

class CountryTallyOut(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    country: str
    item_id: int
    item_name: str
    category: ItemCategory
    upvotes: int
    downvotes: int
    score: int
    last_vote_at: Optional[datetime] = None

class CountryCountOut(BaseModel):
    country: str
    votes: int
