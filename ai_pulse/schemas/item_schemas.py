from pydantic import BaseModel, ConfigDict, computed_field
from datetime import datetime

from ai_pulse.models.item_model import ItemCategory

class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: int
    name: str
    category: ItemCategory
    created_at: datetime

class ItemTallyOut(ItemOut):
    upvotes: int = 0
    downvotes: int = 0

    @computed_field
    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes
