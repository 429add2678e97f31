from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Quote(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    price: float
    change: float = 0.0
    change_percent: float = Field(default=0.0, alias="changePercent")
    high: float = 0.0
    low: float = 0.0
    open: float = 0.0
    previous_close: float = Field(default=0.0, alias="previousClose")
    as_of: datetime = Field(alias="asOf")

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
