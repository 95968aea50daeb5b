"""
Pydantic schemas for campaign insights.
"""
from pydantic import BaseModel, Field, ConfigDict


class CustomInsightRequest(BaseModel):
    question: str = Field(min_length=1, max_length=1000)

    model_config = ConfigDict(json_schema_extra={
        "example": {"question": "Why did my CPC go up on Thursday?"}
    })


class CustomInsightRead(BaseModel):
    campaign_id: str
    question: str
    answer: str
