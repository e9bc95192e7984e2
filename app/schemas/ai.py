"""
AI advisor request/response schemas
"""

from pydantic import BaseModel, Field, ConfigDict


class TrafficQueryRequest(BaseModel):
    user_query: str = Field(..., min_length=3, max_length=2000, alias="userQuery")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"userQuery": "Me detuvo un oficial de tránsito, ¿qué hago?"}},
    )


class TrafficAdviceResponse(BaseModel):
    advice: str


class SuggestionRequest(BaseModel):
    traffic_infraction: str = Field(..., min_length=2, max_length=200, alias="trafficInfraction")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"trafficInfraction": "speeding"}},
    )


class SuggestionResponse(BaseModel):
    article_suggestions: list[str] = Field(..., alias="articleSuggestions")

    model_config = ConfigDict(populate_by_name=True)
