from datetime import datetime
from typing import Optional

from pydantic import AliasGenerator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LinkCreate(BaseModel):
    """Body of POST /api/shorten

    original_url is checked by the Shortener rather than by pydantic,
    so a bad URL gets the service's own 400 response.
    """
    original_url: Optional[str] = Field(
        None, alias="originalUrl", description="The original URL to be shortened"
    )
    ttl: Optional[float] = Field(
        None,
        allow_inf_nan=False,
        description="Lifetime in hours; omitted or <= 0 means permanent",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {"originalUrl": "https://example.com", "ttl": 24}
        },
    )


class LinkResponse(BaseModel):
    """Serializes a LinkRecord with camelCase keys

    Validation reads snake_case attributes (from_attributes=True);
    output uses camelCase because FastAPI dumps response models by alias.
    """
    id: str
    original_url: str
    short_url: str
    clicks: int
    created_at: datetime
    expires_at: Optional[datetime] = None

    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )


class ErrorResponse(BaseModel):
    error: str
