# utils/schemas.py
"""
Base dos schemas Pydantic da API.

Os models SQLAlchemy usam snake_case; o JSON da API usa camelCase.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Schema com aliases camelCase que também aceita os nomes em snake_case."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class MessageResponse(CamelModel):
    message: str
