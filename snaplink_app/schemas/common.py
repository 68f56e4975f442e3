from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python.

    populate_by_name lets services build schemas with field names while
    clients send and receive originalUrl, shortCode, ...
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(BaseModel, Generic[T]):
    """Success envelope: {"success": true, "data": ...}"""

    success: bool = True
    data: T


class ErrorResponse(BaseModel):
    """Error envelope: {"success": false, "error": "..."}"""

    success: bool = False
    error: str
