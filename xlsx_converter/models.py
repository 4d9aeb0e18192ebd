from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConversionResult(_CamelModel):
    success: bool
    filename: str
    original_size: int
    converted_size: Optional[int] = Field(default=None, examples=[None])
    message: Optional[str] = None
    warnings: Optional[List[str]] = None
    # serialized workbook; never part of the JSON payload
    content: Optional[bytes] = Field(default=None, exclude=True, repr=False)


class ConvertResponse(_CamelModel):
    success: bool = True
    filename: str
    original_size: int
    converted_size: int
    warnings: Optional[List[str]] = None


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    code: Optional[str] = None


class HealthResponse(BaseModel):
    ok: bool = True
