"""
Generic response envelope decoding
"""

import logging
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from .exceptions import DecodeError

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


class Envelope(BaseModel, Generic[T]):
    """Standard server response wrapper: payload plus optional token metadata"""
    data: T
    metadata: Optional[str] = Field(None, alias="meta")

    class Config:
        populate_by_name = True
        frozen = True


def _decode(raw: bytes, envelope_type):
    try:
        return envelope_type.model_validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Could not decode JSON: {e}")
        raise DecodeError(
            f"Response does not match {envelope_type.__name__}",
            diagnostic=str(e),
            details={"errors": e.errors(include_url=False, include_input=False)},
        )


def decode_single(raw: bytes, model: Type[M]) -> Envelope[M]:
    """Decode an envelope whose ``data`` is one object"""
    return _decode(raw, Envelope[model])


def decode_sequence(raw: bytes, model: Type[M]) -> Envelope[List[M]]:
    """Decode an envelope whose ``data`` is an ordered list of objects"""
    return _decode(raw, Envelope[List[model]])
