"""
Frame Record
============

The single entity flowing through the pipeline: an optional identifier
and provenance plus a packed-RGB pixel buffer with declared dimensions.

Record Format (one JSON object per line):
    {
        "@type": "Image",
        "id": "file:///photos/cat.png",
        "width": 4,
        "height": 3,
        "data": "<base64 packed RGB>",
        "source": "file:///photos/cat.png"
    }

Input Leniency:
    - "@id" is accepted in place of "id"
    - "data" may also be a base64 data: URL or a JSON array of byte values
    - Unknown keys ("@type", "@context", ...) are ignored

Design Rules:
    - Frames are immutable (frozen)
    - Parsing does NOT check dimensions against the buffer; that is the
      validator's job, applied only when a frame is about to be used
"""

import base64
import binascii
import json
from typing import Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_serializer,
    field_validator,
)

from pixelpipe.errors import ParseFailure


RECORD_TYPE = "Image"


def _decode_data(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)

    if isinstance(value, str):
        if value.startswith("data:"):
            header, sep, payload = value.partition(",")
            if not sep or not header.endswith(";base64"):
                raise ValueError("data URL must be base64-encoded")
            value = payload
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64 pixel data: {e}") from e

    if isinstance(value, list):
        if not all(type(b) is int and 0 <= b <= 255 for b in value):
            raise ValueError("byte array entries must be integers in 0..255")
        return bytes(value)

    raise ValueError(f"unsupported data encoding: {type(value).__name__}")


class Frame(BaseModel):
    """
    Immutable frame record.

    Attributes:
        id: Stable identifier/URI of the frame
        width: Pixel width (required when the frame is used)
        height: Pixel height (required when the frame is used)
        data: Packed RGB bytes, row-major, 3 bytes per pixel, no padding
        source: Provenance URI (e.g. originating file)
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("id", "@id"),
        description="Stable identifier/URI of the frame",
    )

    width: Optional[int] = Field(default=None, ge=0, description="Pixel width")

    height: Optional[int] = Field(default=None, ge=0, description="Pixel height")

    data: bytes = Field(
        default=b"",
        description="Packed RGB pixel bytes (base64 on the wire)",
    )

    source: Optional[str] = Field(default=None, description="Provenance URI")

    @field_validator("data", mode="plain")
    @classmethod
    def decode_data(cls, v: Any) -> bytes:
        """Accept raw bytes, base64 text, base64 data URLs or byte arrays."""
        return _decode_data(v)

    @field_serializer("data")
    def encode_data(self, v: bytes) -> str:
        return base64.b64encode(v).decode("ascii")

    @classmethod
    def from_json(cls, text: Union[str, bytes]) -> "Frame":
        """
        Parse one record.

        Args:
            text: A single JSON document

        Returns:
            Parsed Frame

        Raises:
            ParseFailure: If the text is not a valid frame record
        """
        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            raise ParseFailure(f"{e.error_count()} validation error(s)") from e

    def to_json(self) -> str:
        """Serialize to a single-line JSON record."""
        record = {"@type": RECORD_TYPE}
        record.update(self.model_dump(exclude_none=True))
        return json.dumps(record, separators=(",", ":"))

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return (
            f"Frame(id={self.id!r}, "
            f"width={self.width}, "
            f"height={self.height}, "
            f"data=<{len(self.data)} bytes>)"
        )
