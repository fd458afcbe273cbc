"""Display Schemas — element display settings, decoded once at the storage boundary.

Invariants:
    - The persisted blob is compact JSON: {"display": 1} or {}
    - An unknown or missing display value decodes to display=None (pass-through code)
    - Malformed JSON raises InvalidDisplaySettingsError, never a raw ValueError

Design Decisions:
    - Tagged enum (DisplayMode) over the raw integer: callers never compare
      magic numbers, and new modes extend the enum without touching the allocator
    - Unknown modes are tolerated on read: blobs written by newer releases must
      still render (as the pass-through code) on older ones
"""

import json
import logging

from pydantic import BaseModel, Field, StrictInt, ValidationError, field_validator

from certnum.core.domain_types import DisplayMode
from certnum.core.errors import InvalidDisplaySettingsError

logger = logging.getLogger(__name__)

_KNOWN_MODES = {int(m) for m in DisplayMode}


def _mode_value(v) -> int | None:
    """Integer of a known mode, or None. Booleans and fractional floats never match."""
    if isinstance(v, bool):
        return None
    if isinstance(v, float):
        if not v.is_integer():
            return None
        v = int(v)
    elif isinstance(v, str):
        v = v.strip()
        if not v.isdigit():
            return None
        v = int(v)
    elif not isinstance(v, int):
        return None
    return v if v in _KNOWN_MODES else None


class DisplaySettings(BaseModel):
    """Decoded display configuration of a number element."""
    display: DisplayMode | None = None

    @field_validator("display", mode="before")
    @classmethod
    def tolerate_unknown_mode(cls, v):
        if v is None or isinstance(v, DisplayMode):
            return v
        mode = _mode_value(v)
        if mode is None:
            logger.warning(f"Unrecognized display mode {v!r}; using pass-through code")
            return None
        return DisplayMode(mode)

    @property
    def shows_allocated_number(self) -> bool:
        return self.display is DisplayMode.SHOW_ALLOCATED_NUMBER

    @classmethod
    def decode(cls, blob: str | None) -> "DisplaySettings":
        """Decode the element data blob. Empty or absent blobs give defaults."""
        if not blob:
            return cls()
        try:
            raw = json.loads(blob)
        except json.JSONDecodeError as e:
            raise InvalidDisplaySettingsError(
                f"Display settings are not valid JSON: {e.msg}",
            ) from e
        if not isinstance(raw, dict):
            raise InvalidDisplaySettingsError(
                "Display settings must be a JSON object",
            )
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise InvalidDisplaySettingsError(
                f"Display settings are invalid: {e.error_count()} error(s)",
            ) from e

    def encode(self) -> str:
        if self.display is None:
            return "{}"
        return json.dumps({"display": int(self.display)}, separators=(",", ":"))


class ElementCreate(BaseModel):
    """Element creation — display mode defaults to showing the allocated number."""
    template_id: str = Field(min_length=1, max_length=64)
    name: str = Field("Certificate number", min_length=1, max_length=255)
    display: StrictInt | None = Field(int(DisplayMode.SHOW_ALLOCATED_NUMBER))
    width: int = Field(0, ge=0, le=10_000)


class ElementDisplayUpdate(BaseModel):
    display: StrictInt | None


class ElementResponse(BaseModel):
    """Element response — settings decoded, width resolved to its default."""
    id: str
    template_id: str
    name: str
    display: int | None
    width: int


class DisplayValueResponse(BaseModel):
    issue_id: str
    value: str
    mode: str


class PreviewResponse(BaseModel):
    """Template editor sample: plain value plus its HTML rendering."""
    value: str
    html: str
