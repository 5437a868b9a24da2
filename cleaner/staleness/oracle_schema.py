# cleaner/staleness/oracle_schema.py
"""
Typed shapes for oracle replies.

Replies are parsed defensively: a reply that is not JSON, or not the expected
shape, yields nothing rather than an exception. Doc edits are validated one
entry at a time so a single malformed element does not discard its siblings.
"""
from __future__ import annotations

import json
import re
from typing import Any, Literal

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_FENCE_OPEN = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")


class DocEdit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    start_line: int = Field(alias="startLine", ge=1)
    end_line: int = Field(alias="endLine", ge=1)
    original: str = ""
    replacement: str | None = ""
    rationale: str = ""
    confidence: Literal["high", "medium", "low"]

    @field_validator("confidence", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("end_line")
    @classmethod
    def _ordered(cls, v: int, info) -> int:
        start = info.data.get("start_line")
        if start is not None and v < start:
            raise ValueError("endLine precedes startLine")
        return v


class TagVerdict(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resolved: bool
    evidence: str = ""
    replacement: str | None = ""
    confidence: Literal["high", "medium", "low"]

    @field_validator("confidence", mode="before")
    @classmethod
    def _lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


def strip_fences(raw: str) -> str:
    return _FENCE_CLOSE.sub("", _FENCE_OPEN.sub("", raw.strip())).strip()


def load_json(raw: str) -> Any | None:
    if not raw or not raw.strip():
        return None
    try:
        return json.loads(strip_fences(raw))
    except json.JSONDecodeError:
        logger.debug(f"Oracle reply is not JSON: {raw[:120]!r}")
        return None


def parse_doc_edits(raw: str) -> list[DocEdit]:
    data = load_json(raw)
    if not isinstance(data, list):
        return []
    edits: list[DocEdit] = []
    for entry in data:
        try:
            edits.append(DocEdit.model_validate(entry))
        except ValidationError as e:
            logger.debug(f"Discarding malformed doc edit: {e.errors()[:1]}")
    return edits


def parse_tag_verdict(raw: str) -> TagVerdict | None:
    data = load_json(raw)
    if not isinstance(data, dict):
        return None
    try:
        return TagVerdict.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Discarding malformed tag verdict: {e.errors()[:1]}")
        return None
