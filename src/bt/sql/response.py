"""Response model for BTQL queries.

Unknown fields are kept (``extra="allow"``) at every level so that encoding a
parsed response again emits everything the service sent.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, JsonValue


class FreshnessState(BaseModel):
    model_config = ConfigDict(extra="allow")

    last_considered_xact_id: str | None = None
    last_processed_xact_id: str | None = None


class RealtimeState(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    actual_xact_id: str | None = None
    minimum_xact_id: str | None = None
    read_bytes: int | None = None
    state_type: str | None = Field(default=None, alias="type")


class SqlResponse(BaseModel):
    """One query result: rows, their schema, and service bookkeeping."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    data: list[dict[str, JsonValue]]
    schema_: JsonValue = Field(default=None, alias="schema")
    cursor: str | None = None
    freshness_state: FreshnessState | None = None
    realtime_state: RealtimeState | None = None

    @property
    def rows(self) -> list[dict[str, JsonValue]]:
        return self.data

    @property
    def extra(self) -> dict[str, Any]:
        """Top-level fields the model does not name, in arrival order."""
        return dict(self.model_extra or {})

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, *, pretty: bool = False) -> str:
        """Encode as compact JSON, or indented when *pretty*."""
        if pretty:
            return json.dumps(self.to_json_dict(), indent=2, ensure_ascii=False)
        return json.dumps(self.to_json_dict(), separators=(",", ":"), ensure_ascii=False)
