from __future__ import annotations

import re
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

_HANDLER_REF_RE = re.compile(r"^[A-Za-z_][\w.]*:[A-Za-z_]\w*$")


def _check_handler_ref(v: str) -> str:
    if not _HANDLER_REF_RE.match(v):
        raise ValueError(f"bad handler reference (expected module:function): {v}")
    return v


class Route(BaseModel):
    script: str = Field(min_length=1)
    handler: str
    description: str = ""

    @field_validator("script")
    @classmethod
    def _normalize_script(cls, v: str) -> str:
        s = v.strip().strip("/")
        if not s:
            raise ValueError("script must not be empty")
        return s

    @field_validator("handler")
    @classmethod
    def _handler_format(cls, v: str) -> str:
        return _check_handler_ref(v)


class RouteTable(BaseModel):
    routes: List[Route] = Field(default_factory=list)
    default_handler: Optional[str] = None

    @field_validator("default_handler")
    @classmethod
    def _default_format(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_handler_ref(v)

    @model_validator(mode="after")
    def _unique_scripts(self) -> "RouteTable":
        scripts = [r.script for r in self.routes]
        if len(scripts) != len(set(scripts)):
            raise ValueError("duplicate route.script values found")
        return self
