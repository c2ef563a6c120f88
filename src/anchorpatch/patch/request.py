from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class FileApplyPatchChunk(BaseModel):
    """One requested edit: an anchor marker plus '+'/'-'/' ' prefixed lines."""

    model_config = ConfigDict(populate_by_name=True)

    context_marker: str = Field(
        alias="contextMarker",
        description=(
            "Anchor line used to locate the edit, e.g. '@@ class UserService'. "
            "Literal '@@' tokens are ignored."
        ),
    )
    changes: List[str] = Field(
        default_factory=list,
        description=(
            "Ordered change lines walked from the anchor: '+' adds a line, "
            "'-' removes a line, ' ' keeps a context line."
        ),
    )


class FileApplyPatchRequest(BaseModel):
    path: str = Field(description="File path relative to the project root.")
    chunks: List[FileApplyPatchChunk] = Field(
        default_factory=list, description="Change chunks to apply, in any order."
    )
