from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MAX_HEADING_DEPTH = 6


class Verb(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"


class SourceSpan(BaseModel):
    """Half-open line range ``[start_line, end_line)`` in the source document."""

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)


class HeadingEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    depth: int = Field(ge=1, le=MAX_HEADING_DEPTH)
    title: str
    source_span: SourceSpan


class Section(BaseModel):
    title: str = ""
    children: list["Section"] = Field(default_factory=list)
    source_node: HeadingEvent | None = None

    @property
    def depth(self) -> int:
        return self.source_node.depth if self.source_node is not None else 0


Section.model_rebuild()  # necessary for recursive types


class FieldSpec(BaseModel):
    name: str
    type: str
    description: str = ""
    required: bool = True


class Schema(BaseModel):
    fields: list[FieldSpec] = Field(default_factory=list)
    raw: str | None = None
    language: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.fields and self.raw is None

    def field_names(self) -> list[str]:
        return [f.name for f in self.fields]


class EndpointDescriptor(BaseModel):
    name: str
    verb: Verb
    description: str = ""
    url_params_schema: Schema = Field(default_factory=Schema)
    body_schema: Schema = Field(default_factory=Schema)
    result_schema: Schema = Field(default_factory=Schema)


class TypeSchema(BaseModel):
    name: str
    raw_definition: str
    fields: list[FieldSpec] = Field(default_factory=list)


class ParsedDocument(BaseModel):
    metadata: dict[str, Any] = Field(default_factory=dict)
    root: Section
    endpoints: list[EndpointDescriptor] = Field(default_factory=list)
    types: dict[str, TypeSchema] = Field(default_factory=dict)
