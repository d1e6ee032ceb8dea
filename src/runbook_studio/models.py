from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Variant(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class DocumentSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    body: str
    fetched_at: datetime
    variant: Variant


class ParameterDescriptor(BaseModel):
    display_name: str
    raw_name: str
    type_name: str
    is_array: bool = False


class Token(BaseModel):
    type: str
    text: str
    start_offset: int
    end_offset: int


class SyntaxNode(BaseModel):
    type: str
    start_offset: int
    end_offset: int
    start_row: int
    end_row: int
    text: str
    is_error: bool = False
    children: list["SyntaxNode"] | None = None


SyntaxNode.model_rebuild()  # necessary for recursive types


class ParseDiagnostic(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_offset: int
    length: int
    line: int
    message: str


class ParseResult(BaseModel):
    tokens: list[Token]
    tree: SyntaxNode
    diagnostics: list[ParseDiagnostic]

    @property
    def has_errors(self) -> bool:
        return bool(self.diagnostics)
