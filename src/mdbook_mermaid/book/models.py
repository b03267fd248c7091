"""mdBook's JSON book and preprocessor context as pydantic models"""

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class Chapter(BaseModel):
    """A chapter with its markdown body and nested sub-chapters; unknown keys are kept."""
    model_config = ConfigDict(extra="allow")

    name:         str
    content:      str = ""
    number:       Optional[list[int]] = None
    sub_items:    list["BookItem"] = Field(default_factory=list)
    path:         Optional[str] = None      # None for draft chapters
    source_path:  Optional[str] = None
    parent_names: list[str] = Field(default_factory=list)


class ChapterItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    chapter: Chapter = Field(alias="Chapter")


class PartTitleItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    part_title: str = Field(alias="PartTitle")


BookItem = Union[ChapterItem, PartTitleItem, Literal["Separator"]]
Chapter.model_rebuild()


class Book(BaseModel):
    """Top-level book: an ordered list of sections."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    sections:       list[BookItem] = Field(default_factory=list)
    non_exhaustive: None = Field(default=None, alias="__non_exhaustive")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class PreprocessorContext(BaseModel):
    """Context mdBook sends alongside the book."""
    model_config = ConfigDict(extra="allow")

    root:           str = ""
    config:         dict[str, Any] = Field(default_factory=dict)
    renderer:       str = "html"
    mdbook_version: str = ""

    def preprocessor_options(self, name: str) -> dict[str, Any]:
        """Return the [preprocessor.<name>] table from book.toml, or {}."""
        table = (self.config.get("preprocessor") or {}).get(name)
        return table if isinstance(table, dict) else {}


_INPUT = TypeAdapter(tuple[PreprocessorContext, Book])


def parse_input(raw: str) -> tuple[PreprocessorContext, Book]:
    """Validate the ``[context, book]`` JSON array mdBook writes to stdin."""
    return _INPUT.validate_json(raw)
