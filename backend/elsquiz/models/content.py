"""Lesson content schemas.

Validated on load from the static unit documents (units-index + one file per
unit). Field aliases match the camelCase keys used in those documents.
"""
from enum import Enum

from pydantic import BaseModel, Field


class UnitStatus(str, Enum):
    AVAILABLE = "available"
    LOCKED = "locked"


class Word(BaseModel):
    """Vocabulary entry. Identity is `word`."""
    word: str
    definition: str
    translation: str

    class Config:
        frozen = True


class GrammarInfo(BaseModel):
    structure: str | None = None
    examples: list[str] = Field(default_factory=list)


class UnitInfo(BaseModel):
    """Entry of units-index (`availableUnits`)."""
    id: int | str
    title: str
    status: UnitStatus = UnitStatus.LOCKED
    file: str | None = None
    grammar_structure: str | None = Field(default=None, alias="grammarStructure")
    grammar_examples: list[str] | None = Field(default=None, alias="grammarExamples")

    class Config:
        populate_by_name = True

    @property
    def is_available(self) -> bool:
        return self.status == UnitStatus.AVAILABLE


class Unit(BaseModel):
    """A lesson unit: reading text, vocabulary and optional grammar content."""
    id: int | str
    title: str
    text: str = ""
    words: list[Word] = Field(default_factory=list)
    grammar_structure: str | None = Field(default=None, alias="grammarStructure")
    grammar_examples: list[str] = Field(default_factory=list, alias="grammarExamples")

    class Config:
        populate_by_name = True

    @property
    def grammar(self) -> GrammarInfo:
        return GrammarInfo(structure=self.grammar_structure, examples=list(self.grammar_examples))
