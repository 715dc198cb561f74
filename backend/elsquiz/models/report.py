from datetime import datetime, timezone

from pydantic import BaseModel, Field


class Learner(BaseModel):
    """Identity entered on the welcome screen and attached to every report."""
    name: str
    surname: str
    group: str
    entry_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"


class ResultSummary(BaseModel):
    """Finished or aborted quiz summary delivered to the relay.

    Serialized with camelCase aliases (the relay payload format).
    """
    student_name: str = Field(alias="studentName")
    student_surname: str = Field(alias="studentSurname")
    group: str
    unit_id: int | str | None = Field(default=None, alias="unitId")
    exercise_type: str = Field(alias="exerciseType")
    score: int
    correct: int
    total: int
    wrong: int
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    incomplete: bool = False
    answered: int | None = None

    class Config:
        populate_by_name = True

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
