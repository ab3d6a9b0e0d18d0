"""
Command payloads for creating and editing participants.

These are the only inputs that carry free-form data, so they are validated
before they reach the store.
"""
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from courtqueue.domain.queue.models import Category, Participant, Tier, new_id
from courtqueue.exceptions import CommandError


class ParticipantDraft(BaseModel):
    """Fields needed to register a new participant."""

    name: str = Field(description="Display name, surrounding whitespace ignored")
    category: Category = Category.MALE
    tier: Tier = Tier.NOVICE

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    def to_participant(self) -> Participant:
        """New participants start in the pool with no completed sessions."""
        return Participant(
            id=new_id("p"),
            name=self.name,
            category=self.category,
            tier=self.tier,
        )


class ParticipantEdit(BaseModel):
    """
    Editable participant fields. Unset fields are left alone.

    Status and session count are owned by the engine and cannot be edited.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    category: Category | None = None
    tier: Tier | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value

    def apply_to(self, participant: Participant) -> None:
        if self.name is not None:
            participant.name = self.name
        if self.category is not None:
            participant.category = self.category
        if self.tier is not None:
            participant.tier = self.tier


def parse_draft(**fields) -> ParticipantDraft:
    try:
        return ParticipantDraft(**fields)
    except ValidationError as e:
        raise CommandError("invalid_participant", str(e)) from e


def parse_edit(**fields) -> ParticipantEdit:
    try:
        return ParticipantEdit(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        raise CommandError("invalid_participant", str(e)) from e
