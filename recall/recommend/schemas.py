"""
Request-side models for the recommendation engine, validated with pydantic.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recall.core.items import Item, ItemType

TimePreference = Literal["recent", "all", "historical"]
ComplexityPreference = Literal["simple", "medium", "complex"]

VALID_ITEM_TYPES = [item_type.value for item_type in ItemType]


class UserPreferences(BaseModel):
    preferred_types: List[str] = Field(default_factory=lambda: ["code", "qa", "json"])
    time_preference: TimePreference = "recent"
    complexity_preference: ComplexityPreference = "medium"
    topic_interests: List[str] = Field(default_factory=list)
    language_preferences: List[str] = Field(default_factory=lambda: ["typescript", "javascript", "python"])

    @field_validator('preferred_types', mode='before')
    @classmethod
    def types_must_be_valid(cls, v):
        values = [item_type.value if isinstance(item_type, ItemType) else item_type for item_type in v]
        for item_type in values:
            if item_type not in VALID_ITEM_TYPES:
                raise ValueError(f'preferred type must be one of: {VALID_ITEM_TYPES}')
        return values

    @field_validator('topic_interests', 'language_preferences')
    @classmethod
    def drop_blank_entries(cls, v):
        return [entry.strip() for entry in v if entry.strip()]


class WorkingContext(BaseModel):
    """What the user is doing right now. Carried through, used only for explanations."""

    current_file: Optional[str] = None
    current_project: Optional[str] = None
    recent_activity: List[str] = Field(default_factory=list)
    active_topics: List[str] = Field(default_factory=list)
    time_of_day: Optional[Literal["morning", "afternoon", "evening", "night"]] = None


class RecommendationRequest(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    query: Optional[str] = None
    current_context: List[Item] = Field(default_factory=list)
    user_preferences: Optional[UserPreferences] = None
    working_context: Optional[WorkingContext] = None
    max_results: Optional[int] = Field(default=None, gt=0)

    @field_validator('query')
    @classmethod
    def blank_query_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v
