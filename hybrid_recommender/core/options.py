"""
Request options for the recommendation engines

Field names are snake_case; the camelCase names used by API clients
(``maxRecommendations``, ``dateRangeFilter`` ...) are accepted as aliases.
"""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _OptionsModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AlgorithmWeightOverrides(_OptionsModel):
    """Per-algorithm weights; unset fields fall back to the engine defaults"""
    collaborative: Optional[float] = Field(None, ge=0, description="Collaborative filtering weight")
    content_based: Optional[float] = Field(None, ge=0, description="Content-based filtering weight")
    popularity: Optional[float] = Field(None, ge=0, description="Popularity weight")
    community: Optional[float] = Field(None, ge=0, description="Community membership weight (events only)")


class RecommendationOptions(_OptionsModel):
    """Options for community recommendations"""
    max_recommendations: int = Field(20, ge=0, description="Number of recommendations to return")
    include_popular: bool = Field(True, description="Run the popularity scorer")
    diversity_weight: float = Field(0.3, ge=0, description="Bonus for novel categories, 0 disables diversity")
    algorithm_weights: AlgorithmWeightOverrides = Field(
        default_factory=AlgorithmWeightOverrides, description="Algorithm weight overrides"
    )


class EventRecommendationOptions(RecommendationOptions):
    """Options for event recommendations"""
    date_range_filter: Literal["all", "today", "week", "month"] = Field(
        "all", description="Only keep events starting within this range"
    )
    include_online_only: bool = Field(False, description="Only keep online events")
    include_in_person_only: bool = Field(False, description="Only keep in-person events")


def coerce_options(options: Union[None, Dict[str, Any], RecommendationOptions], model: type):
    """Validate ``options`` into ``model``; None means all defaults"""
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, BaseModel):
        return model.model_validate(options.model_dump())
    return model.model_validate(options)
