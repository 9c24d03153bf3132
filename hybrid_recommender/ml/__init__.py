"""Scoring algorithms for the hybrid recommendation engines"""

from .collaborative import CollaborativeFiltering, EventCollaborativeFiltering, merge_collaborative_results
from .community_based import CommunityMembership
from .content_based import ContentBased, EventContentBased
from .keywords import load_interest_keywords
from .popularity import EventPopularityBased, PopularityBased

__all__ = [
    "CollaborativeFiltering",
    "EventCollaborativeFiltering",
    "merge_collaborative_results",
    "CommunityMembership",
    "ContentBased",
    "EventContentBased",
    "load_interest_keywords",
    "EventPopularityBased",
    "PopularityBased"
]
