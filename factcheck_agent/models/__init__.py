"""Typed models used across the application."""

from .source import Source, Selectors
from .article import CandidateArticle
from .analysis import Analysis, Assessment, SocialPost, SocialVerification
from .posting import PostingState, QueueItem

__all__ = [
    "Source",
    "Selectors",
    "CandidateArticle",
    "Analysis",
    "Assessment",
    "SocialPost",
    "SocialVerification",
    "PostingState",
    "QueueItem",
]
