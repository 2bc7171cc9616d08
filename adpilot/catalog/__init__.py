from adpilot.catalog.models import EntityCandidate, Product
from adpilot.catalog.resolution import Ambiguous, Match, NotFound, Resolution, resolve

__all__ = [
    "Ambiguous",
    "EntityCandidate",
    "Match",
    "NotFound",
    "Product",
    "Resolution",
    "resolve",
]
