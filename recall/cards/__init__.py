"""
Card definitions, presentation views and occlusion geometry.
"""

from recall.cards.models import (
    CardType,
    RegionShape,
    BasicCard,
    ClozeCard,
    MultipleChoiceCard,
    TrueFalseCard,
    MatchingPair,
    MatchingCard,
    CategorizationCard,
    OrderedCard,
    OcclusionRegion,
    ImageCard,
    CardDefinition,
    parse_card,
    card_to_dict,
)
from recall.cards.presentation import CardPresentation, RegionView, present, shuffled
from recall.cards.geometry import (
    RectangleGeometry,
    EllipseGeometry,
    PolygonGeometry,
    point_in_rectangle,
    point_in_ellipse,
    point_in_polygon,
    point_in_region,
    hit_test,
)

__all__ = [
    # Models
    "CardType",
    "RegionShape",
    "BasicCard",
    "ClozeCard",
    "MultipleChoiceCard",
    "TrueFalseCard",
    "MatchingPair",
    "MatchingCard",
    "CategorizationCard",
    "OrderedCard",
    "OcclusionRegion",
    "ImageCard",
    "CardDefinition",
    "parse_card",
    "card_to_dict",

    # Presentation
    "CardPresentation",
    "RegionView",
    "present",
    "shuffled",

    # Geometry
    "RectangleGeometry",
    "EllipseGeometry",
    "PolygonGeometry",
    "point_in_rectangle",
    "point_in_ellipse",
    "point_in_polygon",
    "point_in_region",
    "hit_test",
]
