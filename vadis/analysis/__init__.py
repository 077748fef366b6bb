"""
Vadis Analysis Records

Typed records shared by the stages, the store and the API.
"""

from .models import (
    ActorCandidate,
    ActorSuggestion,
    BudgetBreakdown,
    Character,
    CharacterRelationship,
    FinancialPlan,
    LocationOption,
    LocationSuggestion,
    ProductPlacement,
    RelationshipEdge,
    RevenueProjections,
    Scene,
    VFXNeed,
)

__all__ = [
    'ActorCandidate',
    'ActorSuggestion',
    'BudgetBreakdown',
    'Character',
    'CharacterRelationship',
    'FinancialPlan',
    'LocationOption',
    'LocationSuggestion',
    'ProductPlacement',
    'RelationshipEdge',
    'RevenueProjections',
    'Scene',
    'VFXNeed',
]
