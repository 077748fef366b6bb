"""
Vadis Analysis Records

Typed records produced by each analysis stage.

Each record converts to and from a snake_case dict for storage and the HTTP
boundary. `from_llm` builders accept the looser payloads models produce:
snake_case or camelCase keys, numbers as strings ("$1,200,000"), and
out-of-range scores, which are clamped.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional
import math
import re

from vadis.core.constants import (
    COMPLEXITY_TIERS,
    DEFAULT_COMPLEXITY,
    DEFAULT_IMPORTANCE,
    DEFAULT_VISIBILITY,
    IMPORTANCE_TIERS,
    RECOMMENDATION_TIERS,
    VISIBILITY_TIERS,
)

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


# =============================================================================
# PAYLOAD HELPERS
# =============================================================================

def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part.title() for part in rest)


def pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present value among keys, trying each in snake_case and camelCase."""
    for key in keys:
        for candidate in (key, _camel(key)):
            if candidate in data and data[candidate] is not None:
                return data[candidate]
    return default


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce numbers and strings such as "$1,200,000" or "15%" to float.

    NaN, infinities and anything unparseable fall back to `default`.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return default
        return number if math.isfinite(number) else default
    if isinstance(value, str):
        cleaned = value.replace(",", "")
        match = _NUMBER_PATTERN.search(cleaned)
        if match:
            number = float(match.group())
            lowered = cleaned.lower()
            if re.search(r"\d\s*(b|bn|billion)\b", lowered):
                number *= 1_000_000_000
            elif re.search(r"\d\s*(m|million)\b", lowered):
                number *= 1_000_000
            elif re.search(r"\d\s*(k|thousand)\b", lowered):
                number *= 1_000
            return number if math.isfinite(number) else default
    return default


def to_int(value: Any, default: int = 0) -> int:
    return int(round(to_float(value, float(default))))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def to_str_list(value: Any) -> List[str]:
    """Coerce a list, a comma-separated string, or None to a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, Iterable) and not isinstance(value, dict):
        return [str(item).strip() for item in value if item is not None and str(item).strip()]
    return [str(value)]


def to_tier(value: Any, tiers: Iterable[str], default: str) -> str:
    if isinstance(value, str) and value.strip().lower() in tiers:
        return value.strip().lower()
    return default


def _str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


# =============================================================================
# SCENES
# =============================================================================

@dataclass
class Scene:
    """A screenplay scene."""
    id: str
    scene_number: int
    location: str
    time_of_day: str
    description: str = ""
    characters: List[str] = field(default_factory=list)
    content: str = ""
    page_start: int = 1
    page_end: int = 1
    duration: int = 1
    vfx_needs: List[str] = field(default_factory=list)
    product_placement_opportunities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'scene_number': self.scene_number,
            'location': self.location,
            'time_of_day': self.time_of_day,
            'description': self.description,
            'characters': list(self.characters),
            'content': self.content,
            'page_start': self.page_start,
            'page_end': self.page_end,
            'duration': self.duration,
            'vfx_needs': list(self.vfx_needs),
            'product_placement_opportunities': list(self.product_placement_opportunities),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Scene':
        return cls(
            id=data['id'],
            scene_number=int(data['scene_number']),
            location=data.get('location', ""),
            time_of_day=data.get('time_of_day', ""),
            description=data.get('description', ""),
            characters=list(data.get('characters') or []),
            content=data.get('content', ""),
            page_start=int(data.get('page_start', 1)),
            page_end=int(data.get('page_end', 1)),
            duration=int(data.get('duration', 1)),
            vfx_needs=list(data.get('vfx_needs') or []),
            product_placement_opportunities=list(data.get('product_placement_opportunities') or []),
        )

    @classmethod
    def from_llm(cls, data: Dict[str, Any], position: int) -> 'Scene':
        """
        Build a scene from a model payload.

        Numbering follows position (1-based) rather than the model's own
        scene_number, which is often duplicated or skips values.
        """
        number = position
        page_start = max(1, to_int(pick(data, 'page_start'), 1))
        page_end = max(page_start, to_int(pick(data, 'page_end'), page_start))
        return cls(
            id=f"scene_{number}",
            scene_number=number,
            location=_str(pick(data, 'location', 'setting'), "UNKNOWN"),
            time_of_day=_str(pick(data, 'time_of_day', 'time'), "UNSPECIFIED").upper(),
            description=_str(pick(data, 'description', 'summary')),
            characters=to_str_list(pick(data, 'characters')),
            content=_str(pick(data, 'content')),
            page_start=page_start,
            page_end=page_end,
            duration=max(1, to_int(pick(data, 'duration'), 1)),
            vfx_needs=to_str_list(pick(data, 'vfx_needs')),
            product_placement_opportunities=to_str_list(pick(data, 'product_placement_opportunities')),
        )


# =============================================================================
# CHARACTERS
# =============================================================================

@dataclass
class CharacterRelationship:
    """A relationship from one character to another (strength 1-10)."""
    character: str
    relationship: str
    strength: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return {
            'character': self.character,
            'relationship': self.relationship,
            'strength': self.strength,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CharacterRelationship':
        return cls(
            character=_str(pick(data, 'character', 'name', 'with')),
            relationship=_str(pick(data, 'relationship', 'type'), "unknown"),
            strength=clamp(to_int(pick(data, 'strength'), 5), 1, 10),
        )


@dataclass
class RelationshipEdge:
    """An edge of the character relationship graph."""
    from_character: str
    to_character: str
    relationship: str
    strength: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return {
            'from_character': self.from_character,
            'to_character': self.to_character,
            'relationship': self.relationship,
            'strength': self.strength,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RelationshipEdge':
        return cls(
            from_character=_str(pick(data, 'from_character', 'from', 'source')),
            to_character=_str(pick(data, 'to_character', 'to', 'target')),
            relationship=_str(pick(data, 'relationship', 'type'), "unknown"),
            strength=clamp(to_int(pick(data, 'strength'), 5), 1, 10),
        )


@dataclass
class Character:
    """A character; the name is the natural key within a project."""
    name: str
    description: str = ""
    age: str = ""
    gender: str = ""
    personality: List[str] = field(default_factory=list)
    importance: str = DEFAULT_IMPORTANCE
    screen_time: int = 0
    relationships: List[CharacterRelationship] = field(default_factory=list)
    character_arc: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'age': self.age,
            'gender': self.gender,
            'personality': list(self.personality),
            'importance': self.importance,
            'screen_time': self.screen_time,
            'relationships': [r.to_dict() for r in self.relationships],
            'character_arc': self.character_arc,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Character':
        return cls(
            name=data['name'],
            description=data.get('description', ""),
            age=data.get('age', ""),
            gender=data.get('gender', ""),
            personality=list(data.get('personality') or []),
            importance=data.get('importance', DEFAULT_IMPORTANCE),
            screen_time=int(data.get('screen_time', 0)),
            relationships=[CharacterRelationship.from_dict(r) for r in data.get('relationships') or []],
            character_arc=data.get('character_arc', ""),
        )

    @classmethod
    def from_llm(cls, data: Dict[str, Any]) -> Optional['Character']:
        name = _str(pick(data, 'name'))
        if not name:
            return None
        relationships = [
            CharacterRelationship.from_dict(r)
            for r in pick(data, 'relationships', default=[]) or []
            if isinstance(r, dict)
        ]
        return cls(
            name=name,
            description=_str(pick(data, 'description')),
            age=_str(pick(data, 'age')),
            gender=_str(pick(data, 'gender')),
            personality=to_str_list(pick(data, 'personality', 'traits')),
            importance=to_tier(pick(data, 'importance'), IMPORTANCE_TIERS, DEFAULT_IMPORTANCE),
            screen_time=max(0, to_int(pick(data, 'screen_time'), 0)),
            relationships=[r for r in relationships if r.character],
            character_arc=_str(pick(data, 'character_arc', 'arc')),
        )

    @classmethod
    def stub(cls, name: str) -> 'Character':
        """A placeholder for a name seen in scene cues but not analyzed."""
        return cls(name=name, description="Detected from dialogue cues", importance=DEFAULT_IMPORTANCE)


# =============================================================================
# CASTING
# =============================================================================

@dataclass
class ActorCandidate:
    """One actor proposed for a role."""
    name: str
    reasoning: str = ""
    fit_score: int = 50
    availability: str = "Unknown"
    estimated_fee: int = 0
    working_relationships: List[str] = field(default_factory=list)
    user_suggested: bool = False
    recommendation: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'reasoning': self.reasoning,
            'fit_score': self.fit_score,
            'availability': self.availability,
            'estimated_fee': self.estimated_fee,
            'working_relationships': list(self.working_relationships),
            'user_suggested': self.user_suggested,
            'recommendation': self.recommendation,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActorCandidate':
        return cls(
            name=data['name'],
            reasoning=data.get('reasoning', ""),
            fit_score=int(data.get('fit_score', 50)),
            availability=data.get('availability', "Unknown"),
            estimated_fee=int(data.get('estimated_fee', 0)),
            working_relationships=list(data.get('working_relationships') or []),
            user_suggested=bool(data.get('user_suggested', False)),
            recommendation=data.get('recommendation', ""),
        )

    @classmethod
    def from_llm(cls, data: Dict[str, Any], name: str = None, user_suggested: bool = False) -> Optional['ActorCandidate']:
        actor_name = name or _str(pick(data, 'name', 'actor_name', 'actor'))
        if not actor_name:
            return None
        recommendation = to_tier(pick(data, 'recommendation'), RECOMMENDATION_TIERS, "")
        return cls(
            name=actor_name,
            reasoning=_str(pick(data, 'reasoning', 'reason')),
            fit_score=clamp(to_int(pick(data, 'fit_score', 'score'), 50), 1, 100),
            availability=_str(pick(data, 'availability'), "Unknown"),
            estimated_fee=max(0, to_int(pick(data, 'estimated_fee', 'fee'), 0)),
            working_relationships=to_str_list(pick(data, 'working_relationships')),
            user_suggested=user_suggested,
            recommendation=recommendation,
        )


@dataclass
class ActorSuggestion:
    """Ordered actor candidates for one character."""
    character_name: str
    candidates: List[ActorCandidate] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'character_name': self.character_name,
            'candidates': [c.to_dict() for c in self.candidates],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ActorSuggestion':
        return cls(
            character_name=data['character_name'],
            candidates=[ActorCandidate.from_dict(c) for c in data.get('candidates') or []],
        )

    def with_candidate(self, candidate: ActorCandidate) -> 'ActorSuggestion':
        """Copy of this suggestion with a candidate appended."""
        return ActorSuggestion(self.character_name, list(self.candidates) + [candidate])


# =============================================================================
# VFX / PRODUCT PLACEMENT / LOCATIONS
# =============================================================================

@dataclass
class VFXNeed:
    """A visual effect required by a scene."""
    scene_id: str
    effect_type: str
    complexity: str = DEFAULT_COMPLEXITY
    estimated_cost: int = 0
    description: str = ""
    reference_images: List[str] = field(default_factory=list)
    scene_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scene_id': self.scene_id,
            'scene_number': self.scene_number,
            'effect_type': self.effect_type,
            'complexity': self.complexity,
            'estimated_cost': self.estimated_cost,
            'description': self.description,
            'reference_images': list(self.reference_images),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VFXNeed':
        return cls(
            scene_id=data['scene_id'],
            scene_number=int(data.get('scene_number', 0)),
            effect_type=data.get('effect_type', ""),
            complexity=data.get('complexity', DEFAULT_COMPLEXITY),
            estimated_cost=int(data.get('estimated_cost', 0)),
            description=data.get('description', ""),
            reference_images=list(data.get('reference_images') or []),
        )

    @classmethod
    def from_llm(cls, data: Dict[str, Any], scene: Scene) -> 'VFXNeed':
        return cls(
            scene_id=scene.id,
            scene_number=scene.scene_number,
            effect_type=_str(pick(data, 'effect_type', 'type'), "general"),
            complexity=to_tier(pick(data, 'complexity'), COMPLEXITY_TIERS, DEFAULT_COMPLEXITY),
            estimated_cost=max(0, to_int(pick(data, 'estimated_cost', 'cost'), 0)),
            description=_str(pick(data, 'description')),
            reference_images=to_str_list(pick(data, 'reference_images')),
        )


@dataclass
class ProductPlacement:
    """A product-placement opportunity in a scene."""
    scene_id: str
    brand: str
    product: str
    placement: str = ""
    naturalness: int = 5
    visibility: str = DEFAULT_VISIBILITY
    estimated_value: int = 0
    scene_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scene_id': self.scene_id,
            'scene_number': self.scene_number,
            'brand': self.brand,
            'product': self.product,
            'placement': self.placement,
            'naturalness': self.naturalness,
            'visibility': self.visibility,
            'estimated_value': self.estimated_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProductPlacement':
        return cls(
            scene_id=data['scene_id'],
            scene_number=int(data.get('scene_number', 0)),
            brand=data.get('brand', ""),
            product=data.get('product', ""),
            placement=data.get('placement', ""),
            naturalness=int(data.get('naturalness', 5)),
            visibility=data.get('visibility', DEFAULT_VISIBILITY),
            estimated_value=int(data.get('estimated_value', 0)),
        )

    @classmethod
    def from_llm(cls, data: Dict[str, Any], scene: Scene) -> 'ProductPlacement':
        return cls(
            scene_id=scene.id,
            scene_number=scene.scene_number,
            brand=_str(pick(data, 'brand'), "Unbranded"),
            product=_str(pick(data, 'product'), "Unspecified"),
            placement=_str(pick(data, 'placement', 'description')),
            naturalness=clamp(to_int(pick(data, 'naturalness'), 5), 1, 10),
            visibility=to_tier(pick(data, 'visibility'), VISIBILITY_TIERS, DEFAULT_VISIBILITY),
            estimated_value=max(0, to_int(pick(data, 'estimated_value', 'value'), 0)),
        )


@dataclass
class LocationOption:
    """A real-world place that could stand in for a scene's setting."""
    name: str
    city: str = ""
    state: str = ""
    country: str = ""
    tax_incentive: float = 0.0
    estimated_cost: int = 0
    logistics: str = ""
    weather_considerations: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'city': self.city,
            'state': self.state,
            'country': self.country,
            'tax_incentive': self.tax_incentive,
            'estimated_cost': self.estimated_cost,
            'logistics': self.logistics,
            'weather_considerations': self.weather_considerations,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LocationOption':
        return cls(
            name=data['name'],
            city=data.get('city', ""),
            state=data.get('state', ""),
            country=data.get('country', ""),
            tax_incentive=float(data.get('tax_incentive', 0.0)),
            estimated_cost=int(data.get('estimated_cost', 0)),
            logistics=data.get('logistics', ""),
            weather_considerations=data.get('weather_considerations', ""),
        )

    @classmethod
    def from_llm(cls, data: Dict[str, Any]) -> Optional['LocationOption']:
        city = _str(pick(data, 'city'))
        name = _str(pick(data, 'name', 'location'), city)
        if not name:
            return None
        return cls(
            name=name,
            city=city,
            state=_str(pick(data, 'state', 'region')),
            country=_str(pick(data, 'country')),
            tax_incentive=max(0.0, to_float(pick(data, 'tax_incentive'), 0.0)),
            estimated_cost=max(0, to_int(pick(data, 'estimated_cost', 'cost'), 0)),
            logistics=_str(pick(data, 'logistics')),
            weather_considerations=_str(pick(data, 'weather_considerations', 'weather')),
        )


@dataclass
class LocationSuggestion:
    """Candidate filming locations for one scene."""
    scene_id: str
    location_type: str
    options: List[LocationOption] = field(default_factory=list)
    scene_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'scene_id': self.scene_id,
            'scene_number': self.scene_number,
            'location_type': self.location_type,
            'options': [o.to_dict() for o in self.options],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LocationSuggestion':
        return cls(
            scene_id=data['scene_id'],
            scene_number=int(data.get('scene_number', 0)),
            location_type=data.get('location_type', ""),
            options=[LocationOption.from_dict(o) for o in data.get('options') or []],
        )

    @property
    def total_estimated_cost(self) -> int:
        """Cost of the cheapest option, which is what a budget would assume."""
        costs = [o.estimated_cost for o in self.options if o.estimated_cost > 0]
        return min(costs) if costs else 0


# =============================================================================
# FINANCIALS
# =============================================================================

@dataclass
class BudgetBreakdown:
    pre_production: int = 0
    production: int = 0
    post_production: int = 0
    marketing: int = 0
    contingency: int = 0

    BUCKETS = ('pre_production', 'production', 'post_production', 'marketing', 'contingency')

    def to_dict(self) -> Dict[str, int]:
        return {bucket: getattr(self, bucket) for bucket in self.BUCKETS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'BudgetBreakdown':
        data = data if isinstance(data, dict) else {}
        return cls(**{bucket: max(0, to_int(pick(data, bucket), 0)) for bucket in cls.BUCKETS})

    @property
    def total(self) -> int:
        return sum(self.to_dict().values())


@dataclass
class RevenueProjections:
    domestic: int = 0
    international: int = 0
    streaming: int = 0
    merchandise: int = 0
    product_placement: int = 0

    BUCKETS = ('domestic', 'international', 'streaming', 'merchandise', 'product_placement')

    def to_dict(self) -> Dict[str, int]:
        return {bucket: getattr(self, bucket) for bucket in self.BUCKETS}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'RevenueProjections':
        data = data if isinstance(data, dict) else {}
        return cls(**{bucket: max(0, to_int(pick(data, bucket), 0)) for bucket in cls.BUCKETS})

    @property
    def total(self) -> int:
        return sum(self.to_dict().values())


@dataclass
class FinancialPlan:
    """Budget and revenue plan; bucket sums are not reconciled against the total."""
    total_budget: int = 0
    budget_breakdown: BudgetBreakdown = field(default_factory=BudgetBreakdown)
    revenue_projections: RevenueProjections = field(default_factory=RevenueProjections)
    roi: float = 0.0
    break_even_point: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_budget': self.total_budget,
            'budget_breakdown': self.budget_breakdown.to_dict(),
            'revenue_projections': self.revenue_projections.to_dict(),
            'roi': self.roi,
            'break_even_point': self.break_even_point,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'FinancialPlan':
        """Build a plan from a stored row or a model payload; absent buckets are zero."""
        data = data if isinstance(data, dict) else {}
        return cls(
            total_budget=max(0, to_int(pick(data, 'total_budget', 'budget'), 0)),
            budget_breakdown=BudgetBreakdown.from_dict(pick(data, 'budget_breakdown', default={})),
            revenue_projections=RevenueProjections.from_dict(
                pick(data, 'revenue_projections', 'revenue_projection', default={})
            ),
            roi=to_float(pick(data, 'roi', 'projected_roi'), 0.0),
            break_even_point=max(0, to_int(pick(data, 'break_even_point', 'break_even'), 0)),
        )
