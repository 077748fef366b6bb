"""
Vadis Stage Prompts

Centralized prompt templates for every analysis stage.
Templates use str.format placeholders; literal JSON braces are doubled.
"""

from dataclasses import dataclass

from vadis.core.constants import StageName


@dataclass
class StagePrompt:
    """A prompt template for a stage."""
    name: str
    template: str
    description: str = ""


class StagePromptLibrary:
    """
    Library of all stage prompts.

    Provides centralized access to prompt templates for:
    - Scene extraction and character analysis
    - Casting, VFX, product placement and locations
    - Financial planning and the executive summary
    """

    # ==========================================================================
    # SCRIPT BREAKDOWN
    # ==========================================================================

    SCENE_EXTRACTION = """Break the following screenplay into scenes.

A scene starts at every slug line (INT./EXT. location - time of day). For each
scene report the characters who appear, a one or two sentence description,
estimated page range (55 lines per page) and duration in minutes (about one
minute per page). Tag anything that will need visual effects and any natural
product-placement opportunity.

Return JSON in exactly this form:
{{
  "scenes": [
    {{
      "scene_number": 1,
      "location": "COFFEE SHOP",
      "time_of_day": "DAY",
      "description": "Short summary of what happens",
      "characters": ["SARAH", "TOM"],
      "content": "First lines of the scene text",
      "page_start": 1,
      "page_end": 2,
      "duration": 2,
      "vfx_needs": ["rain composite"],
      "product_placement_opportunities": ["coffee brand on cups"]
    }}
  ]
}}

SCREENPLAY:
{script}
"""

    CHARACTER_ANALYSIS = """Analyze the characters in this screenplay, using the scenes below.

For every speaking or significant character give a description, age range,
gender, personality traits, importance ("lead", "supporting" or "minor"),
estimated screen time in minutes, relationships to other characters
(strength 1-10) and a short character arc. Also list the relationship graph as
explicit edges.

Return JSON in exactly this form:
{{
  "characters": [
    {{
      "name": "SARAH",
      "description": "Ambitious investigative reporter",
      "age": "30s",
      "gender": "female",
      "personality": ["driven", "skeptical"],
      "importance": "lead",
      "screen_time": 45,
      "relationships": [{{"character": "TOM", "relationship": "ex-partner", "strength": 8}}],
      "character_arc": "Learns to trust again"
    }}
  ],
  "relationship_graph": [
    {{"from": "SARAH", "to": "TOM", "type": "ex-partner", "strength": 8}}
  ]
}}

SCENES ({scene_count}):
{scenes}
"""

    # ==========================================================================
    # PRODUCTION
    # ==========================================================================

    CASTING_SUGGESTIONS = """Suggest casting for the characters below.

For each character propose three working actors, best fit first. Score each
fit from 1 to 100, describe current availability, estimate the fee in US
dollars, and list any of the other suggested actors they have worked with.

Return JSON in exactly this form:
{{
  "suggestions": [
    {{
      "character_name": "SARAH",
      "candidates": [
        {{
          "name": "Actor Name",
          "reasoning": "Why this actor fits the role",
          "fit_score": 88,
          "availability": "Available from spring",
          "estimated_fee": 2500000,
          "working_relationships": ["Other Actor"]
        }}
      ]
    }}
  ]
}}

CHARACTERS ({character_count}):
{characters}
"""

    VFX_ANALYSIS = """Identify the visual effects required by the scenes below.

Only report real needs. For each effect give the scene_id it belongs to, the
effect type, complexity ("low", "medium", "high" or "extreme"), an estimated
cost in US dollars, a description and reference image ideas.

Return JSON in exactly this form:
{{
  "vfx_needs": [
    {{
      "scene_id": "scene_3",
      "effect_type": "explosion",
      "complexity": "high",
      "estimated_cost": 150000,
      "description": "Car explodes in the parking garage",
      "reference_images": ["practical fireball", "debris simulation"]
    }}
  ]
}}

SCENES ({scene_count}):
{scenes}
"""

    PRODUCT_PLACEMENT = """Find natural product-placement opportunities in the scenes below.

For each opportunity give the scene_id, a plausible brand and product, how it
appears on screen, naturalness from 1 to 10, visibility ("background",
"featured" or "hero") and an estimated deal value in US dollars.

Return JSON in exactly this form:
{{
  "placements": [
    {{
      "scene_id": "scene_2",
      "brand": "Brand",
      "product": "Smartphone",
      "placement": "Sarah checks messages at the bar",
      "naturalness": 8,
      "visibility": "featured",
      "estimated_value": 75000
    }}
  ]
}}

SCENES ({scene_count}):
{scenes}
"""

    LOCATION_ANALYSIS = """Suggest real filming locations for the scenes below.

For each scene give the scene_id, the type of location needed and two or
three candidate places with city, state, country, tax incentive percentage,
estimated cost in US dollars, logistics notes and weather considerations.

Return JSON in exactly this form:
{{
  "locations": [
    {{
      "scene_id": "scene_1",
      "location_type": "urban diner",
      "options": [
        {{
          "name": "Historic downtown diner",
          "city": "Atlanta",
          "state": "GA",
          "country": "USA",
          "tax_incentive": 30,
          "estimated_cost": 25000,
          "logistics": "Close to crew base",
          "weather_considerations": "Humid summers"
        }}
      ]
    }}
  ]
}}

SCENES ({scene_count}):
{scenes}
"""

    # ==========================================================================
    # SYNTHESIS
    # ==========================================================================

    FINANCIAL_PLANNING = """Build a financial plan for this film.

Production facts:
- Scenes: {scene_count}, estimated runtime {runtime} minutes
- Characters: {character_count} ({lead_count} leads)
- VFX shots: {vfx_count}, estimated VFX cost ${vfx_cost:,}
- Lead cast fee estimate: ${cast_cost:,}
- Location cost estimate: ${location_cost:,}
- Product placement value: ${placement_value:,}

Estimate the remaining categories (production, marketing, contingency) and
project revenue. All amounts are whole US dollars. roi is a ratio (1.5 means
150% return). break_even_point is the gross revenue needed to break even.

Return JSON in exactly this form:
{{
  "total_budget": 0,
  "budget_breakdown": {{
    "pre_production": 0,
    "production": 0,
    "post_production": 0,
    "marketing": 0,
    "contingency": 0
  }},
  "revenue_projections": {{
    "domestic": 0,
    "international": 0,
    "streaming": 0,
    "merchandise": 0,
    "product_placement": 0
  }},
  "roi": 0.0,
  "break_even_point": 0
}}
"""

    PROJECT_SUMMARY = """Write a professional reader's report for this screenplay.

Use these section headings:
Executive Summary, Story Synopsis, Character Analysis, Commercial Viability,
Production Considerations, Investment Recommendation.

Write in plain prose, no JSON.

SCENES ({scene_count}, about {runtime} minutes):
{scenes}

CHARACTERS:
{characters}

CASTING:
{casting}

VFX: {vfx_count} effects, ${vfx_cost:,} estimated
PRODUCT PLACEMENT: {placement_count} opportunities, ${placement_value:,} estimated
LOCATIONS: {location_count} scenes with suggestions

FINANCIAL PLAN:
{financials}
"""

    USER_ACTOR_EVALUATION = """Evaluate {actor_name} for the role of {character_name}.

Character: {character_description}
Importance: {importance}
Personality: {personality}

Score the fit from 1 to 100, describe availability, estimate the fee in US
dollars, and give a recommendation of "excellent", "good", "fair" or "poor".

Return JSON in exactly this form:
{{
  "name": "{actor_name}",
  "reasoning": "Why the actor does or does not fit",
  "fit_score": 70,
  "availability": "Unknown",
  "estimated_fee": 1000000,
  "working_relationships": [],
  "recommendation": "good"
}}
"""

    @classmethod
    def get(cls, stage: StageName) -> StagePrompt:
        """Get the prompt for a stage."""
        template = getattr(cls, stage.name)
        return StagePrompt(name=stage.value, template=template)
