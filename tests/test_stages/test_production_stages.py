"""
Tests for VFX, Product Placement and Location Stages

Tests for vadis/stages/vfx_analysis.py, product_placement.py and location_analysis.py
"""

import pytest

from vadis.core.exceptions import PreconditionNotMet
from vadis.parsing.basic_scene_parser import parse_scenes
from vadis.stages import analyze_product_placement, analyze_vfx, suggest_locations
from vadis.stages.base import SceneIndex


@pytest.fixture
def scenes(sample_script):
    return parse_scenes(sample_script)


class TestSceneIndex:
    """Tests for scene reference resolution."""

    @pytest.mark.parametrize("payload,expected", [
        ({"scene_id": "scene_2"}, 2),
        ({"scene_id": "SCENE_1"}, 1),
        ({"scene_number": 2}, 2),
        ({"sceneNumber": "2"}, 2),
        ({"scene": "Scene 1"}, 1),
    ])
    def test_resolves(self, scenes, payload, expected):
        """Test ids, numbers and loose strings resolve."""
        assert SceneIndex(scenes).resolve(payload).scene_number == expected

    @pytest.mark.parametrize("payload", [
        {"scene_id": "scene_99"},
        {"scene_number": 0},
        {"scene_id": True},
        {"scene_number": float("inf")},
        {"scene_number": float("nan")},
        {"scene_number": -1},
        {"effect_type": "fire"},
    ])
    def test_unknown(self, scenes, payload):
        """Test unresolvable references."""
        assert SceneIndex(scenes).resolve(payload) is None


class TestAnalyzeVFX:
    """Tests for analyze_vfx."""

    @pytest.mark.asyncio
    async def test_unknown_scene_dropped(self, scripted_client, scenes):
        """Test only needs tied to a persisted scene are kept."""
        needs = await analyze_vfx(scripted_client, scenes)

        assert len(needs) == 1
        assert needs[0].scene_id == "scene_2"
        assert needs[0].scene_number == 2
        assert needs[0].complexity == "high"
        assert needs[0].estimated_cost == 150000

    @pytest.mark.asyncio
    async def test_non_finite_numbers(self, make_provider, make_client, responder, scenes):
        """Test NaN and Infinity in model output degrade instead of raising."""
        provider = make_provider(responses=responder({"vfx_analysis": (
            '[{"scene_id": "scene_1", "effect_type": "fire", "estimated_cost": NaN},'
            ' {"scene_number": Infinity, "effect_type": "smoke"},'
            ' {"scene_number": 2, "effect_type": "rain", "estimated_cost": "$1.2B"}]'
        )}))

        needs = await analyze_vfx(make_client(provider), scenes)

        assert [need.effect_type for need in needs] == ["fire", "rain"]
        assert needs[0].estimated_cost == 0
        assert needs[1].estimated_cost == 1_200_000_000

    @pytest.mark.asyncio
    async def test_no_scenes(self, scripted_client, scripted_provider):
        """Test zero scenes yields zero needs."""
        assert await analyze_vfx(scripted_client, []) == []
        assert scripted_provider.calls == []

    @pytest.mark.asyncio
    async def test_offline(self, offline_client, scenes):
        """Test disabled generation yields no needs."""
        assert await analyze_vfx(offline_client, scenes) == []


class TestAnalyzeProductPlacement:
    """Tests for analyze_product_placement."""

    @pytest.mark.asyncio
    async def test_placements(self, scripted_client, scenes):
        """Test a placement resolved by scene number."""
        placements = await analyze_product_placement(scripted_client, scenes)

        assert len(placements) == 1
        assert placements[0].scene_id == "scene_1"
        assert placements[0].brand == "Apple"
        assert placements[0].visibility == "featured"

    @pytest.mark.asyncio
    async def test_no_scenes(self, scripted_client):
        """Test zero scenes yields zero placements."""
        assert await analyze_product_placement(scripted_client, []) == []


class TestSuggestLocations:
    """Tests for suggest_locations."""

    @pytest.mark.asyncio
    async def test_no_scenes(self, scripted_client):
        """Test location scouting needs scenes."""
        with pytest.raises(PreconditionNotMet) as exc_info:
            await suggest_locations(scripted_client, [])

        assert "scene extraction" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_options(self, scripted_client, scenes):
        """Test options per scene and the cheapest-option cost."""
        suggestions = await suggest_locations(scripted_client, scenes)

        assert len(suggestions) == 1
        assert suggestions[0].location_type == "office"
        assert [o.name for o in suggestions[0].options] == ["Downtown tower", "Studio set"]
        assert suggestions[0].total_estimated_cost == 12000
