"""
Tests for Script Analysis Pipeline

Tests for vadis/pipelines/analysis_pipeline.py
"""

import pytest

from vadis.core.config import get_default_config
from vadis.core.constants import LLMProvider, StageName
from vadis.core.exceptions import (
    CapabilityUnavailable,
    PreconditionNotMet,
    ProjectNotFoundError,
    ProviderError,
    UnknownStageError,
)
from vadis.llm.generation_client import GenerationClient
from vadis.pipelines import PipelineStatus, ScriptAnalysisPipeline
from vadis.storage import Tables


async def new_project(pipeline, script=""):
    project = await pipeline.repository.create_project("Test Project", script)
    return project["id"]


class TestFullRun:
    """Tests for analyze()."""

    @pytest.mark.asyncio
    async def test_offline_run_completes(self, offline_pipeline, sample_script):
        """Test every stage completes on fallbacks when generation is off."""
        project_id = await new_project(offline_pipeline, sample_script)

        result = await offline_pipeline.analyze(project_id)
        project = await offline_pipeline.repository.get_project(project_id)
        stages = await offline_pipeline.repository.load_stage_results(project_id)

        assert result.success
        assert project["status"] == "completed"
        assert project["workflow_status"] == "completed"
        assert project["analysis_progress"] == 100
        assert len(stages) == 8
        assert all(row["status"] == "completed" for row in stages.values())
        assert len(result.output.scenes) == 2
        assert result.output.executive_summary == ""

    @pytest.mark.asyncio
    async def test_two_page_scene_end_to_end(self, offline_pipeline, two_page_script):
        """Test one scene with two cues yields stub characters and no casting."""
        project_id = await new_project(offline_pipeline, two_page_script)

        result = await offline_pipeline.analyze(project_id)
        output = result.output

        assert result.success
        assert len(output.scenes) == 1
        assert output.scenes[0].characters == ["MARCUS", "ELENA"]
        assert output.scenes[0].duration == 2
        assert [c.name for c in output.characters] == ["MARCUS", "ELENA"]
        assert all(c.importance == "minor" for c in output.characters)
        assert output.actor_suggestions == []

        stages = await offline_pipeline.repository.load_stage_results(project_id)
        assert stages["casting_suggestions"]["status"] == "completed"
        assert stages["casting_suggestions"]["result_count"] == 0

    @pytest.mark.asyncio
    async def test_scripted_run(self, scripted_pipeline, sample_script):
        """Test model answers flow through every stage into the store."""
        project_id = await new_project(scripted_pipeline, sample_script)

        result = await scripted_pipeline.analyze(project_id)
        output = result.output
        project = await scripted_pipeline.repository.get_project(project_id)

        assert result.success
        assert [s.id for s in output.scenes] == ["scene_1", "scene_2"]
        assert [c.name for c in output.characters] == ["SARAH", "TOM"]
        assert [s.character_name for s in output.actor_suggestions] == ["SARAH", "TOM"]
        assert [n.scene_id for n in output.vfx_needs] == ["scene_2"]
        assert output.financial_plan.total_budget == 5000000
        assert project["reader_report"] == "A taut corporate drama with one big set piece."
        assert project["projected_roi"] == 1.5
        assert project["total_budget"] == 5000000

    @pytest.mark.asyncio
    async def test_script_text_stored(self, offline_pipeline, sample_script):
        """Test script text passed to the run replaces the project's script."""
        project_id = await new_project(offline_pipeline)

        await offline_pipeline.analyze(project_id, sample_script)
        project = await offline_pipeline.repository.get_project(project_id)

        assert project["script_content"] == sample_script

    @pytest.mark.asyncio
    async def test_missing_script(self, offline_pipeline):
        """Test a project without a script fails at scene extraction."""
        project_id = await new_project(offline_pipeline)

        result = await offline_pipeline.analyze(project_id)
        project = await offline_pipeline.repository.get_project(project_id)
        stages = await offline_pipeline.repository.load_stage_results(project_id)

        assert result.status == PipelineStatus.FAILED
        assert result.metadata["failed_step"] == "scene_extraction"
        assert project["status"] == "failed"
        assert "No script content" in project["error_message"]
        assert stages["scene_extraction"]["status"] == "failed"

    @pytest.mark.asyncio
    async def test_unknown_project(self, offline_pipeline):
        """Test an unknown project is reported as a failed run."""
        result = await offline_pipeline.analyze("missing")

        assert result.status == PipelineStatus.FAILED
        assert result.metadata["error_type"] == "ProjectNotFoundError"

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_run(self, unconfigured_client, memory_store, sample_script):
        """Test a stage without a provider fails the project with partial results kept."""
        pipeline = ScriptAnalysisPipeline(unconfigured_client, memory_store)
        project_id = await new_project(pipeline, sample_script)

        result = await pipeline.analyze(project_id)
        project = await pipeline.repository.get_project(project_id)
        stages = await pipeline.repository.load_stage_results(project_id)

        assert result.status == PipelineStatus.FAILED
        assert result.metadata["error_type"] == "CapabilityUnavailable"
        assert project["status"] == "failed"
        assert stages["scene_extraction"]["status"] == "completed"
        assert stages["character_analysis"]["status"] == "failed"
        assert memory_store.count(Tables.SCENES) == 2

    @pytest.mark.asyncio
    async def test_stage_deadline_fails_run(
        self, make_provider, responder, scripted_responses, memory_store, sample_script
    ):
        """Test the client's per-stage timeout is what bounds a slow stage."""
        config = get_default_config()
        config.stages[StageName.CHARACTER_ANALYSIS].timeout_seconds = 0.05
        slow = make_provider(LLMProvider.OPENAI, responder(scripted_responses), delay=0.2)
        pipeline = ScriptAnalysisPipeline(
            GenerationClient(config, providers={LLMProvider.OPENAI: slow}), memory_store
        )
        project_id = await new_project(pipeline, sample_script)

        result = await pipeline.analyze(project_id)
        stages = await pipeline.repository.load_stage_results(project_id)

        assert result.status == PipelineStatus.FAILED
        assert result.metadata["error_type"] == "GenerationFailed"
        assert "timed out" in result.error
        assert stages["scene_extraction"]["status"] == "completed"
        assert stages["character_analysis"]["status"] == "failed"

    @pytest.mark.asyncio
    async def test_resume_skips_completed(
        self, make_provider, make_client, responder, scripted_responses, memory_store, sample_script
    ):
        """Test a resumed run reloads finished stages instead of repeating them."""
        broken = dict(scripted_responses, vfx_analysis=ProviderError("openai", "overloaded"))
        first = ScriptAnalysisPipeline(make_client(make_provider(responses=responder(broken))), memory_store)
        project_id = await new_project(first, sample_script)

        failed = await first.analyze(project_id)
        assert failed.metadata["failed_step"] == "vfx_analysis"

        provider = make_provider(responses=responder(scripted_responses))
        second = ScriptAnalysisPipeline(make_client(provider), memory_store)
        result = await second.analyze(project_id, resume=True)

        assert result.success
        assert result.output.skipped_stages == [
            "scene_extraction", "character_analysis", "casting_suggestions"
        ]
        assert [c.name for c in result.output.characters] == ["SARAH", "TOM"]
        assert memory_store.count(Tables.SCENES) == 2
        assert not any(c["prompt"].startswith("Break the following screenplay") for c in provider.calls)

    @pytest.mark.asyncio
    async def test_cancel(self, offline_pipeline, sample_script):
        """Test cancelling marks the next stage cancelled and the project failed."""
        project_id = await new_project(offline_pipeline, sample_script)
        offline_pipeline.set_progress_callback(
            lambda p: offline_pipeline.cancel() if p["step"] == "character_analysis" else None
        )

        result = await offline_pipeline.analyze(project_id)
        project = await offline_pipeline.repository.get_project(project_id)
        stages = await offline_pipeline.repository.load_stage_results(project_id)

        assert result.status == PipelineStatus.CANCELLED
        assert project["status"] == "failed"
        assert project["error_message"] == "Analysis cancelled"
        assert stages["character_analysis"]["status"] == "completed"
        assert stages["casting_suggestions"]["status"] == "cancelled"
        assert "vfx_analysis" not in stages


class TestSingleStages:
    """Tests for the per-stage operations."""

    @pytest.mark.asyncio
    async def test_scene_extraction_with_script(self, offline_pipeline, sample_script):
        """Test script text given to the stage is stored on the project."""
        project_id = await new_project(offline_pipeline)

        scenes = await offline_pipeline.run_scene_extraction(project_id, sample_script)
        project = await offline_pipeline.repository.get_project(project_id)

        assert len(scenes) == 2
        assert project["script_content"] == sample_script
        assert project["workflow_status"] == "scene_extraction"
        assert project["analysis_progress"] == 12

    @pytest.mark.asyncio
    async def test_scene_extraction_without_script(self, offline_pipeline):
        project_id = await new_project(offline_pipeline)

        with pytest.raises(PreconditionNotMet):
            await offline_pipeline.run_scene_extraction(project_id)

    @pytest.mark.asyncio
    async def test_unknown_project(self, offline_pipeline):
        with pytest.raises(ProjectNotFoundError):
            await offline_pipeline.run_vfx_analysis("missing")

    @pytest.mark.asyncio
    async def test_casting_without_characters(self, offline_pipeline, sample_script):
        """Test casting before character analysis is a precondition failure."""
        project_id = await new_project(offline_pipeline, sample_script)
        await offline_pipeline.run_scene_extraction(project_id)

        with pytest.raises(PreconditionNotMet):
            await offline_pipeline.run_casting(project_id)

        stages = await offline_pipeline.repository.load_stage_results(project_id)
        assert stages["casting_suggestions"]["status"] == "failed"

    @pytest.mark.asyncio
    async def test_financial_planning_needs_vfx_and_placement(
        self, scripted_pipeline, scripted_provider, memory_store, sample_script
    ):
        """Test a plan is refused until VFX analysis and product placement have run."""
        project_id = await new_project(scripted_pipeline, sample_script)
        await scripted_pipeline.run_scene_extraction(project_id)

        with pytest.raises(PreconditionNotMet) as exc_info:
            await scripted_pipeline.run_financial_planning(project_id)

        stages = await scripted_pipeline.repository.load_stage_results(project_id)
        assert exc_info.value.details == {"stage": "financial_planning"}
        assert "vfx_analysis" in exc_info.value.message
        assert "product_placement" in exc_info.value.message
        assert stages["financial_planning"]["status"] == "failed"
        assert memory_store.count(Tables.FINANCIAL_PLANS) == 0
        assert not any(call["prompt"].startswith("Build a financial plan") for call in scripted_provider.calls)

    @pytest.mark.asyncio
    async def test_financial_planning_after_empty_upstream(self, offline_pipeline, sample_script):
        """Test empty VFX and placement results still satisfy the plan."""
        project_id = await new_project(offline_pipeline, sample_script)
        await offline_pipeline.run_scene_extraction(project_id)
        await offline_pipeline.run_vfx_analysis(project_id)
        await offline_pipeline.run_product_placement(project_id)

        plan = await offline_pipeline.run_financial_planning(project_id)

        assert plan.total_budget == 0

    @pytest.mark.asyncio
    async def test_rerun_is_append_only(self, scripted_pipeline, memory_store, sample_script):
        """Test re-running one stage leaves other stages' records alone."""
        project_id = await new_project(scripted_pipeline, sample_script)
        await scripted_pipeline.run_stage("scene_extraction", project_id)
        await scripted_pipeline.run_stage("character_analysis", project_id)
        await scripted_pipeline.run_stage(StageName.VFX_ANALYSIS, project_id)
        await scripted_pipeline.run_stage("vfx_analysis", project_id)

        assert memory_store.count(Tables.SCENES) == 2
        assert memory_store.count(Tables.CHARACTERS) == 2
        assert memory_store.count(Tables.VFX_NEEDS) == 2

    @pytest.mark.asyncio
    async def test_summary_completes_project(self, scripted_pipeline, sample_script):
        """Test the summary stage marks the project completed."""
        project_id = await new_project(scripted_pipeline, sample_script)
        await scripted_pipeline.run_stage("scene_extraction", project_id)

        summary = await scripted_pipeline.run_stage("project_summary", project_id)
        project = await scripted_pipeline.repository.get_project(project_id)

        assert summary == "A taut corporate drama with one big set piece."
        assert project["status"] == "completed"
        assert project["reader_report"] == summary

    @pytest.mark.asyncio
    async def test_missing_provider_raises(self, unconfigured_client, memory_store, sample_script):
        """Test a single stage surfaces missing credentials to the caller."""
        pipeline = ScriptAnalysisPipeline(unconfigured_client, memory_store)
        project_id = await new_project(pipeline, sample_script)
        await pipeline.run_scene_extraction(project_id)

        with pytest.raises(CapabilityUnavailable):
            await pipeline.run_character_analysis(project_id)

        project = await pipeline.repository.get_project(project_id)
        assert project["status"] == "failed"

    @pytest.mark.asyncio
    async def test_unknown_stage(self, offline_pipeline):
        with pytest.raises(UnknownStageError):
            await offline_pipeline.run_stage("color_grading", "any")

    @pytest.mark.asyncio
    async def test_user_actor_is_not_a_stage(self, offline_pipeline):
        with pytest.raises(UnknownStageError):
            await offline_pipeline.run_stage(StageName.USER_ACTOR_EVALUATION, "any")


class TestUserActor:
    """Tests for add_user_actor()."""

    @pytest.mark.asyncio
    async def test_adds_candidate(self, scripted_pipeline, sample_script):
        """Test the evaluated actor joins the character's existing candidates."""
        project_id = await new_project(scripted_pipeline, sample_script)
        for stage in ("scene_extraction", "character_analysis", "casting_suggestions"):
            await scripted_pipeline.run_stage(stage, project_id)

        candidate, suggestion = await scripted_pipeline.add_user_actor(project_id, "sarah", "My Pick")

        assert candidate.name == "My Pick"
        assert candidate.user_suggested is True
        assert candidate.fit_score == 88
        assert suggestion.character_name == "SARAH"
        assert [c.name for c in suggestion.candidates] == ["Actor One", "Actor Two", "My Pick"]

    @pytest.mark.asyncio
    async def test_offline_keeps_suggestion(self, offline_pipeline, sample_script):
        """Test an unavailable model still records the user's actor."""
        project_id = await new_project(offline_pipeline, sample_script)
        await offline_pipeline.run_stage("scene_extraction", project_id)
        await offline_pipeline.run_stage("character_analysis", project_id)

        candidate, suggestion = await offline_pipeline.add_user_actor(project_id, "TOM", "My Pick")

        assert candidate.reasoning == "Evaluation unavailable"
        assert [c.name for c in suggestion.candidates] == ["My Pick"]

    @pytest.mark.asyncio
    async def test_unknown_character(self, offline_pipeline, sample_script):
        project_id = await new_project(offline_pipeline, sample_script)

        with pytest.raises(PreconditionNotMet) as exc_info:
            await offline_pipeline.add_user_actor(project_id, "NOBODY", "My Pick")

        assert "run character analysis first" in exc_info.value.message
