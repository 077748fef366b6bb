"""
Vadis Script Analysis Pipeline

Runs the analysis stages in dependency order and persists each stage's
output as soon as it completes:

    scenes -> characters -> casting, VFX, product placement, locations
           -> financial plan -> executive summary

Every stage is also exposed as its own operation that reads its upstream
records from the store, so a caller can resume after a failure or re-run a
single stage without repeating earlier ones. Partial completion is a valid,
inspectable state; nothing is rolled back.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar, Union

from vadis.analysis.models import (
    ActorCandidate,
    ActorSuggestion,
    Character,
    FinancialPlan,
    LocationSuggestion,
    ProductPlacement,
    RelationshipEdge,
    Scene,
    VFXNeed,
)
from vadis.core.constants import STAGE_ORDER, ProjectStatus, StageName, StageStatus
from vadis.core.exceptions import (
    PipelineCancelled,
    PreconditionNotMet,
    UnknownStageError,
)
from vadis.core.logging_config import get_logger
from vadis.llm.generation_client import GenerationClient
from vadis.stages import (
    CharacterAnalysis,
    analyze_characters,
    analyze_product_placement,
    analyze_vfx,
    evaluate_user_actor,
    extract_scenes,
    plan_financials,
    suggest_casting,
    suggest_locations,
    write_executive_summary,
)
from vadis.storage.base import ProjectStore
from vadis.storage.repository import AnalysisRepository

from .base_pipeline import BasePipeline, PipelineStep

logger = get_logger("pipelines.analysis")

T = TypeVar('T')

NO_SCRIPT_MESSAGE = "No script content provided. Upload a script before scene extraction."

# Their record sets may be empty, but the stages themselves must have run
FINANCIAL_UPSTREAM = (StageName.VFX_ANALYSIS, StageName.PRODUCT_PLACEMENT)

STAGE_DESCRIPTIONS = {
    StageName.SCENE_EXTRACTION: "Segment the script into scenes",
    StageName.CHARACTER_ANALYSIS: "Profile characters and relationships",
    StageName.CASTING_SUGGESTIONS: "Suggest actors per character",
    StageName.VFX_ANALYSIS: "Identify visual effects per scene",
    StageName.PRODUCT_PLACEMENT: "Find product placement opportunities",
    StageName.LOCATION_ANALYSIS: "Suggest filming locations",
    StageName.FINANCIAL_PLANNING: "Build the budget and revenue plan",
    StageName.PROJECT_SUMMARY: "Write the executive summary",
}


@dataclass
class AnalysisInput:
    """Input for a full analysis run."""
    project_id: str
    script_text: Optional[str] = None
    # Skip stages whose results are already recorded as completed
    resume: bool = False


@dataclass
class AnalysisOutput:
    """Everything a run produced or loaded."""
    project_id: str
    script_text: str = ""
    scenes: List[Scene] = field(default_factory=list)
    characters: List[Character] = field(default_factory=list)
    relationships: List[RelationshipEdge] = field(default_factory=list)
    actor_suggestions: List[ActorSuggestion] = field(default_factory=list)
    vfx_needs: List[VFXNeed] = field(default_factory=list)
    product_placements: List[ProductPlacement] = field(default_factory=list)
    location_suggestions: List[LocationSuggestion] = field(default_factory=list)
    financial_plan: Optional[FinancialPlan] = None
    executive_summary: str = ""
    skipped_stages: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'project_id': self.project_id,
            'scenes': [s.to_dict() for s in self.scenes],
            'characters': [c.to_dict() for c in self.characters],
            'relationships': [r.to_dict() for r in self.relationships],
            'actor_suggestions': [a.to_dict() for a in self.actor_suggestions],
            'vfx_needs': [v.to_dict() for v in self.vfx_needs],
            'product_placements': [p.to_dict() for p in self.product_placements],
            'location_suggestions': [loc.to_dict() for loc in self.location_suggestions],
            'financial_plan': self.financial_plan.to_dict() if self.financial_plan else None,
            'executive_summary': self.executive_summary,
            'skipped_stages': list(self.skipped_stages),
        }


class ScriptAnalysisPipeline(BasePipeline[AnalysisInput, AnalysisOutput]):
    """
    Orchestrates the analysis stages for one project at a time.

    The generation client and store are injected; the pipeline keeps no
    state shared between projects. Use one instance per concurrent run so
    cancel() only affects that run.
    """

    def __init__(self, client: GenerationClient, store: ProjectStore):
        self.client = client
        self.repository = AnalysisRepository(store)
        super().__init__("script_analysis")

    def _define_steps(self) -> None:
        self._steps = [
            PipelineStep(
                name=stage.value,
                description=STAGE_DESCRIPTIONS[stage],
                # The summary degrades to "" on its own; it never fails the run
                required=stage != StageName.PROJECT_SUMMARY,
            )
            for stage in STAGE_ORDER
        ]

    # =========================================================================
    # FULL RUN
    # =========================================================================

    async def _on_start(self, input_data: AnalysisInput, context: Dict[str, Any]) -> AnalysisOutput:
        project = await self.repository.get_project(input_data.project_id)

        script_text = input_data.script_text or project.get("script_content") or ""
        updates: Dict[str, Any] = {
            "status": ProjectStatus.ANALYZING.value,
            "error_message": None,
        }
        if input_data.script_text:
            updates["script_content"] = input_data.script_text
        await self.repository.update_project(input_data.project_id, **updates)

        completed = set()
        if input_data.resume:
            results = await self.repository.load_stage_results(input_data.project_id)
            completed = {
                name for name, row in results.items()
                if row.get("status") == StageStatus.COMPLETED.value
            }
        context["completed_stages"] = completed

        logger.info(
            f"Analyzing project {input_data.project_id}"
            + (f" (resuming, {len(completed)} stages done)" if completed else "")
        )
        return AnalysisOutput(project_id=input_data.project_id, script_text=script_text)

    async def _execute_step(
        self,
        step: PipelineStep,
        output: AnalysisOutput,
        context: Dict[str, Any]
    ) -> AnalysisOutput:
        stage = StageName(step.name)
        project_id = output.project_id

        if stage.value in context.get("completed_stages", set()):
            await self._load_stage_output(stage, output)
            output.skipped_stages.append(stage.value)
            logger.info(f"Skipping completed stage: {stage.value}")
            return output

        if stage == StageName.SCENE_EXTRACTION:
            output.scenes = await self._scene_extraction(project_id, output.script_text)
        elif stage == StageName.CHARACTER_ANALYSIS:
            analysis = await self._character_analysis(project_id, output.scenes)
            output.characters = analysis.characters
            output.relationships = analysis.relationships
        elif stage == StageName.CASTING_SUGGESTIONS:
            output.actor_suggestions = await self._casting(project_id, output.characters)
        elif stage == StageName.VFX_ANALYSIS:
            output.vfx_needs = await self._vfx_analysis(project_id, output.scenes)
        elif stage == StageName.PRODUCT_PLACEMENT:
            output.product_placements = await self._product_placement(project_id, output.scenes)
        elif stage == StageName.LOCATION_ANALYSIS:
            output.location_suggestions = await self._location_analysis(project_id, output.scenes)
        elif stage == StageName.FINANCIAL_PLANNING:
            output.financial_plan = await self._financial_planning(project_id, output)
        elif stage == StageName.PROJECT_SUMMARY:
            output.executive_summary = await self._executive_summary(
                project_id, output, output.financial_plan or FinancialPlan()
            )

        return output

    async def _on_complete(self, output: AnalysisOutput, context: Dict[str, Any]) -> None:
        await self.repository.update_project(
            output.project_id,
            status=ProjectStatus.COMPLETED.value,
            workflow_status="completed",
            analysis_progress=100,
            reader_report=output.executive_summary,
        )
        logger.info(f"Analysis completed for project {output.project_id}")

    async def _on_failure(self, error: Exception, step: Optional[PipelineStep], context: Dict[str, Any]) -> None:
        project_id = context.get("project_id")
        if project_id:
            await self._mark_project_failed(project_id, error)

    async def _on_cancel(self, step: PipelineStep, context: Dict[str, Any]) -> None:
        project_id = context["project_id"]
        stage = StageName(step.name)
        error = PipelineCancelled(stage.value)
        await self.repository.mark_stage(project_id, stage, StageStatus.CANCELLED, error_message=error.message)
        await self._mark_project_failed(project_id, error)

    async def analyze(
        self,
        project_id: str,
        script_text: Optional[str] = None,
        resume: bool = False
    ):
        """
        Run every stage for a project.

        Returns:
            PipelineResult[AnalysisOutput]; failures are reported in the
            result and on the project record, never raised.
        """
        return await self.run(
            AnalysisInput(project_id=project_id, script_text=script_text, resume=resume),
            context={"project_id": project_id},
        )

    async def _load_stage_output(self, stage: StageName, output: AnalysisOutput) -> None:
        """Fill the output with a completed stage's persisted records."""
        project_id = output.project_id
        repo = self.repository

        if stage == StageName.SCENE_EXTRACTION:
            output.scenes = await repo.load_scenes(project_id)
        elif stage == StageName.CHARACTER_ANALYSIS:
            output.characters = await repo.load_characters(project_id)
            output.relationships = await repo.load_relationships(project_id)
        elif stage == StageName.CASTING_SUGGESTIONS:
            output.actor_suggestions = await repo.load_actor_suggestions(project_id)
        elif stage == StageName.VFX_ANALYSIS:
            output.vfx_needs = await repo.load_vfx_needs(project_id)
        elif stage == StageName.PRODUCT_PLACEMENT:
            output.product_placements = await repo.load_product_placements(project_id)
        elif stage == StageName.LOCATION_ANALYSIS:
            output.location_suggestions = await repo.load_location_suggestions(project_id)
        elif stage == StageName.FINANCIAL_PLANNING:
            output.financial_plan = await repo.load_financial_plan(project_id)
        elif stage == StageName.PROJECT_SUMMARY:
            project = await repo.get_project(project_id)
            output.executive_summary = project.get("reader_report") or ""

    # =========================================================================
    # STAGE BOUNDARY
    # =========================================================================

    async def _stage(
        self,
        project_id: str,
        stage: StageName,
        produce: Callable[[], Awaitable[T]],
        persist: Callable[[T], Awaitable[Any]],
        count: Callable[[T], int],
    ) -> T:
        """
        Run one stage: record it as processing, produce, persist, record the outcome.

        A failure marks the stage and the project failed, then re-raises for
        the caller to report.
        """
        await self.repository.mark_stage(project_id, stage, StageStatus.PROCESSING)
        await self.repository.update_project(project_id, workflow_status=stage.value)
        logger.info(f"Stage started: {stage.value} (project {project_id})")

        try:
            result = await produce()
            await persist(result)
        except Exception as e:
            logger.error(f"Stage failed: {stage.value} - {e}")
            await self.repository.mark_stage(
                project_id, stage, StageStatus.FAILED, error_message=getattr(e, "message", str(e))
            )
            await self._mark_project_failed(project_id, e)
            raise

        result_count = count(result)
        await self.repository.mark_stage(
            project_id, stage, StageStatus.COMPLETED, result_count=result_count
        )
        await self._update_progress(project_id)
        logger.info(f"Stage completed: {stage.value} ({result_count} results)")
        return result

    async def _require_completed(
        self, project_id: str, stage: StageName, upstream: Tuple[StageName, ...]
    ) -> None:
        """Raise PreconditionNotMet unless every upstream stage has completed."""
        results = await self.repository.load_stage_results(project_id)
        missing = [
            name.value for name in upstream
            if results.get(name.value, {}).get("status") != StageStatus.COMPLETED.value
        ]
        if missing:
            raise PreconditionNotMet(
                stage.value, f"Upstream stages not completed: {', '.join(missing)}. Run them first."
            )

    async def _mark_project_failed(self, project_id: str, error: Exception) -> None:
        await self.repository.update_project(
            project_id,
            status=ProjectStatus.FAILED.value,
            error_message=getattr(error, "message", str(error)),
        )

    async def _update_progress(self, project_id: str) -> None:
        results = await self.repository.load_stage_results(project_id)
        done = sum(
            1 for stage in STAGE_ORDER
            if results.get(stage.value, {}).get("status") == StageStatus.COMPLETED.value
        )
        await self.repository.update_project(
            project_id, analysis_progress=round(done / len(STAGE_ORDER) * 100)
        )

    # =========================================================================
    # STAGES (upstream data supplied)
    # =========================================================================

    async def _scene_extraction(self, project_id: str, script_text: str) -> List[Scene]:
        async def produce():
            if not script_text or not script_text.strip():
                raise PreconditionNotMet(StageName.SCENE_EXTRACTION.value, NO_SCRIPT_MESSAGE)
            return await extract_scenes(self.client, script_text)

        async def persist(scenes):
            await self.repository.save_scenes(project_id, scenes)

        return await self._stage(project_id, StageName.SCENE_EXTRACTION, produce, persist, len)

    async def _character_analysis(self, project_id: str, scenes: List[Scene]) -> CharacterAnalysis:
        async def persist(analysis: CharacterAnalysis):
            await self.repository.save_characters(project_id, analysis.characters)
            await self.repository.save_relationships(project_id, analysis.relationships)

        return await self._stage(
            project_id,
            StageName.CHARACTER_ANALYSIS,
            lambda: analyze_characters(self.client, scenes),
            persist,
            lambda analysis: len(analysis.characters),
        )

    async def _casting(self, project_id: str, characters: List[Character]) -> List[ActorSuggestion]:
        async def persist(suggestions):
            await self.repository.save_actor_suggestions(project_id, suggestions)

        return await self._stage(
            project_id,
            StageName.CASTING_SUGGESTIONS,
            lambda: suggest_casting(self.client, characters),
            persist,
            len,
        )

    async def _vfx_analysis(self, project_id: str, scenes: List[Scene]) -> List[VFXNeed]:
        async def persist(needs):
            await self.repository.save_vfx_needs(project_id, needs)

        return await self._stage(
            project_id, StageName.VFX_ANALYSIS, lambda: analyze_vfx(self.client, scenes), persist, len
        )

    async def _product_placement(self, project_id: str, scenes: List[Scene]) -> List[ProductPlacement]:
        async def persist(placements):
            await self.repository.save_product_placements(project_id, placements)

        return await self._stage(
            project_id,
            StageName.PRODUCT_PLACEMENT,
            lambda: analyze_product_placement(self.client, scenes),
            persist,
            len,
        )

    async def _location_analysis(self, project_id: str, scenes: List[Scene]) -> List[LocationSuggestion]:
        async def persist(suggestions):
            await self.repository.save_location_suggestions(project_id, suggestions)

        return await self._stage(
            project_id,
            StageName.LOCATION_ANALYSIS,
            lambda: suggest_locations(self.client, scenes),
            persist,
            len,
        )

    async def _financial_planning(self, project_id: str, data: AnalysisOutput) -> FinancialPlan:
        async def produce():
            await self._require_completed(project_id, StageName.FINANCIAL_PLANNING, FINANCIAL_UPSTREAM)
            return await plan_financials(
                self.client,
                data.scenes,
                data.characters,
                data.vfx_needs,
                data.actor_suggestions,
                data.location_suggestions,
                data.product_placements,
            )

        async def persist(plan: FinancialPlan):
            await self.repository.save_financial_plan(project_id, plan)
            await self.repository.update_project(
                project_id, total_budget=plan.total_budget, projected_roi=plan.roi
            )

        return await self._stage(project_id, StageName.FINANCIAL_PLANNING, produce, persist, lambda plan: 1)

    async def _executive_summary(self, project_id: str, data: AnalysisOutput, plan: FinancialPlan) -> str:
        async def produce():
            return await write_executive_summary(
                self.client,
                data.scenes,
                data.characters,
                data.actor_suggestions,
                data.vfx_needs,
                data.product_placements,
                data.location_suggestions,
                plan,
            )

        async def persist(summary: str):
            await self.repository.update_project(project_id, reader_report=summary)

        return await self._stage(
            project_id, StageName.PROJECT_SUMMARY, produce, persist, lambda summary: 1 if summary else 0
        )

    # =========================================================================
    # STAGES (upstream data loaded from the store)
    # =========================================================================

    async def _load_all(self, project_id: str) -> AnalysisOutput:
        repo = self.repository
        return AnalysisOutput(
            project_id=project_id,
            scenes=await repo.load_scenes(project_id),
            characters=await repo.load_characters(project_id),
            relationships=await repo.load_relationships(project_id),
            actor_suggestions=await repo.load_actor_suggestions(project_id),
            vfx_needs=await repo.load_vfx_needs(project_id),
            product_placements=await repo.load_product_placements(project_id),
            location_suggestions=await repo.load_location_suggestions(project_id),
            financial_plan=await repo.load_financial_plan(project_id),
        )

    async def run_scene_extraction(self, project_id: str, script_text: Optional[str] = None) -> List[Scene]:
        project = await self.repository.get_project(project_id)
        if script_text:
            await self.repository.update_project(project_id, script_content=script_text)
        else:
            script_text = project.get("script_content") or ""
        return await self._scene_extraction(project_id, script_text)

    async def run_character_analysis(self, project_id: str) -> CharacterAnalysis:
        await self.repository.get_project(project_id)
        scenes = await self.repository.load_scenes(project_id)
        return await self._character_analysis(project_id, scenes)

    async def run_casting(self, project_id: str) -> List[ActorSuggestion]:
        await self.repository.get_project(project_id)
        characters = await self.repository.load_characters(project_id)
        return await self._casting(project_id, characters)

    async def run_vfx_analysis(self, project_id: str) -> List[VFXNeed]:
        await self.repository.get_project(project_id)
        scenes = await self.repository.load_scenes(project_id)
        return await self._vfx_analysis(project_id, scenes)

    async def run_product_placement(self, project_id: str) -> List[ProductPlacement]:
        await self.repository.get_project(project_id)
        scenes = await self.repository.load_scenes(project_id)
        return await self._product_placement(project_id, scenes)

    async def run_location_analysis(self, project_id: str) -> List[LocationSuggestion]:
        await self.repository.get_project(project_id)
        scenes = await self.repository.load_scenes(project_id)
        return await self._location_analysis(project_id, scenes)

    async def run_financial_planning(self, project_id: str) -> FinancialPlan:
        await self.repository.get_project(project_id)
        data = await self._load_all(project_id)
        return await self._financial_planning(project_id, data)

    async def run_executive_summary(self, project_id: str) -> str:
        await self.repository.get_project(project_id)
        data = await self._load_all(project_id)
        summary = await self._executive_summary(
            project_id, data, data.financial_plan or FinancialPlan()
        )
        await self.repository.update_project(
            project_id, status=ProjectStatus.COMPLETED.value, workflow_status="completed"
        )
        return summary

    async def run_stage(
        self,
        stage: Union[str, StageName],
        project_id: str,
        script_text: Optional[str] = None
    ) -> Any:
        """Run a single stage by name against already-persisted upstream data."""
        try:
            stage = StageName(stage) if isinstance(stage, str) else stage
        except ValueError:
            raise UnknownStageError(str(stage))

        if stage == StageName.SCENE_EXTRACTION:
            return await self.run_scene_extraction(project_id, script_text)

        runners = {
            StageName.CHARACTER_ANALYSIS: self.run_character_analysis,
            StageName.CASTING_SUGGESTIONS: self.run_casting,
            StageName.VFX_ANALYSIS: self.run_vfx_analysis,
            StageName.PRODUCT_PLACEMENT: self.run_product_placement,
            StageName.LOCATION_ANALYSIS: self.run_location_analysis,
            StageName.FINANCIAL_PLANNING: self.run_financial_planning,
            StageName.PROJECT_SUMMARY: self.run_executive_summary,
        }
        runner = runners.get(stage)
        if runner is None:
            raise UnknownStageError(stage.value)
        return await runner(project_id)

    # =========================================================================
    # USER-SUGGESTED ACTORS
    # =========================================================================

    async def add_user_actor(
        self,
        project_id: str,
        character_name: str,
        actor_name: str
    ) -> Tuple[ActorCandidate, ActorSuggestion]:
        """
        Evaluate a user's actor suggestion and append it to the character's list.

        Raises:
            PreconditionNotMet: the character has not been analyzed
        """
        await self.repository.get_project(project_id)
        characters = await self.repository.load_characters(project_id)
        character = next(
            (c for c in characters if c.name.lower() == character_name.strip().lower()), None
        )
        if character is None:
            raise PreconditionNotMet(
                StageName.USER_ACTOR_EVALUATION.value,
                f"Character '{character_name}' not found. Please run character analysis first.",
            )

        candidate = await evaluate_user_actor(self.client, character, actor_name.strip())
        suggestion = await self.repository.append_actor_candidate(project_id, character.name, candidate)
        logger.info(f"Added user-suggested actor {candidate.name!r} for {character.name}")
        return candidate, suggestion
