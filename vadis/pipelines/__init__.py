"""
Vadis Pipelines Module

- BasePipeline: step-based execution with progress and cancellation
- ScriptAnalysisPipeline: the screenplay analysis stages, run end to end or one at a time
"""

from .base_pipeline import BasePipeline, PipelineResult, PipelineStatus, PipelineStep
from .analysis_pipeline import AnalysisInput, AnalysisOutput, ScriptAnalysisPipeline

__all__ = [
    'BasePipeline',
    'PipelineResult',
    'PipelineStatus',
    'PipelineStep',
    'AnalysisInput',
    'AnalysisOutput',
    'ScriptAnalysisPipeline',
]
