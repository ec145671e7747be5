"""Pipeline orchestration components for the study-material generator."""

from src.pipeline.batch_orchestrator import BatchOrchestrator
from src.pipeline.study_pipeline import StudyMaterialPipeline, build_study_pipeline

__all__ = [
    "BatchOrchestrator",
    "StudyMaterialPipeline",
    "build_study_pipeline",
]
