"""Project workflows: lifecycle, assets, recording and export."""

from .lifecycle import ProjectStateMachine, promote_to_editing_best_effort
from .assets import VideoAssetLifecycleManager
from .recording import RecordingWorkflow
from .export import ClipPlacement, ExportOrchestrator, ProgressRelay
from .projects import create_project_from_template, delete_project

__all__ = [
    "ProjectStateMachine",
    "promote_to_editing_best_effort",
    "VideoAssetLifecycleManager",
    "RecordingWorkflow",
    "ClipPlacement",
    "ExportOrchestrator",
    "ProgressRelay",
    "create_project_from_template",
    "delete_project",
]
