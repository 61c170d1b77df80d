"""Stage status helpers.

Stage names and statuses outside of StageName / StageStatus are treated as
opaque strings. None of these helpers raise on unknown values; position in
``Deployment.stages`` is used when the status alone says nothing.
"""

from __future__ import annotations

from pagesdeploy.models.deployment import Deployment, Stage, StageName, StageStatus

COMPLETE_STATUSES = frozenset({StageStatus.SUCCESS.value, StageStatus.FAILURE.value})
STARTED_STATUSES = COMPLETE_STATUSES | {StageStatus.ACTIVE.value}

STAGE_LABELS: dict[str, str] = {
    StageName.QUEUED.value: "Queued",
    StageName.INITIALIZE.value: "Initialize",
    StageName.CLONE_REPO.value: "Clone Repo",
    StageName.BUILD.value: "Build",
    StageName.DEPLOY.value: "Deploy",
}


def is_stage_complete(stage: Stage) -> bool:
    """Return True if the stage ended, successfully or not."""
    return stage.status in COMPLETE_STATUSES


def is_stage_success(stage: Stage | None) -> bool:
    """Return True if the stage ended successfully."""
    return stage is not None and stage.status == StageStatus.SUCCESS.value


def is_stage_failure(stage: Stage | None) -> bool:
    """Return True if the stage failed. No later stage will start."""
    return stage is not None and stage.status == StageStatus.FAILURE.value


def is_queued_stage(stage: Stage) -> bool:
    """Return True for the queued stage, which often has no log lines."""
    return stage.name == StageName.QUEUED.value


def is_stage_started(stage: Stage) -> bool:
    """Return True once the platform reports the stage as started."""
    return stage.started_on is not None or stage.status in STARTED_STATUSES


def find_stage(deployment: Deployment, name: str) -> Stage | None:
    """Return the named stage of a deployment snapshot, if declared."""
    for stage in deployment.stages:
        if stage.name == name:
            return stage
    return None


def stage_index(deployment: Deployment, name: str) -> int:
    """Return the position of a stage in the deployment, or -1."""
    for index, stage in enumerate(deployment.stages):
        if stage.name == name:
            return index
    return -1


def is_past_stage(deployment: Deployment, name: str) -> bool:
    """Return True if the deployment's latest stage comes after ``name``.

    Used to notice that the platform moved on from a stage whose status
    never reached success or failure.
    """
    if deployment.latest_stage is None:
        return False
    latest_index = stage_index(deployment, deployment.latest_stage.name)
    return latest_index > stage_index(deployment, name)


def display_stage_name(name: str) -> str:
    """Return the log group label for a stage."""
    return STAGE_LABELS.get(name, name)
