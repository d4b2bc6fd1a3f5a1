"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from agrivoice.application.interfaces import InteractionRepositoryInterface
from agrivoice.config.dependencies import get_interaction_repository, get_session_pipeline
from agrivoice.pipelines.session import SessionPipeline


def get_pipeline() -> SessionPipeline:
    """Resolve the process-wide session pipeline."""

    return get_session_pipeline()


def get_repository() -> InteractionRepositoryInterface:
    """Resolve the interaction store shared with the pipeline."""

    return get_interaction_repository()


PipelineDep = Annotated[SessionPipeline, Depends(get_pipeline)]
RepositoryDep = Annotated[InteractionRepositoryInterface, Depends(get_repository)]


__all__ = ["get_pipeline", "get_repository", "PipelineDep", "RepositoryDep"]
