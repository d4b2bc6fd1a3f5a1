"""Voice session pipeline package.

Modules are organised by the order a session moves through them:

1. `pipeline` – `SessionPipeline.submit` creates the record and spawns the task.
2. `stages` – one port call per stage (transcribe, advise, synthesize).
3. `flow` – ordered stage metadata used for logs, metrics and docs.
4. `types` / `errors` – receipts, snapshots and the errors callers handle.

`ingestion` holds the HTTP upload helpers used by the sessions controller.
"""

from .errors import (
    InvalidSubmissionError,
    SessionNotFoundError,
    SessionTimeoutError,
    StageFailure,
)
from .flow import PipelineStage, SessionPipelineFlow, StageName
from .ingestion import read_audio_bytes, resolve_content_type
from .pipeline import DEFAULT_LANGUAGES, SessionPipeline
from .types import SessionJob, SessionSnapshot, SubmitReceipt

__all__ = [
    "DEFAULT_LANGUAGES",
    "InvalidSubmissionError",
    "PipelineStage",
    "SessionJob",
    "SessionNotFoundError",
    "SessionPipeline",
    "SessionPipelineFlow",
    "SessionSnapshot",
    "SessionTimeoutError",
    "StageFailure",
    "StageName",
    "SubmitReceipt",
    "read_audio_bytes",
    "resolve_content_type",
]
