"""Ordered map of the background stages a voice session goes through.

`SessionPipeline.submit` only creates the interaction record; everything
below runs afterwards in a detached task, strictly in this order, and each
stage is one port call followed by one store write:

1. ``transcribe`` – audio clip + language → transcript.
2. ``advise`` – transcript + language → answer text, intent, tags.
3. ``synthesize`` – answer text + language → playable audio reference,
   written together with ``status=completed`` and the processing time.

A failure at any stage writes ``status=failed`` and the later stages never run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List


class StageName(str, Enum):
    TRANSCRIBE = "transcribe"
    ADVISE = "advise"
    SYNTHESIZE = "synthesize"


@dataclass(frozen=True)
class PipelineStage:
    """Human-readable description of one stage in the session pipeline."""

    order: int
    name: StageName
    port: str
    persists: tuple[str, ...]
    summary: str


class SessionPipelineFlow:
    """Stage metadata used for logging, metrics labels and the `/sessions/stages` endpoint."""

    _STAGES: List[PipelineStage] = [
        PipelineStage(
            1,
            StageName.TRANSCRIBE,
            "transcription",
            ("transcript",),
            "Send the recorded clip and language hint to speech-to-text.",
        ),
        PipelineStage(
            2,
            StageName.ADVISE,
            "advisory",
            ("answer_text", "intent", "tags"),
            "Ask the agronomy advisor for an answer and classify the question.",
        ),
        PipelineStage(
            3,
            StageName.SYNTHESIZE,
            "speech_synthesis",
            ("answer_audio_url", "status", "processing_time"),
            "Voice the answer in the caller's language and mark the session completed.",
        ),
    ]

    @classmethod
    def describe(cls) -> Iterable[PipelineStage]:
        """Expose the ordered list of stages for debugging and documentation."""

        return tuple(cls._STAGES)

    @classmethod
    def get(cls, name: StageName) -> PipelineStage:
        for stage in cls._STAGES:
            if stage.name == name:
                return stage
        raise KeyError(name)


__all__ = ["PipelineStage", "SessionPipelineFlow", "StageName"]
