"""
Error types raised by the player solver pipeline.

Two families:
  - PipelineError: something went wrong fetching or analysing the player.
    Never cached, surfaced to callers as a generic server failure.
  - ClientError: deterministic given the request inputs, not worth retrying.
"""
from __future__ import annotations


class LavaToolsError(Exception):
    pass


# ──────────────────────────────
#  Pipeline failures
# ──────────────────────────────
class PipelineError(LavaToolsError):
    pass


class NetworkError(PipelineError):
    """Transport failure or non-success status while downloading a player."""


class ScriptSyntaxError(PipelineError):
    """The player text is not valid JavaScript."""


class StructureError(PipelineError):
    """The player's top-level wrapper has an unrecognised shape."""


class AmbiguityError(PipelineError):
    """More than one structurally distinct candidate for a function family."""

    def __init__(self, family: str, candidates: list[str]):
        self.family = family
        self.candidates = candidates
        super().__init__(
            f"found {len(candidates)} {family} function possibilities: "
            + ", ".join(candidates)
        )


class EvaluationError(PipelineError):
    """The synthesized player module threw while running."""


# ──────────────────────────────
#  Caller-facing failures
# ──────────────────────────────
class ClientError(LavaToolsError):
    pass


class MissingSolverError(ClientError):
    pass


class MissingParameterError(ClientError):
    pass


class TimestampNotFoundError(ClientError):
    pass
