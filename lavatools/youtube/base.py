"""
Core types for the player solver pipeline.

  - SyntaxNode: an ESTree node frozen into plain dicts/lists ("type" is the tag)
  - ExtractedFunction: what an extractor found, renderable as a JS forwarder
  - PlayerModule: the trimmed, replayable player program
  - SolverPair: the two callables handed back to API callers
"""
from __future__ import annotations
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

SyntaxNode = dict[str, Any]

# Keys carrying source positions. Never part of structural identity.
POSITION_KEYS = frozenset({"range", "loc"})

FAMILIES = ("n", "sig")


def strip_positions(value):
    """Copy of a node (or list of nodes) without position information."""
    if isinstance(value, dict):
        return {k: strip_positions(v) for k, v in value.items() if k not in POSITION_KEYS}
    if isinstance(value, list):
        return [strip_positions(v) for v in value]
    return value


# ──────────────────────────────
#  Parsed program
# ──────────────────────────────
@dataclass(frozen=True)
class Program:
    source: str
    body: list[SyntaxNode]


@dataclass(frozen=True)
class CoreBlock:
    """De-wrapped top-level statements of the player plus the wrapper text around them."""
    statements: list[SyntaxNode]
    prefix: str                       # source up to and including the block's "{"
    suffix: str                       # source from the block's "}" to the end
    source: str

    def text_of(self, node: SyntaxNode) -> str:
        start, end = node["range"]
        return self.source[start:end]


# ──────────────────────────────
#  Extraction output
# ──────────────────────────────
@dataclass(frozen=True)
class ExtractedFunction:
    family: str                       # "n" | "sig"
    name: str                         # helper the forwarder calls
    leading_argument: Optional[SyntaxNode] = None   # literal passed before the input

    def render(self) -> str:
        param = self.family
        args = [param]
        if self.leading_argument is not None:
            args.insert(0, _render_literal(self.leading_argument))
        return f"function ({param}) {{ return {self.name}({', '.join(args)}); }}"


def _render_literal(node: SyntaxNode) -> str:
    raw = node.get("raw")
    if raw is not None:
        return raw
    return json.dumps(node.get("value"))


# ──────────────────────────────
#  Synthesized module
# ──────────────────────────────
@dataclass
class PlayerModule:
    preamble: tuple[str, ...]
    prefix: str
    statements: list[str] = field(default_factory=list)
    exposures: list[str] = field(default_factory=list)
    suffix: str = ""

    def render(self) -> str:
        body = "\n".join(self.statements + self.exposures)
        return "\n".join(self.preamble) + "\n" + self.prefix + "\n" + body + "\n" + self.suffix


# ──────────────────────────────
#  Final output
# ──────────────────────────────
Solver = Callable[[str], str]


@dataclass(frozen=True)
class SolverPair:
    n: Optional[Solver] = None
    sig: Optional[Solver] = None

    def families(self) -> dict[str, bool]:
        return {"n": self.n is not None, "sig": self.sig is not None}


# ──────────────────────────────
#  Operation results
# ──────────────────────────────
@dataclass
class DecryptResult:
    decrypted_signature: str = ""
    decrypted_n_sig: str = ""

    def to_dict(self):
        return {
            "decrypted_signature": self.decrypted_signature,
            "decrypted_n_sig": self.decrypted_n_sig,
        }


@dataclass
class ResolveResult:
    resolved_url: str

    def to_dict(self):
        return {"resolved_url": self.resolved_url}


@dataclass
class StsResult:
    sts: str
    cache_hit: bool = False           # reported to the caller, never stored

    def to_dict(self):
        return {"sts": self.sts}
