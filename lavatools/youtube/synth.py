"""
Module synthesis — turns a de-wrapped player into a small replayable program.

The output keeps the player's wrapper, drops the statements we don't trust to
run outside a browser, exposes each extracted transform on `_result`, and is
prefixed with a fixed set of environment stubs.
"""
from __future__ import annotations
import logging
from typing import Optional, Protocol

from .base import CoreBlock, ExtractedFunction, FAMILIES, PlayerModule, SyntaxNode, strip_positions
from .errors import AmbiguityError
from .matcher import match, shape

log = logging.getLogger("lavatools.youtube.synth")

# Bump when the stub list changes.
PREAMBLE_VERSION = 1

PREAMBLE: tuple[str, ...] = (
    f"/* lavatools preamble v{PREAMBLE_VERSION} */",
    "var _global = (function () { return this; })();",
    "_global.XMLHttpRequest = { prototype: {} };",
    "var window = Object.create(null);",
    "for (var _key in _global) { window[_key] = _global[_key]; }",
    "window.location = {"
    ' href: "https://www.youtube.com/watch?v=dQw4w9WgXcQ",'
    ' origin: "https://www.youtube.com", protocol: "https:",'
    ' host: "www.youtube.com", hostname: "www.youtube.com",'
    ' pathname: "/watch", search: "?v=dQw4w9WgXcQ", hash: "" };',
    "var document = {};",
    "var self = _global;",
)

RESULT_NAME = "_result"


# ──────────────────────────────
#  Extractor registry
# ──────────────────────────────
class _Extractor(Protocol):
    family: str

    def extract(self, node: SyntaxNode) -> Optional[ExtractedFunction]:
        ...


_EXTRACTORS: list[_Extractor] = []


def register_extractor(extractor):
    """Decorator to register an extractor class."""
    global _EXTRACTORS
    _EXTRACTORS = [e for e in _EXTRACTORS if type(e).__name__ != extractor.__name__]
    _EXTRACTORS.append(extractor())
    return extractor


def list_extractors() -> list[_Extractor]:
    return list(_EXTRACTORS)


def named_function(node: SyntaxNode) -> Optional[tuple[str, SyntaxNode]]:
    """(name, function node) for `function f(){}`, `f = function(){}` and `var f = function(){}`."""
    kind = node.get("type")
    if kind == "FunctionDeclaration":
        if node.get("id"):
            return node["id"]["name"], node
        return None
    if match(node, _ASSIGNED_FUNCTION):
        expr = node["expression"]
        return expr["left"]["name"], expr["right"]
    if match(node, _DECLARED_FUNCTION):
        decl = node["declarations"][0]
        return decl["id"]["name"], decl["init"]
    return None


_ASSIGNED_FUNCTION = shape({
    "type": "ExpressionStatement",
    "expression": {
        "type": "AssignmentExpression",
        "operator": "=",
        "left": {"type": "Identifier"},
        "right": {"type": "FunctionExpression"},
    },
})

_DECLARED_FUNCTION = shape({
    "type": "VariableDeclaration",
    "declarations": [{
        "type": "VariableDeclarator",
        "id": {"type": "Identifier"},
        "init": {"type": "FunctionExpression"},
    }],
})


# ──────────────────────────────
#  Synthesis
# ──────────────────────────────
def is_plain(node: SyntaxNode) -> bool:
    """Expression statements survive only as assignments or literals; other statements always do."""
    if node.get("type") != "ExpressionStatement":
        return True
    return node["expression"].get("type") in ("AssignmentExpression", "Literal")


def find_candidates(core: CoreBlock) -> dict[str, list[ExtractedFunction]]:
    found: dict[str, list[ExtractedFunction]] = {family: [] for family in FAMILIES}
    for node in core.statements:
        for extractor in _EXTRACTORS:
            result = extractor.extract(node)
            if result is not None:
                found.setdefault(extractor.family, []).append(result)
    return found


def _distinct(options: list[ExtractedFunction]) -> list[ExtractedFunction]:
    unique: list[ExtractedFunction] = []
    for option in options:
        if not any(_same_shape(option, seen) for seen in unique):
            unique.append(option)
    return unique


def _same_shape(a: ExtractedFunction, b: ExtractedFunction) -> bool:
    return (
        a.family == b.family
        and a.name == b.name
        and strip_positions(a.leading_argument) == strip_positions(b.leading_argument)
    )


def synthesize(core: CoreBlock) -> PlayerModule:
    found = find_candidates(core)

    module = PlayerModule(
        preamble=PREAMBLE,
        prefix=core.prefix,
        statements=[core.text_of(node) for node in core.statements if is_plain(node)],
        suffix=core.suffix,
    )

    for family, options in found.items():
        unique = _distinct(options)
        if len(unique) > 1:
            raise AmbiguityError(family, [f.render() for f in unique])
        if not unique:
            log.info(f"No {family} function found, player does not obfuscate it")
            continue
        module.exposures.append(f"{RESULT_NAME}.{family} = {unique[0].render()};")

    return module


# ──────────────────────────────
#  Import all extractors to register them
# ──────────────────────────────
def _load_extractors():
    from .extractors import n      # noqa: F401
    from .extractors import sig    # noqa: F401

_load_extractors()
