"""
Player parsing: esprima → frozen ESTree dicts → de-wrapped core block.

The player bundle is always one of two wrapper shapes:

  (a)  (function(){ ...core... }).call(this);
  (b)  var _yt_player = {}; (function(g){ var window = this; ...core... })(_yt_player);

Anything else is rejected before extraction is attempted.
"""
from __future__ import annotations
import logging

import esprima
from esprima.error_handler import Error as EsprimaError

from .base import CoreBlock, Program, SyntaxNode
from .errors import ScriptSyntaxError, StructureError
from .matcher import ANY, match, shape

log = logging.getLogger("lavatools.youtube.parser")

_MEMBER_CALL_WRAPPER = shape({
    "type": "ExpressionStatement",
    "expression": {
        "type": "CallExpression",
        "callee": {
            "type": "MemberExpression",
            "object": {"type": "FunctionExpression", "body": ANY},
        },
    },
})

_DIRECT_CALL_WRAPPER = shape({
    "type": "ExpressionStatement",
    "expression": {
        "type": "CallExpression",
        "callee": {"type": "FunctionExpression", "body": ANY},
    },
})


def parse(text: str) -> Program:
    try:
        tree = esprima.parseScript(text, range=True)
    except EsprimaError as e:
        raise ScriptSyntaxError(f"player is not valid JavaScript: {e}") from e
    return Program(source=text, body=_freeze(tree)["body"])


def unwrap(program: Program) -> CoreBlock:
    body = program.body

    if len(body) == 1 and match(body[0], _MEMBER_CALL_WRAPPER):
        block = body[0]["expression"]["callee"]["object"]["body"]
        return _core(program.source, block, block["body"])

    if len(body) == 2 and match(body[1], _DIRECT_CALL_WRAPPER):
        block = body[1]["expression"]["callee"]["body"]
        # first statement rebinds `window` to `this`
        return _core(program.source, block, block["body"][1:])

    raise StructureError(f"unexpected player structure ({len(body)} top-level statements)")


def _core(source: str, block: SyntaxNode, statements: list[SyntaxNode]) -> CoreBlock:
    start, end = block["range"]
    log.debug(f"Core block has {len(statements)} statements")
    return CoreBlock(
        statements=statements,
        prefix=source[:start + 1],
        suffix=source[end - 1:],
        source=source,
    )


def _freeze(value):
    """Turn esprima node objects into plain dicts and lists, keeping `range`."""
    if isinstance(value, list):
        return [_freeze(v) for v in value]
    if type(value).__module__.startswith("esprima"):
        out = {}
        for key, item in vars(value).items():
            if key == "loc":
                continue
            if key == "range":
                out[key] = tuple(item)
            else:
                out[key] = _freeze(item)
        return out
    return value
