"""
Signature transform extractor.

Looks for the three-parameter URL builder whose second-to-last statement is
    c && (c = Xy(2, decodeURIComponent(c)), a.set(b, encodeURIComponent(c)));
and forwards to `Xy`, keeping its leading literal argument when present.
"""
from __future__ import annotations
from typing import Optional

from ..base import ExtractedFunction, SyntaxNode, strip_positions
from ..matcher import ANY, AnyOf, match, shape
from ..synth import named_function, register_extractor

DECODE_CALL = {
    "type": "CallExpression",
    "callee": {"type": "Identifier", "name": "decodeURIComponent"},
    "arguments": [{"type": "Identifier"}],
}

GUARD = shape({
    "type": "ExpressionStatement",
    "expression": {
        "type": "LogicalExpression",
        "operator": "&&",
        "left": {"type": "Identifier"},
        "right": {
            "type": "SequenceExpression",
            "expressions": [
                {
                    "type": "AssignmentExpression",
                    "operator": "=",
                    "left": {"type": "Identifier"},
                    "right": {
                        "type": "CallExpression",
                        "callee": {"type": "Identifier"},
                        "arguments": AnyOf([
                            shape([{"type": "Literal"}, DECODE_CALL]),
                            shape([DECODE_CALL]),
                        ]),
                    },
                },
                {"type": "CallExpression"},
            ],
        },
    },
})

THREE_PARAMS = shape([ANY, ANY, ANY])


@register_extractor
class SigExtractor:
    family = "sig"

    def extract(self, node: SyntaxNode) -> Optional[ExtractedFunction]:
        found = named_function(node)
        if not found:
            return None
        _, func = found
        if not match(func["params"], THREE_PARAMS):
            return None

        statements = func["body"]["body"]
        if len(statements) < 2 or not match(statements[-2], GUARD):
            return None

        call = statements[-2]["expression"]["right"]["expressions"][0]["right"]
        leading = None
        if len(call["arguments"]) == 2:
            leading = strip_positions(call["arguments"][0])
        return ExtractedFunction(
            family=self.family,
            name=call["callee"]["name"],
            leading_argument=leading,
        )
