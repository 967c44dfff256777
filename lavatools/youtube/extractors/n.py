"""
N-parameter transform extractor.

Primary shape, a one-element lookup array holding the transform:
    var Xy = [Ab];

Fallback, the transform itself, recognised by its error path:
    Ab = function(a) { ...; try { ... } catch (e) { return Qz[12] + a } ...; return b.join("") };
"""
from __future__ import annotations
from typing import Optional

from ..base import ExtractedFunction, SyntaxNode
from ..matcher import match, shape
from ..synth import named_function, register_extractor

LOOKUP_ARRAY = shape({
    "type": "VariableDeclaration",
    "kind": "var",
    "declarations": [{
        "type": "VariableDeclarator",
        "id": {"type": "Identifier"},
        "init": {
            "type": "ArrayExpression",
            "elements": [{"type": "Identifier"}],
        },
    }],
})

CATCH_BODY = shape([{
    "type": "ReturnStatement",
    "argument": {
        "type": "BinaryExpression",
        "operator": "+",
        "left": {
            "type": "MemberExpression",
            "computed": True,
            "object": {"type": "Identifier"},
            "property": {"type": "Literal"},
        },
        "right": {"type": "Identifier"},
    },
}])


@register_extractor
class NExtractor:
    family = "n"

    def extract(self, node: SyntaxNode) -> Optional[ExtractedFunction]:
        if match(node, LOOKUP_ARRAY):
            element = node["declarations"][0]["init"]["elements"][0]
            return ExtractedFunction(family=self.family, name=element["name"])
        return self._from_catch_block(node)

    def _from_catch_block(self, node: SyntaxNode) -> Optional[ExtractedFunction]:
        found = named_function(node)
        if not found:
            return None
        name, func = found
        if len(func["params"]) != 1:
            return None

        statements = func["body"]["body"]
        if len(statements) < 2:
            return None
        try_node = statements[-2]
        if try_node.get("type") != "TryStatement" or not try_node.get("handler"):
            return None
        if match(try_node["handler"]["body"]["body"], CATCH_BODY):
            return ExtractedFunction(family=self.family, name=name)
        return None
