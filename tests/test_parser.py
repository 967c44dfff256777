import pytest

from conftest import CALLED_PLAYER, NAMESPACED_PLAYER
from lavatools.youtube import parser
from lavatools.youtube.errors import ScriptSyntaxError, StructureError


def test_parse_produces_plain_nodes_with_ranges():
    program = parser.parse("var a = [b];")
    node = program.body[0]
    assert node["type"] == "VariableDeclaration"
    element = node["declarations"][0]["init"]["elements"][0]
    assert element["type"] == "Identifier"
    assert element["name"] == "b"
    assert element["range"] == (9, 10)
    assert "loc" not in node


def test_parse_rejects_invalid_javascript():
    with pytest.raises(ScriptSyntaxError):
        parser.parse("function (")


def test_unwrap_member_call_wrapper():
    core = parser.unwrap(parser.parse(CALLED_PLAYER))
    kinds = [n["type"] for n in core.statements]
    assert kinds == [
        "VariableDeclaration", "FunctionDeclaration", "ExpressionStatement",
        "FunctionDeclaration", "VariableDeclaration", "ExpressionStatement",
    ]
    assert core.prefix.endswith("(function(){")
    assert core.suffix.startswith("}).call(this)")


def test_unwrap_direct_call_wrapper_drops_self_binding():
    core = parser.unwrap(parser.parse(NAMESPACED_PLAYER))
    texts = [core.text_of(n) for n in core.statements]
    assert "var window=this;" not in texts
    assert texts[0] == "var Cfg={signatureTimestamp:20073};"
    assert core.prefix.startswith("var _yt_player={};")
    assert core.suffix.startswith("})(_yt_player)")


@pytest.mark.parametrize("source", [
    "var a = 1; var b = 2; var c = 3;",
    "var a = 1;",
    "f(function(){ var x = 1; });",
    "var ns = {}; ns.run();",
])
def test_unwrap_rejects_other_shapes(source):
    with pytest.raises(StructureError):
        parser.unwrap(parser.parse(source))
