import pytest

from conftest import CALLED_PLAYER, NAMESPACED_PLAYER, PLAIN_PLAYER
from lavatools.youtube import sandbox, synth
from lavatools.youtube.errors import EvaluationError
from lavatools.youtube.runner import prepare_player


def test_populates_carrier():
    pair = sandbox.evaluate('_result.n = function (n) { return n + "!"; };')
    assert pair.n("a") == "a!"
    assert pair.sig is None


def test_empty_module_yields_empty_pair():
    pair = sandbox.evaluate("var unused = 1;")
    assert pair.n is None and pair.sig is None


def test_module_errors_propagate():
    with pytest.raises(EvaluationError):
        sandbox.evaluate('throw new Error("boom");')


def test_solver_errors_propagate():
    pair = sandbox.evaluate('_result.sig = function (sig) { return sig.nope(); };')
    with pytest.raises(EvaluationError):
        pair.sig("abc")


def test_each_evaluation_is_isolated():
    sandbox.evaluate("leaked = 42;")
    pair = sandbox.evaluate('_result.n = function (n) { return typeof leaked; };')
    assert pair.n("x") == "undefined"


def test_preamble_stubs_are_visible():
    source = prepare_player("""(function(){
    var loc=window.location.hostname;
    var x=[f];
    function f(a){return loc+":"+typeof document+":"+(self===window)+":"+a}
    }).call(this);""")
    assert sandbox.evaluate(source).n("z") == "www.youtube.com:object:false:z"


def test_namespaced_player_end_to_end():
    pair = sandbox.evaluate(prepare_player(NAMESPACED_PLAYER))
    assert pair.n("abc") == "cba_n"
    assert pair.sig("abc") == "cba"


def test_called_player_end_to_end():
    pair = sandbox.evaluate(prepare_player(CALLED_PLAYER))
    assert pair.n("abc") == "cba"
    assert pair.sig("abc") == "ABC"


def test_plain_player_end_to_end():
    pair = sandbox.evaluate(prepare_player(PLAIN_PLAYER))
    assert pair.n is None and pair.sig is None


def test_cold_runs_are_behaviourally_identical():
    first = sandbox.evaluate(prepare_player(NAMESPACED_PLAYER))
    second = sandbox.evaluate(prepare_player(NAMESPACED_PLAYER))
    for value in ("abc", "Zy-9_x", ""):
        assert first.n(value) == second.n(value)
        assert first.sig(value) == second.sig(value)


def test_host_bridges_are_unreachable(monkeypatch):
    monkeypatch.setenv("LAVATOOLS_AUTH", "host-secret")
    source = "\n".join(synth.PREAMBLE) + """
    _result.n = function (n) {
        return [typeof process, typeof require, typeof call_python, typeof module,
                typeof window.process, typeof window.call_python].join(",");
    };
    _result.sig = function (key) {
        try { return process.env[key]; } catch (e) { return "blocked"; }
    };"""
    pair = sandbox.evaluate(source)
    assert pair.n("x") == ",".join(["undefined"] * 6)
    assert pair.sig("LAVATOOLS_AUTH") == "blocked"
