"""
Sandboxed evaluation of synthesized player modules.

Each module runs in its own embedded Duktape interpreter (dukpy). The host
bridges dukpy sets up (`process.env`, `require`, `call_python`) are removed
before the module runs, so nothing from the Python side is visible to it; the
only way values cross the boundary is through `dukpy[...]` arguments and
JSON-converted return values.
"""
from __future__ import annotations
import json
import logging
import threading

import dukpy

from .base import FAMILIES, Solver, SolverPair
from .errors import EvaluationError
from .synth import RESULT_NAME

log = logging.getLogger("lavatools.youtube.sandbox")

CARRIER = "_solvers"

# dukpy installs these on every new interpreter; they reach back into the host
# (os.environ, the module loader, arbitrary Python calls).
HOST_BRIDGES = ("process", "require", "call_python", "module", "exports", "console")

ISOLATE = (
    "(function (g) {\n"
    f"  var names = {json.dumps(list(HOST_BRIDGES))};\n"
    "  for (var i = 0; i < names.length; i++) {\n"
    "    delete g[names[i]];\n"
    "    if (typeof g[names[i]] !== 'undefined') { g[names[i]] = undefined; }\n"
    "  }\n"
    "  if (typeof Duktape === 'object') { delete Duktape.modSearch; }\n"
    "})(this);"
)


def evaluate(source: str) -> SolverPair:
    interpreter = dukpy.JSInterpreter()
    lock = threading.Lock()

    interpreter.evaljs(ISOLATE)

    try:
        interpreter.evaljs(
            f"var {CARRIER} = {{ n: null, sig: null }};\n"
            f"(function ({RESULT_NAME}) {{\n{source}\n}}).call(this, {CARRIER});"
        )
        present = interpreter.evaljs(
            f"[typeof {CARRIER}.n === 'function', typeof {CARRIER}.sig === 'function']"
        )
    except dukpy.JSRuntimeError as e:
        raise EvaluationError(f"player module failed to run: {e}") from e

    slots = dict(zip(FAMILIES, present))
    log.debug(f"Sandbox exposed {slots}")
    return SolverPair(**{
        family: _bind(interpreter, lock, family) if ok else None
        for family, ok in slots.items()
    })


def _bind(interpreter: dukpy.JSInterpreter, lock: threading.Lock, family: str) -> Solver:
    def solve(value: str) -> str:
        with lock:
            try:
                result = interpreter.evaljs(f"{CARRIER}.{family}(dukpy['value'])", value=value)
            except dukpy.JSRuntimeError as e:
                raise EvaluationError(f"{family} solver threw: {e}") from e
        return "" if result is None else str(result)

    solve.__name__ = f"solve_{family}"
    return solve
