import asyncio
import time

import pytest

from lavatools.youtube.cache import SolverCaches
from lavatools.youtube.errors import NetworkError
from lavatools.youtube.runner import SolverEngine

PLAYER_URL = "https://www.youtube.com/s/player/af7f576f/player_ias.vflset/en_US/base.js"

# Wrapper shape (b): namespace object + directly invoked function.
# sig forwards to Sd(2, ...) which reverses; n comes from the [Nt] lookup array.
NAMESPACED_PLAYER = """var _yt_player={};(function(g){var window=this;
var Cfg={signatureTimestamp:20073};
var Nt=function(a){var b=a.split("");return b.reverse().join("")+"_n"};
var Hn=[Nt];
var Sd=function(a,b){b=b.split("");if(a===2){b.reverse()}return b.join("")};
var Kw=function(a,b,c){c&&(c=Sd(2,decodeURIComponent(c)),a.set(b,encodeURIComponent(c)));return a};
g.boot();
})(_yt_player);
"""

# Wrapper shape (a): function expression invoked through .call(this).
# n is found through the catch-block fallback, sig forwards to Sd(...) with one argument.
CALLED_PLAYER = """(function(){
var Qa={sts:19876};
function Mx(a){var b=a.split("");try{b.reverse()}catch(e){return Zt[3]+a}return b.join("")}
Kw=function(a,b,c){c&&(c=Sd(decodeURIComponent(c)),a.set(b,encodeURIComponent(c)));return a};
function Sd(a){return a.toUpperCase()}
var Zt=["x","y","z","w"];
console.log("ready");
}).call(this);
"""

PLAIN_PLAYER = """(function(){
var a=1;
var b=function(c){return c};
}).call(this);
"""


class FakeFetcher:
    """Stands in for the aiohttp Fetcher; records every download."""

    def __init__(self, scripts: dict, *, delay: float = 0.01):
        self.scripts = dict(scripts)
        self.delay = delay
        self.calls: list[str] = []

    async def get(self, url, *, base_url=None, headers=None):
        self.calls.append(url)
        await asyncio.sleep(self.delay)
        if url not in self.scripts:
            raise NetworkError(f"GET {url} returned HTTP 404")
        return self.scripts[url]

    async def close(self):
        pass


class Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def make_engine():
    def _make(scripts: dict, *, clock=time.monotonic, **kwargs):
        fetcher = FakeFetcher(scripts, **kwargs)
        engine = SolverEngine(caches=SolverCaches.create(clock=clock), fetcher=fetcher)
        return engine, fetcher
    return _make
