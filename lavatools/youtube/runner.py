"""
Solver engine — fetches player scripts, builds solver pairs, answers decrypt /
resolve / sts requests.

Usage:
    engine = SolverEngine()
    result = await engine.decrypt(player_url, encrypted_signature="...", n_param="...")
    print(result.to_dict())
    await engine.close()

Lookup order for a player URL:
    solvers cache → preprocessed cache → player cache / download
        → parse + extract + synthesize → evaluate
Every tier that had to be computed is populated on the way back. Failures are
never cached. Parsing and evaluation run in a worker thread so a large player
does not stall the event loop.
"""
from __future__ import annotations
import asyncio
import logging
import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from . import parser, sandbox, synth
from .base import DecryptResult, ResolveResult, SolverPair, StsResult
from .cache import SolverCaches
from .errors import (
    MissingParameterError, MissingSolverError, PipelineError, TimestampNotFoundError,
)
from .fetcher import Fetcher

log = logging.getLogger("lavatools.youtube")

DEFAULT_ORIGIN = "https://www.youtube.com"
STS_RE = re.compile(r"(signatureTimestamp|sts):(\d+)")


def prepare_player(text: str) -> str:
    """Parse a raw player and return the synthesized module source."""
    program = parser.parse(text)
    core = parser.unwrap(program)
    module = synth.synthesize(core)
    log.info(
        f"Synthesized player module: kept {len(module.statements)}/{len(core.statements)} "
        f"statements, exposed {len(module.exposures)} solver(s)"
    )
    return module.render()


class SolverEngine:
    def __init__(
        self,
        *,
        caches: SolverCaches | None = None,
        fetcher: Fetcher | None = None,
        timeout: int = 10,
        player_origin: str = DEFAULT_ORIGIN,
    ):
        self.caches = caches or SolverCaches.create()
        self.fetcher = fetcher or Fetcher(timeout=timeout)
        self.player_origin = player_origin

    async def close(self):
        await self.fetcher.close()

    # ── player download ──────────────────

    async def fetch_player(self, player_url: str) -> str:
        """Player text for `player_url`; concurrent callers share one download."""
        key = player_url.strip()

        cached = self.caches.player.get(key)
        if cached is not None:
            log.debug(f"[{key}] Player cache hit")
            return cached

        pending: Optional[asyncio.Task] = self.caches.in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(self._download(key))
            self.caches.in_flight.set(key, pending)
        else:
            log.debug(f"[{key}] Joining in-flight download")

        # one caller giving up must not cancel the download for the others
        return await asyncio.shield(pending)

    async def _download(self, key: str) -> str:
        try:
            log.info(f"[{key}] Fetching player script...")
            text = await self.fetcher.get(key, base_url=self.player_origin)
            self.caches.player.set(key, text)
            return text
        finally:
            if self.caches.in_flight.peek(key) is asyncio.current_task():
                self.caches.in_flight.delete(key)

    # ── solver pipeline ──────────────────

    async def get_solvers(self, player_url: str) -> SolverPair:
        key = player_url.strip()

        solvers = self.caches.solvers.get(key)
        if solvers is not None:
            return solvers

        source = self.caches.preprocessed.get(key)
        try:
            if source is None:
                raw = await self.fetch_player(key)
                source = await asyncio.to_thread(prepare_player, raw)
                self.caches.preprocessed.set(key, source)
            solvers = await asyncio.to_thread(sandbox.evaluate, source)
        except PipelineError as e:
            log.warning(f"[{key}] Solver pipeline failed: {e}")
            raise

        self.caches.solvers.set(key, solvers)
        log.info(f"[{key}] Solvers ready {solvers.families()}")
        return solvers

    # ── operations ──────────────────

    async def decrypt(
        self,
        player_url: str,
        *,
        encrypted_signature: str | None = None,
        n_param: str | None = None,
    ) -> DecryptResult:
        solvers = await self.get_solvers(player_url)
        result = DecryptResult()
        if encrypted_signature and solvers.sig:
            result.decrypted_signature = solvers.sig(encrypted_signature)
        if n_param and solvers.n:
            result.decrypted_n_sig = solvers.n(n_param)
        return result

    async def resolve(
        self,
        stream_url: str,
        player_url: str,
        *,
        encrypted_signature: str | None = None,
        signature_key: str | None = None,
        n_param: str | None = None,
    ) -> ResolveResult:
        solvers = await self.get_solvers(player_url)
        parts = urlsplit(stream_url)
        params = parse_qsl(parts.query, keep_blank_values=True)

        if encrypted_signature:
            if not solvers.sig:
                raise MissingSolverError("No signature solver found for this player")
            sig_key = signature_key or "sig"
            params = _set_param(params, sig_key, solvers.sig(encrypted_signature))
            if sig_key != "s":
                params = [(k, v) for k, v in params if k != "s"]

        n_value = n_param or next((v for k, v in params if k == "n"), None)
        if solvers.n:
            if not n_value:
                raise MissingParameterError("n_param not found in request or stream_url")
            params = _set_param(params, "n", solvers.n(n_value))

        resolved = urlunsplit(parts._replace(query=urlencode(params)))
        return ResolveResult(resolved_url=resolved)

    async def get_sts(self, player_url: str) -> StsResult:
        key = player_url.strip()

        cached = self.caches.sts.get(key)
        if cached is not None:
            return StsResult(sts=cached, cache_hit=True)

        text = await self.fetch_player(key)
        match = STS_RE.search(text)
        if not match:
            raise TimestampNotFoundError("Timestamp not found in player script")

        sts = match.group(2)
        self.caches.sts.set(key, sts)
        return StsResult(sts=sts, cache_hit=False)


def _set_param(params: list[tuple[str, str]], key: str, value: str) -> list[tuple[str, str]]:
    """Replace the first `key` in place, drop any repeats, append if absent."""
    out, seen = [], False
    for k, v in params:
        if k == key:
            if not seen:
                out.append((k, value))
                seen = True
            continue
        out.append((k, v))
    if not seen:
        out.append((key, value))
    return out
