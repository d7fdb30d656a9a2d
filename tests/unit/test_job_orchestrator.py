"""
Unit tests for batch job orchestration.
"""
import asyncio

import pytest

from variantlens.errors import NotFoundError, ParseError, ValidationError
from variantlens.services.job_orchestrator import JobOrchestrator, JobStatus
from tests.conftest import make_services


class FakeReport:
    def __init__(self, raw):
        self.raw = raw

    def model_dump(self, **kwargs):
        return {"variant": {"raw": self.raw}}


class CountingPipeline:
    """Records concurrency; fails on anything containing 'bad'."""

    def __init__(self, delay=0.01):
        self.delay = delay
        self.active = 0
        self.peak = 0
        self.runs = []

    async def run(self, raw, actor="anonymous", request_id=None):
        self.runs.append(raw)
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1
        if "bad" in raw:
            raise ParseError(f"Invalid HGVS format '{raw}'")
        return FakeReport(raw)


class GatedPipeline:
    def __init__(self):
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.runs = []

    async def run(self, raw, actor="anonymous", request_id=None):
        self.runs.append(raw)
        self.started.set()
        await self.release.wait()
        return FakeReport(raw)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_validate_rejects_bad_batches():
    orchestrator = JobOrchestrator(CountingPipeline(), max_variants=20)
    with pytest.raises(ValidationError, match="At least one variant is required"):
        orchestrator.validate([])
    with pytest.raises(ValidationError, match="Max 20 variants allowed per batch"):
        orchestrator.validate(["KRAS:p.G12D"] * 21)
    with pytest.raises(ValidationError, match="list of strings"):
        orchestrator.validate(["KRAS:p.G12D", 12])
    with pytest.raises(ValidationError):
        orchestrator.validate("KRAS:p.G12D")
    assert orchestrator.validate(["KRAS:p.G12D"] * 20) == ["KRAS:p.G12D"] * 20


@pytest.mark.asyncio
async def test_results_keep_submission_order_and_isolate_failures():
    pipeline = CountingPipeline()
    orchestrator = JobOrchestrator(pipeline, workers=3)
    try:
        job = await orchestrator.submit(["a1", "bad2", "a3", "a4"])
        assert job.status == JobStatus.QUEUED
        await orchestrator.wait_idle()
    finally:
        await orchestrator.stop()

    assert job.status == JobStatus.COMPLETED
    assert job.progress == {"total": 4, "done": 4}
    assert [r["variant"] for r in job.results] == ["a1", "bad2", "a3", "a4"]
    assert job.results[0]["status"] == "success"
    assert job.results[1] == {
        "variant": "bad2",
        "status": "error",
        "error": "Invalid HGVS format 'bad2'",
        "code": "PARSE_ERROR",
    }


@pytest.mark.asyncio
async def test_concurrency_is_bounded_by_worker_count():
    pipeline = CountingPipeline(delay=0.02)
    orchestrator = JobOrchestrator(pipeline, workers=2)
    try:
        await orchestrator.submit([f"v{i}" for i in range(6)])
        await orchestrator.submit([f"w{i}" for i in range(6)])
        await orchestrator.wait_idle()
    finally:
        await orchestrator.stop()

    assert len(pipeline.runs) == 12
    assert pipeline.peak == 2
    assert orchestrator.max_in_flight == 2


@pytest.mark.asyncio
async def test_unknown_job_is_not_found():
    orchestrator = JobOrchestrator(CountingPipeline())
    with pytest.raises(NotFoundError):
        orchestrator.status("does-not-exist")


@pytest.mark.asyncio
async def test_expired_job_is_purged_and_its_queue_skipped():
    clock = FakeClock()
    pipeline = GatedPipeline()
    orchestrator = JobOrchestrator(pipeline, workers=1, ttl_seconds=60, clock=clock)
    try:
        job = await orchestrator.submit(["first", "second", "third"])
        await pipeline.started.wait()

        clock.now = 61
        purged = await orchestrator.purge_expired()
        assert purged == [job.job_id]
        with pytest.raises(NotFoundError):
            orchestrator.status(job.job_id)

        pipeline.release.set()
        await orchestrator.wait_idle()
    finally:
        await orchestrator.stop()

    assert pipeline.runs == ["first"]
    assert job.expired is True


@pytest.mark.asyncio
async def test_fresh_jobs_survive_purge():
    clock = FakeClock()
    orchestrator = JobOrchestrator(CountingPipeline(), ttl_seconds=60, clock=clock)
    try:
        old = await orchestrator.submit(["a"])
        clock.now = 30
        new = await orchestrator.submit(["b"])
        clock.now = 70
        # submitting purges anything past its TTL
        await orchestrator.submit(["c"])
        await orchestrator.wait_idle()
    finally:
        await orchestrator.stop()

    assert orchestrator.registry.get(old.job_id) is None
    assert orchestrator.status(new.job_id).status == JobStatus.COMPLETED


@pytest.mark.asyncio
async def test_batch_against_fixtures_records_every_outcome():
    services = make_services()
    orchestrator = services.orchestrator
    try:
        job = await orchestrator.submit(["KRAS:p.G12D", "FAKEGENE:p.A1V", "TP53:p.R175H"])
        await orchestrator.wait_idle()
    finally:
        await services.aclose()

    assert job.status == JobStatus.COMPLETED
    kras, fake, tp53 = job.results
    assert kras["status"] == "success"
    assert kras["report"]["structure"]["id"] == "4OBE"
    assert kras["report"]["residueMapping"]["mapped"] is True
    assert fake["status"] == "error"
    assert fake["code"] == "UNKNOWN_GENE"
    assert tp53["report"]["evidence"]["clinvar"]["id"] == "12374"

    resolutions = [e for e in services.audit.entries() if e.actor == f"batch:{job.job_id}"]
    assert len(resolutions) == 3


@pytest.mark.asyncio
async def test_every_batch_upstream_call_passes_the_throttle():
    services = make_services(upstream_requests_per_minute=1000)
    orchestrator = services.orchestrator
    try:
        await orchestrator.submit(["KRAS:p.G12D", "PROM1:p.R373C", "CFTR:p.F508del"])
        await orchestrator.wait_idle()
    finally:
        await services.aclose()

    batch = orchestrator.pipeline
    calls = len(batch.structures.source.calls) + len(batch.evidence.source.calls)
    assert calls > 0
    assert services.throttle.granted == calls

    # the direct path is not throttled
    assert services.pipeline.structures.source.throttle is None
