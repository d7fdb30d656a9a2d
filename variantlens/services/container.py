"""
Service container: builds and owns every long-lived object of the app.

Created once at startup, stored on ``app.state.services`` and injected into
routes; nothing here is a module-level singleton.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..audit import AuditWriter
from ..config import (
    ADMIN_API_KEY,
    ALPHAFOLD_API_URL,
    APP_VERSION,
    AUDIT_LOG_DIR,
    BATCH_MAX_VARIANTS,
    BATCH_RATE_LIMIT_PER_HOUR,
    BATCH_WORKERS,
    EUTILS_URL,
    JOB_TTL_SECONDS,
    UNIPROT_API_URL,
    UPSTREAM_CACHE_MAX_ENTRIES,
    UPSTREAM_CACHE_TTL_SECONDS,
    UPSTREAM_REQUESTS_PER_MINUTE,
    USE_FIXTURES,
    VARIANT_RATE_LIMIT_PER_MINUTE,
)
from .cache import TTLCache
from .evidence_aggregator import EvidenceAggregator
from .gene_resolver import GeneResolver
from .job_orchestrator import JobOrchestrator
from .pipeline import VariantPipeline
from .rate_limiter import OutboundThrottle, RateLimiter
from .residue_mapper import ResidueMapper
from .sources import (
    FixtureEvidenceSource,
    FixtureStructureSource,
    HttpEvidenceSource,
    HttpStructureSource,
)
from .structure_resolver import StructureResolver
from .upstream import UpstreamClient

logger = logging.getLogger(__name__)

READINESS_URLS = {
    "pdb": "https://www.rcsb.org/robots.txt",
    "uniprot": f"{UNIPROT_API_URL}/P04637.json",
    "alphafold": f"{ALPHAFOLD_API_URL}/P04637",
    "ncbi": f"{EUTILS_URL}/einfo.fcgi?retmode=json",
}
READINESS_TIMEOUT_SECONDS = 5.0


@dataclass
class ServiceContainer:
    genes: GeneResolver
    audit: AuditWriter
    pipeline: VariantPipeline
    orchestrator: JobOrchestrator
    throttle: OutboundThrottle
    variant_limiter: RateLimiter
    batch_limiter: RateLimiter
    admin_api_key: Optional[str]
    use_fixtures: bool
    app_version: str = APP_VERSION
    clients: List[UpstreamClient] = field(default_factory=list)

    async def readiness(self) -> Dict[str, Any]:
        if self.use_fixtures or not self.clients:
            return {"status": "ready", "services": {name: "fixture" for name in READINESS_URLS}}
        client = self.clients[0]
        names = list(READINESS_URLS)
        results = await asyncio.gather(
            *(client.is_reachable(READINESS_URLS[name], timeout=READINESS_TIMEOUT_SECONDS) for name in names)
        )
        services = {name: ("ok" if ok else "unreachable") for name, ok in zip(names, results)}
        return {"status": "ready" if all(results) else "degraded", "services": services}

    async def aclose(self) -> None:
        await self.orchestrator.stop()
        for client in self.clients:
            await client.aclose()


def _pipeline(structure_source, evidence_source, genes: GeneResolver, audit: AuditWriter) -> VariantPipeline:
    return VariantPipeline(
        genes=genes,
        structures=StructureResolver(structure_source),
        mapper=ResidueMapper(structure_source),
        evidence=EvidenceAggregator(evidence_source),
        audit=audit,
    )


def build_services(
    use_fixtures: bool = USE_FIXTURES,
    admin_api_key: Optional[str] = ADMIN_API_KEY,
    audit_log_dir: Optional[str] = AUDIT_LOG_DIR,
    upstream_requests_per_minute: int = UPSTREAM_REQUESTS_PER_MINUTE,
    variant_rate_limit: int = VARIANT_RATE_LIMIT_PER_MINUTE,
    batch_rate_limit: int = BATCH_RATE_LIMIT_PER_HOUR,
    workers: int = BATCH_WORKERS,
    max_batch_variants: int = BATCH_MAX_VARIANTS,
    job_ttl_seconds: float = JOB_TTL_SECONDS,
    genes: Optional[GeneResolver] = None,
    structure_data: Optional[Dict[str, Any]] = None,
    evidence_data: Optional[Dict[str, Any]] = None,
) -> ServiceContainer:
    """
    Wire sources, pipelines and stores.

    Single-variant requests use unthrottled sources (bounded by the inbound
    per-client limit); batch work goes through sources that share one
    OutboundThrottle.
    """
    genes = genes or GeneResolver.default()
    audit = AuditWriter(log_dir=audit_log_dir)
    throttle = OutboundThrottle(max_requests=upstream_requests_per_minute, window_seconds=60.0)
    clients: List[UpstreamClient] = []

    if use_fixtures:
        direct = _pipeline(
            FixtureStructureSource(structure_data), FixtureEvidenceSource(evidence_data), genes, audit
        )
        batch = _pipeline(
            FixtureStructureSource(structure_data, throttle=throttle),
            FixtureEvidenceSource(evidence_data, throttle=throttle),
            genes,
            audit,
        )
    else:
        cache = TTLCache(ttl_seconds=UPSTREAM_CACHE_TTL_SECONDS, max_entries=UPSTREAM_CACHE_MAX_ENTRIES)
        direct_client = UpstreamClient(cache=cache)
        # breakers are shared so an outage seen by one path trips both
        batch_client = UpstreamClient(cache=cache, throttle=throttle, breakers=direct_client.breakers)
        clients = [direct_client, batch_client]
        direct = _pipeline(HttpStructureSource(direct_client), HttpEvidenceSource(direct_client), genes, audit)
        batch = _pipeline(HttpStructureSource(batch_client), HttpEvidenceSource(batch_client), genes, audit)

    orchestrator = JobOrchestrator(
        batch,
        workers=workers,
        max_variants=max_batch_variants,
        ttl_seconds=job_ttl_seconds,
    )
    logger.info(f"Services built (fixtures={use_fixtures}, workers={workers}, upstream_rpm={upstream_requests_per_minute})")
    return ServiceContainer(
        genes=genes,
        audit=audit,
        pipeline=direct,
        orchestrator=orchestrator,
        throttle=throttle,
        variant_limiter=RateLimiter(window_seconds=60, max_requests=variant_rate_limit),
        batch_limiter=RateLimiter(window_seconds=3600, max_requests=batch_rate_limit),
        admin_api_key=admin_api_key,
        use_fixtures=use_fixtures,
        clients=clients,
    )
