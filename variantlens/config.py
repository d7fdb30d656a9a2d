"""
Configuration module for the VariantLens backend.
"""
import os
from dotenv import load_dotenv
from loguru import logger

# Load environment variables from .env file
load_dotenv()

APP_VERSION = os.getenv("APP_VERSION", "2.0.0")
COMMIT_SHA = os.getenv("COMMIT_SHA", "dev")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Admin access to the audit log (unset => audit endpoint refuses to serve)
ADMIN_API_KEY = os.getenv("ADMIN_API_KEY") or None

# Structure quality bar (entries strictly worse than this are discarded)
RESOLUTION_THRESHOLD_ANGSTROM = float(os.getenv("RESOLUTION_THRESHOLD_ANGSTROM", "3.5"))
PDB_MAX_CANDIDATES = int(os.getenv("PDB_MAX_CANDIDATES", "5"))

# Batch orchestration (defaults inferred from observed behaviour, not a documented policy)
BATCH_MAX_VARIANTS = int(os.getenv("BATCH_MAX_VARIANTS", "20"))
BATCH_WORKERS = int(os.getenv("BATCH_WORKERS", "3"))
UPSTREAM_REQUESTS_PER_MINUTE = int(os.getenv("UPSTREAM_REQUESTS_PER_MINUTE", "6"))
JOB_TTL_SECONDS = int(os.getenv("JOB_TTL_SECONDS", "3600"))

# Upstream HTTP behaviour
UPSTREAM_TIMEOUT_SECONDS = float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "8"))
UPSTREAM_MAX_RETRIES = int(os.getenv("UPSTREAM_MAX_RETRIES", "1"))
UPSTREAM_CACHE_TTL_SECONDS = int(os.getenv("UPSTREAM_CACHE_TTL_SECONDS", "3600"))
UPSTREAM_CACHE_MAX_ENTRIES = int(os.getenv("UPSTREAM_CACHE_MAX_ENTRIES", "10000"))

# Inbound per-client limits
VARIANT_RATE_LIMIT_PER_MINUTE = int(os.getenv("VARIANT_RATE_LIMIT_PER_MINUTE", "10"))
BATCH_RATE_LIMIT_PER_HOUR = int(os.getenv("BATCH_RATE_LIMIT_PER_HOUR", "2"))

# Audit persistence (in-memory only when unset)
AUDIT_LOG_DIR = os.getenv("AUDIT_LOG_DIR") or None

# Offline demo mode: wire the app to the deterministic fixture sources
USE_FIXTURES = os.getenv("VARIANTLENS_USE_FIXTURES", "false").lower() in ("true", "1", "yes")

# Upstream endpoints
RCSB_SEARCH_URL = os.getenv("RCSB_SEARCH_URL", "https://search.rcsb.org/rcsbsearch/v2/query")
RCSB_GRAPHQL_URL = os.getenv("RCSB_GRAPHQL_URL", "https://data.rcsb.org/graphql")
ALPHAFOLD_API_URL = os.getenv("ALPHAFOLD_API_URL", "https://alphafold.ebi.ac.uk/api/prediction")
PDBE_API_URL = os.getenv("PDBE_API_URL", "https://www.ebi.ac.uk/pdbe/api")
EUTILS_URL = os.getenv("EUTILS_URL", "https://eutils.ncbi.nlm.nih.gov/entrez/eutils")
UNIPROT_API_URL = os.getenv("UNIPROT_API_URL", "https://rest.uniprot.org/uniprotkb")
NCBI_API_KEY = os.getenv("NCBI_API_KEY") or None

RESEARCH_DISCLAIMER = (
    "Research use only. This briefing aggregates source records verbatim "
    "and makes no clinical claims."
)

if ADMIN_API_KEY is None:
    logger.warning("ADMIN_API_KEY not set - /audit will refuse to serve (503)")
logger.info(
    f"VariantLens config: fixtures={USE_FIXTURES} workers={BATCH_WORKERS} "
    f"upstream_rpm={UPSTREAM_REQUESTS_PER_MINUTE} threshold={RESOLUTION_THRESHOLD_ANGSTROM}A"
)


def get_pipeline_limits():
    """Get current batch/pipeline limit configuration."""
    return {
        "resolution_threshold_angstrom": RESOLUTION_THRESHOLD_ANGSTROM,
        "pdb_max_candidates": PDB_MAX_CANDIDATES,
        "batch_max_variants": BATCH_MAX_VARIANTS,
        "batch_workers": BATCH_WORKERS,
        "upstream_requests_per_minute": UPSTREAM_REQUESTS_PER_MINUTE,
        "job_ttl_seconds": JOB_TTL_SECONDS,
        "variant_rate_limit_per_minute": VARIANT_RATE_LIMIT_PER_MINUTE,
        "batch_rate_limit_per_hour": BATCH_RATE_LIMIT_PER_HOUR,
    }


def get_upstream_urls():
    """Get configured upstream base URLs."""
    return {
        "rcsb_search": RCSB_SEARCH_URL,
        "rcsb_graphql": RCSB_GRAPHQL_URL,
        "alphafold": ALPHAFOLD_API_URL,
        "pdbe": PDBE_API_URL,
        "eutils": EUTILS_URL,
        "uniprot": UNIPROT_API_URL,
    }


def get_feature_flags():
    """Get current feature flag configuration."""
    return {
        "use_fixtures": USE_FIXTURES,
        "audit_persisted": AUDIT_LOG_DIR is not None,
        "admin_configured": ADMIN_API_KEY is not None,
    }
