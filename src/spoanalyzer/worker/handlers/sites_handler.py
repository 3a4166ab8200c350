"""Sites handler - enumerates the tenant's site collections."""
from typing import Any, Dict, Optional
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.worker.models import OperationContext, WorkUnit

SITES_DONE_MESSAGE = "Sites loaded successfully"


def build_sites_work(store: AnalysisStore) -> WorkUnit:
    """
    Build the work unit for a site enumeration scan.

    Args:
        store: Store receiving the site rows

    Returns:
        WorkUnit: Closure run by the worker
    """

    def work(context: OperationContext) -> Optional[Dict[str, Any]]:
        session = context.require_session()
        context.log(f"Retrieving site collections from {session.tenant_url}...")

        sites = session.get_sites()
        context.log(f"Found {len(sites)} site collections")

        total_storage = sum(int(site.get("Storage") or 0) for site in sites)
        context.log(f"Total storage used: {total_storage} MB")

        store.replace_sites(sites)
        context.log(SITES_DONE_MESSAGE)
        return None

    return work
