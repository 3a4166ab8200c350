"""Demo handlers - scans over generated data, no tenant involved."""
import time
from typing import Any, Dict, Optional
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.services.demo_data import DEMO_TENANT_URL, demo_site_permissions, demo_sites
from spoanalyzer.worker.handlers.permissions_handler import PERMISSIONS_DONE_MESSAGE
from spoanalyzer.worker.handlers.sites_handler import SITES_DONE_MESSAGE
from spoanalyzer.worker.models import OperationContext, WorkUnit


def load_demo_dataset(store: AnalysisStore) -> None:
    """Fill the store with sites and the permissions of the first site."""
    sites = demo_sites()
    store.replace_sites(sites)
    store.replace_site_permissions(sites[0]["Url"], **demo_site_permissions(sites[0]["Url"]))


def build_demo_sites_work(store: AnalysisStore, step_delay: float = 0.2) -> WorkUnit:
    """
    Build a site scan over demo data.

    Args:
        store: Store receiving the site rows
        step_delay: Pause between progress messages, so polling shows progress
    """

    def work(context: OperationContext) -> Optional[Dict[str, Any]]:
        context.log(f"Retrieving site collections from {DEMO_TENANT_URL} (demo)...")
        time.sleep(step_delay)
        sites = demo_sites()
        context.log(f"Found {len(sites)} site collections")
        time.sleep(step_delay)
        store.replace_sites(sites)
        context.log(SITES_DONE_MESSAGE)
        return None

    return work


def build_demo_permissions_work(store: AnalysisStore, site_url: str, step_delay: float = 0.2) -> WorkUnit:
    """
    Build a permission analysis over demo data.

    Args:
        store: Store receiving the permission datasets
        site_url: Site to pretend to analyze
        step_delay: Pause between progress messages
    """

    def work(context: OperationContext) -> Optional[Dict[str, Any]]:
        context.log(f"Analyzing permissions for {site_url} (demo)")
        datasets = demo_site_permissions(site_url)
        for name in ("users", "groups", "role_assignments", "inheritance", "sharing_links"):
            time.sleep(step_delay)
            context.log(f"Found {len(datasets[name])} {name.replace('_', ' ')}")
        store.replace_site_permissions(site_url, **datasets)
        context.log(PERMISSIONS_DONE_MESSAGE)
        return None

    return work
