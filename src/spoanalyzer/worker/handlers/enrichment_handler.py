"""Enrichment handler - looks up external users in Microsoft Graph."""
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.worker.models import OperationContext, WorkUnit

logger = logging.getLogger(__name__)

ENRICHMENT_DONE_MESSAGE = "Enrichment complete"

# Graph returns 0 to 7 fractional digits; fromisoformat needs 3 or 6 before 3.11
_FRACTION = re.compile(r"\.(\d+)")

GraphLookup = Callable[[str], Optional[Dict[str, Any]]]


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    normalized = _FRACTION.sub(
        lambda m: "." + m.group(1)[:6].ljust(6, "0"),
        value.replace("Z", "+00:00"),
    )
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        logger.warning(f"Ignoring unparseable Graph timestamp: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def graph_fields(graph_user: Dict[str, Any], stale_days: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Map a Graph user object to the Graph* columns of a user row.

    An account is stale when its last sign-in, or its creation date if it
    never signed in, is older than stale_days.
    """
    now = now or datetime.now(timezone.utc)
    sign_in = (graph_user.get("signInActivity") or {}).get("lastSignInDateTime")
    last_sign_in = _parse_timestamp(sign_in)
    created = _parse_timestamp(graph_user.get("createdDateTime"))

    reference = last_sign_in or created
    stale = reference is not None and now - reference > timedelta(days=stale_days)

    return {
        "GraphEnriched": True,
        "GraphAccountEnabled": graph_user.get("accountEnabled"),
        "GraphUserType": graph_user.get("userType"),
        "GraphCreatedDate": graph_user.get("createdDateTime"),
        "GraphLastSignIn": sign_in,
        "GraphStale": stale,
    }


def enrich_external_users(
    store: AnalysisStore,
    lookup: GraphLookup,
    log: Callable[[str], None],
    stale_days: int = 90,
) -> Dict[str, int]:
    """
    Enrich every external user in the store.

    Args:
        store: Store holding the users
        lookup: Email to Graph user (None if not found)
        log: Progress reporter
        stale_days: Inactivity threshold for stale accounts

    Returns:
        Dict[str, int]: Enrichment summary
    """
    external = store.external_users()
    log(f"Enriching {len(external)} external users via Microsoft Graph...")

    updates: Dict[str, Dict[str, Any]] = {}
    not_found = 0
    for index, user in enumerate(external, 1):
        email = (user.get("Email") or "").lower()
        graph_user = lookup(email) if email else None
        if graph_user is None:
            not_found += 1
            log(f"  ({index}/{len(external)}) {email or user.get('Name', '?')}: not found in directory")
            continue
        updates[email] = graph_fields(graph_user, stale_days)
        log(f"  ({index}/{len(external)}) {email}: enriched")

    store.apply_user_updates(updates)

    return {
        "TotalExternal": len(external),
        "Enriched": len(updates),
        "NotFound": not_found,
        "DisabledAccounts": sum(1 for f in updates.values() if f["GraphAccountEnabled"] is False),
        "StaleAccounts": sum(1 for f in updates.values() if f["GraphStale"]),
    }


def build_enrichment_work(store: AnalysisStore, stale_days: int = 90) -> WorkUnit:
    """
    Build the work unit for external user enrichment.

    Args:
        store: Store holding the users to enrich
        stale_days: Inactivity threshold for stale accounts

    Returns:
        WorkUnit: Closure run by the worker; its result is the summary
    """

    def work(context: OperationContext) -> Optional[Dict[str, Any]]:
        session = context.require_session()
        summary = enrich_external_users(store, session.find_graph_user, context.log, stale_days)
        context.log(
            f"Enriched {summary['Enriched']} of {summary['TotalExternal']} external users "
            f"({summary['DisabledAccounts']} disabled, {summary['StaleAccounts']} stale)"
        )
        context.log(ENRICHMENT_DONE_MESSAGE)
        return summary

    return work
