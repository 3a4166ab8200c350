"""Permissions handler - analyzes users, groups and permissions of one site."""
from typing import Any, Dict, List, Optional
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.tenant.client import SHARING_LINK_GROUP_PREFIX
from spoanalyzer.worker.models import OperationContext, WorkUnit

PERMISSIONS_DONE_MESSAGE = "Permissions analysis complete"


def sharing_links_from_groups(groups: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Derive sharing links from the hidden groups SharePoint creates for them.

    Group names look like SharingLinks.<item guid>.<link type>.<link id>.
    """
    links = []
    for group in groups:
        name = group.get("Name", "")
        if not name.startswith(SHARING_LINK_GROUP_PREFIX):
            continue
        parts = name.split(".")
        links.append({
            "Name": name,
            "LinkType": parts[2] if len(parts) > 2 else "Unknown",
            "SiteUrl": group.get("SiteUrl", ""),
        })
    return links


def apply_user_permissions(users: List[Dict[str, Any]], role_assignments: List[Dict[str, Any]]) -> None:
    """Fill each user's Permission column from direct role assignments."""
    roles_by_login: Dict[str, List[str]] = {}
    for assignment in role_assignments:
        roles_by_login.setdefault(assignment.get("LoginName", ""), []).append(assignment.get("Role", ""))
    for user in users:
        roles = roles_by_login.get(user.get("LoginName", ""))
        if roles:
            user["Permission"] = ", ".join(roles)


def build_permissions_work(store: AnalysisStore, site_url: str) -> WorkUnit:
    """
    Build the work unit for a permission analysis of one site.

    Args:
        store: Store receiving the permission datasets
        site_url: Site to analyze

    Returns:
        WorkUnit: Closure run by the worker
    """

    def work(context: OperationContext) -> Optional[Dict[str, Any]]:
        session = context.require_session()
        context.log(f"Analyzing permissions for {site_url}")

        context.log("Loading site users...")
        users = session.get_site_users(site_url)
        external_count = sum(1 for user in users if user.get("IsExternal"))
        context.log(f"Found {len(users)} users ({external_count} external)")

        context.log("Loading SharePoint groups...")
        all_groups = session.get_site_groups(site_url)
        sharing_links = sharing_links_from_groups(all_groups)
        groups = [g for g in all_groups if not g.get("Name", "").startswith(SHARING_LINK_GROUP_PREFIX)]
        context.log(f"Found {len(groups)} groups and {len(sharing_links)} sharing links")

        context.log("Loading role assignments...")
        role_assignments = session.get_role_assignments(site_url)
        apply_user_permissions(users, role_assignments)
        context.log(f"Found {len(role_assignments)} role assignments")

        context.log("Checking lists and libraries for broken inheritance...")
        inheritance = session.get_unique_permission_lists(site_url)
        context.log(f"Found {len(inheritance)} inheritance breaks")

        store.replace_site_permissions(
            site_url,
            users=users,
            groups=groups,
            role_assignments=role_assignments,
            inheritance=inheritance,
            sharing_links=sharing_links,
        )
        context.log(PERMISSIONS_DONE_MESSAGE)
        return None

    return work
