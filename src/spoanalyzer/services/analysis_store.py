"""In-memory store of the datasets collected by scans."""
import threading
from typing import Any, Dict, List, Optional
from spoanalyzer.core.enums import DataType

Row = Dict[str, Any]


class AnalysisStore:
    """
    Thread-safe holder of scan results.

    Written by work units on the worker thread, read by request handlers.
    Rows are plain dicts with the column names the dashboard renders.
    """

    def __init__(self):
        """Initialize empty store."""
        self._lock = threading.Lock()
        self._data: Dict[DataType, List[Row]] = {data_type: [] for data_type in DataType}
        self._analyzed_site: Optional[str] = None

    def replace_sites(self, sites: List[Row]) -> None:
        with self._lock:
            self._data[DataType.SITES] = [dict(row) for row in sites]

    def replace_site_permissions(
        self,
        site_url: str,
        users: List[Row],
        groups: List[Row],
        role_assignments: List[Row],
        inheritance: List[Row],
        sharing_links: List[Row],
    ) -> None:
        """
        Replace every permission dataset with the results for one site.

        Args:
            site_url: Site the datasets belong to
            users: Site users
            groups: SharePoint groups
            role_assignments: Principal to permission level rows
            inheritance: Lists and libraries with broken inheritance
            sharing_links: Sharing links found on the site
        """
        with self._lock:
            self._analyzed_site = site_url
            self._data[DataType.USERS] = [dict(row) for row in users]
            self._data[DataType.GROUPS] = [dict(row) for row in groups]
            self._data[DataType.ROLE_ASSIGNMENTS] = [dict(row) for row in role_assignments]
            self._data[DataType.INHERITANCE] = [dict(row) for row in inheritance]
            self._data[DataType.SHARING_LINKS] = [dict(row) for row in sharing_links]

    def get(self, data_type: DataType) -> List[Row]:
        """Return a copy of one dataset."""
        with self._lock:
            return [dict(row) for row in self._data[data_type]]

    def external_users(self) -> List[Row]:
        with self._lock:
            return [dict(row) for row in self._data[DataType.USERS] if row.get("IsExternal")]

    def apply_user_updates(self, updates: Dict[str, Row]) -> int:
        """
        Merge fields into users matched by lower-cased email.

        Args:
            updates: Email to fields mapping

        Returns:
            int: Number of user rows updated
        """
        updated = 0
        with self._lock:
            for row in self._data[DataType.USERS]:
                fields = updates.get((row.get("Email") or "").lower())
                if fields:
                    row.update(fields)
                    updated += 1
        return updated

    def enrichment_summary(self) -> Dict[str, int]:
        """Counts derived from the Graph fields on external users."""
        with self._lock:
            external = [row for row in self._data[DataType.USERS] if row.get("IsExternal")]
            enriched = [row for row in external if row.get("GraphEnriched")]
            return {
                "totalExternal": len(external),
                "enrichedCount": len(enriched),
                "disabledAccounts": sum(1 for row in enriched if row.get("GraphAccountEnabled") is False),
                "staleAccounts": sum(1 for row in enriched if row.get("GraphStale")),
            }

    def metrics(self) -> Dict[str, int]:
        """Totals shown on the dashboard cards."""
        with self._lock:
            return {
                "totalSites": len(self._data[DataType.SITES]),
                "totalUsers": len(self._data[DataType.USERS]),
                "totalGroups": len(self._data[DataType.GROUPS]),
                "externalUsers": sum(1 for row in self._data[DataType.USERS] if row.get("IsExternal")),
                "totalRoleAssignments": len(self._data[DataType.ROLE_ASSIGNMENTS]),
                "inheritanceBreaks": len(self._data[DataType.INHERITANCE]),
                "totalSharingLinks": len(self._data[DataType.SHARING_LINKS]),
            }

    @property
    def analyzed_site(self) -> Optional[str]:
        with self._lock:
            return self._analyzed_site

    def clear(self) -> None:
        with self._lock:
            for data_type in DataType:
                self._data[data_type] = []
            self._analyzed_site = None
