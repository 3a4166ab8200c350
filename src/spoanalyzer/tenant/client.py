"""Thin adapter over the SharePoint REST client and Microsoft Graph."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
import httpx
from office365.runtime.auth.token_response import TokenResponse
from office365.sharepoint.client_context import ClientContext
from office365.sharepoint.tenant.administration.tenant import Tenant
from spoanalyzer.config import get_settings
from spoanalyzer.core.exceptions import TenantConnectionError

settings = get_settings()
logger = logging.getLogger(__name__)

# SharePoint principal types
PRINCIPAL_USER = 1
PRINCIPAL_SECURITY_GROUP = 4
PRINCIPAL_SHAREPOINT_GROUP = 8

SHARING_LINK_GROUP_PREFIX = "SharingLinks."


def admin_url_for(tenant_url: str) -> str:
    """
    Derive the tenant admin center URL from any tenant URL.

    Example:
        >>> admin_url_for("https://contoso.sharepoint.com/sites/hr")
        'https://contoso-admin.sharepoint.com'
    """
    host = urlparse(tenant_url).netloc
    tenant_name = host.split(".")[0]
    if tenant_name.endswith("-admin"):
        return f"https://{host}"
    return f"https://{tenant_name}-admin.sharepoint.com"


def is_external_login(login_name: str) -> bool:
    """Check if a SharePoint login name belongs to a guest account."""
    login = (login_name or "").lower()
    return "#ext#" in login or "urn:spo:guest" in login


def principal_type_name(principal_type: Optional[int]) -> str:
    if principal_type == PRINCIPAL_USER:
        return "User"
    if principal_type == PRINCIPAL_SECURITY_GROUP:
        return "SecurityGroup"
    if principal_type == PRINCIPAL_SHAREPOINT_GROUP:
        return "SharePointGroup"
    return f"Unknown({principal_type})"


class TenantSession:
    """
    Authenticated access to one tenant, owned by a single operation.

    Wraps a bearer token for SharePoint (and optionally one for Graph).
    ClientContext instances are created per site and never shared across
    threads; the session is closed when the operation ends.
    """

    def __init__(
        self,
        tenant_url: str,
        access_token: str,
        graph_token: Optional[str] = None,
    ):
        """
        Initialize session.

        Args:
            tenant_url: Tenant root URL, e.g. https://contoso.sharepoint.com
            access_token: SharePoint bearer token
            graph_token: Optional Microsoft Graph bearer token
        """
        self.tenant_url = tenant_url.rstrip("/")
        self._access_token = access_token
        self._graph_token = graph_token
        self._http: Optional[httpx.Client] = None

    def context_for(self, site_url: Optional[str] = None) -> ClientContext:
        """Create a client context for a site authenticated with the session token."""
        token = self._access_token
        return ClientContext(site_url or self.tenant_url).with_access_token(
            lambda: TokenResponse(access_token=token, token_type="Bearer")
        )

    def verify(self, site_url: Optional[str] = None) -> Dict[str, str]:
        """
        Make one lightweight call to prove the token works.

        Returns:
            Dict[str, str]: Title and URL of the site

        Raises:
            TenantConnectionError: If the call fails
        """
        try:
            web = self.context_for(site_url).web.get().execute_query()
        except Exception as e:
            raise TenantConnectionError(f"Could not reach {site_url or self.tenant_url}: {e}") from e
        return {
            "title": web.properties.get("Title", ""),
            "url": web.properties.get("Url", site_url or self.tenant_url),
        }

    def current_user(self) -> str:
        """Return the login of the account the token belongs to."""
        user = self.context_for().web.current_user.get().execute_query()
        return user.properties.get("Email") or user.properties.get("LoginName", "")

    def get_sites(self) -> List[Dict[str, Any]]:
        """List all site collections through the tenant admin API."""
        admin_ctx = self.context_for(admin_url_for(self.tenant_url))
        sites = Tenant(admin_ctx).get_site_properties_from_sharepoint_by_filters("").execute_query()
        rows = []
        for site in sites:
            props = site.properties
            rows.append({
                "Title": props.get("Title", ""),
                "Url": props.get("Url", ""),
                "Owner": props.get("OwnerEmail") or props.get("Owner", ""),
                "Storage": props.get("StorageUsage", 0),
                "Template": props.get("Template", ""),
                "SharingCapability": str(props.get("SharingCapability", "")),
                "LastContentModified": str(props.get("LastContentModifiedDate", "")),
            })
        return rows

    def get_site_users(self, site_url: str) -> List[Dict[str, Any]]:
        users = self.context_for(site_url).web.site_users.get().execute_query()
        rows = []
        for user in users:
            props = user.properties
            login_name = props.get("LoginName", "")
            external = is_external_login(login_name)
            rows.append({
                "Id": props.get("Id"),
                "Name": props.get("Title", ""),
                "Email": props.get("Email", ""),
                "LoginName": login_name,
                "Type": "External" if external else "Internal",
                "IsExternal": external,
                "IsSiteAdmin": bool(props.get("IsSiteAdmin", False)),
                "PrincipalType": principal_type_name(props.get("PrincipalType")),
                "Permission": "",
                "SiteUrl": site_url,
            })
        return rows

    def get_site_groups(self, site_url: str) -> List[Dict[str, Any]]:
        groups = self.context_for(site_url).web.site_groups.expand(["Users"]).get().execute_query()
        rows = []
        for group in groups:
            props = group.properties
            rows.append({
                "Id": props.get("Id"),
                "Name": props.get("Title", ""),
                "Owner": props.get("OwnerTitle", ""),
                "MemberCount": len(group.users),
                "SiteUrl": site_url,
            })
        return rows

    def get_role_assignments(self, site_url: str) -> List[Dict[str, Any]]:
        """One row per (principal, permission level) assigned on the site root."""
        ctx = self.context_for(site_url)
        role_assignments = ctx.web.role_assignments.get()
        role_assignments.expand(["Member", "RoleDefinitionBindings"]).execute_query()
        rows = []
        for ra in role_assignments:
            member = ra.member
            member_props = member.properties
            for binding in ra.role_definition_bindings:
                rows.append({
                    "Principal": member_props.get("Title", ""),
                    "LoginName": member_props.get("LoginName", ""),
                    "PrincipalType": principal_type_name(member_props.get("PrincipalType")),
                    "Role": binding.properties.get("Name", ""),
                    "SiteUrl": site_url,
                })
        return rows

    def get_unique_permission_lists(self, site_url: str) -> List[Dict[str, Any]]:
        """Lists and libraries that broke permission inheritance."""
        lists = (
            self.context_for(site_url)
            .web.lists.get()
            .select(["Id", "Title", "Hidden", "HasUniqueRoleAssignments", "BaseTemplate"])
            .execute_query()
        )
        rows = []
        for lst in lists:
            props = lst.properties
            if props.get("Hidden", False) or not props.get("HasUniqueRoleAssignments", False):
                continue
            rows.append({
                "Title": props.get("Title", ""),
                "Type": "Library" if props.get("BaseTemplate") == 101 else "List",
                "SiteUrl": site_url,
            })
        return rows

    def find_graph_user(self, email: str) -> Optional[Dict[str, Any]]:
        """
        Look up a user in Microsoft Graph by mail address.

        Returns:
            Optional[Dict[str, Any]]: Graph user object, or None if not found

        Raises:
            TenantConnectionError: If no Graph token is available or the call fails
        """
        if not self._graph_token:
            raise TenantConnectionError("No Microsoft Graph token available for enrichment")

        if self._http is None:
            self._http = httpx.Client(
                base_url=settings.GRAPH_BASE_URL,
                headers={"Authorization": f"Bearer {self._graph_token}"},
                timeout=settings.HTTP_TIMEOUT_SECONDS,
            )

        escaped = email.replace("'", "''")
        response = self._http.get(
            "/users",
            params={
                "$filter": f"mail eq '{escaped}' or otherMails/any(m:m eq '{escaped}')",
                "$select": "id,displayName,mail,userType,accountEnabled,createdDateTime,signInActivity",
                "$count": "true",
            },
            headers={"ConsistencyLevel": "eventual"},
        )
        if response.status_code >= 400:
            raise TenantConnectionError(
                f"Graph lookup for {email} failed with HTTP {response.status_code}"
            )
        users = response.json().get("value", [])
        return users[0] if users else None

    def close(self) -> None:
        """Release the HTTP client, if one was opened."""
        if self._http is not None:
            self._http.close()
            self._http = None
