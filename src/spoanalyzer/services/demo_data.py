"""Sample tenant data for demo mode."""
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

DEMO_TENANT_URL = "https://contoso.sharepoint.com"
DEMO_USER = "admin@contoso.onmicrosoft.com"

_SITE_NAMES = [
    "Human Resources", "Finance", "Marketing", "Engineering", "Legal",
    "Sales", "Project Apollo", "Executive Board", "IT Support", "Partners Portal",
]
_FIRST_NAMES = ["Alex", "Sam", "Jordan", "Taylor", "Morgan", "Casey", "Riley", "Jamie", "Drew", "Quinn"]
_PARTNER_DOMAINS = ["fabrikam.com", "northwind.com", "adatum.com", "gmail.com"]
_ROLES = ["Full Control", "Edit", "Contribute", "Read"]


def _slug(name: str) -> str:
    return name.lower().replace(" ", "")


def demo_sites(seed: int = 42) -> List[Dict[str, Any]]:
    rng = random.Random(seed)
    return [
        {
            "Title": name,
            "Url": f"{DEMO_TENANT_URL}/sites/{_slug(name)}",
            "Owner": f"{rng.choice(_FIRST_NAMES).lower()}@contoso.com",
            "Storage": rng.randint(50, 25000),
            "Template": "GROUP#0" if rng.random() < 0.6 else "STS#3",
            "SharingCapability": rng.choice(["Disabled", "ExistingExternalUserSharingOnly", "ExternalUserAndGuestSharing"]),
            "LastContentModified": (datetime(2024, 6, 1) - timedelta(days=rng.randint(0, 400))).isoformat(),
        }
        for name in _SITE_NAMES
    ]


def demo_site_permissions(site_url: str, seed: int = 42) -> Dict[str, List[Dict[str, Any]]]:
    """
    Generate users, groups, role assignments, inheritance breaks and
    sharing links for one site.
    """
    rng = random.Random(f"{seed}:{site_url}")
    site_name = site_url.rstrip("/").rsplit("/", 1)[-1]

    users = []
    for index, first_name in enumerate(_FIRST_NAMES):
        external = index % 3 == 0
        if external:
            domain = rng.choice(_PARTNER_DOMAINS)
            email = f"{first_name.lower()}@{domain}"
            login = f"i:0#.f|membership|{first_name.lower()}_{domain.replace('.', '_')}#ext#@contoso.onmicrosoft.com"
        else:
            email = f"{first_name.lower()}@contoso.com"
            login = f"i:0#.f|membership|{email}"
        users.append({
            "Id": index + 1,
            "Name": f"{first_name} {'Partner' if external else 'Employee'}",
            "Email": email,
            "LoginName": login,
            "Type": "External" if external else "Internal",
            "IsExternal": external,
            "IsSiteAdmin": index == 1,
            "PrincipalType": "User",
            "Permission": rng.choice(_ROLES),
            "SiteUrl": site_url,
        })

    groups = [
        {"Id": 100 + i, "Name": f"{site_name} {suffix}", "Owner": f"{site_name} Owners",
         "MemberCount": rng.randint(1, 25), "SiteUrl": site_url}
        for i, suffix in enumerate(["Owners", "Members", "Visitors"])
    ]

    role_assignments = [
        {"Principal": group["Name"], "LoginName": group["Name"], "PrincipalType": "SharePointGroup",
         "Role": role, "SiteUrl": site_url}
        for group, role in zip(groups, ["Full Control", "Edit", "Read"])
    ]
    role_assignments += [
        {"Principal": user["Name"], "LoginName": user["LoginName"], "PrincipalType": "User",
         "Role": user["Permission"], "SiteUrl": site_url}
        for user in users if user["IsExternal"]
    ]

    inheritance = [
        {"Title": title, "Type": kind, "SiteUrl": site_url}
        for title, kind in [("Contracts", "Library"), ("Board Minutes", "Library"), ("Issue Tracker", "List")]
        if rng.random() < 0.7
    ]

    sharing_links = [
        {"Name": f"SharingLinks.{rng.randint(1000, 9999)}.{link_type}",
         "LinkType": link_type, "SiteUrl": site_url}
        for link_type in ["OrganizationView", "AnonymousEdit", "Flexible"]
        if rng.random() < 0.6
    ]

    return {
        "users": users,
        "groups": groups,
        "role_assignments": role_assignments,
        "inheritance": inheritance,
        "sharing_links": sharing_links,
    }


def demo_graph_lookup(email: str) -> Optional[Dict[str, Any]]:
    """Stand-in for the Graph user lookup, deterministic per address."""
    if email.endswith("@gmail.com"):
        return None
    rng = random.Random(email)
    now = datetime.now(timezone.utc)
    signed_in = rng.random() < 0.7
    return {
        "displayName": email.split("@")[0].title(),
        "mail": email,
        "userType": "Guest",
        "accountEnabled": rng.random() < 0.8,
        "createdDateTime": (now - timedelta(days=rng.randint(30, 700))).isoformat(),
        "signInActivity": {
            "lastSignInDateTime": (now - timedelta(days=rng.randint(1, 200))).isoformat()
        } if signed_in else None,
    }
