"""API tests for background operation endpoints."""
import pytest
from spoanalyzer.api.deps import get_coordinator, get_store
from spoanalyzer.core.enums import DataType, OperationType, StartResult
from tests.factories.tenant_factory import SITE_URL, BlockingWork, wait_until_complete


@pytest.mark.api
class TestProgressAPI:
    """Test the progress polling endpoint."""

    def test_initial_progress(self, client):
        """Test a fresh server reports an empty, complete, idle operation."""
        response = client.get("/api/progress")

        assert response.status_code == 200
        assert response.json() == {"messages": [], "running": False, "complete": True}

    def test_progress_reports_failure(self, client):
        def work(context):
            context.log("Retrieving site collections...")
            raise RuntimeError("rate limited")

        get_coordinator().try_start(OperationType.SITES, work)
        body = wait_until_complete(client)

        assert body["running"] is False
        assert body["error"] == "rate limited"
        assert body["messages"][-1] == "Error: rate limited"


@pytest.mark.api
class TestSitesAPI:
    """Test starting site scans."""

    def test_not_connected_returns_400(self, client):
        response = client.post("/api/sites")

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "Not connected" in body["message"]

    def test_demo_sites_scan(self, client):
        """Test a demo scan is accepted, runs in the background and completes."""
        client.post("/api/demo")

        response = client.post("/api/sites")

        assert response.status_code == 200
        assert response.json() == {"success": True, "started": True, "message": "Sites scan started"}

        body = wait_until_complete(client)
        assert body["messages"][-1] == "Sites loaded successfully"
        assert "error" not in body

    def test_busy_returns_409_and_keeps_state(self, client):
        """Test a start request during a running operation is rejected unchanged."""
        client.post("/api/demo")
        blocker = BlockingWork("first operation")
        assert get_coordinator().try_start(OperationType.SITES, blocker) == StartResult.ACCEPTED
        assert blocker.started.wait(timeout=5)

        response = client.post("/api/sites")

        assert response.status_code == 409
        assert response.json() == {"success": False, "message": "Another operation is already running"}
        progress = client.get("/api/progress").json()
        assert progress["messages"] == ["first operation"]
        assert progress["running"] is True

        blocker.release.set()
        wait_until_complete(client)

    def test_live_sites_scan(self, live_client):
        response = live_client.post("/api/sites")

        assert response.status_code == 200
        body = wait_until_complete(live_client)
        assert body["messages"][-1] == "Sites loaded successfully"
        assert live_client.get("/api/metrics").json()["totalSites"] == 2


@pytest.mark.api
class TestPermissionsAPI:
    """Test starting permission analyses."""

    def test_live_permissions_with_site_url(self, live_client):
        response = live_client.post("/api/permissions", json={"siteUrl": SITE_URL + "/"})

        assert response.status_code == 200
        assert response.json()["started"] is True
        body = wait_until_complete(live_client)
        assert body["messages"][-1] == "Permissions analysis complete"

        audit = live_client.get("/api/audit").json()
        assert audit["contextParam"] == SITE_URL
        assert audit["operationType"] == "permissions"

    def test_permissions_defaults_to_connected_site(self, client):
        client.post("/api/demo")

        response = client.post("/api/permissions")

        assert response.status_code == 200
        assert "humanresources" in response.json()["message"]
        wait_until_complete(client)

    def test_permissions_without_site_returns_400(self, client):
        response = client.post("/api/permissions", json={})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Site URL is required"}


@pytest.mark.api
class TestEnrichAPI:
    """Test external user enrichment."""

    def test_no_users_returns_400(self, client):
        client.get("/api/status")

        response = client.post("/api/enrich")

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_demo_enrichment_is_synchronous(self, client):
        client.post("/api/demo")

        response = client.post("/api/enrich")

        assert response.status_code == 200
        body = response.json()
        assert body["started"] is False
        assert body["totalExternal"] == 4
        assert body["enriched"] <= 4
        assert client.get("/api/enrichment").json()["enrichedCount"] == body["enriched"]

    def test_live_enrichment_exposes_result(self, live_client, fake_session):
        get_store().replace_site_permissions(
            SITE_URL, users=fake_session.get_site_users(SITE_URL),
            groups=[], role_assignments=[], inheritance=[], sharing_links=[],
        )
        fake_session.graph_users["bob@fabrikam.com"] = {"accountEnabled": False}

        response = live_client.post("/api/enrich")

        assert response.status_code == 200
        assert response.json()["started"] is True
        body = wait_until_complete(live_client)
        assert body["enrichmentResult"]["Enriched"] == 1
        assert body["enrichmentResult"]["DisabledAccounts"] == 1
        assert get_store().get(DataType.USERS)[1]["GraphAccountEnabled"] is False


@pytest.mark.api
class TestAuditAPI:
    """Test the audit summary."""

    def test_audit_without_operation(self, client):
        body = client.get("/api/audit").json()

        assert body["hasSession"] is False
        assert body["status"] == "IDLE"

    def test_audit_after_failure(self, client):
        def work(context):
            context.log("step")
            raise RuntimeError("boom")

        get_coordinator().try_start(OperationType.SITES, work, user_principal="admin@contoso.com")
        wait_until_complete(client)

        body = client.get("/api/audit").json()
        assert body["hasSession"] is True
        assert body["status"] == "FAILED"
        assert body["userPrincipal"] == "admin@contoso.com"
        assert body["eventCount"] == 2
        assert body["errorCount"] == 1
        assert body["duration"] >= 0
