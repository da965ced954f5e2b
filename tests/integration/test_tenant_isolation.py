import pytest

# Tenant isolation tests
# A company never sees or touches another company's rows, even when names overlap.


@pytest.mark.asyncio
async def test_project_list_is_scoped(client, demo, other_company, other_admin_headers):
    response = await client.get("/api/v1/projects", headers=other_admin_headers)
    assert response.status_code == 200
    names = [p["name"] for p in response.json()["data"]]
    assert names == ["Tech Plaza"]
    assert response.json()["data"][0]["budget"] == 999


@pytest.mark.asyncio
async def test_cross_company_get_is_404(client, demo, other_company, other_admin_headers):
    project_id = demo["projects"]["Tech Plaza"].id
    response = await client.get(f"/api/v1/projects/{project_id}", headers=other_admin_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cross_company_delete_is_404(client, demo, other_company, other_admin_headers, admin_headers):
    vendor_id = demo["vendors"]["Steel Masters"].id
    response = await client.delete(f"/api/v1/vendors/{vendor_id}", headers=other_admin_headers)
    assert response.status_code == 404
    still_there = await client.get(f"/api/v1/vendors/{vendor_id}", headers=admin_headers)
    assert still_there.status_code == 200


@pytest.mark.asyncio
async def test_cannot_attach_phase_to_foreign_project(client, demo, other_company, other_admin_headers):
    response = await client.post(
        "/api/v1/phases",
        json={"project_id": str(demo["projects"]["Tech Plaza"].id), "name": "Sneaky"},
        headers=other_admin_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_chat_answers_from_own_company(client, demo, other_company, other_admin_headers, fake_ai):
    response = await client.post(
        "/api/v1/chat", json={"message": "Show me vendor spending"}, headers=other_admin_headers
    )
    vendors = response.json()["data"]
    assert len(vendors) == 1
    assert vendors[0]["name"] == "BuildCo Supplies"
    assert vendors[0]["total_spent"] == 1000


@pytest.mark.asyncio
async def test_analytics_are_scoped(client, demo, other_company, other_admin_headers):
    response = await client.get("/api/v1/analytics/phase-summary", headers=other_admin_headers)
    assert response.json()["data"] == [
        {"phase_name": "Grey", "total_cost": 1000, "purchase_count": 1},
    ]
