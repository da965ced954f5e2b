import pytest


@pytest.mark.asyncio
async def test_any_role_can_read_settings(client, demo, viewer_headers):
    response = await client.get("/api/v1/companies/settings", headers=viewer_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Demo Construction Co."
    assert body["default_currency"] == "USD"
    assert body["currency_symbol"] == "$"


@pytest.mark.asyncio
async def test_only_admin_can_update_settings(client, demo, manager_headers, viewer_headers):
    for headers in (manager_headers, viewer_headers):
        response = await client.patch(
            "/api/v1/companies/settings", json={"default_currency": "EUR"}, headers=headers
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.asyncio
async def test_currency_is_upper_cased(client, demo, admin_headers, viewer_headers):
    response = await client.patch(
        "/api/v1/companies/settings", json={"default_currency": "eur"}, headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["default_currency"] == "EUR"
    assert response.json()["currency_symbol"] == "€"

    reread = await client.get("/api/v1/companies/settings", headers=viewer_headers)
    assert reread.json()["default_currency"] == "EUR"


@pytest.mark.asyncio
async def test_invalid_currency_code(client, demo, admin_headers):
    response = await client.patch(
        "/api/v1/companies/settings", json={"default_currency": "euro"}, headers=admin_headers
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_settings_are_per_company(client, demo, other_company, other_admin_headers, viewer_headers):
    await client.patch(
        "/api/v1/companies/settings", json={"default_currency": "PKR"}, headers=other_admin_headers
    )
    response = await client.get("/api/v1/companies/settings", headers=viewer_headers)
    assert response.json()["default_currency"] == "USD"
