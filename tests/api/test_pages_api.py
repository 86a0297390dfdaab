"""Tests for the public pages, catch-all fallback and favicon."""

from httpx import AsyncClient

from app.services.setting_groups import HERO


async def test_health(client: AsyncClient):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_root_serves_homepage(client: AsyncClient):
    response = await client.get("/")

    assert response.status_code == 200
    assert "homepage" in response.text


async def test_unknown_route_falls_back_to_homepage(client: AsyncClient):
    response = await client.get("/listings/featured")

    assert response.status_code == 200
    assert "homepage" in response.text


async def test_existing_public_file_is_served(client: AsyncClient):
    response = await client.get("/css/site.css")

    assert response.status_code == 200
    assert "margin" in response.text


async def test_portal_is_public(client: AsyncClient):
    response = await client.get("/portal.html")
    assert "portal" in response.text


async def test_missing_asset_is_not_found(client: AsyncClient):
    response = await client.get("/images/missing.png")
    assert response.status_code == 404


async def test_unknown_api_path_is_json_not_found(client: AsyncClient):
    response = await client.get("/api/unknown")

    assert response.status_code == 404
    assert response.json() == {"error": "Not found"}


async def test_path_traversal_does_not_escape_public_dir(client: AsyncClient):
    response = await client.get("/..%2F..%2Fetc%2Fpasswd")
    assert response.status_code in (200, 404)
    assert "root:" not in response.text


async def test_favicon_without_logo(client: AsyncClient):
    response = await client.get("/favicon.ico")
    assert response.status_code == 404


async def test_favicon_follows_uploaded_logo(admin_client: AsyncClient, config_store):
    saved = await admin_client.post("/api/hero/settings", files={"logo": ("logo.png", b"PNGDATA", "image/png")})
    logo_url = saved.json()["settings"]["logoUrl"]

    favicon = await admin_client.get("/favicon.ico")
    asset = await admin_client.get(logo_url)

    assert config_store.read(HERO.key)["logoUrl"] == logo_url
    assert favicon.status_code == 200
    assert favicon.content == b"PNGDATA"
    assert asset.status_code == 200
    assert asset.content == b"PNGDATA"
