# SPDX-License-Identifier: MIT
"""Tests for package metadata, retraction and uploader endpoints."""

import pytest
from httpx import AsyncClient

from repub_api.db.models import Package
from repub_api.middleware import PUB_MEDIA_TYPE


@pytest.mark.asyncio
async def test_get_package(client: AsyncClient, publish, read_headers, make_archive):
    """Test getting a package with its versions."""
    await publish(make_archive("pkgA", "1.0.0", extra_pubspec="description: First\n"))
    await publish(make_archive("pkgA", "1.1.0", extra_pubspec="description: Second\n"))

    response = await client.get("/api/packages/pkgA", headers=read_headers)
    assert response.status_code == 200
    assert response.headers["content-type"].startswith(PUB_MEDIA_TYPE)

    data = response.json()
    assert data["name"] == "pkgA"
    assert [v["version"] for v in data["versions"]] == ["1.1.0", "1.0.0"]
    assert data["latest"]["version"] == "1.1.0"

    latest = data["latest"]
    assert latest["retracted"] is False
    assert latest["archive_url"] == "http://test/packages/pkgA/versions/1.1.0/download"
    assert len(latest["archive_sha256"]) == 64
    assert latest["pubspec"] == {"name": "pkgA", "version": "1.1.0", "description": "Second"}
    assert latest["published"] is not None


@pytest.mark.asyncio
async def test_get_package_repeatable(client: AsyncClient, publish, read_headers, make_archive):
    await publish(make_archive("pkgA", "1.0.0"))

    first = await client.get("/api/packages/pkgA", headers=read_headers)
    second = await client.get("/api/packages/pkgA", headers=read_headers)
    assert first.json() == second.json()


@pytest.mark.asyncio
async def test_get_package_not_found(client: AsyncClient, read_headers):
    """Test getting a non-existent package."""
    response = await client.get("/api/packages/nonexistent", headers=read_headers)
    assert response.status_code == 404
    assert response.headers["content-type"].startswith(PUB_MEDIA_TYPE)

    data = response.json()
    assert data["error"]["code"] == "PACKAGE_NOT_FOUND"


@pytest.mark.asyncio
async def test_get_package_without_versions(client: AsyncClient, test_session, read_headers):
    """Test that a package row without versions is reported as a server error."""
    test_session.add(Package(name="empty"))
    await test_session.commit()

    response = await client.get("/api/packages/empty", headers=read_headers)
    assert response.status_code == 500
    assert response.json()["error"]["code"] == "NO_VERSIONS"


@pytest.mark.asyncio
async def test_get_package_requires_token(client: AsyncClient):
    response = await client.get("/api/packages/pkgA")
    assert response.status_code == 401
    assert response.headers["www-authenticate"].startswith('Bearer realm="pub"')


@pytest.mark.asyncio
async def test_get_version(client: AsyncClient, publish, read_headers, make_archive):
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.get("/api/packages/pkgA/versions/1.0.0", headers=read_headers)
    assert response.status_code == 200
    assert response.json()["version"] == "1.0.0"


@pytest.mark.asyncio
async def test_get_version_not_found(client: AsyncClient, publish, read_headers, make_archive):
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.get("/api/packages/pkgA/versions/2.0.0", headers=read_headers)
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "VERSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_packages(client: AsyncClient, publish, read_headers, make_archive):
    """Test listing packages with pagination, sorted by name."""
    for name in ("charlie", "alpha", "bravo"):
        await publish(make_archive(name, "1.0.0"))

    response = await client.get("/api/packages?page=1&per_page=2", headers=read_headers)
    assert response.status_code == 200

    data = response.json()
    assert [p["name"] for p in data["packages"]] == ["alpha", "bravo"]
    assert data["pagination"]["total"] == 3
    assert data["pagination"]["total_pages"] == 2


@pytest.mark.asyncio
async def test_list_packages_invalid_page(client: AsyncClient, read_headers):
    response = await client.get("/api/packages?page=0", headers=read_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_retract_version(client: AsyncClient, publish, alice_headers, make_archive):
    """Test that retracting the newest version moves latest back."""
    await publish(make_archive("pkgA", "1.0.0"))
    await publish(make_archive("pkgA", "1.1.0"))

    response = await client.post(
        "/api/packages/pkgA/versions/1.1.0/retract", headers=alice_headers
    )
    assert response.status_code == 200
    assert response.json()["retracted"] is True

    package = (await client.get("/api/packages/pkgA", headers=alice_headers)).json()
    assert package["latest"]["version"] == "1.0.0"
    assert package["versions"][0]["retracted"] is True


@pytest.mark.asyncio
async def test_restore_version(client: AsyncClient, publish, alice_headers, make_archive):
    await publish(make_archive("pkgA", "1.0.0"))
    await client.post("/api/packages/pkgA/versions/1.0.0/retract", headers=alice_headers)

    response = await client.post(
        "/api/packages/pkgA/versions/1.0.0/retract",
        json={"retracted": False},
        headers=alice_headers,
    )
    assert response.status_code == 200
    assert response.json()["retracted"] is False


@pytest.mark.asyncio
async def test_retract_by_non_uploader(
    client: AsyncClient, publish, mallory_headers, make_archive
):
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.post(
        "/api/packages/pkgA/versions/1.0.0/retract", headers=mallory_headers
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "UNAUTHORIZED_UPLOADER"


@pytest.mark.asyncio
async def test_retract_requires_write_scope(
    client: AsyncClient, publish, read_headers, make_archive
):
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.post("/api/packages/pkgA/versions/1.0.0/retract", headers=read_headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_uploaders(
    client: AsyncClient, publish, alice_headers, mallory_headers, make_archive
):
    """Test that an added uploader may publish new versions."""
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.get("/api/packages/pkgA/uploaders", headers=alice_headers)
    assert response.json() == {"package": "pkgA", "uploaders": ["alice"]}

    response = await client.post(
        "/api/packages/pkgA/uploaders", json={"uploader": "mallory"}, headers=alice_headers
    )
    assert response.status_code == 200
    assert response.json()["uploaders"] == ["alice", "mallory"]

    response = await publish(make_archive("pkgA", "1.1.0"), headers=mallory_headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_add_uploader_requires_membership(
    client: AsyncClient, publish, mallory_headers, make_archive
):
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.post(
        "/api/packages/pkgA/uploaders", json={"uploader": "mallory"}, headers=mallory_headers
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "UNAUTHORIZED_UPLOADER"


@pytest.mark.asyncio
async def test_add_uploader_empty_name(client: AsyncClient, publish, alice_headers, make_archive):
    await publish(make_archive("pkgA", "1.0.0"))

    response = await client.post(
        "/api/packages/pkgA/uploaders", json={"uploader": ""}, headers=alice_headers
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"


@pytest.mark.asyncio
async def test_uploaders_package_not_found(client: AsyncClient, read_headers):
    response = await client.get("/api/packages/nonexistent/uploaders", headers=read_headers)
    assert response.status_code == 404
