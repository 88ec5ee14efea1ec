"""
JSON:API Endpoint Tests

End-to-end tests through the application: soft delete and restore via the
deleted-at attribute, permanent deletion via DELETE, and JSON:API errors.
"""

import json

from jsonapi_adapter.errors import JSONAPI_MEDIA_TYPE

API = "/api/v1"


def _post_document(**attributes):
    defaults = {"title": "Hello World", "slug": "hello-world", "content": "Lorem ipsum"}
    defaults.update(attributes)
    return {"data": {"type": "posts", "attributes": defaults}}


def _patch_document(post_id, **attributes):
    return {"data": {"type": "posts", "id": str(post_id), "attributes": attributes}}


def _create_post(client, **attributes):
    response = client.post(f"{API}/posts", json=_post_document(**attributes))
    assert response.status_code == 201
    return response.json()["data"]


class TestHealth:
    def test_health_check(self, client):
        """Test health endpoint is served outside the JSON:API"""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ============================================================================
# Posts (soft deleting)
# ============================================================================


class TestPosts:
    """Test the soft-deleting posts resource"""

    def test_create_post(self, client):
        """Test creating a post"""
        response = client.post(
            f"{API}/posts",
            content=json.dumps(_post_document()),
            headers={"Content-Type": JSONAPI_MEDIA_TYPE},
        )

        assert response.status_code == 201
        assert response.headers["content-type"].startswith(JSONAPI_MEDIA_TYPE)
        data = response.json()["data"]
        assert data["type"] == "posts"
        assert data["attributes"]["title"] == "Hello World"
        assert data["attributes"]["deleted-at"] is None
        assert response.headers["location"] == data["links"]["self"]

    def test_soft_delete_and_restore(self, client):
        """Test trashing and restoring through the deleted-at attribute"""
        post = _create_post(client)

        response = client.patch(f"{API}/posts/{post['id']}", json=_patch_document(post["id"], **{"deleted-at": True}))
        assert response.status_code == 200
        assert response.json()["data"]["attributes"]["deleted-at"] is not None

        # Trashed: still readable, hidden from the listing
        assert client.get(f"{API}/posts/{post['id']}").status_code == 200
        assert client.get(f"{API}/posts").json()["data"] == []

        response = client.patch(
            f"{API}/posts/{post['id']}",
            json=_patch_document(post["id"], title="Restored", **{"deleted-at": False}),
        )
        assert response.status_code == 200
        attributes = response.json()["data"]["attributes"]
        assert attributes["deleted-at"] is None
        assert attributes["title"] == "Restored"

        listed = client.get(f"{API}/posts").json()["data"]
        assert [p["id"] for p in listed] == [post["id"]]

    def test_soft_delete_with_date(self, client):
        """Test trashing with an explicit deletion date"""
        post = _create_post(client)

        response = client.patch(
            f"{API}/posts/{post['id']}",
            json=_patch_document(post["id"], **{"deleted-at": "2024-02-03T04:05:06Z"}),
        )

        assert response.status_code == 200
        assert response.json()["data"]["attributes"]["deleted-at"] == "2024-02-03T04:05:06"

    def test_delete_is_permanent(self, client):
        """Test DELETE removes the post"""
        post = _create_post(client)

        response = client.delete(f"{API}/posts/{post['id']}")
        assert response.status_code == 204

        response = client.get(f"{API}/posts/{post['id']}")
        assert response.status_code == 404
        assert response.headers["content-type"].startswith(JSONAPI_MEDIA_TYPE)
        assert response.json()["errors"][0]["status"] == "404"

    def test_delete_trashed_post(self, client):
        """Test DELETE also removes trashed posts"""
        post = _create_post(client, **{"deleted-at": "1"})

        assert client.delete(f"{API}/posts/{post['id']}").status_code == 204
        assert client.get(f"{API}/posts/{post['id']}").status_code == 404

    def test_sparse_fieldsets(self, client):
        """Test only the requested fields are returned"""
        post = _create_post(client)

        response = client.get(f"{API}/posts/{post['id']}", params={"fields[posts]": "title"})
        assert response.json()["data"]["attributes"] == {"title": "Hello World"}


# ============================================================================
# Comments (regular)
# ============================================================================


class TestComments:
    """Test a resource without soft deletes"""

    def test_create_and_delete_comment(self, client):
        """Test DELETE removes a regular resource"""
        response = client.post(f"{API}/comments", json={"data": {"type": "comments", "attributes": {"content": "Nice"}}})
        assert response.status_code == 201
        comment_id = response.json()["data"]["id"]

        assert client.delete(f"{API}/comments/{comment_id}").status_code == 204
        assert client.get(f"{API}/comments/{comment_id}").status_code == 404


# ============================================================================
# Errors
# ============================================================================


class TestErrors:
    """Test errors on JSON:API routes are JSON:API documents"""

    def test_missing_data_member(self, client):
        """Test request validation errors point into the document"""
        response = client.post(f"{API}/posts", json={"meta": {}})

        assert response.status_code == 422
        assert response.headers["content-type"].startswith(JSONAPI_MEDIA_TYPE)
        assert response.json()["errors"][0]["source"] == {"pointer": "/data"}

    def test_type_mismatch(self, client):
        """Test a document for another resource type is a conflict"""
        response = client.post(f"{API}/posts", json={"data": {"type": "comments", "attributes": {}}})

        assert response.status_code == 409
        assert response.json()["errors"][0]["source"] == {"pointer": "/data/type"}

    def test_unknown_resource_type(self, client):
        """Test unknown resource types are not found"""
        response = client.get(f"{API}/videos")

        assert response.status_code == 404
        assert response.json()["errors"][0]["title"] == "Not Found"

    def test_invalid_soft_delete_value(self, client):
        """Test a value that is neither boolean-like nor a date is rejected"""
        post = _create_post(client)

        response = client.patch(f"{API}/posts/{post['id']}", json=_patch_document(post["id"], **{"deleted-at": "soon"}))

        assert response.status_code == 422
        assert response.json()["errors"][0]["source"] == {"pointer": "/data/attributes/deleted-at"}

    def test_invalid_sort(self, client):
        """Test query parameter errors name the parameter"""
        response = client.get(f"{API}/posts", params={"sort": "nope"})

        assert response.status_code == 400
        assert response.json()["errors"][0]["source"] == {"parameter": "sort"}

    def test_duplicate_slug_is_conflict(self, client):
        """Test a unique constraint violation is a 409 naming the member"""
        _create_post(client, slug="same")

        response = client.post(f"{API}/posts", json=_post_document(title="Another", slug="same"))

        assert response.status_code == 409
        assert response.headers["content-type"].startswith(JSONAPI_MEDIA_TYPE)
        assert response.json()["errors"][0]["source"] == {"pointer": "/data/attributes/slug"}

        # The session was rolled back and is still usable
        listed = client.get(f"{API}/posts").json()["data"]
        assert [p["attributes"]["slug"] for p in listed] == ["same"]

    def test_missing_required_attribute(self, client):
        """Test a NOT NULL violation is a 422 naming the member"""
        response = client.post(
            f"{API}/posts",
            json={"data": {"type": "posts", "attributes": {"slug": "untitled", "content": "x"}}},
        )

        assert response.status_code == 422
        assert response.json()["errors"][0]["source"] == {"pointer": "/data/attributes/title"}
        assert client.get(f"{API}/posts").json()["data"] == []

    def test_update_to_duplicate_slug(self, client):
        """Test an update hitting a unique constraint leaves the record unchanged"""
        _create_post(client, slug="taken")
        post = _create_post(client, slug="free")

        response = client.patch(f"{API}/posts/{post['id']}", json=_patch_document(post["id"], slug="taken"))

        assert response.status_code == 409
        assert client.get(f"{API}/posts/{post['id']}").json()["data"]["attributes"]["slug"] == "free"
