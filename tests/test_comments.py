import pytest
from fastapi import status

@pytest.fixture
def test_comment_data():
    return {
        "content": "This is a test comment"
    }

@pytest.fixture
def test_comment(other_client, published_post, test_comment_data):
    response = other_client.post(f"/api/posts/{published_post['id']}/comments", json=test_comment_data)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()

def comment_count(client, post):
    return client.get(f"/api/posts/{post['id']}/stats").json()["comments"]

class TestCommentCreation:
    def test_create_comment(self, client, other_client, published_post, test_comment_data):
        response = other_client.post(f"/api/posts/{published_post['id']}/comments", json=test_comment_data)
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["content"] == test_comment_data["content"]
        assert data["post_id"] == published_post["id"]
        assert data["author_id"] == other_client.user_id
        assert data["parent_id"] is None
        assert data["reply_ids"] == []
        assert data["state"] == "active"
        assert data["is_deleted"] is False
        assert data["is_edited"] is False
        assert comment_count(client, published_post) == 1

    def test_content_is_trimmed(self, other_client, published_post):
        data = other_client.post(
            f"/api/posts/{published_post['id']}/comments", json={"content": "  padded  "}
        ).json()
        assert data["content"] == "padded"

    @pytest.mark.parametrize("content", ["", "   ", "x" * 1001])
    def test_invalid_content(self, other_client, published_post, content):
        response = other_client.post(f"/api/posts/{published_post['id']}/comments", json={"content": content})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_comment_on_pending_post(self, authenticated_client, pending_post, test_comment_data):
        response = authenticated_client.post(f"/api/posts/{pending_post['id']}/comments", json=test_comment_data)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Cannot comment on unpublished post"

    def test_comment_on_missing_post(self, authenticated_client, test_comment_data):
        response = authenticated_client.post("/api/posts/missing/comments", json=test_comment_data)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_comment_on_deleted_post(self, authenticated_client, published_post, test_comment_data):
        authenticated_client.delete(f"/api/posts/{published_post['id']}")
        response = authenticated_client.post(f"/api/posts/{published_post['id']}/comments", json=test_comment_data)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_comment_unauthorized(self, client, published_post, test_comment_data):
        response = client.post(f"/api/posts/{published_post['id']}/comments", json=test_comment_data)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

class TestReplies:
    def test_reply_appended_to_parent(self, client, authenticated_client, other_client, published_post, test_comment):
        url = f"/api/posts/{published_post['id']}/comments"
        first = authenticated_client.post(url, json={"content": "First reply", "parent_id": test_comment["id"]})
        second = other_client.post(url, json={"content": "Second reply", "parent_id": test_comment["id"]})
        assert first.status_code == status.HTTP_201_CREATED
        assert first.json()["parent_id"] == test_comment["id"]

        thread = client.get(url).json()["comments"][0]
        assert thread["reply_ids"] == [first.json()["id"], second.json()["id"]]
        assert [reply["content"] for reply in thread["replies"]] == ["First reply", "Second reply"]
        # replies count toward the post total
        assert comment_count(client, published_post) == 3

    def test_reply_to_reply_rejected(self, authenticated_client, published_post, test_comment):
        url = f"/api/posts/{published_post['id']}/comments"
        reply = authenticated_client.post(url, json={"content": "Reply", "parent_id": test_comment["id"]}).json()
        response = authenticated_client.post(url, json={"content": "Nested", "parent_id": reply["id"]})
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Replies cannot be nested under other replies"

    def test_reply_to_missing_parent(self, authenticated_client, published_post):
        response = authenticated_client.post(
            f"/api/posts/{published_post['id']}/comments",
            json={"content": "Reply", "parent_id": "missing"}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Parent comment not found"

    def test_reply_across_posts(self, authenticated_client, admin_client, test_post_data, test_comment):
        other_post = authenticated_client.post("/api/posts", json=test_post_data).json()
        admin_client.post(f"/api/admin/posts/{other_post['id']}:approvePost")
        response = authenticated_client.post(
            f"/api/posts/{other_post['id']}/comments",
            json={"content": "Reply", "parent_id": test_comment["id"]}
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_reply_to_deleted_parent(self, client, authenticated_client, other_client, published_post, test_comment):
        other_client.delete(f"/api/comments/{test_comment['id']}")
        response = authenticated_client.post(
            f"/api/posts/{published_post['id']}/comments",
            json={"content": "Still replying", "parent_id": test_comment["id"]}
        )
        assert response.status_code == status.HTTP_201_CREATED

class TestCommentListing:
    def test_list_hides_deleted(self, client, other_client, published_post, test_comment):
        url = f"/api/posts/{published_post['id']}/comments"
        reply = other_client.post(url, json={"content": "Reply", "parent_id": test_comment["id"]}).json()
        other_client.delete(f"/api/comments/{reply['id']}")

        thread = client.get(url).json()["comments"][0]
        assert thread["replies"] == []
        # the tombstone keeps its slot in the reply list
        assert thread["reply_ids"] == [reply["id"]]

        other_client.delete(f"/api/comments/{test_comment['id']}")
        assert client.get(url).json()["total"] == 0

    def test_sort_and_paginate(self, client, other_client, authenticated_client, published_post):
        url = f"/api/posts/{published_post['id']}/comments"
        first = other_client.post(url, json={"content": "First"}).json()
        second = other_client.post(url, json={"content": "Second"}).json()
        authenticated_client.post(f"/api/comments/{first['id']}:likeComment")

        data = client.get(url, params={"sort": "oldest"}).json()
        assert [c["id"] for c in data["comments"]] == [first["id"], second["id"]]
        data = client.get(url, params={"sort": "likes", "limit": 1}).json()
        assert data["total"] == 2
        assert data["total_pages"] == 2
        assert [c["id"] for c in data["comments"]] == [first["id"]]

    def test_list_for_missing_post(self, client):
        response = client.get("/api/posts/missing/comments")
        assert response.status_code == status.HTTP_404_NOT_FOUND

class TestCommentUpdate:
    def test_update_comment(self, other_client, test_comment):
        response = other_client.put(f"/api/comments/{test_comment['id']}", json={"content": "Updated comment"})
        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["content"] == "Updated comment"
        assert data["is_edited"] is True

    def test_update_by_other_user(self, authenticated_client, test_comment):
        response = authenticated_client.put(f"/api/comments/{test_comment['id']}", json={"content": "Hijack"})
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_update_deleted_comment(self, other_client, test_comment):
        other_client.delete(f"/api/comments/{test_comment['id']}")
        response = other_client.put(f"/api/comments/{test_comment['id']}", json={"content": "Too late"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

class TestCommentDeletion:
    def test_author_delete(self, client, other_client, admin_client, published_post, test_comment):
        response = other_client.delete(f"/api/comments/{test_comment['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert comment_count(client, published_post) == 0

        listed = admin_client.get("/api/admin/comments").json()
        assert listed["total"] == 0

    def test_delete_twice_decrements_once(self, client, other_client, admin_client, published_post, test_comment):
        other_client.post(f"/api/posts/{published_post['id']}/comments", json={"content": "Another"})
        other_client.delete(f"/api/comments/{test_comment['id']}")
        response = admin_client.delete(f"/api/comments/{test_comment['id']}")
        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert comment_count(client, published_post) == 1

    def test_moderator_delete(self, client, admin_client, published_post, test_comment):
        response = admin_client.delete(f"/api/admin/comments/{test_comment['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert comment_count(client, published_post) == 0

    def test_delete_by_other_user(self, authenticated_client, test_comment):
        response = authenticated_client.delete(f"/api/comments/{test_comment['id']}")
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_author_post_delete_keeps_comments(self, authenticated_client, admin_client, published_post, test_comment):
        authenticated_client.delete(f"/api/posts/{published_post['id']}")
        listed = admin_client.get("/api/admin/comments", params={"post_id": published_post["id"]}).json()
        assert [c["id"] for c in listed["comments"]] == [test_comment["id"]]
