import pytest
from concurrent.futures import ThreadPoolExecutor
from fastapi import status
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from blog_api.db.database import create_tables
from blog_api.models.like import Like, TargetType
from blog_api.models.post import Post, PostStatus
from blog_api.services import counters

@pytest.fixture
def test_comment(other_client, published_post):
    return other_client.post(
        f"/api/posts/{published_post['id']}/comments", json={"content": "Likeable comment"}
    ).json()

class TestPostLikes:
    def test_like_and_unlike(self, client, other_client, published_post):
        url = f"/api/posts/{published_post['id']}:likePost"
        response = other_client.post(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "Post liked successfully", "likes_count": 1, "is_liked": True}

        post = client.get(f"/api/posts/by-slug/{published_post['slug']}").json()
        assert post["likes"] == [other_client.user_id]
        assert post["likes_count"] == 1

        response = other_client.post(url)
        assert response.json() == {"message": "Post unliked successfully", "likes_count": 0, "is_liked": False}

    def test_likes_from_several_users(self, authenticated_client, other_client, admin_client, published_post):
        url = f"/api/posts/{published_post['id']}:likePost"
        authenticated_client.post(url)
        other_client.post(url)
        assert admin_client.post(url).json()["likes_count"] == 3
        assert other_client.post(url).json()["likes_count"] == 2

    def test_like_pending_post(self, authenticated_client, pending_post):
        response = authenticated_client.post(f"/api/posts/{pending_post['id']}:likePost")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Cannot like unpublished post"

    def test_like_missing_post(self, authenticated_client):
        response = authenticated_client.post("/api/posts/missing:likePost")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_like_unauthorized(self, client, published_post):
        response = client.post(f"/api/posts/{published_post['id']}:likePost")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

class TestCommentLikes:
    def test_like_comment(self, authenticated_client, test_comment):
        url = f"/api/comments/{test_comment['id']}:likeComment"
        response = authenticated_client.post(url)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message": "Comment liked successfully", "likes_count": 1, "is_liked": True}
        assert authenticated_client.post(url).json()["likes_count"] == 0

    def test_like_deleted_comment(self, authenticated_client, other_client, test_comment):
        other_client.delete(f"/api/comments/{test_comment['id']}")
        response = authenticated_client.post(f"/api/comments/{test_comment['id']}:likeComment")
        assert response.status_code == status.HTTP_404_NOT_FOUND

class TestToggleService:
    @pytest.fixture
    def post(self, db_session, make_user):
        author = make_user("writer")
        post = Post(author_id=author.id, title="Service post", slug="service-post-1",
                    content="Body", status=PostStatus.PUBLISHED)
        db_session.add(post)
        db_session.commit()
        return post

    def test_count_follows_like_rows(self, db_session, make_user, post):
        alice, bob = make_user("alice"), make_user("bob")
        assert counters.toggle_like(db_session, TargetType.POST, post.id, alice.id) == (1, True)
        assert counters.toggle_like(db_session, TargetType.POST, post.id, bob.id) == (2, True)
        assert counters.is_liked_by(db_session, TargetType.POST, post.id, alice.id)
        assert counters.toggle_like(db_session, TargetType.POST, post.id, alice.id) == (1, False)
        assert db_session.query(Like).filter(Like.target_id == post.id).count() == 1
        assert counters.like_user_ids(db_session, TargetType.POST, post.id) == [bob.id]

    def test_duplicate_insert_is_ignored(self, db_session, make_user, post):
        alice = make_user("alice")
        assert counters._insert_like_if_absent(db_session, TargetType.POST, post.id, alice.id) is True
        assert counters._insert_like_if_absent(db_session, TargetType.POST, post.id, alice.id) is False
        assert counters.refresh_likes_count(db_session, TargetType.POST, post.id) == 1
        db_session.commit()

class TestConcurrentToggles:
    """Overlapping toggles from separate connections keep the count equal to the like set"""

    @pytest.fixture
    def session_factory(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'likes.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        create_tables(engine)
        yield sessionmaker(bind=engine)
        engine.dispose()

    @pytest.fixture
    def post_id(self, session_factory):
        with session_factory() as session:
            post = Post(author_id="writer", title="Busy post", slug="busy-post-1",
                        content="Body", status=PostStatus.PUBLISHED)
            session.add(post)
            session.commit()
            return post.id

    def _toggle_all(self, session_factory, post_id, users):
        def toggle(user_id):
            with session_factory() as session:
                return counters.toggle_like(session, TargetType.POST, post_id, user_id)

        with ThreadPoolExecutor(max_workers=len(users)) as pool:
            return list(pool.map(toggle, users))

    def test_overlapping_toggles(self, session_factory, post_id):
        users = [f"user-{n}" for n in range(8)]

        results = self._toggle_all(session_factory, post_id, users)
        assert all(is_liked for _, is_liked in results)
        assert sorted(count for count, _ in results) == list(range(1, len(users) + 1))
        with session_factory() as session:
            assert session.get(Post, post_id).likes_count == len(users)
            assert sorted(counters.like_user_ids(session, TargetType.POST, post_id)) == sorted(users)

        results = self._toggle_all(session_factory, post_id, users)
        assert not any(is_liked for _, is_liked in results)
        with session_factory() as session:
            assert session.get(Post, post_id).likes_count == 0
            assert counters.like_user_ids(session, TargetType.POST, post_id) == []
