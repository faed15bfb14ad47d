import pytest
from sqlalchemy import select, func

from app.models.post import Post, PostImage
from app.models.comment import Comment, CommentLike
from app.models.reaction import Reaction, Favorite
from app.services.comment_service import CommentService
from app.services.reaction_service import ReactionService
from app.utils.file_upload import url_to_path

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

def _image(name: str = "photo.png"):
    return ("images", (name, PNG_BYTES, "image/png"))

async def _count(db, model):
    result = await db.execute(select(func.count(model.id)))
    return result.scalar_one()

@pytest.mark.asyncio
async def test_create_post_with_images(client, make_user):
    """Test creating a post"""
    user = await make_user()

    response = await client.post(
        "/api/v1/posts",
        data={"user_id": str(user.id), "title": "Sunset", "description": "At the beach"},
        files=[_image("a.png"), _image("b.jpg")]
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["title"] == "Sunset"
    assert data["description"] == "At the beach"
    assert data["status"] == "active"
    assert data["user"]["id"] == user.id
    assert (data["like_count"], data["comment_count"], data["favorite_count"]) == (0, 0, 0)
    assert len(data["images"]) == 2
    for url in data["images"]:
        assert url.startswith("/uploads/posts/")
        assert url_to_path(url).exists()

@pytest.mark.asyncio
async def test_create_post_without_images(client, make_user):
    user = await make_user()

    response = await client.post(
        "/api/v1/posts",
        data={"user_id": str(user.id), "title": "Just text"}
    )

    assert response.status_code == 201
    assert response.json()["data"]["images"] == []

@pytest.mark.asyncio
async def test_create_post_rejects_too_many_images(client, make_user):
    user = await make_user()

    response = await client.post(
        "/api/v1/posts",
        data={"user_id": str(user.id), "title": "Album"},
        files=[_image() for _ in range(4)]
    )

    assert response.status_code == 400
    assert response.json()["success"] is False

@pytest.mark.asyncio
async def test_create_post_rejects_non_images(client, make_user):
    user = await make_user()

    response = await client.post(
        "/api/v1/posts",
        data={"user_id": str(user.id), "title": "Notes"},
        files=[("images", ("notes.txt", b"plain text", "text/plain"))]
    )

    assert response.status_code == 400

@pytest.mark.asyncio
async def test_create_post_for_unknown_user(client, test_db):
    response = await client.post(
        "/api/v1/posts",
        data={"user_id": "999", "title": "Ghost"},
        files=[_image()]
    )

    assert response.status_code == 404
    assert await _count(test_db, PostImage) == 0

@pytest.mark.asyncio
async def test_get_posts(client, make_user, make_post):
    """Test getting posts"""
    user = await make_user()
    for i in range(3):
        await make_post(user.id, title=f"Test post {i}")

    response = await client.get("/api/v1/posts")

    assert response.status_code == 200
    titles = [post["title"] for post in response.json()["data"]]
    assert titles == ["Test post 2", "Test post 1", "Test post 0"]

@pytest.mark.asyncio
async def test_get_post(client, make_user, make_post):
    user = await make_user()
    post = await make_post(user.id, title="Single")

    response = await client.get(f"/api/v1/posts/{post.id}")
    assert response.status_code == 200
    assert response.json()["data"]["title"] == "Single"

    response = await client.get("/api/v1/posts/999")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Post not found", "error": None}

@pytest.mark.asyncio
async def test_update_post_replaces_images(client, make_user):
    user = await make_user()
    created = await client.post(
        "/api/v1/posts",
        data={"user_id": str(user.id), "title": "Before"},
        files=[_image("old.png")]
    )
    post = created.json()["data"]
    old_url = post["images"][0]

    response = await client.put(
        f"/api/v1/posts/{post['id']}",
        data={"user_id": str(user.id), "title": "After", "description": "Edited"},
        files=[_image("new1.png"), _image("new2.png")]
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "After"
    assert data["description"] == "Edited"
    assert len(data["images"]) == 2
    assert old_url not in data["images"]
    assert not url_to_path(old_url).exists()

@pytest.mark.asyncio
async def test_update_post_keeps_images_when_none_sent(client, make_user, make_post):
    user = await make_user()
    post = await make_post(user.id, title="Keep", image_urls=["/uploads/posts/kept.png"])

    response = await client.put(
        f"/api/v1/posts/{post.id}",
        data={"title": "Renamed"}
    )

    assert response.status_code == 200
    assert response.json()["data"]["images"] == ["/uploads/posts/kept.png"]

@pytest.mark.asyncio
async def test_update_post_of_someone_else(client, make_user, make_post):
    owner = await make_user()
    intruder = await make_user()
    post = await make_post(owner.id)

    response = await client.put(
        f"/api/v1/posts/{post.id}",
        data={"user_id": str(intruder.id), "title": "Hijacked"}
    )

    assert response.status_code == 403

@pytest.mark.asyncio
async def test_delete_post_cascades(client, test_db, make_user):
    author = await make_user()
    reader = await make_user()
    created = await client.post(
        "/api/v1/posts",
        data={"user_id": str(author.id), "title": "Doomed"},
        files=[_image()]
    )
    post = created.json()["data"]
    image_url = post["images"][0]

    reactions = ReactionService(test_db)
    await reactions.apply_reaction(post["id"], reader.id, "like")
    await reactions.apply_favorite(post["id"], reader.id)
    comments = CommentService(test_db)
    top = await comments.create_comment(post["id"], reader.id, "Top")
    reply = await comments.create_comment(post["id"], author.id, "Reply", parent_id=top.id)
    await comments.toggle_comment_like(reply.id, reader.id)

    response = await client.request(
        "DELETE",
        f"/api/v1/posts/{post['id']}",
        json={"user_id": reader.id}
    )
    assert response.status_code == 403

    response = await client.request(
        "DELETE",
        f"/api/v1/posts/{post['id']}",
        json={"user_id": author.id}
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Post deleted"

    for model in (Post, PostImage, Comment, CommentLike, Reaction, Favorite):
        assert await _count(test_db, model) == 0
    assert not url_to_path(image_url).exists()

    response = await client.get(f"/api/v1/posts/{post['id']}")
    assert response.status_code == 404

@pytest.mark.asyncio
async def test_favorite_posts_listing(client, test_db, make_user, make_post):
    author = await make_user()
    reader = await make_user()
    first = await make_post(author.id, title="First")
    second = await make_post(author.id, title="Second")
    await make_post(author.id, title="Not saved")

    reactions = ReactionService(test_db)
    await reactions.apply_favorite(second.id, reader.id)
    await reactions.apply_favorite(first.id, reader.id)

    response = await client.get(f"/api/v1/posts/favorites/{reader.id}")

    assert response.status_code == 200
    posts = response.json()["data"]
    assert [p["title"] for p in posts] == ["First", "Second"]
    assert all(p["favorite_count"] == 1 for p in posts)

@pytest.mark.asyncio
async def test_end_to_end_feed_scenario(client, make_user):
    a = await make_user("alice")
    b = await make_user("bob")
    c = await make_user("carol")
    d = await make_user("dave")

    created = await client.post("/api/v1/posts", data={"user_id": str(a.id), "title": "P"})
    post_id = created.json()["data"]["id"]
    react_url = f"/api/v1/reactions/post/{post_id}"

    data = (await client.post(react_url, json={"user_id": b.id, "kind": "like"})).json()["data"]
    assert (data["likes"], data["user_reaction"]) == (1, "like")

    data = (await client.post(react_url, json={"user_id": b.id, "kind": "dislike"})).json()["data"]
    assert (data["likes"], data["dislikes"]) == (0, 1)

    data = (await client.post(react_url, json={"user_id": b.id, "kind": "dislike"})).json()["data"]
    assert data["dislikes"] == 0
    assert data["user_reaction"] is None

    comment = await client.post("/api/v1/comments", json={
        "post_id": post_id, "user_id": c.id, "content": "Great"
    })
    comment_id = comment.json()["data"]["id"]
    post = (await client.get(f"/api/v1/posts/{post_id}")).json()["data"]
    assert post["comment_count"] == 1

    reply = await client.post("/api/v1/comments", json={
        "post_id": post_id, "user_id": d.id, "content": "Agreed", "parent_id": comment_id
    })
    assert reply.status_code == 201

    threads = (await client.get(f"/api/v1/comments/post/{post_id}")).json()["data"]
    assert len(threads) == 1
    assert threads[0]["id"] == comment_id
    assert [r["content"] for r in threads[0]["replies"]] == ["Agreed"]
    assert threads[0]["replies"][0]["user"]["username"] == "dave"

@pytest.mark.asyncio
async def test_post_routes_reject_out_of_range_ids(client, make_user, make_post):
    user = await make_user()
    post = await make_post(user.id)

    response = await client.get(f"/api/v1/posts/{2 ** 63}")
    assert response.status_code == 400

    response = await client.get(f"/api/v1/posts/favorites/{2 ** 31}")
    assert response.status_code == 400

    response = await client.post(
        "/api/v1/posts",
        data={"user_id": str(2 ** 63), "title": "Too big"}
    )
    assert response.status_code == 400

    response = await client.request(
        "DELETE",
        f"/api/v1/posts/{post.id}",
        json={"user_id": 2 ** 63}
    )
    assert response.status_code == 400

    response = await client.get(f"/api/v1/posts/{post.id}")
    assert response.status_code == 200
