import pytest
from fastapi import status


def comment_on(client, post_id, headers, content, parent_id=None):
    payload = {"content": content}
    if parent_id:
        payload["parent_id"] = parent_id
    return client.post(f"/api/posts/{post_id}/comments", json=payload, headers=headers)


class TestCommentCreation:
    def test_create_comment(self, client, alice_post, bob):
        """Commenting bumps the post's comment count"""
        _, headers = bob
        response = comment_on(client, alice_post["id"], headers, "See you there")
        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["content"] == "See you there"
        assert data["parent_id"] is None

        post = client.get(f"/api/posts/{alice_post['id']}").json()
        assert post["comment_count"] == 1

    def test_create_comment_unauthorized(self, client, alice_post):
        response = client.post(f"/api/posts/{alice_post['id']}/comments", json={"content": "hi"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_comment_on_missing_post(self, client, bob):
        _, headers = bob
        response = comment_on(client, "missing", headers, "hi")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_comment_notifies_post_author(self, client, alice_post, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        comment_on(client, alice_post["id"], bob_headers, "Nice")

        notifications = client.get("/api/notifications", headers=alice_headers).json()
        assert [n["message"] for n in notifications] == ["Bob commented on your post"]


class TestReplies:
    def test_reply_nests_under_parent(self, client, alice_post, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        parent = comment_on(client, alice_post["id"], bob_headers, "Question about the exam").json()
        reply = comment_on(client, alice_post["id"], alice_headers, "Ask away", parent["id"])
        assert reply.status_code == status.HTTP_201_CREATED

        thread = client.get(f"/api/posts/{alice_post['id']}/comments").json()
        assert len(thread) == 1
        assert thread[0]["id"] == parent["id"]
        assert [r["content"] for r in thread[0]["replies"]] == ["Ask away"]

        notifications = client.get("/api/notifications", headers=bob_headers).json()
        assert [n["type"] for n in notifications] == ["reply"]

    def test_reply_to_reply_rejected(self, client, alice_post, bob):
        """Threads are two levels deep"""
        _, headers = bob
        parent = comment_on(client, alice_post["id"], headers, "top").json()
        reply = comment_on(client, alice_post["id"], headers, "reply", parent["id"]).json()

        response = comment_on(client, alice_post["id"], headers, "too deep", reply["id"])
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_parent_from_another_post_rejected(self, client, alice_post, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        other_post = client.post("/api/posts", json={"content": "Another post"}, headers=alice_headers).json()
        parent = comment_on(client, other_post["id"], bob_headers, "elsewhere").json()

        response = comment_on(client, alice_post["id"], bob_headers, "cross post", parent["id"])
        assert response.status_code == status.HTTP_400_BAD_REQUEST


class TestCommentDeletion:
    def test_soft_delete_keeps_replies(self, client, alice_post, alice, bob):
        """Replies of a deleted comment stay readable and are flagged"""
        _, alice_headers = alice
        _, bob_headers = bob
        parent = comment_on(client, alice_post["id"], bob_headers, "to be removed").json()
        comment_on(client, alice_post["id"], alice_headers, "orphan reply", parent["id"])

        response = client.delete(f"/api/posts/{alice_post['id']}/comments/{parent['id']}", headers=bob_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        thread = client.get(f"/api/posts/{alice_post['id']}/comments").json()
        assert len(thread) == 1
        assert thread[0]["content"] == "orphan reply"
        assert thread[0]["parent_deleted"] is True
        assert thread[0]["parent_id"] == parent["id"]

        post = client.get(f"/api/posts/{alice_post['id']}").json()
        assert post["comment_count"] == 1

        response = client.get(f"/api/posts/{alice_post['id']}/comments/{parent['id']}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_reply_to_deleted_comment(self, client, alice_post, bob):
        _, headers = bob
        parent = comment_on(client, alice_post["id"], headers, "gone soon").json()
        client.delete(f"/api/posts/{alice_post['id']}/comments/{parent['id']}", headers=headers)

        response = comment_on(client, alice_post["id"], headers, "late reply", parent["id"])
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_only_author_or_post_owner_can_delete(self, client, alice_post, bob, register):
        _, bob_headers = bob
        _, carol_headers = register("carol")
        comment = comment_on(client, alice_post["id"], bob_headers, "mine").json()

        response = client.delete(f"/api/posts/{alice_post['id']}/comments/{comment['id']}", headers=carol_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_post_owner_can_delete(self, client, alice_post, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        comment = comment_on(client, alice_post["id"], bob_headers, "spam").json()

        response = client.delete(f"/api/posts/{alice_post['id']}/comments/{comment['id']}", headers=alice_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT


class TestCommentUpdate:
    def test_update_own_comment(self, client, alice_post, bob):
        _, headers = bob
        comment = comment_on(client, alice_post["id"], headers, "typo").json()
        response = client.put(
            f"/api/posts/{alice_post['id']}/comments/{comment['id']}",
            json={"content": "fixed"},
            headers=headers
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["content"] == "fixed"

    def test_update_others_comment(self, client, alice_post, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        comment = comment_on(client, alice_post["id"], bob_headers, "mine").json()
        response = client.put(
            f"/api/posts/{alice_post['id']}/comments/{comment['id']}",
            json={"content": "hijacked"},
            headers=alice_headers
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestCommentListings:
    def test_list_replies(self, client, alice_post, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        parent = comment_on(client, alice_post["id"], bob_headers, "Any notes?").json()
        comment_on(client, alice_post["id"], alice_headers, "Check the drive", parent["id"])
        removed = comment_on(client, alice_post["id"], bob_headers, "Found them", parent["id"]).json()
        client.delete(f"/api/posts/{alice_post['id']}/comments/{removed['id']}", headers=bob_headers)

        response = client.get(f"/api/posts/{alice_post['id']}/comments/{parent['id']}/replies")
        assert response.status_code == status.HTTP_200_OK
        assert [r["content"] for r in response.json()] == ["Check the drive"]

    def test_list_comment_likes(self, client, alice_post, alice, bob, register):
        """Comment likers come from the reaction ledger, newest first"""
        _, alice_headers = alice
        _, bob_headers = bob
        _, carol_headers = register("carol", name="Carol")
        comment = comment_on(client, alice_post["id"], bob_headers, "Great post").json()
        client.post(f"/api/reactions/comment/{comment['id']}", json={"kind": "like"}, headers=alice_headers)
        client.post(f"/api/reactions/comment/{comment['id']}", json={"kind": "like"}, headers=carol_headers)

        response = client.get(f"/api/posts/{alice_post['id']}/comments/{comment['id']}/likes")
        assert response.status_code == status.HTTP_200_OK
        likes = response.json()
        assert [like["username"] for like in likes] == ["carol", "alice"]
        assert likes[0]["name"] == "Carol"
        assert {like["kind"] for like in likes} == {"like"}

    def test_likes_of_missing_comment(self, client, alice_post):
        response = client.get(f"/api/posts/{alice_post['id']}/comments/missing/likes")
        assert response.status_code == status.HTTP_404_NOT_FOUND
