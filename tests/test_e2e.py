import pytest
from fastapi import status

@pytest.fixture
def user1_data():
    return {
        "username": "user1",
        "email": "user1@example.com",
        "password": "password123",
        "name": "User One",
        "department": "Mathematics"
    }

@pytest.fixture
def user2_data():
    return {
        "username": "user2",
        "email": "user2@example.com",
        "password": "password123",
        "name": "User Two"
    }

def login(client, user_data):
    response = client.post("/api/users/login", json={
        "username": user_data["username"],
        "password": user_data["password"]
    })
    assert response.status_code == status.HTTP_200_OK
    return {"Authorization": f"Bearer {response.json()['access_token']}"}

class TestEndToEnd:
    def test_complete_flow(self, client, user1_data, user2_data):
        """
        Walk through the main flows:
        1. registration, login and follow
        2. posting, liking and threaded comments
        3. questions, answers, votes and acceptance
        4. notifications of every step, then cleanup
        """
        # 1. users
        user1 = client.post("/api/users/register", json=user1_data).json()
        user2 = client.post("/api/users/register", json=user2_data).json()
        headers1 = login(client, user1_data)
        headers2 = login(client, user2_data)

        response = client.post(f"/api/users/{user1['id']}/follow", headers=headers2)
        assert response.json()["following"] is True

        # 2. posts, likes, comments
        post = client.post("/api/posts", json={"content": "Study session at 6pm"}, headers=headers1).json()

        liked = client.post(f"/api/reactions/post/{post['id']}", json={"kind": "like"}, headers=headers2).json()
        assert liked["aggregate"] == {"like_count": 1}
        assert liked["effective_kind"] == "like"

        comment = client.post(
            f"/api/posts/{post['id']}/comments",
            json={"content": "Which room?"},
            headers=headers2
        ).json()
        reply = client.post(
            f"/api/posts/{post['id']}/comments",
            json={"content": "Room 204", "parent_id": comment["id"]},
            headers=headers1
        )
        assert reply.status_code == status.HTTP_201_CREATED

        response = client.post(f"/api/reactions/comment/{comment['id']}", json={"kind": "like"}, headers=headers1)
        assert response.json()["aggregate"] == {"like_count": 1}

        fetched = client.get(f"/api/posts/{post['id']}", headers=headers2).json()
        assert fetched["like_count"] == 1
        assert fetched["comment_count"] == 2
        assert fetched["is_liked"] is True

        # 3. questions and answers
        question = client.post("/api/questions", json={
            "title": "Eigenvalues of a rotation matrix?",
            "content": "Are they always complex?",
            "subject": "Linear Algebra"
        }, headers=headers2).json()
        answer = client.post(
            f"/api/questions/{question['id']}/answers",
            json={"content": "Unless the angle is a multiple of pi"},
            headers=headers1
        ).json()

        client.post(f"/api/reactions/question/{question['id']}", json={"kind": "up"}, headers=headers1)
        switched = client.post(f"/api/reactions/question/{question['id']}", json={"kind": "down"}, headers=headers1).json()
        assert switched["aggregate"] == {"upvotes": 0, "downvotes": 1, "vote_score": -1}

        client.post(f"/api/reactions/answer/{answer['id']}", json={"kind": "up"}, headers=headers2)
        response = client.post(f"/api/questions/{question['id']}/answers/{answer['id']}/accept", headers=headers2)
        assert response.json()["is_accepted"] is True

        mine = client.get(f"/api/reactions/question/{question['id']}/me", headers=headers1).json()
        assert mine["kind"] == "down"

        # 4. notifications
        notifications = client.get("/api/notifications", headers=headers1).json()
        assert sorted(n["type"] for n in notifications) == ["accepted", "comment", "follow", "like", "vote"]
        assert client.get("/api/notifications/unread-count", headers=headers1).json() == {"count": 5}

        notifications = client.get("/api/notifications", headers=headers2).json()
        assert sorted(n["type"] for n in notifications) == ["answer", "comment_like", "reply", "vote"]

        client.post("/api/notifications/markAllRead", headers=headers1)
        assert client.get("/api/notifications/unread-count", headers=headers1).json() == {"count": 0}

        # cleanup cascades to comments and reactions
        response = client.delete(f"/api/posts/{post['id']}", headers=headers1)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        response = client.get(f"/api/posts/{post['id']}/comments")
        assert response.status_code == status.HTTP_404_NOT_FOUND
