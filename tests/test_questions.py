import pytest
from fastapi import status

@pytest.fixture
def question(client, alice):
    """An open question asked by alice"""
    _, headers = alice
    response = client.post("/api/questions", json={
        "title": "How do I prove the pumping lemma?",
        "content": "Stuck on exercise 3",
        "subject": "Automata",
        "tags": ["proofs", "regular-languages"]
    }, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()

def answer(client, question_id, headers, content="Pick a long enough string", **extra):
    return client.post(
        f"/api/questions/{question_id}/answers",
        json={"content": content, **extra},
        headers=headers
    )

class TestQuestions:
    def test_create_question(self, question, alice):
        user, _ = alice
        assert question["author_id"] == user["id"]
        assert question["tags"] == ["proofs", "regular-languages"]
        assert question["status"] == "OPEN"
        assert question["vote_score"] == 0
        assert question["is_solved"] is False

    def test_get_counts_views(self, client, question):
        client.get(f"/api/questions/{question['id']}")
        response = client.get(f"/api/questions/{question['id']}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["view_count"] == 2

    def test_get_missing_question(self, client):
        response = client.get("/api/questions/missing")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_list_filters(self, client, question, alice):
        _, headers = alice
        client.post("/api/questions", json={"title": "Other", "content": "?", "subject": "Calculus"}, headers=headers)

        questions = client.get("/api/questions", params={"subject": "Automata"}).json()
        assert [q["id"] for q in questions] == [question["id"]]
        assert len(client.get("/api/questions", params={"solved": False}).json()) == 2

    def test_anonymous_question_hides_author(self, client, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        created = client.post("/api/questions", json={
            "title": "Embarrassing question",
            "content": "What is a derivative?",
            "is_anonymous": True
        }, headers=alice_headers).json()
        assert created["author_id"] is not None

        seen = client.get(f"/api/questions/{created['id']}", headers=bob_headers).json()
        assert seen["author_id"] is None

    def test_update_by_other_user(self, client, question, bob):
        _, headers = bob
        response = client.put(f"/api/questions/{question['id']}", json={"title": "Hijacked"}, headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_closed_question_refuses_answers(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        client.put(f"/api/questions/{question['id']}", json={"status": "CLOSED"}, headers=alice_headers)

        response = answer(client, question["id"], bob_headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

class TestAnswers:
    def test_answer_counts_and_notifies(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        response = answer(client, question["id"], bob_headers)
        assert response.status_code == status.HTTP_201_CREATED

        assert client.get(f"/api/questions/{question['id']}").json()["answer_count"] == 1
        notifications = client.get("/api/notifications", headers=alice_headers).json()
        assert [n["message"] for n in notifications] == ["Bob answered your question"]
        assert notifications[0]["link"] == f"/questions/{question['id']}"

    def test_anonymous_answer_notification(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        answer(client, question["id"], bob_headers, is_anonymous=True)

        notifications = client.get("/api/notifications", headers=alice_headers).json()
        assert notifications[0]["message"] == "Someone answered your question"

    def test_answers_sorted_by_score(self, client, question, alice, bob, register):
        _, alice_headers = alice
        _, bob_headers = bob
        _, carol_headers = register("carol")
        first = answer(client, question["id"], bob_headers, "first").json()
        second = answer(client, question["id"], carol_headers, "second").json()
        client.post(f"/api/reactions/answer/{second['id']}", json={"kind": "up"}, headers=alice_headers)

        answers = client.get(f"/api/questions/{question['id']}/answers", headers=alice_headers).json()
        assert [a["id"] for a in answers] == [second["id"], first["id"]]
        assert answers[0]["my_vote"] == "up"
        assert answers[1]["my_vote"] is None

class TestAcceptAnswer:
    def test_accept_answer(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        created = answer(client, question["id"], bob_headers).json()

        response = client.post(f"/api/questions/{question['id']}/answers/{created['id']}/accept", headers=alice_headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["is_accepted"] is True

        solved = client.get(f"/api/questions/{question['id']}").json()
        assert solved["is_solved"] is True
        assert solved["accepted_answer_id"] == created["id"]

        notifications = client.get("/api/notifications", headers=bob_headers).json()
        assert [n["type"] for n in notifications] == ["accepted"]

    def test_only_one_accepted(self, client, question, alice, bob, register):
        _, alice_headers = alice
        _, bob_headers = bob
        _, carol_headers = register("carol")
        first = answer(client, question["id"], bob_headers, "first").json()
        second = answer(client, question["id"], carol_headers, "second").json()

        client.post(f"/api/questions/{question['id']}/answers/{first['id']}/accept", headers=alice_headers)
        client.post(f"/api/questions/{question['id']}/answers/{second['id']}/accept", headers=alice_headers)

        answers = client.get(f"/api/questions/{question['id']}/answers").json()
        assert [a["id"] for a in answers if a["is_accepted"]] == [second["id"]]

    def test_only_author_accepts(self, client, question, bob):
        _, headers = bob
        created = answer(client, question["id"], headers).json()
        response = client.post(f"/api/questions/{question['id']}/answers/{created['id']}/accept", headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_accept_answer_of_other_question(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        other = client.post("/api/questions", json={"title": "Other", "content": "?"}, headers=alice_headers).json()
        created = answer(client, other["id"], bob_headers).json()

        response = client.post(f"/api/questions/{question['id']}/answers/{created['id']}/accept", headers=alice_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

class TestDeletion:
    def test_delete_accepted_answer_reopens(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        created = answer(client, question["id"], bob_headers).json()
        client.post(f"/api/questions/{question['id']}/answers/{created['id']}/accept", headers=alice_headers)

        response = client.delete(f"/api/questions/{question['id']}/answers/{created['id']}", headers=bob_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT

        current = client.get(f"/api/questions/{question['id']}").json()
        assert current["answer_count"] == 0
        assert current["is_solved"] is False
        assert current["accepted_answer_id"] is None

    def test_delete_question_removes_answers(self, client, question, alice, bob):
        _, alice_headers = alice
        _, bob_headers = bob
        created = answer(client, question["id"], bob_headers).json()
        client.post(f"/api/reactions/answer/{created['id']}", json={"kind": "up"}, headers=alice_headers)

        response = client.delete(f"/api/questions/{question['id']}", headers=alice_headers)
        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.get(f"/api/questions/{question['id']}").status_code == status.HTTP_404_NOT_FOUND

        response = client.post(f"/api/reactions/answer/{created['id']}", json={"kind": "up"}, headers=alice_headers)
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_delete_by_other_user(self, client, question, bob):
        _, headers = bob
        response = client.delete(f"/api/questions/{question['id']}", headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
