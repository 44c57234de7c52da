import pytest
from bson import ObjectId


def headers(user):
    return {"authorization": user["token"]}


class TestCreateTodo:
    def test_creates_todo_for_caller(self, client, users):
        response = client.post("/todos", json={"text": "Run tests"}, headers=headers(users[0]))
        assert response.status_code == 200
        body = response.json()
        assert body["text"] == "Run tests"
        assert body["_creator"] == users[0]["id"]
        assert body["completed"] is False
        assert body["completedAt"] is None

        listed = client.get("/todos", headers=headers(users[0])).json()["todos"]
        assert [todo["text"] for todo in listed] == ["Run tests"]

    def test_rejects_invalid_body(self, client, users, todos):
        response = client.post("/todos", json={}, headers=headers(users[0]))
        assert response.status_code == 400
        assert len(client.get("/todos", headers=headers(users[0])).json()["todos"]) == 1

    def test_rejects_malformed_json(self, client, users):
        response = client.post(
            "/todos",
            content=b"{not json",
            headers={**headers(users[0]), "content-type": "application/json"},
        )
        assert response.status_code == 400


class TestListTodos:
    def test_lists_only_callers_todos(self, client, users, todos):
        response = client.get("/todos", headers=headers(users[0]))
        assert response.status_code == 200
        listed = response.json()["todos"]
        assert len(listed) == 1
        assert listed[0]["_id"] == todos[0]["_id"]


class TestGetTodo:
    def test_returns_todo(self, client, users, todos):
        response = client.get(f"/todos/{todos[0]['_id']}", headers=headers(users[0]))
        assert response.status_code == 200
        assert response.json()["todo"]["text"] == todos[0]["text"]

    def test_does_not_return_other_users_todo(self, client, users, todos):
        response = client.get(f"/todos/{todos[1]['_id']}", headers=headers(users[0]))
        assert response.status_code == 404

    def test_returns_404_if_not_found(self, client, users, todos):
        response = client.get(f"/todos/{ObjectId()}", headers=headers(users[0]))
        assert response.status_code == 404

    def test_returns_404_for_non_object_ids(self, client, users):
        response = client.get("/todos/123abc", headers=headers(users[0]))
        assert response.status_code == 404

    def test_404_bodies_do_not_reveal_the_reason(self, client, users, todos):
        bodies = [
            client.get(f"/todos/{record_id}", headers=headers(users[0])).json()
            for record_id in ("123abc", str(ObjectId()), todos[1]["_id"])
        ]
        assert bodies[0] == bodies[1] == bodies[2]


class TestDeleteTodo:
    def test_removes_todo(self, client, users, todos):
        todo_id = todos[1]["_id"]
        response = client.delete(f"/todos/{todo_id}", headers=headers(users[1]))
        assert response.status_code == 200
        assert response.json()["todo"]["_id"] == todo_id
        assert client.get(f"/todos/{todo_id}", headers=headers(users[1])).status_code == 404

    def test_does_not_remove_other_users_todo(self, client, users, todos):
        todo_id = todos[0]["_id"]
        response = client.delete(f"/todos/{todo_id}", headers=headers(users[1]))
        assert response.status_code == 404
        assert client.get(f"/todos/{todo_id}", headers=headers(users[0])).status_code == 200

    def test_returns_404_if_not_found(self, client, users):
        assert client.delete(f"/todos/{ObjectId()}", headers=headers(users[1])).status_code == 404

    def test_returns_404_if_object_id_is_invalid(self, client, users):
        assert client.delete("/todos/123abc", headers=headers(users[1])).status_code == 404


class TestPatchTodo:
    def test_updates_todo(self, client, users, todos):
        response = client.patch(
            f"/todos/{todos[0]['_id']}",
            json={"text": "This should be the new text", "completed": True},
            headers=headers(users[0]),
        )
        assert response.status_code == 200
        todo = response.json()["todo"]
        assert todo["text"] == "This should be the new text"
        assert todo["completed"] is True
        assert isinstance(todo["completedAt"], int)

    def test_does_not_update_other_users_todo(self, client, users, todos):
        response = client.patch(
            f"/todos/{todos[1]['_id']}",
            json={"text": "This should be the new text", "completed": True},
            headers=headers(users[0]),
        )
        assert response.status_code == 404

    def test_clears_completed_at_when_not_completed(self, client, users, todos):
        assert todos[1]["completed"] is True
        response = client.patch(
            f"/todos/{todos[1]['_id']}",
            json={"text": "This should be the new text!!", "completed": False},
            headers=headers(users[1]),
        )
        assert response.status_code == 200
        todo = response.json()["todo"]
        assert todo["text"] == "This should be the new text!!"
        assert todo["completed"] is False
        assert todo["completedAt"] is None

    def test_text_only_update_resets_completion(self, client, users, todos):
        response = client.patch(
            f"/todos/{todos[1]['_id']}", json={"text": "renamed"}, headers=headers(users[1])
        )
        assert response.json()["todo"]["completed"] is False
        assert response.json()["todo"]["completedAt"] is None

    def test_invalid_values_are_rejected(self, client, users, todos):
        response = client.patch(f"/todos/{todos[0]['_id']}", json={"text": ""}, headers=headers(users[0]))
        assert response.status_code == 400

    @pytest.mark.parametrize("value", ["true", 1, "yes"])
    def test_non_boolean_completed_marks_not_completed(self, client, users, todos, value):
        response = client.patch(
            f"/todos/{todos[1]['_id']}", json={"completed": value}, headers=headers(users[1])
        )
        assert response.status_code == 200
        todo = response.json()["todo"]
        assert todo["completed"] is False
        assert todo["completedAt"] is None

    def test_returns_404_for_invalid_id(self, client, users):
        assert client.patch("/todos/123abc", json={"text": "x"}, headers=headers(users[0])).status_code == 404


def test_signup_todo_isolation_end_to_end(client):
    token = client.post("/signup", json={"email": "a@x.com", "password": "secret1"}).json()["token"]
    other = client.post("/signup", json={"email": "b@x.com", "password": "secret2"}).json()["token"]
    signer_id = client.get("/", headers={"authorization": token}).json()["user_id"]

    created = client.post("/todos", json={"text": "buy milk"}, headers={"authorization": token})
    assert created.status_code == 200
    todo = created.json()
    assert todo["_creator"] == signer_id

    others = client.get("/todos", headers={"authorization": other}).json()["todos"]
    assert todo["_id"] not in [t["_id"] for t in others]

    assert client.delete(f"/todos/{todo['_id']}", headers={"authorization": token}).status_code == 200
    assert client.get(f"/todos/{todo['_id']}", headers={"authorization": token}).status_code == 404
