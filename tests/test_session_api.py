from __future__ import annotations

from uuid import UUID, uuid4


def _create(client, game_type: str, seed: int = 42) -> dict:
    res = client.post("/session", json={"game_type": game_type, "seed": seed})
    assert res.status_code == 201
    return res.json()


def test_healthcheck_and_games(client_and_redis) -> None:
    client, _r, _sessions = client_and_redis

    assert client.get("/healthcheck").json() == {"status": "ok"}
    games = client.get("/games").json()["games"]
    assert [g["id"] for g in games] == [
        "find_digraph",
        "fill_missing",
        "rhyming",
        "word_puzzle",
        "sorting",
        "wheel",
        "odd_one_out",
        "build_word",
    ]


def test_answer_flow_over_http(client_and_redis) -> None:
    client, _r, sessions = client_and_redis
    view = _create(client, "find_digraph")
    state = view["state"]
    sid = state["session_id"]
    q = state["current_question"]
    assert q["type"] == "quiz"
    assert state["seed"] == 42

    res = client.post(f"/session/{sid}/answer", json={"answer": q["correct_answer"]})
    assert res.status_code == 200
    body = res.json()
    assert body["state"]["feedback"] == "correct"
    assert body["state"]["score"] == 10
    assert {"kind": "tone", "value": "correct"} in body["cues"]

    # Cues are handed out once.
    assert client.get(f"/session/{sid}").json()["cues"] == []

    sessions.scheduler_for(UUID(sid)).advance(1500)
    after = client.get(f"/session/{sid}").json()["state"]
    assert after["feedback"] == "none"
    assert after["epoch"] == state["epoch"] + 1

    progress = client.get("/progress").json()["progress"]
    assert progress == {q["tag"]: {"correct": 1, "total": 1}}

    assert client.delete("/progress").status_code == 204
    assert client.get("/progress").json() == {"progress": {}}


def test_build_and_clear_over_http(client_and_redis) -> None:
    client, _r, _sessions = client_and_redis
    sid = _create(client, "build_word")["state"]["session_id"]

    res = client.post(f"/session/{sid}/partial", json={"tile": "s"})
    assert res.status_code == 200
    assert res.json()["state"]["partial_selection"] == ["s"]

    res = client.post(f"/session/{sid}/clear")
    assert res.json()["state"]["partial_selection"] == []
    assert res.json()["state"]["phase"] == "awaiting_input"

    assert client.post(f"/session/{sid}/partial", json={"tile": ""}).status_code == 422


def test_sort_and_spin_over_http(client_and_redis) -> None:
    client, _r, sessions = client_and_redis

    sort_state = _create(client, "sorting")["state"]
    sid = sort_state["session_id"]
    q = sort_state["current_question"]
    first = q["items"][0]
    res = client.post(
        f"/session/{sid}/sort",
        json={"item_index": 0, "bin_index": q["bins"].index(first["bin_label"])},
    )
    assert len(res.json()["state"]["current_question"]["items"]) == 7
    assert client.post(f"/session/{sid}/sort", json={"item_index": 0, "bin_index": 2}).status_code == 422
    assert client.post(f"/session/{sid}/answer", json={"answer": "sh"}).status_code == 422

    wheel_sid = _create(client, "wheel")["state"]["session_id"]
    spun = client.post(f"/session/{wheel_sid}/spin").json()["state"]
    assert spun["spinning"] is True
    assert spun["wheel_rotation_degrees"] >= 1080

    sessions.scheduler_for(UUID(wheel_sid)).advance(4500)
    bonus = client.get(f"/session/{wheel_sid}").json()["state"]["current_question"]
    assert bonus["type"] == "quiz"
    assert bonus["is_wheel_result"] is True


def test_exit_and_unknown_sessions(client_and_redis) -> None:
    client, _r, sessions = client_and_redis
    sid = _create(client, "rhyming")["state"]["session_id"]
    assert len(sessions) == 1

    assert client.delete(f"/session/{sid}").status_code == 204
    assert len(sessions) == 0
    assert client.get(f"/session/{sid}").status_code == 404
    assert client.delete(f"/session/{sid}").status_code == 404
    assert client.post(f"/session/{uuid4()}/spin").status_code == 404
    assert client.post("/session", json={"game_type": "snap"}).status_code == 422


def test_content_import_export(client_and_redis) -> None:
    client, _r, _sessions = client_and_redis

    exported = client.get("/content").json()
    assert len(exported["groups"]) == 4
    assert len(exported["rhymeGroups"]) == 6

    doc = {"groups": [{"id": "g1", "digraph": "sh", "words": ["ship", "shop"]}], "pin": "9999"}
    res = client.put("/content", json=doc)
    assert res.status_code == 200
    assert res.json() == {"status": "imported", "groups": 1, "rhyme_groups": 6}

    # One digraph group cannot make a three-option quiz.
    state = _create(client, "find_digraph")["state"]
    assert state["content_insufficient"] is True
    assert state["current_question"] is None

    assert client.put("/content", json={"pin": "1"}).status_code == 422
    assert client.get("/content").json()["pin"] == "9999"
