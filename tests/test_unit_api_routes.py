"""Tests for the HTTP and WebSocket routes using FastAPI's TestClient."""

import pytest
import requests
from kara.config import MASTER_COOKIE, MASTER_HEADER
from kara.services.youtube import YouTubeAPIError, YouTubeClient, YouTubeConfigError
from kara.models.search import YouTubeSearchResult
from tests.helpers.factories import make_song
from unittest.mock import Mock


def add(client, video_id="v1", title="Song", **fields):
    payload = {"videoId": video_id, "title": title, **fields}
    response = client.post("/api/queue", json=payload)
    assert response.status_code == 201
    return response.json()["song"]


def lock_master(client, token="T1"):
    response = client.post("/api/master", json={"action": "claim", "label": "TV", "lock": True}, headers={MASTER_HEADER: token})
    assert response.status_code == 200
    # Act as a different device from here on
    client.cookies.clear()


@pytest.fixture
def youtube(app, client):
    mock = Mock(spec=YouTubeClient)
    app.state.youtube = mock
    return mock


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["queue_length"] == 0


class TestQueueRoutes:
    """Test /api/queue."""

    def test_initial_queue(self, client):
        data = client.get("/api/queue").json()

        assert data == {
            "songs": [],
            "currentIndex": -1,
            "isPlaying": False,
            "playHistory": [],
            "autoRecommendEnabled": False,
        }

    def test_add_song_fills_id_and_timestamp(self, client):
        song = add(client, "abc", "Wonderwall", artist="Oasis", addedBy="phone-1")

        assert song["id"].startswith("yt-abc-")
        assert song["addedAt"] > 0
        assert song["addedBy"] == "phone-1"
        assert song["isFallback"] is False
        assert song["source"] == "youtube"

        state = client.get("/api/queue").json()
        assert [s["videoId"] for s in state["songs"]] == ["abc"]
        assert state["currentIndex"] == -1

    def test_add_song_keeps_client_id(self, client):
        assert add(client, id="custom-1")["id"] == "custom-1"

    @pytest.mark.parametrize("payload", [{"title": "T"}, {"videoId": "v1"}, {"videoId": "v1", "title": "   "}])
    def test_add_invalid_song(self, client, payload):
        assert client.post("/api/queue", json=payload).status_code == 422

    def test_clear_queue_adopts_master(self, client):
        add(client)

        response = client.delete("/api/queue")

        assert response.status_code == 200
        assert response.headers[MASTER_HEADER].startswith("master-")
        assert MASTER_COOKIE in response.cookies
        assert client.get("/api/queue").json()["songs"] == []

    def test_clear_queue_refused_when_locked(self, client):
        add(client)
        lock_master(client)

        assert client.delete("/api/queue").status_code == 409
        assert client.delete("/api/queue", headers={MASTER_HEADER: "T1"}).status_code == 200

    def test_remove_unknown_song(self, client):
        assert client.delete("/api/queue/missing").status_code == 404

    def test_owner_removes_own_song_while_locked(self, client):
        song = add(client, addedBy="phone-1")
        lock_master(client)

        response = client.delete(f"/api/queue/{song['id']}", headers={"x-device-id": "phone-1"})

        assert response.status_code == 200
        assert response.json()["song"]["id"] == song["id"]
        assert client.get("/api/queue").json()["songs"] == []

    def test_other_device_refused_while_locked(self, client):
        song = add(client, addedBy="phone-1")
        lock_master(client)

        response = client.delete(f"/api/queue/{song['id']}", headers={"x-device-id": "phone-2"})

        assert response.status_code == 403

    def test_master_removes_any_song(self, client):
        song = add(client, addedBy="phone-1")
        lock_master(client)

        response = client.delete(f"/api/queue/{song['id']}", headers={MASTER_HEADER: "T1"})

        assert response.status_code == 200

    def test_anyone_removes_while_unlocked(self, client):
        song = add(client, addedBy="phone-1")
        assert client.delete(f"/api/queue/{song['id']}").status_code == 200

    def test_remove_adopting_master_receives_token(self, client):
        song = add(client, addedBy="phone-1")

        response = client.delete(f"/api/queue/{song['id']}", headers={"x-device-id": "phone-2"})

        assert response.status_code == 200
        token = response.headers[MASTER_HEADER]
        assert response.cookies[MASTER_COOKIE] == token
        status = client.get("/api/master", headers={MASTER_HEADER: token}).json()
        assert status["youAreMaster"] is True

    def test_owner_removal_does_not_adopt_master(self, client):
        song = add(client, addedBy="phone-1")

        response = client.delete(f"/api/queue/{song['id']}", headers={"x-device-id": "phone-1"})

        assert MASTER_HEADER not in response.headers
        # Still unclaimed: the next master-gated call adopts
        assert MASTER_HEADER in client.delete("/api/queue").headers


class TestPlaybackRoutes:
    """Test /api/playback."""

    def test_next_selects_first_song(self, client):
        add(client, "v1")

        response = client.post("/api/playback", json={"action": "next"})

        assert response.status_code == 200
        assert response.json()["song"]["videoId"] == "v1"
        state = client.get("/api/queue").json()
        assert state["currentIndex"] == 0
        assert state["isPlaying"] is True

    def test_pause_and_play(self, client):
        add(client)
        client.post("/api/playback", json={"action": "next"})

        client.post("/api/playback", json={"action": "pause"})
        assert client.get("/api/queue").json()["isPlaying"] is False

        client.post("/api/playback", json={"action": "play"})
        assert client.get("/api/queue").json()["isPlaying"] is True

    def test_complete_moves_to_history(self, client):
        add(client, "v1")
        add(client, "v2")
        client.post("/api/playback", json={"action": "next"})

        response = client.post("/api/playback", json={"action": "complete"})

        assert response.json()["song"]["videoId"] == "v2"
        state = client.get("/api/queue").json()
        assert [s["videoId"] for s in state["playHistory"]] == ["v1"]

    def test_skip_at_end_returns_no_song(self, client):
        add(client)
        client.post("/api/playback", json={"action": "next"})

        response = client.post("/api/playback", json={"action": "skip"})

        assert response.json() == {"success": True, "song": None}

    def test_play_at(self, client):
        add(client, "v1")
        add(client, "v2")

        response = client.post("/api/playback", json={"action": "play_at", "index": 1})

        assert response.json()["song"]["videoId"] == "v2"

    def test_play_at_requires_index(self, client):
        assert client.post("/api/playback", json={"action": "play_at"}).status_code == 400

    def test_reorder(self, client):
        add(client, "v1")
        add(client, "v2")

        response = client.post("/api/playback", json={"action": "reorder", "fromIndex": 0, "toIndex": 1})

        assert response.json() == {"success": True}
        assert [s["videoId"] for s in client.get("/api/queue").json()["songs"]] == ["v2", "v1"]

    def test_reorder_out_of_range(self, client):
        add(client)
        response = client.post("/api/playback", json={"action": "reorder", "fromIndex": 0, "toIndex": 4})
        assert response.json() == {"success": False}

    def test_reorder_requires_indices(self, client):
        response = client.post("/api/playback", json={"action": "reorder", "fromIndex": 0})

        assert response.status_code == 400
        assert response.json()["detail"] == "fromIndex and toIndex required"

    def test_unknown_action(self, client):
        assert client.post("/api/playback", json={"action": "rewind"}).status_code == 422

    def test_refused_when_locked(self, client):
        add(client)
        lock_master(client)

        response = client.post("/api/playback", json={"action": "next"}, headers={MASTER_HEADER: "T2"})

        assert response.status_code == 409
        assert client.get("/api/queue").json()["currentIndex"] == -1


class TestMasterRoutes:
    """Test /api/master."""

    def test_initial_status(self, client):
        data = client.get("/api/master").json()

        assert data["masterToken"] is None
        assert data["locked"] is False
        assert data["youAreMaster"] is False
        assert data["autoRecommend"] is False

    def test_claim_sets_token(self, client):
        response = client.post("/api/master", json={"action": "claim", "label": "TV1"})

        assert response.status_code == 200
        token = response.json()["token"]
        assert response.headers[MASTER_HEADER] == token

        status = client.get("/api/master").json()
        assert status["youAreMaster"] is True
        assert status["masterLabel"] == "TV1"

    def test_status_hides_token_from_others(self, client):
        lock_master(client)

        status = client.get("/api/master").json()

        assert status["masterToken"] is None
        assert status["locked"] is True
        assert status["youAreMaster"] is False

    def test_claim_refused_when_locked(self, client):
        lock_master(client)

        response = client.post("/api/master", json={"action": "claim"}, headers={MASTER_HEADER: "T2"})

        assert response.status_code == 409

    def test_lock_by_other_refused(self, client):
        lock_master(client)

        assert client.post("/api/master", json={"action": "unlock"}, headers={MASTER_HEADER: "T2"}).status_code == 403
        assert client.get("/api/master").json()["locked"] is True

    def test_holder_unlocks(self, client):
        lock_master(client)

        response = client.post("/api/master", json={"action": "unlock"}, headers={MASTER_HEADER: "T1"})

        assert response.json() == {"success": True, "locked": False}

    def test_release_while_locked_without_token(self, client):
        lock_master(client)
        assert client.post("/api/master", json={"action": "release"}).status_code == 409

    def test_release_with_wrong_token(self, client):
        client.post("/api/master", json={"action": "claim"}, headers={MASTER_HEADER: "T1"})

        response = client.post("/api/master", json={"action": "release"}, headers={MASTER_HEADER: "T2"})

        assert response.status_code == 403

    def test_holder_releases(self, client):
        client.post("/api/master", json={"action": "claim"}, headers={MASTER_HEADER: "T1"})

        response = client.post("/api/master", json={"action": "release"}, headers={MASTER_HEADER: "T1"})

        assert response.status_code == 200
        assert client.get("/api/master", headers={MASTER_HEADER: "T1"}).json()["youAreMaster"] is False

    def test_missing_action(self, client):
        assert client.post("/api/master", json={}).status_code == 400

    def test_toggle_auto_recommend(self, client):
        response = client.post("/api/master", json={"autoRecommend": True})

        assert response.json() == {"success": True, "autoRecommend": True}
        assert client.get("/api/settings").json() == {"autoRecommend": True}


class TestSettingsRoutes:
    def test_update_settings(self, client):
        response = client.post("/api/settings", json={"autoRecommend": True})

        assert response.json() == {"success": True, "autoRecommend": True}
        assert client.get("/api/queue").json()["autoRecommendEnabled"] is True

    def test_empty_update_keeps_value(self, client):
        assert client.post("/api/settings", json={}).json()["autoRecommend"] is False


class TestPlaylistRoutes:
    """Test /api/playlists."""

    def test_save_list_load(self, client):
        add(client, "v1")
        add(client, "v2")

        saved = client.post("/api/playlists", json={"action": "save", "name": "Friday"}).json()
        assert saved["success"] is True
        assert saved["playlist"]["count"] == 2

        listing = client.get("/api/playlists").json()["playlists"]
        assert [(p["name"], p["count"]) for p in listing] == [("Friday", 2)]
        assert "updatedAt" in listing[0]

        client.delete("/api/queue")
        loaded = client.post("/api/playlists", json={"action": "load", "name": "friday"})

        assert loaded.status_code == 200
        state = client.get("/api/queue").json()
        assert [s["videoId"] for s in state["songs"]] == ["v1", "v2"]
        assert state["currentIndex"] == -1

    def test_load_missing(self, client):
        response = client.post("/api/playlists", json={"action": "load", "name": "nope"})

        assert response.status_code == 404
        assert response.json()["detail"] == "Playlist not found"

    @pytest.mark.parametrize("payload", [{"action": "save", "name": ""}, {"action": "delete", "name": "x"}, {"name": "x"}])
    def test_invalid_request(self, client, payload):
        assert client.post("/api/playlists", json=payload).status_code == 422


class TestSearchRoutes:
    """Test /api/search and /api/recommendations with a mocked provider."""

    def test_search(self, client, youtube):
        youtube.search.return_value = [
            YouTubeSearchResult(video_id="a", title="Song", channel_title="Chan", thumbnail="t", duration="3:05")
        ]

        response = client.get("/api/search", params={"q": "queen", "mode": "artist", "limit": 5, "karaokeOnly": "false"})

        assert response.status_code == 200
        assert response.json()[0]["videoId"] == "a"
        assert response.json()[0]["channelTitle"] == "Chan"
        youtube.search.assert_called_once_with("queen", "artist", 5, None, False)

    def test_search_requires_query(self, client, youtube):
        assert client.get("/api/search").status_code == 422

    def test_search_invalid_mode(self, client, youtube):
        assert client.get("/api/search", params={"q": "x", "mode": "mood"}).status_code == 422

    def test_search_without_key(self, client, youtube):
        youtube.search.side_effect = YouTubeConfigError("no keys")

        response = client.get("/api/search", params={"q": "x"})

        assert response.status_code == 500
        assert response.json()["detail"] == "YouTube API key not configured"

    @pytest.mark.parametrize("error", [YouTubeAPIError(403, "quota"), requests.Timeout("slow")])
    def test_search_upstream_failure(self, client, youtube, error):
        youtube.search.side_effect = error
        assert client.get("/api/search", params={"q": "x"}).status_code == 502

    def test_recommendations_use_history(self, client, youtube):
        youtube.recommend.return_value = [make_song("fb", is_fallback=True)]
        add(client, "v1")
        client.post("/api/playback", json={"action": "next"})
        client.post("/api/playback", json={"action": "complete"})

        response = client.post("/api/recommendations", json={"count": 3})

        assert response.json()["recommendations"][0]["isFallback"] is True
        history, count = youtube.recommend.call_args.args
        assert [song.video_id for song in history] == ["v1"]
        assert count == 3

    def test_recommendations_default_count(self, client, youtube):
        youtube.recommend.return_value = []

        assert client.post("/api/recommendations").json() == {"recommendations": []}
        assert youtube.recommend.call_args.args[1] == 5


class TestWebSocket:
    """Test the /ws realtime channel."""

    def test_initial_state_then_events(self, client):
        add(client, "v0")

        with client.websocket_connect("/ws?deviceId=phone-1") as websocket:
            initial = websocket.receive_json()
            assert initial["event"] == "queue_update"
            assert [s["videoId"] for s in initial["data"]["songs"]] == ["v0"]

            add(client, "v1")

            update = websocket.receive_json()
            added = websocket.receive_json()
            assert update["event"] == "queue_update"
            assert len(update["data"]["songs"]) == 2
            assert added["event"] == "song_added"
            assert added["data"]["videoId"] == "v1"

    def test_ping_pong(self, client):
        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"

    def test_client_registered_while_connected(self, client):
        with client.websocket_connect("/ws?deviceId=tv-1") as websocket:
            websocket.receive_json()
            connections = client.get("/api/master").json()["connections"]
            assert [c["id"] for c in connections] == ["tv-1"]

        assert client.get("/api/master").json()["connections"] == []

    def test_playlist_load_reaches_subscribers(self, client):
        add(client, "v1")
        client.post("/api/playlists", json={"action": "save", "name": "mix"})

        with client.websocket_connect("/ws") as websocket:
            websocket.receive_json()
            client.post("/api/playlists", json={"action": "load", "name": "mix"})

            message = websocket.receive_json()
            assert message["event"] == "queue_update"
            assert message["data"]["currentIndex"] == -1
