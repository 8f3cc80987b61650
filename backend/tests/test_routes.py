def test_health(app_and_socketio):
    app, _ = app_and_socketio
    response = app.test_client().get("/api/health")
    assert response.status_code == 200
    assert response.get_json() == {"ok": True, "rooms": 0}


def test_room_routes(app_and_socketio):
    app, _ = app_and_socketio
    service = app.extensions["watchparty"]
    service.registry.create("R", "v", host_sid="h", password="pw")
    client = app.test_client()

    assert client.get("/api/rooms/R").get_json() == {"isLocked": True}

    missing = client.get("/api/rooms/nope")
    assert missing.status_code == 404
    assert missing.get_json() == {"error": "room_not_found"}

    listing = client.get("/api/rooms?page=x").get_json()
    assert listing == {
        "rooms": [{"roomId": "R", "displayName": "unknown : R", "isLocked": True}],
        "hasNextPage": False,
    }
