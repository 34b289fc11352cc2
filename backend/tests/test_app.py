import logging

from car_api import crud, middleware


def test_access_log_records_request(client, caplog):
    with caplog.at_level(logging.INFO, logger="car_api.middleware"):
        response = client.get("/")

    assert response.status_code == 200
    assert response.headers["x-server-timing-ms"].isdigit()
    assert any("GET / -> 200" in record.getMessage() for record in caplog.records)


def test_access_log_includes_authenticated_user(client, makes, auth_headers, caplog):
    with caplog.at_level(logging.INFO, logger="car_api.middleware"):
        client.post("/", json={"make_id": makes["Toyota"], "model": "Corolla"}, headers=auth_headers)

    assert any("POST / -> 200" in r.getMessage() and "user_id=1" in r.getMessage() for r in caplog.records)


def test_access_log_records_unhandled_errors_as_500(client, monkeypatch, caplog):
    def boom(conn):
        raise RuntimeError("handler failed")

    monkeypatch.setattr(crud, "list_cars", boom)

    with caplog.at_level(logging.INFO, logger="car_api.middleware"):
        response = client.get("/")

    assert response.status_code == 500
    assert any("GET / -> 500" in record.getMessage() for record in caplog.records)


def test_oversized_body_is_rejected(client, monkeypatch, pool_events):
    monkeypatch.setattr(middleware, "MAX_BODY_BYTES", 16)

    response = client.post("/auth/register", json={"email": "alice@example.com", "password": "x" * 64})

    assert response.status_code == 413
    assert response.json() == {"detail": "Request too large"}
    assert pool_events["checkout"] == 0


def test_unknown_route_is_json_404(client):
    response = client.get("/auth/nowhere")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_openapi_lists_all_routes(client):
    paths = client.get("/openapi.json").json()["paths"]

    assert set(paths) == {"/", "/auth/register", "/auth/login", "/{car_id}"}
    assert set(paths["/"]) == {"get", "post"}
    assert set(paths["/{car_id}"]) == {"put", "delete"}
