from backend.app.main import LOCAL_DEVELOPMENT_ORIGINS, parse_origins, resolve_allowed_origins


def test_parse_origins_accepts_commas_and_whitespace():
    raw = "http://localhost:5173, http://127.0.0.1:5173 https://ops.example.com/"

    assert parse_origins(raw) == [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "https://ops.example.com",
    ]


def test_parse_origins_drops_duplicates_and_blanks():
    assert parse_origins(" ,https://a.example/,https://a.example ,, ") == ["https://a.example"]


def test_configured_origins_keep_local_development(monkeypatch):
    monkeypatch.setenv("BACKEND_ALLOWED_ORIGINS", "https://ops.example.com")

    origins = resolve_allowed_origins()

    assert "https://ops.example.com" in origins
    assert "http://127.0.0.1:5173" not in origins
    assert LOCAL_DEVELOPMENT_ORIGINS.issubset(origins)


def test_defaults_apply_without_configuration():
    origins = resolve_allowed_origins("")

    assert "http://127.0.0.1:5173" in origins
    assert origins == sorted(origins)


def test_preflight_for_dashboard_origin(client):
    origin = "http://localhost:5173"

    response = client.options(
        "/api/subscriptions/",
        headers={"Origin": origin, "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert response.headers.get("access-control-allow-origin") == origin
