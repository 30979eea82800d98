import pytest

from contest_tracker.gate import is_protected, redirect_target


@pytest.mark.parametrize(
    "path",
    ["/profile", "/bookmarks", "/bookmarks/", "/solutions", "/contests/new", "/contests/12/edit", "/auth/logout"],
)
def test_protected_paths(path):
    assert is_protected(path)


@pytest.mark.parametrize(
    "path",
    ["/", "/contests", "/contests/12", "/auth/login", "/auth/register",
     "/api/bookmarks", "/api/contests/new", "/profiles-of-fame", "/static/site.css"],
)
def test_public_paths(path):
    assert not is_protected(path)


def test_anonymous_redirected_to_login_with_callback():
    assert redirect_target("/contests/3/edit", authenticated=False) == "/auth/login?callbackUrl=%2Fcontests%2F3%2Fedit"


def test_authenticated_user_sent_home_from_auth_pages():
    assert redirect_target("/auth/login", authenticated=True) == "/"
    assert redirect_target("/auth/register", authenticated=True) == "/"


def test_pass_through():
    assert redirect_target("/contests", authenticated=False) is None
    assert redirect_target("/bookmarks", authenticated=True) is None
    assert redirect_target("/auth/login", authenticated=False) is None


def test_middleware_redirects_anonymous_request(client):
    response = client.get("/bookmarks", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login?callbackUrl=%2Fbookmarks"


def test_middleware_lets_public_pages_through(client):
    assert client.get("/contests").status_code == 200
    assert client.get("/auth/login").status_code == 200


def test_middleware_redirects_signed_in_user_away_from_login(register):
    alice = register("Alice", "alice@example.com")
    response = alice.get("/auth/login", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert alice.get("/bookmarks").status_code == 200


def test_expired_or_forged_cookie_counts_as_anonymous(app):
    from fastapi.testclient import TestClient

    with TestClient(app, cookies={"AUTH_TOKEN": "forged.token.value"}) as forged:
        response = forged.get("/profile", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"].startswith("/auth/login")
