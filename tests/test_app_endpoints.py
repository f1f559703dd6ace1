from taskboard.services.task_service import create_task, list_tasks


def _login_form(client, email="ada@example.com", password="secret123", **extra):
    return client.post(
        "/login",
        data={"email": email, "password": password, **extra},
        follow_redirects=False,
    )


def test_register_login_and_task_flow(client):
    r = client.post(
        "/register",
        data={"name": "Ada", "email": "ada@example.com", "password": "secret123"},
    )
    assert r.status_code == 200
    assert "User registered successfully" in r.text
    assert "token" not in client.cookies

    r = _login_form(client)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
    assert "token" in client.cookies

    r = client.get("/dashboard")
    assert r.status_code == 200
    assert "Welcome, Ada" in r.text
    assert "No tasks yet" in r.text

    r = client.post("/tasks", data={"title": "Write report"}, follow_redirects=False)
    assert r.status_code == 303

    [task] = client.get("/api/tasks").json()
    assert task["title"] == "Write report"
    assert task["completed"] is False
    assert "Write report" in client.get("/dashboard").text

    r = client.post(f"/tasks/{task['id']}/toggle", follow_redirects=False)
    assert r.status_code == 303
    assert client.get("/api/tasks").json()[0]["completed"] is True

    r = client.post(f"/tasks/{task['id']}/delete", follow_redirects=False)
    assert r.status_code == 303
    assert client.get("/api/tasks").json() == []


def test_wrong_password_sets_no_cookie(client, ada):
    r = _login_form(client, password="wrong-password")
    assert r.status_code == 401
    assert "Invalid email or password" in r.text
    assert "token" not in client.cookies
    # Email is kept in the form, password is not echoed back.
    assert 'value="ada@example.com"' in r.text
    assert "wrong-password" not in r.text


def test_unknown_email_gets_the_same_message(client, ada):
    r = _login_form(client, email="nobody@example.com")
    assert r.status_code == 401
    assert "Invalid email or password" in r.text


def test_login_honours_safe_next_only(client, ada):
    r = _login_form(client, next="/dashboard?tab=done")
    assert r.headers["location"] == "/dashboard?tab=done"
    client.cookies.clear()
    r = _login_form(client, next="//evil.example.com/")
    assert r.headers["location"] == "/dashboard"


def test_login_page_redirects_when_already_authenticated(client, ada):
    _login_form(client)
    r = client.get("/login", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"


def test_register_duplicate_keeps_input(client, ada):
    r = client.post(
        "/register",
        data={"name": "Ada Two", "email": "ada@example.com", "password": "secret123"},
    )
    assert r.status_code == 400
    assert "Email is already registered" in r.text
    assert 'value="Ada Two"' in r.text


def test_register_invalid_email(client):
    r = client.post("/register", data={"name": "X", "email": "nope", "password": "secret123"})
    assert r.status_code == 400
    assert "Invalid email address" in r.text


def test_empty_task_title_shows_inline_error(client, ada):
    _login_form(client)
    r = client.post("/tasks", data={"title": "   "})
    assert r.status_code == 400
    assert "Task cannot be empty" in r.text
    assert client.get("/api/tasks").json() == []


def test_cannot_touch_another_users_task(client, db, ada, bob):
    bobs = create_task(db, user_id=bob.id, title="Bob's task")
    _login_form(client)

    for action in ("delete", "toggle"):
        r = client.post(f"/tasks/{bobs.id}/{action}", follow_redirects=False)
        assert r.status_code == 404
        # Dashboard re-rendered with the inline alert, not a bare error page.
        assert '<div class="alert alert-error" role="alert">Task not found</div>' in r.text
        assert "Welcome, Ada" in r.text
        assert "Back to dashboard" not in r.text

    [still] = list_tasks(db, bob.id)
    assert still.id == bobs.id
    assert still.completed is False
    assert "Bob" not in client.get("/dashboard").text


def test_logout_clears_cookie(client, ada):
    _login_form(client)
    r = client.post("/logout", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/login"
    assert "max-age=0" in r.headers["set-cookie"].lower()
    r = client.get("/dashboard", follow_redirects=False)
    assert r.status_code == 303


def test_profile_update_with_avatar(client, ada, png_bytes):
    _login_form(client)
    r = client.post(
        "/profile",
        data={"name": "Ada Lovelace", "email": "ada@example.com", "password": ""},
        files={"avatar": ("me.png", png_bytes, "image/png")},
        follow_redirects=False,
    )
    assert r.status_code == 303

    me = client.get("/api/me").json()
    assert me["name"] == "Ada Lovelace"
    assert me["avatar_url"].startswith("/uploads/avatars/")
    assert client.get(me["avatar_url"]).content == png_bytes
    assert me["avatar_url"] in client.get("/dashboard").text


def test_profile_error_keeps_form_open_with_input(client, ada):
    _login_form(client)
    r = client.post("/profile", data={"name": "Ada L", "email": "broken-email"})
    assert r.status_code == 400
    assert "Invalid email address" in r.text
    assert 'value="broken-email"' in r.text
    assert "<details class=\"profile card\" open>" in r.text
    assert client.get("/api/me").json()["name"] == "Ada"


def test_static_assets_served(client):
    assert client.get("/static/style.css").status_code == 200
    assert client.get("/static/app.js").status_code == 200


def test_root_redirects_to_dashboard(client):
    r = client.get("/", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/dashboard"
