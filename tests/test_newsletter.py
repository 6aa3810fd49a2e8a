"""Newsletter subscription and admin list."""


def test_subscribe_and_duplicate(client):
    res = client.post("/api/newsletter", json={"email": "Reader@Example.com"})
    assert res.status_code == 201
    assert res.json() == {"success": True, "message": "Thanks for subscribing!"}

    again = client.post("/api/newsletter", json={"email": "reader@example.com"})
    assert again.status_code == 409
    assert again.json() == {"error": "This email is already on our mailing list!"}


def test_invalid_email_is_400(client):
    assert client.post("/api/newsletter", json={"email": "nope"}).status_code == 400


def test_admin_list_toggle_and_export(client, admin):
    _, headers = admin
    client.post("/api/newsletter", json={"email": "one@example.com"})
    client.post("/api/newsletter", json={"email": "two@example.com"})

    listing = client.get("/api/admin/newsletter", headers=headers).json()
    assert listing["active_count"] == 2
    one = next(s for s in listing["subscribers"] if s["email"] == "one@example.com")

    toggled = client.post(f"/api/admin/newsletter/{one['id']}/toggle", headers=headers).json()
    assert toggled == {"success": True, "is_active": False}

    export = client.get("/api/admin/newsletter/export", headers=headers)
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    lines = export.text.strip().splitlines()
    assert lines[0] == "email,subscribed_at"
    assert [line.split(",")[0] for line in lines[1:]] == ["two@example.com"]


def test_admin_list_requires_admin(client, buyer):
    _, headers = buyer
    assert client.get("/api/admin/newsletter", headers=headers).status_code == 403
