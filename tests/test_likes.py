"""Likes and the wishlist."""


def test_toggle_like_and_count(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    p = make_product(s.id)

    liked = client.post(f"/api/products/{p.id}/like", headers=headers).json()
    assert liked == {"liked": True, "like_count": 1}

    info = client.get(f"/api/products/{p.id}/likes", headers=headers).json()
    assert info == {"like_count": 1, "liked": True}

    anonymous = client.get(f"/api/products/{p.id}/likes").json()
    assert anonymous == {"like_count": 1, "liked": False}

    unliked = client.post(f"/api/products/{p.id}/like", headers=headers).json()
    assert unliked == {"liked": False, "like_count": 0}


def test_wishlist_lists_liked_products(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    a = make_product(s.id, title="A")
    b = make_product(s.id, title="B")
    client.post(f"/api/products/{a.id}/like", headers=headers)
    client.post(f"/api/products/{b.id}/like", headers=headers)

    ids = client.get("/api/wishlist", headers=headers).json()["product_ids"]
    assert sorted(ids) == sorted([a.id, b.id])


def test_cannot_like_hidden_product(client, buyer, seller, make_product):
    _, headers = buyer
    s, _ = seller
    draft = make_product(s.id, is_published=False)

    assert client.post(f"/api/products/{draft.id}/like", headers=headers).status_code == 404


def test_like_requires_login(client, seller, make_product):
    s, _ = seller
    p = make_product(s.id)
    assert client.post(f"/api/products/{p.id}/like").status_code == 401
