from bson import ObjectId

from conftest import auth


def _send(client, token, product_id, message="Is 20t available monthly?"):
    return client.post(
        "/api/enquiries",
        json={"productId": product_id, "message": message},
        headers=auth(token),
    )


def test_send_enquiry(client, make_seller, make_user, make_product):
    _, seller_token = make_seller("sam@example.com")
    buyer_id, buyer_token = make_user("ana@example.com")
    product = make_product(seller_token)

    res = _send(client, buyer_token, product["id"])
    assert res.status_code == 201
    enquiry = res.json()["enquiry"]
    assert enquiry["userId"] == buyer_id
    assert enquiry["productId"] == product["id"]


def test_send_requires_token(client, make_seller, make_product):
    _, seller_token = make_seller("sam@example.com")
    product = make_product(seller_token)
    res = client.post("/api/enquiries", json={"productId": product["id"], "message": "hi"})
    assert res.status_code == 401


def test_send_blank_message_is_400(client, make_seller, make_product):
    _, token = make_seller("sam@example.com")
    product = make_product(token)
    assert _send(client, token, product["id"], message="   ").status_code == 400


def test_send_to_missing_or_deleted_product_is_404(client, make_seller, make_user, make_product):
    _, seller_token = make_seller("sam@example.com")
    _, buyer_token = make_user("ana@example.com")
    product = make_product(seller_token)
    client.delete(f"/api/products/{product['id']}", headers=auth(seller_token))

    assert _send(client, buyer_token, product["id"]).status_code == 404
    assert _send(client, buyer_token, str(ObjectId())).status_code == 404


def test_list_by_product_is_public(client, make_seller, make_user, make_product):
    _, seller_token = make_seller("sam@example.com")
    _, buyer_token = make_user("ana@example.com")
    product = make_product(seller_token)
    _send(client, buyer_token, product["id"])

    res = client.get(f"/api/enquiries/product/{product['id']}")
    assert res.status_code == 200
    assert [e["productId"] for e in res.json()] == [product["id"]]


def test_list_by_user_returns_own_only(client, make_seller, make_user, make_product):
    _, seller_token = make_seller("sam@example.com")
    _, ana_token = make_user("ana@example.com")
    _, bob_token = make_user("bob@example.com")
    product = make_product(seller_token)
    _send(client, ana_token, product["id"])

    assert len(client.get("/api/enquiries/user", headers=auth(ana_token)).json()) == 1
    assert client.get("/api/enquiries/user", headers=auth(bob_token)).json() == []


def test_list_by_seller_joins_through_products(client, admin, make_seller, make_user, make_product):
    sam_id, sam_token = make_seller("sam@example.com")
    _, olga_token = make_seller("olga@example.com")
    _, buyer_token = make_user("ana@example.com")
    _, admin_token = admin

    sam_product = make_product(sam_token)
    olga_product = make_product(olga_token)
    _send(client, buyer_token, sam_product["id"])
    _send(client, buyer_token, olga_product["id"])

    inbox = client.get("/api/enquiries/seller", headers=auth(sam_token)).json()
    assert [e["productId"] for e in inbox] == [sam_product["id"]]
    assert inbox[0]["user"]["email"] == "ana@example.com"

    # a seller cannot peek at another inbox
    spoofed = client.get(f"/api/enquiries/seller?sellerUserId={sam_id}", headers=auth(olga_token)).json()
    assert [e["productId"] for e in spoofed] == [olga_product["id"]]

    as_admin = client.get(f"/api/enquiries/seller?sellerUserId={sam_id}", headers=auth(admin_token)).json()
    assert [e["productId"] for e in as_admin] == [sam_product["id"]]

    assert client.get("/api/enquiries/seller", headers=auth(buyer_token)).status_code == 403


def test_list_all_admin_only(client, admin, make_seller, make_user, make_product):
    _, seller_token = make_seller("sam@example.com")
    _, buyer_token = make_user("ana@example.com")
    _, admin_token = admin
    _send(client, buyer_token, make_product(seller_token)["id"])

    assert client.get("/api/enquiries", headers=auth(buyer_token)).status_code == 403
    assert len(client.get("/api/enquiries", headers=auth(admin_token)).json()) == 1
