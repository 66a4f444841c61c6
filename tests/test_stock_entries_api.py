"""
Tests HTTP de /stockentries y /inventory: códigos de estado, errores de negocio
y listados.
"""

from sqlmodel import select

from fertistock.models.stock import Stock
from fertistock.models.stock_entry import StockEntry


def entry_payload(seed, **overrides):
    payload = {
        "product_id": seed.product_id,
        "supplier_id": seed.supplier_id,
        "branch_id": seed.branch_id,
        "quantity": 10,
        "entry_price": "12.50",
        "invoice": "F-001",
        "memo": "Primera compra",
    }
    payload.update(overrides)
    return payload


def test_create_entry_returns_summaries(client, seed, stock_of):
    response = client.post("/stockentries/", json=entry_payload(seed))

    assert response.status_code == 201
    body = response.json()
    assert body["quantity"] == 10
    assert body["status"] == "active"
    assert body["entry_price"] == 12.5
    assert body["product"]["code"] == "UREA-46"
    assert body["supplier"]["name"] == "Agroinsumos"
    assert body["branch"]["id"] == seed.branch_id
    assert stock_of(seed.product_id, seed.branch_id) == 10


def test_create_entry_without_branch_goes_to_default(client, seed, stock_of):
    payload = entry_payload(seed)
    del payload["branch_id"]

    response = client.post("/stockentries/", json=payload)

    assert response.status_code == 201
    assert response.json()["branch_id"] == seed.default_branch_id
    assert stock_of(seed.product_id, seed.default_branch_id) == 10


def test_create_entry_unknown_product_is_404(client, seed, db):
    response = client.post("/stockentries/", json=entry_payload(seed, product_id=999))

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
    assert db.exec(select(StockEntry)).all() == []


def test_create_entry_unknown_supplier_is_400(client, seed):
    response = client.post("/stockentries/", json=entry_payload(seed, supplier_id=999))

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "referential_integrity"
    assert body["missing"] == {"supplier_id": [999]}


def test_create_entry_rejects_non_positive_quantity(client, seed):
    response = client.post("/stockentries/", json=entry_payload(seed, quantity=0))

    assert response.status_code == 422


def test_update_entry_adjusts_stock(client, seed, stock_of):
    entry_id = client.post("/stockentries/", json=entry_payload(seed)).json()["id"]

    response = client.put(f"/stockentries/{entry_id}", json={"quantity": 3})

    assert response.status_code == 200
    assert response.json()["quantity"] == 3
    assert response.json()["invoice"] == "F-001"
    assert stock_of(seed.product_id, seed.branch_id) == 3


def test_update_entry_below_zero_is_400(client, seed, db, stock_of):
    entry_id = client.post("/stockentries/", json=entry_payload(seed)).json()["id"]
    stock = db.exec(select(Stock)).one()
    stock.quantity = 4
    db.add(stock)
    db.commit()

    response = client.put(f"/stockentries/{entry_id}", json={"quantity": 1})

    assert response.status_code == 400
    assert response.json()["error"] == "negative_stock"
    assert stock_of(seed.product_id, seed.branch_id) == 4


def test_update_unknown_entry_is_404(client, seed):
    response = client.put("/stockentries/12345", json={"quantity": 3})

    assert response.status_code == 404


def test_update_with_invalid_status_is_422(client, seed):
    entry_id = client.post("/stockentries/", json=entry_payload(seed)).json()["id"]

    response = client.put(f"/stockentries/{entry_id}", json={"status": "deleted"})

    assert response.status_code == 422


def test_delete_entry_soft_deletes(client, seed, stock_of):
    kept_id = client.post("/stockentries/", json=entry_payload(seed, quantity=5)).json()["id"]
    entry_id = client.post("/stockentries/", json=entry_payload(seed)).json()["id"]

    response = client.delete(f"/stockentries/{entry_id}")

    assert response.status_code == 200
    assert response.json() == {"id": entry_id}
    assert stock_of(seed.product_id, seed.branch_id) == 5

    detail = client.get(f"/stockentries/{entry_id}")
    assert detail.status_code == 200
    assert detail.json()["status"] == "inactive"

    listing = client.get("/stockentries/").json()
    assert [item["id"] for item in listing["data"]] == [kept_id]


def test_delete_twice_is_400(client, seed):
    entry_id = client.post("/stockentries/", json=entry_payload(seed)).json()["id"]
    client.delete(f"/stockentries/{entry_id}")

    response = client.delete(f"/stockentries/{entry_id}")

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_operation"


def test_delete_unknown_entry_is_404(client, seed):
    assert client.delete("/stockentries/777").status_code == 404


def test_list_entries_search_and_pagination(client, seed):
    client.post("/stockentries/", json=entry_payload(seed, invoice="F-A", memo=None))
    client.post(
        "/stockentries/",
        json=entry_payload(seed, product_id=seed.other_product_id, invoice="F-B", memo=None),
    )
    client.post("/stockentries/", json=entry_payload(seed, quantity=80, invoice="F-C", memo=None))

    npk = client.get("/stockentries/", params={"search": "npk"}).json()
    assert npk["total"] == 1
    assert npk["data"][0]["product"]["code"] == "NPK-151515"

    by_invoice = client.get("/stockentries/", params={"search": "f-c"}).json()
    assert [item["invoice"] for item in by_invoice["data"]] == ["F-C"]

    low = client.get("/stockentries/", params={"low_stock": True}).json()
    assert low["total"] == 2

    page = client.get("/stockentries/", params={"limit": 2, "offset": 0}).json()
    assert page["total"] == 3
    assert len(page["data"]) == 2
    assert page["data"][0]["invoice"] == "F-C"



def test_list_entries_by_date_range(client, seed):
    client.post("/stockentries/", json=entry_payload(seed, entry_date="2024-03-01T08:00:00"))
    client.post(
        "/stockentries/",
        json=entry_payload(seed, invoice="F-MAYO", entry_date="2024-05-01T23:30:00-03:00"),
    )

    # 23:30 en UTC-3 ya es 2 de mayo en UTC
    may = client.get(
        "/stockentries/", params={"date_from": "2024-05-02", "date_to": "2024-05-31"}
    ).json()
    assert [item["invoice"] for item in may["data"]] == ["F-MAYO"]

    march = client.get("/stockentries/", params={"date_to": "2024-03-31"}).json()
    assert march["total"] == 1

def test_entries_last_year(client, seed):
    client.post("/stockentries/", json=entry_payload(seed))
    client.post(
        "/stockentries/", json=entry_payload(seed, entry_date="2000-01-01T00:00:00")
    )

    response = client.get("/stockentries/last-year")

    assert response.status_code == 200
    assert len(response.json()) == 1


def test_inventory_lists_stock_levels(client, seed):
    client.post("/stockentries/", json=entry_payload(seed, quantity=30))
    client.post(
        "/stockentries/",
        json=entry_payload(seed, product_id=seed.other_product_id, quantity=120),
    )

    response = client.get("/inventory/")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    by_code = {row["product_code"]: row for row in body["data"]}
    assert by_code["UREA-46"]["quantity"] == 30
    assert by_code["UREA-46"]["unit"] == "saco"
    assert by_code["UREA-46"]["branch_name"] == "Sucursal norte"
    assert by_code["NPK-151515"]["category_name"] == "Fertilizantes"

    low = client.get("/inventory/", params={"low_stock": True}).json()
    assert [row["product_code"] for row in low["data"]] == ["UREA-46"]

    other_branch = client.get(
        "/inventory/", params={"branch_id": seed.default_branch_id}
    ).json()
    assert other_branch["total"] == 0


def test_inventory_audit(client, seed):
    entry_id = client.post("/stockentries/", json=entry_payload(seed)).json()["id"]
    client.put(f"/stockentries/{entry_id}", json={"quantity": 7})

    response = client.get("/inventory/audit")

    assert response.status_code == 200
    assert response.json() == {"checked": 1, "consistent": True, "discrepancies": []}


def test_inventory_audit_requires_admin(staff_client, seed):
    assert staff_client.get("/inventory/audit").status_code == 403
