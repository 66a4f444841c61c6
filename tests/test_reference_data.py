"""
Tests de los datos de referencia: sucursales, productos, categorías y la
sucursal por defecto.
"""

from sqlmodel import select

from fertistock.models.branch import Branch
from fertistock.models.product import Product
from fertistock.services.default_branch import resolve_default_branch


def record(client, seed, **overrides):
    payload = {
        "product_id": seed.product_id,
        "supplier_id": seed.supplier_id,
        "branch_id": seed.branch_id,
        "quantity": 10,
        "entry_price": "5.00",
    }
    payload.update(overrides)
    return client.post("/stockentries/", json=payload)


def test_resolve_default_branch_is_idempotent(db, seed):
    again = resolve_default_branch(db)

    assert again == seed.default_branch_id
    assert len(db.exec(select(Branch).where(Branch.code == "PRINCIPAL")).all()) == 1


def test_resolve_default_branch_uses_given_code(db, seed):
    branch_id = resolve_default_branch(db, code="NORTE", name="ignorado")

    assert branch_id == seed.branch_id
    assert db.get(Branch, branch_id).name == "Sucursal norte"


def test_create_branch_with_duplicated_code_is_400(client, seed):
    response = client.post("/branches/", json={"code": "NORTE", "name": "Otra"})

    assert response.status_code == 400


def test_default_branch_cannot_be_deactivated_or_deleted(client, seed):
    url = f"/branches/{seed.default_branch_id}"

    assert client.put(url, json={"active": False}).status_code == 400
    assert client.delete(url).status_code == 400


def test_branch_with_stock_cannot_be_deactivated(client, seed):
    record(client, seed)

    response = client.put(f"/branches/{seed.branch_id}", json={"active": False})

    assert response.status_code == 400


def test_branch_with_entries_cannot_be_deleted(client, seed):
    entry_id = record(client, seed).json()["id"]
    client.delete(f"/stockentries/{entry_id}")

    # Sin stock ya se puede desactivar, pero el historial impide borrarla
    assert client.put(f"/branches/{seed.branch_id}", json={"active": False}).status_code == 200
    assert client.delete(f"/branches/{seed.branch_id}").status_code == 400


def test_branch_admin_only(staff_client, seed):
    response = staff_client.post("/branches/", json={"code": "SUR", "name": "Sucursal sur"})

    assert response.status_code == 403


def test_create_and_search_products(client, seed):
    response = client.post(
        "/products/",
        json={
            "code": "KCL-60",
            "name": "Cloruro de potasio",
            "unit": "kg",
            "category_id": seed.category_id,
            "cost_price": "10.5",
            "sell_price": "14",
        },
    )

    assert response.status_code == 201
    assert response.json()["category_name"] == "Fertilizantes"

    found = client.get("/products/", params={"search": "potasio"}).json()
    assert [item["code"] for item in found["data"]] == ["KCL-60"]


def test_create_product_with_duplicated_code_is_400(client, seed):
    response = client.post(
        "/products/",
        json={"code": "UREA-46", "name": "Urea repetida", "category_id": seed.category_id},
    )

    assert response.status_code == 400


def test_bulk_status_skips_products_with_stock(client, seed):
    record(client, seed)

    response = client.put(
        "/products/status-multiple",
        json={"ids": [seed.product_id, seed.other_product_id], "active": False},
    )

    assert response.status_code == 200
    assert response.json()["skipped"] == 1
    assert client.get(f"/products/{seed.product_id}").json()["active"] is True
    assert client.get(f"/products/{seed.other_product_id}").json()["active"] is False


def test_staff_cannot_see_inactive_products(staff_client, seed, db):
    npk = db.get(Product, seed.other_product_id)
    npk.active = False
    db.add(npk)
    db.commit()

    listing = staff_client.get("/products/").json()
    assert [item["code"] for item in listing["data"]] == ["UREA-46"]
    assert staff_client.get(f"/products/{seed.other_product_id}").status_code == 403


def test_product_with_entries_cannot_be_deleted(client, seed):
    record(client, seed)

    assert client.delete(f"/products/{seed.product_id}").status_code == 400
    assert client.delete(f"/products/{seed.other_product_id}").status_code == 200


def test_category_name_is_normalized(client, seed):
    response = client.post("/categories/", json={"name": "  enmiendas   cálcicas "})

    assert response.status_code == 201
    assert response.json()["name"] == "Enmiendas calcicas"


def test_category_with_products_cannot_be_deleted(client, seed):
    assert client.delete(f"/categories/{seed.category_id}").status_code == 400


def test_supplier_with_entries_cannot_be_deleted(client, seed):
    record(client, seed)

    assert client.delete(f"/suppliers/{seed.supplier_id}").status_code == 400


def test_categories_list_product_counts(client, seed):
    client.post("/categories/", json={"name": "Semillas"})

    listing = client.get("/categories/").json()

    counts = {item["name"]: item["product_count"] for item in listing["data"]}
    assert counts == {"Fertilizantes": 2, "Semillas": 0}
    assert client.get("/categories/", params={"search": "semi"}).json()["total"] == 1
