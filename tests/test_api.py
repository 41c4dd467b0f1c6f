ADMIN = {"X-User-Id": "u-admin"}
CUSTOMER = {"X-User-Id": "u-user"}
ASSEMBLER = {"X-User-Id": "u-assembler"}
SUPPLIER = {"X-User-Id": "u-supplier"}

PARTS = ["cpu-i7-13700k", "mb-z790-e", "ram-ddr5-32", "psu-rm850x"]


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "store": "memory"}


def test_public_catalog_listing(client):
    resp = client.get("/api/components", params={"category": "gpu"})
    payload = resp.json()

    assert resp.status_code == 200
    assert payload["success"] is True
    assert payload["count"] == 3
    assert {"stockStatus", "supplierId", "powerRequirement"} <= set(payload["data"][0])

    out = client.get("/api/components", params={"stockStatus": "false"}).json()
    assert [c["id"] for c in out["data"]] == ["cpu-r5-5600"]

    categories = client.get("/api/categories").json()
    assert categories["count"] == 7


def test_missing_component_is_404(client):
    resp = client.get("/api/components/nope")
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Component not found"}


def test_writes_require_known_user(client):
    body = {"name": "Noctua NH-D15", "category": "CPU", "price": 109.95, "specifications": "Dual tower"}

    assert client.post("/api/components", json=body).status_code == 401
    assert client.post("/api/components", json=body, headers={"X-User-Id": "ghost"}).status_code == 401
    assert client.post("/api/components", json=body, headers=CUSTOMER).status_code == 403

    created = client.post("/api/components", json=body, headers=SUPPLIER)
    assert created.status_code == 201
    assert created.json()["data"]["supplierId"] == "u-supplier"


def test_category_conflicts_are_rejected_with_explanation(client):
    duplicate = client.post("/api/categories", json={"name": "gpu"}, headers=ADMIN)
    assert duplicate.status_code == 400
    assert duplicate.json() == {"success": False, "message": "Category already exists"}

    cpu = next(c for c in client.get("/api/categories").json()["data"] if c["name"] == "CPU")
    resp = client.delete(f"/api/categories/{cpu['id']}", headers=ADMIN)
    assert resp.status_code == 400
    assert resp.json()["message"].startswith("Cannot delete category. It is being used by 4 component(s).")

    created = client.post("/api/categories", json={"name": "cooler", "priority": 2}, headers=ADMIN)
    assert created.status_code == 201
    assert created.json()["data"]["name"] == "COOLER"
    assert client.delete(f"/api/categories/{created.json()['data']['id']}", headers=ADMIN).status_code == 200


def test_build_lifecycle_over_http(client):
    created = client.post("/api/builds", json={"componentIDs": PARTS}, headers=CUSTOMER)
    assert created.status_code == 201
    body = created.json()
    build = body["data"]
    assert build["assemblyStatus"] == "Pending"
    assert build["assemblerId"] is None
    assert build["totalPrice"] == 1019.96
    assert body["compatibility"]["isCompatible"] is True
    assert build["components"][0] == {
        "componentId": "cpu-i7-13700k",
        "componentName": "Intel Core i7-13700K",
        "category": "CPU",
        "price": 399.99,
    }

    url = f"/api/builds/{build['id']}"
    claimed = client.put(f"{url}/status", json={"status": "Assembling"}, headers=ASSEMBLER)
    assert claimed.status_code == 200
    assert claimed.json()["data"]["assemblerId"] == "u-assembler"

    skipped = client.put(f"{url}/status", json={"status": "Shipped"}, headers=ASSEMBLER)
    assert skipped.status_code == 400

    done = client.put(f"{url}/status", json={"status": "Completed"}, headers=ASSEMBLER)
    assert done.json()["data"]["assemblyStatus"] == "Completed"

    again = client.put(f"{url}/status", json={"status": "Pending"}, headers=ADMIN)
    assert again.status_code == 400
    assert again.json()["message"] == "Cannot change status from Completed to Pending"

    assert client.get("/api/builds", headers=CUSTOMER).json()["count"] == 1
    assert client.get("/api/builds", params={"status": "Completed"}, headers=ASSEMBLER).json()["count"] == 1
    assert client.delete(url, headers=ASSEMBLER).status_code == 403
    assert client.delete(url, headers=CUSTOMER).status_code == 200
    assert client.get(url, headers=ADMIN).status_code == 404


def test_build_with_out_of_stock_part_writes_nothing(client):
    resp = client.post(
        "/api/builds",
        json={"componentIDs": ["cpu-r5-5600", "mb-z790-e", "ram-ddr5-32", "psu-rm850x"]},
        headers=CUSTOMER,
    )

    assert resp.status_code == 400
    assert resp.json()["message"] == "One or more components not found or out of stock"
    assert client.get("/api/builds", headers=ADMIN).json()["count"] == 0


def test_assign_over_http(client):
    build = client.post("/api/builds", json={"componentIDs": PARTS}, headers=CUSTOMER).json()["data"]
    url = f"/api/builds/{build['id']}/assign"

    assert client.put(url, json={}, headers=ADMIN).status_code == 400
    assert client.put(url, json={"assemblerID": "u-supplier"}, headers=ADMIN).status_code == 400
    assert client.put(url, json={"assemblerID": "u-assembler"}, headers=CUSTOMER).status_code == 403

    assigned = client.put(url, json={"assemblerID": "u-assembler"}, headers=ADMIN).json()["data"]
    assert assigned["assemblerId"] == "u-assembler"
    assert assigned["assemblyStatus"] == "Assembling"


def test_user_admin_routes(client):
    assert client.get("/api/users", headers=CUSTOMER).status_code == 403
    assert client.get("/api/users", headers=ADMIN).json()["count"] == 4

    own = client.put("/api/users/u-admin/role", json={"role": "user"}, headers=ADMIN)
    assert own.status_code == 400

    promoted = client.put("/api/users/u-user/role", json={"role": "supplier"}, headers=ADMIN)
    assert promoted.json()["data"]["role"] == "supplier"
    assert client.put("/api/users/u-user/role", json={"role": "boss"}, headers=ADMIN).status_code == 400

    assert client.delete("/api/users/u-admin", headers=ADMIN).status_code == 400
    assert client.delete("/api/users/u-supplier", headers=ADMIN).status_code == 200


def test_compose_endpoints(client):
    allocation = client.post("/api/compose/allocate", json={"totalBudget": 2000}).json()["data"]
    gpu = next(a for a in allocation["allocations"] if a["categoryName"] == "GPU")
    assert gpu["allocatedBudget"] == 615.38
    assert gpu["ratio"] == 0.308

    candidates = client.post(
        "/api/compose/candidates", json={"totalBudget": 2000, "componentIDs": ["mb-b650-tomahawk"]}
    ).json()
    assert [c["id"] for c in candidates["data"]["filtered"]["CPU"]] == ["cpu-r7-7700x"]
    assert candidates["allocation"]["spent"] == 219.99

    check = client.post("/api/compose/check", json={"componentIDs": ["cpu-r7-7700x", "mb-z790-e"]}).json()
    assert check["data"]["isCompatible"] is False

    suggestion = client.post("/api/compose/suggest", json={"totalBudget": 2000}).json()["data"]
    assert suggestion["components"][0]["category"] == "GPU"
    assert suggestion["compatibility"]["isCompatible"] is True


def test_compose_rejects_bad_budget(client):
    for path in ("/api/compose/allocate", "/api/compose/candidates", "/api/compose/suggest"):
        resp = client.post(path, json={"totalBudget": "lots"})
        assert resp.status_code == 400
        assert resp.json()["message"] == "Total budget must be a non-negative number"


def test_put_null_clears_power_fields(client):
    resp = client.put("/api/components/gpu-rtx-4060", json={"powerRequirement": None, "price": None}, headers=ADMIN)
    data = resp.json()["data"]

    assert resp.status_code == 200
    assert data["powerRequirement"] is None
    assert data["name"] == "NVIDIA GeForce RTX 4060"
    assert data["price"] > 0
