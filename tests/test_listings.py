import asyncio
from decimal import Decimal

import pytest

from fixtures_seed import EVENT_FORM, PRODUCT_FORM, create_listing, set_flag


async def test_create_requires_token(client):
    r = await client.post("/listings", data=PRODUCT_FORM)
    assert r.status_code == 401
    assert r.json()["success"] is False


async def test_producer_product_pending_under_manual_review(client, municipal, producer):
    await set_flag(client, municipal, "require-manual-review", "true")

    r = await client.post("/listings", data=PRODUCT_FORM, headers=producer.headers)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Listing created. Status: pending"
    data = body["data"]
    assert data["status"] == "pending"
    assert data["owner_id"] == producer.user_id
    assert Decimal(data["price"]) == Decimal("25.50")
    assert data["event_date"] is None
    assert data["media_url"] is None


async def test_producer_product_approved_without_manual_review(client, municipal, producer):
    await set_flag(client, municipal, "require-manual-review", "false")
    data = await create_listing(client, producer)
    assert data["status"] == "approved"


async def test_municipal_listing_always_approved(client, municipal):
    await set_flag(client, municipal, "require-manual-review", "true")
    data = await create_listing(client, municipal, EVENT_FORM)
    assert data["status"] == "approved"
    assert data["kind"] == "event"
    assert data["price"] is None
    assert data["event_location"] == "Main square"


async def test_non_municipal_event_is_forbidden_before_validation(client, producer, resident):
    # fields are invalid too; the permission answer comes first
    bad_event = {"kind": "event", "title": "x", "description": "short"}
    for actor in (producer, resident):
        r = await client.post("/listings", data=bad_event, headers=actor.headers)
        assert r.status_code == 403
        assert r.json()["message"] == "Only the municipality can publish events"


async def test_resident_product_follows_client_publishing_flag(client, municipal, resident):
    # no flag row at all reads as disabled
    r = await client.post("/listings", data=PRODUCT_FORM, headers=resident.headers)
    assert r.status_code == 403

    await set_flag(client, municipal, "allow-client-publishing", "false")
    r = await client.post("/listings", data=PRODUCT_FORM, headers=resident.headers)
    assert r.status_code == 403

    await set_flag(client, municipal, "allow-client-publishing", "sim")
    r = await client.post("/listings", data=PRODUCT_FORM, headers=resident.headers)
    assert r.status_code == 201, r.text


async def test_product_price_must_be_positive(client, producer):
    r = await client.post("/listings", data={**PRODUCT_FORM, "price": "0"}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "price must be greater than zero"

    r = await client.post("/listings", data={**PRODUCT_FORM, "price": ""}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "price is required for products"


async def test_event_requires_date_and_location(client, municipal):
    r = await client.post("/listings", data={**EVENT_FORM, "event_date": ""}, headers=municipal.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "event date is required for events"

    r = await client.post("/listings", data={**EVENT_FORM, "event_location": "  "}, headers=municipal.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "event location is required for events"


async def test_title_and_description_bounds(client, producer):
    r = await client.post("/listings", data={**PRODUCT_FORM, "title": "abc"}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("title")

    r = await client.post("/listings", data={**PRODUCT_FORM, "description": "too short"}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("description")


async def test_unknown_kind_is_400(client, municipal):
    r = await client.post("/listings", data={**PRODUCT_FORM, "kind": "service"}, headers=municipal.headers)
    assert r.status_code == 400


async def test_event_fields_dropped_for_products(client, producer):
    form = {**PRODUCT_FORM, "event_date": "2026-12-01T10:00:00", "event_location": "Somewhere"}
    data = await create_listing(client, producer, form)
    assert data["event_date"] is None
    assert data["event_location"] is None


async def test_get_listing_and_404(client, municipal, producer):
    created = await create_listing(client, producer)

    r = await client.get(f"/listings/{created['id']}")
    assert r.status_code == 200
    assert r.json()["data"]["id"] == created["id"]

    r = await client.get("/listings/lst_missing")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Listing not found"}


async def test_search_defaults_to_approved(client, municipal, producer):
    await set_flag(client, municipal, "require-manual-review", "true")
    pending = await create_listing(client, producer)
    approved = await create_listing(client, municipal, EVENT_FORM)

    r = await client.get("/listings")
    assert r.status_code == 200
    body = r.json()
    assert [row["id"] for row in body["data"]] == [approved["id"]]
    assert body["pagination"] == {"page": 1, "limit": 10, "total": 1, "totalPages": 1}

    r = await client.get("/listings", params={"status": "pending"})
    assert [row["id"] for row in r.json()["data"]] == [pending["id"]]


async def test_search_filters_and_paginates(client, municipal, producer):
    # no review flag row: producer listings go straight to approved
    for n in range(3):
        await create_listing(client, producer, {**PRODUCT_FORM, "title": f"Fresh apples {n}"})
    await create_listing(client, municipal, EVENT_FORM)

    r = await client.get("/listings", params={"kind": "product", "limit": 2, "page": 2})
    body = r.json()
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
    assert len(body["data"]) == 1

    r = await client.get("/listings", params={"search": "festival"})
    assert [row["kind"] for row in r.json()["data"]] == ["event"]

    r = await client.get("/listings", params={"orderBy": "title", "orderDirection": "ASC", "kind": "product"})
    titles = [row["title"] for row in r.json()["data"]]
    assert titles == sorted(titles)


async def test_search_rejects_bad_params(client):
    r = await client.get("/listings", params={"limit": 500})
    assert r.status_code == 400
    r = await client.get("/listings", params={"orderBy": "price"})
    assert r.status_code == 400


async def test_partial_update_keeps_other_fields(client, producer):
    created = await create_listing(client, producer)

    r = await client.put(f"/listings/{created['id']}", data={"title": "Wildflower honey jar"}, headers=producer.headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["title"] == "Wildflower honey jar"
    assert data["description"] == created["description"]
    assert Decimal(data["price"]) == Decimal(created["price"])
    assert data["status"] == created["status"]

    r = await client.put(f"/listings/{created['id']}", data={"price": "30"}, headers=producer.headers)
    data = r.json()["data"]
    assert Decimal(data["price"]) == Decimal("30")
    assert data["title"] == "Wildflower honey jar"


async def test_update_cannot_touch_status(client, municipal, producer):
    await set_flag(client, municipal, "require-manual-review", "true")
    created = await create_listing(client, producer)

    r = await client.put(f"/listings/{created['id']}", data={"status": "approved"}, headers=producer.headers)
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "pending"


async def test_update_validates_supplied_fields(client, producer):
    created = await create_listing(client, producer)

    r = await client.put(f"/listings/{created['id']}", data={"price": "-5"}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"] == "price must be greater than zero"

    r = await client.put(f"/listings/{created['id']}", data={"title": "abc"}, headers=producer.headers)
    assert r.status_code == 400


async def test_update_permission_before_validation(client, producer, other_resident, municipal):
    created = await create_listing(client, producer)

    r = await client.put(f"/listings/{created['id']}", data={"price": "-1"}, headers=other_resident.headers)
    assert r.status_code == 403
    assert r.json()["message"] == "You are not allowed to edit this listing"

    r = await client.put(f"/listings/{created['id']}", data={"title": "Renamed by the city"}, headers=municipal.headers)
    assert r.status_code == 200


async def test_update_missing_listing_is_404(client, producer):
    r = await client.put("/listings/lst_missing", data={"title": "Whatever title"}, headers=producer.headers)
    assert r.status_code == 404


async def test_concurrent_edits_of_distinct_fields_both_land(client, producer):
    created = await create_listing(client, producer)
    url = f"/listings/{created['id']}"

    # no locking: each write touches only its own column
    r1, r2 = await asyncio.gather(
        client.put(url, data={"title": "New honey title"}, headers=producer.headers),
        client.put(url, data={"description": "Now with comb pieces inside."}, headers=producer.headers),
    )
    assert r1.status_code == r2.status_code == 200

    final = (await client.get(f"/listings/{created['id']}")).json()["data"]
    assert final["title"] == "New honey title"
    assert final["description"] == "Now with comb pieces inside."


@pytest.mark.parametrize("target", ["approved", "rejected"])
async def test_moderation(client, municipal, producer, target):
    await set_flag(client, municipal, "require-manual-review", "true")
    created = await create_listing(client, producer)

    r = await client.patch(f"/listings/{created['id']}/status", json={"status": target}, headers=municipal.headers)
    assert r.status_code == 200, r.text
    assert r.json()["data"]["status"] == target


async def test_moderation_rules(client, municipal, producer):
    created = await create_listing(client, producer)

    r = await client.patch(f"/listings/{created['id']}/status", json={"status": "approved"}, headers=producer.headers)
    assert r.status_code == 403

    r = await client.patch(f"/listings/{created['id']}/status", json={"status": "pending"}, headers=municipal.headers)
    assert r.status_code == 400
    assert r.json()["message"] == 'Invalid status. Use "approved" or "rejected".'

    r = await client.patch("/listings/lst_missing/status", json={"status": "approved"}, headers=municipal.headers)
    assert r.status_code == 404

    # approved listings can be moderated again
    for status in ("approved", "rejected"):
        r = await client.patch(f"/listings/{created['id']}/status", json={"status": status}, headers=municipal.headers)
        assert r.json()["data"]["status"] == status


async def test_delete_listing(client, producer, other_resident):
    created = await create_listing(client, producer)

    r = await client.delete(f"/listings/{created['id']}", headers=other_resident.headers)
    assert r.status_code == 403

    r = await client.delete(f"/listings/{created['id']}", headers=producer.headers)
    assert r.status_code == 200
    assert r.json()["data"]["id"] == created["id"]

    r = await client.get(f"/listings/{created['id']}")
    assert r.status_code == 404

    r = await client.delete(f"/listings/{created['id']}", headers=producer.headers)
    assert r.status_code == 404


async def test_municipal_deletes_any_listing(client, municipal, producer):
    created = await create_listing(client, producer)
    r = await client.delete(f"/listings/{created['id']}", headers=municipal.headers)
    assert r.status_code == 200


async def test_resident_zero_price_reports_price_rule(client, municipal, resident):
    await set_flag(client, municipal, "allow-client-publishing", "true")
    r = await client.post("/listings", data={**PRODUCT_FORM, "price": "0"}, headers=resident.headers)
    assert r.status_code == 400
    assert r.json() == {
        "success": False,
        "message": "price must be greater than zero",
        "errors": [{"loc": [], "msg": "price must be greater than zero"}],
    }


async def test_rejected_listing_is_visible_as_rejected(client, municipal, producer):
    await set_flag(client, municipal, "require-manual-review", "true")
    created = await create_listing(client, producer)
    assert created["status"] == "pending"

    r = await client.patch(f"/listings/{created['id']}/status", json={"status": "rejected"}, headers=municipal.headers)
    assert r.status_code == 200

    r = await client.get(f"/listings/{created['id']}")
    assert r.json()["data"]["status"] == "rejected"

    r = await client.get("/listings", params={"status": "rejected"})
    assert [row["id"] for row in r.json()["data"]] == [created["id"]]


@pytest.mark.parametrize("price", ["0.001", "0.009", "123456789012345.67"])
async def test_price_outside_column_precision_is_400(client, producer, price):
    r = await client.post("/listings", data={**PRODUCT_FORM, "price": price}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("price")


async def test_largest_storable_price_is_accepted(client, producer):
    data = await create_listing(client, producer, {**PRODUCT_FORM, "price": "9999999999.99"})
    assert Decimal(data["price"]) == Decimal("9999999999.99")


@pytest.mark.parametrize("price", ["0.004", "12345678901234"])
async def test_update_price_outside_column_precision_is_400(client, producer, price):
    created = await create_listing(client, producer)

    r = await client.put(f"/listings/{created['id']}", data={"price": price}, headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("price")

    unchanged = (await client.get(f"/listings/{created['id']}")).json()["data"]
    assert Decimal(unchanged["price"]) == Decimal("25.50")
