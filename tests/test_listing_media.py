from fixtures_seed import EVENT_FORM, PRODUCT_FORM, create_listing, image_file


def _stored_names(media_store) -> set[str]:
    return {p.name for p in media_store.list_objects()}


def _name(url: str) -> str:
    return url.rsplit("/", 1)[-1]


async def test_create_with_image(client, producer, media_store):
    data = await create_listing(client, producer, files=image_file())

    url = data["media_url"]
    assert url.startswith("http://test/uploads/images/imagem-")
    assert url.endswith(".png")
    assert _stored_names(media_store) == {_name(url)}


async def test_rejected_upload_types(client, producer, media_store):
    r = await client.post(
        "/listings",
        data=PRODUCT_FORM,
        files=image_file("notes.txt", b"hello", "text/plain"),
        headers=producer.headers,
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid file type. Only images (JPEG, PNG, GIF, WebP) are allowed."
    assert _stored_names(media_store) == set()


async def test_oversized_upload(client, producer, media_store, monkeypatch):
    from civic_market.core.config import settings

    monkeypatch.setattr(settings, "media_max_bytes", 16)
    r = await client.post("/listings", data=PRODUCT_FORM, files=image_file(), headers=producer.headers)
    assert r.status_code == 400
    assert r.json()["message"].startswith("File too large.")
    assert _stored_names(media_store) == set()


async def test_failed_create_discards_upload(client, producer, media_store):
    r = await client.post(
        "/listings", data={**PRODUCT_FORM, "price": "0"}, files=image_file(), headers=producer.headers
    )
    assert r.status_code == 400
    assert _stored_names(media_store) == set()

    # forbidden publish also leaves nothing behind
    r = await client.post("/listings", data=EVENT_FORM, files=image_file(), headers=producer.headers)
    assert r.status_code == 403
    assert _stored_names(media_store) == set()


async def test_update_without_media_fields_keeps_image(client, producer, media_store):
    created = await create_listing(client, producer, files=image_file())

    r = await client.put(f"/listings/{created['id']}", data={"title": "Renamed honey jar"}, headers=producer.headers)
    assert r.status_code == 200
    assert r.json()["data"]["media_url"] == created["media_url"]
    assert _stored_names(media_store) == {_name(created["media_url"])}


async def test_update_replaces_image_and_removes_old_object(client, producer, media_store):
    created = await create_listing(client, producer, files=image_file("old.png"))

    r = await client.put(
        f"/listings/{created['id']}", files=image_file("new.webp", content_type="image/webp"), headers=producer.headers
    )
    assert r.status_code == 200, r.text
    new_url = r.json()["data"]["media_url"]
    assert new_url != created["media_url"]
    assert new_url.endswith(".webp")
    assert _stored_names(media_store) == {_name(new_url)}


async def test_update_remove_flag_clears_image(client, producer, media_store):
    created = await create_listing(client, producer, files=image_file())

    r = await client.put(f"/listings/{created['id']}", data={"remover_imagem": "true"}, headers=producer.headers)
    assert r.status_code == 200
    assert r.json()["data"]["media_url"] is None
    assert _stored_names(media_store) == set()


async def test_new_upload_wins_over_remove_flag(client, producer, media_store):
    created = await create_listing(client, producer, files=image_file())

    r = await client.put(
        f"/listings/{created['id']}",
        data={"remover_imagem": "true"},
        files=image_file("other.gif", content_type="image/gif"),
        headers=producer.headers,
    )
    new_url = r.json()["data"]["media_url"]
    assert new_url.endswith(".gif")
    assert _stored_names(media_store) == {_name(new_url)}


async def test_failed_update_keeps_old_image_and_drops_new_upload(client, producer, other_resident, media_store):
    created = await create_listing(client, producer, files=image_file())
    before = _stored_names(media_store)

    r = await client.put(
        f"/listings/{created['id']}", data={"price": "-1"}, files=image_file("new.png"), headers=producer.headers
    )
    assert r.status_code == 400
    assert _stored_names(media_store) == before

    r = await client.put(f"/listings/{created['id']}", files=image_file("new.png"), headers=other_resident.headers)
    assert r.status_code == 403
    assert _stored_names(media_store) == before

    still = (await client.get(f"/listings/{created['id']}")).json()["data"]
    assert still["media_url"] == created["media_url"]


async def test_delete_removes_image(client, producer, media_store):
    created = await create_listing(client, producer, files=image_file())

    r = await client.delete(f"/listings/{created['id']}", headers=producer.headers)
    assert r.status_code == 200
    assert r.json()["data"]["media_url"] == created["media_url"]
    assert _stored_names(media_store) == set()


async def test_forbidden_delete_keeps_image(client, producer, other_resident, media_store):
    created = await create_listing(client, producer, files=image_file())

    r = await client.delete(f"/listings/{created['id']}", headers=other_resident.headers)
    assert r.status_code == 403
    assert _stored_names(media_store) == {_name(created["media_url"])}
