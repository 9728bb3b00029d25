# tests/test_catalog_service.py
import asyncio

import pytest

from catalog.core import ProductIn, Upload, UserIn
from catalog.errors import NotFound, StoreIOError
from conftest import open_service


def png(n):
    return Upload(f"img{n}.png", f"image-{n}".encode())


def lamp(**overrides):
    fields = {"name": "Lamp", "price": "19.99", "description": "Desk lamp",
              "categoryId": "7", "categoryName": "Lights"}
    fields.update(overrides)
    return ProductIn(**fields)


def test_create_product_coerces_numbers_and_stores_images(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp(price="12.5"), [png(1), png(2)])
        return svc, p, await svc.list_products()

    svc, p, products = asyncio.run(scenario())
    assert p["price"] == 12.5 and isinstance(p["price"], float)
    assert p["categoryId"] == 7
    assert len(p["images"]) == 2
    assert svc.media.path_for(p["images"][0]).read_bytes() == b"image-1"
    assert products == [p]


def test_update_appends_then_keeps_oldest_five(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp(), [png(i) for i in range(4)])
        updated = await svc.update_product(p["id"], lamp(), [png(10), png(11), png(12)])
        return p, updated

    original, updated = asyncio.run(scenario())
    assert len(updated["images"]) == 5
    assert updated["images"][:4] == original["images"]
    # only the first new upload fits
    assert updated["images"][4] not in original["images"]


def test_update_without_uploads_keeps_images_and_replaces_scalars(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp(), [png(1)])
        updated = await svc.update_product(p["id"], ProductIn(name="Lamp v2", price="5"))
        return p, updated

    original, updated = asyncio.run(scenario())
    assert updated["images"] == original["images"]
    assert updated["id"] == original["id"]
    assert updated["name"] == "Lamp v2"
    assert updated["price"] == 5.0
    # omitted fields are cleared, not preserved
    assert updated["description"] is None
    assert updated["categoryId"] is None
    assert updated["categoryName"] is None


def test_update_missing_product_raises_not_found(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        await svc.create_product(lamp())
        with pytest.raises(NotFound):
            await svc.update_product(12345, lamp(name="ghost"))
        return await svc.list_products()

    products = asyncio.run(scenario())
    assert [p["name"] for p in products] == ["Lamp"]


def test_get_product(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp())
        assert await svc.get_product(p["id"]) == p
        with pytest.raises(NotFound):
            await svc.get_product(p["id"] + 1)

    asyncio.run(scenario())


def test_delete_missing_product_is_noop(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp(), [png(1)])
        before = await svc.list_products()
        ok = await svc.delete_product(p["id"] + 999)
        after_noop = await svc.list_products()
        await svc.delete_product(p["id"])
        return svc, p, ok, before, after_noop, await svc.list_products()

    svc, p, ok, before, after_noop, after = asyncio.run(scenario())
    assert ok is True
    assert after_noop == before
    assert after == []
    # media is not reclaimed
    assert svc.media.path_for(p["images"][0]).exists()


def test_delete_category_cascades_to_its_products(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        lights = await svc.create_category({"name": "Lights", "description": "lamps"})
        chairs = await svc.create_category({"name": "Chairs", "description": "seats"})
        await svc.create_product(lamp(categoryId=str(lights["id"])))
        await svc.create_product(lamp(name="Spot", categoryId=str(lights["id"])))
        await svc.create_product(lamp(name="Stool", categoryId=str(chairs["id"])))
        await svc.delete_category(lights["id"])
        return chairs, await svc.list_categories(), await svc.list_products()

    chairs, categories, products = asyncio.run(scenario())
    assert categories == [chairs]
    assert [p["name"] for p in products] == ["Stool"]


def test_create_category_keeps_extra_fields_and_assigns_id(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        a = await svc.create_category({"name": "A", "description": "x", "color": "red", "id": 1})
        b = await svc.create_category({"name": "B"})
        return a, b

    a, b = asyncio.run(scenario())
    assert a["color"] == "red"
    assert a["id"] != 1
    assert b["id"] > a["id"]


def test_ids_are_unique_under_rapid_creates(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        for i in range(10):
            await svc.create_product(lamp(name=f"p{i}"))
        return await svc.list_products()

    ids = [p["id"] for p in asyncio.run(scenario())]
    assert ids == sorted(set(ids))


def test_record_login_appends_to_log(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        await svc.record_login(UserIn(email="ann@example.com", username="ann"))
        await svc.record_login(UserIn(email="bob@example.com", username="bob"))
        return await svc.list_users()

    users = asyncio.run(scenario())
    assert [u["username"] for u in users] == ["ann", "bob"]
    assert users[0]["loginTime"].endswith("Z")


def test_concurrent_updates_lose_nothing(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp())
        await asyncio.gather(*(
            svc.update_product(p["id"], lamp(), [png(i)]) for i in range(3)
        ))
        return await svc.get_product(p["id"])

    product = asyncio.run(scenario())
    assert len(product["images"]) == 3


def test_concurrent_updates_apply_in_submission_order(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp())
        await asyncio.gather(*(
            svc.update_product(p["id"], lamp(name=f"rev{i}")) for i in range(5)
        ))
        return await svc.get_product(p["id"])

    assert asyncio.run(scenario())["name"] == "rev4"


def test_image_cap_holds_under_concurrent_uploads(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp())
        await asyncio.gather(*(
            svc.update_product(p["id"], lamp(), [png(i), png(i + 10)]) for i in range(4)
        ))
        return await svc.get_product(p["id"])

    assert len(asyncio.run(scenario())["images"]) == 5


def test_update_with_files_does_not_overtake_later_update(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp())
        big = Upload("big.png", b"x" * (2 * 1024 * 1024))
        await asyncio.gather(
            svc.update_product(p["id"], lamp(name="first"), [big]),
            svc.update_product(p["id"], lamp(name="second")),
        )
        return await svc.get_product(p["id"])

    product = asyncio.run(scenario())
    assert product["name"] == "second"
    # the earlier update's image is kept by the later one
    assert len(product["images"]) == 1


def test_failed_upload_write_leaves_product_unchanged(tmp_path):
    async def scenario():
        svc = await open_service(tmp_path)
        p = await svc.create_product(lamp())
        svc.media.uploads_dir = tmp_path / "db.json"  # a regular file, not a directory
        with pytest.raises(StoreIOError):
            await svc.update_product(p["id"], lamp(name="broken"), [png(1)])
        return p, await svc.get_product(p["id"])

    before, after = asyncio.run(scenario())
    assert after == before
