import asyncio
import os
from sdk.pycatalog import CatalogClient
import requests

# placeholder payload; the server stores bytes as-is
PIXEL = b"\x89PNG\r\n\x1a\n"


async def add_image(client, product, label):
    r = await client.update_product_async(
        product["id"],
        name=f"{product['name']} ({label})",
        price=product["price"],
        description=product["description"],
        category_id=product["categoryId"],
        category_name=product["categoryName"],
        images=[(f"{label}.png", PIXEL)],
    )
    if r.status_code == 200:
        print(f"✅ {label}: product now has {len(r.json()['images'])} image(s)")
    else:
        print(f"❌ {label}: HTTP {r.status_code} {r.text}")


async def main():
    c = CatalogClient(base_url=os.getenv("CATALOG_API_URL", "http://127.0.0.1:5000"))

    try:
        category = c.create_category("Demo", "Concurrent update demo")
        product = c.create_product("Lamp", 19.99, "Desk lamp", category["id"], category["name"])
    except requests.exceptions.ConnectionError:
        print("❌ Catalog server is not running")
        return
    print(f"\n🖥️  Created product: {product}")

    # Seven concurrent image uploads against one product: every write is
    # serialized, so exactly five images survive and none of the first five
    # accepted uploads is lost.
    print("\n⚡ Sending concurrent updates...")
    await asyncio.gather(*(add_image(c, product, f"u{i}") for i in range(7)))

    final = c.get_product(product["id"])
    print(f"\n📦 Final product: {final['name']}")
    for ref in final["images"]:
        print(f"   🖼️  {ref}")

    c.delete_category(category["id"])
    print("\n🧹 Demo category and its product removed (image files stay on disk)")


if __name__ == "__main__":
    asyncio.run(main())
