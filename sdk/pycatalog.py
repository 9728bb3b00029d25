# sdk/pycatalog.py
import argparse
import os
import httpx
import requests
from rich import print_json
from contextlib import ExitStack
from typing import Any, Dict, List, Optional, Sequence


def _product_form(name: Optional[str], price: Optional[float], description: Optional[str],
                  category_id: Optional[int], category_name: Optional[str]) -> Dict[str, str]:
    fields = {
        "name": name,
        "price": price,
        "description": description,
        "categoryId": category_id,
        "categoryName": category_name,
    }
    # omitted fields are simply not sent; the server stores them as null
    return {k: str(v) for k, v in fields.items() if v is not None}


class CatalogClient:
    def __init__(self, base_url: str = "http://localhost:5000", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.timeout = timeout

    def _get(self, path: str):
        r = self.session.get(f"{self.base_url}{path}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def _send_product(self, method: str, path: str, form: Dict[str, str], image_paths: Sequence[str]):
        with ExitStack() as stack:
            files = [
                ("images", (os.path.basename(p), stack.enter_context(open(p, "rb"))))
                for p in image_paths
            ]
            r = self.session.request(method, f"{self.base_url}{path}", data=form,
                                     files=files or None, timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Products
    def list_products(self) -> List[Dict[str, Any]]:
        return self._get("/products")

    def get_product(self, product_id: int) -> Dict[str, Any]:
        return self._get(f"/products/{product_id}")

    def create_product(self, name: str, price: float, description: str = "",
                       category_id: Optional[int] = None, category_name: Optional[str] = None,
                       image_paths: Sequence[str] = ()):
        form = _product_form(name, price, description, category_id, category_name)
        return self._send_product("POST", "/products", form, image_paths)

    def update_product(self, product_id: int, name: Optional[str] = None, price: Optional[float] = None,
                       description: Optional[str] = None, category_id: Optional[int] = None,
                       category_name: Optional[str] = None, image_paths: Sequence[str] = ()):
        """Full replace: any field left as None is cleared on the server. Images are appended."""
        form = _product_form(name, price, description, category_id, category_name)
        return self._send_product("PUT", f"/products/{product_id}", form, image_paths)

    def delete_product(self, product_id: int):
        r = self.session.delete(f"{self.base_url}/products/{product_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Categories
    def list_categories(self) -> List[Dict[str, Any]]:
        return self._get("/categories")

    def create_category(self, name: str, description: str = "", **extra):
        r = self.session.post(f"{self.base_url}/categories",
                              json={"name": name, "description": description, **extra},
                              timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    def delete_category(self, category_id: int):
        r = self.session.delete(f"{self.base_url}/categories/{category_id}", timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Users
    def list_users(self) -> List[Dict[str, Any]]:
        return self._get("/users")

    def record_login(self, email: str, username: str):
        r = self.session.post(f"{self.base_url}/users", json={"email": email, "username": username},
                              timeout=self.timeout)
        r.raise_for_status()
        return r.json()

    # Media
    def download_image(self, reference: str) -> bytes:
        r = self.session.get(f"{self.base_url}{reference}", timeout=self.timeout)
        r.raise_for_status()
        return r.content

    # Async update (example)
    async def update_product_async(self, product_id: int, name: Optional[str] = None,
                                   price: Optional[float] = None, description: Optional[str] = None,
                                   category_id: Optional[int] = None, category_name: Optional[str] = None,
                                   images: Sequence[tuple] = ()):
        """images: (filename, bytes) pairs. Returns the raw httpx response."""
        form = _product_form(name, price, description, category_id, category_name)
        files = [("images", (fname, data)) for fname, data in images]
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.put(f"{self.base_url}/products/{product_id}", data=form,
                                    files=files or None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Catalog CLI")
    parser.add_argument("--base-url", default=os.getenv("CATALOG_API_URL", "http://127.0.0.1:5000"))
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-products", help="List all products")

    gp = subparsers.add_parser("get-product", help="Get a product by its ID")
    gp.add_argument("--product-id", type=int, required=True)

    cp = subparsers.add_parser("create-product", help="Create a product")
    cp.add_argument("--name", required=True)
    cp.add_argument("--price", type=float, required=True)
    cp.add_argument("--description", default="")
    cp.add_argument("--category-id", type=int)
    cp.add_argument("--category-name")
    cp.add_argument("--image", action="append", default=[], help="Image file (repeat, max 5)")

    up = subparsers.add_parser("update-product", help="Replace a product's fields, appending any images")
    up.add_argument("--product-id", type=int, required=True)
    up.add_argument("--name")
    up.add_argument("--price", type=float)
    up.add_argument("--description")
    up.add_argument("--category-id", type=int)
    up.add_argument("--category-name")
    up.add_argument("--image", action="append", default=[], help="Image file (repeat, max 5)")

    dp = subparsers.add_parser("delete-product", help="Delete a product")
    dp.add_argument("--product-id", type=int, required=True)

    subparsers.add_parser("list-categories", help="List categories")

    cc = subparsers.add_parser("create-category", help="Create a category")
    cc.add_argument("--name", required=True)
    cc.add_argument("--description", default="")

    dc = subparsers.add_parser("delete-category", help="Delete a category and its products")
    dc.add_argument("--category-id", type=int, required=True)

    subparsers.add_parser("list-users", help="Show the login log")

    rl = subparsers.add_parser("record-login", help="Append a login to the log")
    rl.add_argument("--email", required=True)
    rl.add_argument("--username", required=True)

    return parser


def run_command(c: CatalogClient, args: argparse.Namespace):
    if args.command == "list-products":
        result = c.list_products()
    elif args.command == "get-product":
        result = c.get_product(args.product_id)
    elif args.command == "create-product":
        result = c.create_product(args.name, args.price, args.description,
                                  args.category_id, args.category_name, args.image)
    elif args.command == "update-product":
        result = c.update_product(args.product_id, args.name, args.price, args.description,
                                  args.category_id, args.category_name, args.image)
    elif args.command == "delete-product":
        result = c.delete_product(args.product_id)
    elif args.command == "list-categories":
        result = c.list_categories()
    elif args.command == "create-category":
        result = c.create_category(args.name, args.description)
    elif args.command == "delete-category":
        result = c.delete_category(args.category_id)
    elif args.command == "record-login":
        result = c.record_login(args.email, args.username)
    else:
        result = c.list_users()
    return result


if __name__ == "__main__":
    args = build_parser().parse_args()
    print_json(data=run_command(CatalogClient(base_url=args.base_url), args))
