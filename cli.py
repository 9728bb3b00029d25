# cli.py - interactive catalog admin console
import os
import sys
from datetime import datetime
from typing import List, Dict, Any, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.pycatalog import CatalogClient

console = Console()
c = CatalogClient(base_url=os.getenv("CATALOG_API_URL", "http://127.0.0.1:5000"))

status_message = "Ready"
product_cache: List[Dict[str, Any]] = []
category_cache: List[Dict[str, Any]] = []

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Display helpers
# ---------------------------
def _money(value: Optional[float]) -> str:
    return f"${value:.2f}" if isinstance(value, (int, float)) else "-"


def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Products",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=14)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Category", width=18)
    table.add_column("Images", justify="right", width=7)

    for p in products:
        table.add_row(
            str(p.get("id", "N/A")),
            p.get("name") or "-",
            _money(p.get("price")),
            p.get("categoryName") or str(p.get("categoryId") or "-"),
            str(len(p.get("images") or [])),
        )
    console.print(table)


def show_product_detail(p: Dict[str, Any]):
    lines = [
        f"[bold]{p.get('name') or '-'}[/bold]  {_money(p.get('price'))}",
        f"Category: {p.get('categoryName') or '-'} ({p.get('categoryId')})",
        "",
        p.get("description") or "[dim]no description[/dim]",
        "",
    ]
    images = p.get("images") or []
    for i, ref in enumerate(images, 1):
        lines.append(f"  {i}. {c.base_url}{ref}")
    if not images:
        lines.append("[dim]no images[/dim]")
    console.print(Panel("\n".join(lines), title=f"ℹ️ Product {p.get('id')}", border_style="cyan"))


def show_categories(categories: List[Dict[str, Any]]):
    if not categories:
        console.print("[italic yellow]No categories found[/italic yellow]")
        return

    table = Table(title="🏷️ Categories", box=box.ROUNDED, header_style="bold cyan", show_lines=True)
    table.add_column("ID", style="dim", width=14)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Description", width=40)
    for cat in categories:
        table.add_row(str(cat.get("id")), str(cat.get("name", "-")), str(cat.get("description", "")))
    console.print(table)


def show_users(users: List[Dict[str, Any]]):
    if not users:
        console.print("[italic yellow]No logins recorded[/italic yellow]")
        return

    table = Table(title="👤 Login log", box=box.ROUNDED, header_style="bold yellow")
    table.add_column("When", width=26)
    table.add_column("Username", width=20)
    table.add_column("Email", width=30)
    for u in users:
        table.add_row(u.get("loginTime", "-"), u.get("username", "-"), u.get("email", "-"))
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper
# ---------------------------
def _error_text(e: Exception) -> str:
    response = getattr(e, "response", None)
    if response is not None:
        try:
            return response.json().get("error", str(e))
        except ValueError:
            return f"HTTP {response.status_code}"
    return str(e)


def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the result, or None after printing the server's error text.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
        return result
    except Exception as e:
        status_message = f"Error: {_error_text(e)}"
        return None


# ---------------------------
# Autocompletion helpers
# ---------------------------
def refresh_caches():
    global product_cache, category_cache
    product_cache = try_api(c.list_products) or []
    category_cache = try_api(c.list_categories) or []


def get_product_completer():
    return WordCompleter([str(p.get("id")) for p in product_cache], ignore_case=True)


def get_category_completer():
    return WordCompleter([str(cat.get("id")) for cat in category_cache], ignore_case=True)


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def ask_id(message: str, completer) -> Optional[int]:
    raw = prompt_with_autocomplete(message, completer=completer).strip()
    try:
        return int(raw)
    except ValueError:
        console.print("[red]Please enter a numeric id.[/red]")
        return None


def ask_float(message: str, default: float = 10.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def ask_images() -> List[str]:
    raw = prompt_with_autocomplete("🖼️ Image files (comma separated, empty for none)")
    paths = [p.strip() for p in raw.split(",") if p.strip()]
    missing = [p for p in paths if not os.path.isfile(p)]
    for p in missing:
        console.print(f"[yellow]Skipping missing file {p}[/yellow]")
    return [p for p in paths if p not in missing]


def price_default(current: Dict[str, Any], fallback: float = 10.0) -> float:
    # a stored price of 0 is a real price
    price = current.get("price")
    return fallback if price is None else price


def ask_product_fields(current: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    current = current or {}
    name = prompt_with_autocomplete("Name", default=current.get("name") or "")
    price = ask_float("💰 Price", default=price_default(current))
    description = prompt_with_autocomplete("Description", default=current.get("description") or "")
    category_id = ask_id("🏷️ Category ID", get_category_completer())
    category_name = None
    for cat in category_cache:
        if cat.get("id") == category_id:
            category_name = cat.get("name")
    return {
        "name": name,
        "price": price,
        "description": description,
        "category_id": category_id,
        "category_name": category_name,
    }


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "🛍️ Catalog Admin",
        f"[bold blue]{c.base_url}[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Main menu
# ---------------------------
def menu():
    console.clear()
    console.print(create_header())
    refresh_caches()

    while True:
        if status_message:
            console.print(show_status(status_message, not status_message.startswith("Error")))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 List products", "6", "🏷️ List categories"),
            ("2", "ℹ️ Show product", "7", "➕ Add category"),
            ("3", "➕ Add product", "8", "🗑️ Delete category"),
            ("4", "✏️ Edit product", "9", "👤 Login log"),
            ("5", "🗑️ Delete product", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)
        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 10)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                show_products(products)

        elif choice == "2":
            pid = ask_id("Product ID", get_product_completer())
            if pid is not None:
                product = try_api(c.get_product, pid, success_msg=f"Product {pid} loaded")
                if product:
                    show_product_detail(product)

        elif choice == "3":
            fields = ask_product_fields()
            images = ask_images()[:5]
            product = try_api(c.create_product, image_paths=images,
                              success_msg=f"Product '{fields['name']}' created", **fields)
            if product:
                show_product_detail(product)

        elif choice == "4":
            pid = ask_id("Product ID", get_product_completer())
            current = try_api(c.get_product, pid) if pid is not None else None
            if current:
                # every field is rewritten on update, so prefill with the current values
                fields = ask_product_fields(current)
                free = 5 - len(current.get("images") or [])
                console.print(f"[dim]{free} image slot(s) free; extra images are dropped[/dim]")
                images = ask_images()
                product = try_api(c.update_product, pid, image_paths=images,
                                  success_msg=f"Product {pid} updated", **fields)
                if product:
                    show_product_detail(product)

        elif choice == "5":
            pid = ask_id("Product ID", get_product_completer())
            if pid is not None and Confirm.ask(f"Delete product {pid}?"):
                try_api(c.delete_product, pid, success_msg=f"Product {pid} deleted")

        elif choice == "6":
            categories = try_api(c.list_categories, success_msg="Categories loaded")
            if categories is not None:
                show_categories(categories)

        elif choice == "7":
            name = prompt_with_autocomplete("Category name").strip()
            description = prompt_with_autocomplete("Description").strip()
            if not name or not description:
                console.print("[red]Please fill in all fields![/red]")
            else:
                try_api(c.create_category, name, description, success_msg=f"Category '{name}' created")

        elif choice == "8":
            cid = ask_id("Category ID", get_category_completer())
            if cid is not None:
                doomed = [p for p in product_cache if p.get("categoryId") == cid]
                if Confirm.ask(f"[red]Delete category {cid} and its {len(doomed)} product(s)?[/red]"):
                    try_api(c.delete_category, cid, success_msg=f"Category {cid} deleted")

        elif choice == "9":
            users = try_api(c.list_users, success_msg="Login log loaded")
            if users is not None:
                show_users(users)

        elif choice.lower() in ("q", "quit", "exit"):
            console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
            sys.exit(0)

        if choice in ("3", "4", "5", "7", "8"):
            refresh_caches()

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
