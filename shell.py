import asyncio
import json
import shlex
import sys
from datetime import datetime
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from tabulate import tabulate

from bridge import Bridge
from config import get_settings
from database import InventoryDB
from errors import StoreError
from logger import setup_logger
from strings import FIELDS, HELP_TEXT, NEVER_UPDATED

Ask = Callable[[str], Awaitable[str]]


@lru_cache(maxsize=1024)
def format_timestamp(value: Optional[str]) -> str:
    """Render a stored timestamp as 'DD.MM.YYYY HH:MM'; raw text if unparseable."""
    if not value:
        return NEVER_UPDATED
    try:
        return datetime.fromisoformat(value).strftime("%d.%m.%Y %H:%M")
    except ValueError:
        return value


def normalize_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    url = url.strip()
    if "://" not in url:
        url = "https://" + url
    return url


def parse_parameters(text: str) -> Dict[str, Any]:
    """
    Parse component parameters typed in the shell.

    Accepts a JSON object or 'key=value;key=value' pairs.
    """
    text = text.strip()
    if not text:
        return {}
    if text.startswith("{"):
        return json.loads(text)
    params = {}
    for pair in text.split(";"):
        if not pair.strip():
            continue
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Bad parameter '{pair.strip()}', expected key=value")
        params[key.strip()] = value.strip()
    return params


def print_components(components: List[Dict[str, Any]]) -> None:
    table = [[
        c["id"], c.get("category_name") or "", c["name"], c["quantity"],
        c.get("storage_cell") or "", format_timestamp(c.get("updated_at"))
    ] for c in components]
    headers = ["ID", "Category", "Name", "Qty", "Cell", "Updated (UTC)"]
    print(tabulate(table, headers=headers, tablefmt="github"))


def print_result(result: Dict[str, Any], done: str) -> None:
    if result.get("success") and not result.get("error"):
        print(done)
    else:
        print(f"Error: {result.get('error')}")


async def handle_command(bridge: Bridge, command: str, ask: Ask):
    try:
        tokens = shlex.split(command)
        if not tokens:
            return

        cmd = tokens[0].lower()

        if cmd in ("help", "h"):
            print(HELP_TEXT)

        elif cmd == "f":
            print("Fields:")
            for field in FIELDS:
                print(f"- {field}")

        elif cmd == "lc":
            categories = await bridge.invoke("getCategories")
            if categories:
                print(tabulate([[c["id"], c["name"]] for c in categories],
                               headers=["ID", "Name"], tablefmt="github"))
            else:
                print("No categories found.")

        elif cmd == "ac":
            args = parse_args(tokens[1:])
            result = await bridge.invoke("addCategory", args.get("-n", ""))
            if result["success"]:
                print(f"Category added with ID: {result['id']}")
            else:
                print(f"Error: {result['error']}")

        elif cmd == "rc":
            args = parse_args(tokens[1:])
            result = await bridge.invoke("updateCategory", int(args.get("-id")), args.get("-n", ""))
            print_result(result, "Renamed.")

        elif cmd == "dc":
            args = parse_args(tokens[1:])
            cid = int(args.get("-id"))
            confirm = (await ask(f"Delete category {cid}? [y/N]: ")).strip().lower()
            if confirm == 'y':
                print_result(await bridge.invoke("deleteCategory", cid), "Deleted.")
            else:
                print("Cancelled.")

        elif cmd == "l":
            args = parse_args(tokens[1:])
            category_id = int(args["-c"]) if "-c" in args else None
            components = await bridge.invoke("getComponents", category_id)
            if components:
                print_components(components)
            else:
                print("No components found.")

        elif cmd == "info":
            args = parse_args(tokens[1:])
            c = await bridge.invoke("getComponent", int(args.get("-id")))
            if c:
                table = [
                    ["Name", c["name"]],
                    ["Category", c.get("category_name") or ""],
                    ["Quantity", c["quantity"]],
                    ["Storage cell", c.get("storage_cell") or ""],
                    ["Datasheet", normalize_url(c.get("datasheet_url")) or ""],
                    ["Description", c.get("description") or ""],
                    ["Image", "yes" if c.get("image_data") else "no"],
                    ["Updated (UTC)", format_timestamp(c.get("updated_at"))],
                ]
                print(tabulate(table, tablefmt="github"))
                if c["parameters"]:
                    print(tabulate(sorted(c["parameters"].items()),
                                   headers=["Parameter", "Value"], tablefmt="github"))
            else:
                print("Component not found.")

        elif cmd == "a":
            data = {
                "category_id": await ask("Category ID: "),
                "name": await ask("Name: "),
                "quantity": await ask("Quantity: "),
                "storage_cell": await ask("Storage cell: "),
                "datasheet_url": await ask("Datasheet URL: "),
                "description": await ask("Description: "),
                "parameters": parse_parameters(await ask("Parameters (key=value;...): ")),
            }
            result = await bridge.invoke("addComponent", data)
            if result["success"]:
                print(f"Component added with ID: {result['id']}")
            else:
                print(f"Error: {result['error']}")

        elif cmd in ("u", "q"):
            args = parse_args(tokens[1:])
            comp_id = int(args.get("-id"))
            field = "quantity" if cmd == "q" else args.get("-f")
            value = args.get("-v")
            component = await bridge.invoke("getComponent", comp_id)
            if component and field in FIELDS and isinstance(value, str):
                # Update overwrites the whole row, so send the full snapshot
                component[field] = parse_parameters(value) if field == "parameters" else value
                result = await bridge.invoke("updateComponent", component)
                print_result(result, "Updated.")
            else:
                print("Invalid ID or field.")

        elif cmd == "d":
            args = parse_args(tokens[1:])
            comp_id = int(args.get("-id"))
            confirm = (await ask(f"Delete component {comp_id}? [y/N]: ")).strip().lower()
            if confirm == 'y':
                print_result(await bridge.invoke("deleteComponent", comp_id), "Deleted.")
            else:
                print("Cancelled.")

        elif cmd == "s":
            args = parse_args(tokens[1:])
            value = args.get("-v")
            if isinstance(value, str):
                components = await bridge.invoke("searchComponents", value)
                if components:
                    print_components(components)
                else:
                    print("No results.")
            else:
                print("Please specify search value with -v")

        elif cmd == "x":
            print("Exiting.")
            return "exit"

        else:
            print("Unknown command. Type 'h' for help.")

    except Exception as e:
        print(f"Error: {str(e)}")


def parse_args(tokens: list) -> dict:
    args = {}
    i = 0
    while i < len(tokens):
        if tokens[i].startswith("-") and not tokens[i].startswith("--") and i + 1 < len(tokens):
            args[tokens[i]] = tokens[i + 1]
            i += 2
        else:
            args[tokens[i]] = True
            i += 1
    return args


async def repl(bridge: Bridge):
    session = PromptSession(history=InMemoryHistory())
    print("Component Inventory Shell. Type 'h' for help.")
    while True:
        try:
            lines = (await session.prompt_async(">>> ")).strip().splitlines()
            for line in lines:
                line = line.strip()
                if not line:
                    continue
                if await handle_command(bridge, line, session.prompt_async) == "exit":
                    return
        except KeyboardInterrupt:
            continue
        except EOFError:
            break


def main():
    settings = get_settings()
    setup_logger(settings.log_level)
    try:
        with InventoryDB(settings.db_path) as db:
            bridge = Bridge(db, timeout=settings.request_timeout)
            bridge.register()
            asyncio.run(repl(bridge))
    except StoreError as e:
        print(f"Database error: {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
