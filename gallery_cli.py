#!/usr/bin/env python3
"""
Gallery Client
Terminal front end for the image host: browse, search, copy links,
upload and delete images.
"""
import asyncio
import logging
import shlex
import sys
from pathlib import Path

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent))

from app.client.api import DirectRepoApi, GalleryApiError, ImageHostApi
from app.client.config_store import ConfigStore
from app.client.controller import GalleryController, GalleryStatus
from app.client.formatting import format_date, format_file_size
from app.client.settings import client_settings
from app.errors import ValidationError

HELP = """Commands:
  list                      Show the gallery (filtered by the current search)
  refresh                   Reload images
  search [text]             Filter by filename (empty clears the filter)
  open <n|name>             Show image details
  close                     Close the detail view
  copy <direct|markdown|html> [n|name]
                            Copy a link for the open (or given) image
  upload <path> [path...]   Upload image files
  delete [n|name]           Delete the open (or given) image
  config                    Reconfigure the repository (direct mode)
  help                      Show this help
  quit                      Exit"""


def render_gallery(controller: GalleryController) -> None:
    state = controller.state
    if state.status is GalleryStatus.ERROR:
        print(f"❌ Failed to load images: {state.error}. Type 'refresh' to try again.")
        return
    if state.status is GalleryStatus.LOADING:
        print("⏳ Loading images...")
        return

    visible = state.visible
    if not state.images:
        print("No images yet. Upload some to get started!")
        return
    if not visible:
        print(f"No images match '{state.query}'.")
        return

    for index, image in enumerate(visible):
        print(f"[{index:>3}] {image.name:<48} {format_file_size(image.size):>10}  {format_date(image.date)}")
    if state.query:
        print(f"({len(visible)} of {len(state.images)} images match '{state.query}')")


def render_detail(controller: GalleryController) -> None:
    detail = controller.state.detail
    if detail is None:
        print("No image open.")
        return

    image = detail.image
    dimensions = f"{detail.dimensions[0]} × {detail.dimensions[1]}" if detail.dimensions else "loading..."
    print(f"  Filename:   {image.name}")
    print(f"  Size:       {format_file_size(image.size)}")
    print(f"  Dimensions: {dimensions}")
    print(f"  Date:       {format_date(image.date)}")
    print(f"  URL:        {image.url}")


def parse_key(value: str):
    """Position in the visible list if numeric, otherwise a filename."""
    return int(value) if value.isdigit() else value


def setup_config(store: ConfigStore):
    """Ask for repository coordinates until a config is saved."""
    print("Configure the public repository holding your images.")
    while True:
        owner = input("GitHub owner: ").strip()
        repo = input("Repository: ").strip()
        branch = input("Branch [main]: ").strip() or "main"
        try:
            config = store.save(owner, repo, branch)
        except ValueError as e:
            print(f"❌ {e}")
            continue
        print(f"✅ Saved. Browse the repository at {config.repo_link()}")
        return config


async def run_command(controller: GalleryController, command: str, args: list) -> None:
    if command in ("list", "ls"):
        render_gallery(controller)

    elif command in ("refresh", "r"):
        await controller.dispatch("refresh")
        render_gallery(controller)

    elif command == "search":
        await controller.dispatch("search", " ".join(args))
        render_gallery(controller)

    elif command == "open" and args:
        await controller.dispatch("open", parse_key(args[0]))
        # Give the background probe a moment so fast responses show up immediately
        await asyncio.sleep(0.3)
        render_detail(controller)

    elif command == "info":
        render_detail(controller)

    elif command == "close":
        await controller.dispatch("close")

    elif command == "copy" and args:
        key = parse_key(args[1]) if len(args) > 1 else None
        await controller.dispatch("copy", args[0], key)
        print(f"✅ {controller.state.notice}")

    elif command == "upload" and args:
        for path in args:
            print(f"⏳ Uploading {path}...")
            await controller.dispatch("upload", path)
            print(f"✅ {controller.state.notice}")
        render_gallery(controller)

    elif command == "delete":
        key = parse_key(args[0]) if args else None
        if key is None and controller.state.detail is None:
            print("Open an image first or pass its number.")
            return
        name = controller.state.detail.image.name if key is None else key
        answer = await asyncio.to_thread(input, f"Are you sure you want to delete {name}? [y/N] ")
        if answer.strip().lower() != "y":
            return
        await controller.dispatch("delete", key)
        print(f"✅ {controller.state.notice}")
        render_gallery(controller)

    elif command == "help":
        print(HELP)

    else:
        print(f"Unknown command: {command}. Type 'help' for a list of commands.")


async def main_loop(controller: GalleryController, store: ConfigStore, direct: bool) -> None:
    try:
        await interact(controller, store, direct)
    finally:
        await controller.source.aclose()


async def interact(controller: GalleryController, store: ConfigStore, direct: bool) -> None:
    await controller.dispatch("refresh")
    render_gallery(controller)

    while True:
        try:
            line = await asyncio.to_thread(input, "\ngallery> ")
        except EOFError:
            break

        try:
            parts = shlex.split(line)
        except ValueError as e:
            print(f"❌ {e}")
            continue
        if not parts:
            continue

        command, args = parts[0].lower(), parts[1:]
        if command in ("quit", "exit", "q"):
            break

        if command == "config":
            if not direct:
                print("The server decides the repository; 'config' only applies with --direct.")
                continue
            store.clear()
            await controller.source.aclose()
            controller.source = DirectRepoApi(setup_config(store), timeout=client_settings.IMAGEHOST_TIMEOUT_SECONDS)
            controller.probe = controller.source.probe_dimensions
            await controller.dispatch("refresh")
            render_gallery(controller)
            continue

        try:
            await run_command(controller, command, args)
        except (GalleryApiError, ValidationError, LookupError, ValueError) as e:
            print(f"❌ {e}")


def main():
    """Main function."""
    print("=" * 60)
    print("Image Host Gallery")
    print("=" * 60)
    print()

    logging.basicConfig(level=logging.WARNING, format="%(levelname)s - %(message)s")

    args = sys.argv[1:]
    if args and args[0] in ("-h", "--help"):
        print("Usage:")
        print("  python gallery_cli.py [api_url]     - Browse through the image host server")
        print("  python gallery_cli.py --direct      - Browse a public repository directly (read-only)")
        print()
        print(f"Default api_url: {client_settings.IMAGEHOST_API_URL}")
        return

    store = ConfigStore(client_settings.IMAGEHOST_CONFIG_PATH)
    direct = bool(args) and args[0] == "--direct"

    if direct:
        config = store.load() or setup_config(store)
        print(f"Repository: {config.repo_link()}")
        source = DirectRepoApi(config, timeout=client_settings.IMAGEHOST_TIMEOUT_SECONDS)
    else:
        api_url = args[0] if args else client_settings.IMAGEHOST_API_URL
        print(f"Server: {api_url}")
        source = ImageHostApi(
            api_url,
            timeout=client_settings.IMAGEHOST_TIMEOUT_SECONDS,
            max_file_size=client_settings.IMAGEHOST_MAX_FILE_SIZE,
        )

    print("Type 'help' for a list of commands.")
    print()

    controller = GalleryController(source)
    try:
        asyncio.run(main_loop(controller, store, direct))
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    main()
