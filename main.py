from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
from typing import Any, Dict, Optional

from playwright.async_api import async_playwright

from harvester.commands import CommandDispatcher
from harvester.config import HarvestConfig
from harvester.controller import RunController
from harvester.storage import FolderSink, JsonCheckpointStore
from harvester.surface import PlaywrightSurface


DEFAULT_USER_DATA_DIR = ".harvester-profile"


def _print_progress(message: Dict[str, Any]) -> None:
    data = message["data"]
    last_error = data["errors"][-1] if data["errors"] else None
    print(
        f"page={data['current_page']}/{data['total_pages']} "
        f"processed={data['processed_count']} failed={data['failed_count']} "
        f"total={data['total_results']} running={data['running']} paused={data['paused']}"
        + (f" last_error={last_error['title']}: {last_error['error']}" if last_error else "")
    )


def show_status(checkpoint_path: str) -> None:
    store = JsonCheckpointStore(checkpoint_path)
    state = store.load()
    store.close()
    if state is None:
        print(f"No checkpoint at {checkpoint_path}")
        return
    print(json.dumps(state.snapshot().to_dict(), indent=2, ensure_ascii=False))


async def run_harvest(
    url: str,
    folder_name: Optional[str],
    config: HarvestConfig,
    user_data_dir: str,
    headless: bool,
) -> None:
    checkpoints = JsonCheckpointStore(config.checkpoint_path)
    sink = FolderSink(config.output_dir)

    async with async_playwright() as p:
        context = await p.chromium.launch_persistent_context(user_data_dir, headless=headless)
        try:
            page = context.pages[0] if context.pages else await context.new_page()
            await page.goto(url, wait_until="load")

            surface = PlaywrightSurface(context)
            source = surface.adopt(page)

            controller = RunController(surface, sink, checkpoints, config)
            controller.broadcaster.subscribe(_print_progress)
            dispatcher = CommandDispatcher(controller)

            loop = asyncio.get_running_loop()
            try:
                loop.add_signal_handler(signal.SIGINT, controller.stop)
            except NotImplementedError:
                pass

            await dispatcher.handle({"action": "START", "source": source, "folder_name": folder_name})
            status = await dispatcher.wait_for_run()
        finally:
            await context.close()
            checkpoints.close()

    if status is not None:
        print(
            f"\nDONE: processed={status.processed_count} failed={status.failed_count} "
            f"total={status.total_results} folder={config.run_folder(status.folder_name)}"
        )


def main() -> None:
    parser = argparse.ArgumentParser(description="Download every call transcript from a call search listing")
    parser.add_argument("--url", help="Search results URL to harvest")
    parser.add_argument("--folder", default=None, help="Folder name for this run (default: today's date)")
    parser.add_argument("--output-dir", default="downloads", help="Directory that receives '<App> Transcripts/'")
    parser.add_argument("--app-name", default="Gong", help="Application name used for the root folder")
    parser.add_argument("--checkpoint", default="harvester_state.json", help="Run state checkpoint file")
    parser.add_argument(
        "--user-data-dir",
        default=DEFAULT_USER_DATA_DIR,
        help="Persistent browser profile that already holds a signed-in session",
    )
    parser.add_argument("--headless", action="store_true", help="Run the browser without a window")
    parser.add_argument("--status", action="store_true", help="Print the last checkpointed status and exit")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )

    if args.status:
        show_status(args.checkpoint)
        return

    if not args.url:
        parser.error("--url is required unless --status is given")

    asyncio.run(
        run_harvest(
            url=args.url,
            folder_name=args.folder,
            config=HarvestConfig.from_args(args),
            user_data_dir=args.user_data_dir,
            headless=args.headless,
        )
    )


if __name__ == "__main__":
    main()
