"""
Example: load a task pack from disk and run it as a tool.

Loads examples/packs/example-title, launches Chromium, and invokes the pack
twice with the same inputs: both runs share one result key, so the second
store overwrites the first (version 2).

Usage:
  python examples/run_pack_minimal.py
  TASKPACK_HEADLESS=false python examples/run_pack_minimal.py
"""

import asyncio
import logging
from pathlib import Path

from playwright.async_api import async_playwright

from taskpack import (
    ConcurrencyLimiter,
    InMemoryResultStore,
    PackTool,
    ProxyRegistry,
    RunnerConfig,
    TaskPackLoader,
    browser_page_factory,
)

PACK_DIR = Path(__file__).parent / "packs" / "example-title"


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = RunnerConfig.from_env()
    pack = TaskPackLoader.load_task_pack(PACK_DIR)
    proxy = ProxyRegistry.with_defaults().resolve(pack.browser.proxy if pack.browser else None)

    limiter = ConcurrencyLimiter(config.max_concurrency)
    store = InMemoryResultStore()

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=config.headless)
        try:
            tool = PackTool(
                pack,
                "example_title",
                limiter,
                browser_page_factory(browser, proxy),
                store=store,
                config=config,
            )
            print(tool.description)

            first, second = await asyncio.gather(tool.invoke({}), tool.invoke({}))
            print("collectibles:", first.collectibles)
            print("keys equal:", first.key == second.key)

            stored = await store.get(first.key)
            print("stored version:", stored.version if stored else None)
        finally:
            await browser.close()


if __name__ == "__main__":
    asyncio.run(main())
