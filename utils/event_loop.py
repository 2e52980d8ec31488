"""Event loop helpers for the coordinator worker."""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor

logger = logging.getLogger(__name__)


def create_loop(max_workers: int = 4):
    """
    New event loop with its own default executor for blocking HTTP calls.

    Returns:
        (loop, executor)
    """
    loop = asyncio.new_event_loop()
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="donation-map-io")
    loop.set_default_executor(executor)
    return loop, executor


def shutdown_loop(loop: asyncio.AbstractEventLoop, executor: ThreadPoolExecutor) -> None:
    """
    Cancel remaining tasks and close the loop.

    Blocking calls still running in the executor are abandoned, not joined;
    their results are dropped when they finish.
    """
    pending = asyncio.all_tasks(loop)
    for task in pending:
        task.cancel()
    if pending:
        loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
    loop.run_until_complete(loop.shutdown_asyncgens())

    executor.shutdown(wait=False, cancel_futures=True)
    loop.close()
    logger.debug(f"Event loop closed, {len(pending)} task(s) cancelled")
