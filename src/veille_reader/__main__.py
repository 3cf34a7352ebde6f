"""Entry point for Veille Reader: python -m veille_reader"""

import argparse
import asyncio
import json
import logging
import os
import sys
import uuid
from dataclasses import asdict

from langchain_core.messages import HumanMessage

from veille_reader.agent import create_agent
from veille_reader.database import Database
from veille_reader.errors import VeilleError
from veille_reader.ingestion import refresh_one_source, run_ingestion
from veille_reader.poller import DEFAULT_POLL_INTERVAL, RefreshGuard, start_polling
from veille_reader.seed import seed_sources
from veille_reader.tools import set_database

DEFAULT_DB_PATH = "veille_reader.db"
CHECKPOINT_DB_PATH = "veille_reader_checkpoints.db"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)
# Quiet noisy loggers
logging.getLogger("urllib3").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("langchain").setLevel(logging.WARNING)

logger = logging.getLogger("veille_reader")


async def chat_loop(agent, config: dict) -> None:
    """Run the interactive operator chat loop."""
    print("Veille Reader ready! Type your message (Ctrl+C to quit).\n")

    while True:
        try:
            user_input = await asyncio.to_thread(input, "You: ")
        except EOFError:
            break

        if not user_input.strip():
            continue

        try:
            response = await asyncio.to_thread(
                agent.invoke,
                {"messages": [HumanMessage(content=user_input)]},
                config,
            )
            last_message = response["messages"][-1]
            print(f"\nAgent: {last_message.content}\n")
        except Exception as e:
            error_msg = str(e)
            if "tool_use" in error_msg and "tool_result" in error_msg:
                # Corrupted checkpoint: start a fresh thread
                config["configurable"]["thread_id"] = uuid.uuid4().hex
                print("\nAgent: Sorry, I had an issue with my memory. Let me start fresh. Please try again.\n")
            else:
                print(f"\nAgent: Sorry, I encountered an error: {error_msg}\n")


async def run_chat(db: Database) -> None:
    """Run the operator console with the background poller alongside it."""
    checkpoint_path = os.environ.get("VEILLE_CHECKPOINT_PATH", CHECKPOINT_DB_PATH)
    interval = int(os.environ.get("VEILLE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL))

    guard = RefreshGuard()
    set_database(db, guard)
    agent = create_agent(checkpoint_db_path=checkpoint_path)
    config = {"configurable": {"thread_id": uuid.uuid4().hex}}

    poller_task = asyncio.create_task(start_polling(db, guard, interval))
    try:
        await chat_loop(agent, config)
    finally:
        poller_task.cancel()
        try:
            await poller_task
        except asyncio.CancelledError:
            pass


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="veille_reader",
        description="Aggregate newsletter and YouTube feeds into one reading list.",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("refresh", help="Fetch all enabled sources once")
    one = sub.add_parser("refresh-source", help="Fetch a single source by id")
    one.add_argument("source_id", type=int)
    sub.add_parser("seed", help="Add the default sources")
    sub.add_parser("poll", help="Refresh on a fixed interval until interrupted")
    sub.add_parser("chat", help="Start the operator console (default)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Initialize storage and dispatch the requested command."""
    args = build_parser().parse_args(argv)
    db_path = os.environ.get("VEILLE_DB_PATH", DEFAULT_DB_PATH)

    db = Database(db_path)
    db.connect()
    try:
        if args.command == "refresh":
            result = run_ingestion(db)
            print(json.dumps(asdict(result), indent=2))
        elif args.command == "refresh-source":
            try:
                added = refresh_one_source(db, args.source_id)
            except VeilleError as e:
                logger.error("Refresh failed: %s", e)
                return 1
            print(json.dumps({"added": added}))
        elif args.command == "seed":
            added = seed_sources(db)
            print(f"Added {added} sources")
        elif args.command == "poll":
            interval = int(os.environ.get("VEILLE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL))
            asyncio.run(start_polling(db, RefreshGuard(), interval))
        else:
            asyncio.run(run_chat(db))
    except KeyboardInterrupt:
        print("\nGoodbye!")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
