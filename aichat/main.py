"""
Command-line entry point: send one prompt to the backend and print the reply.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from contextlib import aclosing
from typing import TextIO

from .client import AIChatClient
from .config import Configuration
from .exceptions import InvalidServiceError
from .logging_utils import configure_logging
from .models import Message


def build_messages(prompt: str, system: str | None = None) -> list[Message]:
    messages = [Message(role="system", content=system)] if system else []
    messages.append(Message(role="user", content=prompt))
    return messages


async def run_chat(
    client: AIChatClient,
    messages: list[Message],
    *,
    stream: bool = True,
    out: TextIO = sys.stdout,
) -> None:
    """Write the backend's reply to ``out`` as it arrives."""
    if not stream:
        response = await client.get_chat_response(messages)
        out.write(response.text + "\n")
        return

    chunks = await client.get_chat_response_stream(messages)
    async with aclosing(chunks):
        async for chunk in chunks:
            out.write(chunk)
            out.flush()
    out.write("\n")


async def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="aichat", description=__doc__)
    parser.add_argument("prompt", help="user message to send")
    parser.add_argument("--system", help="system message prepended to the history")
    parser.add_argument("--config", help="path to a config.yaml")
    parser.add_argument(
        "--no-stream", action="store_true", help="wait for the complete reply"
    )
    args = parser.parse_args(argv)

    configuration = Configuration(args.config)
    configure_logging(configuration.get_logging_config().get("level", "INFO"))

    async with AIChatClient.from_configuration(configuration) as client:
        try:
            await run_chat(
                client,
                build_messages(args.prompt, args.system),
                stream=not args.no_stream,
            )
        except InvalidServiceError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
    return 0


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
