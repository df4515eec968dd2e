#!/usr/bin/env python3
"""
Streaming client for the helixrun chat endpoint.

Usage:
    python -m helixrun.client "add 2 and 3"
    python -m helixrun.client --agent calc-bot --url http://localhost:8081 "multiply 4 by 5"

Environment variables:
    HELIXRUN_URL: server base URL (default: http://localhost:8081)
"""

import argparse
import asyncio
import json
import os
import sys
from collections.abc import AsyncIterator, Iterable

import httpx

DEFAULT_URL = "http://localhost:8081"


def parse_sse(lines: Iterable[str]) -> list[dict]:
    """Decode `data:` frames from a sequence of SSE lines into envelopes."""
    envelopes: list[dict] = []
    for line in lines:
        envelope = parse_sse_line(line)
        if envelope is not None:
            envelopes.append(envelope)
    return envelopes


def parse_sse_line(line: str) -> dict | None:
    line = line.strip()
    if not line.startswith("data:"):
        return None
    data = line[len("data:"):].strip()
    if not data:
        return None
    return json.loads(data)


async def stream_chat(
    base_url: str,
    agent_id: str,
    message: str,
    user_id: str | None = None,
    session_id: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[dict]:
    """POST a chat request and yield each envelope as it arrives."""
    body = {"agent_id": agent_id, "message": message}
    if user_id:
        body["user_id"] = user_id
    if session_id:
        body["session_id"] = session_id

    owns_client = client is None
    client = client or httpx.AsyncClient(base_url=base_url, timeout=None)
    try:
        async with client.stream("POST", "/chat", json=body) as response:
            if response.status_code != 200:
                detail = (await response.aread()).decode("utf-8", errors="replace")
                raise httpx.HTTPStatusError(
                    f"chat request failed with {response.status_code}: {detail}",
                    request=response.request,
                    response=response,
                )
            async for line in response.aiter_lines():
                envelope = parse_sse_line(line)
                if envelope is not None:
                    yield envelope
    finally:
        if owns_client:
            await client.aclose()


async def _print_stream(args: argparse.Namespace) -> int:
    async for envelope in stream_chat(args.url, args.agent, args.message, args.user, args.session):
        event = envelope.get("event", {})
        # build failures carry the error on the envelope, run failures on the event
        error = envelope.get("error") or event.get("error")
        if error:
            print(f"\n[error] {error.get('message', '')}", file=sys.stderr)
            return 1
        if args.verbose:
            print(json.dumps(event))
            continue

        if "contentDelta" in event:
            print(event["contentDelta"], end="", flush=True)
        elif event.get("object") == "tool.response":
            print(f"\n[tool] {event.get('content', '')}")
        elif event.get("runnerCompletion"):
            print(f"\n{event.get('content', '')}")
            usage = event.get("usage")
            if usage:
                print(
                    f"[usage] prompt={usage['prompt_tokens']} "
                    f"completion={usage['completion_tokens']} total={usage['total_tokens']}"
                )
    return 0


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stream a chat run from a helixrun server")
    parser.add_argument("message", help="User message to send")
    parser.add_argument("--agent", default="calc-bot", help="Agent id (default: calc-bot)")
    parser.add_argument(
        "--url",
        default=os.getenv("HELIXRUN_URL", DEFAULT_URL),
        help=f"Server base URL (default: {DEFAULT_URL})",
    )
    parser.add_argument("--user", default=None, help="User id")
    parser.add_argument("--session", default=None, help="Session id to continue")
    parser.add_argument("--verbose", action="store_true", help="Print every event as JSON")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        return asyncio.run(_print_stream(args))
    except httpx.HTTPError as e:
        print(f"request failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
