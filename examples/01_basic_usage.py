"""
Basic usage: several API keys, one chat completion.

Requires real keys in OPENAI_API_KEYS (comma-separated).
"""

import asyncio
import os

from fallback_client import ClientConfig, FallbackClient, LoggingConfig


async def main():
    keys = [k for k in os.environ.get("OPENAI_API_KEYS", "").split(",") if k.strip()]
    if not keys:
        print("Set OPENAI_API_KEYS=sk-...,sk-... to run this example")
        return

    config = ClientConfig.create(
        timeout=(10, 120),
        logging=LoggingConfig.create(level="INFO", format="colored"),
    )

    async with FallbackClient(keys, config=config) as client:
        response = await client.post(
            "/v1/chat/completions",
            body={
                "model": "gpt-4o-mini",
                "messages": [{"role": "user", "content": "Say hi"}],
            },
        )

    print(f"Status: {response.status_code}")
    if response.status_code == 429:
        print("Every key is rate limited right now")
    else:
        print(response.json())


if __name__ == "__main__":
    asyncio.run(main())
