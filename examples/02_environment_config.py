"""
Environment Configuration Example.

Loads base URL, keys, retry policy and logging from FALLBACK_CLIENT_*
variables (or a .env file) and lists models.
"""

import asyncio

from fallback_client import FallbackClient
from fallback_client.core.env_config import ConfigFileLoader, load_from_env, print_config_summary


async def main():
    # FALLBACK_CLIENT_CONFIG_FILE wins over plain environment variables
    loaded = ConfigFileLoader.from_env_path() or load_from_env()
    print_config_summary(loaded)

    if not loaded.api_keys:
        print("\nNo keys configured: set FALLBACK_CLIENT_API_KEYS")
        return

    async with FallbackClient(loaded.api_keys, config=loaded.config) as client:
        response = await client.get("/v1/models")

    print(f"\nStatus: {response.status_code}")


if __name__ == "__main__":
    asyncio.run(main())
