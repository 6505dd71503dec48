import asyncio
import json
import sys
from typing import Any, Dict

import httpx
from dotenv import load_dotenv

from config import get_config_path, load_config
from mcp_server import RateGate, RequestDispatcher, serve
from spotify_api import (
    ClientCredentialsAuth,
    SpotifyClient,
    SpotifyCredentials,
    SpotifyDataLoader,
    check_spotify_credentials,
)
from utils.logger import log_error, log_info, log_success, log_warning, setup_logging


async def run_server(config: Dict[str, Any], credentials: SpotifyCredentials) -> int:
    """Wire the Spotify client and dispatcher together and serve stdin/stdout."""

    async with httpx.AsyncClient(timeout=float(config["request_timeout"])) as http_client:
        auth = ClientCredentialsAuth(
            credentials,
            http_client,
            accounts_base_url=config["spotify_accounts_base_url"],
            refresh_margin=float(config["token_refresh_margin_seconds"]),
        )
        client = SpotifyClient(auth, http_client, base_url=config["spotify_api_base_url"])
        loader = SpotifyDataLoader(client, market=config["market"])
        dispatcher = RequestDispatcher(loader, RateGate.from_config(config))

        log_success("Spotify MCP server ready on stdio")
        return await serve(dispatcher)


def main() -> int:
    load_dotenv(override=False)
    setup_logging()

    try:
        config = load_config()
    except json.JSONDecodeError as e:
        log_error(f"Config file {get_config_path()} contains invalid JSON: {e}")
        return 1
    except (OSError, ValueError) as e:
        log_error(f"Error loading config: {e}")
        return 1

    setup_logging(config["log_level"], config["log_file"] or None)

    credentials = SpotifyCredentials.from_env()
    status = check_spotify_credentials(credentials)
    if status["ok"]:
        log_info(status["message"])
    else:
        log_warning(status["message"])

    try:
        asyncio.run(run_server(config, credentials))
    except KeyboardInterrupt:
        log_info("Interrupted, shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
