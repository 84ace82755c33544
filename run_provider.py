import argparse
import logging

import uvicorn

from nearweb3.app import create_app
from nearweb3.config import load_config

# Configure uvicorn loggers to suppress WARNING messages
uvicorn_loggers = [
    logging.getLogger("uvicorn"),
    logging.getLogger("uvicorn.error"),
    logging.getLogger("uvicorn.access"),
    logging.getLogger("uvicorn.asgi"),
]

for uvicorn_logger in uvicorn_loggers:
    uvicorn_logger.setLevel(logging.ERROR)
    # Remove handlers to prevent duplicate output
    uvicorn_logger.handlers = []


def main():
    parser = argparse.ArgumentParser(description="Ethereum JSON-RPC provider for NEAR")
    parser.add_argument("--config", default=None, help="path to config.toml (default: $NEARWEB3_CONFIG or ./config.toml)")
    parser.add_argument("--network", default=None, help="network preset: mainnet, testnet, betanet, local, test")
    parser.add_argument("--account", default=None, help="NEAR account used for EVM contract calls")
    parser.add_argument("--key-file", default=None, help="NEAR key file of the provider account (overrides the network preset)")
    args = parser.parse_args()

    config = load_config(args.config)
    if args.network:
        config.provider.network = args.network
    if args.account:
        config.provider.account_id = args.account
    if args.key_file:
        config.provider.key_path = args.key_file
    config.validate()

    app = create_app(config)
    uvicorn.run(
        app,
        host=config.rpc.http.host,
        port=config.rpc.http.port,
        access_log=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
