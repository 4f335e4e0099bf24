import asyncio
import logging
import sys
from typing import Optional

from core.config import Config
from grpc_clients import ConnectionConfig, LightningManager
from lightning_errors import LightningCallError, LightningConfigurationError
from logging_config import setup_logging

logger = logging.getLogger(__name__)


def build_connection_config(config: Optional[Config] = None) -> ConnectionConfig:
    config = config or Config()
    config.validate()
    return ConnectionConfig(**config.get_lnd_connection_params())


def create_lightning_manager(config: Optional[Config] = None) -> LightningManager:
    """Build the LND manager from environment configuration.

    Configuration problems surface as LightningConfigurationError; deciding
    whether that ends the process is up to the caller.
    """
    try:
        connection_config = build_connection_config(config)
    except ValueError as e:
        raise LightningConfigurationError(str(e)) from e
    return LightningManager.from_connection_config(connection_config)


async def probe_node(manager: LightningManager) -> bool:
    try:
        info = await manager.call("getInfo", {})
    except LightningCallError as e:
        logger.warning(f"lnd probe failed: {e.error.value}")
        return False

    logger.info(f"Connected to lnd node {getattr(info, 'identity_pubkey', '')}")
    return True


async def _run(config: Config):
    async with create_lightning_manager(config) as manager:
        if config.LND_PROBE_ON_START:
            await probe_node(manager)


def main(config: Optional[Config] = None):
    config = config or Config()
    setup_logging(config)
    logger.info("Starting LND gateway: loading lnd connection configuration...")

    try:
        asyncio.run(_run(config))
    except LightningConfigurationError as e:
        logger.error(f"lnd configuration is invalid, refusing to start: {e}")
        sys.exit(1)

    logger.info("LND gateway configuration verified.")


if __name__ == "__main__":
    main()
