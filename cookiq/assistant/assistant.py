"""Application factory for CookIQ.

Builds the model gateway, recipe service and history store once at process
start and tears them down together. Components receive their collaborators
explicitly; nothing is reached through module-level singletons.
"""

from dataclasses import dataclass
from typing import Optional

from cookiq.gateway.openrouter import ModelGateway
from cookiq.models.models import GenerationRequest, StoredRecipeSet
from cookiq.services.recipe_service import RecipeService
from cookiq.storage.history import HistoryStore
from cookiq.utils.config import Config
from cookiq.utils.logger import logger


@dataclass
class CookIQ:
    """Wired application: generation service plus history store."""

    config: Config
    gateway: ModelGateway
    service: RecipeService
    history: HistoryStore

    async def cook(self, request: GenerationRequest) -> StoredRecipeSet:
        """Generate recipes for a validated request and save them to history.

        Nothing is saved when generation fails.
        """
        recipe_set = await self.service.generate_recipe(request.ingredients, request.language, request.time_limit)
        return self.history.save(recipe_set)

    async def close(self) -> None:
        logger.info("Shutting down CookIQ...")
        await self.gateway.close()
        self.history.close()

    async def __aenter__(self) -> "CookIQ":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def open_history_store(config: Config) -> HistoryStore:
    """Open the history store described by config.

    Needs no API key, so history commands can run without one.
    """
    history = HistoryStore(db_file=config.HISTORY_DB_FILE, limit=config.HISTORY_LIMIT).open()
    logger.info(f"✓ History store ready: {config.HISTORY_DB_FILE} (limit {config.HISTORY_LIMIT})")
    return history


async def initialize_cookiq(config: Optional[Config] = None, gateway: Optional[ModelGateway] = None) -> CookIQ:
    """Create and start every CookIQ component.

    Args:
        config: Configuration to use. Loaded from the environment and validated if None.
        gateway: Pre-built gateway (tests pass one with a stub session).

    Returns:
        CookIQ: Started application; close() it (or use ``async with``) when done.

    Raises:
        ValueError: If the configuration is invalid.
        StorageError: If the history database cannot be opened.
    """
    logger.info("Step 1/3: Loading configuration...")
    if config is None:
        config = Config()
        config.validate()
    logger.info(f"✓ Configuration loaded (model={config.MODEL}, vision_model={config.VISION_MODEL})")

    logger.info("Step 2/3: Opening history store...")
    history = open_history_store(config)

    logger.info("Step 3/3: Starting model gateway...")
    gateway = gateway or ModelGateway.from_config(config)
    try:
        await gateway.start()
    except Exception:
        history.close()
        raise
    service = RecipeService(
        gateway,
        max_image_size_mb=config.MAX_IMAGE_SIZE_MB,
        compress_images=config.COMPRESS_IMG,
        compress_threshold_kb=config.COMPRESS_IMG_THRESHOLD_KB,
    )
    logger.info("✓ Model gateway started")

    return CookIQ(config=config, gateway=gateway, service=service, history=history)
