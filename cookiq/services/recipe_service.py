"""Recipe set assembler: prompts -> model gateway -> extractor.

RecipeService composes the pipeline stages into the two operations the front
end calls. It keeps no state between calls; two identical requests may return
different (valid) recipe sets because the model is not deterministic.
Any stage failure propagates unmodified: there is no partial result and no
fallback recipe.
"""

import base64

from cookiq.gateway.openrouter import ModelGateway
from cookiq.models.models import RecipeSet
from cookiq.pipeline.extractor import parse_recipe_set
from cookiq.prompts.prompts import build_prompts
from cookiq.utils.errors import ImageAnalysisError
from cookiq.utils.images import (
    compress_image,
    decode_base64_image,
    detect_mime_type,
    validate_image_format,
    validate_image_size,
)
from cookiq.utils.logger import logger


class RecipeService:
    """Generate recipe sets and analyze ingredient photos."""

    def __init__(
        self,
        gateway: ModelGateway,
        max_image_size_mb: int = 5,
        compress_images: bool = True,
        compress_threshold_kb: int = 300,
    ) -> None:
        self.gateway = gateway
        self.max_image_size_mb = max_image_size_mb
        self.compress_images = compress_images
        self.compress_threshold_kb = compress_threshold_kb

    async def generate_recipe(
        self, ingredients: str, language: str = "English", time_limit: str = "Any Time"
    ) -> RecipeSet:
        """Generate a validated RecipeSet for the given ingredients.

        Args:
            ingredients: Free-text ingredients (caller guards against empty input).
            language: Output language.
            time_limit: Preferred average total time.

        Returns:
            RecipeSet: At least one recipe, flagged items excluded from every recipe.

        Raises:
            ApiError, EmptyResponse, MalformedJson, SchemaMismatch: First failing stage.
        """
        logger.info(f"Generating recipes (language={language}, time_limit={time_limit})")
        prompts = build_prompts(ingredients, language, time_limit)
        content = await self.gateway.generate_recipe(prompts)
        recipe_set = parse_recipe_set(content)
        logger.info(f"Generated {len(recipe_set.recipes)} recipe(s)")
        return recipe_set

    def _prepare_image(self, base64_image: str, mime_type: str) -> tuple[str, str]:
        """Validate and optionally compress an image, returning (base64, mime_type)."""
        image_bytes = decode_base64_image(base64_image)
        if not image_bytes:
            raise ImageAnalysisError("Could not decode image data")
        if not validate_image_format(image_bytes):
            raise ImageAnalysisError("Invalid image format. Only JPEG, PNG and WEBP are supported.")
        if not validate_image_size(image_bytes, self.max_image_size_mb):
            raise ImageAnalysisError(f"Image too large. Maximum size is {self.max_image_size_mb}MB")

        mime_type = detect_mime_type(image_bytes) or mime_type
        if self.compress_images:
            image_bytes, compressed = compress_image(image_bytes, self.compress_threshold_kb)
            if compressed:
                mime_type = "image/jpeg"
        return base64.b64encode(image_bytes).decode("utf-8"), mime_type

    async def analyze_image(self, base64_image: str, mime_type: str) -> str:
        """List and classify the items visible in an ingredient photo.

        Args:
            base64_image: Base64 image (plain or data URI).
            mime_type: Declared MIME type; the detected type wins when they differ.

        Returns:
            str: Comma-separated items, returned as-is ("" if the model sent none).

        Raises:
            ImageAnalysisError: Invalid image or any gateway failure.
        """
        payload, mime_type = self._prepare_image(base64_image, mime_type)
        return await self.gateway.analyze_image(payload, mime_type)
