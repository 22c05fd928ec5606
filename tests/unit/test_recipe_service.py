"""Unit tests for RecipeService.

Tests verify:
- generate_recipe composes prompts, gateway and extractor
- Stage failures propagate unmodified (no partial result)
- analyze_image validates, compresses and forwards images
"""

import base64
import json
from io import BytesIO

import pytest
from PIL import Image

from cookiq.gateway.openrouter import ModelGateway
from cookiq.models.models import RecipeSet
from cookiq.services.recipe_service import RecipeService
from cookiq.utils.errors import ApiError, EmptyResponse, ImageAnalysisError, MalformedJson, SchemaMismatch


def _png_bytes(size=(4, 4), color=(200, 30, 30)):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def _service(session, **kwargs):
    gateway = ModelGateway(api_key="sk-test", session=session)
    return RecipeService(gateway, **kwargs)


class TestGenerateRecipe:
    """Test the generate_recipe pipeline."""

    @pytest.mark.asyncio
    async def test_returns_validated_recipe_set(self, fake_session, chat_response, recipe_set_data):
        session = fake_session(chat_response(f"Here you go: {json.dumps(recipe_set_data)} Enjoy!"))
        service = _service(session)
        await service.gateway.start()

        recipe_set = await service.generate_recipe("egg, foxglove, plastic spoon", "English", "Any Time")

        assert isinstance(recipe_set, RecipeSet)
        assert recipe_set.to_json_dict() == recipe_set_data

    @pytest.mark.asyncio
    async def test_prompts_carry_request_values(self, fake_session, chat_response, recipe_set_json):
        session = fake_session(chat_response(recipe_set_json))
        service = _service(session)
        await service.gateway.start()

        await service.generate_recipe("rice, dal", "Tamil", "Under 30 mins")

        messages = session.calls[0]["json"]["messages"]
        assert "Language: Tamil." in messages[0]["content"]
        assert "USER INPUT: rice, dal." in messages[1]["content"]
        assert "Preferred Average Time: Under 30 mins." in messages[1]["content"]

    @pytest.mark.asyncio
    async def test_api_error_propagates(self, fake_session, fake_response):
        session = fake_session(fake_response(status=401, body={"error": "invalid key"}))
        service = _service(session)
        await service.gateway.start()

        with pytest.raises(ApiError) as exc:
            await service.generate_recipe("egg")
        assert exc.value.status == 401

    @pytest.mark.asyncio
    async def test_empty_response_propagates(self, fake_session, fake_response):
        session = fake_session(fake_response(status=200, body={"choices": []}))
        service = _service(session)
        await service.gateway.start()

        with pytest.raises(EmptyResponse):
            await service.generate_recipe("egg")

    @pytest.mark.asyncio
    async def test_prose_only_raises_malformed_json(self, fake_session, chat_response):
        session = fake_session(chat_response("Sorry, I cannot help with that."))
        service = _service(session)
        await service.gateway.start()

        with pytest.raises(MalformedJson):
            await service.generate_recipe("egg")

    @pytest.mark.asyncio
    async def test_missing_fields_raise_schema_mismatch(self, fake_session, chat_response):
        session = fake_session(chat_response('{"analysis": {"categorization": {"edible": []}}}'))
        service = _service(session)
        await service.gateway.start()

        with pytest.raises(SchemaMismatch):
            await service.generate_recipe("egg")


class TestAnalyzeImage:
    """Test analyze_image validation and forwarding."""

    @pytest.mark.asyncio
    async def test_valid_png_forwarded(self, fake_session, chat_response):
        session = fake_session(chat_response("eggs, spinach"))
        service = _service(session, compress_images=False)
        await service.gateway.start()
        encoded = base64.b64encode(_png_bytes()).decode()

        result = await service.analyze_image(encoded, "image/png")

        assert result == "eggs, spinach"
        url = session.calls[0]["json"]["messages"][0]["content"][1]["image_url"]["url"]
        assert url == f"data:image/png;base64,{encoded}"

    @pytest.mark.asyncio
    async def test_data_uri_accepted_and_detected_mime_wins(self, fake_session, chat_response):
        session = fake_session(chat_response("eggs"))
        service = _service(session, compress_images=False)
        await service.gateway.start()
        encoded = base64.b64encode(_png_bytes()).decode()

        await service.analyze_image(f"data:image/jpeg;base64,{encoded}", "image/jpeg")

        url = session.calls[0]["json"]["messages"][0]["content"][1]["image_url"]["url"]
        assert url.startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_large_image_compressed_to_jpeg(self, fake_session, chat_response):
        session = fake_session(chat_response("eggs"))
        service = _service(session, compress_images=True, compress_threshold_kb=0)
        await service.gateway.start()
        encoded = base64.b64encode(_png_bytes(size=(64, 64))).decode()

        await service.analyze_image(encoded, "image/png")

        url = session.calls[0]["json"]["messages"][0]["content"][1]["image_url"]["url"]
        assert url.startswith("data:image/jpeg;base64,")

    @pytest.mark.asyncio
    async def test_invalid_base64_rejected_before_request(self, fake_session):
        session = fake_session()
        service = _service(session)
        await service.gateway.start()

        with pytest.raises(ImageAnalysisError, match="decode"):
            await service.analyze_image("not base64!!", "image/png")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_format_rejected(self, fake_session):
        session = fake_session()
        service = _service(session)
        await service.gateway.start()

        with pytest.raises(ImageAnalysisError, match="Invalid image format"):
            await service.analyze_image(base64.b64encode(b"plain text, not an image").decode(), "image/png")
        assert session.calls == []

    @pytest.mark.asyncio
    async def test_oversized_image_rejected(self, fake_session):
        session = fake_session()
        service = _service(session, max_image_size_mb=0)
        await service.gateway.start()

        with pytest.raises(ImageAnalysisError, match="too large"):
            await service.analyze_image(base64.b64encode(_png_bytes()).decode(), "image/png")

    @pytest.mark.asyncio
    async def test_gateway_failure_raises_image_analysis_error(self, fake_session, timeout_response):
        session = fake_session(timeout_response)
        service = _service(session, compress_images=False)
        await service.gateway.start()

        with pytest.raises(ImageAnalysisError):
            await service.analyze_image(base64.b64encode(_png_bytes()).decode(), "image/png")
