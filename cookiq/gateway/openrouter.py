"""Model gateway for OpenAI-compatible chat-completion endpoints (OpenRouter).

This module provides the ModelGateway class, the single boundary through which
CookIQ talks to the language model:
- generate_recipe(): system + user prompt, 60s deadline, returns raw content
- analyze_image(): instruction + inline image, 30s deadline, returns the
  comma-separated item list

Each call issues exactly one request. There are no retries: a timeout,
transport failure or non-2xx status is terminal and surfaces to the caller.
Calls share no state beyond the HTTP session and may run concurrently.
"""

import asyncio
from typing import Any, Optional

import aiohttp

from cookiq.prompts.prompts import IMAGE_ANALYSIS_PROMPT, PromptPair
from cookiq.utils.config import Config
from cookiq.utils.errors import ApiError, EmptyResponse, ImageAnalysisError
from cookiq.utils.logger import logger


def extract_message_content(data: Any) -> Optional[str]:
    """Return choices[0].message.content from a chat-completion body, or None."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) else None


async def _read_error_payload(response: aiohttp.ClientResponse) -> Any:
    """Read the provider error body, falling back to raw text."""
    try:
        return await response.json(content_type=None)
    except ValueError:
        return await response.text()


class ModelGateway:
    """Chat-completion client holding one aiohttp session.

    Open with start() (or ``async with``) and release with close().
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        model: str = "meta-llama/llama-3.3-70b-instruct:free",
        vision_model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
        generation_timeout_s: float = 60,
        image_timeout_s: float = 30,
        http_referer: str = "http://localhost:3000",
        app_title: str = "CookIQ",
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize ModelGateway with configuration.

        Args:
            api_key: Bearer token for the provider.
            base_url: Endpoint root; "/chat/completions" is appended.
            model: Model used for recipe generation.
            vision_model: Model used for image analysis (defaults to model).
            temperature: Sampling temperature for generation.
            max_tokens: Completion token cap for generation.
            generation_timeout_s: Abort deadline for generate_recipe.
            image_timeout_s: Abort deadline for analyze_image.
            http_referer: Attribution header (HTTP-Referer).
            app_title: Attribution header (X-Title).
            session: Existing session to use instead of creating one in start().

        Raises:
            ValueError: If api_key is None or empty string.
        """
        if not api_key:
            raise ValueError("OPENROUTER_API_KEY is required")

        self.api_key = api_key
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.model = model
        self.vision_model = vision_model or model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.generation_timeout_s = generation_timeout_s
        self.image_timeout_s = image_timeout_s
        self.http_referer = http_referer
        self.app_title = app_title
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_config(cls, config: Config, session: Optional[aiohttp.ClientSession] = None) -> "ModelGateway":
        return cls(
            api_key=config.OPENROUTER_API_KEY,
            base_url=config.OPENROUTER_BASE_URL,
            model=config.MODEL,
            vision_model=config.VISION_MODEL,
            temperature=config.TEMPERATURE,
            max_tokens=config.MAX_TOKENS,
            generation_timeout_s=config.GENERATION_TIMEOUT_S,
            image_timeout_s=config.IMAGE_TIMEOUT_S,
            http_referer=config.HTTP_REFERER,
            app_title=config.APP_TITLE,
            session=session,
        )

    async def start(self) -> "ModelGateway":
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "ModelGateway":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.http_referer,
            "X-Title": self.app_title,
        }

    async def _post_chat(self, body: dict, timeout_s: float, error_cls: type, operation: str) -> Any:
        """POST one chat-completion request and return the decoded JSON body.

        Args:
            body: Request body.
            timeout_s: Total deadline for the request, including reading the body.
            error_cls: ApiError or ImageAnalysisError, raised on any failure.
            operation: Name used in log lines.

        Raises:
            error_cls: On non-2xx status, timeout, transport failure or a non-JSON body.
        """
        if self._session is None:
            raise RuntimeError("ModelGateway is not started; call start() or use 'async with'")

        logger.info(f"[{operation}] Sending request to {self.url} (model={body['model']}, timeout={timeout_s}s)")
        try:
            async with self._session.post(
                self.url,
                json=body,
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=timeout_s),
            ) as response:
                logger.debug(f"[{operation}] Response status: {response.status}")
                if not 200 <= response.status < 300:
                    payload = await _read_error_payload(response)
                    logger.error(
                        f"[{operation}] API error {response.status}: {payload}",
                        extra={"error_kind": error_cls.kind, "status": response.status},
                    )
                    raise error_cls(f"API Error ({response.status}): {payload}", status=response.status, payload=payload)
                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise error_cls(f"Provider returned a non-JSON body: {e}", status=response.status) from e
        except asyncio.TimeoutError as e:
            logger.error(f"[{operation}] Request aborted after {timeout_s}s")
            raise error_cls(f"Request timed out after {timeout_s}s", payload={"error": "timeout"}) from e
        except aiohttp.ClientError as e:
            logger.error(f"[{operation}] Transport failure: {e}")
            raise error_cls(f"Request failed: {e}", payload={"error": str(e)}) from e

    async def generate_recipe(self, prompts: PromptPair) -> str:
        """Send the recipe prompts and return the assistant's raw text.

        Args:
            prompts: System and user instruction from build_prompts().

        Returns:
            str: Raw message content (JSON possibly wrapped in prose).

        Raises:
            ApiError: Non-2xx status, timeout or transport failure.
            EmptyResponse: 2xx body without message content.
        """
        body = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": prompts.system},
                {"role": "user", "content": prompts.user},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        data = await self._post_chat(body, self.generation_timeout_s, ApiError, "generate_recipe")

        content = extract_message_content(data)
        if not content:
            logger.error("[generate_recipe] No content in response")
            raise EmptyResponse("No response from AI")

        logger.info(f"[generate_recipe] Content length: {len(content)}")
        return content

    async def analyze_image(self, base64_image: str, mime_type: str) -> str:
        """Ask the vision model to list and classify every visible item.

        The image travels inline as a data URI ``image_url`` content part.

        Args:
            base64_image: Base64 image payload without the data-URI prefix.
            mime_type: Image MIME type, e.g. "image/jpeg".

        Returns:
            str: Comma-separated item list as returned, or "" if absent.

        Raises:
            ImageAnalysisError: Non-2xx status, timeout or transport failure.
        """
        body = {
            "model": self.vision_model,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": IMAGE_ANALYSIS_PROMPT},
                        {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{base64_image}"}},
                    ],
                }
            ],
        }
        data = await self._post_chat(body, self.image_timeout_s, ImageAnalysisError, "analyze_image")

        result = extract_message_content(data) or ""
        logger.info(f"[analyze_image] Detected items: {result}")
        return result
