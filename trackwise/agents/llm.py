"""
Prompt Adapter

The boundary between TrackWise and the hosted language model.

The adapter does three things and nothing else:
1. Send a rendered prompt to the model
2. Pull the JSON object out of the reply
3. Validate it against the flow's output schema

Every failure comes out as a FlowError subclass. Callers catch FlowError
and treat a network error, an empty reply and a malformed reply the same
way; the subclasses exist for logging and tests.
"""

import json
from typing import Optional, Protocol, TypeVar

import google.generativeai as genai
import structlog
from pydantic import BaseModel, ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential

from trackwise.config import GeminiSettings, get_settings

OutputT = TypeVar("OutputT", bound=BaseModel)

logger = structlog.get_logger(__name__)


class FlowError(Exception):
    """Base exception for language-model flow failures."""
    pass


class ModelServiceError(FlowError):
    """The model could not be reached or the request failed."""
    pass


class EmptyResponseError(FlowError):
    """The model answered with nothing usable (blocked, empty, no JSON)."""
    pass


class SchemaValidationError(FlowError):
    """The model's reply did not match the expected output schema."""

    def __init__(self, schema: str, message: str):
        self.schema = schema
        super().__init__(f"Reply does not match {schema}: {message}")


class LLMClient(Protocol):
    """Anything that can turn a prompt into reply text."""

    async def complete(self, prompt: str) -> str:
        ...


class GeminiClient:
    """
    LLMClient backed by Google Gemini.

    Transient transport failures are retried; a reply that arrives but is
    unusable is not.
    """

    def __init__(self, settings: Optional[GeminiSettings] = None):
        self._settings = settings or get_settings().gemini
        self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)
        self._model = genai.GenerativeModel(
            model_name=self._settings.model_name,
            generation_config={
                "temperature": self._settings.temperature,
                "max_output_tokens": self._settings.max_tokens,
                "response_mime_type": "application/json",
            }
        )

    @property
    def model_name(self) -> str:
        return self._settings.model_name

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def _generate(self, prompt: str):
        return await self._model.generate_content_async(prompt)

    async def complete(self, prompt: str) -> str:
        try:
            response = await self._generate(prompt)
        except Exception as e:
            raise ModelServiceError(f"Gemini request failed: {e}") from e

        try:
            # .text raises ValueError when the reply was blocked or has no parts
            text = response.text
        except ValueError as e:
            raise EmptyResponseError(f"Gemini returned no text: {e}") from e

        return text


def extract_json_object(text: Optional[str]) -> dict:
    """
    Pull the outermost JSON object out of a model reply.

    Models sometimes wrap JSON in prose or code fences, so we take
    everything from the first '{' to the last '}'.
    """
    if not text or not text.strip():
        raise EmptyResponseError("Model returned an empty reply")

    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise EmptyResponseError("Model reply contains no JSON object")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise SchemaValidationError("JSON", str(e)) from e

    if not isinstance(data, dict):
        raise SchemaValidationError("JSON object", type(data).__name__)

    return data


class PromptAdapter:
    """
    Runs one prompt through an LLMClient and returns a validated record.
    """

    def __init__(self, client: Optional[LLMClient] = None):
        self._client = client

    @property
    def client(self) -> LLMClient:
        # Built on first use so the app can start without an API key
        if self._client is None:
            self._client = GeminiClient()
        return self._client

    async def run(
        self,
        prompt: str,
        output_model: type[OutputT],
        flow: str = "flow",
    ) -> OutputT:
        """
        Send ``prompt`` and validate the reply as ``output_model``.

        Raises:
            ModelServiceError: The request failed
            EmptyResponseError: Nothing usable came back
            SchemaValidationError: The reply did not fit the schema
        """
        log = logger.bind(flow=flow, schema=output_model.__name__)
        log.debug("llm_request", prompt_chars=len(prompt))

        try:
            text = await self.client.complete(prompt)
        except FlowError:
            log.warning("llm_request_failed", exc_info=True)
            raise
        except Exception as e:
            log.warning("llm_request_failed", exc_info=True)
            raise ModelServiceError(str(e)) from e

        data = extract_json_object(text)

        try:
            result = output_model.model_validate(data)
        except ValidationError as e:
            log.warning("llm_schema_mismatch", errors=e.error_count())
            raise SchemaValidationError(output_model.__name__, str(e)) from e

        log.debug("llm_response_validated")
        return result
