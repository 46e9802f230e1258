"""
OpenAI chat completion client that turns a prompt into schema-shaped JSON
"""

import json
from typing import Any, Dict, List, Optional, Union

from openai import AsyncOpenAI, OpenAIError

from src.core.exceptions.base import UpstreamError
from src.core.logger.logger import get_logger
from src.core.service.ai.models import AiContentResult
from src.core.service.validation.json_validation import is_valid_schema, schema_errors
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

DEFAULT_SYSTEM_PROMPT = (
    "You are a specialized JSON generator. Your task is to create a valid JSON object "
    "that matches the provided schema based on the user's request."
)

TEMPLATE_SYSTEM_PROMPT = f"""
{DEFAULT_SYSTEM_PROMPT}

This template requires generating JSON that strictly follows this JSON schema:
"""


def build_schema_prompt(json_schema: Any, system_prompt_prefix: str) -> str:
    """System prompt that pins the reply to ``json_schema``"""
    return f"""
{system_prompt_prefix}

You MUST format your response as a valid JSON object that conforms to the following schema:
{json.dumps(json_schema, indent=2)}

Ensure your response is ONLY the JSON object with no additional text or formatting.
"""


def parse_json_reply(raw_response: str) -> AiContentResult:
    """Only replies shaped like a JSON object are parsed"""
    text = raw_response.strip()
    if not (text.startswith("{") and text.endswith("}")):
        return AiContentResult(raw_response=raw_response, is_valid=False)

    try:
        parsed = json.loads(text)
    except ValueError:
        return AiContentResult(
            raw_response=raw_response,
            is_valid=False,
            validation_errors=["Failed to parse JSON response"]
        )

    return AiContentResult(raw_response=raw_response, parsed_data=parsed, is_valid=True)


class AiContentService:
    """Chat completions against OpenAI with a hard request timeout"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None
    ):
        api_key = api_key or settings.OPENAI_API_KEY
        if client is None and not api_key:
            raise ValueError("API key is required for AI service")

        self.model = model or settings.OPENAI_MODEL
        self.temperature = temperature if temperature is not None else settings.OPENAI_TEMPERATURE
        self.max_tokens = max_tokens or settings.OPENAI_MAX_TOKENS
        self.timeout = timeout or settings.OPENAI_TIMEOUT_SECONDS
        self.client = client or AsyncOpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)

    async def process_prompt(self, prompt: str, system_prompt: Optional[str] = None) -> AiContentResult:
        """
        Send ``prompt`` to the model and try to read the reply as JSON

        Raises:
            UpstreamError: when the provider fails or times out
        """
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                timeout=self.timeout
            )
        except OpenAIError as e:
            logger.error(
                "OpenAI request failed",
                extra={"model": self.model, "error_type": type(e).__name__, "error": str(e)}
            )
            raise UpstreamError("AI service request failed", details={"error_type": type(e).__name__})

        raw_response = ""
        if completion.choices:
            raw_response = completion.choices[0].message.content or ""

        logger.info(
            "OpenAI completion received",
            extra={"model": self.model, "response_length": len(raw_response)}
        )
        return parse_json_reply(raw_response)

    async def process_template_prompt(
        self,
        prompt: str,
        json_schema: Union[str, Dict[str, Any]],
        system_prompt_prefix: str = TEMPLATE_SYSTEM_PROMPT
    ) -> AiContentResult:
        """
        Generate JSON for a template and check it against the template schema

        A reply that parses but does not conform is returned with
        ``is_valid=False`` and the schema violations in ``validation_errors``.
        """
        schema = json_schema
        if isinstance(json_schema, str):
            try:
                schema = json.loads(json_schema)
            except ValueError:
                schema = json_schema

        result = await self.process_prompt(prompt, build_schema_prompt(schema, system_prompt_prefix))
        if not result.is_valid or not is_valid_schema(schema):
            return result

        errors = schema_errors(schema, result.parsed_data)
        if errors:
            logger.warning(
                "AI response does not match template schema",
                extra={"error_count": len(errors)}
            )
            return AiContentResult(
                raw_response=result.raw_response,
                parsed_data=result.parsed_data,
                is_valid=False,
                validation_errors=errors
            )
        return result
