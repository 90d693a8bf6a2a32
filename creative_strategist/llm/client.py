from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

from anthropic import Anthropic
import google.generativeai as genai
from openai import OpenAI

from creative_strategist.config import settings


class LLMClientConfigError(Exception):
    pass


class LLMResponseError(RuntimeError):
    pass


logger = logging.getLogger(__name__)
_JSON_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


@dataclass
class LLMGenerationParams:
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: float = 0.7
    json_mode: bool = True


def parse_json_object(text: str) -> dict[str, Any]:
    """Parse a model reply into a JSON object, tolerating a surrounding markdown fence."""
    if not text or not text.strip():
        raise LLMResponseError("No response from LLM")
    candidate = text.strip()
    fenced = _JSON_FENCE_RE.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise LLMResponseError(f"LLM returned invalid JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise LLMResponseError("LLM returned JSON that is not an object")
    return parsed


def reply_text(value: Any) -> Optional[str]:
    """Coerce a field from a parsed model reply into text for a text column; blanks become None."""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False) if value else ""
    else:
        text = str(value)
    text = text.strip()
    return text or None


class LLMClient:
    """
    Thin wrapper for the completion calls made by the research agents.
    Routes to the provider client based on the requested model name.
    """

    def __init__(self, default_model: Optional[str] = None) -> None:
        self.default_model = default_model or settings.LLM_DEFAULT_MODEL
        self._gemini_configured = False
        self._anthropic_client: Optional[Anthropic] = None
        self._openai_client: Optional[OpenAI] = None

    def generate_text(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        params: Optional[LLMGenerationParams] = None,
    ) -> str:
        model = (params.model if params and params.model else None) or self.default_model
        if self._is_openai_model(model):
            return self._generate_with_openai(prompt, system_prompt, model, params)
        if model.startswith("claude"):
            return self._generate_with_anthropic(prompt, system_prompt, model, params)
        return self._generate_with_gemini(prompt, system_prompt, model, params)

    def generate_json(
        self,
        prompt: str,
        *,
        system_prompt: Optional[str] = None,
        params: Optional[LLMGenerationParams] = None,
    ) -> dict[str, Any]:
        text = self.generate_text(prompt, system_prompt=system_prompt, params=params)
        return parse_json_object(text)

    def _is_openai_model(self, model: str) -> bool:
        lower = model.lower()
        prefixes = ("gpt-", "chatgpt-", "o1", "o3", "o4")
        return any(lower.startswith(prefix) for prefix in prefixes)

    def _openai(self) -> OpenAI:
        if not settings.OPENAI_API_KEY:
            raise LLMClientConfigError("OPENAI_API_KEY not configured")
        if not self._openai_client:
            self._openai_client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                timeout=float(settings.LLM_REQUEST_TIMEOUT),
                max_retries=settings.LLM_REQUEST_RETRIES,
            )
        return self._openai_client

    def _generate_with_openai(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        params: Optional[LLMGenerationParams],
    ) -> str:
        client = self._openai()
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        request_kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": params.temperature if params else 0.7,
        }
        if params and params.max_tokens:
            request_kwargs["max_tokens"] = params.max_tokens
        if params is None or params.json_mode:
            request_kwargs["response_format"] = {"type": "json_object"}

        logger.debug("OpenAI chat completion request", extra={"model": model})
        response = client.chat.completions.create(**request_kwargs)
        text = response.choices[0].message.content if response.choices else None
        if not text:
            raise LLMResponseError(f"OpenAI returned no content for model {model}")
        return text

    def _generate_with_anthropic(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        params: Optional[LLMGenerationParams],
    ) -> str:
        if not settings.ANTHROPIC_API_KEY:
            raise LLMClientConfigError("ANTHROPIC_API_KEY not configured")
        if not self._anthropic_client:
            self._anthropic_client = Anthropic(
                api_key=settings.ANTHROPIC_API_KEY,
                max_retries=settings.LLM_REQUEST_RETRIES,
            )

        request_kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": params.max_tokens if params and params.max_tokens else 4096,
            "temperature": params.temperature if params else 0.7,
            "messages": [{"role": "user", "content": prompt}],
            "timeout": settings.LLM_REQUEST_TIMEOUT,
        }
        if system_prompt:
            request_kwargs["system"] = system_prompt

        response = self._anthropic_client.messages.create(**request_kwargs)
        text_parts = [content.text for content in response.content if getattr(content, "text", None)]
        if not text_parts:
            raise LLMResponseError(f"Anthropic returned no content for model {model}")
        return "".join(text_parts)

    def _generate_with_gemini(
        self,
        prompt: str,
        system_prompt: Optional[str],
        model: str,
        params: Optional[LLMGenerationParams],
    ) -> str:
        if not settings.GEMINI_API_KEY:
            raise LLMClientConfigError("GEMINI_API_KEY not configured")
        if not self._gemini_configured:
            genai.configure(api_key=settings.GEMINI_API_KEY)
            self._gemini_configured = True

        generation_config: dict[str, Any] = {"temperature": params.temperature if params else 0.7}
        if params and params.max_tokens:
            generation_config["max_output_tokens"] = params.max_tokens
        if params is None or params.json_mode:
            generation_config["response_mime_type"] = "application/json"

        model_name = model if model.startswith("models/") else f"models/{model}"
        model_client = genai.GenerativeModel(
            model_name=model_name,
            generation_config=generation_config,
            system_instruction=system_prompt,
        )
        try:
            result = model_client.generate_content(
                prompt, request_options={"timeout": settings.LLM_REQUEST_TIMEOUT}
            )
        except Exception:
            logger.exception("Gemini generation failed", extra={"model": model})
            raise
        text = getattr(result, "text", None)
        if not text:
            raise LLMResponseError(f"Gemini returned no content for model {model}")
        return text
