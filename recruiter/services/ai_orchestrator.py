import json
import logging
from typing import Any, Dict, List, Optional, Union

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from recruiter.core.config import settings
from recruiter.core.exceptions import AIKillSwitchError, MalformedResponse, UpstreamRejected, UpstreamUnavailable

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"

# client errors that are still worth another attempt
TRANSIENT_CLIENT_ERRORS = {408, 429}

Message = Dict[str, Any]


class AIDomain:
    INTERVIEW = "interview"
    RESUME = "resume"
    TRANSCRIPTION = "transcription"
    GENERAL = "general"


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Return the first balanced JSON object embedded in ``text``.

    Models wrap their payload in prose or code fences often enough that a
    plain ``json.loads`` is not an option.
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    raise MalformedResponse("AI response did not contain a JSON object.")


class AIOrchestrator:
    @staticmethod
    def _do_call(
        messages: List[Message],
        model_name: str,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Single OpenRouter round trip. Transport failures become UpstreamUnavailable."""
        logger.info(f"Calling AI Model: {model_name}")

        payload: Dict[str, Any] = {
            "model": model_name,
            "messages": messages,
            "temperature": temperature,
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        try:
            response = requests.post(
                url=OPENROUTER_URL,
                headers={
                    "Authorization": f"Bearer {settings.ai.openrouter_api_key}",
                    "Content-Type": "application/json",
                    "HTTP-Referer": settings.storage.public_base_url,
                    "X-Title": settings.app_name,
                },
                data=json.dumps(payload),
                timeout=settings.ai.timeout_seconds,
            )
            response.raise_for_status()
            return response.json()["choices"][0]["message"]["content"] or ""
        except requests.exceptions.Timeout:
            logger.error("AI service timeout.")
            raise UpstreamUnavailable("AI service reached timeout limit.")
        except requests.exceptions.HTTPError as e:
            status_code = e.response.status_code
            logger.error(f"AI service HTTP error: {e}")
            if 400 <= status_code < 500 and status_code not in TRANSIENT_CLIENT_ERRORS:
                raise UpstreamRejected(
                    f"AI service rejected the request: {status_code}",
                    details={"status": status_code},
                )
            raise UpstreamUnavailable(f"AI service returned error: {status_code}")
        except requests.exceptions.RequestException as e:
            logger.error(f"AI service unreachable: {e}")
            raise UpstreamUnavailable("AI service is unreachable.")
        except (KeyError, IndexError, ValueError) as e:
            logger.error(f"Unexpected AI response envelope: {e}")
            raise MalformedResponse("AI service returned an unexpected response envelope.")

    @classmethod
    def _do_call_with_retry(cls, messages: List[Message], model_name: str, temperature: float, max_tokens: Optional[int]) -> str:
        caller = retry(
            stop=stop_after_attempt(settings.ai.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(UpstreamUnavailable),
            reraise=True,
        )(cls._do_call)
        return caller(messages, model_name, temperature, max_tokens)

    @classmethod
    def call_model(
        cls,
        messages: List[Message],
        temperature: float = 0.7,
        domain: str = AIDomain.GENERAL,
        model_name: Optional[str] = None,
        max_tokens: Optional[int] = None,
        retries: bool = True,
    ) -> str:
        """
        Centralized AI model caller with kill-switch, retries and fallback.

        ``retries=False`` makes the call single-shot with no fallback model:
        scoring and final evaluation must fail fast instead of retrying.
        """
        logger.info(f"AI Coordination Request | Domain: {domain}")

        if settings.ai.kill_switch:
            logger.warning("AI Kill-switch is active. Blocking request.")
            raise AIKillSwitchError()

        if not settings.ai.openrouter_api_key:
            logger.error("OpenRouter API Key missing.")
            raise UpstreamUnavailable("AI service configuration error.")

        primary = model_name or settings.ai.model_name
        if not retries:
            return cls._do_call(messages, primary, temperature, max_tokens)

        try:
            return cls._do_call_with_retry(messages, primary, temperature, max_tokens)
        except UpstreamUnavailable as e:
            fallback = settings.ai.fallback_model
            if not fallback or fallback == primary:
                raise
            logger.warning(f"Primary model {primary} failed: {e.message}. Attempting fallback.")
            try:
                return cls._do_call(messages, fallback, temperature, max_tokens)
            except UpstreamUnavailable as fe:
                logger.error(f"Fallback model {fallback} also failed: {fe.message}")
                raise UpstreamUnavailable(
                    "AI service completely unavailable.",
                    details={"primary": e.message, "fallback": fe.message},
                )

    @classmethod
    def complete_text(
        cls,
        prompt: Union[str, List[Dict[str, Any]]],
        temperature: float = 0.7,
        domain: str = AIDomain.GENERAL,
        **kwargs: Any,
    ) -> str:
        """Send one user turn and return the stripped reply text."""
        messages = [{"role": "user", "content": prompt}]
        return cls.call_model(messages, temperature=temperature, domain=domain, **kwargs).strip()

    @classmethod
    def complete_json(
        cls,
        prompt: Union[str, List[Dict[str, Any]]],
        temperature: float = 0.5,
        domain: str = AIDomain.GENERAL,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """Helper for tasks that expect a JSON object back."""
        response_text = cls.complete_text(prompt, temperature=temperature, domain=domain, **kwargs)
        try:
            return extract_json_object(response_text)
        except MalformedResponse:
            logger.error(f"Failed to decode AI JSON response: {response_text[:500]}")
            raise
