"""Translation provider client backed by the OpenAI API."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass
from typing import Sequence

from dotenv import find_dotenv, load_dotenv
from openai import (
    APIConnectionError,
    APIStatusError,
    AsyncOpenAI,
    AuthenticationError,
    BadRequestError,
    InternalServerError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
)

from .errors import ConfigError, ProviderFatalError, ProviderTransientError
from .utils import Language

logger = logging.getLogger(__name__)

# Load environment variables from .env file in current working directory
load_dotenv(find_dotenv(usecwd=True))

# Model configuration - can be overridden via environment variables or .env file
TRANSLATION_MODEL = os.environ.get("OPENAI_TRANSLATION_MODEL", "gpt-5-mini")

# Rate limiting configuration
MAX_CONCURRENT_REQUESTS = int(os.environ.get("MAX_CONCURRENT_REQUESTS", "10"))
INITIAL_RETRY_DELAY = float(os.environ.get("INITIAL_RETRY_DELAY", "1.0"))
MAX_RETRY_ATTEMPTS = int(os.environ.get("MAX_RETRY_ATTEMPTS", "3"))

# Seconds before a single API call is abandoned and treated as a transient failure
REQUEST_TIMEOUT = float(os.environ.get("REQUEST_TIMEOUT", "60"))

# Maximum number of keys sent in one API call
TRANSLATION_BATCH_SIZE = int(os.environ.get("TRANSLATION_BATCH_SIZE", "40"))

# Request Timeout and Conflict responses are retried like server errors
RETRYABLE_STATUS_CODES = (408, 409)

SUPPORTED_LANGUAGE_CODES = (
    "ar", "bg", "cs", "da", "de", "el", "en-gb", "en-us", "es", "et", "fi",
    "fr", "he", "hu", "id", "it", "ja", "ko", "lt", "lv", "nb", "nl", "pl",
    "pt-br", "pt-pt", "ro", "ru", "sk", "sl", "sv", "th", "tr", "uk", "vi",
    "zh-hans", "zh-hant",
)


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of translating one key: either ``text`` or ``error`` is set."""

    key: str
    text: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def get_client() -> AsyncOpenAI:
    """Get async OpenAI client."""
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ConfigError(
            "OPENAI_API_KEY environment variable not set. "
            "Set it in your environment or in a .env file."
        )
    # Retries are handled by TranslationProvider so the attempt count stays bounded
    return AsyncOpenAI(api_key=api_key, max_retries=0, timeout=REQUEST_TIMEOUT)


def _is_quota_error(error: RateLimitError) -> bool:
    return getattr(error, "code", None) == "insufficient_quota"


class TranslationProvider:
    """
    Translate batches of locale strings from English with OpenAI.

    Batches are split into chunks of at most ``batch_size`` keys. Chunks are
    sent in parallel, limited by a semaphore of ``max_concurrent`` requests.
    A failure inside one chunk only fails the keys of that chunk, and a key the
    model leaves out fails on its own. Authentication, quota and invalid request
    errors raise ProviderFatalError straight away.
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = TRANSLATION_MODEL,
        context: str = "",
        batch_size: int = TRANSLATION_BATCH_SIZE,
        max_concurrent: int = MAX_CONCURRENT_REQUESTS,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        initial_retry_delay: float = INITIAL_RETRY_DELAY,
        timeout: float = REQUEST_TIMEOUT,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.model = model
        self.context = context
        self.batch_size = batch_size
        self.max_concurrent = max_concurrent
        self.max_attempts = max_attempts
        self.initial_retry_delay = initial_retry_delay
        self.timeout = timeout
        self._semaphore: asyncio.Semaphore | None = None
        self._semaphore_loop: asyncio.AbstractEventLoop | None = None

    def available_languages(self) -> list[Language]:
        """Target languages that can be selected for translation."""
        return [Language.from_code(code) for code in SUPPORTED_LANGUAGE_CODES]

    def get_language(self, code: str) -> Language | None:
        """Look up a supported target language by code, case-insensitively."""
        code_lower = code.lower()
        for language in self.available_languages():
            if language.code == code_lower:
                return language
        return None

    async def translate(
        self, batch: Sequence[tuple[str, str]], target_language: Language
    ) -> list[TranslationResult]:
        """
        Translate ``(key, text)`` pairs into ``target_language``.

        Returns one TranslationResult per input pair, in input order.

        Raises:
            ProviderFatalError: If the provider rejects the credentials, the
                quota is exhausted or the request itself is invalid
        """
        results: dict[str, TranslationResult] = {}
        to_send = []
        for key, text in batch:
            if text == "":
                results[key] = TranslationResult(key, text="")
            else:
                to_send.append((key, text))

        chunks = [
            to_send[i:i + self.batch_size]
            for i in range(0, len(to_send), self.batch_size)
        ]
        if chunks:
            logger.debug(
                "Translating %d string(s) to %s in %d chunk(s)",
                len(to_send), target_language.code, len(chunks),
            )

        chunk_results = await asyncio.gather(
            *(self._translate_chunk(chunk, target_language) for chunk in chunks),
            return_exceptions=True,
        )

        for chunk, chunk_result in zip(chunks, chunk_results):
            if isinstance(chunk_result, ProviderFatalError):
                raise chunk_result
            if isinstance(chunk_result, BaseException):
                if not isinstance(chunk_result, Exception):
                    raise chunk_result
                # Any other failure only affects the keys of this chunk
                for key, _ in chunk:
                    results[key] = TranslationResult(key, error=str(chunk_result))
                continue
            for result in chunk_result:
                results[result.key] = result

        return [results[key] for key, _ in batch]

    def _get_semaphore(self) -> asyncio.Semaphore:
        """Get or create the semaphore limiting concurrent API calls for the running loop."""
        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.max_concurrent)
            self._semaphore_loop = loop
        return self._semaphore

    async def _translate_chunk(
        self, chunk: Sequence[tuple[str, str]], target_language: Language
    ) -> list[TranslationResult]:
        """
        Submit one chunk of strings to OpenAI for translation.

        Uses Structured Outputs so the response is an object with exactly the
        chunk's keys.
        """
        keys = [key for key, _ in chunk]
        schema = {
            "type": "object",
            "properties": {key: {"type": "string"} for key in keys},
            "required": keys,
            "additionalProperties": False,
        }

        english_text = json.dumps(dict(chunk), ensure_ascii=False, indent=2)
        prompt = (
            f"Translate the values of the following JSON object from English to "
            f"{target_language.name}:\n```\n{english_text}\n```\n"
        )

        system_content = f"""You are a helpful assistant that translates English user interface strings to other languages. The content to translate is provided as a flat JSON object. You provide the output as a JSON object with exactly the same keys.

Rules:
- Maintain all keys from the input exactly as they are and translate only the values
- When you encounter values enclosed in braces like '{{variable_name}}', keep the variable name unchanged. The placeholder position can change to fit the target language grammar.
- Keep HTML tags, escape sequences and leading or trailing whitespace intact
- Translate all user-facing text naturally for the target language

{self.context}"""

        try:
            response = await self._call_with_retry(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_content},
                    {"role": "user", "content": prompt},
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "translation_output", "schema": schema, "strict": True},
                },
            )
        except ProviderTransientError as e:
            logger.warning("Giving up on %d key(s) for %s: %s", len(keys), target_language.code, e)
            return [TranslationResult(key, error=str(e)) for key in keys]

        choice = response.choices[0]
        message = choice.message

        # Handle refusals
        refusal = getattr(message, "refusal", None)
        if refusal:
            return [TranslationResult(key, error=f"Model refused to translate: {refusal}") for key in keys]

        # Check for incomplete response
        if choice.finish_reason == "length":
            return [
                TranslationResult(key, error="Response was truncated due to length limit")
                for key in keys
            ]

        try:
            parsed = json.loads(message.content or "")
        except json.JSONDecodeError as e:
            return [TranslationResult(key, error=f"Unable to decode provider response: {e}") for key in keys]
        if not isinstance(parsed, dict):
            return [TranslationResult(key, error="Provider response is not a JSON object") for key in keys]

        results = []
        for key, text in chunk:
            translated = parsed.get(key)
            if not isinstance(translated, str):
                results.append(TranslationResult(key, error="Missing from provider response"))
            elif not translated.strip() and text.strip():
                results.append(TranslationResult(key, error="Provider returned an empty translation"))
            else:
                results.append(TranslationResult(key, text=translated))
        return results

    async def _call_with_retry(self, **kwargs):
        """
        Execute a chat completion with rate limiting and exponential backoff retry.

        Rate limits, timeouts (including 408 responses), 409 conflicts, connection
        failures and 5xx responses are retried up to ``max_attempts`` times in
        total, doubling the delay after each attempt. Everything else is fatal
        and raised at once.

        Raises:
            ProviderTransientError: If every attempt failed with a retryable error
            ProviderFatalError: On authentication, quota or request errors
        """
        semaphore = self._get_semaphore()
        delay = self.initial_retry_delay
        last_error: Exception | None = None

        for attempt in range(1, self.max_attempts + 1):
            async with semaphore:
                try:
                    return await self.client.chat.completions.create(timeout=self.timeout, **kwargs)
                except RateLimitError as e:
                    if _is_quota_error(e):
                        raise ProviderFatalError(
                            "OpenAI quota exhausted. Check your plan and billing details."
                        ) from e
                    last_error = e
                except (APIConnectionError, InternalServerError) as e:
                    # APITimeoutError is an APIConnectionError
                    last_error = e
                except AuthenticationError as e:
                    raise ProviderFatalError(f"OpenAI rejected the API key: {e}") from e
                except (PermissionDeniedError, BadRequestError, NotFoundError) as e:
                    raise ProviderFatalError(f"OpenAI rejected the request: {e}") from e
                except APIStatusError as e:
                    if e.status_code not in RETRYABLE_STATUS_CODES and e.status_code < 500:
                        raise ProviderFatalError(f"OpenAI rejected the request: {e}") from e
                    last_error = e

            if attempt == self.max_attempts:
                break

            logger.warning(
                "%s from OpenAI, retrying in %.1fs (attempt %d/%d)...",
                type(last_error).__name__, delay, attempt, self.max_attempts,
            )
            await asyncio.sleep(delay)
            delay *= 2

        raise ProviderTransientError(
            f"OpenAI request failed after {self.max_attempts} attempt(s): {last_error}"
        ) from last_error
