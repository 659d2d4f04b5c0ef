"""Baidu ERNIE-Bot chat adapter over the Wenxin Workshop HTTP API."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol
import asyncio
import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request

from promptplayground.cancellation import CancellationToken
from promptplayground.observability import log_completion_success

from .base import CompletionProvider
from .config import ErnieBackend
from .errors import ConfigurationInvalidError, ProviderError
from .types import CompletionResult, GenerationParameters


TOKEN_URL = "https://aip.baidubce.com/oauth/2.0/token"
CHAT_URL = "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/chat/"

_MODEL_ENDPOINTS = {
    "ernie-bot-turbo": "eb-instant",
    "ernie-bot": "completions",
    "ernie-bot-4": "completions_pro",
}

# Refresh the access token a minute before Baidu expires it.
_TOKEN_EXPIRY_MARGIN_SECONDS = 60.0


class ErnieTransport(Protocol):
    async def post_json(
        self,
        url: str,
        payload: Optional[Mapping[str, Any]],
        *,
        timeout_seconds: float,
    ) -> Mapping[str, Any]:
        ...


class HttpErnieTransport:
    """Blocking urllib transport executed in a worker thread."""

    async def post_json(
        self,
        url: str,
        payload: Optional[Mapping[str, Any]],
        *,
        timeout_seconds: float,
    ) -> Mapping[str, Any]:
        body = json.dumps(payload or {}).encode("utf-8")
        request = urllib.request.Request(
            url,
            data=body,
            method="POST",
            headers={"content-type": "application/json"},
        )

        def _do_request() -> Mapping[str, Any]:
            try:
                with urllib.request.urlopen(request, timeout=timeout_seconds) as response:
                    raw = response.read().decode("utf-8", errors="replace")
            except urllib.error.URLError as exc:
                raise ProviderError("ERNIE request failed.", cause=exc) from exc

            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError as exc:
                raise ProviderError("ERNIE response was not valid JSON.", cause=exc) from exc

            if not isinstance(parsed, Mapping):
                raise ProviderError("ERNIE response has invalid structure.")
            return parsed

        return await asyncio.to_thread(_do_request)


class ErnieBotClientAdapter(CompletionProvider):
    def __init__(
        self,
        backend: ErnieBackend,
        parameters: GenerationParameters,
        transport: Optional[ErnieTransport] = None,
        timeout_seconds: float = 60.0,
        clock=time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__(parameters)
        endpoint = _MODEL_ENDPOINTS.get(backend.model.lower())
        if endpoint is None:
            raise ConfigurationInvalidError("model", f"Unsupported ERNIE model '{backend.model}'.")
        self._backend = backend
        self._endpoint = endpoint
        self._transport = transport or HttpErnieTransport()
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0
        self._logger = logger or logging.getLogger("promptplayground.llm.ernie")

    async def complete(
        self,
        prompt: str,
        params: GenerationParameters,
        cancellation: CancellationToken,
    ) -> CompletionResult:
        access_token = await cancellation.guard(self._get_access_token())
        url = f"{CHAT_URL}{self._endpoint}?" + urllib.parse.urlencode(
            {"access_token": access_token}
        )
        payload: dict[str, Any] = {
            "messages": [{"role": "user", "content": prompt}],
            # ERNIE only accepts temperature in (0, 1].
            "temperature": min(max(params.temperature, 0.01), 1.0),
            "top_p": params.top_p,
            "penalty_score": min(max(1.0 + params.presence_penalty, 1.0), 2.0),
            "max_output_tokens": params.max_tokens,
        }
        if params.stop_sequences:
            payload["stop"] = list(params.stop_sequences)

        raw = await cancellation.guard(
            self._transport.post_json(url, payload, timeout_seconds=self._timeout_seconds)
        )
        result = _parse_chat_response(raw, model=self._backend.model)
        log_completion_success(self._logger, provider="ernie", result=result)
        return result

    async def _get_access_token(self) -> str:
        if self._access_token is not None and self._clock() < self._token_expires_at:
            return self._access_token

        url = f"{TOKEN_URL}?" + urllib.parse.urlencode(
            {
                "grant_type": "client_credentials",
                "client_id": self._backend.client_id,
                "client_secret": self._backend.secret,
            }
        )
        raw = await self._transport.post_json(url, None, timeout_seconds=self._timeout_seconds)
        token = raw.get("access_token")
        if not isinstance(token, str) or not token:
            description = raw.get("error_description") or raw.get("error") or "no access_token"
            raise ProviderError(f"ERNIE authentication failed: {description}")

        expires_in = raw.get("expires_in")
        lifetime = float(expires_in) if isinstance(expires_in, (int, float)) else 0.0
        self._access_token = token
        self._token_expires_at = self._clock() + max(lifetime - _TOKEN_EXPIRY_MARGIN_SECONDS, 0.0)
        self._logger.debug("ernie_access_token_refreshed expires_in=%s", expires_in)
        return token


def _parse_chat_response(payload: Mapping[str, Any], *, model: str) -> CompletionResult:
    if "error_code" in payload:
        raise ProviderError(
            f"ERNIE error {payload.get('error_code')}: {payload.get('error_msg', 'unknown error')}"
        )

    text = payload.get("result")
    if not isinstance(text, str):
        raise ProviderError("ERNIE response missing result text.")

    usage = payload.get("usage")
    if isinstance(usage, Mapping):
        input_tokens = _as_int(usage.get("prompt_tokens"))
        output_tokens = _as_int(usage.get("completion_tokens"))
    else:
        input_tokens = None
        output_tokens = None

    finish_reason = payload.get("finish_reason")
    if not isinstance(finish_reason, str):
        finish_reason = "length" if payload.get("is_truncated") is True else None

    return CompletionResult(
        text=text,
        model=model,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        finish_reason=finish_reason,
    )


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None
