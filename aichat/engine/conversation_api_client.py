from __future__ import annotations

import asyncio
import uuid
from typing import Any, Callable, Sequence

from aichat.config.settings import ServiceConfig
from aichat.utils.exceptions import ConfigurationError
from aichat.utils.http_pool import APIRequestResult, HTTPConnectionPool
from aichat.utils.logger import get_logger, log_context

from .credentials import CredentialCacheEntry, CredentialManager
from .endpoint import resolve_url
from .errors import APIError, classify_response, should_return_credential
from .events import CompletionEvent, GenerationResultData
from .messages import ConversationEvent
from .models import ModelService
from .parsing import parse_completion_body, parse_stream_payload
from .request_body import build_body, default_system_language
from .signing import sign
from .tools import Tool

logger = get_logger(__name__)

GenerationResult = GenerationResultData | APIError
DataReceivedCallback = Callable[[GenerationResultData], None]
CompletedCallback = Callable[[GenerationResult], None]

HTTP_METHOD = "POST"
CONTENT_TYPE = "application/json"


class ConversationAPIClient:
    """Sends conversations to the remote AI chat backend.

    Every ``perform_request`` call runs as its own asyncio task: credential
    fetch, then either a streaming or a one-shot request, then exactly one
    ``completed_callback`` invocation. ``clear_all_queries`` cancels every task
    still running; cancelled requests never reach their completion callback.

    Must be used from within a running event loop.
    """

    def __init__(
        self,
        model_name: str,
        credential_manager: CredentialManager,
        model_service: ModelService,
        *,
        config: ServiceConfig | None = None,
        http_pool: HTTPConnectionPool | None = None,
        system_language: str | None = None,
    ) -> None:
        if not model_name:
            raise ValueError("model_name must not be empty")
        self.model_name = model_name
        self.config = config or ServiceConfig()
        self._credential_manager = credential_manager
        self._model_service = model_service
        self._http_pool = http_pool or HTTPConnectionPool(
            timeout_s=self.config.request_timeout_s,
            connect_timeout_s=self.config.connect_timeout_s,
        )
        self._system_language = system_language or default_system_language()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_requests(self) -> int:
        return len(self._tasks)

    def create_json_request_body(
        self,
        conversation: Sequence[ConversationEvent],
        tools: Sequence[Tool],
        selected_language: str,
        model_name: str | None,
        is_sse_enabled: bool,
    ) -> str:
        return build_body(
            conversation,
            tools,
            selected_language,
            model_name or self.model_name,
            is_sse_enabled,
            system_language=self._system_language,
            use_citations=self.config.use_citations,
        )

    def perform_request(
        self,
        conversation: Sequence[ConversationEvent],
        tools: Sequence[Tool],
        selected_language: str,
        data_received_callback: DataReceivedCallback | None,
        completed_callback: CompletedCallback,
        model_name: str | None = None,
    ) -> asyncio.Task[None]:
        """Start one request and return the task driving it.

        Raises:
            SerializationError: an event has an unknown role or type.
            ToolSchemaError: a tool declares an unparsable input schema.
        """
        is_sse_enabled = self.config.sse_enabled and data_received_callback is not None
        body: str | None = None
        if conversation:
            body = self.create_json_request_body(
                conversation, tools, selected_language, model_name, is_sse_enabled
            )

        task = asyncio.get_running_loop().create_task(
            self._run_request(body, is_sse_enabled, data_received_callback, completed_callback)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def clear_all_queries(self) -> None:
        """Cancel every in-flight request. Their completion callbacks will not run."""
        tasks = list(self._tasks)
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            logger.debug(f"cancelled {len(tasks)} in-flight request(s)")

    async def _run_request(
        self,
        body: str | None,
        is_sse_enabled: bool,
        data_received_callback: DataReceivedCallback | None,
        completed_callback: CompletedCallback,
    ) -> None:
        with log_context(request_id=uuid.uuid4().hex[:8]):
            if body is None:
                logger.debug("conversation is empty, nothing to send")
                completed_callback(APIError.NONE)
                return

            credential = await self._credential_manager.fetch_premium_credential()
            try:
                url = resolve_url(credential is not None, self.config.remote_path, self.config)
            except ConfigurationError as e:
                logger.error(f"cannot resolve conversation endpoint: {e}")
                if credential is not None:
                    self._credential_manager.put_credential_in_cache(credential)
                completed_callback(APIError.NONE)
                return

            headers = sign(body, url, HTTP_METHOD, self.config, credential)

            if is_sse_enabled and data_received_callback is not None:
                logger.debug(f"streaming request to {url}")
                result = await self._http_pool.request_sse(
                    HTTP_METHOD,
                    url,
                    body,
                    CONTENT_TYPE,
                    lambda value: self._on_query_data_received(data_received_callback, value),
                    headers=headers,
                )
            else:
                logger.debug(f"one-shot request to {url}")
                result = await self._http_pool.request(
                    HTTP_METHOD, url, body, CONTENT_TYPE, headers=headers
                )

            self._on_query_completed(credential, completed_callback, result, is_sse_enabled)

    def _on_query_data_received(self, callback: DataReceivedCallback, value: Any) -> None:
        if not isinstance(value, dict):
            logger.debug("skipping non-object stream fragment")
            return
        for result in parse_stream_payload(value, self._model_service):
            callback(result)

    def _on_query_completed(
        self,
        credential: CredentialCacheEntry | None,
        callback: CompletedCallback,
        result: APIRequestResult,
        is_sse_enabled: bool,
    ) -> None:
        error = classify_response(result.response_code)
        if error is None:
            if is_sse_enabled:
                callback(GenerationResultData(event=CompletionEvent(completion="")))
            else:
                callback(parse_completion_body(result.value_body, self._model_service))
            return

        logger.warning(
            f"conversation request failed: status={result.response_code} error={error.value}"
        )
        if credential is not None and should_return_credential(result.response_code):
            self._credential_manager.put_credential_in_cache(credential)
        callback(error)

    async def close(self) -> None:
        self.clear_all_queries()
        await self._http_pool.close()
