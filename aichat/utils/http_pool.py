"""
HTTP 连接池与请求助手

基于 aiohttp 的共享会话，提供两种请求方式：
- request(): 一次性请求，读取完整响应体
- request_sse(): server-sent events 流式请求，逐条回调解析后的 JSON

传输层失败（连接错误、超时）不会抛出异常，而是以 response_code=-1 的结果返回。
"""

from __future__ import annotations

import asyncio
import codecs
import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

import aiohttp

from aichat.utils.logger import get_logger
from aichat.version import get_version

logger = get_logger(__name__)

TRANSPORT_ERROR_CODE = -1
SSE_DONE_SENTINEL = "[DONE]"


@dataclass(frozen=True, slots=True)
class APIRequestResult:
    """Outcome of one HTTP request."""

    response_code: int
    body: str = ""
    value_body: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def is_2xx_response_code(self) -> bool:
        return 200 <= self.response_code < 300


def _decode_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


async def _read_text(response: aiohttp.ClientResponse) -> str:
    """读取完整响应体；非法字节或未知 charset 不抛异常"""
    raw = await response.read()
    try:
        return raw.decode(response.charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


class HTTPConnectionPool:
    """aiohttp 会话持有者（由调用方注入或按需创建）"""

    def __init__(
        self,
        *,
        timeout_s: float = 120.0,
        connect_timeout_s: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout_s, connect=connect_timeout_s)
        self._session = session
        self._owns_session = session is None
        self._stats = {
            "total_requests": 0,
            "successful_requests": 0,
            "failed_requests": 0,
            "sse_events": 0,
        }

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": f"aichat/{get_version()}"},
            )
            self._owns_session = True
            logger.debug("HTTP 会话已创建")
        return self._session

    def _record(self, result: APIRequestResult) -> APIRequestResult:
        if result.is_2xx_response_code():
            self._stats["successful_requests"] += 1
        else:
            self._stats["failed_requests"] += 1
        return result

    async def request(
        self,
        method: str,
        url: str,
        body: str,
        content_type: str,
        headers: Optional[Mapping[str, str]] = None,
    ) -> APIRequestResult:
        """
        发送一次性请求并读取完整响应

        Returns:
            APIRequestResult: value_body 为解析后的 JSON（无法解析时为 None）
        """
        session = await self.get_session()
        self._stats["total_requests"] += 1
        request_headers = {**(headers or {}), "Content-Type": content_type}

        try:
            async with session.request(
                method, url, data=body.encode("utf-8"), headers=request_headers
            ) as response:
                text = await _read_text(response)
                return self._record(
                    APIRequestResult(
                        response_code=response.status,
                        body=text,
                        value_body=_decode_json(text),
                        headers=dict(response.headers),
                    )
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"HTTP请求失败: {method} {url}, 错误: {e!r}")
            return self._record(APIRequestResult(response_code=TRANSPORT_ERROR_CODE))

    async def request_sse(
        self,
        method: str,
        url: str,
        body: str,
        content_type: str,
        on_data: Callable[[Any], None],
        headers: Optional[Mapping[str, str]] = None,
    ) -> APIRequestResult:
        """
        发送 SSE 请求，每个完整事件解析为 JSON 后按到达顺序调用 on_data

        无法解析的事件会被跳过；非 2xx 响应不会触发 on_data。
        """
        session = await self.get_session()
        self._stats["total_requests"] += 1
        request_headers = {**(headers or {}), "Content-Type": content_type}

        try:
            async with session.request(
                method, url, data=body.encode("utf-8"), headers=request_headers
            ) as response:
                if not 200 <= response.status < 300:
                    text = await _read_text(response)
                    return self._record(
                        APIRequestResult(
                            response_code=response.status,
                            body=text,
                            value_body=_decode_json(text),
                            headers=dict(response.headers),
                        )
                    )

                decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
                pending = ""
                data_lines: list[str] = []
                async for chunk in response.content.iter_any():
                    pending += decoder.decode(chunk)
                    pending = self._consume_lines(pending, data_lines, on_data)
                pending += decoder.decode(b"", final=True)
                if pending:
                    self._consume_lines(pending + "\n", data_lines, on_data)
                self._dispatch_event(data_lines, on_data)

                return self._record(
                    APIRequestResult(response_code=response.status, headers=dict(response.headers))
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"SSE 请求失败: {method} {url}, 错误: {e!r}")
            return self._record(APIRequestResult(response_code=TRANSPORT_ERROR_CODE))

    def _consume_lines(
        self, pending: str, data_lines: list[str], on_data: Callable[[Any], None]
    ) -> str:
        """Process complete lines of ``pending`` and return the unterminated remainder."""
        while True:
            newline = pending.find("\n")
            if newline < 0:
                return pending
            line = pending[:newline].rstrip("\r")
            pending = pending[newline + 1 :]

            if not line:
                self._dispatch_event(data_lines, on_data)
                continue
            if line.startswith(":"):
                continue
            if line.startswith("data:"):
                value = line[5:]
                data_lines.append(value[1:] if value.startswith(" ") else value)

    def _dispatch_event(self, data_lines: list[str], on_data: Callable[[Any], None]) -> None:
        if not data_lines:
            return
        payload = "\n".join(data_lines)
        data_lines.clear()
        if payload.strip() == SSE_DONE_SENTINEL:
            return
        try:
            value = json.loads(payload)
        except ValueError:
            logger.debug(f"跳过无法解析的 SSE 事件: {payload[:200]!r}")
            return
        self._stats["sse_events"] += 1
        on_data(value)

    def get_stats(self) -> Dict[str, Any]:
        """获取统计信息"""
        return self._stats.copy()

    async def close(self) -> None:
        """关闭自有会话（注入的会话由调用方负责关闭）"""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP 会话已关闭")
