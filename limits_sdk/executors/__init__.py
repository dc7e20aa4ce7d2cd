from limits_sdk.executors.aiohttp import AiohttpHttpExecutor
from limits_sdk.executors.defaults import (
    DEFAULT_ASYNC_HTTP_EXECUTOR,
    DEFAULT_HTTP_EXECUTOR,
)
from limits_sdk.executors.httpx import HttpxHttpExecutor
from limits_sdk.executors.interface import (
    AsyncHttpExecutor,
    HttpExecutor,
    HttpResponse,
)
from limits_sdk.executors.requests import RequestsHttpExecutor

__all__ = [
    "HttpExecutor",
    "AsyncHttpExecutor",
    "HttpResponse",
    "HttpxHttpExecutor",
    "RequestsHttpExecutor",
    "AiohttpHttpExecutor",
    "DEFAULT_HTTP_EXECUTOR",
    "DEFAULT_ASYNC_HTTP_EXECUTOR",
]
