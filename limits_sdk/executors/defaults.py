"""Default executor configurations.

This module defines the default HTTP executor implementations used by the
Limits SDK when no custom executor is provided.
"""

from typing import Type

from limits_sdk.executors.aiohttp import AiohttpHttpExecutor
from limits_sdk.executors.httpx import HttpxHttpExecutor
from limits_sdk.executors.interface import AsyncHttpExecutor, HttpExecutor

DEFAULT_HTTP_EXECUTOR: Type[HttpExecutor] = HttpxHttpExecutor
DEFAULT_ASYNC_HTTP_EXECUTOR: Type[AsyncHttpExecutor] = AiohttpHttpExecutor
