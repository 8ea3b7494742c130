"""
Semaphore SMS Client

A Python client library for the Semaphore SMS API.
"""

from .cache import CACHE_TTL, InMemoryCache, ResponseCache, make_cache_key, shared_cache
from .sms_api_caller import (
    BASE_URI,
    TIMEOUT,
    SemaphoreClient,
    SemaphoreConfig,
    create_client,
    get_account,
    send_message,
)

__all__ = [
    'BASE_URI',
    'TIMEOUT',
    'CACHE_TTL',
    'SemaphoreConfig',
    'SemaphoreClient',
    'ResponseCache',
    'InMemoryCache',
    'create_client',
    'make_cache_key',
    'shared_cache',
    'send_message',
    'get_account',
]

__version__ = "0.1.0"
