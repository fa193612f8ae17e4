"""
Interceptors: two-phase pipeline stages.

    base.py         Interceptor, On, InterceptorPipeline
    static_file.py  StaticFileInterceptor (URL prefix → directory, chunked)
    access_log.py   AccessLogInterceptor (one log line per request)
"""

from .base import Interceptor, InterceptorPipeline, On
from .static_file import (
    StaticFileInterceptor,
    StaticEntry,
    PathResolve,
    READ_BUFFER_SIZE,
    CHUNK_FLUSH_THRESHOLD,
)
from .access_log import AccessLogInterceptor, RequestLog

__all__ = [
    "Interceptor",
    "InterceptorPipeline",
    "On",
    "StaticFileInterceptor",
    "StaticEntry",
    "PathResolve",
    "READ_BUFFER_SIZE",
    "CHUNK_FLUSH_THRESHOLD",
    "AccessLogInterceptor",
    "RequestLog",
]
