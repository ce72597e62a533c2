"""X API access: async transport and the tweet lookup."""

from xmdify.x_api.rate_limit import AsyncTokenBucket
from xmdify.x_api.transport import AsyncXTransport
from xmdify.x_api.tweets import AsyncTweetAPI

__all__ = [
    "AsyncTokenBucket",
    "AsyncTweetAPI",
    "AsyncXTransport",
]
