"""Tweet lookup through the ``TweetResultByRestId`` GraphQL query."""

from __future__ import annotations

import json
from typing import Any

from xmdify.config import XmdifyConfig
from xmdify.errors import XmdifyLookupError, XmdifyNotFoundError

from .transport import AsyncXTransport

_WRAPPER_TYPENAME = "TweetWithVisibilityResults"
_UNAVAILABLE_TYPENAMES: frozenset[str] = frozenset({"TweetUnavailable", "TweetTombstone"})


def build_tweet_params(config: XmdifyConfig, tweet_id: str) -> dict[str, str]:
    """Query parameters of a ``TweetResultByRestId`` request."""
    variables = {
        "tweetId": tweet_id,
        "withCommunity": False,
        "includePromotedContent": False,
        "withVoice": False,
    }
    return {
        "variables": json.dumps(variables, separators=(",", ":")),
        "features": json.dumps(config.tweet_features, separators=(",", ":")),
    }


def unwrap_tweet_result(payload: dict, tweet_id: str) -> dict:
    """Extract the tweet object from a ``TweetResultByRestId`` response.

    Raises :class:`XmdifyNotFoundError` when the tweet is missing or
    unavailable and :class:`XmdifyLookupError` for an unexpected shape.
    """
    data = payload.get("data")
    tweet_result = data.get("tweetResult") if isinstance(data, dict) else None
    result: Any = tweet_result.get("result") if isinstance(tweet_result, dict) else None

    if result is None:
        raise XmdifyNotFoundError(
            message=f"Tweet {tweet_id} not found",
            context={"resource_type": "tweet", "resource_id": tweet_id},
        )
    if not isinstance(result, dict):
        raise XmdifyLookupError(
            message=f"Unexpected lookup result for tweet {tweet_id}",
            context={"tweet_id": tweet_id},
        )

    typename = result.get("__typename")
    if typename == _WRAPPER_TYPENAME and isinstance(result.get("tweet"), dict):
        result = result["tweet"]
        typename = result.get("__typename")
    if typename in _UNAVAILABLE_TYPENAMES:
        raise XmdifyNotFoundError(
            message=f"Tweet {tweet_id} is unavailable",
            context={"resource_type": "tweet", "resource_id": tweet_id, "typename": typename},
        )
    return result


class AsyncTweetAPI:
    """Fetch raw tweet objects by id.

    Satisfies :class:`~xmdify.references.TweetLookup`.
    """

    def __init__(self, transport: AsyncXTransport, config: XmdifyConfig) -> None:
        self._transport = transport
        self._config = config

    async def fetch_tweet(self, tweet_id: str) -> dict:
        """Return the raw GraphQL tweet object for *tweet_id*."""
        payload = await self._transport.request(
            "GET",
            f"/{self._config.tweet_query_id}/TweetResultByRestId",
            params=build_tweet_params(self._config, tweet_id),
        )
        return unwrap_tweet_result(payload, tweet_id)
