"""Resolve page content context from OpenRTB-style ortb2 data."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional

from auction_signal.constants import LOG_PREFIX
from auction_signal.models import ContentContext


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)


def _site_content(ortb2: Any) -> Optional[Mapping[str, Any]]:
    if not isinstance(ortb2, Mapping):
        return None
    site = ortb2.get("site")
    if not isinstance(site, Mapping):
        return None
    content = site.get("content")
    return content if isinstance(content, Mapping) else None


def _keywords(raw: Any) -> tuple[str, ...]:
    if isinstance(raw, str):
        # OpenRTB 2.x carries keywords as a comma separated string
        parts: Iterable[Any] = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        parts = raw
    else:
        return ()
    return tuple(part.strip() for part in parts if isinstance(part, str) and part.strip())


def build_context(content: Optional[Mapping[str, Any]]) -> Optional[ContentContext]:
    """Return a context when ``content`` has a language or keywords."""

    if not content:
        return None
    language = content.get("language")
    if not isinstance(language, str) or not language:
        language = None
    keywords = _keywords(content.get("keywords")) or None
    if language is None and keywords is None:
        return None
    return ContentContext(language=language, keywords=keywords)


def resolve_content_context(
    auction_end_args: Mapping[str, Any],
    global_ortb2: Optional[Mapping[str, Any]] = None,
) -> Optional[ContentContext]:
    """Find content context for an ended auction, first match wins.

    Bidder requests are checked in order, then the auction's own ortb2, then
    the globally persisted ortb2 config.
    """

    try:
        bidder_requests = auction_end_args.get("bidderRequests") or ()
        for bidder_request in bidder_requests:
            if not isinstance(bidder_request, Mapping):
                continue
            context = build_context(_site_content(bidder_request.get("ortb2")))
            if context is not None:
                logger.info(
                    "%s Content context found in bidder request %s",
                    LOG_PREFIX,
                    bidder_request.get("bidderCode"),
                )
                return context

        context = build_context(_site_content(auction_end_args.get("ortb2")))
        if context is not None:
            logger.info("%s Content context found in auction ortb2", LOG_PREFIX)
            return context

        context = build_context(_site_content(global_ortb2))
        if context is not None:
            logger.info("%s Content context found in global ortb2 config", LOG_PREFIX)
            return context
    except (AttributeError, TypeError, ValueError) as exc:
        logger.warning("%s Could not read content context from ortb2: %s", LOG_PREFIX, exc)
        return None

    logger.info("%s No content context found in auction data or global config", LOG_PREFIX)
    return None
