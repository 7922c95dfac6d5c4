"""User-agent based bot filtering.

Requests from scripted HTTP clients and headless browsers are refused before
any identity or rate-limit work is done.
"""

from __future__ import annotations

# Lowercase substrings; matched anywhere in the lowercased user-agent.
BOT_USER_AGENT_PATTERNS: tuple[str, ...] = (
    "python-requests",
    "python-urllib",
    "curl/",
    "wget/",
    "scrapy",
    "bot",
    "spider",
    "crawler",
    "headlesschrome",
    "phantomjs",
    "selenium",
    "puppeteer",
    "playwright",
    "httpclient",
    "java/",
    "go-http-client",
    "node-fetch",
    "axios/",
    "postman",
)


def is_blocked(user_agent: str | None) -> bool:
    """Return True if the user-agent is missing or looks automated.

    Examples:
        >>> is_blocked("")
        True
        >>> is_blocked("Mozilla/5.0 (Windows NT 10.0; Win64; x64) Firefox/128.0")
        False
        >>> is_blocked("Python-Requests/2.32")
        True
    """
    if not user_agent or not user_agent.strip():
        return True

    ua = user_agent.lower()
    return any(pattern in ua for pattern in BOT_USER_AGENT_PATTERNS)
