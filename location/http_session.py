"""Shared HTTP session for the geodata and IP lookup services."""

import requests

from location.config import USER_AGENT


def create_session(user_agent: str = USER_AGENT) -> requests.Session:
    """
    Create a requests session with the project User-Agent.

    No retry adapter is mounted.
    """
    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "application/json",
    })
    return session
