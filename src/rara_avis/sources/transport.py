"""
Shared HTTP plumbing for the remote providers.
"""

from typing import Any, Dict, Optional

import requests

from .base import SourceError


def create_session(user_agent: str) -> requests.Session:
    """Build a session with the project user agent."""
    session = requests.Session()
    session.headers.update({
        'User-Agent': user_agent,
        'Accept': 'application/json',
    })
    return session


def get_json(session: requests.Session, url: str, params: Dict[str, Any],
             timeout: float, provider: str) -> Dict[str, Any]:
    """
    GET a JSON document.
    
    Raises:
        SourceError: On network errors, non-2xx statuses and bodies that
            are not a JSON object
    """
    try:
        response = session.get(url, params=params, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise SourceError(f"Request failed: {e}", provider) from e
    
    if not response.ok:
        raise SourceError(f"HTTP error {response.reason}", provider, response.status_code)
    
    try:
        data = response.json()
    except ValueError as e:
        raise SourceError("Response is not JSON", provider, response.status_code) from e
    
    if not isinstance(data, dict):
        raise SourceError("Unexpected response shape", provider, response.status_code)
    return data


def close_session(session: Optional[requests.Session]) -> None:
    if session is not None:
        session.close()
