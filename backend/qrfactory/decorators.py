# Overview: Request decorators for API routes.

from functools import wraps

from flask import g, request

ACTOR_HEADER = "X-Actor"
MAX_ACTOR_LENGTH = 255


def resolve_actor() -> str:
    """
    Trusted free-text caller identity: X-Actor header, else an "actor" key
    in the JSON body, else "".
    """
    actor = request.headers.get(ACTOR_HEADER)
    if not actor:
        payload = request.get_json(silent=True)
        if isinstance(payload, dict):
            actor = payload.get("actor")
    return str(actor or "").strip()[:MAX_ACTOR_LENGTH]


def with_actor(f):
    """Sets g.actor for the wrapped route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.actor = resolve_actor()
        return f(*args, **kwargs)

    return decorated_function


def request_base() -> str:
    """Scheme + host of the inbound request, used when no public base URL is configured."""
    return request.host_url.rstrip("/")


def json_body() -> dict:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}
