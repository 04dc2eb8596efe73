from dataclasses import dataclass
from functools import wraps
from flask import g, jsonify, request, current_app

ROLES = ("driver", "landowner", "admin")


@dataclass(frozen=True)
class Actor:
    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def load_current_actor():
    """
    Authentication happens upstream; the gateway forwards an opaque actor id
    and a role tag which are trusted here as-is.
    """
    actor_id = (request.headers.get(current_app.config.get("ACTOR_ID_HEADER", "X-Actor-Id")) or "").strip()
    role = (request.headers.get(current_app.config.get("ACTOR_ROLE_HEADER", "X-Actor-Role")) or "driver").strip().lower()
    if not actor_id:
        g.actor = None
        return
    g.actor = Actor(id=actor_id[:64], role=role if role in ROLES else "driver")

def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "actor", None) is None:
            return jsonify(error="Authentication required"), 401
        return fn(*args, **kwargs)
    return wrapper
