from functools import wraps
from flask import g, jsonify

def require_roles(*role_names: str):
    """
    Usage: @require_roles("landowner")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return jsonify(error="Authentication required"), 401

            if not actor.is_admin and actor.role not in role_names:
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator

def can_manage_facility(actor, facility) -> bool:
    return bool(actor) and (actor.is_admin or facility.owner_user_id == actor.id)

def can_access_booking(actor, booking) -> bool:
    """
    Requester, owner of the booked facility, or admin.
    """
    if not actor:
        return False
    if actor.is_admin or booking.user_id == actor.id:
        return True
    return booking.facility is not None and booking.facility.owner_user_id == actor.id
