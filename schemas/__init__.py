from pydantic import ValidationError

from core.errors import ValidationFailed


def parse(model, data):
    """
    Validates a raw JSON payload into ``model``; malformed input never reaches
    the booking engine.
    """
    try:
        return model.model_validate(data or {})
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        raise ValidationFailed("Validation failed", errors=errors) from exc
