"""Zorunlu alan kontrolü: ağ/DB çağrısından önce ValidationError."""
from app.core.errors import ValidationError


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def require_fields(fields: dict) -> None:
    """Boş olanların hepsini tek mesajda listeler."""
    missing = [name for name, value in fields.items() if _is_blank(value)]
    if missing:
        raise ValidationError(f"Campos obrigatórios não preenchidos: {', '.join(missing)}")
