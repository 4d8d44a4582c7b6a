"""PagSeguro sayısal durum kodları ve iç durum geçişleri (sabit tablolar)."""

PAGSEGURO_STATUS_TEXT = {
    1: "Aguardando pagamento",
    2: "Em análise",
    3: "Paga",
    4: "Disponível",
    5: "Em disputa",
    6: "Devolvida",
    7: "Cancelada",
}
UNKNOWN_STATUS_TEXT = "Status desconhecido"

PAGSEGURO_PENDING = 1

# Haritada olmayan kodlar (1, 2, 4) iç durumu değiştirmez
DOMAIN_STATUS_BY_PAGSEGURO = {
    3: "paid",
    5: "failed",
    6: "refunded",
    7: "cancelled",
}

# pending -> tek bir son duruma; paid -> sadece refunded. Başka geçiş yok.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"paid", "cancelled", "failed", "refunded"}),
    "paid": frozenset({"refunded"}),
}


def status_text(code: int) -> str:
    return PAGSEGURO_STATUS_TEXT.get(code, UNKNOWN_STATUS_TEXT)


def domain_status_for(code: int) -> str | None:
    """Sayısal kod -> iç durum; değişiklik gerektirmeyen kodlar için None."""
    return DOMAIN_STATUS_BY_PAGSEGURO.get(code)


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def allowed_prior_statuses(target: str) -> tuple[str, ...]:
    """target durumuna geçilebilecek önceki durumlar (koşullu UPDATE için)."""
    return tuple(sorted(s for s, targets in ALLOWED_TRANSITIONS.items() if target in targets))
