"""PagSeguro durum kodu tablosu ve izinli geçişler."""
import pytest

from app.services.status import allowed_prior_statuses, can_transition, domain_status_for, status_text


@pytest.mark.parametrize(
    "code,text",
    [
        (1, "Aguardando pagamento"),
        (2, "Em análise"),
        (3, "Paga"),
        (4, "Disponível"),
        (5, "Em disputa"),
        (6, "Devolvida"),
        (7, "Cancelada"),
        (9, "Status desconhecido"),
    ],
)
def test_status_text(code, text):
    assert status_text(code) == text


def test_domain_mapping():
    assert domain_status_for(3) == "paid"
    assert domain_status_for(5) == "failed"
    assert domain_status_for(6) == "refunded"
    assert domain_status_for(7) == "cancelled"
    for unchanged in (1, 2, 4, 99):
        assert domain_status_for(unchanged) is None


def test_transitions_are_monotonic():
    assert can_transition("pending", "paid")
    assert can_transition("paid", "refunded")
    assert not can_transition("paid", "pending")
    assert not can_transition("paid", "cancelled")
    assert not can_transition("failed", "paid")
    assert not can_transition("refunded", "paid")


def test_allowed_prior_statuses():
    assert allowed_prior_statuses("paid") == ("pending",)
    assert allowed_prior_statuses("refunded") == ("paid", "pending")
    assert allowed_prior_statuses("pending") == ()
