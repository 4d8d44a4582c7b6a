"""BRL tutar dönüşümü: içeride Decimal ana birim (49.90), gateway'e tamsayı centavo (4990)."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
_UNIT = Decimal("1")


def to_minor_units(amount: Decimal | int | str) -> int:
    """Ana birim -> centavo. float kabul edilmez (yuvarlama hatası gateway'e sızmasın)."""
    if isinstance(amount, (float, bool)):
        raise TypeError("Tutar float olamaz; Decimal veya str kullanın.")
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(amount)
    except InvalidOperation as e:
        raise ValueError(f"Geçersiz tutar: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Geçersiz tutar: {amount!r}")
    return int((value * 100).quantize(_UNIT, rounding=ROUND_HALF_UP))


def from_minor_units(minor: int) -> Decimal:
    """Centavo -> ana birim, her zaman iki ondalık."""
    return (Decimal(int(minor)) / 100).quantize(CENT)


def installment_value(total_minor: int, installments: int) -> int:
    """
    Taksit başı tutar (centavo): toplam / taksit, en yakın centavoya ROUND_HALF_UP.
    Kalan kuruş farkı taksitlere dağıtılmaz; toplamı gateway kendisi hesaplar.
    """
    if installments < 1:
        raise ValueError("Taksit sayısı en az 1 olmalı.")
    return int((Decimal(int(total_minor)) / installments).quantize(_UNIT, rounding=ROUND_HALF_UP))


def format_brl(amount: Decimal) -> str:
    """Bildirim metinleri için: Decimal('49.9') -> 'R$ 49,90'."""
    return "R$ " + f"{Decimal(amount).quantize(CENT):.2f}".replace(".", ",")
