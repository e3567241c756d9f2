"""Formatação de valores em unidade mínima (inteiro) para texto legível."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


def format_amount(amount: int, currency: str) -> str:
    """100000, "THB" -> "1000.00 THB". Aritmética inteira, sem float."""
    sign = "-" if amount < 0 else ""
    major, minor = divmod(abs(int(amount)), 100)
    return f"{sign}{major}.{minor:02d} {currency}"


def to_minor_units(value: str | int | float | None) -> int:
    """Converte preço decimal vindo de APIs de loja ("299.00") para inteiro (29900).

    Casas além da segunda são arredondadas (half-up): "19.995" -> 2000.
    """
    if value is None or value == "":
        return 0
    try:
        exact = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"invalid price: {value!r}") from e
    if not exact.is_finite():
        raise ValueError(f"invalid price: {value!r}")
    return int((exact * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
