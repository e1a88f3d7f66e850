import re
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Tuple

def round_half_away(value: float, places: int = 2) -> float:
    """
    Rounds half away from zero on the decimal representation of value.
    Re-rounding an already rounded value returns it unchanged.
    """
    exact = Decimal(repr(float(value)))
    if not exact.is_finite():
        return float(value)
    quantum = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        # Enough digits for every integer part a float can hold
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))

def convert_power_unit(val: float, unit: str) -> float:
    """Converts a per-phase load entry to Watts."""
    unit = unit.strip().upper()

    if unit == "W": return val
    if unit == "KW": return val * 1000.0
    if unit == "MW": return val * 1000000.0
    if unit == "HP": return val * 746.0
    if unit == "CV": return val * 735.5

    raise ValueError(f"Unidad de potencia no soportada: {unit}")

def convert_length_unit(val: float, unit: str) -> float:
    """Returns length in meters."""
    unit = unit.strip().lower()
    if unit in ["m", "mts", "metros", "metro"]: return val
    if unit in ["km"]: return val * 1000.0
    if unit in ["ft", "pies", "pie"]: return val * 0.3048
    if unit in ["yd", "yarda", "yardas"]: return val * 0.9144
    raise ValueError(f"Unidad de longitud no soportada: {unit}")

def split_value_unit(text: str, default_unit: str) -> Tuple[float, str]:
    """'10 kW' -> (10.0, 'kW'); '250' -> (250.0, default_unit)."""
    match = re.match(r"([0-9\.]+)\s*([a-zA-Z]*)", text.strip().replace(",", "."))
    if not match:
        raise ValueError(f"Valor no reconocido: {text!r}")
    return float(match.group(1)), match.group(2) or default_unit
