from dataclasses import dataclass
from typing import Union

Number = Union[int, float]

def format_gauge(value: Number) -> str:
    """35.0 -> '35', 2.5 -> '2.5'."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)

@dataclass(frozen=True)
class ConductorTableEntry:
    gauge_mm2: Number
    ampacity: float
    ground_gauge_mm2: Number
    voltage_drop_coefficient: float

@dataclass(frozen=True)
class ConductorSpec:
    gauge_mm2: Number
    parallel_count: int = 1

    def __str__(self) -> str:
        if self.parallel_count > 1:
            return f"{self.parallel_count}x{format_gauge(self.gauge_mm2)}"
        return format_gauge(self.gauge_mm2)

    @classmethod
    def parse(cls, text) -> "ConductorSpec":
        """Accepts '35', '1x35', '2x35' and plain numbers."""
        if isinstance(text, (int, float)):
            return cls(gauge_mm2=_to_number(text))
        raw = str(text).strip().lower().replace("mm²", "").replace("mm2", "").strip()
        if "x" in raw:
            count, gauge = raw.split("x", 1)
            return cls(gauge_mm2=_to_number(float(gauge)), parallel_count=int(count))
        return cls(gauge_mm2=_to_number(float(raw)))

@dataclass(frozen=True)
class ConductorSelection:
    conductor: ConductorSpec
    ground_gauge_mm2: Number
    voltage_drop_percent: float
    table_index: int
    fallback: bool = False

def _to_number(value: float) -> Number:
    return int(value) if float(value).is_integer() else float(value)
