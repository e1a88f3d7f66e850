from typing import Optional
from core.components import ConductorTableEntry

# Voltenax 0,6/1 kV copper cable (Prysmian catalogue), PF 0.95
# Columns: gauge mm2, ampacity A, ground conductor mm2, drop coefficient per 100 m per A
_VOLTENAX_ROWS = (
    (6,   54,  6,  7.54),
    (10,  75,  10, 4.5),
    (16,  100, 16, 2.86),
    (25,  133, 16, 1.83),
    (35,  164, 16, 1.34),
    (50,  198, 25, 1.0),
    (70,  253, 35, 0.71),
    (95,  306, 50, 0.53),
    (120, 354, 70, 0.43),
    (150, 407, 95, 0.36),
)

CONDUCTOR_TABLE = tuple(
    ConductorTableEntry(gauge_mm2=g, ampacity=a, ground_gauge_mm2=t, voltage_drop_coefficient=k)
    for g, a, t, k in _VOLTENAX_ROWS
)

# Moulded case breakers (A). First entry is the floor rating for small loads.
BREAKER_RATINGS = (32, 40, 50, 63, 100, 125, 150, 160, 200, 250, 320, 400, 500, 630, 700, 800, 1000, 1600, 2000, 2500)

# Standard substation transformer ratings (kVA)
SUBSTATION_CAPACITIES_KVA = (75, 112.5, 225, 300, 500, 750, 1000, 1250, 1500, 1750, 2000)

# Phase voltage -> paired line voltage
VOLTAGE_PAIRS = {220: 127, 127: 220}

def line_voltage_for(phase_voltage: float) -> float:
    return VOLTAGE_PAIRS.get(phase_voltage, 220)

def ampacity_for_gauge(gauge_mm2: float) -> Optional[float]:
    for entry in CONDUCTOR_TABLE:
        if entry.gauge_mm2 == gauge_mm2:
            return entry.ampacity
    return None
