from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from core.components import ConductorSpec

class CircuitType(Enum):
    THREE_PHASE = "ThreePhase"
    TWO_PHASE = "TwoPhase"
    SINGLE_PHASE = "SinglePhase"

class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class FindingKind(Enum):
    WARNING = "warning"
    RECOMMENDATION = "recommendation"

PHASES = ("R", "S", "T")

@dataclass
class CircuitInput:
    name: str
    power_factor: float
    demand_factor: float
    run_length_m: float
    load_r_w: float = 0.0
    load_s_w: float = 0.0
    load_t_w: float = 0.0
    phase_voltage: float = 220

    @property
    def phase_loads(self) -> Tuple[float, float, float]:
        return (self.load_r_w, self.load_s_w, self.load_t_w)

    @property
    def total_power_w(self) -> float:
        return self.load_r_w + self.load_s_w + self.load_t_w

@dataclass(frozen=True)
class CircuitRecord:
    """Sizing result for one distribution board feeder. Never mutated after creation."""
    sequence: int
    name: str
    load_r_w: float
    load_s_w: float
    load_t_w: float
    demand_r_w: float
    demand_s_w: float
    demand_t_w: float
    current_r_a: float
    current_s_a: float
    current_t_a: float
    power_factor: float
    demand_factor: float
    phase_voltage: float
    line_voltage: float
    total_power_w: float
    total_demand_va: float
    average_current_a: float
    run_length_m: float
    voltage_drop_percent: float
    phase_conductor: ConductorSpec
    neutral_conductor: ConductorSpec
    ground_gauge_mm2: float
    breaker_a: float

    @property
    def label(self) -> str:
        return f"QD-{self.sequence}"

    @property
    def phase_loads(self) -> Tuple[float, float, float]:
        return (self.load_r_w, self.load_s_w, self.load_t_w)

    @property
    def phase_demands(self) -> Tuple[float, float, float]:
        return (self.demand_r_w, self.demand_s_w, self.demand_t_w)

    @property
    def phase_currents(self) -> Tuple[float, float, float]:
        return (self.current_r_a, self.current_s_a, self.current_t_a)

@dataclass
class PhaseTotals:
    power_w: float = 0.0
    demand_w: float = 0.0
    current_a: float = 0.0

@dataclass
class SystemAnalysis:
    phases: Dict[str, PhaseTotals]
    total_power_w: float
    total_demand_va: float
    mean_current_a: float
    imbalance_percent: float
    demand_kva: float
    recommended_substation_kva: float
    max_phase_demand_w: float

    @property
    def phase_demands(self) -> Tuple[float, float, float]:
        return tuple(self.phases[p].demand_w for p in PHASES)

@dataclass(frozen=True)
class Finding:
    kind: FindingKind
    severity: Severity
    message: str

@dataclass
class ScenarioVariation:
    name: str
    power_factor: Optional[float] = None
    demand_factor: Optional[float] = None
    run_length_m: Optional[float] = None

@dataclass
class ScenarioResult:
    scenario: str
    record: CircuitRecord
    variation: ScenarioVariation = field(repr=False, default=None)
