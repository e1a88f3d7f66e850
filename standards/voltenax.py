import logging
from typing import List, Optional, Sequence

from core.calculator import FeederCalculator
from core.components import ConductorSelection, ConductorSpec
from core.converters import round_half_away
from core.models import CircuitInput, CircuitRecord, Finding, ScenarioResult, ScenarioVariation, SystemAnalysis
from standards.voltenax_tables import (
    BREAKER_RATINGS, CONDUCTOR_TABLE, SUBSTATION_CAPACITIES_KVA, VOLTAGE_PAIRS,
    ampacity_for_gauge, line_voltage_for,
)

logger = logging.getLogger(__name__)

class VoltenaxCalculator(FeederCalculator):
    # Voltenax 0,6/1 kV copper, moulded case breakers
    CONDUCTORS = CONDUCTOR_TABLE
    BREAKER_RATINGS = BREAKER_RATINGS
    SUBSTATION_CAPACITIES_KVA = SUBSTATION_CAPACITIES_KVA
    SUPPORTED_PHASE_VOLTAGES = tuple(VOLTAGE_PAIRS)
    MAX_PARALLEL_CONDUCTORS = 5

    def calculate_voltage_drops(self, run_length_m: float, average_current: float, phase_voltage: float) -> List[float]:
        return [
            (run_length_m * entry.voltage_drop_coefficient * average_current) / (10 * phase_voltage)
            for entry in self.CONDUCTORS
        ]

    def select_conductor(self, average_current: float, drops: List[float]) -> ConductorSelection:
        # Fewer parallel conductors first, then the smallest gauge
        for n in range(1, self.MAX_PARALLEL_CONDUCTORS + 1):
            for i, entry in enumerate(self.CONDUCTORS):
                drop = drops[i] / n
                if average_current < entry.ampacity * n and drop < self.VOLTAGE_DROP_LIMIT_PERCENT:
                    logger.debug("Selected %dx%s mm2 (drop %.4f%%)", n, entry.gauge_mm2, drop)
                    return ConductorSelection(
                        conductor=ConductorSpec(gauge_mm2=entry.gauge_mm2, parallel_count=n),
                        ground_gauge_mm2=entry.ground_gauge_mm2,
                        voltage_drop_percent=round_half_away(drop),
                        table_index=i,
                    )

        # Best effort: largest gauge, single conductor, whatever the drop is
        last = len(self.CONDUCTORS) - 1
        largest = self.CONDUCTORS[last]
        return ConductorSelection(
            conductor=ConductorSpec(gauge_mm2=largest.gauge_mm2, parallel_count=1),
            ground_gauge_mm2=largest.ground_gauge_mm2,
            voltage_drop_percent=round_half_away(drops[last]),
            table_index=last,
            fallback=True,
        )

    def select_breaker(self, average_current: float) -> float:
        if average_current < self.BREAKER_RATINGS[0]:
            return self.BREAKER_RATINGS[0]

        for rating in self.BREAKER_RATINGS:
            if average_current < rating:
                return rating

        logger.warning("Current %.2f A exceeds the largest breaker, using %s A", average_current, self.BREAKER_RATINGS[-1])
        return self.BREAKER_RATINGS[-1]

    def gauge_ampacity(self, gauge_mm2: float) -> Optional[float]:
        return ampacity_for_gauge(gauge_mm2)

    def line_voltage(self, phase_voltage: float) -> float:
        return line_voltage_for(phase_voltage)

_calculator = VoltenaxCalculator()

def compute_sizing(circuit: CircuitInput, prior_record_count: int = 0) -> CircuitRecord:
    return _calculator.compute_sizing(circuit, prior_record_count)

def analyze_system(records: Sequence[CircuitRecord]) -> Optional[SystemAnalysis]:
    return _calculator.analyze_system(records)

def check_conformance(record: CircuitRecord) -> List[Finding]:
    return _calculator.check_conformance(record)

def simulate_scenarios(base: CircuitInput, variations: Sequence[ScenarioVariation], prior_record_count: int = 0) -> List[ScenarioResult]:
    return _calculator.simulate_scenarios(base, variations, prior_record_count)
