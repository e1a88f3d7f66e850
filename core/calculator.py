import logging
import math
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from core.components import ConductorSelection
from core.converters import round_half_away
from core.errors import InvalidInputError
from core.models import (
    PHASES, CircuitInput, CircuitRecord, CircuitType, Finding, FindingKind, PhaseTotals,
    ScenarioResult, ScenarioVariation, Severity, SystemAnalysis,
)

logger = logging.getLogger(__name__)

class FeederCalculator(ABC):
    VOLTAGE_DROP_LIMIT_PERCENT = 3.0
    MIN_POWER_FACTOR = 0.92
    BREAKER_TO_AMPACITY_LIMIT = 1.25
    SUPPORTED_PHASE_VOLTAGES: Tuple[float, ...] = ()
    SUBSTATION_CAPACITIES_KVA: Tuple[float, ...] = ()

    @abstractmethod
    def calculate_voltage_drops(self, run_length_m: float, average_current: float, phase_voltage: float) -> List[float]:
        """Single-conductor voltage drop (%) for every gauge in the cable table."""
        pass

    @abstractmethod
    def select_conductor(self, average_current: float, drops: List[float]) -> ConductorSelection:
        """Picks parallel count and gauge under the ampacity and voltage drop limits."""
        pass

    @abstractmethod
    def select_breaker(self, average_current: float) -> float:
        """Returns the breaker rating (A) for the average current."""
        pass

    @abstractmethod
    def gauge_ampacity(self, gauge_mm2: float) -> Optional[float]:
        """Ampacity of a single conductor of the given gauge, None if not tabulated."""
        pass

    @abstractmethod
    def line_voltage(self, phase_voltage: float) -> float:
        pass

    # --- Input ---

    def validate_input(self, circuit: CircuitInput) -> None:
        if not circuit.name or not circuit.name.strip():
            raise InvalidInputError("Informe el nombre del cuadro.")
        if any(load < 0 for load in circuit.phase_loads):
            raise InvalidInputError("Las potencias por fase no pueden ser negativas.")
        if circuit.run_length_m <= 0:
            raise InvalidInputError("La distancia debe ser mayor que cero.")
        if circuit.power_factor <= 0 or circuit.power_factor > 1:
            raise InvalidInputError("El factor de potencia debe estar entre 0 (excluido) y 1.")
        if circuit.demand_factor <= 0:
            raise InvalidInputError("El factor de demanda debe ser mayor que cero.")
        if all(load == 0 for load in circuit.phase_loads):
            raise InvalidInputError("Informe al menos una potencia (R, S o T).")
        if self.SUPPORTED_PHASE_VOLTAGES and circuit.phase_voltage not in self.SUPPORTED_PHASE_VOLTAGES:
            raise InvalidInputError(
                f"Tensión de fase no soportada: {circuit.phase_voltage} V "
                f"(opciones: {', '.join(str(v) for v in self.SUPPORTED_PHASE_VOLTAGES)})"
            )

    # --- Current ---

    @staticmethod
    def classify_circuit(load_r: float, load_s: float, load_t: float) -> CircuitType:
        active = sum(1 for load in (load_r, load_s, load_t) if load > 0)
        if active == 3:
            return CircuitType.THREE_PHASE
        if active == 2:
            return CircuitType.TWO_PHASE
        return CircuitType.SINGLE_PHASE

    @staticmethod
    def calculate_currents(
        loads: Tuple[float, float, float],
        phase_voltage: float,
        power_factor: float,
    ) -> Tuple[CircuitType, float, List[float]]:
        """
        Returns (circuit type, average current, per-phase currents), unrounded.

        Three phase: I = P / (V * sqrt(3) * pf), split by P/3
        Two phase:   I = P / (V * pf),            split by P/2
        Single:      I = P / ((V * pf) / sqrt(3)), split by P
        """
        total = sum(loads)
        circuit_type = FeederCalculator.classify_circuit(*loads)

        if circuit_type == CircuitType.THREE_PHASE:
            i_avg = total / (phase_voltage * math.sqrt(3) * power_factor)
            share = total / 3
        elif circuit_type == CircuitType.TWO_PHASE:
            i_avg = total / (phase_voltage * power_factor)
            share = total / 2
        else:
            i_avg = total / ((phase_voltage * power_factor) / math.sqrt(3))
            share = total

        phase_currents = [i_avg * (load / share) for load in loads]
        return circuit_type, i_avg, phase_currents

    # --- Demand ---

    @staticmethod
    def calculate_demand(load_w: float, demand_factor: float) -> float:
        return load_w * demand_factor

    @staticmethod
    def calculate_total_demand(total_power_w: float, demand_factor: float, power_factor: float) -> float:
        # VA total carries the power factor, per-phase demands do not
        return (total_power_w * demand_factor) / power_factor

    # --- Entry points ---

    def compute_sizing(self, circuit: CircuitInput, prior_record_count: int = 0) -> CircuitRecord:
        self.validate_input(circuit)

        loads = circuit.phase_loads
        total = circuit.total_power_w
        circuit_type, i_avg, phase_currents = self.calculate_currents(
            loads, circuit.phase_voltage, circuit.power_factor
        )
        logger.debug("%s: %s circuit, Iavg=%.4f A", circuit.name, circuit_type.value, i_avg)

        drops = self.calculate_voltage_drops(circuit.run_length_m, i_avg, circuit.phase_voltage)
        selection = self.select_conductor(i_avg, drops)
        if selection.fallback:
            logger.warning(
                "%s: no cable combination meets %.1f A and %.1f%% drop, using %s mm2 (%.2f%%)",
                circuit.name, i_avg, self.VOLTAGE_DROP_LIMIT_PERCENT,
                selection.conductor, selection.voltage_drop_percent,
            )
        breaker = self.select_breaker(i_avg)

        fd = circuit.demand_factor
        return CircuitRecord(
            sequence=prior_record_count + 1,
            name=circuit.name.strip(),
            load_r_w=loads[0],
            load_s_w=loads[1],
            load_t_w=loads[2],
            demand_r_w=self.calculate_demand(loads[0], fd),
            demand_s_w=self.calculate_demand(loads[1], fd),
            demand_t_w=self.calculate_demand(loads[2], fd),
            current_r_a=round_half_away(phase_currents[0]),
            current_s_a=round_half_away(phase_currents[1]),
            current_t_a=round_half_away(phase_currents[2]),
            power_factor=circuit.power_factor,
            demand_factor=fd,
            phase_voltage=circuit.phase_voltage,
            line_voltage=self.line_voltage(circuit.phase_voltage),
            total_power_w=total,
            total_demand_va=self.calculate_total_demand(total, fd, circuit.power_factor),
            average_current_a=round_half_away(i_avg),
            run_length_m=circuit.run_length_m,
            voltage_drop_percent=selection.voltage_drop_percent,
            phase_conductor=selection.conductor,
            neutral_conductor=selection.conductor,
            ground_gauge_mm2=selection.ground_gauge_mm2,
            breaker_a=breaker,
        )

    def recommend_substation(self, demand_kva: float) -> float:
        for capacity in self.SUBSTATION_CAPACITIES_KVA:
            if capacity >= demand_kva:
                return capacity
        return self.SUBSTATION_CAPACITIES_KVA[-1]

    def analyze_system(self, records: Sequence[CircuitRecord]) -> Optional[SystemAnalysis]:
        if not records:
            return None

        phases: Dict[str, PhaseTotals] = {p: PhaseTotals() for p in PHASES}
        total_power = 0.0
        total_demand = 0.0
        current_sum = 0.0

        for record in records:
            for phase, power, demand, current in zip(
                PHASES, record.phase_loads, record.phase_demands, record.phase_currents
            ):
                phases[phase].power_w += power
                phases[phase].demand_w += demand
                phases[phase].current_a += current
            total_power += record.total_power_w
            total_demand += record.total_demand_va
            current_sum += record.average_current_a

        demands = [phases[p].demand_w for p in PHASES]
        max_demand = max(demands)
        mean_demand = sum(demands) / 3
        imbalance = ((max_demand - mean_demand) / mean_demand) * 100 if mean_demand else 0.0

        demand_kva = total_demand / 1000
        return SystemAnalysis(
            phases=phases,
            total_power_w=total_power,
            total_demand_va=total_demand,
            mean_current_a=current_sum / len(records),
            imbalance_percent=round_half_away(imbalance),
            demand_kva=round_half_away(demand_kva),
            recommended_substation_kva=self.recommend_substation(demand_kva),
            max_phase_demand_w=max_demand,
        )

    def check_conformance(self, record: CircuitRecord) -> List[Finding]:
        findings = []

        if record.voltage_drop_percent > self.VOLTAGE_DROP_LIMIT_PERCENT:
            findings.append(Finding(
                kind=FindingKind.WARNING,
                severity=Severity.MEDIUM,
                message=(f"Caída de tensión ({record.voltage_drop_percent}%) por encima de lo "
                         f"recomendado ({self.VOLTAGE_DROP_LIMIT_PERCENT:g}%)"),
            ))

        if record.power_factor < self.MIN_POWER_FACTOR:
            findings.append(Finding(
                kind=FindingKind.RECOMMENDATION,
                severity=Severity.LOW,
                message=f"Factor de potencia ({record.power_factor}) por debajo del ideal. Considere corrección.",
            ))

        ampacity = self.gauge_ampacity(record.phase_conductor.gauge_mm2)
        if ampacity is not None and record.breaker_a > ampacity * self.BREAKER_TO_AMPACITY_LIMIT:
            findings.append(Finding(
                kind=FindingKind.WARNING,
                severity=Severity.HIGH,
                message=(f"Interruptor de {record.breaker_a:g} A demasiado grande para el cable "
                         f"{record.phase_conductor} mm² ({ampacity:g} A)"),
            ))

        return findings

    def simulate_scenarios(
        self,
        base: CircuitInput,
        variations: Sequence[ScenarioVariation],
        prior_record_count: int = 0,
    ) -> List[ScenarioResult]:
        results = []
        for variation in variations:
            # Unset or zero fields keep the base value
            scenario = CircuitInput(
                name=f"{base.name} - {variation.name}",
                power_factor=variation.power_factor or base.power_factor,
                demand_factor=variation.demand_factor or base.demand_factor,
                run_length_m=variation.run_length_m or base.run_length_m,
                load_r_w=base.load_r_w,
                load_s_w=base.load_s_w,
                load_t_w=base.load_t_w,
                phase_voltage=base.phase_voltage,
            )
            try:
                record = self.compute_sizing(scenario, prior_record_count)
            except InvalidInputError as e:
                logger.error("Scenario %r skipped: %s", variation.name, e)
                continue
            results.append(ScenarioResult(scenario=variation.name, record=record, variation=variation))
        return results

    # --- Chart projections ---

    def power_by_circuit_type(self, records: Sequence[CircuitRecord]) -> Dict[CircuitType, float]:
        totals = {t: 0.0 for t in CircuitType}
        for record in records:
            totals[self.classify_circuit(*record.phase_loads)] += record.total_power_w
        return totals

    def substation_candidates(self, analysis: SystemAnalysis) -> List[float]:
        """Capacities up to twice the demand, plus the recommended one."""
        return [
            s for s in self.SUBSTATION_CAPACITIES_KVA
            if s <= analysis.demand_kva * 2 or s == analysis.recommended_substation_kva
        ]

    @staticmethod
    def voltage_drop_profile(records: Sequence[CircuitRecord], limit: int = 15) -> List[Tuple[str, float]]:
        return [(r.name, r.voltage_drop_percent) for r in records[:limit]]
