from dataclasses import fields
from typing import Any, Dict, Iterable, List

import pandas as pd

from core.components import ConductorSpec
from core.models import CircuitInput, CircuitRecord

RECORD_FIELDS = [f.name for f in fields(CircuitRecord)]
CONDUCTOR_FIELDS = ("phase_conductor", "neutral_conductor")

# Keys written by earlier versions of the board calculator.
# Verbose labeled keys first, then the short symbolic ones.
LEGACY_KEYS = {
    "N°": "sequence", "DESCRIÇÃO": "name",
    "ATIVA-R": "load_r_w", "ATIVA-S": "load_s_w", "ATIVA-T": "load_t_w",
    "DEM-R": "demand_r_w", "DEM-S": "demand_s_w", "DEM-T": "demand_t_w",
    "TENSÃO FASE (V)": "phase_voltage", "TENSÃO LINHA (V)": "line_voltage",
    "POT. TOTAL (W)": "total_power_w", "DEM. TOTAL (VA)": "total_demand_va",
    "COR. MÉDIA (A)": "average_current_a", "DIST.(M)": "run_length_m",
    "QUEDA DE TENSÃO (%)": "voltage_drop_percent",

    "N": "sequence", "DESCRICAO": "name",
    "ATIVA_R": "load_r_w", "ATIVA_S": "load_s_w", "ATIVA_T": "load_t_w",
    "DEM_R": "demand_r_w", "DEM_S": "demand_s_w", "DEM_T": "demand_t_w",
    "TENSAO_FASE_V": "phase_voltage", "TENSAO_LINHA_V": "line_voltage",
    "POT_TOTAL_W": "total_power_w", "DEM_TOTAL_VA": "total_demand_va",
    "COR_MEDIA_A": "average_current_a", "DIST_M": "run_length_m",
    "QUEDA_TENSAO_PERC": "voltage_drop_percent",

    "R": "current_r_a", "S": "current_s_a", "T": "current_t_a",
    "FP": "power_factor", "FD": "demand_factor",
    "FA": "phase_conductor", "NE": "neutral_conductor", "TE": "ground_gauge_mm2",
    "DISJUNTOR": "breaker_a",
}

def record_to_dict(record: CircuitRecord) -> Dict[str, Any]:
    """Flat key-value form, conductors as '35' or '2x35'."""
    data = {}
    for name in RECORD_FIELDS:
        value = getattr(record, name)
        data[name] = str(value) if name in CONDUCTOR_FIELDS else value
    return data

def _parse_sequence(value) -> int:
    # 'QD-3' -> 3
    text = str(value).strip()
    if "-" in text:
        text = text.rsplit("-", 1)[1]
    return int(float(text))

def record_from_dict(data: Dict[str, Any]) -> CircuitRecord:
    if not isinstance(data, dict):
        raise ValueError(f"Registro inválido: se esperaba un objeto, no {type(data).__name__}")
    normalized = {}
    for key, value in data.items():
        target = key if key in RECORD_FIELDS else LEGACY_KEYS.get(key)
        if target is not None:
            normalized[target] = value

    missing = [name for name in RECORD_FIELDS if name not in normalized]
    if missing:
        raise ValueError(f"Registro incompleto, faltan campos: {', '.join(missing)}")

    normalized["sequence"] = _parse_sequence(normalized["sequence"])
    normalized["name"] = str(normalized["name"])
    for name in CONDUCTOR_FIELDS:
        normalized[name] = ConductorSpec.parse(normalized[name])
    ground = ConductorSpec.parse(normalized["ground_gauge_mm2"])
    normalized["ground_gauge_mm2"] = ground.gauge_mm2
    return CircuitRecord(**normalized)

def records_to_dataframe(records: Iterable[CircuitRecord]) -> pd.DataFrame:
    rows: List[Dict[str, Any]] = [record_to_dict(r) for r in records]
    return pd.DataFrame(rows, columns=RECORD_FIELDS)

def circuit_input_from_record(record: CircuitRecord) -> CircuitInput:
    return CircuitInput(
        name=record.name,
        power_factor=record.power_factor,
        demand_factor=record.demand_factor,
        run_length_m=record.run_length_m,
        load_r_w=record.load_r_w,
        load_s_w=record.load_s_w,
        load_t_w=record.load_t_w,
        phase_voltage=record.phase_voltage,
    )
