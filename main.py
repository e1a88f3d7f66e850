import sys
import os
import datetime
import logging
from core.config import Config
from core.converters import convert_length_unit, convert_power_unit, split_value_unit
from core.errors import DuplicateNameError, InvalidInputError
from core.exporter import export_to_excel
from core.models import CircuitInput, PHASES
from core.store import RecordStore
from standards.voltenax import VoltenaxCalculator
from standards.voltenax_tables import CONDUCTOR_TABLE

logger = logging.getLogger(__name__)

def ask_float(prompt: str, default: float) -> float:
    raw = input(f"{prompt} [{default}]: ").strip().replace(",", ".")
    return float(raw) if raw else default

def get_board_input(calc: VoltenaxCalculator, store: RecordStore):
    print(f"\n[Cuadro QD-{len(store) + 1}]")
    name = input("Nombre del Cuadro: ").strip()
    if not name:
        return None

    # Caller-side uniqueness check before touching the engine
    store.ensure_unique(name)

    pf = ask_float("Factor de Potencia", 0.92)
    fd = ask_float("Factor de Demanda", 0.8)

    # Length & Unit
    l_input_str = input("Distancia del alimentador (ej: 50 m, 150 ft): ").strip()
    l_val, l_unit = split_value_unit(l_input_str, "m")
    length_m = convert_length_unit(l_val, l_unit)

    options = "/".join(str(int(v)) for v in calc.SUPPORTED_PHASE_VOLTAGES)
    voltage = ask_float(f"Tensión de Fase ({options} V)", 220)

    loads = []
    for phase in PHASES:
        p_input_str = input(f"Potencia Fase {phase} (ej: 10 kW, 5000 W) [0]: ").strip()
        if not p_input_str:
            loads.append(0.0)
            continue
        val, unit = split_value_unit(p_input_str, "W")
        loads.append(convert_power_unit(val, unit))

    return CircuitInput(
        name=name, power_factor=pf, demand_factor=fd, run_length_m=length_m,
        load_r_w=loads[0], load_s_w=loads[1], load_t_w=loads[2], phase_voltage=voltage,
    )

def print_records(store: RecordStore):
    print("-" * 120)
    print(f"{'N':<6} | {'Cuadro':<18} | {'Pot.(W)':<10} | {'Dem.(VA)':<10} | {'I med':<8} | {'Fase':<8} | {'Tierra':<6} | {'Interr.':<7} | {'% VD'}")
    print("-" * 120)
    for r in store:
        warn = " (!)" if r.voltage_drop_percent > VoltenaxCalculator.VOLTAGE_DROP_LIMIT_PERCENT else ""
        print(f"{r.label:<6} | {r.name[:18]:<18} | {r.total_power_w:<10.0f} | {r.total_demand_va:<10.2f} | "
              f"{r.average_current_a:<8.2f} | {str(r.phase_conductor):<8} | {r.ground_gauge_mm2:<6} | "
              f"{r.breaker_a:<7} | {r.voltage_drop_percent:.2f}{warn}")
    print("-" * 120)

def main():
    logging.basicConfig(level=Config.LOG_LEVEL.upper(), format=Config.LOG_FORMAT)

    print("==========================================================")
    print(" DIMENSIONAMIENTO DE ALIMENTADORES DE BAJA TENSIÓN")
    print("==========================================================")

    calc = VoltenaxCalculator()
    store = RecordStore(Config.STORE_PATH)
    print(f"Cuadros guardados: {len(store)}")

    # 1. Add boards
    while True:
        try:
            circuit = get_board_input(calc, store)
            if circuit is None:
                break
            record = calc.compute_sizing(circuit, prior_record_count=len(store))
            store.append(record)
            print(f"  -> {record.label}: I med {record.average_current_a:.2f} A | Cable {record.phase_conductor} mm² "
                  f"| Tierra {record.ground_gauge_mm2} mm² | Interruptor {record.breaker_a} A "
                  f"| VD {record.voltage_drop_percent:.2f}%")
            for finding in calc.check_conformance(record):
                print(f"     [{finding.severity.value.upper()}] {finding.message}")
        except (InvalidInputError, DuplicateNameError) as e:
            print(f"Error: {e}")
        except ValueError as e:
            print(f"Error en entrada de datos: {e}. Intente de nuevo.")

        more = input("¿Agregar otro cuadro? (s/n): ").lower()
        if more != 's':
            break

    if not len(store):
        print("No hay cuadros registrados.")
        sys.exit()

    # 2. Boards table
    print_records(store)

    # 3. System analysis
    analysis = calc.analyze_system(store.records)
    print("\nAnálisis del Sistema")
    print(f"Potencia Total:          {analysis.total_power_w:,.0f} W")
    print(f"Demanda Total:           {analysis.total_demand_va:,.2f} VA ({analysis.demand_kva} kVA)")
    print(f"Corriente Media:         {analysis.mean_current_a:.2f} A")
    print(f"Desbalance de Fases:     {analysis.imbalance_percent:.2f} %")
    print(f"Subestación Recomendada: {analysis.recommended_substation_kva} kVA")

    # 4. Export
    ask = input("\n¿Exportar reporte a Excel? (s/n): ").lower()
    if ask == 's':
        filename = os.path.join(
            Config.EXPORT_DIR,
            f"cuadro_de_cargas_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx",
        )
        export_to_excel(store.records, analysis, filename, CONDUCTOR_TABLE)
        print(f"\n[INFO] Excel generado: {filename}")

if __name__ == "__main__":
    main()
