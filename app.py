import streamlit as st
import pandas as pd
import io
import logging
from core.config import Config
from core.converters import convert_length_unit, convert_power_unit
from core.errors import DuplicateNameError, InvalidInputError
from core.exporter import export_to_excel
from core.models import CircuitInput, PHASES, ScenarioVariation
from core.records import circuit_input_from_record, records_to_dataframe
from core.store import RecordStore
from standards.voltenax import VoltenaxCalculator
from standards.voltenax_tables import CONDUCTOR_TABLE

logging.basicConfig(level=Config.LOG_LEVEL.upper(), format=Config.LOG_FORMAT)

# --- Page Config ---
st.set_page_config(
    page_title="Dimensionamiento de Alimentadores",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

calc = VoltenaxCalculator()

if 'store' not in st.session_state:
    st.session_state.store = RecordStore(Config.STORE_PATH)
store = st.session_state.store

SEVERITY_STYLE = {"high": st.error, "medium": st.warning, "low": st.info}

# Display names for the record table
DISPLAY_COLUMNS = {
    "sequence": "N", "name": "Cuadro",
    "load_r_w": "Pot. R (W)", "load_s_w": "Pot. S (W)", "load_t_w": "Pot. T (W)",
    "demand_r_w": "Dem. R", "demand_s_w": "Dem. S", "demand_t_w": "Dem. T",
    "current_r_a": "I R (A)", "current_s_a": "I S (A)", "current_t_a": "I T (A)",
    "power_factor": "FP", "demand_factor": "FD",
    "phase_voltage": "V Fase", "line_voltage": "V Línea",
    "total_power_w": "Pot. Total (W)", "total_demand_va": "Dem. Total (VA)",
    "average_current_a": "I Media (A)", "run_length_m": "Dist. (m)",
    "voltage_drop_percent": "% VD",
    "phase_conductor": "Fase (mm²)", "neutral_conductor": "Neutro (mm²)", "ground_gauge_mm2": "Tierra (mm²)",
    "breaker_a": "Interruptor (A)",
}

# --- Sidebar ---
with st.sidebar:
    st.title("Registros")
    st.metric("Cuadros guardados", len(store))

    st.markdown("---")
    st.subheader("🗑️ Eliminar")
    if len(store):
        labels = [f"{r.label} - {r.name}" for r in store]
        selected = st.selectbox("Seleccione un cuadro", range(len(labels)), format_func=lambda i: labels[i])
        if st.button("Eliminar seleccionado", use_container_width=True):
            store.delete(selected)
            st.rerun()
        if st.button("Eliminar todos", type="secondary", use_container_width=True):
            store.clear()
            st.rerun()
    else:
        st.caption("No hay datos para eliminar.")

# --- Main Area ---
st.markdown("<h1>⚡ Dimensionamiento de Alimentadores</h1>", unsafe_allow_html=True)
st.markdown("---")

with st.expander("➕ Nuevo Cuadro", expanded=True):
    c_name, c_volt = st.columns([3, 1])
    name = c_name.text_input("Nombre del Cuadro", f"QD-{len(store) + 1}")
    voltage = c_volt.selectbox("Tensión de Fase (V)", list(calc.SUPPORTED_PHASE_VOLTAGES))

    c_fp, c_fd, c_L1, c_L2 = st.columns([1, 1, 1.5, 0.8])
    pf = c_fp.number_input("FP", 0.01, 1.0, 0.92, 0.01)
    fd = c_fd.number_input("FD", 0.01, 2.0, 0.8, 0.05)
    length = c_L1.number_input("Distancia", 0.1, value=50.0, step=1.0)
    l_unit = c_L2.selectbox("U.Long", ["m", "ft"])

    st.markdown("##### Potencia por Fase")
    c_r, c_s, c_t, c_u = st.columns([1, 1, 1, 0.8])
    p_r = c_r.number_input("R", 0.0, step=100.0)
    p_s = c_s.number_input("S", 0.0, step=100.0)
    p_t = c_t.number_input("T", 0.0, step=100.0)
    p_unit = c_u.selectbox("Unidad", ["W", "KW", "HP", "CV"])

    if st.button("Calcular y Guardar", type="primary", use_container_width=True):
        try:
            store.ensure_unique(name)
            circuit = CircuitInput(
                name=name, power_factor=pf, demand_factor=fd,
                run_length_m=convert_length_unit(length, l_unit),
                load_r_w=convert_power_unit(p_r, p_unit),
                load_s_w=convert_power_unit(p_s, p_unit),
                load_t_w=convert_power_unit(p_t, p_unit),
                phase_voltage=voltage,
            )
            record = calc.compute_sizing(circuit, prior_record_count=len(store))
            store.append(record)
            st.session_state.last_record = record
            st.rerun()
        except (InvalidInputError, DuplicateNameError) as e:
            st.error(str(e))

last = st.session_state.get("last_record")
if last is not None:
    st.success(f"{last.label} calculado y guardado.")
    c1, c2, c3, c4, c5 = st.columns(5)
    c1.metric("Corriente Media", f"{last.average_current_a:.2f} A")
    c2.metric("Fase / Neutro", f"{last.phase_conductor} mm²")
    c3.metric("Tierra", f"{last.ground_gauge_mm2} mm²")
    c4.metric("Interruptor", f"{last.breaker_a} A")
    c5.metric("Caída de Tensión", f"{last.voltage_drop_percent:.2f} %")
    for finding in calc.check_conformance(last):
        SEVERITY_STYLE[finding.severity.value](finding.message)

st.markdown("### 📋 Cuadros Calculados")

if not len(store):
    st.info("Aún no hay cuadros calculados.")
    st.stop()

df = records_to_dataframe(store.records)
df["sequence"] = [r.label for r in store]
st.dataframe(df.rename(columns=DISPLAY_COLUMNS), use_container_width=True, hide_index=True)

analysis = calc.analyze_system(store.records)

excel_buffer = io.BytesIO()
export_to_excel(store.records, analysis, excel_buffer, CONDUCTOR_TABLE)
st.download_button(
    "📥 Descargar Resultados (Excel)",
    data=excel_buffer.getvalue(),
    file_name="cuadro_de_cargas.xlsx",
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)

# --- System Section ---
st.markdown("---")
st.subheader("🏢 Análisis del Sistema")
c1, c2, c3, c4 = st.columns(4)
c1.metric("Potencia Total", f"{analysis.total_power_w:,.0f} W")
c2.metric("Demanda Total", f"{analysis.demand_kva} kVA")
c3.metric("Desbalance", f"{analysis.imbalance_percent:.2f} %")
c4.metric("Subestación", f"{analysis.recommended_substation_kva} kVA")

g1, g2 = st.columns(2)
with g1:
    st.markdown("##### Potencia y Demanda por Fase")
    st.bar_chart(pd.DataFrame(
        {
            "Potencia (W)": [analysis.phases[p].power_w for p in PHASES],
            "Demanda (W)": [analysis.phases[p].demand_w for p in PHASES],
        },
        index=list(PHASES),
    ))
    st.markdown("##### Corriente por Fase")
    st.bar_chart(pd.DataFrame({"Corriente (A)": [analysis.phases[p].current_a for p in PHASES]}, index=list(PHASES)))
with g2:
    st.markdown("##### Caída de Tensión por Cuadro")
    profile = calc.voltage_drop_profile(store.records)
    st.bar_chart(pd.DataFrame({"% VD": [d for _, d in profile]}, index=[n for n, _ in profile]))
    st.markdown("##### Potencia por Tipo de Circuito")
    by_type = calc.power_by_circuit_type(store.records)
    st.bar_chart(pd.DataFrame({"Potencia (kW)": [v / 1000 for v in by_type.values()]}, index=[t.value for t in by_type]))

st.markdown("##### Subestaciones Candidatas")
st.dataframe(
    pd.DataFrame({
        "Capacidad (kVA)": calc.substation_candidates(analysis),
        "Recomendada": [s == analysis.recommended_substation_kva for s in calc.substation_candidates(analysis)],
    }),
    hide_index=True,
)

# --- Scenarios ---
st.markdown("---")
st.subheader("🔀 Simulación de Escenarios")
base_idx = st.selectbox("Cuadro base", range(len(store)), format_func=lambda i: store.records[i].name, key="scenario_base")
base_record = store.records[base_idx]

scenario_df = st.data_editor(
    pd.DataFrame([
        {"Escenario": "FP corregido", "FP": 0.95, "FD": None, "Distancia (m)": None},
        {"Escenario": "Distancia doble", "FP": None, "FD": None, "Distancia (m)": base_record.run_length_m * 2},
    ]),
    num_rows="dynamic",
    key="scenario_editor",
    use_container_width=True,
)

def _optional(value):
    return None if value is None or pd.isna(value) else float(value)

variations = [
    ScenarioVariation(
        name=str(row["Escenario"]),
        power_factor=_optional(row["FP"]),
        demand_factor=_optional(row["FD"]),
        run_length_m=_optional(row["Distancia (m)"]),
    )
    for _, row in scenario_df.iterrows()
    if row["Escenario"]
]
results = calc.simulate_scenarios(circuit_input_from_record(base_record), variations, base_record.sequence - 1)
if results:
    st.dataframe(pd.DataFrame([
        {
            "Escenario": r.scenario,
            "I Media (A)": r.record.average_current_a,
            "Dem. Total (VA)": round(r.record.total_demand_va, 2),
            "Fase (mm²)": str(r.record.phase_conductor),
            "Interruptor (A)": r.record.breaker_a,
            "% VD": r.record.voltage_drop_percent,
        }
        for r in results
    ]), hide_index=True, use_container_width=True)
