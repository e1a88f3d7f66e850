import datetime
import logging
from typing import Optional, Sequence

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from core.components import ConductorTableEntry, format_gauge
from core.models import PHASES, CircuitRecord, SystemAnalysis

logger = logging.getLogger(__name__)

HEADER_TOP = [
    "N", "DESCRIPCIÓN",
    "POTENCIA (W)", "", "",
    "DEMANDA (W)", "", "",
    "CORRIENTE (A)", "", "",
    "FP", "FD",
    "TENSIÓN DE FASE (V)", "TENSIÓN DE LÍNEA (V)",
    "POTENCIA TOTAL (W)", "DEMANDA TOTAL (VA)", "CORRIENTE MEDIA (A)",
    "DISTANCIA (M)", "CAÍDA DE TENSIÓN (%)",
    "CABLES", "", "", "INTERRUPTOR",
]
HEADER_SUB = [
    "", "",
    "R", "S", "T",
    "R", "S", "T",
    "R", "S", "T",
    "", "",
    "", "",
    "", "", "",
    "", "",
    "F", "N", "T",
    "",
]
COLUMN_WIDTHS = [8, 25, 12, 12, 12, 12, 12, 12, 10, 10, 10, 8, 8, 15, 15, 15, 15, 15, 12, 15, 8, 8, 8, 12]
# Groups merged over their R/S/T or F/N/T sub-columns (1-based columns)
MERGED_GROUPS = [(3, 5), (6, 8), (9, 11), (21, 23)]
# Values are stored unrounded; only the display is fixed to two decimals
DECIMAL_FORMAT = "0.00"

def record_row(record: CircuitRecord) -> list:
    return [
        record.label,
        record.name,
        *record.phase_loads,
        *record.phase_demands,
        *record.phase_currents,
        record.power_factor,
        record.demand_factor,
        record.phase_voltage,
        record.line_voltage,
        record.total_power_w,
        record.total_demand_va,
        record.average_current_a,
        record.run_length_m,
        record.voltage_drop_percent,
        str(record.phase_conductor),
        str(record.neutral_conductor),
        format_gauge(record.ground_gauge_mm2),
        record.breaker_a,
    ]

def build_workbook(
    records: Sequence[CircuitRecord],
    analysis: Optional[SystemAnalysis] = None,
    conductor_table: Sequence[ConductorTableEntry] = (),
) -> Workbook:
    wb = Workbook()

    # --- Sheet 1: Boards ---
    ws = wb.active
    ws.title = "Cuadros_de_Carga"
    ws.append(HEADER_TOP)
    ws.append(HEADER_SUB)

    thin = Side(style="thin", color="000000")
    header_border = Border(top=thin, bottom=thin, left=thin, right=thin)
    for row_idx, color, size in ((1, "D9E1F2", 11), (2, "E2EFDA", 10)):
        for cell in ws[row_idx]:
            cell.font = Font(bold=True, size=size)
            cell.fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = header_border

    for start, end in MERGED_GROUPS:
        ws.merge_cells(start_row=1, start_column=start, end_row=1, end_column=end)

    for record in records:
        ws.append(record_row(record))

    grey = Side(style="thin", color="CCCCCC")
    data_border = Border(top=grey, bottom=grey, left=grey, right=grey)
    for row in ws.iter_rows(min_row=3):
        fill_color = "FFFFFF" if row[0].row % 2 else "F8F8F8"
        for cell in row:
            cell.border = data_border
            cell.fill = PatternFill(start_color=fill_color, end_color=fill_color, fill_type="solid")
            if isinstance(cell.value, float):
                cell.number_format = DECIMAL_FORMAT

    for idx, width in enumerate(COLUMN_WIDTHS):
        ws.column_dimensions[get_column_letter(idx + 1)].width = width
    ws.freeze_panes = "A3"

    # --- Sheet 2: System summary ---
    if analysis is not None:
        ws2 = wb.create_sheet("Resumen Sistema")
        ws2.append(["ANÁLISIS DEL SISTEMA"])
        ws2.append(["Fecha:", datetime.datetime.now().strftime("%Y-%m-%d %H:%M")])
        ws2.append([])
        ws2.append(["Parámetro", "Valor"])
        for cell in ws2[4]:
            cell.font = Font(bold=True)
        ws2.append(["Potencia Total (W)", analysis.total_power_w])
        ws2.append(["Demanda Total (VA)", analysis.total_demand_va])
        ws2.append(["Demanda (kVA)", analysis.demand_kva])
        ws2.append(["Corriente Media (A)", analysis.mean_current_a])
        ws2.append(["Desbalance (%)", analysis.imbalance_percent])
        ws2.append(["Subestación Recomendada (kVA)", analysis.recommended_substation_kva])
        ws2.append([])
        ws2.append(["Fase", "Potencia (W)", "Demanda (W)", "Corriente (A)"])
        for phase in PHASES:
            totals = analysis.phases[phase]
            ws2.append([phase, totals.power_w, totals.demand_w, totals.current_a])
        for row in ws2.iter_rows(min_row=5):
            for cell in row:
                if isinstance(cell.value, float):
                    cell.number_format = DECIMAL_FORMAT
        ws2.column_dimensions["A"].width = 32
        ws2.column_dimensions["B"].width = 18

    # --- Sheet 3: Cable reference ---
    if conductor_table:
        ws3 = wb.create_sheet("Ref Cables")
        ws3.append(["Sección (mm²)", "Ampacidad (A)", "Tierra (mm²)", "Coef. Caída"])
        for cell in ws3[1]:
            cell.font = Font(bold=True)
        for entry in conductor_table:
            ws3.append([entry.gauge_mm2, entry.ampacity, entry.ground_gauge_mm2, entry.voltage_drop_coefficient])

    return wb

def export_to_excel(
    records: Sequence[CircuitRecord],
    analysis: Optional[SystemAnalysis],
    target,
    conductor_table: Sequence[ConductorTableEntry] = (),
) -> None:
    """Writes the report to a path or a binary file object."""
    wb = build_workbook(records, analysis, conductor_table)
    wb.save(target)
    logger.info("Excel report written with %d boards", len(records))
