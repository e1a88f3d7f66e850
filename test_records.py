import io
import json
import os
import tempfile
import unittest
from openpyxl import load_workbook
from core.components import ConductorSpec
from core.errors import DuplicateNameError
from core.exporter import build_workbook, export_to_excel
from core.models import CircuitInput
from core.records import RECORD_FIELDS, circuit_input_from_record, record_from_dict, record_to_dict, records_to_dataframe
from core.store import RecordStore
from standards.voltenax import analyze_system, compute_sizing
from standards.voltenax_tables import CONDUCTOR_TABLE

def sample_records():
    bombas = CircuitInput(name="Bombas", power_factor=0.92, demand_factor=0.8, run_length_m=50,
                          load_r_w=10000, load_s_w=10000, load_t_w=10000, phase_voltage=220)
    principal = CircuitInput(name="Principal", power_factor=1.0, demand_factor=1.0, run_length_m=10,
                             load_r_w=100000, load_s_w=100000, load_t_w=100000, phase_voltage=220)
    return [compute_sizing(bombas, 0), compute_sizing(principal, 1)]

class TestConductorSpec(unittest.TestCase):
    def test_notation(self):
        self.assertEqual(str(ConductorSpec(35)), "35")
        self.assertEqual(str(ConductorSpec(150, 2)), "2x150")
        self.assertEqual(ConductorSpec.parse("1x35"), ConductorSpec(35))
        self.assertEqual(ConductorSpec.parse("35"), ConductorSpec(35))
        self.assertEqual(ConductorSpec.parse("3x95"), ConductorSpec(95, 3))
        self.assertEqual(ConductorSpec.parse(16), ConductorSpec(16))

class TestRecordSerialization(unittest.TestCase):
    def test_flat_dict_round_trip(self):
        for record in sample_records():
            data = record_to_dict(record)
            self.assertEqual(list(data), RECORD_FIELDS)
            self.assertFalse(any(isinstance(v, (dict, list)) for v in data.values()))
            self.assertEqual(record_from_dict(json.loads(json.dumps(data))), record)

        self.assertEqual(record_to_dict(sample_records()[1])["phase_conductor"], "2x150")

    def test_reads_verbose_legacy_keys(self):
        legacy = {
            "N°": "QD-1", "DESCRIÇÃO": "Bombas",
            "ATIVA-R": 10000, "ATIVA-S": 10000, "ATIVA-T": 10000,
            "DEM-R": 8000, "DEM-S": 8000, "DEM-T": 8000,
            "R": 85.58, "S": 85.58, "T": 85.58, "FP": 0.92, "FD": 0.8,
            "TENSÃO FASE (V)": 220, "TENSÃO LINHA (V)": 127,
            "POT. TOTAL (W)": 30000, "DEM. TOTAL (VA)": 26086.956521739132,
            "COR. MÉDIA (A)": 85.58, "DIST.(M)": 50, "QUEDA DE TENSÃO (%)": 2.61,
            "FA": "1x35", "NE": "1x35", "TE": 16, "DISJUNTOR": 100,
        }
        record = record_from_dict(legacy)
        self.assertEqual(record.sequence, 1)
        self.assertEqual(record.phase_conductor, ConductorSpec(35))
        self.assertEqual(record.ground_gauge_mm2, 16)
        self.assertEqual(record.breaker_a, 100)

    def test_reads_short_legacy_keys(self):
        short = {
            "N": 2, "DESCRICAO": "Principal",
            "ATIVA_R": 100000, "ATIVA_S": 100000, "ATIVA_T": 100000,
            "DEM_R": 100000, "DEM_S": 100000, "DEM_T": 100000,
            "R": 787.3, "S": 787.3, "T": 787.3, "FP": 1, "FD": 1,
            "TENSAO_FASE_V": 220, "TENSAO_LINHA_V": 127,
            "POT_TOTAL_W": 300000, "DEM_TOTAL_VA": 300000, "COR_MEDIA_A": 787.3,
            "DIST_M": 10, "QUEDA_TENSAO_PERC": 0.64,
            "FA": "2x150", "NE": "2x150", "TE": 95, "DISJUNTOR": 800,
        }
        record = record_from_dict(short)
        self.assertEqual(record.label, "QD-2")
        self.assertEqual(record.neutral_conductor, ConductorSpec(150, 2))

    def test_incomplete_record_is_rejected(self):
        with self.assertRaises(ValueError):
            record_from_dict({"name": "Bombas"})

    def test_dataframe_and_input_projection(self):
        records = sample_records()
        df = records_to_dataframe(records)
        self.assertEqual(list(df.columns), RECORD_FIELDS)
        self.assertEqual(df["phase_conductor"].tolist(), ["35", "2x150"])

        circuit = circuit_input_from_record(records[0])
        self.assertEqual(compute_sizing(circuit, 0), records[0])

class TestRecordStore(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "data", "cuadros.json")

    def tearDown(self):
        self.tmp.cleanup()

    def test_persists_in_order(self):
        store = RecordStore(self.path)
        for record in sample_records():
            store.append(record)

        reloaded = RecordStore(self.path)
        self.assertEqual(len(reloaded), 2)
        self.assertEqual([r.name for r in reloaded], ["Bombas", "Principal"])
        self.assertEqual(reloaded.records, store.records)

    def test_duplicate_name_is_case_insensitive(self):
        store = RecordStore(self.path)
        store.append(sample_records()[0])
        self.assertTrue(store.name_exists("  BOMBAS "))
        with self.assertRaises(DuplicateNameError):
            store.ensure_unique("bombas")
        with self.assertRaises(DuplicateNameError):
            store.append(sample_records()[0])
        self.assertEqual(len(store), 1)

    def test_delete_and_clear(self):
        store = RecordStore(self.path)
        for record in sample_records():
            store.append(record)
        removed = store.delete(0)
        self.assertEqual(removed.name, "Bombas")
        self.assertEqual([r.name for r in RecordStore(self.path)], ["Principal"])

        store.clear()
        self.assertEqual(len(RecordStore(self.path)), 0)

    def test_unreadable_file_starts_empty(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("{not json")
        with self.assertLogs("core.store", level="WARNING"):
            store = RecordStore(self.path)
        self.assertEqual(len(store), 0)

    def test_store_that_is_not_a_list_of_records(self):
        os.makedirs(os.path.dirname(self.path))
        for payload in ({"a": 1}, [1], ["QD-1"]):
            with self.subTest(payload=payload):
                with open(self.path, "w", encoding="utf-8") as fh:
                    json.dump(payload, fh)
                with self.assertLogs("core.store", level="WARNING"):
                    store = RecordStore(self.path)
                self.assertEqual(len(store), 0)

    def test_unreadable_file_is_backed_up_before_saving(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as fh:
            fh.write("{not json")
        with self.assertLogs("core.store", level="WARNING"):
            store = RecordStore(self.path)
        store.append(sample_records()[0])

        with open(self.path + ".bak", encoding="utf-8") as fh:
            self.assertEqual(fh.read(), "{not json")
        self.assertEqual([r.name for r in RecordStore(self.path)], ["Bombas"])

    def test_memory_only_store(self):
        store = RecordStore()
        store.append(sample_records()[0])
        self.assertEqual(len(store), 1)

class TestExcelExport(unittest.TestCase):
    def test_workbook_layout(self):
        records = sample_records()
        wb = build_workbook(records, analyze_system(records), CONDUCTOR_TABLE)
        self.assertEqual(wb.sheetnames, ["Cuadros_de_Carga", "Resumen Sistema", "Ref Cables"])

        ws = wb["Cuadros_de_Carga"]
        self.assertEqual(ws.freeze_panes, "A3")
        merged = {str(r) for r in ws.merged_cells.ranges}
        self.assertIn("C1:E1", merged)
        self.assertIn("U1:W1", merged)
        self.assertEqual(ws.cell(row=2, column=21).value, "F")
        self.assertEqual(ws.cell(row=3, column=1).value, "QD-1")
        self.assertEqual(ws.cell(row=3, column=21).value, "35")
        self.assertEqual(ws.cell(row=4, column=21).value, "2x150")
        self.assertEqual(ws.cell(row=4, column=24).value, 800)
        self.assertEqual(wb["Ref Cables"].max_row, len(CONDUCTOR_TABLE) + 1)

    def test_export_to_buffer(self):
        records = sample_records()
        buffer = io.BytesIO()
        export_to_excel(records, analyze_system(records), buffer)
        buffer.seek(0)
        wb = load_workbook(buffer)
        ws = wb["Cuadros_de_Carga"]
        self.assertEqual(ws.cell(row=3, column=2).value, "Bombas")
        self.assertEqual(ws.cell(row=3, column=20).value, 2.61)
        self.assertNotIn("Ref Cables", wb.sheetnames)

    def test_values_are_written_unrounded(self):
        circuit = CircuitInput(name="Taller", power_factor=0.92, demand_factor=0.8, run_length_m=50,
                               load_r_w=10000.123, load_s_w=10000, load_t_w=10000, phase_voltage=220)
        record = compute_sizing(circuit, 0)
        buffer = io.BytesIO()
        export_to_excel([record], analyze_system([record]), buffer)
        buffer.seek(0)
        wb = load_workbook(buffer)

        ws = wb["Cuadros_de_Carga"]
        self.assertEqual(ws.cell(row=3, column=6).value, record.demand_r_w)
        self.assertEqual(ws.cell(row=3, column=17).value, record.total_demand_va)
        self.assertEqual(ws.cell(row=3, column=17).number_format, "0.00")

        summary = wb["Resumen Sistema"]
        self.assertEqual(summary.cell(row=6, column=2).value, record.total_demand_va)

    def test_export_without_records(self):
        wb = build_workbook([], None)
        self.assertEqual(wb.sheetnames, ["Cuadros_de_Carga"])
        self.assertEqual(wb.active.max_row, 2)

if __name__ == '__main__':
    unittest.main()
