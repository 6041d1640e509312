from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from ponto.models import CardType, LedgerKind, MonthClosing
from ponto.services.clock import format_duration

SUMMARY_SHEET = "Resumo"
WEEKS_SHEET = "Semanas"
DAYS_SHEET = "Dias"
LEDGER_SHEET = "Banco de Horas"

WEEK_HEADERS = [
    "Semana",
    "Inicio",
    "Fim",
    "HE 50%",
    "HE 75%",
    "HE 100%",
    "HE 125%",
    "Banco de Horas",
    "Faltas/Atrasos",
    "Valor (R$)",
]

DAY_HEADERS = [
    "Data",
    "Linha",
    "Cartao",
    "Semana",
    "Trabalhado",
    "Jornada",
    "Excedente",
    "HE 50%",
    "HE 75%",
    "HE 100%",
    "HE 125%",
    "Banco de Horas",
    "Faltas/Atrasos",
    "Anotacao",
]

LEDGER_HEADERS = ["Data", "Linha", "Tipo", "Minutos", "Saldo", "Descricao"]

LEDGER_KIND_LABELS = {
    LedgerKind.EXTRA: "Extra",
    LedgerKind.LATENESS: "Atraso",
    LedgerKind.ABSENCE: "Falta",
}

CARD_LABELS = {
    CardType.NORMAL: "Normal",
    CardType.OVERTIME: "Horas extras",
}

HEADER_FILL = PatternFill(fill_type="solid", fgColor="0B4F73")
META_LABEL_FILL = PatternFill(fill_type="solid", fgColor="EAF4F9")
META_VALUE_FILL = PatternFill(fill_type="solid", fgColor="F8FCFF")
ZEBRA_FILL = PatternFill(fill_type="solid", fgColor="F7FBFE")
ALERT_FILL = PatternFill(fill_type="solid", fgColor="FDE2E4")
SUCCESS_FILL = PatternFill(fill_type="solid", fgColor="E6F4EA")

HEADER_FONT = Font(bold=True, color="FFFFFF")
BOLD_FONT = Font(bold=True, color="0F172A")
TITLE_FONT = Font(bold=True, color="0B4F73", size=14)
MUTED_FONT = Font(color="334155")

THIN_SIDE = Side(style="thin", color="D5E2EC")
THIN_BORDER = Border(left=THIN_SIDE, right=THIN_SIDE, top=THIN_SIDE, bottom=THIN_SIDE)


def _style_header(ws: Worksheet, row: int = 1) -> None:
    for cell in ws[row]:
        if cell.value is None:
            continue
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)
        cell.border = THIN_BORDER


def _auto_width(ws: Worksheet) -> None:
    for column_cells in ws.iter_cols(min_row=1, max_row=ws.max_row, min_col=1, max_col=ws.max_column):
        max_len = 0
        col_letter = get_column_letter(column_cells[0].column)
        for cell in column_cells:
            if cell.coordinate in ws.merged_cells:
                continue
            value = "" if cell.value is None else str(cell.value)
            max_len = max(max_len, len(value))
        ws.column_dimensions[col_letter].width = min(max_len + 2, 45)


def _merge_title(ws: Worksheet, row: int, text: str, *, width: int = 4) -> None:
    ws.merge_cells(start_row=row, start_column=1, end_row=row, end_column=width)
    cell = ws.cell(row=row, column=1, value=text)
    cell.font = TITLE_FONT
    cell.alignment = Alignment(horizontal="left", vertical="center")


def _style_metadata_rows(ws: Worksheet, *, start_row: int, end_row: int) -> None:
    for row_idx in range(start_row, end_row + 1):
        label_cell = ws.cell(row=row_idx, column=1)
        value_cell = ws.cell(row=row_idx, column=2)
        label_cell.font = BOLD_FONT
        label_cell.fill = META_LABEL_FILL
        label_cell.alignment = Alignment(horizontal="left", vertical="center")
        label_cell.border = THIN_BORDER

        value_cell.font = MUTED_FONT
        value_cell.fill = META_VALUE_FILL
        value_cell.alignment = Alignment(horizontal="right", vertical="center")
        value_cell.border = THIN_BORDER


def _is_hhmm_value(value: object) -> bool:
    if not isinstance(value, str) or ":" not in value:
        return False
    hh, _, mm = value.partition(":")
    return hh.isdigit() and mm.isdigit() and len(mm) == 2


def _style_table_region(ws: Worksheet, *, header_row: int, data_end_row: int) -> None:
    ws.freeze_panes = f"A{header_row + 1}"
    if data_end_row <= header_row:
        return
    ws.auto_filter.ref = f"A{header_row}:{get_column_letter(ws.max_column)}{data_end_row}"

    overtime_cols = [
        col_idx
        for col_idx in range(1, ws.max_column + 1)
        if str(ws.cell(row=header_row, column=col_idx).value or "").startswith("HE ")
    ]

    for row_idx in range(header_row + 1, data_end_row + 1):
        for col_idx in range(1, ws.max_column + 1):
            cell = ws.cell(row=row_idx, column=col_idx)
            cell.border = THIN_BORDER
            if row_idx % 2 == 0:
                cell.fill = ZEBRA_FILL
            if isinstance(cell.value, (int, float)) or _is_hhmm_value(cell.value):
                cell.alignment = Alignment(horizontal="center", vertical="center")
            else:
                cell.alignment = Alignment(horizontal="left", vertical="center")

        for col_idx in overtime_cols:
            cell = ws.cell(row=row_idx, column=col_idx)
            if cell.value not in {None, "", "00:00", 0}:
                cell.fill = SUCCESS_FILL
                cell.font = Font(bold=True, color="166534")


def _signed_duration(minutes: int) -> str:
    sign = "-" if minutes < 0 else ""
    return f"{sign}{format_duration(abs(minutes))}"


def _build_summary_sheet(ws: Worksheet, closing: MonthClosing) -> None:
    settlement = closing.settlement
    ledger = closing.ledger
    totals = closing.classification.totals

    _merge_title(ws, 1, f"Fechamento {closing.month:02d}/{closing.year}")
    ws.append([])
    ws.append(["Item", "Valor"])
    _style_header(ws, 3)
    rows: list[tuple[str, object]] = [
        ("Dias uteis", settlement.business_days),
        ("Domingos e feriados", settlement.rest_days),
        ("Valor hora", settlement.hourly_rate),
        ("HE 50%", format_duration(totals.tier_50)),
        ("HE 75%", format_duration(totals.tier_75)),
        ("HE 100%", format_duration(totals.tier_100)),
        ("HE 125%", format_duration(totals.tier_125)),
        ("Valor HE 50%", settlement.value_50),
        ("Valor HE 75%", settlement.value_75),
        ("Valor HE 100%", settlement.value_100),
        ("Valor HE 125%", settlement.value_125),
        ("Total horas extras", settlement.overtime_value),
        ("DSR sobre horas extras", settlement.dsr_value),
        ("Total proventos", settlement.gross),
        ("Base INSS", settlement.inss_base),
        ("INSS", settlement.inss),
        ("Base IR", settlement.ir_base),
        ("IR tabela tradicional", settlement.ir_traditional),
        ("Redutor IR", settlement.ir_reducer),
        ("IR devido", settlement.ir_total),
        ("Adiantamento bruto", settlement.advance_gross),
        ("IR retido no adiantamento", settlement.advance_ir),
        ("Adiantamento liquido", settlement.advance_net),
        ("IR no fechamento", settlement.ir_closing),
        ("Atrasos", format_duration(settlement.lateness_minutes)),
        ("Desconto atrasos", settlement.lateness_value),
        ("DSR sobre atrasos", settlement.lateness_dsr),
        ("Total descontos", settlement.total_deductions),
        ("Arredondamento", settlement.rounding),
        ("Liquido", settlement.net),
        ("Total recebido no mes", settlement.total_received),
        ("Saldo banco de horas", _signed_duration(ledger.balance_minutes)),
    ]
    for label, value in rows:
        ws.append([label, value])
    _style_metadata_rows(ws, start_row=4, end_row=ws.max_row)
    ws.freeze_panes = "A4"


def _build_weeks_sheet(ws: Worksheet, closing: MonthClosing) -> None:
    ws.append(WEEK_HEADERS)
    _style_header(ws)
    for summary in closing.classification.weekly_summaries:
        totals = summary.totals
        ws.append(
            [
                summary.key,
                summary.start.strftime("%d/%m/%Y"),
                summary.end.strftime("%d/%m/%Y"),
                format_duration(totals.tier_50),
                format_duration(totals.tier_75),
                format_duration(totals.tier_100),
                format_duration(totals.tier_125),
                format_duration(totals.banked),
                format_duration(totals.absence),
                summary.value,
            ]
        )
    _style_table_region(ws, header_row=1, data_end_row=ws.max_row)


def _build_days_sheet(ws: Worksheet, closing: MonthClosing) -> None:
    ws.append(DAY_HEADERS)
    _style_header(ws)
    for day in closing.classification.days:
        totals = day.totals
        ws.append(
            [
                day.date.strftime("%d/%m/%Y"),
                day.line,
                CARD_LABELS[day.card_type],
                day.week_key,
                format_duration(day.worked_minutes),
                format_duration(day.expected_minutes),
                format_duration(day.overtime_minutes),
                format_duration(totals.tier_50),
                format_duration(totals.tier_75),
                format_duration(totals.tier_100),
                format_duration(totals.tier_125),
                format_duration(totals.banked),
                format_duration(totals.absence),
                "Sim" if day.is_manual_annotation else "-",
            ]
        )
    _style_table_region(ws, header_row=1, data_end_row=ws.max_row)


def _build_ledger_sheet(ws: Worksheet, closing: MonthClosing) -> None:
    ledger = closing.ledger
    ws.append(LEDGER_HEADERS)
    _style_header(ws)
    for entry in ledger.entries:
        ws.append(
            [
                entry.date.strftime("%d/%m/%Y"),
                entry.line,
                LEDGER_KIND_LABELS[entry.kind],
                entry.minutes,
                entry.balance_minutes,
                entry.description,
            ]
        )
    data_end_row = ws.max_row
    _style_table_region(ws, header_row=1, data_end_row=data_end_row)
    for row_idx in range(2, data_end_row + 1):
        minutes_cell = ws.cell(row=row_idx, column=4)
        if isinstance(minutes_cell.value, int) and minutes_cell.value < 0:
            minutes_cell.fill = ALERT_FILL
            minutes_cell.font = Font(bold=True, color="9F1239")

    ws.append([])
    ws.append(["Creditos", ledger.credit_minutes])
    ws.append(["Debitos", ledger.debit_minutes])
    ws.append(["Saldo", ledger.balance_minutes])
    _style_metadata_rows(ws, start_row=data_end_row + 2, end_row=ws.max_row)


def build_closing_xlsx_bytes(closing: MonthClosing) -> bytes:
    wb = Workbook()
    summary_ws = wb.active
    summary_ws.title = SUMMARY_SHEET
    _build_summary_sheet(summary_ws, closing)
    _build_weeks_sheet(wb.create_sheet(WEEKS_SHEET), closing)
    _build_days_sheet(wb.create_sheet(DAYS_SHEET), closing)
    _build_ledger_sheet(wb.create_sheet(LEDGER_SHEET), closing)

    for ws in wb.worksheets:
        _auto_width(ws)

    stream = BytesIO()
    wb.save(stream)
    return stream.getvalue()
