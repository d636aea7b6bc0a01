"""
Parsing des rapports de flotte (xlsx, xls, csv) en lignes camion non résolues.

Le fichier a déjà été validé (type, taille, nom) avant d'arriver ici. Le parser :
- lit la première feuille en lignes de cellules
- détecte la ligne d'en-têtes (S/N, TRUCK, TRAILER, POSITION, STATUS, ...)
  et le type de rapport (IMPORT ou NO_ORDER)
- découpe les lignes en groupes de flotte grâce aux lignes titre intercalées
  ("CONKEN 4 TRUCKS", "RELOAD 313MT DSM-LIKASI")
- ignore et compte les lignes vides ou malformées, sans jamais interrompre l'import

Un fichier lisible mais sans camion reconnu renvoie zéro ligne : c'est un
avertissement pour l'appelant, pas une erreur.
"""

import csv
import datetime as dt
import io
import logging
import re
import zipfile
from typing import Any, Dict, List, Optional, Tuple

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from fleettrack.exceptions import UnreadableReportError
from fleettrack.models.fleet_snapshot import TRUCK_NO_MAX_LENGTH
from fleettrack.schemas.fleet import ParsedReport, RawTruckRecord, SkippedRow
from fleettrack.services.checkpoint_matcher import normalize_location

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {"xlsx", "xls", "csv"}

DEFAULT_GROUP_IMPORT = "UNGROUPED"
DEFAULT_GROUP_NO_ORDER = "NO ORDER - RETURN TRUCKS"

# En-têtes reconnus (comparés après normalize_location : "S/N" → "S N")
COLUMN_ALIASES: Dict[str, set] = {
    "truck": {"TRUCK", "TRUCK NO", "TRUCK NUMBER", "VEHICLE", "VEHICLE NO", "HORSE", "REG NO"},
    "trailer": {"TRAILER", "TRAILER NO", "TRAILER NUMBER"},
    "location": {"POSITION", "LOCATION", "CURRENT POSITION", "CURRENT LOCATION", "CHECKPOINT"},
    "status": {"STATUS", "REMARKS", "REMARK"},
    "vehicle_type": {"TYPE", "VEHICLE TYPE", "TRUCK TYPE", "BODY TYPE"},
    "journey": {"RETURN", "RETURN INFO", "JOURNEY", "DESTINATION"},
    "departure": {"DEPT DATE", "DEPARTURE DATE", "DEPARTURE", "DEPT", "DATE OF DEPARTURE"},
    "today": {"DATE TODAY", "TODAY", "REPORT DATE"},
}
SERIAL_HEADERS = {"S N", "SN", "S NO", "SNO"}

# Positions fixes (index 0) des deux mises en page connues, si les en-têtes sont illisibles :
# IMPORT   : S/N, TRUCK, TRAILER, POSITION, STATUS, TYPE, RETURN, DSJ, DEPT DATE, DATE TODAY
# NO_ORDER : S/N, TRUCK, TRAILER, POSITION, TYPE, STATUS, C40, DSJ, DEPT DATE, DATE TODAY
FALLBACK_COLUMNS: Dict[str, Dict[str, int]] = {
    "IMPORT": {
        "truck": 1, "trailer": 2, "location": 3, "status": 4,
        "vehicle_type": 5, "journey": 6, "departure": 8, "today": 9,
    },
    "NO_ORDER": {
        "truck": 1, "trailer": 2, "location": 3, "vehicle_type": 4,
        "status": 5, "departure": 8, "today": 9,
    },
}

GROUP_HEADER_PATTERNS = [
    re.compile(r"^\s*[A-Z]+\s+\d+\s+TRUCKS?", re.IGNORECASE),
    re.compile(r"^\s*(RELOAD|BRIDGE|IMPALA|POSEIDON|POLYTRA)\s+\d+\s*MT", re.IGNORECASE),
]

_NUMERIC = re.compile(r"^[+-]?\d+([.,]\d+)?$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2,4})$")
_DAY_MONTH_NAME = re.compile(r"^(\d{1,2})[\s/-]*([A-Za-z]{3})[A-Za-z]*(?:[\s/,-]+(\d{2,4}))?$")
_MONTHS = {m: i for i, m in enumerate(
    ["JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC"], start=1
)}
_EMPTY_MARKERS = {"", "NA", "N/A", "-", "NIL"}
_EXCEL_EPOCH = dt.date(1899, 12, 30)

Row = List[Any]


# ----------------------------------------------------------------
# Lecture des fichiers
# ----------------------------------------------------------------

def _detect_separator(sample: str) -> str:
    """Détecte le séparateur CSV (virgule ou point-virgule)."""
    if sample.count(";") > sample.count(","):
        return ";"
    return ","


def _read_csv(content: bytes) -> List[Row]:
    try:
        text = content.decode("utf-8-sig")  # utf-8-sig gère le BOM Excel
    except UnicodeDecodeError:
        text = content.decode("latin-1")
    lines = text.splitlines()
    first = next((line for line in lines if line.strip()), "")
    reader = csv.reader(io.StringIO(text), delimiter=_detect_separator(first))
    return [list(row) for row in reader]


def _read_xlsx(content: bytes) -> List[Row]:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as exc:
        raise UnreadableReportError(f"Classeur Excel illisible : {exc}") from exc
    try:
        if not workbook.worksheets:
            raise UnreadableReportError("Aucune feuille dans le classeur Excel.")
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_xls(content: bytes) -> List[Row]:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except (xlrd.XLRDError, CompDocError, zipfile.BadZipFile) as exc:
        raise UnreadableReportError(f"Classeur Excel (xls) illisible : {exc}") from exc
    if book.nsheets == 0:
        raise UnreadableReportError("Aucune feuille dans le classeur Excel.")
    sheet = book.sheet_by_index(0)
    rows: List[Row] = []
    for r in range(sheet.nrows):
        row: Row = []
        for cell in sheet.row(r):
            if cell.ctype == xlrd.XL_CELL_DATE:
                row.append(xlrd.xldate_as_datetime(cell.value, book.datemode))
            else:
                row.append(cell.value)
        rows.append(row)
    return rows


def read_rows(content: bytes, extension: str) -> List[Row]:
    """Première feuille du fichier sous forme de liste de lignes."""
    ext = extension.lower().lstrip(".")
    if ext == "csv":
        return _read_csv(content)
    if ext == "xlsx":
        return _read_xlsx(content)
    if ext == "xls":
        return _read_xls(content)
    raise UnreadableReportError(f"Extension non supportée : {extension}")


# ----------------------------------------------------------------
# Cellules et dates
# ----------------------------------------------------------------

def cell_text(value: Any) -> str:
    """Texte d'une cellule : 12.0 → "12", dates au format ISO, espaces compactés."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, dt.datetime):
        return value.date().isoformat()
    if isinstance(value, dt.date):
        return value.isoformat()
    return " ".join(str(value).split())


def parse_date(value: Any, reference: Optional[dt.date] = None) -> Optional[dt.date]:
    """
    Convertit une cellule en date.

    Formats gérés : dates natives, numéros de série Excel, ISO (2025-01-23),
    jour en premier (23/01/2025, 23-01-25), jour + mois abrégé (23-Jan, 23 Jan 2025).
    Les dates antérieures à 2000 sont considérées comme invalides.

    Sans année, la date prend l'année de `reference` (aujourd'hui par défaut),
    ou l'année précédente si elle tomberait après `reference` : un départ le
    "28-Dec" sur un rapport du 5 janvier date de décembre dernier.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, dt.datetime):
        result = value.date()
    elif isinstance(value, dt.date):
        result = value
    elif isinstance(value, (int, float)):
        if not 36526 <= value <= 73050:  # 2000-01-01 .. 2099-12-31
            return None
        result = _EXCEL_EPOCH + dt.timedelta(days=int(value))
    else:
        result = _parse_date_text(str(value).strip(), reference)
    if result is None or result.year < 2000:
        return None
    return result


def _parse_date_text(text: str, reference: Optional[dt.date]) -> Optional[dt.date]:
    if text.upper() in _EMPTY_MARKERS:
        return None
    try:
        return dt.date.fromisoformat(text[:10])
    except ValueError:
        pass

    match = _DAY_MONTH_YEAR.match(text)
    if match:
        first, second, year = (int(g) for g in match.groups())
        if year < 100:
            year += 2000
        # Jour en premier (format régional), puis mois en premier
        for day, month in ((first, second), (second, first)):
            try:
                return dt.date(year, month, day)
            except ValueError:
                continue
        return None

    match = _DAY_MONTH_NAME.match(text)
    if match:
        day = int(match.group(1))
        month = _MONTHS.get(match.group(2).upper())
        if month is None:
            return None
        if match.group(3):
            year = int(match.group(3))
            year = year + 2000 if year < 100 else year
            try:
                return dt.date(year, month, day)
            except ValueError:
                return None
        return _without_year(day, month, reference or dt.date.today())
    return None


def _without_year(day: int, month: int, reference: dt.date) -> Optional[dt.date]:
    for year in (reference.year, reference.year - 1):
        try:
            candidate = dt.date(year, month, day)
        except ValueError:
            continue  # 29 février
        if candidate <= reference:
            return candidate
    return None


# ----------------------------------------------------------------
# Forme des lignes
# ----------------------------------------------------------------

def _is_blank(row: Row) -> bool:
    return all(not cell_text(cell) for cell in row)


def _cell(row: Row, index: Optional[int]) -> Any:
    if index is None or index >= len(row):
        return None
    return row[index]


def _map_header(row: Row) -> Optional[Dict[str, int]]:
    """Colonnes reconnues si la ligne est une ligne d'en-têtes, sinon None."""
    normalized = [normalize_location(cell_text(cell)) for cell in row]
    mapping: Dict[str, int] = {}
    for field, aliases in COLUMN_ALIASES.items():
        for index, text in enumerate(normalized):
            if text in aliases:
                mapping[field] = index
                break

    first = next((text for text in normalized if text), "")
    if "truck" in mapping and "location" in mapping:
        return mapping
    if first in SERIAL_HEADERS:
        mapping.setdefault("serial", normalized.index(first))
        return mapping
    return None


def _is_group_header(row: Row, truck_column: int) -> bool:
    """
    Ligne titre de groupe : elle n'a pas la forme d'une ligne camion.
    Soit une seule cellule texte (non numérique, hors colonne camion),
    soit une première cellule au format connu avec la colonne camion vide.
    """
    filled = [(i, cell) for i, cell in enumerate(row) if cell_text(cell)]
    if not filled:
        return False

    first_index, first_cell = filled[0]
    first_text = cell_text(first_cell)
    if any(p.match(first_text) for p in GROUP_HEADER_PATTERNS) and not cell_text(_cell(row, truck_column)):
        return True

    if len(filled) != 1 or first_index == truck_column:
        return False
    if isinstance(first_cell, (int, float, dt.date)) or _NUMERIC.match(first_text):
        return False
    return parse_date(first_cell) is None


def _detect_report_type(file_name: str, preamble: List[Row]) -> str:
    texts = [normalize_location(file_name)]
    texts += [normalize_location(cell_text(cell)) for row in preamble for cell in row]
    if any(" NO ORDER " in f" {text} " for text in texts):
        return "NO_ORDER"
    return "IMPORT"


def _upper(value: Any) -> Optional[str]:
    text = cell_text(value).upper()
    return text or None


# ----------------------------------------------------------------
# Parsing
# ----------------------------------------------------------------

def parse_fleet_report(content: bytes, extension: str, file_name: str = "") -> ParsedReport:
    """
    Parse un rapport de flotte validé et renvoie les lignes camion non résolues.

    Lève UnreadableReportError si le classeur ne peut pas être ouvert.
    """
    rows = read_rows(content, extension)

    report_type = _detect_report_type(file_name, [])
    columns: Optional[Dict[str, int]] = None
    preamble: List[Row] = []
    current_group: Optional[str] = None
    pending: List[Tuple[str, Row]] = []  # (groupe, ligne) à convertir après la date du rapport
    rejected: List[SkippedRow] = []
    blank_rows = 0

    for row_num, row in enumerate(rows, start=1):
        if _is_blank(row):
            if columns is not None:
                blank_rows += 1
            continue

        header = _map_header(row)
        if header is not None:
            if columns is None:
                report_type = _detect_report_type(file_name, preamble)
                current_group = _group_from_preamble(preamble, report_type)
            columns = {**FALLBACK_COLUMNS[report_type], **header} if "truck" not in header else header
            continue

        if columns is None:
            preamble.append(row)
            continue

        if _is_group_header(row, columns["truck"]):
            current_group = cell_text(next(cell for cell in row if cell_text(cell)))
            continue

        truck_no = _upper(_cell(row, columns.get("truck")))
        location = cell_text(_cell(row, columns.get("location")))
        content_preview = ", ".join(cell_text(c) for c in row if cell_text(c))
        if not truck_no:
            rejected.append(SkippedRow(row=row_num, content=content_preview, reason="Numéro de camion manquant"))
            continue
        if len(truck_no) > TRUCK_NO_MAX_LENGTH:
            rejected.append(SkippedRow(row=row_num, content=content_preview, reason="Numéro de camion trop long"))
            continue
        if not location:
            rejected.append(SkippedRow(row=row_num, content=content_preview, reason="Position manquante"))
            continue

        group = current_group or (DEFAULT_GROUP_NO_ORDER if report_type == "NO_ORDER" else DEFAULT_GROUP_IMPORT)
        pending.append((group, row))

    report_date = _find_report_date(preamble, pending, columns)

    records = [
        RawTruckRecord(
            fleet_group=group,
            truck_no=_upper(_cell(row, columns["truck"])),
            trailer_no=_upper(_cell(row, columns.get("trailer"))),
            raw_location=cell_text(_cell(row, columns["location"])),
            raw_status=_upper(_cell(row, columns.get("status"))),
            vehicle_type=_upper(_cell(row, columns.get("vehicle_type"))),
            departure_date=parse_date(_cell(row, columns.get("departure")), reference=report_date),
            raw_journey_text=cell_text(_cell(row, columns.get("journey"))) or None,
        )
        for group, row in pending
    ]

    if columns is None:
        logger.warning("Aucune ligne d'en-têtes reconnue dans %s (%d lignes lues)", file_name, len(rows))

    logger.info(
        "Rapport %s parsé : type=%s, date=%s, %d camions, %d lignes ignorées",
        file_name, report_type, report_date, len(records), blank_rows + len(rejected),
    )

    return ParsedReport(
        report_type=report_type,
        report_date=report_date,
        records=records,
        skipped_rows=blank_rows + len(rejected),
        rejected=rejected,
    )


def _group_from_preamble(preamble: List[Row], report_type: str) -> Optional[str]:
    """
    Groupe ouvert par les lignes au-dessus du premier en-tête.
    IMPORT : dernière ligne titre. NO_ORDER : seulement un titre au format connu,
    le titre du document n'étant pas un groupe.
    """
    for row in reversed(preamble):
        if not _is_group_header(row, FALLBACK_COLUMNS[report_type]["truck"]):
            continue
        text = cell_text(next(cell for cell in row if cell_text(cell)))
        if _date_in_text(text):
            continue
        if report_type == "IMPORT" or any(p.match(text) for p in GROUP_HEADER_PATTERNS):
            return text
    return None


def _find_report_date(
    preamble: List[Row],
    pending: List[Tuple[str, Row]],
    columns: Optional[Dict[str, int]],
) -> dt.date:
    """Première date du préambule, sinon DATE TODAY de la première ligne camion, sinon aujourd'hui."""
    for row in preamble[:10]:
        for cell in row:
            found = parse_date(cell) or _date_in_text(cell_text(cell))
            if found:
                return found

    if pending and columns and "today" in columns:
        found = parse_date(_cell(pending[0][1], columns["today"]))
        if found:
            return found

    logger.warning("Aucune date de rapport trouvée, date du jour utilisée.")
    return dt.date.today()


def _date_in_text(text: str) -> Optional[dt.date]:
    """Date contenue dans un titre ("FLEET REPORT 23-01-2025")."""
    for token in re.findall(r"\d{1,2}[/.-]\d{1,2}[/.-]\d{2,4}|\d{4}-\d{2}-\d{2}", text):
        found = parse_date(token)
        if found:
            return found
    return None
