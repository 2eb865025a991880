"""
PDF timetable → schedule JSON / ICS calendar (Nichiyaku room-allocation sheets)

- Input: a timetable PDF (CLI arg). If omitted, the script auto-selects the first .pdf in the current folder.
- Output: a .json file with the consolidated events, and optionally a filtered .ics calendar.
- Approach: place pdfplumber words on a known coordinate template, read grade / waiting-room from the
  background color of each cell on the rendered page, resolve each day block's date from the header row,
  then sort all slots and merge adjacent identical ones into single events.
"""

import argparse
import glob
import hashlib
import io
import json
import logging
import os
import re
import sys
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pdfplumber
from ics import Calendar, Event

logger = logging.getLogger(__name__)


# The sheets only carry month/day. Year is not printed anywhere in the document.
SCHEDULE_YEAR = 2023
TIMEZONE = ZoneInfo("Asia/Tokyo")
# 72 dpi keeps one raster pixel per PDF point, which is the space the templates are measured in
RASTER_RESOLUTION = 72
ANCHOR_INSET = 7

# Slot to time mapping (24h)
SLOT_TIMES = {
    1: ("09:15", "10:45"),
    2: ("11:00", "12:30"),
    3: ("13:30", "15:00"),
    4: ("15:15", "16:45"),
}

WAITING_ROOM = "waiting room"
EVENT_TYPES = ("lecture", "event", WAITING_ROOM)

# Background color → school grade, or the waiting-room marker
COLOR_PALETTE = (
    ((204, 255, 255), 1),
    ((255, 255, 0), 2),
    ((255, 153, 204), 3),
    ((255, 204, 153), 4),
    ((204, 204, 255), WAITING_ROOM),
)
NO_GRADE_COLOR = (255, 255, 255)

LECTURE_METHODS = {"対": "face-to-face", "配": "live", "オ": "video"}

# Section-relative row ranges (inclusive) per building
LOCATION_BUCKETS = (
    (0, 5, "1号館"),
    (6, 13, "2号館"),
    (14, 17, "3号館"),
)

# Columns: location, room, capacity, then 3 days x 4 slots
ROOM_COLUMN = 1
DAY_BLOCK_COLUMNS = (3, 7, 11)
SLOTS_PER_DAY = 4
# Header cell like "10月9日(月曜日)" sits two rows above a section, over the block's 2nd slot
DATE_HEADER_ROW_OFFSET = 2
DATE_HEADER_COLUMN_OFFSET = 1

CAMPUS_NAME = "日本薬科大学 お茶の水キャンパス"
WAITING_ROOM_TITLE = "学生控室"
UID_DOMAIN = "scper.momizi.app"


class ScheduleParseError(Exception):
    pass


class StructuralLayoutError(ScheduleParseError):
    """The grid does not have the shape a template promised (rows, columns, dates)."""


class ClassificationError(ScheduleParseError):
    """A cell's text cannot be read as a lecture ("対:subject" style)."""


class DocumentParseFailure(ScheduleParseError):
    def __init__(self, page_number: int, failures: list[tuple[str, ScheduleParseError]]):
        self.page_number = page_number
        self.failures = failures
        detail = "; ".join(f"{name}: {err}" for name, err in failures)
        super().__init__(f"Failed to parse PDF: page {page_number} matched no layout template ({detail})")


@dataclass(frozen=True)
class GlyphRun:
    left: float
    top: float
    width: float
    height: float
    text: str


@dataclass(frozen=True)
class Section:
    start_row: int
    end_row: int


@dataclass(frozen=True)
class CoordinateTemplate:
    name: str
    column_edges: tuple[float, ...]
    row_edges: tuple[float, ...]
    sections: tuple[Section, ...]


SECTIONS = (Section(start_row=2, end_row=20), Section(start_row=23, end_row=41))

# Known re-typesets of the same master sheet, tried in this order
TEMPLATES = (
    CoordinateTemplate(
        name="revision-a",
        column_edges=(
            81, 113, 154, 185, 317, 449, 581, 713, 844, 976, 1108, 1240, 1372, 1504,
            1636, 1768,
        ),
        row_edges=(
            73, 91, 109, 140, 160, 191, 211, 242, 262, 292, 312, 343, 363, 394, 414,
            445, 465, 496, 516, 546, 566, 585, 603, 621, 651, 672, 702, 723, 753, 773,
            804, 824, 854, 875, 905, 926, 956, 977, 1007, 1028, 1057, 1078,
        ),
        sections=SECTIONS,
    ),
    CoordinateTemplate(
        name="revision-b",
        column_edges=(
            82.1, 113.5, 154.3, 185.6, 317.6, 449.3, 581.3, 713, 844.9, 976.8, 1108.5,
            1240.3, 1372.3, 1504.1, 1635.9, 1767.8,
        ),
        row_edges=(
            73.6, 91.8, 110.2, 140.5, 160.9, 161.1, 191.2, 211.9, 242, 262.5, 292.8,
            313.2, 343.3, 363.6, 394.2, 414.6, 444.9, 465.4, 495.5, 516, 546.5, 566.9,
            584.8, 603.4, 621.4, 651.7, 672.2, 702.5, 722.9, 753, 773.3, 804.1, 824.5,
            854.6, 875.1, 905.6, 925.9, 956.2, 976.7, 1006.7, 1027.6, 1057.5, 1078.3,
        ),
        sections=SECTIONS,
    ),
    CoordinateTemplate(
        name="revision-c",
        column_edges=(
            78, 108, 147, 177, 306, 433, 562, 690, 818, 947, 1075, 1203, 1331, 1460,
            1588, 1716,
        ),
        row_edges=(
            71, 89, 108, 137, 157, 186, 206, 236, 256, 285, 305, 334, 354, 383, 403,
            432, 452, 482, 501, 531, 551, 568, 587, 606, 635, 655, 684, 704, 734, 754,
            783, 803, 832, 852, 881, 901, 930, 950, 980, 1000, 1029, 1049,
        ),
        sections=SECTIONS,
    ),
)


@dataclass(frozen=True)
class Lecture:
    date: date
    location: str
    room: str
    slot: int
    subject: str
    teacher: str
    lecture_method: str
    school_grade: int

    kind = "lecture"


@dataclass(frozen=True)
class CourseEvent:
    date: date
    location: str
    room: str
    slot: int
    subject: str
    school_grade: int

    kind = "event"


@dataclass(frozen=True)
class WaitingRoom:
    date: date
    location: str
    room: str
    slot: int

    kind = WAITING_ROOM


RawEvent = Lecture | CourseEvent | WaitingRoom


@dataclass(frozen=True)
class DisplayEvent:
    event: RawEvent
    start: datetime
    end: datetime

    def to_record(self) -> dict:
        ev = self.event
        record = {"type": ev.kind, "location": ev.location, "room": ev.room}
        if not isinstance(ev, WaitingRoom):
            record["schoolGrade"] = ev.school_grade
            record["subject"] = ev.subject
        if isinstance(ev, Lecture):
            record["teacher"] = ev.teacher
            record["lectureMethod"] = ev.lecture_method
        record["dateTime"] = {"start": self.start.isoformat(), "end": self.end.isoformat()}
        return record


@dataclass(frozen=True)
class PageParsed:
    page_number: int
    template: CoordinateTemplate
    events: list[RawEvent]


@dataclass(frozen=True)
class AllTemplatesFailed:
    page_number: int
    failures: list[tuple[str, ScheduleParseError]]


def find_default_pdf() -> str | None:
    pdfs = sorted(glob.glob("*.pdf"))
    return pdfs[0] if pdfs else None


# ---------------------------------------------------------------------------
# Page geometry: text runs and raster
# ---------------------------------------------------------------------------


def extract_glyph_runs(page) -> list[GlyphRun]:
    """Text runs of a pdfplumber page in page-pixel space (72 dpi, origin top-left).

    `top` is the run's baseline side: the row edges were measured against where the text
    sits, and a run's box often overhangs into the row below.
    """
    runs: list[GlyphRun] = []
    for w in page.extract_words(keep_blank_chars=True, use_text_flow=True):
        x0, x1 = float(w["x0"]), float(w["x1"])
        top, bottom = float(w["top"]), float(w["bottom"])
        runs.append(GlyphRun(left=x0, top=bottom, width=x1 - x0, height=bottom - top, text=w["text"]))
    return runs


def render_page(page, resolution: int = RASTER_RESOLUTION):
    return page.to_image(resolution=resolution).original.convert("RGB")


def sample_pixel(raster, x: float, y: float) -> tuple[int, int, int]:
    px, py = int(x), int(y)
    width, height = raster.size
    if not (0 <= px < width and 0 <= py < height):
        raise StructuralLayoutError(f"Anchor ({x}, {y}) is outside the {width}x{height} raster")
    r, g, b = raster.getpixel((px, py))[:3]
    return (r, g, b)


def cell_anchor(template: CoordinateTemplate, row: int, col: int) -> tuple[float, float]:
    """Pixel inside the cell's top-left corner, clear of the grid lines."""
    try:
        return template.column_edges[col] + ANCHOR_INSET, template.row_edges[row] + ANCHOR_INSET
    except IndexError as exc:
        raise StructuralLayoutError(f"Invalid column index: cell ({row}, {col}) is outside template {template.name}") from exc


# ---------------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------------


def _find_span(edges, value: float, start: int = 0) -> int:
    for i in range(start, len(edges) - 1):
        if edges[i] <= value <= edges[i + 1]:
            return i
    return -1


def group_runs_by_cell(column_edges, row_edges, runs: list[GlyphRun]) -> list[list[list[GlyphRun]]]:
    """Bucket runs into cells[row][col].

    A run belongs to exactly one row (the one holding its `top`) but to every column its
    horizontal extent touches, so a long subject printed across slots lands in each of them.
    Runs outside the edges (page titles, footnotes) are dropped.
    """
    n_rows = len(row_edges) - 1
    n_cols = len(column_edges) - 1
    cells: list[list[list[GlyphRun]]] = [[[] for _ in range(n_cols)] for _ in range(n_rows)]
    for run in runs:
        row = _find_span(row_edges, run.top)
        col = _find_span(column_edges, run.left)
        if row == -1 or col == -1:
            continue
        end_col = _find_span(column_edges, run.left + run.width, start=col)
        if end_col == -1:
            continue
        for c in range(col, end_col + 1):
            cells[row][c].append(run)
    return cells


_FULLWIDTH_ALNUM = re.compile(r"[Ａ-Ｚａ-ｚ０-９]")


def zenkaku_to_hankaku(text: str) -> str:
    s = _FULLWIDTH_ALNUM.sub(lambda m: chr(ord(m.group(0)) - 0xFEE0), text)
    # every occurrence, not only the first
    s = s.replace("： ", ":")
    s = s.replace("　", " ")
    return s.strip()


def normalize_cells(cells: list[list[list[GlyphRun]]]) -> list[list[str]]:
    return [[zenkaku_to_hankaku("".join(run.text for run in cell)) for cell in row] for row in cells]


def _cell(grid: list[list[str]], row: int, col: int) -> str:
    if row < 0 or col < 0:
        raise StructuralLayoutError(f"Invalid column index: cell ({row}, {col})")
    try:
        return grid[row][col]
    except IndexError as exc:
        raise StructuralLayoutError(f"Invalid column index: cell ({row}, {col}) is outside the grid") from exc


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_HEADER_DATE = re.compile(r"(\d+)月(\d+)日.*")


def resolve_section_date(header_text: str, year: int = SCHEDULE_YEAR) -> date:
    """Parse a day header like "10月9日(月曜日)" into a date of `year`."""
    iso = _HEADER_DATE.sub(lambda m: f"{year}-{m.group(1)}-{m.group(2)}", header_text)
    try:
        return datetime.strptime(iso, "%Y-%m-%d").date()
    except ValueError as exc:
        raise StructuralLayoutError(f"Invalid date header: {header_text!r}") from exc


def classify_color(rgb: tuple[int, int, int]) -> int | str | None:
    for color, classification in COLOR_PALETTE:
        if rgb == color:
            return classification
    return None


def location_for_row(row_index: int) -> str:
    for first, last, name in LOCATION_BUCKETS:
        if first <= row_index <= last:
            return name
    raise StructuralLayoutError(f"Invalid location. rowIndex:{row_index}")


def parse_lecture_subject(text: str) -> tuple[str, str]:
    """Split "対:生化学" into ("face-to-face", "生化学")."""
    if len(text) < 2 or text[1] != ":":
        raise ClassificationError(f"Invalid lecture subject: {text!r}")
    tag = text[0]
    method = LECTURE_METHODS.get(tag)
    if method is None:
        raise ClassificationError(f"Unsupported lecture method: {tag!r} in {text!r}")
    return method, text[2:]


def classify_section(
    grid: list[list[str]],
    raster,
    template: CoordinateTemplate,
    section: Section,
    year: int = SCHEDULE_YEAR,
    page_number: int = 0,
) -> list[RawEvent]:
    events: list[RawEvent] = []
    header_row = section.start_row - DATE_HEADER_ROW_OFFSET
    # Odd rows hold the teacher names for the row above
    for row_index in range(0, section.end_row - section.start_row, 2):
        location = location_for_row(row_index)
        grid_row = section.start_row + row_index
        room = _cell(grid, grid_row, ROOM_COLUMN)

        for block in DAY_BLOCK_COLUMNS:
            for offset in range(SLOTS_PER_DAY):
                col = block + offset
                slot = offset + 1
                text = _cell(grid, grid_row, col)
                if text == "":
                    continue

                day = resolve_section_date(_cell(grid, header_row, block + DATE_HEADER_COLUMN_OFFSET), year)
                x, y = cell_anchor(template, grid_row, col)
                rgb = sample_pixel(raster, x, y)
                grade = classify_color(rgb)
                if grade is None:
                    if rgb == NO_GRADE_COLOR:
                        logger.debug("page=%d row=%d col=%d %r: skip, no grade is assigned", page_number, grid_row, col, text)
                    else:
                        # on-demand and other unassigned palettes are not supported yet
                        logger.info("page=%d row=%d col=%d %r: skip, unsupported color %s", page_number, grid_row, col, text, rgb)
                    continue

                if grade == WAITING_ROOM:
                    events.append(WaitingRoom(date=day, location=location, room=room, slot=slot))
                    logger.debug("Pushed waiting room. date=%s location=%s room=%s slot=%d", day, location, room, slot)
                    continue

                teacher = _cell(grid, grid_row + 1, col)
                if teacher == "":
                    events.append(CourseEvent(date=day, location=location, room=room, slot=slot, subject=text, school_grade=grade))
                    logger.debug("Pushed event. date=%s room=%s grade=%d slot=%d subject=%s", day, room, grade, slot, text)
                    continue

                method, subject = parse_lecture_subject(text)
                events.append(
                    Lecture(
                        date=day,
                        location=location,
                        room=room,
                        slot=slot,
                        subject=subject,
                        teacher=teacher,
                        lecture_method=method,
                        school_grade=grade,
                    )
                )
                logger.debug("Pushed lecture. date=%s room=%s grade=%d slot=%d subject=%s teacher=%s", day, room, grade, slot, subject, teacher)
    return events


def parse_page_with_template(
    runs: list[GlyphRun],
    raster,
    template: CoordinateTemplate,
    year: int = SCHEDULE_YEAR,
    page_number: int = 0,
) -> list[RawEvent]:
    cells = group_runs_by_cell(template.column_edges, template.row_edges, runs)
    grid = normalize_cells(cells)
    events: list[RawEvent] = []
    for section in template.sections:
        events.extend(classify_section(grid, raster, template, section, year=year, page_number=page_number))
    return events


def select_template(
    runs: list[GlyphRun],
    raster,
    templates=TEMPLATES,
    year: int = SCHEDULE_YEAR,
    page_number: int = 0,
) -> PageParsed | AllTemplatesFailed:
    """Return the events of the first template that reads the whole page."""
    failures: list[tuple[str, ScheduleParseError]] = []
    for template in templates:
        logger.info("Generating table data for page %d with template %s", page_number, template.name)
        try:
            events = parse_page_with_template(runs, raster, template, year=year, page_number=page_number)
        except (StructuralLayoutError, ClassificationError) as err:
            logger.warning("page=%d template=%s is failed: %s", page_number, template.name, err)
            failures.append((template.name, err))
            continue
        return PageParsed(page_number=page_number, template=template, events=events)
    return AllTemplatesFailed(page_number=page_number, failures=failures)


def extract_raw_events(pdf_bytes: bytes, templates=TEMPLATES, year: int = SCHEDULE_YEAR) -> list[RawEvent]:
    raw_events: list[RawEvent] = []
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        for page_number, page in enumerate(pdf.pages, start=1):
            logger.info("Page %d is processing...", page_number)
            runs = extract_glyph_runs(page)
            raster = render_page(page)
            try:
                result = select_template(runs, raster, templates, year=year, page_number=page_number)
            finally:
                raster.close()
                page.flush_cache()
            if isinstance(result, AllTemplatesFailed):
                raise DocumentParseFailure(result.page_number, result.failures)
            logger.info("Page %d: %d slots via %s", page_number, len(result.events), result.template.name)
            raw_events.extend(result.events)
    return raw_events


# ---------------------------------------------------------------------------
# Sorting and consolidation
# ---------------------------------------------------------------------------


def _room_sort_key(room: str) -> tuple:
    # numeric rooms first, in numeric order
    if room.isdecimal():
        return (0, int(room), "")
    return (1, 0, room)


def sort_events(events: list[RawEvent]) -> list[RawEvent]:
    return sorted(events, key=lambda ev: (ev.date, _room_sort_key(ev.room), ev.slot))


def slot_bounds(day: date, slot: int, tz=TIMEZONE) -> tuple[datetime, datetime]:
    start_s, end_s = SLOT_TIMES[slot]
    start = datetime.strptime(f"{day.isoformat()} {start_s}", "%Y-%m-%d %H:%M").replace(tzinfo=tz)
    end = datetime.strptime(f"{day.isoformat()} {end_s}", "%Y-%m-%d %H:%M").replace(tzinfo=tz)
    return start, end


def can_merge(current: RawEvent, following: RawEvent) -> bool:
    # slots need not be consecutive; a free slot between equal subjects is spanned
    if current.date != following.date or current.room != following.room:
        return False
    current_waiting = isinstance(current, WaitingRoom)
    following_waiting = isinstance(following, WaitingRoom)
    if current_waiting or following_waiting:
        return current_waiting and following_waiting
    return current.subject == following.subject


@dataclass(frozen=True)
class _Pending:
    first: RawEvent
    last: RawEvent

    def close(self) -> DisplayEvent:
        start, _ = slot_bounds(self.first.date, self.first.slot)
        _, end = slot_bounds(self.last.date, self.last.slot)
        return DisplayEvent(event=self.first, start=start, end=end)


def consolidate_events(sorted_events: list[RawEvent]) -> list[DisplayEvent]:
    """Merge runs of same date/room/subject (or consecutive waiting rooms) into one event.

    A merged event runs from its first slot's start to its last slot's end.
    """
    display: list[DisplayEvent] = []
    pending: _Pending | None = None
    for event in sorted_events:
        if pending is not None and can_merge(pending.last, event):
            pending = _Pending(first=pending.first, last=event)
            continue
        if pending is not None:
            display.append(pending.close())
        pending = _Pending(first=event, last=event)
    if pending is not None:
        display.append(pending.close())
    return display


def pdf_to_events(pdf_bytes: bytes, templates=TEMPLATES, year: int = SCHEDULE_YEAR) -> list[DisplayEvent]:
    raw_events = extract_raw_events(pdf_bytes, templates, year=year)
    return consolidate_events(sort_events(raw_events))


def pdf_path_to_events(pdf_path: str, templates=TEMPLATES, year: int = SCHEDULE_YEAR) -> list[DisplayEvent]:
    with open(pdf_path, "rb") as f:
        data = f.read()
    return pdf_to_events(data, templates, year=year)


# ---------------------------------------------------------------------------
# Output: JSON records, filters, ICS
# ---------------------------------------------------------------------------


def events_to_records(events: list[DisplayEvent]) -> list[dict]:
    return [ev.to_record() for ev in events]


def write_events_json(records: list[dict], output_path: str) -> None:
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(records, f, ensure_ascii=False, indent=2)


def filter_records(
    records: list[dict],
    types=EVENT_TYPES,
    school_grade: int | None = None,
    lesson_names: list[str] | None = None,
) -> list[dict]:
    """Select records for one student's calendar.

    Waiting rooms pass on type alone. Other records must match the grade, and lectures must
    start with one of `lesson_names`. A None grade or lesson list means "any".
    """
    out: list[dict] = []
    for rec in records:
        if rec["type"] not in types:
            continue
        if rec["type"] == WAITING_ROOM:
            out.append(rec)
            continue
        if school_grade is not None and rec.get("schoolGrade") != school_grade:
            continue
        if rec["type"] == "lecture" and lesson_names is not None:
            if not any(rec["subject"].startswith(name) for name in lesson_names):
                continue
        out.append(rec)
    return out


def lesson_names_by_grade(records: list[dict]) -> dict[int, list[str]]:
    lessons: dict[int, list[str]] = {}
    for rec in records:
        if rec["type"] != "lecture":
            continue
        names = lessons.setdefault(rec["schoolGrade"], [])
        if rec["subject"] not in names:
            names.append(rec["subject"])
    return lessons


def _record_uid(rec: dict) -> str:
    key = rec["location"] + rec["room"] + rec["dateTime"]["start"]
    return f"{hashlib.sha256(key.encode('utf-8')).hexdigest()}@{UID_DOMAIN}"


def build_ics(records: list[dict], output_path: str, cal_name: str | None = None) -> int:
    """Write records to an .ics file. Returns the number of events written."""
    cal = Calendar()
    for rec in records:
        title = WAITING_ROOM_TITLE if rec["type"] == WAITING_ROOM else rec["subject"]
        ev = Event()
        ev.name = f"【{rec['room']}】{title}"
        ev.begin = datetime.fromisoformat(rec["dateTime"]["start"])
        ev.end = datetime.fromisoformat(rec["dateTime"]["end"])
        ev.location = f"{CAMPUS_NAME}{rec['location']} {rec['room']}"
        if rec["type"] == "lecture":
            ev.description = f"講義室：{rec['room']}\n教師：{rec['teacher']}"
        ev.uid = _record_uid(rec)
        cal.events.add(ev)

    content = "".join(cal.serialize_iter())
    lines = content.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    out: list[str] = []
    for line in lines:
        if not line:
            continue
        out.append(line)
        if line.startswith("VERSION:"):
            out.append("CALSCALE:GREGORIAN")
            out.append("METHOD:PUBLISH")
            if cal_name:
                out.append(f"X-WR-CALNAME:{cal_name}")
            out.append(f"X-WR-TIMEZONE:{TIMEZONE.key}")

    with open(output_path, "wb") as f:
        f.write(("\r\n".join(out) + "\r\n").encode("utf-8"))
    return len(cal.events)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="timetable-to-calendar-nichiyaku",
        description="Extract the room/slot schedule from a Nichiyaku timetable PDF into JSON and ICS",
    )
    p.add_argument("pdf", nargs="?", help="timetable PDF (default: first .pdf in the current folder)")
    p.add_argument("-o", "--output", help="JSON output path (default: next to the PDF)")
    p.add_argument("--ics", help="also write a filtered .ics calendar to this path")
    p.add_argument("--types", nargs="+", choices=EVENT_TYPES, default=list(EVENT_TYPES), help="event types kept in the .ics")
    p.add_argument("--grade", type=int, choices=(1, 2, 3, 4), help="school grade kept in the .ics")
    p.add_argument("--lesson", action="append", dest="lessons", help="lecture name prefix kept in the .ics (repeatable)")
    p.add_argument("--list-lessons", action="store_true", help="print lecture names per grade")
    p.add_argument("--year", type=int, default=SCHEDULE_YEAR, help=f"calendar year of the sheet (default: {SCHEDULE_YEAR})")
    p.add_argument("--debug", action="store_true", help="verbose per-cell logging (same as TT_DEBUG=1)")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug or os.getenv("TT_DEBUG") == "1")

    pdf_path = args.pdf or find_default_pdf()
    if not pdf_path or not os.path.exists(pdf_path):
        print("PDF not found. Please run again and provide a valid path.")
        return 1

    try:
        events = pdf_path_to_events(pdf_path, year=args.year)
    except DocumentParseFailure as err:
        print(f"Could not parse timetable: {err}")
        return 1
    records = events_to_records(events)

    pdf_dir = os.path.dirname(os.path.abspath(pdf_path))
    pdf_stem = os.path.splitext(os.path.basename(pdf_path))[0]
    json_output = args.output or os.path.join(pdf_dir, f"{pdf_stem.replace(' ', '_')}.json")
    write_events_json(records, json_output)
    print(f"Schedule exported: {json_output} (events: {len(records)})")

    if args.list_lessons:
        for grade, names in sorted(lesson_names_by_grade(records).items()):
            print(f"{grade}年: {', '.join(names)}")

    if args.ics:
        selected = filter_records(records, types=args.types, school_grade=args.grade, lesson_names=args.lessons)
        count = build_ics(selected, args.ics, cal_name=pdf_stem)
        print(f"Calendar exported: {args.ics} (events: {count})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
