from datetime import date, datetime

import pytest
from PIL import Image

import timetable_to_calendar_nichiyaku as core

HEADER_DATES = ("10月9日(月曜日)", "10月10日(火曜日)", "10月11日(水曜日)")
DAY = date(2023, 10, 9)


def lecture(room: str, slot: int, subject: str = "生化学", day: date = DAY) -> core.Lecture:
    return core.Lecture(
        date=day,
        location="1号館",
        room=room,
        slot=slot,
        subject=subject,
        teacher="山田",
        lecture_method="face-to-face",
        school_grade=1,
    )


def waiting(room: str, slot: int, day: date = DAY) -> core.WaitingRoom:
    return core.WaitingRoom(date=day, location="1号館", room=room, slot=slot)


def at(hhmm: str, day: date = DAY) -> datetime:
    return datetime.strptime(f"{day.isoformat()} {hhmm}", "%Y-%m-%d %H:%M").replace(tzinfo=core.TIMEZONE)


def run_in(template, row, col, text, width=20.0):
    """A glyph run sitting inside cell (row, col) of `template`."""
    left = template.column_edges[col] + 10
    top = (template.row_edges[row] + template.row_edges[row + 1]) / 2
    return core.GlyphRun(left=left, top=top, width=width, height=10.0, text=text)


def paint(raster, template, row, col, rgb):
    x, y = core.cell_anchor(template, row, col)
    raster.putpixel((int(x), int(y)), rgb)


@pytest.fixture
def template():
    return core.TEMPLATES[0]


@pytest.fixture
def raster():
    img = Image.new("RGB", (1800, 1100), (255, 255, 255))
    yield img
    img.close()


@pytest.fixture
def grid(template):
    """Empty normalized grid for `template` with the day headers of both sections filled in."""
    n_rows = len(template.row_edges) - 1
    n_cols = len(template.column_edges) - 1
    g = [["" for _ in range(n_cols)] for _ in range(n_rows)]
    for section in template.sections:
        header_row = section.start_row - core.DATE_HEADER_ROW_OFFSET
        for block, text in zip(core.DAY_BLOCK_COLUMNS, HEADER_DATES):
            g[header_row][block + core.DATE_HEADER_COLUMN_OFFSET] = text
    return g


@pytest.fixture
def header_runs(template):
    runs = []
    for section in template.sections:
        header_row = section.start_row - core.DATE_HEADER_ROW_OFFSET
        for block, text in zip(core.DAY_BLOCK_COLUMNS, HEADER_DATES):
            runs.append(run_in(template, header_row, block + core.DATE_HEADER_COLUMN_OFFSET, text, width=60.0))
    return runs
