from types import SimpleNamespace

import pytest
from PIL import Image

import timetable_to_calendar_nichiyaku as core
from conftest import paint, run_in

GRADE_1 = (204, 255, 255)
WAITING = (204, 204, 255)


class FakePage:
    def __init__(self, runs, raster):
        self.runs = runs
        self.raster = raster
        self.flushed = False

    def extract_words(self, **kwargs):
        return [
            {"x0": r.left, "x1": r.left + r.width, "top": r.top - r.height, "bottom": r.top, "text": r.text}
            for r in self.runs
        ]

    def to_image(self, resolution):
        assert resolution == core.RASTER_RESOLUTION
        return SimpleNamespace(original=self.raster)

    def flush_cache(self):
        self.flushed = True


class FakePdf:
    def __init__(self, pages):
        self.pages = pages

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def open_pages(monkeypatch):
    def install(pages):
        monkeypatch.setattr(core.pdfplumber, "open", lambda stream: FakePdf(pages))

    return install


def good_page(template, header_runs):
    raster = Image.new("RGB", (1800, 1100), (255, 255, 255))
    runs = header_runs + [
        run_in(template, 2, 1, "１０１"),
        run_in(template, 2, 3, "対： 生化学"),
        run_in(template, 3, 3, "山田"),
        run_in(template, 2, 4, "対： 生化学"),
        run_in(template, 3, 4, "山田"),
        run_in(template, 4, 1, "102"),
        run_in(template, 4, 3, "控室"),
    ]
    paint(raster, template, 2, 3, GRADE_1)
    paint(raster, template, 2, 4, GRADE_1)
    paint(raster, template, 4, 3, WAITING)
    return FakePage(runs, raster)


def bad_page(template, header_runs):
    raster = Image.new("RGB", (1800, 1100), (255, 255, 255))
    runs = header_runs + [
        run_in(template, 2, 1, "101"),
        run_in(template, 2, 3, "不:英語"),
        run_in(template, 3, 3, "山田"),
    ]
    paint(raster, template, 2, 3, GRADE_1)
    return FakePage(runs, raster)


def test_extract_glyph_runs_uses_word_boxes(template) -> None:
    page = FakePage([core.GlyphRun(left=100, top=50, width=30, height=12, text="生化学")], None)
    assert core.extract_glyph_runs(page) == [core.GlyphRun(left=100.0, top=50.0, width=30.0, height=12.0, text="生化学")]


def test_pdf_to_events(template, header_runs, open_pages) -> None:
    page = good_page(template, header_runs)
    open_pages([page])

    records = core.events_to_records(core.pdf_to_events(b"%PDF", templates=(template,)))

    assert records == [
        {
            "type": "lecture",
            "location": "1号館",
            "room": "101",
            "schoolGrade": 1,
            "subject": "生化学",
            "teacher": "山田",
            "lectureMethod": "face-to-face",
            "dateTime": {"start": "2023-10-09T09:15:00+09:00", "end": "2023-10-09T12:30:00+09:00"},
        },
        {
            "type": "waiting room",
            "location": "1号館",
            "room": "102",
            "dateTime": {"start": "2023-10-09T09:15:00+09:00", "end": "2023-10-09T10:45:00+09:00"},
        },
    ]
    assert page.flushed


def test_failed_page_aborts_document(template, header_runs, open_pages) -> None:
    pages = [good_page(template, header_runs), bad_page(template, header_runs)]
    open_pages(pages)

    with pytest.raises(core.DocumentParseFailure) as ctx:
        core.extract_raw_events(b"%PDF", templates=(template,))

    assert ctx.value.page_number == 2
    assert [name for name, _ in ctx.value.failures] == ["revision-a"]
    assert "page 2" in str(ctx.value)
    assert all(p.flushed for p in pages)


def test_same_input_same_output(template, header_runs, open_pages) -> None:
    open_pages([good_page(template, header_runs)])
    first = core.events_to_records(core.pdf_to_events(b"%PDF", templates=(template,)))
    open_pages([good_page(template, header_runs)])
    second = core.events_to_records(core.pdf_to_events(b"%PDF", templates=(template,)))
    assert first == second
