import io
import sys
from pathlib import Path

import pdfplumber

# Local imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
import timetable_to_calendar_nichiyaku as core  # type: ignore


def dump_template(page_number: int, runs, raster, template) -> None:
    cells = core.group_runs_by_cell(template.column_edges, template.row_edges, runs)
    grid = core.normalize_cells(cells)
    print(f"-- page {page_number} / template {template.name}: {len(grid)} rows x {len(grid[0]) if grid else 0} cols --")
    for section in template.sections:
        header_row = section.start_row - core.DATE_HEADER_ROW_OFFSET
        headers = []
        for block in core.DAY_BLOCK_COLUMNS:
            col = block + core.DATE_HEADER_COLUMN_OFFSET
            headers.append(grid[header_row][col] if header_row < len(grid) and col < len(grid[header_row]) else "?")
        print(f"  section rows {section.start_row}-{section.end_row - 1}: dates {headers}")
        for r in range(section.start_row, min(section.end_row, len(grid))):
            for c, text in enumerate(grid[r]):
                if not text:
                    continue
                try:
                    x, y = core.cell_anchor(template, r, c)
                    rgb = core.sample_pixel(raster, x, y)
                except core.StructuralLayoutError as err:
                    rgb = f"<{err}>"
                label = core.classify_color(rgb) if isinstance(rgb, tuple) else None
                print(f"    [row {r:02d} col {c:02d}] {text!r} color={rgb} -> {label}")

    result = core.select_template(runs, raster, (template,), page_number=page_number)
    if isinstance(result, core.PageParsed):
        print(f"  OK: {len(result.events)} slots")
    else:
        for name, err in result.failures:
            print(f"  FAILED ({name}): {err}")


def main(pdf_path: str):
    print(f"PDF: {pdf_path}")
    core.configure_logging(debug=False)
    data = Path(pdf_path).read_bytes()
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page_number, page in enumerate(pdf.pages, start=1):
            runs = core.extract_glyph_runs(page)
            raster = core.render_page(page)
            print(f"== page {page_number}: {len(runs)} text runs, raster {raster.size[0]}x{raster.size[1]}")
            try:
                for template in core.TEMPLATES:
                    dump_template(page_number, runs, raster, template)
            finally:
                raster.close()
                page.flush_cache()


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python tools/debug_extract.py <path-to-pdf>")
        sys.exit(1)
    main(sys.argv[1])
