import math
import pytest

from specz.core.exceptions import LineListNotFoundException, LineNotFoundException
from specz.domain.services.line_list_service import LineListService


class TestLineListService:

    def test_built_in_catalog(self, monkeypatch):
        monkeypatch.delenv("SPECZ_LINE_LIST_PATH", raising=False)
        service = LineListService()
        lines = service.get_lines()
        assert [l.wavelength for l in lines] == sorted(l.wavelength for l in lines)
        assert service.get_line_wavelengths("Hα") == [6564.61]
        with pytest.raises(LineNotFoundException):
            service.get_line_wavelengths("Unobtainium")

    def test_reads_line_list_file(self, tmp_path):
        path = tmp_path / "lines.txt"
        path.write_text(
            "# label: wavelengths\n"
            "Ha: 6564.61\n"
            "OIII: 4960.30, 5008.24\n"
            "not a line\n"
            "Junk: abc, -5\n",
            encoding="utf-8",
        )
        service = LineListService(str(path))
        assert service.load_line_list() == {"Ha": [6564.61], "OIII": [4960.30, 5008.24]}
        assert [l.label for l in service.filter_lines_by_range(4000.0, 5000.0)] == ["OIII"]
        assert service.get_lines()[0].log_wavelength == pytest.approx(math.log10(4960.30))

    def test_missing_file(self, tmp_path):
        with pytest.raises(LineListNotFoundException):
            LineListService(str(tmp_path / "absent.txt")).get_lines()
