"""Tests for the CSV price loader."""
from datetime import date

import pytest

from horizon.data.csv_source import load_prices_csv
from horizon.errors import DateRangeEmptyError, InvalidSeriesError


def _write(tmp_path, text, name="prices.csv"):
    path = tmp_path / name
    path.write_text(text)
    return path


CSV = """Date,Open,High,Low,Close,Volume
2024-01-03,11,12,10,11.5,1200
2024-01-02,10,11,9,10.5,1000
2024-01-04,11.5,13,11,12.5,900
"""


class TestLoadPricesCsv:
    def test_sorted_and_typed(self, tmp_path):
        series = load_prices_csv(_write(tmp_path, CSV))
        assert [p.date for p in series] == [date(2024, 1, 2), date(2024, 1, 3), date(2024, 1, 4)]
        assert series[0].close == 10.5
        assert series[0].volume == 1000.0

    def test_case_insensitive_columns_and_missing_volume(self, tmp_path):
        text = "date,OPEN,high,Low,close\n2024-01-02,10,11,9,10.5\n"
        series = load_prices_csv(_write(tmp_path, text))
        assert series[0].volume == 0.0

    def test_date_filter(self, tmp_path):
        series = load_prices_csv(_write(tmp_path, CSV), start=date(2024, 1, 3))
        assert len(series) == 2

    def test_filter_to_nothing(self, tmp_path):
        with pytest.raises(DateRangeEmptyError):
            load_prices_csv(_write(tmp_path, CSV), start=date(2025, 1, 1))

    def test_missing_columns(self, tmp_path):
        with pytest.raises(InvalidSeriesError, match="close"):
            load_prices_csv(_write(tmp_path, "Date,Open,High,Low\n2024-01-02,1,1,1\n"))

    def test_duplicate_dates(self, tmp_path):
        text = "Date,Open,High,Low,Close\n2024-01-02,1,1,1,1\n2024-01-02,1,1,1,1\n"
        with pytest.raises(InvalidSeriesError, match="duplicate"):
            load_prices_csv(_write(tmp_path, text))

    def test_invalid_ohlc(self, tmp_path):
        text = "Date,Open,High,Low,Close\n2024-01-02,1,1,1,5\n"
        with pytest.raises(InvalidSeriesError):
            load_prices_csv(_write(tmp_path, text))

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_prices_csv(tmp_path / "nope.csv")
