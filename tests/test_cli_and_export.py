from pathlib import Path

import openpyxl
import pytest

import config
import main
from output_engine.excel_exporter import export_to_excel
from output_engine.stats import summarize
from conftest import NOW, make_tender


def test_export_writes_tenders_and_statistics_sheets(tmp_path):
    tenders = [
        make_tender(id="a", title="Cloud Hosting", similarity=0.93, requirements=["Cloud", "Security"]),
        make_tender(id="b", budget=None, deadline=None),
    ]

    path = export_to_excel(tenders, summarize(tenders, NOW), title="Weekly", output_dir=str(tmp_path))

    wb = openpyxl.load_workbook(path)
    assert wb.sheetnames == ["Tenders", "Statistics"]

    ws = wb["Tenders"]
    assert ws["A1"].value.startswith("Weekly")
    assert ws["B2"].value == "Match"
    assert ws["B3"].value == 0.93
    assert ws["D3"].value == "a"
    assert ws["L3"].value == "Cloud, Security"
    assert ws["H4"].value == "Not disclosed"
    assert ws["N3"].value == "Open ↗"

    stats_ws = wb["Statistics"]
    assert stats_ws["A3"].value == "Total tenders"
    assert stats_ws["B3"].value == 2


def test_export_without_stats_has_one_sheet(tmp_path):
    path = export_to_excel([make_tender()], output_dir=str(tmp_path))
    assert openpyxl.load_workbook(path).sheetnames == ["Tenders"]


def test_cli_search_with_export(aggregator, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(config, "OUTPUT_DIR", str(tmp_path))
    args = main.build_parser().parse_args(["--search", "live", "--countries", "uk", "--export"])

    path = main.run_aggregator(args, aggregator)

    assert Path(path).parent == tmp_path.resolve()
    out = capsys.readouterr().out
    assert "SEARCH: LIVE" in out
    assert "uk live tender" in out


def test_cli_recommendations_from_profile_file(aggregator, tmp_path, capsys):
    profile = tmp_path / "profile.yaml"
    profile.write_text(
        "name: Acme\ncapabilities: [Civil Works]\ncountries: [uk]\ntotal_revenue: 4000000\n",
        encoding="utf-8",
    )
    args = main.build_parser().parse_args(["--profile", str(profile)])

    assert main.run_aggregator(args, aggregator) is None
    out = capsys.readouterr().out
    assert "RECOMMENDED FOR ACME" in out
    assert "You have experience in UK" in out


def test_cli_offline_stats(capsys):
    assert main.main(["--offline", "--stats"]) == 0
    assert "Total tenders   : 16" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["--offline", "--countries", "narnia"],
        ["--offline", "--search", "cloud", "--min-budget", "lots"],
        ["--offline", "--profile", "does-not-exist.yaml"],
    ],
)
def test_cli_bad_input_exits_with_2(argv):
    assert main.main(argv) == 2
