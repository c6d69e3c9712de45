# ABOUTME: Verifies the Sankey CLI exposes build/show/publish and writes the payload.
# ABOUTME: Runs the Typer app against temporary tables and configs.

import json

from typer.testing import CliRunner

from scripts import eip_sankey

runner = CliRunner()


def _write_config(tmp_path, groups_csv: str) -> str:
    (tmp_path / "groups.csv").write_text(groups_csv, encoding="utf-8")
    (tmp_path / "interventions.csv").write_text(
        "group_name,intervention_type,child_count\n1 SC,CIN,3000\n1 SC,CLA,1000\n2 EH SC,CIN,4000\n2 EH SC,CLA,0\n",
        encoding="utf-8",
    )
    config = tmp_path / "sankey.yaml"
    config.write_text(
        "tables:\n"
        "  groups: groups.csv\n"
        "  interventions: interventions.csv\n"
        "output:\n"
        "  path: out/sankey.json\n"
        "  publish_dir: shared\n",
        encoding="utf-8",
    )
    return str(config)


def test_cli_has_build_show_and_publish_commands():
    command_names = {cmd.name or cmd.callback.__name__ for cmd in eip_sankey.app.registered_commands}
    assert {"build", "show", "publish"} <= command_names


def test_build_writes_payload_and_publishes(tmp_path):
    config = _write_config(tmp_path, "group_name,child_count\n1 SC,4000\n2 EH SC,4000\n3 EH,22000\n")

    result = runner.invoke(eip_sankey.app, ["build", "--config", config, "--publish"])

    assert result.exit_code == 0, result.output
    payload = json.loads((tmp_path / "out" / "sankey.json").read_text(encoding="utf-8"))
    labels = [node["label"] for node in payload["nodes"]]
    assert labels[-2:] == ["CIN (23%)", "CLA (3%)"]
    assert (tmp_path / "shared" / "sankey.json").exists()


def test_build_reports_invalid_input(tmp_path):
    config = _write_config(tmp_path, "group_name,child_count\n1 SC,-4\n3 EH,22000\n")

    result = runner.invoke(eip_sankey.app, ["build", "--config", config])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert not (tmp_path / "out" / "sankey.json").exists()


def test_publish_copies_and_overwrites(tmp_path):
    source = tmp_path / "sankey.html"
    source.write_text("v2", encoding="utf-8")
    dest = tmp_path / "shared"
    dest.mkdir()
    (dest / "sankey.html").write_text("v1", encoding="utf-8")

    result = runner.invoke(eip_sankey.app, ["publish", "--source", str(source), "--dest-dir", str(dest)])

    assert result.exit_code == 0, result.output
    assert (dest / "sankey.html").read_text(encoding="utf-8") == "v2"


def test_publish_missing_source_fails(tmp_path):
    result = runner.invoke(
        eip_sankey.app, ["publish", "--source", str(tmp_path / "nope.html"), "--dest-dir", str(tmp_path)]
    )
    assert result.exit_code == 1


def test_show_prints_graph_without_writing(tmp_path):
    config = _write_config(tmp_path, "group_name,child_count\n1 SC,4000\n2 EH SC,4000\n3 EH,22000\n")

    result = runner.invoke(eip_sankey.app, ["show", "--config", config])

    assert result.exit_code == 0, result.output
    assert "Children (30,000)" in result.output
    assert not (tmp_path / "out" / "sankey.json").exists()


def test_show_reports_empty_table(tmp_path):
    config = _write_config(tmp_path, "")

    result = runner.invoke(eip_sankey.app, ["show", "--config", config])

    assert result.exit_code == 1
    assert "Error" in result.output
    assert isinstance(result.exception, SystemExit)
