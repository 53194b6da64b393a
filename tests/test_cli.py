"""Tests for the vlog-maker CLI."""

import pytest
from typer.testing import CliRunner

from vlogkit import __version__
from vlogkit.cli import app, build_services
from vlogkit.config import Config

runner = CliRunner()

TEMPLATE = """\
id: cafe-vlog
name: Cafe vlog
description: A slow morning at a cafe
segments:
  - {order: 0, start_sec: 0, end_sec: 10, description: Storefront}
  - {order: 1, start_sec: 10, end_sec: 25, description: Ordering}
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    settings = Config(workspace=tmp_path / "workspace")
    monkeypatch.setattr("vlogkit.cli.config", settings)
    return settings


@pytest.fixture
def template_file(tmp_path):
    path = tmp_path / "cafe.yaml"
    path.write_text(TEMPLATE)
    return path


def create_project(template_file, name="Sunday"):
    result = runner.invoke(app, ["new", str(template_file), "--name", name])
    assert result.exit_code == 0, result.output
    return result.output.split("Created project ")[1].split()[0]


class TestCli:
    """Tests for CLI commands."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_new_and_status(self, workspace, template_file):
        project_id = create_project(template_file)

        result = runner.invoke(app, ["status", project_id[:8]])

        assert result.exit_code == 0, result.output
        assert "Sunday" in result.output
        assert "recording" in result.output
        assert "Storefront" in result.output

    def test_list(self, workspace, template_file):
        create_project(template_file, name="First")

        result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "First" in result.output

    def test_unknown_project(self, workspace):
        result = runner.invoke(app, ["status", "nope"])

        assert result.exit_code == 1
        assert "No project" in result.output

    def test_record_until_editing(self, workspace, template_file, clip_file):
        project_id = create_project(template_file)

        first = runner.invoke(app, ["record", project_id, str(clip_file), "--duration", "10"])
        second = runner.invoke(app, ["record", project_id, str(clip_file), "--duration", "15"])

        assert first.exit_code == 0, first.output
        assert "segment 0" in first.output
        assert "segment 1" in second.output
        assert "ready for editing" in second.output

    def test_subtitles(self, workspace, template_file):
        project_id = create_project(template_file)

        added = runner.invoke(app, ["subtitle-add", project_id, "Hello", "--start", "1", "--end", "3"])
        clash = runner.invoke(app, ["subtitle-add", project_id, "Again", "--start", "2", "--end", "4"])
        suggested = runner.invoke(app, ["subtitle-suggest", project_id, "--at", "1"])

        assert added.exit_code == 0, added.output
        assert clash.exit_code == 1
        assert "overlaps" in clash.output
        assert suggested.output.strip() == "0.0 1.0"

    def test_export_incomplete_project(self, workspace, template_file):
        project_id = create_project(template_file)

        result = runner.invoke(app, ["export", project_id])

        assert result.exit_code == 1
        assert "segment(s) 0, 1" in result.output

    def test_delete(self, workspace, template_file):
        project_id = create_project(template_file)

        result = runner.invoke(app, ["delete", project_id, "--yes"])

        assert result.exit_code == 0
        assert not list(workspace.projects_dir.glob("*.yaml"))

    def test_build_services_uses_workspace(self, tmp_path):
        services = build_services(Config(workspace=tmp_path))

        assert services.store.root == tmp_path / "projects"
        assert services.video_storage.is_managed(tmp_path / "video_assets" / "p" / "a.mov")
