"""CLI entry point for the vlog maker."""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from uuid import UUID

import typer

from . import __version__
from .config import Config, config
from .errors import VlogError
from .models import Project, ProjectStatus, TemplateSpec
from .storage import BGMLibrary, LocalVideoStorage, YamlProjectStore
from .timeline import SegmentAssignmentTracker, SubtitleEditor, SubtitleTimelinePlanner
from .workflow import (
    ExportOrchestrator,
    ProjectStateMachine,
    RecordingWorkflow,
    VideoAssetLifecycleManager,
    create_project_from_template,
    delete_project,
)

app = typer.Typer(
    name="vlog-maker",
    help="Template-driven vlog recording, editing and export",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"vlog-maker version {__version__}")
        raise typer.Exit()


@dataclass
class Services:
    """Collaborators wired for one CLI invocation."""

    store: YamlProjectStore
    video_storage: LocalVideoStorage
    state_machine: ProjectStateMachine
    assets: VideoAssetLifecycleManager
    subtitles: SubtitleEditor
    bgm: BGMLibrary
    settings: Config


def build_services(settings: Optional[Config] = None) -> Services:
    settings = settings or config
    store = YamlProjectStore(settings.projects_dir)
    video_storage = LocalVideoStorage(settings.video_assets_dir)
    state_machine = ProjectStateMachine(store)
    planner = SubtitleTimelinePlanner(
        default_length=settings.subtitle_default_length,
        minimum_length=settings.subtitle_minimum_length,
        precision=settings.timeline_precision,
    )
    return Services(
        store=store,
        video_storage=video_storage,
        state_machine=state_machine,
        assets=VideoAssetLifecycleManager(store, video_storage),
        subtitles=SubtitleEditor(store, planner),
        bgm=BGMLibrary(settings.bgm_dir),
        settings=settings,
    )


def build_recording_workflow(services: Services) -> RecordingWorkflow:
    from .editor import MoviePyTrimmer

    trimmer = MoviePyTrimmer(services.settings.workspace / "tmp")
    return RecordingWorkflow(
        services.assets, services.state_machine, services.video_storage, trimmer
    )


async def _find_project(services: Services, project_ref: str) -> Project:
    """Resolve a full project id or a unique id prefix."""
    projects = await services.store.fetch_all()
    matches = [p for p in projects if str(p.id).startswith(project_ref)]
    if len(matches) != 1:
        typer.echo(f"❌ {'No' if not matches else 'Ambiguous'} project matching '{project_ref}'")
        raise typer.Exit(1)
    return matches[0]


def _run(coro):
    """Run a coroutine, turning domain errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except VlogError as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(1)


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Vlog Maker - record a vlog segment by segment from a template."""
    setup_logging(verbose)


@app.command()
def new(
    template: Path = typer.Argument(
        ...,
        help="Template YAML file",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Project name"),
    bgm: Optional[str] = typer.Option(None, "--bgm", help="Background music track id"),
) -> None:
    """Create a project from a template."""
    services = build_services()
    spec = TemplateSpec.from_yaml(template)

    project = _run(create_project_from_template(
        services.store, services.state_machine, spec, preferred_name=name, bgm_id=bgm
    ))
    typer.echo(f"✅ Created project {project.id}")
    typer.echo(f"   Name: {project.name}")
    typer.echo(f"   Segments: {len(project.template.segments)}")


@app.command("list")
def list_projects() -> None:
    """List projects, most recently updated first."""
    services = build_services()
    projects = _run(services.store.fetch_all())
    if not projects:
        typer.echo("No projects yet. Run 'vlog-maker new TEMPLATE' to start one.")
        return
    for project in projects:
        typer.echo(f"{str(project.id)[:8]}  {project.status.value:<10} {project.name}")


@app.command()
def status(project_ref: str = typer.Argument(..., help="Project id or id prefix")) -> None:
    """Show project status."""
    services = build_services()
    project = _run(_find_project(services, project_ref))
    tracker = SegmentAssignmentTracker.for_project(project)

    typer.echo(f"📁 Project: {project.name} ({project.id})")
    typer.echo(f"   Status: {project.status.value}")
    if project.template is None:
        typer.echo("   No template")
        return
    typer.echo(f"   Total duration: {project.template.total_duration:.1f}s")

    typer.echo("\n📽️  Segments:")
    next_order = tracker.recordable_order()
    for segment in project.template.sorted_segments():
        asset = project.asset_for_segment(segment.order)
        icon = "✅" if asset else ("🎬" if segment.order == next_order else "⏳")
        typer.echo(
            f"   {icon} {segment.order}: {segment.start_seconds:.1f}s - {segment.end_seconds:.1f}s"
        )
        if segment.description:
            preview = segment.description[:60] + "..." if len(segment.description) > 60 else segment.description
            typer.echo(f"      → {preview}")

    if project.stock_assets:
        typer.echo(f"\n📦 Stock clips: {len(project.stock_assets)}")
        for asset in project.stock_assets:
            typer.echo(f"   • {asset.id} ({asset.duration:.1f}s)")

    if project.subtitles:
        typer.echo(f"\n💬 Subtitles: {len(project.subtitles)}")
        for subtitle in sorted(project.subtitles, key=lambda s: s.start_seconds):
            typer.echo(f"   • {subtitle.start_seconds:.1f}s - {subtitle.end_seconds:.1f}s {subtitle.text}")


@app.command()
def record(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    clip: Path = typer.Argument(..., help="Recorded clip", exists=True, dir_okay=False),
    duration: float = typer.Option(..., "--duration", "-d", help="Clip duration in seconds", min=0),
    segment: Optional[int] = typer.Option(
        None, "--segment", "-s", help="Segment order (defaults to the next one)"
    ),
) -> None:
    """Save a recorded clip to the next segment (or to stock)."""
    services = build_services()

    async def _record():
        project = await _find_project(services, project_ref)
        workflow = build_recording_workflow(services)
        asset = await workflow.record_clip(project, clip, duration, segment_order=segment)
        return project, asset

    project, asset = _run(_record())
    where = f"segment {asset.segment_order}" if asset.segment_order is not None else "stock"
    typer.echo(f"✅ Saved clip to {where}: {asset.local_file_url}")
    if project.status == ProjectStatus.EDITING:
        typer.echo("🎉 All segments recorded - ready for editing")


@app.command()
def trim(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    clip: Path = typer.Argument(..., help="Source video", exists=True, dir_okay=False),
    segment: int = typer.Option(..., "--segment", "-s", help="Segment order"),
    start: float = typer.Option(0.0, "--start", help="Trim start in seconds", min=0),
) -> None:
    """Cut a segment-length clip out of a longer video and save it."""
    services = build_services()

    async def _trim():
        project = await _find_project(services, project_ref)
        workflow = build_recording_workflow(services)
        return await workflow.trim_and_save(project, clip, start, segment)

    asset = _run(_trim())
    typer.echo(f"✅ Saved trimmed clip to segment {asset.segment_order}")


@app.command()
def assign(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    asset_id: UUID = typer.Argument(..., help="Stock clip id"),
    segment: int = typer.Option(..., "--segment", "-s", help="Segment order"),
) -> None:
    """Move a stock clip onto a segment."""
    services = build_services()

    async def _assign():
        project = await _find_project(services, project_ref)
        workflow = build_recording_workflow(services)
        return await workflow.assign_stock(project, asset_id, segment)

    asset = _run(_assign())
    typer.echo(f"✅ Assigned clip to segment {asset.segment_order}")


@app.command("delete-asset")
def delete_asset(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    segment: Optional[int] = typer.Option(None, "--segment", "-s", help="Segment order"),
    asset_id: Optional[UUID] = typer.Option(None, "--asset", "-a", help="Clip id"),
) -> None:
    """Delete the clip of a segment, or a clip by id."""
    services = build_services()

    async def _delete():
        project = await _find_project(services, project_ref)
        return await services.assets.delete(project, segment_order=segment, asset_id=asset_id)

    removed = _run(_delete())
    typer.echo(f"🗑️  Removed {len(removed)} clip(s)")


@app.command("subtitle-suggest")
def subtitle_suggest(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    at: float = typer.Option(0.0, "--at", help="Preferred start time in seconds"),
) -> None:
    """Suggest a free window for a new subtitle."""
    services = build_services()
    project = _run(_find_project(services, project_ref))
    start, end = services.subtitles.suggest_range(project, at)
    typer.echo(f"{start:.1f} {end:.1f}")


@app.command("subtitle-add")
def subtitle_add(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    text: str = typer.Argument(..., help="Subtitle text"),
    start: Optional[float] = typer.Option(None, "--start", help="Start time (default: suggested)"),
    end: Optional[float] = typer.Option(None, "--end", help="End time (default: suggested)"),
    x: float = typer.Option(0.5, "--x", help="Horizontal position 0-1"),
    y: float = typer.Option(0.85, "--y", help="Vertical position 0-1"),
) -> None:
    """Add a subtitle; overlapping windows are rejected."""
    services = build_services()

    async def _add():
        project = await _find_project(services, project_ref)
        s_start, s_end = start, end
        if s_start is None or s_end is None:
            suggested = services.subtitles.suggest_range(project, s_start or 0.0)
            s_start = suggested[0] if s_start is None else s_start
            s_end = suggested[1] if s_end is None else s_end
        return await services.subtitles.save_subtitle(project, s_start, s_end, text, x, y)

    subtitle = _run(_add())
    typer.echo(
        f"✅ Subtitle {subtitle.id}: {subtitle.start_seconds:.1f}s - {subtitle.end_seconds:.1f}s"
    )


@app.command("subtitle-delete")
def subtitle_delete(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    subtitle_id: UUID = typer.Argument(..., help="Subtitle id"),
) -> None:
    """Delete a subtitle."""
    services = build_services()

    async def _delete():
        project = await _find_project(services, project_ref)
        return await services.subtitles.delete_subtitle(project, subtitle_id)

    if not _run(_delete()):
        typer.echo(f"⚠️  No subtitle {subtitle_id}")
        raise typer.Exit(1)
    typer.echo("🗑️  Subtitle deleted")


@app.command()
def bgm(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    track: Optional[str] = typer.Option(None, "--track", "-t", help="Track id (omit for none)"),
    volume: float = typer.Option(config.default_bgm_volume, "--volume", help="Volume 0-1"),
) -> None:
    """Select background music and its volume."""
    services = build_services()
    if track and services.bgm.get(track) is None:
        available = ", ".join(t.id for t in services.bgm.list_tracks()) or "none"
        typer.echo(f"❌ Unknown track '{track}'. Available: {available}")
        raise typer.Exit(1)

    async def _save():
        project = await _find_project(services, project_ref)
        await services.subtitles.save_bgm_settings(project, track, volume)
        return project

    project = _run(_save())
    typer.echo(f"🎵 BGM: {project.selected_bgm_id or 'none'} at {project.bgm_volume:.2f}")


@app.command()
def guide(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    segment: Optional[int] = typer.Option(
        None, "--segment", "-s", help="Segment order (defaults to the next one)"
    ),
) -> None:
    """Generate a guide image for a segment using Google Imagen."""
    from .guide import GuideImageCache, GuideImageLoader
    from .services.imagen import ImagenClient

    services = build_services()
    try:
        config.validate_imagen_required()
        client = ImagenClient()
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    async def _guide():
        project = await _find_project(services, project_ref)
        order = segment
        if order is None:
            order = SegmentAssignmentTracker.for_project(project).recordable_order()
        target = project.template.segment(order) if project.template and order is not None else None
        if target is None:
            typer.echo("❌ No segment to generate a guide for")
            raise typer.Exit(1)
        loader = GuideImageLoader(
            client,
            services.settings.guide_images_dir / str(project.id),
            GuideImageCache(services.settings.guide_image_cache_capacity),
        )
        return await loader.load(target)

    path = _run(_guide())
    if path is None:
        typer.echo("⚠️  Segment has no description; nothing to generate")
        return
    typer.echo(f"✅ Guide image saved: {path}")


@app.command()
def export(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    music_file: Optional[Path] = typer.Option(
        None,
        "--music",
        "-m",
        help="Background music file (overrides the selected track)"
    ),
) -> None:
    """Assemble all segments, subtitles and BGM into the final video."""
    from .editor import MoviePyEncoder

    services = build_services()
    encoder = MoviePyEncoder(services.settings.exports_dir, fps=services.settings.fps)
    orchestrator = ExportOrchestrator(encoder, services.state_machine)

    def show_progress(value: float) -> None:
        typer.echo(f"\r   Rendering... {value * 100:5.1f}%", nl=False)

    async def _export():
        project = await _find_project(services, project_ref)
        bgm_path = music_file or services.bgm.resolve_path(project.selected_bgm_id)
        typer.echo(f"📼 Exporting {project.name}")
        return await orchestrator.export(project, bgm_path=bgm_path, on_progress=show_progress)

    output = _run(_export())
    typer.echo(f"\n✅ Video exported: {output}")


@app.command()
def delete(
    project_ref: str = typer.Argument(..., help="Project id or id prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a project and all of its clips."""
    services = build_services()
    project = _run(_find_project(services, project_ref))
    if not yes:
        typer.confirm(f"Delete '{project.name}' and its clips?", abort=True)
    _run(delete_project(services.store, services.video_storage, project))
    typer.echo("🗑️  Project deleted")


if __name__ == "__main__":
    app()
