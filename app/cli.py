"""Flask CLI commands for admin operations."""
import time
import click
from flask import current_app


def register_cli(app):
    @app.cli.command("optimize-images")
    @click.argument("directories", nargs=-1)
    @click.option(
        "--enqueue", is_flag=True, help="Run on the RQ worker instead of inline."
    )
    def optimize_images(directories, enqueue):
        """Generate missing WebP variants for existing images."""
        from app.extensions import task_queue
        from app.services import batch_service
        from app.services.storage_service import get_storage
        from app.workers.variant_jobs import optimize_directories

        directories = list(directories) or current_app.config["IMAGE_DIRECTORIES"]

        if enqueue:
            job = task_queue.enqueue(optimize_directories, directories)
            if job is None:
                click.echo("Queue unavailable, job not enqueued.")
            else:
                click.echo(f"Enqueued job {job.id} for {len(directories)} directories.")
            return

        click.echo("Generating WebP variants (thumbnail, small, medium, large, original)")
        started = time.monotonic()
        report = batch_service.process_all(directories, get_storage())
        for line in report.summary_lines():
            click.echo(line)
        click.echo(f"Done in {time.monotonic() - started:.1f}s")

    @app.cli.command("resolve-image")
    @click.argument("reference")
    @click.option(
        "--size",
        type=click.Choice(["thumbnail", "small", "medium", "large", "original"]),
        default=None,
    )
    @click.option("--width", type=int, default=None, help="Display width in px.")
    @click.option("--no-retina", is_flag=True, help="Don't double the width.")
    def resolve_image(reference, size, width, no_retina):
        """Print the variant URL for REFERENCE."""
        from app.services import resolver

        if size and width:
            raise click.UsageError("Use either --size or --width, not both.")
        if width is not None:
            size = resolver.size_for_width(width, high_density=not no_retina)
        click.echo(resolver.resolve(reference, size or "medium"))

    @app.cli.command("image-stats")
    @click.argument("directories", nargs=-1)
    def image_stats(directories):
        """List source images missing part of their variant set."""
        from app.services import batch_service
        from app.services.storage_service import get_storage

        directories = list(directories) or current_app.config["IMAGE_DIRECTORIES"]
        incomplete = batch_service.find_incomplete(directories, get_storage())
        click.echo(f"Images missing variants: {len(incomplete)}")
        for key, sizes in sorted(incomplete.items()):
            click.echo(f"  {key}: {', '.join(sizes)}")
