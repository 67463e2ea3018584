"""Main CLI for openapi-spec-store."""

import asyncio
from pathlib import Path
from typing import List, Optional

import click

from spec_store import __version__
from spec_store.core import ProcessingResult, configure_logging, settings


def _build_app(db_path: Optional[str], validate: bool = True, skip_invalid: bool = False):
    from spec_store.app import SpecStoreApp

    overrides = {
        "ENABLE_VALIDATION": validate,
        "SKIP_INVALID_FILES": skip_invalid,
    }
    if db_path:
        overrides["DB_PATH"] = Path(db_path)
    return SpecStoreApp(settings.model_copy(update=overrides))


def _echo_result(result: ProcessingResult) -> None:
    if not result.success:
        click.echo(f"❌ {result.source}: {result.message}", err=True)
        return

    if result.storage and result.storage.skipped:
        click.echo(f"⏭️  {result.name}: unchanged ({result.source})")
    else:
        details = result.storage.details if result.storage else None
        click.echo(f"✅ {result.name}: stored ({result.source})")
        if details:
            click.echo(
                f"   paths={details.paths_stored} schemas={details.schemas_stored} "
                f"servers={details.servers_stored} "
                f"security_schemes={details.security_schemes_stored} "
                f"responses={details.responses_stored}"
            )
        if result.storage and result.storage.failed_children:
            for failure in result.storage.failed_children:
                click.echo(f"   ⚠️  {failure.kind} {failure.key}: {failure.error}")

    if result.validation and result.validation.has_warnings:
        for warning in result.validation.warnings:
            click.echo(f"   ⚠️  {warning}")


def _echo_summary(results: List[ProcessingResult]) -> None:
    from spec_store.ingestion import IngestionProcessor

    stats = IngestionProcessor.get_processing_stats(results)
    click.echo("\n" + "=" * 60)
    click.echo(
        f"Total: {stats.total}  Success: {stats.successful}  "
        f"Unchanged: {stats.skipped}  Failed: {stats.failed}"
    )
    click.echo("=" * 60)


@click.group()
@click.version_option(version=__version__)
@click.option("--db", "db_path", type=click.Path(dir_okay=False), default=None,
              help="SQLite 데이터베이스 경로 (기본값: DB_PATH)")
@click.option("--verbose", "-v", is_flag=True, help="상세 로그 출력")
@click.pass_context
def cli(ctx: click.Context, db_path: Optional[str], verbose: bool):
    """OpenAPI Spec Store

    OpenAPI/Swagger 명세서를 정규화하여 SQLite에 저장하고 변경 시 다시 인제스트합니다.
    """
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db_path
    if verbose:
        configure_logging(settings.model_copy(update={"LOG_LEVEL": "DEBUG"}))
    else:
        configure_logging()


@cli.command()
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", default=None, help="명세서 이름 (기본값: 파일명)")
@click.option("--no-validate", is_flag=True, help="구조 검증 생략")
@click.option("--skip-invalid", is_flag=True, help="검증 실패 시 저장하지 않음")
@click.pass_context
def ingest(ctx: click.Context, spec_file: str, name: Optional[str],
           no_validate: bool, skip_invalid: bool):
    """OpenAPI 명세서 파일을 인제스트합니다.

    Examples:
        $ spec-store ingest ./specs/payment-api.yaml
        $ spec-store ingest ./specs/user-api.json --name users
    """
    app = _build_app(ctx.obj["db_path"], not no_validate, skip_invalid)

    async def run():
        try:
            return await app.open().ingest_file(spec_file, name)
        finally:
            await app.shutdown()

    click.echo(f"📥 Ingesting OpenAPI spec: {spec_file}")
    result = asyncio.run(run())
    _echo_result(result)
    if not result.success:
        raise click.Abort()


@cli.command("ingest-url")
@click.argument("url")
@click.option("--name", default=None, help="명세서 이름 (기본값: URL에서 생성)")
@click.option("--no-validate", is_flag=True, help="구조 검증 생략")
@click.option("--skip-invalid", is_flag=True, help="검증 실패 시 저장하지 않음")
@click.pass_context
def ingest_url(ctx: click.Context, url: str, name: Optional[str],
               no_validate: bool, skip_invalid: bool):
    """URL에서 OpenAPI 명세서를 가져와 인제스트합니다."""
    app = _build_app(ctx.obj["db_path"], not no_validate, skip_invalid)

    async def run():
        try:
            return await app.open().ingest_url(url, name)
        finally:
            await app.shutdown()

    click.echo(f"🌐 Ingesting OpenAPI spec: {url}")
    result = asyncio.run(run())
    _echo_result(result)
    if not result.success:
        raise click.Abort()


@cli.command("ingest-dir")
@click.argument("directory", type=click.Path(file_okay=False), required=False)
@click.option("--no-validate", is_flag=True, help="구조 검증 생략")
@click.option("--skip-invalid", is_flag=True, help="검증 실패 시 저장하지 않음")
@click.pass_context
def ingest_dir(ctx: click.Context, directory: Optional[str],
               no_validate: bool, skip_invalid: bool):
    """디렉토리의 모든 명세서를 인제스트합니다 (기본값: SPECS_DIR)."""
    app = _build_app(ctx.obj["db_path"], not no_validate, skip_invalid)

    async def run():
        try:
            return await app.startup(directory)
        finally:
            await app.shutdown()

    click.echo(f"📁 Ingesting directory: {directory or settings.SPECS_DIR}")
    results = asyncio.run(run())
    for result in results:
        _echo_result(result)
    _echo_summary(results)


@cli.command()
@click.argument("directory", type=click.Path(file_okay=False), required=False)
@click.pass_context
def watch(ctx: click.Context, directory: Optional[str]):
    """디렉토리를 인제스트한 뒤 변경을 감시합니다 (Ctrl+C로 종료)."""
    from spec_store.core.exceptions import WatchError

    app = _build_app(ctx.obj["db_path"])

    async def run():
        try:
            results = await app.startup(directory)
            for result in results:
                _echo_result(result)
            watcher = await app.watch(directory)
            click.echo(f"\n👀 Watching {watcher.directory} (Ctrl+C to stop)")
            while watcher.is_watching:
                await asyncio.sleep(1)
            if watcher.last_error is not None:
                raise watcher.last_error
        finally:
            await app.shutdown()

    try:
        asyncio.run(run())
    except WatchError as e:
        click.echo(f"❌ {e}", err=True)
        raise click.Abort()
    except KeyboardInterrupt:
        click.echo("\n🛑 Stopped")


@cli.command("list")
@click.pass_context
def list_specs(ctx: click.Context):
    """저장된 명세서 목록을 출력합니다."""
    app = _build_app(ctx.obj["db_path"])

    async def run():
        try:
            storage = app.open().storage
            specs = await storage.list_specs()
            return [(spec, await storage.count_children(spec.name)) for spec in specs]
        finally:
            await app.shutdown()

    rows = asyncio.run(run())
    if not rows:
        click.echo("No specs stored")
        return

    for spec, (servers, paths, schemas, schemes, responses) in rows:
        click.echo(f"📄 {spec.name}: {spec.title} v{spec.version} ({spec.dialect})")
        click.echo(
            f"   paths={paths} schemas={schemas} servers={servers} "
            f"security_schemes={schemes} responses={responses} "
            f"hash={(spec.content_hash or '')[:16]}"
        )


@cli.command()
def info():
    """시스템 정보를 출력합니다."""
    click.echo("=" * 60)
    click.echo("OpenAPI Spec Store - System Information")
    click.echo("=" * 60)

    click.echo(f"\n📂 Directories:")
    click.echo(f"  Project Root: {settings.PROJECT_ROOT}")
    click.echo(f"  Data Dir: {settings.DATA_DIR}")
    click.echo(f"  Specs Dir: {settings.SPECS_DIR}")
    click.echo(f"  Database: {settings.DB_PATH}")

    click.echo(f"\n⚙️  Ingestion Settings:")
    click.echo(f"  Extensions: {', '.join(settings.SUPPORTED_EXTENSIONS)}")
    click.echo(f"  Validation: {settings.ENABLE_VALIDATION}")
    click.echo(f"  Skip Invalid Files: {settings.SKIP_INVALID_FILES}")
    click.echo(f"  URL Timeout: {settings.URL_TIMEOUT}s")
    click.echo(f"  Watch Debounce: {settings.WATCH_DEBOUNCE_MS}ms")

    click.echo("\n" + "=" * 60)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
