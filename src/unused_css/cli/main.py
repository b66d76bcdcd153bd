"""unused-css CLI entry point."""
from __future__ import annotations

import functools
import json
import logging

import click

from unused_css.model.mode import Mode


def config_options(fn):
    """Options shared by every command that builds an UnusedCSSConfig."""

    @click.option("--config", "config_file", type=click.Path(exists=True, dir_okay=False), help="JSON settings file")
    @click.option("--site-url", default=None, help="Public URL of the site")
    @click.option("--cache-dir", default=None, help="Directory holding the CSS cache")
    @click.option(
        "--mode",
        type=click.Choice([m.value for m in Mode]),
        default=None,
        help="Operating mode",
    )
    @functools.wraps(fn)
    def wrapper(*args, config_file, site_url, cache_dir, mode, **kwargs):
        from unused_css.config import UnusedCSSConfig

        settings: dict = {}
        if config_file:
            with open(config_file, encoding="utf-8") as fh:
                settings = json.load(fh)
        if site_url:
            settings["site_url"] = site_url
        if cache_dir:
            settings["cache_base_dir"] = cache_dir
        if mode:
            settings["css_mode"] = mode
        return fn(*args, config=UnusedCSSConfig.from_mapping(settings), **kwargs)

    return wrapper


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
def cli(verbose: bool) -> None:
    """unused-css: serve only the CSS your pages use."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@config_options
@click.option("--host", default=None, help="Host to bind to (defaults to the configured host)")
@click.option("--port", default=None, type=int, help="Port to bind to (defaults to the configured port)")
@click.option("--debug/--no-debug", default=False, help="Enable debug mode")
def serve(config, host: str | None, port: int | None, debug: bool) -> None:
    """Start the unused-css web server."""
    from unused_css.web.app import create_app

    host = host or config.host
    port = port or config.port
    app = create_app(config)
    click.echo(f"Starting unused-css on {host}:{port} ({config.css_mode} mode)")
    app.run(host=host, port=port, debug=debug)


@cli.command()
@config_options
@click.argument("url")
@click.option("--endpoint", default=None, help="Post the report to this update_css endpoint instead of caching locally")
def collect(config, url: str, endpoint: str | None) -> None:
    """Collect the CSS used by the page at URL."""
    import httpx

    from unused_css.cache.layout import CacheLayout
    from unused_css.cache.store import CacheStore
    from unused_css.detector.collector import UsageCollector
    from unused_css.detector.soup import SoupDocument
    from unused_css.detector.transport import Transmitter

    with httpx.Client(follow_redirects=True, timeout=httpx.Timeout(30.0)) as client:
        try:
            document = SoupDocument.from_url(url, client)
        except httpx.HTTPError as exc:
            raise click.ClickException(f"Could not fetch {url}: {exc}") from exc

        transmitter = Transmitter(endpoint, client=client) if endpoint else None
        collector = UsageCollector(
            document,
            include_patterns=config.compiled_include_patterns(),
            cache_directory=config.cache_directory,
            transmitter=transmitter,
            log_warnings=config.log_warnings,
        )
        report = collector.collect()

    if collector.envelope is None:
        click.echo("No same-origin stylesheets found")
        return
    if endpoint is None:
        store = CacheStore(CacheLayout.from_config(config))
        envelope = collector.envelope
        store.process(envelope.css, envelope.url, envelope.post_id, envelope.post_types)
    click.echo(f"Processed {len(report)} stylesheet(s), reduction {collector.reduction:.2f}%")


@cli.command()
@config_options
@click.argument("html_file", type=click.File("r", encoding="utf-8"))
@click.option("--url", "page_url", required=True, help="URL the HTML was rendered for")
@click.option("--privileged/--no-privileged", default=False, help="Render as a privileged viewer")
def rewrite(config, html_file, page_url: str, privileged: bool) -> None:
    """Print HTML_FILE with its stylesheet links rewritten."""
    from unused_css.cache.layout import CacheLayout
    from unused_css.cache.rewrite import RewriteEngine
    from unused_css.cache.store import CacheStore

    engine = RewriteEngine(CacheStore(CacheLayout.from_config(config)))
    click.echo(engine.rewrite(html_file.read(), page_url, config.css_mode, privileged), nl=False)


@cli.command()
@config_options
def stats(config) -> None:
    """Print usage statistics for every cached page as JSON."""
    from unused_css.cache.layout import CacheLayout
    from unused_css.cache.stats import StatsAggregator

    aggregator = StatsAggregator(CacheLayout.from_config(config), plugins_dir=config.plugins_dir or None)
    click.echo(json.dumps(aggregator.stats(), indent=2))


@cli.command("cache-info")
@config_options
def cache_info(config) -> None:
    """Show how many cached stylesheets and page manifests exist."""
    from unused_css.cache.layout import CacheLayout
    from unused_css.cache.store import CacheStore

    summary = CacheStore(CacheLayout.from_config(config)).cache_summary()
    click.echo(f"CSS files: {summary['num_css_files']}")
    click.echo(f"Page manifests: {summary['num_lookup_files']}")


@cli.command("clear-cache")
@config_options
@click.confirmation_option(prompt="Delete the entire CSS cache?")
def clear_cache(config) -> None:
    """Delete every cached stylesheet and manifest."""
    from unused_css.cache.layout import CacheLayout
    from unused_css.cache.store import CacheStore

    CacheStore(CacheLayout.from_config(config), extra_purge_dirs=config.extra_purge_dirs).clear()
    click.echo("Cache cleared")
