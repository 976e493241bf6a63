"""Site assembly — sitemap.xml and robots.txt generation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from repo_sitegen.domain.entities import GeneratedPage, ValidationWarning, WarningKind
from repo_sitegen.domain.value_objects import SiteConfig, SitemapChangefreq

logger = logging.getLogger(__name__)

SITEMAP_PATH = "sitemap.xml"
ROBOTS_PATH = "robots.txt"
SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"


def page_url(base_url: str, path: str) -> str:
    """Public URL of a page: ``index.html`` is the root, ``.html`` is dropped."""
    if path == "index.html":
        return base_url
    if path.endswith("index.html"):
        path = path[: -len("index.html")]
    elif path.endswith(".html"):
        path = path[: -len(".html")]
    return f"{base_url}/{path}"


def generate_sitemap(
    pages: Iterable[GeneratedPage],
    site_url: str,
    *,
    changefreq: SitemapChangefreq | str = SitemapChangefreq.WEEKLY,
    priority: float = 0.8,
    today: date | None = None,
) -> str:
    """Return sitemap XML with one ``<url>`` per ``.html`` page."""
    base_url = site_url.rstrip("/")
    lastmod = (today or date.today()).isoformat()
    frequency = SitemapChangefreq(changefreq).value

    entries = [
        "  <url>\n"
        f"    <loc>{page_url(base_url, page.path)}</loc>\n"
        f"    <lastmod>{lastmod}</lastmod>\n"
        f"    <changefreq>{frequency}</changefreq>\n"
        f"    <priority>{priority:g}</priority>\n"
        "  </url>"
        for page in pages
        if page.path.endswith(".html")
    ]
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'
        + "\n".join(entries)
        + "\n</urlset>"
    )


def generate_robots(
    site_url: str,
    *,
    additional_rules: Iterable[str] = (),
    include_sitemap: bool = True,
) -> str:
    """Return robots.txt allowing all crawlers, optionally pointing at the sitemap."""
    rules = ["User-agent: *", "Allow: /", ""]
    if include_sitemap:
        rules.append(f"Sitemap: {site_url.rstrip('/')}/{SITEMAP_PATH}")
    rules.extend(rule for rule in additional_rules if rule.strip())
    return "\n".join(rules)


def assemble_site(
    pages: list[GeneratedPage],
    config: SiteConfig,
    *,
    today: date | None = None,
) -> tuple[list[GeneratedPage], list[ValidationWarning]]:
    """Append sitemap.xml and robots.txt to *pages* where configured.

    Each file is skipped with a logged reason when disabled or when no site
    URL is configured.  robots.txt references the sitemap only when the
    sitemap was actually generated.
    """
    assembled = list(pages)
    warnings: list[ValidationWarning] = []
    skipped: list[str] = []
    site_url = config.site_url

    def skip(path: str, reason: str) -> None:
        skipped.append(f"{path} ({reason})")
        if reason == "no site-url":
            message = (
                f"{path} generation skipped: a site URL is required. "
                "Set seo.siteUrl in the site configuration."
            )
            logger.warning(message)
            warnings.append(
                ValidationWarning(kind=WarningKind.GENERATION_SKIPPED, message=message, field=path)
            )

    sitemap_generated = False
    if not config.sitemap.enabled:
        skip(SITEMAP_PATH, "disabled")
    elif not site_url:
        skip(SITEMAP_PATH, "no site-url")
    else:
        xml = generate_sitemap(
            assembled,
            site_url,
            changefreq=config.sitemap.changefreq,
            priority=config.sitemap.priority,
            today=today,
        )
        assembled.append(GeneratedPage(path=SITEMAP_PATH, html=xml))
        sitemap_generated = True

    if not config.robots.enabled:
        skip(ROBOTS_PATH, "disabled")
    elif not site_url:
        skip(ROBOTS_PATH, "no site-url")
    else:
        robots = generate_robots(
            site_url,
            additional_rules=config.robots.additional_rules,
            include_sitemap=sitemap_generated,
        )
        assembled.append(GeneratedPage(path=ROBOTS_PATH, html=robots))

    logger.info("Generated: %s", ", ".join(page.path for page in assembled))
    if skipped:
        logger.info("Skipped: %s", ", ".join(skipped))
    return assembled, warnings
