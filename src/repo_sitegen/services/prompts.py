"""Prompt builders for every generation stage.

All builders are pure functions of the repository facts, the previous
stage's validated output and the resolved :class:`SiteConfig`; the same
inputs always produce the same prompt text.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from repo_sitegen.domain.entities import (
    Audience,
    Contributor,
    DesignSystem,
    Evaluation,
    ProjectType,
    RepoInfo,
    RepoStats,
    RepositoryAnalysis,
    Style,
)
from repo_sitegen.domain.value_objects import SiteConfig, ThemeMode, ThemeSettings

logger = logging.getLogger(__name__)

README_BUDGET = 2000
EVALUATION_HTML_BUDGET = 8000
REFINE_HTML_BUDGET = 10_000
CONTRIBUTORS_PROMPT_TOP = 10

HTML_OUTPUT_INSTRUCTION = (
    "OUTPUT: Return ONLY the complete HTML document, no explanation. "
    "Start with <!DOCTYPE html>."
)


def _choices(enum_type: type) -> str:
    return "|".join(member.value for member in enum_type)


# ── Formatting helpers ──────────────────────────────────────────────────────


def format_count(count: int) -> str:
    """Compact count: ``1234 → "1.2K"``, ``1234567 → "1.2M"``."""
    if count >= 1_000_000:
        return f"{count / 1_000_000:.1f}M"
    if count >= 1_000:
        return f"{count / 1_000:.1f}K"
    return str(count)


def format_relative_date(iso_date: str, now: datetime | None = None) -> str:
    """Human relative date such as ``"3 days ago"`` or ``"2 months ago"``."""
    try:
        date = datetime.fromisoformat(iso_date.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return "unknown"
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    days = (now - date).days
    if days < 0:
        return "recently"
    if days == 0:
        return "today"
    if days == 1:
        return "yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return _plural(days // 7, "week")
    if days < 365:
        return _plural(days // 30, "month")
    return _plural(days // 365, "year")


def _plural(amount: int, unit: str) -> str:
    return f"{amount} {unit if amount == 1 else unit + 's'} ago"


# ── Analyze / Design ────────────────────────────────────────────────────────


def build_analysis_prompt(repo: RepoInfo, readme_budget: int = README_BUDGET) -> str:
    readme = ""
    if repo.readme:
        readme = f"\nREADME (first {readme_budget} chars):\n{repo.readme[:readme_budget]}"

    return f"""Analyze this GitHub repository and determine its characteristics.

Repository: {repo.name}
Description: {repo.description or "No description"}
Primary Language: {repo.language or "Unknown"}
Topics: {", ".join(repo.topics) or "None"}
{readme}

Respond with JSON only (no markdown, no code blocks):
{{
  "name": {json.dumps(repo.name)},
  "description": "concise 1-sentence description",
  "projectType": "{_choices(ProjectType)}",
  "primaryLanguage": "the main programming language",
  "audience": "{_choices(Audience)}",
  "style": "{_choices(Style)}",
  "keyFeatures": ["feature1", "feature2", "feature3"]
}}"""


def build_design_prompt(analysis: RepositoryAnalysis) -> str:
    return f"""Create a design system for a {analysis.project_type.value} project.

Project: {analysis.name}
Description: {analysis.description}
Audience: {analysis.audience.value}
Style: {analysis.style.value}

Generate a modern design system with BOTH light and dark mode color palettes.
Use Tailwind CSS color names (e.g., "blue-600", "gray-900").

Respond with JSON only (no markdown, no code blocks):
{{
  "colors": {{
    "light": {{
      "primary": "blue-600",
      "secondary": "indigo-600",
      "accent": "purple-500",
      "background": "white",
      "text": "gray-900"
    }},
    "dark": {{
      "primary": "blue-400",
      "secondary": "indigo-400",
      "accent": "purple-400",
      "background": "gray-950",
      "text": "gray-50"
    }}
  }},
  "typography": {{
    "headingFont": "Inter, system-ui, sans-serif",
    "bodyFont": "Inter, system-ui, sans-serif"
  }},
  "layout": "hero-centered"
}}"""


# ── Content sections ────────────────────────────────────────────────────────


def build_theme_section(design: DesignSystem, theme: ThemeSettings) -> str:
    """Palette section: both palettes plus toggle rules, or a single palette."""
    if theme.toggle:
        return _toggle_theme_section(design, theme.mode)

    mode = theme.mode
    if mode is ThemeMode.AUTO:
        logger.warning(
            'Theme mode "auto" requires toggle to be enabled for dynamic switching. '
            'Falling back to "dark" mode for static generation.'
        )
        mode = ThemeMode.DARK
    palette = design.colors.light if mode is ThemeMode.LIGHT else design.colors.dark

    return f"""DESIGN SYSTEM ({mode.value} mode):
- Primary color: {palette.primary}
- Secondary color: {palette.secondary}
- Accent color: {palette.accent}
- Background: {palette.background}
- Text: {palette.text}
- Layout: {design.layout}
- Fonts: {design.typography.heading_font}"""


def _toggle_theme_section(design: DesignSystem, default_mode: ThemeMode) -> str:
    light = design.colors.light
    dark = design.colors.dark
    default = "system preference" if default_mode is ThemeMode.AUTO else default_mode.value

    return f"""DESIGN SYSTEM (with Light/Dark mode toggle):

LIGHT MODE COLORS:
- Primary: {light.primary}
- Secondary: {light.secondary}
- Accent: {light.accent}
- Background: {light.background}
- Text: {light.text}

DARK MODE COLORS:
- Primary: {dark.primary}
- Secondary: {dark.secondary}
- Accent: {dark.accent}
- Background: {dark.background}
- Text: {dark.text}

Typography: {design.typography.heading_font}
Layout: {design.layout}
Default mode: {default}

THEME TOGGLE REQUIREMENTS:
1. Use Tailwind's dark mode with class strategy: add "dark" class to <html> element
2. Configure Tailwind to use class-based dark mode in a <script> tag:
   tailwind.config = {{ darkMode: 'class' }}
3. Add a theme toggle button in the header/nav area with sun/moon icons (use emoji or SVG)
4. Include this JavaScript for theme switching:
   - Check localStorage for saved theme preference
   - If no preference, check system preference (prefers-color-scheme)
   - Apply the theme by adding/removing "dark" class on <html>
   - Save preference to localStorage when user toggles
5. Use dark: prefix for dark mode styles (e.g., "bg-white dark:bg-gray-900")
6. Ensure smooth transition when switching themes (add transition classes)"""


def build_asset_section(config: SiteConfig) -> str:
    """Logo and favicon requirements; empty when neither is configured."""
    parts: list[str] = []
    if config.logo:
        parts.append(
            "LOGO:\n"
            f"- Logo image path: {config.logo.path}\n"
            f"- Alt text: {config.logo.alt or config.logo.path}\n"
            "- Display the logo in the header/navigation area\n"
            "- Use appropriate sizing (e.g., h-8 or h-10 for header logos)"
        )
    if config.favicon:
        parts.append(
            "FAVICON:\n"
            f'- Include this favicon link in the <head>: <link rel="icon" href="{config.favicon}">'
        )
    return "\n\n".join(parts) + "\n\n" if parts else ""


def absolute_og_image(og_image: str | None, site_url: str | None) -> str:
    if not og_image:
        return ""
    if site_url and not og_image.startswith(("http://", "https://")):
        return f"{site_url.rstrip('/')}/{og_image.lstrip('/')}"
    return og_image


def normalize_twitter_handle(handle: str | None) -> str:
    if not handle:
        return ""
    return handle if handle.startswith("@") else f"@{handle}"


def build_seo_section(repo: RepoInfo, config: SiteConfig) -> str:
    """Meta, Open Graph and Twitter card requirements for the index page."""
    seo = config.seo
    title = (seo and seo.title) or repo.name
    description = (seo and seo.description) or repo.description or ""
    keywords = ", ".join((seo and seo.keywords) or repo.topics)
    site_url = seo.site_url if seo else None
    og_url = site_url or repo.html_url
    og_image = absolute_og_image(seo.og_image if seo else None, site_url)
    twitter = normalize_twitter_handle(seo.twitter_handle if seo else None)

    meta = [f'- <meta name="description" content="{description}">']
    if keywords:
        meta.append(f'- <meta name="keywords" content="{keywords}">')
    if site_url:
        meta.append(f'- <link rel="canonical" href="{site_url}">')

    og = [
        f'- <meta property="og:title" content="{title}">',
        f'- <meta property="og:description" content="{description}">',
        f'- <meta property="og:url" content="{og_url}">',
        '- <meta property="og:type" content="website">',
    ]
    if og_image:
        og.append(f'- <meta property="og:image" content="{og_image}">')

    card = "summary_large_image" if og_image else "summary"
    twitter_tags = [
        f'- <meta name="twitter:card" content="{card}">',
        f'- <meta name="twitter:title" content="{title}">',
        f'- <meta name="twitter:description" content="{description}">',
    ]
    if og_image:
        twitter_tags.append(f'- <meta name="twitter:image" content="{og_image}">')
    if twitter:
        twitter_tags.append(f'- <meta name="twitter:site" content="{twitter}">')

    return (
        "SEO AND OPEN GRAPH REQUIREMENTS:\n"
        "Generate these meta tags in the <head> section:\n\n"
        "Required meta tags:\n" + "\n".join(meta) + "\n\n"
        "Open Graph tags (for social media sharing):\n" + "\n".join(og) + "\n\n"
        "Twitter Card tags:\n" + "\n".join(twitter_tags) + "\n\n"
    )


def build_stats_section(stats: RepoStats, now: datetime | None = None) -> str:
    """Stats-bar requirements from the repository's GitHub statistics."""
    lines = [
        "GITHUB STATISTICS (display these prominently in a stats bar below the hero section):",
        f"- Stars: {format_count(stats.stars)}",
        f"- Forks: {format_count(stats.forks)}",
        f"- Watchers: {format_count(stats.watchers)}",
        f"- Last Updated: {format_relative_date(stats.updated_at, now)}",
    ]
    if stats.license:
        lines.append(f"- License: {stats.license}")
    if stats.latest_release:
        lines.append(f"- Latest Release: {stats.latest_release}")
    if stats.contributor_count is not None:
        lines.append(f"- Contributors: {format_count(stats.contributor_count)}")
    lines += [
        "",
        "Design the stats section with:",
        "- A horizontal layout with icons and numbers",
        "- Subtle background to make stats stand out",
        "- Responsive design (stack on mobile if needed)",
    ]
    return "\n".join(lines)


def build_requirements(
    repo: RepoInfo,
    analysis: RepositoryAnalysis,
    design: DesignSystem,
    config: SiteConfig,
) -> str:
    """Everything the landing page must satisfy.

    Shared by the content prompt and the improve prompt so a refined page is
    held to the same requirements as the first draft.
    """
    stats = f"{build_stats_section(repo.stats)}\n\n" if repo.stats else ""
    logo_note = " (except for the provided logo)" if config.logo else ""

    return f"""PROJECT INFO:
- Name: {analysis.name}
- Description: {analysis.description}
- Type: {analysis.project_type.value}
- Key Features: {", ".join(analysis.key_features) or "Various features"}
- GitHub URL: {repo.html_url}

{build_theme_section(design, config.theme)}
{build_asset_section(config)}{build_seo_section(repo, config)}{stats}REQUIREMENTS:
1. Use Tailwind CSS classes only (loaded via CDN)
2. Include: hero section with project name and description, features section, footer with GitHub link
3. Make it responsive (mobile-first)
4. Use modern design patterns (gradients, shadows, rounded corners)
5. Include smooth hover effects
6. No external images - use gradients or emoji as placeholders{logo_note}
7. Include a "View on GitHub" button linking to: {repo.html_url}
8. The page should work standalone without any build step"""


def build_content_prompt(requirements: str, site_instructions: str | None = None) -> str:
    custom = f"\n\nADDITIONAL INSTRUCTIONS:\n{site_instructions}" if site_instructions else ""
    return (
        "Generate a modern, beautiful landing page HTML for this project.\n\n"
        f"{requirements}{custom}\n\n{HTML_OUTPUT_INSTRUCTION}"
    )


# ── Contributors page ───────────────────────────────────────────────────────


def build_contributors_section(contributors: list[Contributor], repo: RepoInfo) -> str:
    top = "\n".join(
        f"{rank}. {c.login} ({c.contributions} contributions) - {c.avatar_url}"
        for rank, c in enumerate(contributors[:CONTRIBUTORS_PROMPT_TOP], start=1)
    )
    return f"""CONTRIBUTORS DATA:
Total contributors: {len(contributors)}
Repository: {repo.name}

Top contributors:
{top}

All contributor data will be embedded in the HTML as a data attribute for the full list."""


def build_contributors_prompt(
    repo: RepoInfo,
    contributors: list[Contributor],
    design: DesignSystem,
    config: SiteConfig,
) -> str:
    seo = ""
    if config.seo:
        canonical = (
            f"- Canonical URL: {config.seo.site_url.rstrip('/')}/contributors\n"
            if config.seo.site_url
            else ""
        )
        seo = (
            "SEO REQUIREMENTS:\n"
            f'- Page title: "Contributors - {repo.name}"\n'
            f'- Meta description: "Meet the contributors who build and maintain {repo.name}"\n'
            f"{canonical}"
        )

    embedded = json.dumps(
        [
            {
                "login": c.login,
                "avatarUrl": c.avatar_url,
                "profileUrl": c.profile_url,
                "contributions": c.contributions,
            }
            for c in contributors
        ],
        indent=2,
    )

    return f"""Generate a beautiful contributors page HTML for this project.

PROJECT INFO:
- Name: {repo.name}
- Description: {repo.description or "A software project"}
- GitHub URL: {repo.html_url}

{build_contributors_section(contributors, repo)}

{build_theme_section(design, config.theme)}

{seo}
DESIGN REQUIREMENTS:
1. Use Tailwind CSS classes only (loaded via CDN)
2. Create a responsive grid of contributor cards
3. Each contributor card should include:
   - Avatar image (use the avatarUrl from data)
   - Username (login) with link to profileUrl
   - Contribution count
4. Add a navigation header with:
   - Project name/logo linking to index.html
   - "Back to Home" button
5. Include a hero section with title "Contributors" and total count
6. Make it responsive (mobile-first): 1 column on mobile, 2 on tablet, 3-4 on desktop
7. Use modern design patterns matching the main site
8. Include smooth hover effects on contributor cards
9. Add a footer with GitHub link

CONTRIBUTOR DATA TO EMBED:
Generate the page with all {len(contributors)} contributors embedded directly in the HTML.
Use this exact data for each contributor:
{embedded}

{HTML_OUTPUT_INSTRUCTION}"""


# ── Self-Refine ─────────────────────────────────────────────────────────────


def build_evaluation_prompt(html: str, project_name: str, project_description: str) -> str:
    return f"""You are an expert web design evaluator. Evaluate this landing page HTML for a project called "{project_name}".

PROJECT CONTEXT:
{project_description}

HTML TO EVALUATE:
{html[:EVALUATION_HTML_BUDGET]}

EVALUATION CRITERIA:
1. Visual Design (colors, typography, spacing, modern aesthetics)
2. Content Quality (clear messaging, compelling copy, professional tone)
3. User Experience (navigation, readability, call-to-action clarity)
4. Technical Quality (semantic HTML, responsive design, accessibility)
5. Brand Alignment (matches project purpose and audience)

Respond with JSON only (no markdown, no code blocks):
{{
  "score": 7,
  "feedback": "Overall assessment in 2-3 sentences",
  "strengths": ["strength1", "strength2"],
  "improvements": ["specific improvement 1", "specific improvement 2"]
}}

Be critical but constructive. Score 0-10 where:
- 0-3: Poor, major issues
- 4-5: Below average, needs work
- 6-7: Average, acceptable but could improve
- 8-9: Good, high quality
- 10: Exceptional, production-ready"""


def build_refine_prompt(
    html: str,
    evaluation: Evaluation,
    requirements: str,
    project_name: str,
    project_description: str,
) -> str:
    improvements = "\n".join(
        f"{index}. {item}" for index, item in enumerate(evaluation.improvements, start=1)
    )
    return f"""You are improving a landing page HTML. The current version was evaluated and received feedback.

PROJECT: {project_name}
DESCRIPTION: {project_description}

CURRENT EVALUATION:
- Score: {evaluation.score:g}/10
- Feedback: {evaluation.feedback}
- Areas to improve:
{improvements or "- (none listed)"}

ORIGINAL REQUIREMENTS:
{requirements}

CURRENT HTML:
{html[:REFINE_HTML_BUDGET]}

TASK: Regenerate the complete HTML page addressing ALL the improvement areas listed above.
Keep what works well (strengths) but significantly improve the weak areas.

OUTPUT: Return ONLY the complete HTML document starting with <!DOCTYPE html>."""
