"""HTML pages for the episode index and per-episode detail views."""

from __future__ import annotations

from html import escape

from .models import Episode, EpisodeCatalog

STYLESHEET_URL = "https://unpkg.com/mvp.css"
NO_AUDIO_TEXT = "No audio available"
NOT_FOUND_TEXT = "No podcast found"

_INDEX_TEMPLATE = """<html>
    <head>
        <title>{site_title}</title>
        <link rel="stylesheet" href="{stylesheet}">
    </head>
    <body>
        <main>
            <h1>{site_title}</h1>
            <div>
                <ul>
                    {items}
                </ul>
            </div>
        </main>
    </body>
</html>
"""

_EPISODE_TEMPLATE = """<html>
    <head>
        <title>{site_title} {title}</title>
        <link rel="stylesheet" href="{stylesheet}">
        <style>
            .fa-chevron-right {{
                display: none;
            }}
            .post-more-link {{
                margin-left: 0.5rem;
            }}
        </style>
    </head>
    <body>
        <main>
            <article>
                <a href="/">&larr; all episodes</a>
                <h1># {title}</h1>
                <audio controls src="{audio_src}"></audio>
                <h2>## description &amp; transcript</h2>
                <p>{description}</p>
            </article>
        </main>
    </body>
</html>
"""


def episode_path(episode_id: int) -> str:
    return f"/{episode_id}"


def render_index(catalog: EpisodeCatalog, site_title: str) -> str:
    """Render the list of all episodes, linking each to its detail page."""
    items = "\n".join(
        f'<li><a href="{episode_path(episode_id)}">{escape(episode.title)}</a></li>'
        for episode_id, episode in catalog.enumerate()
    )
    return _INDEX_TEMPLATE.format(
        site_title=escape(site_title), stylesheet=STYLESHEET_URL, items=items
    )


def render_episode(episode: Episode, site_title: str) -> str:
    """Render a single episode with its audio player and description.

    The description is feed-supplied show notes and is emitted as HTML.
    """
    audio_src = episode.audio_url if episode.audio_url is not None else NO_AUDIO_TEXT
    return _EPISODE_TEMPLATE.format(
        site_title=escape(site_title),
        stylesheet=STYLESHEET_URL,
        title=escape(episode.title),
        audio_src=escape(audio_src, quote=True),
        description=episode.description,
    )


def render_not_found() -> str:
    return NOT_FOUND_TEXT
