"""Theme song URL template resolution.

A template is a plain string with zero or more of the placeholders
``{tvdbId}``, ``{imdbId}`` and ``{tmdbId}``. Matching is case-insensitive,
so ``{TVDBID}`` works too.

Example:
    >>> series = Series(path="/tv/Show", name="Show", provider_ids={"Tvdb": "12345"})
    >>> resolve_theme_song_url("http://x/{tvdbId}.mp3", series).url
    'http://x/12345.mp3'
"""

from __future__ import annotations

import re

from themesongs.models import PlaceholderBinding, ProviderKind, SeriesRecord, UrlResolution

# (placeholder token, provider, human name) in resolution order
PLACEHOLDERS: tuple[tuple[str, ProviderKind, str], ...] = (
    ("{tvdbId}", ProviderKind.TVDB, "tvdbId"),
    ("{imdbId}", ProviderKind.IMDB, "imdbId"),
    ("{tmdbId}", ProviderKind.TMDB, "tmdbId"),
)


def _token_pattern(placeholder: str) -> re.Pattern[str]:
    return re.compile(re.escape(placeholder), re.IGNORECASE)


def template_placeholders(template: str) -> list[str]:
    """Return the names of the recognized placeholders a template references."""
    return [name for token, _, name in PLACEHOLDERS if _token_pattern(token).search(template)]


def build_bindings(series: SeriesRecord) -> list[PlaceholderBinding]:
    """Bind every recognized placeholder to the series' provider id."""
    return [
        PlaceholderBinding(placeholder=token, value=series.get_provider_id(kind), name=name)
        for token, kind, name in PLACEHOLDERS
    ]


def resolve_theme_song_url(template: str, series: SeriesRecord) -> UrlResolution:
    """Substitute provider ids into a URL template.

    Placeholders absent from the template impose no requirement. A placeholder
    that is present but has no id on the series is reported as missing and
    left unsubstituted; scanning continues so every missing name is reported.

    Args:
        template: URL template
        series: Series providing the ids

    Returns:
        UrlResolution with ``url`` set on success, or ``missing`` listing the
        unresolved placeholder names on failure.
    """
    result = template
    missing: list[str] = []

    for binding in build_bindings(series):
        pattern = _token_pattern(binding.placeholder)
        if not pattern.search(result):
            continue

        value = binding.value
        if value is None or not value.strip():
            missing.append(binding.name)
            continue

        # Callable replacement keeps backslashes in ids literal
        result = pattern.sub(lambda _match, value=value: value, result)

    if missing:
        return UrlResolution(template=template, url=None, missing=missing)
    return UrlResolution(template=template, url=result)
