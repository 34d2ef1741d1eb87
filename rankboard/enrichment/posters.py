"""Local fallback posters for titles the movie database can't resolve."""

from __future__ import annotations

import re

KOREAN_FALLBACK = "/korean-movie-poster.jpg"

_HANGUL = re.compile(r"[가-힣]")

POSTER_RULES: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), path)
    for pattern, path in (
        (r"stranger\s*things|기묘한|stranger", "/stranger-things-inspired-poster.png"),
        (r"the\s*crown|크라운", "/the-crown-poster.jpg"),
        (r"chef|셰프|세프", "/chef-tv-show-poster.jpg"),
        (r"ballerina|발레리나", "/asian-drama-poster.jpg"),
        (r"squid\s*game|오징어\s*게임", "/generic-survival-game-poster.png"),
        (r"avengers|어벤져스", "/generic-superhero-team-poster.png"),
        (r"project|프로젝트", "/project-movie-poster.jpg"),
        (r"drama|드라마|melodrama|발라드|ballad", "/ballad-tv-show-poster.jpg"),
        (r"red\s*notice|레드\s*노티스", "/red-notice-poster.jpg"),
        (r"concrete\s*utopia|콘크리트\s*유토피아", "/concrete-utopia-2.jpg"),
        (r"hellbound|지옥", KOREAN_FALLBACK),
        (r"emergency\s*declaration|비상\s*선언", KOREAN_FALLBACK),
        (r"peninsula|반도", KOREAN_FALLBACK),
        (r"the\s*challenge|챌린지", "/generic-survival-game-poster.png"),
        (r"exit\s*2|엑시트\s*2", KOREAN_FALLBACK),
        (r"mogadishu|모가디슈", KOREAN_FALLBACK),
        (r"chicken\s*nugget|치킨\s*너겟", "/asian-drama-poster.jpg"),
        (r"all\s*of\s*us\s*are\s*dead", "/generic-survival-game-poster.png"),
        (r"dead\s*and\s*buried", KOREAN_FALLBACK),
    )
)


def local_poster(title: str) -> str | None:
    """Return a static poster path for title, if any rule matches.

    Titles with Hangul that match no rule get the generic Korean poster.
    """
    for pattern, path in POSTER_RULES:
        if pattern.search(title):
            return path
    if _HANGUL.search(title):
        return KOREAN_FALLBACK
    return None
