from typing import Mapping

from game.kingdoms import DEFAULT_KINGDOM, UNKNOWN_LANGUAGE, resolve_kingdom
from game.models import AccountSummary


def rank_languages(language_repo_count: Mapping[str, int]) -> list:
    """Languages by repository count, most used first (ties by name)"""
    ranked = sorted(language_repo_count.items(), key=lambda kv: (-kv[1], kv[0]))
    return [language for language, _ in ranked]


def classify(summary: AccountSummary) -> str:
    """
    Pick the player's kingdom from the languages of their repositories.

    1. first ranked language that resolves to a kingdom
    2. the main language, unless missing or "unknown"
    3. DEFAULT_KINGDOM
    """
    for language in rank_languages(summary.language_repo_count):
        if not language:
            continue
        kingdom = resolve_kingdom(language)
        if kingdom:
            return kingdom

    main_language = summary.main_language
    if main_language and main_language.strip().lower() != UNKNOWN_LANGUAGE:
        kingdom = resolve_kingdom(main_language)
        if kingdom:
            return kingdom

    return DEFAULT_KINGDOM
