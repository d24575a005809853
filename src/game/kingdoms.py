from types import MappingProxyType
from typing import Optional


DEFAULT_KINGDOM = "Python"
UNKNOWN_LANGUAGE = "unknown"

KINGDOMS = frozenset({
    "Python", "JavaScript", "TypeScript", "Java", "C#",
    "Go", "Rust", "Ruby", "PHP", "C++", "C", "Swift",
    "Kotlin", "Shell", "Scala", "AI",
})

# lower-case lookup -> canonical label
_KINGDOM_BY_KEY = MappingProxyType({k.lower(): k for k in KINGDOMS})

LANGUAGE_ALIASES = MappingProxyType({
    "python": "Python",
    "javascript": "JavaScript",
    "typescript": "TypeScript",
    "java": "Java",
    "c#": "C#",
    "csharp": "C#",
    "go": "Go",
    "golang": "Go",
    "rust": "Rust",
    "ruby": "Ruby",
    "php": "PHP",
    "c++": "C++",
    "cpp": "C++",
    "c": "C",
    "swift": "Swift",
    "kotlin": "Kotlin",
    "shell": "Shell",
    "bash": "Shell",
    "scala": "Scala",
})

# Keys are lower-case; lookups go through map_rare_language.
RARE_LANGUAGE_MAPPING = MappingProxyType({
    # functional
    "haskell": "Scala",
    "elixir": "Scala",
    "erlang": "Scala",
    "clojure": "Scala",
    "f#": "Scala",
    "ocaml": "Scala",
    "scheme": "Scala",
    "lisp": "Scala",
    "common lisp": "Scala",
    "racket": "Scala",

    # scripting
    "perl": "Python",
    "lua": "Python",
    "r": "Python",
    "julia": "Python",
    "matlab": "Python",
    "powershell": "Shell",
    "makefile": "Shell",
    "dockerfile": "Shell",

    # mobile
    "objective-c": "Swift",
    "objective-c++": "Swift",

    # systems
    "zig": "Rust",
    "nim": "Rust",
    "d": "C++",
    "assembly": "C",

    # web
    "coffeescript": "JavaScript",
    "elm": "TypeScript",
    "reasonml": "TypeScript",
    "purescript": "TypeScript",
    "vue": "JavaScript",
    "svelte": "JavaScript",

    # legacy
    "cobol": "Java",
    "fortran": "C",
    "pascal": "C",
    "delphi": "C",
    "visual basic": "C#",
    "vb.net": "C#",
    "groovy": "Java",

    # other
    "html": "JavaScript",
    "css": "JavaScript",
    "scss": "JavaScript",
    "sass": "JavaScript",
    "less": "JavaScript",
    "sql": "Java",
    "plsql": "Java",
    "solidity": "JavaScript",
    "jupyter notebook": "AI",
})


def normalize_language(language: str) -> str:
    """
    Canonical spelling for known aliases ("golang" -> "Go"),
    anything else is returned unchanged
    """
    return LANGUAGE_ALIASES.get(language.strip().lower(), language)


def as_kingdom(name: str) -> Optional[str]:
    return _KINGDOM_BY_KEY.get(name.strip().lower())


def map_rare_language(language: str) -> Optional[str]:
    return RARE_LANGUAGE_MAPPING.get(language.strip().lower())


def resolve_kingdom(language: str) -> Optional[str]:
    """
    normalize -> direct match -> rare-language remap.
    None when the language leads to no supported kingdom.
    """
    normalized = normalize_language(language)

    kingdom = as_kingdom(normalized)
    if kingdom:
        return kingdom

    mapped = map_rare_language(normalized)
    if mapped:
        return as_kingdom(mapped)
    return None
