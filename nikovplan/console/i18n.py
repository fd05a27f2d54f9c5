"""Display strings for the guest console. Only rendering changes with the language."""
from datetime import date
from typing import Dict

DEFAULT_LANGUAGE = "hr"
LANGUAGES = ("hr", "en")

STRINGS: Dict[str, Dict[str, str]] = {
    "hr": {
        "title": "Nikov plan za danas",
        "free": "Slobodan",
        "busy": "Zauzet",
        "current_status": "Trenutno",
        "history": "Prošli mjeseci",
        "show": "Prikaži",
        "hide": "Sakrij",
        "stats": "Statistike (zadnjih 30 dana)",
        "no_stats": "Nema podataka",
        "todos": "Zadaci",
        "loading": "Učitavam raspored...",
        "back": "Natrag na prijavu",
    },
    "en": {
        "title": "Nikov's plan for today",
        "free": "Free",
        "busy": "Busy",
        "current_status": "Right now",
        "history": "Past months",
        "show": "Show",
        "hide": "Hide",
        "stats": "Statistics (last 30 days)",
        "no_stats": "No data yet",
        "todos": "To-do",
        "loading": "Loading schedule...",
        "back": "Back to Login",
    },
}

WEEKDAYS = {
    "hr": ["ponedjeljak", "utorak", "srijeda", "četvrtak", "petak", "subota", "nedjelja"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
}

# Croatian long dates use the genitive month name
MONTHS = {
    "hr": ["siječnja", "veljače", "ožujka", "travnja", "svibnja", "lipnja",
           "srpnja", "kolovoza", "rujna", "listopada", "studenoga", "prosinca"],
    "en": ["January", "February", "March", "April", "May", "June",
           "July", "August", "September", "October", "November", "December"],
}


def normalize_language(lang: str) -> str:
    return lang if lang in LANGUAGES else DEFAULT_LANGUAGE


def strings(lang: str) -> Dict[str, str]:
    return dict(STRINGS[normalize_language(lang)])


def other_language(lang: str) -> str:
    return "en" if normalize_language(lang) == "hr" else "hr"


def format_long_date(value: date, lang: str) -> str:
    """e.g. "ponedjeljak, 19. listopada 2026." or "Monday, October 19, 2026" """
    lang = normalize_language(lang)
    weekday = WEEKDAYS[lang][value.weekday()]
    month = MONTHS[lang][value.month - 1]
    if lang == "hr":
        return f"{weekday}, {value.day}. {month} {value.year}."
    return f"{weekday}, {month} {value.day}, {value.year}"
