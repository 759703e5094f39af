"""
Internationalization (i18n) module for the phisher panel.

Provides translations for all user-facing messages in English (en) and
German (de).
"""

from typing import Optional


# Supported languages
SUPPORTED_LANGUAGES = frozenset({"en", "de"})
DEFAULT_LANGUAGE = "en"


# Translation dictionary with all messages
# Structure: {message_key: {language_code: translated_message}}
TRANSLATIONS: dict[str, dict[str, str]] = {
    # URL input
    "input.empty": {
        "en": "Please enter a URL",
        "de": "Bitte eine URL eingeben",
    },
    "input.invalid_url": {
        "en": "Please enter a valid URL",
        "de": "Bitte eine gültige URL eingeben",
    },
    "analysis.failed": {
        "en": "Analysis failed. Please try again.",
        "de": "Analyse fehlgeschlagen. Bitte erneut versuchen.",
    },
    "analysis.error_title": {
        "en": "Analysis Error",
        "de": "Analysefehler",
    },

    # Result rendering
    "result.threat_detected": {
        "en": "Threat Detected",
        "de": "Bedrohung erkannt",
    },
    "result.suspicious": {
        "en": "Suspicious Activity",
        "de": "Verdächtige Aktivität",
    },
    "result.safe": {
        "en": "Safe URL",
        "de": "Sichere URL",
    },
    "result.default_description": {
        "en": "Neural network analysis completed",
        "de": "Analyse durch neuronales Netz abgeschlossen",
    },
    "recommendation.danger": {
        "en": "Avoid visiting this website. It may be malicious.",
        "de": "Diese Website meiden. Sie ist möglicherweise schädlich.",
    },
    "recommendation.warning": {
        "en": "Exercise caution when interacting with this website.",
        "de": "Vorsicht beim Umgang mit dieser Website.",
    },
    "recommendation.safe": {
        "en": "This website appears to be safe to visit.",
        "de": "Diese Website scheint sicher zu sein.",
    },

    # Whitelist
    "whitelist.empty_input": {
        "en": "Please enter a domain",
        "de": "Bitte eine Domain eingeben",
    },
    "whitelist.invalid_domain": {
        "en": "Please enter a valid domain (e.g., example.com)",
        "de": "Bitte eine gültige Domain eingeben (z. B. example.com)",
    },
    "whitelist.added": {
        "en": "Domain added to whitelist",
        "de": "Domain zur Whitelist hinzugefügt",
    },
    "whitelist.removed": {
        "en": "Domain removed from whitelist",
        "de": "Domain aus der Whitelist entfernt",
    },
    "whitelist.add_failed": {
        "en": "Failed to add domain",
        "de": "Domain konnte nicht hinzugefügt werden",
    },
    "whitelist.remove_failed": {
        "en": "Failed to remove domain",
        "de": "Domain konnte nicht entfernt werden",
    },
    "whitelist.empty": {
        "en": "No trusted domains added yet",
        "de": "Noch keine vertrauenswürdigen Domains",
    },
    "whitelist.load_failed": {
        "en": "Failed to load whitelist",
        "de": "Whitelist konnte nicht geladen werden",
    },

    # Blacklist
    "blacklist.empty_input": {
        "en": "Please enter a domain",
        "de": "Bitte eine Domain eingeben",
    },
    "blacklist.invalid_domain": {
        "en": "Please enter a valid domain",
        "de": "Bitte eine gültige Domain eingeben",
    },
    "blacklist.added": {
        "en": "\"{domain}\" added to blacklist",
        "de": "\"{domain}\" zur Blacklist hinzugefügt",
    },
    "blacklist.removed": {
        "en": "\"{domain}\" removed from blacklist",
        "de": "\"{domain}\" aus der Blacklist entfernt",
    },
    "blacklist.already_listed": {
        "en": "Domain is already blacklisted",
        "de": "Domain ist bereits auf der Blacklist",
    },
    "blacklist.add_failed": {
        "en": "Failed to add domain to blacklist",
        "de": "Domain konnte nicht zur Blacklist hinzugefügt werden",
    },
    "blacklist.remove_failed": {
        "en": "Failed to remove domain from blacklist",
        "de": "Domain konnte nicht aus der Blacklist entfernt werden",
    },
    "blacklist.empty": {
        "en": "No blocked domains",
        "de": "Keine blockierten Domains",
    },
    "blacklist.load_failed": {
        "en": "Failed to load blacklist",
        "de": "Blacklist konnte nicht geladen werden",
    },
    "blacklist.added_date": {
        "en": "Recently",
        "de": "Kürzlich",
    },

    # History
    "history.status_threat": {
        "en": "Threat",
        "de": "Bedrohung",
    },
    "history.status_safe": {
        "en": "Safe",
        "de": "Sicher",
    },
    "history.no_threats": {
        "en": "None detected",
        "de": "Keine erkannt",
    },
    "history.exported": {
        "en": "Exported successfully as {format}",
        "de": "Erfolgreich als {format} exportiert",
    },
    "history.export_failed": {
        "en": "Export failed",
        "de": "Export fehlgeschlagen",
    },
    "history.cleared": {
        "en": "History cleared",
        "de": "Verlauf gelöscht",
    },
    "history.clear_failed": {
        "en": "Failed to clear history",
        "de": "Verlauf konnte nicht gelöscht werden",
    },

    # Theme
    "theme.dark": {
        "en": "Dark",
        "de": "Dunkel",
    },
    "theme.light": {
        "en": "Light",
        "de": "Hell",
    },

    # CLI output
    "cli.analyzing": {
        "en": "Analyzing: {url}",
        "de": "Analysiere: {url}",
    },
    "cli.risk": {
        "en": "Risk score: {score}/100 ({level})",
        "de": "Risikowert: {score}/100 ({level})",
    },
    "cli.stats": {
        "en": "Checks: {total} | Threats blocked: {threats} | Safe URLs: {safe}",
        "de": "Prüfungen: {total} | Blockierte Bedrohungen: {threats} | Sichere URLs: {safe}",
    },
    "cli.simulation": {
        "en": "Simulation mode: no network requests are made",
        "de": "Simulationsmodus: Es werden keine Netzwerkanfragen gesendet",
    },
}


def get_message(
    key: str,
    language: Optional[str] = None,
    **kwargs,
) -> str:
    """
    Get a translated message by key.

    Args:
        key: The message key (e.g., 'result.safe')
        language: Language code ('en' or 'de'). Defaults to DEFAULT_LANGUAGE.
        **kwargs: Format arguments for the message template

    Returns:
        The translated and formatted message. If the key is not found,
        returns the key itself. If the language is not supported, falls
        back to the default language.
    """
    if language is None or language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    translations = TRANSLATIONS.get(key)

    if translations is None:
        return key

    message = translations.get(language)

    if message is None:
        message = translations.get(DEFAULT_LANGUAGE)

    if message is None:
        return key

    if kwargs:
        try:
            message = message.format(**kwargs)
        except KeyError:
            pass

    return message


def get_missing_translations(language: str) -> set[str]:
    """
    Get all message keys that are missing translations for a language.

    Args:
        language: The language code to check

    Returns:
        Set of message keys missing translations for the specified language.
    """
    return {
        key for key, translations in TRANSLATIONS.items()
        if language not in translations
    }
