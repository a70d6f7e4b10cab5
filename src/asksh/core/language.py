"""User message language detection."""

from __future__ import annotations

import re
import unicodedata

from loguru import logger

from asksh.errors import DetectionAmbiguous

WORD_RE = re.compile(r"[^\W\d_]+")
MIN_LATIN_SCORE = 1

# Ordered: kana must win over Han so that Japanese text is not read as Chinese.
SCRIPT_RANGES: tuple[tuple[str, tuple[tuple[int, int], ...]], ...] = (
    ("ja", ((0x3040, 0x309F), (0x30A0, 0x30FF))),
    ("ko", ((0xAC00, 0xD7AF), (0x1100, 0x11FF))),
    ("zh", ((0x4E00, 0x9FFF), (0x3400, 0x4DBF))),
    ("ru", ((0x0400, 0x04FF),)),
    ("ar", ((0x0600, 0x06FF),)),
    ("el", ((0x0370, 0x03FF),)),
    ("he", ((0x0590, 0x05FF),)),
    ("hi", ((0x0900, 0x097F),)),
    ("th", ((0x0E00, 0x0E7F),)),
)

STOPWORDS: dict[str, frozenset[str]] = {
    "en": frozenset(
        "the a an is are was what which who how why where when show list me my of in on to and or "
        "for with this that today please can you do does find files file directory current".split()
    ),
    "fr": frozenset(
        "le la les un une des est sont quelle quel quels quelles comment pourquoi où quand "
        "du de et ou pour avec ce cette aujourd hui moi mon ma mes dans sur je vous montre "
        "affiche liste fichiers fichier répertoire dossier quoi qui".split()
    ),
    "es": frozenset(
        "el la los las un una es son cuál cual qué que cómo como por qué dónde cuando del de "
        "y o para con este esta hoy muéstrame mi mis en archivos archivo directorio carpeta".split()
    ),
    "de": frozenset(
        "der die das ein eine ist sind was welche welcher wie warum wo wann und oder für mit "
        "dieser diese heute bitte zeige mir mein meine im in auf dateien datei verzeichnis ordner".split()
    ),
    "it": frozenset(
        "il lo la gli le un una è sono quale quali come perché dove quando del di e o per con "
        "questo questa oggi mostrami mio mia nel in su file cartella elenco".split()
    ),
    "pt": frozenset(
        "o a os as um uma é são qual quais como porque onde quando do da de e ou para com "
        "este esta hoje mostre meu minha no na em arquivos arquivo diretório pasta".split()
    ),
    "nl": frozenset(
        "de het een is zijn wat welke hoe waarom waar wanneer en of voor met deze dit vandaag "
        "toon mij mijn in op bestanden bestand map".split()
    ),
}

DIACRITICS: dict[str, str] = {
    "fr": "éèêëàâçîïôûùœ",
    "es": "ñ¿¡áíóú",
    "de": "äöüß",
    "pt": "ãõâêôç",
    "it": "àèìòù",
}


class LanguageDetector:
    """Detect the language of one user message, falling back when unsure."""

    def __init__(self, default: str = "en") -> None:
        self.default = default

    def detect(self, text: str, *, previous: str | None = None) -> str:
        try:
            return classify_language(text)
        except DetectionAmbiguous as exc:
            fallback = previous or self.default
            logger.debug("language.ambiguous fallback={} reason={}", fallback, exc)
            return fallback


def classify_language(text: str) -> str:
    """Return an ISO 639-1 tag or raise ``DetectionAmbiguous``."""

    normalized = unicodedata.normalize("NFC", text)
    script_counts = _script_counts(normalized)
    if script_counts:
        return max(script_counts.items(), key=lambda item: item[1])[0]

    words = [word.casefold() for word in WORD_RE.findall(normalized)]
    if not words:
        raise DetectionAmbiguous("no letters")

    scores = dict.fromkeys(STOPWORDS, 0)
    for word in words:
        for language, stopwords in STOPWORDS.items():
            if word in stopwords:
                scores[language] += 1
    lowered = normalized.casefold()
    for language, marks in DIACRITICS.items():
        scores[language] += sum(2 for char in lowered if char in marks)

    ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    (best, best_score), (_, runner_up) = ranked[0], ranked[1]
    if best_score < MIN_LATIN_SCORE:
        raise DetectionAmbiguous("no known words")
    if best_score == runner_up:
        raise DetectionAmbiguous(f"tie at score {best_score}")
    return best


def _script_counts(text: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    kana_seen = False
    for char in text:
        code = ord(char)
        for language, ranges in SCRIPT_RANGES:
            if any(start <= code <= end for start, end in ranges):
                counts[language] = counts.get(language, 0) + 1
                kana_seen = kana_seen or language == "ja"
                break
    if kana_seen and "zh" in counts:
        # Japanese mixes kanji with kana.
        counts["ja"] += counts.pop("zh")
    return counts
