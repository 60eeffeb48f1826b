"""Display-locale number formatting.

Display formatting is separate from import parsing: `ImportFormatSettings`
describes incoming text while the display locale only affects rendering.
Callers hold a `DisplayLocaleContext` and pass it to formatting code; the
context caches one formatter per locale and drops it on `locale_changed`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Final

from .dates import format_canonical_battle_date
from .dto import ImportFormatSettings
from .quantity import format_large_number

DEFAULT_DISPLAY_LOCALE: Final[str] = "en-US"

# locale tag -> (decimal separator, thousands separator)
_LOCALE_SEPARATORS: Final[dict[str, tuple[str, str]]] = {
    "en-US": (".", ","),
    "en-CA": (".", ","),
    "es-MX": (".", ","),
    "pt-BR": (",", "."),
    "es-AR": (",", "."),
    "en-GB": (".", ","),
    "de-DE": (",", "."),
    "fr-FR": (",", " "),
    "es-ES": (",", "."),
    "it-IT": (",", "."),
    "nl-NL": (",", "."),
    "pl-PL": (",", " "),
    "ru-RU": (",", " "),
    "uk-UA": (",", " "),
    "cs-CZ": (",", " "),
    "sv-SE": (",", " "),
    "da-DK": (",", "."),
    "fi-FI": (",", " "),
    "nb-NO": (",", " "),
    "el-GR": (",", "."),
    "pt-PT": (",", " "),
    "tr-TR": (",", "."),
    "ja-JP": (".", ","),
    "ko-KR": (".", ","),
    "zh-CN": (".", ","),
    "zh-TW": (".", ","),
    "th-TH": (".", ","),
    "vi-VN": (",", "."),
    "id-ID": (",", "."),
    "en-AU": (".", ","),
    "en-NZ": (".", ","),
    "hi-IN": (".", ","),
    "ar-SA": (".", ","),
    "he-IL": (".", ","),
    "en-ZA": (",", " "),
}

SUPPORTED_DISPLAY_LOCALES: Final[tuple[str, ...]] = tuple(_LOCALE_SEPARATORS)


def resolve_display_locale(locale: str | None) -> str:
    """Return a supported locale tag, matching case-insensitively and by language.

    Unknown locales fall back to `en-US`.
    """

    if not locale:
        return DEFAULT_DISPLAY_LOCALE
    wanted = locale.replace("_", "-").strip()
    for tag in SUPPORTED_DISPLAY_LOCALES:
        if tag.casefold() == wanted.casefold():
            return tag
    language = wanted.split("-", 1)[0].casefold()
    for tag in SUPPORTED_DISPLAY_LOCALES:
        if tag.split("-", 1)[0].casefold() == language:
            return tag
    return DEFAULT_DISPLAY_LOCALE


@dataclass(frozen=True, slots=True)
class NumberFormatter:
    """Separator-aware number formatting for one display locale."""

    locale: str
    decimal_separator: str
    thousands_separator: str

    def format_number(self, value: Decimal | int | float, decimals: int = 0) -> str:
        """Format with grouping and a fixed number of decimals (`1,234.56`)."""

        number = value if isinstance(value, Decimal) else Decimal(str(value))
        quantum = Decimal(1).scaleb(-decimals)
        rounded = number.quantize(quantum, rounding=ROUND_HALF_UP)
        sign = "-" if rounded < 0 else ""
        integer_text, _, fraction_text = f"{abs(rounded):f}".partition(".")

        groups: list[str] = []
        while len(integer_text) > 3:
            groups.insert(0, integer_text[-3:])
            integer_text = integer_text[:-3]
        groups.insert(0, integer_text)
        grouped = self.thousands_separator.join(groups)

        if fraction_text:
            return f"{sign}{grouped}{self.decimal_separator}{fraction_text}"
        return f"{sign}{grouped}"

    def format_large_number(self, value: Decimal | int | float) -> str:
        """Format with scale suffixes using this locale's decimal separator."""

        return format_large_number(
            value,
            ImportFormatSettings(
                decimal_separator=self.decimal_separator,
                thousands_separator=self.thousands_separator,
            ),
        )


class DisplayLocaleContext:
    """Holds the active display locale and its cached formatter.

    Example:
        context = DisplayLocaleContext("de-DE")
        context.number_formatter.format_number(1234.5, 2)  # "1.234,50"
        context.locale_changed("en-US")
    """

    def __init__(self, locale: str | None = None) -> None:
        self._locale = resolve_display_locale(locale)
        self._formatter: NumberFormatter | None = None

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def number_formatter(self) -> NumberFormatter:
        """Return the cached formatter, building it on first use."""

        if self._formatter is None:
            decimal_separator, thousands_separator = _LOCALE_SEPARATORS[self._locale]
            self._formatter = NumberFormatter(
                locale=self._locale,
                decimal_separator=decimal_separator,
                thousands_separator=thousands_separator,
            )
        return self._formatter

    def locale_changed(self, locale: str | None) -> bool:
        """Switch locale and invalidate the cached formatter.

        Returns:
            True when the resolved locale actually changed.
        """

        resolved = resolve_display_locale(locale)
        if resolved == self._locale:
            return False
        self._locale = resolved
        self._formatter = None
        return True

    def format_number(self, value: Decimal | int | float, decimals: int = 0) -> str:
        return self.number_formatter.format_number(value, decimals)

    def format_large_number(self, value: Decimal | int | float) -> str:
        return self.number_formatter.format_large_number(value)

    def format_battle_date(self, value: datetime) -> str:
        """Battle dates always render in the canonical `Oct 14, 2025 13:14` layout."""

        return format_canonical_battle_date(value)
