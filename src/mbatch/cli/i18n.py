"""Internationalization module for mbatch CLI.

Provides locale detection and help message localization.
Help messages are displayed in Japanese for Japanese locales,
and in English for all other locales.
"""

import os
from typing import Literal

Locale = Literal["ja", "en"]


def get_locale() -> Locale:
    """Detect locale from environment variables.

    Priority: LC_ALL > LANG
    Returns "ja" for Japanese locales (ja_JP, ja), "en" otherwise.
    """
    locale_str = os.environ.get("LC_ALL") or os.environ.get("LANG") or ""
    locale_str = locale_str.lower()

    if locale_str.startswith("ja"):
        return "ja"

    return "en"


def get_help(key: str) -> str:
    """Get localized help message for the given key.

    Args:
        key: The message key (e.g., "cli.description")

    Returns:
        Localized help message string

    Raises:
        KeyError: If the key is not found in HELP_MESSAGES
    """
    locale = get_locale()
    return HELP_MESSAGES[key][locale]


HELP_MESSAGES: dict[str, dict[Locale, str]] = {
    # Main CLI
    "cli.description": {
        "ja": "mbatch - エンコーダーによるメディア一括変換ツール",
        "en": "mbatch - batch media conversion through an external encoder",
    },
    "cli.verbose": {
        "ja": "詳細なログを表示",
        "en": "Show detailed logs",
    },
    # video command
    "video.description": {
        "ja": "動画のバッチを実行\n\n"
        "DESCRIPTOR は commands, fallback_commands, source_paths,\n"
        "formats, durations, folder, notification_title を持つ\n"
        "JSON ファイルです。Ctrl-C で処理をキャンセルします。",
        "en": "Run a video batch\n\n"
        "DESCRIPTOR is a JSON file with commands, fallback_commands,\n"
        "source_paths, formats, durations, folder and notification_title.\n"
        "Press Ctrl-C to cancel the batch.",
    },
    "video.json": {
        "ja": "JSON形式で出力",
        "en": "Output in JSON format",
    },
    # images command
    "images.description": {
        "ja": "画像のバッチを実行\n\n"
        "DESCRIPTOR は commands, source_paths, formats, folder,\n"
        "notification_title を持つ JSON ファイルです。\n"
        "Ctrl-C で処理をキャンセルします。",
        "en": "Run an image batch\n\n"
        "DESCRIPTOR is a JSON file with commands, source_paths,\n"
        "formats, folder and notification_title.\n"
        "Press Ctrl-C to cancel the batch.",
    },
    "images.json": {
        "ja": "JSON形式で出力",
        "en": "Output in JSON format",
    },
    # config command
    "config.description": {
        "ja": "設定の表示・変更",
        "en": "Display or modify configuration",
    },
    "config.json": {
        "ja": "JSON形式で出力",
        "en": "Output in JSON format",
    },
    "config.set.description": {
        "ja": "設定値を変更\n\n"
        "例: mbatch config set encoder.binary /usr/local/bin/ffmpeg",
        "en": "Modify configuration value\n\n"
        "Example: mbatch config set encoder.binary /usr/local/bin/ffmpeg",
    },
}
