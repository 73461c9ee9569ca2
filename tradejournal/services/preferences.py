"""
Local device preferences: currently just the dark/light theme flag,
kept in a small JSON file next to the database.
"""
import json
import logging
import os

from config.settings import settings
from tradejournal.models.trade import Theme

logger = logging.getLogger("tradejournal.prefs")


class LocalPreferences:
    def __init__(self, path: str = None):
        self.path = path or settings.PREFS_PATH

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get_theme(self) -> Theme:
        try:
            return Theme(self._read().get("theme", Theme.LIGHT.value))
        except ValueError:
            return Theme.LIGHT

    def set_theme(self, theme: Theme) -> Theme:
        theme = Theme(theme)
        data = self._read()
        data["theme"] = theme.value
        dirname = os.path.dirname(self.path)
        if dirname:
            os.makedirs(dirname, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        return theme

    def toggle_theme(self) -> Theme:
        current = self.get_theme()
        return self.set_theme(Theme.LIGHT if current == Theme.DARK else Theme.DARK)
