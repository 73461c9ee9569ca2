from tradejournal.models.trade import Theme
from tradejournal.services.preferences import LocalPreferences


def test_default_theme_is_light(tmp_path):
    assert LocalPreferences(str(tmp_path / "prefs.json")).get_theme() == Theme.LIGHT


def test_theme_survives_restart(tmp_path):
    path = str(tmp_path / "nested" / "prefs.json")
    LocalPreferences(path).set_theme(Theme.DARK)
    assert LocalPreferences(path).get_theme() == Theme.DARK


def test_corrupt_or_unknown_values_fall_back(tmp_path):
    path = tmp_path / "prefs.json"
    path.write_text("{not json")
    assert LocalPreferences(str(path)).get_theme() == Theme.LIGHT
    path.write_text('{"theme": "sepia"}')
    assert LocalPreferences(str(path)).get_theme() == Theme.LIGHT


def test_toggle(tmp_path):
    prefs = LocalPreferences(str(tmp_path / "prefs.json"))
    assert prefs.toggle_theme() == Theme.DARK
    assert prefs.toggle_theme() == Theme.LIGHT
