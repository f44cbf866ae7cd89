from portfolio_snapshots.schemas.settings import UserPreferences
from portfolio_snapshots.services.preferences import _serialize, preferences_from_rows


def test_defaults_when_no_rows():
    assert preferences_from_rows({}) == UserPreferences()


def test_stored_values_are_parsed():
    prefs = preferences_from_rows(
        {
            "display_name": "Sam",
            "theme": "dark",
            "price_alerts": "true",
            "email_notifications": "false",
            "data_retention_days": "90",
        }
    )
    assert prefs.display_name == "Sam"
    assert prefs.theme == "dark"
    assert prefs.price_alerts is True
    assert prefs.email_notifications is False
    assert prefs.data_retention_days == 90


def test_invalid_value_falls_back_to_default():
    prefs = preferences_from_rows({"theme": "neon", "data_retention_days": "0", "currency": "EUR"})
    assert prefs.theme == "system"
    assert prefs.data_retention_days == 365
    assert prefs.currency == "EUR"


def test_unknown_keys_are_ignored():
    prefs = preferences_from_rows({"legacy_flag": "1"})
    assert prefs == UserPreferences()


def test_serialize():
    assert _serialize(True) == "true"
    assert _serialize(False) == "false"
    assert _serialize(30) == "30"
    assert _serialize("UTC") == "UTC"
