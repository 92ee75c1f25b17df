from .local import ACCESS_TOKEN_KEY, SETTINGS_KEY, AppSettings, LocalStore, SettingsStore

__all__ = ["ACCESS_TOKEN_KEY", "SETTINGS_KEY", "AppSettings", "LocalStore", "SettingsStore"]
