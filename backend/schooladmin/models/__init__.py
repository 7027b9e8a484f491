from schooladmin.models.setting import Setting, SettingType, SettingCategory

__all__ = ["Setting", "SettingType", "SettingCategory"]
