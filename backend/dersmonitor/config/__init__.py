"""
設定関連のパッケージ
"""
from .rubric_catalog import OBSERVATION_FORM_STRUCTURE, SECTION_WEIGHTS, get_catalog, load_catalog
from .settings import Settings, get_settings

__all__ = [
    'OBSERVATION_FORM_STRUCTURE',
    'SECTION_WEIGHTS',
    'Settings',
    'get_catalog',
    'get_settings',
    'load_catalog'
]
