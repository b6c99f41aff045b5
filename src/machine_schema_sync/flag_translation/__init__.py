"""Flag translation exports."""

from .flag_catalog import CatalogFlagSource, FlagSource, FlagSourceError
from .flag_models import DriverFlag
from .flag_translator import (
    FlagTranslationError,
    flag_to_field,
    to_lower_camel_case,
    translate_flags,
)

__all__ = [
    "CatalogFlagSource",
    "DriverFlag",
    "FlagSource",
    "FlagSourceError",
    "FlagTranslationError",
    "flag_to_field",
    "to_lower_camel_case",
    "translate_flags",
]
