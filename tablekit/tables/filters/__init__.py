# File: /tablekit/tables/filters/__init__.py | Version: 1.0 | Title: Filter package exports
from .clause import Clause
from .base import Filter
from .boolean import BooleanFilter
from .date import DateFilter
from .numeric import NumericFilter
from .request import FilterRequest
from .set import OptionsFromRelation, SetFilter
from .text import TextFilter
from .trashed import TrashedFilter

__all__ = [
    "BooleanFilter",
    "Clause",
    "DateFilter",
    "Filter",
    "FilterRequest",
    "NumericFilter",
    "OptionsFromRelation",
    "SetFilter",
    "TextFilter",
    "TrashedFilter",
]
