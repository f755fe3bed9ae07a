"""Infrastructure adapters for the asset register.

These adapters implement the port interfaces defined in the domain layer,
connecting the application to the register's REST backend, Jinja2 print
templates, and CSV/Excel files.
"""

from .backend_repo import BackendRegisterRepository
from .export import StationReportExporter
from .field_mapper import RegisterFieldMapper
from .print_renderer import HtmlReportRenderer

__all__ = [
    "BackendRegisterRepository",
    "RegisterFieldMapper",
    "HtmlReportRenderer",
    "StationReportExporter",
]
