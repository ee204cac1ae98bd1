from .logging import logger, get_logger, setup_logging, console
from .pagination import apply_count_limit
from .etag import generate_etag, validate_etag
from .filter_parser import SCIMFilterParser
from .scim_path_parser import parse_scim_path, SCIMPath, evaluate_filter, find_matching_items

__all__ = [
    "logger",
    "get_logger",
    "setup_logging",
    "console",
    "apply_count_limit",
    "generate_etag",
    "validate_etag",
    "SCIMFilterParser",
    "parse_scim_path",
    "SCIMPath",
    "evaluate_filter",
    "find_matching_items",
]
