"""Semantic model attribute resolution and pivoting of query results."""

__version__ = "0.3.0"

from .config import *
from .errors import *
from .logging import *
from .metadata import *
from .query import *
