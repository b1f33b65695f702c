"""Linkwarden tools, one module per API resource."""
from . import collections
from . import links
from . import search
from . import tags
