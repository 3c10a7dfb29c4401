"""IdeaHub AI backend package.

The FastAPI application lives in :mod:`ideahub.app` and is only built when
that module is imported; the normalizer has no dependency on configuration.
"""

import logging

from .normalizer import ResponseNormalizer, normalize

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["ResponseNormalizer", "normalize"]
