"""
Domain logic for the Kundli service: models, query repair, merging, and the
request pipeline that ties them together.
"""

from .handler import HandlerResponse, RequestHandler
from .merger import merge
from .query_normalizer import normalize

__all__ = ["HandlerResponse", "RequestHandler", "merge", "normalize"]
