"""Backend handles and the factory that builds them."""

from ats_resume_store.backend.factory import HandleFactory
from ats_resume_store.backend.handle import BackendHandle, Order, QueryResponse
from ats_resume_store.backend.rest import RestHandle
from ats_resume_store.backend.sql import SqlHandle

__all__ = ["BackendHandle", "HandleFactory", "Order", "QueryResponse", "RestHandle", "SqlHandle"]
