"""Middleware modules for the Luvv API."""

from luvv.middleware.cors import CORSMiddleware
from luvv.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = ["CORSMiddleware", "RequestIDMiddleware", "REQUEST_ID_HEADER"]
