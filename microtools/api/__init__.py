"""
HTTP routers for the MicroTools backend.
"""
