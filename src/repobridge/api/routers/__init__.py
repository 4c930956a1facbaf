"""
repobridge.api.routers

Router modules: health probes and the generic CRUD router.
"""
