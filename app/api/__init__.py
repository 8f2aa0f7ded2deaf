"""API package: versioned routers, shared dependencies and health"""
