"""
Field Service Manager - API Routers
"""
