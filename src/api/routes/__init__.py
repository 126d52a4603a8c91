"""
API Routes - HTTP endpoint handlers

Each area (display, announcements, system) has its own router; all of them
are mounted under /api/v1 by create_app().
"""
