"""
SkyChecker Services

Solar geometry, ephemeris providers, satellite passes, visibility
reconciliation, catalog, weather, sky events and session cache.
"""
