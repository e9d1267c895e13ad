"""
SkyChecker

Tonight's sky for a given date and place: observation window, rise /
transit / set for the Moon, planets, bright deep-sky objects and the ISS,
and a visibility verdict for each.
"""

__version__ = "0.3.0"
