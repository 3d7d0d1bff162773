"""
alsa-workaround: move a sound card's volume control from its broken hardware
mixer to software, and keep it that way across package upgrades.
"""

__version__ = "1.0.0"
