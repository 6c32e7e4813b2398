"""
Tour Pricing Package

Price configuration and calculation engine for tour-operator product lines.
Resolves per-traveler sell prices using Items → Tier → Commission pipeline
with a cache-first, remote-durable persistence layer.
"""

__version__ = "1.0.0"
