"""
Infrastructure Layer
====================

Adapters that talk to InfluxDB over the network.
"""
