"""DR control plane: cross-region consistency validation and health-gated failover"""

__version__ = "1.0.0"
