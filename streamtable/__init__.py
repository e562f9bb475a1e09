"""Group graphs, codecs, headers, emitters, callback contexts and rebalancing for stateful stream processing."""

__version__ = "0.1.0"