"""Command line interface for taskgraph.

Commands are thin: they load the store, call one core operation and print
the JSON response envelope.
"""
