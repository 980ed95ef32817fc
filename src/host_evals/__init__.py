"""MCP Host Evals - conformance harness for Model Context Protocol hosts.

The harness acts as an MCP server, guides the host operator through a
scripted list of protocol exercises and scores which protocol features
the host implements.
"""

__version__ = "0.3.0"
