"""
sing-box UI client - a control client for a sing-box manager service.

This package keeps a live local mirror of the remote proxy process
(status, traffic, logs, connections) and lets an operator change its
configuration through the manager's control-plane API.
"""

__version__ = "1.0.0"
__author__ = "singbox-ui-client"
