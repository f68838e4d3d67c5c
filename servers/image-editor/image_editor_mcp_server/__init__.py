"""
Image Editor MCP Server

A Model Context Protocol (MCP) server for editing images in place.
Supports brightness adjustment, cropping, and compression of files
confined to a single image directory.
"""

__version__ = "0.1.0"
