"""Core rendering package for msgrender.

Core contains classification, parsing, entity decoding and caching without
any storage or UI-specific code, keeping the rendering logic portable.
"""
